from __future__ import annotations

import random
from datetime import datetime
from typing import Sequence

from flask import current_app

from ..errors import InsufficientParticipants
from ..extensions import db
from ..models import Event, EventStatus, Participant
from ..policies import should_draw, draw_deferred
from .storage import storage_guard


def _shuffle(items: list, rng) -> None:
    # Fisher-Yates, in place.
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def draw(participants: Sequence[Participant], rng=None) -> dict[str, str]:
    """
    Returns {giver_id: receiver_id}, a permutation of the participant ids with
    no fixed point. Permutations with a fixed point are thrown away whole and
    reshuffled; for two or more people a valid one always exists.
    """
    if len(participants) < 2:
        raise InsufficientParticipants("Need at least 2 participants to draw names.")

    rng = rng or random
    ids = [p.id for p in participants]
    receivers = ids[:]
    while True:
        _shuffle(receivers, rng)
        if all(giver != receiver for giver, receiver in zip(ids, receivers)):
            return dict(zip(ids, receivers))


def run_due_draw(event: Event, now: datetime) -> bool:
    """
    Draws and commits if the event is due. Returns True only if this call
    performed the draw.
    """
    if not should_draw(event, now):
        if draw_deferred(event, now):
            current_app.logger.info("Draw for %s deferred: %d participant(s)", event.id, len(event.participants))
        return False

    with storage_guard("draw"):
        # Claim the event; a concurrent draw that got here first leaves nothing to match.
        claimed = Event.query.filter_by(id=event.id, status=EventStatus.PENDING).update(
            {"status": EventStatus.COMPLETED, "drawn_at": now}, synchronize_session=False
        )
        if claimed != 1:
            db.session.rollback()
            current_app.logger.info("Draw for %s already performed elsewhere", event.id)
            return False

        # Draw over the rows as they stand now that the event is claimed, not the copy read earlier.
        participants = Participant.query.filter_by(event_id=event.id).order_by(Participant.joined_at).all()
        if len(participants) < 2:
            db.session.rollback()
            current_app.logger.info("Draw for %s abandoned: participants left before the claim", event.id)
            return False

        assignment = draw(participants)
        id_map = {p.id: p for p in participants}
        for giver_id, receiver_id in assignment.items():
            id_map[giver_id].assigned_to_id = receiver_id

        db.session.commit()

    db.session.refresh(event)
    current_app.logger.info("Drew names for %s (%d participants)", event.id, len(assignment))
    return True
