from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..errors import EventAlreadyCompleted, NotFound
from ..extensions import db
from ..identifiers import new_id, new_token
from ..models import Event, EventStatus, Participant
from .assignments import run_due_draw
from .retention import purge_if_expired
from .storage import storage_guard


def create_event(name: str, draw_date: datetime, now: datetime) -> Event:
    event = Event(
        id=new_id("evt"),
        name=name,
        draw_date=draw_date,
        status=EventStatus.PENDING,
        created_at=now,
    )
    with storage_guard("create event"):
        db.session.add(event)
        db.session.commit()
    current_app.logger.info("Created event %s drawing at %s", event.id, draw_date.isoformat())
    return event


def get_event(event_id: str) -> Event:
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFound(f"No event {event_id!r}")
    return event


def lookup_by_token(token: str) -> Participant:
    participant = Participant.query.filter_by(token=token).first()
    if participant is None:
        raise NotFound("No participant for that link")
    return participant


def _ensure_pending(event: Event) -> None:
    if event.status != EventStatus.PENDING:
        raise EventAlreadyCompleted(f"Names for {event.name!r} have already been drawn.")


def add_participant(event: Event, name: str, phone: str | None, now: datetime) -> Participant:
    _ensure_pending(event)
    participant = Participant(
        id=new_id("p"),
        token=new_token(),
        name=name,
        phone=phone or None,
        joined_at=now,
    )
    with storage_guard("join"):
        event.participants.append(participant)
        db.session.commit()
    current_app.logger.info("Participant %s joined %s", participant.id, event.id)
    return participant


def _participant_of(event: Event, participant_id: str) -> Participant:
    participant = db.session.get(Participant, participant_id)
    if participant is None or participant.event_id != event.id:
        raise NotFound(f"No participant {participant_id!r} in this event")
    return participant


def update_participant(event: Event, participant_id: str, name: str, phone: str | None) -> Participant:
    _ensure_pending(event)
    participant = _participant_of(event, participant_id)
    with storage_guard("edit participant"):
        participant.name = name
        participant.phone = phone or None
        db.session.commit()
    return participant


def remove_participant(event: Event, participant_id: str) -> None:
    _ensure_pending(event)
    participant = _participant_of(event, participant_id)
    with storage_guard("remove participant"):
        event.participants.remove(participant)
        db.session.commit()
    current_app.logger.info("Removed participant %s from %s", participant_id, event.id)


def tick(event: Event, now: datetime) -> Event | None:
    """
    Re-evaluates retention and the draw trigger for one event. Runs on every
    page load and status poll. Returns None if the event was purged.
    """
    if purge_if_expired(event, now):
        return None
    run_due_draw(event, now)
    return event
