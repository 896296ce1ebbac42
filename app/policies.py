from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import redirect, url_for, flash, request, session, g
from flask.views import MethodView

from .extensions import db
from .models import Event, EventStatus, Participant, utcnow

RETENTION = timedelta(hours=24)

ORGANIZER_SESSION_KEY = "organizer_event_id"


# --------- Draw trigger / retention predicates ----------

def should_draw(event: Event, now: datetime) -> bool:
    return (
        event.status == EventStatus.PENDING
        and now >= event.draw_date
        and len(event.participants) >= 2
    )


def draw_deferred(event: Event, now: datetime) -> bool:
    """Due, but not enough people joined yet. Waits; does not fail."""
    return (
        event.status == EventStatus.PENDING
        and now >= event.draw_date
        and len(event.participants) < 2
    )


def is_expired(event: Event, now: datetime, retention: timedelta = RETENTION) -> bool:
    if event.status != EventStatus.COMPLETED or event.drawn_at is None:
        return False
    return now - event.drawn_at >= retention


# --------- View modes ----------

class ViewMode(str, enum.Enum):
    LOADING = "loading"
    CREATE_EVENT = "create_event"
    ORGANIZER = "organizer"
    JOIN = "join"
    PARTICIPANT_WAITING = "participant_waiting"
    PARTICIPANT_ASSIGNED = "participant_assigned"
    ERROR = "error"


@dataclass(frozen=True)
class ViewState:
    mode: ViewMode
    event: Event | None = None
    participant: Participant | None = None
    message: str | None = None


def _participant_state(participant: Participant) -> ViewState:
    mode = ViewMode.PARTICIPANT_ASSIGNED if participant.event.is_completed else ViewMode.PARTICIPANT_WAITING
    return ViewState(mode, event=participant.event, participant=participant)


def resolve_view_state(
    *,
    event_id: str | None,
    token: str | None,
    routed_event: Event | None,
    routed_participant: Participant | None,
    organizer_event: Event | None,
    known_participant: Participant | None,
) -> ViewState:
    """
    Picks what this browser sees from the routing parameters and the records
    already looked up for them. A token wins over an event id.
    """
    if token:
        if routed_participant is None:
            return ViewState(ViewMode.ERROR, message="This gift link does not match any exchange.")
        return _participant_state(routed_participant)

    if event_id:
        if routed_event is None:
            return ViewState(ViewMode.ERROR, message="This exchange does not exist or has been deleted.")
        if known_participant is not None and known_participant.event_id == routed_event.id:
            return _participant_state(known_participant)
        return ViewState(ViewMode.JOIN, event=routed_event)

    if organizer_event is not None:
        return ViewState(ViewMode.ORGANIZER, event=organizer_event)
    return ViewState(ViewMode.CREATE_EVENT)


def organizer_event() -> Event | None:
    event_id = session.get(ORGANIZER_SESSION_KEY)
    if not event_id:
        return None
    event = db.session.get(Event, event_id)
    if event is None:
        # Deleted elsewhere (expiry or a participant); forget it.
        session.pop(ORGANIZER_SESSION_KEY, None)
    return event


# --------- Class-based view Mixins ----------

class OrganizerRequiredMixin(MethodView):
    """Loads this browser's event into g.event, after running any due draw or expiry."""
    pending_only = False

    def dispatch_request(self, *args, **kwargs):
        from .services.events import tick

        event = organizer_event()
        if event is not None and tick(event, utcnow()) is None:
            session.pop(ORGANIZER_SESSION_KEY, None)
            event = None
        if event is None:
            flash("You are not organizing an exchange in this browser.", "error")
            return redirect(url_for("public.landing"))

        if self.pending_only and request.method in {"POST", "PUT", "PATCH", "DELETE"} and event.is_completed:
            flash("Names are drawn; participants can no longer change.", "info")
            return redirect(url_for("public.landing"))

        g.event = event
        return super().dispatch_request(*args, **kwargs)


class PendingOnlyMixin(OrganizerRequiredMixin):
    """
    Allows GET always.
    Blocks POST/PUT/PATCH/DELETE once the event has been drawn.
    """
    pending_only = True
