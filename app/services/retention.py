from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import Event, EventStatus
from ..policies import is_expired
from .storage import storage_guard


def retention_period() -> timedelta:
    return timedelta(hours=current_app.config["SANTA_RETENTION_HOURS"])


def delete_event(event: Event) -> None:
    """Removes the event and every participant with it, whatever its status."""
    event_id = event.id
    with storage_guard("delete event"):
        db.session.delete(event)
        db.session.commit()
    current_app.logger.info("Deleted event %s", event_id)


def purge_if_expired(event: Event, now: datetime) -> bool:
    if not is_expired(event, now, retention_period()):
        return False
    current_app.logger.info("Event %s expired (drawn at %s)", event.id, event.drawn_at)
    delete_event(event)
    return True


def purge_expired_events(now: datetime) -> int:
    completed = Event.query.filter_by(status=EventStatus.COMPLETED).all()
    return sum(1 for event in completed if purge_if_expired(event, now))
