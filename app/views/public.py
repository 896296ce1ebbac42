from __future__ import annotations

from datetime import datetime

from flask import Blueprint, render_template, request, session, jsonify, current_app
from flask.views import MethodView
from flask_login import current_user

from ..errors import NotFound
from ..extensions import db
from ..models import Event, utcnow
from ..policies import (
    ViewMode,
    ViewState,
    ORGANIZER_SESSION_KEY,
    draw_deferred,
    organizer_event,
    resolve_view_state,
)
from ..services.events import lookup_by_token, tick


public_bp = Blueprint("public", __name__)

TEMPLATES = {
    ViewMode.CREATE_EVENT: "santa/create.html",
    ViewMode.ORGANIZER: "santa/organizer.html",
    ViewMode.JOIN: "santa/join.html",
    ViewMode.PARTICIPANT_WAITING: "santa/participant.html",
    ViewMode.PARTICIPANT_ASSIGNED: "santa/participant.html",
    ViewMode.ERROR: "santa/error.html",
}


def load_view_state(event_id: str | None, token: str | None, now: datetime) -> ViewState:
    routed_event = None
    routed_participant = None
    own_event = None

    if token:
        try:
            routed_participant = lookup_by_token(token)
        except NotFound:
            routed_participant = None
        if routed_participant is not None and tick(routed_participant.event, now) is None:
            routed_participant = None
    elif event_id:
        routed_event = db.session.get(Event, event_id)
        if routed_event is not None:
            routed_event = tick(routed_event, now)
    else:
        own_event = organizer_event()
        if own_event is not None:
            own_event = tick(own_event, now)
            if own_event is None:
                session.pop(ORGANIZER_SESSION_KEY, None)

    return resolve_view_state(
        event_id=event_id,
        token=token,
        routed_event=routed_event,
        routed_participant=routed_participant,
        organizer_event=own_event,
        known_participant=current_user if current_user.is_authenticated else None,
    )


class LandingView(MethodView):
    def get(self):
        now = utcnow()
        state = load_view_state(request.args.get("event") or None, request.args.get("p") or None, now)
        status_code = 404 if state.mode == ViewMode.ERROR else 200
        return render_template(
            TEMPLATES[state.mode],
            state=state,
            event=state.event,
            participant=state.participant,
            draw_deferred=state.event is not None and draw_deferred(state.event, now),
            poll_seconds=current_app.config["SANTA_POLL_SECONDS"],
        ), status_code


class StatusView(MethodView):
    """Polled by open pages; each poll re-runs the draw and retention checks."""
    def get(self):
        state = load_view_state(None, request.args.get("p") or None, utcnow())
        event = state.event
        assigned = None
        if state.mode == ViewMode.PARTICIPANT_ASSIGNED and state.participant.assigned_to is not None:
            assigned = state.participant.assigned_to.name

        payload = {
            "mode": state.mode.value,
            "status": event.status.value if event is not None else None,
            "drawDate": event.draw_date.isoformat() if event is not None else None,
            "drawnAt": event.drawn_at.isoformat() if event is not None and event.drawn_at else None,
            "assignedTo": assigned,
        }
        return jsonify(payload), (404 if state.mode == ViewMode.ERROR else 200)


public_bp.add_url_rule("/", view_func=LandingView.as_view("landing"))
public_bp.add_url_rule("/status", view_func=StatusView.as_view("status"))
