from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, redirect, url_for, flash, request, session, g, jsonify
from flask.views import MethodView
from flask_login import current_user, logout_user

from ..errors import NotFound
from ..models import utcnow
from ..policies import ORGANIZER_SESSION_KEY, OrganizerRequiredMixin, PendingOnlyMixin, organizer_event
from ..services.events import (
    add_participant,
    create_event,
    lookup_by_token,
    remove_participant,
    update_participant,
)
from ..services.retention import delete_event

santa_bp = Blueprint("santa", __name__)


def parse_draw_date(raw: str) -> datetime | None:
    """Accepts ISO-8601 (as sent by datetime-local inputs). Aware values are converted to naive UTC."""
    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _forget_participant_of(event_id: str) -> None:
    # Called before deleting: afterwards the remembered participant no longer loads.
    if current_user.is_authenticated and current_user.event_id == event_id:
        logout_user()


class CreateEventView(MethodView):
    def post(self):
        if organizer_event() is not None:
            flash("This browser already organizes an exchange. Delete it to start another.", "info")
            return redirect(url_for("public.landing"))

        name = (request.form.get("name") or "").strip()
        draw_date = parse_draw_date(request.form.get("draw_date") or "")

        if not name:
            flash("Event name is required.", "error")
            return redirect(url_for("public.landing"))
        if draw_date is None:
            flash("Please pick a valid draw date.", "error")
            return redirect(url_for("public.landing"))

        event = create_event(name, draw_date, utcnow())
        session[ORGANIZER_SESSION_KEY] = event.id
        flash("Exchange created. Share the join link with everyone.", "success")
        return redirect(url_for("public.landing"))


class AddParticipantView(PendingOnlyMixin):
    def post(self):
        name = (request.form.get("name") or "").strip()
        phone = (request.form.get("phone") or "").strip() or None
        if not name:
            flash("Name is required.", "error")
            return redirect(url_for("public.landing"))

        participant = add_participant(g.event, name, phone, utcnow())
        flash(f"Added {participant.name}.", "success")
        return redirect(url_for("public.landing"))


class EditParticipantView(PendingOnlyMixin):
    def post(self, participant_id: str):
        name = (request.form.get("name") or "").strip()
        phone = (request.form.get("phone") or "").strip() or None
        if not name:
            flash("Name is required.", "error")
            return redirect(url_for("public.landing"))

        try:
            participant = update_participant(g.event, participant_id, name, phone)
        except NotFound:
            flash("No such participant.", "error")
            return redirect(url_for("public.landing"))

        flash(f"Updated {participant.name}.", "success")
        return redirect(url_for("public.landing"))


class DeleteParticipantView(PendingOnlyMixin):
    def post(self, participant_id: str):
        try:
            remove_participant(g.event, participant_id)
        except NotFound:
            flash("No such participant.", "error")
            return redirect(url_for("public.landing"))

        flash("Participant removed.", "success")
        return redirect(url_for("public.landing"))


class DeleteEventView(OrganizerRequiredMixin):
    def post(self):
        _forget_participant_of(g.event.id)
        delete_event(g.event)
        session.pop(ORGANIZER_SESSION_KEY, None)
        flash("Exchange deleted.", "success")
        return redirect(url_for("public.landing"))


class ParticipantDeleteEventView(MethodView):
    """Any participant may delete the whole exchange from their private page."""
    def post(self, token: str):
        try:
            participant = lookup_by_token(token)
        except NotFound:
            flash("This gift link does not match any exchange.", "error")
            return redirect(url_for("public.landing"))

        event_id = participant.event_id
        _forget_participant_of(event_id)
        delete_event(participant.event)
        if session.get(ORGANIZER_SESSION_KEY) == event_id:
            session.pop(ORGANIZER_SESSION_KEY, None)
        flash("Exchange deleted.", "success")
        return redirect(url_for("public.landing"))


class ExportEventView(OrganizerRequiredMixin):
    def get(self):
        response = jsonify(g.event.to_dict())
        response.headers["Content-Disposition"] = f'attachment; filename="{g.event.id}.json"'
        return response


santa_bp.add_url_rule("/events", view_func=CreateEventView.as_view("create_event"), methods=["POST"])
santa_bp.add_url_rule("/event.json", view_func=ExportEventView.as_view("export_event"))
santa_bp.add_url_rule("/event/delete", view_func=DeleteEventView.as_view("delete_event"), methods=["POST"])

santa_bp.add_url_rule("/participants", view_func=AddParticipantView.as_view("add_participant"), methods=["POST"])
santa_bp.add_url_rule(
    "/participants/<participant_id>/edit",
    view_func=EditParticipantView.as_view("edit_participant"),
    methods=["POST"],
)
santa_bp.add_url_rule(
    "/participants/<participant_id>/delete",
    view_func=DeleteParticipantView.as_view("delete_participant"),
    methods=["POST"],
)
santa_bp.add_url_rule(
    "/p/<token>/delete",
    view_func=ParticipantDeleteEventView.as_view("participant_delete_event"),
    methods=["POST"],
)
