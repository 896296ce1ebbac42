from __future__ import annotations

from flask import Blueprint, redirect, url_for, flash, request
from flask.views import MethodView
from flask_login import login_user, logout_user, current_user

from ..errors import EventAlreadyCompleted, NotFound
from ..models import utcnow
from ..services.events import add_participant, get_event, tick


auth_bp = Blueprint("auth", __name__)


class JoinView(MethodView):
    """
    A prospective participant submits their details through the shared link.
    The browser then remembers them, so the shared link leads back to their page.
    """
    def post(self, event_id: str):
        try:
            event = get_event(event_id)
        except NotFound:
            flash("This exchange does not exist or has been deleted.", "error")
            return redirect(url_for("public.landing", event=event_id))

        if current_user.is_authenticated and current_user.event_id == event.id:
            return redirect(url_for("public.landing", p=current_user.token))

        name = (request.form.get("name") or "").strip()
        phone = (request.form.get("phone") or "").strip() or None
        if not name:
            flash("Name is required.", "error")
            return redirect(url_for("public.landing", event=event.id))

        now = utcnow()
        # A draw that fell due before anyone looked closes the event first.
        if tick(event, now) is None:
            flash("This exchange does not exist or has been deleted.", "error")
            return redirect(url_for("public.landing", event=event_id))

        try:
            participant = add_participant(event, name, phone, now)
        except EventAlreadyCompleted:
            flash("Names have already been drawn for this exchange; it is closed to new participants.", "error")
            return redirect(url_for("public.landing", event=event.id))

        login_user(participant, remember=True)
        flash(f"You're in, {participant.name}! Keep this page's link to see your match.", "success")
        return redirect(url_for("public.landing", p=participant.token))


class ForgetView(MethodView):
    def post(self):
        if current_user.is_authenticated:
            logout_user()
        return redirect(url_for("public.landing"))


auth_bp.add_url_rule("/join/<event_id>", view_func=JoinView.as_view("join"), methods=["POST"])
auth_bp.add_url_rule("/forget", view_func=ForgetView.as_view("forget"), methods=["POST"])
