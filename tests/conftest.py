"""Pytest configuration and fixtures."""

from datetime import timedelta

import pytest

from app import create_app
from app.extensions import db
from app.models import utcnow
from app.services.events import add_participant, create_event


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "WTF_CSRF_ENABLED": False,
        "SANTA_POLL_SECONDS": 1,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    """For service-level tests. View tests use the client without a pushed context."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_event(app_ctx):
    def factory(names=(), draw_in=timedelta(days=1), name="Office party"):
        now = utcnow()
        event = create_event(name, now + draw_in, now)
        for participant_name in names:
            add_participant(event, participant_name, None, now)
        return event
    return factory
