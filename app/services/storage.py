from __future__ import annotations

from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageUnavailable
from ..extensions import db


@contextmanager
def storage_guard(action: str):
    """
    Wraps one logical write. On a database error the session is rolled back,
    so the last committed record stays intact, and StorageUnavailable is raised.
    """
    try:
        yield db.session
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Storage failure during %s: %s", action, e)
        raise StorageUnavailable(f"Could not save changes ({action}).") from e
