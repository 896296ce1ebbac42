from __future__ import annotations

import logging
import os

import click
from flask import Flask, render_template
from sqlalchemy.exc import SQLAlchemyError

from .errors import StorageUnavailable
from .extensions import db, login_manager, migrate, csrf
from .models import utcnow
from .policies import ViewMode, ViewState
from .views.auth import auth_bp
from .views.santa import santa_bp
from .views.public import public_bp


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///secretsanta.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Completed exchanges are deleted this long after the draw
    app.config["SANTA_RETENTION_HOURS"] = float(os.environ.get("SANTA_RETENTION_HOURS", "24"))
    # How often open pages re-check for a draw
    app.config["SANTA_POLL_SECONDS"] = int(os.environ.get("SANTA_POLL_SECONDS", "15"))
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"], logging.INFO))

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(santa_bp)

    @app.errorhandler(StorageUnavailable)
    def storage_unavailable(error):
        # Non-fatal: the previous record is intact, only this change was lost.
        state = ViewState(ViewMode.ERROR, message=f"{error} Nothing was saved; please try again shortly.")
        return render_template("santa/error.html", state=state), 503

    @app.errorhandler(SQLAlchemyError)
    def storage_read_failed(error):
        # Lookups are not wrapped in storage_guard; a failed read lands here.
        db.session.rollback()
        app.logger.error("Storage failure during read: %s", error)
        return storage_unavailable(StorageUnavailable("Could not reach the saved exchange."))

    @app.cli.command("purge-expired")
    def purge_expired_command():
        """Delete exchanges whose retention period has passed."""
        from .services.retention import purge_expired_events

        removed = purge_expired_events(utcnow())
        click.echo(f"Deleted {removed} expired exchange(s).")

    with app.app_context():
        db.create_all()

    return app
