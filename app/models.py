import enum
from datetime import datetime, timezone

from flask_login import UserMixin
from .extensions import db, login_manager
from .identifiers import new_id, new_token


def utcnow() -> datetime:
    # Naive UTC, matching what SQLite DateTime columns hand back.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.String(40), primary_key=True, default=lambda: new_id("evt"))
    name = db.Column(db.String(120), nullable=False)
    draw_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(
        db.Enum(EventStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        default=EventStatus.PENDING,
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    # Set by the draw and only by the draw; null while pending.
    drawn_at = db.Column(db.DateTime, nullable=True)

    participants = db.relationship(
        "Participant",
        back_populates="event",
        order_by="Participant.joined_at",
        cascade="all, delete-orphan",
    )

    @property
    def is_pending(self) -> bool:
        return self.status == EventStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == EventStatus.COMPLETED

    def to_dict(self) -> dict:
        """The exported event record, in the shape the share/export tools expect."""
        return {
            "id": self.id,
            "name": self.name,
            "drawDate": _iso(self.draw_date),
            "status": self.status.value,
            "createdAt": _iso(self.created_at),
            "drawnAt": _iso(self.drawn_at),
            "participants": [p.to_dict() for p in self.participants],
        }


class Participant(UserMixin, db.Model):
    __tablename__ = "participants"

    id = db.Column(db.String(40), primary_key=True, default=lambda: new_id("p"))
    event_id = db.Column(db.String(40), db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    # Private view link; identifies, does not authenticate.
    token = db.Column(db.String(64), unique=True, nullable=False, default=lambda: new_token())

    joined_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    assigned_to_id = db.Column(db.String(40), db.ForeignKey("participants.id", ondelete="SET NULL"), nullable=True)
    assigned_to = db.relationship(
        "Participant",
        remote_side=[id],
        foreign_keys=[assigned_to_id],
        uselist=False,
        post_update=True,
    )

    event = db.relationship("Event", back_populates="participants")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "token": self.token,
            "assignedTo": self.assigned_to_id,
            "joinedAt": _iso(self.joined_at),
        }


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(Participant, user_id)
