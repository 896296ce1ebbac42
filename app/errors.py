from __future__ import annotations


class SantaError(RuntimeError):
    pass


class InsufficientParticipants(SantaError):
    """A draw needs at least two participants."""


class EventAlreadyCompleted(SantaError):
    """The event has been drawn; participants can no longer change."""


class NotFound(SantaError):
    pass


class StorageUnavailable(SantaError):
    """The database could not be read or written. Nothing was persisted."""
