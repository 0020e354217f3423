"""Exceptions raised by the marathon core services."""

from __future__ import annotations


class MarathonError(Exception):
    """Base class for expected, caller-recoverable failures."""


class AlreadySubmittedError(MarathonError):
    """Raised when a user completes the same reading twice."""

    def __init__(self, user_id: str, reading_id: str) -> None:
        super().__init__(f"User '{user_id}' already completed reading '{reading_id}'.")
        self.user_id = user_id
        self.reading_id = reading_id


class UnknownReadingError(MarathonError):
    def __init__(self, reading_id: str) -> None:
        super().__init__(f"Reading '{reading_id}' does not exist.")
        self.reading_id = reading_id


class UnknownUserError(MarathonError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User '{user_id}' does not exist.")
        self.user_id = user_id


class UnknownEventError(MarathonError):
    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event '{event_id}' does not exist.")
        self.event_id = event_id


class UnknownGroupError(MarathonError):
    def __init__(self, group_name: str) -> None:
        super().__init__(f"Group '{group_name}' does not exist.")
        self.group_name = group_name


class InvalidEventError(MarathonError):
    """Raised when an event definition is rejected before it is stored."""


class InvalidReadingError(MarathonError):
    """Raised when a directly entered reading is malformed."""


class InvalidUserError(MarathonError):
    """Raised when a join or edit carries an empty name or group."""


class PermissionDeniedError(MarathonError):
    """Raised when a non-admin caller requests an admin operation."""


class SnapshotError(MarathonError):
    """Raised when a stored snapshot cannot be decoded."""
