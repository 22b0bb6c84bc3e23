"""Exceptions raised by the timetable service."""

from __future__ import annotations

from typing import Optional


class TimetableError(Exception):
    """Base class for timetable failures that should reach the caller."""

    status_code = 400

    def __init__(self, message: str, recommendation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.recommendation = recommendation

    def to_dict(self) -> dict:
        """Error body used by the API."""
        body = {"success": False, "error": self.message}
        if self.recommendation:
            body["recommendation"] = self.recommendation
        return body


class ValidationError(TimetableError):
    """A required field is missing or a value is out of range."""
    status_code = 400


class ConflictError(TimetableError):
    """The operation collides with existing timetable entries."""
    status_code = 409


class NotFoundError(TimetableError):
    """A referenced entry or teacher does not exist."""
    status_code = 404


class PersistenceError(TimetableError):
    """The storage layer failed; nothing was written."""
    status_code = 500
