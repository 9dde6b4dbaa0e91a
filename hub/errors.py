"""
Hub-side errors.
"""
from typing import Optional


class HubError(Exception):
    """Base class for coordination hub errors."""


class SessionExpired(HubError):
    """The backend rejected the stored credentials."""


class NoSession(HubError):
    """An operation needs a session and none is held."""


class BackendError(HubError):
    """The backend collaborator answered with a non-2xx status or not at all."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
