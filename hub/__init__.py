"""
Coordination hub for the posting engine.
"""
from .backend import BackendClient
from .errors import BackendError, HubError, NoSession, SessionExpired
from .hub import CoordinationHub
from .session import Session

__version__ = "1.0.0"

__all__ = [
    "BackendClient",
    "BackendError",
    "HubError",
    "NoSession",
    "SessionExpired",
    "CoordinationHub",
    "Session"
]
