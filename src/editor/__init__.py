"""Editing sessions over single documents."""

from .editing_session import EditingSession
from .errors import SessionError

__all__ = [
    'EditingSession',
    'SessionError',
]
