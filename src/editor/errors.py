"""Typed exceptions for editing sessions."""

from typing import Optional

from src.content_store.errors import ContentSyncError


class SessionError(ContentSyncError):
    """Raised when a session operation is not valid in its current state.

    Examples: editing a closed session, or reloading over unsaved edits
    without asking to discard them.
    """

    kind = "Session"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, [path] if path else [])
        self.path = path
