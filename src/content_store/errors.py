"""Typed exception hierarchy for content store errors.

This module defines the exceptions raised by ContentStore implementations and
the layers built on them. All exceptions inherit from ContentSyncError so
callers can catch any application-level failure in one place. Every exception
carries a ``kind`` (the stable error category exposed to UI/CLI consumers) and
the offending ``paths`` so callers can reconcile state by re-listing the tree.
"""

from typing import Any, Dict, List, Optional


class ContentSyncError(Exception):
    """Base exception for all github-cms errors.

    Use this to catch any application-level error from the tool.
    """

    kind = "Error"

    def __init__(self, message: str, paths: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.paths = list(paths or [])

    def to_dict(self) -> Dict[str, Any]:
        """Render the error as a ``{kind, message, paths}`` payload."""
        return {
            "kind": self.kind,
            "message": self.message,
            "paths": list(self.paths),
        }


class ContentStoreError(ContentSyncError):
    """Base exception for all content store errors."""
    pass


class NotFoundError(ContentStoreError):
    """Raised when a path is absent at read time."""

    kind = "NotFound"

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' not found", [path])
        self.path = path


class ConflictError(ContentStoreError):
    """Raised when a write or delete carries a stale content hash."""

    kind = "Conflict"

    def __init__(
        self,
        path: str,
        expected_hash: Optional[str] = None,
        current_hash: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            if expected_hash:
                message = (
                    f"Conflict writing '{path}': expected hash {expected_hash} "
                    f"is stale"
                )
                if current_hash:
                    message += f" (current hash {current_hash})"
            else:
                message = f"Conflict writing '{path}': remote content changed"
        super().__init__(message, [path])
        self.path = path
        self.expected_hash = expected_hash
        self.current_hash = current_hash


class AlreadyExistsError(ConflictError):
    """Raised by create-only writes when the target path already exists."""

    def __init__(self, path: str, current_hash: Optional[str] = None):
        super().__init__(
            path,
            current_hash=current_hash,
            message=f"Path '{path}' already exists",
        )


class InvalidPathError(ContentStoreError):
    """Raised when a path is malformed or names the wrong kind of entry."""

    kind = "InvalidPath"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path '{path}': {reason}", [path])
        self.path = path
        self.reason = reason


class ExpectedDirectoryError(InvalidPathError):
    """Raised when a directory listing is requested for a file."""

    def __init__(self, path: str):
        super().__init__(path, "expected a directory, found a file")


class UnsupportedOperationError(ContentStoreError):
    """Raised when an operation does not apply to the entry at a path.

    Typical case: reading a directory (or a submodule/symlink entry) as if
    it were a file.
    """

    kind = "UnsupportedOperation"

    def __init__(self, path: str, operation: str, reason: Optional[str] = None):
        message = f"Operation '{operation}' is not supported for '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, [path])
        self.path = path
        self.operation = operation
        self.reason = reason


class TransientError(ContentStoreError):
    """Raised when the store is unreachable or temporarily failing.

    Transient failures are eligible for retry on idempotent reads only.
    """

    kind = "Transient"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Transient failure for '{path}': {reason}", [path])
        self.path = path
        self.reason = reason


class RateLimitError(TransientError):
    """Raised when the remote store rejects a request because of rate limits."""

    def __init__(self, path: str, retry_after: Optional[float] = None):
        reason = "rate limit exceeded"
        if retry_after is not None:
            reason += f" (retry after {retry_after:g}s)"
        super().__init__(path, reason)
        self.retry_after = retry_after


class InvalidCredentialsError(ContentStoreError):
    """Raised when API credentials are missing, invalid or rejected."""

    kind = "InvalidCredentials"

    def __init__(self, user: str, endpoint: str):
        super().__init__(
            f"API token is invalid (user: {user}, endpoint: {endpoint})"
        )
        self.user = user
        self.endpoint = endpoint
