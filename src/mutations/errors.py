"""Typed exceptions for mutation operations."""

from typing import Any, Dict, Optional

from src.content_store.errors import ContentSyncError


class MutationError(ContentSyncError):
    """Base exception for all mutation engine errors."""
    pass


class PartialFailureError(MutationError):
    """Raised when some, but not all, descendants of a recursive move or
    delete failed.

    The remote store has no multi-blob transactions, so the operations that
    succeeded are not rolled back. ``failed`` maps each failed path to its
    error message and ``result`` holds the full MutationResult when the
    error was raised from one.
    """

    kind = "PartialFailure"

    def __init__(
        self,
        operation: str,
        path: str,
        failed: Dict[str, str],
        succeeded_count: int,
        result: Optional[Any] = None,
    ):
        total = len(failed) + succeeded_count
        super().__init__(
            f"{operation.capitalize()} of '{path}' partially failed: "
            f"{len(failed)} of {total} entries failed "
            f"({', '.join(failed)})",
            list(failed),
        )
        self.operation = operation
        self.path = path
        self.failed = dict(failed)
        self.succeeded_count = succeeded_count
        self.result = result

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["failed"] = dict(self.failed)
        payload["succeeded_count"] = self.succeeded_count
        return payload
