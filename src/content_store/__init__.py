"""Content store client library.

This package provides the ContentStore capability: a typed interface over a
remote, hash-addressed blob store (the GitHub repository contents API), an
in-process implementation with the same observable behaviour, and the error
taxonomy shared by every layer built on top of it.
"""

from .base import ContentStore
from .errors import (
    ContentSyncError,
    ContentStoreError,
    NotFoundError,
    ConflictError,
    AlreadyExistsError,
    InvalidPathError,
    ExpectedDirectoryError,
    UnsupportedOperationError,
    TransientError,
    RateLimitError,
    InvalidCredentialsError,
)
from .models import Blob, EntryKind, StoreEntry
from .memory_store import MemoryContentStore

__all__ = [
    "ContentStore",
    "MemoryContentStore",
    "Blob",
    "EntryKind",
    "StoreEntry",
    "ContentSyncError",
    "ContentStoreError",
    "NotFoundError",
    "ConflictError",
    "AlreadyExistsError",
    "InvalidPathError",
    "ExpectedDirectoryError",
    "UnsupportedOperationError",
    "TransientError",
    "RateLimitError",
    "InvalidCredentialsError",
]
