"""Data models for the content store.

All models use dataclasses for clean, type-safe data structures.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    """Kind of an entry in the remote namespace.

    OPAQUE covers symlink and submodule entries: they are listed but never
    read as files or descended into as directories.
    """
    FILE = "file"
    DIRECTORY = "dir"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class Blob:
    """File content at a path together with its current version token.

    Attributes:
        path: Normalized '/'-separated path of the file
        content: Raw file bytes
        hash: Opaque content-version token ("sha") used as the
              optimistic-concurrency precondition for updates and deletes
    """
    path: str
    content: bytes
    hash: str

    @property
    def text(self) -> str:
        """Content decoded as UTF-8."""
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class StoreEntry:
    """One entry of a directory listing.

    Attributes:
        name: Entry name (last path segment)
        path: Full normalized path
        kind: File, directory or opaque entry
        hash: Version token when the store reports one
        remote_type: Raw type reported by the remote (e.g. "submodule")
    """
    name: str
    path: str
    kind: EntryKind
    hash: Optional[str] = None
    remote_type: Optional[str] = None


def git_blob_hash(content: bytes) -> str:
    """Compute the git blob SHA-1 of ``content``.

    This is the same token the GitHub contents API reports as ``sha``.
    """
    header = f"blob {len(content)}\0".encode("ascii")
    return hashlib.sha1(header + content).hexdigest()
