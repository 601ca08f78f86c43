"""ContentStore capability interface.

The ContentStore is the only external interface the core consumes: a
hash-addressed, version-controlled blob store keyed by path. Directories are
not first-class objects in the store; they exist only as prefixes of at
least one blob.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .models import Blob, StoreEntry

Content = Union[str, bytes]


def to_bytes(content: Optional[Content]) -> bytes:
    """Coerce text or bytes content to bytes (text is UTF-8 encoded)."""
    if content is None:
        return b""
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


class ContentStore(ABC):
    """Request/response capability over a remote hash-addressed store.

    Implementations are constructed explicitly and passed to the layers that
    need them; there is no ambient client instance.

    Semantic failures raise NotFoundError, ConflictError, InvalidPathError or
    UnsupportedOperationError. Network and availability failures raise
    TransientError, which is distinct so that callers can retry idempotent
    reads.
    """

    @abstractmethod
    def get(self, path: str) -> Blob:
        """Read the file at ``path``.

        Raises:
            NotFoundError: If nothing exists at the path
            UnsupportedOperationError: If the path is a directory or an
                opaque (symlink/submodule) entry
            TransientError: On network failure
        """

    @abstractmethod
    def list(self, path: str) -> List[StoreEntry]:
        """List the direct children of the directory at ``path``.

        Entries are returned in the store's native order.

        Raises:
            NotFoundError: If nothing exists at the path
            ExpectedDirectoryError: If the path is a file
            TransientError: On network failure
        """

    @abstractmethod
    def put(
        self,
        path: str,
        content: Content,
        expected_hash: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        """Write ``content`` at ``path`` and return the new hash.

        With ``expected_hash`` the write only succeeds while the stored hash
        still matches. Without it, create-only semantics are NOT enforced by
        this layer; callers needing them must ``get`` first.

        Raises:
            ConflictError: If the stored hash no longer matches
            NotFoundError: If the precondition names a missing file or the
                parent namespace does not exist
            TransientError: On network failure
        """

    @abstractmethod
    def delete(
        self,
        path: str,
        expected_hash: str,
        message: Optional[str] = None,
    ) -> None:
        """Delete the file at ``path`` if its hash still matches.

        Raises:
            ConflictError: If the stored hash no longer matches
            NotFoundError: If nothing exists at the path
            TransientError: On network failure
        """
