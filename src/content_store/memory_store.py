"""In-process ContentStore implementation.

MemoryContentStore keeps blobs in a dictionary and mirrors the observable
behaviour of the GitHub contents API: git-compatible blob hashes, lexical
listing order, directories derived from blob prefixes, opaque
symlink/submodule entries, and hash-checked writes and deletes. It backs the
test suite and the CLI's ``--memory`` mode.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .base import Content, ContentStore, to_bytes
from .errors import (
    ConflictError,
    ExpectedDirectoryError,
    InvalidPathError,
    NotFoundError,
    UnsupportedOperationError,
)
from .models import Blob, EntryKind, StoreEntry, git_blob_hash
from .paths import base_name, is_within, join_path, normalize_path, parent_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitRecord:
    """A single recorded write or delete, with its commit message."""
    operation: str
    path: str
    message: Optional[str]
    hash: Optional[str]


class MemoryContentStore(ContentStore):
    """Dictionary-backed ContentStore.

    Example:
        >>> store = MemoryContentStore({"posts/hello.md": "Hello"})
        >>> blob = store.get("posts/hello.md")
        >>> store.put("posts/hello.md", "Hi", expected_hash=blob.hash)
    """

    def __init__(
        self,
        files: Optional[Mapping[str, Content]] = None,
        opaque: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the store.

        Args:
            files: Initial files, path -> text or bytes
            opaque: Opaque entries, path -> remote type ("symlink" or "submodule")
        """
        self._lock = threading.Lock()
        self._files: Dict[str, bytes] = {}
        self._opaque: Dict[str, str] = {}
        self.commits: List[CommitRecord] = []

        for path, content in (files or {}).items():
            self._files[normalize_path(path, allow_root=False)] = to_bytes(content)
        for path, remote_type in (opaque or {}).items():
            self._opaque[normalize_path(path, allow_root=False)] = remote_type

    def _is_directory(self, path: str) -> bool:
        if path == "":
            return True
        prefix = path + "/"
        return any(p.startswith(prefix) for p in self._files) or any(
            p.startswith(prefix) for p in self._opaque
        )

    def get(self, path: str) -> Blob:
        path = normalize_path(path)
        with self._lock:
            if path in self._files:
                content = self._files[path]
                return Blob(path=path, content=content, hash=git_blob_hash(content))
            if path in self._opaque:
                raise UnsupportedOperationError(
                    path, "get", f"entry is a {self._opaque[path]}"
                )
            if self._is_directory(path):
                raise UnsupportedOperationError(path, "get", "path is a directory")
        raise NotFoundError(path)

    def list(self, path: str) -> List[StoreEntry]:
        path = normalize_path(path)
        with self._lock:
            if path in self._files:
                raise ExpectedDirectoryError(path)
            if path in self._opaque:
                raise UnsupportedOperationError(
                    path, "list", f"entry is a {self._opaque[path]}"
                )

            entries: Dict[str, StoreEntry] = {}
            for file_path, content in self._files.items():
                if not is_within(file_path, path) or file_path == path:
                    continue
                child = self._direct_child(path, file_path)
                if child == file_path:
                    entries[child] = StoreEntry(
                        name=base_name(child),
                        path=child,
                        kind=EntryKind.FILE,
                        hash=git_blob_hash(content),
                        remote_type="file",
                    )
                elif child not in entries:
                    entries[child] = StoreEntry(
                        name=base_name(child),
                        path=child,
                        kind=EntryKind.DIRECTORY,
                        remote_type="dir",
                    )
            for opaque_path, remote_type in self._opaque.items():
                if not is_within(opaque_path, path) or opaque_path == path:
                    continue
                child = self._direct_child(path, opaque_path)
                if child == opaque_path:
                    entries[child] = StoreEntry(
                        name=base_name(child),
                        path=child,
                        kind=EntryKind.OPAQUE,
                        remote_type=remote_type,
                    )
                elif child not in entries:
                    entries[child] = StoreEntry(
                        name=base_name(child),
                        path=child,
                        kind=EntryKind.DIRECTORY,
                        remote_type="dir",
                    )

        if not entries and path != "":
            raise NotFoundError(path)

        return sorted(entries.values(), key=lambda entry: entry.name)

    @staticmethod
    def _direct_child(parent: str, descendant: str) -> str:
        """Return the path of the direct child of ``parent`` on the way to ``descendant``."""
        suffix = descendant[len(parent):].lstrip("/") if parent else descendant
        return join_path(parent, suffix.split("/", 1)[0])

    def put(
        self,
        path: str,
        content: Content,
        expected_hash: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        path = normalize_path(path, allow_root=False)
        data = to_bytes(content)

        with self._lock:
            if path in self._opaque:
                raise UnsupportedOperationError(
                    path, "put", f"entry is a {self._opaque[path]}"
                )
            if path not in self._files and self._is_directory(path):
                raise UnsupportedOperationError(path, "put", "path is a directory")

            ancestor = parent_path(path)
            while ancestor:
                if ancestor in self._files:
                    raise InvalidPathError(path, f"'{ancestor}' is a file")
                ancestor = parent_path(ancestor)

            if expected_hash is not None:
                if path not in self._files:
                    raise NotFoundError(path)
                current_hash = git_blob_hash(self._files[path])
                if current_hash != expected_hash:
                    raise ConflictError(path, expected_hash, current_hash)

            self._files[path] = data
            new_hash = git_blob_hash(data)
            self.commits.append(CommitRecord("put", path, message, new_hash))

        logger.debug(f"Stored {path} ({len(data)} bytes, hash {new_hash})")
        return new_hash

    def delete(
        self,
        path: str,
        expected_hash: str,
        message: Optional[str] = None,
    ) -> None:
        path = normalize_path(path, allow_root=False)

        with self._lock:
            if path not in self._files:
                if path in self._opaque:
                    raise UnsupportedOperationError(
                        path, "delete", f"entry is a {self._opaque[path]}"
                    )
                if self._is_directory(path):
                    raise UnsupportedOperationError(path, "delete", "path is a directory")
                raise NotFoundError(path)

            current_hash = git_blob_hash(self._files[path])
            if current_hash != expected_hash:
                raise ConflictError(path, expected_hash, current_hash)

            del self._files[path]
            self.commits.append(CommitRecord("delete", path, message, None))

        logger.debug(f"Deleted {path}")

    def paths(self) -> List[str]:
        """Return all stored file paths in lexical order."""
        with self._lock:
            return sorted(self._files)

    def read_text(self, path: str) -> str:
        """Convenience accessor returning the UTF-8 text at ``path``."""
        return self.get(path).text
