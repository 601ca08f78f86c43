"""Request-level facade over the content store and mutation engine.

ContentAPI is the surface a UI or HTTP layer calls: tree listing, file
reads, create, frontmatter updates, rename and remove. Results are plain
values or dicts ready for JSON encoding, and ``error_payload`` turns any
raised error into the ``{kind, message, paths}`` shape shown to users.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from src.content_store.base import Content, ContentStore
from src.content_store.errors import ContentSyncError, UnsupportedOperationError
from src.content_store.models import Blob, EntryKind
from src.content_store.paths import join_path, normalize_path
from src.document.models import Frontmatter
from src.mutations.models import MutationResult
from src.mutations.mutation_engine import MutationEngine
from src.tree.models import Node
from src.tree.tree_walker import TreeWalker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileContent:
    """Text of a single file with the hash required to modify it."""
    path: str
    text: str
    hash: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "content": self.text, "sha": self.hash}


class ContentAPI:
    """Operations exposed to the editor UI.

    Paths passed in are relative to ``root_path``; paths returned are full
    store paths.

    Example:
        >>> api = ContentAPI(store)
        >>> api.create("posts/hello.md", "---\\ntitle: Hi\\n---\\n\\nBody text")
        {'message': 'File created successfully', 'path': 'posts/hello.md', 'hash': '...'}
    """

    def __init__(
        self,
        store: ContentStore,
        engine: Optional[MutationEngine] = None,
        walker: Optional[TreeWalker] = None,
        root_path: str = "",
    ):
        self._store = store
        self._walker = walker or TreeWalker(store)
        self._engine = engine or MutationEngine(store, walker=self._walker)
        self.root_path = normalize_path(root_path)

    @property
    def store(self) -> ContentStore:
        return self._store

    @property
    def engine(self) -> MutationEngine:
        return self._engine

    def resolve_path(self, path: str) -> str:
        """Return the full store path of ``path`` (relative to ``root_path``)."""
        path = normalize_path(path)
        if not self.root_path:
            return path
        return join_path(self.root_path, path) if path else self.root_path

    def tree(self, path: Optional[str] = None) -> Union[Node, FileContent]:
        """Return the materialized tree, or a file's content.

        Without ``path`` the whole tree under ``root_path`` is listed. A path
        naming a file returns its content and hash; a directory path returns
        its subtree.
        """
        if path is None:
            return self._walker.list_tree(self.root_path)

        resolved = self.resolve_path(path)
        if not resolved:
            return self._walker.list_tree(resolved)
        try:
            blob = self._store.get(resolved)
        except UnsupportedOperationError:
            return self._walker.list_tree(resolved)
        return self._file_content(blob)

    def read(self, path: str) -> FileContent:
        """Return a file's text and hash.

        Raises:
            UnsupportedOperationError: If ``path`` is a directory
                or not UTF-8 text
        """
        return self._read_resolved(self.resolve_path(path))

    def _read_resolved(self, path: str) -> FileContent:
        return self._file_content(self._store.get(path))

    @staticmethod
    def _file_content(blob: Blob) -> FileContent:
        try:
            text = blob.text
        except UnicodeDecodeError as e:
            raise UnsupportedOperationError(blob.path, "read", "file is not UTF-8 text") from e
        return FileContent(path=blob.path, text=text, hash=blob.hash)

    def create(
        self,
        path: str,
        content: Content = "",
        as_folder: bool = False,
        create_only: bool = False,
    ) -> Dict[str, str]:
        resolved = normalize_path(self.resolve_path(path), allow_root=False)
        new_hash = self._engine.create(resolved, content, as_folder, create_only)
        message = "Folder created successfully" if as_folder else "File created successfully"
        return {"message": message, "path": resolved, "hash": new_hash}

    def update(self, path: str, content: Content, expected_hash: str) -> Dict[str, str]:
        resolved = self.resolve_path(path)
        new_hash = self._engine.update(resolved, content, expected_hash)
        return {"message": "File updated successfully", "path": resolved, "hash": new_hash}

    def update_frontmatter(
        self,
        path: str,
        fields: Frontmatter,
        expected_hash: Optional[str] = None,
    ) -> Dict[str, str]:
        resolved = self.resolve_path(path)
        new_hash = self._engine.update_frontmatter(resolved, fields, expected_hash)
        return {"message": "Frontmatter updated successfully", "path": resolved, "hash": new_hash}

    def rename(self, old_path: str, new_name: str, on_progress=None) -> MutationResult:
        """Rename a file or directory.

        Raises:
            PartialFailureError: If some descendants of a directory failed
        """
        result = self._engine.rename(self.resolve_path(old_path), new_name, on_progress)
        result.raise_for_failures()
        return result

    def remove(self, path: str, on_progress=None) -> MutationResult:
        """Delete a file or a directory with everything below it.

        Raises:
            PartialFailureError: If some descendants failed
        """
        result = self._engine.delete(self.resolve_path(path), on_progress)
        result.raise_for_failures()
        return result


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """Render an error as ``{kind, message, paths}``.

    Errors outside the content hierarchy are reported with kind "Error".
    """
    if isinstance(exc, ContentSyncError):
        return exc.to_dict()
    logger.debug(f"Unclassified error rendered as payload: {exc!r}")
    return {"kind": "Error", "message": str(exc), "paths": []}


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Render a tree in the editor's JSON shape.

    ``type`` is "file" or "dir", or the store's own type name (e.g.
    "symlink", "submodule") for opaque entries.
    """
    if node.kind is EntryKind.OPAQUE:
        node_type = node.remote_type or EntryKind.OPAQUE.value
    else:
        node_type = node.kind.value

    payload: Dict[str, Any] = {"name": node.name, "path": node.path, "type": node_type}
    if node.is_dir:
        payload["children"] = [node_to_dict(child) for child in node.children]
    return payload
