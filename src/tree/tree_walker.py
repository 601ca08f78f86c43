"""Tree walker for materializing the remote namespace.

This module lists a path in the content store and recursively lists every
sub-directory, producing a fully materialized Node tree that mirrors the
remote namespace.
"""

import logging

from src.content_store.base import ContentStore
from src.content_store.models import EntryKind
from src.content_store.paths import base_name, normalize_path
from .models import Node

logger = logging.getLogger(__name__)


class TreeWalker:
    """Builds Node trees from ContentStore listings.

    Each directory costs one store round-trip. Children keep the store's
    native listing order (lexical by name for GitHub). Opaque entries
    (symlinks, submodules) are leaves and are never descended into, so they
    cannot introduce cycles.

    Example:
        >>> walker = TreeWalker(store)
        >>> root = walker.list_tree("posts")
        >>> print([child.name for child in root.children])
    """

    def __init__(self, store: ContentStore):
        """Initialize the walker.

        Args:
            store: ContentStore to list
        """
        self._store = store

    def list_tree(self, root_path: str = "") -> Node:
        """List ``root_path`` and every directory below it.

        Args:
            root_path: Directory to start from ("" for the repository root)

        Returns:
            Node: Directory node with fully populated children

        Raises:
            ExpectedDirectoryError: If ``root_path`` is a file
            NotFoundError: If ``root_path`` does not exist
        """
        root_path = normalize_path(root_path)
        root = Node(
            name=base_name(root_path) if root_path else "",
            path=root_path,
            kind=EntryKind.DIRECTORY,
        )
        self._build_children_recursive(root)
        logger.info(
            f"Listed tree '{root_path or '/'}': "
            f"{sum(1 for _ in root.walk()) - 1} entries"
        )
        return root

    def _build_children_recursive(self, node: Node) -> None:
        """List ``node`` and recurse into each directory entry."""
        logger.debug(f"Listing {node.path or '/'}")
        for entry in self._store.list(node.path):
            child = Node(
                name=entry.name,
                path=entry.path,
                kind=entry.kind,
                hash=entry.hash,
                remote_type=entry.remote_type,
            )
            node.children.append(child)

            if entry.kind is EntryKind.DIRECTORY:
                self._build_children_recursive(child)
            elif entry.kind is EntryKind.OPAQUE:
                logger.debug(
                    f"Not descending into {entry.remote_type or 'opaque'} entry {entry.path}"
                )
