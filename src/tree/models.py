"""Data models for the virtual filesystem tree."""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from src.content_store.models import EntryKind


@dataclass
class Node:
    """Represents an element of the virtual filesystem.

    Nodes are transient projections of the store's listing, rebuilt on each
    read. Directory nodes are virtual: the store has no directory objects, a
    directory exists while at least one blob lives under its prefix.

    Attributes:
        name: Last path segment ("" for the repository root)
        path: Full '/'-separated path ("" for the repository root)
        kind: File, directory or opaque (symlink/submodule) entry
        children: Child nodes in store listing order (directories only)
        hash: Version token reported by the listing, if any
        remote_type: Raw entry type reported by the store
    """
    name: str
    path: str
    kind: EntryKind
    children: List['Node'] = field(default_factory=list)
    hash: Optional[str] = None
    remote_type: Optional[str] = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    def walk(self) -> Iterator['Node']:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def files(self) -> List['Node']:
        """Return all descendant file nodes in pre-order."""
        return [node for node in self.walk() if node.is_file]

    def find(self, path: str) -> Optional['Node']:
        """Return the node at ``path`` within this subtree, or None."""
        for node in self.walk():
            if node.path == path:
                return node
        return None
