"""Virtual filesystem tree built from content store listings."""

from .models import Node
from .tree_walker import TreeWalker

__all__ = [
    'Node',
    'TreeWalker',
]
