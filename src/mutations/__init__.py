"""Mutation engine for the virtual filesystem.

This package implements create, update, frontmatter update, move/rename and
delete over a ContentStore, including best-effort recursive operations with
partial-failure reporting and cancellation.
"""

from .mutation_engine import MutationEngine, DEFAULT_PLACEHOLDER_NAME
from .models import MutationResult, MutationTask, PendingMutation, TaskStatus
from .errors import MutationError, PartialFailureError

__all__ = [
    'MutationEngine',
    'DEFAULT_PLACEHOLDER_NAME',
    'MutationResult',
    'MutationTask',
    'PendingMutation',
    'TaskStatus',
    'MutationError',
    'PartialFailureError',
]
