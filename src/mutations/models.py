"""Data models for mutation operations.

All models use dataclasses, following the patterns of the other packages.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from src.content_store.models import EntryKind
from .errors import PartialFailureError


class TaskStatus(str, Enum):
    """Lifecycle of one per-descendant task."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABANDONED = "abandoned"


@dataclass
class MutationTask:
    """One blob operation of a recursive move or delete.

    Attributes:
        source: Path of the descendant being moved or deleted
        destination: Target path (moves only)
        kind: Entry kind of the descendant (opaque entries cannot be mutated)
        remote_type: Raw entry type reported by the store
        status: Current task status
        error: Error message when the task failed
    """
    source: str
    destination: Optional[str] = None
    kind: EntryKind = EntryKind.FILE
    remote_type: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    error: Optional[str] = None


@dataclass
class MutationResult:
    """Aggregate outcome of a move or delete.

    Attributes:
        operation: "move" or "delete"
        path: Path the operation was requested for
        target: Destination path (moves only)
        succeeded: Source paths whose operation succeeded
        failed: Source path -> error message for failed descendants
        abandoned: Source paths never attempted because the operation was
                   cancelled

    Example:
        >>> result = engine.delete("drafts")
        >>> print(f"Deleted {result.succeeded_count} file(s)")
    """
    operation: str
    path: str
    target: Optional[str] = None
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    abandoned: List[str] = field(default_factory=list)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_paths(self) -> List[str]:
        return list(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise PartialFailureError if any descendant failed."""
        if self.failed:
            raise PartialFailureError(
                self.operation, self.path, self.failed, self.succeeded_count, result=self
            )


@dataclass
class PendingMutation:
    """An in-flight recursive move or delete.

    Holds the arena of per-descendant tasks and the result accumulator. It is
    created when a directory-level move/delete is planned and discarded once
    its result has been reported; it holds no store resources.

    ``cancel()`` abandons every task that has not started yet. Calls already
    issued are not retracted, so a cancelled move can leave the remote tree
    in a mixed state.
    """
    operation: str
    source_root: str
    target_root: Optional[str] = None
    tasks: List[MutationTask] = field(default_factory=list)
    result: Optional[MutationResult] = None
    _cancel_event: threading.Event = field(
        default_factory=threading.Event, repr=False, compare=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def __post_init__(self):
        if self.result is None:
            self.result = MutationResult(
                operation=self.operation,
                path=self.source_root,
                target=self.target_root,
            )

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def pending_tasks(self) -> List[MutationTask]:
        return [task for task in self.tasks if task.status is TaskStatus.PENDING]

    @property
    def completed_count(self) -> int:
        return len(self.tasks) - len(self.pending_tasks)

    def record_success(self, task: MutationTask) -> None:
        with self._lock:
            task.status = TaskStatus.SUCCEEDED
            self.result.succeeded.append(task.source)

    def record_failure(self, task: MutationTask, error: Exception) -> None:
        with self._lock:
            task.status = TaskStatus.FAILED
            task.error = str(error)
            self.result.failed[task.source] = task.error

    def record_abandoned(self, task: MutationTask) -> None:
        with self._lock:
            task.status = TaskStatus.ABANDONED
            self.result.abandoned.append(task.source)
