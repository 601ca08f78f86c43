"""Mutation engine for the virtual filesystem.

This module implements create, update, frontmatter update, move/rename and
delete on top of a ContentStore, for single files and whole subtrees.

Single-file operations surface errors directly. Recursive operations list
the whole subtree first, then issue one blob operation per descendant file;
a descendant's failure is recorded and processing continues with the rest
(best effort, never rolled back, since the store has no multi-blob
transactions). Directories are never created or deleted explicitly: they
exist only as prefixes of blobs, and an empty folder is persisted through a
zero-length marker blob.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from src.content_store.base import Content, ContentStore
from src.content_store.errors import (
    AlreadyExistsError,
    ConflictError,
    ContentSyncError,
    InvalidPathError,
    NotFoundError,
    UnsupportedOperationError,
)
from src.content_store.models import Blob, EntryKind
from src.content_store.paths import (
    is_within,
    join_path,
    normalize_path,
    rebase_path,
    sibling_path,
)
from src.document.frontmatter_codec import FrontmatterCodec
from src.document.models import Frontmatter
from src.tree.tree_walker import TreeWalker
from .models import MutationResult, MutationTask, PendingMutation

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_NAME = ".placeholder"

ProgressCallback = Callable[[PendingMutation, MutationTask], None]


class MutationEngine:
    """Applies mutations to a ContentStore with hash-based concurrency.

    Every write that replaces existing content carries the hash obtained
    from a read, so a concurrent change by another actor surfaces as
    ConflictError instead of being silently overwritten.

    Example:
        >>> engine = MutationEngine(store)
        >>> engine.create("posts/hello.md", "---\\ntitle: Hi\\n---\\n\\nBody")
        >>> result = engine.move("posts", "archive/posts")
        >>> result.raise_for_failures()
    """

    def __init__(
        self,
        store: ContentStore,
        walker: Optional[TreeWalker] = None,
        codec: type = FrontmatterCodec,
        placeholder_name: str = DEFAULT_PLACEHOLDER_NAME,
        max_workers: int = 1,
    ):
        """Initialize the engine.

        Args:
            store: ContentStore to mutate
            walker: TreeWalker used for recursive operations (built from the
                    store if omitted)
            codec: Frontmatter codec used by update_frontmatter
            placeholder_name: File name of the marker blob for empty folders
            max_workers: Parallel workers for independent descendant
                         operations (1 = sequential)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._store = store
        self._walker = walker or TreeWalker(store)
        self._codec = codec
        self.placeholder_name = normalize_path(placeholder_name, allow_root=False)
        self.max_workers = max_workers

    def create(
        self,
        path: str,
        content: Content = "",
        as_folder: bool = False,
        create_only: bool = False,
    ) -> str:
        """Create a file, or a folder via its marker blob.

        This is create-or-replace: creating an existing file overwrites it
        (idempotent for identical content). Pass ``create_only=True`` to
        check first and fail instead.

        Args:
            path: File path, or folder path when ``as_folder`` is set
            content: File content (ignored for folders)
            as_folder: Create ``path/<placeholder_name>`` as an empty blob
            create_only: Raise AlreadyExistsError if the target exists

        Returns:
            Hash of the written blob

        Raises:
            AlreadyExistsError: If ``create_only`` and the target exists
            InvalidPathError: If the path is malformed or empty
        """
        path = normalize_path(path, allow_root=False)

        if as_folder:
            marker = join_path(path, self.placeholder_name)
            logger.info(f"Creating folder {path} (marker {marker})")
            return self._write_replacing(marker, b"", f"Create folder {path}", create_only)

        logger.info(f"Creating {path}")
        return self._write_replacing(path, content, f"Create {path}", create_only)

    def _write_replacing(
        self,
        path: str,
        content: Content,
        message: str,
        create_only: bool = False,
    ) -> str:
        """Write ``content`` at ``path``, replacing an existing file.

        The existing file's hash is used as the precondition, so the
        replacement still fails if the file changes between read and write.
        """
        try:
            existing = self._store.get(path)
        except NotFoundError:
            return self._store.put(path, content, message=message)

        if create_only:
            raise AlreadyExistsError(path, existing.hash)

        logger.debug(f"{path} exists (hash {existing.hash}), replacing")
        return self._store.put(path, content, expected_hash=existing.hash, message=message)

    def update(self, path: str, content: Content, expected_hash: str) -> str:
        """Replace the content of an existing file.

        Args:
            path: File path
            content: New content
            expected_hash: Hash the caller obtained when it last read the file

        Returns:
            New hash

        Raises:
            ConflictError: If the remote hash advanced since the caller's read;
                the stored content is left unchanged
        """
        path = normalize_path(path, allow_root=False)
        if not expected_hash:
            raise ValueError(f"expected_hash is required to update {path}")

        logger.info(f"Updating {path} (expected hash {expected_hash})")
        return self._store.put(
            path, content, expected_hash=expected_hash, message=f"Update {path}"
        )

    def update_frontmatter(
        self,
        path: str,
        fields: Frontmatter,
        expected_hash: Optional[str] = None,
    ) -> str:
        """Replace a document's frontmatter wholesale, keeping its body.

        Read-modify-write: the file is read, its frontmatter mapping replaced
        by ``fields`` (not merged), re-serialized with the original body and
        written with the hash from the same read.

        Args:
            path: Document path
            fields: New frontmatter mapping
            expected_hash: Hash the caller last saw; if given and the file has
                           changed since, nothing is written

        Returns:
            New hash

        Raises:
            ConflictError: If the file changed after the caller's or the
                engine's read
            UnsupportedOperationError: If the file is not UTF-8 text
        """
        path = normalize_path(path, allow_root=False)
        blob = self._store.get(path)

        if expected_hash is not None and expected_hash != blob.hash:
            raise ConflictError(path, expected_hash, blob.hash)

        try:
            document = self._codec.parse(blob.text)
        except UnicodeDecodeError as e:
            raise UnsupportedOperationError(
                path, "update_frontmatter", "file is not UTF-8 text"
            ) from e

        content = self._codec.serialize(document.with_frontmatter(fields))
        logger.info(f"Updating frontmatter of {path} ({len(fields)} field(s))")
        return self._store.put(
            path, content, expected_hash=blob.hash, message=f"Update {path}"
        )

    def rename(
        self,
        old_path: str,
        new_name: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MutationResult:
        """Rename the last segment of ``old_path`` (file or directory).

        Raises:
            InvalidPathError: If ``new_name`` is empty or contains '/'
        """
        old_path = normalize_path(old_path, allow_root=False)
        return self.move(old_path, sibling_path(old_path, new_name), on_progress)

    def move(
        self,
        old_path: str,
        new_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MutationResult:
        """Move a file or a whole directory.

        A file is read, written at the new path and deleted at the old path
        with the hash from the read. A directory is listed completely, then
        every descendant file is moved the same way, pre-order. Colliding
        files at the destination are overwritten (directories merge).

        Returns:
            MutationResult; for directories it may carry per-descendant
            failures (see MutationResult.raise_for_failures)

        Raises:
            InvalidPathError: If a path is malformed, or a directory would be
                moved into its own subtree
            NotFoundError, ConflictError: For single-file moves
        """
        old_path = normalize_path(old_path, allow_root=False)
        new_path = normalize_path(new_path, allow_root=False)

        if old_path == new_path:
            logger.info(f"Move of {old_path} onto itself, nothing to do")
            return MutationResult(operation="move", path=old_path, target=new_path)

        try:
            blob = self._store.get(old_path)
        except UnsupportedOperationError:
            return self.execute(self.plan_move(old_path, new_path), on_progress)

        self._move_file(old_path, new_path, blob)
        return MutationResult(
            operation="move", path=old_path, target=new_path, succeeded=[old_path]
        )

    def delete(
        self,
        path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MutationResult:
        """Delete a file or every file below a directory.

        A directory is listed completely, then each descendant file is
        deleted with its freshly read hash. The directory path itself is
        never the target of a delete call; it vanishes once no blob remains
        under it.

        Raises:
            InvalidPathError: If the path is malformed or empty
            NotFoundError, ConflictError: For single-file deletes
        """
        path = normalize_path(path, allow_root=False)

        try:
            blob = self._store.get(path)
        except UnsupportedOperationError:
            return self.execute(self.plan_delete(path), on_progress)

        self._delete_file(path, blob)
        return MutationResult(operation="delete", path=path, succeeded=[path])

    def plan_move(self, old_path: str, new_path: str) -> PendingMutation:
        """List ``old_path`` and plan one move task per descendant leaf.

        Raises:
            InvalidPathError: If ``new_path`` lies inside ``old_path``
            ExpectedDirectoryError: If ``old_path`` is a file
        """
        old_path = normalize_path(old_path, allow_root=False)
        new_path = normalize_path(new_path, allow_root=False)
        if is_within(new_path, old_path):
            raise InvalidPathError(
                new_path, f"cannot move directory '{old_path}' into itself"
            )

        tree = self._walker.list_tree(old_path)
        pending = PendingMutation(operation="move", source_root=old_path, target_root=new_path)
        for node in tree.walk():
            if node.is_dir:
                continue
            pending.tasks.append(MutationTask(
                source=node.path,
                destination=rebase_path(node.path, old_path, new_path),
                kind=node.kind,
                remote_type=node.remote_type,
            ))

        logger.info(f"Planned move of {old_path} to {new_path}: {len(pending.tasks)} file(s)")
        return pending

    def plan_delete(self, path: str) -> PendingMutation:
        """List ``path`` and plan one delete task per descendant leaf."""
        path = normalize_path(path, allow_root=False)

        tree = self._walker.list_tree(path)
        pending = PendingMutation(operation="delete", source_root=path)
        for node in tree.walk():
            if node.is_dir:
                continue
            pending.tasks.append(MutationTask(
                source=node.path,
                kind=node.kind,
                remote_type=node.remote_type,
            ))

        logger.info(f"Planned delete of {path}: {len(pending.tasks)} file(s)")
        return pending

    def execute(
        self,
        pending: PendingMutation,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MutationResult:
        """Run every task of a planned recursive mutation.

        Each task is independent: a failure is recorded and the remaining
        tasks still run. Tasks not yet started when ``pending.cancel()`` is
        called are abandoned. With ``max_workers > 1`` tasks run on a thread
        pool; the subtree has already been fully listed at planning time.

        Args:
            pending: Planned mutation
            on_progress: Called after each task with (pending, task)

        Returns:
            The pending mutation's aggregated MutationResult
        """
        logger.info(
            f"Executing {pending.operation} of {pending.source_root}: "
            f"{len(pending.tasks)} task(s), max_workers={self.max_workers}"
        )

        if self.max_workers > 1 and len(pending.tasks) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self._run_task, pending, task, on_progress)
                    for task in pending.tasks
                ]
                for future in futures:
                    future.result()
        else:
            for task in pending.tasks:
                self._run_task(pending, task, on_progress)

        result = pending.result
        logger.info(
            f"{pending.operation.capitalize()} of {pending.source_root} complete: "
            f"{result.succeeded_count} succeeded, {len(result.failed)} failed, "
            f"{len(result.abandoned)} abandoned"
        )
        return result

    def _run_task(
        self,
        pending: PendingMutation,
        task: MutationTask,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        if pending.cancelled:
            pending.record_abandoned(task)
            logger.debug(f"Abandoned {pending.operation} of {task.source}")
            return

        try:
            if task.kind is not EntryKind.FILE:
                raise UnsupportedOperationError(
                    task.source,
                    pending.operation,
                    f"cannot {pending.operation} a {task.remote_type or 'opaque'} entry",
                )
            if pending.operation == "move":
                self._move_file(task.source, task.destination)
            else:
                self._delete_file(task.source)
        except ContentSyncError as e:
            logger.error(f"Failed to {pending.operation} {task.source}: {e}")
            pending.record_failure(task, e)
        else:
            pending.record_success(task)

        if on_progress is not None:
            on_progress(pending, task)

    def _move_file(self, old_path: str, new_path: str, blob: Optional[Blob] = None) -> None:
        """Copy one file to ``new_path``, then delete it with the read hash."""
        if blob is None:
            blob = self._store.get(old_path)
        message = f"Move {old_path} to {new_path}"

        logger.info(f"Moving {old_path} -> {new_path}")
        self._write_replacing(new_path, blob.content, message)
        self._store.delete(old_path, blob.hash, message=message)

    def _delete_file(self, path: str, blob: Optional[Blob] = None) -> None:
        if blob is None:
            blob = self._store.get(path)

        logger.info(f"Deleting {path}")
        self._store.delete(path, blob.hash, message=f"Delete {path}")
