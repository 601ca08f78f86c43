"""Unit tests for mutations.mutation_engine module.

All tests run against MemoryContentStore; call counting uses
MagicMock(wraps=store) spies.
"""

import pytest
from unittest.mock import MagicMock

from src.content_store.errors import (
    AlreadyExistsError,
    ConflictError,
    InvalidPathError,
    NotFoundError,
    UnsupportedOperationError,
)
from src.content_store.memory_store import MemoryContentStore
from src.content_store.models import git_blob_hash
from src.mutations.errors import PartialFailureError
from src.mutations.models import TaskStatus
from src.mutations.mutation_engine import MutationEngine


def _spy(store):
    return MagicMock(wraps=store)


class TestCreate:
    """Test cases for MutationEngine.create."""

    def test_creates_file(self, store, engine):
        """create should write a new file with the 'Create' commit message."""
        new_hash = engine.create("posts/new.md", "# New")

        assert store.read_text("posts/new.md") == "# New"
        assert new_hash == git_blob_hash(b"# New")
        assert store.commits[-1].message == "Create posts/new.md"

    def test_create_is_idempotent(self, store, engine):
        """Creating the same file twice should succeed and leave one copy."""
        first = engine.create("posts/new.md", "same")
        second = engine.create("posts/new.md", "same")

        assert first == second
        assert store.paths().count("posts/new.md") == 1
        assert store.read_text("posts/new.md") == "same"

    def test_create_replaces_existing_file(self, store, engine):
        """create should overwrite an existing file using its current hash."""
        spy = _spy(store)
        engine = MutationEngine(spy)
        current = store.get("posts/hello.md").hash

        engine.create("posts/hello.md", "replaced")

        assert store.read_text("posts/hello.md") == "replaced"
        assert spy.put.call_args.kwargs["expected_hash"] == current

    def test_create_only_refuses_existing_file(self, store, engine):
        """create_only should raise AlreadyExistsError and keep the content."""
        before = store.read_text("posts/hello.md")

        with pytest.raises(AlreadyExistsError) as exc_info:
            engine.create("posts/hello.md", "other", create_only=True)

        assert store.read_text("posts/hello.md") == before
        assert isinstance(exc_info.value, ConflictError)

    def test_create_folder_writes_marker(self, store, engine):
        """Creating a folder should write an empty marker blob inside it."""
        engine.create("drafts", as_folder=True)

        assert store.get("drafts/.placeholder").content == b""
        assert store.commits[-1].message == "Create folder drafts"
        assert [e.name for e in store.list("drafts")] == [".placeholder"]

    def test_custom_placeholder_name(self, store):
        """The marker name should be configurable."""
        engine = MutationEngine(store, placeholder_name=".gitkeep")

        engine.create("drafts", as_folder=True)

        assert "drafts/.gitkeep" in store.paths()

    @pytest.mark.parametrize("path", ["", "/", "a//b", "../x"])
    def test_invalid_paths_rejected(self, engine, path):
        """create should reject empty and malformed paths."""
        with pytest.raises(InvalidPathError):
            engine.create(path, "x")


class TestUpdate:
    """Test cases for MutationEngine.update."""

    def test_update_with_current_hash(self, store, engine):
        """update should write when the hash matches."""
        current = store.get("posts/hello.md").hash

        engine.update("posts/hello.md", "new", current)

        assert store.read_text("posts/hello.md") == "new"
        assert store.commits[-1].message == "Update posts/hello.md"

    def test_stale_hash_conflicts_and_keeps_content(self, store, engine):
        """A stale hash should raise ConflictError and leave the stored content."""
        stale = store.get("posts/hello.md").hash
        engine.update("posts/hello.md", "someone else", stale)

        with pytest.raises(ConflictError):
            engine.update("posts/hello.md", "mine", stale)

        assert store.read_text("posts/hello.md") == "someone else"

    def test_hash_is_required(self, engine):
        """update without a hash should be refused."""
        with pytest.raises(ValueError):
            engine.update("posts/hello.md", "x", "")


class TestUpdateFrontmatter:
    """Test cases for MutationEngine.update_frontmatter."""

    def test_replaces_frontmatter_and_keeps_body(self, store, engine):
        """The stored file should carry the new header and the original body."""
        engine.update_frontmatter("posts/hello.md", {"title": "Hi2"})

        assert store.read_text("posts/hello.md") == "---\ntitle: Hi2\n---\n\nBody text"

    def test_replacement_is_not_a_merge(self, store, engine):
        """Keys absent from the new mapping should be dropped."""
        engine.update_frontmatter("posts/launch.md", {"title": "Only"})

        text = store.read_text("posts/launch.md")
        assert text.startswith("---\ntitle: Only\n---\n\n# Launch notes")
        assert "tags:" not in text

    def test_clearing_frontmatter_keeps_body_with_rule(self):
        """Emptying the header and setting it again keeps every body line."""
        store = MemoryContentStore({"p.md": "---\ntitle: Hi\n---\n\nIntro\n\n---\n\nOutro"})
        engine = MutationEngine(store)

        engine.update_frontmatter("p.md", {})
        assert store.read_text("p.md") == "---\n---\n\nIntro\n\n---\n\nOutro"

        engine.update_frontmatter("p.md", {"title": "Back"})
        assert store.read_text("p.md") == "---\ntitle: Back\n---\n\nIntro\n\n---\n\nOutro"

    def test_stale_expected_hash_writes_nothing(self, store, engine):
        """A caller hash that no longer matches should raise before writing."""
        commits_before = len(store.commits)

        with pytest.raises(ConflictError):
            engine.update_frontmatter("posts/hello.md", {"title": "x"}, expected_hash="stale")

        assert len(store.commits) == commits_before

    def test_concurrent_write_between_read_and_write_conflicts(self, store):
        """A change landing after the engine's read should surface as ConflictError."""
        spy = _spy(store)

        def racing_get(path):
            blob = store.get(path)
            store.put(path, "changed elsewhere", expected_hash=blob.hash)
            return blob

        spy.get.side_effect = racing_get
        engine = MutationEngine(spy)

        with pytest.raises(ConflictError):
            engine.update_frontmatter("posts/hello.md", {"title": "Hi2"})

        assert store.read_text("posts/hello.md") == "changed elsewhere"

    def test_binary_file_is_unsupported(self):
        """Non-UTF-8 files should be refused."""
        store = MemoryContentStore({"img.png": b"\x89PNG\xff\xfe"})

        with pytest.raises(UnsupportedOperationError):
            MutationEngine(store).update_frontmatter("img.png", {"title": "x"})

    def test_missing_file(self, engine):
        """update_frontmatter on an absent path should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.update_frontmatter("posts/missing.md", {"title": "x"})


class TestMove:
    """Test cases for MutationEngine.move and rename."""

    def test_move_file(self, store, engine):
        """Moving a file should copy it to the new path and delete the old one."""
        content = store.read_text("posts/hello.md")

        result = engine.move("posts/hello.md", "archive/hello.md")

        assert store.read_text("archive/hello.md") == content
        assert "posts/hello.md" not in store.paths()
        assert result.succeeded == ["posts/hello.md"]
        assert store.commits[-1].message == "Move posts/hello.md to archive/hello.md"

    def test_move_directory_rebases_every_descendant(self):
        """Moving a/b to a/c should re-root the whole subtree."""
        store = MemoryContentStore({
            "a/b/x.md": "x",
            "a/b/y/z.md": "z",
            "a/keep.md": "k",
        })

        result = MutationEngine(store).move("a/b", "a/c")

        assert store.paths() == ["a/c/x.md", "a/c/y/z.md", "a/keep.md"]
        assert store.read_text("a/c/y/z.md") == "z"
        assert result.ok
        assert result.succeeded_count == 2
        assert result.target == "a/c"

    def test_move_into_own_subtree_rejected(self, store, engine):
        """A directory cannot be moved below itself."""
        before = store.paths()

        with pytest.raises(InvalidPathError):
            engine.move("posts", "posts/nested/posts")

        assert store.paths() == before

    def test_move_onto_itself_is_noop(self, store, engine):
        """Moving a path to itself should change nothing."""
        commits_before = len(store.commits)

        result = engine.move("posts", "/posts/")

        assert result.ok
        assert len(store.commits) == commits_before

    def test_move_merges_into_existing_directory(self):
        """Colliding destination files should be overwritten."""
        store = MemoryContentStore({"src/a.md": "new", "dst/a.md": "old", "dst/b.md": "b"})

        MutationEngine(store).move("src", "dst")

        assert store.read_text("dst/a.md") == "new"
        assert store.paths() == ["dst/a.md", "dst/b.md"]

    def test_move_missing_path(self, engine):
        """Moving an absent path should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.move("nope.md", "other.md")

    def test_rename_directory(self, store, engine):
        """rename should move a directory to its sibling name."""
        engine.rename("posts", "articles")

        assert not [p for p in store.paths() if p.startswith("posts/")]
        assert "articles/drafts/idea.md" in store.paths()
        assert "articles/hello.md" in store.paths()

    def test_rename_rejects_name_with_slash(self, engine):
        """New names cannot contain '/'."""
        with pytest.raises(InvalidPathError):
            engine.rename("posts/hello.md", "other/hello.md")

    def test_opaque_descendant_reported_as_failed(self):
        """Submodules inside a moved directory cannot be moved and are reported."""
        store = MemoryContentStore({"d/a.md": "a"}, opaque={"d/lib": "submodule"})

        result = MutationEngine(store).move("d", "e")

        assert result.failed_paths == ["d/lib"]
        assert store.read_text("e/a.md") == "a"


class TestDelete:
    """Test cases for MutationEngine.delete."""

    def test_delete_file(self, store, engine):
        """Deleting a file should use its current hash."""
        spy = _spy(store)
        engine = MutationEngine(spy)
        current = store.get("README.md").hash

        result = engine.delete("README.md")

        spy.delete.assert_called_once_with("README.md", current, message="Delete README.md")
        assert result.succeeded == ["README.md"]

    def test_delete_directory_issues_one_call_per_file(self, store):
        """A directory with N files should cost exactly N delete calls."""
        spy = _spy(store)

        result = MutationEngine(spy).delete("posts")

        deleted = [c.args[0] for c in spy.delete.call_args_list]
        assert deleted == ["posts/drafts/idea.md", "posts/hello.md", "posts/launch.md"]
        assert "posts" not in deleted
        assert result.succeeded_count == 3
        with pytest.raises(NotFoundError):
            store.list("posts")

    def test_partial_failure_reports_exactly_failed_path(self, store):
        """One failing descendant should not stop the others."""
        spy = _spy(store)

        def failing_delete(path, expected_hash, message=None):
            if path == "posts/hello.md":
                raise ConflictError(path, expected_hash)
            return store.delete(path, expected_hash, message=message)

        spy.delete.side_effect = failing_delete

        result = MutationEngine(spy).delete("posts")

        assert result.failed_paths == ["posts/hello.md"]
        assert result.succeeded == ["posts/drafts/idea.md", "posts/launch.md"]
        assert [p for p in store.paths() if p.startswith("posts/")] == ["posts/hello.md"]

        with pytest.raises(PartialFailureError) as exc_info:
            result.raise_for_failures()
        assert exc_info.value.paths == ["posts/hello.md"]
        assert exc_info.value.result is result

    def test_delete_missing_path(self, engine):
        """Deleting an absent path should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.delete("nope")

    def test_delete_empty_path_rejected(self, engine):
        """The repository root cannot be deleted."""
        with pytest.raises(InvalidPathError):
            engine.delete("")


class TestPendingMutation:
    """Test cases for planning, execution and cancellation."""

    def test_plan_delete_lists_before_mutating(self, store, engine):
        """plan_delete should produce pre-order tasks without touching the store."""
        commits_before = len(store.commits)

        pending = engine.plan_delete("posts")

        assert [t.source for t in pending.tasks] == [
            "posts/drafts/idea.md", "posts/hello.md", "posts/launch.md",
        ]
        assert all(t.status is TaskStatus.PENDING for t in pending.tasks)
        assert len(store.commits) == commits_before

    def test_plan_move_destinations(self, engine):
        """plan_move should re-root each destination."""
        pending = engine.plan_move("posts", "archive/2024")

        assert [t.destination for t in pending.tasks] == [
            "archive/2024/drafts/idea.md", "archive/2024/hello.md", "archive/2024/launch.md",
        ]

    def test_cancel_abandons_unstarted_tasks(self, store, engine):
        """Tasks not started when cancel() is called should be abandoned."""
        pending = engine.plan_delete("posts")

        def cancel_after_first(pending, task):
            pending.cancel()

        result = engine.execute(pending, on_progress=cancel_after_first)

        assert result.succeeded == ["posts/drafts/idea.md"]
        assert result.abandoned == ["posts/hello.md", "posts/launch.md"]
        assert "posts/hello.md" in store.paths()
        assert [t.status for t in pending.tasks] == [
            TaskStatus.SUCCEEDED, TaskStatus.ABANDONED, TaskStatus.ABANDONED,
        ]

    def test_progress_callback_sees_every_task(self, engine):
        """on_progress should be called once per executed task."""
        seen = []

        engine.delete("posts", on_progress=lambda pending, task: seen.append(task.source))

        assert len(seen) == 3

    def test_parallel_delete(self):
        """With several workers every descendant should still be deleted."""
        files = {f"bulk/{i:02d}.md": str(i) for i in range(20)}
        files["keep.md"] = "k"
        store = MemoryContentStore(files)

        result = MutationEngine(store, max_workers=4).delete("bulk")

        assert result.succeeded_count == 20
        assert store.paths() == ["keep.md"]

    def test_parallel_move(self):
        """A parallel move should produce the same tree as a sequential one."""
        files = {f"src/{i}/f.md": str(i) for i in range(8)}
        store = MemoryContentStore(files)

        MutationEngine(store, max_workers=3).move("src", "dst")

        assert store.paths() == sorted(f"dst/{i}/f.md" for i in range(8))

    def test_max_workers_must_be_positive(self, store):
        """max_workers below 1 should be rejected."""
        with pytest.raises(ValueError):
            MutationEngine(store, max_workers=0)
