"""Unit tests for cli.output module."""

import pytest

from src.cli.output import OutputHandler
from src.content_store.memory_store import MemoryContentStore
from src.mutations.models import MutationResult
from src.tree.tree_walker import TreeWalker


@pytest.fixture
def handler():
    return OutputHandler(verbosity=0, no_color=True)


class TestOutputHandlerInit:
    """Test cases for OutputHandler initialization."""

    def test_init_default_verbosity_and_color(self):
        """Initialize with default verbosity (0) and color enabled."""
        handler = OutputHandler()

        assert handler.verbosity == 0
        assert handler.console.no_color is False

    def test_init_no_color_true(self):
        """Initialize with no_color=True disables colors."""
        assert OutputHandler(no_color=True).console.no_color is True


class TestMessages:
    """Test cases for message methods."""

    def test_success_error_warning(self, handler, capsys):
        """Status messages carry their symbols."""
        handler.success("done")
        handler.error("failed")
        handler.warning("careful")

        out = capsys.readouterr().out
        assert "✓ done" in out
        assert "✗ failed" in out
        assert "⚠ careful" in out

    def test_info_respects_verbosity(self, capsys):
        """info is hidden at verbosity 0 and shown at 1."""
        OutputHandler(verbosity=0).info("hidden")
        OutputHandler(verbosity=1).info("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "shown" in out

    def test_debug_requires_verbosity_2(self, capsys):
        """debug is only shown at verbosity 2."""
        OutputHandler(verbosity=1).debug("quiet")
        OutputHandler(verbosity=2).debug("loud")

        out = capsys.readouterr().out
        assert "quiet" not in out
        assert "loud" in out

    def test_markup_in_messages_is_escaped(self, handler, capsys):
        """Brackets in user content must not be read as Rich markup."""
        handler.success("tags: [bold]x[/bold]")
        handler.print("[red]raw[/red]")

        out = capsys.readouterr().out
        assert "tags: [bold]x[/bold]" in out
        assert "[red]raw[/red]" in out

    def test_print_error_lists_paths(self, handler, capsys):
        """Error payloads print kind, message and one line per path."""
        handler.print_error({
            "kind": "Conflict",
            "message": "changed remotely",
            "paths": ["posts/a.md", "posts/b.md"],
        })

        out = capsys.readouterr().out
        assert "✗ Conflict: changed remotely" in out
        assert "• posts/a.md" in out
        assert "• posts/b.md" in out


class TestPrintTree:
    """Test cases for print_tree."""

    def test_renders_dirs_files_and_opaque_entries(self, handler, capsys):
        """Directories end in '/', opaque entries show their type."""
        store = MemoryContentStore({"docs/a.md": "a", "b.md": "b"}, opaque={"docs/lib": "submodule"})

        handler.print_tree(TreeWalker(store).list_tree(""))

        out = capsys.readouterr().out
        assert "docs/" in out
        assert "a.md" in out
        assert "lib (submodule)" in out
        assert "b.md" in out


class TestSummaries:
    """Test cases for move and deletion summaries."""

    def test_move_summary_success(self, handler, capsys):
        """A clean move reports the count and the paths."""
        result = MutationResult("move", "posts", target="articles", succeeded=["posts/a.md", "posts/b.md"])

        handler.print_move_summary(result)

        out = capsys.readouterr().out
        assert "Move Summary:" in out
        assert "Moved: 2 file(s)" in out
        assert "Moved posts to articles" in out

    def test_deletion_summary_with_failures(self, handler, capsys):
        """Failures are listed with their messages."""
        result = MutationResult(
            "delete",
            "posts",
            succeeded=["posts/a.md"],
            failed={"posts/b.md": "conflict"},
        )

        handler.print_deletion_summary(result)

        out = capsys.readouterr().out
        assert "Deleted: 1 file(s)" in out
        assert "Failed: 1 file(s)" in out
        assert "posts/b.md: conflict" in out
        assert "Deletion completed with failures" in out

    def test_deletion_summary_nothing_deleted(self, handler, capsys):
        """An empty result says nothing was deleted."""
        handler.print_deletion_summary(MutationResult("delete", "empty"))

        assert "No files deleted" in capsys.readouterr().out
