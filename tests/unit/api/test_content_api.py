"""Unit tests for api.content_api module."""

import pytest
from unittest.mock import MagicMock

from src.api.content_api import ContentAPI, FileContent, error_payload, node_to_dict
from src.content_store.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    UnsupportedOperationError,
)
from src.content_store.memory_store import MemoryContentStore
from src.content_store.models import EntryKind
from src.mutations.errors import PartialFailureError
from src.mutations.mutation_engine import MutationEngine
from tests.fixtures.sample_documents import HELLO_DOCUMENT


class TestTree:
    """Test cases for ContentAPI.tree."""

    def test_without_path_lists_whole_tree(self, api):
        """tree() should return the materialized root."""
        root = api.tree()

        assert root.path == ""
        assert [child.name for child in root.children] == ["README.md", "pages", "posts"]
        assert root.find("posts/drafts/idea.md").is_file

    def test_file_path_returns_content(self, api, store):
        """tree(file) should return the file's text and hash."""
        result = api.tree("posts/hello.md")

        assert isinstance(result, FileContent)
        assert result.text == HELLO_DOCUMENT
        assert result.hash == store.get("posts/hello.md").hash

    def test_directory_path_returns_subtree(self, api):
        """tree(dir) should return that directory's subtree."""
        result = api.tree("posts")

        assert result.is_dir
        assert [child.name for child in result.children] == ["drafts", "hello.md", "launch.md"]

    def test_missing_path(self, api):
        """tree() of an absent path should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            api.tree("nope")

    def test_binary_file_path_unsupported(self):
        """tree(file) should refuse a file that is not UTF-8 text."""
        api = ContentAPI(MemoryContentStore({"img/logo.png": b"\x89PNG\xff\xfe"}))

        with pytest.raises(UnsupportedOperationError) as exc_info:
            api.tree("img/logo.png")

        assert exc_info.value.paths == ["img/logo.png"]

    def test_root_path_scopes_tree(self, store):
        """With root_path the tree and relative paths are scoped."""
        api = ContentAPI(store, root_path="/posts/")

        root = api.tree()
        content = api.tree("hello.md")

        assert root.path == "posts"
        assert content.path == "posts/hello.md"
        assert api.resolve_path("") == "posts"


class TestRead:
    """Test cases for ContentAPI.read."""

    def test_read_returns_sha_payload(self, api, store):
        """to_dict should expose the content and the sha."""
        payload = api.read("README.md").to_dict()

        assert payload["path"] == "README.md"
        assert payload["content"].startswith("# Just markdown")
        assert payload["sha"] == store.get("README.md").hash

    def test_read_directory_unsupported(self, api):
        """read should refuse directories."""
        with pytest.raises(UnsupportedOperationError):
            api.read("posts")

    def test_read_binary_file_unsupported(self):
        """read should refuse content that is not UTF-8 text."""
        api = ContentAPI(MemoryContentStore({"img/logo.png": b"\x89PNG\xff\xfe"}))

        with pytest.raises(UnsupportedOperationError) as exc_info:
            api.read("img/logo.png")

        assert exc_info.value.to_dict()["kind"] == "UnsupportedOperation"


class TestWrites:
    """Test cases for create and update operations."""

    def test_create_file_message(self, api, store):
        """create should report a created file."""
        result = api.create("posts/new.md", "x")

        assert result == {
            "message": "File created successfully",
            "path": "posts/new.md",
            "hash": store.get("posts/new.md").hash,
        }

    def test_create_folder_message(self, api, store):
        """create(as_folder=True) should report a created folder."""
        result = api.create("drafts", as_folder=True)

        assert result["message"] == "Folder created successfully"
        assert result["path"] == "drafts"
        assert "drafts/.placeholder" in store.paths()

    def test_create_under_root_path(self, store):
        """Created paths should be resolved below root_path."""
        api = ContentAPI(store, root_path="content")

        result = api.create("a.md", "x")

        assert result["path"] == "content/a.md"
        assert store.read_text("content/a.md") == "x"

    def test_create_only_conflict(self, api):
        """create_only on an existing file should raise AlreadyExistsError."""
        with pytest.raises(AlreadyExistsError):
            api.create("README.md", "x", create_only=True)

    def test_update_message(self, api, store):
        """update should write with the caller's hash."""
        current = store.get("README.md").hash

        result = api.update("README.md", "new", current)

        assert result["message"] == "File updated successfully"
        assert store.read_text("README.md") == "new"

    def test_update_frontmatter_message(self, api, store):
        """update_frontmatter should report the new hash."""
        result = api.update_frontmatter("posts/hello.md", {"title": "Hi2"})

        assert result["message"] == "Frontmatter updated successfully"
        assert result["hash"] == store.get("posts/hello.md").hash


class TestRenameAndRemove:
    """Test cases for rename and remove."""

    def test_rename_directory(self, api, store):
        """rename should move every descendant."""
        result = api.rename("posts", "articles")

        assert result.succeeded_count == 3
        assert "articles/hello.md" in store.paths()

    def test_remove_partial_failure_raises(self, store):
        """A failed descendant should surface as PartialFailureError."""
        spy = MagicMock(wraps=store)

        def failing_delete(path, expected_hash, message=None):
            if path == "posts/launch.md":
                raise ConflictError(path, expected_hash)
            return store.delete(path, expected_hash, message=message)

        spy.delete.side_effect = failing_delete
        api = ContentAPI(spy, MutationEngine(spy))

        with pytest.raises(PartialFailureError) as exc_info:
            api.remove("posts")

        assert exc_info.value.paths == ["posts/launch.md"]
        assert exc_info.value.succeeded_count == 2
        assert [p for p in store.paths() if p.startswith("posts/")] == ["posts/launch.md"]


class TestErrorPayload:
    """Test cases for error_payload."""

    def test_content_error(self):
        """Typed errors should render their kind and paths."""
        payload = error_payload(NotFoundError("posts/x.md"))

        assert payload["kind"] == "NotFound"
        assert payload["paths"] == ["posts/x.md"]
        assert "posts/x.md" in payload["message"]

    def test_partial_failure_includes_failed_map(self):
        """PartialFailure payloads should carry each failed path's message."""
        error = PartialFailureError("delete", "posts", {"posts/a.md": "boom"}, 2)

        payload = error_payload(error)

        assert payload["kind"] == "PartialFailure"
        assert payload["failed"] == {"posts/a.md": "boom"}
        assert payload["succeeded_count"] == 2

    def test_unclassified_error(self):
        """Other exceptions should render with kind 'Error'."""
        assert error_payload(RuntimeError("boom")) == {
            "kind": "Error", "message": "boom", "paths": [],
        }


class TestNodeToDict:
    """Test cases for node_to_dict."""

    def test_shapes_files_dirs_and_opaque_entries(self):
        """Directories carry children; opaque entries use the remote type."""
        store = MemoryContentStore({"d/a.md": "a"}, opaque={"d/lib": "submodule"})
        root = ContentAPI(store).tree()

        payload = node_to_dict(root)

        directory = payload["children"][0]
        assert directory == {
            "name": "d",
            "path": "d",
            "type": "dir",
            "children": [
                {"name": "a.md", "path": "d/a.md", "type": "file"},
                {"name": "lib", "path": "d/lib", "type": "submodule"},
            ],
        }
        assert root.find("d/lib").kind is EntryKind.OPAQUE
