"""Editing session for a single document.

A session holds one open document: the path, the hash obtained when it was
read, the parsed document and a copy of the last saved state. Edits are
local until ``save()``, which writes through the mutation engine with the
session hash so that a concurrent change surfaces as ConflictError.
"""

import logging
from typing import Optional

from src.content_store.base import ContentStore
from src.content_store.errors import ConflictError, UnsupportedOperationError
from src.content_store.models import Blob
from src.content_store.paths import normalize_path, sibling_path
from src.document.frontmatter_codec import FrontmatterCodec
from src.document.markdown_converter import MarkdownConverter
from src.document.models import (
    DOCUMENT_TYPES,
    Document,
    Frontmatter,
    FrontmatterValue,
    copy_frontmatter,
)
from src.mutations.models import MutationResult
from src.mutations.mutation_engine import MutationEngine
from .errors import SessionError

logger = logging.getLogger(__name__)


class EditingSession:
    """One open document and its pending edits.

    Actions of a session run sequentially; a session is not shared between
    threads.

    Example:
        >>> session = EditingSession(engine, store)
        >>> session.open("posts/hello.md")
        >>> session.set_field("title", "Hi2")
        >>> session.save()
    """

    def __init__(
        self,
        engine: MutationEngine,
        store: ContentStore,
        codec: Optional[type] = None,
    ):
        self._engine = engine
        self._store = store
        self._codec = codec or FrontmatterCodec
        self._converter = MarkdownConverter()
        self._path: Optional[str] = None
        self._hash: Optional[str] = None
        self._document: Optional[Document] = None
        self._saved: Optional[Document] = None

    @property
    def is_open(self) -> bool:
        return self._path is not None

    @property
    def path(self) -> str:
        self._require_open("path")
        return self._path

    @property
    def hash(self) -> str:
        self._require_open("hash")
        return self._hash

    @property
    def document(self) -> Document:
        self._require_open("document")
        return self._document

    @property
    def frontmatter(self) -> Frontmatter:
        return self.document.frontmatter

    @property
    def body(self) -> str:
        return self.document.body

    @property
    def dirty(self) -> bool:
        """True if the document has edits that were not saved."""
        self._require_open("dirty")
        return self._document != self._saved

    def _require_open(self, operation: str) -> None:
        if self._path is None:
            raise SessionError(f"Cannot {operation}: no document is open")

    def open(self, path: str) -> Document:
        """Read and parse ``path``, replacing any previously open document.

        Raises:
            SessionError: If the current document has unsaved edits
            NotFoundError: If ``path`` does not exist
            UnsupportedOperationError: If the file is not UTF-8 text
        """
        path = normalize_path(path, allow_root=False)
        if self.is_open and self.dirty:
            raise SessionError(
                f"Cannot open {path}: {self._path} has unsaved changes", self._path
            )

        blob = self._store.get(path)
        self._load(path, blob.hash, self._parse(blob))
        logger.info(f"Opened {path} (hash {blob.hash})")
        return self._document

    def _parse(self, blob: Blob) -> Document:
        try:
            return self._codec.parse(blob.text)
        except UnicodeDecodeError as e:
            raise UnsupportedOperationError(blob.path, "read", "file is not UTF-8 text") from e

    def _load(self, path: str, content_hash: str, document: Document) -> None:
        self._path = path
        self._hash = content_hash
        self._saved = document
        self._document = Document(copy_frontmatter(document.frontmatter), document.body)

    def set_field(self, key: str, value: FrontmatterValue) -> None:
        """Set one frontmatter field locally.

        Raises:
            FrontmatterError: If the field could not be serialized
        """
        self._require_open("set field")
        self._codec.validate_field(key, value)
        if key == "type" and value and value not in DOCUMENT_TYPES:
            logger.warning(
                f"{self._path}: type '{value}' is not one of {', '.join(DOCUMENT_TYPES)}"
            )
        self._document.frontmatter[key] = list(value) if isinstance(value, list) else value

    def remove_field(self, key: str) -> None:
        """Remove one frontmatter field locally (missing keys are ignored)."""
        self._require_open("remove field")
        self._document.frontmatter.pop(key, None)

    def replace_frontmatter(self, fields: Frontmatter) -> None:
        self._require_open("replace frontmatter")
        for key, value in fields.items():
            self._codec.validate_field(key, value)
        self._document = self._document.with_frontmatter(fields)

    def apply_standard_fields(self) -> None:
        """Add every standard header field missing from the document."""
        self._require_open("apply standard fields")
        self._document = self._document.with_standard_fields()

    def set_body(self, body: str) -> None:
        self._require_open("set body")
        self._document.body = body

    def set_body_from_html(self, html: str) -> None:
        """Set the body from rich-editor HTML, converted to markdown."""
        self._require_open("set body")
        self._document.body = self._converter.html_to_markdown(html)

    def save(self) -> str:
        """Write the local document with the session hash.

        Returns:
            The new hash (the current hash if there was nothing to save)

        Raises:
            ConflictError: If the remote file changed since it was read; the
                local edits are kept so the caller can reload or retry
        """
        self._require_open("save")
        if not self.dirty:
            logger.debug(f"{self._path}: nothing to save")
            return self._hash

        content = self._codec.serialize(self._document)
        new_hash = self._engine.update(self._path, content, self._hash)
        self._load(self._path, new_hash, self._codec.parse(content))
        logger.info(f"Saved {self._path} (hash {new_hash})")
        return new_hash

    def reload(self, discard: bool = False) -> Document:
        """Re-read the document from the store.

        Raises:
            SessionError: If there are unsaved edits and ``discard`` is False
        """
        self._require_open("reload")
        if self.dirty and not discard:
            raise SessionError(
                f"Cannot reload {self._path}: unsaved changes would be lost", self._path
            )

        blob = self._store.get(self._path)
        self._load(self._path, blob.hash, self._parse(blob))
        logger.info(f"Reloaded {self._path} (hash {blob.hash})")
        return self._document

    def update_frontmatter(self, fields: Frontmatter) -> str:
        """Persist a new frontmatter mapping immediately.

        Unsaved body edits stay local and are not written.

        Raises:
            ConflictError: If the remote file changed since it was read
        """
        self._require_open("update frontmatter")
        new_hash = self._engine.update_frontmatter(self._path, fields, expected_hash=self._hash)
        self._hash = new_hash
        self._saved = self._saved.with_frontmatter(fields)
        self._document = self._document.with_frontmatter(fields)
        return new_hash

    def _check_unchanged(self) -> None:
        current = self._store.get(self._path)
        if current.hash != self._hash:
            raise ConflictError(self._path, self._hash, current.hash)

    def rename(self, new_name: str) -> MutationResult:
        """Rename the open document; the session follows it to the new path.

        Raises:
            ConflictError: If the remote file changed since it was read
        """
        self._require_open("rename")
        new_path = sibling_path(self._path, new_name)
        self._check_unchanged()

        result = self._engine.rename(self._path, new_name)
        blob = self._store.get(new_path)
        logger.info(f"Session moved from {self._path} to {new_path}")
        self._path = new_path
        self._hash = blob.hash
        return result

    def delete(self) -> MutationResult:
        """Delete the open document and close the session.

        Raises:
            ConflictError: If the remote file changed since it was read
        """
        self._require_open("delete")
        self._check_unchanged()
        result = self._engine.delete(self._path)
        self.close()
        return result

    def close(self) -> None:
        if self.is_open and self.dirty:
            logger.warning(f"Closing {self._path} with unsaved changes")
        self._path = None
        self._hash = None
        self._document = None
        self._saved = None
