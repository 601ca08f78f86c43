"""Typed exceptions for document parsing and serialization."""

from src.content_store.errors import ContentSyncError


class DocumentError(ContentSyncError):
    """Base exception for all document errors."""
    pass


class FrontmatterError(DocumentError):
    """Raised when a frontmatter mapping cannot be serialized faithfully."""

    kind = "InvalidFrontmatter"

    def __init__(self, key: str, message: str):
        super().__init__(f"Frontmatter error for key '{key}': {message}")
        self.key = key
        self.reason = message


class ConversionError(DocumentError):
    """Raised when content conversion between formats fails."""

    def __init__(self, message: str):
        super().__init__(message)
