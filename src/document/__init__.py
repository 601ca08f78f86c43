"""Structured document library.

This package provides the "frontmatter + body" document model, the codec
that parses and serializes it, and conversion of rich-editor HTML into
markdown body text.
"""

from .models import (
    Document,
    Frontmatter,
    FrontmatterValue,
    STANDARD_FIELDS,
    DOCUMENT_TYPES,
)
from .frontmatter_codec import FrontmatterCodec
from .markdown_converter import MarkdownConverter
from .errors import DocumentError, FrontmatterError, ConversionError

__all__ = [
    'Document',
    'Frontmatter',
    'FrontmatterValue',
    'STANDARD_FIELDS',
    'DOCUMENT_TYPES',
    'FrontmatterCodec',
    'MarkdownConverter',
    'DocumentError',
    'FrontmatterError',
    'ConversionError',
]
