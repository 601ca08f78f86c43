"""Frontmatter parsing and generation for documents.

This module handles reading and writing the "frontmatter + body" document
format used by the content repository:

    ---
    title: Hello
    tags: [a, b, c]
    ---

    Body text

The header is deliberately not YAML: each line is ``key: value``, a value
wrapped in ``[...]`` is a list of comma-separated strings, and everything
else is kept as a plain string (numbers and booleans are not coerced).
"""

import logging
import re
from typing import List

from .errors import FrontmatterError
from .models import Document, Frontmatter, FrontmatterValue, is_list_value

logger = logging.getLogger(__name__)


class FrontmatterCodec:
    """Parses and serializes documents with a frontmatter header.

    Round-trip contract: for any Document whose body contains no leading
    delimiter text and whose values are representable (see ``serialize``),
    ``parse(serialize(doc)) == doc`` modulo whitespace normalization at
    block boundaries.
    """

    # Leading block between --- delimiter lines; the block may be empty
    FRONTMATTER_PATTERN = re.compile(
        r'\A---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)',
        re.DOTALL
    )

    DELIMITER = "---"

    @classmethod
    def parse(cls, raw: str) -> Document:
        """Parse a document into frontmatter and body.

        Text without a leading delimiter block yields an empty frontmatter
        mapping and the entire input as body.

        Args:
            raw: Full document text

        Returns:
            Document with ordered frontmatter and trimmed body
        """
        match = cls.FRONTMATTER_PATTERN.match(raw)
        if not match:
            return Document(frontmatter={}, body=raw)

        frontmatter = cls._parse_block(match.group(1) or "")
        body = raw[match.end():].strip()
        return Document(frontmatter=frontmatter, body=body)

    @classmethod
    def _parse_block(cls, block: str) -> Frontmatter:
        frontmatter: Frontmatter = {}
        for line in block.splitlines():
            if not line.strip():
                continue
            key, separator, value = line.partition(":")
            key = key.strip()
            if not separator or not key:
                logger.debug(f"Ignoring malformed frontmatter line: {line!r}")
                continue
            # Duplicate keys: last occurrence wins
            frontmatter[key] = cls.parse_value(value)
        return frontmatter

    @staticmethod
    def parse_value(text: str) -> FrontmatterValue:
        """Parse a single frontmatter value.

        Example:
            >>> FrontmatterCodec.parse_value(" [a, b, c] ")
            ['a', 'b', 'c']
            >>> FrontmatterCodec.parse_value("solo")
            'solo'
        """
        text = text.strip()
        if len(text) >= 2 and text.startswith("[") and text.endswith("]"):
            inner = text[1:-1].strip()
            if not inner:
                return []
            return [item.strip() for item in inner.split(",")]
        return text

    @classmethod
    def serialize(cls, document: Document) -> str:
        """Serialize a document to text.

        Emits the opening delimiter, one ``key: value`` line per entry (lists
        as ``[a, b, c]``), the closing delimiter, a blank line and the body
        with surrounding whitespace trimmed.

        Raises:
            FrontmatterError: If a key or value cannot be represented
        """
        lines: List[str] = [cls.DELIMITER]
        for key, value in document.frontmatter.items():
            cls._validate_key(key)
            rendered = cls.format_value(key, value)
            lines.append(f"{key}: {rendered}" if rendered else f"{key}:")
        lines.append(cls.DELIMITER)
        lines.append("")
        lines.append(document.body.strip())
        return "\n".join(lines)

    @staticmethod
    def _validate_key(key: str) -> None:
        if not isinstance(key, str):
            raise FrontmatterError(str(key), "keys must be strings")
        if not key.strip():
            raise FrontmatterError(key, "keys cannot be empty")
        if key != key.strip():
            raise FrontmatterError(key, "keys cannot have surrounding whitespace")
        if ":" in key or "\n" in key or "\r" in key:
            raise FrontmatterError(key, "keys cannot contain ':' or line breaks")

    @classmethod
    def validate_field(cls, key: str, value: FrontmatterValue) -> None:
        """Raise FrontmatterError if ``key: value`` cannot be serialized."""
        cls._validate_key(key)
        cls.format_value(key, value)

    @classmethod
    def format_value(cls, key: str, value: FrontmatterValue) -> str:
        """Render one value as it appears after ``key: ``.

        Raises:
            FrontmatterError: If the value cannot round-trip
        """
        if is_list_value(value) or isinstance(value, tuple):
            items = []
            for item in value:
                if not isinstance(item, str):
                    raise FrontmatterError(key, f"list items must be strings, got {type(item).__name__}")
                if "," in item or "\n" in item or "\r" in item:
                    raise FrontmatterError(key, f"list item {item!r} cannot contain ',' or line breaks")
                items.append(item.strip())
            if items == [""]:
                raise FrontmatterError(key, "a single empty list item would be read back as an empty list")
            return f"[{', '.join(items)}]"

        if not isinstance(value, str):
            raise FrontmatterError(key, f"values must be strings or lists, got {type(value).__name__}")
        if "\n" in value or "\r" in value:
            raise FrontmatterError(key, "multi-line values are not supported")
        scalar = value.strip()
        if len(scalar) >= 2 and scalar.startswith("[") and scalar.endswith("]"):
            raise FrontmatterError(key, f"scalar {scalar!r} would be read back as a list")
        return scalar

    @classmethod
    def has_frontmatter(cls, raw: str) -> bool:
        return cls.FRONTMATTER_PATTERN.match(raw) is not None
