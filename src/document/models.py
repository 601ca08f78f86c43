"""Data models for structured documents.

A document is a frontmatter header (an ordered mapping of string keys to
scalar-or-list values) followed by opaque body text.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

# A frontmatter value is either a scalar string or an ordered list of
# strings; the runtime type is the discriminant.
FrontmatterValue = Union[str, List[str]]
Frontmatter = Dict[str, FrontmatterValue]

# Header fields offered by the editor, in display order
STANDARD_FIELDS = (
    "title",
    "description",
    "date",
    "tags",
    "type",
    "category",
    "image",
)

# Standard fields whose empty value is a list rather than a scalar
LIST_FIELDS = frozenset({"tags"})

# Allowed values for the "type" field
DOCUMENT_TYPES = ("project", "blog", "page")


def is_list_value(value: FrontmatterValue) -> bool:
    """Return True if ``value`` is the list variant."""
    return isinstance(value, list)


@dataclass
class Document:
    """A parsed "frontmatter + body" document.

    Attributes:
        frontmatter: Ordered mapping of key to scalar string or list of strings
        body: Body text (surrounding whitespace is normalized on serialize)

    Example:
        >>> doc = Document({"title": "Hi", "tags": ["a", "b"]}, "Body text")
        >>> doc.get_list("tags")
        ['a', 'b']
    """
    frontmatter: Frontmatter = field(default_factory=dict)
    body: str = ""

    def get(self, key: str, default: Optional[FrontmatterValue] = None) -> Optional[FrontmatterValue]:
        return self.frontmatter.get(key, default)

    def get_list(self, key: str) -> List[str]:
        """Return the value of ``key`` as a list (a scalar becomes one item)."""
        value = self.frontmatter.get(key)
        if value is None:
            return []
        if is_list_value(value):
            return list(value)
        return [value] if value else []

    def with_frontmatter(self, fields: Frontmatter) -> "Document":
        """Return a copy whose frontmatter is replaced wholesale by ``fields``."""
        return Document(frontmatter=copy_frontmatter(fields), body=self.body)

    def with_standard_fields(self) -> "Document":
        """Return a copy carrying every standard field, in standard order.

        Existing values are kept; missing standard fields are added empty.
        Non-standard keys follow the standard ones in their original order.
        """
        fields: Frontmatter = {}
        for key in STANDARD_FIELDS:
            if key in self.frontmatter:
                fields[key] = self.frontmatter[key]
            else:
                fields[key] = [] if key in LIST_FIELDS else ""
        for key, value in self.frontmatter.items():
            if key not in fields:
                fields[key] = value
        return Document(frontmatter=copy_frontmatter(fields), body=self.body)


def copy_frontmatter(fields: Frontmatter) -> Frontmatter:
    """Copy a frontmatter mapping, including its list values."""
    return {
        key: list(value) if is_list_value(value) else value
        for key, value in fields.items()
    }
