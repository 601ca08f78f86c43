"""Markdown converter for rich-editor HTML.

The browser editor works on HTML; documents are stored as markdown. This
module converts editor HTML into a markdown body using markdownify, after
BeautifulSoup removes elements that must never reach the stored document.
"""

import re

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter as BaseMarkdownConverter

from .errors import ConversionError

# Elements dropped before conversion
_STRIPPED_TAGS = ("script", "style", "noscript", "iframe")

_EXCESS_BLANK_LINES = re.compile(r'\n{3,}')


class _EditorMarkdownConverter(BaseMarkdownConverter):
    """markdownify converter with the editor's markdown conventions."""

    def __init__(self, **options):
        options.setdefault('heading_style', 'atx')  # Use # style headings
        options.setdefault('bullets', '-')  # Use - for bullets
        options.setdefault('strong_em_symbol', '*')  # Use * for bold/italic
        super().__init__(**options)


class MarkdownConverter:
    """Converts editor HTML to markdown body text.

    Example:
        >>> MarkdownConverter().html_to_markdown("<h1>Hi</h1><p><b>bold</b></p>")
        '# Hi\\n\\n**bold**'
    """

    def html_to_markdown(self, html: str) -> str:
        """Convert HTML to markdown.

        Args:
            html: HTML produced by the rich editor

        Returns:
            Markdown text with surrounding whitespace trimmed

        Raises:
            ConversionError: If conversion fails
        """
        if not html or not html.strip():
            return ""

        try:
            soup = BeautifulSoup(html, "html.parser")
            for tag in soup(_STRIPPED_TAGS):
                tag.decompose()
            markdown = _EditorMarkdownConverter().convert(str(soup))
        except Exception as e:
            raise ConversionError(f"HTML to markdown conversion failed: {e}") from e

        return _EXCESS_BLANK_LINES.sub("\n\n", markdown).strip()
