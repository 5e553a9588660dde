"""Mixin for extracting posts from Next.js ``__NEXT_DATA__`` JSON islands.

Some publishing platforms render articles client-side and ship the whole post
(as markdown) in the page's ``__NEXT_DATA__`` script tag. When that payload is
present it is more reliable than heuristic DOM extraction.

The markdown dialect understood here is deliberately small: headings,
image-only blocks, blockquotes and paragraphs, with inline images, links,
bold, italic and code spans. Inline substitutions always run in that order.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup  # type: ignore[import-untyped]

from kindlepost.extractors.models import NormalizedDocument

NEXT_DATA_SCRIPT_ID = "__NEXT_DATA__"

_HEADING_RE = re.compile(r"(#{1,6})\s+(.+)")
_IMAGE_BLOCK_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")

_INLINE_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"!\[([^\]]*)\]\(([^)]+)\)"), r'<img src="\2" alt="\1">'),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), r'<a href="\2">\1</a>'),
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*(.+?)\*"), r"<em>\1</em>"),
    (re.compile(r"`([^`]+)`"), r"<code>\1</code>"),
)

# Root-relative only; protocol-relative ("//host/...") URLs are absolute
_ROOT_RELATIVE_SRC_RE = re.compile(r'src="(/(?!/)[^"]*)"')
_ROOT_RELATIVE_HREF_RE = re.compile(r'href="(/(?!/)[^"]*)"')


def convert_inline(text: str) -> str:
    """Apply inline markdown substitutions in their fixed order."""
    for pattern, replacement in _INLINE_RULES:
        text = pattern.sub(replacement, text)
    return text


def _convert_block(block: str) -> str:
    trimmed = block.strip()
    if not trimmed:
        return ""

    heading = _HEADING_RE.fullmatch(trimmed)
    if heading:
        level = len(heading.group(1))
        return f"<h{level}>{convert_inline(heading.group(2))}</h{level}>"

    image = _IMAGE_BLOCK_RE.fullmatch(trimmed)
    if image:
        return f'<img src="{image.group(2)}" alt="{image.group(1)}">'

    if trimmed.startswith("> "):
        quote = re.sub(r"^> ", "", trimmed, flags=re.MULTILINE)
        return f"<blockquote><p>{convert_inline(quote)}</p></blockquote>"

    return f"<p>{convert_inline(trimmed)}</p>"


def markdown_to_html(markdown: str) -> str:
    """
    Convert the restricted markdown dialect to HTML.

    Blocks are separated by blank lines and rendered one per output line.

    Args:
        markdown: Markdown source

    Returns:
        HTML fragment, or an empty string for empty input
    """
    if not markdown:
        return ""

    blocks = re.split(r"\n{2,}", markdown.strip())
    rendered = (_convert_block(block) for block in blocks)
    return "\n".join(html for html in rendered if html)


def resolve_root_relative_urls(html: str, base_url: Optional[str]) -> str:
    """
    Prefix root-relative ``src``/``href`` values with the origin of ``base_url``.

    Absolute URLs are left alone. Without a usable base URL the HTML is
    returned unchanged.
    """
    if not base_url:
        return html

    try:
        parsed = urlparse(base_url)
    except ValueError:
        return html
    if not parsed.scheme or not parsed.netloc:
        return html

    origin = f"{parsed.scheme}://{parsed.netloc}"
    html = _ROOT_RELATIVE_SRC_RE.sub(lambda m: f'src="{origin}{m.group(1)}"', html)
    return _ROOT_RELATIVE_HREF_RE.sub(lambda m: f'href="{origin}{m.group(1)}"', html)


def _format_authors(authors: Any) -> Optional[str]:
    if not isinstance(authors, list) or not authors:
        return None
    names = []
    for author in authors:
        if isinstance(author, dict):
            author = author.get("name")
        if author:
            names.append(str(author))
    return ", ".join(names) or None


class NextDataExtractionMixin:
    """Extract a post from a page's ``__NEXT_DATA__`` payload.

    Handles:
    - Pages without the script tag (not applicable)
    - Invalid JSON (not applicable, never raised)
    - Payloads without ``props.pageProps.postData.content`` (not applicable)
    """

    logger: Any = None

    def _extract_from_next_data(
        self, html: str, base_url: Optional[str] = None
    ) -> Optional[NormalizedDocument]:
        """Return the embedded post as a NormalizedDocument, or ``None``.

        Args:
            html: Raw page HTML.
            base_url: Page URL, used to resolve root-relative links and images.

        Returns:
            NormalizedDocument, or ``None`` when the page carries no usable payload.
        """
        post_data = self._find_post_data(html)
        if post_data is None:
            return None

        content = post_data["content"]
        content_html = resolve_root_relative_urls(markdown_to_html(content), base_url)
        if not content_html.strip():
            return None

        title = post_data.get("title")
        return NormalizedDocument(
            title=title if isinstance(title, str) and title else "Article",
            content_html=content_html,
            plain_text=content,
            byline=_format_authors(post_data.get("authors")),
            site_name=None,
        )

    def _find_post_data(self, html: str) -> Optional[dict]:
        if not html or NEXT_DATA_SCRIPT_ID not in html:
            return None

        soup = BeautifulSoup(html, "lxml")
        script = soup.find("script", id=NEXT_DATA_SCRIPT_ID, type="application/json")
        if script is None or not script.string:
            return None

        try:
            data = json.loads(script.string)
        except (json.JSONDecodeError, TypeError) as e:
            if self.logger:
                self.logger.debug(f"Failed to parse __NEXT_DATA__: {e}")
            return None

        post_data: Any = data
        for key in ("props", "pageProps", "postData"):
            if not isinstance(post_data, dict):
                return None
            post_data = post_data.get(key)

        if not isinstance(post_data, dict):
            return None
        content = post_data.get("content")
        if not isinstance(content, str) or not content.strip():
            return None

        if self.logger:
            self.logger.debug("Found post content in __NEXT_DATA__")
        return post_data
