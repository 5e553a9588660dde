"""Utilities for preparing HTML fragments for the EPUB compiler.

Provides:
- replace_youtube_embeds(): turns video embed iframes into plain links, since
  e-readers cannot render iframes.
- fix_picture_sources(): gives <img> elements inside <picture> a direct src
  taken from the <source srcset> candidates.
- repair_markup(): both of the above, in the order the assembler applies them.
- build_document_html(): wraps a body fragment in a minimal HTML document
  carrying title/author metadata.
- html_to_text(): text-only rendering of a fragment.

The two repair functions are regex based and leave every byte outside a
matched element untouched, so running them over markup without matches is a
no-op and running them twice gives the same result as running them once.
"""

from __future__ import annotations

import re as _re
from html import escape as html_escape
from typing import Optional

from bs4 import BeautifulSoup

_YOUTUBE_IFRAME_RE = _re.compile(
    r'<iframe[^>]*\ssrc="https?://(?:www\.)?youtube(?:-nocookie)?\.com/embed/([^"?]+)[^"]*"[^>]*>\s*</iframe>',
    _re.IGNORECASE,
)
_TITLE_ATTR_RE = _re.compile(r'\stitle="([^"]*)"', _re.IGNORECASE)

YOUTUBE_FALLBACK_TITLE = "YouTube Video"

_PICTURE_RE = _re.compile(r"(<picture\b[^>]*>)(.*?)(</picture>)", _re.IGNORECASE | _re.DOTALL)
_IMG_WITH_SRC_RE = _re.compile(r"<img\b[^>]*?\ssrc\s*=", _re.IGNORECASE)
_IMG_TAG_RE = _re.compile(r"<img\b", _re.IGNORECASE)
# Sources not declared as WebP are preferred for e-reader compatibility
_NON_WEBP_SOURCE_RE = _re.compile(
    r'<source(?![^>]*type="image/webp")[^>]*\bsrcset="([^"]+)"', _re.IGNORECASE
)
_ANY_SOURCE_RE = _re.compile(r'<source[^>]*\bsrcset="([^"]+)"', _re.IGNORECASE)


def _youtube_link(match: _re.Match) -> str:
    video_id = match.group(1)
    title_match = _TITLE_ATTR_RE.search(match.group(0))
    title = title_match.group(1) if title_match and title_match.group(1) else YOUTUBE_FALLBACK_TITLE
    return f'<p><a href="https://www.youtube.com/watch?v={video_id}">{title} (YouTube)</a></p>'


def replace_youtube_embeds(html: str) -> str:
    """Replace YouTube embed iframes with a paragraph linking to the watch page.

    The link is labelled with the iframe's ``title`` attribute (or
    ``"YouTube Video"``) followed by ``" (YouTube)"``. Other iframes are left
    as they are.
    """
    if not html:
        return html
    return _YOUTUBE_IFRAME_RE.sub(_youtube_link, html)


def _first_srcset_url(srcset: str) -> str:
    candidate = srcset.split(",")[0].strip()
    return candidate.split()[0] if candidate else ""


def _fix_picture(match: _re.Match) -> str:
    opening, inner, closing = match.groups()
    if _IMG_WITH_SRC_RE.search(inner):
        return match.group(0)

    source_match = _NON_WEBP_SOURCE_RE.search(inner) or _ANY_SOURCE_RE.search(inner)
    if not source_match:
        return match.group(0)

    url = _first_srcset_url(source_match.group(1))
    if not url:
        return match.group(0)

    fixed_inner = _IMG_TAG_RE.sub(lambda _m: f'<img src="{url}"', inner, count=1)
    return f"{opening}{fixed_inner}{closing}"


def fix_picture_sources(html: str) -> str:
    """Give ``<img>`` elements inside ``<picture>`` a direct ``src``.

    Only pictures whose image lacks a ``src`` and that declare at least one
    ``<source srcset>`` are touched. A non-WebP source wins over a WebP one;
    only the first URL of the chosen candidate list is used.
    """
    if not html:
        return html
    return _PICTURE_RE.sub(_fix_picture, html)


def repair_markup(html: str) -> str:
    """Apply every markup repair the EPUB compiler needs."""
    return fix_picture_sources(replace_youtube_embeds(html))


def build_document_html(
    body_html: str,
    title: str = "",
    author: Optional[str] = None,
    include_heading: bool = True,
) -> str:
    """Wrap an HTML fragment in a minimal document for the EPUB compiler.

    Args:
        body_html: The document body as an HTML fragment.
        title: Document title (``<title>`` and, optionally, a leading ``<h1>``).
        author: Optional author, emitted as a meta tag and a "by" line.
        include_heading: Emit the ``<h1>`` title and "by" line. Books turn this
            off because every chapter brings its own top-level heading.

    Returns:
        Complete HTML document string.
    """
    safe_title = html_escape(title) if title else ""
    safe_author = html_escape(author) if author else ""

    author_meta = f'<meta name="author" content="{safe_author}">\n' if safe_author else ""

    header_html = ""
    if include_heading:
        if safe_title:
            header_html += f"<h1>{safe_title}</h1>\n"
        if safe_author:
            header_html += f'<p style="font-style: italic;">by {safe_author}</p>\n'

    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{safe_title}</title>\n"
        f"{author_meta}"
        "</head>\n"
        "<body>\n"
        f"{header_html}"
        f"{body_html}\n"
        "</body>\n"
        "</html>"
    )


def html_to_text(html: str) -> str:
    """Return the visible text of an HTML fragment, whitespace-trimmed."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")
    return soup.get_text().strip()
