"""
Generic web article extractor.

Fetches the page with a browser-like request signature, then:
1. Uses the page's ``__NEXT_DATA__`` post payload when present.
2. Otherwise runs readability-lxml to isolate the main content, with
   trafilatura supplying author and site name metadata.

Pages whose extracted body is shorter than MIN_CONTENT_LENGTH characters are
rejected; they are almost always navigation shells or paywalls.
"""

from __future__ import annotations

from typing import Any, Optional

import requests
import trafilatura  # type: ignore[import-untyped]
from bs4.dammit import UnicodeDammit
from readability import Document  # type: ignore[import-untyped]
from readability.readability import Unparseable  # type: ignore[import-untyped]

from kindlepost.extractors.base_extractor import BaseExtractor
from kindlepost.extractors.models import NormalizedDocument
from kindlepost.extractors.next_data_mixin import NextDataExtractionMixin
from kindlepost.utils.errors import ExtractionError
from kindlepost.utils.html_utils import html_to_text

# Minimum length of the extracted HTML body
MIN_CONTENT_LENGTH = 100

DEFAULT_TITLE = "Article"

# Some servers send degraded markup to clients that don't look like a browser
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# readability-lxml's placeholder when a page has no <title>
_NO_TITLE = "[no-title]"


class ArticleExtractor(NextDataExtractionMixin, BaseExtractor):
    """
    Extractor for arbitrary web pages.

    Key features:
    - Browser-like headers on the page fetch
    - Structured-data shortcut via ``__NEXT_DATA__``
    - Heuristic main-content detection via readability-lxml
    - Author/site name from trafilatura's metadata extraction
    """

    name = "article"
    display_name = "Web Article"

    default_headers = BROWSER_HEADERS

    @classmethod
    def can_handle(cls, url: str) -> bool:
        return True

    def extract(self, url: str) -> NormalizedDocument:
        """
        Extract the article at ``url``.

        Raises:
            NetworkError: On transport failure or non-2xx status
            ExtractionError: When no meaningful content is found
        """
        self.logger.info(f"Extracting article from: {url}")

        response = self._get(url)
        self._check_status(response)
        html = self._decode_page(response)

        document = self._extract_from_next_data(html, url)
        if document is not None:
            self.logger.info(f"Extracted article from page data: \"{document.title}\"")
            return document

        document = self._extract_with_readability(html, url)
        self.logger.info(f"Extracted article: \"{document.title}\"")
        return document

    def _decode_page(self, response: requests.Response) -> str:
        """
        Decode the page body.

        requests falls back to ISO-8859-1 when Content-Type carries no charset,
        so in that case the bytes are decoded by UnicodeDammit, which honours
        a BOM or <meta charset> before guessing.
        """
        if "charset" in response.headers.get("Content-Type", "").lower():
            return response.text
        dammit = UnicodeDammit(response.content, is_html=True)
        self.logger.debug(f"Decoded page as {dammit.original_encoding}")
        return dammit.unicode_markup or ""

    def _extract_with_readability(self, html: str, url: str) -> NormalizedDocument:
        try:
            readable = Document(html, url=url)
            content = readable.summary(html_partial=True)
        except Unparseable as exc:
            raise ExtractionError(
                "Could not extract meaningful content from URL",
                source=self.name,
                context={"url": url},
            ) from exc

        if not content or len(content) < MIN_CONTENT_LENGTH:
            raise ExtractionError(
                "Could not extract meaningful content from URL",
                source=self.name,
                context={"url": url},
            )

        metadata = self._extract_metadata(html, url)
        title = self._readability_title(readable) or metadata.get("title") or DEFAULT_TITLE

        return NormalizedDocument(
            title=title,
            content_html=content,
            plain_text=html_to_text(content),
            byline=metadata.get("author") or None,
            site_name=metadata.get("sitename") or None,
        )

    def _readability_title(self, readable: Any) -> Optional[str]:
        try:
            title = readable.short_title()
        except Unparseable:
            return None
        if not title or title == _NO_TITLE:
            return None
        return title

    def _extract_metadata(self, html: str, url: str) -> dict[str, Optional[str]]:
        """
        Extract page metadata using trafilatura.

        Returns:
            Dict with keys: title, author, sitename (empty dict if extraction fails)
        """
        meta = trafilatura.extract_metadata(html, default_url=url)

        if not meta:
            self.logger.debug(f"No metadata found for {url}")
            return {}

        return {
            "title": meta.title,
            "author": meta.author,
            "sitename": meta.sitename,
        }
