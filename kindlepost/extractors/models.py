"""Shared extractor data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class NormalizedDocument:
    """The single output shape every extractor produces.

    ``content_html`` is a body fragment (no ``<html>``/``<body>`` wrapper);
    ``plain_text`` is a text rendering kept for diagnostics and is not
    necessarily the stripped ``content_html``.
    """

    title: str
    content_html: str
    plain_text: str
    byline: Optional[str] = None
    site_name: Optional[str] = None

    @property
    def author(self) -> Optional[str]:
        """Author for packaging: the byline, falling back to the site name."""
        return self.byline or self.site_name

    def to_chapter(self) -> Chapter:
        return Chapter(title=self.title, html_content=self.content_html, byline=self.byline)


@dataclass
class Chapter:
    """One chapter of a multi-document book. List order is reading order."""

    title: str
    html_content: str
    byline: Optional[str] = None
