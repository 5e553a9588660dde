"""
Extractor routing: choose the extractor for a URL and run it.
"""

from __future__ import annotations

from typing import Optional, Type

import requests

from kindlepost.extractors.article_extractor import ArticleExtractor
from kindlepost.extractors.base_extractor import BaseExtractor
from kindlepost.extractors.models import NormalizedDocument
from kindlepost.extractors.twitter_extractor import TwitterExtractor
from kindlepost.utils import get_logger


class ExtractorRouter:
    """
    Ordered registry of extractor classes.

    The first class whose ``can_handle`` accepts the URL wins, so specific
    extractors are listed before the catch-all article extractor.
    """

    _extractors: list[Type[BaseExtractor]] = [TwitterExtractor, ArticleExtractor]
    _logger = None

    @classmethod
    def _get_logger(cls):
        if cls._logger is None:
            cls._logger = get_logger("router")
        return cls._logger

    @classmethod
    def get_extractor_class(cls, url: str) -> Type[BaseExtractor]:
        for extractor_class in cls._extractors:
            if extractor_class.can_handle(url):
                return extractor_class
        return ArticleExtractor

    @classmethod
    def get_extractor(cls, url: str, **kwargs) -> BaseExtractor:
        """
        Get an extractor instance for ``url``.

        Args:
            url: URL to extract
            **kwargs: Arguments to pass to the extractor constructor

        Returns:
            Extractor instance
        """
        extractor_class = cls.get_extractor_class(url)
        cls._get_logger().debug(f"Routing {url} to the {extractor_class.display_name} extractor")
        return extractor_class(**kwargs)


def get_extractor(url: str, **kwargs) -> BaseExtractor:
    """Convenience wrapper around ExtractorRouter.get_extractor."""
    return ExtractorRouter.get_extractor(url, **kwargs)


def extract(url: str, session: Optional[requests.Session] = None) -> NormalizedDocument:
    """
    Extract a NormalizedDocument from ``url`` using the matching extractor.

    Raises:
        KindlePostError subclasses from the chosen extractor.
    """
    with get_extractor(url, session=session) as extractor:
        return extractor.extract(url)
