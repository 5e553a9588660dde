"""
Content extractors for kindlepost.
"""

from .models import Chapter, NormalizedDocument
from .base_extractor import BaseExtractor
from .article_extractor import ArticleExtractor
from .twitter_extractor import TwitterExtractor, is_social_post_url
from .router import ExtractorRouter, extract, get_extractor

__all__ = [
    "Chapter",
    "NormalizedDocument",
    "BaseExtractor",
    "ArticleExtractor",
    "TwitterExtractor",
    "is_social_post_url",
    "ExtractorRouter",
    "extract",
    "get_extractor",
]
