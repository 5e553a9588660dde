"""
Twitter/X post extractor using the fxtwitter JSON API.

Handles two kinds of posts:
- Long-form X Articles: a list of rich-text blocks plus an entity map that
  points "atomic" blocks at images, dividers and embedded posts. Embedded
  posts are fetched concurrently; any that fail are left out.
- Short posts: plain text, optional photos and an optional quoted post.

API: GET {SOCIAL_API_URL}/<handle>/status/<id> and {SOCIAL_API_URL}/i/status/<id>,
returning ``{"code": 200, "message": ..., "tweet": {...}}``.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Mapping, Optional
from urllib.parse import urlparse

import requests

from kindlepost.config import Config
from kindlepost.extractors.base_extractor import BaseExtractor
from kindlepost.extractors.models import NormalizedDocument
from kindlepost.utils.errors import ExtractionError, NotFoundError, ParsingError
from kindlepost.utils.logging_config import log_event

SITE_NAME = "Twitter/X"

SOCIAL_HOSTS = ("x.com", "twitter.com")

_STATUS_URL_RE = re.compile(r"(?:x\.com|twitter\.com)/([^/?#]+)/status/(\d+)")

QUOTE_TEXT_LIMIT = 280
QUOTE_STYLE = "border-left: 3px solid #ccc; padding-left: 10px; margin: 10px 0;"
IMAGE_STYLE = "max-width: 100%;"

_HEADING_TAGS = {
    "header-one": "h1",
    "header-two": "h2",
    "header-three": "h3",
}
# Rendered as bare <li>, without an enclosing <ul>/<ol>
_LIST_ITEM_TYPES = {"ordered-list-item", "unordered-list-item"}


def is_social_post_url(url: str) -> bool:
    """True for x.com / twitter.com URLs (any subdomain) with a /status/ segment."""
    if not url or "/status/" not in url:
        return False
    parsed = urlparse(url if "//" in url else f"//{url}")
    host = (parsed.hostname or "").lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in SOCIAL_HOSTS)


def parse_status_url(url: str) -> tuple[str, str]:
    """
    Split a status URL into (handle, post id).

    Raises:
        ParsingError: If the URL does not contain ``<host>/<handle>/status/<id>``
    """
    match = _STATUS_URL_RE.search(url or "")
    if not match:
        raise ParsingError("Could not parse Twitter URL", source="twitter", context={"url": url})
    return match.group(1), match.group(2)


def _image_html(url: str, alt: str) -> str:
    return f'<p><img src="{url}" alt="{alt}" style="{IMAGE_STYLE}"></p>'


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class QuotedPost:
    """Summary of an embedded or quoted post."""

    author: str
    handle: str
    text: str
    url: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_api(cls, tweet: Mapping[str, Any], post_id: Optional[str] = None) -> QuotedPost:
        author = _as_dict(tweet.get("author"))
        handle = _as_text(author.get("screen_name"))

        text = _as_text(tweet.get("text"))
        if len(text) > QUOTE_TEXT_LIMIT:
            text = text[: QUOTE_TEXT_LIMIT - 3].rstrip() + "..."

        url = _as_text(tweet.get("url")) or None
        if url is None and handle and post_id:
            url = f"https://x.com/{handle}/status/{post_id}"

        return cls(
            author=_as_text(author.get("name")) or "Unknown",
            handle=handle,
            text=text,
            url=url,
            title=_as_text(_as_dict(tweet.get("article")).get("title")) or None,
        )

    @classmethod
    def from_quote(cls, quote: Mapping[str, Any]) -> QuotedPost:
        """Quote attached to a short post: author, handle and the full text, no link."""
        author = _as_dict(quote.get("author"))
        return cls(
            author=_as_text(author.get("name")) or "Unknown",
            handle=_as_text(author.get("screen_name")),
            text=_as_text(quote.get("text")),
        )

    def to_html(self) -> str:
        lines = [
            f'<blockquote style="{QUOTE_STYLE}">',
            f"<p><strong>{self.author}</strong> (@{self.handle}):</p>",
        ]
        if self.title:
            lines.append(f"<p><strong>{self.title}</strong></p>")
        if self.text:
            lines.append(f"<p>{self.text}</p>")
        if self.url:
            lines.append(f'<p><a href="{self.url}">{self.url}</a></p>')
        lines.append("</blockquote>")
        return "\n".join(lines)


@dataclass
class SettledResult:
    """Outcome of one fan-out task: a value or the error that replaced it."""

    key: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _iter_entities(entity_map: Any) -> Iterator[tuple[str, dict]]:
    """Yield (key, entity) pairs from either entity map layout.

    The API sends either ``[{"key": "1", "value": {...}}, ...]`` or
    ``{"1": {...}, ...}``.
    """
    if isinstance(entity_map, dict):
        for key, entity in entity_map.items():
            if isinstance(entity, dict):
                yield str(key), entity
    elif isinstance(entity_map, list):
        for entry in entity_map:
            if not isinstance(entry, dict) or entry.get("key") is None:
                continue
            entity = entry.get("value")
            if isinstance(entity, dict):
                yield str(entry["key"]), entity


@dataclass(frozen=True)
class MediaEntityGraph:
    """Lookup tables for resolving atomic blocks of one article.

    Every lookup is best-effort and returns ``None``/``False`` on a miss.
    """

    media_refs: Mapping[str, str] = field(default_factory=dict)
    dividers: frozenset = frozenset()
    media_urls: Mapping[str, str] = field(default_factory=dict)
    tweet_refs: Mapping[str, str] = field(default_factory=dict)
    quotes: Mapping[str, QuotedPost] = field(default_factory=dict)

    @classmethod
    def from_article(cls, article: Mapping[str, Any]) -> MediaEntityGraph:
        content = _as_dict(article.get("content"))

        media_refs: dict[str, str] = {}
        dividers: set[str] = set()
        tweet_refs: dict[str, str] = {}
        for key, entity in _iter_entities(content.get("entityMap")):
            entity_type = entity.get("type")
            data = _as_dict(entity.get("data"))
            if entity_type == "MEDIA":
                items = data.get("mediaItems")
                if isinstance(items, list) and items and isinstance(items[0], dict):
                    media_id = items[0].get("mediaId")
                    if media_id is not None:
                        media_refs[key] = str(media_id)
            elif entity_type == "DIVIDER":
                dividers.add(key)
            elif entity_type == "TWEET":
                tweet_id = data.get("tweetId")
                if tweet_id is not None:
                    tweet_refs[key] = str(tweet_id)

        media_urls: dict[str, str] = {}
        media_entities = article.get("media_entities")
        if isinstance(media_entities, list):
            for media in media_entities:
                if not isinstance(media, dict) or media.get("media_id") is None:
                    continue
                image_url = _as_dict(media.get("media_info")).get("original_img_url")
                if image_url:
                    media_urls[str(media["media_id"])] = image_url

        return cls(
            media_refs=media_refs,
            dividers=frozenset(dividers),
            media_urls=media_urls,
            tweet_refs=tweet_refs,
        )

    def with_quotes(self, quotes: Mapping[str, QuotedPost]) -> MediaEntityGraph:
        return replace(self, quotes=dict(quotes))

    def image_url(self, key: str) -> Optional[str]:
        media_id = self.media_refs.get(key)
        if media_id is None:
            return None
        return self.media_urls.get(media_id)

    def quote(self, key: str) -> Optional[QuotedPost]:
        return self.quotes.get(key)

    def is_divider(self, key: str) -> bool:
        return key in self.dividers


def _entity_key(block: Mapping[str, Any]) -> Optional[str]:
    ranges = block.get("entityRanges")
    if not isinstance(ranges, list) or not ranges or not isinstance(ranges[0], dict):
        return None
    key = ranges[0].get("key")
    return None if key is None else str(key)


def render_atomic_block(block: Mapping[str, Any], graph: MediaEntityGraph) -> str:
    """Resolve an atomic block to an image, embedded post or rule ("" if none)."""
    key = _entity_key(block)
    if key is None:
        return ""

    image_url = graph.image_url(key)
    if image_url:
        return _image_html(image_url, "Article image")

    quote = graph.quote(key)
    if quote is not None:
        return quote.to_html()

    if graph.is_divider(key):
        return "<hr/>"

    return ""


def render_block(block: Mapping[str, Any], graph: MediaEntityGraph) -> str:
    """Render one rich-text block; block text is emitted as-is."""
    text = _as_text(block.get("text"))
    block_type = block.get("type") or "unstyled"

    if block_type in _HEADING_TAGS:
        tag = _HEADING_TAGS[block_type]
        return f"<{tag}>{text}</{tag}>"
    if block_type == "blockquote":
        return f"<blockquote>{text}</blockquote>"
    if block_type == "code-block":
        return f"<pre><code>{text}</code></pre>"
    if block_type in _LIST_ITEM_TYPES:
        # TODO: wrap runs of list items in <ul>/<ol>
        return f"<li>{text}</li>"
    if block_type == "atomic":
        return render_atomic_block(block, graph)
    if text.strip():
        return f"<p>{text}</p>"
    return "<br/>"


def render_article_blocks(
    blocks: list[Any], graph: Optional[MediaEntityGraph] = None
) -> str:
    """Render article blocks in document order, one element per line."""
    graph = graph or MediaEntityGraph()
    html = ""
    for block in blocks:
        if not isinstance(block, dict):
            continue
        rendered = render_block(block, graph)
        if rendered:
            html += f"{rendered}\n"
    return html


def article_plain_text(blocks: list[Any]) -> str:
    """Join the text of every non-blank block with blank lines."""
    texts = (_as_text(block.get("text")) for block in blocks if isinstance(block, dict))
    return "\n\n".join(text for text in texts if text.strip())


class TwitterExtractor(BaseExtractor):
    """
    Extractor for Twitter/X status URLs.

    Key features:
    - No HTML scraping: everything comes from the fxtwitter JSON API
    - X Articles rendered block by block with inline images and embedded posts
    - Embedded posts resolved concurrently; individual failures are dropped
    """

    name = "twitter"
    display_name = "Twitter/X"

    default_headers = {"Accept": "application/json"}

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
        api_url: Optional[str] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        super().__init__(session=session, timeout=timeout)
        self.api_url = (api_url or Config.SOCIAL_API_URL).rstrip("/")
        self.max_workers = max_workers or Config.QUOTE_FETCH_WORKERS

    @classmethod
    def can_handle(cls, url: str) -> bool:
        return is_social_post_url(url)

    def extract(self, url: str) -> NormalizedDocument:
        """
        Extract the post at ``url``.

        Raises:
            ParsingError: URL doesn't match ``<handle>/status/<id>`` or bad API JSON
            NetworkError: Non-2xx API response (status code included)
            NotFoundError: API reports the post as missing
            ExtractionError: Post has no usable content
        """
        self.logger.info("Detected Twitter/X URL, using fxtwitter API")
        handle, post_id = parse_status_url(url)

        api_url = f"{self.api_url}/{handle}/status/{post_id}"
        self.logger.info(f"Fetching from: {api_url}")
        tweet = self._fetch_post(api_url)

        author = _as_dict(tweet.get("author"))
        author_handle = _as_text(author.get("screen_name")) or handle
        byline = _as_text(author.get("name")) or author_handle

        article = _as_dict(tweet.get("article"))
        blocks = _as_dict(article.get("content")).get("blocks")
        if isinstance(blocks, list):
            return self._extract_article(article, blocks, author_handle, byline)

        return self._extract_short_post(tweet, author_handle, byline)

    def _fetch_post(self, api_url: str) -> dict:
        response = self._get(api_url)
        self._check_status(response, "API error!")

        try:
            data = response.json()
        except ValueError as exc:
            raise ParsingError(
                "Invalid JSON in API response",
                source=self.name,
                context={"url": api_url},
            ) from exc

        if not isinstance(data, dict):
            raise ParsingError(
                "Unexpected API response shape",
                source=self.name,
                context={"url": api_url},
            )

        tweet = data.get("tweet")
        if data.get("code") != 200 or not isinstance(tweet, dict) or not tweet:
            raise NotFoundError(
                _as_text(data.get("message")) or "Tweet not found or has been deleted",
                source=self.name,
                context={"url": api_url},
            )
        return tweet

    def _extract_article(
        self, article: dict, blocks: list, handle: str, byline: str
    ) -> NormalizedDocument:
        title = _as_text(article.get("title")) or f"Article by @{handle}"
        self.logger.info(f"Detected X Article: \"{title}\"")

        graph = MediaEntityGraph.from_article(article)
        if graph.tweet_refs:
            graph = graph.with_quotes(self._resolve_quotes(graph.tweet_refs))

        content = render_article_blocks(blocks, graph)

        cover_url = _as_dict(_as_dict(article.get("cover_media")).get("media_info")).get(
            "original_img_url"
        )
        if cover_url:
            content = f"{_image_html(cover_url, 'Cover image')}\n{content}"

        if not content.strip():
            raise ExtractionError(
                "Article has no content",
                source=self.name,
                context={"title": title},
            )

        self.logger.info(f"Extracted article: \"{title}\" ({len(blocks)} blocks)")
        return NormalizedDocument(
            title=title,
            content_html=content,
            plain_text=article_plain_text(blocks),
            byline=byline,
            site_name=SITE_NAME,
        )

    def _extract_short_post(self, tweet: dict, handle: str, byline: str) -> NormalizedDocument:
        text = _as_text(tweet.get("text"))
        if not text.strip():
            raise ExtractionError("Tweet has no text content", source=self.name)

        parts = ["\n".join(f"<p>{line or '&nbsp;'}</p>" for line in text.split("\n"))]

        photos = _as_dict(tweet.get("media")).get("photos")
        if isinstance(photos, list):
            photo_urls = [p.get("url") for p in photos if isinstance(p, dict) and p.get("url")]
            if photo_urls:
                gallery = "".join(_image_html(photo_url, "Tweet image") for photo_url in photo_urls)
                parts.append(f'<div class="media">{gallery}</div>')

        quote = tweet.get("quote")
        if isinstance(quote, dict) and quote:
            parts.append(QuotedPost.from_quote(quote).to_html())

        self.logger.info(f"Extracted tweet from @{handle}: \"{text[:50]}...\"")
        return NormalizedDocument(
            title=f"Tweet by @{handle}",
            content_html="\n".join(parts),
            plain_text=text,
            byline=byline,
            site_name=SITE_NAME,
        )

    def _resolve_quotes(self, tweet_refs: Mapping[str, str]) -> dict[str, QuotedPost]:
        """Fetch every embedded post; failed fetches are logged and omitted."""
        quotes: dict[str, QuotedPost] = {}
        for result in self._fetch_all_settled(tweet_refs):
            if result.ok:
                quotes[result.key] = result.value
            else:
                log_event(
                    self.logger,
                    "warning",
                    f"Skipping embedded post for entity {result.key}: {result.error}",
                    entity_key=result.key,
                    post_id=tweet_refs[result.key],
                )
        self.logger.debug(f"Resolved {len(quotes)}/{len(tweet_refs)} embedded posts")
        return quotes

    def _fetch_all_settled(self, tweet_refs: Mapping[str, str]) -> list[SettledResult]:
        """Run one sub-fetch per entity and wait for all of them to finish."""
        if not tweet_refs:
            return []

        results: list[SettledResult] = []
        workers = max(1, min(self.max_workers, len(tweet_refs)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._fetch_quoted_post, post_id): key
                for key, post_id in tweet_refs.items()
            }
            for future in as_completed(futures):
                key = futures[future]
                try:
                    results.append(SettledResult(key=key, value=future.result()))
                except Exception as exc:
                    results.append(SettledResult(key=key, error=exc))
        return results

    def _fetch_quoted_post(self, post_id: str) -> QuotedPost:
        tweet = self._fetch_post(f"{self.api_url}/i/status/{post_id}")
        return QuotedPost.from_api(tweet, post_id)
