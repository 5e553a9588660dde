"""Unit tests for the Twitter/X extractor."""

import pytest
import responses

from kindlepost.extractors.twitter_extractor import (
    MediaEntityGraph,
    QuotedPost,
    TwitterExtractor,
    is_social_post_url,
    parse_status_url,
    render_article_blocks,
)
from kindlepost.utils.errors import ExtractionError, NetworkError, NotFoundError, ParsingError

API = "https://api.fxtwitter.com"
POST_URL = "https://x.com/alice/status/12345"
POST_API = f"{API}/alice/status/12345"


@pytest.fixture
def extractor():
    with TwitterExtractor(api_url=API, max_workers=3) as ext:
        yield ext


def _ok(tweet):
    return {"code": 200, "message": "OK", "tweet": tweet}


def _block(text="", block_type="unstyled", key=None):
    block = {"text": text, "type": block_type}
    if key is not None:
        block["entityRanges"] = [{"key": key, "offset": 0, "length": 1}]
    return block


class TestIsSocialPostUrl:
    def test_x_and_twitter_status_urls(self):
        assert is_social_post_url("https://x.com/alice/status/1") is True
        assert is_social_post_url("https://twitter.com/alice/status/1") is True
        assert is_social_post_url("https://mobile.twitter.com/alice/status/1") is True

    def test_without_status_segment(self):
        assert is_social_post_url("https://x.com/alice") is False
        assert is_social_post_url("https://twitter.com/alice/likes") is False

    def test_unrelated_host(self):
        assert is_social_post_url("https://example.com/alice/status/1") is False
        assert is_social_post_url("https://notx.com/alice/status/1") is False

    def test_schemeless(self):
        assert is_social_post_url("x.com/alice/status/1") is True


class TestParseStatusUrl:
    def test_extracts_handle_and_id(self):
        assert parse_status_url("https://twitter.com/bob_99/status/987?s=20") == ("bob_99", "987")

    def test_bad_url(self):
        with pytest.raises(ParsingError, match="Could not parse Twitter URL"):
            parse_status_url("https://x.com/alice/status/")


class TestRenderArticleBlocks:
    def test_block_types(self):
        blocks = [
            _block("Title", "header-one"),
            _block("Sub", "header-two"),
            _block("Minor", "header-three"),
            _block("Wise words", "blockquote"),
            _block("x = 1", "code-block"),
            _block("first", "unordered-list-item"),
            _block("second", "ordered-list-item"),
            _block("Plain"),
            _block("   "),
        ]
        assert render_article_blocks(blocks) == (
            "<h1>Title</h1>\n"
            "<h2>Sub</h2>\n"
            "<h3>Minor</h3>\n"
            "<blockquote>Wise words</blockquote>\n"
            "<pre><code>x = 1</code></pre>\n"
            "<li>first</li>\n"
            "<li>second</li>\n"
            "<p>Plain</p>\n"
            "<br/>\n"
        )

    def test_atomic_image(self):
        graph = MediaEntityGraph(media_refs={"0": "m1"}, media_urls={"m1": "https://pbs/img.jpg"})
        html = render_article_blocks([_block("Before"), _block(" ", "atomic", 0), _block("After")], graph)
        assert html == (
            "<p>Before</p>\n"
            '<p><img src="https://pbs/img.jpg" alt="Article image" style="max-width: 100%;"></p>\n'
            "<p>After</p>\n"
        )

    def test_atomic_without_match_renders_nothing(self):
        graph = MediaEntityGraph(media_refs={"0": "m1"})
        html = render_article_blocks([_block("Before"), _block(" ", "atomic", 0), _block("After")], graph)
        assert html == "<p>Before</p>\n<p>After</p>\n"

    def test_atomic_without_graph(self):
        html = render_article_blocks([_block("A"), _block(" ", "atomic", 5), _block("B")])
        assert html == "<p>A</p>\n<p>B</p>\n"

    def test_atomic_divider_and_quote(self):
        quote = QuotedPost(author="Carol", handle="carol", text="hi", url="https://x.com/carol/status/9")
        graph = MediaEntityGraph(dividers=frozenset({"1"}), quotes={"2": quote})
        html = render_article_blocks([_block(" ", "atomic", 1), _block(" ", "atomic", 2)], graph)
        assert html.startswith("<hr/>\n<blockquote")
        assert "<strong>Carol</strong> (@carol):" in html

    def test_image_takes_priority_over_quote(self):
        quote = QuotedPost(author="Q", handle="q", text="t")
        graph = MediaEntityGraph(
            media_refs={"3": "m"}, media_urls={"m": "https://pbs/i.png"}, quotes={"3": quote}
        )
        html = render_article_blocks([_block(" ", "atomic", 3)], graph)
        assert "<img" in html
        assert "<blockquote" not in html


class TestMediaEntityGraph:
    def test_from_list_entity_map(self):
        article = {
            "content": {
                "entityMap": [
                    {"key": "0", "value": {"type": "MEDIA", "data": {"mediaItems": [{"mediaId": "77"}]}}},
                    {"key": "1", "value": {"type": "DIVIDER", "data": {}}},
                    {"key": "2", "value": {"type": "TWEET", "data": {"tweetId": "555"}}},
                ]
            },
            "media_entities": [
                {"media_id": "77", "media_info": {"original_img_url": "https://pbs/77.jpg"}}
            ],
        }
        graph = MediaEntityGraph.from_article(article)

        assert graph.image_url("0") == "https://pbs/77.jpg"
        assert graph.is_divider("1") is True
        assert graph.tweet_refs == {"2": "555"}
        assert graph.image_url("9") is None
        assert graph.quote("2") is None

    def test_from_dict_entity_map(self):
        article = {
            "content": {
                "entityMap": {"4": {"type": "MEDIA", "data": {"mediaItems": [{"mediaId": 8}]}}}
            },
            "media_entities": [{"media_id": 8, "media_info": {"original_img_url": "https://pbs/8.jpg"}}],
        }
        assert MediaEntityGraph.from_article(article).image_url("4") == "https://pbs/8.jpg"

    def test_malformed_entities_ignored(self):
        article = {
            "content": {"entityMap": [None, {"key": "0"}, {"key": "1", "value": {"type": "MEDIA"}}]},
            "media_entities": "nope",
        }
        graph = MediaEntityGraph.from_article(article)
        assert graph.image_url("1") is None


class TestQuotedPost:
    def test_from_api_builds_canonical_url(self):
        quote = QuotedPost.from_api({"author": {"name": "Dan", "screen_name": "dan"}, "text": "hey"}, "42")
        assert quote.url == "https://x.com/dan/status/42"

    def test_from_api_defaults_and_truncation(self):
        quote = QuotedPost.from_api({"text": "y" * 400, "url": "https://x.com/u/status/1"})
        assert quote.author == "Unknown"
        assert len(quote.text) == 280
        assert quote.text.endswith("...")
        assert quote.url == "https://x.com/u/status/1"

    def test_article_title_rendered(self):
        quote = QuotedPost.from_api(
            {"author": {"name": "Eve", "screen_name": "eve"}, "text": "", "article": {"title": "Deep Dive"}}
        )
        html = quote.to_html()
        assert "<p><strong>Deep Dive</strong></p>" in html
        assert html.startswith(
            '<blockquote style="border-left: 3px solid #ccc; padding-left: 10px; margin: 10px 0;">'
        )


class TestShortPost:
    @responses.activate
    def test_multiline_text(self, extractor):
        responses.add(
            responses.GET,
            POST_API,
            json=_ok({"text": "line1\nline2", "author": {"name": "Alice", "screen_name": "alice"}}),
        )

        document = extractor.extract(POST_URL)

        assert document.content_html == "<p>line1</p>\n<p>line2</p>"
        assert document.title == "Tweet by @alice"
        assert document.plain_text == "line1\nline2"
        assert document.byline == "Alice"
        assert document.site_name == "Twitter/X"

    @responses.activate
    def test_blank_lines_become_nbsp(self, extractor):
        responses.add(responses.GET, POST_API, json=_ok({"text": "a\n\nb"}))
        document = extractor.extract(POST_URL)
        assert document.content_html == "<p>a</p>\n<p>&nbsp;</p>\n<p>b</p>"

    @responses.activate
    def test_photos_and_quote(self, extractor):
        responses.add(
            responses.GET,
            POST_API,
            json=_ok(
                {
                    "text": "Look",
                    "author": {"name": "Alice", "screen_name": "alice"},
                    "media": {"photos": [{"url": "https://pbs/p1.jpg"}, {"url": "https://pbs/p2.jpg"}]},
                    "quote": {"author": {"name": "Frank", "screen_name": "frank"}, "text": "Original text"},
                }
            ),
        )

        html = extractor.extract(POST_URL).content_html

        assert '<div class="media">' in html
        assert html.count('alt="Tweet image"') == 2
        assert "<blockquote" in html
        assert "Frank" in html
        assert "@frank" in html
        assert "Original text" in html
        assert html.index("Look") < html.index("media") < html.index("<blockquote")

    @responses.activate
    def test_quote_keeps_full_text_without_link(self, extractor):
        long_text = "word " * 100
        responses.add(
            responses.GET,
            POST_API,
            json=_ok(
                {
                    "text": "Look",
                    "quote": {
                        "author": {"name": "Frank", "screen_name": "frank"},
                        "text": long_text,
                        "url": "https://x.com/frank/status/5",
                    },
                }
            ),
        )

        html = extractor.extract(POST_URL).content_html

        assert f"<p>{long_text}</p>" in html
        assert "<a href" not in html
        assert "..." not in html

    @responses.activate
    def test_empty_text_fails(self, extractor):
        responses.add(responses.GET, POST_API, json=_ok({"text": "   "}))
        with pytest.raises(ExtractionError, match="Tweet has no text content"):
            extractor.extract(POST_URL)

    @responses.activate
    def test_byline_falls_back_to_handles(self, extractor):
        responses.add(responses.GET, POST_API, json=_ok({"text": "x", "author": {"screen_name": "al"}}))
        assert extractor.extract(POST_URL).byline == "al"

    @responses.activate
    def test_byline_falls_back_to_url_handle(self, extractor):
        responses.add(responses.GET, POST_API, json=_ok({"text": "x"}))
        document = extractor.extract(POST_URL)
        assert document.byline == "alice"
        assert document.title == "Tweet by @alice"


class TestApiFailures:
    @responses.activate
    def test_http_error_carries_status(self, extractor):
        responses.add(responses.GET, POST_API, status=500)
        with pytest.raises(NetworkError) as exc_info:
            extractor.extract(POST_URL)
        assert exc_info.value.message == "API error! status: 500"
        assert exc_info.value.status_code == 500

    @responses.activate
    def test_not_found_uses_api_message(self, extractor):
        responses.add(responses.GET, POST_API, json={"code": 404, "message": "NOT_FOUND"})
        with pytest.raises(NotFoundError, match="NOT_FOUND"):
            extractor.extract(POST_URL)

    @responses.activate
    def test_not_found_default_message(self, extractor):
        responses.add(responses.GET, POST_API, json={"code": 200})
        with pytest.raises(NotFoundError, match="Tweet not found or has been deleted"):
            extractor.extract(POST_URL)

    @responses.activate
    def test_invalid_json(self, extractor):
        responses.add(responses.GET, POST_API, body="<html>oops</html>", status=200)
        with pytest.raises(ParsingError):
            extractor.extract(POST_URL)

    def test_unparseable_url(self, extractor):
        with pytest.raises(ParsingError):
            extractor.extract("https://x.com/status/")

    @responses.activate
    def test_sends_json_accept_header(self, extractor):
        responses.add(responses.GET, POST_API, json=_ok({"text": "x"}))
        extractor.extract(POST_URL)
        assert responses.calls[0].request.headers["Accept"] == "application/json"


class TestArticle:
    @responses.activate
    def test_article_with_cover_and_media(self, extractor):
        article = {
            "title": "My Essay",
            "cover_media": {"media_info": {"original_img_url": "https://pbs/cover.jpg"}},
            "content": {
                "blocks": [
                    _block("Opening"),
                    _block(" ", "atomic", 0),
                    _block(""),
                    _block("Closing"),
                ],
                "entityMap": [
                    {"key": "0", "value": {"type": "MEDIA", "data": {"mediaItems": [{"mediaId": "m9"}]}}}
                ],
            },
            "media_entities": [{"media_id": "m9", "media_info": {"original_img_url": "https://pbs/m9.jpg"}}],
        }
        responses.add(
            responses.GET,
            POST_API,
            json=_ok({"author": {"name": "Alice", "screen_name": "alice"}, "article": article}),
        )

        document = extractor.extract(POST_URL)

        assert document.title == "My Essay"
        assert document.content_html.startswith(
            '<p><img src="https://pbs/cover.jpg" alt="Cover image" style="max-width: 100%;"></p>\n'
        )
        assert 'src="https://pbs/m9.jpg"' in document.content_html
        assert document.content_html.index("Opening") < document.content_html.index("m9.jpg")
        assert document.plain_text == "Opening\n\nClosing"
        assert document.byline == "Alice"
        assert document.site_name == "Twitter/X"

    @responses.activate
    def test_article_title_fallback(self, extractor):
        responses.add(
            responses.GET,
            POST_API,
            json=_ok({"author": {"screen_name": "alice"}, "article": {"content": {"blocks": [_block("Body")]}}}),
        )
        assert extractor.extract(POST_URL).title == "Article by @alice"

    @responses.activate
    def test_article_without_content_fails(self, extractor):
        responses.add(responses.GET, POST_API, json=_ok({"article": {"content": {"blocks": []}}}))
        with pytest.raises(ExtractionError):
            extractor.extract(POST_URL)

    @responses.activate
    def test_quote_fan_out_tolerates_failures(self, extractor):
        article = {
            "title": "Roundup",
            "content": {
                "blocks": [
                    _block("Intro"),
                    _block(" ", "atomic", "0"),
                    _block(" ", "atomic", "1"),
                    _block(" ", "atomic", "2"),
                    _block("Outro"),
                ],
                "entityMap": [
                    {"key": "0", "value": {"type": "TWEET", "data": {"tweetId": "101"}}},
                    {"key": "1", "value": {"type": "TWEET", "data": {"tweetId": "102"}}},
                    {"key": "2", "value": {"type": "TWEET", "data": {"tweetId": "103"}}},
                ],
            },
        }
        responses.add(responses.GET, POST_API, json=_ok({"author": {"screen_name": "alice"}, "article": article}))
        responses.add(
            responses.GET,
            f"{API}/i/status/101",
            json=_ok({"author": {"name": "Quoted One", "screen_name": "one"}, "text": "first quote"}),
        )
        responses.add(responses.GET, f"{API}/i/status/102", status=500)
        responses.add(
            responses.GET,
            f"{API}/i/status/103",
            json=_ok({"author": {"name": "Quoted Three", "screen_name": "three"}, "text": "third quote"}),
        )

        document = extractor.extract(POST_URL)
        html = document.content_html

        assert html.count("<blockquote") == 2
        assert "first quote" in html
        assert "third quote" in html
        assert "https://x.com/one/status/101" in html
        assert "102" not in html
        assert html.index("Intro") < html.index("first quote") < html.index("third quote") < html.index("Outro")

    @responses.activate
    def test_quote_with_bad_json_is_dropped(self, extractor):
        article = {
            "content": {
                "blocks": [_block("Text"), _block(" ", "atomic", "0")],
                "entityMap": {"0": {"type": "TWEET", "data": {"tweetId": "7"}}},
            }
        }
        responses.add(responses.GET, POST_API, json=_ok({"article": article}))
        responses.add(responses.GET, f"{API}/i/status/7", body="not json", status=200)

        document = extractor.extract(POST_URL)

        assert document.content_html == "<p>Text</p>\n"


def test_can_handle():
    assert TwitterExtractor.can_handle(POST_URL) is True
    assert TwitterExtractor.can_handle("https://example.com/a") is False
