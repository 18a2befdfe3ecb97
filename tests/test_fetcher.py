"""Tests for metadata parsing and MetadataFetcher (network mocked with httpx.MockTransport)."""

import asyncio

import httpx
import pytest

from conftest import EXAMPLE_HTML, RICH_HTML, RecordingHandler, mock_client
from postpress.config.models import DEFAULT_FAVICON_SERVICE, FetchConfig
from postpress.linkcard.cache import PreviewCache
from postpress.linkcard.fetcher import (
    MetadataFetcher,
    fallback_preview,
    host_of,
    parse_preview,
)
from postpress.linkcard.models import LinkPreview

GOOGLE_ICON = "https://www.google.com/s2/favicons?domain=example.com"


# ---------------------------------------------------------------------------
# parse_preview / fallback_preview
# ---------------------------------------------------------------------------


class TestParsePreview:
    def test_open_graph_fields_win(self):
        p = parse_preview(EXAMPLE_HTML, "https://example.com", DEFAULT_FAVICON_SERVICE)
        assert p == LinkPreview(
            title="Example Site",
            description="An example.",
            preview_image_url="",
            canonical_url="https://example.com",
            site_name="example.com",
            icon_url=GOOGLE_ICON,
        )

    def test_document_metadata_fallbacks_and_relative_urls(self):
        p = parse_preview(RICH_HTML, "https://rich.test/post", DEFAULT_FAVICON_SERVICE)
        assert p.title == "Fallback Title"
        assert p.description == "Plain description"
        assert p.site_name == "Rich Site"
        assert p.preview_image_url == "https://rich.test/images/cover.png"
        assert p.icon_url == "https://rich.test/static/favicon.png"

    def test_relative_urls_resolve_against_final_page_url(self):
        p = parse_preview(
            RICH_HTML,
            "https://rich.test/old",
            DEFAULT_FAVICON_SERVICE,
            page_url="https://cdn.rich.test/new/",
        )
        assert p.preview_image_url == "https://cdn.rich.test/images/cover.png"
        assert p.canonical_url == "https://rich.test/old"

    def test_og_tags_under_name_attribute(self):
        html = '<meta name="og:title" content="Named">'
        assert parse_preview(html, "https://x.test", DEFAULT_FAVICON_SERVICE).title == "Named"

    def test_empty_page_uses_url_as_title(self):
        p = parse_preview("<html></html>", "https://example.com/a", DEFAULT_FAVICON_SERVICE)
        assert p.title == "https://example.com/a"
        assert p.description == ""
        assert p.preview_image_url == ""
        assert p.site_name == "example.com"
        assert p.icon_url == GOOGLE_ICON


class TestFallbackPreview:
    def test_fallback_fields(self):
        p = fallback_preview("https://example.com", DEFAULT_FAVICON_SERVICE)
        assert p == LinkPreview(
            title="https://example.com",
            description="",
            preview_image_url="",
            canonical_url="https://example.com",
            site_name="example.com",
            icon_url=GOOGLE_ICON,
        )

    def test_unparsable_host(self):
        p = fallback_preview("http://[broken", DEFAULT_FAVICON_SERVICE)
        assert p.title == "http://[broken"
        assert p.site_name == "http://[broken"
        assert p.icon_url == ""

    def test_host_of(self):
        assert host_of("https://Example.COM:8080/path") == "example.com"
        assert host_of("http://[broken") == ""
        assert host_of("not a url") == ""


# ---------------------------------------------------------------------------
# MetadataFetcher
# ---------------------------------------------------------------------------


class TestMetadataFetcher:
    @pytest.mark.asyncio
    async def test_successful_fetch(self):
        handler = RecordingHandler({"https://example.com": EXAMPLE_HTML})
        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(client=client)
            p = await fetcher.fetch_preview("https://example.com")

        assert p.title == "Example Site"
        assert p.description == "An example."
        assert handler.requests == ["https://example.com"]

    @pytest.mark.asyncio
    async def test_sends_configured_user_agent(self):
        seen = []

        def handler(request):
            seen.append(request.headers["user-agent"])
            return httpx.Response(200, html=EXAMPLE_HTML)

        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(config=FetchConfig(user_agent="test-agent/1.0"), client=client)
            await fetcher.fetch_preview("https://example.com")

        assert seen == ["test-agent/1.0"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page",
        [
            500,
            404,
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("too slow"),
            RuntimeError("unexpected"),
        ],
    )
    async def test_failures_degrade_to_fallback(self, page):
        handler = RecordingHandler({"https://example.com": page})
        async with mock_client(handler) as client:
            p = await MetadataFetcher(client=client).fetch_preview("https://example.com")

        assert p == fallback_preview("https://example.com", DEFAULT_FAVICON_SERVICE)

    @pytest.mark.asyncio
    async def test_non_html_response_falls_back(self):
        def handler(request):
            return httpx.Response(200, json={"title": "nope"})

        async with mock_client(handler) as client:
            p = await MetadataFetcher(client=client).fetch_preview("https://example.com/api")

        assert p.title == "https://example.com/api"

    @pytest.mark.asyncio
    async def test_malformed_url_never_raises(self):
        handler = RecordingHandler()
        async with mock_client(handler) as client:
            p = await MetadataFetcher(client=client).fetch_preview("http://[broken")

        assert p.title == "http://[broken"
        assert p.site_name == "http://[broken"
        assert p.icon_url == ""

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        handler = RecordingHandler({"https://example.com": 503})
        async with mock_client(handler) as client:
            await MetadataFetcher(client=client).fetch_preview("https://example.com")
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_second_call_hits_cache(self):
        handler = RecordingHandler({"https://example.com": EXAMPLE_HTML})
        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(client=client)
            first = await fetcher.fetch_preview("https://example.com")
            second = await fetcher.fetch_preview("https://example.com")

        assert first is second
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_fallbacks_are_cached(self):
        handler = RecordingHandler({"https://example.com": 500})
        cache = PreviewCache()
        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(cache=cache, client=client)
            await fetcher.fetch_preview("https://example.com")
            await fetcher.fetch_preview("https://example.com")

        assert len(handler.requests) == 1
        assert cache.get("https://example.com").title == "https://example.com"

    @pytest.mark.asyncio
    async def test_concurrent_requests_for_same_url_share_one_fetch(self):
        calls = []

        async def handler(request):
            calls.append(str(request.url))
            await asyncio.sleep(0.01)
            return httpx.Response(200, html=EXAMPLE_HTML)

        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(client=client)
            results = await asyncio.gather(
                fetcher.fetch_preview("https://example.com"),
                fetcher.fetch_preview("https://example.com"),
                fetcher.fetch_preview("https://example.com"),
            )

        assert calls == ["https://example.com"]
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_shared_cache_across_fetchers(self, example_preview):
        cache = PreviewCache()
        cache.put("https://example.com", example_preview)
        handler = RecordingHandler()
        async with mock_client(handler) as client:
            p = await MetadataFetcher(cache=cache, client=client).fetch_preview("https://example.com")

        assert p is example_preview
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        handler = RecordingHandler({"https://example.com": EXAMPLE_HTML})
        async with mock_client(handler) as client:
            async with MetadataFetcher(client=client) as fetcher:
                await fetcher.fetch_preview("https://example.com")
            assert not client.is_closed

    @pytest.mark.asyncio
    async def test_fallbacks_are_flagged_in_cache(self):
        handler = RecordingHandler({"https://ok.test": EXAMPLE_HTML, "https://down.test": 500})
        cache = PreviewCache()
        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(cache=cache, client=client)
            await fetcher.fetch_preview("https://ok.test")
            await fetcher.fetch_preview("https://down.test")

        assert cache._entries["https://ok.test"].is_fallback is False
        assert cache._entries["https://down.test"].is_fallback is True


# ---------------------------------------------------------------------------
# Encodings
# ---------------------------------------------------------------------------


class TestCharsetHandling:
    @pytest.mark.asyncio
    async def test_meta_charset_used_when_header_has_none(self):
        body = (
            '<html><head><meta charset="Shift_JIS">'
            "<title>日本語のタイトル</title></head></html>"
        ).encode("shift_jis")

        def handler(request):
            return httpx.Response(200, content=body, headers={"content-type": "text/html"})

        async with mock_client(handler) as client:
            p = await MetadataFetcher(client=client).fetch_preview("https://jp.test")

        assert p.title == "日本語のタイトル"

    @pytest.mark.asyncio
    async def test_header_charset_wins(self):
        body = (
            '<html><head><meta property="og:description" content="説明文です">'
            "<title>見出し</title></head></html>"
        ).encode("euc_jp")

        def handler(request):
            return httpx.Response(
                200, content=body, headers={"content-type": "text/html; charset=EUC-JP"}
            )

        async with mock_client(handler) as client:
            p = await MetadataFetcher(client=client).fetch_preview("https://jp.test")

        assert p.title == "見出し"
        assert p.description == "説明文です"

    def test_parse_preview_accepts_bytes(self):
        p = parse_preview(
            EXAMPLE_HTML.encode("utf-8"), "https://example.com", DEFAULT_FAVICON_SERVICE
        )
        assert p.title == "Example Site"


# ---------------------------------------------------------------------------
# Resource limits
# ---------------------------------------------------------------------------


class TestFetchLimits:
    @pytest.mark.asyncio
    async def test_body_read_stops_at_max_bytes(self):
        head = "<html><head><!--" + "x" * 2000 + "-->"
        page = head + "<title>Too Late</title></head></html>"

        def handler(request):
            return httpx.Response(200, html=page)

        config = FetchConfig(max_bytes=1024)
        async with mock_client(handler) as client:
            p = await MetadataFetcher(config=config, client=client).fetch_preview(
                "https://big.test"
            )

        assert p.title == "https://big.test"

    @pytest.mark.asyncio
    async def test_title_within_max_bytes_is_read(self):
        page = "<html><head><title>Early</title><!--" + "x" * 2000 + "--></head></html>"

        def handler(request):
            return httpx.Response(200, html=page)

        config = FetchConfig(max_bytes=1024)
        async with mock_client(handler) as client:
            p = await MetadataFetcher(config=config, client=client).fetch_preview(
                "https://big.test"
            )

        assert p.title == "Early"

    @pytest.mark.asyncio
    async def test_concurrent_requests_bounded_by_max_concurrency(self):
        active = 0
        peak = 0

        async def handler(request):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return httpx.Response(200, html=EXAMPLE_HTML)

        urls = [f"https://site{i}.test" for i in range(5)]
        config = FetchConfig(max_concurrency=2)
        async with mock_client(handler) as client:
            fetcher = MetadataFetcher(config=config, client=client)
            results = await asyncio.gather(*(fetcher.fetch_preview(u) for u in urls))

        assert [r.title for r in results] == ["Example Site"] * 5
        assert peak == 2
