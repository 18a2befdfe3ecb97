"""Fetches page metadata for link cards, with caching and a no-raise fallback."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from postpress.config.models import FetchConfig
from postpress.linkcard.cache import PreviewCache
from postpress.linkcard.models import LinkPreview

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A metadata request failed; always recovered inside the fetcher."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


def host_of(url: str) -> str:
    """Hostname of ``url``, or ``""`` when it cannot be extracted."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def favicon_url(host: str, template: str) -> str:
    if not host:
        return ""
    return template.replace("{host}", host)


def fallback_preview(url: str, favicon_template: str) -> LinkPreview:
    """Preview used when metadata could not be fetched: the URL is the title."""
    host = host_of(url)
    return LinkPreview(
        title=url,
        description="",
        preview_image_url="",
        canonical_url=url,
        site_name=host or url,
        icon_url=favicon_url(host, favicon_template),
    )


def parse_preview(
    html: str | bytes,
    url: str,
    favicon_template: str,
    page_url: str | None = None,
    encoding: str | None = None,
) -> LinkPreview:
    """Build a LinkPreview from a page's HTML.

    Open Graph tags win over plain document metadata. Relative image and
    icon references resolve against ``page_url`` (the post-redirect URL).

    Raw ``bytes`` are decoded by BeautifulSoup: ``encoding`` (the
    Content-Type charset) wins, otherwise the page's ``<meta charset>``.
    """
    if isinstance(html, bytes):
        soup = BeautifulSoup(html, "html.parser", from_encoding=encoding)
    else:
        soup = BeautifulSoup(html, "html.parser")
    base = page_url or url
    host = host_of(url)

    title = _meta_content(soup, "og:title")
    if not title and soup.title is not None:
        title = soup.title.get_text(strip=True)

    description = _meta_content(soup, "og:description") or _meta_content(
        soup, "description"
    )

    image = _meta_content(soup, "og:image")
    icon = _icon_href(soup)

    return LinkPreview(
        title=title or url,
        description=description,
        preview_image_url=urljoin(base, image) if image else "",
        canonical_url=url,
        site_name=_meta_content(soup, "og:site_name") or host or url,
        icon_url=urljoin(base, icon) if icon else favicon_url(host, favicon_template),
    )


def _meta_content(soup: BeautifulSoup, key: str) -> str:
    # Sites put og:* under either attribute.
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: key})
        if tag is not None:
            value = (tag.get("content") or "").strip()
            if value:
                return value
    return ""


def _icon_href(soup: BeautifulSoup) -> str:
    for link in soup.find_all("link", href=True):
        rels = [r.lower() for r in (link.get("rel") or [])]
        if "icon" in rels:
            return link["href"].strip()
    return ""


class MetadataFetcher:
    """Resolves URLs to LinkPreviews. ``fetch_preview`` never raises.

    One request per uncached URL, no retries. Concurrent calls for the same
    URL share a single in-flight request.
    """

    def __init__(
        self,
        cache: PreviewCache | None = None,
        config: FetchConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.cache = cache if cache is not None else PreviewCache()
        self._config = config or FetchConfig()
        self._client = client
        self._owns_client = client is None
        self._inflight: dict[str, asyncio.Task[LinkPreview]] = {}
        self._semaphore: asyncio.Semaphore | None = None

    async def __aenter__(self) -> MetadataFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_preview(self, url: str) -> LinkPreview:
        cached = self.cache.get(url)
        if cached is not None:
            logger.debug("Preview cache hit: %s", url)
            return cached

        task = self._inflight.get(url)
        if task is None:
            task = asyncio.ensure_future(self._resolve(url))
            self._inflight[url] = task
            task.add_done_callback(lambda _t, key=url: self._inflight.pop(key, None))
        return await task

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resolve(self, url: str) -> LinkPreview:
        try:
            preview = await self._fetch(url)
        except FetchError as exc:
            logger.warning("Failed to fetch preview for %s: %s", url, exc.reason)
        except Exception:
            logger.warning("Unexpected error fetching preview for %s", url, exc_info=True)
        else:
            self.cache.put(url, preview)
            return preview

        preview = fallback_preview(url, self._config.favicon_service)
        self.cache.put(url, preview, is_fallback=True)
        return preview

    async def _fetch(self, url: str) -> LinkPreview:
        async with self._get_semaphore():
            client = self._get_client()
            logger.info("Fetching preview: %s", url)
            try:
                async with client.stream(
                    "GET",
                    url,
                    headers={"User-Agent": self._config.user_agent},
                    timeout=self._config.timeout,
                    follow_redirects=True,
                ) as resp:
                    resp.raise_for_status()
                    content_type = resp.headers.get("content-type", "")
                    if content_type and "html" not in content_type.lower():
                        raise FetchError(url, f"not an HTML page ({content_type})")
                    body = await _read_capped(resp, self._config.max_bytes)
                    charset = resp.charset_encoding
                    page_url = str(resp.url)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise FetchError(url, str(exc) or type(exc).__name__) from exc

        return parse_preview(
            body,
            url,
            self._config.favicon_service,
            page_url=page_url,
            encoding=charset,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._config.max_concurrency)
        return self._semaphore


async def _read_capped(resp: httpx.Response, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    size = 0
    async for chunk in resp.aiter_bytes():
        chunks.append(chunk)
        size += len(chunk)
        if size >= max_bytes:
            break
    return b"".join(chunks)[:max_bytes]
