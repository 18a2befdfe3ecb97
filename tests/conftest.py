"""Shared test fixtures for postpress."""

import httpx
import pytest

from postpress.config.models import PostpressConfig
from postpress.linkcard.models import LinkPreview

EXAMPLE_HTML = """\
<!doctype html>
<html>
<head>
  <title>Example Domain</title>
  <meta property="og:title" content="Example Site">
  <meta property="og:description" content="An example.">
</head>
<body><p>Hello</p></body>
</html>
"""

RICH_HTML = """\
<html>
<head>
  <title>Fallback Title</title>
  <meta name="description" content="Plain description">
  <meta property="og:site_name" content="Rich Site">
  <meta property="og:image" content="/images/cover.png">
  <link rel="shortcut icon" href="/static/favicon.png">
</head>
<body></body>
</html>
"""


class RecordingHandler:
    """MockTransport handler that serves fixed pages and records every request.

    ``pages`` maps a URL to an HTML body, an HTTP status code, or an
    exception to raise. Unknown URLs get a 404.
    """

    def __init__(self, pages: dict[str, object] | None = None):
        self.pages = pages or {}
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        page = self.pages.get(url, 404)
        if isinstance(page, Exception):
            raise page
        if isinstance(page, int):
            return httpx.Response(page, text="error")
        return httpx.Response(200, html=page)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def example_preview():
    return LinkPreview(
        title="Example Site",
        description="An example.",
        preview_image_url="",
        canonical_url="https://example.com",
        site_name="example.com",
        icon_url="https://www.google.com/s2/favicons?domain=example.com",
    )


@pytest.fixture
def sample_config():
    return PostpressConfig()


@pytest.fixture
def no_highlight_config():
    return PostpressConfig(highlight={"enabled": False})
