"""Link cards: bare URLs rendered as rich previews from fetched page metadata."""

from postpress.linkcard.cache import PreviewCache
from postpress.linkcard.card import build_link_card
from postpress.linkcard.fetcher import FetchError, MetadataFetcher, fallback_preview, parse_preview
from postpress.linkcard.models import LinkPreview
from postpress.linkcard.transform import LinkCardTransform, bare_url_of

__all__ = [
    "FetchError",
    "LinkCardTransform",
    "LinkPreview",
    "MetadataFetcher",
    "PreviewCache",
    "bare_url_of",
    "build_link_card",
    "fallback_preview",
    "parse_preview",
]
