"""Pydantic models for the link-card subsystem."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LinkPreview(BaseModel):
    """Metadata shown on a link card. Missing upstream values are empty strings."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    preview_image_url: str = ""
    canonical_url: str
    site_name: str = ""
    icon_url: str = ""


class CacheEntry(BaseModel):
    """A cached preview plus the time it was stored, for TTL checks.

    ``is_fallback`` marks previews synthesized after a failed fetch. They
    stop repeat requests within a build but are never written to disk.
    """

    preview: LinkPreview
    stored_at: float
    is_fallback: bool = False
