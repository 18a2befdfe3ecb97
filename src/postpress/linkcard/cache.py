"""Preview cache keyed by the exact URL string a card was requested for."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from postpress.linkcard.models import CacheEntry, LinkPreview

logger = logging.getLogger(__name__)


class PreviewCache:
    """In-memory URL -> LinkPreview map owned by one build.

    Entries never expire unless ``ttl_seconds`` is set, which only matters
    when the cache outlives a single build (persisted or reused by a server).
    """

    def __init__(self, ttl_seconds: float | None = None) -> None:
        self._ttl = ttl_seconds
        self._entries: dict[str, CacheEntry] = {}

    def get(self, url: str) -> LinkPreview | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[url]
            return None
        return entry.preview

    def put(self, url: str, preview: LinkPreview, is_fallback: bool = False) -> None:
        self._entries[url] = CacheEntry(
            preview=preview, stored_at=time.time(), is_fallback=is_fallback
        )

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.get(url) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def _expired(self, entry: CacheEntry) -> bool:
        if self._ttl is None:
            return False
        return time.time() - entry.stored_at > self._ttl

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: str | Path, ttl_seconds: float | None = None) -> PreviewCache:
        """Read a cache file written by :meth:`save`; a bad file yields an empty cache."""
        cache = cls(ttl_seconds=ttl_seconds)
        p = Path(path)
        if not p.is_file():
            return cache
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
            entries = raw.get("entries", {})
            for url, data in entries.items():
                entry = CacheEntry.model_validate(data)
                if not cache._expired(entry):
                    cache._entries[url] = entry
        except (json.JSONDecodeError, OSError, AttributeError, ValidationError):
            logger.warning("Corrupt preview cache at %s, starting empty", p)
            cache.clear()
        return cache

    def save(self, path: str | Path) -> None:
        """Write fetched previews to ``path``. Fallback entries stay in memory only."""
        p = Path(path)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            payload = {
                "version": 1,
                "entries": {
                    url: entry.model_dump()
                    for url, entry in self._entries.items()
                    if not entry.is_fallback and not self._expired(entry)
                },
            }
            p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            logger.warning("Failed to write preview cache to %s", p, exc_info=True)
