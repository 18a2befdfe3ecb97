"""Replaces bare-URL paragraphs with link cards."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from postpress.linkcard.card import build_link_card
from postpress.linkcard.fetcher import MetadataFetcher
from postpress.transform import TreeTransform
from postpress.tree import Element, Parent, Root, Text, replace_child_at, walk

logger = logging.getLogger(__name__)

BARE_URL_RE = re.compile(r"^https?://\S+$")


@dataclass
class PendingCard:
    """A paragraph slot awaiting its card."""

    parent: Parent
    index: int
    url: str


def bare_url_of(paragraph: Element) -> str | None:
    """Return the URL if ``paragraph`` holds nothing but a bare absolute URL.

    Accepts a lone text child, or a lone link whose text equals its href.
    """
    if paragraph.tag_name != "p" or len(paragraph.children) != 1:
        return None
    child = paragraph.children[0]

    if isinstance(child, Text):
        text = child.value.strip()
        return text if BARE_URL_RE.match(text) else None

    if (
        isinstance(child, Element)
        and child.tag_name == "a"
        and len(child.children) == 1
        and isinstance(child.children[0], Text)
    ):
        href = child.properties.get("href")
        text = child.children[0].value.strip()
        if isinstance(href, str) and href and text == href and BARE_URL_RE.match(href):
            return href
    return None


def collect_candidates(tree: Root) -> list[PendingCard]:
    """Read-only walk recording every bare-URL paragraph slot."""
    pending: list[PendingCard] = []
    for node, index, parent in walk(tree):
        url = bare_url_of(node)
        if url is not None:
            pending.append(PendingCard(parent=parent, index=index, url=url))
    return pending


class LinkCardTransform(TreeTransform):
    def __init__(self, fetcher: MetadataFetcher, show_site_name: bool = False):
        self.fetcher = fetcher
        self.show_site_name = show_site_name

    async def apply(self, tree: Root) -> Root:
        pending = collect_candidates(tree)
        if not pending:
            return tree

        logger.debug("Resolving %d link card(s)", len(pending))
        results = await asyncio.gather(
            *(self.fetcher.fetch_preview(p.url) for p in pending),
            return_exceptions=True,
        )

        for slot, result in zip(pending, results):
            if isinstance(result, BaseException):
                logger.error("Link card for %s skipped: %s", slot.url, result)
                continue
            card = build_link_card(result, show_site_name=self.show_site_name)
            replace_child_at(slot.parent, slot.index, card)
        return tree
