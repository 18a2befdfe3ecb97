"""MarkdownCompiler: parse, transform, and serialize one document at a time."""

from __future__ import annotations

import logging

import httpx

from postpress.config.models import PostpressConfig
from postpress.linkcard.cache import PreviewCache
from postpress.linkcard.fetcher import MetadataFetcher
from postpress.linkcard.transform import LinkCardTransform
from postpress.pipeline.highlight import HighlightTransform
from postpress.pipeline.parser import create_markdown_parser, parse_markdown
from postpress.transform import TransformPipeline, TreeTransform
from postpress.tree import to_html

logger = logging.getLogger(__name__)


class MarkdownCompiler:
    """Compiles markdown bodies to HTML fragments.

    Holds no per-document state: the preview cache is the only thing shared
    between calls, and it is passed in (or created) once per build.
    """

    def __init__(
        self,
        config: PostpressConfig | None = None,
        cache: PreviewCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or PostpressConfig()
        self.cache = cache if cache is not None else PreviewCache()
        self._client = client
        self._md = create_markdown_parser()

    def _transforms(self, fetcher: MetadataFetcher) -> list[TreeTransform]:
        transforms: list[TreeTransform] = []
        if self.config.linkcard.enabled:
            transforms.append(
                LinkCardTransform(fetcher, show_site_name=self.config.linkcard.show_site_name)
            )
        if self.config.highlight.enabled:
            transforms.append(HighlightTransform())
        return transforms

    async def compile(self, markdown_source: str) -> str:
        tree = parse_markdown(markdown_source, self._md)
        async with MetadataFetcher(self.cache, self.config.fetch, client=self._client) as fetcher:
            tree = await TransformPipeline(self._transforms(fetcher)).apply(tree)
        html = to_html(tree)
        logger.debug("Compiled %d chars of markdown to %d chars of HTML", len(markdown_source), len(html))
        return html


async def compile_markdown(
    markdown_source: str,
    config: PostpressConfig | None = None,
    cache: PreviewCache | None = None,
) -> str:
    """One-shot helper around :class:`MarkdownCompiler`."""
    return await MarkdownCompiler(config, cache).compile(markdown_source)
