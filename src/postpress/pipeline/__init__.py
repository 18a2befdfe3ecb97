"""Markdown-to-HTML compilation pipeline."""

from postpress.pipeline.compiler import MarkdownCompiler, compile_markdown
from postpress.pipeline.highlight import HighlightTransform, highlight_code
from postpress.pipeline.parser import create_markdown_parser, parse_markdown

__all__ = [
    "HighlightTransform",
    "MarkdownCompiler",
    "compile_markdown",
    "create_markdown_parser",
    "highlight_code",
    "parse_markdown",
]
