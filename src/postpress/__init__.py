"""postpress: markdown blog compiler with link-card enrichment."""

from postpress.linkcard import LinkPreview, PreviewCache
from postpress.pipeline import MarkdownCompiler, compile_markdown

__version__ = "0.1.0"

__all__ = ["LinkPreview", "MarkdownCompiler", "PreviewCache", "compile_markdown"]
