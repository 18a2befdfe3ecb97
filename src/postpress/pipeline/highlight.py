"""Syntax highlighting for fenced code blocks with Pygments."""

from __future__ import annotations

import logging

from pygments.lexers import get_lexer_by_name
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

from postpress.transform import TreeTransform
from postpress.tree import DocumentNode, Element, Root, Text, text_content, walk

logger = logging.getLogger(__name__)

HIGHLIGHT_CLASS = "highlight"


def _language_of(code: Element) -> str | None:
    for name in code.properties.get("className", []):
        if name.startswith("language-"):
            return name[len("language-"):]
    return None


def _css_class(ttype) -> str:
    # Walk up to the nearest token type Pygments has a short name for.
    while ttype not in STANDARD_TYPES:
        ttype = ttype.parent
    return STANDARD_TYPES[ttype]


def highlight_code(code: str, language: str) -> list[DocumentNode] | None:
    """Tokenize ``code`` into classed spans, or None for an unknown language."""
    try:
        lexer = get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return None

    nodes: list[DocumentNode] = []
    for ttype, value in lexer.get_tokens(code):
        if not value:
            continue
        css = _css_class(ttype)
        if not css:
            # Plain text tokens carry no class.
            if nodes and isinstance(nodes[-1], Text):
                nodes[-1] = Text(nodes[-1].value + value)
            else:
                nodes.append(Text(value))
            continue
        nodes.append(Element("span", {"className": [css]}, [Text(value)]))
    return nodes


class HighlightTransform(TreeTransform):
    """Rewrites ``pre > code.language-*`` contents into Pygments token spans."""

    async def apply(self, tree: Root) -> Root:
        for node, _index, parent in walk(tree):
            if node.tag_name != "code" or not isinstance(parent, Element):
                continue
            if parent.tag_name != "pre" or node.has_class(HIGHLIGHT_CLASS):
                continue
            language = _language_of(node)
            if language is None:
                continue
            highlighted = highlight_code(text_content(node), language)
            if highlighted is None:
                logger.debug("No lexer for language %r, leaving block as-is", language)
                continue
            node.children = highlighted
            node.properties["className"] = [*node.properties["className"], HIGHLIGHT_CLASS]
        return tree
