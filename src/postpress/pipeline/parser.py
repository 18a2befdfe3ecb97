"""Markdown parsing into the document tree via markdown-it-py."""

from __future__ import annotations

import logging
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from postpress.tree import DocumentNode, Element, Root, Text

logger = logging.getLogger(__name__)


class _PostMarkdownIt(MarkdownIt):
    def normalizeLinkText(self, link: str) -> str:
        # Autolink text stays as written, so <https://x/%E6%97%A5> keeps
        # text == href and can still become a link card.
        return link


def create_markdown_parser() -> MarkdownIt:
    """CommonMark plus tables and strikethrough; bare URLs are not autolinked."""
    return _PostMarkdownIt("commonmark").enable(["table", "strikethrough"])


def parse_markdown(source: str, md: MarkdownIt | None = None) -> Root:
    """Parse markdown text and convert it to an HTML-flavored tree."""
    md = md or create_markdown_parser()
    syntax_tree = SyntaxTreeNode(md.parse(source))
    root = Root()
    _append_children(root.children, syntax_tree.children)
    return root


def _append_children(target: list[DocumentNode], nodes: list[SyntaxTreeNode]) -> None:
    for node in nodes:
        for converted in _convert(node):
            _append(target, converted)


def _append(target: list[DocumentNode], node: DocumentNode) -> None:
    # Keep runs of text in one node, as a soft break does not end a text run.
    if isinstance(node, Text) and target and isinstance(target[-1], Text):
        target[-1] = Text(target[-1].value + node.value)
    else:
        target.append(node)


def _convert(node: SyntaxTreeNode) -> list[DocumentNode]:
    kind = node.type

    if kind in ("text", "text_special"):
        return [Text(node.content)]
    if kind == "softbreak":
        return [Text("\n")]
    if kind == "hardbreak":
        return [Element("br"), Text("\n")]
    if kind == "inline":
        children: list[DocumentNode] = []
        _append_children(children, node.children)
        return children
    if kind == "code_inline":
        return [Element("code", {}, [Text(node.content)])]
    if kind in ("fence", "code_block"):
        return [_code_block(node)]
    if kind == "image":
        return [_image(node)]
    if kind in ("html_block", "html_inline"):
        logger.debug("Dropping raw HTML: %r", node.content[:60])
        return []
    if kind == "paragraph" and node.hidden:
        # Tight list items render their text without a <p> wrapper.
        children = []
        _append_children(children, node.children)
        return children

    element = Element(node.tag, _properties(node.attrs))
    _append_children(element.children, node.children)
    return [element]


def _code_block(node: SyntaxTreeNode) -> Element:
    props: dict[str, Any] = {}
    info = (node.info or "").strip() if node.type == "fence" else ""
    if info:
        props["className"] = [f"language-{info.split()[0]}"]
    return Element("pre", {}, [Element("code", props, [Text(node.content)])])


def _image(node: SyntaxTreeNode) -> Element:
    props: dict[str, Any] = {"src": node.attrs.get("src", ""), "alt": _plain_text(node)}
    if node.attrs.get("title"):
        props["title"] = node.attrs["title"]
    return Element("img", props)


def _plain_text(node: SyntaxTreeNode) -> str:
    if node.type in ("text", "text_special", "code_inline"):
        return node.content
    if node.type in ("softbreak", "hardbreak"):
        return "\n"
    return "".join(_plain_text(child) for child in node.children)


def _properties(attrs: dict[str, Any]) -> dict[str, Any]:
    props: dict[str, Any] = {}
    for key, value in attrs.items():
        if key == "class":
            props["className"] = str(value).split()
        else:
            props[key] = value
    return props
