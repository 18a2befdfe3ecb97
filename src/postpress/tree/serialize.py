"""HTML serialization for the document tree."""

from __future__ import annotations

from html import escape
from typing import Any

from postpress.tree.nodes import DocumentNode, Element, Root, Text

# Elements that never carry content or a closing tag.
VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
})

# Property names whose HTML attribute spelling differs.
_ATTRIBUTE_NAMES = {"className": "class", "htmlFor": "for"}


def to_html(node: DocumentNode | Root) -> str:
    """Serialize ``node`` (or a whole fragment) to an HTML string."""
    parts: list[str] = []
    _write(node, parts)
    return "".join(parts)


def _write(node: DocumentNode | Root, parts: list[str]) -> None:
    if isinstance(node, Text):
        parts.append(escape(node.value, quote=False))
        return
    if isinstance(node, Root):
        for child in node.children:
            _write(child, parts)
        return

    parts.append(f"<{node.tag_name}{_attributes(node)}>")
    if node.tag_name in VOID_ELEMENTS:
        return
    for child in node.children:
        _write(child, parts)
    parts.append(f"</{node.tag_name}>")


def _attributes(node: Element) -> str:
    rendered: list[str] = []
    for key, value in node.properties.items():
        name = _ATTRIBUTE_NAMES.get(key, key)
        text = _attribute_value(value)
        if text is None:
            continue
        if text is True:
            rendered.append(f" {name}")
        else:
            rendered.append(f' {name}="{escape(text, quote=True)}"')
    return "".join(rendered)


def _attribute_value(value: Any) -> str | bool | None:
    if value is None or value is False:
        return None
    if value is True:
        return True
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)
