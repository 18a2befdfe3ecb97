"""Document tree model: text and element nodes under a fragment root."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union


class TreeIndexError(IndexError):
    """A replacement targeted a child slot that does not exist."""


@dataclass
class Text:
    value: str


@dataclass
class Element:
    tag_name: str
    properties: dict[str, Any] = field(default_factory=dict)
    children: list[DocumentNode] = field(default_factory=list)

    def has_class(self, name: str) -> bool:
        return name in self.properties.get("className", [])


@dataclass
class Root:
    """Top of a parsed fragment. Serializes as its children only."""

    children: list[DocumentNode] = field(default_factory=list)


DocumentNode = Union[Text, Element]
Parent = Union[Root, Element]


def replace_child_at(parent: Parent, index: int, replacement: DocumentNode) -> None:
    """Swap the child at ``index`` for ``replacement``, keeping sibling order."""
    if index < 0 or index >= len(parent.children):
        raise TreeIndexError(
            f"child index {index} out of range for parent with "
            f"{len(parent.children)} children"
        )
    parent.children[index] = replacement


def walk(root: Parent) -> Iterator[tuple[Element, int, Parent]]:
    """Yield ``(element, index, parent)`` for every element, pre-order.

    Children are read through an explicit stack, so replacing the node just
    yielded does not disturb the rest of the walk; the replacement's own
    children are not visited.
    """
    stack: list[tuple[Parent, int]] = [(root, 0)]
    while stack:
        parent, index = stack.pop()
        if index >= len(parent.children):
            continue
        stack.append((parent, index + 1))
        node = parent.children[index]
        if not isinstance(node, Element):
            continue
        yield node, index, parent
        # Re-read the slot: the consumer may have swapped the node out.
        current = parent.children[index]
        if isinstance(current, Element) and current is node:
            stack.append((node, 0))


def text_content(node: DocumentNode | Root) -> str:
    """Concatenate every text value below ``node`` in document order."""
    if isinstance(node, Text):
        return node.value
    return "".join(text_content(child) for child in node.children)
