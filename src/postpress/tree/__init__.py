"""In-memory document tree shared by every compiler stage."""

from postpress.tree.nodes import (
    DocumentNode,
    Element,
    Parent,
    Root,
    Text,
    TreeIndexError,
    replace_child_at,
    text_content,
    walk,
)
from postpress.tree.serialize import VOID_ELEMENTS, to_html

__all__ = [
    "DocumentNode",
    "Element",
    "Parent",
    "Root",
    "Text",
    "TreeIndexError",
    "VOID_ELEMENTS",
    "replace_child_at",
    "text_content",
    "to_html",
    "walk",
]
