"""Builds the link-card subtree that replaces a bare-URL paragraph."""

from __future__ import annotations

from postpress.linkcard.models import LinkPreview
from postpress.tree import DocumentNode, Element, Text


def _div(class_name: str, children: list[DocumentNode]) -> Element:
    return Element("div", {"className": [class_name]}, children)


def build_link_card(preview: LinkPreview, show_site_name: bool = False) -> Element:
    """Return ``a.link-card`` for ``preview``.

    The meta row shows the card's URL unless ``show_site_name`` is set.
    """
    content: list[DocumentNode] = [
        _div("link-card-title", [Text(preview.title)]),
    ]
    if preview.description:
        content.append(_div("link-card-description", [Text(preview.description)]))

    meta: list[DocumentNode] = []
    if preview.icon_url:
        meta.append(
            Element(
                "img",
                {
                    "src": preview.icon_url,
                    "alt": "",
                    "className": ["link-card-favicon"],
                    "width": 16,
                    "height": 16,
                },
            )
        )
    site_label = preview.site_name if show_site_name and preview.site_name else preview.canonical_url
    meta.append(
        Element("span", {"className": ["link-card-site-name"]}, [Text(site_label)])
    )
    content.append(_div("link-card-meta", meta))

    children: list[DocumentNode] = [_div("link-card-content", content)]
    if preview.preview_image_url:
        children.append(
            _div(
                "link-card-thumbnail",
                [Element("img", {"src": preview.preview_image_url, "alt": preview.title})],
            )
        )

    return Element(
        "a",
        {
            "href": preview.canonical_url,
            "className": ["link-card"],
            "target": "_blank",
            "rel": "noopener noreferrer",
        },
        children,
    )
