"""
BeautifulSoup helpers shared by the extractors.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import Tag

WHITESPACE_REGEX = re.compile(r"\s+")
IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy")


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    collapsed = WHITESPACE_REGEX.sub(" ", value).strip()
    return collapsed or None


def absolutize(base_url: str, value: str | None) -> str | None:
    """
    Resolve ``value`` against ``base_url``; unparsable input is returned as-is.
    """

    if value is None or not value.strip():
        return None
    raw = value.strip()
    try:
        return urljoin(base_url, raw)
    except ValueError:
        return raw


def attribute_text(node: Tag, name: str) -> str | None:
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    if value is None:
        return None
    return clean_text(str(value))


def best_image_source(node: Tag) -> str | None:
    """
    Pick the largest ``srcset`` candidate, else the first populated source attribute.
    """

    srcset = attribute_text(node, "srcset") or attribute_text(node, "data-srcset")
    if srcset:
        candidates = [item.strip() for item in srcset.split(",") if item.strip()]
        if candidates:
            return candidates[-1].split(" ")[0]
    for name in IMAGE_SOURCE_ATTRIBUTES:
        value = attribute_text(node, name)
        if value:
            return value
    return None


def image_node(node: Tag) -> Tag | None:
    if node.name == "img":
        return node
    found = node.find("img")
    return found if isinstance(found, Tag) else None


def link_href(node: Tag) -> str | None:
    href = attribute_text(node, "href")
    if href:
        return href
    anchor = node.find("a", href=True)
    if isinstance(anchor, Tag):
        return attribute_text(anchor, "href")
    parent = node.find_parent("a", href=True)
    if isinstance(parent, Tag):
        return attribute_text(parent, "href")
    return None
