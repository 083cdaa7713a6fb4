"""
RSS 2.0 reading and writing.

Converts between RSS XML and the Channel / FeedItem types. Elements that
have no dedicated field (channel images, ``atom:link``, ``dc:*`` extensions
and so on) are kept as raw XML strings and written back unchanged, so an
item's payload survives a read/write cycle.
"""

from __future__ import annotations

import copy
from pathlib import Path
import xml.etree.ElementTree as ET

from embargo_feed.errors import StoreError
from embargo_feed.types import Channel, FeedItem
from embargo_feed.utils import atomic_write_text


CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
CONTENT_ENCODED = f"{{{CONTENT_NS}}}encoded"

# Keep the usual prefixes instead of ns0, ns1, ...
NAMESPACES = {
    "content": CONTENT_NS,
    "dc": "http://purl.org/dc/elements/1.1/",
    "atom": "http://www.w3.org/2005/Atom",
    "media": "http://search.yahoo.com/mrss/",
}
for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

_CHANNEL_FIELDS = {"title", "link", "description", "pubDate", "lastBuildDate", "item"}
_ITEM_FIELDS = {"title", "link", "description", "author", "category", "comments", "guid", "pubDate", CONTENT_ENCODED}


class RssParseError(ValueError):
    """The document is not a well-formed RSS 2.0 feed."""


def parse_channel(data: str | bytes) -> Channel:
    """Parse an RSS document into a Channel.

    Raises:
        RssParseError: On malformed XML, a missing <channel>, or an item
            with neither guid nor link
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise RssParseError(f"Malformed XML: {exc}") from exc

    if root.tag != "rss":
        raise RssParseError(f"Expected <rss> root element, found <{root.tag}>")
    node = root.find("channel")
    if node is None:
        raise RssParseError("Missing <channel> element")

    return Channel(
        title=_text(node, "title") or "",
        link=_text(node, "link") or "",
        description=_text(node, "description") or "",
        pub_date=_text(node, "pubDate"),
        last_build_date=_text(node, "lastBuildDate"),
        items=[_parse_item(el) for el in node.findall("item")],
        extra=[_raw(child) for child in node if child.tag not in _CHANNEL_FIELDS],
    )


def _parse_item(node: ET.Element) -> FeedItem:
    link = _text(node, "link")
    guid_el = node.find("guid")
    guid = guid_el.text.strip() if guid_el is not None and guid_el.text else None
    guid_is_permalink = None
    if guid_el is not None and "isPermaLink" in guid_el.attrib:
        guid_is_permalink = guid_el.attrib["isPermaLink"].strip().lower() == "true"

    if not guid:
        if not link:
            raise RssParseError(f"Item without guid or link: {_text(node, 'title')!r}")
        guid = link

    return FeedItem(
        guid=guid,
        title=_text(node, "title"),
        link=link,
        pub_date=_text(node, "pubDate"),
        description=_text(node, "description"),
        author=_text(node, "author"),
        categories=[el.text.strip() for el in node.findall("category") if el.text and el.text.strip()],
        comments=_text(node, "comments"),
        content=_text(node, CONTENT_ENCODED),
        guid_is_permalink=guid_is_permalink,
        extra=[_raw(child) for child in node if child.tag not in _ITEM_FIELDS],
    )


def render_channel(channel: Channel) -> str:
    """Serialize a Channel to an indented RSS 2.0 document, items in order."""
    root = ET.Element("rss", {"version": "2.0"})
    node = ET.SubElement(root, "channel")
    _sub(node, "title", channel.title)
    _sub(node, "link", channel.link)
    _sub(node, "description", channel.description)
    _sub(node, "pubDate", channel.pub_date)
    _sub(node, "lastBuildDate", channel.last_build_date)
    for raw in channel.extra:
        node.append(ET.fromstring(raw))

    for item in channel.items:
        node.append(_render_item(item))

    ET.indent(root, space="    ")
    body = ET.tostring(root, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"


def _render_item(item: FeedItem) -> ET.Element:
    node = ET.Element("item")
    _sub(node, "title", item.title)
    _sub(node, "link", item.link)
    _sub(node, "description", item.description)
    _sub(node, "author", item.author)
    for category in item.categories:
        _sub(node, "category", category)
    _sub(node, "comments", item.comments)

    guid = ET.SubElement(node, "guid")
    guid.text = item.guid
    if item.guid_is_permalink is not None:
        guid.set("isPermaLink", "true" if item.guid_is_permalink else "false")

    _sub(node, "pubDate", item.pub_date)
    _sub(node, CONTENT_ENCODED, item.content)
    for raw in item.extra:
        node.append(ET.fromstring(raw))
    return node


def read_channel(path: str | Path) -> Channel:
    """Read the output feed from disk.

    Raises:
        StoreError: If the file cannot be read or parsed
    """
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise StoreError(str(path), f"cannot read feed: {exc}") from exc
    try:
        return parse_channel(data)
    except RssParseError as exc:
        raise StoreError(str(path), f"invalid feed: {exc}") from exc


def write_channel(path: str | Path, channel: Channel) -> None:
    """Write the output feed to disk atomically.

    Raises:
        StoreError: If the file cannot be written
    """
    try:
        atomic_write_text(path, render_channel(channel))
    except OSError as exc:
        raise StoreError(str(path), f"cannot write feed: {exc}") from exc


def _text(node: ET.Element, tag: str) -> str | None:
    el = node.find(tag)
    if el is None or el.text is None:
        return None
    text = el.text.strip()
    return text or None


def _sub(parent: ET.Element, tag: str, text: str | None) -> None:
    if text is None:
        return
    el = ET.SubElement(parent, tag)
    el.text = text


def _raw(node: ET.Element) -> str:
    el = copy.deepcopy(node)
    el.tail = None
    return ET.tostring(el, encoding="unicode")
