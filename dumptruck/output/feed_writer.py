"""Serialize selected items into a new RSS 2.0 document."""

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Optional, Sequence

from .. import __version__
from ..errors import OutputWriteError
from ..ingestion.models import FeedChannel, FeedItem

logger = logging.getLogger(__name__)

GENERATOR = f"dumptruck {__version__}"
FEED_FILE_MODE = 0o644


def _add_text(parent: ET.Element, tag: str, value: Optional[str]) -> None:
    if value:
        ET.SubElement(parent, tag).text = value


def _item_element(channel_el: ET.Element, item: FeedItem) -> None:
    item_el = ET.SubElement(channel_el, "item")
    _add_text(item_el, "title", item.title)
    _add_text(item_el, "link", item.link)
    _add_text(item_el, "description", item.description)

    if item.guid:
        guid_el = ET.SubElement(item_el, "guid")
        guid_el.text = item.guid
        if item.guid != item.link:
            guid_el.set("isPermaLink", "false")

    if item.published:
        _add_text(item_el, "pubDate", item.published)
    elif item.published_at is not None:
        _add_text(item_el, "pubDate", format_datetime(item.published_at))

    if item.enclosure_url:
        enclosure_el = ET.SubElement(item_el, "enclosure")
        enclosure_el.set("url", item.enclosure_url)
        enclosure_el.set("length", str(item.enclosure_length or 0))
        if item.enclosure_type:
            enclosure_el.set("type", item.enclosure_type)


def build_feed(
    source: FeedChannel,
    items: Sequence[FeedItem],
    title: str,
    now: Optional[datetime] = None,
) -> ET.ElementTree:
    """
    Build an RSS document holding ``items``.

    Args:
        source: Channel the items were selected from; its metadata is copied
        items: Selected items, written in the order given
        title: Title of the new feed
        now: Timestamp for lastBuildDate (defaults to the current time)

    Returns:
        The document tree
    """
    now = now or datetime.now(timezone.utc)

    rss = ET.Element("rss", version="2.0")
    channel_el = ET.SubElement(rss, "channel")

    ET.SubElement(channel_el, "title").text = title
    ET.SubElement(channel_el, "link").text = source.link
    ET.SubElement(channel_el, "description").text = source.description
    _add_text(channel_el, "language", source.language)
    _add_text(channel_el, "copyright", source.copyright)
    _add_text(channel_el, "managingEditor", source.managing_editor)
    _add_text(channel_el, "pubDate", source.pub_date)
    ET.SubElement(channel_el, "lastBuildDate").text = format_datetime(now)
    for category in source.categories:
        _add_text(channel_el, "category", category)
    ET.SubElement(channel_el, "generator").text = GENERATOR

    for item in items:
        _item_element(channel_el, item)

    return ET.ElementTree(rss)


def write_feed(
    source: FeedChannel,
    items: Sequence[FeedItem],
    title: str,
    output_path: Path,
) -> Path:
    """Write a new feed document to ``output_path``.

    The document is written to a temporary file beside ``output_path`` and
    moved into place once complete; on failure an existing file is untouched.

    Raises:
        OutputWriteError: if the file or its directory cannot be written
    """
    tree = build_feed(source, items, title)
    ET.indent(tree)

    temp_path: Optional[Path] = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=output_path.parent,
            prefix=f".{output_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as temp_file:
            temp_path = Path(temp_file.name)
            tree.write(temp_file, encoding="utf-8", xml_declaration=True)
        os.chmod(temp_path, FEED_FILE_MODE)
        os.replace(temp_path, output_path)
    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise OutputWriteError(f"Cannot write feed to {output_path}: {e}") from e

    logger.info("Wrote %d items to %s", len(items), output_path)
    return output_path
