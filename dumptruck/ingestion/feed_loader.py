"""Load an RSS feed from a URL or a local file."""

import logging
import xml.sax
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import feedparser
import httpx
import pendulum

from ..errors import FeedLoadError
from .models import FeedChannel, FeedItem

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    """Check whether a feed source looks like an http(s) URL."""
    return urlparse(source).scheme in ("http", "https")


class FeedLoader:
    """Fetch feed documents and normalize them into a FeedChannel."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "dumptruck") -> None:
        """Initialize feed loader."""
        self.timeout = timeout
        self.user_agent = user_agent

    def load(self, source: str, source_is_url: Optional[bool] = None) -> FeedChannel:
        """Load and parse a feed.

        Args:
            source: Feed URL or path to a feed file
            source_is_url: Force URL/file handling instead of guessing from the scheme

        Returns:
            The parsed channel with 1-based item indices in document order

        Raises:
            FeedLoadError: if the feed is unreachable, unreadable or not a feed
        """
        if source_is_url is None:
            source_is_url = is_url(source)

        content = self._read_url(source) if source_is_url else self._read_file(source)
        return parse_feed(content, source)

    def _read_url(self, url: str) -> bytes:
        headers = {"User-Agent": self.user_agent}
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True, headers=headers) as client:
                response = client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            raise FeedLoadError(f"HTTP {e.response.status_code} while fetching {url}") from e
        except httpx.HTTPError as e:
            raise FeedLoadError(f"Could not reach {url}: {e}") from e

    def _read_file(self, path: str) -> bytes:
        try:
            return Path(path).expanduser().read_bytes()
        except OSError as e:
            raise FeedLoadError(f"Could not read feed file {path}: {e}") from e


def load_feed(
    source: str,
    source_is_url: Optional[bool] = None,
    timeout: float = 30.0,
    user_agent: str = "dumptruck",
) -> FeedChannel:
    """Load a feed with a one-off FeedLoader."""
    return FeedLoader(timeout=timeout, user_agent=user_agent).load(source, source_is_url)


def parse_feed(content: bytes, source: str = "<feed>") -> FeedChannel:
    """Parse raw feed bytes into a FeedChannel."""
    feed = feedparser.parse(content)

    if feed.bozo and isinstance(feed.bozo_exception, xml.sax.SAXException):
        raise FeedLoadError(f"Malformed feed document {source}: {feed.bozo_exception}")
    if not feed.version:
        raise FeedLoadError(f"{source} is not an RSS or Atom feed")

    channel = feed.feed
    items = [_build_item(position, entry) for position, entry in enumerate(feed.entries, start=1)]

    logger.debug("Parsed %d items from %s (%s)", len(items), source, feed.version)

    return FeedChannel(
        title=channel.get("title", ""),
        link=channel.get("link", ""),
        description=channel.get("subtitle", "") or channel.get("description", ""),
        language=channel.get("language"),
        copyright=channel.get("rights"),
        managing_editor=channel.get("author"),
        pub_date=channel.get("published"),
        categories=[tag.get("term") for tag in channel.get("tags", []) if tag.get("term")],
        items=items,
    )


def _parse_date_string(raw: str) -> Optional[datetime]:
    """Parse an RFC 822 (RSS) or ISO 8601 (Atom) date, keeping its offset."""
    try:
        return parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        logger.debug("%r is not an RFC 822 date, trying ISO 8601", raw)
    try:
        parsed = pendulum.parse(raw)
    except ValueError:
        return None
    return parsed if isinstance(parsed, datetime) else None


def _parse_timestamp(entry: Any) -> Optional[datetime]:
    """Publication time in the timezone written in the feed.

    feedparser's time tuple is already shifted to UTC, so it is only used
    when the raw date string cannot be parsed.
    """
    raw = entry.get("published") or entry.get("updated")
    if raw:
        published = _parse_date_string(raw)
        if published is not None:
            return published

    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        logger.info("Failed to parse item date %r", raw)
        return None


def _parse_length(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _build_item(position: int, entry: Any) -> FeedItem:
    enclosures = entry.get("enclosures") or []
    enclosure = enclosures[0] if enclosures else {}

    description = entry.get("summary")
    if description is None:
        description = entry.get("description", "")

    return FeedItem(
        index=position,
        title=entry.get("title", ""),
        description=description or "",
        published_at=_parse_timestamp(entry),
        published=entry.get("published") or entry.get("updated"),
        link=entry.get("link"),
        guid=entry.get("id"),
        enclosure_url=enclosure.get("href") or enclosure.get("url"),
        enclosure_type=enclosure.get("type") or None,
        enclosure_length=_parse_length(enclosure.get("length")),
    )
