"""Feed ingestion."""

from .feed_loader import FeedLoader, is_url, load_feed, parse_feed
from .models import FeedChannel, FeedItem

__all__ = [
    "FeedLoader",
    "FeedChannel",
    "FeedItem",
    "is_url",
    "load_feed",
    "parse_feed",
]
