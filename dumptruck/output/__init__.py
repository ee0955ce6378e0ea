"""Feed output for the create command."""

from .feed_writer import build_feed, write_feed

__all__ = ["build_feed", "write_feed"]
