"""Select items from an RSS feed with a small query language, then check, download or re-publish them."""

__version__ = "0.3.0"
