"""Enclosure downloads."""

from .fetcher import HttpFetcher
from .models import DownloadOutcome, DownloadStatus
from .naming import derive_filename, destination_path
from .scheduler import DEFAULT_MAX_CONCURRENCY, DownloadScheduler

__all__ = [
    "DownloadScheduler",
    "DownloadOutcome",
    "DownloadStatus",
    "HttpFetcher",
    "DEFAULT_MAX_CONCURRENCY",
    "derive_filename",
    "destination_path",
]
