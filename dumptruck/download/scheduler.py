"""Bounded-concurrency download scheduler."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

from ..errors import ConfigError, FetchError, OutputWriteError
from ..ingestion.models import FeedItem
from .models import DownloadOutcome, DownloadStatus
from .naming import destination_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 1

FetchFn = Callable[[str, Path], Awaitable[None]]
OutcomeCallback = Callable[[DownloadOutcome], None]


class DownloadScheduler:
    """Download the enclosures of matched items with at most N fetches in flight."""

    def __init__(
        self,
        fetch: FetchFn,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> None:
        """Initialize download scheduler."""
        if max_concurrency < 1:
            raise ConfigError(f"Concurrent downloads must be at least 1, got {max_concurrency}")
        self.fetch = fetch
        self.max_concurrency = max_concurrency
        self.on_outcome = on_outcome

    def _prepare_destination(self, destination: Path) -> None:
        """Create the destination directory and make sure it is writable."""
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(f"Cannot create output directory {destination}: {e}") from e

        if not destination.is_dir():
            raise OutputWriteError(f"Output path {destination} is not a directory")
        if not os.access(destination, os.W_OK | os.X_OK):
            raise OutputWriteError(f"{destination} is not writable by the current user")

    def _record(self, outcome: DownloadOutcome) -> DownloadOutcome:
        if self.on_outcome is not None:
            self.on_outcome(outcome)
        return outcome

    async def _download_item(self, item: FeedItem, destination: Path, semaphore: asyncio.Semaphore) -> DownloadOutcome:
        path = destination_path(item, destination)

        if not item.enclosure_url:
            return self._record(
                DownloadOutcome(
                    item_index=item.index,
                    title=item.title,
                    destination_path=path,
                    status=DownloadStatus.FAILED,
                    reason="no enclosure",
                )
            )

        async with semaphore:
            logger.debug("Downloading %s -> %s", item.enclosure_url, path)
            try:
                await self.fetch(item.enclosure_url, path)
            except FetchError as e:
                logger.error("Download failed: %s (%s)", item.enclosure_url, e)
                status, reason = DownloadStatus.FAILED, str(e)
            except Exception as e:
                logger.exception("Unexpected error downloading %s", item.enclosure_url)
                status, reason = DownloadStatus.FAILED, f"Unexpected error: {e}"
            else:
                status, reason = DownloadStatus.SUCCEEDED, None

        return self._record(
            DownloadOutcome(
                item_index=item.index,
                title=item.title,
                destination_path=path,
                status=status,
                reason=reason,
            )
        )

    async def run(self, matches: Sequence[FeedItem], destination: Path) -> List[DownloadOutcome]:
        """
        Download every match into ``destination``.

        One failed item never cancels the others. Outcomes come back in the
        order of ``matches``, whatever order the downloads finished in.

        Raises:
            OutputWriteError: if the destination cannot be created or written
        """
        self._prepare_destination(destination)

        if not matches:
            return []

        # Create semaphore for concurrency control
        semaphore = asyncio.Semaphore(self.max_concurrency)

        tasks = [self._download_item(item, destination, semaphore) for item in matches]
        outcomes = await asyncio.gather(*tasks)

        position = {item.index: i for i, item in enumerate(matches)}
        return sorted(outcomes, key=lambda outcome: position[outcome.item_index])

    def run_sync(self, matches: Sequence[FeedItem], destination: Path) -> List[DownloadOutcome]:
        """Synchronous wrapper for run."""
        return asyncio.run(self.run(matches, destination))
