"""Enclosure fetcher that streams media to disk."""

import asyncio
import logging
from pathlib import Path

import httpx

from ..errors import FetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
PART_SUFFIX = ".part"


class HttpFetcher:
    """Download a single URL to a file, retrying failed attempts."""

    def __init__(
        self,
        timeout: float = 60.0,
        retries: int = 3,
        retry_delay_ms: int = 300,
        user_agent: str = "dumptruck",
    ) -> None:
        """
        Initialize enclosure fetcher.

        Args:
            timeout: Per-request timeout in seconds
            retries: Extra attempts after the first failure
            retry_delay_ms: Base delay; attempt N waits N times this long
            user_agent: User-Agent header sent with each request
        """
        self.timeout = timeout
        self.retries = retries
        self.retry_delay_ms = retry_delay_ms
        self.user_agent = user_agent

    async def fetch(self, url: str, path: Path) -> None:
        """Download ``url`` to ``path``.

        The body streams into ``<path>.part`` and is renamed onto ``path``
        only once complete, so a failed attempt leaves an existing file alone.

        Raises:
            FetchError: once every attempt has failed
        """
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                await self._download(url, path)
                return
            except FetchError as e:
                _remove_partial(_part_path(path))
                if attempt >= attempts:
                    raise
                delay = attempt * self.retry_delay_ms / 1000
                logger.warning(
                    "Try %d of %d for %s failed (%s), retrying in %.1fs",
                    attempt, attempts, url, e, delay,
                )
                await asyncio.sleep(delay)

    async def _download(self, url: str, path: Path) -> None:
        headers = {"User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers=headers,
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    part = _part_path(path)
                    with open(part, "wb") as output:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            await asyncio.to_thread(output.write, chunk)
                    part.replace(path)
        except httpx.HTTPStatusError as e:
            raise FetchError(_describe_status(e.response.status_code)) from e
        except httpx.TimeoutException as e:
            raise FetchError("Request timed out") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Transport error: {e}") from e
        except OSError as e:
            raise FetchError(f"Write error: {e}") from e


def _describe_status(status_code: int) -> str:
    if status_code == 404:
        return "Not found (404)"
    if status_code == 403:
        return "Access forbidden (403)"
    if status_code >= 500:
        return f"Server error ({status_code})"
    return f"HTTP {status_code}"


def _part_path(path: Path) -> Path:
    """Sibling file a download streams into until it is complete."""
    return path.with_name(path.name + PART_SUFFIX)


def _remove_partial(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove partial download %s: %s", path, e)
