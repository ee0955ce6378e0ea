"""Destination filenames for downloaded enclosures.

The same derivation is used when downloading and when evaluating
``notexists``, so a finished download is recognized on the next run.
Two items that derive the same name write to the same path; the last
writer wins.
"""

import mimetypes
import re
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

from ..ingestion.models import FeedItem

MAX_STEM_LENGTH = 200

MIME_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/aac": "aac",
    "audio/ogg": "ogg",
    "audio/opus": "opus",
    "audio/mp4": "mp4",
    "audio/x-m4a": "m4a",
    "audio/m4a": "m4a",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/flac": "flac",
    "video/mp4": "mp4",
    "video/x-m4v": "m4v",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "application/pdf": "pdf",
}

_UNSAFE = re.compile(r'[/\\<>:"|?*\x00-\x1f\x7f]')
_WHITESPACE = re.compile(r"\s+")
_URL_SUFFIX = re.compile(r"\.([A-Za-z0-9]{1,5})$")


def sanitize(text: str) -> str:
    """Make text safe to use as a single path component."""
    cleaned = _UNSAFE.sub("-", text)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip(" .")
    return cleaned[:MAX_STEM_LENGTH].rstrip(" .")


def file_extension(item: FeedItem) -> Optional[str]:
    """Pick a file extension from the enclosure MIME type, then the URL path."""
    if item.enclosure_type:
        mime = item.enclosure_type.split(";")[0].strip().lower()
        if mime in MIME_EXTENSIONS:
            return MIME_EXTENSIONS[mime]
        guessed = mimetypes.guess_extension(mime)
        if guessed:
            return guessed.lstrip(".")

    if item.enclosure_url:
        name = PurePosixPath(unquote(urlparse(item.enclosure_url).path)).name
        match = _URL_SUFFIX.search(name)
        if match:
            return match.group(1).lower()

    return None


def derive_filename(item: FeedItem) -> str:
    """Derive the file name an item's enclosure is stored under.

    The stem is the sanitized title, falling back to the sanitized guid and
    then to ``item-<index>``.
    """
    stem = sanitize(item.title) or sanitize(item.guid or "") or f"item-{item.index}"
    extension = file_extension(item)
    return f"{stem}.{extension}" if extension else stem


def destination_path(item: FeedItem, destination: Path) -> Path:
    """Full path an item's enclosure is stored at."""
    return destination / derive_filename(item)
