"""Apply a parsed predicate to the items of a feed."""

from datetime import datetime, timezone
from functools import singledispatch
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ..download.naming import derive_filename
from ..errors import ConfigError
from ..ingestion.models import FeedItem
from .predicates import (
    DateMatch,
    DescriptionMatch,
    Latest,
    MatchAll,
    NotExists,
    NumberSet,
    Predicate,
    TitleMatch,
)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class EvaluationContext(BaseModel):
    """Filesystem state needed by ``notexists``."""

    model_config = ConfigDict(frozen=True)

    destination: Path
    existing_names: FrozenSet[str] = frozenset()

    @classmethod
    def from_directory(cls, destination: Path) -> "EvaluationContext":
        """Snapshot the file names in a directory. A missing directory is empty."""
        if destination.is_dir():
            names = frozenset(entry.name for entry in destination.iterdir())
        else:
            names = frozenset()
        return cls(destination=destination, existing_names=names)


def evaluate(
    items: Sequence[FeedItem],
    predicate: Predicate,
    context: Optional[EvaluationContext] = None,
) -> List[FeedItem]:
    """Return the items selected by ``predicate`` in their original feed order."""
    if not items:
        return []
    return _select(predicate, list(items), context)


@singledispatch
def _select(predicate, items: List[FeedItem], context: Optional[EvaluationContext]) -> List[FeedItem]:
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")


@_select.register
def _(predicate: MatchAll, items, context):
    return items


@_select.register
def _(predicate: NumberSet, items, context):
    return [item for item in items if predicate.contains(item.index)]


def _contains_any(text: str, keywords) -> bool:
    haystack = text.casefold()
    return any(keyword.casefold() in haystack for keyword in keywords)


@_select.register
def _(predicate: TitleMatch, items, context):
    return [item for item in items if _contains_any(item.title, predicate.keywords)]


@_select.register
def _(predicate: DescriptionMatch, items, context):
    return [item for item in items if _contains_any(item.description, predicate.keywords)]


@_select.register
def _(predicate: DateMatch, items, context):
    return [
        item
        for item in items
        if item.published_at is not None and predicate.contains(item.published_at.date())
    ]


@_select.register
def _(predicate: NotExists, items, context):
    if context is None:
        raise ConfigError("'notexists' needs a destination directory to compare against")
    return [item for item in items if derive_filename(item) not in context.existing_names]


def _recency_key(item: FeedItem):
    # Undated items sort as the oldest
    published = item.published_at or _OLDEST
    return published, item.index


@_select.register
def _(predicate: Latest, items, context):
    newest_first = sorted(items, key=_recency_key, reverse=True)
    chosen = newest_first[:predicate.n]
    return sorted(chosen, key=lambda item: item.index)
