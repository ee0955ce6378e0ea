"""Typed predicate variants produced by the query parser."""

from datetime import date
from typing import Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class _Predicate(BaseModel):
    """Base for all predicate variants."""

    model_config = ConfigDict(frozen=True)


class MatchAll(_Predicate):
    """Empty query: every item matches."""

    kind: Literal["all"] = "all"


class NumberSet(_Predicate):
    """Items whose 1-based feed index is in the union of ranges and scalars."""

    kind: Literal["number"] = "number"
    ranges: Tuple[Tuple[int, int], ...] = Field(default=(), description="Inclusive (lo, hi) ranges")
    scalars: Tuple[int, ...] = Field(default=(), description="Single indices")

    def contains(self, index: int) -> bool:
        """Check whether an index is selected."""
        if index in self.scalars:
            return True
        return any(lo <= index <= hi for lo, hi in self.ranges)


class TitleMatch(_Predicate):
    """Items whose title contains any keyword."""

    kind: Literal["title"] = "title"
    keywords: Tuple[str, ...] = Field(..., min_length=1)


class DescriptionMatch(_Predicate):
    """Items whose description contains any keyword."""

    kind: Literal["description"] = "description"
    keywords: Tuple[str, ...] = Field(..., min_length=1)


class DateMatch(_Predicate):
    """Items published on one of the dates or inside one of the date ranges."""

    kind: Literal["date"] = "date"
    ranges: Tuple[Tuple[date, date], ...] = ()
    dates: Tuple[date, ...] = ()

    def contains(self, day: date) -> bool:
        """Check whether a calendar date is selected."""
        if day in self.dates:
            return True
        return any(lo <= day <= hi for lo, hi in self.ranges)


class NotExists(_Predicate):
    """Items with no downloaded file in the destination directory."""

    kind: Literal["notexists"] = "notexists"


class Latest(_Predicate):
    """The n most recently published items."""

    kind: Literal["latest"] = "latest"
    n: int = Field(1, ge=1)


Predicate = Union[MatchAll, NumberSet, TitleMatch, DescriptionMatch, DateMatch, NotExists, Latest]
