"""Query string parser.

A query is a single clause of the form ``kind:body``:

* ``number:15`` (scalar), ``number:[10-20]`` (inclusive range) or
  ``number:{1, 5, [10-12]}`` (set)
* ``title:cheese delight`` or ``title:{cheese, pepperoni}``
* ``description:cheese`` or ``description:{cheese, ham}``
* ``date:2021-03-01``, ``date:[2021-03-01:2021-03-31]`` or a set of those
* ``notexists``
* ``latest`` or ``latest:5``

An empty query matches every item.
"""

import re
from datetime import date
from typing import List, Tuple, Union

import pendulum

from ..errors import QueryParseError
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

KINDS = ("number", "title", "description", "date", "notexists", "latest")

_INTEGER = re.compile(r"\d+")
_NUMBER_RANGE = re.compile(r"\s*(\d*)\s*[-:]\s*(\d*)\s*")
_DATE_RANGE = re.compile(r"\s*([^:]*?)\s*:\s*([^:]*?)\s*")


def parse_query(query: str) -> Predicate:
    """Parse a query string into a predicate.

    Raises:
        QueryParseError: if any part of the query is malformed. No partial
            predicate is ever returned.
    """
    text = query.strip()
    if not text:
        return MatchAll()

    kind, sep, body = text.partition(":")
    kind = kind.strip()

    if kind == "notexists":
        if sep:
            raise QueryParseError(text, "'notexists' without an argument")
        return NotExists()

    if kind == "latest":
        return _parse_latest(text, sep, body)

    if kind not in KINDS:
        raise QueryParseError(kind, f"a query kind, one of {', '.join(KINDS)}")

    if not sep:
        raise QueryParseError(text, f"'{kind}:<value>'")

    elements = _split_body(kind, body)

    if kind == "number":
        return _build_number_set(elements)
    if kind == "date":
        return _build_date_match(elements)

    keywords = tuple(sorted(set(elements)))
    if kind == "title":
        return TitleMatch(keywords=keywords)
    return DescriptionMatch(keywords=keywords)


def _parse_latest(text: str, sep: str, body: str) -> Latest:
    if not sep:
        return Latest()

    count = body.strip()
    if not count:
        raise QueryParseError(text, "'latest' or 'latest:<N>'")
    if not _INTEGER.fullmatch(count) or int(count) < 1:
        raise QueryParseError(count, "a positive integer count")

    return Latest(n=int(count))


def _split_body(kind: str, body: str) -> List[str]:
    """Split a clause body into its trimmed elements.

    A bare body is one element; a braced body is a comma-separated set.
    """
    body = body.strip()
    if not body:
        raise QueryParseError(f"{kind}:", f"a value after '{kind}:'")

    if not body.startswith("{"):
        if body.endswith("}"):
            raise QueryParseError(body, "a set opened with '{'")
        return [body]

    close = body.find("}")
    if close == -1:
        raise QueryParseError(body, "a set closed with '}'")

    trailing = body[close + 1:].strip()
    if trailing:
        raise QueryParseError(trailing, "nothing after the closing '}'")

    inner = body[1:close]
    if "{" in inner:
        raise QueryParseError(body, "a flat set, sets cannot be nested")
    if not inner.strip():
        raise QueryParseError(body, "a set with at least one element")

    elements = [element.strip() for element in inner.split(",")]
    if any(not element for element in elements):
        raise QueryParseError(body, "comma-separated elements, none of them empty")

    return elements


def _bracketed(element: str, shape: str) -> Union[str, None]:
    """Return the text inside ``[...]``, or None if the element is not bracketed."""
    if element.startswith("["):
        close = element.find("]")
        if close == -1:
            raise QueryParseError(element, "a range closed with ']'")
        trailing = element[close + 1:].strip()
        if trailing:
            raise QueryParseError(trailing, "nothing after the closing ']'")
        inner = element[1:close]
        if "[" in inner:
            raise QueryParseError(element, shape)
        return inner

    if "]" in element:
        raise QueryParseError(element, "a range opened with '['")

    return None


def _parse_number_element(element: str) -> Union[int, Tuple[int, int]]:
    inner = _bracketed(element, "a range like [A-B]")

    if inner is None:
        if not _INTEGER.fullmatch(element):
            raise QueryParseError(element, "a non-negative integer or a range like [A-B]")
        return int(element)

    match = _NUMBER_RANGE.fullmatch(inner)
    if match is None:
        raise QueryParseError(element, "a range like [A-B]")

    start, end = match.groups()
    if not start:
        raise QueryParseError(element, "a range start before the delimiter")
    if not end:
        raise QueryParseError(element, "a range end after the delimiter")

    lo, hi = int(start), int(end)
    if lo > hi:
        raise QueryParseError(element, f"a range whose start ({lo}) is not greater than its end ({hi})")
    if lo == hi:
        return lo

    return lo, hi


def _build_number_set(elements: List[str]) -> NumberSet:
    scalars = set()
    ranges = []
    for element in elements:
        parsed = _parse_number_element(element)
        if isinstance(parsed, tuple):
            ranges.append(parsed)
        else:
            scalars.add(parsed)

    merged = _merge_ranges(ranges)
    uncovered = sorted(n for n in scalars if not any(lo <= n <= hi for lo, hi in merged))

    return NumberSet(ranges=tuple(merged), scalars=tuple(uncovered))


def _merge_ranges(ranges):
    """Sort ranges and fold overlapping or adjacent ones together."""
    merged = []
    for lo, hi in sorted(ranges):
        if merged and lo <= merged[-1][1] + 1:
            prev_lo, prev_hi = merged[-1]
            merged[-1] = (prev_lo, max(prev_hi, hi))
        else:
            merged.append((lo, hi))
    return merged


def _parse_date(value: str, element: str) -> date:
    try:
        parsed = pendulum.from_format(value, "YYYY-MM-DD")
    except ValueError:
        raise QueryParseError(element, "a date formatted as YYYY-MM-DD")
    return date(parsed.year, parsed.month, parsed.day)


def _parse_date_element(element: str) -> Union[date, Tuple[date, date]]:
    inner = _bracketed(element, "a date range like [YYYY-MM-DD:YYYY-MM-DD]")

    if inner is None:
        return _parse_date(element, element)

    match = _DATE_RANGE.fullmatch(inner)
    if match is None:
        raise QueryParseError(element, "a date range like [YYYY-MM-DD:YYYY-MM-DD]")

    start, end = match.groups()
    if not start:
        raise QueryParseError(element, "a range start before the delimiter")
    if not end:
        raise QueryParseError(element, "a range end after the delimiter")

    lo = _parse_date(start, element)
    hi = _parse_date(end, element)
    if lo > hi:
        raise QueryParseError(element, f"a range whose start ({lo}) is not after its end ({hi})")
    if lo == hi:
        return lo

    return lo, hi


def _build_date_match(elements: List[str]) -> DateMatch:
    dates = set()
    ranges = []
    for element in elements:
        parsed = _parse_date_element(element)
        if isinstance(parsed, tuple):
            ranges.append(parsed)
        else:
            dates.add(parsed)

    ranges = sorted(set(ranges))
    uncovered = sorted(d for d in dates if not any(lo <= d <= hi for lo, hi in ranges))

    return DateMatch(ranges=tuple(ranges), dates=tuple(uncovered))
