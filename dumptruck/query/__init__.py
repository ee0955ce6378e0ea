"""Query language: parsing and evaluation."""

from .evaluator import EvaluationContext, evaluate
from .parser import parse_query
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

__all__ = [
    "parse_query",
    "evaluate",
    "EvaluationContext",
    "Predicate",
    "MatchAll",
    "NumberSet",
    "TitleMatch",
    "DescriptionMatch",
    "DateMatch",
    "NotExists",
    "Latest",
]
