import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class QueryKind(str, Enum):
    empty = "empty"
    greeting = "greeting"
    exact_date = "exact_date"
    year = "year"
    fallback = "fallback"


@dataclass(frozen=True)
class QueryIntent:
    kind: QueryKind
    query: str
    date: Optional[str] = None
    year: Optional[int] = None


_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
_YEAR_RE = re.compile(r"^\d{4}$", re.ASCII)


def _match_empty(query: str) -> Optional[QueryIntent]:
    if not query:
        return QueryIntent(QueryKind.empty, query)
    return None


def _match_greeting(query: str) -> Optional[QueryIntent]:
    if "hello" in query.lower():
        return QueryIntent(QueryKind.greeting, query)
    return None


def _match_exact_date(query: str) -> Optional[QueryIntent]:
    match = _DATE_RE.search(query)
    if match:
        return QueryIntent(QueryKind.exact_date, query, date=match.group(0))
    return None


def _match_year(query: str) -> Optional[QueryIntent]:
    if _YEAR_RE.match(query):
        return QueryIntent(QueryKind.year, query, year=int(query))
    return None


# Evaluated in order; the first rule that matches decides the intent.
RULES: tuple[tuple[QueryKind, Callable[[str], Optional[QueryIntent]]], ...] = (
    (QueryKind.empty, _match_empty),
    (QueryKind.greeting, _match_greeting),
    (QueryKind.exact_date, _match_exact_date),
    (QueryKind.year, _match_year),
)


def classify_query(text: Optional[str]) -> QueryIntent:
    query = (text or "").strip()
    for _kind, rule in RULES:
        intent = rule(query)
        if intent is not None:
            return intent
    return QueryIntent(QueryKind.fallback, query)
