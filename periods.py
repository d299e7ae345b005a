"""Date bucketing of ledger records.

Records are grouped by a granularity (day, week, month, year or all) around a
reference date. Everything here except ``local_today`` is pure: the functions
only read the records they are given and can be called in any order.

Records may be ORM objects or plain mappings; both expose ``date``,
``income`` and ``expense``. A record whose date cannot be parsed is skipped.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional
from zoneinfo import ZoneInfo

from config import get_settings


ALL_RECORDS_LABEL = "All Records"

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$", re.ASCII)
_MONTH_REF_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-\d{2})?$", re.ASCII)
_YEAR_REF_RE = re.compile(r"^(\d{4})(?:-\d{2}(?:-\d{2})?)?$", re.ASCII)


class Granularity(str, Enum):
    day = "day"
    week = "week"
    month = "month"
    year = "year"
    all = "all"


@dataclass
class Bucket:
    key: str
    income: float = 0
    expense: float = 0

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass(frozen=True)
class SummarySlice:
    name: str
    value: float


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def parse_record_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _ISO_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def week_bounds(reference: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing ``reference``, both ends inclusive."""
    # date.weekday() is Monday=0; shift so Sunday is index 0
    offset = (reference.weekday() + 1) % 7
    start = reference - timedelta(days=offset)
    return start, start + timedelta(days=6)


def bucket_key(granularity: Granularity, record_date: date) -> str:
    if granularity == Granularity.day:
        return record_date.isoformat()
    if granularity == Granularity.week:
        start, _end = week_bounds(record_date)
        return f"Week of {start.isoformat()}"
    if granularity == Granularity.month:
        return f"{record_date.year}-{record_date.month}"
    if granularity == Granularity.year:
        return str(record_date.year)
    return ALL_RECORDS_LABEL


def membership(
    granularity: Granularity, reference: Any
) -> Optional[Callable[[date], bool]]:
    """Build the membership predicate for the bucket holding ``reference``.

    Returns ``None`` when the reference cannot be read for this granularity.
    Accepted references:

    * day, week: ``YYYY-MM-DD``
    * month: ``YYYY-MM`` or ``YYYY-MM-DD``
    * year: ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``
    * all: anything
    """
    if granularity == Granularity.all:
        return lambda _d: True

    if isinstance(reference, (date, datetime)):
        reference = parse_record_date(reference).isoformat()
    elif isinstance(reference, int):
        reference = str(reference)
    if not isinstance(reference, str):
        return None
    text = reference.strip()

    if granularity in (Granularity.day, Granularity.week):
        ref_date = parse_record_date(text)
        if ref_date is None:
            return None
        if granularity == Granularity.day:
            return lambda d: d == ref_date
        start, end = week_bounds(ref_date)
        return lambda d: start <= d <= end

    if granularity == Granularity.month:
        match = _MONTH_REF_RE.match(text)
        if not match:
            return None
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            return None
        return lambda d: d.year == year and d.month == month

    match = _YEAR_REF_RE.match(text)
    if not match:
        return None
    year = int(match.group(1))
    return lambda d: d.year == year


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _amount(record: Any, name: str) -> float:
    return _field(record, name) or 0


def group_totals(
    records: Iterable[Any],
    granularity: Granularity | str,
    reference: Any = None,
) -> dict[str, Bucket]:
    """Sum income and expense per bucket key.

    With a reference, only records in the reference's bucket are kept. Without
    one every valid record is grouped under its own key. A reference that
    cannot be read yields an empty result.
    """
    granularity = Granularity(granularity)
    matches: Optional[Callable[[date], bool]] = None
    if reference not in (None, ""):
        matches = membership(granularity, reference)
        if matches is None:
            return {}

    groups: dict[str, Bucket] = {}
    for record in records:
        record_date = parse_record_date(_field(record, "date"))
        if record_date is None:
            continue
        if matches is not None and not matches(record_date):
            continue
        key = bucket_key(granularity, record_date)
        bucket = groups.get(key)
        if bucket is None:
            bucket = groups[key] = Bucket(key)
        bucket.income += _amount(record, "income")
        bucket.expense += _amount(record, "expense")
    return groups


def period_summary(
    records: Iterable[Any],
    granularity: Granularity | str,
    reference: Any,
) -> list[SummarySlice]:
    granularity = Granularity(granularity)
    if reference in (None, ""):
        return []
    matches = membership(granularity, reference)
    if matches is None:
        return []

    income = 0
    expense = 0
    for record in records:
        record_date = parse_record_date(_field(record, "date"))
        if record_date is None or not matches(record_date):
            continue
        income += _amount(record, "income")
        expense += _amount(record, "expense")
    return [
        SummarySlice("Income", income),
        SummarySlice("Expense", expense),
        SummarySlice("Savings", income - expense),
    ]


def unique_years(records: Iterable[Any]) -> list[int]:
    years = {
        record_date.year
        for record_date in (parse_record_date(_field(r, "date")) for r in records)
        if record_date is not None
    }
    return sorted(years, reverse=True)
