"""Resolution of relative and absolute date-range specifiers.

Ranges are expressed as calendar dates (``YYYY-MM-DD``) with an inclusive end.
The reference instant is interpreted in UTC unless a ``date`` is passed.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone

from advisor.core.errors import ValidationError
from advisor.core.schema import DateRangeSpec, ResolvedRange

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DEFAULT_WINDOW_DAYS = 7


def parse_calendar_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string, raising :class:`ValidationError`."""

    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise ValidationError(f"invalid date {value!r}: expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"invalid date {value!r}: not a calendar date") from exc


def subtract_months(day: date, months: int) -> date:
    """Calendar-month subtraction, clamped to the end of the target month."""

    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _reference_day(reference: datetime | date | None) -> date:
    if reference is None:
        return datetime.now(timezone.utc).date()
    if isinstance(reference, datetime):
        if reference.tzinfo is not None:
            reference = reference.astimezone(timezone.utc)
        return reference.date()
    return reference


def resolve_date_range(spec: DateRangeSpec | None, reference: datetime | date | None = None) -> ResolvedRange:
    """Turn ``spec`` into a concrete ``ResolvedRange`` relative to ``reference``."""

    today = _reference_day(reference)
    spec = spec or DateRangeSpec()

    # explicit dates are validated whatever the kind
    start_override = parse_calendar_date(spec.start_date) if spec.start_date is not None else None
    end_override = parse_calendar_date(spec.end_date) if spec.end_date is not None else None

    if spec.kind == "custom":
        start = start_override or today
        end = end_override or today
        if start > end:
            raise ValidationError(f"start date {start.isoformat()} is after end date {end.isoformat()}")
        return ResolvedRange(start=start.isoformat(), end=end.isoformat())

    if spec.kind is None:
        start = today - timedelta(days=DEFAULT_WINDOW_DAYS)
        return ResolvedRange(start=start.isoformat(), end=today.isoformat())

    value = 1 if spec.value is None else spec.value
    if value <= 0:
        raise ValidationError(f"date range value must be positive, got {value}")

    try:
        if spec.kind == "days":
            start = today - timedelta(days=value)
        elif spec.kind == "weeks":
            start = today - timedelta(weeks=value)
        else:
            start = subtract_months(today, value)
    except (OverflowError, ValueError) as exc:
        raise ValidationError(f"date range of {value} {spec.kind} reaches before the supported calendar") from exc
    return ResolvedRange(start=start.isoformat(), end=today.isoformat())


__all__ = ["DEFAULT_WINDOW_DAYS", "parse_calendar_date", "resolve_date_range", "subtract_months"]
