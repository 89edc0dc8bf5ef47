"""
amendflow.dates
===============

Calendar arithmetic for contract expiration dates.

Dates travel through the system either as :class:`datetime.date` objects
or as strings in the two shapes the record store produces: the display
form ``DD/MM/YYYY`` and the storage form ``YYYY-MM-DD``.  Historical data
is dirty, so every helper here follows a *lenient* policy by default: a
malformed date never raises, it yields a safe default instead (the input
unchanged, or ``0`` days).  Pass ``lenient=False`` to get a
:class:`DateParseError` instead.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

DISPLAY_FORMAT = "%d/%m/%Y"


class DateParseError(ValueError):
    """Raised for a malformed date when the strict policy is in effect."""


# ---------------------------------------------------------------------
# Parsing / formatting
# ---------------------------------------------------------------------
def parse_date(value: DateLike | None, lenient: bool = True) -> Optional[date]:
    """
    Turn *value* into a :class:`date`.

    Accepts a ``date`` (returned as is, a ``datetime`` is cut to its date), ``DD/MM/YYYY`` or ``YYYY-MM-DD``.
    Returns ``None`` for empty or malformed input, unless *lenient* is
    false, in which case malformed input raises :class:`DateParseError`.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None

    text = str(value).strip()
    try:
        if "/" in text:
            day, month, year = (int(p) for p in text.split("/"))
        elif "-" in text:
            year, month, day = (int(p) for p in text.split("-"))
        else:
            raise ValueError("no date separator")
        return date(year, month, day)
    except (TypeError, ValueError) as exc:
        if not lenient:
            raise DateParseError(f"malformed date {value!r}") from exc
        logger.warning(f"Ignoring malformed date {value!r}: {exc}")
        return None


def format_date(value: date) -> str:
    """Render a date in the ``DD/MM/YYYY`` display form."""
    return value.strftime(DISPLAY_FORMAT)


# ---------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------
def add_duration(
    base: DateLike,
    amount: int | float | None,
    unit: str | None,
    lenient: bool = True,
) -> DateLike:
    """
    Add ``amount`` days, months or years to *base*.

    Month and year steps clamp to the last valid day of the resulting
    month (31 Jan + 1 month -> 28/29 Feb, 29 Feb + 1 year -> 28 Feb).
    A ``date`` comes back as a ``date``; a string comes back in the
    ``DD/MM/YYYY`` display form.  A zero or missing amount returns *base*
    untouched.

    Examples
    --------
    >>> add_duration(date(2024, 1, 31), 1, "month")
    datetime.date(2024, 2, 29)
    >>> add_duration("31/01/2023", 1, "mes")
    '28/02/2023'
    """
    if not base or not amount:
        return base

    # models imports this module at load time
    from .models import DurationUnit

    try:
        start = parse_date(base, lenient=False)
        if float(amount) != int(amount):
            raise ValueError(f"non-integral amount {amount!r}")
        steps = int(amount)
        step_unit = DurationUnit.parse(unit)

        if step_unit is DurationUnit.DAY:
            result = start + timedelta(days=steps)
        elif step_unit is DurationUnit.MONTH:
            result = start + relativedelta(months=steps)
        else:
            result = start + relativedelta(years=steps)
    except (TypeError, ValueError, OverflowError) as exc:
        if not lenient:
            if isinstance(exc, DateParseError):
                raise
            raise DateParseError(f"cannot add {amount!r} {unit!r} to {base!r}") from exc
        logger.warning(f"Leaving {base!r} unchanged, cannot add {amount!r} {unit!r}: {exc}")
        return base

    return result if isinstance(base, date) else format_date(result)


def days_until(
    target: DateLike | None,
    today: Optional[date] = None,
    lenient: bool = True,
) -> int:
    """
    Signed whole days from *today* to *target*.

    Positive means the target is in the future, ``0`` is today, negative
    is past.  Both ends are calendar dates, so there are no partial days.
    A missing or malformed target counts as ``0`` under the lenient policy.
    """
    today = today or date.today()
    parsed = parse_date(target, lenient=lenient)
    if parsed is None:
        if not lenient:
            raise DateParseError("missing target date")
        return 0
    return (parsed - today).days


def months_between(start: DateLike | None, end: DateLike | None) -> int:
    """
    Whole months elapsed from *start* to *end*, floored at zero.

    A month only counts once the end day-of-month reaches the start
    day-of-month.  Missing or malformed dates give ``0``.
    """
    first, last = parse_date(start), parse_date(end)
    if first is None or last is None:
        return 0
    months = (last.year - first.year) * 12 + (last.month - first.month)
    if last.day < first.day:
        months -= 1
    return max(0, months)
