"""
Next occurrence of a repeating task.

next_date always returns a date strictly after ``now`` and never the
anchor itself: a cycle is applied at least once even when the anchor
already lies in the future.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

from dateutil.relativedelta import relativedelta

from .errors import DateFormatError, RuleFormatError
from .rules import EveryNDays, RecurrenceRule, WeeklyOnDays, Yearly, parse_repeat
from .shared import fmt_date, parse_date

DAYS_PER_WEEK = 7


def _add_year(d: date) -> date:
    try:
        nxt = d + relativedelta(years=1)
    except ValueError as e:
        # relativedelta reports a year past 9999 as ValueError
        raise OverflowError(str(e)) from e
    if d.month == 2 and d.day == 29:
        # 29 February rolls over into March, not back to the 28th
        nxt += timedelta(days=1)
    return nxt


def _advance(
    now: date, anchor: date, step: Callable[[date], date], max_steps: int
) -> date:
    current = anchor
    for _ in range(max_steps):
        current = step(current)
        if current > now:
            return current
    raise RuleFormatError(
        "next date not reached", {"now": fmt_date(now), "date": fmt_date(anchor)}
    )


def _weekly(now: date, anchor: date, days: tuple[int, ...]) -> date:
    # Candidates on or before now can never match, so the scan starts at
    # whichever of anchor + 1 and now + 1 is later.
    candidate = max(anchor, now) + timedelta(days=1)
    for _ in range(DAYS_PER_WEEK):
        if candidate.isoweekday() in days:
            return candidate
        candidate += timedelta(days=1)
    raise RuleFormatError(
        "no matching weekday", {"now": fmt_date(now), "date": fmt_date(anchor)}
    )


def next_date(now: date, anchor: date, rule: RecurrenceRule) -> date:
    """
    Return the first occurrence of ``rule`` after ``now``, counting cycles
    from ``anchor``.
    """
    span = max((now - anchor).days, 0)
    try:
        match rule:
            case EveryNDays(n=n):
                step = timedelta(days=n)
                return _advance(now, anchor, lambda d: d + step, span // n + 2)
            case Yearly():
                return _advance(now, anchor, _add_year, span // 365 + 2)
            case WeeklyOnDays(days=days):
                return _weekly(now, anchor, days)
            case _:
                raise RuleFormatError("unsupported repeat rule", {"rule": repr(rule)})
    except OverflowError as e:
        raise DateFormatError(
            "next date is out of range", {"date": fmt_date(anchor)}
        ) from e


def next_date_str(now: date, date_str: str, repeat: str) -> str:
    """
    String form used by the next-date query: parse the YYYYMMDD anchor and
    the repeat rule and return the formatted next date.

    An empty rule is an error here since a one-off task has no next date.
    """
    anchor = parse_date(date_str)
    rule = parse_repeat(repeat)
    if rule is None:
        raise RuleFormatError("repeat rule is empty", {"repeat": repeat})
    return fmt_date(next_date(now, anchor, rule))
