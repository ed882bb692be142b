from __future__ import annotations

from datetime import date

from .errors import EmptyTitleError
from .shared import TODAY, parse_date


def validate_title(title: str) -> str:
    if not title:
        raise EmptyTitleError()
    return title


def resolve_date(date_str: str, now: date) -> date:
    """
    Resolve the date submitted with a task.

    Empty or 'today' means ``now``; a past date is moved up to ``now``;
    a future date is kept. Raises DateFormatError when the string is not
    a YYYYMMDD date.
    """
    if date_str in ("", TODAY):
        return now
    parsed = parse_date(date_str)
    if parsed < now:
        return now
    return parsed
