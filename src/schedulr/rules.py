"""
Repeat rules.

A repeat string is one of

    ""                  one-off task, no recurrence
    "y"                 every year
    "d <n>"             every n days, 1 <= n <= 400
    "w <d1,d2,...>"     on the listed weekdays, 1 = Monday ... 7 = Sunday

parse_repeat turns the string into one of the frozen rule classes below
(or None for the empty string).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import RuleFormatError, RuleRangeError

MIN_DAYS = 1
MAX_DAYS = 400
MIN_WEEKDAY = 1
MAX_WEEKDAY = 7


@dataclass(frozen=True)
class Yearly:
    def to_repeat(self) -> str:
        return "y"


@dataclass(frozen=True)
class EveryNDays:
    n: int

    def to_repeat(self) -> str:
        return f"d {self.n}"


@dataclass(frozen=True)
class WeeklyOnDays:
    days: tuple[int, ...]

    def to_repeat(self) -> str:
        return "w " + ",".join(str(d) for d in self.days)


RecurrenceRule = Union[Yearly, EveryNDays, WeeklyOnDays]


def _parse_int(token: str) -> int | None:
    # int() would also accept "+3", " 3" and "3_0"
    if not token.isascii() or not token.isdigit():
        return None
    return int(token)


def _parse_days(repeat: str, tokens: list[str]) -> EveryNDays:
    if len(tokens) != 2:
        raise RuleFormatError(
            "'d' rule takes exactly one number of days", {"repeat": repeat}
        )
    n = _parse_int(tokens[1])
    if n is None or not MIN_DAYS <= n <= MAX_DAYS:
        raise RuleRangeError(
            f"number of days must be between {MIN_DAYS} and {MAX_DAYS}",
            {"repeat": repeat},
        )
    return EveryNDays(n)


def _parse_weekdays(repeat: str, tokens: list[str]) -> WeeklyOnDays:
    if len(tokens) != 2:
        raise RuleFormatError(
            "'w' rule takes exactly one comma separated list of weekdays",
            {"repeat": repeat},
        )
    days = []
    for part in tokens[1].split(","):
        day = _parse_int(part)
        if day is None or not MIN_WEEKDAY <= day <= MAX_WEEKDAY:
            raise RuleRangeError(
                f"weekdays must be between {MIN_WEEKDAY} and {MAX_WEEKDAY}",
                {"repeat": repeat, "weekday": part},
            )
        days.append(day)
    return WeeklyOnDays(tuple(days))


def parse_repeat(repeat: str) -> RecurrenceRule | None:
    """
    Parse a repeat string.

    Returns None for the empty string. Raises RuleFormatError for an
    unknown rule token or a wrong number of tokens and RuleRangeError
    for a number outside its allowed range.
    """
    if repeat == "":
        return None
    tokens = repeat.split()
    if not tokens:
        raise RuleFormatError("blank repeat rule", {"repeat": repeat})

    match tokens[0]:
        case "y":
            if len(tokens) != 1:
                raise RuleFormatError("'y' rule takes no arguments", {"repeat": repeat})
            return Yearly()
        case "d":
            return _parse_days(repeat, tokens)
        case "w":
            return _parse_weekdays(repeat, tokens)
        case _:
            raise RuleFormatError(
                f"unknown repeat rule {tokens[0]!r}", {"repeat": repeat}
            )
