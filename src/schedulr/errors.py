"""
Error taxonomy for schedulr.

Every failure the core reports is a SchedulerError carrying an ErrorKind.
Callers branch on the exception class or on ``err.kind``; nothing matches
on message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    RULE_FORMAT = "rule_format"
    RULE_RANGE = "rule_range"
    DATE_FORMAT = "date_format"
    EMPTY_TITLE = "empty_title"
    MISSING_ID = "missing_id"
    NOT_FOUND = "not_found"
    STORE = "store"


class SchedulerError(Exception):
    kind: ErrorKind = ErrorKind.STORE
    default_message = "scheduler error"

    def __init__(
        self, message: Optional[str] = None, context: Optional[dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        self.context = dict(context or {})
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class RuleError(SchedulerError):
    """Base for problems with a repeat rule."""


class RuleFormatError(RuleError):
    kind = ErrorKind.RULE_FORMAT
    default_message = "invalid repeat rule format"


class RuleRangeError(RuleError):
    kind = ErrorKind.RULE_RANGE
    default_message = "repeat rule value out of range"


class DateFormatError(SchedulerError):
    kind = ErrorKind.DATE_FORMAT
    default_message = "invalid date format, expected YYYYMMDD"


class EmptyTitleError(SchedulerError):
    kind = ErrorKind.EMPTY_TITLE
    default_message = "task title must not be empty"


class MissingIDError(SchedulerError):
    kind = ErrorKind.MISSING_ID
    default_message = "task id not specified"


class NotFoundError(SchedulerError):
    kind = ErrorKind.NOT_FOUND
    default_message = "task not found"


class StoreError(SchedulerError):
    kind = ErrorKind.STORE
    default_message = "task store failure"
