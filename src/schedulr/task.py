from __future__ import annotations
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Task(BaseModel):
    """
    A scheduled task as stored and exchanged over the API.

    ``date`` is a YYYYMMDD string and ``repeat`` a repeat rule ('' for a
    one-off task). ``id`` is assigned by the store; numeric ids arriving
    as JSON numbers are coerced to strings.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field("", description="Store assigned task id")
    date: str = Field("", description="YYYYMMDD")
    title: str = ""
    comment: str = ""
    repeat: str = Field("", description="'', 'y', 'd <n>' or 'w <d1,d2,...>'")

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value
