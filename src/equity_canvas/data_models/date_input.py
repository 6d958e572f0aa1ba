from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel


DATE_INPUT_FORMAT = "%Y-%m-%d"


class DateParseErrorKind(str, Enum):
    INVALID_FORMAT = "invalid_format"
    OUT_OF_RANGE = "out_of_range"


class DateParseError(BaseModel):
    kind: DateParseErrorKind
    message: str
    # The violated min/max bound for OUT_OF_RANGE errors
    bound: Optional[date] = None


class DateParseResult(BaseModel):
    """Outcome of parsing a date field.

    Exactly one of three states: a parsed `value`, an `error`, or neither
    (the user cleared the field, which is a valid "no date" entry).
    """

    value: Optional[date] = None
    error: Optional[DateParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.error is None
