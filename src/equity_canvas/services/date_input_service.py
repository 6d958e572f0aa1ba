"""Controlled date input.

A purchase-date field can be filled two ways: typing `YYYY-MM-DD` into the
text box or picking a day in the calendar. Both paths run through
`check_date_bounds`, so a date the calendar rejects is also rejected when
typed, and vice versa.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional
import logging
import re

from equity_canvas.data_models.date_input import (
    DATE_INPUT_FORMAT,
    DateParseError,
    DateParseErrorKind,
    DateParseResult,
)

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

INVALID_FORMAT_MESSAGE = "Invalid date format (use YYYY-MM-DD)"


def format_date_input(value: date) -> str:
    return value.strftime(DATE_INPUT_FORMAT)


def format_long_date(value: date) -> str:
    """Human-readable form shown under a valid entry, e.g. "Monday, January 15, 2024"."""
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def check_date_bounds(
    value: date,
    min_date: Optional[date] = None,
    max_date: Optional[date] = None,
) -> Optional[DateParseError]:
    if max_date is not None and value > max_date:
        return DateParseError(
            kind=DateParseErrorKind.OUT_OF_RANGE,
            message=f"Date cannot be after {format_date_input(max_date)}",
            bound=max_date,
        )
    if min_date is not None and value < min_date:
        return DateParseError(
            kind=DateParseErrorKind.OUT_OF_RANGE,
            message=f"Date cannot be before {format_date_input(min_date)}",
            bound=min_date,
        )
    return None


def parse_date_input(
    text: Optional[str],
    min_date: Optional[date] = None,
    max_date: Optional[date] = None,
) -> DateParseResult:
    """Parse typed text into a date.

    Blank text is a valid empty entry. Text that is not `YYYY-MM-DD` or that
    names an impossible day (2024-02-30) is INVALID_FORMAT; a real date
    outside the bounds is OUT_OF_RANGE.
    """
    if text is None or not text.strip():
        return DateParseResult()

    candidate = text.strip()
    if not _DATE_RE.match(candidate):
        return DateParseResult(error=DateParseError(kind=DateParseErrorKind.INVALID_FORMAT, message=INVALID_FORMAT_MESSAGE))
    try:
        parsed = datetime.strptime(candidate, DATE_INPUT_FORMAT).date()
    except ValueError:
        return DateParseResult(error=DateParseError(kind=DateParseErrorKind.INVALID_FORMAT, message=INVALID_FORMAT_MESSAGE))

    bound_error = check_date_bounds(parsed, min_date, max_date)
    if bound_error is not None:
        return DateParseResult(error=bound_error)
    return DateParseResult(value=parsed)


def validate_calendar_selection(
    selected: Optional[date],
    min_date: Optional[date] = None,
    max_date: Optional[date] = None,
) -> DateParseResult:
    if selected is None:
        return DateParseResult()
    bound_error = check_date_bounds(selected, min_date, max_date)
    if bound_error is not None:
        return DateParseResult(error=bound_error)
    return DateParseResult(value=selected)


class DateInput:
    """State of one date field: the text box, the committed date and the error line.

    The committed `value` only changes on a valid entry or an explicit clear;
    an invalid entry leaves it untouched and sets `error`.
    """

    def __init__(
        self,
        value: Optional[date] = None,
        min_date: Optional[date] = None,
        max_date: Optional[date] = None,
    ):
        self.min_date = min_date
        self.max_date = max_date
        self.value: Optional[date] = None
        self.text = ""
        self.error: Optional[DateParseError] = None
        self.calendar_open = False
        self.set_date(value)

    def set_date(self, value: Optional[date]) -> None:
        """Sync the text box to a date supplied from outside the field."""
        self.value = value
        self.error = None
        self.text = format_date_input(value) if value is not None else ""

    def set_text(self, text: str) -> DateParseResult:
        self.text = text
        self.error = None
        result = parse_date_input(text, self.min_date, self.max_date)
        if result.error is not None:
            self.error = result.error
            logger.debug("Rejected date input %r: %s", text, result.error.message)
            return result
        self.value = result.value
        return result

    def select(self, selected: Optional[date]) -> DateParseResult:
        """Handle a calendar pick. Deselecting (None) is ignored."""
        result = validate_calendar_selection(selected, self.min_date, self.max_date)
        if selected is None:
            return result
        if result.error is not None:
            self.error = result.error
            return result
        self.text = format_date_input(selected)
        self.error = None
        self.value = selected
        self.calendar_open = False
        return result

    def clear(self) -> None:
        self.text = ""
        self.error = None
        self.value = None

    def is_disabled(self, day: date) -> bool:
        """Whether the calendar should grey out `day`."""
        return check_date_bounds(day, self.min_date, self.max_date) is not None

    @property
    def description(self) -> Optional[str]:
        if self.error is None and self.text and self.value is not None:
            return format_long_date(self.value)
        return None
