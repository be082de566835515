"""
Stay intervals.

A stay of ``nights`` nights starting on ``check_in`` occupies the half-open
range ``[check_in, check_in + nights)``: the check-out day is free for the next
guest. Every overlap decision in the app goes through :func:`overlaps`.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from django.utils.dateparse import parse_date

from .exceptions import InvalidRangeError, ValidationError


@dataclass(frozen=True)
class Interval:
    start: date
    end: date  # exclusive

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRangeError("end must be after start")

    @property
    def nights(self):
        return (self.end - self.start).days

    def overlaps(self, other):
        return overlaps(self, other)

    def __str__(self):
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


def overlaps(a, b):
    """Return True if the two intervals share at least one night."""
    return a.start < b.end and b.start < a.end


def make_interval(check_in, nights):
    if isinstance(check_in, datetime) or not isinstance(check_in, date):
        raise InvalidRangeError("check_in must be a calendar date")
    if isinstance(nights, bool) or not isinstance(nights, int):
        raise InvalidRangeError("nights must be an integer")
    if nights < 1:
        raise InvalidRangeError("nights must be at least 1")
    try:
        end = check_in + timedelta(days=nights)
    except OverflowError:
        raise InvalidRangeError("stay runs past the last representable date")
    return Interval(check_in, end)


def parse_check_in(value):
    """Accept a date, a datetime (truncated) or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_date(value.strip())
        except ValueError:
            # well formed but not a real day, e.g. 2024-02-30
            parsed = None
        if parsed is not None:
            return parsed
    raise InvalidRangeError(f"check_in is not a valid date: {value!r}")


def parse_positive_int(value, field):
    """Coerce ``value`` to a positive int; ``"3"`` and ``3.0`` are accepted."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer")
    if isinstance(value, int):
        number = value
    else:
        try:
            decimal_value = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a positive integer")
        if not decimal_value.is_finite() or decimal_value != decimal_value.to_integral_value():
            raise ValidationError(f"{field} must be a positive integer")
        number = int(decimal_value)
    if number < 1:
        raise ValidationError(f"{field} must be a positive integer")
    return number
