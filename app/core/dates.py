"""
Calendar-date helpers for reservation intervals.

Reservation dates are stored as ISO strings (``YYYY-MM-DD``). A missing end date
means the rental is open-ended; ``effective_end`` is the one place that turns
that into an upper bound for overlap math.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from app.core.exceptions import ValidationError

DateLike = Union[date, str]


def parse_date(value: DateLike, field: str = "date") -> date:
    """Parse an ISO date string (or pass a date through). Raises ValidationError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value!r} is not a YYYY-MM-DD date")


def parse_optional_date(value: Optional[DateLike], field: str = "end date") -> Optional[date]:
    # "undefined" leaks in from older clients for open-ended rentals
    if value is None or (isinstance(value, str) and value.strip() in ("", "undefined", "null")):
        return None
    return parse_date(value, field)


def to_iso(value: Optional[DateLike]) -> Optional[str]:
    if value is None:
        return None
    return parse_date(value).isoformat()


def effective_end(end: Optional[DateLike]) -> date:
    """Upper bound used for overlap checks; open-ended intervals never end."""
    parsed = parse_optional_date(end)
    return date.max if parsed is None else parsed


def today() -> date:
    return date.today()


def today_iso() -> str:
    return today().isoformat()


def days_from_today(days: int) -> date:
    return today() + timedelta(days=days)


def intervals_overlap(
    start_a: DateLike,
    end_a: Optional[DateLike],
    start_b: DateLike,
    end_b: Optional[DateLike],
) -> bool:
    """Inclusive overlap: [s1, e1] and [s2, e2] overlap iff s1 <= e2 and s2 <= e1."""
    return parse_date(start_a) <= effective_end(end_b) and parse_date(start_b) <= effective_end(end_a)


@dataclass(frozen=True)
class DateInterval:
    """An occupied date range; ``end`` of None means open-ended."""

    start: date
    end: Optional[date] = None

    @classmethod
    def from_values(cls, start: DateLike, end: Optional[DateLike] = None) -> "DateInterval":
        return cls(parse_date(start, "start date"), parse_optional_date(end))

    @property
    def is_open_ended(self) -> bool:
        return self.end is None

    @property
    def effective_end(self) -> date:
        return effective_end(self.end)

    def validate(self) -> "DateInterval":
        if self.end is not None and self.end < self.start:
            raise ValidationError("End date cannot be before start date")
        return self

    def overlaps(self, other: "DateInterval") -> bool:
        return self.start <= other.effective_end and other.start <= self.effective_end

    def contains(self, day: DateLike) -> bool:
        d = parse_date(day)
        return self.start <= d <= self.effective_end

    def iso_bounds(self) -> tuple[str, str]:
        """(start, effective end) as ISO strings, for comparisons against stored columns."""
        return self.start.isoformat(), self.effective_end.isoformat()
