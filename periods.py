from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from errors import ValidationError


@dataclass(frozen=True)
class DateWindow:
    """Half-open ``[start, end)`` of naive UTC datetimes. ``None`` is unbounded."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment >= self.end:
            return False
        return True


@dataclass(frozen=True)
class Month:
    year: int
    month: int

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def next(self) -> "Month":
        if self.month == 12:
            return Month(self.year + 1, 1)
        return Month(self.year, self.month + 1)


def to_utc_naive(value: datetime, tz: str) -> datetime:
    """Normalize to naive UTC. Naive values are read as wall time in ``tz``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz))
    try:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    except OverflowError as exc:
        raise ValidationError("Date is out of range") from exc


def _local_midnight(day: date, tz: str) -> datetime:
    return to_utc_naive(datetime.combine(day, time.min), tz)


def month_window(month: Month, tz: str) -> DateWindow:
    following = month.next()
    return DateWindow(
        start=_local_midnight(date(month.year, month.month, 1), tz),
        end=_local_midnight(date(following.year, following.month, 1), tz),
    )


def resolve_month(
    raw: Optional[str], tz: str, *, now: Optional[datetime] = None
) -> Month:
    if raw:
        try:
            year_str, month_str = raw.split("-", 1)
            month = Month(int(year_str), int(month_str))
        except ValueError as exc:
            raise ValidationError("Month must be in YYYY-MM format") from exc
        if not 1 <= month.month <= 12 or not 1970 <= month.year <= 3000:
            raise ValidationError("Month must be in YYYY-MM format")
        return month

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(tz))
    return Month(local.year, local.month)


def _parse_bound(raw: str) -> tuple[datetime, bool]:
    value = raw.strip()
    try:
        if len(value) == 10:
            return datetime.combine(date.fromisoformat(value), time.min), True
        return datetime.fromisoformat(value), False
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {raw}") from exc


def resolve_range(start: Optional[str], end: Optional[str], tz: str) -> DateWindow:
    """Build a filter window from ``startDate``/``endDate`` query values.

    A date-only end covers that whole day; a datetime end is inclusive at
    that instant. Both become an exclusive upper bound.
    """
    lower = None
    upper = None
    if start:
        parsed, _ = _parse_bound(start)
        lower = to_utc_naive(parsed, tz)
    if end:
        parsed, date_only = _parse_bound(end)
        try:
            if date_only:
                upper = _local_midnight(parsed.date() + timedelta(days=1), tz)
            else:
                upper = to_utc_naive(parsed, tz) + timedelta(microseconds=1)
        except OverflowError as exc:
            raise ValidationError(f"Invalid date: {end}") from exc
    if lower is not None and upper is not None and lower >= upper:
        raise ValidationError("Start date must be before end date")
    return DateWindow(start=lower, end=upper)
