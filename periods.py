from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from config import get_settings
from errors import ReportValidationError


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date


class Clock:
    def __init__(self, timezone: Optional[str] = None) -> None:
        self.tz = ZoneInfo(timezone or get_settings().timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    def __init__(self, moment: datetime) -> None:
        self.moment = moment
        self.tz = moment.tzinfo

    def now(self) -> datetime:
        return self.moment


def _coerce_date(value: Union[str, date, None], label: str) -> date:
    if value is None or value == "":
        raise ReportValidationError(f"{label} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError as exc:
        raise ReportValidationError(f"{label} must be a valid date") from exc


def resolve_range(
    start: Union[str, date, None], end: Union[str, date, None]
) -> Period:
    start_date = _coerce_date(start, "Start date")
    end_date = _coerce_date(end, "End date")
    if end_date < start_date:
        raise ReportValidationError("End date must be after start date")
    return Period("custom", start_date, end_date)


def month_period(day: date) -> Period:
    first = day.replace(day=1)
    if first.month == 12:
        next_month = first.replace(year=first.year + 1, month=1)
    else:
        next_month = first.replace(month=first.month + 1)
    return Period("month", first, next_month - date.resolution)


def year_period(year: int) -> Period:
    return Period("year", date(year, 1, 1), date(year, 12, 31))


def trailing_days(today: date, days: int) -> Period:
    return Period("trailing", today - timedelta(days=days - 1), today)
