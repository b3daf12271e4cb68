"""Working-day calendar: which days are worked and how many hours they expect."""
import calendar
from datetime import date
from typing import List, NamedTuple

SATURDAY_HOURS = 4.0
WEEKDAY_HOURS = 8.5


class DayPolicy(NamedTuple):
    is_working_day: bool
    expected_hours: float


def classify(day: date) -> DayPolicy:
    """Return the working-day classification for `day`.

    Sunday is off, Saturday is a half day, Monday to Friday are full days.
    """
    weekday = day.weekday()  # Monday == 0
    if weekday == 6:
        return DayPolicy(False, 0.0)
    if weekday == 5:
        return DayPolicy(True, SATURDAY_HOURS)
    return DayPolicy(True, WEEKDAY_HOURS)


def expected_hours_for(day: date) -> float:
    return classify(day).expected_hours


def is_working_day(day: date) -> bool:
    return classify(day).is_working_day


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_days(year: int, month: int) -> List[date]:
    """Every calendar day of the month, day 1 through the last day inclusive."""
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


def monthly_expected_hours(year: int, month: int) -> float:
    """Sum of expected hours over every day of the month."""
    return sum(expected_hours_for(d) for d in month_days(year, month))


def month_name(month: int) -> str:
    return calendar.month_name[month]
