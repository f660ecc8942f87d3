"""Working-day classification for leave ranges.

Every calendar day in ``[start, end]`` is exactly one of ``working``,
``weekend`` (Friday/Saturday) or ``holiday``; a holiday falling on a
weekend counts as a holiday. Only working days are deducted from balance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional

from hrms.common.constants import DAY_NAMES, WEEKEND_DAYS, DayType
from hrms.common.exceptions import ValidationException


@dataclass(frozen=True)
class HolidayInfo:
    date: date
    name: str
    name_ar: Optional[str] = None
    holiday_type: Optional[str] = None


@dataclass(frozen=True)
class ClassifiedDay:
    date: date
    day_of_week: str
    type: DayType
    holiday_name: Optional[str] = None


@dataclass
class LeaveDayBreakdown:
    start_date: date
    end_date: date
    days: list[ClassifiedDay] = field(default_factory=list)
    overlapping_holidays: list[HolidayInfo] = field(default_factory=list)

    def _count(self, day_type: DayType) -> int:
        return sum(1 for d in self.days if d.type is day_type)

    @property
    def total_days(self) -> int:
        return len(self.days)

    @property
    def working_days(self) -> int:
        return self._count(DayType.working)

    @property
    def weekend_days(self) -> int:
        return self._count(DayType.weekend)

    @property
    def holiday_days(self) -> int:
        return self._count(DayType.holiday)

    @property
    def leave_days_to_deduct(self) -> int:
        return self.working_days


def years_in_range(start: date, end: date) -> list[int]:
    return list(range(start.year, end.year + 1))


def classify_day(day: date, holidays: Mapping[date, HolidayInfo]) -> ClassifiedDay:
    holiday = holidays.get(day)
    if holiday is not None:
        day_type = DayType.holiday
    elif day.weekday() in WEEKEND_DAYS:
        day_type = DayType.weekend
    else:
        day_type = DayType.working
    return ClassifiedDay(
        date=day,
        day_of_week=DAY_NAMES[day.weekday()],
        type=day_type,
        holiday_name=holiday.name if holiday else None,
    )


def calculate_leave_days(
    start: date,
    end: date,
    holidays: Iterable[HolidayInfo] = (),
) -> LeaveDayBreakdown:
    """Classify each day of ``[start, end]`` against weekends and *holidays*."""
    if end < start:
        raise ValidationException({"end_date": ["end_date must be after start_date"]})

    holidays = list(holidays)
    by_date: dict[date, HolidayInfo] = {}
    for holiday in holidays:
        by_date.setdefault(holiday.date, holiday)

    breakdown = LeaveDayBreakdown(start_date=start, end_date=end)
    day = start
    while day <= end:
        breakdown.days.append(classify_day(day, by_date))
        day += timedelta(days=1)

    breakdown.overlapping_holidays = sorted(
        (h for h in holidays if start <= h.date <= end),
        key=lambda h: h.date,
    )
    return breakdown
