"""Seed data for Saudi public holidays."""

from __future__ import annotations

from datetime import date
from typing import Any

from hrms.common.constants import HolidayType

NATIONAL_HOLIDAYS: tuple[dict[str, Any], ...] = (
    {
        "name": "Saudi Foundation Day",
        "name_ar": "يوم التأسيس السعودي",
        "month": 2,
        "day": 22,
        "description": "Celebrates the founding of the first Saudi state in 1727",
    },
    {
        "name": "Saudi National Day",
        "name_ar": "اليوم الوطني السعودي",
        "month": 9,
        "day": 23,
        "description": "Celebrates the unification of the Kingdom of Saudi Arabia",
    },
)

# Hijri-calendar holidays move ~11 days a year and depend on moon sighting,
# so only years with announced dates are listed.
ISLAMIC_HOLIDAYS: dict[int, tuple[tuple[str, str, date, str], ...]] = {
    2025: (
        ("Eid Al-Fitr - Day 1", "عيد الفطر - اليوم الأول", date(2025, 3, 30), "First day of Eid Al-Fitr (Shawwal 1)"),
        ("Eid Al-Fitr - Day 2", "عيد الفطر - اليوم الثاني", date(2025, 3, 31), "Second day of Eid Al-Fitr"),
        ("Eid Al-Fitr - Day 3", "عيد الفطر - اليوم الثالث", date(2025, 4, 1), "Third day of Eid Al-Fitr"),
        ("Eid Al-Fitr - Day 4", "عيد الفطر - اليوم الرابع", date(2025, 4, 2), "Fourth day of Eid Al-Fitr"),
        ("Arafat Day", "يوم عرفة", date(2025, 6, 5), "Day of Arafat during Hajj (Dhul Hijjah 9)"),
        ("Eid Al-Adha - Day 1", "عيد الأضحى - اليوم الأول", date(2025, 6, 6), "First day of Eid Al-Adha (Dhul Hijjah 10)"),
        ("Eid Al-Adha - Day 2", "عيد الأضحى - اليوم الثاني", date(2025, 6, 7), "Second day of Eid Al-Adha"),
        ("Eid Al-Adha - Day 3", "عيد الأضحى - اليوم الثالث", date(2025, 6, 8), "Third day of Eid Al-Adha"),
        ("Eid Al-Adha - Day 4", "عيد الأضحى - اليوم الرابع", date(2025, 6, 9), "Fourth day of Eid Al-Adha"),
    ),
}

ISLAMIC_DATES_NOTE = (
    "Islamic holiday dates are approximate and based on astronomical calculations. "
    "Actual dates may vary by 1-2 days based on moon sighting."
)
NATIONAL_ONLY_NOTE = (
    "Only national holidays created. Islamic holidays need to be added manually for this year."
)


def saudi_holidays_for(year: int) -> list[dict[str, Any]]:
    """Return PublicHoliday field dicts for *year*, ordered by date."""
    rows: list[dict[str, Any]] = [
        {
            "name": h["name"],
            "name_ar": h["name_ar"],
            "date": date(year, h["month"], h["day"]),
            "year": year,
            "holiday_type": HolidayType.national.value,
            "is_recurring": True,
            "description": h["description"],
        }
        for h in NATIONAL_HOLIDAYS
    ]
    for name, name_ar, day, description in ISLAMIC_HOLIDAYS.get(year, ()):
        rows.append(
            {
                "name": name,
                "name_ar": name_ar,
                "date": day,
                "year": year,
                "holiday_type": HolidayType.islamic.value,
                "is_recurring": False,
                "description": description,
            },
        )
    return sorted(rows, key=lambda r: r["date"])


def holidays_note(year: int) -> str:
    return ISLAMIC_DATES_NOTE if year in ISLAMIC_HOLIDAYS else NATIONAL_ONLY_NOTE
