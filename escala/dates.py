"""Calendar helpers: date keys, month keys and the Monday-first month grid."""
from datetime import date, timedelta
from typing import List, Optional

from .models import WeekDate

# Python weekday(): 0 = Monday ... 6 = Sunday
DAY_NAMES = [
    "Segunda-Feira", "Terça-Feira", "Quarta-Feira", "Quinta-Feira",
    "Sexta-Feira", "Sábado", "Domingo",
]
MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]


def to_date_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_display_date(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}/{d.year:04d}"


def get_month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def current_month_key() -> str:
    return get_month_key(date.today())


def parse_month_key(month_key: str):
    """Return (year, month) for "YYYY-MM"; raises ValueError otherwise."""
    parts = str(month_key).split("-")
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        raise ValueError(f"Invalid month key: {month_key!r}")
    year, month = int(parts[0]), int(parts[1])
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key: {month_key!r}")
    return year, month


def parse_date_key(date_key: str) -> date:
    try:
        return date.fromisoformat(date_key)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date key: {date_key!r}")


def get_month_name(month_key: str) -> str:
    year, month = parse_month_key(month_key)
    return f"{MONTH_NAMES[month - 1]} de {year}"


def shift_month(month_key: str, delta: int) -> str:
    """Month key `delta` months away (negative for previous months)."""
    year, month = parse_month_key(month_key)
    idx = year * 12 + (month - 1) + delta
    return f"{idx // 12:04d}-{idx % 12 + 1:02d}"


def template_day_index(d: date) -> int:
    """Template bucket for a calendar day: 0 = Monday ... 6 = Sunday."""
    return d.weekday()


def get_weeks_for_month(month_key: str) -> List[List[WeekDate]]:
    """
    Weeks (lists of 7 days) covering the whole month.
    Starts on the Monday on or before the 1st and ends on the Sunday on or
    after the last day; padding days are flagged is_out_of_month.
    """
    year, month = parse_month_key(month_key)
    first = date(year, month, 1)
    last = date(year + (month == 12), month % 12 + 1, 1) - timedelta(days=1)
    start = first - timedelta(days=first.weekday())
    end = last + timedelta(days=6 - last.weekday())

    weeks: List[List[WeekDate]] = []
    current: List[WeekDate] = []
    d = start
    while d <= end:
        current.append(WeekDate(
            day_name=DAY_NAMES[d.weekday()],
            date=format_display_date(d),
            date_key=to_date_key(d),
            is_out_of_month=d.month != month,
        ))
        if len(current) == 7:
            weeks.append(current)
            current = []
        d += timedelta(days=1)
    return weeks


def get_week_range_string(week: List[WeekDate]) -> str:
    if not week:
        return ""
    return f"{week[0].date[:5]} - {week[-1].date[:5]}"


def tomorrow_date_key(today: Optional[date] = None) -> str:
    return to_date_key((today or date.today()) + timedelta(days=1))


def format_date_pt(date_key: str) -> str:
    year, month, day = date_key.split("-")
    return f"{day}/{month}/{year}"
