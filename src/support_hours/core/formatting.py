"""Display formatting shared by reports, calendars and the CLI."""

from __future__ import annotations

import calendar
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal

SUPPORT_TYPE_LABELS = {
    "mental_health": "Mental Health Support",
    "domestic_independence": "Domestic & Independence Support",
    "activity_group": "Activity Based Group Support",
}

STATUS_LABELS = {
    "planned": "Planned",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "no_show": "No Show",
}


def round_half_up(value: float, places: int = 1) -> float:
    """Round like a spreadsheet does (2.25 -> 2.3), not like ``round``."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(numerator: float, denominator: float | None) -> float:
    """``numerator / denominator * 100`` to one decimal place; 0 when there is no denominator."""
    if not denominator:
        return 0.0
    return round_half_up(numerator / denominator * 100, 1)


def format_hours(hours: float) -> str:
    return f"{round_half_up(hours, 1):.1f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_number(value: float) -> str:
    """Render whole numbers without a trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def format_duration(minutes: int) -> str:
    hours, remainder = divmod(minutes, 60)
    chunks = []
    if hours:
        chunks.append(f"{hours}h")
    if remainder or not chunks:
        chunks.append(f"{remainder}m")
    return " ".join(chunks)


def format_time_range(start: time, end: time) -> str:
    return f"{start.strftime('%H:%M')} - {end.strftime('%H:%M')}"


def support_type_label(key: str) -> str:
    return SUPPORT_TYPE_LABELS.get(key, key.replace("_", " ").title())


def status_label(key: str) -> str:
    return STATUS_LABELS.get(key, key.replace("_", " ").title())


def month_name(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {month}")
    return calendar.month_name[month]


def month_title(year: int, month: int) -> str:
    return f"{month_name(month)} {year}"


def week_title(week_start: date) -> str:
    return f"Week of {week_start.strftime('%d/%m/%Y')}"


def day_title(day: date) -> str:
    return f"{day.strftime('%A')} {day.day} {month_name(day.month)} {day.year}"
