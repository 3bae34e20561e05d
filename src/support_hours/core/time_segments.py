"""Same-day time intervals expressed in minutes past midnight."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import time

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """Half-open ``[start, end)`` range within a single day."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not (0 <= self.start < MINUTES_PER_DAY) or not (0 < self.end <= MINUTES_PER_DAY):
            raise ValueError("TimeInterval bounds must fall within a single day")
        if self.end <= self.start:
            raise ValueError("TimeInterval end must be after start")

    @classmethod
    def from_times(cls, start: time, end: time) -> "TimeInterval":
        return cls(start=to_minutes(start), end=to_minutes(end))

    @property
    def minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError("minutes must fall within a single day")
    hours, remainder = divmod(minutes, 60)
    return time(hour=hours, minute=remainder)


def parse_clock(value: str | time) -> time:
    """Parse a 24-hour ``HH:MM`` string."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = _CLOCK_PATTERN.match(str(value).strip())
    if match is None:
        raise ValueError(f"Invalid 24-hour time: {value!r}")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def format_clock(value: time) -> str:
    return value.strftime("%H:%M")


def minutes_between(start: time, end: time) -> int:
    if end <= start:
        return 0
    return to_minutes(end) - to_minutes(start)


def clock_labels(first_hour: int, last_hour: int, step_minutes: int) -> list[str]:
    """Return ``HH:MM`` labels from ``first_hour:00`` up to and including ``last_hour:00``."""
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    labels: list[str] = []
    cursor = first_hour * 60
    limit = last_hour * 60
    while cursor <= limit:
        labels.append(format_clock(from_minutes(cursor)))
        cursor += step_minutes
    return labels
