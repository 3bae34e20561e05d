from __future__ import annotations

from datetime import time

import pytest

from support_hours.core.time_segments import (
    TimeInterval,
    clock_labels,
    format_clock,
    from_minutes,
    minutes_between,
    parse_clock,
)


def test_overlapping_intervals_detected():
    assert TimeInterval(540, 600).overlaps(TimeInterval(570, 630))
    assert TimeInterval(570, 630).overlaps(TimeInterval(540, 600))


def test_back_to_back_intervals_do_not_overlap():
    morning = TimeInterval(540, 600)
    later = TimeInterval(600, 660)
    assert not morning.overlaps(later)


def test_contained_interval_overlaps():
    assert TimeInterval(540, 720).overlaps(TimeInterval(600, 630))


@pytest.mark.parametrize("start,end", [(600, 600), (600, 540), (-1, 60), (0, 24 * 60 + 1)])
def test_invalid_interval_rejected(start, end):
    with pytest.raises(ValueError):
        TimeInterval(start, end)


def test_parse_clock_accepts_24_hour_times():
    assert parse_clock("9:05") == time(9, 5)
    assert parse_clock("23:59") == time(23, 59)
    assert parse_clock(time(8, 30, 15)) == time(8, 30)


@pytest.mark.parametrize("value", ["24:00", "09:60", "9am", "", "12:5"])
def test_parse_clock_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_clock_helpers():
    assert format_clock(time(7, 5)) == "07:05"
    assert from_minutes(615) == time(10, 15)
    assert minutes_between(time(9, 0), time(10, 30)) == 90
    assert minutes_between(time(10, 0), time(9, 0)) == 0


def test_clock_labels_include_last_hour():
    labels = clock_labels(9, 18, 30)
    assert len(labels) == 19
    assert labels[0] == "09:00"
    assert labels[1] == "09:30"
    assert labels[-1] == "18:00"
