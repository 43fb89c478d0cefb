"""Tests for duration and data size parsing."""

from datetime import timedelta

import pytest

from clientwire.utils.units import parse_data_size, parse_duration, to_millis, to_seconds


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("500ms", timedelta(milliseconds=500)),
        ("30s", timedelta(seconds=30)),
        ("2m", timedelta(minutes=2)),
        ("1h", timedelta(hours=1)),
        ("1d", timedelta(days=1)),
        (15, timedelta(seconds=15)),
        ("10", timedelta(seconds=10)),
        (None, None),
    ],
)
def test_parse_duration(raw, expected) -> None:
    assert parse_duration(raw) == expected


def test_parse_duration_rejects_booleans_and_garbage() -> None:
    with pytest.raises(ValueError):
        parse_duration(True)
    with pytest.raises(ValueError):
        parse_duration("soon")


def test_parse_data_size() -> None:
    assert parse_data_size("16KB") == 16 * 1024
    assert parse_data_size("1mb") == 1024 * 1024
    assert parse_data_size(512) == 512
    assert parse_data_size(None) is None


def test_conversions_truncate() -> None:
    assert to_millis(timedelta(seconds=1.5)) == 1500
    assert to_seconds(timedelta(milliseconds=2500)) == 2
    assert to_millis(None) is None


@pytest.mark.parametrize("millis", [1, 999, 1001, 1005, 2003, 4097, 199_999])
def test_millisecond_strings_render_exactly(millis: int) -> None:
    assert to_millis(parse_duration(f"{millis}ms")) == millis


def test_seconds_are_exact_at_whole_boundaries() -> None:
    assert to_seconds(parse_duration("3000ms")) == 3
    assert to_seconds(parse_duration("2999ms")) == 2
