from __future__ import annotations

from datetime import datetime, timezone

import pytest

from backend.analytics.records import READING_FIELDS, Reading
from backend.analytics.windowing import HistoryWindow


def test_window_evicts_oldest(make_history) -> None:
    window = HistoryWindow(capacity=3)
    readings = make_history(5, dissolved_oxygen_mgl=lambda i: 6.0 + i)
    window.extend(readings)

    assert len(window) == 3
    assert window.is_full()
    assert [r.dissolved_oxygen_mgl for r in window] == [8.0, 9.0, 10.0]


def test_snapshot_is_not_affected_by_later_readings(make_history) -> None:
    window = HistoryWindow(capacity=4)
    readings = make_history(6)
    window.extend(readings[:4])

    snapshot = window.get_window()
    window.extend(readings[4:])

    assert isinstance(snapshot, tuple)
    assert snapshot == tuple(readings[:4])
    assert window.get_window() == tuple(readings[2:])


def test_latest(make_history) -> None:
    window = HistoryWindow(capacity=10)
    readings = make_history(4)
    window.extend(readings)

    assert window.latest(2) == tuple(readings[2:])
    assert window.latest(20) == tuple(readings)
    assert window.latest(0) == ()


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        HistoryWindow(capacity=-1)


def test_default_capacity_and_reset(make_history) -> None:
    window = HistoryWindow()
    assert window.capacity == 24

    window.extend(make_history(3))
    window.reset()
    assert window.get_buffer_size() == 0


def test_to_frame_columns(make_history) -> None:
    window = HistoryWindow(capacity=5)
    window.extend(make_history(5, ph=lambda i: 7.6 + i * 0.1))

    df = window.to_frame()
    assert list(df.columns) == ["timestamp", *READING_FIELDS]
    assert len(df) == 5
    assert df["ph"].iloc[-1] == pytest.approx(8.0)


def test_reading_from_telemetry_payload() -> None:
    reading = Reading.from_dict({
        "timestamp": "2024-06-01T06:00:00Z",
        "temperature_c": "27.5",
        "dissolved_oxygen_mgl": 6.4,
        "ph": 7.9,
        "ammonia_mgl": None,
        "turbidity_ntu": 18,
    })

    assert reading.timestamp == datetime(2024, 6, 1, 6, 0, tzinfo=timezone.utc)
    assert reading.temperature_c == 27.5
    assert reading.ammonia_mgl == 0.0
    assert reading.fish_activity_index == 0.0
    assert reading.to_dict()["timestamp"] == "2024-06-01T06:00:00+00:00"


def test_reading_without_timestamp_is_stamped_now() -> None:
    reading = Reading.from_dict({"dissolved_oxygen_mgl": 7.0})
    assert reading.timestamp.tzinfo is not None
    assert reading.value("dissolved_oxygen_mgl") == 7.0


@pytest.mark.parametrize("capacity", [0, -3])
def test_non_positive_capacity_is_rejected(capacity: int) -> None:
    with pytest.raises(ValueError, match="must be positive"):
        HistoryWindow(capacity=capacity)
