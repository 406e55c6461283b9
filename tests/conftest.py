from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.analytics import config  # noqa: E402
from backend.analytics.acceleration import AccelerationDispatcher  # noqa: E402
from backend.analytics.records import Reading  # noqa: E402
from backend.analytics.thresholds import ThresholdTable, build_thresholds  # noqa: E402

BASE_TIME = datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc)

HEALTHY = {
    "temperature_c": 27.0,
    "dissolved_oxygen_mgl": 7.0,
    "ph": 8.0,
    "ammonia_mgl": 0.02,
    "turbidity_ntu": 15.0,
    "feeding_rate_gmin": 250.0,
    "fish_activity_index": 0.8,
    "current_speed_ms": 0.5,
}


@pytest.fixture()
def thresholds() -> ThresholdTable:
    return build_thresholds(config.DEFAULT_THRESHOLDS)


@pytest.fixture()
def fallback_dispatcher() -> AccelerationDispatcher:
    dispatcher = AccelerationDispatcher(enabled=False)
    assert dispatcher.preload() is False
    return dispatcher


@pytest.fixture()
def native_dispatcher() -> AccelerationDispatcher:
    dispatcher = AccelerationDispatcher(
        module_name="backend.analytics.native_kernel", enabled=True
    )
    assert dispatcher.preload(timeout=30) is True
    return dispatcher


@pytest.fixture(params=["fallback", "native"])
def dispatcher(request) -> AccelerationDispatcher:
    return request.getfixturevalue(f"{request.param}_dispatcher")


@pytest.fixture()
def make_reading() -> Callable[..., Reading]:
    def _make(index: int = 0, **overrides) -> Reading:
        values = {**HEALTHY, **overrides}
        return Reading(timestamp=BASE_TIME + timedelta(hours=index), **values)

    return _make


@pytest.fixture()
def make_history(make_reading) -> Callable[..., List[Reading]]:
    """
    Build `count` hourly readings. Keyword overrides may be constants or
    callables taking the sample index.
    """

    def _make(count: int, **overrides) -> List[Reading]:
        history = []
        for i in range(count):
            values = {
                key: (value(i) if callable(value) else value)
                for key, value in overrides.items()
            }
            history.append(make_reading(i, **values))
        return history

    return _make
