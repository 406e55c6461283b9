from __future__ import annotations

import logging
import threading
import types
from concurrent.futures import ThreadPoolExecutor

import pytest

from backend.analytics import acceleration, native_kernel, stat_kernel
from backend.analytics.acceleration import AccelerationDispatcher


def _patch_import(monkeypatch, fake_import) -> None:
    monkeypatch.setattr(
        acceleration, "importlib", types.SimpleNamespace(import_module=fake_import)
    )


def test_disabled_dispatcher_uses_portable_kernel() -> None:
    dispatcher = AccelerationDispatcher(enabled=False)

    assert dispatcher.preload() is False
    assert dispatcher.is_ready is False
    assert dispatcher.trend([1.0, 2.0, 3.0]) == pytest.approx(1.0)
    assert dispatcher.variance([1.0, 2.0, 3.0, 4.0]) == pytest.approx(1.25)


def test_missing_module_falls_back_with_one_warning(caplog) -> None:
    dispatcher = AccelerationDispatcher(
        module_name="backend.analytics.no_such_kernel", enabled=True
    )

    with caplog.at_level(logging.WARNING, logger="analytics.acceleration"):
        assert dispatcher.preload(timeout=10) is False
        assert dispatcher.preload(timeout=10) is False

    warnings = [r for r in caplog.records if "failed to load" in r.getMessage()]
    assert len(warnings) == 1
    assert dispatcher.is_ready is False
    assert dispatcher.trend([0.0, 2.0, 1.0, 3.0]) == pytest.approx(0.8)


def test_module_without_kernel_functions_is_rejected() -> None:
    dispatcher = AccelerationDispatcher(module_name="backend.analytics.config", enabled=True)
    assert dispatcher.preload(timeout=10) is False


def test_native_kernel_loads_and_matches_portable(native_dispatcher, thresholds) -> None:
    values = [6.8, 6.7, 6.9, 6.4, 6.2, 6.3, 6.0, 5.9]
    vector = thresholds.score_vector()

    assert native_dispatcher.is_ready is True
    assert native_dispatcher.trend(values) == pytest.approx(
        stat_kernel.trend(values), rel=1e-4
    )
    assert native_dispatcher.variance(values) == pytest.approx(
        stat_kernel.variance(values), rel=1e-4
    )
    assert native_dispatcher.environment_score(
        5.8, 8.6, 27.0, 0.3, 32.0, 0.55, vector
    ) == stat_kernel.environment_score(5.8, 8.6, 27.0, 0.3, 32.0, 0.55, vector)
    assert native_dispatcher.outstanding_buffers == 0


def test_concurrent_preload_loads_once(monkeypatch) -> None:
    calls = []
    lock = threading.Lock()

    def counting_import(name):
        with lock:
            calls.append(name)
        return native_kernel

    _patch_import(monkeypatch, counting_import)
    dispatcher = AccelerationDispatcher(module_name="fake.kernel", enabled=True)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: dispatcher.preload(timeout=10), range(16)))

    assert results == [True] * 16
    assert calls == ["fake.kernel"]


def test_calls_do_not_wait_for_a_pending_load(monkeypatch) -> None:
    release = threading.Event()

    def slow_import(name):
        release.wait(10)
        return native_kernel

    _patch_import(monkeypatch, slow_import)
    dispatcher = AccelerationDispatcher(module_name="slow.kernel", enabled=True)

    # Load is in flight: calls are answered by the portable kernel.
    assert dispatcher.trend([1.0, 2.0, 3.0]) == pytest.approx(1.0)
    assert dispatcher.is_ready is False

    release.set()
    assert dispatcher.preload(timeout=10) is True
    assert dispatcher.is_ready is True
    assert dispatcher.trend([1.0, 2.0, 3.0]) == pytest.approx(1.0)


def test_scratch_buffer_released_when_kernel_raises(monkeypatch) -> None:
    def broken(*args):
        raise RuntimeError("kernel fault")

    fake_kernel = types.SimpleNamespace(
        trend=broken,
        variance=broken,
        environment_score=broken,
        feeding_adjustment=broken,
    )
    _patch_import(monkeypatch, lambda name: fake_kernel)
    dispatcher = AccelerationDispatcher(module_name="broken.kernel", enabled=True)
    assert dispatcher.preload(timeout=10) is True

    with pytest.raises(RuntimeError):
        dispatcher.trend([1.0, 2.0, 3.0])
    with pytest.raises(RuntimeError):
        dispatcher.environment_score(7.0, 8.0, 15.0, 0.02, 27.0, 0.8, [0.0] * 13)

    assert dispatcher.outstanding_buffers == 0


def test_load_failure_is_not_retried(monkeypatch) -> None:
    calls = []

    def failing_import(name):
        calls.append(name)
        raise ImportError("no accelerated build")

    _patch_import(monkeypatch, failing_import)
    dispatcher = AccelerationDispatcher(module_name="absent.kernel", enabled=True)

    assert dispatcher.preload(timeout=10) is False
    dispatcher.trend([1.0, 2.0])
    dispatcher.variance([1.0, 2.0])
    assert dispatcher.preload(timeout=10) is False
    assert calls == ["absent.kernel"]


def test_preload_timeout_reports_not_ready(monkeypatch) -> None:
    release = threading.Event()

    def slow_import(name):
        release.wait(10)
        return native_kernel

    _patch_import(monkeypatch, slow_import)
    dispatcher = AccelerationDispatcher(module_name="slow.kernel", enabled=True)

    try:
        assert dispatcher.preload(timeout=0.05) is False
        assert dispatcher.is_ready is False
    finally:
        release.set()

    assert dispatcher.preload(timeout=10) is True


def test_process_wide_preload_honours_timeout(monkeypatch) -> None:
    release = threading.Event()
    _patch_import(monkeypatch, lambda name: release.wait(10) and native_kernel)
    monkeypatch.setattr(
        acceleration, "_dispatcher",
        AccelerationDispatcher(module_name="slow.kernel", enabled=True),
    )

    try:
        assert acceleration.preload_acceleration(timeout=0.05) is False
    finally:
        release.set()
    assert acceleration.preload_acceleration(timeout=10) is True


def test_buffer_count_settles_under_concurrent_calls(native_dispatcher) -> None:
    values = [6.8, 6.5, 6.9, 6.1, 6.0]

    def hammer(_):
        for _ in range(200):
            native_dispatcher.trend(values)
            native_dispatcher.variance(values)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(hammer, range(8)))

    assert native_dispatcher.outstanding_buffers == 0
