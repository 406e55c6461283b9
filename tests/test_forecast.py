from __future__ import annotations

from datetime import timedelta

import numpy as np
import pytest

from backend.analytics.forecast import ENSEMBLE_MODEL, SEQUENCE_MODEL, ForecastEngine

PARAMETERS = ["dissolved_oxygen_mgl", "ph", "turbidity_ntu"]


def _by_parameter(predictions, parameter):
    return [p for p in predictions if p.parameter_name == parameter]


def test_no_forecast_below_24_readings(fallback_dispatcher, make_history) -> None:
    engine = ForecastEngine(fallback_dispatcher)
    assert engine.predict_next_hours(make_history(23)) == []
    assert engine.predict_next_hours([]) == []


def test_flat_history_projection(dispatcher, make_history) -> None:
    history = make_history(24)
    predictions = ForecastEngine(dispatcher).predict_next_hours(history, hours_ahead=6)

    assert len(predictions) == 18
    assert [p.parameter_name for p in predictions[:3]] == PARAMETERS
    assert [p.model_type for p in predictions[:3]] == [
        SEQUENCE_MODEL, SEQUENCE_MODEL, ENSEMBLE_MODEL,
    ]

    now = history[-1].timestamp
    for hour in range(1, 7):
        chunk = predictions[(hour - 1) * 3:hour * 3]
        assert all(p.prediction_time == now for p in chunk)
        assert all(p.target_time == now + timedelta(hours=hour) for p in chunk)

    do = _by_parameter(predictions, "dissolved_oxygen_mgl")
    ph = _by_parameter(predictions, "ph")
    turbidity = _by_parameter(predictions, "turbidity_ntu")

    # +0.05/h from temperature, +0.05/h from turbidity
    assert do[0].predicted_value == pytest.approx(7.1)
    assert do[-1].predicted_value == pytest.approx(7.6)
    assert [p.predicted_value for p in ph] == pytest.approx([8.0] * 6)
    # settling at 0.5 NTU/h
    assert turbidity[-1].predicted_value == pytest.approx(12.0)

    assert do[0].confidence_score == pytest.approx(0.90)
    assert do[-1].confidence_score == pytest.approx(0.80)
    assert turbidity[0].confidence_score == pytest.approx(0.86)


def test_horizon_length(fallback_dispatcher, make_history) -> None:
    engine = ForecastEngine(fallback_dispatcher)
    assert len(engine.predict_next_hours(make_history(30), hours_ahead=1)) == 3
    assert len(engine.predict_next_hours(make_history(30), hours_ahead=12)) == 36


def test_projection_is_clamped(fallback_dispatcher, make_history) -> None:
    history = make_history(24, dissolved_oxygen_mgl=lambda i: 9.0 - 0.25 * i)
    do = _by_parameter(
        ForecastEngine(fallback_dispatcher).predict_next_hours(history, 6),
        "dissolved_oxygen_mgl",
    )

    assert all(3.0 <= p.predicted_value <= 10.0 for p in do)
    assert do[-1].predicted_value == 3.0
    assert all(p.confidence_score == 0.75 for p in do)


def test_ammonia_acidifies_ph(fallback_dispatcher, make_history) -> None:
    history = make_history(24, ammonia_mgl=0.4)
    ph = _by_parameter(
        ForecastEngine(fallback_dispatcher).predict_next_hours(history, 6), "ph"
    )
    assert ph[-1].predicted_value == pytest.approx(7.8)


def test_heavy_feeding_raises_turbidity(fallback_dispatcher, make_history) -> None:
    history = make_history(24, feeding_rate_gmin=350.0)
    turbidity = _by_parameter(
        ForecastEngine(fallback_dispatcher).predict_next_hours(history, 6), "turbidity_ntu"
    )
    # +2 NTU/h from feeding at hour 6, minus 3 NTU settled
    assert turbidity[-1].predicted_value == pytest.approx(14.0)


def test_confidence_does_not_rise_with_horizon(dispatcher, make_history) -> None:
    rng = np.random.default_rng(3)
    noise = rng.normal(0.0, 0.4, size=48)
    history = make_history(
        48,
        dissolved_oxygen_mgl=lambda i: 6.8 + noise[i],
        ph=lambda i: 7.9 + noise[i] / 4,
        turbidity_ntu=lambda i: 18.0 + noise[i] * 5,
    )
    predictions = ForecastEngine(dispatcher).predict_next_hours(history, 12)

    for parameter in PARAMETERS:
        scores = [p.confidence_score for p in _by_parameter(predictions, parameter)]
        assert all(a >= b for a, b in zip(scores, scores[1:]))
        assert all(0.75 <= s <= 0.95 for s in scores)


def test_accelerated_and_portable_forecasts_agree(
    fallback_dispatcher, native_dispatcher, make_history
) -> None:
    history = make_history(
        24,
        dissolved_oxygen_mgl=lambda i: 7.2 - 0.03 * i + (0.1 if i % 3 else -0.1),
        turbidity_ntu=lambda i: 14.0 + 0.4 * i,
    )
    portable = ForecastEngine(fallback_dispatcher).predict_next_hours(history, 6)
    native = ForecastEngine(native_dispatcher).predict_next_hours(history, 6)

    assert len(portable) == len(native)
    for a, b in zip(portable, native):
        assert a.parameter_name == b.parameter_name
        assert a.predicted_value == pytest.approx(b.predicted_value, rel=1e-4)
        assert a.confidence_score == pytest.approx(b.confidence_score, abs=0.01)


def test_feature_importance_sums_to_one() -> None:
    table = ForecastEngine.feature_importance()
    assert table[0] == {"feature": "temperature_c", "importance": 0.28}
    assert sum(row["importance"] for row in table) == pytest.approx(1.0)


def test_zero_horizon_gives_no_predictions(fallback_dispatcher, make_history) -> None:
    engine = ForecastEngine(fallback_dispatcher)
    assert engine.predict_next_hours(make_history(24), hours_ahead=0) == []


def test_non_positive_window_is_rejected(fallback_dispatcher) -> None:
    with pytest.raises(ValueError):
        ForecastEngine(fallback_dispatcher, window=0)
