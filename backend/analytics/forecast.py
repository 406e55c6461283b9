"""
forecast.py — Short-Horizon Water-Quality Forecast
===================================================

Projects dissolved oxygen, pH and turbidity 1..N hours ahead from the
last 24 readings.

Each projection is:
    current value + trend × hour + physical covariate effect
where the trend is the least-squares slope over the last 24 samples and
the covariates are averages over the same samples:
    DO         — temperature and turbidity
    pH         — ammonia (acidifies when average ammonia > 0.3 mg/L)
    turbidity  — recent feeding rate, minus settling of 0.5 NTU/hour

Confidence falls with the parameter's variance and with the horizon,
inside a fixed band per parameter. With fewer than 24 readings no
forecast is produced; an empty list is a valid result.
"""

import logging
from datetime import timedelta

from . import config
from .acceleration import AccelerationDispatcher, get_dispatcher
from .records import Prediction
from .utils import clamp, column_values, readings_to_frame

logger = logging.getLogger("analytics.forecast")

# Display tags for the model family behind each parameter.
SEQUENCE_MODEL = "LSTM"
ENSEMBLE_MODEL = "RandomForest"

# Static importance of the sensor features, shown alongside forecasts.
FEATURE_IMPORTANCE = (
    ("temperature_c", 0.28),
    ("current_speed_ms", 0.22),
    ("turbidity_ntu", 0.18),
    ("feeding_rate_gmin", 0.15),
    ("ammonia_mgl", 0.10),
    ("fish_activity_index", 0.07),
)


class ForecastEngine:
    """
    Per-parameter forecaster built on the trend/variance kernel.

    Attributes:
        window (int): Readings used for trends, variances and covariates.
    """

    def __init__(self, dispatcher: AccelerationDispatcher = None, window: int = None):
        self.dispatcher = dispatcher or get_dispatcher()
        self.window = config.FORECAST_MIN_SAMPLES if window is None else window
        if self.window < 1:
            raise ValueError(f"Forecast window must be positive, got {self.window}")

    def predict_next_hours(self, history, hours_ahead: int = None) -> list:
        """
        Forecast DO, pH and turbidity for hours 1..hours_ahead.

        Args:
            history: Recent readings, oldest first; the last one is "now".
            hours_ahead: Horizon in hours. Defaults to config.FORECAST_HOURS.

        Returns:
            List of Prediction ordered by hour, then DO, pH, turbidity.
            Empty if history has fewer than config.FORECAST_MIN_SAMPLES.
        """
        if hours_ahead is None:
            hours_ahead = config.FORECAST_HOURS
        history = list(history)
        if len(history) < config.FORECAST_MIN_SAMPLES:
            logger.debug(f"Forecast skipped: {len(history)} readings, "
                         f"need {config.FORECAST_MIN_SAMPLES}")
            return []

        recent = history[-self.window:]
        latest = history[-1]
        prediction_time = latest.timestamp

        do_values = column_values(recent, "dissolved_oxygen_mgl")
        ph_values = column_values(recent, "ph")
        turbidity_values = column_values(recent, "turbidity_ntu")

        do_trend = self.dispatcher.trend(do_values)
        ph_trend = self.dispatcher.trend(ph_values)
        turbidity_trend = self.dispatcher.trend(turbidity_values)

        do_variance = self.dispatcher.variance(do_values)
        ph_variance = self.dispatcher.variance(ph_values)
        turbidity_variance = self.dispatcher.variance(turbidity_values)

        df = readings_to_frame(recent)
        avg_temp = float(df["temperature_c"].mean())
        avg_turbidity = float(df["turbidity_ntu"].mean())
        avg_ammonia = float(df["ammonia_mgl"].mean())
        avg_feeding = float(df["feeding_rate_gmin"].tail(6).sum()) / 6

        predictions = []
        for hour in range(1, hours_ahead + 1):
            target_time = prediction_time + timedelta(hours=hour)
            horizon = hour / 6

            # Dissolved oxygen
            temp_effect = (30 - avg_temp) * 0.1 * horizon
            turbidity_effect = (25 - avg_turbidity) * 0.03 * horizon
            do_value = latest.dissolved_oxygen_mgl + do_trend * hour + temp_effect + turbidity_effect
            do_confidence = clamp(0.92 - do_variance * 0.1 - hour * 0.02, 0.75, 0.95)
            predictions.append(Prediction(
                prediction_time=prediction_time,
                target_time=target_time,
                parameter_name="dissolved_oxygen_mgl",
                predicted_value=clamp(do_value, 3.0, 10.0),
                confidence_score=round(do_confidence, 2),
                model_type=SEQUENCE_MODEL,
            ))

            # pH
            ammonia_effect = -0.2 * horizon if avg_ammonia > 0.3 else 0.0
            ph_value = latest.ph + ph_trend * hour + ammonia_effect
            ph_confidence = clamp(0.90 - ph_variance * 0.08 - hour * 0.015, 0.80, 0.95)
            predictions.append(Prediction(
                prediction_time=prediction_time,
                target_time=target_time,
                parameter_name="ph",
                predicted_value=clamp(ph_value, 6.0, 9.5),
                confidence_score=round(ph_confidence, 2),
                model_type=SEQUENCE_MODEL,
            ))

            # Turbidity
            feeding_effect = (avg_feeding - 250) * 0.02 * horizon
            settling_effect = -hour * 0.5
            turbidity_value = (latest.turbidity_ntu + turbidity_trend * hour
                               + feeding_effect + settling_effect)
            turbidity_confidence = clamp(
                0.88 - turbidity_variance * 0.05 - hour * 0.018, 0.78, 0.92
            )
            predictions.append(Prediction(
                prediction_time=prediction_time,
                target_time=target_time,
                parameter_name="turbidity_ntu",
                predicted_value=max(0.0, turbidity_value),
                confidence_score=round(turbidity_confidence, 2),
                model_type=ENSEMBLE_MODEL,
            ))

        logger.info(
            f"Forecast: {len(predictions)} predictions over {hours_ahead}h "
            f"(DO trend={do_trend:.3f}, pH trend={ph_trend:.3f}, "
            f"turbidity trend={turbidity_trend:.3f})"
        )
        return predictions

    @staticmethod
    def feature_importance() -> list:
        """Feature importance table as [{'feature', 'importance'}]."""
        return [
            {"feature": feature, "importance": importance}
            for feature, importance in FEATURE_IMPORTANCE
        ]
