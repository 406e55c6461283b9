"""
pipeline.py — Reading-to-Decision Pipeline
===========================================

Runs one synchronous decision cycle for a new reading and hands the
results to a sink.

Flow:
    reading + history
        -> AlertEngine          (alerts)
        -> FeedingRecommender   (environment score, feed rate, FCR, waste)
        -> AeratorRecommender   (turn_on / turn_off / maintain)
        -> ForecastEngine       (DO, pH, turbidity projections)
        -> sink.publish()       (fire-and-forget)

The only background work is the one-time load of the accelerated kernel;
the cycle itself never waits for it.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from . import config
from .acceleration import AccelerationDispatcher, get_dispatcher, preload_acceleration
from .aerator import AeratorRecommender
from .alerts import AlertEngine
from .feeding import FeedingRecommender
from .forecast import ForecastEngine
from .records import AeratorRecommendation, FeedingRecommendation, Reading
from .scoring import EnvironmentScorer
from .sink import RecordSink
from .thresholds import ThresholdTable, get_default_thresholds

logger = logging.getLogger("analytics.pipeline")

__all__ = ["DecisionPipeline", "DecisionResult", "process_reading", "preload_acceleration"]


@dataclass
class DecisionResult:
    alerts: list = field(default_factory=list)
    feeding_recommendation: Optional[FeedingRecommendation] = None
    aerator_recommendation: Optional[AeratorRecommendation] = None
    predictions: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "alerts": [a.to_dict() for a in self.alerts],
            "feeding_recommendation": (
                self.feeding_recommendation.to_dict()
                if self.feeding_recommendation else None
            ),
            "aerator_recommendation": (
                self.aerator_recommendation.to_dict()
                if self.aerator_recommendation else None
            ),
            "predictions": [p.to_dict() for p in self.predictions],
        }


class DecisionPipeline:
    """
    Wires the decision components around one threshold table.

    Usage:
        pipeline = DecisionPipeline(sink=MqttSink())
        result = pipeline.process(reading, history, aerator_active=False)
    """

    def __init__(self, thresholds: ThresholdTable = None,
                 dispatcher: AccelerationDispatcher = None,
                 sink: RecordSink = None,
                 hours_ahead: int = None):
        self.thresholds = thresholds or get_default_thresholds()
        self.dispatcher = dispatcher or get_dispatcher()
        self.sink = sink
        self.hours_ahead = config.FORECAST_HOURS if hours_ahead is None else hours_ahead

        self.alerts = AlertEngine(self.thresholds)
        self.scorer = EnvironmentScorer(self.thresholds, self.dispatcher)
        self.feeding = FeedingRecommender(dispatcher=self.dispatcher, scorer=self.scorer)
        self.aerator = AeratorRecommender()
        self.forecast = ForecastEngine(self.dispatcher)

    def process(self, reading: Reading, history,
                aerator_active: bool = False) -> DecisionResult:
        """
        Run one decision cycle.

        Args:
            reading: Current reading.
            history: Recent readings, oldest first; normally ends with
                `reading`. Never modified.
            aerator_active: Current aerator state, owned by the caller.
        """
        history = tuple(history)

        result = DecisionResult(
            alerts=self.alerts.generate_alerts(reading),
            feeding_recommendation=self.feeding.recommend(reading, history),
            aerator_recommendation=self.aerator.recommend(reading, history, aerator_active),
            predictions=self.forecast.predict_next_hours(history, self.hours_ahead),
        )

        logger.info(
            f"Cycle at {reading.timestamp}: {len(result.alerts)} alert(s), "
            f"feed={result.feeding_recommendation.recommended_rate_gmin} g/min, "
            f"aerator={result.aerator_recommendation.action}, "
            f"{len(result.predictions)} prediction(s), "
            f"accelerated={self.dispatcher.is_ready}"
        )

        self._emit(result)
        return result

    def _emit(self, result: DecisionResult) -> None:
        """Hand results to the sink; sink failures are logged, never raised."""
        if self.sink is None:
            return

        records = [("alert", a) for a in result.alerts]
        records.append(("feeding_recommendation", result.feeding_recommendation))
        records.append(("aerator_recommendation", result.aerator_recommendation))
        records.extend(("prediction", p) for p in result.predictions)

        for kind, record in records:
            try:
                self.sink.publish(kind, record)
            except Exception as e:
                logger.error(f"Sink failed for {kind} record: {e}", exc_info=True)


def process_reading(reading: Reading, thresholds: ThresholdTable, history,
                    aerator_active: bool = False,
                    hours_ahead: int = None) -> DecisionResult:
    """
    Main entry point: run one decision cycle without a sink.

    Args:
        reading: Current reading.
        thresholds: Threshold table (None for the process default).
        history: Recent readings, oldest first.
        aerator_active: Current aerator state.
        hours_ahead: Forecast horizon. Defaults to config.FORECAST_HOURS.
    """
    pipeline = DecisionPipeline(thresholds=thresholds, hours_ahead=hours_ahead)
    return pipeline.process(reading, history, aerator_active)
