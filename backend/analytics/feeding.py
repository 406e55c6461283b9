"""
feeding.py — Feed-Rate Recommendation
======================================

Adjusts the baseline feeding rate (280 g/min) from the current water
quality and estimates feed efficiency from recent history.

Per cycle:
    1. Environment score of the current reading (EnvironmentScorer).
    2. Additive percentage adjustment, clamped to [-40, +15].
    3. Recommended rate = baseline × (1 + adjustment/100), clamped to
       [100, 400] g/min.
    4. Human-readable reason built from the conditions that triggered.
    5. FCR and waste ratio estimated over the supplied history.
"""

import logging

import numpy as np

from . import config
from .acceleration import AccelerationDispatcher, get_dispatcher
from .records import FeedingRecommendation, Reading
from .scoring import EnvironmentScorer
from .thresholds import ThresholdTable
from .utils import clamp, readings_to_frame

logger = logging.getLogger("analytics.feeding")


class FeedingRecommender:
    """
    Produces one FeedingRecommendation per scoring cycle.

    Attributes:
        baseline_rate (float): Feeding rate (g/min) at neutral conditions.
        scorer (EnvironmentScorer): Water-quality scorer.
    """

    def __init__(self, thresholds: ThresholdTable = None,
                 dispatcher: AccelerationDispatcher = None,
                 scorer: EnvironmentScorer = None,
                 baseline_rate: float = None):
        self.dispatcher = dispatcher or get_dispatcher()
        self.scorer = scorer or EnvironmentScorer(thresholds, self.dispatcher)
        self.baseline_rate = config.BASELINE_FEEDING_RATE if baseline_rate is None else baseline_rate

    def recommend(self, reading: Reading, history) -> FeedingRecommendation:
        """
        Build the feeding recommendation for the current reading.

        Args:
            reading: Current reading.
            history: Recent readings, oldest first (not modified).
        """
        env_score = self.scorer.score(reading)
        adjustment = self.calculate_adjustment(reading, env_score)
        rate = clamp(
            self.baseline_rate * (1 + adjustment / 100),
            config.MIN_FEEDING_RATE,
            config.MAX_FEEDING_RATE,
        )

        recommendation = FeedingRecommendation(
            timestamp=reading.timestamp,
            recommended_rate_gmin=round(rate, 2),
            adjustment_percentage=round(adjustment, 2),
            reason=self.generate_reason(reading, adjustment, env_score),
            environment_score=round(env_score, 2),
            feed_conversion_ratio=self.calculate_fcr(history),
            feed_waste_ratio=self.calculate_waste_ratio(history),
        )

        logger.info(
            f"Feeding: rate={recommendation.recommended_rate_gmin} g/min "
            f"adjustment={recommendation.adjustment_percentage}% "
            f"score={recommendation.environment_score}"
        )
        return recommendation

    def calculate_adjustment(self, reading: Reading, env_score: float) -> float:
        """Percentage adjustment to the baseline, clamped to [-40, 15]."""
        adjustment = self.dispatcher.feeding_adjustment(
            reading.dissolved_oxygen_mgl,
            reading.turbidity_ntu,
            reading.ammonia_mgl,
            reading.fish_activity_index,
            reading.temperature_c,
            env_score,
        )
        return clamp(adjustment, config.MIN_ADJUSTMENT, config.MAX_ADJUSTMENT)

    @staticmethod
    def generate_reason(reading: Reading, adjustment: float, env_score: float) -> str:
        reasons = []

        if env_score < 0.6:
            reasons.append("Poor water quality conditions")
        if reading.dissolved_oxygen_mgl < 6.0:
            reasons.append("Low dissolved oxygen levels")
        if reading.turbidity_ntu > 28:
            reasons.append("High turbidity indicating feed waste")
        if reading.ammonia_mgl > 0.3:
            reasons.append("Elevated ammonia levels")
        if reading.fish_activity_index < 0.65:
            reasons.append("Reduced fish activity")
        if reading.temperature_c < 24 or reading.temperature_c > 31:
            reasons.append("Suboptimal temperature")

        if not reasons:
            if adjustment > 0:
                return "Optimal feeding conditions - slight increase recommended"
            if adjustment == 0:
                return "Environment stable - maintain current feeding rate"
            return "Preventive adjustment to maintain water quality"

        if adjustment < -15:
            action = "Reduce feeding"
        elif adjustment < 0:
            action = "Slightly reduce feeding"
        else:
            action = "Maintain feeding"
        return f"{action} due to: {', '.join(reasons)}"

    # ── History-based efficiency estimates ────────────────────────

    @staticmethod
    def calculate_fcr(history) -> float:
        """
        Feed conversion ratio estimated from activity and water quality.

        Needs config.FCR_MIN_SAMPLES readings; returns 1.5 otherwise.
        Result is clamped to [1.1, 2.2].
        """
        if len(history) < config.FCR_MIN_SAMPLES:
            return config.DEFAULT_FCR

        df = readings_to_frame(history)
        avg_activity = float(df["fish_activity_index"].mean())

        do_score = np.where(df["dissolved_oxygen_mgl"] >= 6, 1.0, 0.7)
        ph_score = np.where(df["ph"].between(7.5, 8.5), 1.0, 0.8)
        avg_quality = float(((do_score + ph_score) / 2).mean())

        activity_bonus = (avg_activity - 0.7) * 0.5
        quality_bonus = (avg_quality - 0.8) * 0.3
        return clamp(config.DEFAULT_FCR - activity_bonus - quality_bonus, 1.1, 2.2)

    @staticmethod
    def calculate_waste_ratio(history) -> float:
        """
        Percentage of feed estimated as wasted, from turbidity and ammonia.

        Needs config.WASTE_MIN_SAMPLES readings; returns 15 otherwise.
        Capped at 35.
        """
        if len(history) < config.WASTE_MIN_SAMPLES:
            return config.DEFAULT_WASTE_RATIO

        df = readings_to_frame(history)
        avg_turbidity = float(df["turbidity_ntu"].mean())
        avg_ammonia = float(df["ammonia_mgl"].mean())

        turbidity_waste = max(0.0, (avg_turbidity - 15) * 0.8)
        ammonia_waste = max(0.0, (avg_ammonia - 0.15) * 20)
        return min(35.0, turbidity_waste + ammonia_waste + 5)

    def calculate_metrics(self, history) -> dict:
        """Feed efficiency figures for display, rounded to 2 decimals."""
        fcr = self.calculate_fcr(history)
        waste_ratio = self.calculate_waste_ratio(history)
        energy_cost_per_kg = fcr * 0.45 + (waste_ratio / 100) * 0.20
        feed_efficiency = max(0.0, 100 - waste_ratio)

        return {
            "avg_fcr": round(fcr, 2),
            "avg_waste_ratio": round(waste_ratio, 2),
            "energy_cost_per_kg": round(energy_cost_per_kg, 2),
            "feed_efficiency": round(feed_efficiency, 2),
        }
