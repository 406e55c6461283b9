"""
scoring.py — Environment Quality Score
=======================================

Maps one reading plus the threshold table to a single score in [0, 1].

Penalties (subtracted from 1.0, then clamped):
    dissolved oxygen  −0.40 below critical_min, else −0.25 below min
    pH                −0.15 outside [min, max], plus −0.25 outside critical
    turbidity         −0.15 above max, plus −0.20 above critical_max
    ammonia           −0.20 above max, plus −0.30 above critical_max
    temperature       −0.10 outside [min, max]
    fish activity     −0.15 below min

DO uses exclusive tiers while pH, turbidity and ammonia stack.
"""

import logging

from .acceleration import AccelerationDispatcher, get_dispatcher
from .records import Reading
from .thresholds import ThresholdTable, get_default_thresholds

logger = logging.getLogger("analytics.scoring")


class EnvironmentScorer:
    def __init__(self, thresholds: ThresholdTable = None,
                 dispatcher: AccelerationDispatcher = None):
        self.thresholds = thresholds or get_default_thresholds()
        self.dispatcher = dispatcher or get_dispatcher()
        self._vector = self.thresholds.score_vector()

    def score(self, reading: Reading) -> float:
        """Environment score of one reading, in [0, 1]."""
        value = self.dispatcher.environment_score(
            reading.dissolved_oxygen_mgl,
            reading.ph,
            reading.turbidity_ntu,
            reading.ammonia_mgl,
            reading.temperature_c,
            reading.fish_activity_index,
            self._vector,
        )
        score = max(0.0, min(1.0, value))
        logger.debug(f"Environment score at {reading.timestamp}: {score:.2f}")
        return score
