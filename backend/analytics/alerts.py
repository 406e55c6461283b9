"""
alerts.py — Threshold Alert Engine
===================================

Stateless classifier that turns one reading into zero or more alerts.

For each parameter the checks run in fixed precedence
(below critical_min → below min → above critical_max → above max) and the
first one that fires produces exactly one alert. Different parameters are
independent, so one reading may yield several alerts. There is no
de-duplication or suppression window; rate limiting is up to whoever
displays the alerts.
"""

import logging
import operator
from typing import Callable, NamedTuple

from .records import CRITICAL, INFO, WARNING, Alert, Reading
from .thresholds import ThresholdTable, get_default_thresholds

logger = logging.getLogger("analytics.alerts")

GOOD = "good"


class AlertRule(NamedTuple):
    bound: str          # bound name in the threshold table
    breached: Callable  # (value, bound) -> bool
    severity: str
    alert_type: str
    message: str


_below = operator.lt
_above = operator.gt

# Parameter -> rules in precedence order; first match wins.
ALERT_RULES = {
    "dissolved_oxygen_mgl": (
        AlertRule("critical_min", _below, CRITICAL, "low_oxygen",
                  "Critical low oxygen alert! Immediate action required."),
        AlertRule("min", _below, WARNING, "low_oxygen",
                  "Low oxygen levels detected. Monitor closely."),
        AlertRule("critical_max", _above, WARNING, "high_oxygen",
                  "Oxygen oversaturation detected."),
    ),
    "ph": (
        AlertRule("critical_min", _below, CRITICAL, "acidic_water",
                  "Acidic water detected! pH critically low."),
        AlertRule("critical_max", _above, WARNING, "alkaline_water",
                  "Water pH too alkaline."),
    ),
    "turbidity_ntu": (
        AlertRule("critical_max", _above, WARNING, "high_waste",
                  "High waste detected! Elevated turbidity levels."),
    ),
    "ammonia_mgl": (
        AlertRule("critical_max", _above, CRITICAL, "high_ammonia",
                  "Toxic ammonia levels detected!"),
    ),
    "temperature_c": (
        AlertRule("critical_min", _below, WARNING, "low_temperature",
                  "Water temperature critically low. Fish growth may slow."),
        AlertRule("critical_max", _above, CRITICAL, "high_temperature",
                  "Critical high temperature! Oxygen depletion risk."),
    ),
    "fish_activity_index": (
        AlertRule("critical_min", _below, WARNING, "low_activity",
                  "Low fish activity detected. Check for stress or disease."),
    ),
    "current_speed_ms": (
        AlertRule("critical_min", _below, INFO, "low_flow",
                  "Low water flow. May affect oxygen mixing."),
    ),
}


class AlertEngine:
    """
    Classifies readings against a threshold table.

    Attributes:
        thresholds (ThresholdTable): Shared, read-only bounds.
    """

    def __init__(self, thresholds: ThresholdTable = None):
        self.thresholds = thresholds or get_default_thresholds()

    def generate_alerts(self, reading: Reading) -> list:
        """
        Evaluate every parameter of one reading.

        Returns:
            List of Alert, one per parameter with a breached bound.
        """
        alerts = []
        for parameter in ALERT_RULES:
            value = reading.value(parameter)
            bounds = self.thresholds[parameter]
            rule = self._matching_rule(parameter, value, bounds)
            if rule is None:
                continue
            alerts.append(Alert(
                timestamp=reading.timestamp,
                alert_type=rule.alert_type,
                severity=rule.severity,
                message=rule.message,
                parameter_name=parameter,
                parameter_value=value,
                threshold=getattr(bounds, rule.bound),
            ))

        if alerts:
            logger.info(
                f"{len(alerts)} alert(s) at {reading.timestamp}: "
                + ", ".join(f"{a.parameter_name}={a.severity}" for a in alerts)
            )
        return alerts

    def get_parameter_status(self, value: float, parameter: str) -> str:
        """
        Display status of one value: 'good', 'warning' or 'critical'.

        A value that would raise an alert takes that alert's severity,
        with 'info' shown as 'warning'. Otherwise a value outside
        [min, max] is a warning. Parameters without thresholds are
        always good.
        """
        bounds = self.thresholds.get(parameter)
        if bounds is None:
            return GOOD

        rule = self._matching_rule(parameter, value, bounds)
        if rule is not None:
            return WARNING if rule.severity == INFO else rule.severity

        if bounds.min is not None and value < bounds.min:
            return WARNING
        if bounds.max is not None and value > bounds.max:
            return WARNING
        return GOOD

    @staticmethod
    def _matching_rule(parameter: str, value: float, bounds):
        for rule in ALERT_RULES.get(parameter, ()):
            limit = getattr(bounds, rule.bound)
            if limit is not None and rule.breached(value, limit):
                return rule
        return None
