"""
records.py — Readings and Decision Records
===========================================

Immutable sensor readings flowing into the pipeline and the records it
hands back to the persistence/display collaborator.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

# Sensor fields carried by every reading, in display order.
READING_FIELDS = (
    "temperature_c",
    "dissolved_oxygen_mgl",
    "ph",
    "ammonia_mgl",
    "turbidity_ntu",
    "feeding_rate_gmin",
    "fish_activity_index",
    "current_speed_ms",
)

# Alert severities
INFO = "info"
WARNING = "warning"
CRITICAL = "critical"

# Aerator actions
TURN_ON = "turn_on"
TURN_OFF = "turn_off"
MAINTAIN = "maintain"

# Aerator urgencies
HIGH = "high"
MEDIUM = "medium"
LOW = "low"


def _parse_timestamp(value) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(timezone.utc)


def _isoformat(value: datetime) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class Reading:
    """One sampled instant from the pond sensors."""

    timestamp: datetime
    temperature_c: float
    dissolved_oxygen_mgl: float
    ph: float
    ammonia_mgl: float
    turbidity_ntu: float
    feeding_rate_gmin: float = 0.0
    fish_activity_index: float = 0.0
    current_speed_ms: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "Reading":
        """
        Build a reading from a telemetry payload.

        Missing sensor values default to 0, a missing or unparseable
        timestamp defaults to now (UTC).

        Args:
            data: Dict keyed by READING_FIELDS plus 'timestamp'.
        """
        values = {name: float(data.get(name, 0) or 0) for name in READING_FIELDS}
        return cls(timestamp=_parse_timestamp(data.get("timestamp")), **values)

    def value(self, parameter: str) -> float:
        return float(getattr(self, parameter))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = _isoformat(self.timestamp)
        return data


@dataclass
class Alert:
    timestamp: datetime
    alert_type: str
    severity: str
    message: str
    parameter_name: str
    parameter_value: float
    threshold: float
    # Only the collaborator flips this once an operator has seen the alert.
    acknowledged: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = _isoformat(self.timestamp)
        return data


@dataclass
class FeedingRecommendation:
    timestamp: datetime
    recommended_rate_gmin: float
    adjustment_percentage: float
    reason: str
    environment_score: float
    feed_conversion_ratio: float
    feed_waste_ratio: float
    applied: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = _isoformat(self.timestamp)
        return data


@dataclass
class AeratorRecommendation:
    """Recomputed every cycle; never persisted as history."""

    action: str
    confidence: float
    urgency: str
    reasoning: list = field(default_factory=list)
    expected_impact: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Prediction:
    prediction_time: datetime
    target_time: datetime
    parameter_name: str
    predicted_value: float
    confidence_score: float
    model_type: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["prediction_time"] = _isoformat(self.prediction_time)
        data["target_time"] = _isoformat(self.target_time)
        return data
