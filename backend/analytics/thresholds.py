"""
thresholds.py — Parameter Threshold Table
==========================================

Loads and validates the per-parameter bounds shared by the alert engine,
the environment scorer and the display status helper.

Each parameter has a fixed bound shape:
    range parameters      — min, max, critical_min, critical_max
    upper-bound only      — max, critical_max   (ammonia, turbidity)
    lower-bound only      — min, critical_min   (activity, current speed)

A table missing a required bound is a fatal configuration error: it is
raised once at startup instead of surfacing later as a wrong alert.
"""

import json
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from . import config

logger = logging.getLogger("analytics.thresholds")

RANGE_BOUNDS = ("min", "max", "critical_min", "critical_max")
UPPER_BOUNDS = ("max", "critical_max")
LOWER_BOUNDS = ("min", "critical_min")

# Parameter name -> bounds that must be present.
REQUIRED_BOUNDS = {
    "temperature_c": RANGE_BOUNDS,
    "dissolved_oxygen_mgl": RANGE_BOUNDS,
    "ph": RANGE_BOUNDS,
    "ammonia_mgl": UPPER_BOUNDS,
    "turbidity_ntu": UPPER_BOUNDS,
    "fish_activity_index": LOWER_BOUNDS,
    "current_speed_ms": LOWER_BOUNDS,
}

# Parameters accepted but not required.
OPTIONAL_BOUNDS = {
    "feeding_rate_gmin": ("min", "max"),
}


class ThresholdConfigError(ValueError):
    """Raised when a threshold table is missing required bounds."""


@dataclass(frozen=True)
class Bounds:
    """Bounds for one parameter. Bounds that do not apply are None."""

    min: Optional[float] = None
    max: Optional[float] = None
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None


class ThresholdTable:
    """
    Read-only mapping of parameter name -> Bounds.

    Built once at process start and shared by every component.
    """

    def __init__(self, bounds: Mapping[str, Bounds]):
        self._bounds = dict(bounds)

    def __getitem__(self, parameter: str) -> Bounds:
        return self._bounds[parameter]

    def __contains__(self, parameter: str) -> bool:
        return parameter in self._bounds

    def get(self, parameter: str) -> Optional[Bounds]:
        return self._bounds.get(parameter)

    def parameters(self) -> list:
        return list(self._bounds)

    def score_vector(self) -> list:
        """
        Flatten the bounds used by the environment score, in kernel order:

            [do_min, do_crit_min, ph_min, ph_max, ph_crit_min, ph_crit_max,
             turb_max, turb_crit_max, ammo_max, ammo_crit_max,
             temp_min, temp_max, activity_min]
        """
        do = self["dissolved_oxygen_mgl"]
        ph = self["ph"]
        turbidity = self["turbidity_ntu"]
        ammonia = self["ammonia_mgl"]
        temperature = self["temperature_c"]
        activity = self["fish_activity_index"]
        return [
            do.min, do.critical_min,
            ph.min, ph.max, ph.critical_min, ph.critical_max,
            turbidity.max, turbidity.critical_max,
            ammonia.max, ammonia.critical_max,
            temperature.min, temperature.max,
            activity.min,
        ]

    def to_dict(self) -> dict:
        return {
            name: {key: value for key, value in vars(bounds).items() if value is not None}
            for name, bounds in self._bounds.items()
        }

    def __repr__(self) -> str:
        return f"ThresholdTable({self.to_dict()!r})"


def build_thresholds(raw: Mapping[str, Mapping[str, float]]) -> ThresholdTable:
    """
    Validate a raw {parameter: {bound: value}} mapping and build a table.

    Raises:
        ThresholdConfigError: If a required parameter or bound is missing,
            or a bound value is not numeric.
    """
    errors = []
    table = {}

    for parameter, required in REQUIRED_BOUNDS.items():
        entry = raw.get(parameter)
        if entry is None:
            errors.append(f"missing parameter '{parameter}'")
            continue
        missing = [key for key in required if entry.get(key) is None]
        if missing:
            errors.append(f"'{parameter}' missing bounds: {', '.join(missing)}")
            continue
        table[parameter] = _to_bounds(parameter, entry, required, errors)

    for parameter, allowed in OPTIONAL_BOUNDS.items():
        entry = raw.get(parameter)
        if entry is not None:
            table[parameter] = _to_bounds(parameter, entry, allowed, errors)

    if errors:
        raise ThresholdConfigError("Invalid threshold table: " + "; ".join(errors))

    logger.debug(f"Threshold table built for {len(table)} parameters")
    return ThresholdTable(table)


def _to_bounds(parameter: str, entry: Mapping, keys: tuple, errors: list) -> Bounds:
    values = {}
    for key in keys:
        if entry.get(key) is None:
            continue
        try:
            values[key] = float(entry[key])
        except (TypeError, ValueError):
            errors.append(f"'{parameter}.{key}' is not numeric: {entry[key]!r}")
    return Bounds(**values)


def load_thresholds(path: str = None) -> ThresholdTable:
    """
    Load the threshold table for this process.

    Args:
        path: JSON file with a full table. Defaults to
            config.THRESHOLDS_PATH; when unset the built-in
            config.DEFAULT_THRESHOLDS are used.

    Raises:
        ThresholdConfigError: If the table is malformed or unreadable.
    """
    path = path or config.THRESHOLDS_PATH
    if not path:
        return build_thresholds(config.DEFAULT_THRESHOLDS)

    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ThresholdConfigError(f"Cannot read threshold table {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ThresholdConfigError(f"Threshold table {path} must be a JSON object")

    logger.info(f"Threshold table loaded from {path}")
    return build_thresholds(raw)


_default_table = None


def get_default_thresholds() -> ThresholdTable:
    """Process-wide table, loaded on first use."""
    global _default_table
    if _default_table is None:
        _default_table = load_thresholds()
    return _default_table
