"""
config.py — Decision Pipeline Configuration Constants
======================================================

Centralizes the threshold table, algorithm constants, window sizes and
runtime switches used by the aquaculture decision pipeline. Tuning these
values changes how aggressively the system alerts, feeds and aerates.

The pond/cage sensors report:
- Water temperature (°C)
- Dissolved oxygen (mg/L)
- pH
- Total ammonia nitrogen (mg/L)
- Turbidity (NTU)
- Feeding rate (g/min), fish activity index (0-1), current speed (m/s)
"""

import os

# ═══════════════════════════════════════════════════════════════════
# PARAMETER THRESHOLDS
# ═══════════════════════════════════════════════════════════════════

# Default threshold table. Range parameters carry all four bounds;
# ammonia/turbidity only have upper bounds, activity/current speed only
# lower bounds. Override with a JSON file via ANALYTICS_THRESHOLDS_PATH.
DEFAULT_THRESHOLDS = {
    "temperature_c": {"min": 24, "max": 31, "critical_min": 22, "critical_max": 33},
    "dissolved_oxygen_mgl": {"min": 6, "max": 8, "critical_min": 5, "critical_max": 9},
    "ph": {"min": 7.5, "max": 8.5, "critical_min": 6.5, "critical_max": 8.8},
    "ammonia_mgl": {"max": 0.25, "critical_max": 0.5},
    "turbidity_ntu": {"max": 25, "critical_max": 30},
    "feeding_rate_gmin": {"min": 150, "max": 350},
    "fish_activity_index": {"min": 0.6, "critical_min": 0.5},
    "current_speed_ms": {"min": 0.3, "critical_min": 0.2},
}

# Optional path to a JSON file with a full threshold table.
THRESHOLDS_PATH = os.environ.get("ANALYTICS_THRESHOLDS_PATH")

# ═══════════════════════════════════════════════════════════════════
# HISTORY WINDOW
# ═══════════════════════════════════════════════════════════════════

# Number of most recent readings kept by the service's history window.
# 24 hourly samples is exactly what the forecaster and FCR estimate need.
HISTORY_SIZE = int(os.environ.get("ANALYTICS_HISTORY_SIZE", "24"))

# ═══════════════════════════════════════════════════════════════════
# NATIVE ACCELERATION
# ═══════════════════════════════════════════════════════════════════

# Set ANALYTICS_ACCELERATION=0 to force the portable kernel.
ACCELERATION_ENABLED = os.environ.get("ANALYTICS_ACCELERATION", "1").lower() not in (
    "0", "false", "no", "off",
)

# Import path of the accelerated kernel module.
ACCELERATION_MODULE = os.environ.get(
    "ANALYTICS_ACCELERATION_MODULE", "backend.analytics.native_kernel"
)

# ═══════════════════════════════════════════════════════════════════
# FEEDING
# ═══════════════════════════════════════════════════════════════════

BASELINE_FEEDING_RATE = 280.0
MIN_FEEDING_RATE = 100.0
MAX_FEEDING_RATE = 400.0

MIN_ADJUSTMENT = -40.0
MAX_ADJUSTMENT = 15.0

# Minimum history length for the FCR and waste estimates, and the values
# reported when there is not enough history.
FCR_MIN_SAMPLES = 24
DEFAULT_FCR = 1.5
WASTE_MIN_SAMPLES = 12
DEFAULT_WASTE_RATIO = 15.0

# ═══════════════════════════════════════════════════════════════════
# AERATOR
# ═══════════════════════════════════════════════════════════════════

# Samples used for the last-minus-first DO trend.
AERATOR_TREND_WINDOW = 10

# ═══════════════════════════════════════════════════════════════════
# FORECAST
# ═══════════════════════════════════════════════════════════════════

FORECAST_MIN_SAMPLES = 24
FORECAST_HOURS = int(os.environ.get("ANALYTICS_FORECAST_HOURS", "6"))

# ═══════════════════════════════════════════════════════════════════
# MQTT SINK
# ═══════════════════════════════════════════════════════════════════

# Records are published on <prefix>/<kind>, e.g. aquaculture/alert.
MQTT_TOPIC_PREFIX = os.environ.get("MQTT_TOPIC_PREFIX", "aquaculture")
MQTT_BROKER_HOST = os.environ.get("MQTT_BROKER_HOST", "localhost")
MQTT_BROKER_PORT = int(os.environ.get("MQTT_BROKER_PORT", "1883"))
MQTT_CLIENT_ID = os.environ.get("MQTT_CLIENT_ID", "aquaculture-decision-pipeline")

# ═══════════════════════════════════════════════════════════════════
# SERVICE / LOGGING
# ═══════════════════════════════════════════════════════════════════

SERVICE_PORT = int(os.environ.get("ANALYTICS_SERVICE_PORT", "5050"))

# Log level for the pipeline (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("ANALYTICS_LOG_LEVEL", "INFO")
