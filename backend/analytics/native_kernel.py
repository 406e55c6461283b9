"""
native_kernel.py — Accelerated Statistics and Scoring Kernel
=============================================================

numpy implementation of the stat_kernel primitives. Array arguments are
float64 scratch buffers prepared by the AccelerationDispatcher together
with their element count, so the kernel never sees Python lists.

Loaded asynchronously by backend.analytics.acceleration; nothing else
should import it directly.
"""

import numpy as np

from . import config

SCORE_VECTOR_LEN = 13

# Penalty weights (hundredths) in evaluation order:
#   do_crit, do_low, ph_out, ph_crit, turb_high, turb_crit,
#   ammo_high, ammo_crit, temp_out, activity_low
_SCORE_PENALTIES = np.array(
    [40, 25, 15, 25, 15, 20, 20, 30, 10, 15],
    dtype=np.int64,
)


def trend(buffer: np.ndarray, n: int) -> float:
    """Least-squares slope of buffer[:n] against its index."""
    if buffer is None or n < 2:
        return 0.0

    y = buffer[:n]
    x = np.arange(n, dtype=np.float64)
    sum_x = x.sum()
    denom = n * np.dot(x, x) - sum_x * sum_x
    if denom == 0:
        return 0.0
    return float((n * np.dot(x, y) - sum_x * y.sum()) / denom)


def variance(buffer: np.ndarray, n: int) -> float:
    """Population variance of buffer[:n]."""
    if buffer is None or n == 0:
        return 0.0
    return float(np.var(buffer[:n]))


def environment_score(dissolved_oxygen, ph, turbidity, ammonia,
                      temperature, activity, thresholds: np.ndarray, n: int) -> float:
    """Vectorised environment score; see stat_kernel.environment_score."""
    if thresholds is None or n < SCORE_VECTOR_LEN:
        return 0.0

    (do_min, do_crit_min,
     ph_min, ph_max, ph_crit_min, ph_crit_max,
     turb_max, turb_crit_max,
     ammo_max, ammo_crit_max,
     temp_min, temp_max,
     activity_min) = thresholds[:SCORE_VECTOR_LEN]

    do_crit = dissolved_oxygen < do_crit_min
    triggered = np.array([
        do_crit,
        (not do_crit) and dissolved_oxygen < do_min,
        ph < ph_min or ph > ph_max,
        ph < ph_crit_min or ph > ph_crit_max,
        turbidity > turb_max,
        turbidity > turb_crit_max,
        ammonia > ammo_max,
        ammonia > ammo_crit_max,
        temperature < temp_min or temperature > temp_max,
        activity < activity_min,
    ], dtype=bool)

    score = 1.0 - int(_SCORE_PENALTIES[triggered].sum()) / 100.0
    return float(np.clip(score, 0.0, 1.0))


def feeding_adjustment(dissolved_oxygen, turbidity, ammonia, activity,
                       temperature, env_score) -> float:
    """Feed-rate adjustment in percent; see stat_kernel.feeding_adjustment."""
    tiers = (
        np.select([env_score < 0.5, env_score < 0.7, env_score > 0.9], [-30.0, -15.0, 5.0], 0.0),
        np.select([dissolved_oxygen < 5.5, dissolved_oxygen < 6.0], [-20.0, -10.0], 0.0),
        np.select([turbidity > 30, turbidity > 25], [-15.0, -8.0], 0.0),
        np.select([ammonia > 0.4, ammonia > 0.25], [-20.0, -10.0], 0.0),
        np.select([activity < 0.6, activity > 0.85], [-12.0, 5.0], 0.0),
        np.where(temperature < 24 or temperature > 31, -10.0, 0.0),
    )
    adjustment = float(np.sum(tiers))
    return float(np.clip(adjustment, config.MIN_ADJUSTMENT, config.MAX_ADJUSTMENT))
