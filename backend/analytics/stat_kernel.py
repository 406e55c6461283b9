"""
stat_kernel.py — Portable Statistics and Scoring Kernel
========================================================

Pure-Python implementation of the numeric primitives used by the
pipeline. It is the reference definition and the path taken whenever the
accelerated kernel (native_kernel) is not loaded.

Every function here has an accelerated twin with the same mathematical
definition; results agree within floating-point tolerance.
"""

from . import config

# Number of entries in the flattened environment-score threshold vector
# (see ThresholdTable.score_vector).
SCORE_VECTOR_LEN = 13


def trend(values) -> float:
    """
    Least-squares slope of value against 0-based sample index.

    Returns 0.0 for fewer than two points.
    """
    n = len(values)
    if n < 2:
        return 0.0

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for i, v in enumerate(values):
        sum_x += i
        sum_y += v
        sum_xy += i * v
        sum_x2 += i * i

    denom = n * sum_x2 - sum_x * sum_x
    if denom == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denom


def variance(values) -> float:
    """Population variance (mean squared deviation). 0.0 for empty input."""
    n = len(values)
    if n == 0:
        return 0.0
    mean = sum(values) / n
    return sum((v - mean) ** 2 for v in values) / n


def environment_score(dissolved_oxygen, ph, turbidity, ammonia,
                      temperature, activity, thresholds) -> float:
    """
    Water-quality score in [0, 1] from additive threshold penalties.

    DO tiers are exclusive (deepest applies); pH, turbidity and ammonia
    tiers stack. `thresholds` is the 13-entry vector from
    ThresholdTable.score_vector().
    """
    if len(thresholds) < SCORE_VECTOR_LEN:
        return 0.0

    (do_min, do_crit_min,
     ph_min, ph_max, ph_crit_min, ph_crit_max,
     turb_max, turb_crit_max,
     ammo_max, ammo_crit_max,
     temp_min, temp_max,
     activity_min) = thresholds[:SCORE_VECTOR_LEN]

    # Penalties in hundredths; native_kernel must return the identical
    # float for the same input.
    penalty = 0

    if dissolved_oxygen < do_crit_min:
        penalty += 40
    elif dissolved_oxygen < do_min:
        penalty += 25

    if ph < ph_min or ph > ph_max:
        penalty += 15
    if ph < ph_crit_min or ph > ph_crit_max:
        penalty += 25

    if turbidity > turb_max:
        penalty += 15
    if turbidity > turb_crit_max:
        penalty += 20

    if ammonia > ammo_max:
        penalty += 20
    if ammonia > ammo_crit_max:
        penalty += 30

    if temperature < temp_min or temperature > temp_max:
        penalty += 10

    if activity < activity_min:
        penalty += 15

    return max(0.0, min(1.0, 1.0 - penalty / 100.0))


def feeding_adjustment(dissolved_oxygen, turbidity, ammonia, activity,
                       temperature, env_score) -> float:
    """Feed-rate adjustment in percent, clamped to [-40, 15]."""
    adjustment = 0.0

    if env_score < 0.5:
        adjustment -= 30
    elif env_score < 0.7:
        adjustment -= 15
    elif env_score > 0.9:
        adjustment += 5

    if dissolved_oxygen < 5.5:
        adjustment -= 20
    elif dissolved_oxygen < 6.0:
        adjustment -= 10

    if turbidity > 30:
        adjustment -= 15
    elif turbidity > 25:
        adjustment -= 8

    if ammonia > 0.4:
        adjustment -= 20
    elif ammonia > 0.25:
        adjustment -= 10

    if activity < 0.6:
        adjustment -= 12
    elif activity > 0.85:
        adjustment += 5

    if temperature < 24 or temperature > 31:
        adjustment -= 10

    return max(config.MIN_ADJUSTMENT, min(config.MAX_ADJUSTMENT, adjustment))
