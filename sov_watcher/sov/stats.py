"""
Robust statistics for mention score capping.

Scores above median + k x MAD are clamped to that threshold. MAD is the
unscaled median absolute deviation. The threshold is computed once from
the input and never recomputed from clamped values.

Example:
    >>> cap_outliers([1.0, 1.0, 1.0, 1.0, 100.0])
    [1.0, 1.0, 1.0, 1.0, 1.0]
"""

from collections.abc import Sequence
from statistics import median


def median_absolute_deviation(values: Sequence[float]) -> float:
    """Unscaled median absolute deviation (0.0 for empty input)."""
    if not values:
        return 0.0
    center = median(values)
    return median(abs(v - center) for v in values)


def outlier_threshold(values: Sequence[float], multiplier: float = 3.0) -> float:
    """
    Return median + multiplier x MAD.

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("Cannot compute an outlier threshold of no values")
    return median(values) + multiplier * median_absolute_deviation(values)


def cap_outliers(values: Sequence[float], multiplier: float = 3.0) -> list[float]:
    """
    Clamp values above median + multiplier x MAD to the threshold.

    Order and length are preserved. A zero MAD clamps everything above the
    median down to the median.
    """
    if not values:
        return []
    threshold = outlier_threshold(values, multiplier)
    return [min(v, threshold) for v in values]
