"""
Percentile bands over per-account KPI samples.

A PercentileBand holds the 25th/50th/75th percentiles of one metric across
the accounts of a peer group (exposed to clients as min/avg/max). Percentiles
use linear interpolation between order statistics, so the result does not
depend on input order.

Groups with fewer contributing accounts than the configured minimum get an
InsufficientData marker instead of a band.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np


# Floor for the IQR lower fence of cost metrics, in reporting currency
DOMAIN_MINIMUMS = {
    "cpc": 0.40,
    "cpl": 5.00,
    "cpm": 1.00,
}

IQR_FACTOR = 1.5

# IQR filtering needs at least this many samples
MIN_OUTLIER_SAMPLES = 4

# A band is never exposed from fewer accounts, whatever the configured minimum
MIN_BAND_SAMPLES = 2


@dataclass(frozen=True)
class PercentileBand:
    """
    p25 <= p50 <= p75 of a metric's sample distribution.

    Attributes:
        p25: 25th percentile, reported as the band "min".
        p50: Median, reported as the band "avg".
        p75: 75th percentile, reported as the band "max".
        sample_size: Number of account samples the band was computed from.
        outliers_removed: Samples dropped by outlier filtering.
        lowest / highest: Extremes of the samples used.
    """
    p25: float
    p50: float
    p75: float
    sample_size: int
    outliers_removed: int = 0
    lowest: Optional[float] = None
    highest: Optional[float] = None

    @property
    def spread(self) -> float:
        return self.p75 - self.p25

    def as_range(self) -> dict:
        return {"min": self.p25, "avg": self.p50, "max": self.p75}


@dataclass(frozen=True)
class InsufficientData:
    """Marker returned instead of a band when too few accounts contributed."""
    sample_size: int
    required: int = 2


BandResult = Union[PercentileBand, InsufficientData]


def remove_outliers(values: Sequence[float], metric: str = "") -> Tuple[np.ndarray, int]:
    """
    Drop values outside the 1.5 x IQR fence, raising the lower fence to the
    metric's domain minimum when it has one.

    Returns the kept values (sorted) and how many were removed. Fewer than
    four values are returned unchanged.
    """
    data = np.sort(np.asarray(values, dtype=float))
    if data.size < MIN_OUTLIER_SAMPLES:
        return data, 0

    q1, q3 = np.percentile(data, [25, 75], method="linear")
    iqr = q3 - q1
    lower = q1 - IQR_FACTOR * iqr
    upper = q3 + IQR_FACTOR * iqr
    if metric in DOMAIN_MINIMUMS:
        lower = max(lower, DOMAIN_MINIMUMS[metric])

    kept = data[(data >= lower) & (data <= upper)]
    return kept, int(data.size - kept.size)


def compute_percentile_band(
    values: Sequence[float],
    metric: str = "",
    min_samples: int = 2,
    outlier_filtering: bool = False,
) -> BandResult:
    """
    Compute the p25/p50/p75 band of ``values``.

    Args:
        values: One sample per account. Non-positive and non-finite values
            are ignored (a zero KPI means the account had no denominator).
        metric: Metric name, used for domain minimums when filtering.
        min_samples: Minimum samples required for a band; never below
            MIN_BAND_SAMPLES.
        outlier_filtering: Apply IQR outlier removal first.

    Returns:
        PercentileBand, or InsufficientData when fewer than ``min_samples``
        samples remain.

    Example:
        >>> band = compute_percentile_band([1.0, 2.0, 3.0, 4.0])
        >>> (band.p25, band.p50, band.p75)
        (1.75, 2.5, 3.25)
    """
    data = np.asarray(values, dtype=float)
    data = data[np.isfinite(data) & (data > 0)]
    min_samples = max(min_samples, MIN_BAND_SAMPLES)
    if data.size < min_samples:
        return InsufficientData(sample_size=int(data.size), required=min_samples)

    removed = 0
    if outlier_filtering:
        data, removed = remove_outliers(data, metric)
        if data.size < min_samples:
            return InsufficientData(sample_size=int(data.size), required=min_samples)

    p25, p50, p75 = np.percentile(data, [25, 50, 75], method="linear")
    return PercentileBand(
        p25=float(p25),
        p50=float(p50),
        p75=float(p75),
        sample_size=int(data.size),
        outliers_removed=removed,
        lowest=float(data.min()),
        highest=float(data.max()),
    )
