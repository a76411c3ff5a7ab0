"""
Descriptive statistics and confidence intervals for small survey samples.

Every function is a pure transformation of its inputs. Small samples are the
norm here (ten to a few hundred responses), so intervals use the
t-distribution rather than a normal approximation.

Sample-size policy:
- ``confidence_interval`` hard-fails with ``InsufficientSampleError`` when
  n < 2 (variance is undefined for a single observation).
- Zero-variance samples are valid: the interval collapses onto the mean.

Functions:
    confidence_interval: Mean, variance, SE, t-interval, p-value, effect size
    cohens_d: Pooled-SD standardized mean difference between two groups
    statistical_power: Power of a two-sided one-sample t-test
    required_sample_size: Smallest n reaching a target power
    bonferroni / benjamini_hochberg: Multiple-testing corrections
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
from scipy import stats
from statsmodels.stats.multitest import multipletests
from statsmodels.stats.power import TTestPower

from ..errors import InvalidInputError
from ..inputs import as_sample, check_finite, check_open_unit_interval, check_positive_int

DEFAULT_CONFIDENCE_LEVEL = 0.95
DEFAULT_ALPHA = 0.05
MIN_SAMPLE_SIZE = 2
# p-values are reported no smaller than this so downstream log/ratio math stays finite
P_VALUE_FLOOR = 1e-10
MAX_SAMPLE_SIZE_SEARCH = 10000


@dataclass(frozen=True)
class ConfidenceEvidence:
    """Summary statistics derived from one sample. Immutable."""

    observations: int
    mean: float
    variance: float
    standard_error: float
    confidence_interval: Tuple[float, float]
    p_value: float
    effect_size: float
    significance_level: float

    @property
    def excludes_zero(self) -> bool:
        low, high = self.confidence_interval
        return low > 0.0 or high < 0.0

    def to_dict(self) -> dict:
        return {
            "observations": self.observations,
            "mean": self.mean,
            "variance": self.variance,
            "standard_error": self.standard_error,
            "confidence_interval": list(self.confidence_interval),
            "p_value": self.p_value,
            "effect_size": self.effect_size,
            "significance_level": self.significance_level,
        }


def confidence_interval(
    sample: Iterable[float],
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
) -> ConfidenceEvidence:
    """
    Compute a two-tailed t confidence interval and one-sample t-test vs. zero.

    Args:
        sample: Observations (e.g. tactic strengths, reasoning lengths)
        confidence_level: Interval coverage in (0, 1), default 0.95

    Returns:
        ConfidenceEvidence with mean, sample variance (ddof=1), standard error
        ``sqrt(variance / n)``, interval, p-value and effect size ``mean / sd``

    Raises:
        InsufficientSampleError: If fewer than 2 observations
        InvalidInputError: If the sample has NaN/inf or the level is invalid

    Example:
        >>> ev = confidence_interval([0.7, 0.8, 0.6, 0.9, 0.75, 0.65, 0.85, 0.7, 0.8, 0.75])
        >>> round(ev.mean, 2)
        0.75
        >>> ev.excludes_zero
        True
    """
    confidence_level = check_open_unit_interval(confidence_level, "confidence_level")
    arr = as_sample(sample, min_size=MIN_SAMPLE_SIZE)

    n = int(arr.size)
    mean = float(arr.mean())
    # Constant samples are degenerate even when var() leaves rounding residue
    variance = 0.0 if float(np.ptp(arr)) == 0.0 else float(arr.var(ddof=1))
    sd = math.sqrt(variance)
    standard_error = math.sqrt(variance / n)

    df = n - 1
    t_critical = float(stats.t.ppf(1.0 - (1.0 - confidence_level) / 2.0, df))
    margin = t_critical * standard_error
    interval = (mean - margin, mean + margin)

    if standard_error > 0.0:
        t_statistic = mean / standard_error
        p_value = float(2.0 * stats.t.sf(abs(t_statistic), df))
        effect_size = mean / sd
    else:
        # Degenerate sample: every observation equal to the mean
        p_value = 1.0 if mean == 0.0 else 0.0
        effect_size = 0.0 if mean == 0.0 else math.copysign(math.inf, mean)

    return ConfidenceEvidence(
        observations=n,
        mean=mean,
        variance=variance,
        standard_error=standard_error,
        confidence_interval=interval,
        p_value=min(1.0, max(P_VALUE_FLOOR, p_value)),
        effect_size=float(effect_size),
        significance_level=1.0 - confidence_level,
    )


def cohens_d(group1: Iterable[float], group2: Iterable[float]) -> float:
    """
    Standardized mean difference ``(mean1 - mean2) / pooled_sd``.

    Raises:
        InsufficientSampleError: If either group has fewer than 2 observations
        InvalidInputError: If the pooled standard deviation is zero
    """
    a = as_sample(group1, name="group1", min_size=2)
    b = as_sample(group2, name="group2", min_size=2)
    pooled_var = ((a.size - 1) * a.var(ddof=1) + (b.size - 1) * b.var(ddof=1)) / (a.size + b.size - 2)
    if pooled_var <= 0.0:
        raise InvalidInputError("Cohen's d is undefined when both groups have zero variance")
    return float((a.mean() - b.mean()) / math.sqrt(pooled_var))


def statistical_power(effect_size: float, sample_size: int, alpha: float = DEFAULT_ALPHA) -> float:
    """Power of a two-sided one-sample t-test at the given effect size and n."""
    effect_size = check_finite(effect_size, "effect_size")
    sample_size = check_positive_int(sample_size, "sample_size", minimum=MIN_SAMPLE_SIZE)
    alpha = check_open_unit_interval(alpha, "alpha")
    power = TTestPower().power(
        effect_size=abs(effect_size),
        nobs=sample_size,
        alpha=alpha,
        alternative="two-sided",
    )
    return float(min(1.0, max(0.0, power)))


def required_sample_size(
    expected_effect_size: float,
    desired_power: float = 0.8,
    alpha: float = DEFAULT_ALPHA,
) -> int:
    """
    Smallest n in [3, 10000] whose power reaches ``desired_power``.

    Power is monotone in n for a fixed non-zero effect, so a bisection over the
    search range is exact. Returns the upper bound when it is never reached
    (e.g. a zero effect size).
    """
    expected_effect_size = check_finite(expected_effect_size, "expected_effect_size")
    desired_power = check_open_unit_interval(desired_power, "desired_power")
    alpha = check_open_unit_interval(alpha, "alpha")

    lo, hi = 3, MAX_SAMPLE_SIZE_SEARCH
    if statistical_power(expected_effect_size, hi, alpha) < desired_power:
        return hi
    while lo < hi:
        mid = (lo + hi) // 2
        if statistical_power(expected_effect_size, mid, alpha) >= desired_power:
            hi = mid
        else:
            lo = mid + 1
    return lo


def _check_p_values(p_values: Iterable[float]) -> np.ndarray:
    arr = as_sample(p_values, name="p_values", min_size=1)
    if np.any(arr < 0.0) or np.any(arr > 1.0):
        raise InvalidInputError("p-values must be in range [0.0, 1.0]")
    return arr


def bonferroni(p_values: Iterable[float]) -> np.ndarray:
    """Bonferroni-adjusted p-values (``min(1, p * m)``)."""
    arr = _check_p_values(p_values)
    _, adjusted, _, _ = multipletests(arr, method="bonferroni")
    return np.asarray(adjusted, dtype=float)


def benjamini_hochberg(p_values: Iterable[float]) -> np.ndarray:
    """Benjamini-Hochberg FDR-adjusted p-values, in input order."""
    arr = _check_p_values(p_values)
    _, adjusted, _, _ = multipletests(arr, method="fdr_bh")
    return np.asarray(adjusted, dtype=float)


__all__ = [
    "ConfidenceEvidence",
    "confidence_interval",
    "cohens_d",
    "statistical_power",
    "required_sample_size",
    "bonferroni",
    "benjamini_hochberg",
]
