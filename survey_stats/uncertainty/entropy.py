"""Entropy helpers for concept-activation distributions."""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np
from scipy import stats

from ..inputs import as_sample


def normalized_entropy(weights: Iterable[float]) -> float:
    """
    Shannon entropy (bits) of ``|weights|`` divided by the maximum ``log2(n)``.

    Returns a value in [0, 1]. All-zero weights carry no information and are
    treated as maximally uncertain (1.0); a single weight has entropy 0.

    Example:
        >>> normalized_entropy([1, 1, 1, 1])
        1.0
        >>> normalized_entropy([5, 0, 0])
        0.0
    """
    arr = np.abs(as_sample(weights, name="weights", min_size=1))
    if arr.sum() == 0:
        return 1.0
    if arr.size == 1:
        return 0.0
    h = float(stats.entropy(arr, base=2))
    return float(min(1.0, max(0.0, h / math.log2(arr.size))))


def population_variance(values: Iterable[float]) -> float:
    return float(as_sample(values, name="values", min_size=1).var(ddof=0))
