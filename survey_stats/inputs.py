"""
Fail-fast conversion and range checks for statistical inputs.

Every public statistic funnels its arguments through these helpers so that
NaN never flows into arithmetic silently.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from .errors import InsufficientSampleError, InvalidInputError


def as_sample(values: Iterable[float], *, name: str = "sample", min_size: int = 1) -> np.ndarray:
    """
    Convert ``values`` into a 1-D float array and validate it.

    Args:
        values: Sequence (or array) of real numbers
        name: Label used in error messages
        min_size: Minimum number of observations required

    Returns:
        np.ndarray: 1-D float64 copy of the input

    Raises:
        InsufficientSampleError: If fewer than ``min_size`` observations
        InvalidInputError: If the input is not 1-D, not numeric, or has NaN/inf
    """
    try:
        arr = np.array(list(values) if not isinstance(values, np.ndarray) else values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must contain only real numbers: {exc}") from exc
    if arr.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got shape {arr.shape}")
    if arr.size < min_size:
        raise InsufficientSampleError(arr.size, min_size, what=name)
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError(f"{name} contains NaN or infinite values")
    return arr


def check_finite(value: float, name: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a real number, got {value!r}") from exc
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")
    return value


def check_unit_interval(value: float, name: str) -> float:
    """Validate ``0 <= value <= 1``."""
    value = check_finite(value, name)
    if not (0.0 <= value <= 1.0):
        raise InvalidInputError(f"{name} must be in range [0.0, 1.0], got {value}")
    return value


def check_open_unit_interval(value: float, name: str) -> float:
    """Validate ``0 < value < 1``."""
    value = check_finite(value, name)
    if not (0.0 < value < 1.0):
        raise InvalidInputError(f"{name} must be in range (0.0, 1.0), got {value}")
    return value


def check_positive_int(value: int, name: str, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    value = int(value)
    if value < minimum:
        raise InvalidInputError(f"{name} must be >= {minimum}, got {value}")
    return value
