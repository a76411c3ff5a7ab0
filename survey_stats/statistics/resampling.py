"""
Resampling: percentile bootstrap and a generic k-fold cross-validation harness.

Both routines take an explicit ``seed`` (int, ``numpy.random.Generator`` or
None). Unseeded calls are non-deterministic; only seeded output is
reproducible.

Functions:
    bootstrap_distribution: Statistic evaluated on resamples with replacement
    bootstrap_interval: Percentile interval over the bootstrap distribution
    k_fold_cross_validate: Train/evaluate over k held-out folds
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Sequence, Tuple, TypeVar

import numpy as np
from sklearn.model_selection import KFold

from ..errors import InsufficientSampleError
from ..inputs import as_sample, check_finite, check_open_unit_interval, check_positive_int
from ..seeding import make_rng

T = TypeVar("T")
M = TypeVar("M")

DEFAULT_BOOTSTRAP_ITERATIONS = 1000


def bootstrap_distribution(
    sample: Iterable[float],
    statistic: Callable[[np.ndarray], float] = np.mean,
    iterations: int = DEFAULT_BOOTSTRAP_ITERATIONS,
    seed: int | np.random.Generator | None = None,
) -> np.ndarray:
    """
    Evaluate ``statistic`` on ``iterations`` resamples drawn with replacement.

    Args:
        sample: Observations, at least 2
        statistic: Callable mapping a resample (1-D array) to a scalar
        iterations: Number of resamples
        seed: Seed or Generator for reproducibility

    Returns:
        np.ndarray: Sorted bootstrap statistics, length ``iterations``

    Raises:
        InsufficientSampleError: If fewer than 2 observations
        InvalidInputError: If the statistic returns NaN/inf
    """
    arr = as_sample(sample, min_size=2)
    iterations = check_positive_int(iterations, "iterations")
    rng = make_rng(seed)

    values = np.empty(iterations, dtype=float)
    for i in range(iterations):
        resample = rng.choice(arr, size=arr.size, replace=True)
        values[i] = check_finite(statistic(resample), "bootstrap statistic")
    values.sort()
    return values


def bootstrap_interval(
    sample: Iterable[float],
    statistic: Callable[[np.ndarray], float] = np.mean,
    iterations: int = DEFAULT_BOOTSTRAP_ITERATIONS,
    seed: int | np.random.Generator | None = None,
    confidence_level: float = 0.95,
) -> Tuple[float, float]:
    """
    Percentile bootstrap interval, e.g. the 2.5th/97.5th percentiles for 95%.

    Example:
        >>> lo, hi = bootstrap_interval([1, 2, 3, 4, 5, 6, 7, 8, 9, 10], seed=0)
        >>> lo < 5.5 < hi
        True
    """
    confidence_level = check_open_unit_interval(confidence_level, "confidence_level")
    values = bootstrap_distribution(sample, statistic, iterations, seed)
    alpha = 1.0 - confidence_level
    low, high = np.percentile(values, [100.0 * alpha / 2.0, 100.0 * (1.0 - alpha / 2.0)])
    return float(low), float(high)


@dataclass(frozen=True)
class CrossValidationResult:
    """Per-fold scores and their summary (``std`` is the population SD)."""

    folds: List[float]
    mean: float
    std: float
    test_indices: List[np.ndarray] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {"folds": list(self.folds), "mean": self.mean, "std": self.std}


def k_fold_cross_validate(
    data: Sequence[T],
    k: int,
    train: Callable[[List[T]], M],
    evaluate: Callable[[M, List[T]], float],
    shuffle: bool = True,
    seed: int | None = None,
) -> CrossValidationResult:
    """
    Generic k-fold harness: train on k-1 folds, score on the held-out fold.

    The harness knows nothing about the model type; ``train`` may return any
    object and ``evaluate`` must return a finite scalar.

    Args:
        data: Items to partition (any type)
        k: Number of folds, ``2 <= k <= len(data)``
        train: ``(train_items) -> model``
        evaluate: ``(model, test_items) -> score``
        shuffle: Shuffle before partitioning (contiguous folds when False)
        seed: Shuffle seed for reproducible partitions

    Returns:
        CrossValidationResult with ``len(folds) == k``

    Raises:
        InvalidInputError: If k < 2 or a fold score is not finite
        InsufficientSampleError: If k exceeds the number of items
    """
    items = list(data)
    k = check_positive_int(k, "k", minimum=2)
    if k > len(items):
        raise InsufficientSampleError(len(items), k, what="dataset (must be >= k)")

    splitter = KFold(n_splits=k, shuffle=shuffle, random_state=seed if shuffle else None)
    scores: List[float] = []
    test_indices: List[np.ndarray] = []
    for fold_idx, (tr_idx, te_idx) in enumerate(splitter.split(np.zeros(len(items)))):
        train_items = [items[i] for i in tr_idx]
        test_items = [items[i] for i in te_idx]
        model = train(train_items)
        score = evaluate(model, test_items)
        scores.append(check_finite(score, f"fold {fold_idx + 1} score"))
        test_indices.append(np.asarray(te_idx))

    # fsum keeps identical fold scores exact (mean == score, std == 0)
    mean = math.fsum(scores) / k
    std = math.sqrt(math.fsum((s - mean) ** 2 for s in scores) / k)
    return CrossValidationResult(
        folds=scores,
        mean=mean,
        std=std,
        test_indices=test_indices,
    )


__all__ = [
    "bootstrap_distribution",
    "bootstrap_interval",
    "CrossValidationResult",
    "k_fold_cross_validate",
]
