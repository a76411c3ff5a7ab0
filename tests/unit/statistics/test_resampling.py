"""
Tests for bootstrap intervals and the generic k-fold harness
(survey_stats/statistics/resampling.py).
"""
import numpy as np
import pytest

from survey_stats.errors import InsufficientSampleError, InvalidInputError
from survey_stats.statistics.descriptive import confidence_interval
from survey_stats.statistics.resampling import (
    bootstrap_distribution,
    bootstrap_interval,
    k_fold_cross_validate,
)


def test_bootstrap_close_to_analytic_interval(scenario_sample):
    """With 10k resamples the percentile interval tracks the t-interval within 5%."""
    analytic_low, analytic_high = confidence_interval(scenario_sample).confidence_interval
    low, high = bootstrap_interval(scenario_sample, iterations=10000, seed=42)

    assert low == pytest.approx(analytic_low, rel=0.05)
    assert high == pytest.approx(analytic_high, rel=0.05)
    assert low < 0.75 < high


def test_bootstrap_seed_reproducible(scenario_sample):
    a = bootstrap_interval(scenario_sample, iterations=500, seed=7)
    b = bootstrap_interval(scenario_sample, iterations=500, seed=7)
    assert a == b


def test_bootstrap_distribution_sorted_and_sized(scenario_sample):
    dist = bootstrap_distribution(scenario_sample, iterations=300, seed=1)
    assert dist.shape == (300,)
    assert np.all(np.diff(dist) >= 0)
    assert dist.min() >= min(scenario_sample)
    assert dist.max() <= max(scenario_sample)


def test_bootstrap_custom_statistic(scenario_sample):
    low, high = bootstrap_interval(scenario_sample, statistic=np.median, iterations=500, seed=3)
    assert low <= np.median(scenario_sample) <= high


def test_bootstrap_requires_two_observations():
    with pytest.raises(InsufficientSampleError):
        bootstrap_interval([0.4], seed=0)


def test_bootstrap_rejects_non_finite_statistic(scenario_sample):
    with pytest.raises(InvalidInputError):
        bootstrap_interval(scenario_sample, statistic=lambda x: float("nan"), iterations=10, seed=0)


def test_k_fold_partitions_twenty_items_into_five_folds():
    data = list(range(20))
    seen = []

    def train(items):
        return set(items)

    def evaluate(model, test_items):
        seen.append(list(test_items))
        assert model.isdisjoint(test_items)
        return 0.5

    result = k_fold_cross_validate(data, 5, train, evaluate, seed=0)

    assert len(result.folds) == 5
    assert [len(fold) for fold in seen] == [4, 4, 4, 4, 4]
    flat = [item for fold in seen for item in fold]
    assert sorted(flat) == data
    assert len(set(flat)) == 20
    assert len(result.test_indices) == 5


def test_k_fold_constant_evaluator_exact():
    result = k_fold_cross_validate(list(range(20)), 5, lambda tr: None, lambda m, te: 0.8)
    assert result.folds == [0.8] * 5
    assert result.mean == 0.8
    assert result.std == 0.0


def test_k_fold_population_std():
    scores = iter([0.2, 0.4, 0.6, 0.8])
    result = k_fold_cross_validate(list(range(8)), 4, lambda tr: None, lambda m, te: next(scores), shuffle=False)
    assert result.mean == pytest.approx(0.5)
    assert result.std == pytest.approx(np.std([0.2, 0.4, 0.6, 0.8]))


def test_k_fold_unshuffled_folds_are_contiguous():
    result = k_fold_cross_validate(list("abcdef"), 3, lambda tr: tr, lambda m, te: 1.0, shuffle=False)
    assert [list(idx) for idx in result.test_indices] == [[0, 1], [2, 3], [4, 5]]


def test_k_fold_rejects_k_below_two():
    with pytest.raises(InvalidInputError):
        k_fold_cross_validate(list(range(10)), 1, lambda tr: None, lambda m, te: 1.0)


def test_k_fold_rejects_k_above_size():
    with pytest.raises(InsufficientSampleError):
        k_fold_cross_validate(list(range(3)), 5, lambda tr: None, lambda m, te: 1.0)


def test_k_fold_rejects_nan_score():
    with pytest.raises(InvalidInputError):
        k_fold_cross_validate(list(range(6)), 3, lambda tr: None, lambda m, te: float("nan"))
