"""Tests for the closed-form tactic-probability updater (statistics/bayesian.py)."""
import numpy as np
import pytest

from survey_stats.errors import InsufficientSampleError, InvalidInputError
from survey_stats.statistics.bayesian import NULL_LIKELIHOOD, bayesian_update

BASELINE = [0.2, 0.35, 0.5, 0.3, 0.45, 0.4]


def test_posterior_monotone_in_evidence_strength():
    posteriors = []
    for strength in np.linspace(0.0, 1.0, 21):
        res = bayesian_update([strength] * 4, prior=0.3, baseline=BASELINE)
        posteriors.append(res.posterior)
    assert all(b >= a for a, b in zip(posteriors, posteriors[1:]))
    assert posteriors[-1] > posteriors[0]


def test_strong_evidence_raises_posterior_above_prior():
    res = bayesian_update([0.8, 0.9, 0.7], prior=0.3, baseline=BASELINE)
    assert res.posterior > res.prior
    assert res.bayes_factor > 1.0
    assert res.bayes_factor == pytest.approx(res.likelihood / NULL_LIKELIHOOD)


def test_weak_evidence_lowers_posterior():
    res = bayesian_update([0.05, 0.1], prior=0.3, baseline=BASELINE)
    assert res.posterior < res.prior
    assert res.bayes_factor < 1.0


def test_evidence_at_baseline_mean_keeps_prior():
    res = bayesian_update([float(np.mean(BASELINE))], prior=0.4, baseline=BASELINE)
    assert res.likelihood == pytest.approx(0.5)
    assert res.posterior == pytest.approx(0.4)


def test_credible_interval_is_ordered_probability():
    res = bayesian_update([0.8, 0.9, 0.7, 0.2], prior=0.5, baseline=BASELINE)
    low, high = res.credible_interval
    assert 0.0 <= low < high <= 1.0


@pytest.mark.parametrize("prior", [0.0, 1.0, -0.1, 1.1])
def test_prior_must_be_open_unit_interval(prior):
    with pytest.raises(InvalidInputError):
        bayesian_update([0.5], prior=prior, baseline=BASELINE)


def test_constant_baseline_rejected():
    with pytest.raises(InvalidInputError, match="non-zero variance"):
        bayesian_update([0.5], prior=0.5, baseline=[0.3, 0.3, 0.3])


def test_empty_evidence_rejected():
    with pytest.raises(InsufficientSampleError):
        bayesian_update([], prior=0.5, baseline=BASELINE)


def test_short_baseline_rejected():
    with pytest.raises(InsufficientSampleError):
        bayesian_update([0.5], prior=0.5, baseline=[0.3])
