"""
Tests for the toy hierarchical individual model (modeling/hierarchical.py).

Sample counts are kept small so the Metropolis-Hastings loops stay fast.
"""
import math

import numpy as np
import pytest

from survey_stats.cache import TTLCache
from survey_stats.errors import InsufficientSampleError, InvalidInputError, NonConvergenceError
from survey_stats.modeling.hierarchical import (
    MORAL_DIMENSIONS,
    HierarchicalIndividualModel,
    default_population_parameters,
    extract_moral_features,
    naive_r_hat,
)


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _collecting_logger(events):
    def log_event(event, message="", level="INFO", **extra):
        events.append({"event": event, "level": level, "message": message, **extra})

    return log_event


def test_fit_produces_profile_and_diagnostics(analyzed_responses):
    model = HierarchicalIndividualModel(samples=300)
    result = model.fit("user-1", analyzed_responses, seed=11)

    assert len(result.individual.moral_profile) == len(MORAL_DIMENSIONS)
    assert result.individual.responses_count == len(analyzed_responses)
    assert result.individual.cultural_background == "western_individualistic"
    assert set(result.credible_intervals) == set(MORAL_DIMENSIONS)
    for low, high in result.credible_intervals.values():
        assert low <= high
    assert result.convergence.effective_sample_size == 4 * 300 / 2
    assert result.convergence.r_hat >= 1.0
    assert 0.0 <= result.acceptance_rate <= 1.0
    assert 0.0 <= result.individual.confidence_level <= 1.0
    assert result.uncertainty.measurement == pytest.approx(1 / math.sqrt(len(analyzed_responses)))


def test_fit_is_reproducible_with_seed(analyzed_responses):
    a = HierarchicalIndividualModel(samples=200).fit("u", analyzed_responses, seed=5)
    b = HierarchicalIndividualModel(samples=200).fit("u", analyzed_responses, seed=5)
    assert a.individual.moral_profile == b.individual.moral_profile
    assert a.convergence.r_hat == b.convergence.r_hat


def test_fit_requires_three_responses(analyzed_responses):
    model = HierarchicalIndividualModel(samples=50)
    with pytest.raises(InsufficientSampleError, match="response count"):
        model.fit("u", analyzed_responses[:2])


def test_fitted_parameters_are_cached_and_expire(analyzed_responses):
    clock = _Clock()
    cache = TTLCache(ttl_seconds=10.0, clock=clock)
    model = HierarchicalIndividualModel(samples=100, cache=cache)
    result = model.fit("cached-user", analyzed_responses, seed=1)

    assert model.get_individual_parameters("cached-user") == result.individual
    clock.now = 10.0
    assert model.get_individual_parameters("cached-user") is None


def test_non_convergence_is_reported_not_raised(analyzed_responses):
    events = []
    model = HierarchicalIndividualModel(samples=100, rhat_threshold=0.5, log_event=_collecting_logger(events))
    result = model.fit("u", analyzed_responses, seed=2)

    assert not result.convergence.converged
    assert "exceeds" in result.convergence.warning
    warnings = [e for e in events if e["event"] == "mcmc_not_converged"]
    assert len(warnings) == 1
    assert warnings[0]["level"] == "WARNING"
    assert any(e["event"] == "mcmc_fit_complete" for e in events)


def test_strict_mode_raises_on_non_convergence(analyzed_responses):
    model = HierarchicalIndividualModel(samples=100, rhat_threshold=0.5, strict=True)
    with pytest.raises(NonConvergenceError) as excinfo:
        model.fit("u", analyzed_responses, seed=2)
    assert excinfo.value.threshold == 0.5
    assert model.get_individual_parameters("u") is None


def test_invalid_sampler_settings():
    with pytest.raises(InvalidInputError):
        HierarchicalIndividualModel(chains=1)
    with pytest.raises(InvalidInputError):
        HierarchicalIndividualModel(proposal_width=0.0)


def test_naive_r_hat_mixed_chains_near_one():
    rng = np.random.default_rng(0)
    samples = rng.normal(size=(4, 2000, 3))
    assert naive_r_hat(samples) == pytest.approx(1.0, abs=0.01)


def test_naive_r_hat_detects_separated_chains():
    rng = np.random.default_rng(0)
    samples = rng.normal(scale=0.1, size=(4, 500, 2))
    samples[2] += 5.0
    assert naive_r_hat(samples) > 1.1


def test_naive_r_hat_stuck_chains():
    same = np.ones((3, 10, 2))
    assert naive_r_hat(same) == 1.0
    apart = np.ones((3, 10, 2))
    apart[1] = 2.0
    assert naive_r_hat(apart) == math.inf


def test_extract_moral_features_normalizes():
    features = extract_moral_features({"harm_prevention": 1.0, "rights_protection": 1.0, "unknown": 9.0})
    assert features.sum() == pytest.approx(1.0)
    assert features[MORAL_DIMENSIONS.index("care")] == pytest.approx(0.5)
    assert features[MORAL_DIMENSIONS.index("fairness")] == pytest.approx(0.5)


def test_extract_moral_features_empty_is_zero():
    assert not extract_moral_features({}).any()


def test_update_population_priors_needs_more_than_min_group():
    model = HierarchicalIndividualModel(samples=50)
    mean = default_population_parameters().mean_profile
    shifted = mean + 0.1

    model.update_population_priors([("nordic", shifted)] * 10, min_group_size=10)
    np.testing.assert_allclose(model.population.cultural_effect("nordic"), np.zeros(7))

    model.update_population_priors([("nordic", shifted)] * 11, min_group_size=10)
    np.testing.assert_allclose(model.population.cultural_effect("nordic"), np.full(7, 0.1))


def test_update_population_priors_rejects_bad_vectors():
    model = HierarchicalIndividualModel(samples=50)
    with pytest.raises(InvalidInputError):
        model.update_population_priors([("x", [0.1, 0.2])])
