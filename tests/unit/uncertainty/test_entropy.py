import math

import pytest

from survey_stats.errors import InsufficientSampleError
from survey_stats.uncertainty.entropy import normalized_entropy, population_variance


def test_uniform_weights_are_maximal():
    assert normalized_entropy([0.25, 0.25, 0.25, 0.25]) == pytest.approx(1.0)


def test_single_active_concept_is_zero():
    assert normalized_entropy([0.9, 0.0, 0.0]) == pytest.approx(0.0)
    assert normalized_entropy([3.0]) == 0.0


def test_all_zero_weights_are_maximally_uncertain():
    assert normalized_entropy([0.0, 0.0]) == 1.0


def test_sign_is_ignored():
    assert normalized_entropy([-1.0, 1.0]) == pytest.approx(1.0)


def test_two_to_one_split():
    expected = -(2 / 3 * math.log2(2 / 3) + 1 / 3 * math.log2(1 / 3))
    assert normalized_entropy([2.0, 1.0]) == pytest.approx(expected)


def test_empty_weights_fail():
    with pytest.raises(InsufficientSampleError):
        normalized_entropy([])


def test_population_variance():
    assert population_variance([1.0, 3.0]) == pytest.approx(1.0)
