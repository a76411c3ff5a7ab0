"""Tests for the weighted uncertainty decomposition (uncertainty/decomposition.py)."""
import numpy as np
import pytest

from survey_stats.errors import InvalidInputError
from survey_stats.uncertainty.decomposition import (
    UncertaintyComponent,
    confidence_label,
    decompose_uncertainty,
    reliability_label,
)


def test_weighted_total():
    d = decompose_uncertainty(0.5, 0.2, 0.1, 0.9)
    assert d.total.value == pytest.approx(0.3 * 0.5 + 0.3 * 0.2 + 0.2 * 0.1 + 0.2 * 0.9)


def test_total_bounded_by_inputs():
    rng = np.random.default_rng(3)
    for _ in range(500):
        values = rng.uniform(0, 1, size=4)
        d = decompose_uncertainty(*values)
        assert values.min() <= d.total.value <= values.max()


def test_equal_inputs_give_that_value():
    d = decompose_uncertainty(0.35, 0.35, 0.35, 0.35)
    assert d.total.value == pytest.approx(0.35)
    assert d.total.confidence_level == "medium"
    assert d.total.reliability == "fair"


@pytest.mark.parametrize(
    "total, confidence, reliability",
    [
        (0.0, "high", "excellent"),
        (0.1, "high", "excellent"),
        (0.15, "high", "good"),
        (0.2, "medium", "good"),
        (0.3, "medium", "fair"),
        (0.4, "low", "fair"),
        (0.6, "low", "poor"),
        (0.7, "very_low", "poor"),
        (1.0, "very_low", "poor"),
    ],
)
def test_label_thresholds(total, confidence, reliability):
    assert confidence_label(total) == confidence
    assert reliability_label(total) == reliability


def test_components_keep_sources():
    semantic = UncertaintyComponent(0.4, sources=["short text"], description="semantic")
    d = decompose_uncertainty(semantic, 0.1, 0.1, 0.1)
    assert d.semantic.sources == ("short text",)
    assert d.individual.sources == ()
    assert d.to_dict()["semantic"]["sources"] == ["short text"]


@pytest.mark.parametrize("bad", [-0.1, 1.01, float("nan")])
def test_out_of_range_inputs_fail(bad):
    with pytest.raises(InvalidInputError):
        decompose_uncertainty(bad, 0.1, 0.1, 0.1)


def test_component_validates_value():
    with pytest.raises(InvalidInputError):
        UncertaintyComponent(1.5)
