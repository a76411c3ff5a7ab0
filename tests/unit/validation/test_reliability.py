"""Tests for inter-rater reliability (validation/reliability.py)."""
import pytest

from survey_stats.errors import InsufficientSampleError, InvalidInputError
from survey_stats.records import Rating
from survey_stats.validation.reliability import agreement_label, inter_rater_reliability


def _ratings(rater, scores_by_response):
    return [Rating(rater, rid, scores) for rid, scores in scores_by_response.items()]


SCORES = {
    "r1": {"care": 6, "duty": 2},
    "r2": {"care": 3, "duty": 5},
    "r3": {"care": 7, "duty": 1},
}


def test_identical_raters_agree_perfectly():
    res = inter_rater_reliability(_ratings("a", SCORES) + _ratings("b", SCORES))
    assert res.pearson_correlation == pytest.approx(1.0)
    assert res.kendall_tau == pytest.approx(1.0)
    assert res.cohens_kappa == pytest.approx(1.0)
    assert res.adjacent_agreement == 1.0
    assert res.agreement == "excellent"
    assert res.rater_pairs == 1


def test_mostly_agreeing_panel(agreeing_ratings):
    res = inter_rater_reliability(agreeing_ratings)
    assert res.rater_pairs == 3
    assert res.pearson_correlation > 0.9
    assert res.adjacent_agreement == 1.0
    assert res.cohens_kappa < 1.0
    assert res.agreement in {"poor", "fair", "moderate", "good", "excellent"}
    assert set(res.rater_consistency) == {"alice", "bob", "carol"}


def test_constant_shared_scores_are_degenerate():
    a = _ratings("a", {"r1": {"care": 4}, "r2": {"care": 4}})
    b = _ratings("b", {"r1": {"care": 4}, "r2": {"care": 4}})
    res = inter_rater_reliability(a + b)
    assert res.pearson_correlation == 0.0
    assert res.kendall_tau == 0.0
    assert res.cohens_kappa == 1.0


def test_rater_consistency_uses_population_sd():
    a = _ratings("a", {"r1": {"care": 1}, "r2": {"care": 7}})
    b = _ratings("b", {"r1": {"care": 2}, "r2": {"care": 6}})
    res = inter_rater_reliability(a + b)
    assert res.rater_consistency["a"] == pytest.approx(1 - 3 / 7)
    assert res.rater_consistency["b"] == pytest.approx(1 - 2 / 7)


def test_later_rating_replaces_earlier():
    a = [Rating("a", "r1", {"care": 1}), Rating("a", "r1", {"care": 6}), Rating("a", "r2", {"care": 2})]
    b = _ratings("b", {"r1": {"care": 6}, "r2": {"care": 2}})
    res = inter_rater_reliability(a + b)
    assert res.cohens_kappa == pytest.approx(1.0)


def test_no_overlap_fails():
    a = _ratings("a", {"r1": {"care": 3}})
    b = _ratings("b", {"r2": {"care": 3}})
    with pytest.raises(InsufficientSampleError):
        inter_rater_reliability(a + b)


def test_single_rater_fails():
    with pytest.raises(InsufficientSampleError):
        inter_rater_reliability(_ratings("a", SCORES))


def test_empty_ratings_fail():
    with pytest.raises(InsufficientSampleError):
        inter_rater_reliability([])


@pytest.mark.parametrize("bad", [0, 8, float("nan")])
def test_scores_outside_scale_fail(bad):
    a = _ratings("a", {"r1": {"care": bad}})
    b = _ratings("b", {"r1": {"care": 3}})
    with pytest.raises(InvalidInputError):
        inter_rater_reliability(a + b)


@pytest.mark.parametrize(
    "kappa, label",
    [(0.95, "excellent"), (0.8, "excellent"), (0.6, "good"), (0.45, "moderate"), (0.2, "fair"), (0.1, "poor"), (-0.3, "poor")],
)
def test_agreement_labels(kappa, label):
    assert agreement_label(kappa) == label
