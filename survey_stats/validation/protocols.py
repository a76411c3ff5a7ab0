"""
Validity checks for discovered reasoning tactics.

Content validity (expert panel), criterion validity (k-fold agreement with
human coding), predictive validity (initial vs. follow-up responses) and
construct validity (correlation structure of tactic strengths).

Tactic discovery itself is out of scope; callers pass a ``discover``
callable that maps a list of responses to a ``TacticSet`` (or to a plain
``{tactic: strength}`` mapping, read as primary tactics).

Functions:
    validate_tactic_definitions: Expert-panel content validity
    validate_against_human_coding: Criterion validity via k-fold
    validate_predictive_accuracy: Temporal stability and bootstrap interval
    construct_validity: Convergent/discriminant validity and first PC
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import InsufficientSampleError
from ..inputs import check_open_unit_interval, check_positive_int
from ..records import ExpertRating, Response
from ..seeding import make_rng
from ..statistics.descriptive import ConfidenceEvidence, confidence_interval
from ..statistics.resampling import k_fold_cross_validate

MIN_ACCEPTABLE_SCORE = 5.0
QUESTIONABLE_SCORE = 4.0
MIN_EXPERT_RATINGS = 5
MAX_RELEVANCE_STANDARD_ERROR = 0.5
DAYS_PER_MONTH = 30.0

# Tactics in the same framework should correlate, across frameworks weakly
FRAMEWORK_GROUPS: Dict[str, Tuple[str, ...]] = {
    "consequentialist": ("utilitarian_maximization", "harm_minimization"),
    "deontological": ("duty_based_reasoning", "rights_protection"),
    "virtue": ("character_focus",),
    "care": ("relational_focus",),
    "integrative": ("multi_framework_integration", "value_conflict_recognition"),
}


@dataclass(frozen=True)
class TacticSet:
    """Output of a tactic discovery run: name -> strength, plus meta-tactic names."""

    primary: Mapping[str, float] = field(default_factory=dict)
    secondary: Mapping[str, float] = field(default_factory=dict)
    meta: Tuple[str, ...] = ()

    def names(self) -> List[str]:
        seen = list(self.primary) + list(self.secondary) + list(self.meta)
        return list(dict.fromkeys(seen))

    def strength(self, name: str) -> float:
        if name in self.primary:
            return float(self.primary[name])
        if name in self.secondary:
            return float(self.secondary[name])
        return 0.0


DiscoverResult = Union[TacticSet, Mapping[str, float]]
Discover = Callable[[List[Response]], DiscoverResult]


def as_tactic_set(value: DiscoverResult) -> TacticSet:
    if isinstance(value, TacticSet):
        return value
    return TacticSet(primary=dict(value))


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """Intersection over union of two tactic-name collections (0 when both empty)."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    return len(set_a & set_b) / len(union) if union else 0.0


# ---------------------------------------------------------------------------
# Content validity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ValidationResult:
    validity: str
    confidence: float
    evidence: ConfidenceEvidence
    recommendations: List[str] = field(default_factory=list)
    limitations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "validity": self.validity,
            "confidence": self.confidence,
            "evidence": self.evidence.to_dict(),
            "recommendations": list(self.recommendations),
            "limitations": list(self.limitations),
        }


def validate_tactic_definitions(
    expert_ratings: Sequence[ExpertRating],
    min_acceptable: float = MIN_ACCEPTABLE_SCORE,
) -> ValidationResult:
    """
    Expert-panel content validity of tactic definitions (1-7 ratings).

    The overall score is the mean of the relevance, clarity and completeness
    means: ``valid`` at ``min_acceptable`` or above, ``questionable`` at 4.0
    or above, otherwise ``invalid``.

    Raises:
        InsufficientSampleError: If fewer than two expert ratings are given
    """
    relevance = confidence_interval([r.relevance for r in expert_ratings])
    clarity = confidence_interval([r.clarity for r in expert_ratings])
    completeness = confidence_interval([r.completeness for r in expert_ratings])

    overall = (relevance.mean + clarity.mean + completeness.mean) / 3.0
    if overall >= min_acceptable:
        validity = "valid"
    elif overall >= QUESTIONABLE_SCORE:
        validity = "questionable"
    else:
        validity = "invalid"

    recommendations = []
    if relevance.mean < min_acceptable:
        recommendations.append("Revise tactic definitions for better relevance to ethical reasoning")
    if clarity.mean < min_acceptable:
        recommendations.append("Improve clarity and specificity of tactic descriptions")
    if completeness.mean < min_acceptable:
        recommendations.append("Expand tactic coverage to capture additional ethical reasoning patterns")

    limitations = []
    if relevance.standard_error > MAX_RELEVANCE_STANDARD_ERROR:
        limitations.append(
            "High variability in expert relevance ratings suggests unclear construct definition"
        )
    if len(expert_ratings) < MIN_EXPERT_RATINGS:
        limitations.append("Insufficient number of expert raters for robust content validation")

    confidence = 1.0 - max(relevance.standard_error, clarity.standard_error)
    return ValidationResult(
        validity=validity,
        confidence=float(min(1.0, max(0.0, confidence))),
        evidence=relevance,
        recommendations=recommendations,
        limitations=limitations,
    )


# ---------------------------------------------------------------------------
# Criterion validity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class FoldAgreement:
    fold: int
    accuracy: float
    detected_tactics: List[str]
    missed_tactics: List[str]


@dataclass(frozen=True)
class CodingAgreement:
    overall_accuracy: float
    per_tactic_accuracy: Dict[str, float]
    stability_score: float
    overfitting_risk: str
    fold_results: List[FoldAgreement]

    def to_dict(self) -> dict:
        return {
            "overall_accuracy": self.overall_accuracy,
            "per_tactic_accuracy": dict(self.per_tactic_accuracy),
            "stability_score": self.stability_score,
            "overfitting_risk": self.overfitting_risk,
            "fold_results": [dict(f.__dict__) for f in self.fold_results],
        }


def overfitting_risk(fold_std: float) -> str:
    if fold_std > 0.2:
        return "high"
    if fold_std > 0.1:
        return "medium"
    return "low"


def validate_against_human_coding(
    responses: Sequence[Response],
    human_coding: Mapping[str, Iterable[str]],
    discover: Discover,
    k: int = 5,
    seed: Optional[int] = None,
) -> CodingAgreement:
    """
    Criterion validity: k-fold agreement between discovered and human-coded tactics.

    Responses are identified by their position (``"0"``, ``"1"``, ...) in
    ``responses``; ``human_coding`` maps those ids to the tactics a human
    coder identified. A fold's score is the mean Jaccard overlap between the
    tactics discovered on the training folds and the human tactics of each
    held-out response (responses where both sets are empty are skipped).

    Per-tactic accuracy is recall: the share of held-out responses coded with
    a tactic whose fold model also discovered it.
    """
    coding = {str(key): tuple(tactics) for key, tactics in human_coding.items()}
    all_tactics = sorted({t for tactics in coding.values() for t in tactics})
    fold_models: List[Tuple[List[str], List[int]]] = []

    def _train(train_idx: List[int]) -> List[str]:
        return as_tactic_set(discover([responses[i] for i in train_idx])).names()

    def _evaluate(names: List[str], test_idx: List[int]) -> float:
        fold_models.append((names, test_idx))
        overlaps = []
        for i in test_idx:
            human = coding.get(str(i), ())
            if human or names:
                overlaps.append(jaccard(human, names))
        return float(np.mean(overlaps)) if overlaps else 0.0

    cv = k_fold_cross_validate(list(range(len(responses))), k, _train, _evaluate, seed=seed)

    hits = {t: 0 for t in all_tactics}
    positives = {t: 0 for t in all_tactics}
    for names, test_idx in fold_models:
        for i in test_idx:
            for tactic in coding.get(str(i), ()):
                positives[tactic] += 1
                if tactic in names:
                    hits[tactic] += 1
    per_tactic = {t: hits[t] / positives[t] if positives[t] else 0.0 for t in all_tactics}

    fold_results = [
        FoldAgreement(
            fold=idx + 1,
            accuracy=score,
            detected_tactics=[t for t in all_tactics if t in names],
            missed_tactics=[t for t in all_tactics if t not in names],
        )
        for idx, (score, (names, _)) in enumerate(zip(cv.folds, fold_models))
    ]
    return CodingAgreement(
        overall_accuracy=cv.mean,
        per_tactic_accuracy=per_tactic,
        stability_score=1.0 - cv.std,
        overfitting_risk=overfitting_risk(cv.std),
        fold_results=fold_results,
    )


# ---------------------------------------------------------------------------
# Predictive validity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PredictiveValidity:
    future_accuracy: float
    temporal_stability: float
    decay_rate: float
    confidence_interval: Tuple[float, float]

    def to_dict(self) -> dict:
        return {
            "future_accuracy": self.future_accuracy,
            "temporal_stability": self.temporal_stability,
            "decay_rate": self.decay_rate,
            "confidence_interval": list(self.confidence_interval),
        }


def _months_between(initial: Sequence[Response], follow_up: Sequence[Response]) -> float:
    start, end = initial[0].timestamp, follow_up[0].timestamp
    if start is None or end is None:
        return 0.0
    return (end - start).total_seconds() / (86400.0 * DAYS_PER_MONTH)


def validate_predictive_accuracy(
    initial: Sequence[Response],
    follow_up: Sequence[Response],
    discover: Discover,
    iterations: int = 1000,
    seed: Optional[int] = None,
    confidence_level: float = 0.95,
) -> PredictiveValidity:
    """
    Predictive validity of tactics discovered at two points in time.

    Args:
        initial: Responses from the first session
        follow_up: Responses from the later session
        discover: Tactic discovery callable
        iterations: Bootstrap resamples of both sessions
        seed: Seed for the bootstrap
        confidence_level: Width of the percentile interval

    Returns:
        PredictiveValidity: Jaccard overlap of tactic names, mean
        ``1 - |strength change|`` over initial tactics (0 for vanished ones),
        decay per 30-day month from the first timestamps (0 without a
        positive gap) and a bootstrap interval of the overlap

    Raises:
        InsufficientSampleError: If either session is empty
    """
    if not initial or not follow_up:
        raise InsufficientSampleError(min(len(initial), len(follow_up)), 1, what="session")
    iterations = check_positive_int(iterations, "iterations")
    confidence_level = check_open_unit_interval(confidence_level, "confidence_level")

    initial_set = as_tactic_set(discover(list(initial)))
    follow_set = as_tactic_set(discover(list(follow_up)))
    initial_names = initial_set.names()
    follow_names = follow_set.names()

    stabilities = [
        1.0 - abs(initial_set.strength(t) - follow_set.strength(t)) if t in follow_names else 0.0
        for t in initial_names
    ]
    temporal_stability = float(np.mean(stabilities)) if stabilities else 0.0

    gap = _months_between(initial, follow_up)
    decay_rate = (1.0 - temporal_stability) / gap if gap > 0 else 0.0

    rng = make_rng(seed)
    overlaps = np.empty(iterations, dtype=float)
    for i in range(iterations):
        sample_a = [initial[j] for j in rng.integers(0, len(initial), size=len(initial))]
        sample_b = [follow_up[j] for j in rng.integers(0, len(follow_up), size=len(follow_up))]
        overlaps[i] = jaccard(
            as_tactic_set(discover(sample_a)).names(),
            as_tactic_set(discover(sample_b)).names(),
        )
    alpha = 1.0 - confidence_level
    low, high = np.percentile(overlaps, [100.0 * alpha / 2.0, 100.0 * (1.0 - alpha / 2.0)])

    return PredictiveValidity(
        future_accuracy=jaccard(initial_names, follow_names),
        temporal_stability=temporal_stability,
        decay_rate=float(decay_rate),
        confidence_interval=(float(low), float(high)),
    )


# ---------------------------------------------------------------------------
# Construct validity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ConstructValidity:
    convergent_validity: float
    discriminant_validity: float
    factor_loadings: Dict[str, float]
    explained_variance: float
    eigenvalue: float
    correlation: pd.DataFrame = field(repr=False, compare=False, default=None)

    def to_dict(self) -> dict:
        return {
            "convergent_validity": self.convergent_validity,
            "discriminant_validity": self.discriminant_validity,
            "factor_loadings": dict(self.factor_loadings),
            "explained_variance": self.explained_variance,
            "eigenvalue": self.eigenvalue,
        }


def _framework_pairs(tactics: Iterable[str]) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str]]]:
    present = set(tactics)
    within, across = [], []
    for group in FRAMEWORK_GROUPS.values():
        within.extend(
            (a, b) for a, b in itertools.combinations(group, 2) if a in present and b in present
        )
    for g1, g2 in itertools.combinations(FRAMEWORK_GROUPS.values(), 2):
        across.extend((a, b) for a in g1 for b in g2 if a in present and b in present)
    return within, across


def construct_validity(tactic_scores: Sequence[Mapping[str, float]]) -> ConstructValidity:
    """
    Correlation structure of tactic strengths across responses.

    Missing tactics score 0. Correlations that are undefined (a tactic with
    constant strength) are treated as 0. Convergent validity is the mean
    ``|r|`` of same-framework pairs; discriminant validity the mean
    ``1 - |r|`` of cross-framework pairs (0 when no such pair is present).
    Factor loadings are the absolute loadings on the first principal
    component of the correlation matrix.

    Raises:
        InsufficientSampleError: If fewer than two score rows or no tactics
    """
    frame = pd.DataFrame([dict(row) for row in tactic_scores]).fillna(0.0)
    if len(frame) < 2:
        raise InsufficientSampleError(len(frame), 2, what="tactic score")
    if frame.shape[1] == 0:
        raise InsufficientSampleError(0, 1, what="tactic")
    frame = frame.astype(float)

    corr_values = frame.corr(method="pearson").fillna(0.0).to_numpy(copy=True)
    # Undefined correlations of constant tactics are 0, but every tactic still correlates 1 with itself
    np.fill_diagonal(corr_values, 1.0)
    corr = pd.DataFrame(corr_values, index=frame.columns, columns=frame.columns)
    within, across = _framework_pairs(corr.columns)
    convergent = float(np.mean([abs(corr.loc[a, b]) for a, b in within])) if within else 0.0
    discriminant = float(np.mean([1.0 - abs(corr.loc[a, b]) for a, b in across])) if across else 0.0

    eigenvalues, eigenvectors = np.linalg.eigh(corr.to_numpy())
    top = int(np.argmax(eigenvalues))
    eigenvalue = float(max(0.0, eigenvalues[top]))
    loadings = np.abs(eigenvectors[:, top]) * np.sqrt(eigenvalue)

    return ConstructValidity(
        convergent_validity=convergent,
        discriminant_validity=discriminant,
        factor_loadings={str(t): float(v) for t, v in zip(corr.columns, loadings)},
        explained_variance=eigenvalue / corr.shape[0],
        eigenvalue=eigenvalue,
        correlation=corr,
    )
