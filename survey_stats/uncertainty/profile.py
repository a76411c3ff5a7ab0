"""
Uncertainty sources and the per-person confidence profile.

Each estimator below produces one ``UncertaintyComponent`` (value in [0, 1]
plus human-readable sources). ``uncertainty_profile`` combines them through
``decompose_uncertainty`` and adds information metrics, a data-quality
assessment and recommended actions driven by threshold checks.

All heuristics operate on the free-text reasoning of the responses and on
concept activations; none of them touch storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

import numpy as np

from ..errors import InsufficientSampleError
from ..modeling.hierarchical import InferenceResult
from .decomposition import UncertaintyComponent, UncertaintyDecomposition, decompose_uncertainty
from .entropy import normalized_entropy, population_variance

MIN_REASONING_CHARS = 50
MIN_REASONING_WORDS = 10
VAGUE_PHRASES = ("maybe", "perhaps", "not sure", "unclear", "depends")

CULTURAL_INDICATORS: Dict[str, tuple] = {
    "individualistic": ("individual", "personal", "self", "autonomous", "independent"),
    "collectivistic": ("community", "family", "group", "collective", "together"),
    "hierarchical": ("authority", "respect", "order", "tradition", "elder"),
    "egalitarian": ("equal", "fair", "democratic", "rights", "justice"),
}

CULTURAL_BASE_UNCERTAINTY = {
    "universal": 0.1,
    "western_individualistic": 0.2,
    "eastern_collectivistic": 0.2,
}
UNCOMMON_CULTURE_UNCERTAINTY = 0.4
NO_INDIVIDUAL_MODEL_UNCERTAINTY = 0.8
NO_ENSEMBLE_UNCERTAINTY = 0.3


class HasReasoning(Protocol):
    reasoning: str


def _pct(value: float) -> int:
    return int(round(value * 100))


def aggregate_activations(activations: Sequence[Mapping[str, float]]) -> Dict[str, float]:
    """Sum concept activations across responses."""
    totals: Dict[str, float] = {}
    for mapping in activations:
        for concept, value in mapping.items():
            totals[concept] = totals.get(concept, 0.0) + float(value)
    return totals


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------
def semantic_uncertainty(
    concept_activations: Optional[Mapping[str, float]],
    responses: Sequence[HasReasoning],
) -> UncertaintyComponent:
    """Entropy of concept activations plus text-quality penalties."""
    sources: List[str] = []
    semantic_entropy = 0.0
    if concept_activations:
        semantic_entropy = normalized_entropy(list(concept_activations.values()))
        if semantic_entropy > 0.8:
            sources.append("High semantic ambiguity - multiple competing interpretations")

    ambiguity = 0.0
    for idx, response in enumerate(responses, start=1):
        text = response.reasoning or ""
        if len(text) < MIN_REASONING_CHARS:
            sources.append(f"Response {idx}: Very short reasoning text")
            ambiguity += 0.3
        if len(text.split()) < MIN_REASONING_WORDS:
            sources.append(f"Response {idx}: Insufficient detail for reliable analysis")
            ambiguity += 0.2
        lowered = text.lower()
        vagueness = sum(1 for phrase in VAGUE_PHRASES if phrase in lowered)
        if vagueness > 2:
            sources.append(f"Response {idx}: High linguistic uncertainty")
            ambiguity += 0.1 * vagueness

    value = min(1.0, (semantic_entropy + ambiguity) / 2.0)
    return UncertaintyComponent(
        value=value,
        sources=tuple(sources),
        description=f"Uncertainty from semantic ambiguity and text quality ({_pct(value)}%)",
    )


def individual_uncertainty(inference: Optional[InferenceResult], n_responses: int) -> UncertaintyComponent:
    """Individual-level uncertainty from a fitted hierarchical model (if any)."""
    sources: List[str] = []
    if inference is None:
        value = NO_INDIVIDUAL_MODEL_UNCERTAINTY
        sources.append("No individual modeling performed - using population defaults")
    else:
        value = inference.uncertainty.individual
        if value > 0.7:
            sources.append("High individual variation - reasoning patterns not yet stable")
        if n_responses < 5:
            sources.append("Limited response data - individual patterns uncertain")
            value += 0.2
        if not inference.convergence.converged:
            sources.append("Bayesian inference did not converge - results unreliable")
            value += 0.3
    value = min(1.0, value)
    return UncertaintyComponent(
        value=value,
        sources=tuple(sources),
        description=f"Uncertainty in individual moral reasoning patterns ({_pct(value)}%)",
    )


@dataclass(frozen=True)
class CulturalMarkers:
    inconsistency: float
    mixed_cultures: bool
    scores: Dict[str, int] = field(default_factory=dict)


def detect_cultural_markers(responses: Sequence[HasReasoning]) -> CulturalMarkers:
    """Keyword counts per cultural orientation and their normalized entropy."""
    scores = {culture: 0 for culture in CULTURAL_INDICATORS}
    for response in responses:
        text = (response.reasoning or "").lower()
        for culture, indicators in CULTURAL_INDICATORS.items():
            scores[culture] += sum(1 for word in indicators if word in text)

    if sum(scores.values()) == 0:
        return CulturalMarkers(inconsistency=0.5, mixed_cultures=False, scores=scores)
    entropy = normalized_entropy(list(scores.values()))
    return CulturalMarkers(inconsistency=entropy, mixed_cultures=entropy > 0.7, scores=scores)


def cultural_uncertainty(cultural_context: str, responses: Sequence[HasReasoning]) -> UncertaintyComponent:
    sources: List[str] = []
    if cultural_context in CULTURAL_BASE_UNCERTAINTY:
        value = CULTURAL_BASE_UNCERTAINTY[cultural_context]
    else:
        value = UNCOMMON_CULTURE_UNCERTAINTY
        sources.append("Uncommon cultural context - limited validation data")

    markers = detect_cultural_markers(responses)
    if markers.inconsistency > 0.5:
        sources.append("Inconsistent cultural markers across responses")
        value += 0.2
    if markers.mixed_cultures:
        sources.append("Multiple cultural influences detected")
        value += 0.15

    value = min(1.0, value)
    return UncertaintyComponent(
        value=value,
        sources=tuple(sources),
        description=f"Uncertainty from cultural context and cross-cultural variation ({_pct(value)}%)",
    )


def model_uncertainty(ensemble_predictions: Optional[Sequence[float]] = None) -> UncertaintyComponent:
    """Disagreement across an ensemble of model predictions (2x variance, capped)."""
    if ensemble_predictions is None or len(ensemble_predictions) < 2:
        return UncertaintyComponent(
            value=NO_ENSEMBLE_UNCERTAINTY,
            sources=("No model ensemble - cannot assess model uncertainty",),
            description=f"Model uncertainty from lack of ensemble validation ({_pct(NO_ENSEMBLE_UNCERTAINTY)}%)",
        )

    variance = population_variance(ensemble_predictions)
    sources: List[str] = []
    if variance > 0.3:
        sources.append("High disagreement between different models")
    if variance > 0.5:
        sources.append("Very high model uncertainty - results may be unreliable")
    value = min(1.0, variance * 2.0)
    return UncertaintyComponent(
        value=value,
        sources=tuple(sources),
        description=f"Uncertainty from model disagreement and limitations ({_pct(value)}%)",
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class InformationMetrics:
    mutual_information: float
    entropy: float
    conditional_entropy: float
    information_gain: float
    redundancy: float


@dataclass(frozen=True)
class DataQuality:
    sample_size: str
    response_quality: str
    cultural_representation: str


@dataclass(frozen=True)
class ConfidenceProfile:
    overall_confidence: float
    decomposition: UncertaintyDecomposition
    information: InformationMetrics
    recommended_actions: List[str]
    data_quality: DataQuality

    def to_dict(self) -> dict:
        return {
            "overall_confidence": self.overall_confidence,
            "decomposition": self.decomposition.to_dict(),
            "information": dict(self.information.__dict__),
            "recommended_actions": list(self.recommended_actions),
            "data_quality": dict(self.data_quality.__dict__),
        }


def information_metrics(
    concept_activations: Optional[Mapping[str, float]],
    responses: Sequence[HasReasoning],
) -> InformationMetrics:
    """
    Heuristic information metrics between reasoning texts and activated values.

    Reasoning "entropy" is the dispersion of word counts
    (``min(1, var / (mean + 1))``); values entropy is the normalized entropy
    of the activations. Mutual information is estimated as
    ``max(0, H_reasoning + H_values - 1.5)``.
    """
    if not responses:
        raise InsufficientSampleError(0, 1, what="response count")
    word_counts = np.array([len((r.reasoning or "").split()) for r in responses], dtype=float)
    reasoning_entropy = float(min(1.0, word_counts.var(ddof=0) / (word_counts.mean() + 1.0)))
    if concept_activations:
        values_entropy = normalized_entropy(list(concept_activations.values()))
    else:
        values_entropy = 1.0

    mutual = max(0.0, reasoning_entropy + values_entropy - 1.5)
    smallest = min(reasoning_entropy, values_entropy)
    return InformationMetrics(
        mutual_information=mutual,
        entropy=reasoning_entropy,
        conditional_entropy=reasoning_entropy - mutual,
        information_gain=mutual / reasoning_entropy if reasoning_entropy > 0 else 0.0,
        redundancy=1.0 - mutual / smallest if smallest > 0 else 0.0,
    )


def assess_data_quality(responses: Sequence[HasReasoning], cultural_context: str) -> DataQuality:
    n = len(responses)
    if n < 3:
        sample_size = "insufficient"
    elif n < 5:
        sample_size = "minimal"
    elif n < 8:
        sample_size = "adequate"
    elif n < 12:
        sample_size = "good"
    else:
        sample_size = "excellent"

    avg_len = float(np.mean([len(r.reasoning or "") for r in responses])) if n else 0.0
    if avg_len < 20:
        response_quality = "poor"
    elif avg_len < 50:
        response_quality = "fair"
    elif avg_len < 100:
        response_quality = "good"
    else:
        response_quality = "excellent"

    if cultural_context == "universal":
        representation = "limited"
    elif "mixed" in cultural_context:
        representation = "diverse"
    else:
        representation = "fair"

    return DataQuality(
        sample_size=sample_size,
        response_quality=response_quality,
        cultural_representation=representation,
    )


def recommend_actions(decomposition: UncertaintyDecomposition, quality: DataQuality) -> List[str]:
    actions: List[str] = []
    if quality.sample_size == "insufficient":
        actions.append("Sample size insufficient: complete at least 3 more dilemmas for minimal reliability")
    elif quality.sample_size == "minimal":
        actions.append("Complete 3-5 more dilemmas for improved accuracy")
    if quality.response_quality == "poor":
        actions.append("Provide more detailed reasoning in future responses")
    if decomposition.semantic.value > 0.5:
        actions.append("Consider clarifying your reasoning with more specific examples")
    if decomposition.individual.value > 0.6:
        actions.append("Complete additional responses to establish consistent patterns")
    if decomposition.cultural.value > 0.5:
        actions.append("Cultural context may need manual verification")
    if decomposition.total.value < 0.2:
        actions.append("Profile shows high confidence - results are likely reliable")
    return actions


def uncertainty_profile(
    concept_activations: Optional[Mapping[str, float]],
    inference: Optional[InferenceResult],
    cultural_context: str,
    responses: Sequence[HasReasoning],
    ensemble_predictions: Optional[Sequence[float]] = None,
) -> ConfidenceProfile:
    """
    Full confidence profile for one respondent.

    Raises:
        InsufficientSampleError: If ``responses`` is empty
    """
    if not responses:
        raise InsufficientSampleError(0, 1, what="response count")

    decomposition = decompose_uncertainty(
        semantic_uncertainty(concept_activations, responses),
        individual_uncertainty(inference, len(responses)),
        cultural_uncertainty(cultural_context, responses),
        model_uncertainty(ensemble_predictions),
    )
    quality = assess_data_quality(responses, cultural_context)
    return ConfidenceProfile(
        overall_confidence=max(0.0, 1.0 - decomposition.total.value),
        decomposition=decomposition,
        information=information_metrics(concept_activations, responses),
        recommended_actions=recommend_actions(decomposition, quality),
        data_quality=quality,
    )
