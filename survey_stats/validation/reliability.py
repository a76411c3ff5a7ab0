"""
Inter-rater reliability for tactic scores on a 1..scale_max scale.

Every pair of raters is compared on the (response, tactic) cells both of
them scored. Pair statistics are averaged over pairs that overlap at all.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
from scipy import stats
from sklearn.metrics import cohen_kappa_score

from ..errors import InsufficientSampleError, InvalidInputError
from ..records import RATING_SCALE, Rating, ratings_frame

AGREEMENT_THRESHOLDS = (
    (0.8, "excellent"),
    (0.6, "good"),
    (0.4, "moderate"),
    (0.2, "fair"),
)


@dataclass(frozen=True)
class InterRaterReliability:
    pearson_correlation: float
    kendall_tau: float
    cohens_kappa: float
    adjacent_agreement: float
    agreement: str
    rater_consistency: Dict[str, float] = field(default_factory=dict)
    rater_pairs: int = 0

    def to_dict(self) -> dict:
        return {
            "pearson_correlation": self.pearson_correlation,
            "kendall_tau": self.kendall_tau,
            "cohens_kappa": self.cohens_kappa,
            "adjacent_agreement": self.adjacent_agreement,
            "agreement": self.agreement,
            "rater_consistency": dict(self.rater_consistency),
            "rater_pairs": self.rater_pairs,
        }


def agreement_label(kappa: float) -> str:
    for lower, label in AGREEMENT_THRESHOLDS:
        if kappa >= lower:
            return label
    return "poor"


def _is_constant(values: np.ndarray) -> bool:
    return values.size < 2 or bool(np.all(values == values[0]))


def _pair_correlations(x: np.ndarray, y: np.ndarray) -> tuple:
    # Undefined correlations (constant scores, single cell) count as 0
    if _is_constant(x) or _is_constant(y):
        return 0.0, 0.0
    pearson = float(stats.pearsonr(x, y)[0])
    tau = float(stats.kendalltau(x, y)[0])
    return (pearson if np.isfinite(pearson) else 0.0), (tau if np.isfinite(tau) else 0.0)


def _pair_kappa(x: np.ndarray, y: np.ndarray) -> float:
    a = np.rint(x).astype(int)
    b = np.rint(y).astype(int)
    if np.union1d(a, b).size == 1:
        return 1.0
    kappa = float(cohen_kappa_score(a, b))
    return kappa if np.isfinite(kappa) else 0.0


def inter_rater_reliability(ratings: Sequence[Rating], scale_max: int = RATING_SCALE[1]) -> InterRaterReliability:
    """
    Agreement statistics between raters scoring the same responses.

    Args:
        ratings: Rating records; a later record for the same rater/response
            replaces the earlier one
        scale_max: Upper end of the rating scale (lower end is 1)

    Returns:
        InterRaterReliability with mean Pearson r, Kendall tau, Cohen's kappa,
        adjacent agreement (|diff| <= 1), kappa-based label and per-rater
        consistency ``1 - sd / scale_max``

    Raises:
        InvalidInputError: If a score is non-finite or outside [1, scale_max]
        InsufficientSampleError: If no two raters share a scored cell
    """
    if scale_max < 2:
        raise InvalidInputError(f"scale_max must be >= 2, got {scale_max}")

    df = ratings_frame(list(ratings))
    if df.empty:
        raise InsufficientSampleError(0, 2, what="rating count")
    scores = df["score"].to_numpy(dtype=float)
    if not np.all(np.isfinite(scores)) or scores.min() < 1 or scores.max() > scale_max:
        raise InvalidInputError(f"Scores must be finite and in range [1, {scale_max}]")

    df = df.drop_duplicates(subset=["rater_id", "response_id", "tactic"], keep="last")
    matrix = df.pivot(index=["response_id", "tactic"], columns="rater_id", values="score")
    raters = sorted(matrix.columns)

    pearsons: List[float] = []
    taus: List[float] = []
    kappas: List[float] = []
    adjacent: List[float] = []
    for r1, r2 in itertools.combinations(raters, 2):
        both = matrix[[r1, r2]].dropna()
        if both.empty:
            continue
        x = both[r1].to_numpy(dtype=float)
        y = both[r2].to_numpy(dtype=float)
        pearson, tau = _pair_correlations(x, y)
        pearsons.append(pearson)
        taus.append(tau)
        kappas.append(_pair_kappa(x, y))
        adjacent.append(float(np.mean(np.abs(x - y) <= 1)))

    if not pearsons:
        raise InsufficientSampleError(0, 1, what="overlapping rater pair")

    consistency: Dict[str, float] = {}
    for rater, group in df.groupby("rater_id"):
        values = group["score"].to_numpy(dtype=float)
        if values.size > 1:
            consistency[str(rater)] = float(1.0 - values.std(ddof=0) / scale_max)

    kappa = float(np.mean(kappas))
    return InterRaterReliability(
        pearson_correlation=float(np.mean(pearsons)),
        kendall_tau=float(np.mean(taus)),
        cohens_kappa=kappa,
        adjacent_agreement=float(np.mean(adjacent)),
        agreement=agreement_label(kappa),
        rater_consistency=consistency,
        rater_pairs=len(pearsons),
    )
