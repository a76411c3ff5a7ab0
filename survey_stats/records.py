"""
Read-only input records supplied by the survey layer.

The statistics core does not own storage or schema for these; it only checks
ranges on construction and converts tabular exports (pandas) into records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .errors import InvalidInputError

CHOICE_OPTIONS = ("a", "b", "c", "d")
DIFFICULTY_RANGE = (1, 10)
RATING_SCALE = (1, 7)


@dataclass(frozen=True)
class Response:
    """A single answered dilemma as exported by the survey application."""

    chosen_option: str
    reasoning: str = ""
    domain: str = ""
    perceived_difficulty: int = 5
    response_time_ms: Optional[int] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.chosen_option not in CHOICE_OPTIONS:
            raise InvalidInputError(
                f"chosen_option must be one of {CHOICE_OPTIONS}, got {self.chosen_option!r}"
            )
        lo, hi = DIFFICULTY_RANGE
        if not (lo <= int(self.perceived_difficulty) <= hi):
            raise InvalidInputError(
                f"perceived_difficulty must be in range [{lo}, {hi}], got {self.perceived_difficulty}"
            )
        if self.response_time_ms is not None and int(self.response_time_ms) < 0:
            raise InvalidInputError(f"response_time_ms must be >= 0, got {self.response_time_ms}")

    @property
    def word_count(self) -> int:
        return len(self.reasoning.split()) if self.reasoning else 0


@dataclass(frozen=True)
class AnalyzedResponse:
    """
    A response after semantic analysis.

    Attributes
    ----------
    concept_activations: Mapping[str, float]
        Activation strength per semantic concept (e.g. ``harm_prevention``).
    context: str
        Dilemma context/domain (e.g. ``personal_relationships``).
    cultural_background: str
        Cultural background label used to pick population offsets.
    reasoning: str
        Free-text reasoning, used by text-quality heuristics.
    """

    concept_activations: Mapping[str, float] = field(default_factory=dict)
    context: str = ""
    cultural_background: str = "universal"
    reasoning: str = ""
    response_time_ms: Optional[int] = None


@dataclass(frozen=True)
class Rating:
    """One rater's tactic scores for one response (1-7 scale)."""

    rater_id: str
    response_id: str
    tactic_scores: Mapping[str, float]


@dataclass(frozen=True)
class ExpertRating:
    """Expert panel rating of a tactic definition (each criterion 1-7)."""

    expert_id: str
    tactic: str
    relevance: float
    clarity: float
    completeness: float

    def __post_init__(self):
        lo, hi = RATING_SCALE
        for name in ("relevance", "clarity", "completeness"):
            value = float(getattr(self, name))
            if not (lo <= value <= hi):
                raise InvalidInputError(f"{name} must be in range [{lo}, {hi}], got {value}")


def ratings_frame(ratings: List[Rating]) -> pd.DataFrame:
    """Flatten ratings into a long frame with columns rater_id/response_id/tactic/score."""
    rows = [
        {
            "rater_id": str(r.rater_id),
            "response_id": str(r.response_id),
            "tactic": str(tactic),
            "score": float(score),
        }
        for r in ratings
        for tactic, score in r.tactic_scores.items()
    ]
    return pd.DataFrame(rows, columns=["rater_id", "response_id", "tactic", "score"])


def responses_from_frame(df: pd.DataFrame, concept_prefix: str = "concept_") -> Tuple[List[Response], List[AnalyzedResponse]]:
    """
    Build ``Response`` and ``AnalyzedResponse`` records from a survey export.

    Required column: ``chosen_option``. Optional columns: ``reasoning``,
    ``domain``, ``perceived_difficulty``, ``response_time_ms``, ``timestamp``,
    ``cultural_background`` and any ``concept_<name>`` activation columns.
    """
    if "chosen_option" not in df.columns:
        raise InvalidInputError("responses export must contain a 'chosen_option' column")

    concept_cols = [c for c in df.columns if str(c).startswith(concept_prefix)]
    responses: List[Response] = []
    analyzed: List[AnalyzedResponse] = []
    for row in df.to_dict(orient="records"):
        reasoning = row.get("reasoning")
        reasoning = "" if reasoning is None or pd.isna(reasoning) else str(reasoning)
        rt = row.get("response_time_ms")
        rt = None if rt is None or pd.isna(rt) else int(rt)
        ts = row.get("timestamp")
        ts = None if ts is None or pd.isna(ts) else pd.Timestamp(ts).to_pydatetime()
        difficulty = row.get("perceived_difficulty")
        difficulty = 5 if difficulty is None or pd.isna(difficulty) else int(difficulty)
        domain = row.get("domain")
        domain = "" if domain is None or pd.isna(domain) else str(domain)
        culture = row.get("cultural_background")
        culture = "universal" if culture is None or pd.isna(culture) else str(culture)

        responses.append(
            Response(
                chosen_option=str(row["chosen_option"]).strip().lower(),
                reasoning=reasoning,
                domain=domain,
                perceived_difficulty=difficulty,
                response_time_ms=rt,
                timestamp=ts,
            )
        )
        activations: Dict[str, float] = {}
        for col in concept_cols:
            val = row.get(col)
            if val is not None and not pd.isna(val):
                activations[str(col)[len(concept_prefix):]] = float(val)
        analyzed.append(
            AnalyzedResponse(
                concept_activations=activations,
                context=domain,
                cultural_background=culture,
                reasoning=reasoning,
                response_time_ms=rt,
            )
        )
    return responses, analyzed
