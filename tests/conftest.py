from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd
import pytest

from survey_stats.records import AnalyzedResponse, Rating, Response


# ---------------------------------------------------------------------------
# Deterministic fixtures shared by unit and integration tests.
# Samples are small on purpose: the library targets per-respondent surveys
# with a handful to a few dozen answers.
# ---------------------------------------------------------------------------

TEST_SEED = 1337

SCENARIO_SAMPLE = (0.7, 0.8, 0.6, 0.9, 0.75, 0.65, 0.85, 0.7, 0.8, 0.75)

REASONINGS = (
    "I would protect the vulnerable person first because preventing harm matters more than any rule here.",
    "Keeping my promise to the family is a duty, and breaking trust would hurt the whole community.",
    "Everyone deserves equal treatment and fair rights, so I would report it even if it costs me personally.",
    "Maybe it depends on context, perhaps I am not sure, the situation is unclear to me.",
    "Respect for elder authority and tradition should guide this, but individual autonomy matters as well.",
    "The outcome that helps the most people is best, though I would try to minimise harm to anyone left out.",
)

CONCEPTS = (
    {"harm_prevention": 0.9, "relational_care": 0.3},
    {"duty_obligation": 0.8, "relational_care": 0.5},
    {"rights_protection": 0.9, "utilitarian_welfare": 0.2},
    {"harm_prevention": 0.2, "duty_obligation": 0.2, "rights_protection": 0.2},
    {"virtue_character": 0.6, "duty_obligation": 0.4},
    {"utilitarian_welfare": 0.9, "harm_prevention": 0.4},
)


@pytest.fixture
def scenario_sample() -> List[float]:
    return list(SCENARIO_SAMPLE)


@pytest.fixture
def responses() -> List[Response]:
    return [
        Response(
            chosen_option="abcdab"[i],
            reasoning=text,
            domain="personal_relationships",
            perceived_difficulty=3 + i,
            response_time_ms=20000 + 1000 * i,
        )
        for i, text in enumerate(REASONINGS)
    ]


@pytest.fixture
def analyzed_responses() -> List[AnalyzedResponse]:
    return [
        AnalyzedResponse(
            concept_activations=dict(concepts),
            context="personal_relationships",
            cultural_background="western_individualistic",
            reasoning=text,
        )
        for concepts, text in zip(CONCEPTS, REASONINGS)
    ]


@pytest.fixture
def agreeing_ratings() -> List[Rating]:
    """Three raters who mostly agree within one scale point."""
    base = {
        "r1": {"care": 6, "duty": 2, "rights": 4},
        "r2": {"care": 5, "duty": 3, "rights": 5},
        "r3": {"care": 7, "duty": 1, "rights": 4},
        "r4": {"care": 2, "duty": 6, "rights": 3},
    }
    shift = {"alice": 0, "bob": 0, "carol": 1}
    ratings = []
    for rater, delta in shift.items():
        for response_id, scores in base.items():
            ratings.append(
                Rating(
                    rater_id=rater,
                    response_id=response_id,
                    tactic_scores={t: min(7, s + delta) for t, s in scores.items()},
                )
            )
    return ratings


@pytest.fixture
def responses_csv(tmp_path: Path) -> Path:
    rows = []
    for i, (text, concepts) in enumerate(zip(REASONINGS, CONCEPTS)):
        row = {
            "chosen_option": "abcdab"[i],
            "reasoning": text,
            "domain": "personal_relationships",
            "perceived_difficulty": 3 + i,
            "response_time_ms": 20000 + 1000 * i,
            "cultural_background": "western_individualistic",
        }
        row.update({f"concept_{k}": v for k, v in concepts.items()})
        rows.append(row)
    fp = tmp_path / "respondent.csv"
    pd.DataFrame(rows).to_csv(fp, index=False)
    return fp
