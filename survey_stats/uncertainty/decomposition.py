"""
Weighted decomposition of analysis uncertainty into a single confidence label.

Four independently estimated sources (semantic, individual, cultural, model)
are combined with fixed weights 0.3/0.3/0.2/0.2. Because the weights are
non-negative and sum to one, the total is a convex combination and always lies
between the smallest and largest input.

Labels:
- confidence_level: high < 0.2 <= medium < 0.4 <= low < 0.7 <= very_low
- reliability: excellent < 0.15 <= good < 0.3 <= fair < 0.6 <= poor
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union

from ..inputs import check_unit_interval

UNCERTAINTY_WEIGHTS = {"semantic": 0.3, "individual": 0.3, "cultural": 0.2, "model": 0.2}

CONFIDENCE_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (0.2, "high"),
    (0.4, "medium"),
    (0.7, "low"),
)
RELIABILITY_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (0.15, "excellent"),
    (0.3, "good"),
    (0.6, "fair"),
)


@dataclass(frozen=True)
class UncertaintyComponent:
    value: float
    sources: Tuple[str, ...] = field(default_factory=tuple)
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "value", check_unit_interval(self.value, "uncertainty value"))
        object.__setattr__(self, "sources", tuple(self.sources))

    def to_dict(self) -> dict:
        return {"value": self.value, "sources": list(self.sources), "description": self.description}


@dataclass(frozen=True)
class TotalUncertainty:
    value: float
    confidence_level: str
    reliability: str


@dataclass(frozen=True)
class UncertaintyDecomposition:
    semantic: UncertaintyComponent
    individual: UncertaintyComponent
    cultural: UncertaintyComponent
    model: UncertaintyComponent
    total: TotalUncertainty

    def to_dict(self) -> dict:
        return {
            "semantic": self.semantic.to_dict(),
            "individual": self.individual.to_dict(),
            "cultural": self.cultural.to_dict(),
            "model": self.model.to_dict(),
            "total": {
                "value": self.total.value,
                "confidence_level": self.total.confidence_level,
                "reliability": self.total.reliability,
            },
        }


ComponentLike = Union[UncertaintyComponent, float]


def _label(value: float, thresholds: Tuple[Tuple[float, str], ...], fallback: str) -> str:
    for upper, label in thresholds:
        if value < upper:
            return label
    return fallback


def confidence_label(total: float) -> str:
    return _label(total, CONFIDENCE_THRESHOLDS, "very_low")


def reliability_label(total: float) -> str:
    return _label(total, RELIABILITY_THRESHOLDS, "poor")


def _as_component(name: str, value: ComponentLike) -> UncertaintyComponent:
    if isinstance(value, UncertaintyComponent):
        return value
    return UncertaintyComponent(value=check_unit_interval(value, f"{name} uncertainty"))


def decompose_uncertainty(
    semantic: ComponentLike,
    individual: ComponentLike,
    cultural: ComponentLike,
    model: ComponentLike,
) -> UncertaintyDecomposition:
    """
    Combine four uncertainty sources into a labelled total.

    Args:
        semantic, individual, cultural, model: Scalars in [0, 1] or
            ``UncertaintyComponent`` instances carrying their sources

    Returns:
        UncertaintyDecomposition with the weighted total and its labels

    Raises:
        InvalidInputError: If any value is NaN or outside [0, 1]

    Example:
        >>> d = decompose_uncertainty(0.1, 0.1, 0.1, 0.1)
        >>> d.total.confidence_level, d.total.reliability
        ('high', 'excellent')
    """
    parts = {
        "semantic": _as_component("semantic", semantic),
        "individual": _as_component("individual", individual),
        "cultural": _as_component("cultural", cultural),
        "model": _as_component("model", model),
    }
    total = sum(parts[name].value * weight for name, weight in UNCERTAINTY_WEIGHTS.items())
    # Clamp float rounding so the convex-combination bound holds exactly
    values = [p.value for p in parts.values()]
    total = min(max(values), max(min(values), total))

    return UncertaintyDecomposition(
        semantic=parts["semantic"],
        individual=parts["individual"],
        cultural=parts["cultural"],
        model=parts["model"],
        total=TotalUncertainty(
            value=float(total),
            confidence_level=confidence_label(total),
            reliability=reliability_label(total),
        ),
    )
