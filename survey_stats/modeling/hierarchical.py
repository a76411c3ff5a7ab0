"""
Hierarchical individual model (toy Metropolis-Hastings).

Models one person's moral-reasoning profile over seven dimensions as a
population prior plus cultural offsets, and samples the individual profile
with a random-walk Metropolis-Hastings sampler.

This is a deliberately simple sampler kept for parity with the survey
application's behaviour. It is NOT production-grade Bayesian inference:
- the proposal is a fixed-width uniform random walk (width 0.1);
- the likelihood is Gaussian with a fixed variance of 0.1 per dimension;
- every chain starts at the population mean profile;
- R-hat is the naive between/within-chain ratio, max over dimensions;
- the effective sample size is a flat ``chains * samples / 2``.

Non-convergence (R-hat above the threshold) is reported on the result and in
the runtime log; it only raises when the model is built with ``strict=True``.

Classes:
    PopulationParameters: Prior mean profile, covariance, cultural/context offsets
    HierarchicalIndividualModel: Fits individual profiles and caches them
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..cache import Cache, TTLCache
from ..errors import InsufficientSampleError, InvalidInputError, NonConvergenceError
from ..inputs import check_positive_int
from ..records import AnalyzedResponse
from ..runtime_log import LogEvent, noop_log_event
from ..seeding import make_rng

MORAL_DIMENSIONS: Tuple[str, ...] = (
    "care",
    "fairness",
    "loyalty",
    "authority",
    "sanctity",
    "autonomy",
    "justice",
)

# Semantic concept -> moral dimension index
CONCEPT_DIMENSIONS: Dict[str, int] = {
    "harm_prevention": 0,
    "relational_care": 0,
    "rights_protection": 1,
    "duty_obligation": 1,
    "utilitarian_welfare": 6,
    "virtue_character": 5,
}

POPULATION_MEAN_PROFILE = (0.4, 0.3, 0.2, 0.15, 0.1, 0.25, 0.35)

DIMENSION_CORRELATIONS = (
    (1.0, 0.3, 0.1, 0.0, 0.0, 0.2, 0.4),
    (0.3, 1.0, 0.0, 0.2, 0.0, 0.3, 0.6),
    (0.1, 0.0, 1.0, 0.4, 0.3, -0.2, 0.1),
    (0.0, 0.2, 0.4, 1.0, 0.3, -0.1, 0.2),
    (0.0, 0.0, 0.3, 0.3, 1.0, -0.1, 0.0),
    (0.2, 0.3, -0.2, -0.1, -0.1, 1.0, 0.2),
    (0.4, 0.6, 0.1, 0.2, 0.0, 0.2, 1.0),
)

CULTURAL_EFFECTS: Dict[str, Tuple[float, ...]] = {
    "western_individualistic": (0.1, 0.2, -0.2, -0.1, -0.1, 0.3, 0.2),
    "eastern_collectivistic": (-0.1, 0.1, 0.3, 0.2, 0.1, -0.2, 0.0),
    "african_ubuntu": (0.2, 0.3, 0.2, 0.0, 0.0, 0.1, 0.3),
    "universal": (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
}

CONTEXTUAL_EFFECTS: Dict[str, Tuple[float, ...]] = {
    "personal_relationships": (0.3, 0.1, 0.2, -0.1, 0.0, 0.1, 0.0),
    "public_policy": (-0.1, 0.3, 0.0, 0.1, 0.0, 0.2, 0.4),
    "professional_ethics": (0.0, 0.4, -0.1, 0.2, 0.0, 0.1, 0.3),
    "environmental": (0.2, 0.2, 0.0, 0.0, 0.2, 0.1, 0.2),
}

DIAGONAL_VARIANCE = 0.2
COVARIANCE_SCALE = 0.1


@dataclass(frozen=True, eq=False)
class PopulationParameters:
    mean_profile: np.ndarray
    covariance: np.ndarray
    cultural_effects: Mapping[str, np.ndarray]
    contextual_effects: Mapping[str, np.ndarray]

    def cultural_effect(self, culture: str) -> np.ndarray:
        """Offsets for ``culture``; unknown cultures fall back to ``universal``."""
        if culture in self.cultural_effects:
            return self.cultural_effects[culture]
        return self.cultural_effects["universal"]

    def to_dict(self) -> dict:
        return {
            "mean_profile": self.mean_profile.tolist(),
            "covariance": self.covariance.tolist(),
            "cultural_effects": {k: v.tolist() for k, v in self.cultural_effects.items()},
            "contextual_effects": {k: v.tolist() for k, v in self.contextual_effects.items()},
        }


def default_population_parameters() -> PopulationParameters:
    corr = np.asarray(DIMENSION_CORRELATIONS, dtype=float)
    covariance = corr * COVARIANCE_SCALE
    np.fill_diagonal(covariance, DIAGONAL_VARIANCE)
    return PopulationParameters(
        mean_profile=np.asarray(POPULATION_MEAN_PROFILE, dtype=float),
        covariance=covariance,
        cultural_effects={k: np.asarray(v, dtype=float) for k, v in CULTURAL_EFFECTS.items()},
        contextual_effects={k: np.asarray(v, dtype=float) for k, v in CONTEXTUAL_EFFECTS.items()},
    )


@dataclass(frozen=True)
class IndividualParameters:
    user_id: str
    moral_profile: Tuple[float, ...]
    cultural_background: str
    confidence_level: float
    responses_count: int
    stability: float


@dataclass(frozen=True)
class ParameterUncertainty:
    individual: float
    population: float
    cultural: float
    measurement: float

    @property
    def mean(self) -> float:
        return (self.individual + self.population + self.cultural + self.measurement) / 4.0


@dataclass(frozen=True)
class ConvergenceMetrics:
    r_hat: float
    effective_sample_size: float
    chains: int
    threshold: float
    warning: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.r_hat <= self.threshold


@dataclass(frozen=True)
class InferenceResult:
    individual: IndividualParameters
    population: PopulationParameters
    uncertainty: ParameterUncertainty
    credible_intervals: Dict[str, Tuple[float, float]]
    convergence: ConvergenceMetrics
    acceptance_rate: float = field(default=0.0)

    def to_dict(self) -> dict:
        ind = self.individual
        return {
            "user_id": ind.user_id,
            "moral_profile": dict(zip(MORAL_DIMENSIONS, ind.moral_profile)),
            "cultural_background": ind.cultural_background,
            "confidence_level": ind.confidence_level,
            "responses_count": ind.responses_count,
            "stability": ind.stability,
            "uncertainty": {
                "individual": self.uncertainty.individual,
                "population": self.uncertainty.population,
                "cultural": self.uncertainty.cultural,
                "measurement": self.uncertainty.measurement,
            },
            "credible_intervals": {k: list(v) for k, v in self.credible_intervals.items()},
            "convergence": {
                "r_hat": self.convergence.r_hat,
                "effective_sample_size": self.convergence.effective_sample_size,
                "chains": self.convergence.chains,
                "converged": self.convergence.converged,
                "warning": self.convergence.warning,
            },
            "acceptance_rate": self.acceptance_rate,
        }


def extract_moral_features(concept_activations: Mapping[str, float]) -> np.ndarray:
    """
    Map concept activations onto the seven moral dimensions, normalized to sum 1.

    Unknown concepts are ignored; an all-zero vector is returned unchanged.
    """
    features = np.zeros(len(MORAL_DIMENSIONS), dtype=float)
    for concept, activation in concept_activations.items():
        idx = CONCEPT_DIMENSIONS.get(concept)
        if idx is None:
            continue
        activation = float(activation)
        if not math.isfinite(activation):
            raise InvalidInputError(f"activation for {concept!r} must be finite, got {activation}")
        features[idx] += activation
    total = features.sum()
    if total > 0:
        return features / total
    return features


def gaussian_log_likelihood(
    parameters: np.ndarray,
    features: np.ndarray,
    cultural_effect: np.ndarray,
    variance: float,
) -> float:
    expected = parameters + cultural_effect
    resid = features - expected[np.newaxis, :]
    n_terms = features.size
    return float(-0.5 * n_terms * math.log(2.0 * math.pi * variance) - 0.5 * np.sum(resid ** 2) / variance)


def naive_r_hat(samples: np.ndarray) -> float:
    """
    Between/within-chain R-hat, maximised over dimensions.

    Args:
        samples: Array of shape (chains, samples, dimensions)
    """
    n_chains, n_samples, _ = samples.shape
    chain_means = samples.mean(axis=1)
    overall_mean = chain_means.mean(axis=0)
    between = n_samples * np.sum((chain_means - overall_mean) ** 2, axis=0) / (n_chains - 1)
    within = np.sum((samples - chain_means[:, np.newaxis, :]) ** 2, axis=(0, 1)) / (n_chains * (n_samples - 1))
    pooled = ((n_samples - 1) * within + between) / n_samples

    r_hat = np.ones_like(within)
    ok = within > 0
    r_hat[ok] = np.sqrt(pooled[ok] / within[ok])
    # A chain that never moved has no within-chain spread to compare against
    r_hat[~ok & (between > 0)] = np.inf
    return float(max(1.0, r_hat.max()))


class HierarchicalIndividualModel:
    """
    Fits individual moral-reasoning profiles with a toy MCMC sampler.

    Example usage:
        >>> model = HierarchicalIndividualModel()
        >>> result = model.fit("user-1", responses, seed=7)  # doctest: +SKIP
        >>> result.convergence.converged  # doctest: +SKIP
        True
    """

    def __init__(
        self,
        population: PopulationParameters | None = None,
        chains: int = 4,
        samples: int = 1000,
        proposal_width: float = 0.1,
        likelihood_variance: float = 0.1,
        rhat_threshold: float = 1.1,
        min_responses: int = 3,
        cache: Cache | None = None,
        log_event: LogEvent | None = None,
        strict: bool = False,
    ):
        self.population = population or default_population_parameters()
        self.chains = check_positive_int(chains, "chains", minimum=2)
        self.samples = check_positive_int(samples, "samples", minimum=2)
        if proposal_width <= 0:
            raise InvalidInputError(f"proposal_width must be > 0, got {proposal_width}")
        if likelihood_variance <= 0:
            raise InvalidInputError(f"likelihood_variance must be > 0, got {likelihood_variance}")
        self.proposal_width = float(proposal_width)
        self.likelihood_variance = float(likelihood_variance)
        self.rhat_threshold = float(rhat_threshold)
        self.min_responses = check_positive_int(min_responses, "min_responses")
        self.cache: Cache = cache if cache is not None else TTLCache()
        self.log_event = log_event or noop_log_event
        self.strict = bool(strict)

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def fit(
        self,
        user_id: str,
        responses: Sequence[AnalyzedResponse],
        seed: int | np.random.Generator | None = None,
    ) -> InferenceResult:
        """
        Fit the individual profile for ``user_id``.

        Raises:
            InsufficientSampleError: Fewer than ``min_responses`` responses
            NonConvergenceError: Only in strict mode, when R-hat > threshold
        """
        if len(responses) < self.min_responses:
            raise InsufficientSampleError(len(responses), self.min_responses, what="response count")

        features = np.vstack([extract_moral_features(r.concept_activations) for r in responses])
        culture = responses[0].cultural_background or "universal"
        cultural_effect = self.population.cultural_effect(culture)

        rng = make_rng(seed)
        draws = np.empty((self.chains, self.samples, features.shape[1]), dtype=float)
        accepted = 0
        for chain in range(self.chains):
            draws[chain], n_acc = self._sample_chain(features, cultural_effect, rng)
            accepted += n_acc

        flat = draws.reshape(-1, draws.shape[2])
        posterior_mean = flat.mean(axis=0)
        lo, hi = np.percentile(flat, [2.5, 97.5], axis=0)
        credible = {name: (float(lo[i]), float(hi[i])) for i, name in enumerate(MORAL_DIMENSIONS)}

        convergence = self._assess_convergence(draws, user_id)
        variances = flat.var(axis=0, ddof=1)
        uncertainty = self._decompose(variances, len(responses))

        individual = IndividualParameters(
            user_id=str(user_id),
            moral_profile=tuple(float(x) for x in posterior_mean),
            cultural_background=culture,
            confidence_level=max(0.0, 1.0 - uncertainty.mean),
            responses_count=len(responses),
            stability=max(0.0, 1.0 - float(variances.mean())),
        )
        self.cache.set(individual.user_id, individual)
        self.log_event(
            "mcmc_fit_complete",
            f"user={individual.user_id} r_hat={convergence.r_hat:.3f}",
            responses=len(responses),
            culture=culture,
        )
        return InferenceResult(
            individual=individual,
            population=self.population,
            uncertainty=uncertainty,
            credible_intervals=credible,
            convergence=convergence,
            acceptance_rate=accepted / float(self.chains * self.samples),
        )

    def _sample_chain(
        self,
        features: np.ndarray,
        cultural_effect: np.ndarray,
        rng: np.random.Generator,
    ) -> Tuple[np.ndarray, int]:
        dims = features.shape[1]
        out = np.empty((self.samples, dims), dtype=float)
        current = self.population.mean_profile.astype(float).copy()
        current_ll = gaussian_log_likelihood(current, features, cultural_effect, self.likelihood_variance)
        accepted = 0
        for i in range(self.samples):
            proposal = current + (rng.random(dims) - 0.5) * self.proposal_width
            proposal_ll = gaussian_log_likelihood(proposal, features, cultural_effect, self.likelihood_variance)
            acceptance = math.exp(min(0.0, proposal_ll - current_ll))
            if rng.random() < acceptance:
                current, current_ll = proposal, proposal_ll
                accepted += 1
            out[i] = current
        return out, accepted

    def _assess_convergence(self, draws: np.ndarray, user_id: str) -> ConvergenceMetrics:
        r_hat = naive_r_hat(draws)
        warning = None
        if r_hat > self.rhat_threshold:
            warning = (
                f"R-hat {r_hat:.3f} exceeds {self.rhat_threshold:.2f}; "
                "posterior summaries for this user are unreliable"
            )
            self.log_event("mcmc_not_converged", warning, level="WARNING", user_id=str(user_id), r_hat=r_hat)
            if self.strict:
                raise NonConvergenceError(r_hat, self.rhat_threshold)
        return ConvergenceMetrics(
            r_hat=r_hat,
            effective_sample_size=self.chains * self.samples / 2.0,
            chains=self.chains,
            threshold=self.rhat_threshold,
            warning=warning,
        )

    @staticmethod
    def _decompose(variances: np.ndarray, n_responses: int) -> ParameterUncertainty:
        total = float(variances.mean())
        return ParameterUncertainty(
            individual=min(total * 0.6, 1.0),
            population=min(total * 0.2, 1.0),
            cultural=min(total * 0.2, 1.0),
            measurement=min(1.0 / math.sqrt(n_responses), 1.0),
        )

    # ------------------------------------------------------------------
    # Cache + population updates
    # ------------------------------------------------------------------
    def get_individual_parameters(self, user_id: str) -> Optional[IndividualParameters]:
        return self.cache.get(str(user_id))

    def update_population_priors(
        self,
        observations: Iterable[Tuple[str, Sequence[float]]],
        min_group_size: int = 10,
    ) -> PopulationParameters:
        """
        Re-estimate cultural offsets from observed feature vectors.

        A culture's offset becomes (group mean - population mean) once its group
        holds more than ``min_group_size`` observations; smaller groups keep
        their current offsets.
        """
        groups: Dict[str, List[np.ndarray]] = {}
        dims = self.population.mean_profile.size
        for culture, features in observations:
            vec = np.asarray(features, dtype=float)
            if vec.shape != (dims,):
                raise InvalidInputError(f"feature vectors must have {dims} entries, got shape {vec.shape}")
            if not np.all(np.isfinite(vec)):
                raise InvalidInputError("feature vectors must be finite")
            groups.setdefault(str(culture), []).append(vec)

        effects = dict(self.population.cultural_effects)
        for culture, vecs in groups.items():
            if len(vecs) > min_group_size:
                effects[culture] = np.mean(vecs, axis=0) - self.population.mean_profile
        self.population = replace(self.population, cultural_effects=effects)
        return self.population
