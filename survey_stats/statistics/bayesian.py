"""
Simplified Bayesian tactic-probability updater.

This is a closed-form approximation, NOT probabilistic-programming inference:
no sampling happens here. For the toy Metropolis-Hastings sampler see
``survey_stats.modeling.hierarchical``.

The rule:
1. Likelihood P(evidence | tactic) = Phi((mean(evidence) - mean(baseline)) / sd(baseline)),
   i.e. the probability that a baseline draw falls below the observed mean
   evidence strength (population SD of the baseline).
2. Null likelihood P(evidence | no tactic) = 0.5, the value of (1) when the
   evidence matches the baseline mean.
3. Posterior = L * prior / (L * prior + 0.5 * (1 - prior)); Bayes factor = L / 0.5.
4. Credible interval from a conjugate Beta(s + w * prior, n - s + w * (1 - prior))
   where s counts evidence values above 0.5 and w = 10 is the prior strength.

Because (1) is monotone in the mean evidence strength and (3) is monotone in
the likelihood, the posterior never decreases as evidence gets stronger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
from scipy import stats

from ..errors import InvalidInputError
from ..inputs import as_sample, check_open_unit_interval

NULL_LIKELIHOOD = 0.5
PRIOR_STRENGTH = 10.0
SUCCESS_THRESHOLD = 0.5


@dataclass(frozen=True)
class BayesianTacticAnalysis:
    posterior: float
    prior: float
    likelihood: float
    credible_interval: Tuple[float, float]
    bayes_factor: float

    def to_dict(self) -> dict:
        return {
            "posterior": self.posterior,
            "prior": self.prior,
            "likelihood": self.likelihood,
            "credible_interval": list(self.credible_interval),
            "bayes_factor": self.bayes_factor,
        }


def evidence_likelihood(evidence: np.ndarray, baseline: np.ndarray) -> float:
    """Normal-CDF likelihood of the mean evidence strength against the baseline."""
    baseline_sd = float(baseline.std(ddof=0))
    if baseline_sd <= 0.0:
        raise InvalidInputError("baseline must have non-zero variance")
    return float(stats.norm.cdf(float(evidence.mean()), loc=float(baseline.mean()), scale=baseline_sd))


def beta_credible_interval(
    evidence: np.ndarray,
    prior: float,
    credible_level: float = 0.95,
    prior_strength: float = PRIOR_STRENGTH,
) -> Tuple[float, float]:
    successes = int(np.sum(evidence > SUCCESS_THRESHOLD))
    trials = int(evidence.size)
    a = successes + prior * prior_strength
    b = trials - successes + (1.0 - prior) * prior_strength
    tail = (1.0 - credible_level) / 2.0
    low, high = stats.beta.ppf([tail, 1.0 - tail], a, b)
    return float(low), float(high)


def bayesian_update(
    evidence: Iterable[float],
    prior: float,
    baseline: Iterable[float],
    credible_level: float = 0.95,
) -> BayesianTacticAnalysis:
    """
    Update a prior tactic probability with an evidence vector.

    Args:
        evidence: Evidence strengths for the tactic (at least one value)
        prior: Prior probability, strictly between 0 and 1
        baseline: Population reference strengths (at least two, non-constant)
        credible_level: Coverage of the Beta credible interval

    Returns:
        BayesianTacticAnalysis with posterior, likelihood, credible interval
        and Bayes factor

    Raises:
        InsufficientSampleError: Empty evidence or fewer than 2 baseline values
        InvalidInputError: Prior outside (0, 1), NaN inputs, constant baseline

    Example:
        >>> res = bayesian_update([0.8, 0.9, 0.7], prior=0.3, baseline=[0.2, 0.4, 0.5, 0.3])
        >>> res.posterior > res.prior
        True
    """
    prior = check_open_unit_interval(prior, "prior")
    credible_level = check_open_unit_interval(credible_level, "credible_level")
    ev = as_sample(evidence, name="evidence", min_size=1)
    base = as_sample(baseline, name="baseline", min_size=2)

    likelihood = evidence_likelihood(ev, base)
    marginal = likelihood * prior + NULL_LIKELIHOOD * (1.0 - prior)
    posterior = likelihood * prior / marginal

    return BayesianTacticAnalysis(
        posterior=float(posterior),
        prior=prior,
        likelihood=likelihood,
        credible_interval=beta_credible_interval(ev, prior, credible_level),
        bayes_factor=likelihood / NULL_LIKELIHOOD,
    )
