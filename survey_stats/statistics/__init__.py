"""
Frequentist and simplified Bayesian statistics.

Modules:
    descriptive: Confidence intervals, effect sizes, power, corrections
    resampling: Bootstrap intervals and k-fold cross-validation
    bayesian: Closed-form tactic-probability updater
"""

from .bayesian import BayesianTacticAnalysis, bayesian_update
from .descriptive import ConfidenceEvidence, confidence_interval
from .resampling import CrossValidationResult, bootstrap_interval, k_fold_cross_validate

__all__ = [
    "BayesianTacticAnalysis",
    "bayesian_update",
    "ConfidenceEvidence",
    "confidence_interval",
    "CrossValidationResult",
    "bootstrap_interval",
    "k_fold_cross_validate",
]
