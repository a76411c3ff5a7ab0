"""
Statistical core for small survey samples.

Subpackages:
    statistics: Confidence intervals, resampling, Bayesian updater
    modeling: Hierarchical individual model (toy Metropolis-Hastings)
    uncertainty: Entropy-based uncertainty decomposition and profiles
    validation: Inter-rater reliability and validity protocols
    artifacts: Run summaries and plots
"""

__version__ = "0.1.0"

from .errors import InsufficientSampleError, InvalidInputError, NonConvergenceError, SurveyStatsError

__all__ = [
    "SurveyStatsError",
    "InsufficientSampleError",
    "InvalidInputError",
    "NonConvergenceError",
]
