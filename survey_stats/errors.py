"""
Error taxonomy for the survey statistics core.

All errors are local to a single call; nothing here retries or recovers.

Classes:
    SurveyStatsError: Base class for every error raised by this package
    InsufficientSampleError: Sample too small for the requested statistic
    InvalidInputError: NaN/inf, negative counts or out-of-range values
    NonConvergenceError: Sampler exceeded its R-hat threshold (opt-in only)
"""

from __future__ import annotations


class SurveyStatsError(Exception):
    """Base class for survey statistics errors."""


class InsufficientSampleError(SurveyStatsError, ValueError):
    """
    Raised when a sample has fewer observations than a statistic needs.

    Attributes:
        observed: Number of observations supplied
        required: Minimum number of observations the statistic needs
    """

    def __init__(self, observed: int, required: int, what: str = "sample"):
        self.observed = int(observed)
        self.required = int(required)
        super().__init__(
            f"Insufficient {what} size: {self.observed} < {self.required}"
        )


class InvalidInputError(SurveyStatsError, ValueError):
    """Raised for NaN, infinite, negative or otherwise out-of-range inputs."""


class NonConvergenceError(SurveyStatsError, RuntimeError):
    """
    Raised only when a sampler runs in strict mode and its R-hat exceeds the
    threshold. By default non-convergence is reported on the result instead.
    """

    def __init__(self, r_hat: float, threshold: float):
        self.r_hat = float(r_hat)
        self.threshold = float(threshold)
        super().__init__(
            f"MCMC did not converge: R-hat {self.r_hat:.3f} > {self.threshold:.3f}"
        )
