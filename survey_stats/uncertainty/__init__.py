"""
Uncertainty quantification for respondent profiles.

Modules:
    entropy: Normalized Shannon entropy helpers
    decomposition: Weighted four-source decomposition and labels
    profile: Source estimators and the confidence profile
"""

from .decomposition import UncertaintyComponent, UncertaintyDecomposition, decompose_uncertainty

__all__ = ["UncertaintyComponent", "UncertaintyDecomposition", "decompose_uncertainty"]
