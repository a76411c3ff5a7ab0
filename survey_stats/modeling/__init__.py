"""
Individual-level modeling.

Modules:
    hierarchical: Population priors and a toy MCMC individual model
"""

__all__ = []
