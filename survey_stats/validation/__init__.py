"""
Validation of discovered tactics.

Modules:
    reliability: Inter-rater agreement statistics
    protocols: Content, criterion, predictive and construct validity
"""

__all__ = []
