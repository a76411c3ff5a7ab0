"""
Run artifacts.

Modules:
    summary: summary.json, resolved_config.yaml and report.txt
    plots: matplotlib/seaborn figures (Agg backend)
"""

__all__ = []
