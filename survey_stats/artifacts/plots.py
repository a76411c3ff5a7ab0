"""
Plot helpers for analysis runs.

Every figure is written straight to disk with the non-interactive Agg
backend so runs work on headless machines.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

import matplotlib  # must be set before importing pyplot or seaborn
matplotlib.use("Agg", force=True)

import seaborn as sns
import matplotlib.pyplot as plt

from ..uncertainty.decomposition import UNCERTAINTY_WEIGHTS, UncertaintyDecomposition

sns.set(style="white", font="DejaVu Sans", font_scale=1.0)


def _ensure_path(p: Path | str) -> Path:
    p = Path(p)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def plot_bootstrap_distribution(
    values: Sequence[float],
    interval: Tuple[float, float],
    out_fp: Path | str,
    observed: Optional[float] = None,
    title: str | None = None,
) -> Path:
    """Histogram of bootstrap statistics with the percentile interval shaded."""
    out_fp = _ensure_path(out_fp)
    fig, ax = plt.subplots(figsize=(7, 4), dpi=150)
    sns.histplot(np.asarray(values, dtype=float), bins=40, color="steelblue", ax=ax)
    ax.axvspan(interval[0], interval[1], color="orange", alpha=0.2, label="interval")
    if observed is not None:
        ax.axvline(observed, color="black", linestyle="--", linewidth=1, label="observed")
    ax.set_xlabel("statistic")
    ax.set_ylabel("count")
    ax.legend(loc="upper right")
    if title:
        ax.set_title(title)
    fig.tight_layout()
    fig.savefig(out_fp)
    plt.close(fig)
    return out_fp


def plot_fold_scores(folds: Sequence[float], out_fp: Path | str, title: str | None = None) -> Path:
    out_fp = _ensure_path(out_fp)
    scores = np.asarray(folds, dtype=float)
    fig, ax = plt.subplots(figsize=(6, 4), dpi=150)
    sns.barplot(x=[str(i + 1) for i in range(scores.size)], y=scores, color="steelblue", ax=ax)
    ax.axhline(scores.mean(), color="black", linestyle="--", linewidth=1, label=f"mean={scores.mean():.3f}")
    ax.set_xlabel("fold")
    ax.set_ylabel("score")
    ax.legend(loc="lower right")
    if title:
        ax.set_title(title)
    fig.tight_layout()
    fig.savefig(out_fp)
    plt.close(fig)
    return out_fp


def plot_uncertainty_components(
    decomposition: UncertaintyDecomposition,
    out_fp: Path | str,
    title: str | None = None,
) -> Path:
    """Bar chart of the four sources with the weighted total as a reference line."""
    out_fp = _ensure_path(out_fp)
    names = list(UNCERTAINTY_WEIGHTS)
    values = [getattr(decomposition, name).value for name in names]
    fig, ax = plt.subplots(figsize=(6, 4), dpi=150)
    sns.barplot(x=names, y=values, palette="Blues_d", hue=names, legend=False, ax=ax)
    ax.axhline(decomposition.total.value, color="black", linestyle="--", linewidth=1,
               label=f"total={decomposition.total.value:.2f} ({decomposition.total.confidence_level})")
    ax.set_ylim(0, 1)
    ax.set_ylabel("uncertainty")
    ax.legend(loc="upper right")
    if title:
        ax.set_title(title)
    fig.tight_layout()
    fig.savefig(out_fp)
    plt.close(fig)
    return out_fp
