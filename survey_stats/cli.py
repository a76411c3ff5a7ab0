"""
survey-stats: analyze one respondent's survey export end to end.

Pipeline
--------
1) Build the configuration (common.yaml -> --cfg overlays -> --set -> env)
2) Seed, create a timestamped run directory and the JSONL runtime log
3) Load the responses CSV with pandas and build records
4) Descriptive and bootstrap statistics on reasoning length and difficulty,
   k-fold check of a mean-difficulty baseline
5) Hierarchical individual model (when enough responses) and the
   uncertainty profile
6) Persist summary.json, resolved_config.yaml, report.txt and plots

Example
-------
  survey-stats --responses data/respondent_17.csv --set seed=7 bootstrap_iterations=5000
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .artifacts.plots import plot_bootstrap_distribution, plot_fold_scores, plot_uncertainty_components
from .artifacts.summary import write_summary
from .cache import TTLCache
from .config import AnalysisConfig, build_config
from .errors import SurveyStatsError
from .modeling.hierarchical import HierarchicalIndividualModel
from .records import DIFFICULTY_RANGE, Response, responses_from_frame
from .runtime_log import LogEvent, setup_logging
from .seeding import determinism_banner, seed_everything
from .statistics.descriptive import confidence_interval
from .statistics.resampling import bootstrap_distribution, bootstrap_interval, k_fold_cross_validate
from .uncertainty.profile import aggregate_activations, uncertainty_profile


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Statistical analysis of a survey responses export.")
    p.add_argument("--responses", required=True, help="CSV export with one row per answered dilemma")
    p.add_argument("--user-id", default="respondent", help="Identifier used for the individual model")
    p.add_argument("--cfg", action="append", default=[], help="Overlay YAML with overrides (repeatable)")
    p.add_argument("--set", nargs="*", metavar="KEY=VAL", help="Override any config value")
    p.add_argument("--out", help="Run root directory (defaults to run_root from the config)")
    return p.parse_args(argv)


def _difficulty_baseline_score(train: List[Response], test: List[Response]) -> float:
    """1 - normalized MAE of predicting held-out difficulty with the training mean."""
    lo, hi = DIFFICULTY_RANGE
    prediction = float(np.mean([r.perceived_difficulty for r in train]))
    errors = [abs(r.perceived_difficulty - prediction) for r in test]
    return 1.0 - float(np.mean(errors)) / (hi - lo)


def _make_run_dir(root: Path, stem: str) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = root / f"{stamp}_{stem}"
    suffix = 1
    while run_dir.exists():
        suffix += 1
        run_dir = root / f"{stamp}_{stem}_{suffix}"
    run_dir.mkdir(parents=True)
    return run_dir


def run_analysis(cfg: AnalysisConfig, responses_csv: Path, run_dir: Path, user_id: str,
                 log_event: LogEvent) -> Dict[str, Any]:
    df = pd.read_csv(responses_csv)
    responses, analyzed = responses_from_frame(df)
    print(f"[data] {len(responses)} responses loaded from {responses_csv}", flush=True)
    log_event("data_loaded", f"{len(responses)} responses", path=str(responses_csv), rows=len(responses))

    summary: Dict[str, Any] = {
        "user_id": user_id,
        "responses": len(responses),
        "determinism": determinism_banner(cfg.seed),
        "descriptive": {},
        "bootstrap": {},
    }
    metrics = {
        "reasoning_words": np.array([r.word_count for r in responses], dtype=float),
        "perceived_difficulty": np.array([r.perceived_difficulty for r in responses], dtype=float),
    }
    plots_dir = run_dir / "plots"
    for name, values in metrics.items():
        if values.size < 2:
            print(f"[stats] skipping {name}: need at least 2 responses", flush=True)
            continue
        evidence = confidence_interval(values, confidence_level=cfg.confidence_level)
        interval = bootstrap_interval(values, iterations=cfg.bootstrap_iterations, seed=cfg.seed,
                                      confidence_level=cfg.confidence_level)
        summary["descriptive"][name] = evidence.to_dict()
        summary["bootstrap"][name] = list(interval)
        if cfg.save_plots:
            dist = bootstrap_distribution(values, iterations=cfg.bootstrap_iterations, seed=cfg.seed)
            plot_bootstrap_distribution(dist, interval, plots_dir / f"bootstrap_{name}.png",
                                        observed=evidence.mean, title=f"Bootstrap mean: {name}")

    if len(responses) >= cfg.k_folds:
        cv = k_fold_cross_validate(responses, cfg.k_folds, lambda tr: tr, _difficulty_baseline_score,
                                   seed=cfg.seed)
        summary["difficulty_baseline_cv"] = cv.to_dict()
        if cfg.save_plots:
            plot_fold_scores(cv.folds, plots_dir / "difficulty_baseline_folds.png",
                             title="Mean-difficulty baseline per fold")
    else:
        print(f"[stats] skipping k-fold: {len(responses)} responses < k={cfg.k_folds}", flush=True)

    inference = None
    if len(analyzed) >= cfg.min_responses:
        model = HierarchicalIndividualModel(
            chains=cfg.mcmc_chains,
            samples=cfg.mcmc_samples,
            proposal_width=cfg.mcmc_proposal_width,
            rhat_threshold=cfg.rhat_threshold,
            min_responses=cfg.min_responses,
            cache=TTLCache(ttl_seconds=cfg.cache_ttl_seconds, max_entries=cfg.cache_max_entries),
            log_event=log_event,
            strict=cfg.mcmc_strict,
        )
        inference = model.fit(user_id, analyzed, seed=cfg.seed)
        summary["inference"] = inference.to_dict()
        print(f"[mcmc] R-hat={inference.convergence.r_hat:.3f} "
              f"acceptance={inference.acceptance_rate:.2f}", flush=True)
    else:
        print(f"[mcmc] skipping individual model: {len(analyzed)} < {cfg.min_responses} responses", flush=True)

    if analyzed:
        activations = aggregate_activations([a.concept_activations for a in analyzed])
        profile = uncertainty_profile(activations, inference, cfg.cultural_context, analyzed)
        summary["uncertainty_profile"] = profile.to_dict()
        log_event("uncertainty_profile", "profile computed",
                  overall_confidence=profile.overall_confidence,
                  confidence_level=profile.decomposition.total.confidence_level)
        if cfg.save_plots:
            plot_uncertainty_components(profile.decomposition, plots_dir / "uncertainty_components.png",
                                        title="Uncertainty decomposition")
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = build_config(args.cfg, args.set)
    except (FileNotFoundError, ValueError) as exc:
        sys.exit(f"[config] {exc}")

    responses_csv = Path(args.responses)
    if not responses_csv.exists():
        sys.exit(f"--responses not found: {responses_csv}")

    seed_everything(cfg.seed)
    run_root = Path(args.out) if args.out else Path(cfg.run_root)
    run_dir = _make_run_dir(run_root, responses_csv.stem)
    log_event = setup_logging(run_dir)
    print(f"[run] {run_dir}", flush=True)

    try:
        summary = run_analysis(cfg, responses_csv, run_dir, args.user_id, log_event)
    except SurveyStatsError as exc:
        log_event("run_failed", str(exc), level="ERROR", error=type(exc).__name__)
        print(f"[error] {exc}", flush=True)
        return 1

    summary["command"] = " ".join(sys.argv)
    out_fp = write_summary(run_dir, summary, cfg.to_dict())
    log_event("run_complete", "analysis finished", summary=str(out_fp))
    print(f"[done] summary written to {out_fp}", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
