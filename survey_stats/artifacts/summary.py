"""
Summary writer: persists results and provenance for a single analysis run.

Writes into the run directory:
- summary.json (raw dict, with lib versions and config hash)
- resolved_config.yaml (frozen configuration for reproducibility)
- report.txt (human-readable summary)

The JSON summary is written first; failures in the secondary artifacts are
reported on stdout and do not block the others.
"""

from __future__ import annotations

import hashlib
import json
import math
import platform
import sys
from importlib import metadata
from pathlib import Path
from typing import Dict, List

import yaml

SUMMARY_JSON = "summary.json"
RESOLVED_CONFIG_YAML = "resolved_config.yaml"
REPORT_TXT = "report.txt"

TRACKED_DISTRIBUTIONS = (
    "numpy",
    "scipy",
    "pandas",
    "scikit-learn",
    "statsmodels",
    "matplotlib",
    "seaborn",
    "PyYAML",
)


def compute_config_hash(config: dict) -> str:
    """Deterministic short hash of the resolved configuration."""
    serialized = json.dumps(config, sort_keys=True, default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:12]


def collect_lib_versions() -> Dict[str, str]:
    versions: Dict[str, str] = {}
    for dist in TRACKED_DISTRIBUTIONS:
        try:
            versions[dist] = metadata.version(dist)
        except metadata.PackageNotFoundError:
            continue
    versions["python"] = sys.version.split(" ")[0]
    return versions


def json_safe(value):
    """Recursively replace non-finite floats so the output is strict JSON (inf -> "inf", nan -> None)."""
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return None
        return "inf" if value > 0 else "-inf"
    return value


def _fmt(value) -> str:
    if isinstance(value, float):
        return f"{value:.4f}"
    return str(value)


def _report_lines(run_dir: Path, summary: dict) -> List[str]:
    lines = [f"--- Run Summary: {run_dir.name} ---"]
    if summary.get("command"):
        lines.append(f"Command: {summary['command']}")
    lines.append("")

    lines.append("--- Environment ---")
    libs = summary.get("lib_versions") or {}
    if libs:
        lines.append("Libs: " + ", ".join(f"{k} {v}" for k, v in libs.items()))
    lines.append(f"System: {platform.platform()}")
    det = summary.get("determinism") or {}
    if det:
        lines.append("Determinism:")
        for k, v in det.items():
            lines.append(f"  {k}: {v}")
    if summary.get("config_hash"):
        lines.append(f"Config hash: {summary['config_hash']}")
    lines.append("")

    descriptive = summary.get("descriptive") or {}
    if descriptive:
        lines.append("--- Descriptive Statistics ---")
        for name, ev in descriptive.items():
            low, high = ev["confidence_interval"]
            lines.append(
                f"{name}: n={ev['observations']} mean={_fmt(ev['mean'])} "
                f"CI=[{_fmt(low)}, {_fmt(high)}] p={ev['p_value']:.3g} d={_fmt(ev['effect_size'])}"
            )
        lines.append("")

    bootstrap = summary.get("bootstrap") or {}
    if bootstrap:
        lines.append("--- Bootstrap Intervals ---")
        for name, (low, high) in bootstrap.items():
            lines.append(f"{name}: [{_fmt(low)}, {_fmt(high)}]")
        lines.append("")

    profile = summary.get("uncertainty_profile") or {}
    if profile:
        total = profile["decomposition"]["total"]
        lines.append("--- Uncertainty Profile ---")
        lines.append(f"Overall confidence: {_fmt(profile['overall_confidence'])}")
        lines.append(
            f"Total uncertainty: {_fmt(total['value'])} "
            f"({total['confidence_level']}, reliability {total['reliability']})"
        )
        for name in ("semantic", "individual", "cultural", "model"):
            lines.append(f"  {name}: {_fmt(profile['decomposition'][name]['value'])}")
        for action in profile.get("recommended_actions", []):
            lines.append(f"  - {action}")
        lines.append("")

    inference = summary.get("inference") or {}
    if inference:
        conv = inference["convergence"]
        lines.append("--- Hierarchical Model ---")
        lines.append(
            f"R-hat={_fmt(conv['r_hat'])} ESS={conv['effective_sample_size']} "
            f"acceptance={_fmt(inference['acceptance_rate'])}"
        )
        if conv.get("warning"):
            lines.append(f"WARNING: {conv['warning']}")
        lines.append("")
    return lines


def write_summary(run_dir: Path, summary: dict, config: dict) -> Path:
    """
    Write summary JSON, resolved YAML and TXT report.

    Args:
        run_dir: Existing run directory
        summary: JSON-serializable results (mutated: provenance keys added)
        config: Resolved configuration mapping

    Returns:
        Path to the JSON summary
    """
    run_dir = Path(run_dir)
    summary.setdefault("lib_versions", collect_lib_versions())
    summary["config_hash"] = compute_config_hash(config)
    runtime_log = run_dir / "logs" / "runtime.jsonl"
    if runtime_log.exists():
        summary["runtime_log_path"] = str(runtime_log.relative_to(run_dir))

    out_fp_json = run_dir / SUMMARY_JSON
    out_fp_json.write_text(json.dumps(json_safe(summary), indent=2, default=str, allow_nan=False), encoding="utf-8")

    try:
        (run_dir / RESOLVED_CONFIG_YAML).write_text(
            yaml.safe_dump(dict(config), sort_keys=False), encoding="utf-8"
        )
    except (OSError, yaml.YAMLError) as exc:
        print(f"[summary] could not write {RESOLVED_CONFIG_YAML}: {exc}", flush=True)

    try:
        (run_dir / REPORT_TXT).write_text("\n".join(_report_lines(run_dir, summary)) + "\n", encoding="utf-8")
    except (OSError, KeyError, TypeError) as exc:
        print(f"[summary] could not write {REPORT_TXT}: {exc}", flush=True)

    return out_fp_json
