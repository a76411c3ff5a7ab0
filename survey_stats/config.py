# survey_stats/config.py
"""
Layered run configuration.

Resolution order (later wins):
  dataclass defaults -> configs/common.yaml -> --cfg overlay YAML(s)
  -> --set KEY=VAL overrides -> SURVEY_STATS_<KEY> environment variables

The merged mapping is materialized into a frozen ``AnalysisConfig``; unknown
keys and out-of-range values raise ``ValueError`` before any work starts.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

ENV_PREFIX = "SURVEY_STATS_"
PROJECT_ROOT = Path(__file__).resolve().parents[1]
COMMON_YAML = PROJECT_ROOT / "configs" / "common.yaml"


def _env_flag(value: str) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class AnalysisConfig:
    seed: Optional[int] = 42
    confidence_level: float = 0.95
    alpha: float = 0.05
    bootstrap_iterations: int = 1000
    k_folds: int = 5
    mcmc_chains: int = 4
    mcmc_samples: int = 1000
    mcmc_proposal_width: float = 0.1
    rhat_threshold: float = 1.1
    mcmc_strict: bool = False
    min_responses: int = 3
    cache_ttl_seconds: float = 300.0
    cache_max_entries: int = 1000
    run_root: str = "results/runs"
    cultural_context: str = "universal"
    save_plots: bool = True

    def __post_init__(self):
        for name in ("confidence_level", "alpha"):
            value = getattr(self, name)
            if not (0.0 < float(value) < 1.0):
                raise ValueError(f"{name} must be in range (0.0, 1.0), got {value}")
        for name, minimum in (
            ("bootstrap_iterations", 1),
            ("k_folds", 2),
            ("mcmc_chains", 2),
            ("mcmc_samples", 2),
            ("min_responses", 1),
            ("cache_max_entries", 1),
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ValueError(f"{name} must be an integer >= {minimum}, got {value!r}")
        if self.mcmc_proposal_width <= 0:
            raise ValueError(f"mcmc_proposal_width must be > 0, got {self.mcmc_proposal_width}")
        if self.rhat_threshold < 1.0:
            raise ValueError(f"rhat_threshold must be >= 1.0, got {self.rhat_threshold}")
        if self.cache_ttl_seconds <= 0:
            raise ValueError(f"cache_ttl_seconds must be > 0, got {self.cache_ttl_seconds}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AnalysisConfig":
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(values) - set(known))
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")
        coerced: Dict[str, Any] = {}
        for key, value in values.items():
            coerced[key] = _coerce(key, known[key].type, value)
        return cls(**coerced)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(key: str, annotation: str, value: Any) -> Any:
    # Annotations are strings under postponed evaluation
    if value is None:
        if annotation.startswith("Optional"):
            return None
        raise ValueError(f"{key} must not be null")
    try:
        if "bool" in annotation:
            return value if isinstance(value, bool) else _env_flag(value)
        if "int" in annotation:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{key} must be an integer, got {value}")
            return int(value)
        if "float" in annotation:
            return float(value)
        return str(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {key}: {value!r} ({exc})") from exc


def _read_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def parse_set_overrides(pairs: Optional[Iterable[str]]) -> Dict[str, Any]:
    """Parse ``KEY=VAL`` strings; values go through ``yaml.safe_load``."""
    out: Dict[str, Any] = {}
    for kv in pairs or []:
        if "=" not in kv:
            raise ValueError(f"--set expects KEY=VAL, not {kv}")
        k, v = kv.split("=", 1)
        try:
            out[k.strip()] = yaml.safe_load(v)
        except yaml.YAMLError:
            out[k.strip()] = v
    return out


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    names = {f.name for f in fields(AnalysisConfig)}
    out: Dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in names:
            out[name] = yaml.safe_load(raw) if raw.strip() else raw
    return out


def build_config(
    cfg_paths: Optional[Iterable[str | Path]] = None,
    set_overrides: Optional[Iterable[str]] = None,
    common_path: Optional[Path] = COMMON_YAML,
    environ: Optional[Mapping[str, str]] = None,
) -> AnalysisConfig:
    """
    Build the run configuration from layered YAML, ``--set`` and environment.

    Args:
        cfg_paths: Overlay YAML files applied in order
        set_overrides: ``KEY=VAL`` strings
        common_path: Base YAML; skipped when None or missing
        environ: Environment mapping (defaults to ``os.environ``)

    Raises:
        FileNotFoundError: If an overlay file does not exist
        ValueError: On unknown keys or invalid values
    """
    cfg: Dict[str, Any] = {}
    if common_path is not None and Path(common_path).exists():
        cfg.update(_read_yaml(Path(common_path)))

    for path in cfg_paths or []:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"--cfg not found: {path}")
        cfg.update(_read_yaml(path))

    cfg.update(parse_set_overrides(set_overrides))
    cfg.update(env_overrides(environ))
    return AnalysisConfig.from_mapping(cfg)
