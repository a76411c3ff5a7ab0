"""Tests for layered configuration (survey_stats/config.py)."""
from pathlib import Path

import pytest
import yaml

from survey_stats.config import COMMON_YAML, AnalysisConfig, build_config, parse_set_overrides


def test_common_yaml_matches_defaults():
    cfg = build_config(environ={})
    assert COMMON_YAML.exists()
    assert cfg == AnalysisConfig()


def test_overlay_then_set_then_env(tmp_path: Path):
    overlay = tmp_path / "overlay.yaml"
    overlay.write_text(yaml.safe_dump({"bootstrap_iterations": 200, "k_folds": 3, "seed": 1}))

    cfg = build_config(
        [overlay],
        ["k_folds=4", "cultural_context=eastern_collectivistic"],
        environ={"SURVEY_STATS_SEED": "9", "UNRELATED": "x"},
    )
    assert cfg.bootstrap_iterations == 200
    assert cfg.k_folds == 4
    assert cfg.cultural_context == "eastern_collectivistic"
    assert cfg.seed == 9


def test_env_bool_and_null_seed():
    cfg = build_config(common_path=None, environ={"SURVEY_STATS_MCMC_STRICT": "true"}, set_overrides=["seed=null"])
    assert cfg.mcmc_strict is True
    assert cfg.seed is None


def test_set_parses_yaml_scalars():
    assert parse_set_overrides(["a=1", "b=0.5", "c=true", "d=text"]) == {"a": 1, "b": 0.5, "c": True, "d": "text"}


def test_set_requires_equals():
    with pytest.raises(ValueError, match="KEY=VAL"):
        parse_set_overrides(["nokey"])


def test_unknown_key_fails():
    with pytest.raises(ValueError, match="Unknown config keys"):
        build_config(set_overrides=["bogus=1"], environ={})


@pytest.mark.parametrize(
    "override",
    ["confidence_level=1.5", "k_folds=1", "bootstrap_iterations=0", "rhat_threshold=0.9", "k_folds=2.5"],
)
def test_invalid_values_fail_fast(override):
    with pytest.raises(ValueError):
        build_config(set_overrides=[override], environ={})


def test_missing_overlay_fails(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        build_config([tmp_path / "nope.yaml"], environ={})


def test_to_dict_round_trips():
    cfg = AnalysisConfig(seed=3, k_folds=4)
    assert AnalysisConfig.from_mapping(cfg.to_dict()) == cfg
