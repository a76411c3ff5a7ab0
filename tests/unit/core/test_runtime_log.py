"""Tests for the JSONL runtime log (survey_stats/runtime_log.py)."""
from pathlib import Path

from survey_stats.runtime_log import noop_log_event, read_events, setup_logging


def test_events_are_appended_as_jsonl(tmp_path: Path):
    run_dir = tmp_path / "20240101_000000_demo"
    log_event = setup_logging(run_dir)
    log_event("mcmc_not_converged", "R-hat too high", level="WARNING", r_hat=1.4)

    events = read_events(run_dir)
    assert [e["event"] for e in events] == ["run_start", "mcmc_not_converged"]
    last = events[-1]
    assert last["level"] == "WARNING"
    assert last["run_id"] == run_dir.name
    assert last["extra"] == {"r_hat": 1.4}
    assert (run_dir / "logs" / "runtime.jsonl").exists()


def test_no_run_dir_gives_noop():
    assert setup_logging(None) is noop_log_event


def test_read_events_missing_log(tmp_path: Path):
    assert read_events(tmp_path) == []
