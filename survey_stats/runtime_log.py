"""
JSONL runtime logging for analysis runs.

A run gets a ``log_event(event, message="", level="INFO", **extra)`` callable
that appends one JSON record per call to ``<run_dir>/logs/runtime.jsonl``.
Library code never opens log files itself; it accepts an optional
``log_event`` and calls it when there is something worth recording.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

LogEvent = Callable[..., None]

RUNTIME_LOG_NAME = "runtime.jsonl"


def noop_log_event(event: str, message: str = "", level: str = "INFO", **extra) -> None:
    pass


def setup_logging(run_dir: Optional[Path], logger_name: str = "survey_stats") -> LogEvent:
    """
    Setup JSONL runtime logging.

    Args:
        run_dir: Run directory; when None a no-op logger is returned
        logger_name: Value of the ``logger`` field in each record

    Returns:
        Logging function that can be called to log events
    """
    if not run_dir:
        return noop_log_event

    run_dir = Path(run_dir)
    logs_dir = run_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    jsonl_log_path = logs_dir / RUNTIME_LOG_NAME

    def _log_event(event: str, message: str = "", level: str = "INFO", **extra) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "logger": logger_name,
            "event": event,
            "run_id": run_dir.name,
            "message": message,
            "extra": extra,
        }
        with jsonl_log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")

    _log_event("run_start", f"Starting analysis run {run_dir.name}")
    return _log_event


def read_events(run_dir: Path) -> list[dict]:
    """Load every record from a run's runtime log (empty when absent)."""
    fp = Path(run_dir) / "logs" / RUNTIME_LOG_NAME
    if not fp.exists():
        return []
    with fp.open("r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
