"""Append-only performance log (``logs/performance.jsonl``).

Each tracked detection appends one compact JSON line (see
``PerformanceMetrics.to_log_entry``). ``summarize`` aggregates the log for
the ``agent-blame perf`` command.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import numpy as np

from ..logging_config import get_logger
from ..storage.shards import append_line, read_lines
from .tracker import PerformanceMetrics

logger = get_logger(__name__)

PERFORMANCE_LOG_NAME = "performance.jsonl"


@dataclass(frozen=True)
class PerformanceSummary:
    """Aggregate over all logged detections."""

    count: int
    warning_count: int
    match_rate: float
    mean_ms: float
    p50_ms: float
    p95_ms: float
    max_ms: float


class PerformanceLog:
    """Writer/reader for the performance log file."""

    def __init__(self, logs_dir: Union[str, Path]):
        self.logs_dir = Path(logs_dir)

    @property
    def path(self) -> Path:
        return self.logs_dir / PERFORMANCE_LOG_NAME

    def append(self, metrics: PerformanceMetrics) -> None:
        """Append one detection's compact summary.

        Raises:
            StorageError: If the log cannot be written
        """
        line = json.dumps(metrics.to_log_entry(), ensure_ascii=False, separators=(",", ":"))
        append_line(self.path, line)

    def read_entries(self) -> list[dict[str, Any]]:
        """All decodable entries; malformed lines are skipped."""
        entries: list[dict[str, Any]] = []
        for line in read_lines(self.path):
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Skipping malformed performance log line in {self.path.name}")
                continue
            if isinstance(entry, dict) and isinstance(entry.get("total_ms"), (int, float)):
                entries.append(entry)
        return entries

    def summarize(self) -> PerformanceSummary:
        entries = self.read_entries()
        if not entries:
            return PerformanceSummary(
                count=0, warning_count=0, match_rate=0.0,
                mean_ms=0.0, p50_ms=0.0, p95_ms=0.0, max_ms=0.0,
            )

        totals = np.array([float(e["total_ms"]) for e in entries])
        matched = sum(1 for e in entries if e.get("result", {}).get("matched"))

        return PerformanceSummary(
            count=len(entries),
            warning_count=sum(1 for e in entries if e.get("warning")),
            match_rate=matched / len(entries),
            mean_ms=float(np.mean(totals)),
            p50_ms=float(np.percentile(totals, 50)),
            p95_ms=float(np.percentile(totals, 95)),
            max_ms=float(np.max(totals)),
        )
