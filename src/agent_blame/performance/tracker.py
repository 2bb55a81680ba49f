"""Stopwatch-style instrumentation for the detection pipeline.

One PerformanceTracker is created per tracked ``detect`` call. Each stage
is charged the wall-clock time elapsed since the previous mark, so the
tracker adds no work beyond a ``perf_counter`` read per stage and per
similarity call.

Bottleneck decision tree (evaluated only when total > threshold):
    scoring   > 70% of total  -> SCORING
    loading   > 50% of total  -> LOADING
    otherwise                 -> FILTERING
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


class FilterStage(Enum):
    FILE_PATH = "file_path"
    TIME_WINDOW = "time_window"
    LENGTH = "length"


class Bottleneck(Enum):
    LOADING = "loading"
    FILTERING = "filtering"
    SCORING = "scoring"


SCORING_BOTTLENECK_PCT = 70.0
LOADING_BOTTLENECK_PCT = 50.0


@dataclass
class DataLoadingMetrics:
    load_ms: float = 0.0
    record_count: int = 0
    file_size_kb: float = 0.0


@dataclass
class FilteringMetrics:
    file_path_ms: float = 0.0
    file_path_candidates: int = 0
    time_window_ms: float = 0.0
    time_window_candidates: int = 0
    length_ms: float = 0.0
    length_candidates: int = 0

    @property
    def total_ms(self) -> float:
        return self.file_path_ms + self.time_window_ms + self.length_ms


@dataclass
class SimilarityMetrics:
    total_ms: float = 0.0
    call_count: int = 0
    avg_ms: float = 0.0
    max_ms: float = 0.0
    avg_content_length: float = 0.0
    max_content_length: int = 0


@dataclass
class ResultMetrics:
    best_similarity: float = 0.0
    candidates_processed: int = 0
    matched: bool = False


@dataclass
class BottleneckAnalysis:
    bottleneck: Bottleneck
    suggestion: str
    loading_pct: float
    filtering_pct: float
    scoring_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "bottleneck": self.bottleneck.value,
            "suggestion": self.suggestion,
            "breakdown": {
                "loading_pct": self.loading_pct,
                "filtering_pct": self.filtering_pct,
                "scoring_pct": self.scoring_pct,
            },
        }


@dataclass
class PerformanceMetrics:
    """Everything recorded for one tracked detection."""

    threshold_ms: float
    total_ms: float = 0.0
    warning: bool = False
    warning_reason: Optional[str] = None
    data_loading: DataLoadingMetrics = field(default_factory=DataLoadingMetrics)
    filtering: FilteringMetrics = field(default_factory=FilteringMetrics)
    similarity: SimilarityMetrics = field(default_factory=SimilarityMetrics)
    result: ResultMetrics = field(default_factory=ResultMetrics)
    analysis: Optional[BottleneckAnalysis] = None
    timestamp: int = 0
    file_path: str = ""
    hunk_line_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_ms": self.total_ms,
            "warning": self.warning,
            "warning_reason": self.warning_reason,
            "threshold_ms": self.threshold_ms,
            "data_loading": asdict(self.data_loading),
            "filtering": asdict(self.filtering),
            "similarity": asdict(self.similarity),
            "result": asdict(self.result),
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "timestamp": self.timestamp,
            "file_path": self.file_path,
            "hunk_line_count": self.hunk_line_count,
        }

    def to_log_entry(self) -> dict[str, Any]:
        """Compact form for logs/performance.jsonl (no file context)."""
        return {
            "timestamp": self.timestamp,
            "total_ms": round(self.total_ms, 3),
            "warning": self.warning,
            "bottleneck": self.analysis.bottleneck.value if self.analysis else None,
            "filtering": {
                "file_path_candidates": self.filtering.file_path_candidates,
                "time_window_candidates": self.filtering.time_window_candidates,
                "length_candidates": self.filtering.length_candidates,
            },
            "similarity": {
                "total_ms": round(self.similarity.total_ms, 3),
                "call_count": self.similarity.call_count,
                "avg_ms": round(self.similarity.avg_ms, 3),
            },
            "result": {
                "best_similarity": self.result.best_similarity,
                "matched": self.result.matched,
            },
        }


def classify_bottleneck(
    total_ms: float,
    loading_ms: float,
    filtering_ms: float,
    scoring_ms: float,
    record_count: int = 0,
    call_count: int = 0,
) -> BottleneckAnalysis:
    """Attribute a slow detection to one pipeline stage.

    Deterministic for fixed timings. A zero total attributes nothing and
    falls through to FILTERING.
    """
    if total_ms > 0:
        loading_pct = loading_ms / total_ms * 100
        filtering_pct = filtering_ms / total_ms * 100
        scoring_pct = scoring_ms / total_ms * 100
    else:
        loading_pct = filtering_pct = scoring_pct = 0.0

    if scoring_pct > SCORING_BOTTLENECK_PCT:
        bottleneck = Bottleneck.SCORING
        suggestion = (
            f"Similarity scoring over {call_count} candidates dominated. "
            "Tighten the time window or reduce the length tolerance."
        )
    elif loading_pct > LOADING_BOTTLENECK_PCT:
        bottleneck = Bottleneck.LOADING
        suggestion = (
            f"Loading {record_count} records took {loading_ms:.0f}ms. "
            "Reduce retention days or run cleanup more often."
        )
    else:
        bottleneck = Bottleneck.FILTERING
        suggestion = f"Filtering took {filtering_ms:.0f}ms. Check the candidate pool size."

    return BottleneckAnalysis(
        bottleneck=bottleneck,
        suggestion=suggestion,
        loading_pct=loading_pct,
        filtering_pct=filtering_pct,
        scoring_pct=scoring_pct,
    )


class PerformanceTracker:
    """Accumulates stage timings for a single detection.

    Usage:
        tracker = PerformanceTracker(threshold_ms=500)
        records = store.get_recent_code_changes(3)
        tracker.record_data_loading(len(records))
        ...
        tracker.record_filter_step(FilterStage.FILE_PATH, len(candidates))
        metrics = tracker.finalize()
    """

    def __init__(self, threshold_ms: float = 500.0):
        self._start = time.perf_counter()
        self._last_mark = self._start
        self._content_length_total = 0
        self._finalized = False
        self.metrics = PerformanceMetrics(
            threshold_ms=threshold_ms,
            timestamp=int(time.time() * 1000),
        )

    def _lap(self) -> float:
        now = time.perf_counter()
        elapsed_ms = (now - self._last_mark) * 1000
        self._last_mark = now
        return elapsed_ms

    def mark(self) -> None:
        """Reset the stage clock without charging any stage."""
        self._last_mark = time.perf_counter()

    def record_data_loading(self, record_count: int, file_size_kb: float = 0.0) -> None:
        loading = self.metrics.data_loading
        loading.load_ms = self._lap()
        loading.record_count = record_count
        loading.file_size_kb = file_size_kb

    def record_filter_step(self, stage: FilterStage, candidates_after: int) -> None:
        elapsed_ms = self._lap()
        filtering = self.metrics.filtering
        if stage is FilterStage.FILE_PATH:
            filtering.file_path_ms = elapsed_ms
            filtering.file_path_candidates = candidates_after
        elif stage is FilterStage.TIME_WINDOW:
            filtering.time_window_ms = elapsed_ms
            filtering.time_window_candidates = candidates_after
        elif stage is FilterStage.LENGTH:
            filtering.length_ms = elapsed_ms
            filtering.length_candidates = candidates_after

    def record_similarity_call(self, duration_ms: float, content_length: int) -> None:
        similarity = self.metrics.similarity
        similarity.total_ms += duration_ms
        similarity.call_count += 1
        similarity.max_ms = max(similarity.max_ms, duration_ms)
        similarity.max_content_length = max(similarity.max_content_length, content_length)
        self._content_length_total += content_length

    def record_result(self, best_similarity: float, matched: bool) -> None:
        result = self.metrics.result
        result.best_similarity = best_similarity
        result.candidates_processed = self.metrics.similarity.call_count
        result.matched = matched

    def set_context(self, file_path: str, hunk_line_count: int) -> None:
        self.metrics.file_path = file_path
        self.metrics.hunk_line_count = hunk_line_count

    def finalize(self) -> PerformanceMetrics:
        """Stop the clock, derive averages and run the bottleneck analysis."""
        if self._finalized:
            return self.metrics
        self._finalized = True

        metrics = self.metrics
        metrics.total_ms = (time.perf_counter() - self._start) * 1000

        similarity = metrics.similarity
        if similarity.call_count:
            similarity.avg_ms = similarity.total_ms / similarity.call_count
            similarity.avg_content_length = self._content_length_total / similarity.call_count

        if metrics.total_ms > metrics.threshold_ms:
            metrics.warning = True
            metrics.warning_reason = f"Detection exceeded {metrics.threshold_ms:.0f}ms threshold"
            metrics.analysis = classify_bottleneck(
                total_ms=metrics.total_ms,
                loading_ms=metrics.data_loading.load_ms,
                filtering_ms=metrics.filtering.total_ms,
                scoring_ms=similarity.total_ms,
                record_count=metrics.data_loading.record_count,
                call_count=similarity.call_count,
            )

        return metrics
