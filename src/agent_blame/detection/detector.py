"""Contributor detection: AI, AI-modified or human.

A hunk is run through four stages, each short-circuiting on an empty
candidate set:

    1. File path    exact, case-sensitive equality with the hunk's path
    2. Time window  timestamp >= now - time_window_days
    3. Length       max(Lh, Lr) / min(Lh, Lr) <= 1 + length_tolerance
    4. Similarity   Levenshtein similarity, keep the first strict maximum

The best similarity is then classified against the two thresholds. The
detector holds no per-call state, so one instance can serve concurrent
callers; each tracked call gets its own PerformanceTracker.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from ..config import DEFAULT_DETECTOR_CONFIG, DetectorConfig
from ..logging_config import get_logger
from ..models import AgentRecord, ContributorResult, ContributorType, Hunk
from ..performance.log import PerformanceLog
from ..performance.tracker import FilterStage, PerformanceTracker
from .matcher import LevenshteinMatcher

logger = get_logger(__name__)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def classify(similarity: float, config: DetectorConfig = DEFAULT_DETECTOR_CONFIG) -> ContributorType:
    """Map a similarity score to a contributor category."""
    if similarity >= config.threshold_pure_ai:
        return ContributorType.AI
    if similarity >= config.threshold_ai_modified:
        return ContributorType.AI_MODIFIED
    return ContributorType.HUMAN


def calculate_confidence(
    similarity: float,
    contributor: ContributorType,
    config: DetectorConfig = DEFAULT_DETECTOR_CONFIG,
) -> float:
    """How sure the classification is, for UI hinting only.

    AI           0.5 at the threshold, rising to 1.0 at identical
    AI_MODIFIED  0.5 at the lower threshold, rising to 0.8 at the upper one
    HUMAN        1.0 with no similarity at all, else at least 0.3
    """
    pure = config.threshold_pure_ai
    modified = config.threshold_ai_modified

    if contributor is ContributorType.AI:
        if pure >= 1.0:
            return 1.0
        return min(1.0, ((similarity - pure) / (1.0 - pure)) * 0.5 + 0.5)

    if contributor is ContributorType.AI_MODIFIED:
        position = (similarity - modified) / (pure - modified)
        return 0.5 + position * 0.3

    if similarity == 0 or modified <= 0:
        return 1.0
    return max(0.3, 1.0 - similarity / modified)


@dataclass(frozen=True)
class DetectionSummary:
    """Verdict counts and mean similarity over a set of results."""

    total: int
    ai: int
    ai_modified: int
    human: int
    average_similarity: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "ai": self.ai,
            "ai_modified": self.ai_modified,
            "human": self.human,
            "average_similarity": self.average_similarity,
        }


class ContributorDetector:
    """Classifies hunks against captured agent edits.

    Usage:
        detector = ContributorDetector(DetectorConfig(time_window_days=7))
        result = detector.detect(hunk, records, enable_tracking=True)
        result.contributor, result.similarity, result.performance_metrics
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        matcher: Optional[LevenshteinMatcher] = None,
        performance_log: Optional[PerformanceLog] = None,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self.config = config or DEFAULT_DETECTOR_CONFIG
        self.matcher = matcher or LevenshteinMatcher()
        self.performance_log = performance_log
        self._clock = clock

    def new_tracker(self) -> PerformanceTracker:
        return PerformanceTracker(threshold_ms=self.config.performance_threshold_ms)

    def detect(
        self,
        hunk: Hunk,
        candidate_records: Sequence[AgentRecord],
        enable_tracking: bool = False,
        tracker: Optional[PerformanceTracker] = None,
    ) -> ContributorResult:
        """Classify ``hunk`` against ``candidate_records``.

        Args:
            hunk: File path plus the added lines being attributed
            candidate_records: Full candidate pool for the relevant window
            enable_tracking: Collect PerformanceMetrics for this call
            tracker: Pre-started tracker (e.g. one that already timed data
                loading); implies tracking

        Returns:
            ContributorResult with metrics attached when tracking
        """
        if tracker is None and enable_tracking:
            tracker = self.new_tracker()
        if tracker is not None:
            tracker.set_context(hunk.file_path, hunk.line_count)
            tracker.mark()

        if not hunk.added_lines:
            return self._finish(tracker, 0.0, None)

        # Stage 1: file path
        candidates = [r for r in candidate_records if r.file_path == hunk.file_path]
        if tracker is not None:
            tracker.record_filter_step(FilterStage.FILE_PATH, len(candidates))
        if not candidates:
            return self._finish(tracker, 0.0, None)

        # Stage 2: time window (inclusive boundary)
        cutoff = self._clock() - self.config.time_window_ms
        candidates = [r for r in candidates if r.timestamp >= cutoff]
        if tracker is not None:
            tracker.record_filter_step(FilterStage.TIME_WINDOW, len(candidates))
        if not candidates:
            return self._finish(tracker, 0.0, None)

        # Stage 3: content length
        hunk_content = hunk.content
        candidates = [
            r for r in candidates if self._length_compatible(len(hunk_content), len(r.added_content))
        ]
        if tracker is not None:
            tracker.record_filter_step(FilterStage.LENGTH, len(candidates))
        if not candidates:
            return self._finish(tracker, 0.0, None)

        # Stage 4: similarity
        best_similarity = 0.0
        best_record: Optional[AgentRecord] = None
        for record in candidates:
            similarity = self.matcher.calculate(hunk_content, record.added_content, tracker)
            if similarity > best_similarity:
                best_similarity = similarity
                best_record = record

        return self._finish(tracker, best_similarity, best_record)

    def detect_batch(
        self,
        hunks: Sequence[Hunk],
        candidate_records: Sequence[AgentRecord],
        enable_tracking: bool = False,
    ) -> list[ContributorResult]:
        """Classify each hunk against the same pool, in input order."""
        return [self.detect(hunk, candidate_records, enable_tracking) for hunk in hunks]

    @staticmethod
    def summarize(results: Sequence[ContributorResult]) -> DetectionSummary:
        counts = {contributor: 0 for contributor in ContributorType}
        for result in results:
            counts[result.contributor] += 1

        total = len(results)
        average = sum(r.similarity for r in results) / total if total else 0.0
        return DetectionSummary(
            total=total,
            ai=counts[ContributorType.AI],
            ai_modified=counts[ContributorType.AI_MODIFIED],
            human=counts[ContributorType.HUMAN],
            average_similarity=average,
        )

    def _length_compatible(self, hunk_length: int, record_length: int) -> bool:
        if hunk_length == 0 or record_length == 0:
            return False
        ratio = max(hunk_length, record_length) / min(hunk_length, record_length)
        return ratio <= 1.0 + self.config.length_tolerance

    def _finish(
        self,
        tracker: Optional[PerformanceTracker],
        similarity: float,
        best_record: Optional[AgentRecord],
    ) -> ContributorResult:
        contributor = classify(similarity, self.config)
        matched = best_record if contributor is not ContributorType.HUMAN else None

        metrics = None
        if tracker is not None:
            tracker.record_result(similarity, matched is not None)
            metrics = tracker.finalize()
            if metrics.warning and metrics.analysis is not None:
                logger.warning(
                    f"Slow detection for {metrics.file_path}: {metrics.total_ms:.0f}ms "
                    f"(bottleneck: {metrics.analysis.bottleneck.value}). "
                    f"{metrics.analysis.suggestion}"
                )
            if self.performance_log is not None:
                self.performance_log.append(metrics)

        return ContributorResult(
            contributor=contributor,
            similarity=similarity,
            confidence=calculate_confidence(similarity, contributor, self.config),
            matched_record=matched,
            performance_metrics=metrics,
        )
