"""Caller-side facade over the attribution engine.

Wires the sharded store, record cache, retention cleanup, detector,
performance log and report generator for one project:

    service = AttributionService("/path/to/project")
    for hunk, result in service.detect_diff(git_diff("/path/to/project")):
        print(hunk.file_path, result.contributor.value)
"""

from __future__ import annotations

import bisect
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from . import __version__
from .cache import RecordCache
from .config import AttributionConfig
from .detection.added_lines import to_agent_record
from .detection.detector import ContributorDetector
from .diff import hunks_from_diff
from .logging_config import get_logger
from .models import AgentRecord, CodeChangeRecord, ContributorResult, Hunk, PromptRecord
from .paths import normalize_file_path
from .performance.log import PerformanceLog, PerformanceSummary
from .performance.tracker import PerformanceTracker
from .report.models import Environment, ReportOptions, UserFeedback
from .report.service import generate_report
from .report.service import save_report as _save_report
from .storage.cleanup import CleanupManager, CleanupResult
from .storage.file_store import FileRecordStore, list_shard_files
from .storage.shards import local_date, now_ms

logger = get_logger(__name__)


class AttributionService:
    """Attributes working-tree hunks in one project to agents or humans.

    Attributes:
        project_root: Repository root the data directory lives under.
        config: Effective configuration.
        store: Sharded record store.
        detector: Contributor detector built from ``config.detector``.
        cleanup_manager: Retention cleanup for the store's shards.
        performance_log: Log of tracked detections.
        cache: Short-lived cache of loaded AgentRecords.
    """

    def __init__(
        self,
        project_root: Union[str, Path],
        config: Optional[AttributionConfig] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.project_root = Path(project_root)
        self.config = config or AttributionConfig()
        self._clock = clock

        self.store = FileRecordStore(self.project_root, self.config.data_dir, clock=clock)
        self.performance_log = PerformanceLog(self.store.logs_dir)
        self.detector = ContributorDetector(
            self.config.detector,
            performance_log=self.performance_log if self.config.log_performance else None,
            clock=clock,
        )
        self.cleanup_manager = CleanupManager(
            self.store.hook_data_path,
            retention_days=self.config.retention_days,
            check_interval_hours=self.config.cleanup_interval_hours,
            enabled=self.config.auto_cleanup,
            today=lambda: local_date(self._clock()),
        )

        cache_dir = Path(self.config.cache_dir)
        if not cache_dir.is_absolute():
            cache_dir = self.project_root / cache_dir
        self.cache = RecordCache(
            cache_dir=str(cache_dir),
            ttl_seconds=self.config.cache_ttl_seconds,
            enabled=self.config.cache_enabled,
        )

    # ── Capture ─────────────────────────────────────────────────────

    def normalize_path(self, file_path: str) -> str:
        """Project-relative path inside the project root, absolute outside it."""
        return normalize_file_path(file_path, self.project_root)

    def _normalize_hunk(self, hunk: Hunk) -> Hunk:
        file_path = self.normalize_path(hunk.file_path)
        return hunk if file_path == hunk.file_path else replace(hunk, file_path=file_path)

    def record_code_change(self, record: CodeChangeRecord) -> CodeChangeRecord:
        """Store a change, with its file path normalized against the project root."""
        file_path = self.normalize_path(record.file_path)
        if file_path != record.file_path:
            record = replace(record, file_path=file_path)
        stored = self.store.append_code_change(record)
        self.invalidate_cache()
        return stored

    def record_prompt(self, record: PromptRecord) -> None:
        self.store.append_prompt(record)
        self.invalidate_cache()

    # ── Loading ─────────────────────────────────────────────────────

    @property
    def window_days(self) -> int:
        """Shards to read: the time window plus the day it starts on."""
        return self.config.detector.time_window_days + 1

    def load_agent_records(self, tracker: Optional[PerformanceTracker] = None) -> list[AgentRecord]:
        """AgentRecords for the recent window, with originating prompts attached.

        Runs automatic cleanup first when it is due. With a tracker, the load
        (cache hit or not) is charged to its data-loading stage.
        """
        self.cleanup_manager.try_cleanup()

        days = self.window_days
        key = self._records_cache_key(days)
        records = self.cache.get(key)
        if records is None:
            records = self._build_agent_records(days)
            self.cache.set(key, records)

        if tracker is not None:
            tracker.record_data_loading(len(records), self.store.shard_size_kb(days))
        return records

    def _records_cache_key(self, days: int) -> str:
        paths = self.store.recent_shard_paths(self.store.changes_dir, days)
        paths.extend(list_shard_files(self.store.prompts_dir))
        return RecordCache.key_for(f"agent-records:{self.store.hook_data_path}:{days}", paths)

    def _build_agent_records(self, days: int) -> list[AgentRecord]:
        changes = self.store.get_recent_code_changes(days)

        prompts_by_session: dict[str, list[PromptRecord]] = {}
        records: list[AgentRecord] = []
        for change in changes:
            if change.session_id not in prompts_by_session:
                prompts_by_session[change.session_id] = self.store.get_prompts_by_session(
                    change.session_id
                )
            prompts = prompts_by_session[change.session_id]

            # Prompts are sorted, so the count at or before the change is
            # both the lookup index and the 1-based exchange number.
            position = bisect.bisect_right([p.timestamp for p in prompts], change.timestamp)
            user_prompt = prompts[position - 1].prompt if position else None

            record = to_agent_record(change, user_prompt=user_prompt, qa_index=max(position, 1))
            if record is not None:
                # Hooks writing straight to the store may have used absolute paths
                record.file_path = self.normalize_path(record.file_path)
                records.append(record)

        logger.debug(f"Loaded {len(records)} agent records from {len(changes)} changes")
        return records

    # ── Detection ───────────────────────────────────────────────────

    def detect(self, hunk: Hunk, enable_tracking: Optional[bool] = None) -> ContributorResult:
        """Attribute one hunk against the recent-window records.

        The hunk path is normalized the same way stored changes are.
        """
        tracking = self.config.enable_tracking if enable_tracking is None else enable_tracking
        tracker = self.detector.new_tracker() if tracking else None
        records = self.load_agent_records(tracker)
        return self.detector.detect(self._normalize_hunk(hunk), records, tracker=tracker)

    def detect_diff(
        self, diff_text: str, enable_tracking: Optional[bool] = None
    ) -> list[tuple[Hunk, ContributorResult]]:
        """Attribute every added-lines hunk in a unified diff."""
        return [(hunk, self.detect(hunk, enable_tracking)) for hunk in hunks_from_diff(diff_text)]

    # ── Reports ─────────────────────────────────────────────────────

    def default_environment(self) -> Environment:
        return Environment(tool_version=__version__, editor_version="cli", platform=sys.platform)

    def build_report(
        self,
        hunk: Hunk,
        result: ContributorResult,
        candidates: Optional[Sequence[AgentRecord]] = None,
        environment: Optional[Environment] = None,
        user_feedback: Optional[UserFeedback] = None,
        developer_mode: Optional[bool] = None,
    ) -> dict:
        """Issue report for a detection.

        Candidates default to the loaded records for the hunk's file.
        """
        if candidates is None:
            file_path = self.normalize_path(hunk.file_path)
            candidates = [r for r in self.load_agent_records() if r.file_path == file_path]
        if developer_mode is None:
            developer_mode = self.config.developer_mode

        options = ReportOptions.for_mode(developer_mode, self.config.max_report_candidates)
        return generate_report(
            hunk,
            result,
            candidates,
            environment or self.default_environment(),
            options=options,
            user_feedback=user_feedback,
            matcher=self.detector.matcher,
            timestamp_ms=self._clock(),
        )

    def save_report(self, report: dict) -> Path:
        return _save_report(report, self.store.reports_dir)

    # ── Maintenance ─────────────────────────────────────────────────

    def run_cleanup(self, force: bool = False) -> Optional[CleanupResult]:
        result = self.cleanup_manager.try_cleanup(force=force)
        if result is not None and result.files_removed:
            self.invalidate_cache()
        return result

    def performance_summary(self) -> PerformanceSummary:
        return self.performance_log.summarize()

    def invalidate_cache(self) -> None:
        self.cache.clear()

    def close(self) -> None:
        self.cache.close()
