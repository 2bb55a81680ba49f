"""Issue report generation, serialization and persistence.

A report packages one detection verdict so a user can share a suspected
misattribution. It keeps the full hunk text, a capped and similarity-sorted
list of candidate previews and, in developer mode, a debug block. The
originating prompt of any record is never embedded.

Reports are stored as ``reports/{YYYY-MM-DD}/report-{id}.json``.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from ..exceptions import ReportFormatError, StorageError
from ..logging_config import get_logger
from ..models import AgentRecord, ContributorResult, Hunk
from ..performance.tracker import PerformanceMetrics
from ..detection.matcher import LevenshteinMatcher
from ..storage.shards import format_date, generate_id, now_ms
from .models import DEFAULT_REPORT_OPTIONS, Environment, ReportOptions, UserFeedback

logger = get_logger(__name__)

REQUIRED_ENVIRONMENT_FIELDS = ("tool_version", "editor_version", "platform")


def generate_report_id(timestamp_ms: int) -> str:
    return generate_id(timestamp_ms)


def format_timestamp(timestamp_ms: int) -> str:
    """Local time as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def report_file_name(report_id: str) -> str:
    return f"report-{report_id}.json"


def report_directory_name(timestamp_ms: int) -> str:
    return format_date(timestamp_ms)


def generate_report(
    hunk: Hunk,
    match_result: ContributorResult,
    candidates: Sequence[AgentRecord],
    environment: Environment,
    options: ReportOptions = DEFAULT_REPORT_OPTIONS,
    performance: Optional[PerformanceMetrics] = None,
    user_feedback: Optional[UserFeedback] = None,
    matcher: Optional[LevenshteinMatcher] = None,
    timestamp_ms: Optional[int] = None,
) -> dict[str, Any]:
    """Build a self-contained, JSON-serializable report.

    Args:
        hunk: The hunk that was attributed
        match_result: Detector verdict for the hunk
        candidates: Candidate pool the detector saw
        environment: Tool/editor/platform versions
        options: Candidate cap, preview length and developer mode
        performance: Metrics of the detection, if it was tracked
        user_feedback: What the user expected instead
        matcher: Similarity used for candidate ordering
        timestamp_ms: Report creation time (defaults to now)

    Returns:
        Report dict with snake_case keys
    """
    matcher = matcher or LevenshteinMatcher()
    timestamp = timestamp_ms if timestamp_ms is not None else now_ms()
    hunk_content = hunk.content

    if performance is None:
        performance = match_result.performance_metrics

    scored = [
        (record, matcher.calculate(hunk_content, record.added_content)) for record in candidates
    ]
    # Stable: equal similarities keep pool order
    scored.sort(key=lambda pair: pair[1], reverse=True)

    matched_record = None
    record = match_result.matched_record
    if record is not None:
        matched_record = {
            "record_id": record.id,
            "timestamp": record.timestamp,
            "timestamp_human": format_timestamp(record.timestamp),
            "session_id": record.session_source.session_id,
            "agent": record.session_source.agent,
            "content": record.added_content,
        }

    report_candidates = [
        {
            "record_id": candidate.id,
            "similarity": similarity,
            "timestamp": candidate.timestamp,
            "timestamp_human": format_timestamp(candidate.timestamp),
            "content_preview": candidate.added_content[: options.max_preview_length],
        }
        for candidate, similarity in scored[: options.max_candidates]
    ]

    debug = None
    if options.developer_mode:
        filter_steps = None
        if performance is not None:
            filter_steps = {
                "total": performance.data_loading.record_count or len(candidates),
                "after_file_path_filter": performance.filtering.file_path_candidates,
                "after_time_window_filter": performance.filtering.time_window_candidates,
                "after_length_filter": performance.filtering.length_candidates,
            }
        debug = {
            "filter_steps": filter_steps,
            "all_candidates": [
                {"record_id": c.id, "similarity": similarity, "timestamp": c.timestamp}
                for c, similarity in scored
            ],
        }

    start, end = hunk.line_range
    return {
        "report_id": generate_report_id(timestamp),
        "timestamp": timestamp,
        "timestamp_human": format_timestamp(timestamp),
        "file": {"path": hunk.file_path, "line_range": [start, end]},
        "hunk": {
            "content": hunk_content,
            "line_count": hunk.line_count,
            "char_count": len(hunk_content),
        },
        "match_result": {
            "contributor": match_result.contributor.value,
            "similarity": match_result.similarity,
            "confidence": match_result.confidence,
            "matched_record": matched_record,
        },
        "candidates": report_candidates,
        "session_id": record.session_source.session_id if record else None,
        "agent": record.session_source.agent if record else None,
        "user_feedback": user_feedback.to_dict() if user_feedback else None,
        "environment": environment.to_dict(),
        "performance": performance.to_dict() if performance else None,
        "debug": debug,
    }


def serialize_report(report: dict[str, Any]) -> str:
    return json.dumps(report, indent=2, ensure_ascii=False)


def parse_report(text: str) -> dict[str, Any]:
    """Inverse of ``serialize_report``.

    Raises:
        ReportFormatError: If the text is not a JSON object
    """
    try:
        report = json.loads(text)
    except json.JSONDecodeError as e:
        raise ReportFormatError(f"invalid JSON: {e.msg} at line {e.lineno}") from e
    if not isinstance(report, dict):
        raise ReportFormatError(f"expected a JSON object, got {type(report).__name__}")
    return report


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_report(report: Any) -> bool:
    """Structural check only; detection is not re-run."""
    if not isinstance(report, dict):
        return False

    if not isinstance(report.get("report_id"), str):
        return False
    if not _is_number(report.get("timestamp")):
        return False
    if not isinstance(report.get("timestamp_human"), str):
        return False

    file_info = report.get("file")
    if not isinstance(file_info, dict) or not isinstance(file_info.get("path"), str):
        return False
    line_range = file_info.get("line_range")
    if not isinstance(line_range, (list, tuple)) or len(line_range) != 2:
        return False

    hunk = report.get("hunk")
    if not isinstance(hunk, dict) or not isinstance(hunk.get("content"), str):
        return False
    if not _is_number(hunk.get("line_count")) or not _is_number(hunk.get("char_count")):
        return False

    match_result = report.get("match_result")
    if not isinstance(match_result, dict) or not isinstance(match_result.get("contributor"), str):
        return False
    if not _is_number(match_result.get("similarity")) or not _is_number(
        match_result.get("confidence")
    ):
        return False

    if not isinstance(report.get("candidates"), list):
        return False

    environment = report.get("environment")
    if not isinstance(environment, dict):
        return False
    return all(isinstance(environment.get(key), str) for key in REQUIRED_ENVIRONMENT_FIELDS)


def save_report(report: dict[str, Any], reports_dir: Union[str, Path]) -> Path:
    """Write ``report`` under its calendar-day directory.

    Returns:
        Path of the written report file

    Raises:
        StorageError: If the file cannot be written
    """
    directory = Path(reports_dir) / report_directory_name(report["timestamp"])
    path = directory / report_file_name(report["report_id"])
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize_report(report) + "\n", encoding="utf-8")
    except OSError as e:
        raise StorageError(path, e.strerror or str(e)) from e

    logger.info(f"Saved issue report {report['report_id']} to {path}")
    return path


def load_report(path: Union[str, Path]) -> dict[str, Any]:
    """Read and validate a saved report.

    Raises:
        StorageError: If the file cannot be read
        ReportFormatError: If it is not a well-formed report
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(path, e.strerror or str(e)) from e

    try:
        report = parse_report(text)
    except ReportFormatError as e:
        raise ReportFormatError(e.reason, source=path) from e
    if not validate_report(report):
        raise ReportFormatError("missing or mistyped required fields", source=path)
    return report
