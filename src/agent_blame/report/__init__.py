"""Shareable issue reports for suspected misattributions."""

from .models import (
    DEFAULT_REPORT_OPTIONS,
    DEVELOPER_REPORT_OPTIONS,
    Environment,
    ExpectedResult,
    ReportOptions,
    UserFeedback,
)
from .service import (
    format_timestamp,
    generate_report,
    generate_report_id,
    load_report,
    parse_report,
    report_directory_name,
    report_file_name,
    save_report,
    serialize_report,
    validate_report,
)

__all__ = [
    "DEFAULT_REPORT_OPTIONS",
    "DEVELOPER_REPORT_OPTIONS",
    "Environment",
    "ExpectedResult",
    "ReportOptions",
    "UserFeedback",
    "format_timestamp",
    "generate_report",
    "generate_report_id",
    "load_report",
    "parse_report",
    "report_directory_name",
    "report_file_name",
    "save_report",
    "serialize_report",
    "validate_report",
]
