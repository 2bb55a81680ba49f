"""Value types consumed by the report generator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class ReportOptions:
    """How much detail a report carries.

    Attributes:
        developer_mode: Attach the debug block (filter counts, full candidate list).
        max_candidates: Cap on embedded candidate previews.
        max_preview_length: Characters kept per candidate preview.
    """

    developer_mode: bool = False
    max_candidates: int = 5
    max_preview_length: int = 200

    def __post_init__(self) -> None:
        if self.max_candidates < 0:
            raise ValueError("max_candidates must be non-negative")
        if self.max_preview_length < 0:
            raise ValueError("max_preview_length must be non-negative")

    @classmethod
    def for_mode(cls, developer_mode: bool, max_candidates: Optional[int] = None) -> ReportOptions:
        base = DEVELOPER_REPORT_OPTIONS if developer_mode else DEFAULT_REPORT_OPTIONS
        if max_candidates is None:
            return base
        return cls(developer_mode, max_candidates, base.max_preview_length)


DEFAULT_REPORT_OPTIONS = ReportOptions(developer_mode=False, max_candidates=5, max_preview_length=200)
DEVELOPER_REPORT_OPTIONS = ReportOptions(developer_mode=True, max_candidates=10, max_preview_length=500)


class ExpectedResult(str, Enum):
    SHOULD_BE_AI = "should_be_ai"
    SHOULD_BE_HUMAN = "should_be_human"
    WRONG_RECORD = "wrong_record"


@dataclass
class UserFeedback:
    comment: Optional[str] = None
    expected_result: Optional[ExpectedResult] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "comment": self.comment,
            "expected_result": self.expected_result.value if self.expected_result else None,
        }


@dataclass
class Environment:
    """Where the report was produced."""

    tool_version: str
    editor_version: str
    platform: str

    def to_dict(self) -> dict[str, str]:
        return {
            "tool_version": self.tool_version,
            "editor_version": self.editor_version,
            "platform": self.platform,
        }
