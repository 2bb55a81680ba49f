"""Core data model for contributor detection.

Wire format for persisted records is camelCase JSON (one object per line);
the dataclasses here use snake_case and convert at the edges via
``to_dict`` / ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .performance.tracker import PerformanceMetrics


class ContributorType(str, Enum):
    """Who wrote a hunk.

    AI           similarity >= threshold_pure_ai
    AI_MODIFIED  threshold_ai_modified <= similarity < threshold_pure_ai
    HUMAN        everything else
    """

    AI = "ai"
    AI_MODIFIED = "ai_modified"
    HUMAN = "human"


@dataclass
class Hunk:
    """A contiguous block of added lines in one file."""

    file_path: str
    added_lines: list[str] = field(default_factory=list)
    start_line: int = 1

    @property
    def content(self) -> str:
        return "\n".join(self.added_lines)

    @property
    def line_count(self) -> int:
        return len(self.added_lines)

    @property
    def line_range(self) -> tuple[int, int]:
        """1-based inclusive (start, end) line range."""
        return (self.start_line, self.start_line + max(len(self.added_lines) - 1, 0))


@dataclass
class CodeChangeRecord:
    """Raw capture of one tool-driven edit, as written by an agent hook."""

    session_id: str
    agent: str
    timestamp: int
    tool_name: str
    file_path: str
    old_content: Optional[str] = None
    new_content: Optional[str] = None
    success: bool = True
    id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        data.update(
            {
                "sessionId": self.session_id,
                "agent": self.agent,
                "timestamp": self.timestamp,
                "toolName": self.tool_name,
                "filePath": self.file_path,
            }
        )
        if self.old_content is not None:
            data["oldContent"] = self.old_content
        if self.new_content is not None:
            data["newContent"] = self.new_content
        data["success"] = self.success
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeChangeRecord:
        """Build a record from its wire form.

        Raises:
            KeyError: A required field is missing
            TypeError: A field has the wrong type
        """
        timestamp = data["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise TypeError(f"timestamp must be a number, got {type(timestamp).__name__}")
        for key in ("sessionId", "agent", "toolName", "filePath"):
            if not isinstance(data[key], str):
                raise TypeError(f"{key} must be a string")
        return cls(
            id=data.get("id"),
            session_id=data["sessionId"],
            agent=data["agent"],
            timestamp=int(timestamp),
            tool_name=data["toolName"],
            file_path=data["filePath"],
            old_content=data.get("oldContent"),
            new_content=data.get("newContent"),
            success=bool(data.get("success", False)),
        )


@dataclass
class PromptRecord:
    """A user instruction captured at prompt-submit time."""

    session_id: str
    prompt: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"sessionId": self.session_id, "prompt": self.prompt, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PromptRecord:
        timestamp = data["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise TypeError(f"timestamp must be a number, got {type(timestamp).__name__}")
        if not isinstance(data["sessionId"], str) or not isinstance(data["prompt"], str):
            raise TypeError("sessionId and prompt must be strings")
        return cls(session_id=data["sessionId"], prompt=data["prompt"], timestamp=int(timestamp))


@dataclass
class SessionMetadata:
    """Optional context attached to an agent session."""

    user_prompt: Optional[str] = None
    agent_response: Optional[str] = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class SessionSource:
    """Which agent session produced a record."""

    agent: str
    session_id: str
    qa_index: int
    timestamp: int
    metadata: Optional[SessionMetadata] = None


@dataclass
class AgentRecord:
    """Detector-facing view of a CodeChangeRecord.

    ``added_lines`` is what the detector compares against; ``content`` is the
    full new file content the agent wrote.
    """

    id: str
    session_source: SessionSource
    file_path: str
    content: str
    added_lines: list[str]
    timestamp: int

    @property
    def added_content(self) -> str:
        return "\n".join(self.added_lines)


@dataclass
class ContributorResult:
    """Classification of one hunk."""

    contributor: ContributorType
    similarity: float
    confidence: float
    matched_record: Optional[AgentRecord] = None
    performance_metrics: Optional[PerformanceMetrics] = None

    @property
    def is_ai(self) -> bool:
        return self.contributor is not ContributorType.HUMAN
