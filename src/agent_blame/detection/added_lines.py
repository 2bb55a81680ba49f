"""Derive detector-facing AgentRecords from raw CodeChangeRecords."""

from __future__ import annotations

import difflib
from typing import Optional

from ..models import AgentRecord, CodeChangeRecord, SessionMetadata, SessionSource


def compute_added_lines(old_content: Optional[str], new_content: str) -> list[str]:
    """Lines present in ``new_content`` that the edit introduced.

    Without previous content (a whole-file write) every non-empty new line
    counts as added. Callers that need a tighter baseline must diff against
    the last committed version themselves.
    """
    new_lines = new_content.split("\n")
    if not old_content:
        return [line for line in new_lines if line.strip()]

    old_lines = old_content.split("\n")
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)

    added: list[str] = []
    for tag, _i1, _i2, j1, j2 in matcher.get_opcodes():
        if tag in ("insert", "replace"):
            added.extend(new_lines[j1:j2])
    return added


def to_agent_record(
    change: CodeChangeRecord,
    user_prompt: Optional[str] = None,
    qa_index: int = 1,
) -> Optional[AgentRecord]:
    """Convert a stored change into an AgentRecord.

    Returns None for failed tool calls and for changes without new content,
    which can never be the source of added lines.
    """
    if not change.success or not change.new_content:
        return None

    added_lines = compute_added_lines(change.old_content, change.new_content)

    session_source = SessionSource(
        agent=change.agent,
        session_id=change.session_id,
        qa_index=qa_index,
        timestamp=change.timestamp,
        metadata=SessionMetadata(user_prompt=user_prompt),
    )

    return AgentRecord(
        id=change.id or f"{change.session_id}-{change.timestamp}",
        session_source=session_source,
        file_path=change.file_path,
        content=change.new_content,
        added_lines=added_lines,
        timestamp=change.timestamp,
    )
