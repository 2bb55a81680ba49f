"""Storage port used by the attribution service.

The detector never touches storage; it receives candidate records as a
list. Anything that implements this interface (the sharded file store, an
in-memory fake in tests) can feed the service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..models import CodeChangeRecord, PromptRecord


class RecordStore(ABC):
    """Append-only persistence for code-change and prompt records."""

    @abstractmethod
    def append_code_change(self, record: CodeChangeRecord) -> CodeChangeRecord:
        """Persist a change, assigning an id if it has none. Returns the stored record."""
        pass

    @abstractmethod
    def append_prompt(self, record: PromptRecord) -> None:
        pass

    @abstractmethod
    def get_recent_code_changes(self, days: int) -> list[CodeChangeRecord]:
        """Changes from today and the previous ``days - 1`` calendar days."""
        pass

    @abstractmethod
    def get_code_changes_by_session(self, session_id: str) -> list[CodeChangeRecord]:
        pass

    @abstractmethod
    def get_latest_prompt_before(self, session_id: str, before_timestamp: int) -> Optional[str]:
        """Text of the session's latest prompt with timestamp <= ``before_timestamp``."""
        pass
