"""Root exception for Agent Blame."""

from typing import Any, Mapping, Optional


class AgentBlameError(Exception):
    """Root of every error agent_blame raises on purpose.

    ``details`` carries structured context (paths, config keys, reasons);
    ``str()`` renders it after the message as ``(key=value, ...)``.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = {key: str(value) for key, value in (details or {}).items()}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"
