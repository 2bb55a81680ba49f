"""Exception hierarchy for Agent Blame."""

from .base import AgentBlameError
from .config import ConfigurationError, InvalidConfigError
from .storage import ReportError, ReportFormatError, StorageError

__all__ = [
    "AgentBlameError",
    "ConfigurationError",
    "InvalidConfigError",
    "StorageError",
    "ReportError",
    "ReportFormatError",
]
