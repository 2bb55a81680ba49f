"""Storage and report exceptions: shard I/O, report files."""

from pathlib import Path
from typing import Optional, Union

from .base import AgentBlameError


class StorageError(AgentBlameError):
    """Raised when a shard, log or report file cannot be read or written.

    Missing shard files and undecodable lines are not storage errors; those
    resolve to empty results.
    """

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"Storage failure: {path}", details={"path": str(path), "reason": reason})
        self.path = Path(path)
        self.reason = reason


class ReportError(AgentBlameError):
    """Base class for issue report errors."""

    pass


class ReportFormatError(ReportError):
    """Raised when report JSON cannot be parsed into a report."""

    def __init__(self, reason: str, source: Optional[Union[str, Path]] = None):
        details = {"reason": reason}
        if source is not None:
            details["source"] = str(source)
        super().__init__("Malformed issue report", details=details)
        self.reason = reason
        self.source = source
