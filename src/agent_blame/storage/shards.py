"""Shard naming, record ids and line-level file I/O.

A shard is one calendar day of records in ``{YYYY-MM-DD}.jsonl``. The day
is taken from the record's own timestamp in local time. Appends go through
``append_line``: one ``os.write`` of a complete encoded line on an
``O_APPEND`` descriptor, serialized per path within the process, so
concurrent writers never interleave partial lines.
"""

from __future__ import annotations

import os
import re
import secrets
import string
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from ..exceptions import StorageError
from ..logging_config import get_logger

logger = get_logger(__name__)

SHARD_SUFFIX = ".jsonl"
SHARD_NAME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\.jsonl$")

# nanoid-compatible alphabet
ID_ALPHABET = string.ascii_letters + string.digits + "_-"
ID_SUFFIX_LENGTH = 8

_path_locks: dict[str, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def now_ms() -> int:
    return int(datetime.now().timestamp() * 1000)


def local_date(timestamp_ms: int) -> date:
    """Calendar day of an epoch-millisecond timestamp in local time."""
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def format_date(timestamp_ms: int) -> str:
    return local_date(timestamp_ms).strftime("%Y-%m-%d")


def shard_name(timestamp_ms: int) -> str:
    return f"{format_date(timestamp_ms)}{SHARD_SUFFIX}"


def shard_name_for_day(day: date) -> str:
    return f"{day.strftime('%Y-%m-%d')}{SHARD_SUFFIX}"


def parse_shard_date(filename: str) -> Optional[date]:
    """Date encoded in a shard file name, or None for non-shard names."""
    match = SHARD_NAME_RE.match(filename)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y-%m-%d").date()
    except ValueError:
        # e.g. 2026-02-30
        return None


def generate_id(timestamp_ms: int) -> str:
    """``{timestamp}-{8 random url-safe chars}``."""
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{timestamp_ms}-{suffix}"


def _lock_for(path: Path) -> threading.Lock:
    key = str(path)
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


def release_lock(path: Union[str, Path]) -> bool:
    """Forget the append lock of a deleted shard. Held locks are kept."""
    key = str(Path(path))
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None or lock.locked():
            return False
        del _path_locks[key]
        return True


def append_line(path: Union[str, Path], line: str) -> None:
    """Append ``line`` plus a newline to ``path`` as a single write.

    Raises:
        StorageError: On any OS-level failure (permissions, disk full)
    """
    path = Path(path)
    data = (line.rstrip("\n") + "\n").encode("utf-8")

    with _lock_for(path):
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            try:
                written = os.write(fd, data)
                # Short writes only happen on full disks or signals; finish
                # the line rather than leave a fragment behind.
                while written < len(data):
                    written += os.write(fd, data[written:])
            finally:
                os.close(fd)
        except OSError as e:
            raise StorageError(path, e.strerror or str(e)) from e


def read_lines(path: Union[str, Path]) -> list[str]:
    """Non-empty lines of a shard. A missing file reads as empty.

    Lines that are not valid UTF-8 are skipped.

    Raises:
        StorageError: On OS-level failures other than a missing file
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as e:
        raise StorageError(path, e.strerror or str(e)) from e

    lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        if not raw_line.strip():
            continue
        try:
            lines.append(raw_line.decode("utf-8").strip())
        except UnicodeDecodeError:
            logger.debug(f"Skipping undecodable line in {path.name}")
    return lines
