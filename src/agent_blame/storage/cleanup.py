"""Retention cleanup for date-sharded hook data.

Deletes ``changes/`` and ``prompts/`` shards whose file-name date is
strictly older than ``today - retention_days``. Cleanup is idempotent and
only ever touches expired shards, so it can run while other shards are
being appended to.

Usage:
    manager = CleanupManager(store.hook_data_path, retention_days=7)
    manager.try_cleanup()          # respects enabled flag + check interval
    manager.cleanup(retention_days=3)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Optional, Union

from ..exceptions import InvalidConfigError, StorageError
from ..logging_config import get_logger
from .file_store import CHANGES_DIR, LOGS_DIR, PROMPTS_DIR, list_shard_files
from .shards import parse_shard_date, release_lock

logger = get_logger(__name__)

DEFAULT_RETENTION_DAYS = 7
DEFAULT_CHECK_INTERVAL_HOURS = 24

CLEANUP_DIRS = (CHANGES_DIR, PROMPTS_DIR)
STATS_DIRS = (CHANGES_DIR, PROMPTS_DIR, LOGS_DIR)


@dataclass
class CleanupResult:
    files_removed: int = 0
    bytes_freed: int = 0
    removed_files: list[str] = field(default_factory=list)


@dataclass
class StorageStats:
    total_files: int = 0
    total_size_kb: float = 0.0
    oldest_file: Optional[str] = None
    newest_file: Optional[str] = None
    files_by_dir: dict[str, int] = field(default_factory=dict)


class CleanupManager:
    """Retention-based deletion of old shards.

    Attributes:
        hook_data_path: Directory holding changes/, prompts/ and logs/.
        retention_days: Days of shards to keep besides today.
        check_interval_hours: Minimum gap between automatic cleanups.
        enabled: Whether ``try_cleanup`` runs without ``force``.
    """

    def __init__(
        self,
        hook_data_path: Union[str, Path],
        retention_days: int = DEFAULT_RETENTION_DAYS,
        check_interval_hours: int = DEFAULT_CHECK_INTERVAL_HOURS,
        enabled: bool = True,
        today: Callable[[], date] = date.today,
    ) -> None:
        if retention_days < 0:
            raise InvalidConfigError("retention_days", retention_days, "must be non-negative")
        self.hook_data_path = Path(hook_data_path)
        self.retention_days = retention_days
        self.check_interval_hours = check_interval_hours
        self.enabled = enabled
        self._today = today
        self._last_cleanup = 0.0

    @property
    def last_cleanup_time(self) -> float:
        return self._last_cleanup

    def reset_last_cleanup_time(self) -> None:
        self._last_cleanup = 0.0

    def is_cleanup_due(self) -> bool:
        if not self.enabled:
            return False
        return time.time() - self._last_cleanup >= self.check_interval_hours * 3600

    def try_cleanup(self, force: bool = False) -> Optional[CleanupResult]:
        """Run cleanup if enabled and the interval has elapsed, or if forced.

        Returns:
            The cleanup result, or None when skipped.
        """
        if not force and not self.is_cleanup_due():
            return None

        result = self.cleanup(self.retention_days)
        self._last_cleanup = time.time()
        return result

    def cleanup(self, retention_days: Optional[int] = None) -> CleanupResult:
        """Delete shards dated strictly before ``today - retention_days``.

        Raises:
            StorageError: If an expired shard exists but cannot be deleted
        """
        if retention_days is None:
            retention_days = self.retention_days
        if retention_days < 0:
            raise InvalidConfigError("retention_days", retention_days, "must be non-negative")

        cutoff = self._today() - timedelta(days=retention_days)
        result = CleanupResult()

        for dir_name in CLEANUP_DIRS:
            for path in list_shard_files(self.hook_data_path / dir_name):
                shard_date = parse_shard_date(path.name)
                if shard_date is None or shard_date >= cutoff:
                    continue
                try:
                    size = path.stat().st_size
                    path.unlink()
                except FileNotFoundError:
                    # Removed by a concurrent cleanup
                    continue
                except OSError as e:
                    raise StorageError(path, e.strerror or str(e)) from e
                release_lock(path)

                result.files_removed += 1
                result.bytes_freed += size
                result.removed_files.append(f"{dir_name}/{path.name}")

        if result.files_removed:
            logger.info(
                f"Cleaned up {result.files_removed} shard(s), "
                f"{result.bytes_freed / 1024:.1f} KB freed (retention {retention_days}d)"
            )
        else:
            logger.debug("Cleanup found no expired shards")

        return result

    def stats(self) -> StorageStats:
        """File counts, total size and date range over changes/prompts/logs."""
        stats = StorageStats()
        oldest: Optional[date] = None
        newest: Optional[date] = None
        total_bytes = 0

        for dir_name in STATS_DIRS:
            directory = self.hook_data_path / dir_name
            stats.files_by_dir[dir_name] = 0
            if not directory.is_dir():
                continue

            for path in sorted(directory.glob("*.jsonl")):
                try:
                    size = path.stat().st_size
                except FileNotFoundError:
                    continue
                stats.total_files += 1
                stats.files_by_dir[dir_name] += 1
                total_bytes += size

                shard_date = parse_shard_date(path.name)
                if shard_date is None:
                    continue
                label = f"{dir_name}/{path.name}"
                if oldest is None or shard_date < oldest:
                    oldest = shard_date
                    stats.oldest_file = label
                if newest is None or shard_date > newest:
                    newest = shard_date
                    stats.newest_file = label

        stats.total_size_kb = round(total_bytes / 1024, 2)
        return stats
