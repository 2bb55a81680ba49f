"""Persistence for agent hook data: sharded store and retention cleanup."""

from .base import RecordStore
from .cleanup import CleanupManager, CleanupResult, StorageStats
from .file_store import FileRecordStore
from .shards import format_date, generate_id, parse_shard_date, shard_name

__all__ = [
    "RecordStore",
    "FileRecordStore",
    "CleanupManager",
    "CleanupResult",
    "StorageStats",
    "format_date",
    "generate_id",
    "parse_shard_date",
    "shard_name",
]
