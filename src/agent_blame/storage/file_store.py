"""Date-sharded JSONL store for agent hook data.

Layout under the project root::

    .agent-blame/data/hooks/
    ├── changes/{YYYY-MM-DD}.jsonl
    ├── prompts/{YYYY-MM-DD}.jsonl
    ├── logs/performance.jsonl
    └── reports/{YYYY-MM-DD}/report-{id}.json

The store never caches: every read goes back to the shard files. Lines that
fail to decode are skipped; OS errors surface as StorageError.
"""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar, Union

from ..logging_config import get_logger
from ..models import CodeChangeRecord, PromptRecord
from .base import RecordStore
from .shards import (
    append_line,
    generate_id,
    local_date,
    now_ms,
    parse_shard_date,
    read_lines,
    shard_name,
    shard_name_for_day,
)

logger = get_logger(__name__)

T = TypeVar("T")

DATA_SUBDIR = "data"
HOOKS_SUBDIR = "hooks"
CHANGES_DIR = "changes"
PROMPTS_DIR = "prompts"
LOGS_DIR = "logs"
REPORTS_DIR = "reports"


class FileRecordStore(RecordStore):
    """Sharded, append-only record store.

    Usage::

        store = FileRecordStore("/path/to/project")
        store.append_code_change(record)
        recent = store.get_recent_code_changes(3)
    """

    def __init__(
        self,
        project_root: Union[str, Path],
        data_dir: str = ".agent-blame",
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.project_root = Path(project_root)
        self.base_path = self.project_root / data_dir
        self.hook_data_path = self.base_path / DATA_SUBDIR / HOOKS_SUBDIR
        self._clock = clock

    @property
    def changes_dir(self) -> Path:
        return self.hook_data_path / CHANGES_DIR

    @property
    def prompts_dir(self) -> Path:
        return self.hook_data_path / PROMPTS_DIR

    @property
    def logs_dir(self) -> Path:
        return self.hook_data_path / LOGS_DIR

    @property
    def reports_dir(self) -> Path:
        return self.hook_data_path / REPORTS_DIR

    def initialize(self) -> None:
        """Create the shard directories and keep them out of git."""
        for directory in (self.changes_dir, self.prompts_dir, self.logs_dir, self.reports_dir):
            directory.mkdir(parents=True, exist_ok=True)
        gitignore = self.base_path / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text("*\n")

    # ── Writes ──────────────────────────────────────────────────────

    def append_code_change(self, record: CodeChangeRecord) -> CodeChangeRecord:
        if record.id is None:
            record = replace(record, id=generate_id(record.timestamp))
        path = self.changes_dir / shard_name(record.timestamp)
        append_line(path, _encode(record.to_dict()))
        return record

    def append_prompt(self, record: PromptRecord) -> None:
        path = self.prompts_dir / shard_name(record.timestamp)
        append_line(path, _encode(record.to_dict()))

    # ── Reads ───────────────────────────────────────────────────────

    def get_recent_code_changes(self, days: int) -> list[CodeChangeRecord]:
        return list(self._read_days(self.changes_dir, days, CodeChangeRecord.from_dict))

    def get_recent_prompts(self, days: int) -> list[PromptRecord]:
        return list(self._read_days(self.prompts_dir, days, PromptRecord.from_dict))

    def get_all_code_changes(self) -> list[CodeChangeRecord]:
        return list(self._read_all(self.changes_dir, CodeChangeRecord.from_dict))

    def get_code_changes_by_session(self, session_id: str) -> list[CodeChangeRecord]:
        return [
            change
            for change in self._read_all(self.changes_dir, CodeChangeRecord.from_dict)
            if change.session_id == session_id
        ]

    def get_prompts_by_session(self, session_id: str) -> list[PromptRecord]:
        prompts = [
            prompt
            for prompt in self._read_all(self.prompts_dir, PromptRecord.from_dict)
            if prompt.session_id == session_id
        ]
        return sorted(prompts, key=lambda p: p.timestamp)

    def get_latest_prompt_before(self, session_id: str, before_timestamp: int) -> Optional[str]:
        latest: Optional[PromptRecord] = None
        for prompt in self._read_all(self.prompts_dir, PromptRecord.from_dict):
            if prompt.session_id != session_id or prompt.timestamp > before_timestamp:
                continue
            if latest is None or prompt.timestamp > latest.timestamp:
                latest = prompt
        return latest.prompt if latest else None

    def recent_shard_paths(self, directory: Path, days: int) -> list[Path]:
        """Shard paths for today back through ``days - 1`` days (existing or not)."""
        today = local_date(self._clock())
        return [directory / shard_name_for_day(today - timedelta(days=i)) for i in range(days)]

    def shard_size_kb(self, days: int) -> float:
        """Combined size of the recent change shards that exist."""
        total = 0
        for path in self.recent_shard_paths(self.changes_dir, days):
            try:
                total += path.stat().st_size
            except FileNotFoundError:
                continue
        return total / 1024

    def _read_days(
        self, directory: Path, days: int, decode: Callable[[dict], T]
    ) -> Iterator[T]:
        for path in self.recent_shard_paths(directory, days):
            yield from _decode_shard(path, decode)

    def _read_all(self, directory: Path, decode: Callable[[dict], T]) -> Iterator[T]:
        for path in list_shard_files(directory):
            yield from _decode_shard(path, decode)


def _encode(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def list_shard_files(directory: Path) -> list[Path]:
    """Existing shard files in date order; non-shard names are ignored."""
    if not directory.is_dir():
        return []
    dated: list[tuple[date, Path]] = []
    for path in directory.iterdir():
        shard_date = parse_shard_date(path.name)
        if shard_date is not None and path.is_file():
            dated.append((shard_date, path))
    return [path for _, path in sorted(dated)]


def _decode_shard(path: Path, decode: Callable[[dict], T]) -> Iterator[T]:
    for line in read_lines(path):
        try:
            data = json.loads(line)
            if not isinstance(data, dict):
                raise TypeError("record is not a JSON object")
            yield decode(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed record in {path.name}: {e}")
