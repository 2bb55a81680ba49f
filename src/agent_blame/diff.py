"""Unified diff parsing into detector Hunks.

Working-tree changes come from ``git diff``; each ``@@`` hunk with added
lines becomes one Hunk whose start line is the new-file line number of its
first added line.
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .logging_config import get_logger
from .models import Hunk

logger = get_logger(__name__)

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
DIFF_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")


@dataclass
class ParsedHunk:
    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    added_lines: list[str] = field(default_factory=list)
    removed_lines: list[str] = field(default_factory=list)
    first_added_line: Optional[int] = None
    # (new-file start line, lines) for each block of consecutive added lines
    added_runs: list[tuple[int, list[str]]] = field(default_factory=list)


@dataclass
class FileDiff:
    file_path: str
    old_file_path: Optional[str] = None
    change_type: str = "modified"  # added | modified | deleted | renamed
    is_binary: bool = False
    hunks: list[ParsedHunk] = field(default_factory=list)


def parse_unified_diff(text: str) -> list[FileDiff]:
    """Parse ``git diff`` output into per-file diffs."""
    files: list[FileDiff] = []
    current: Optional[FileDiff] = None
    hunk: Optional[ParsedHunk] = None
    new_line = 0

    for line in text.splitlines():
        header = DIFF_HEADER_RE.match(line)
        if header:
            old_path, new_path = header.group(1), header.group(2)
            current = FileDiff(
                file_path=new_path,
                old_file_path=old_path if old_path != new_path else None,
            )
            files.append(current)
            hunk = None
            continue
        if current is None:
            continue

        match = HUNK_HEADER_RE.match(line)
        if match:
            hunk = ParsedHunk(
                header=line,
                old_start=int(match.group(1)),
                old_lines=int(match.group(2) or 1),
                new_start=int(match.group(3)),
                new_lines=int(match.group(4) or 1),
            )
            current.hunks.append(hunk)
            new_line = hunk.new_start
            continue

        if hunk is None:
            # Extended header lines between "diff --git" and the first hunk
            if line.startswith("new file mode"):
                current.change_type = "added"
            elif line.startswith("deleted file mode"):
                current.change_type = "deleted"
            elif line.startswith("rename from"):
                current.change_type = "renamed"
            elif line.startswith("Binary files") or line.startswith("GIT binary patch"):
                current.is_binary = True
            continue

        if line.startswith("+"):
            if hunk.first_added_line is None:
                hunk.first_added_line = new_line
            last_run = hunk.added_runs[-1] if hunk.added_runs else None
            if last_run is not None and last_run[0] + len(last_run[1]) == new_line:
                last_run[1].append(line[1:])
            else:
                hunk.added_runs.append((new_line, [line[1:]]))
            hunk.added_lines.append(line[1:])
            new_line += 1
        elif line.startswith("-"):
            hunk.removed_lines.append(line[1:])
        elif line.startswith("\\"):
            # "\ No newline at end of file"
            continue
        else:
            new_line += 1

    return files


def hunks_from_diff(text: str) -> list[Hunk]:
    """Detector hunks, one per block of consecutive added lines.

    Context lines inside a ``@@`` hunk split it, so every Hunk covers a
    contiguous new-file line range.
    """
    hunks: list[Hunk] = []
    for file_diff in parse_unified_diff(text):
        if file_diff.is_binary or file_diff.change_type == "deleted":
            continue
        for parsed in file_diff.hunks:
            for start_line, lines in parsed.added_runs:
                hunks.append(
                    Hunk(
                        file_path=file_diff.file_path,
                        added_lines=list(lines),
                        start_line=start_line,
                    )
                )
    return hunks


def git_diff(repo_path: Union[str, Path], ref: str = "HEAD") -> Optional[str]:
    """Working tree diff against ``ref``. Returns None outside a git repo."""
    cmd = ["git", "-C", str(repo_path), "diff", "--no-color", "--no-ext-diff", ref]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning(f"git diff error: {e}")
        return None

    if result.returncode != 0:
        logger.warning(f"git diff failed: {result.stderr.strip()}")
        return None
    return result.stdout
