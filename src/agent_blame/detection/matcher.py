"""Levenshtein-based similarity between two text blocks.

similarity(a, b) = 1 - distance(a, b) / max(len(a), len(b))

Two empty strings score 1.0; one empty and one non-empty score 0.0.
Distance is unit-cost insertion/deletion/substitution over code points.
"""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from ..performance.tracker import PerformanceTracker

_WHITESPACE_RE = re.compile(r"[ \t]+")


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance using two rolling rows (O(min(m, n)) memory)."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current
    return previous[-1]


def normalize_line(line: str) -> str:
    """Trim a line and collapse runs of spaces/tabs."""
    return _WHITESPACE_RE.sub(" ", line.strip())


class LevenshteinMatcher:
    """Scores hunk content against candidate record content."""

    def calculate(self, a: str, b: str, tracker: Optional[PerformanceTracker] = None) -> float:
        """Similarity in [0, 1]; 1.0 means identical.

        Args:
            a: First text block
            b: Second text block
            tracker: If given, the call's duration and compared length are recorded
        """
        start = time.perf_counter() if tracker is not None else 0.0

        if a == b:
            similarity = 1.0
        elif not a or not b:
            similarity = 0.0
        else:
            distance = levenshtein_distance(a, b)
            similarity = 1.0 - distance / max(len(a), len(b))

        if tracker is not None:
            duration_ms = (time.perf_counter() - start) * 1000
            tracker.record_similarity_call(duration_ms, max(len(a), len(b)))

        return similarity

    def calculate_lines(
        self, lines_a: Sequence[str], lines_b: Sequence[str], normalize: bool = False
    ) -> float:
        """Similarity of two line lists joined with newlines.

        With ``normalize``, each line is trimmed and its internal whitespace
        collapsed first, so indentation-only edits score as identical.
        """
        if normalize:
            lines_a = [normalize_line(line) for line in lines_a]
            lines_b = [normalize_line(line) for line in lines_b]
        return self.calculate("\n".join(lines_a), "\n".join(lines_b))

    def find_best_match(
        self, target: str, candidates: Sequence[str]
    ) -> Optional[tuple[str, float, int]]:
        """Best-scoring candidate as (candidate, similarity, index).

        Ties keep the earliest candidate. Returns None for an empty list.
        """
        if not candidates:
            return None

        best_index = 0
        best_similarity = self.calculate(target, candidates[0])
        for index in range(1, len(candidates)):
            similarity = self.calculate(target, candidates[index])
            if similarity > best_similarity:
                best_index = index
                best_similarity = similarity

        return candidates[best_index], best_similarity, best_index
