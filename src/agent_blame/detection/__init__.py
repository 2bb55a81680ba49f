"""Hunk attribution: similarity scoring, filtering and classification."""

from .added_lines import compute_added_lines, to_agent_record
from .detector import ContributorDetector, DetectionSummary, calculate_confidence, classify
from .matcher import LevenshteinMatcher, levenshtein_distance, normalize_line

__all__ = [
    "ContributorDetector",
    "DetectionSummary",
    "LevenshteinMatcher",
    "calculate_confidence",
    "classify",
    "compute_added_lines",
    "levenshtein_distance",
    "normalize_line",
    "to_agent_record",
]
