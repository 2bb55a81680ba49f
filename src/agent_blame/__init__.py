"""
Agent Blame - line-level attribution of uncommitted code

Compares working-tree hunks against code-change records captured from AI
coding agents and classifies each hunk as AI, AI-modified or human.
"""

__version__ = "0.1.0"

from .config import AttributionConfig, DetectorConfig, load_config
from .detection import ContributorDetector, LevenshteinMatcher
from .models import (
    AgentRecord,
    CodeChangeRecord,
    ContributorResult,
    ContributorType,
    Hunk,
    PromptRecord,
)
from .service import AttributionService
from .storage import CleanupManager, FileRecordStore

__all__ = [
    "AttributionService",  # Main entry point
    "ContributorDetector",  # Direct engine access
    "LevenshteinMatcher",
    "FileRecordStore",
    "CleanupManager",
    "AttributionConfig",
    "DetectorConfig",
    "load_config",
    "AgentRecord",
    "CodeChangeRecord",
    "ContributorResult",
    "ContributorType",
    "Hunk",
    "PromptRecord",
]
