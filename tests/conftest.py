"""Shared fixtures and factories for Agent Blame tests."""

from datetime import datetime

import pytest

from agent_blame.config import MS_PER_DAY
from agent_blame.models import AgentRecord, CodeChangeRecord, Hunk, SessionSource
from agent_blame.storage.file_store import FileRecordStore

# Local noon, so +/- a few hours never crosses a calendar day
NOW_MS = int(datetime(2026, 3, 15, 12, 0, 0).timestamp() * 1000)


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def days_ago(days: float, now: int = NOW_MS) -> int:
    return int(now - days * MS_PER_DAY)


def make_record(
    added_lines,
    file_path="/src/utils.ts",
    timestamp=None,
    record_id="rec-1",
    agent="claude-code",
    session_id="session-1",
):
    """AgentRecord whose new content is exactly its added lines."""
    if timestamp is None:
        timestamp = NOW_MS - 60_000
    return AgentRecord(
        id=record_id,
        session_source=SessionSource(
            agent=agent, session_id=session_id, qa_index=1, timestamp=timestamp
        ),
        file_path=file_path,
        content="\n".join(added_lines),
        added_lines=list(added_lines),
        timestamp=timestamp,
    )


def make_change(
    new_content,
    file_path="/src/utils.ts",
    timestamp=None,
    old_content=None,
    session_id="session-1",
    success=True,
    tool_name="Write",
):
    return CodeChangeRecord(
        session_id=session_id,
        agent="claude-code",
        timestamp=NOW_MS - 60_000 if timestamp is None else timestamp,
        tool_name=tool_name,
        file_path=file_path,
        old_content=old_content,
        new_content=new_content,
        success=success,
    )


def make_hunk(added_lines, file_path="/src/utils.ts", start_line=1):
    return Hunk(file_path=file_path, added_lines=list(added_lines), start_line=start_line)


@pytest.fixture
def now_ms():
    return NOW_MS


@pytest.fixture
def clock():
    return lambda: NOW_MS


@pytest.fixture
def store(tmp_path, clock):
    """Initialized file store rooted in a temp project."""
    file_store = FileRecordStore(tmp_path, clock=clock)
    file_store.initialize()
    return file_store


SUM_FUNCTION = ["function calculateSum(a, b) {", "  return a + b;", "}"]
