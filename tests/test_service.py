"""Tests for service.py - the attribution facade over store, cache and detector."""

import pytest

from agent_blame.config import AttributionConfig, DetectorConfig, MS_PER_DAY
from agent_blame.models import ContributorType, PromptRecord
from agent_blame.report import validate_report
from agent_blame.service import AttributionService
from agent_blame.storage.shards import shard_name

from conftest import NOW_MS, SUM_FUNCTION, make_change, make_hunk

DIFF = """\
diff --git a/src/utils.ts b/src/utils.ts
--- a/src/utils.ts
+++ b/src/utils.ts
@@ -1,1 +1,4 @@
 // utils
+function calculateSum(a, b) {
+  return a + b;
+}
diff --git a/src/manual.ts b/src/manual.ts
--- a/src/manual.ts
+++ b/src/manual.ts
@@ -0,0 +1 @@
+console.log("written by hand");
"""


def _service(tmp_path, **overrides):
    config = AttributionConfig(cache_dir=str(tmp_path / "cache"), **overrides)
    return AttributionService(tmp_path, config, clock=lambda: NOW_MS)


@pytest.fixture
def service(tmp_path):
    svc = _service(tmp_path)
    svc.store.initialize()
    yield svc
    svc.close()


class TestLoadAgentRecords:
    def test_builds_records_with_prompts(self, service):
        service.record_prompt(PromptRecord("session-1", "first ask", NOW_MS - 50_000))
        service.record_prompt(PromptRecord("session-1", "second ask", NOW_MS - 20_000))
        service.record_code_change(make_change("a = 1", timestamp=NOW_MS - 30_000))
        service.record_code_change(make_change("b = 2", timestamp=NOW_MS - 10_000))

        records = sorted(service.load_agent_records(), key=lambda r: r.timestamp)
        assert [r.session_source.metadata.user_prompt for r in records] == [
            "first ask", "second ask",
        ]
        assert [r.session_source.qa_index for r in records] == [1, 2]

    def test_change_without_prompt(self, service):
        service.record_code_change(make_change("a = 1"))
        (record,) = service.load_agent_records()
        assert record.session_source.metadata.user_prompt is None
        assert record.session_source.qa_index == 1

    def test_skips_failed_changes(self, service):
        service.record_code_change(make_change("a = 1", success=False))
        assert service.load_agent_records() == []

    def test_reads_window_plus_start_day(self, service):
        service.record_code_change(make_change("edge", timestamp=NOW_MS - 3 * MS_PER_DAY))
        service.record_code_change(make_change("old", timestamp=NOW_MS - 5 * MS_PER_DAY))
        assert [r.content for r in service.load_agent_records()] == ["edge"]

    def test_cache_sees_direct_shard_appends(self, service):
        service.record_code_change(make_change("a = 1"))
        assert len(service.load_agent_records()) == 1
        # Bypass the service so only the shard stat changes
        service.store.append_code_change(make_change("b = 2"))
        assert len(service.load_agent_records()) == 2

    def test_tracker_charged_for_loading(self, service):
        service.record_code_change(make_change("a = 1"))
        tracker = service.detector.new_tracker()
        service.load_agent_records(tracker)
        assert tracker.metrics.data_loading.record_count == 1
        assert tracker.metrics.data_loading.file_size_kb > 0


class TestDetect:
    def test_ai_and_human(self, service):
        service.record_code_change(
            make_change("\n".join(SUM_FUNCTION), file_path="src/utils.ts", timestamp=NOW_MS - 1000)
        )

        results = service.detect_diff(DIFF)
        verdicts = {hunk.file_path: result.contributor for hunk, result in results}
        assert verdicts == {"src/utils.ts": ContributorType.AI, "src/manual.ts": ContributorType.HUMAN}

    def test_absolute_change_path_matches_diff_path(self, service, tmp_path):
        stored = service.record_code_change(
            make_change(
                "\n".join(SUM_FUNCTION),
                file_path=str(tmp_path / "src" / "utils.ts"),
                timestamp=NOW_MS - 1000,
            )
        )
        assert stored.file_path == "src/utils.ts"

        hunk, result = service.detect_diff(DIFF)[0]
        assert hunk.file_path == "src/utils.ts"
        assert result.contributor is ContributorType.AI
        assert result.similarity == 1.0

    def test_absolute_hunk_path_matches_stored_path(self, service, tmp_path):
        service.record_code_change(
            make_change("\n".join(SUM_FUNCTION), file_path="src/utils.ts", timestamp=NOW_MS - 1000)
        )
        hunk = make_hunk(SUM_FUNCTION, file_path=str(tmp_path / "src" / "utils.ts"))
        assert service.detect(hunk).contributor is ContributorType.AI

    def test_tracking_logs_performance(self, service):
        service.detect(make_hunk(SUM_FUNCTION), enable_tracking=True)
        service.detect(make_hunk(SUM_FUNCTION), enable_tracking=False)
        assert service.performance_summary().count == 1

    def test_tracking_from_config(self, tmp_path):
        service = _service(tmp_path, enable_tracking=True)
        result = service.detect(make_hunk(SUM_FUNCTION))
        assert result.performance_metrics is not None
        service.close()

    def test_performance_log_disabled(self, tmp_path):
        service = _service(tmp_path, log_performance=False)
        service.detect(make_hunk(SUM_FUNCTION), enable_tracking=True)
        assert not service.performance_log.path.exists()
        service.close()

    def test_detector_config_applies(self, tmp_path):
        service = _service(tmp_path, detector=DetectorConfig(time_window_days=0))
        service.record_code_change(make_change("\n".join(SUM_FUNCTION), timestamp=NOW_MS - 1000))
        result = service.detect(make_hunk(SUM_FUNCTION))
        assert result.contributor is ContributorType.HUMAN
        service.close()


class TestCleanup:
    def test_automatic_cleanup_on_load(self, service):
        service.record_code_change(make_change("ancient", timestamp=NOW_MS - 30 * MS_PER_DAY))
        service.load_agent_records()
        assert not (service.store.changes_dir / shard_name(NOW_MS - 30 * MS_PER_DAY)).exists()

    def test_auto_cleanup_disabled(self, tmp_path):
        service = _service(tmp_path, auto_cleanup=False)
        service.record_code_change(make_change("ancient", timestamp=NOW_MS - 30 * MS_PER_DAY))
        service.load_agent_records()
        assert (service.store.changes_dir / shard_name(NOW_MS - 30 * MS_PER_DAY)).exists()
        result = service.run_cleanup(force=True)
        assert result.files_removed == 1
        service.close()


class TestReports:
    def test_build_and_save(self, service):
        service.record_code_change(make_change("\n".join(SUM_FUNCTION)))
        hunk = make_hunk(SUM_FUNCTION, start_line=5)
        result = service.detect(hunk, enable_tracking=True)

        report = service.build_report(hunk, result)
        assert validate_report(report)
        assert report["timestamp"] == NOW_MS
        assert len(report["candidates"]) == 1
        assert report["performance"] is not None
        assert report["debug"] is None
        assert report["environment"]["editor_version"] == "cli"

        path = service.save_report(report)
        assert path.parent.parent == service.store.reports_dir

    def test_developer_mode_from_config(self, tmp_path):
        service = _service(tmp_path, developer_mode=True, max_report_candidates=2)
        for i in range(4):
            service.record_code_change(make_change(f"x = {i}", timestamp=NOW_MS - i * 1000))
        hunk = make_hunk(["x = 0"])
        report = service.build_report(hunk, service.detect(hunk))

        assert len(report["candidates"]) == 2
        assert len(report["debug"]["all_candidates"]) == 4
        service.close()

    def test_candidates_limited_to_hunk_file(self, service):
        service.record_code_change(make_change("x = 1", file_path="/src/other.ts"))
        hunk = make_hunk(["x = 1"])
        assert service.build_report(hunk, service.detect(hunk))["candidates"] == []
