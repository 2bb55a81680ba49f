"""Tests for detection/detector.py - filtering pipeline and classification."""

import time

import pytest

from agent_blame.config import DetectorConfig
from agent_blame.detection.detector import ContributorDetector, calculate_confidence, classify
from agent_blame.models import ContributorResult, ContributorType
from agent_blame.performance.log import PerformanceLog

from conftest import NOW_MS, SUM_FUNCTION, days_ago, make_hunk, make_record


@pytest.fixture
def detector(clock):
    return ContributorDetector(clock=clock)


class TestScenarios:
    def test_exact_ai_match(self, detector):
        record = make_record(SUM_FUNCTION)
        result = detector.detect(make_hunk(SUM_FUNCTION), [record])

        assert result.contributor is ContributorType.AI
        assert result.similarity == 1.0
        assert result.confidence == 1.0
        assert result.matched_record is record

    def test_unrelated_file(self, detector):
        record = make_record(SUM_FUNCTION, file_path="/src/utils.ts")
        hunk = make_hunk(SUM_FUNCTION, file_path="/src/manual.ts")

        result = detector.detect(hunk, [record], enable_tracking=True)

        assert result.contributor is ContributorType.HUMAN
        assert result.similarity == 0.0
        assert result.matched_record is None
        filtering = result.performance_metrics.filtering
        assert filtering.file_path_candidates == 0
        assert filtering.time_window_candidates == 0
        assert filtering.length_candidates == 0
        assert filtering.time_window_ms == 0.0
        assert filtering.length_ms == 0.0
        assert result.performance_metrics.similarity.call_count == 0

    def test_length_filtered_candidate(self, detector):
        hunk = make_hunk(["const x = 42;"])  # 13 characters
        long_record = make_record(["x" * 95], record_id="long")
        result = detector.detect(hunk, [long_record], enable_tracking=True)

        filtering = result.performance_metrics.filtering
        assert filtering.time_window_candidates == 1
        assert filtering.length_candidates == 0
        assert result.performance_metrics.similarity.call_count == 0
        assert result.contributor is ContributorType.HUMAN

    def test_aged_out_candidate(self, detector):
        record = make_record(SUM_FUNCTION, timestamp=days_ago(5))
        result = detector.detect(make_hunk(SUM_FUNCTION), [record], enable_tracking=True)

        assert result.contributor is ContributorType.HUMAN
        assert result.similarity == 0.0
        assert result.performance_metrics.filtering.file_path_candidates == 1
        assert result.performance_metrics.filtering.time_window_candidates == 0

    def test_modified_ai_code(self, detector):
        original = ["function add(a, b) {", "  return a + b;", "}"]
        edited = ["function add(a, b) {", "  return a + b + 0;", "}"]
        result = detector.detect(make_hunk(edited), [make_record(original)])

        assert result.contributor is ContributorType.AI
        assert 0.9 <= result.similarity < 1.0

    def test_heavily_edited_is_ai_modified(self, detector):
        original = ["const total = items.reduce((sum, item) => sum + item.price, 0);"]
        edited = ["const total = items.reduce((acc, it) => acc + it.price, 0);"]
        result = detector.detect(make_hunk(edited), [make_record(original)])

        assert result.contributor is ContributorType.AI_MODIFIED
        assert 0.7 <= result.similarity < 0.9
        assert result.matched_record is not None


class TestFiltering:
    def test_path_match_is_case_sensitive(self, detector):
        record = make_record(SUM_FUNCTION, file_path="/src/Utils.ts")
        result = detector.detect(make_hunk(SUM_FUNCTION, file_path="/src/utils.ts"), [record])
        assert result.contributor is ContributorType.HUMAN

    def test_time_window_boundary_is_inclusive(self, detector):
        record = make_record(SUM_FUNCTION, timestamp=days_ago(3))
        result = detector.detect(make_hunk(SUM_FUNCTION), [record])
        assert result.contributor is ContributorType.AI

    def test_just_outside_time_window(self, detector):
        record = make_record(SUM_FUNCTION, timestamp=days_ago(3) - 1)
        result = detector.detect(make_hunk(SUM_FUNCTION), [record])
        assert result.contributor is ContributorType.HUMAN

    def test_length_ratio_boundary(self, detector):
        hunk = make_hunk(["a" * 10])
        at_limit = make_record(["a" * 15], record_id="at-limit")
        over_limit = make_record(["a" * 16], record_id="over-limit")
        result = detector.detect(hunk, [at_limit, over_limit], enable_tracking=True)
        assert result.performance_metrics.filtering.length_candidates == 1

    def test_empty_record_content_is_excluded(self, detector):
        hunk = make_hunk(["x = 1"])
        result = detector.detect(hunk, [make_record([])], enable_tracking=True)
        assert result.performance_metrics.filtering.length_candidates == 0

    def test_monotonic_candidate_counts(self, detector):
        records = [
            make_record(SUM_FUNCTION, record_id="exact"),
            make_record(SUM_FUNCTION, record_id="old", timestamp=days_ago(10)),
            make_record(["y" * 500], record_id="long"),
            make_record(SUM_FUNCTION, record_id="other-file", file_path="/other.ts"),
        ]
        result = detector.detect(make_hunk(SUM_FUNCTION), records, enable_tracking=True)

        metrics = result.performance_metrics
        f = metrics.filtering
        assert len(records) >= f.file_path_candidates >= f.time_window_candidates
        assert f.time_window_candidates >= f.length_candidates >= metrics.similarity.call_count
        assert (f.file_path_candidates, f.time_window_candidates, f.length_candidates) == (3, 2, 1)

    def test_first_record_wins_ties(self, detector):
        first = make_record(SUM_FUNCTION, record_id="first")
        second = make_record(SUM_FUNCTION, record_id="second")
        result = detector.detect(make_hunk(SUM_FUNCTION), [first, second])
        assert result.matched_record.id == "first"

    def test_best_of_several(self, detector):
        weak = make_record(["function calculateSum(x, y) {", "  return x * y;", "}"], record_id="weak")
        exact = make_record(SUM_FUNCTION, record_id="exact")
        result = detector.detect(make_hunk(SUM_FUNCTION), [weak, exact])
        assert result.matched_record.id == "exact"


class TestEmptyHunk:
    def test_empty_hunk_is_human(self, detector):
        result = detector.detect(make_hunk([]), [make_record(SUM_FUNCTION)])
        assert result.contributor is ContributorType.HUMAN
        assert result.similarity == 0.0
        assert result.confidence == 1.0

    def test_empty_hunk_runs_no_stage(self, detector):
        result = detector.detect(make_hunk([]), [make_record(SUM_FUNCTION)], enable_tracking=True)
        filtering = result.performance_metrics.filtering
        assert filtering.total_ms == 0.0
        assert filtering.file_path_candidates == 0


class TestDeterminism:
    def test_repeated_calls_identical(self, detector):
        records = [
            make_record(["const a = 1;", "const b = 2;"], record_id="r1"),
            make_record(["const a = 1;", "const c = 3;"], record_id="r2"),
        ]
        hunk = make_hunk(["const a = 1;", "const b = 3;"])
        results = [detector.detect(hunk, records) for _ in range(5)]

        assert len({(r.contributor, r.similarity, r.confidence) for r in results}) == 1


class TestClassify:
    def test_threshold_boundaries(self):
        assert classify(0.90) is ContributorType.AI
        assert classify(0.70) is ContributorType.AI_MODIFIED
        assert classify(0.8999) is ContributorType.AI_MODIFIED
        assert classify(0.6999) is ContributorType.HUMAN

    def test_custom_thresholds(self):
        config = DetectorConfig(threshold_pure_ai=0.8, threshold_ai_modified=0.5)
        assert classify(0.8, config) is ContributorType.AI
        assert classify(0.5, config) is ContributorType.AI_MODIFIED
        assert classify(0.49, config) is ContributorType.HUMAN

    def test_detector_uses_config_thresholds(self, clock):
        config = DetectorConfig(threshold_pure_ai=0.99, threshold_ai_modified=0.95)
        detector = ContributorDetector(config, clock=clock)
        edited = ["function add(a, b) {", "  return a + b + 0;", "}"]
        original = ["function add(a, b) {", "  return a + b;", "}"]
        result = detector.detect(make_hunk(edited), [make_record(original)])
        assert result.contributor is ContributorType.HUMAN
        assert result.matched_record is None


class TestConfidence:
    def test_ai_at_threshold(self):
        assert calculate_confidence(0.9, ContributorType.AI) == pytest.approx(0.5)

    def test_ai_identical(self):
        assert calculate_confidence(1.0, ContributorType.AI) == pytest.approx(1.0)

    def test_ai_modified_band(self):
        assert calculate_confidence(0.7, ContributorType.AI_MODIFIED) == pytest.approx(0.5)
        assert calculate_confidence(0.8, ContributorType.AI_MODIFIED) == pytest.approx(0.65)

    def test_human_zero_similarity(self):
        assert calculate_confidence(0.0, ContributorType.HUMAN) == 1.0

    def test_human_floor(self):
        assert calculate_confidence(0.6, ContributorType.HUMAN) == pytest.approx(0.3)
        assert calculate_confidence(0.35, ContributorType.HUMAN) == pytest.approx(0.5)

    def test_ai_threshold_of_one(self):
        config = DetectorConfig(threshold_pure_ai=1.0, threshold_ai_modified=0.7)
        assert calculate_confidence(1.0, ContributorType.AI, config) == 1.0


class TestBatch:
    def test_detect_batch_keeps_order(self, detector):
        hunks = [
            make_hunk(["const a = 1;"], file_path="file1.ts"),
            make_hunk(["const b = 2;"], file_path="file2.ts"),
        ]
        records = [make_record(["const a = 1;"], file_path="file1.ts")]

        results = detector.detect_batch(hunks, records)

        assert [r.contributor for r in results] == [ContributorType.AI, ContributorType.HUMAN]

    def test_detect_batch_tracking(self, detector):
        results = detector.detect_batch(
            [make_hunk(SUM_FUNCTION)], [make_record(SUM_FUNCTION)], enable_tracking=True
        )
        assert results[0].performance_metrics is not None

    def test_summarize(self):
        results = [
            ContributorResult(ContributorType.AI, similarity=0.95, confidence=0.8),
            ContributorResult(ContributorType.AI, similarity=0.92, confidence=0.75),
            ContributorResult(ContributorType.AI_MODIFIED, similarity=0.8, confidence=0.6),
            ContributorResult(ContributorType.HUMAN, similarity=0.3, confidence=0.9),
        ]

        summary = ContributorDetector.summarize(results)

        assert (summary.total, summary.ai, summary.ai_modified, summary.human) == (4, 2, 1, 1)
        assert summary.average_similarity == pytest.approx(0.7425)
        assert summary.to_dict()["ai_modified"] == 1

    def test_summarize_empty(self):
        summary = ContributorDetector.summarize([])
        assert summary.total == 0
        assert summary.average_similarity == 0.0


class TestTrackingAndLog:
    def test_no_metrics_without_tracking(self, detector):
        result = detector.detect(make_hunk(SUM_FUNCTION), [make_record(SUM_FUNCTION)])
        assert result.performance_metrics is None

    def test_result_metrics(self, detector):
        result = detector.detect(
            make_hunk(SUM_FUNCTION), [make_record(SUM_FUNCTION)], enable_tracking=True
        )
        metrics = result.performance_metrics
        assert metrics.file_path == "/src/utils.ts"
        assert metrics.hunk_line_count == 3
        assert metrics.result.best_similarity == 1.0
        assert metrics.result.matched is True
        assert metrics.result.candidates_processed == 1
        assert metrics.similarity.call_count == 1

    def test_appends_to_performance_log(self, tmp_path, clock):
        log = PerformanceLog(tmp_path / "logs")
        detector = ContributorDetector(performance_log=log, clock=clock)
        detector.detect(make_hunk(SUM_FUNCTION), [make_record(SUM_FUNCTION)], enable_tracking=True)
        detector.detect(make_hunk(["other"], file_path="/x.ts"), [], enable_tracking=True)
        detector.detect(make_hunk(SUM_FUNCTION), [make_record(SUM_FUNCTION)])

        entries = log.read_entries()
        assert len(entries) == 2
        assert entries[0]["result"]["matched"] is True
        assert entries[1]["result"]["matched"] is False

    def test_slow_detection_warns(self, clock, caplog):
        config = DetectorConfig(performance_threshold_ms=0.001)
        detector = ContributorDetector(config, clock=clock)
        records = [make_record(["z" * 200], record_id=f"r{i}") for i in range(20)]

        with caplog.at_level("WARNING", logger="agent_blame"):
            result = detector.detect(make_hunk(["z" * 190]), records, enable_tracking=True)

        assert result.performance_metrics.warning is True
        assert result.performance_metrics.analysis is not None
        assert any("Slow detection" in r.message for r in caplog.records)


@pytest.mark.slow
class TestBenchmark:
    def test_500_records_target_last(self):
        now = int(time.time() * 1000)
        detector = ContributorDetector()
        records = [
            make_record(
                [f"export function helper{i}(value) {{", f"  return value * {i};", "}"],
                record_id=f"r{i}",
                timestamp=now - i * 1000,
            )
            for i in range(499)
        ]
        target = ["export function target(value) {", "  return value + 499;", "}"]
        records.append(make_record(target, record_id="r499", timestamp=now))

        result = detector.detect(make_hunk(target), records, enable_tracking=True)

        assert result.contributor is ContributorType.AI
        assert result.matched_record.id == "r499"
        assert result.performance_metrics.total_ms < 500
