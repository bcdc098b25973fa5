"""
对齐引擎测试

覆盖：判定顺序、覆盖率计算、最近一次结果生效、报告原子写入
"""
from datetime import datetime, timedelta, timezone

import pytest

from specalign.core.errors import DatabaseError, NotFoundError
from specalign.database import queries
from specalign.database.models import AlignmentReport, GeneratedTest, TestResult
from specalign.models.enums import GenerationMode, MismatchType, TestFramework, TestStatus
from specalign.services.alignment import (
    calculate_coverage_percent,
    classify_requirement,
    generate_report,
)
from specalign.services.project_service import ProjectService
from specalign.services.spec_service import SpecService

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _add_test(store, requirement_id):
    with store.transaction() as session:
        test = queries.insert_generated_test(session, GeneratedTest(
            requirement_id=requirement_id,
            framework=TestFramework.PYTEST,
            code="def test_x(): pass\n",
            generation_mode=GenerationMode.TEMPLATE,
        ))
        return test.id


def _add_result(store, test_id, status, executed_at=T0):
    with store.transaction() as session:
        queries.insert_test_result(session, TestResult(
            generated_test_id=test_id,
            status=status,
            execution_time_ms=5,
            executed_at=executed_at,
        ))


class TestClassifyRequirement:
    """单条需求判定"""

    def test_no_tests(self):
        verdict = classify_requirement(0, [])
        assert verdict.covered is False
        assert verdict.mismatch_type == MismatchType.NO_TEST_GENERATED

    def test_tests_without_results(self):
        verdict = classify_requirement(2, [None, None])
        assert verdict.covered is False
        assert verdict.mismatch_type == MismatchType.NOT_IMPLEMENTED

    def test_all_passing(self):
        verdict = classify_requirement(2, [TestStatus.PASSED, None])
        assert verdict.covered is True
        assert verdict.mismatch_type is None

    def test_partial_coverage_counts_as_covered(self):
        verdict = classify_requirement(2, [TestStatus.PASSED, TestStatus.FAILED])
        assert verdict.covered is True
        assert verdict.mismatch_type == MismatchType.PARTIAL_COVERAGE

    def test_error_counts_as_failing(self):
        verdict = classify_requirement(1, [TestStatus.ERROR])
        assert verdict.covered is False
        assert verdict.mismatch_type == MismatchType.TEST_FAILING


class TestCoveragePercent:

    def test_zero_total(self):
        assert calculate_coverage_percent(0, 0) == 0.0

    def test_ratio(self):
        assert calculate_coverage_percent(4, 1) == pytest.approx(25.0)


class TestGenerateReport:
    """报告生成（落库）"""

    def test_empty_project(self, store, project):
        report = generate_report(store, project.id)
        assert report.total_requirements == 0
        assert report.covered_requirements == 0
        assert report.coverage_percent == 0.0
        assert report.mismatches == []

    def test_requirement_without_tests(self, store, project):
        parsed = SpecService(store).upload_spec(
            project.id, "spec.md", "## Requirements\n- Users can log in\n"
        )
        report = generate_report(store, project.id)

        assert report.total_requirements == 1
        assert report.covered_requirements == 0
        assert len(report.mismatches) == 1
        mismatch = report.mismatches[0]
        assert mismatch.mismatch_type == MismatchType.NO_TEST_GENERATED
        assert mismatch.requirement_id == parsed.requirements[0].id
        assert mismatch.spec_section == "Requirements"
        assert mismatch.details == "No test has been generated for: Users can log in"

    def test_passed_and_failed_tests_give_partial_coverage(self, store, project):
        parsed = SpecService(store).upload_spec(
            project.id, "spec.md", "## Requirements\n- Users can log in\n"
        )
        req_id = parsed.requirements[0].id
        _add_result(store, _add_test(store, req_id), TestStatus.PASSED)
        _add_result(store, _add_test(store, req_id), TestStatus.FAILED)

        report = generate_report(store, project.id)
        assert report.covered_requirements == 1
        assert report.coverage_percent == pytest.approx(100.0)
        assert [m.mismatch_type for m in report.mismatches] == [MismatchType.PARTIAL_COVERAGE]

    def test_latest_result_wins(self, store, project):
        parsed = SpecService(store).upload_spec(
            project.id, "spec.md", "## Requirements\n- Users can log in\n"
        )
        test_id = _add_test(store, parsed.requirements[0].id)
        _add_result(store, test_id, TestStatus.PASSED, T0)
        _add_result(store, test_id, TestStatus.FAILED, T0 + timedelta(minutes=5))

        report = generate_report(store, project.id)
        assert report.covered_requirements == 0
        assert [m.mismatch_type for m in report.mismatches] == [MismatchType.TEST_FAILING]

    def test_mixed_project(self, store, project):
        parsed = SpecService(store).upload_spec(project.id, "spec.md", (
            "## Requirements\n"
            "- Users can log in\n"
            "- Users can log out\n"
            "- Users can reset passwords\n"
            "- Users can delete accounts\n"
        ))
        login, logout, reset, delete = (r.id for r in parsed.requirements)
        _add_result(store, _add_test(store, login), TestStatus.PASSED)
        _add_test(store, logout)
        _add_result(store, _add_test(store, reset), TestStatus.ERROR)

        report = generate_report(store, project.id)
        assert report.total_requirements == 4
        assert report.covered_requirements == 1
        assert report.coverage_percent == pytest.approx(25.0)
        assert 0 <= report.coverage_percent <= 100
        by_requirement = {m.requirement_id: m.mismatch_type for m in report.mismatches}
        assert by_requirement == {
            logout: MismatchType.NOT_IMPLEMENTED,
            reset: MismatchType.TEST_FAILING,
            delete: MismatchType.NO_TEST_GENERATED,
        }

    def test_report_is_persisted_with_mismatches(self, store, project):
        SpecService(store).upload_spec(project.id, "spec.md", "## Requirements\n- A\n- B\n")
        report = generate_report(store, project.id)

        with store.transaction() as session:
            stored = queries.get_alignment_report(session, report.id)
            assert [m.id for m in stored.mismatches] == [m.id for m in report.mismatches]

        assert ProjectService(store).get_project(project.id).coverage_percent == 0.0

    def test_failed_mismatch_insert_rolls_back_report(self, store, project, monkeypatch):
        SpecService(store).upload_spec(project.id, "spec.md", "## Requirements\n- A\n- B\n")

        calls = {"n": 0}
        original = queries.insert_mismatch

        def flaky_insert(session, mismatch):
            calls["n"] += 1
            if calls["n"] == 2:
                raise DatabaseError("disk full")
            return original(session, mismatch)

        monkeypatch.setattr(queries, "insert_mismatch", flaky_insert)
        with pytest.raises(DatabaseError):
            generate_report(store, project.id)

        with store.transaction() as session:
            assert session.query(AlignmentReport).count() == 0

    def test_unknown_project(self, store):
        with pytest.raises(NotFoundError):
            generate_report(store, "missing")
