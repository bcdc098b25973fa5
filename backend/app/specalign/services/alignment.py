"""SpecAlign - Alignment Engine

规格与测试结果对齐：逐条需求判断覆盖情况，生成报告快照。

判定顺序（先命中者生效）：
    1. 没有生成任何测试            -> no_test_generated（未覆盖）
    2. 所有测试都没有执行结果       -> not_implemented（未覆盖）
    3. 有通过、无失败              -> 已覆盖
    4. 有通过、有失败              -> 已覆盖 + partial_coverage
    5. 有失败、无通过              -> test_failing（未覆盖）

每个测试只看最近一次结果；error 与 failed 同样计为失败。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from specalign.core.errors import require_non_empty
from specalign.database import queries
from specalign.database.config import Store
from specalign.database.models import AlignmentReport, Mismatch
from specalign.models.enums import MismatchType, TestStatus
from specalign.models.report_schemas import (
    AlignmentReportResponse,
    AlignmentReportWithMismatches,
    MismatchResponse,
)

logger = logging.getLogger(__name__)

_DETAIL_TEMPLATES = {
    MismatchType.NO_TEST_GENERATED: "No test has been generated for: {}",
    MismatchType.NOT_IMPLEMENTED: "Tests generated but never executed for: {}",
    MismatchType.PARTIAL_COVERAGE: "Some tests passing, some failing for: {}",
    MismatchType.TEST_FAILING: "Test(s) failing for: {}",
}


@dataclass(frozen=True)
class RequirementVerdict:
    """单条需求的判定结果"""
    covered: bool
    mismatch_type: Optional[MismatchType] = None


def classify_requirement(test_count: int, latest_statuses: Iterable[Optional[TestStatus]]) -> RequirementVerdict:
    """
    根据测试数量与每个测试的最近一次结果判定覆盖情况

    Args:
        test_count: 该需求生成的测试数量
        latest_statuses: 每个测试的最近一次结果状态（无结果为 None）
    """
    if test_count == 0:
        return RequirementVerdict(covered=False, mismatch_type=MismatchType.NO_TEST_GENERATED)

    has_passing = False
    has_failing = False
    has_results = False
    for status in latest_statuses:
        if status is None:
            continue
        has_results = True
        if status == TestStatus.PASSED:
            has_passing = True
        elif status in (TestStatus.FAILED, TestStatus.ERROR):
            has_failing = True

    if not has_results:
        return RequirementVerdict(covered=False, mismatch_type=MismatchType.NOT_IMPLEMENTED)
    if has_passing and not has_failing:
        return RequirementVerdict(covered=True)
    if has_passing and has_failing:
        return RequirementVerdict(covered=True, mismatch_type=MismatchType.PARTIAL_COVERAGE)
    return RequirementVerdict(covered=False, mismatch_type=MismatchType.TEST_FAILING)


def calculate_coverage_percent(total: int, covered: int) -> float:
    if total <= 0:
        return 0.0
    return covered / total * 100.0


def generate_report(store: Store, project_id: str) -> AlignmentReportWithMismatches:
    """
    生成对齐报告

    读取需求/测试/结果与写入报告+全部差异项在同一个事务中完成，
    要么全部落库，要么全部回滚。
    """
    require_non_empty(project_id, "Project ID")

    with store.transaction() as session:
        queries.get_project(session, project_id)
        requirements = queries.get_requirements_for_project(session, project_id)

        report = AlignmentReport(project_id=project_id)
        covered = 0
        mismatches: list[Mismatch] = []

        for req in requirements:
            tests = queries.get_generated_tests_for_requirement(session, req.id)
            statuses = []
            for test in tests:
                latest = queries.get_latest_test_result_for_test(session, test.id)
                statuses.append(latest.status if latest else None)

            verdict = classify_requirement(len(tests), statuses)
            if verdict.covered:
                covered += 1
            if verdict.mismatch_type is not None:
                mismatches.append(Mismatch(
                    seq=len(mismatches),
                    requirement_id=req.id,
                    spec_section=req.section,
                    code_element=None,
                    mismatch_type=verdict.mismatch_type,
                    details=_DETAIL_TEMPLATES[verdict.mismatch_type].format(req.description),
                ))

        total = len(requirements)
        report.total_requirements = total
        report.covered_requirements = covered
        report.coverage_percent = calculate_coverage_percent(total, covered)
        queries.insert_alignment_report(session, report)
        for mismatch in mismatches:
            mismatch.report_id = report.id
            queries.insert_mismatch(session, mismatch)

        result = AlignmentReportWithMismatches(
            **AlignmentReportResponse.model_validate(report).model_dump(),
            mismatches=[MismatchResponse.model_validate(m) for m in mismatches],
        )

    logger.info(
        f"对齐报告已生成: project={project_id} coverage={result.coverage_percent:.1f}% "
        f"({covered}/{total}), mismatches={len(mismatches)}"
    )
    return result
