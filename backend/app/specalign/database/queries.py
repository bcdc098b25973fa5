"""SpecAlign - Database Queries

按实体划分的窄查询函数，全部接收调用方传入的 Session。
事务边界由 Store.transaction() 决定，这里只 flush 不 commit。
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from specalign.core.errors import NotFoundError
from specalign.database.models import (
    AlignmentReport,
    GeneratedTest,
    Mismatch,
    Project,
    Requirement,
    Spec,
    TestResult,
)
from specalign.models.project_schemas import ProjectResponse, ProjectWithStats


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# Projects
# ============================================================

def create_project(session: Session, name: str, codebase_path: str) -> Project:
    project = Project(name=name, codebase_path=codebase_path)
    session.add(project)
    session.flush()
    return project


def get_project(session: Session, project_id: str) -> Project:
    project = session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def project_with_stats(session: Session, project: Project) -> ProjectWithStats:
    """附加规格数量与最近一次报告的覆盖率"""
    spec_count = session.scalar(
        select(func.count(Spec.id)).where(Spec.project_id == project.id)
    ) or 0
    latest = latest_report_for_project(session, project.id)
    base = ProjectResponse.model_validate(project)
    return ProjectWithStats(
        **base.model_dump(),
        spec_count=spec_count,
        coverage_percent=latest.coverage_percent if latest else None,
        last_run_at=latest.generated_at if latest else None,
    )


def list_projects_with_stats(session: Session) -> list[ProjectWithStats]:
    projects = session.scalars(
        select(Project).order_by(Project.updated_at.desc(), Project.id)
    ).all()
    return [project_with_stats(session, p) for p in projects]


def get_project_with_stats(session: Session, project_id: str) -> ProjectWithStats:
    return project_with_stats(session, get_project(session, project_id))


def delete_project(session: Session, project_id: str) -> None:
    session.delete(get_project(session, project_id))
    session.flush()


def touch_project(session: Session, project_id: str) -> None:
    """刷新项目 updated_at"""
    get_project(session, project_id).updated_at = _utcnow()
    session.flush()


# ============================================================
# Specs
# ============================================================

def create_spec(session: Session, project_id: str, filename: str, content: str) -> Spec:
    spec = Spec(project_id=project_id, filename=filename, content=content)
    session.add(spec)
    session.flush()
    return spec


def get_spec(session: Session, spec_id: str) -> Spec:
    spec = session.get(Spec, spec_id)
    if spec is None:
        raise NotFoundError("Spec", spec_id)
    return spec


def list_specs(session: Session, project_id: str) -> list[Spec]:
    return list(session.scalars(
        select(Spec)
        .where(Spec.project_id == project_id)
        .order_by(Spec.created_at.desc(), Spec.id)
    ).all())


def delete_spec(session: Session, spec_id: str) -> Spec:
    spec = get_spec(session, spec_id)
    session.delete(spec)
    session.flush()
    return spec


def update_spec_parsed_at(session: Session, spec_id: str) -> None:
    get_spec(session, spec_id).parsed_at = _utcnow()
    session.flush()


# ============================================================
# Requirements
# ============================================================

def insert_requirements(session: Session, requirements: Iterable[Requirement]) -> None:
    session.add_all(list(requirements))
    session.flush()


def get_requirements_for_spec(session: Session, spec_id: str) -> list[Requirement]:
    return list(session.scalars(
        select(Requirement)
        .where(Requirement.spec_id == spec_id)
        .order_by(Requirement.section, Requirement.id)
    ).all())


def get_requirements_for_project(session: Session, project_id: str) -> list[Requirement]:
    """项目下全部需求（按 section、id 稳定排序）"""
    return list(session.scalars(
        select(Requirement)
        .join(Spec, Requirement.spec_id == Spec.id)
        .where(Spec.project_id == project_id)
        .order_by(Requirement.section, Requirement.id)
    ).all())


def delete_requirements_for_spec(session: Session, spec_id: str) -> int:
    """删除规格下全部需求（ORM 级联到生成的测试与结果）"""
    requirements = session.scalars(
        select(Requirement).where(Requirement.spec_id == spec_id)
    ).all()
    for req in requirements:
        session.delete(req)
    session.flush()
    return len(requirements)


def get_requirement(session: Session, requirement_id: str) -> Requirement:
    req = session.get(Requirement, requirement_id)
    if req is None:
        raise NotFoundError("Requirement", requirement_id)
    return req


# ============================================================
# Generated tests
# ============================================================

def insert_generated_test(session: Session, test: GeneratedTest) -> GeneratedTest:
    session.add(test)
    session.flush()
    return test


def get_generated_test(session: Session, test_id: str) -> GeneratedTest:
    test = session.get(GeneratedTest, test_id)
    if test is None:
        raise NotFoundError("Generated test", test_id)
    return test


def get_generated_tests_for_requirement(session: Session, requirement_id: str) -> list[GeneratedTest]:
    return list(session.scalars(
        select(GeneratedTest)
        .where(GeneratedTest.requirement_id == requirement_id)
        .order_by(GeneratedTest.created_at.desc(), GeneratedTest.id)
    ).all())


def get_generated_tests_for_project(session: Session, project_id: str) -> list[GeneratedTest]:
    return list(session.scalars(
        select(GeneratedTest)
        .join(Requirement, GeneratedTest.requirement_id == Requirement.id)
        .join(Spec, Requirement.spec_id == Spec.id)
        .where(Spec.project_id == project_id)
        .order_by(GeneratedTest.created_at.desc(), GeneratedTest.id)
    ).all())


def update_generated_test_path(session: Session, test_id: str, path: str) -> GeneratedTest:
    test = get_generated_test(session, test_id)
    test.file_path = path
    session.flush()
    return test


# ============================================================
# Test results
# ============================================================

def insert_test_result(session: Session, result: TestResult) -> TestResult:
    session.add(result)
    session.flush()
    return result


def get_test_result(session: Session, result_id: str) -> TestResult:
    result = session.get(TestResult, result_id)
    if result is None:
        raise NotFoundError("Test result", result_id)
    return result


def get_latest_test_result_for_test(session: Session, generated_test_id: str) -> Optional[TestResult]:
    """按 executed_at 取最近一次结果"""
    return session.scalars(
        select(TestResult)
        .where(TestResult.generated_test_id == generated_test_id)
        .order_by(TestResult.executed_at.desc(), TestResult.id.desc())
        .limit(1)
    ).first()


def get_test_results_for_project(session: Session, project_id: str) -> list[TestResult]:
    return list(session.scalars(
        select(TestResult)
        .join(GeneratedTest, TestResult.generated_test_id == GeneratedTest.id)
        .join(Requirement, GeneratedTest.requirement_id == Requirement.id)
        .join(Spec, Requirement.spec_id == Spec.id)
        .where(Spec.project_id == project_id)
        .order_by(TestResult.executed_at.desc(), TestResult.id)
    ).all())


# ============================================================
# Alignment reports
# ============================================================

def insert_alignment_report(session: Session, report: AlignmentReport) -> AlignmentReport:
    session.add(report)
    session.flush()
    return report


def insert_mismatch(session: Session, mismatch: Mismatch) -> Mismatch:
    session.add(mismatch)
    session.flush()
    return mismatch


def get_alignment_report(session: Session, report_id: str) -> AlignmentReport:
    """报告 + 差异项（预加载，会话关闭后仍可访问）"""
    report = session.scalars(
        select(AlignmentReport)
        .options(selectinload(AlignmentReport.mismatches))
        .where(AlignmentReport.id == report_id)
    ).first()
    if report is None:
        raise NotFoundError("Alignment report", report_id)
    return report


def list_reports(session: Session, project_id: str) -> list[AlignmentReport]:
    return list(session.scalars(
        select(AlignmentReport)
        .where(AlignmentReport.project_id == project_id)
        .order_by(AlignmentReport.generated_at.desc(), AlignmentReport.id)
    ).all())


def latest_report_for_project(session: Session, project_id: str) -> Optional[AlignmentReport]:
    return session.scalars(
        select(AlignmentReport)
        .where(AlignmentReport.project_id == project_id)
        .order_by(AlignmentReport.generated_at.desc())
        .limit(1)
    ).first()
