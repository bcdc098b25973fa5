"""SpecAlign - Database Models

SQLAlchemy 数据模型定义
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from specalign.database.config import Base
from specalign.models.enums import (
    GenerationMode,
    MismatchType,
    Priority,
    RequirementType,
    TestFramework,
    TestStatus,
)


def _uuid_str() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum(enum_cls):
    """按枚举值（而非名称）落库"""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


# ============================================================
# 数据模型
# ============================================================

class Project(Base):
    """项目模型"""
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    name = Column(String(255), nullable=False)
    codebase_path = Column(String(1024), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # 关联
    specs = relationship("Spec", back_populates="project", cascade="all, delete-orphan")
    reports = relationship("AlignmentReport", back_populates="project", cascade="all, delete-orphan")


class Spec(Base):
    """规格文档模型"""
    __tablename__ = "specs"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)  # 原始 markdown
    parsed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # 关联
    project = relationship("Project", back_populates="specs")
    requirements = relationship("Requirement", back_populates="spec", cascade="all, delete-orphan")


class Requirement(Base):
    """需求条目模型（由提取器生成，创建后不可变）"""
    __tablename__ = "requirements"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    spec_id = Column(String(36), ForeignKey("specs.id", ondelete="CASCADE"), nullable=False, index=True)
    section = Column(Text, nullable=False)  # 标题路径，" > " 连接
    description = Column(Text, nullable=False)
    req_type = Column(_enum(RequirementType), nullable=False, default=RequirementType.FUNCTIONAL)
    priority = Column(_enum(Priority), nullable=False, default=Priority.MEDIUM)

    # 关联
    spec = relationship("Spec", back_populates="requirements")
    generated_tests = relationship("GeneratedTest", back_populates="requirement", cascade="all, delete-orphan")


class GeneratedTest(Base):
    """生成的测试代码"""
    __tablename__ = "generated_tests"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    requirement_id = Column(
        String(36), ForeignKey("requirements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    framework = Column(_enum(TestFramework), nullable=False)
    code = Column(Text, nullable=False)
    generation_mode = Column(_enum(GenerationMode), nullable=False)
    file_path = Column(String(1024), nullable=True)  # 落盘后的路径
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # 关联
    requirement = relationship("Requirement", back_populates="generated_tests")
    results = relationship("TestResult", back_populates="generated_test", cascade="all, delete-orphan")


class TestResult(Base):
    """测试执行结果（只追加）"""
    __tablename__ = "test_results"
    __test__ = False

    id = Column(String(36), primary_key=True, default=_uuid_str)
    generated_test_id = Column(
        String(36), ForeignKey("generated_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(_enum(TestStatus), nullable=False)
    execution_time_ms = Column(Integer, nullable=False, default=0)
    stdout = Column(Text, nullable=False, default="")
    stderr = Column(Text, nullable=False, default="")
    executed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # 关联
    generated_test = relationship("GeneratedTest", back_populates="results")


class AlignmentReport(Base):
    """对齐报告（时间点快照）"""
    __tablename__ = "alignment_reports"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    coverage_percent = Column(Float, nullable=False, default=0.0)
    total_requirements = Column(Integer, nullable=False, default=0)
    covered_requirements = Column(Integer, nullable=False, default=0)
    generated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # 关联
    project = relationship("Project", back_populates="reports")
    mismatches = relationship(
        "Mismatch",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="Mismatch.seq",
    )


class Mismatch(Base):
    """差异项

    requirement_id 不做外键约束：重新解析规格会替换需求，
    但已生成的报告快照保持不变。
    """
    __tablename__ = "alignment_mismatches"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    report_id = Column(
        String(36), ForeignKey("alignment_reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    seq = Column(Integer, nullable=False, default=0)  # 报告内顺序
    requirement_id = Column(String(36), nullable=False)
    spec_section = Column(Text, nullable=False)
    code_element = Column(String(512), nullable=True)
    mismatch_type = Column(_enum(MismatchType), nullable=False)
    details = Column(Text, nullable=False, default="")

    # 关联
    report = relationship("AlignmentReport", back_populates="mismatches")


Index("idx_test_results_executed_at", TestResult.generated_test_id, TestResult.executed_at)
