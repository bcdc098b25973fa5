"""SpecAlign - Report Schemas

对齐报告的 Pydantic 数据模型
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from specalign.models.common_schemas import serialize_utc
from specalign.models.enums import MismatchType


class MismatchResponse(BaseModel):
    """差异项"""
    id: str
    report_id: str
    requirement_id: str
    spec_section: str
    code_element: Optional[str] = None
    mismatch_type: MismatchType
    details: str

    model_config = ConfigDict(from_attributes=True)


class AlignmentReportResponse(BaseModel):
    """对齐报告"""
    id: str
    project_id: str
    coverage_percent: float = Field(..., ge=0.0, le=100.0)
    total_requirements: int = Field(..., ge=0)
    covered_requirements: int = Field(..., ge=0)
    generated_at: datetime

    @field_serializer("generated_at")
    def serialize_dt(self, dt: datetime | None, _info):
        return serialize_utc(dt)

    model_config = ConfigDict(from_attributes=True)


class AlignmentReportWithMismatches(AlignmentReportResponse):
    """报告 + 差异项（报告字段平铺）"""
    mismatches: list[MismatchResponse] = Field(default_factory=list)
