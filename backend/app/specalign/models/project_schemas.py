"""SpecAlign - Project Schemas

项目管理相关的 Pydantic 数据模型
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from specalign.models.common_schemas import serialize_utc


# ============================================================
# Request Schemas
# ============================================================

class ProjectCreate(BaseModel):
    """创建项目请求"""
    name: str = Field(..., max_length=255)
    codebase_path: str = Field(..., max_length=1024)


class ValidatePathRequest(BaseModel):
    """路径校验请求"""
    path: str


# ============================================================
# Response Schemas
# ============================================================

class ProjectResponse(BaseModel):
    """项目响应"""
    id: str
    name: str
    codebase_path: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_dt(self, dt: datetime | None, _info):
        return serialize_utc(dt)

    model_config = ConfigDict(from_attributes=True)


class ProjectWithStats(ProjectResponse):
    """项目 + 统计（规格数量、最近一次报告覆盖率）"""
    spec_count: int = 0
    coverage_percent: Optional[float] = None
    last_run_at: Optional[datetime] = None

    @field_serializer("last_run_at")
    def serialize_last_run(self, dt: datetime | None, _info):
        return serialize_utc(dt)


class ValidatePathResponse(BaseModel):
    """路径校验响应"""
    valid: bool
