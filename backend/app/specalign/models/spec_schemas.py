"""SpecAlign - Spec Schemas

规格文档与需求条目的 Pydantic 数据模型
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer

from specalign.models.common_schemas import serialize_utc
from specalign.models.enums import Priority, RequirementType


class SpecUpload(BaseModel):
    """上传规格请求（空值校验在服务层完成，统一返回 invalid_input）"""
    filename: str
    content: str


class SpecResponse(BaseModel):
    """规格响应"""
    id: str
    project_id: str
    filename: str
    content: str
    parsed_at: Optional[datetime] = None
    created_at: datetime

    @field_serializer("parsed_at", "created_at")
    def serialize_dt(self, dt: datetime | None, _info):
        return serialize_utc(dt)

    model_config = ConfigDict(from_attributes=True)


class RequirementResponse(BaseModel):
    """需求响应"""
    id: str
    spec_id: str
    section: str
    description: str
    req_type: RequirementType
    priority: Priority

    model_config = ConfigDict(from_attributes=True)


class ParsedSpec(BaseModel):
    """规格 + 提取出的需求"""
    spec: SpecResponse
    requirements: list[RequirementResponse]


class ReadSpecFileRequest(BaseModel):
    """读取本地规格文件请求"""
    path: str


class SpecFileContent(BaseModel):
    path: str
    content: str
