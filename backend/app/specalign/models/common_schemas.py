"""SpecAlign - Common Schemas

通用的 Pydantic 数据模型与序列化工具
"""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def serialize_utc(dt: datetime | None) -> str | None:
    """统一输出 UTC ISO-8601（Z 结尾）；SQLite 读回的时间不带时区，按 UTC 处理"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class ErrorResponse(BaseModel):
    """错误响应"""
    detail: str = Field(..., description="错误信息")
    kind: str = Field(..., description="错误类型")
