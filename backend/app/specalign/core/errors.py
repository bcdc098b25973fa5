"""SpecAlign - Error Types

统一的错误类型定义。所有服务层错误都继承 SpecAlignError，
由 API 层统一转换为 {"detail": ..., "kind": ...} 响应。
"""
from __future__ import annotations

from typing import Any


class SpecAlignError(Exception):
    """服务层错误基类"""

    kind: str = "general"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "kind": self.kind}


class InvalidInputError(SpecAlignError):
    """非法输入（空 ID、不支持的格式/框架/模式、路径校验失败）"""

    kind = "invalid_input"
    status_code = 400


class NotFoundError(SpecAlignError):
    """引用的实体不存在"""

    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class StorageIOError(SpecAlignError):
    """文件系统错误"""

    kind = "io"
    status_code = 500


class DatabaseError(SpecAlignError):
    """存储层错误"""

    kind = "database"
    status_code = 500


class ExternalServiceError(SpecAlignError):
    """外部服务错误（LLM / 子进程 / git）"""

    kind = "external"
    status_code = 502


class GeneralError(SpecAlignError):
    """兜底错误（锁异常、无法确定 home 目录等）"""

    kind = "general"
    status_code = 500


def require_non_empty(value: str | None, label: str) -> str:
    """空值（含纯空白）校验，返回原值"""
    if value is None or not value.strip():
        raise InvalidInputError(f"{label} cannot be empty")
    return value
