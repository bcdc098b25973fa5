"""SpecAlign - Test Schemas

测试生成 / 执行相关的 Pydantic 数据模型
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from specalign.models.common_schemas import serialize_utc
from specalign.models.enums import GenerationMode, TestFramework, TestStatus


# ============================================================
# Request Schemas
# ============================================================

class GenerateTestsRequest(BaseModel):
    """生成测试请求（framework / mode 在服务层校验）"""
    project_id: str
    requirement_ids: list[str] = Field(default_factory=list)
    framework: str = TestFramework.JEST.value
    mode: str = GenerationMode.TEMPLATE.value
    batch_id: Optional[str] = Field(default=None, description="进度批次 ID（用于 WebSocket 订阅）")


class SaveTestRequest(BaseModel):
    """测试代码落盘请求"""
    path: str


class ExecuteTestsRequest(BaseModel):
    """执行测试请求"""
    project_id: str
    test_ids: list[str] = Field(default_factory=list)
    batch_id: Optional[str] = Field(default=None, description="进度批次 ID（用于 WebSocket 订阅）")


# ============================================================
# Response Schemas
# ============================================================

class GeneratedTestResponse(BaseModel):
    """生成的测试"""
    id: str
    requirement_id: str
    framework: TestFramework
    code: str
    generation_mode: GenerationMode
    file_path: Optional[str] = None
    created_at: datetime

    @field_serializer("created_at")
    def serialize_dt(self, dt: datetime | None, _info):
        return serialize_utc(dt)

    model_config = ConfigDict(from_attributes=True)


class TestResultResponse(BaseModel):
    """测试执行结果"""
    __test__ = False

    id: str
    generated_test_id: str
    status: TestStatus
    execution_time_ms: int
    stdout: str
    stderr: str
    executed_at: datetime

    @field_serializer("executed_at")
    def serialize_dt(self, dt: datetime | None, _info):
        return serialize_utc(dt)

    model_config = ConfigDict(from_attributes=True)


class SavedTestResponse(BaseModel):
    """落盘结果"""
    path: str


# ============================================================
# Progress
# ============================================================

class ProgressPhase(str, Enum):
    """批处理阶段"""
    GENERATING = "generating"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressEvent(BaseModel):
    """批处理进度事件（每处理完一项发送一次；批次失败时发送 failed）"""
    batch_id: str
    phase: ProgressPhase
    total: int
    completed: int
    current_item: str = ""
    message: str = ""  # failed 时为错误信息

    @property
    def is_terminal(self) -> bool:
        return self.phase in (ProgressPhase.COMPLETED, ProgressPhase.FAILED)
