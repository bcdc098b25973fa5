"""SpecAlign - User Settings Schemas"""
from __future__ import annotations

from pydantic import BaseModel, Field

from specalign.models.enums import GenerationMode, TestFramework


class AppSettings(BaseModel):
    """用户设置（保存在数据目录的 settings.json）"""
    api_key: str = ""
    default_framework: str = TestFramework.JEST.value
    default_mode: str = GenerationMode.TEMPLATE.value
    scan_exclusions: list[str] = Field(default_factory=list)
