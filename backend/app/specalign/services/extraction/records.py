"""提取结果记录"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from specalign.models.enums import Priority, RequirementType


@dataclass(frozen=True)
class ExtractedRequirement:
    """提取器产出的需求记录（不可变，id 每次提取重新生成）"""

    spec_id: str
    section: str
    description: str
    req_type: RequirementType
    priority: Priority
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
