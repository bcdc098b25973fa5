"""SpecAlign - Table Row Extraction

按列标题从表格行中提取需求。显式的优先级/类型列优先于文本分类。
"""
from __future__ import annotations

from specalign.models.enums import Priority, RequirementType
from specalign.services.extraction.records import ExtractedRequirement

DESCRIPTION_HEADER_KEYWORDS = ("requirement", "description", "spec", "user story")
PRIORITY_HEADER_KEYWORD = "priority"
TYPE_HEADER_KEYWORDS = ("type", "category")

HIGH_PRIORITY_VALUES = frozenset({"high", "critical", "must"})
LOW_PRIORITY_VALUES = frozenset({"low", "nice to have", "optional"})

NON_FUNCTIONAL_VALUES = ("non-functional", "performance", "security")

# 无描述列时跳过这些编号列
ID_CELL_PREFIXES = ("REQ-", "US-", "FR-")

MIN_DESCRIPTION_LENGTH = 10


def priority_from_cell(value: str) -> Priority:
    lower = value.lower()
    if lower in HIGH_PRIORITY_VALUES:
        return Priority.HIGH
    if lower in LOW_PRIORITY_VALUES:
        return Priority.LOW
    return Priority.MEDIUM


def type_from_cell(value: str) -> RequirementType:
    lower = value.lower()
    if any(keyword in lower for keyword in NON_FUNCTIONAL_VALUES):
        return RequirementType.NON_FUNCTIONAL
    if "constraint" in lower:
        return RequirementType.CONSTRAINT
    return RequirementType.FUNCTIONAL


def requirement_from_table_row(
    spec_id: str,
    headers: list[str],
    row: list[str],
    section: str,
) -> ExtractedRequirement | None:
    """从一行表格数据构造需求；描述为空或不足 10 个字符时返回 None"""
    if not row or not headers:
        return None

    description: str | None = None
    priority = Priority.MEDIUM
    req_type = RequirementType.FUNCTIONAL

    for header, cell in zip(headers, row):
        header_lower = header.lower()
        if any(keyword in header_lower for keyword in DESCRIPTION_HEADER_KEYWORDS):
            description = cell
        elif PRIORITY_HEADER_KEYWORD in header_lower:
            priority = priority_from_cell(cell)
        elif any(keyword in header_lower for keyword in TYPE_HEADER_KEYWORDS):
            req_type = type_from_cell(cell)

    if description is None:
        description = next(
            (cell for cell in row if cell and not cell.startswith(ID_CELL_PREFIXES)),
            None,
        )

    if not description or len(description) < MIN_DESCRIPTION_LENGTH:
        return None

    return ExtractedRequirement(
        spec_id=spec_id,
        section=section,
        description=description,
        req_type=req_type,
        priority=priority,
    )
