"""SpecAlign - Requirement Extraction

需求提取引擎：
- headings: 标题路径跟踪（H1–H4）
- classifier: 需求类型 / 优先级 / 需求特征判断
- markers: 需求标记（REQ-001: / Must: ...）
- tables: 表格行提取
- extractor: markdown 事件流遍历
"""

from specalign.services.extraction.classifier import (
    classify_priority,
    classify_requirement_type,
    is_requirement_section,
    looks_like_requirement,
)
from specalign.services.extraction.extractor import RequirementExtractor, parse_spec
from specalign.services.extraction.headings import GENERAL_SECTION, HeadingPath
from specalign.services.extraction.markers import extract_requirement_marker
from specalign.services.extraction.records import ExtractedRequirement
from specalign.services.extraction.tables import requirement_from_table_row

__all__ = [
    "ExtractedRequirement",
    "GENERAL_SECTION",
    "HeadingPath",
    "RequirementExtractor",
    "classify_priority",
    "classify_requirement_type",
    "extract_requirement_marker",
    "is_requirement_section",
    "looks_like_requirement",
    "parse_spec",
    "requirement_from_table_row",
]
