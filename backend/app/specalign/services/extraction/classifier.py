"""SpecAlign - Requirement Classifier

纯函数：根据章节标题和需求文本判断需求类型、优先级，
以及章节/条目是否"看起来像需求"。
"""
from __future__ import annotations

from specalign.models.enums import Priority, RequirementType

REQUIREMENT_SECTION_KEYWORDS = (
    "requirement",
    "user stor",
    "feature",
    "functional",
    "specification",
    "capability",
    "constraint",
    "acceptance criteria",
    "use case",
)

REQUIREMENT_PREFIXES = (
    "as a ",
    "the system shall ",
    "the system must ",
    "the application shall ",
    "the application must ",
    "shall ",
    "must ",
    "should ",
    "could ",
    "req-",
    "us-",
    "fr-",
    "nfr-",
)

NON_FUNCTIONAL_KEYWORDS = (
    "non-functional",
    "performance",
    "security",
    "scalability",
    "latency",
    "availability",
)
CONSTRAINT_KEYWORDS = ("constraint", "limitation")

HIGH_PRIORITY_KEYWORDS = ("critical", "must have", "**must**")
LOW_PRIORITY_KEYWORDS = ("nice to have", "optional", "could")

# 加粗文本至少要有这么多个词才算需求
MIN_BOLD_REQUIREMENT_WORDS = 5


def _contains_any(haystack: str, needles: tuple[str, ...]) -> bool:
    return any(needle in haystack for needle in needles)


def is_requirement_section(section: str) -> bool:
    """章节标题是否属于需求类章节（大小写不敏感的子串匹配）"""
    return _contains_any(section.lower(), REQUIREMENT_SECTION_KEYWORDS)


def looks_like_requirement(text: str) -> bool:
    """不依赖章节，单看条目文本是否像一条需求"""
    lower = text.lower()
    if lower.startswith(REQUIREMENT_PREFIXES):
        return True
    if "**shall**" in lower or "**must**" in lower:
        return True
    return (
        text.startswith("**")
        and " " in text
        and len(lower.split()) >= MIN_BOLD_REQUIREMENT_WORDS
    )


def classify_requirement_type(section: str, text: str) -> RequirementType:
    """non_functional 的判断先于 constraint"""
    lower_section = section.lower()
    lower_text = text.lower()

    if _contains_any(lower_section, NON_FUNCTIONAL_KEYWORDS) or _contains_any(lower_text, NON_FUNCTIONAL_KEYWORDS):
        return RequirementType.NON_FUNCTIONAL
    if _contains_any(lower_section, CONSTRAINT_KEYWORDS) or _contains_any(lower_text, CONSTRAINT_KEYWORDS):
        return RequirementType.CONSTRAINT
    return RequirementType.FUNCTIONAL


def classify_priority(text: str) -> Priority:
    lower = text.lower()
    if _contains_any(lower, HIGH_PRIORITY_KEYWORDS):
        return Priority.HIGH
    if _contains_any(lower, LOW_PRIORITY_KEYWORDS):
        return Priority.LOW
    return Priority.MEDIUM
