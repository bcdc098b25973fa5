"""SpecAlign - Requirement Markers

识别条目开头的需求标记：
- 显式编号：REQ-001: / US-42: / FR-1: / NFR-3: / UC-7: / FEAT-12:
- 关键字：Must: / Should: / Could: / Won't: / Will:
"""
from __future__ import annotations

import re

ID_MARKER_PATTERN = re.compile(r"^((?:REQ|US|FR|NFR|UC|FEAT)-\d+):\s*")

KEYWORD_MARKERS = (
    ("Must:", "MUST"),
    ("Should:", "SHOULD"),
    ("Could:", "COULD"),
    ("Won't:", "WONT"),
    ("Will:", "WILL"),
)


def extract_requirement_marker(text: str) -> tuple[str, str | None]:
    """拆出标记

    Returns:
        (去掉标记后的文本, 标记)；无标记时返回 (原文本, None)
    """
    match = ID_MARKER_PATTERN.match(text)
    if match:
        return text[match.end():].strip(), match.group(1)

    for prefix, marker in KEYWORD_MARKERS:
        if text.startswith(prefix):
            return text[len(prefix):].strip(), marker

    return text, None


def format_description(text: str, marker: str | None) -> str:
    if marker:
        return f"[{marker}] {text}"
    return text
