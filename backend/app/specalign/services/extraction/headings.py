"""SpecAlign - Heading Path Tracker

跟踪 markdown 文档遍历过程中的标题层级（H1–H4）。
"""
from __future__ import annotations

GENERAL_SECTION = "General"
SECTION_SEPARATOR = " > "
MAX_TRACKED_LEVEL = 4


class HeadingPath:
    """当前标题路径

    每个层级保存最近一次出现的标题文本；设置某一层级会清空所有更深的层级。
    H5/H6 不参与跟踪，沿用 H4 的路径。
    """

    def __init__(self):
        self._levels: list[str | None] = [None] * MAX_TRACKED_LEVEL

    def update(self, level: int, text: str) -> None:
        if level < 1 or level > MAX_TRACKED_LEVEL:
            return
        self._levels[level - 1] = text
        for deeper in range(level, MAX_TRACKED_LEVEL):
            self._levels[deeper] = None

    def full_path(self) -> str:
        """浅到深用 " > " 连接，全部为空时返回 "General" """
        parts = [text for text in self._levels if text]
        if not parts:
            return GENERAL_SECTION
        return SECTION_SEPARATOR.join(parts)

    def current_section(self) -> str:
        """最深一层已设置的标题，否则 "General" """
        for text in reversed(self._levels):
            if text:
                return text
        return GENERAL_SECTION

    def __repr__(self) -> str:
        return f"HeadingPath({self.full_path()!r})"
