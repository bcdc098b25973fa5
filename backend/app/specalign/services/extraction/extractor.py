"""SpecAlign - Requirement Extractor

单次前向遍历 markdown 块级事件流（markdown-it token 流），
以标题路径作为旁路状态，把列表项和表格行转换为需求记录。

遍历状态用一个上下文栈表示，每个上下文是一个明确的类型：
    _HeadingContext / _ListItemContext / _TableContext
行内文本只写入栈顶上下文的缓冲区，避免多个布尔标志组合出非法状态。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from markdown_it import MarkdownIt
from markdown_it.token import Token

from specalign.services.extraction.classifier import (
    classify_priority,
    classify_requirement_type,
    is_requirement_section,
    looks_like_requirement,
)
from specalign.services.extraction.headings import HeadingPath
from specalign.services.extraction.markers import extract_requirement_marker, format_description
from specalign.services.extraction.records import ExtractedRequirement
from specalign.services.extraction.tables import requirement_from_table_row

logger = logging.getLogger(__name__)

# 行内 token 中参与拼接的文本类型
_TEXT_TOKENS = frozenset({"text", "text_special", "code_inline"})
_BREAK_TOKENS = frozenset({"softbreak", "hardbreak"})


@dataclass
class _HeadingContext:
    level: int
    parts: list[str] = field(default_factory=list)


@dataclass
class _ListItemContext:
    # 条目开始时已产出的需求数，用于保持文档顺序（外层条目排在嵌套条目之前）
    insert_at: int
    parts: list[str] = field(default_factory=list)


@dataclass
class _TableContext:
    headers: list[str] = field(default_factory=list)
    row: list[str] = field(default_factory=list)
    in_head: bool = False
    cell: list[str] | None = None


_Context = _HeadingContext | _ListItemContext | _TableContext


def _markdown_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("table")


def _inline_text(token: Token) -> list[str]:
    """行内 token 的纯文本（文本 + 行内代码）"""
    pieces: list[str] = []
    for child in token.children or []:
        if child.type in _TEXT_TOKENS:
            pieces.append(child.content)
        elif child.type in _BREAK_TOKENS:
            pieces.append(" ")
    return pieces


class RequirementExtractor:
    """需求提取器（一次性使用，不可重入）"""

    def __init__(self, spec_id: str):
        self.spec_id = spec_id
        self.headings = HeadingPath()
        self.requirements: list[ExtractedRequirement] = []
        self._stack: list[_Context] = []
        self._in_requirement_section = False

    # ------------------------------------------------------------------
    # 入口
    # ------------------------------------------------------------------

    def extract(self, content: str) -> list[ExtractedRequirement]:
        for token in _markdown_parser().parse(content):
            self._handle(token)
        logger.debug(f"spec {self.spec_id}: 提取到 {len(self.requirements)} 条需求")
        return self.requirements

    # ------------------------------------------------------------------
    # 事件分发
    # ------------------------------------------------------------------

    def _handle(self, token: Token) -> None:
        kind = token.type

        if kind == "heading_open":
            self._stack.append(_HeadingContext(level=int(token.tag[1:])))
        elif kind == "heading_close":
            self._close_heading()
        elif kind == "list_item_open":
            self._stack.append(_ListItemContext(insert_at=len(self.requirements)))
        elif kind == "list_item_close":
            self._close_list_item()
        elif kind == "table_open":
            self._stack.append(_TableContext())
        elif kind == "table_close":
            self._pop(_TableContext)
        elif kind in ("thead_open", "thead_close"):
            table = self._top(_TableContext)
            if table is not None:
                table.in_head = kind == "thead_open"
        elif kind == "tr_open":
            table = self._top(_TableContext)
            if table is not None:
                table.row = []
        elif kind == "tr_close":
            self._close_table_row()
        elif kind in ("th_open", "td_open"):
            table = self._top(_TableContext)
            if table is not None:
                table.cell = []
        elif kind in ("th_close", "td_close"):
            self._close_table_cell()
        elif kind == "inline":
            self._append_text(_inline_text(token))

    def _top(self, context_type):
        if self._stack and isinstance(self._stack[-1], context_type):
            return self._stack[-1]
        return None

    def _pop(self, context_type):
        context = self._top(context_type)
        if context is not None:
            self._stack.pop()
        return context

    def _append_text(self, pieces: list[str]) -> None:
        if not self._stack or not pieces:
            return
        context = self._stack[-1]
        if isinstance(context, _TableContext):
            if context.cell is not None:
                context.cell.extend(pieces)
        else:
            context.parts.extend(pieces)

    # ------------------------------------------------------------------
    # 各上下文结束时的处理
    # ------------------------------------------------------------------

    def _close_heading(self) -> None:
        heading = self._pop(_HeadingContext)
        if heading is None:
            return
        self.headings.update(heading.level, "".join(heading.parts).strip())
        self._in_requirement_section = is_requirement_section(self.headings.current_section())

    def _close_list_item(self) -> None:
        item = self._pop(_ListItemContext)
        if item is None:
            return
        text = "".join(item.parts).strip()
        if not text:
            return
        if not (self._in_requirement_section or looks_like_requirement(text)):
            return

        clean_text, marker = extract_requirement_marker(text)
        requirement = ExtractedRequirement(
            spec_id=self.spec_id,
            section=self.headings.full_path(),
            description=format_description(clean_text, marker),
            req_type=classify_requirement_type(self.headings.current_section(), clean_text),
            priority=classify_priority(clean_text),
        )
        self.requirements.insert(item.insert_at, requirement)

    def _close_table_row(self) -> None:
        table = self._top(_TableContext)
        if table is None or table.in_head or not table.row:
            return
        requirement = requirement_from_table_row(
            self.spec_id, table.headers, table.row, self.headings.full_path()
        )
        if requirement is not None:
            self.requirements.append(requirement)

    def _close_table_cell(self) -> None:
        table = self._top(_TableContext)
        if table is None or table.cell is None:
            return
        text = "".join(table.cell).strip()
        if table.in_head:
            table.headers.append(text)
        else:
            table.row.append(text)
        table.cell = None


def parse_spec(spec_id: str, content: str) -> list[ExtractedRequirement]:
    """从 markdown 文本提取有序需求列表（每次都完整遍历）"""
    return RequirementExtractor(spec_id).extract(content)
