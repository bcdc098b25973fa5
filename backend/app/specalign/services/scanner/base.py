"""SpecAlign - Symbol Extractor Base

代码符号提取接口与通用的行级启发式工具函数。
提取基于逐行关键字匹配（非 AST），只求尽力而为。
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import ClassVar, Optional

# 看起来像方法签名、但实际是控制语句的关键字
_CONTROL_KEYWORDS = frozenset({
    "if", "for", "foreach", "while", "switch", "catch", "return", "new", "using", "lock", "else",
})


class SymbolKind(str, Enum):
    """符号类型"""
    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"


@dataclass(frozen=True)
class CodeSymbol:
    """代码符号"""
    name: str
    kind: SymbolKind
    file_path: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


class SymbolExtractor(ABC):
    """按语言实现的符号提取器"""

    language: ClassVar[str] = ""
    extensions: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        """从文件内容中提取符号"""

    def _symbol(self, name: str, kind: SymbolKind, file_path: str) -> CodeSymbol:
        return CodeSymbol(name=name, kind=kind, file_path=file_path)


def take_identifier(text: str) -> str:
    chars = []
    for ch in text:
        if ch.isalnum() or ch == "_":
            chars.append(ch)
        else:
            break
    return "".join(chars)


def extract_after_keyword(line: str, keyword: str) -> Optional[str]:
    """
    取关键字后面的标识符

    行首匹配优先；否则在行内查找（兼容 "pub fn " / "async def " / "export function " 等前缀）。
    """
    if line.startswith(keyword):
        rest = line[len(keyword):]
    else:
        idx = line.find(keyword)
        if idx < 0:
            return None
        rest = line[idx + len(keyword):]
    name = take_identifier(rest)
    return name or None


def method_name_before_paren(line: str) -> Optional[str]:
    """取第一个左括号前的最后一个词作为方法名"""
    paren = line.find("(")
    if paren < 0:
        return None
    before = line[:paren].split()
    if not before:
        return None
    name = before[-1].strip("<>:,")
    if not name or name in _CONTROL_KEYWORDS:
        return None
    return name


def is_control_statement(line: str) -> bool:
    first = line.split("(", 1)[0].split()
    return bool(first) and first[0].lstrip("}").strip() in _CONTROL_KEYWORDS
