"""SpecAlign - Codebase Symbol Scanner

可插拔的代码符号扫描：
- base: CodeSymbol / SymbolExtractor 接口
- languages: 各语言启发式提取器
- registry: 按扩展名注册提取器
- codebase: 目录遍历
"""

from specalign.services.scanner.base import CodeSymbol, SymbolExtractor, SymbolKind
from specalign.services.scanner.codebase import IGNORE_DIRS, MAX_DEPTH, scan_codebase
from specalign.services.scanner.registry import (
    ExtractorRegistry,
    get_extractor_registry,
    reset_extractor_registry,
)

__all__ = [
    "CodeSymbol",
    "ExtractorRegistry",
    "IGNORE_DIRS",
    "MAX_DEPTH",
    "SymbolExtractor",
    "SymbolKind",
    "get_extractor_registry",
    "reset_extractor_registry",
    "scan_codebase",
]
