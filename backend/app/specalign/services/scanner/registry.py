"""SpecAlign - Symbol Extractor Registry

按文件扩展名注册 / 查找符号提取器。

使用方式：
    registry = get_extractor_registry()
    registry.register(MyExtractor())
    extractor = registry.for_extension("py")
"""
from __future__ import annotations

import logging
from typing import Optional

from specalign.services.scanner.base import SymbolExtractor
from specalign.services.scanner.languages import BUILTIN_EXTRACTORS

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """符号提取器注册表"""

    def __init__(self):
        self._by_extension: dict[str, SymbolExtractor] = {}

    def register(self, extractor: SymbolExtractor) -> None:
        for ext in extractor.extensions:
            ext = ext.lower().lstrip(".")
            if ext in self._by_extension:
                logger.warning(f"Extension '{ext}' already registered, overwriting")
            self._by_extension[ext] = extractor

    def for_extension(self, ext: str) -> Optional[SymbolExtractor]:
        return self._by_extension.get(ext.lower().lstrip("."))

    def extensions(self) -> list[str]:
        return sorted(self._by_extension)


def default_registry() -> ExtractorRegistry:
    registry = ExtractorRegistry()
    for extractor_cls in BUILTIN_EXTRACTORS:
        registry.register(extractor_cls())
    return registry


# 全局单例
_global_registry: Optional[ExtractorRegistry] = None


def get_extractor_registry() -> ExtractorRegistry:
    """获取全局提取器注册表（内置全部语言）"""
    global _global_registry
    if _global_registry is None:
        _global_registry = default_registry()
    return _global_registry


def reset_extractor_registry() -> None:
    """重置全局注册表（用于测试）"""
    global _global_registry
    _global_registry = None
