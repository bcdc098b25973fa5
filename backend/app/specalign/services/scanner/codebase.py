"""SpecAlign - Codebase Scanner

遍历代码库目录，对支持的源文件调用对应语言的符号提取器。
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from specalign.core.errors import InvalidInputError, StorageIOError
from specalign.services.scanner.base import CodeSymbol
from specalign.services.scanner.registry import ExtractorRegistry, get_extractor_registry

logger = logging.getLogger(__name__)

IGNORE_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", "target", ".next",
    "__pycache__", ".venv", "venv", ".tox", "coverage", ".nyc_output",
})

MAX_DEPTH = 12
MAX_FILE_SIZE = 1_024_000  # 跳过打包/生成的大文件


def scan_codebase(
    root: str,
    exclusions: Iterable[str] = (),
    registry: Optional[ExtractorRegistry] = None,
) -> list[CodeSymbol]:
    """
    扫描代码库符号

    Args:
        root: 代码库根目录
        exclusions: 额外忽略的目录名 / 文件名
        registry: 提取器注册表（默认使用全局注册表）

    Returns:
        符号列表，file_path 为相对 root 的路径

    Raises:
        InvalidInputError: root 不存在或不是目录
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise InvalidInputError(f"Invalid codebase path: {root}")

    registry = registry or get_extractor_registry()
    skip = IGNORE_DIRS | set(exclusions)
    symbols: list[CodeSymbol] = []
    _walk(root_path, root_path, skip, registry, symbols, depth=0)
    logger.debug(f"扫描完成: {root} -> {len(symbols)} 个符号")
    return symbols


def _walk(
    directory: Path,
    root: Path,
    skip: set[str] | frozenset[str],
    registry: ExtractorRegistry,
    symbols: list[CodeSymbol],
    depth: int,
) -> None:
    if depth > MAX_DEPTH:
        return
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise StorageIOError(f"Cannot read directory {directory}: {e}") from e

    for entry in entries:
        if entry.name in skip:
            continue
        path = Path(entry.path)
        if entry.is_dir():
            _walk(path, root, skip, registry, symbols, depth + 1)
            continue

        extractor = registry.for_extension(path.suffix)
        if extractor is None:
            continue
        try:
            if entry.stat().st_size > MAX_FILE_SIZE:
                continue
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        rel_path = path.relative_to(root).as_posix()
        symbols.extend(extractor.extract(content, rel_path))
