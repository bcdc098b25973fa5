"""SpecAlign - Spec Service

规格文档上传、解析与重新解析
"""
from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath, PureWindowsPath

from specalign.core.errors import (
    GeneralError,
    InvalidInputError,
    StorageIOError,
    require_non_empty,
)
from specalign.database import queries
from specalign.database.config import Store
from specalign.database.models import Requirement
from specalign.models.spec_schemas import ParsedSpec, RequirementResponse, SpecResponse
from specalign.services.extraction import ExtractedRequirement, parse_spec

logger = logging.getLogger(__name__)

DEFAULT_SPEC_FILENAME = "unnamed_spec.md"


def sanitize_filename(filename: str) -> str:
    """只保留最后一级文件名（同时处理 / 与 \\ 分隔符）"""
    name = PureWindowsPath(PurePosixPath(filename.strip()).name).name
    if name in ("", ".", ".."):
        return DEFAULT_SPEC_FILENAME
    return name


def _to_rows(extracted: list[ExtractedRequirement]) -> list[Requirement]:
    return [
        Requirement(
            id=r.id,
            spec_id=r.spec_id,
            section=r.section,
            description=r.description,
            req_type=r.req_type,
            priority=r.priority,
        )
        for r in extracted
    ]


def read_spec_file(path: str) -> str:
    """
    读取本地 markdown 文件（仅允许用户 home 目录内的路径）

    Raises:
        InvalidInputError: 路径为空或位于 home 目录之外
        GeneralError: 无法确定 home 目录
        StorageIOError: 文件不存在或读取失败
    """
    require_non_empty(path, "File path")
    try:
        canonical = Path(path).resolve(strict=True)
    except OSError as e:
        raise StorageIOError(f"Cannot access file: {e}") from e

    try:
        home = Path.home().resolve()
    except RuntimeError as e:
        raise GeneralError("Cannot determine home directory") from e

    if canonical != home and home not in canonical.parents:
        raise InvalidInputError("Access denied: path is outside home directory")

    try:
        return canonical.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StorageIOError(f"Cannot read file: {e}") from e


class SpecService:
    """规格服务"""

    def __init__(self, store: Store):
        self.store = store

    def upload_spec(self, project_id: str, filename: str, content: str) -> ParsedSpec:
        """
        上传并解析规格

        创建规格、提取需求、写入需求、更新解析时间、刷新项目更新时间
        在同一个事务内完成。

        Returns:
            ParsedSpec（需求按文档顺序）
        """
        require_non_empty(project_id, "Project ID")
        require_non_empty(filename, "Filename")
        require_non_empty(content, "Spec content")
        safe_filename = sanitize_filename(filename)

        with self.store.transaction() as session:
            queries.get_project(session, project_id)
            spec = queries.create_spec(session, project_id, safe_filename, content)
            extracted = parse_spec(spec.id, content)
            if extracted:
                queries.insert_requirements(session, _to_rows(extracted))
            queries.update_spec_parsed_at(session, spec.id)
            queries.touch_project(session, project_id)
            result = ParsedSpec(
                spec=SpecResponse.model_validate(spec),
                requirements=[RequirementResponse.model_validate(r) for r in extracted],
            )

        logger.info(f"规格已上传: {safe_filename} -> {len(extracted)} 条需求")
        return result

    def get_spec(self, spec_id: str) -> ParsedSpec:
        require_non_empty(spec_id, "Spec ID")
        with self.store.transaction() as session:
            spec = queries.get_spec(session, spec_id)
            requirements = queries.get_requirements_for_spec(session, spec_id)
            return ParsedSpec(
                spec=SpecResponse.model_validate(spec),
                requirements=[RequirementResponse.model_validate(r) for r in requirements],
            )

    def list_specs(self, project_id: str) -> list[SpecResponse]:
        require_non_empty(project_id, "Project ID")
        with self.store.transaction() as session:
            return [SpecResponse.model_validate(s) for s in queries.list_specs(session, project_id)]

    def delete_spec(self, spec_id: str) -> None:
        require_non_empty(spec_id, "Spec ID")
        with self.store.transaction() as session:
            spec = queries.delete_spec(session, spec_id)
            queries.touch_project(session, spec.project_id)
        logger.info(f"规格已删除: {spec_id}")

    def reparse_spec(self, spec_id: str) -> list[RequirementResponse]:
        """
        重新解析规格（整体替换，不做合并）

        旧需求及其生成的测试、执行结果一并删除；任一步失败则整体回滚。
        """
        require_non_empty(spec_id, "Spec ID")
        with self.store.transaction() as session:
            spec = queries.get_spec(session, spec_id)
            removed = queries.delete_requirements_for_spec(session, spec_id)
            extracted = parse_spec(spec_id, spec.content)
            if extracted:
                queries.insert_requirements(session, _to_rows(extracted))
            queries.update_spec_parsed_at(session, spec_id)
            result = [RequirementResponse.model_validate(r) for r in extracted]

        logger.info(f"规格已重新解析: {spec_id}（移除 {removed} 条，新增 {len(result)} 条）")
        return result
