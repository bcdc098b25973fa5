"""SpecAlign - Project Service

项目管理服务
"""
from __future__ import annotations

import logging
from pathlib import Path

from specalign.core.errors import InvalidInputError, require_non_empty
from specalign.database import queries
from specalign.database.config import Store
from specalign.models.project_schemas import ProjectWithStats

logger = logging.getLogger(__name__)


def validate_path(path: str) -> bool:
    """路径存在且为目录"""
    if not path or not path.strip():
        return False
    return Path(path).is_dir()


class ProjectService:
    """项目管理服务"""

    def __init__(self, store: Store):
        self.store = store

    def create_project(self, name: str, codebase_path: str) -> ProjectWithStats:
        """
        创建项目

        Args:
            name: 项目名称
            codebase_path: 代码库根目录（必须存在且为目录）

        Returns:
            新项目（含统计）
        """
        require_non_empty(name, "Project name")
        require_non_empty(codebase_path, "Codebase path")

        path = Path(codebase_path)
        if not path.exists():
            raise InvalidInputError(f"Path does not exist: {codebase_path}")
        if not path.is_dir():
            raise InvalidInputError(f"Path is not a directory: {codebase_path}")
        canonical = str(path.resolve())

        with self.store.transaction() as session:
            project = queries.create_project(session, name.strip(), canonical)
            result = queries.project_with_stats(session, project)

        logger.info(f"项目已创建: {result.id} ({canonical})")
        return result

    def list_projects(self) -> list[ProjectWithStats]:
        with self.store.transaction() as session:
            return queries.list_projects_with_stats(session)

    def get_project(self, project_id: str) -> ProjectWithStats:
        require_non_empty(project_id, "Project ID")
        with self.store.transaction() as session:
            return queries.get_project_with_stats(session, project_id)

    def delete_project(self, project_id: str) -> None:
        """删除项目（级联删除规格、需求、测试、结果与报告）"""
        require_non_empty(project_id, "Project ID")
        with self.store.transaction() as session:
            queries.delete_project(session, project_id)
        logger.info(f"项目已删除: {project_id}")
