"""SpecAlign - Git Schemas"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ChangeStatus(str, Enum):
    """文件变更类型"""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class RepoInfo(BaseModel):
    """仓库信息"""
    branch: str
    commit_hash: str  # 前 8 位
    commit_message: str  # 仅首行
    is_dirty: bool


class ChangedFile(BaseModel):
    """变更文件"""
    path: str
    status: ChangeStatus
