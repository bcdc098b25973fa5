"""SpecAlign - Git Service

通过 git 命令行读取仓库状态（分支、最近提交、变更文件）
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from specalign.core.errors import ExternalServiceError, InvalidInputError, require_non_empty
from specalign.models.git_schemas import ChangedFile, ChangeStatus, RepoInfo

logger = logging.getLogger(__name__)

GIT_TIMEOUT_S = 30
SHORT_HASH_LEN = 8


def run_git(args: list[str], cwd: str) -> str:
    """执行 git 命令并返回 stdout；失败统一抛 ExternalServiceError"""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_S,
        )
    except FileNotFoundError as e:
        raise ExternalServiceError("git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalServiceError(f"git {args[0]} timed out") from e
    except OSError as e:
        raise ExternalServiceError(f"git {args[0]} failed: {e}") from e

    if result.returncode != 0:
        raise ExternalServiceError(f"git {args[0]} failed: {result.stderr.strip()}")
    return result.stdout


def _validate_repo_path(path: str) -> str:
    require_non_empty(path, "Repository path")
    if not Path(path).is_dir():
        raise InvalidInputError(f"Path is not a directory: {path}")
    return path


def get_repo_info(path: str) -> RepoInfo:
    """分支、HEAD 提交（短哈希 + 提交信息首行）以及工作区是否有改动"""
    path = _validate_repo_path(path)
    branch = run_git(["rev-parse", "--abbrev-ref", "HEAD"], path).strip() or "HEAD"
    log_output = run_git(["log", "-1", "--format=%H%n%B"], path)
    commit_hash, _, message = log_output.partition("\n")
    status_output = run_git(["status", "--porcelain"], path)

    return RepoInfo(
        branch=branch,
        commit_hash=commit_hash.strip()[:SHORT_HASH_LEN],
        commit_message=message.strip().splitlines()[0] if message.strip() else "",
        is_dirty=bool(status_output.strip()),
    )


def _status_from_letter(letter: str) -> ChangeStatus:
    return {
        "A": ChangeStatus.ADDED,
        "D": ChangeStatus.DELETED,
        "R": ChangeStatus.RENAMED,
    }.get(letter, ChangeStatus.MODIFIED)


def parse_name_status(output: str) -> list[ChangedFile]:
    """解析 git diff --name-status -z 输出"""
    fields = output.split("\0")
    changed = []
    i = 0
    while i < len(fields) and fields[i]:
        letter = fields[i][0]
        if letter in ("R", "C"):
            # 重命名 / 复制：旧路径 + 新路径，取新路径
            changed.append(ChangedFile(path=fields[i + 2], status=_status_from_letter(letter)))
            i += 3
        else:
            changed.append(ChangedFile(path=fields[i + 1], status=_status_from_letter(letter)))
            i += 2
    return changed


def parse_porcelain_status(output: str) -> list[ChangedFile]:
    """解析 git status --porcelain -z 输出（含未跟踪文件）"""
    fields = output.split("\0")
    changed = []
    i = 0
    while i < len(fields) and fields[i]:
        entry = fields[i]
        code, file_path = entry[:2], entry[3:]
        i += 1
        if "R" in code:
            status = ChangeStatus.RENAMED
            i += 1  # 跳过原路径
        elif code == "??" or "A" in code:
            status = ChangeStatus.ADDED
        elif "D" in code:
            status = ChangeStatus.DELETED
        else:
            status = ChangeStatus.MODIFIED
        changed.append(ChangedFile(path=file_path, status=status))
    return changed


def get_changed_files(path: str, since_commit: Optional[str] = None) -> list[ChangedFile]:
    """
    变更文件列表

    Args:
        path: 仓库路径
        since_commit: 起始提交；为空时返回工作区状态
    """
    path = _validate_repo_path(path)
    if since_commit and since_commit.strip():
        commit = since_commit.strip()
        if commit.startswith("-"):
            raise InvalidInputError(f"Invalid commit: {commit}")
        output = run_git(["diff", "--name-status", "-z", "-M", commit, "HEAD"], path)
        return parse_name_status(output)
    return parse_porcelain_status(run_git(["status", "--porcelain", "-z"], path))
