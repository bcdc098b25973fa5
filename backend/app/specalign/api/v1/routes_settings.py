"""SpecAlign - Settings / Git API Routes"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from specalign.models.git_schemas import ChangedFile, RepoInfo
from specalign.models.settings_schemas import AppSettings
from specalign.services import git_service
from specalign.services.settings_service import SettingsService, get_settings_service

router = APIRouter(tags=["settings"])


@router.get("/settings", response_model=AppSettings)
def load_settings(service: SettingsService = Depends(get_settings_service)):
    """读取用户设置"""
    return service.load_settings()


@router.put("/settings", response_model=AppSettings)
def save_settings(
    req: AppSettings,
    service: SettingsService = Depends(get_settings_service),
):
    """保存用户设置"""
    return service.save_settings(req)


@router.get("/git/info", response_model=RepoInfo, tags=["git"])
def get_repo_info(path: str = Query(..., description="仓库路径")):
    return git_service.get_repo_info(path)


@router.get("/git/changes", response_model=list[ChangedFile], tags=["git"])
def get_changed_files(
    path: str = Query(..., description="仓库路径"),
    since_commit: Optional[str] = Query(None, description="起始提交"),
):
    return git_service.get_changed_files(path, since_commit)
