"""SpecAlign - Project API Routes

项目管理 API 路由
"""
from fastapi import APIRouter, Depends

from specalign.api.deps.service_deps import get_project_service
from specalign.models.project_schemas import (
    ProjectCreate,
    ProjectWithStats,
    ValidatePathRequest,
    ValidatePathResponse,
)
from specalign.services.project_service import ProjectService, validate_path

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectWithStats, status_code=201)
def create_project(
    req: ProjectCreate,
    service: ProjectService = Depends(get_project_service),
):
    """创建项目"""
    return service.create_project(req.name, req.codebase_path)


@router.get("", response_model=list[ProjectWithStats])
def list_projects(service: ProjectService = Depends(get_project_service)):
    """项目列表（最近更新在前）"""
    return service.list_projects()


@router.post("/validate-path", response_model=ValidatePathResponse)
def validate_codebase_path(req: ValidatePathRequest):
    """校验代码库路径"""
    return ValidatePathResponse(valid=validate_path(req.path))


@router.get("/{project_id}", response_model=ProjectWithStats)
def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    """获取项目详情"""
    return service.get_project(project_id)


@router.delete("/{project_id}", status_code=204)
def delete_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    """删除项目（级联）"""
    service.delete_project(project_id)
