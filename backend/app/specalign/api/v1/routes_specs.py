"""SpecAlign - Spec API Routes

规格上传 / 解析 API 路由
"""
from fastapi import APIRouter, Depends

from specalign.api.deps.service_deps import get_spec_service
from specalign.models.spec_schemas import (
    ParsedSpec,
    ReadSpecFileRequest,
    RequirementResponse,
    SpecFileContent,
    SpecResponse,
    SpecUpload,
)
from specalign.services.spec_service import SpecService, read_spec_file

router = APIRouter(tags=["specs"])


@router.post("/projects/{project_id}/specs", response_model=ParsedSpec, status_code=201)
def upload_spec(
    project_id: str,
    req: SpecUpload,
    service: SpecService = Depends(get_spec_service),
):
    """上传规格并解析需求"""
    return service.upload_spec(project_id, req.filename, req.content)


@router.get("/projects/{project_id}/specs", response_model=list[SpecResponse])
def list_specs(project_id: str, service: SpecService = Depends(get_spec_service)):
    """项目下的规格列表（最新在前）"""
    return service.list_specs(project_id)


@router.get("/specs/{spec_id}", response_model=ParsedSpec)
def get_spec(spec_id: str, service: SpecService = Depends(get_spec_service)):
    return service.get_spec(spec_id)


@router.delete("/specs/{spec_id}", status_code=204)
def delete_spec(spec_id: str, service: SpecService = Depends(get_spec_service)):
    service.delete_spec(spec_id)


@router.post("/specs/{spec_id}/reparse", response_model=list[RequirementResponse])
def reparse_spec(spec_id: str, service: SpecService = Depends(get_spec_service)):
    """重新解析（整体替换需求）"""
    return service.reparse_spec(spec_id)


@router.post("/specs/read-file", response_model=SpecFileContent)
def read_local_spec_file(req: ReadSpecFileRequest):
    """读取本地 markdown 文件（限 home 目录）"""
    return SpecFileContent(path=req.path, content=read_spec_file(req.path))
