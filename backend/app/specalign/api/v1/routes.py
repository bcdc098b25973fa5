from fastapi import APIRouter

from specalign.api.v1.routes_projects import router as projects_router
from specalign.api.v1.routes_reports import router as reports_router
from specalign.api.v1.routes_settings import router as settings_router
from specalign.api.v1.routes_specs import router as specs_router
from specalign.api.v1.routes_tests import router as tests_router
from specalign.api.v1.routes_websocket import router as websocket_router
from specalign.models.common_schemas import ErrorResponse

# v1 统一入口：所有 v1 API 都从 /api/v1 开始
router = APIRouter(
    prefix="/api/v1",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)

router.include_router(projects_router)
router.include_router(specs_router)
router.include_router(tests_router)
router.include_router(reports_router)
router.include_router(settings_router)
router.include_router(websocket_router)
