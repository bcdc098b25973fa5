"""SpecAlign - 服务依赖

路由通过这些依赖获取服务实例；测试中覆盖 get_store 即可切换数据库。
"""
from fastapi import Depends

from specalign.database.config import Store, get_store
from specalign.services.execution_service import ExecutionService
from specalign.services.generation_service import GenerationService
from specalign.services.progress import ProgressTracker, get_progress_tracker
from specalign.services.project_service import ProjectService
from specalign.services.report_service import ReportService
from specalign.services.settings_service import SettingsService, get_settings_service
from specalign.services.spec_service import SpecService


def get_project_service(store: Store = Depends(get_store)) -> ProjectService:
    return ProjectService(store)


def get_spec_service(store: Store = Depends(get_store)) -> SpecService:
    return SpecService(store)


def get_report_service(store: Store = Depends(get_store)) -> ReportService:
    return ReportService(store)


def get_tracker() -> ProgressTracker:
    return get_progress_tracker()


def get_generation_service(
    store: Store = Depends(get_store),
    settings_service: SettingsService = Depends(get_settings_service),
    tracker: ProgressTracker = Depends(get_tracker),
) -> GenerationService:
    return GenerationService(store, settings_service=settings_service, tracker=tracker)


def get_execution_service(
    store: Store = Depends(get_store),
    tracker: ProgressTracker = Depends(get_tracker),
) -> ExecutionService:
    return ExecutionService(store, tracker=tracker)
