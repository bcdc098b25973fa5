"""SpecAlign - Report API Routes

对齐报告 API 路由
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from specalign.api.deps.service_deps import get_report_service
from specalign.models.report_schemas import AlignmentReportResponse, AlignmentReportWithMismatches
from specalign.services.report_export import MEDIA_TYPES, parse_export_format
from specalign.services.report_service import ReportService

router = APIRouter(tags=["reports"])


@router.post(
    "/projects/{project_id}/reports",
    response_model=AlignmentReportWithMismatches,
    status_code=201,
)
def generate_alignment_report(
    project_id: str,
    service: ReportService = Depends(get_report_service),
):
    """生成对齐报告快照"""
    return service.generate_alignment_report(project_id)


@router.get("/projects/{project_id}/reports", response_model=list[AlignmentReportResponse])
def list_reports(project_id: str, service: ReportService = Depends(get_report_service)):
    return service.list_reports(project_id)


@router.get("/reports/{report_id}", response_model=AlignmentReportWithMismatches)
def get_alignment_report(report_id: str, service: ReportService = Depends(get_report_service)):
    return service.get_alignment_report(report_id)


@router.get("/reports/{report_id}/export")
def export_report(
    report_id: str,
    format: str = Query("json", description="json / csv / html"),
    service: ReportService = Depends(get_report_service),
):
    """导出报告"""
    export_format = parse_export_format(format)
    content = service.export_report(report_id, export_format.value)
    return Response(content=content, media_type=MEDIA_TYPES[export_format])
