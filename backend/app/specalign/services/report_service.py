"""SpecAlign - Report Service

对齐报告的生成、查询与导出
"""
from __future__ import annotations

import logging

from specalign.core.errors import require_non_empty
from specalign.database import queries
from specalign.database.config import Store
from specalign.models.report_schemas import (
    AlignmentReportResponse,
    AlignmentReportWithMismatches,
    MismatchResponse,
)
from specalign.services.alignment import generate_report
from specalign.services.report_export import parse_export_format, render_report

logger = logging.getLogger(__name__)


class ReportService:
    """报告服务"""

    def __init__(self, store: Store):
        self.store = store

    def generate_alignment_report(self, project_id: str) -> AlignmentReportWithMismatches:
        return generate_report(self.store, project_id)

    def get_alignment_report(self, report_id: str) -> AlignmentReportWithMismatches:
        require_non_empty(report_id, "Report ID")
        with self.store.transaction() as session:
            report = queries.get_alignment_report(session, report_id)
            return AlignmentReportWithMismatches(
                **AlignmentReportResponse.model_validate(report).model_dump(),
                mismatches=[MismatchResponse.model_validate(m) for m in report.mismatches],
            )

    def list_reports(self, project_id: str) -> list[AlignmentReportResponse]:
        require_non_empty(project_id, "Project ID")
        with self.store.transaction() as session:
            return [AlignmentReportResponse.model_validate(r) for r in queries.list_reports(session, project_id)]

    def export_report(self, report_id: str, fmt: str) -> str:
        """
        导出报告

        格式在查询之前校验，不支持的格式直接返回 invalid_input。
        """
        require_non_empty(report_id, "Report ID")
        export_format = parse_export_format(fmt)
        report = self.get_alignment_report(report_id)
        logger.info(f"导出报告: {report_id} ({export_format.value})")
        return render_report(report, export_format)
