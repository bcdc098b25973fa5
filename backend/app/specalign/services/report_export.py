"""SpecAlign - Report Export

对齐报告导出：
- json: 完整结构化数据（格式化）
- csv:  requirement_id,spec_section,mismatch_type,code_element,details（可带 # 摘要行）
- html: 摘要卡片 + 覆盖率条 + 差异类型统计 + 差异明细（Jinja2 模板，自动转义）
"""
from __future__ import annotations

import csv
import io
from collections import Counter
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from specalign.core.errors import InvalidInputError
from specalign.models.common_schemas import serialize_utc
from specalign.models.enums import ExportFormat, MismatchType
from specalign.models.report_schemas import AlignmentReportWithMismatches

CSV_HEADER = ("requirement_id", "spec_section", "mismatch_type", "code_element", "details")

MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.HTML: "text/html; charset=utf-8",
}

_TEMPLATE_DIR = Path(__file__).parent / "templates"
_template_env: Optional[Environment] = None


def _get_template_env() -> Environment:
    global _template_env
    if _template_env is None:
        _template_env = Environment(
            loader=FileSystemLoader(str(_TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
        )
    return _template_env


def parse_export_format(value: str) -> ExportFormat:
    try:
        return ExportFormat(value)
    except ValueError:
        raise InvalidInputError(f"Unsupported format: {value}") from None


def export_json(report: AlignmentReportWithMismatches) -> str:
    return report.model_dump_json(indent=2)


def export_csv(report: AlignmentReportWithMismatches, include_summary: bool = True) -> str:
    """RFC 4180 CSV（字段含逗号、引号、换行时加引号）"""
    buffer = io.StringIO()
    if include_summary:
        buffer.write("# Alignment Report\n")
        buffer.write(
            f"# Coverage: {report.coverage_percent:.1f}% "
            f"({report.covered_requirements}/{report.total_requirements} requirements)\n"
        )
        buffer.write(f"# Generated: {serialize_utc(report.generated_at)}\n")

    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for m in report.mismatches:
        writer.writerow([
            m.requirement_id,
            m.spec_section,
            m.mismatch_type.value,
            m.code_element or "",
            m.details,
        ])
    return buffer.getvalue()


def _breakdown(report: AlignmentReportWithMismatches) -> list[dict[str, Any]]:
    counts = Counter(m.mismatch_type for m in report.mismatches)
    return [
        {"type": t.value, "label": t.value.replace("_", " "), "count": counts.get(t, 0)}
        for t in MismatchType
    ]


def export_html(report: AlignmentReportWithMismatches) -> str:
    template = _get_template_env().get_template("alignment_report.html.j2")
    return template.render(
        report=report,
        generated_at=serialize_utc(report.generated_at),
        breakdown=_breakdown(report),
    )


def render_report(report: AlignmentReportWithMismatches, fmt: ExportFormat) -> str:
    """按格式渲染报告"""
    if fmt == ExportFormat.JSON:
        return export_json(report)
    if fmt == ExportFormat.CSV:
        return export_csv(report)
    return export_html(report)
