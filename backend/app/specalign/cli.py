from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from specalign.core.errors import SpecAlignError
from specalign.database.config import get_store, init_db as create_tables
from specalign.services.extraction import parse_spec
from specalign.services.report_export import parse_export_format
from specalign.services.report_service import ReportService
from specalign.services.spec_service import read_spec_file

app = typer.Typer(add_completion=False, help="SpecAlign CLI")


# ============================================================
# 小工具：日志
# ============================================================
def _info(msg: str) -> None:
    print(f"[cyan][SA][/cyan] {msg}")


def _ok(msg: str) -> None:
    print(f"[green][SA][OK][/green] {msg}")


def _fail(msg: str, code: int = 1) -> NoReturn:
    print(f"[red][SA][FAIL][/red] {msg}")
    raise typer.Exit(code)


# ============================================================
# 命令
# ============================================================
@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Run FastAPI server."""
    import uvicorn

    uvicorn.run("specalign.main:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_db():
    """Create database tables."""
    try:
        create_tables()
    except SpecAlignError as e:
        _fail(e.message)
    _ok("database ready")


@app.command()
def parse(
    file: Path = typer.Argument(..., help="Markdown spec file"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Extract requirements from a markdown spec."""
    try:
        content = read_spec_file(str(file))
    except SpecAlignError as e:
        _fail(e.message)

    requirements = parse_spec("cli", content)
    if as_json:
        typer.echo(json.dumps(
            [
                {
                    "section": r.section,
                    "description": r.description,
                    "req_type": r.req_type.value,
                    "priority": r.priority.value,
                }
                for r in requirements
            ],
            ensure_ascii=False,
            indent=2,
        ))
        return

    table = Table(title=f"{file.name}: {len(requirements)} requirements")
    table.add_column("Section")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Description")
    for r in requirements:
        table.add_row(escape(r.section), r.req_type.value, r.priority.value, escape(r.description))
    Console().print(table)


@app.command()
def report(project_id: str = typer.Argument(..., help="Project ID")):
    """Generate an alignment report for a project."""
    service = ReportService(get_store())
    try:
        result = service.generate_alignment_report(project_id)
    except SpecAlignError as e:
        _fail(e.message)

    _info(f"report {result.id}")
    _ok(
        f"coverage {result.coverage_percent:.1f}% "
        f"({result.covered_requirements}/{result.total_requirements}), "
        f"{len(result.mismatches)} mismatches"
    )


@app.command()
def export(
    report_id: str = typer.Argument(..., help="Report ID"),
    format: str = typer.Option("json", "--format", "-f", help="json / csv / html"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output file (default: stdout)"),
):
    """Export a stored alignment report."""
    service = ReportService(get_store())
    try:
        content = service.export_report(report_id, parse_export_format(format).value)
    except SpecAlignError as e:
        _fail(e.message)

    if out is None:
        typer.echo(content)
        return
    out.write_text(content, encoding="utf-8")
    _ok(f"wrote {out}")
