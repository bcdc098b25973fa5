"""
CLI 测试（typer CliRunner）
"""
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from specalign import cli
from specalign.services.spec_service import SpecService

runner = CliRunner()


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    return tmp_path


@pytest.fixture
def cli_store(store, monkeypatch):
    monkeypatch.setattr(cli, "get_store", lambda: store)
    return store


def test_parse_json(home):
    spec_file = home / "spec.md"
    spec_file.write_text("# Spec\n## Requirements\n- REQ-001: User must log in\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["parse", str(spec_file), "--json"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{
        "section": "Spec > Requirements",
        "description": "[REQ-001] User must log in",
        "req_type": "functional",
        "priority": "medium",
    }]


def test_parse_table(home):
    spec_file = home / "spec.md"
    spec_file.write_text("## Requirements\n- Users can log out\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["parse", str(spec_file)])
    assert result.exit_code == 0
    assert "Users can log out" in result.stdout


def test_parse_missing_file(home):
    result = runner.invoke(cli.app, ["parse", str(home / "missing.md")])
    assert result.exit_code == 1
    assert "FAIL" in result.stdout


def test_report_and_export(cli_store, project, tmp_path):
    SpecService(cli_store).upload_spec(project.id, "spec.md", "## Requirements\n- Users can log out\n")

    result = runner.invoke(cli.app, ["report", project.id])
    assert result.exit_code == 0
    assert "coverage 0.0% (0/1)" in result.stdout

    report_id = result.stdout.split("report ", 1)[1].split()[0]
    out = tmp_path / "report.csv"
    result = runner.invoke(cli.app, ["export", report_id, "--format", "csv", "--out", str(out)])
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").startswith("# Alignment Report")


def test_export_unsupported_format(cli_store):
    result = runner.invoke(cli.app, ["export", "any", "--format", "pdf"])
    assert result.exit_code == 1
    assert "Unsupported format: pdf" in result.stdout
