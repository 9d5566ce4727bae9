from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

import questionnaire_import.cli.main as cli_module
from questionnaire_import.cli.main import main as cli_main
from questionnaire_import.errors import ProjectSubmitError


def _csv(temp_workdir: Path, name: str = "vendor.csv", text: str = "Question,Answer\nQ1,A1\nQ2,A2\n") -> Path:
    p = temp_workdir / name
    p.write_text(text, encoding="utf-8")
    return p


def _error_lines(temp_workdir: Path) -> list[dict]:
    files = sorted((temp_workdir / "logs").glob("errors-*.log"))
    return [json.loads(line) for f in files for line in f.read_text(encoding="utf-8").splitlines()]


class FakeApiClient:
    name = "api"
    instances: list[FakeApiClient] = []

    def __init__(self, config, session=None) -> None:
        self.config = config
        self.projects = []
        self.fail = False
        FakeApiClient.instances.append(self)

    def create_project(self, project):
        self.projects.append(project)
        if self.fail:
            raise ProjectSubmitError("Failed to save project. Please try again.")
        return replace(project, id="srv-42")


@pytest.fixture()
def fake_api(monkeypatch):
    FakeApiClient.instances = []
    monkeypatch.setattr(cli_module, "ProjectApiClient", FakeApiClient)
    return FakeApiClient


def test_cli_csv_dry_run_success(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    code = cli_main(["vendor.csv", "--column", "Question", "--sink", "dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO Project saved! Redirecting to response workspace..." in out
    assert "SUMMARY file=vendor.csv sheets=1 preview=2 selected=2 project=" in out
    assert "sink=dry-run" in out
    assert _error_lines(temp_workdir) == []


def test_cli_api_sink_is_default(temp_workdir: Path, capsys, fake_api):
    _csv(temp_workdir)
    code = cli_main(["vendor.csv", "--column", "Question", "--name", "Vendor 2025", "--customer", "Acme"])
    out = capsys.readouterr().out
    assert code == 0
    assert "workspace=/projects/srv-42" in out
    assert "project=srv-42 sink=api" in out
    project = fake_api.instances[0].projects[0]
    assert project.name == "Vendor 2025"
    assert project.customer_name == "Acme"
    assert [r.row_number for r in project.rows] == [2, 3]


def test_cli_api_config_from_file_and_env(temp_workdir: Path, capsys, fake_api, monkeypatch):
    (temp_workdir / "config" / "import.yml").write_text(
        "api:\n  base_url: http://file:3000\n  timeout_seconds: 9\ndefaults:\n  owner_name: Ana\n",
        encoding="utf-8",
    )
    (temp_workdir / ".env").write_text("PROJECTS_API_TOKEN=from-dotenv\n", encoding="utf-8")
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--column", "Question"]) == 0
    client = fake_api.instances[0]
    assert client.config.base_url == "http://file:3000"
    assert client.config.timeout_seconds == 9
    assert client.config.token == "from-dotenv"
    assert client.projects[0].owner_name == "Ana"


def test_cli_submit_failure(temp_workdir: Path, capsys, fake_api, monkeypatch):
    class FailingClient(FakeApiClient):
        def create_project(self, project):
            raise ProjectSubmitError("Failed to save project. Please try again.")

    monkeypatch.setattr(cli_module, "ProjectApiClient", FailingClient)
    _csv(temp_workdir)
    code = cli_main(["vendor.csv", "--column", "Question"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR Failed to save project. Please try again." in out
    assert "project=- sink=api" in out
    records = _error_lines(temp_workdir)
    assert records[0]["error_type"] == "SUBMISSION_FAILURE"
    assert records[0]["file"] == "vendor.csv"
    assert records[0]["row"] == -1


def test_cli_missing_column_is_validation_error(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    code = cli_main(["vendor.csv", "--sink", "dry-run"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR Select a worksheet and question column before saving." in out
    assert _error_lines(temp_workdir)[0]["error_type"] == "VALIDATION_ERROR"


def test_cli_unsupported_file(temp_workdir: Path, capsys):
    (temp_workdir / "notes.pdf").write_bytes(b"%PDF-1.4")
    code = cli_main(["notes.pdf", "--sink", "dry-run"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR Unsupported file type. Upload a CSV or Excel workbook." in out
    records = _error_lines(temp_workdir)
    assert records[0]["error_type"] == "UNSUPPORTED_FILE_TYPE"
    assert records[0]["sheet"] == "<FILE_LEVEL>"


def test_cli_file_not_found(temp_workdir: Path, capsys):
    assert cli_main(["missing.csv"]) == 1
    assert "ERROR file not found: missing.csv" in capsys.readouterr().out


def test_cli_explicit_config_missing(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--config", "nope.yml"]) == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_cli_invalid_config(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text("sink: ftp\n", encoding="utf-8")
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--column", "Question"]) == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_cli_exclude_and_include(temp_workdir: Path, capsys):
    _csv(temp_workdir, text="Question\nQ1\nQ2\nQ3\n")
    code = cli_main(["vendor.csv", "--column", "Question", "--sink", "dry-run", "--exclude", "2", "--exclude", "vendor:3"])
    out = capsys.readouterr().out
    assert code == 0
    assert "preview=3 selected=1" in out


def test_cli_exclude_all_then_nothing_selected(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    code = cli_main(["vendor.csv", "--column", "Question", "--sink", "dry-run", "--exclude-all"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR No questions selected. Please select at least one question to include." in out


def test_cli_exclude_all_with_include(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    code = cli_main(["vendor.csv", "--column", "Question", "--sink", "dry-run", "--exclude-all", "--include", "3"])
    assert code == 0
    assert "selected=1" in capsys.readouterr().out


def test_cli_invalid_row_selector(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--column", "Question", "--exclude", "vendor:abc"]) == 1
    assert "ERROR invalid row selector 'vendor:abc'" in capsys.readouterr().out


def test_cli_invalid_tab_column(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--tab-column", "NoEquals"]) == 1
    assert "ERROR invalid --tab-column 'NoEquals'" in capsys.readouterr().out


def test_cli_inspect(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--inspect"]) == 0
    out = capsys.readouterr().out
    assert "FILE: vendor.csv" in out
    assert "SHEET: vendor rows=2 cols=['Question', 'Answer']" in out
    assert "row 2: ['Q1', 'A1']" in out
    assert "SUMMARY" not in out


def test_cli_debug_flag(temp_workdir: Path, capsys):
    _csv(temp_workdir)
    assert cli_main(["vendor.csv", "--column", "Question", "--sink", "dry-run", "--debug"]) == 0
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_cli_usage_error_exits_2(temp_workdir: Path):
    with pytest.raises(SystemExit) as exc:
        cli_main(["vendor.csv", "--sink", "ftp"])
    assert exc.value.code == 2
