# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from questionnaire_import.logging.init import reset_logging
from questionnaire_import.models.sheet_data import SheetData


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # 実行環境の接続設定がテストに混入しないようにする
    for key in (
        "PROJECTS_API_URL",
        "PROJECTS_API_TOKEN",
        "IMPORT_SINK",
        "DATABASE_URL",
        "PGDSN",
        "PGHOST",
        "PGPORT",
        "PGUSER",
        "PGPASSWORD",
        "PGDATABASE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def fresh_logging():
    # handler は setup 時点の sys.stdout を掴むので capsys ごとに作り直す
    reset_logging()
    yield
    reset_logging()


def make_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write raw rows (header included) into an .xlsx, one tab per entry."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def workbook_factory(tmp_path: Path):
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_workbook(tmp_path / name, sheets)

    return _make


@pytest.fixture()
def security_privacy_sheets() -> list[SheetData]:
    """Two tabs sharing a "Prompt" column: Security has 3 rows, Privacy 2."""
    return [
        SheetData(
            name="Security",
            columns=["Prompt", "Notes"],
            rows=[["Do you encrypt data?", ""], ["Do you run SSO?", "x"], ["Pen tests yearly?", ""]],
        ),
        SheetData(
            name="Privacy",
            columns=["Prompt", "Owner"],
            rows=[["GDPR compliant?", "legal"], ["DPO appointed?", "legal"]],
        ),
    ]
