# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import psycopg2
import pytest
from openpyxl import Workbook

from orderdesk.excel.mapping import HEADER_MAP
from orderdesk.models.import_record import CONFLICT_COLUMNS, UPSERT_COLUMNS, ImportRecord

HEADERS = list(HEADER_MAP.keys())


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """submissions_table: submissions
timezone: Asia/Seoul
manual_entry_tables:
  entries: manual_entries
  notes: manual_entry_notes
  quote_drafts: quote_drafts
  quote_draft_items: quote_draft_items
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def export_row(**overrides: Any) -> dict[str, Any]:
    """One form-export row keyed by record field name (converted to headers on write)."""
    row: dict[str, Any] = {
        "response_date": "2024. 5. 3 오후 2:22:11",
        "participant_number": 1,
        "name_or_company": "아크릴상회",
        "contact": "010-1234-5678",
        "email": "buyer@example.com",
        "business_registration_file": None,
        "privacy_agreement": "Y",
        "first_time_buyer": "처음입니다.",
        "product_description": "아크릴 명함꽂이",
        "product_size": "100x50",
        "thickness": "3mm",
        "material": "투명 아크릴",
        "color": "투명",
        "quantity": 20,
        "desired_delivery": "5월 말",
        "product_image": None,
        "product_drawing": None,
        "inquiry": "각인 가능한가요?",
        "referral_source": "인스타그램",
    }
    row.update(overrides)
    return row


def write_export(
    path: Path,
    rows: list[dict[str, Any]],
    links: dict[tuple[int, str], str] | None = None,
    extra_sheets: dict[str, list[list[Any]]] | None = None,
) -> Path:
    """Write a form export workbook.

    ``links`` maps (data row index, field name) -> hyperlink target.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "응답"
    ws.append(HEADERS)
    field_names = list(HEADER_MAP.values())
    for row in rows:
        ws.append([row.get(name) for name in field_names])
    for (row_index, name), target in (links or {}).items():
        cell = ws.cell(row=row_index + 2, column=field_names.index(name) + 1)
        if cell.value is None:
            cell.value = "첨부파일"
        cell.hyperlink = target
    for title, values in (extra_sheets or {}).items():
        extra = wb.create_sheet(title)
        for v in values:
            extra.append(v)
    wb.save(path)
    return path


@pytest.fixture()
def make_export(tmp_path: Path) -> Callable[..., Path]:
    def _make(
        rows: list[dict[str, Any]],
        links: dict[tuple[int, str], str] | None = None,
        name: str = "export.xlsx",
        **kwargs: Any,
    ) -> Path:
        return write_export(tmp_path / name, rows, links, **kwargs)
    return _make


def record(**overrides: Any) -> ImportRecord:
    values: dict[str, Any] = {
        "response_date": date(2024, 5, 3),
        "participant_number": 1,
        "name_or_company": "아크릴상회",
        "contact": "010-1234-5678",
        "product_description": "아크릴 명함꽂이",
        "product_size": "100x50",
        "thickness": "3mm",
        "product_image": "https://files.example.com/a.png",
        "business_registration_file": None,
    }
    values.update(overrides)
    return ImportRecord(**values)


class FakeBackend:
    """In-memory stand-in for the submissions table.

    ``cursor`` understands the statements the package issues; upserts arrive
    through the patched ``execute_values``.
    """

    def __init__(self) -> None:
        self.rows: dict[tuple[Any, Any], dict[str, Any]] = {}
        self.statements: list[str] = []
        self.fail_upsert = False
        self._next_id = 1
        self.cursor = FakeCursor(self)

    def upsert(self, rows: list[tuple[Any, ...]]) -> None:
        if self.fail_upsert:
            raise RuntimeError("duplicate key value violates unique constraint")
        for values in rows:
            data = dict(zip(UPSERT_COLUMNS, values, strict=True))
            key = tuple(data[c] for c in CONFLICT_COLUMNS)
            if key in self.rows:
                self.rows[key].update(data)
            else:
                self.rows[key] = {"id": self._next_id, "reviewed": False, **data}
                self._next_id += 1


class FakeCursor:
    def __init__(self, backend: FakeBackend) -> None:
        self.backend = backend
        self.description: list[tuple[str]] | None = None
        self.rowcount = -1
        self._result: list[tuple[Any, ...]] = []

    def execute(self, sql: str, params: tuple[Any, ...] | None = None) -> None:
        self.backend.statements.append(sql)
        if sql.startswith("SELECT *"):
            ordered = sorted(self.backend.rows.values(), key=lambda r: str(r["response_date"]))
            if "WHERE id" in sql:
                ordered = [r for r in ordered if r["id"] == params[0]]  # type: ignore[index]
            names = ["id", "reviewed", *UPSERT_COLUMNS]
            self.description = [(n,) for n in names]
            self._result = [tuple(r[n] for n in names) for r in ordered]
        elif sql.startswith("INSERT") and sql.endswith("RETURNING id"):
            data = dict(zip(UPSERT_COLUMNS, params, strict=True))  # type: ignore[arg-type]
            key = tuple(data[c] for c in CONFLICT_COLUMNS)
            if key in self.backend.rows:
                raise psycopg2.IntegrityError("duplicate key value violates unique constraint")
            self.backend.rows[key] = {"id": self.backend._next_id, "reviewed": False, **data}
            self._result = [(self.backend._next_id,)]
            self.backend._next_id += 1
        elif sql.startswith("UPDATE"):
            reviewed, row_id = params  # type: ignore[misc]
            hits = [r for r in self.backend.rows.values() if r["id"] == row_id]
            for r in hits:
                r["reviewed"] = reviewed
            self.rowcount = len(hits)

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self._result

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._result[0] if self._result else None


@pytest.fixture()
def fake_backend(monkeypatch) -> FakeBackend:
    import orderdesk.db.upsert as upsert_mod

    backend = FakeBackend()

    def fake_execute_values(cursor, sql, rows, page_size=100, template=None):  # noqa: ARG001
        backend.statements.append(sql)
        backend.upsert(list(rows))

    monkeypatch.setattr(upsert_mod, "execute_values", fake_execute_values)
    return backend


@pytest.fixture()
def make_row() -> Callable[..., dict[str, Any]]:
    return export_row


@pytest.fixture()
def make_record() -> Callable[..., ImportRecord]:
    return record
