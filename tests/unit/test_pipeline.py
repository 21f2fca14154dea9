from __future__ import annotations

from pathlib import Path

import pytest

from orderdesk.db.upsert import PersistError
from orderdesk.logging.error_log import ErrorLogBuffer
from orderdesk.models.config_models import AppConfig
from orderdesk.models.import_result import AnalysisResult
from orderdesk.services.importer import import_workbook
from orderdesk.services.pipeline import ProcessingError, analyze, read_source, run_import, upload

CFG = AppConfig(timezone="Asia/Seoul")


def test_read_source_rejects_missing_and_unsupported(tmp_path: Path):
    with pytest.raises(ProcessingError, match="file not found"):
        read_source(tmp_path / "nope.xlsx")
    csv = tmp_path / "orders.csv"
    csv.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(ProcessingError, match="unsupported file type"):
        read_source(csv)
    with pytest.raises(ProcessingError, match="not a file"):
        read_source(tmp_path)


def test_analyze_counts_new_and_updated(make_export, make_row, make_record):
    path = make_export([
        make_row(participant_number=1),
        make_row(participant_number=2, thickness="5mm"),
        make_row(participant_number=3),
    ])
    first = import_workbook(path.read_bytes(), path.name, timezone="Asia/Seoul")[0]
    existing = [first, make_record(participant_number=2, product_image=None)]
    analysis = analyze(path.read_bytes(), path.name, existing, timezone="Asia/Seoul")
    assert analysis.total_rows == 3
    assert analysis.new_rows == 1
    assert analysis.updated_rows == 1
    assert analysis.unchanged_rows == 1
    assert [r.participant_number for r in analysis.changed] == [2, 3]


def test_analyze_parse_failure_is_logged_at_file_level(tmp_path: Path):
    log = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    with pytest.raises(ProcessingError):
        analyze(b"not a workbook", "broken.xlsx", [], error_log=log)
    [rec] = log.records
    assert rec.error_type == "WORKBOOK_PARSE_ERROR"
    assert rec.row == -1
    assert rec.file == "broken.xlsx"


def test_upload_nothing_changed_skips_persister(fake_backend):
    analysis = AnalysisResult("orders.xlsx", total_rows=4, new_rows=0, updated_rows=0)
    assert upload(fake_backend.cursor, analysis, "submissions") == 0
    assert fake_backend.statements == []


def test_upload_failure_logs_and_reraises(fake_backend, make_record, tmp_path: Path):
    fake_backend.fail_upsert = True
    analysis = AnalysisResult("orders.xlsx", 1, 1, 0, changed=[make_record()])
    log = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    with pytest.raises(PersistError):
        upload(fake_backend.cursor, analysis, "submissions", log)
    assert [r.error_type for r in log.records] == ["UPSERT_ERROR"]
    assert "ROLLBACK" in fake_backend.statements
    assert fake_backend.rows == {}


def test_run_import_offline_treats_everything_as_new(make_export, make_row):
    path = make_export([make_row(participant_number=n) for n in (1, 2)])
    result = run_import(path, CFG)
    assert result.uploaded is False
    assert result.upserted_rows == 0
    assert result.analysis.new_rows == 2


def test_run_import_upload_requires_backend(make_export, make_row):
    path = make_export([make_row()])
    with pytest.raises(ProcessingError, match="requires a database connection"):
        run_import(path, CFG, cursor=None, do_upload=True)


def test_run_import_upload_then_refresh(fake_backend, make_export, make_row):
    path = make_export([make_row(participant_number=n) for n in (1, 2)])
    result = run_import(path, CFG, fake_backend.cursor, do_upload=True)
    assert result.upserted_rows == 2
    assert len(fake_backend.rows) == 2
    selects = [s for s in fake_backend.statements if s.startswith("SELECT *")]
    # 비교용 조회 + 업로드 후 재조회
    assert len(selects) == 2
