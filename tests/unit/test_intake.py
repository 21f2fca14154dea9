from __future__ import annotations

from datetime import date

import pytest

from orderdesk.models.import_record import UPSERT_COLUMNS, StoredSubmission
from orderdesk.services.intake import IntakeError, build_manual_record, detail_lines


def test_build_manual_record_parses_date_and_blanks():
    rec = build_manual_record(
        {
            "response_date": "2024. 5. 3 오후 2:22:11",
            "participant_number": 7,
            "name_or_company": "아크릴상회",
            "email": "",
            "privacy_agreement": True,
        }
    )
    assert rec.response_date == date(2024, 5, 3)
    assert rec.key == ("2024-05-03", 7)
    assert rec.email is None
    assert rec.privacy_agreement is True
    assert rec.first_time_buyer is False


def test_build_manual_record_converts_offset_timestamp():
    rec = build_manual_record(
        {"response_date": "2024-05-03T20:00:00Z", "participant_number": 1},
        timezone="Asia/Seoul",
    )
    assert rec.response_date == date(2024, 5, 4)


@pytest.mark.parametrize(
    "values, message",
    [
        ({"response_date": "2024-05-03"}, "participant_number is required"),
        ({"participant_number": 1}, "response_date is required"),
        ({"participant_number": 1, "response_date": ""}, "response_date is required"),
        ({"participant_number": 1, "response_date": "어제"}, "invalid response_date: 어제"),
        ({"participant_number": 1, "response_date": "2024-05-03", "price": 100}, "unknown fields: price"),
    ],
)
def test_build_manual_record_rejects(values, message):
    with pytest.raises(IntakeError, match=message):
        build_manual_record(values)


def test_detail_lines_render_every_column(make_record):
    stored = StoredSubmission(id=3, record=make_record(email=None), reviewed=True)
    lines = detail_lines(stored)
    assert lines[:4] == [
        "id: 3",
        "reviewed: True",
        "response_date: 2024-05-03",
        "participant_number: 1",
    ]
    assert "name_or_company: 아크릴상회" in lines
    assert "email: -" in lines
    assert "privacy_agreement: False" in lines
    assert len(lines) == 2 + len(UPSERT_COLUMNS)
