from __future__ import annotations

from datetime import date

from orderdesk.services.reconciler import (
    ChangeKind,
    build_lookup,
    classify,
    reconcile,
    reconcile_with_status,
)

"""Unit tests for the reconciler (pure change detection)."""


def _batch(make_record):
    return [
        make_record(participant_number=1),
        make_record(participant_number=2, thickness="5mm"),
        make_record(participant_number=3, response_date=date(2024, 5, 4), product_image=None),
    ]


def test_reconcile_is_idempotent_on_its_own_output(make_record):
    candidates = _batch(make_record)
    first = reconcile(candidates, [])
    assert reconcile(candidates, first) == []


def test_reconcile_against_empty_returns_candidates_in_order(make_record):
    candidates = _batch(make_record)
    result = reconcile(candidates, [])
    assert result == candidates
    assert [r.participant_number for r in result] == [1, 2, 3]


def test_reconcile_unchanged_data_is_empty(make_record):
    candidates = _batch(make_record)
    existing = _batch(make_record)
    assert reconcile(candidates, existing) == []


def test_thickness_change_is_detected(make_record):
    existing = [make_record(thickness="3mm")]
    candidates = [make_record(thickness="5mm")]
    result = reconcile_with_status(candidates, existing)
    assert result == [(candidates[0], ChangeKind.UPDATED)]


def test_product_description_and_size_are_tracked(make_record):
    existing = [make_record(participant_number=1), make_record(participant_number=2)]
    candidates = [
        make_record(participant_number=1, product_description="아크릴 트로피"),
        make_record(participant_number=2, product_size="200x100"),
    ]
    assert reconcile(candidates, existing) == candidates


def test_reference_fields_compare_case_insensitively(make_record):
    existing = [
        make_record(
            product_image="https://files.example.com/A.PNG",
            business_registration_file="https://files.example.com/BIZ.pdf",
        )
    ]
    candidates = [
        make_record(
            product_image="https://files.example.com/a.png",
            business_registration_file="https://FILES.example.com/biz.PDF",
        )
    ]
    assert reconcile(candidates, existing) == []


def test_reference_field_set_versus_missing_is_a_change(make_record):
    existing = [make_record(business_registration_file=None)]
    candidates = [make_record(business_registration_file="https://files.example.com/biz.pdf")]
    assert reconcile(candidates, existing) == candidates


def test_untracked_field_change_is_ignored(make_record):
    existing = [make_record(contact="010-0000-0000", color="red")]
    candidates = [make_record(contact="010-1111-1111", color="blue")]
    assert reconcile(candidates, existing) == []


def test_same_participant_different_date_are_distinct(make_record):
    existing = [make_record(participant_number=7, response_date=date(2024, 5, 3))]
    candidates = [make_record(participant_number=7, response_date=date(2024, 5, 4))]
    result = reconcile_with_status(candidates, existing)
    assert result == [(candidates[0], ChangeKind.NEW)]


def test_time_of_day_does_not_split_the_key(make_record):
    # stored rows may come back as ISO strings with a time part
    existing = [make_record(response_date="2024-05-03T09:12:00")]
    candidates = [make_record(response_date=date(2024, 5, 3))]
    assert reconcile(candidates, existing) == []


def test_duplicate_existing_keys_last_one_wins(make_record):
    existing = [make_record(thickness="3mm"), make_record(thickness="5mm")]
    lookup = build_lookup(existing)
    assert len(lookup) == 1
    assert classify(make_record(thickness="5mm"), lookup) is ChangeKind.UNCHANGED
    assert classify(make_record(thickness="3mm"), lookup) is ChangeKind.UPDATED


def test_incoming_batch_is_not_deduplicated(make_record):
    candidates = [make_record(), make_record()]
    assert len(reconcile(candidates, [])) == 2


def test_reconcile_is_deterministic(make_record):
    candidates = _batch(make_record)
    existing = [make_record(participant_number=2, thickness="3mm")]
    assert reconcile(candidates, existing) == reconcile(candidates, existing)
