"""
Yellow Book API: Entry Schema Unit Tests
=========================================

What:  Tests for the field rule table and both validation modes.
How:   Pure function calls; no database, no HTTP.

What we test:
    ✅ Creation mode accepts a minimal entry and ignores id / timestamps
    ✅ Phone number, website and required-field rules
    ✅ All violations reported at once, keyed by wire field name
    ✅ Full-entry mode: id, timestamps, updatedAt >= createdAt
    ✅ Id path segment parsing
    ✅ Wire dump omits absent optional fields and keeps ""
"""

from datetime import datetime, timedelta, timezone

import pytest

from yellowbook.exceptions import InvalidIdentifierError, SchemaViolationError
from yellowbook.schemas.yellow_book import (
    MAX_ENTRY_ID,
    YellowBookCreate,
    dump_entry,
    parse_entry_id,
    validate_entry,
    validate_new_entry,
)


def _fields(exc_info) -> set:
    return {v["field"] for v in exc_info.value.violations}


class TestCreationMode:
    """Tests for validate_new_entry()."""

    def test_minimal_entry_is_valid(self, sample_entry_payload):
        entry = validate_new_entry(sample_entry_payload)

        assert isinstance(entry, YellowBookCreate)
        assert entry.business_name == "Acme"
        assert entry.phone_number == "+976-7000-0000"
        assert entry.description is None
        assert entry.website is None

    def test_server_assigned_fields_are_ignored(self, sample_entry_payload):
        payload = {
            **sample_entry_payload,
            "id": 42,
            "createdAt": "1999-01-01T00:00:00Z",
            "updatedAt": "1999-01-01T00:00:00Z",
        }
        entry = validate_new_entry(payload)
        dumped = entry.model_dump(by_alias=True)

        assert "id" not in dumped
        assert "createdAt" not in dumped
        assert "updatedAt" not in dumped

    @pytest.mark.parametrize(
        "phone",
        ["+976-7000-0000", "(011) 123 456", "70001234", "+1 (555) 010-0000"],
    )
    def test_phone_number_allowed_characters(self, sample_entry_payload, phone):
        entry = validate_new_entry({**sample_entry_payload, "phoneNumber": phone})
        assert entry.phone_number == phone

    @pytest.mark.parametrize("phone", ["abc", "+976-7000-000x", "70#01", ""])
    def test_phone_number_rejected(self, sample_entry_payload, phone):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_new_entry({**sample_entry_payload, "phoneNumber": phone})
        assert _fields(exc_info) == {"phoneNumber"}

    def test_empty_website_is_accepted(self, sample_entry_payload):
        entry = validate_new_entry({**sample_entry_payload, "website": ""})
        assert entry.website == ""

    def test_absolute_url_is_kept_as_given(self, sample_entry_payload):
        entry = validate_new_entry({**sample_entry_payload, "website": "https://acme.mn"})
        assert entry.website == "https://acme.mn"

    def test_relative_website_rejected(self, sample_entry_payload):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_new_entry({**sample_entry_payload, "website": "not-a-url"})
        assert _fields(exc_info) == {"website"}

    def test_empty_description_stays_distinct_from_absent(self, sample_entry_payload):
        entry = validate_new_entry({**sample_entry_payload, "description": ""})
        assert entry.description == ""

    @pytest.mark.parametrize("field", ["businessName", "category", "address"])
    def test_required_text_must_be_non_empty(self, sample_entry_payload, field):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_new_entry({**sample_entry_payload, field: ""})
        assert _fields(exc_info) == {field}

    def test_every_violation_is_reported(self):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_new_entry({"phoneNumber": "call me", "website": "nope"})

        assert exc_info.value.message == "Invalid yellow book entry"
        assert _fields(exc_info) == {
            "businessName",
            "category",
            "address",
            "phoneNumber",
            "website",
        }

    def test_wrong_type_is_a_violation(self, sample_entry_payload):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_new_entry({**sample_entry_payload, "category": 7})
        assert _fields(exc_info) == {"category"}

    @pytest.mark.parametrize("payload", [["Acme"], "Acme", None, 5])
    def test_non_object_payload(self, payload):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_new_entry(payload)
        assert _fields(exc_info) == {"entry"}


class TestFullEntryMode:
    """Tests for validate_entry()."""

    def test_stored_record_is_valid(self, stored_record):
        entry = validate_entry(stored_record)

        assert entry.id == 1
        assert entry.created_at.tzinfo is not None
        assert entry.updated_at == entry.created_at

    def test_id_and_timestamps_are_required(self, stored_record):
        record = {k: v for k, v in stored_record.items() if k not in ("id", "createdAt")}

        with pytest.raises(SchemaViolationError) as exc_info:
            validate_entry(record)

        assert exc_info.value.message == "Stored yellow book entry failed validation"
        assert _fields(exc_info) == {"id", "createdAt"}

    @pytest.mark.parametrize("bad_id", [0, -1])
    def test_id_must_be_positive(self, stored_record, bad_id):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_entry({**stored_record, "id": bad_id})
        assert _fields(exc_info) == {"id"}

    def test_updated_before_created_is_rejected(self, stored_record):
        record = {
            **stored_record,
            "updatedAt": stored_record["createdAt"] - timedelta(seconds=1),
        }
        with pytest.raises(SchemaViolationError):
            validate_entry(record)

    def test_iso_timestamps_are_accepted(self, stored_record):
        entry = validate_entry(
            {
                **stored_record,
                "createdAt": "2024-05-01T08:30:00Z",
                "updatedAt": "2024-05-02T08:30:00+08:00",
            }
        )
        assert entry.created_at == datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
        assert entry.updated_at > entry.created_at

    def test_naive_timestamp_is_treated_as_utc(self, stored_record):
        naive = datetime(2024, 5, 1, 8, 30)
        entry = validate_entry({**stored_record, "createdAt": naive, "updatedAt": naive})
        assert entry.created_at.tzinfo == timezone.utc

    def test_numeric_timestamp_is_rejected(self, stored_record):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_entry({**stored_record, "createdAt": 1714552200})
        assert "createdAt" in _fields(exc_info)

    @pytest.mark.parametrize("text", ["1700000000", "1700000000.5", "yesterday"])
    def test_non_iso_text_is_rejected(self, stored_record, text):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_entry({**stored_record, "createdAt": text, "updatedAt": text})
        assert _fields(exc_info) == {"createdAt", "updatedAt"}

    def test_drifted_phone_number_is_rejected(self, stored_record):
        with pytest.raises(SchemaViolationError) as exc_info:
            validate_entry({**stored_record, "phoneNumber": "7011-ABCD"})
        assert _fields(exc_info) == {"phoneNumber"}


class TestParseEntryId:

    @pytest.mark.parametrize("raw, expected", [("1", 1), ("42", 42), ("007", 7)])
    def test_positive_integers(self, raw, expected):
        assert parse_entry_id(raw) == expected

    def test_ids_beyond_key_range_cannot_exist(self):
        assert parse_entry_id("2147483647") == MAX_ENTRY_ID
        assert parse_entry_id("99999999999999999999") > MAX_ENTRY_ID
        assert parse_entry_id("1" * 5000) == MAX_ENTRY_ID + 1
        assert parse_entry_id("0" * 5000 + "42") == 42

    @pytest.mark.parametrize("raw", ["abc", "0", "000", "-3", "1.5", "12abc", "", " 1", "١٢"])
    def test_invalid_ids(self, raw):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            parse_entry_id(raw)

        assert exc_info.value.raw_id == raw
        assert exc_info.value.violations == [
            {"field": "id", "message": "must be a positive integer"}
        ]


class TestDumpEntry:

    def test_absent_optional_fields_are_omitted(self, stored_record):
        record = {**stored_record, "description": None, "website": ""}
        data = dump_entry(validate_entry(record))

        assert "description" not in data
        assert data["website"] == ""

    def test_wire_names_and_iso_timestamps(self, stored_record):
        data = dump_entry(validate_entry(stored_record))

        assert set(data) == {
            "id",
            "businessName",
            "category",
            "phoneNumber",
            "address",
            "description",
            "website",
            "createdAt",
            "updatedAt",
        }
        assert data["createdAt"] == "2024-05-01T08:30:00Z"
