"""
Rollcall Column Mapper Test Suite

Tests cover:
- Header normalization (case, punctuation, whitespace)
- Bidirectional substring matching against the alias table
- Declaration-order precedence and first-column-wins
- Required fields and SchemaError
- Unmatched headers reported, never dropped
- Operator overrides and vocabulary extension
"""

import logging

import pytest

from rollcall.ingestion.column_mapper import (
    DEFAULT_ALIAS_TABLE,
    REQUIRED_FIELDS,
    AliasTable,
    CanonicalField,
    get_unmatched_headers,
    normalize_header,
    resolve_headers,
)
from rollcall.ingestion.errors import IngestionError, SchemaError

ID = CanonicalField.IDENTIFIER
NAME = CanonicalField.NAME
STATUS = CanonicalField.STATUS
EMAIL = CanonicalField.EMAIL
UNIT = CanonicalField.UNIT


# ---------------------------------------------------------------------------
# Library integrity
# ---------------------------------------------------------------------------

class TestLibraryIntegrity:
    def test_alias_table_is_not_empty(self):
        assert len(DEFAULT_ALIAS_TABLE) > 0

    def test_every_field_has_aliases(self):
        for target in CanonicalField:
            assert DEFAULT_ALIAS_TABLE.aliases_for(target), f"No aliases for {target.value}"

    def test_aliases_are_stored_normalized(self):
        for entry in DEFAULT_ALIAS_TABLE:
            assert entry.alias == normalize_header(entry.alias)

    def test_declaration_order_is_identifier_name_status_email_unit(self):
        """First occurrence of each field in the table follows the precedence order."""
        order = []
        for entry in DEFAULT_ALIAS_TABLE:
            if entry.field not in order:
                order.append(entry.field)
        assert order == [ID, NAME, STATUS, EMAIL, UNIT]

    def test_required_fields(self):
        assert REQUIRED_FIELDS == (ID, NAME, STATUS)

    def test_conflicting_alias_raises(self):
        with pytest.raises(ValueError, match="conflict"):
            AliasTable.from_pairs([("Code", ID), ("CODE", NAME)])

    def test_duplicate_alias_same_field_is_collapsed(self):
        table = AliasTable.from_pairs([("Roll No", ID), ("roll_no", ID)])
        assert len(table) == 1

    def test_empty_alias_raises(self):
        with pytest.raises(ValueError):
            AliasTable.from_pairs([("--", ID)])


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

class TestNormalizeHeader:
    def test_lowercases(self):
        assert normalize_header("STATUS") == "status"

    def test_punctuation_becomes_space(self):
        assert normalize_header("Ticket_No") == "ticket no"
        assert normalize_header("P.No") == "p no"

    def test_whitespace_collapsed_and_trimmed(self):
        assert normalize_header("  E-Mail   Address ") == "e mail address"

    def test_none_is_empty(self):
        assert normalize_header(None) == ""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

class TestResolution:
    def test_spreadsheet_style_headers(self):
        mapping = resolve_headers(["Ticket_No", "Full Name", "Attendance", "Email"])
        assert mapping.index(ID) == 0
        assert mapping.index(NAME) == 1
        assert mapping.index(STATUS) == 2
        assert mapping.index(EMAIL) == 3

    def test_school_style_headers(self):
        mapping = resolve_headers(["Roll No", "Student Name", "Status"])
        assert (mapping.index(ID), mapping.index(NAME), mapping.index(STATUS)) == (0, 1, 2)

    def test_case_and_whitespace_insensitive(self):
        mapping = resolve_headers(["  p.no ", "NAME", "status  "])
        assert mapping.index(ID) == 0
        assert mapping.index(STATUS) == 2

    def test_plain_id_header_resolves_to_identifier(self):
        """'id' is contained in the 'student id' alias."""
        mapping = resolve_headers(["ID", "Name", "Status"])
        assert mapping.index(ID) == 0

    def test_unit_column_is_optional(self):
        mapping = resolve_headers(["P.No", "Name", "Status"])
        assert UNIT not in mapping
        assert mapping.header(UNIT) is None

    def test_unit_column_detected(self):
        mapping = resolve_headers(["P.No", "Name", "Department", "Status"])
        assert mapping.index(UNIT) == 2
        assert mapping.header(UNIT) == "Department"

    def test_header_returns_original_text(self):
        mapping = resolve_headers(["Ticket_No", "Full Name", "Attendance"])
        assert mapping.header(ID) == "Ticket_No"

    def test_as_dict_in_column_order(self):
        mapping = resolve_headers(["Email", "P.No", "Name", "Status"])
        assert mapping.as_dict() == {
            "Email": "Email",
            "P.No": "Identifier",
            "Name": "Name",
            "Status": "Status",
        }

    def test_deterministic(self):
        headers = ["Ticket No", "Candidate", "P/A Status", "Shop", "Mail"]
        assert resolve_headers(headers) == resolve_headers(headers)

    def test_none_headers_tolerated(self):
        mapping = resolve_headers([None, "P.No", "Name", "Status"])
        assert mapping.index(ID) == 1
        assert mapping.headers[0] == ""


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------

class TestPrecedence:
    def test_first_matching_column_wins(self):
        mapping = resolve_headers(["P.No", "Name", "Status", "Attendance"])
        assert mapping.index(STATUS) == 2
        assert get_unmatched_headers(mapping) == ["Attendance"]

    def test_shadowed_column_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rollcall.ingestion.column_mapper"):
            resolve_headers(["P.No", "Name", "Status", "Attendance"])
        assert "first occurrence wins" in caplog.text
        assert "Attendance" in caplog.text

    def test_column_binds_at_most_one_field(self):
        mapping = resolve_headers(["Roll No", "Name", "Present"])
        bound = list(mapping.positions.values())
        assert len(bound) == len(set(bound))

    def test_name_section_precedes_unit_section(self):
        """'Shop Name' matches the 'name' alias before any Unit alias is tried."""
        mapping = resolve_headers(["P.No", "Shop Name", "Status"])
        assert mapping.index(NAME) == 1
        assert UNIT not in mapping

    def test_name_then_shop_name_binds_unit(self):
        mapping = resolve_headers(["P.No", "Name", "Shop Name", "Status"])
        assert mapping.index(NAME) == 1
        assert mapping.index(UNIT) == 2


# ---------------------------------------------------------------------------
# Required fields
# ---------------------------------------------------------------------------

class TestRequiredFields:
    def test_missing_status_raises(self):
        with pytest.raises(SchemaError) as exc_info:
            resolve_headers(["P.No", "Name", "Email"])
        assert exc_info.value.missing_fields == [STATUS]

    def test_missing_all_three_in_declaration_order(self):
        with pytest.raises(SchemaError) as exc_info:
            resolve_headers(["Foo", "Bar"])
        assert exc_info.value.missing_fields == [ID, NAME, STATUS]

    def test_schema_error_is_ingestion_error(self):
        with pytest.raises(IngestionError) as exc_info:
            resolve_headers(["P.No", "Status"])
        err = exc_info.value
        assert err.missing_or_invalid_fields == ["Name"]
        assert "ROLLCALL INGESTION HALT" in str(err)
        assert "'P.No'" in str(err)

    def test_blank_headers_never_match(self):
        with pytest.raises(SchemaError):
            resolve_headers(["", "   ", None])


# ---------------------------------------------------------------------------
# Unmatched headers
# ---------------------------------------------------------------------------

class TestUnmatchedHeaders:
    def test_extra_columns_reported_in_order(self):
        mapping = resolve_headers(["P.No", "Remarks", "Name", "Status", "Overtime Hrs"])
        assert get_unmatched_headers(mapping) == ["Remarks", "Overtime Hrs"]

    def test_original_text_preserved(self):
        mapping = resolve_headers(["P.No", "Name", "Status", "  Remarks  "])
        assert get_unmatched_headers(mapping) == ["  Remarks  "]

    def test_nothing_unmatched(self):
        mapping = resolve_headers(["P.No", "Name", "Status"])
        assert get_unmatched_headers(mapping) == []


# ---------------------------------------------------------------------------
# Overrides and vocabulary extension
# ---------------------------------------------------------------------------

class TestOverrides:
    def test_override_binds_unknown_headers(self):
        mapping = resolve_headers(
            ["Badge", "Person", "Mark"],
            overrides={"Badge": ID, "Person": NAME, "Mark": STATUS},
        )
        assert (mapping.index(ID), mapping.index(NAME), mapping.index(STATUS)) == (0, 1, 2)

    def test_override_beats_fuzzy_match(self):
        mapping = resolve_headers(
            ["P.No", "Name", "Status", "Final Status"],
            overrides={"Final Status": STATUS},
        )
        assert mapping.index(STATUS) == 3
        assert get_unmatched_headers(mapping) == ["Status"]

    def test_extended_table_adds_aliases(self):
        table = DEFAULT_ALIAS_TABLE.extended([("Badge", ID)])
        mapping = resolve_headers(["Badge", "Name", "Status"], alias_table=table)
        assert mapping.index(ID) == 0

    def test_extended_leaves_default_untouched(self):
        before = len(DEFAULT_ALIAS_TABLE)
        DEFAULT_ALIAS_TABLE.extended([("Badge", ID)])
        assert len(DEFAULT_ALIAS_TABLE) == before
        assert "badge" not in DEFAULT_ALIAS_TABLE.aliases_for(ID)
