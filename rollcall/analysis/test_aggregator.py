"""Attendance statistics tests."""

from rollcall.analysis.aggregator import (
    Summary,
    UnitStats,
    aggregate,
    build_unit_index,
    unit_breakdown,
)
from rollcall.ingestion.column_mapper import CanonicalField
from rollcall.ingestion.ingestion import Record, extract_grid, extract_records
from rollcall.ingestion.sample_data import make_sample_grid
from rollcall.ingestion.status import ABSENT, PRESENT, CanonicalStatus


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_record(identifier="1", status=PRESENT):
    return Record(identifier=identifier, name=f"Person {identifier}", status=status)


class TestAggregate:
    def test_empty(self):
        assert aggregate([]) == Summary(0, 0, 0, 0.0)

    def test_unrecognized_counts_in_total_only(self):
        records = [
            make_record("1", PRESENT),
            make_record("2", PRESENT),
            make_record("3", ABSENT),
            make_record("4", CanonicalStatus.unrecognized("Late")),
        ]
        summary = aggregate(records)
        assert summary == Summary(4, 2, 1, 50.0)
        assert summary.unrecognized == 1

    def test_all_present(self):
        summary = aggregate([make_record(str(i)) for i in range(3)])
        assert summary.attendance_rate == 100.0

    def test_all_absent(self):
        summary = aggregate([make_record(str(i), ABSENT) for i in range(3)])
        assert summary == Summary(3, 0, 3, 0.0)

    def test_sample_sheet(self):
        summary = aggregate(extract_grid(make_sample_grid()).records)
        assert summary == Summary(10, 6, 3, 60.0)
        assert summary.unrecognized == 1


class TestUnitLookup:
    def test_index_from_sample(self):
        mapping, raw_rows, _ = extract_grid(make_sample_grid())
        index = build_unit_index(raw_rows, mapping)
        assert index["003"] == "Foundry"
        assert index["010"] == "Assembly"

    def test_first_row_per_identifier_wins(self):
        mapping, raw_rows, records = extract_records(
            ["P.No", "Name", "Dept", "Status"],
            [["1", "Ann", "Stores", "A"], ["1", "Ann", "Foundry", "A"]],
        )
        assert build_unit_index(raw_rows, mapping)[records[1].identifier] == "Stores"

    def test_identifier_cell_trimmed_before_matching(self):
        mapping, raw_rows, records = extract_records(
            ["P.No", "Name", "Dept", "Status"],
            [[" 5 ", "Ann", "Stores", "A"]],
        )
        assert build_unit_index(raw_rows, mapping)[records[0].identifier] == "Stores"

    def test_blank_unit_is_none(self):
        mapping, raw_rows, records = extract_records(
            ["P.No", "Name", "Dept", "Status"],
            [["1", "Ann", "  ", "A"]],
        )
        assert build_unit_index(raw_rows, mapping).get(records[0].identifier) is None

    def test_no_unit_column(self):
        mapping, raw_rows, records = extract_records(["P.No", "Name", "Status"], [["1", "Ann", "A"]])
        assert build_unit_index(raw_rows, mapping) == {}
        assert build_unit_index(raw_rows, mapping).get(records[0].identifier) is None

    def test_unit_read_from_bound_column_when_header_repeats(self):
        """The second 'Name' column binds Unit via 'shop name'; its own cell is used."""
        mapping, raw_rows, records = extract_records(
            ["Roll No", "Name", "Status", "Name"],
            [["1", "Ann", "A", "Foundry"]],
        )
        assert mapping.index(CanonicalField.UNIT) == 3
        assert build_unit_index(raw_rows, mapping) == {"1": "Foundry"}

    def test_plain_dict_rows_use_header_text(self):
        mapping, _, _ = extract_records(["P.No", "Name", "Dept", "Status"], [])
        raw_rows = [{"P.No": "7", "Name": "Ann", "Dept": "Stores", "Status": "A"}]
        assert build_unit_index(raw_rows, mapping) == {"7": "Stores"}


class TestUnitBreakdown:
    def test_sample_first_seen_order(self):
        mapping, raw_rows, records = extract_grid(make_sample_grid())
        breakdown = unit_breakdown(records, raw_rows, mapping)
        assert [u.unit for u in breakdown] == ["Machine Shop", "Foundry", "Paint Shop", "Assembly"]
        assert breakdown[1] == UnitStats("Foundry", total=2, present=1, absent=1)

    def test_counts_sum_to_totals(self):
        mapping, raw_rows, records = extract_grid(make_sample_grid())
        breakdown = unit_breakdown(records, raw_rows, mapping)
        assert sum(u.total for u in breakdown) == len(records)
        assert sum(u.absent for u in breakdown) == aggregate(records).absent

    def test_unit_rate(self):
        assert UnitStats("Foundry", 4, 3, 1).attendance_rate == 75.0
        assert UnitStats("Empty", 0, 0, 0).attendance_rate == 0.0

    def test_empty_without_unit_column(self):
        mapping, raw_rows, records = extract_records(["P.No", "Name", "Status"], [["1", "Ann", "A"]])
        assert unit_breakdown(records, raw_rows, mapping) == ()

    def test_blank_units_grouped_under_placeholder(self):
        mapping, raw_rows, records = extract_records(
            ["P.No", "Name", "Dept", "Status"],
            [["1", "Ann", "", "A"], ["2", "Bob", "Stores", "P"], ["3", "Cy", None, "P"]],
        )
        breakdown = unit_breakdown(records, raw_rows, mapping, placeholder="Unassigned")
        assert breakdown == (
            UnitStats("Unassigned", total=2, present=1, absent=1),
            UnitStats("Stores", total=1, present=1, absent=0),
        )
