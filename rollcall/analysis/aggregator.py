"""
Attendance statistics.

Pure functions over extracted records. Nothing here raises on odd input:
an empty sheet is a valid sheet with zero people in it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from rollcall.ingestion.column_mapper import CanonicalField, HeaderMapping
from rollcall.ingestion.ingestion import RawRow, Record

# ============================================================================
# SUMMARY
# ============================================================================


@dataclass(frozen=True)
class Summary:
    total: int
    present: int
    absent: int
    attendance_rate: float

    @property
    def unrecognized(self) -> int:
        """Rows whose status was neither Present nor Absent."""
        return self.total - self.present - self.absent


def _rate(present: int, total: int) -> float:
    return (present / total * 100) if total > 0 else 0.0


def aggregate(records: Sequence[Record]) -> Summary:
    """
    Count Present/Absent records and compute the attendance rate.

    Unrecognized statuses count toward ``total`` only, so they pull the
    rate down. An empty sequence gives ``Summary(0, 0, 0, 0.0)``.
    """
    total = len(records)
    present = sum(1 for r in records if r.status.is_present)
    absent = sum(1 for r in records if r.status.is_absent)
    return Summary(total=total, present=present, absent=absent, attendance_rate=_rate(present, total))


# ============================================================================
# UNIT LOOKUP
# ============================================================================


def _bound_cell(raw: RawRow, mapping: HeaderMapping, position: int) -> Optional[str]:
    """Cell of the column bound at ``position``; plain dicts fall back to header text."""
    if isinstance(raw, RawRow):
        return raw.cell(position)
    return raw.get(mapping.headers[position])


def build_unit_index(
    raw_rows: Sequence[RawRow],
    mapping: HeaderMapping,
) -> dict[str, Optional[str]]:
    """
    Identifier -> Unit cell text, taken from the first raw row per identifier.

    Empty when the sheet has no Unit column. Blank Unit cells map to None.
    """
    id_position = mapping.index(CanonicalField.IDENTIFIER)
    unit_position = mapping.index(CanonicalField.UNIT)
    if id_position is None or unit_position is None:
        return {}

    index: dict[str, Optional[str]] = {}
    for raw in raw_rows:
        identifier = (_bound_cell(raw, mapping, id_position) or "").strip()
        if not identifier or identifier in index:
            continue
        unit = (_bound_cell(raw, mapping, unit_position) or "").strip()
        index[identifier] = unit or None
    return index


# ============================================================================
# UNIT BREAKDOWN
# ============================================================================


@dataclass(frozen=True)
class UnitStats:
    unit: str
    total: int
    present: int
    absent: int

    @property
    def attendance_rate(self) -> float:
        return _rate(self.present, self.total)


def unit_breakdown(
    records: Sequence[Record],
    raw_rows: Sequence[RawRow],
    mapping: HeaderMapping,
    placeholder: str = "N/A",
) -> tuple[UnitStats, ...]:
    """
    Per-unit (shop, department, ...) counts in first-seen order.

    Returns an empty tuple when no Unit column was resolved. Records whose
    unit cannot be found are grouped under ``placeholder``.
    """
    if CanonicalField.UNIT not in mapping:
        return ()

    index = build_unit_index(raw_rows, mapping)
    counts: dict[str, list[int]] = {}
    for record in records:
        unit = index.get(record.identifier) or placeholder
        bucket = counts.setdefault(unit, [0, 0, 0])
        bucket[0] += 1
        if record.status.is_present:
            bucket[1] += 1
        elif record.status.is_absent:
            bucket[2] += 1

    return tuple(
        UnitStats(unit=unit, total=t, present=p, absent=a)
        for unit, (t, p, a) in counts.items()
    )
