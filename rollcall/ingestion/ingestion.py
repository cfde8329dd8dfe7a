"""
Rollcall Ingestion

CONTRACT ANCHORS
----------------
- Input is a materialized grid of str-or-None cells; row 0 holds headers.
- Headers resolve through the column mapper; Identifier, Name and Status
  are required.
- Entirely-empty rows are skipped, never counted as failures.
- Every kept row is captured in full as a RawRow (all original columns).
- The first blank required cell halts the whole ingestion.
  No partial datasets. No silent fallbacks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, NamedTuple, Optional, Sequence

from rollcall.ingestion.column_mapper import (
    DEFAULT_ALIAS_TABLE,
    REQUIRED_FIELDS,
    AliasTable,
    CanonicalField,
    HeaderMapping,
    resolve_headers,
)
from rollcall.ingestion.errors import EmptyInputError, IngestionError, ValidationError
from rollcall.ingestion.status import CanonicalStatus, normalize_status

logger = logging.getLogger(__name__)

Cell = Optional[str]
Grid = Sequence[Sequence[Cell]]


class RawRow(dict):
    """
    Header text -> cell for one data row.

    Duplicated header text keeps the first column. ``cells`` holds every
    column by position, so a field bound to a later duplicate stays reachable.
    """

    def __init__(self, items=(), cells: Sequence[Cell] = ()):
        super().__init__(items)
        self.cells: tuple[Cell, ...] = tuple(cells)

    def cell(self, position: Optional[int]) -> Cell:
        if position is None or position >= len(self.cells):
            return None
        return self.cells[position]


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Record:
    identifier: str
    name: str
    status: CanonicalStatus
    email: Optional[str] = None


class ExtractionResult(NamedTuple):
    mapping: HeaderMapping
    raw_rows: list[RawRow]
    records: list[Record]


# Which Record attribute each canonical field populates. None = auxiliary
# column, reachable only through RawRow.
_RECORD_ATTRIBUTE: dict[CanonicalField, Optional[str]] = {
    CanonicalField.IDENTIFIER: "identifier",
    CanonicalField.NAME: "name",
    CanonicalField.STATUS: "status",
    CanonicalField.EMAIL: "email",
    CanonicalField.UNIT: None,
}

if set(_RECORD_ATTRIBUTE) != set(CanonicalField):
    raise RuntimeError("Record attribute table must cover every CanonicalField")


# ---------------------------------------------------------------------------
# Internal utilities
# ---------------------------------------------------------------------------

_INVISIBLE = re.compile(r"[\u200b\u200c\u200d\ufeff]")


def _clean_cell(value: object) -> Cell:
    """Mechanical normalize: str(), BOM/zero-width characters removed."""
    if value is None:
        return None
    return _INVISIBLE.sub("", str(value))


def _is_blank(value: Cell) -> bool:
    return value is None or not value.strip()


def _is_empty_row(row: Optional[Sequence[Cell]]) -> bool:
    if not row:
        return True
    return all(_is_blank(_clean_cell(cell)) for cell in row)


def _build_raw_row(headers: Sequence[str], row: Sequence[Cell]) -> RawRow:
    """Every header -> cell. Short rows pad with None; duplicate headers keep the first column."""
    cells = [_clean_cell(row[index]) if index < len(row) else None for index in range(len(headers))]
    items: dict[str, Cell] = {}
    for header, value in zip(headers, cells):
        items.setdefault(header, value)
    return RawRow(items, cells=cells)


def _convert(target: CanonicalField, value: str) -> object:
    if target is CanonicalField.STATUS:
        return normalize_status(value)
    return value


def _build_record(
    row_index: int,
    row: Sequence[Cell],
    mapping: HeaderMapping,
) -> Record:
    values: dict[str, object] = {}
    for target, position in mapping.positions.items():
        attribute = _RECORD_ATTRIBUTE[target]
        if attribute is None:
            continue
        cell = _clean_cell(row[position]) if position < len(row) else None
        if _is_blank(cell):
            continue
        values[attribute] = _convert(target, cell.strip())

    for required in REQUIRED_FIELDS:
        if _RECORD_ATTRIBUTE[required] not in values:
            raise ValidationError(row_index=row_index, field=required)

    return Record(**values)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def extract_records(
    header_row: Optional[Sequence[Cell]],
    data_rows: Sequence[Optional[Sequence[Cell]]],
    *,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
    overrides: Optional[Mapping[str, CanonicalField]] = None,
) -> ExtractionResult:
    """
    Build canonical records from a header row and its data rows.

    Parameters
    ----------
    header_row : sequence of str or None
        The sheet's first row.
    data_rows : sequence of rows
        Remaining rows, in sheet order. ``None`` or all-blank rows are skipped.
    alias_table : AliasTable
        Header vocabulary.
    overrides : mapping, optional
        Operator-confirmed ``{raw header: CanonicalField}`` bindings.

    Returns
    -------
    ExtractionResult
        ``(mapping, raw_rows, records)``; ``raw_rows[i]`` is the full
        original row behind ``records[i]``.

    Raises
    ------
    EmptyInputError
        No header row, or a header row with no text in it.
    SchemaError
        Identifier, Name or Status could not be resolved.
    ValidationError
        First data row with a blank Identifier, Name or Status cell.
        ``row_index`` is the position in ``data_rows``.
    """
    if _is_empty_row(header_row):
        raise EmptyInputError()

    headers = [_clean_cell(h) or "" for h in header_row]
    mapping = resolve_headers(headers, alias_table=alias_table, overrides=overrides)

    raw_rows: list[RawRow] = []
    records: list[Record] = []
    skipped = 0

    for row_index, row in enumerate(data_rows):
        if _is_empty_row(row):
            skipped += 1
            continue
        records.append(_build_record(row_index, row, mapping))
        raw_rows.append(_build_raw_row(mapping.headers, row))

    logger.info(
        "[ingestion] %d records extracted, %d empty rows skipped; columns %s",
        len(records), skipped, mapping.as_dict(),
    )
    unmatched = mapping.unmatched_headers()
    if unmatched:
        logger.warning("[ingestion] unmatched columns kept in raw rows only: %s", unmatched)

    return ExtractionResult(mapping=mapping, raw_rows=raw_rows, records=records)


def extract_grid(
    grid: Optional[Grid],
    *,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
    overrides: Optional[Mapping[str, CanonicalField]] = None,
) -> ExtractionResult:
    """Split ``grid`` into header + data rows and run :func:`extract_records`."""
    if not grid:
        raise EmptyInputError()
    return extract_records(grid[0], grid[1:], alias_table=alias_table, overrides=overrides)


def is_valid_grid(
    grid: Optional[Grid],
    *,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
    overrides: Optional[Mapping[str, CanonicalField]] = None,
) -> bool:
    """
    True when ``grid`` ingests cleanly and yields at least one record.

    Validation-only: the halt reason is logged, not raised.
    """
    try:
        result = extract_grid(grid, alias_table=alias_table, overrides=overrides)
    except IngestionError as e:
        logger.warning("[ingestion] validation failed: %s", e.reason)
        return False
    if not result.records:
        logger.warning("[ingestion] validation failed: no attendance rows")
        return False
    return True
