"""
Structured halt errors for Rollcall ingestion.

Every error is terminal for one ingestion call: no partial dataset is
returned and nothing is retried. Each carries the fix steps an operator
needs to correct the sheet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from rollcall.ingestion.column_mapper import CanonicalField


@dataclass
class IngestionError(Exception):
    """Structured halt error."""
    reason: str
    missing_or_invalid_fields: list[str]
    operator_fix_steps: list[str]

    def __str__(self) -> str:
        lines = [
            "═" * 60,
            "ROLLCALL INGESTION HALT",
            "═" * 60,
            f"Reason          : {self.reason}",
        ]
        if self.missing_or_invalid_fields:
            lines.append(f"Missing/Invalid : {', '.join(self.missing_or_invalid_fields)}")
        lines.append("Fix Steps:")
        for i, step in enumerate(self.operator_fix_steps, 1):
            lines.append(f"  {i}. {step}")
        lines.append("═" * 60)
        return "\n".join(lines)


class SchemaError(IngestionError):
    """A required canonical field has no matching column."""

    def __init__(self, missing_fields: list["CanonicalField"], headers: list[str]):
        self.missing_fields = list(missing_fields)
        self.headers = list(headers)
        names = [f.value for f in self.missing_fields]
        shown = ", ".join(f"'{h}'" for h in self.headers if h.strip()) or "(none)"
        super().__init__(
            reason="Required columns missing",
            missing_or_invalid_fields=names,
            operator_fix_steps=[
                f"Add or rename column(s) for: {', '.join(names)}.",
                f"Headers found: {shown}.",
                "Use a recognizable header such as 'P.No' / 'Roll No', "
                "'Name' and 'Status' / 'Attendance'.",
            ],
        )


class ValidationError(IngestionError):
    """A required cell is blank in a specific data row."""

    def __init__(self, row_index: int, field: "CanonicalField"):
        self.row_index = row_index
        self.field = field
        super().__init__(
            reason=f"Blank {field.value} at sheet row {self.sheet_row}",
            missing_or_invalid_fields=[field.value],
            operator_fix_steps=[
                f"Fill in the {field.value} cell on row {self.sheet_row} "
                "(row 1 is the header row).",
                "Delete the row entirely if it is not an attendance entry.",
            ],
        )

    @property
    def sheet_row(self) -> int:
        """1-based spreadsheet row, counting the header as row 1."""
        return self.row_index + 2


class EmptyInputError(IngestionError):
    """The grid has no header row."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            reason=detail or "Sheet is empty or has no header row",
            missing_or_invalid_fields=[],
            operator_fix_steps=[
                "Verify the first row of the first sheet holds the column headers.",
                "Ensure the file was exported with data before uploading.",
            ],
        )


class UnsupportedFileError(IngestionError):
    """The uploaded file is not a CSV or Excel workbook."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            reason=f"Unsupported file format: {filename}",
            missing_or_invalid_fields=[],
            operator_fix_steps=[
                "Upload a .csv, .xlsx or .xls file.",
            ],
        )
