"""Demo attendance sheet used by the upload page and the tests."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import pandas as pd

SAMPLE_HEADERS: list[str] = ["P.No", "Name", "Shop Name", "Status", "Email"]

SAMPLE_ROWS: list[list[str]] = [
    ["001", "John Smith", "Machine Shop", "Present", "john.smith@example.com"],
    ["002", "Emma Johnson", "Machine Shop", "Present", "emma.johnson@example.com"],
    ["003", "Michael Brown", "Foundry", "Absent", "michael.brown@example.com"],
    ["004", "Sarah Davis", "Foundry", "P", "sarah.davis@example.com"],
    ["005", "Robert Wilson", "Paint Shop", "A", "robert.wilson@example.com"],
    ["006", "Jennifer Taylor", "Paint Shop", "✓", "jennifer.taylor@example.com"],
    ["007", "William Anderson", "Machine Shop", "1", "william.anderson@example.com"],
    ["008", "Lisa Martinez", "Assembly", "Sick", "lisa.martinez@example.com"],
    ["009", "David Thompson", "Assembly", "yes", "david.thompson@example.com"],
    ["010", "Karen Garcia", "Assembly", "Late", "karen.garcia@example.com"],
]


def make_sample_grid() -> list[list[Optional[str]]]:
    """Header row + ten employees across four shops, mixed status spellings."""
    return [list(SAMPLE_HEADERS)] + [list(row) for row in SAMPLE_ROWS]


def sample_frame() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_ROWS, columns=SAMPLE_HEADERS)


def sample_csv_bytes() -> bytes:
    return sample_frame().to_csv(index=False).encode("utf-8")


def write_sample_workbook(path: Union[str, Path]) -> Path:
    """Write the demo sheet as an .xlsx workbook (sheet 'Attendance')."""
    path = Path(path)
    sample_frame().to_excel(path, sheet_name="Attendance", index=False)
    return path
