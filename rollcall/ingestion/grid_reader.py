"""
Spreadsheet decoding for the application shell.

Turns a CSV or Excel upload into the plain grid the ingestion core expects:
every cell a string, blanks as None, row 0 the header row. Only the first
sheet of a workbook is read.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import IO, Optional, Union

import pandas as pd

from rollcall.ingestion.errors import IngestionError, UnsupportedFileError

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xlsx", ".xls")

Source = Union[str, Path, IO[bytes]]


def _source_name(source: Source, filename: Optional[str]) -> str:
    if filename:
        return filename
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "") or ""


def _frame_to_grid(df: pd.DataFrame) -> list[list[Optional[str]]]:
    grid: list[list[Optional[str]]] = []
    for row in df.itertuples(index=False, name=None):
        cells = [None if pd.isna(v) or str(v).strip() == "" else str(v) for v in row]
        grid.append(cells)
    # Trailing all-blank rows are formatting residue in most exports.
    while grid and all(c is None for c in grid[-1]):
        grid.pop()
    return grid


def read_grid(source: Source, filename: Optional[str] = None) -> list[list[Optional[str]]]:
    """
    Read a CSV or Excel file into a grid of str-or-None cells.

    Parameters
    ----------
    source : path or binary file-like
        The upload. Streamlit's ``UploadedFile`` works directly.
    filename : str, optional
        Used to pick the decoder when ``source`` is a buffer without a name.

    Raises
    ------
    UnsupportedFileError
        Extension is not .csv, .xlsx or .xls.
    IngestionError
        The file exists but cannot be parsed.
    """
    name = _source_name(source, filename)
    suffix = Path(name).suffix.lower()

    if suffix not in CSV_EXTENSIONS + EXCEL_EXTENSIONS:
        raise UnsupportedFileError(name or "<unnamed upload>")

    try:
        if suffix in CSV_EXTENSIONS:
            df = pd.read_csv(
                source, header=None, dtype=str, keep_default_na=False,
                skip_blank_lines=True,
            )
        else:
            df = pd.read_excel(source, header=None, dtype=str, sheet_name=0)
    except pd.errors.EmptyDataError:
        return []
    except (ValueError, OSError, zipfile.BadZipFile, pd.errors.ParserError) as e:
        raise IngestionError(
            reason="File is not parseable",
            missing_or_invalid_fields=[],
            operator_fix_steps=[
                f"Verify {Path(name).name or 'the upload'} is a valid {suffix[1:].upper()} file.",
                f"Parse error: {e}",
            ],
        ) from e

    grid = _frame_to_grid(df)
    logger.info("[grid_reader] %s: %d rows read (including header)", Path(name).name, len(grid))
    return grid
