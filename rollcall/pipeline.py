"""
End-to-end attendance run: file -> grid -> records -> summary -> report.

Usage:
    rollcall attendance.xlsx
    rollcall attendance.csv --period "October 2026" --html report.html --pdf report.pdf

Exit codes: 0 ok, 1 usage error, 2 ingestion halt, 3 report file not written.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional, Sequence

from rollcall.analysis.aggregator import Summary, aggregate
from rollcall.analysis.report import Report, ReportSettings, render_report
from rollcall.analysis.report_pdf import generate_report_pdf
from rollcall.ingestion.column_mapper import DEFAULT_ALIAS_TABLE, AliasTable, CanonicalField, HeaderMapping
from rollcall.ingestion.errors import IngestionError
from rollcall.ingestion.grid_reader import Source, read_grid
from rollcall.ingestion.ingestion import Grid, RawRow, Record, extract_grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceRun:
    """Everything one ingestion produced, for the page and the CLI."""
    mapping: HeaderMapping
    raw_rows: list[RawRow]
    records: list[Record]
    summary: Summary
    report: Report


def process_grid(
    grid: Optional[Grid],
    *,
    settings: Optional[ReportSettings] = None,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
    overrides: Optional[Mapping[str, CanonicalField]] = None,
    generated_at: Optional[datetime] = None,
) -> AttendanceRun:
    mapping, raw_rows, records = extract_grid(grid, alias_table=alias_table, overrides=overrides)
    summary = aggregate(records)
    report = render_report(
        summary, records, raw_rows, mapping, settings=settings, generated_at=generated_at,
    )
    logger.info(
        "[pipeline] %d records: %d present, %d absent, %.1f%% attendance",
        summary.total, summary.present, summary.absent, summary.attendance_rate,
    )
    return AttendanceRun(
        mapping=mapping, raw_rows=raw_rows, records=records, summary=summary, report=report,
    )


def process_attendance_file(
    source: Source,
    filename: Optional[str] = None,
    *,
    settings: Optional[ReportSettings] = None,
    alias_table: AliasTable = DEFAULT_ALIAS_TABLE,
    overrides: Optional[Mapping[str, CanonicalField]] = None,
) -> AttendanceRun:
    """
    Read a CSV/Excel attendance sheet and build its report.

    Raises
    ------
    IngestionError
        Unsupported or unreadable file, missing required columns, or a
        blank required cell. Nothing partial is returned.
    """
    grid = read_grid(source, filename=filename)
    return process_grid(grid, settings=settings, alias_table=alias_table, overrides=overrides)


# ============================================================================
# CLI
# ============================================================================


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1; exit 2 is reserved for ingestion halts."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        raise SystemExit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="rollcall",
        description="Summarize an attendance sheet (CSV or Excel).",
    )
    parser.add_argument("file", help="attendance sheet (.csv, .xlsx or .xls)")
    parser.add_argument("--organization", default="", help="organization shown in the report header")
    parser.add_argument("--period", default="", help="period name, e.g. 'October 2026'")
    parser.add_argument("--html", metavar="OUT", help="also write the HTML report to OUT")
    parser.add_argument("--pdf", metavar="OUT", help="also write the PDF report to OUT")
    parser.add_argument("-v", "--verbose", action="store_true", help="log header bindings and counts")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = ReportSettings(organization=args.organization, period_name=args.period)
    try:
        run = process_attendance_file(args.file, settings=settings)
    except IngestionError as e:
        print(str(e))
        return 2

    print(run.report.as_text())

    try:
        if args.html:
            Path(args.html).write_text(run.report.as_html(), encoding="utf-8")
            print(f"HTML report written to {args.html}")
        if args.pdf:
            Path(args.pdf).write_bytes(generate_report_pdf(run.report).getvalue())
            print(f"PDF report written to {args.pdf}")
    except OSError as e:
        print(f"rollcall: cannot write report: {e}", file=sys.stderr)
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
