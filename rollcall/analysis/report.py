"""
Attendance Summary Report

Builds a renderable Report from the extracted records and their summary.
Rendering is deterministic: the same records, settings and generation time
always give the same text and HTML.
"""

from __future__ import annotations

import hashlib
import html
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from rollcall.analysis.aggregator import Summary, UnitStats, build_unit_index, unit_breakdown
from rollcall.ingestion.column_mapper import CanonicalField, HeaderMapping
from rollcall.ingestion.ingestion import RawRow, Record

# ============================================================================
# CONFIGURATION
# ============================================================================

REPORT_TITLE = "Attendance Summary Report"
EMAIL_SUBJECT = "Attendance Summary Report"
UNIT_PLACEHOLDER = "N/A"

BANNER = "═" * 75
RULE = "─" * 75
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# C0/C1 controls (CR, LF, TAB, ESC, ...) and Unicode line/paragraph separators.
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f\u2028\u2029]")


def plain_text(value: object) -> str:
    """Sheet text made safe for a single line of the plain-text report."""
    return _CONTROL_CHARS.sub(" ", str(value))


@dataclass(frozen=True)
class ReportSettings:
    title: str = REPORT_TITLE
    subject: str = EMAIL_SUBJECT
    organization: str = ""
    period_name: str = ""
    unit_placeholder: str = UNIT_PLACEHOLDER


DEFAULT_SETTINGS = ReportSettings()


# ============================================================================
# REPORT MODEL
# ============================================================================


@dataclass(frozen=True)
class AbsenteeEntry:
    identifier: str
    name: str
    unit: str


@dataclass(frozen=True)
class UnrecognizedEntry:
    identifier: str
    name: str
    raw_status: str


@dataclass(frozen=True)
class Report:
    title: str
    subject: str
    organization: str
    period_name: str
    summary: Summary
    absentees: tuple[AbsenteeEntry, ...]
    unrecognized: tuple[UnrecognizedEntry, ...]
    unit_breakdown: tuple[UnitStats, ...]
    unit_header: Optional[str]
    unmatched_headers: tuple[str, ...]
    data_hash: str
    generated_at: datetime = field(compare=False)

    @property
    def generated_label(self) -> str:
        return self.generated_at.strftime(TIMESTAMP_FORMAT)

    @property
    def unit_label(self) -> str:
        """Column heading for the unit: the sheet's own header, e.g. 'Shop Name'."""
        return self.unit_header or "Unit"

    # ------------------------------------------------------------------
    # Plain text
    # ------------------------------------------------------------------

    def as_text(self) -> str:
        s = self.summary
        t = plain_text
        unit_label = t(self.unit_label)
        lines = [BANNER, t(self.title).upper(), BANNER, ""]
        if self.organization:
            lines.append(f"Organization: {t(self.organization)}")
        if self.period_name:
            lines.append(f"Period: {t(self.period_name)}")
        lines += [
            f"Subject: {t(self.subject)}",
            f"Data Hash: {self.data_hash}",
            f"Generated: {self.generated_label}",
            "",
            BANNER,
            "ATTENDANCE AT A GLANCE",
            BANNER,
            "",
            f"Total Records: {s.total}",
            f"Present: {s.present}",
            f"Absent: {s.absent}",
        ]
        if s.unrecognized:
            lines.append(f"Unrecognized Status: {s.unrecognized}")
        lines += [f"Attendance Rate: {s.attendance_rate:.1f}%", ""]

        lines += [BANNER, "ABSENT LIST", BANNER, ""]
        if self.absentees:
            lines.append(f"Total Absent: {len(self.absentees)}")
            lines.append(RULE)
            for entry in self.absentees:
                lines.append(f"  {t(entry.identifier)} | {t(entry.name)} | {unit_label}: {t(entry.unit)}")
        else:
            lines.append("No absences recorded.")
        lines.append("")

        if self.unrecognized:
            lines += [BANNER, "UNRECOGNIZED STATUS VALUES", BANNER, ""]
            for entry in self.unrecognized:
                lines.append(f"  {t(entry.identifier)} | {t(entry.name)} | '{t(entry.raw_status)}'")
            lines.append("")

        if self.unit_breakdown:
            lines += [BANNER, f"BREAKDOWN BY {unit_label.upper()}", BANNER, ""]
            for stats in self.unit_breakdown:
                lines.append(
                    f"{t(stats.unit)}: {stats.total} total, {stats.present} present, "
                    f"{stats.absent} absent ({stats.attendance_rate:.1f}%)"
                )
            lines.append("")

        if self.unmatched_headers:
            lines += [BANNER, "UNMATCHED COLUMNS", BANNER, ""]
            lines.append("Not used for analysis: " + ", ".join(t(h) for h in self.unmatched_headers))
            lines.append("")

        lines.append(BANNER)
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # HTML (e-mail body)
    # ------------------------------------------------------------------

    def as_html(self) -> str:
        e = html.escape
        s = self.summary
        out = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '<meta charset="UTF-8">',
            f"<title>{e(self.subject)}</title>",
            "<style>",
            "  body { font-family: Arial, sans-serif; margin: 20px; background-color: #f9fafb; color: #1f2937; }",
            "  .container { max-width: 800px; margin: 0 auto; background-color: white; padding: 30px; border-radius: 8px; }",
            "  h1 { color: #1e3a8a; margin-bottom: 6px; }",
            "  .subtitle { color: #6b7280; margin-top: 0; }",
            "  .summary-box { background-color: #eff6ff; padding: 20px; border-radius: 5px; margin-bottom: 25px; }",
            "  .summary-item { margin: 8px 0; font-size: 16px; }",
            "  .summary-label { font-weight: bold; }",
            "  .present { color: #10b981; font-weight: bold; }",
            "  .absent { color: #dc2626; font-weight: bold; }",
            "  .section-title { font-size: 20px; font-weight: bold; color: #1e3a8a; margin: 25px 0 15px 0; padding-bottom: 8px; border-bottom: 2px solid #3b82f6; }",
            "  table { width: 100%; border-collapse: collapse; margin: 15px 0; }",
            "  th { background-color: #1e3a8a; color: white; padding: 10px; text-align: left; }",
            "  td { padding: 8px; border: 1px solid #e5e7eb; }",
            "  .footer { margin-top: 30px; padding-top: 15px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 13px; text-align: center; }",
            "</style>",
            "</head>",
            "<body>",
            '<div class="container">',
            f"<h1>{e(self.title)}</h1>",
        ]
        subtitle = " | ".join(e(part) for part in (self.organization, self.period_name) if part)
        if subtitle:
            out.append(f'<p class="subtitle">{subtitle}</p>')

        out += [
            '<div class="summary-box">',
            f'<div class="summary-item"><span class="summary-label">Total Records:</span> {s.total}</div>',
            f'<div class="summary-item"><span class="summary-label">Present:</span> <span class="present">{s.present}</span></div>',
            f'<div class="summary-item"><span class="summary-label">Absent:</span> <span class="absent">{s.absent}</span></div>',
        ]
        if s.unrecognized:
            out.append(
                f'<div class="summary-item"><span class="summary-label">Unrecognized Status:</span> {s.unrecognized}</div>'
            )
        out += [
            f'<div class="summary-item"><span class="summary-label">Attendance Rate:</span> {s.attendance_rate:.1f}%</div>',
            "</div>",
        ]

        if self.absentees:
            out += [
                f'<div class="section-title">Absent List ({len(self.absentees)})</div>',
                "<table>",
                f"<thead><tr><th>Name</th><th>Identifier</th><th>{e(self.unit_label)}</th></tr></thead>",
                "<tbody>",
            ]
            for entry in self.absentees:
                out.append(
                    f"<tr><td><strong>{e(entry.name)}</strong></td>"
                    f"<td>{e(entry.identifier)}</td><td>{e(entry.unit)}</td></tr>"
                )
            out += ["</tbody>", "</table>"]
        else:
            out.append('<div class="section-title">No absences recorded</div>')

        if self.unrecognized:
            out += [
                '<div class="section-title">Unrecognized Status Values</div>',
                "<table>",
                "<thead><tr><th>Name</th><th>Identifier</th><th>Status as entered</th></tr></thead>",
                "<tbody>",
            ]
            for entry in self.unrecognized:
                out.append(
                    f"<tr><td>{e(entry.name)}</td><td>{e(entry.identifier)}</td>"
                    f"<td>{e(entry.raw_status)}</td></tr>"
                )
            out += ["</tbody>", "</table>"]

        if self.unit_breakdown:
            out += [
                f'<div class="section-title">Breakdown by {e(self.unit_label)}</div>',
                "<table>",
                f"<thead><tr><th>{e(self.unit_label)}</th><th>Total</th><th>Present</th>"
                "<th>Absent</th><th>Rate</th></tr></thead>",
                "<tbody>",
            ]
            for stats in self.unit_breakdown:
                out.append(
                    f"<tr><td>{e(stats.unit)}</td><td>{stats.total}</td><td>{stats.present}</td>"
                    f"<td>{stats.absent}</td><td>{stats.attendance_rate:.1f}%</td></tr>"
                )
            out += ["</tbody>", "</table>"]

        if self.unmatched_headers:
            shown = ", ".join(e(h) for h in self.unmatched_headers)
            out.append(f"<p><em>Columns not used for analysis: {shown}</em></p>")

        out += [
            '<div class="footer">',
            f"<p>Report generated on: {self.generated_label} | Data hash: {self.data_hash}</p>",
            "<p>This is an automated attendance summary report.</p>",
            "</div>",
            "</div>",
            "</body>",
            "</html>",
        ]
        return "\n".join(out) + "\n"


# ============================================================================
# RENDERING
# ============================================================================


def compute_data_hash(records: Sequence[Record]) -> str:
    """Short md5 fingerprint of the record sequence, order-sensitive."""
    payload = "\n".join(
        f"{r.identifier}\t{r.name}\t{r.status.label}\t{r.email or ''}" for r in records
    )
    return hashlib.md5(payload.encode("utf-8")).hexdigest()[:8]


def render_report(
    summary: Summary,
    records: Sequence[Record],
    raw_rows: Sequence[RawRow],
    mapping: HeaderMapping,
    *,
    settings: Optional[ReportSettings] = None,
    generated_at: Optional[datetime] = None,
) -> Report:
    """
    Assemble the Report for one ingestion.

    Absent and unrecognized records are listed in ingestion order. The unit
    of each absentee is read from the first raw row carrying the same
    identifier; ``settings.unit_placeholder`` stands in when the sheet has
    no Unit column, no row matches, or the cell is blank.
    """
    settings = settings or DEFAULT_SETTINGS
    unit_index = build_unit_index(raw_rows, mapping)

    absentees = tuple(
        AbsenteeEntry(
            identifier=r.identifier,
            name=r.name,
            unit=unit_index.get(r.identifier) or settings.unit_placeholder,
        )
        for r in records if r.status.is_absent
    )
    unrecognized = tuple(
        UnrecognizedEntry(identifier=r.identifier, name=r.name, raw_status=r.status.label)
        for r in records if r.status.is_unrecognized
    )

    return Report(
        title=settings.title,
        subject=settings.subject,
        organization=settings.organization,
        period_name=settings.period_name,
        summary=summary,
        absentees=absentees,
        unrecognized=unrecognized,
        unit_breakdown=unit_breakdown(records, raw_rows, mapping, placeholder=settings.unit_placeholder),
        unit_header=mapping.header(CanonicalField.UNIT),
        unmatched_headers=tuple(mapping.unmatched_headers()),
        data_hash=compute_data_hash(records),
        generated_at=generated_at or datetime.now(),
    )
