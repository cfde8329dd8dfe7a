"""PDF rendering of an attendance Report (reportlab)."""

from __future__ import annotations

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from rollcall.analysis.report import Report

PRIMARY = colors.HexColor('#1e3a8a')
TEXT_DARK = colors.HexColor('#1f2937')
TEXT_LIGHT = colors.HexColor('#6b7280')
BORDER = colors.HexColor('#e5e7eb')
ROW_ALT = colors.HexColor('#f9fafb')


def _styles():
    styles = getSampleStyleSheet()
    return {
        'title': ParagraphStyle(
            'ReportTitle',
            parent=styles['Heading1'],
            fontSize=22,
            textColor=PRIMARY,
            spaceAfter=6,
            alignment=TA_CENTER
        ),
        'subtitle': ParagraphStyle(
            'ReportSubtitle',
            parent=styles['Normal'],
            fontSize=11,
            textColor=TEXT_LIGHT,
            spaceAfter=20,
            alignment=TA_CENTER
        ),
        'heading': ParagraphStyle(
            'ReportHeading',
            parent=styles['Heading2'],
            fontSize=14,
            textColor=PRIMARY,
            spaceBefore=12,
            spaceAfter=8
        ),
        'body': ParagraphStyle(
            'ReportBody',
            parent=styles['Normal'],
            fontSize=10,
            textColor=TEXT_DARK,
            spaceAfter=6,
            leading=14
        ),
        'cell': ParagraphStyle(
            'ReportCell',
            parent=styles['Normal'],
            fontSize=9,
            textColor=TEXT_DARK,
            leading=11
        ),
        'footer': ParagraphStyle(
            'ReportFooter',
            parent=styles['Normal'],
            fontSize=9,
            textColor=colors.HexColor('#9ca3af'),
            alignment=TA_CENTER
        ),
    }


def _table(header, rows, col_widths, cell_style):
    """Header row + body rows; every body cell is escaped text in a Paragraph."""
    data = [header] + [[Paragraph(escape(str(v)), cell_style) for v in row] for row in rows]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), PRIMARY),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 10),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, ROW_ALT]),
        ('GRID', (0, 0), (-1, -1), 0.5, BORDER),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    return table


def generate_report_pdf(report: Report) -> BytesIO:
    """Generate a printable PDF of ``report``; the buffer is rewound."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=letter, topMargin=0.75*inch, bottomMargin=0.75*inch,
        title=report.title, subject=report.subject,
    )
    st = _styles()
    story = []
    s = report.summary

    # Header
    story.append(Paragraph(escape(report.title), st['title']))
    subtitle = " | ".join(p for p in (report.organization, report.period_name) if p)
    story.append(Paragraph(escape(subtitle or report.subject), st['subtitle']))

    # Summary callout
    summary_rows = [
        ["Total Records", str(s.total)],
        ["Present", str(s.present)],
        ["Absent", str(s.absent)],
    ]
    if s.unrecognized:
        summary_rows.append(["Unrecognized Status", str(s.unrecognized)])
    summary_rows.append(["Attendance Rate", f"{s.attendance_rate:.1f}%"])

    summary_table = Table(summary_rows, colWidths=[3.25*inch, 3.25*inch])
    summary_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#eff6ff')),
        ('TEXTCOLOR', (0, 0), (-1, -1), TEXT_DARK),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 11),
        ('TOPPADDING', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ('LEFTPADDING', (0, 0), (-1, -1), 12),
    ]))
    story.append(summary_table)
    story.append(Spacer(1, 0.3*inch))

    # Absent list
    story.append(Paragraph("Absent List", st['heading']))
    if report.absentees:
        story.append(_table(
            ["Name", "Identifier", report.unit_label],
            [(a.name, a.identifier, a.unit) for a in report.absentees],
            [2.6*inch, 1.6*inch, 2.3*inch],
            st['cell'],
        ))
    else:
        story.append(Paragraph("No absences recorded.", st['body']))

    if report.unrecognized:
        story.append(Spacer(1, 0.15*inch))
        story.append(Paragraph("Unrecognized Status Values", st['heading']))
        story.append(_table(
            ["Name", "Identifier", "Status as entered"],
            [(u.name, u.identifier, u.raw_status) for u in report.unrecognized],
            [2.6*inch, 1.6*inch, 2.3*inch],
            st['cell'],
        ))

    if report.unit_breakdown:
        story.append(Spacer(1, 0.15*inch))
        story.append(Paragraph(f"Breakdown by {escape(report.unit_label)}", st['heading']))
        story.append(_table(
            [report.unit_label, "Total", "Present", "Absent", "Rate"],
            [
                (u.unit, u.total, u.present, u.absent, f"{u.attendance_rate:.1f}%")
                for u in report.unit_breakdown
            ],
            [2.5*inch, 1.0*inch, 1.0*inch, 1.0*inch, 1.0*inch],
            st['cell'],
        ))

    if report.unmatched_headers:
        story.append(Spacer(1, 0.15*inch))
        shown = escape(", ".join(report.unmatched_headers))
        story.append(Paragraph(f"<i>Columns not used for analysis: {shown}</i>", st['body']))

    # Footer
    story.append(Spacer(1, 0.4*inch))
    story.append(Paragraph(
        f"Generated {report.generated_label} | Data hash {report.data_hash}", st['footer']
    ))

    doc.build(story)
    buffer.seek(0)
    return buffer
