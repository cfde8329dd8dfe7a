import streamlit as st
import pandas as pd
from datetime import datetime

from rollcall.analysis.report import ReportSettings
from rollcall.analysis.report_pdf import generate_report_pdf
from rollcall.ingestion.column_mapper import DEFAULT_ALIAS_TABLE, CanonicalField
from rollcall.ingestion.errors import IngestionError
from rollcall.ingestion.sample_data import sample_csv_bytes
from rollcall.pipeline import process_attendance_file

# Page config
st.set_page_config(
    page_title="Rollcall Attendance Analyzer",
    page_icon="📋",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for professional styling
st.markdown("""
<style>
    :root {
        --primary-color: #1e3a8a;
        --secondary-color: #3b82f6;
        --accent-color: #10b981;
        --text-dark: #1f2937;
        --text-light: #6b7280;
        --border-color: #e5e7eb;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}

    h1 {
        color: var(--primary-color);
        font-weight: 700;
        letter-spacing: -0.02em;
    }

    .subtitle {
        color: var(--text-light);
        font-size: 1.1rem;
        font-weight: 500;
        margin-bottom: 2rem;
        padding-bottom: 1.5rem;
        border-bottom: 2px solid var(--border-color);
    }

    [data-testid="stMetricValue"] {
        font-size: 2rem;
        font-weight: 700;
        color: var(--primary-color);
    }

    .stDownloadButton > button {
        background-color: var(--accent-color);
        color: white;
        border: none;
        border-radius: 0.5rem;
        font-weight: 600;
    }

    [data-testid="stFileUploader"] {
        background-color: white;
        border: 2px dashed var(--border-color);
        border-radius: 0.75rem;
        padding: 2rem;
    }
</style>
""", unsafe_allow_html=True)


def clean_filename(text):
    """'October 2026, Week 1' -> 'October_2026_Week_1'"""
    return text.strip().replace(' ', '_').replace(',', '').replace('/', '-') or "report"


# Header
st.markdown("# 📋 Rollcall Attendance Analyzer")
st.markdown('<div class="subtitle">Flexible column detection | Deterministic attendance summaries</div>', unsafe_allow_html=True)

# Sidebar
with st.sidebar:
    st.markdown("## About This Tool")

    st.markdown("""
    Upload any attendance sheet. Column names do not need to match
    exactly: "P.No", "Roll No" and "Ticket_No" are all recognized.

    **Required Columns:**
    - Identifier (P.No, Roll No, Ticket No, Employee ID...)
    - Name
    - Status (Status, Attendance, Present...)

    **Optional Columns:**
    - Email
    - Shop / Department / Trade

    **Status values:** P, Present, Yes, 1, ✓ count as present;
    A, Absent, No, 0, ✗, Leave, Sick count as absent.
    """)

    with st.expander("Recognized header aliases"):
        for target in CanonicalField:
            st.markdown(f"**{target.value}:** {', '.join(DEFAULT_ALIAS_TABLE.aliases_for(target))}")

# Main content
st.markdown("## Configure Report Settings")

col1, col2 = st.columns(2)

with col1:
    organization = st.text_input(
        "Organization",
        value="",
        placeholder="e.g., Central Workshop",
        help="Shown in the report header"
    )

with col2:
    period_name = st.text_input(
        "Period Name",
        value=datetime.now().strftime("%d %B %Y"),
        help="The day or period this sheet covers"
    )

st.markdown("## Upload Your Attendance Sheet")

uploaded_file = st.file_uploader(
    "Choose a file",
    type=['csv', 'xlsx', 'xls'],
    help="Upload a CSV or Excel attendance sheet (first sheet is read)",
    label_visibility="collapsed"
)

if uploaded_file is not None:
    try:
        settings = ReportSettings(organization=organization, period_name=period_name)

        with st.spinner("Analyzing attendance data..."):
            run = process_attendance_file(uploaded_file, filename=uploaded_file.name, settings=settings)

        report = run.report
        summary = run.summary

        st.success(f"✅ File processed! Found **{summary.total} records**")

        with st.expander("🔎 Detected columns", expanded=False):
            st.json(run.mapping.as_dict())
            if report.unmatched_headers:
                st.caption("Not used for analysis: " + ", ".join(report.unmatched_headers))

        # Key metrics
        st.markdown("### Key Findings")
        col1, col2, col3, col4 = st.columns(4)

        with col1:
            st.metric("Total Records", f"{summary.total:,}")

        with col2:
            st.metric("Present", f"{summary.present:,}")

        with col3:
            st.metric("Absent", f"{summary.absent:,}")

        with col4:
            st.metric("Attendance Rate", f"{summary.attendance_rate:.1f}%")

        if summary.unrecognized:
            st.warning(
                f"⚠️ {summary.unrecognized} row(s) have a status that is neither present nor absent. "
                "They count toward the total only."
            )

        tab1, tab2, tab3 = st.tabs(["🚫 Absent List", "🏭 Breakdown", "📄 Full Report"])

        with tab1:
            if report.absentees:
                st.dataframe(
                    pd.DataFrame(
                        [(a.name, a.identifier, a.unit) for a in report.absentees],
                        columns=["Name", "Identifier", report.unit_label],
                    ),
                    use_container_width=True,
                    hide_index=True,
                )
            else:
                st.info("No absences recorded.")

            if report.unrecognized:
                st.markdown("#### Unrecognized Status Values")
                st.dataframe(
                    pd.DataFrame(
                        [(u.name, u.identifier, u.raw_status) for u in report.unrecognized],
                        columns=["Name", "Identifier", "Status as entered"],
                    ),
                    use_container_width=True,
                    hide_index=True,
                )

        with tab2:
            if report.unit_breakdown:
                st.dataframe(
                    pd.DataFrame(
                        [
                            (u.unit, u.total, u.present, u.absent, round(u.attendance_rate, 1))
                            for u in report.unit_breakdown
                        ],
                        columns=[report.unit_label, "Total", "Present", "Absent", "Rate (%)"],
                    ),
                    use_container_width=True,
                    hide_index=True,
                )
            else:
                st.info("No shop / department column was detected in this sheet.")

        with tab3:
            st.text(report.as_text())

        # Downloads
        st.markdown("### Download Report")
        base_name = f"attendance_{clean_filename(period_name)}"
        col1, col2, col3 = st.columns(3)

        with col1:
            st.download_button(
                label="📥 Download PDF",
                data=generate_report_pdf(report),
                file_name=f"{base_name}.pdf",
                mime="application/pdf",
                use_container_width=True
            )

        with col2:
            st.download_button(
                label="📥 Download HTML (e-mail body)",
                data=report.as_html(),
                file_name=f"{base_name}.html",
                mime="text/html",
                use_container_width=True
            )

        with col3:
            st.download_button(
                label="📥 Download Text",
                data=report.as_text(),
                file_name=f"{base_name}.txt",
                mime="text/plain",
                use_container_width=True
            )

    except IngestionError as e:
        st.error(f"❌ {e.reason}")
        st.code(str(e), language=None)

    except Exception as e:
        st.error(f"❌ Error processing file: {str(e)}")
        with st.expander("See error details"):
            st.exception(e)

else:
    st.info("👆 Upload an attendance sheet to get started")

    # Demo dataset section
    st.markdown("## Demo Dataset")
    st.markdown(
        "Ten employees across four shops, with mixed status spellings "
        "(Present, P, A, ✓, 1, Sick, yes) and one unrecognized value (Late)."
    )
    st.download_button(
        label="📥 Download sample_attendance.csv",
        data=sample_csv_bytes(),
        file_name="sample_attendance.csv",
        mime="text/csv"
    )
