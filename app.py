"""
dataprobe - Streamlit Web Application.

Interactive data diagnosis dashboard: upload a CSV and browse the variable
overview, numeric and categorical diagnosis, outliers and missing values.

Usage:
    streamlit run app.py
"""

import streamlit as st
import pandas as pd
from pathlib import Path
import sys
import tempfile
from io import BytesIO

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
sys.path.insert(0, str(PROJECT_ROOT))

from config.config import diagnose_config
from src.diagnose.diagnoser import DataDiagnoser
from src.eda.eda import ExploratoryDataAnalyzer
from src.missing.missing import MissingValuePlotter
from src.report.report import ReportGenerator

# Page configuration
st.set_page_config(
    page_title="dataprobe",
    layout="wide"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #1E88E5;
        text-align: center;
        margin-bottom: 2rem;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def plot_dir() -> Path:
    """Per-session scratch directory for generated charts."""
    return Path(tempfile.mkdtemp(prefix="dataprobe_"))


@st.cache_data
def load_upload(content: bytes, name: str) -> pd.DataFrame:
    sep = "\t" if name.lower().endswith(".tsv") else ","
    return pd.read_csv(BytesIO(content), sep=sep)


def show_overview(df: pd.DataFrame, diagnoser: DataDiagnoser):
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Rows", f"{len(df):,}")
    with col2:
        st.metric("Columns", df.shape[1])
    with col3:
        st.metric("Missing cells", f"{int(df.isna().sum().sum()):,}")

    st.subheader("Variables")
    st.dataframe(diagnoser.diagnose(df), use_container_width=True)

    with st.expander("Preview data"):
        st.dataframe(df.head(50))


def show_numeric(df: pd.DataFrame, diagnoser: DataDiagnoser, eda: ExploratoryDataAnalyzer):
    numeric = diagnoser.diagnose_numeric(df)
    if numeric.empty:
        st.info("No numeric variables.")
        return
    st.subheader("Numeric diagnosis")
    st.dataframe(numeric, use_container_width=True)

    st.subheader("Descriptive statistics")
    by = st.selectbox("Group by", options=[None] + list(df.columns),
                      format_func=lambda c: "(none)" if c is None else c)
    st.dataframe(eda.describe(df, by=by), use_container_width=True)

    st.subheader("Normality (Shapiro-Wilk)")
    st.dataframe(eda.normality(df), use_container_width=True)

    path = eda.plot_correlate(df)
    if path:
        st.subheader("Correlation")
        st.image(str(path))


def show_category(df: pd.DataFrame, diagnoser: DataDiagnoser):
    top = st.slider("Top levels", min_value=1, max_value=50, value=diagnose_config.top_levels)
    table = diagnoser.diagnose_category(df, top=top)
    if table.empty:
        st.info("No categorical variables.")
        return
    st.dataframe(table, use_container_width=True)


def show_outliers(df: pd.DataFrame, diagnoser: DataDiagnoser):
    table = diagnoser.diagnose_outlier(df)
    if table.empty:
        st.info("No numeric variables.")
        return
    st.dataframe(table, use_container_width=True)

    with_outliers = table.loc[table['outliers_cnt'] > 0, 'variables'].tolist()
    if not with_outliers:
        st.success("No outliers found.")
        return
    selected = st.multiselect("Plot variables", options=with_outliers,
                              default=with_outliers[:3])
    for path in diagnoser.plot_outlier(df, columns=selected):
        st.image(str(path))


def show_missing(df: pd.DataFrame, plotter: MissingValuePlotter):
    if not df.isna().to_numpy().any():
        st.success("Data have no missing value.")
        return

    only_na = st.checkbox("Only variables with missing values", value=True)
    st.dataframe(plotter.plot_na_pareto(df, only_na=only_na, plot=False),
                 use_container_width=True)

    for title, plot_fn in [("Pareto chart", lambda: plotter.plot_na_pareto(df, only_na=only_na)),
                           ("Intersections", lambda: plotter.plot_na_intersect(df)),
                           ("Clustered missing matrix", lambda: plotter.plot_na_hclust(df))]:
        st.subheader(title)
        try:
            st.image(str(plot_fn()))
        except ValueError as e:
            st.info(str(e))


def main():
    """Main Streamlit application."""

    # Header
    st.markdown('<h1 class="main-header">dataprobe</h1>', unsafe_allow_html=True)
    st.markdown("---")

    # Sidebar
    with st.sidebar:
        st.header("About")
        st.write("""
        Exploratory data analysis and data quality diagnosis:
        - Variable types, missing and unique counts
        - Numeric quantiles and outliers
        - Categorical level frequencies
        - Missing value patterns
        """)
        upload = st.file_uploader("Upload a dataset", type=["csv", "tsv", "txt"])

    if upload is None:
        st.info("Upload a CSV file to start.")
        return

    try:
        df = load_upload(upload.getvalue(), upload.name)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        st.error(f"Could not read file: {e}")
        return

    charts = plot_dir()
    diagnoser = DataDiagnoser(save_plots=True, plot_dir=charts)
    eda = ExploratoryDataAnalyzer(save_plots=True, plot_dir=charts)
    plotter = MissingValuePlotter(save_plots=True, plot_dir=charts)

    tabs = st.tabs(["Overview", "Numeric", "Categorical", "Outliers", "Missing", "Report"])
    with tabs[0]:
        show_overview(df, diagnoser)
    with tabs[1]:
        show_numeric(df, diagnoser, eda)
    with tabs[2]:
        show_category(df, diagnoser)
    with tabs[3]:
        show_outliers(df, diagnoser)
    with tabs[4]:
        show_missing(df, plotter)
    with tabs[5]:
        if st.button("Build report", type="primary"):
            with st.spinner("Building report..."):
                generator = ReportGenerator(report_dir=charts, plot_dir=charts)
                results = generator.collect(df)
                html = generator.render_html(results, title=f"Data Diagnosis Report: {upload.name}")
            if results['errors']:
                st.warning(f"Some sections failed: {', '.join(results['errors'])}")
            st.download_button("Download HTML report", data=html,
                               file_name="diagnosis_report.html", mime="text/html")

    # Footer
    st.markdown("---")
    st.markdown("""
    <div style='text-align: center; color: gray;'>
        <p>dataprobe | Built with Streamlit</p>
    </div>
    """, unsafe_allow_html=True)


if __name__ == "__main__":
    main()
