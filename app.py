import streamlit as st
import pandas as pd

from backend import DataManager, ExportBlockedError
from records import DATASET_ORDER
from settings import configure_logging

configure_logging()

st.set_page_config(page_title="Data Alchemist Dashboard", layout="wide")
st.title("🧪 Data Alchemist - Data Validation")

# Instantiate DataManager (singleton in session state)
if "dm" not in st.session_state:
    st.session_state.dm = DataManager()

dm: DataManager = st.session_state.dm


def upload_dataset(dataset: str):
    uploaded_file = st.file_uploader(f"Upload {dataset} file", type=["csv", "xlsx"], key=dataset)
    if uploaded_file is None:
        return
    # the uploader keeps returning the same file on every rerun
    if st.session_state.get(f"{dataset}_file_id") == uploaded_file.file_id:
        return
    try:
        count = dm.load_file(dataset, uploaded_file, filename=uploaded_file.name)
    except ValueError as e:
        st.error(str(e))
        return
    st.session_state[f"{dataset}_file_id"] = uploaded_file.file_id
    st.success(f"{dataset} uploaded with {count} rows")


with st.sidebar:
    st.header("1. Upload Data Files")
    for name in DATASET_ORDER:
        upload_dataset(name)

    st.markdown("---")
    st.header("2. Prioritization")
    task_efficiency = st.slider(
        "Task efficiency weight (%)", 0, 100, dm.prioritization.task_efficiency
    )
    dm.set_prioritization(task_efficiency)
    st.caption(
        f"Weight: {dm.prioritization.client_priority}% Client Priority / "
        f"{dm.prioritization.task_efficiency}% Task Efficiency"
    )


# --- Main workspace ---
st.header("3. Data")
loaded = dm.datasets
if not loaded:
    st.info("Upload at least one dataset to start validating.")
else:
    tabs = st.tabs(list(loaded))
    for tab, (name, rows) in zip(tabs, loaded.items()):
        with tab:
            st.dataframe(pd.DataFrame(rows))

st.markdown("---")
st.header("4. Data Validation")
report = dm.validate_all()
if report.is_clean:
    st.success("No validation errors found!")
else:
    st.error(f"Found {len(report)} validation errors:")
    st.write(report.count_by_kind())
    st.dataframe(pd.DataFrame(report.to_dicts()))

st.markdown("---")
st.header("5. Export Data & Rules")

if st.button("Export All to CSV/JSON", disabled=not report.is_clean):
    try:
        outdir = dm.export_all()
    except ExportBlockedError as e:
        st.error(str(e))
    else:
        st.success(f"Exported data and rules to folder: {outdir}")
