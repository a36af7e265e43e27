"""
interfaces/streamlit_app.py
──────────────────────────────────────────────────────────────────────────────
Streamlit admin console for the Acehive resource catalogue.

Run:
  streamlit run acehive/interfaces/streamlit_app.py

Features:
  • Login page; every other page is behind the session route guard
  • Database: table picker, count metrics, year / type filters with
    Apply + Reset, live title search, "Filters Applied" banner,
    distinct error and "no data" states
  • Content Management: cascading year → degree → specialisation form,
    inline validation messages, confirmation that clears the form on close
  • Colour scheme: dark sidebar / light grey canvas
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

# ── Path setup ─────────────────────────────────────────────────────────────
# Allow running from the repo root with: streamlit run acehive/interfaces/streamlit_app.py
_REPO_ROOT = Path(__file__).parent.parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from acehive.config.taxonomy import DEGREES
from acehive.domain.exceptions import (
    AuthenticationError,
    DraftValidationError,
    FetchError,
    StorageError,
    SubmitError,
)
from acehive.domain.models import (
    BrowseStatus,
    ResourceType,
    SubjectType,
    SubmissionState,
    Year,
)
from acehive.services.container import ConsoleServices, get_console
from acehive.services.session import SessionContext
from acehive.services.submission import SubmissionController
from acehive.services.table_reader import TableBrowser

logger = logging.getLogger(__name__)

# ── Page configuration ─────────────────────────────────────────────────────
st.set_page_config(
    page_title="Acehive Admin",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── CSS ────────────────────────────────────────────────────────────────────
st.markdown(
    """
    <style>
    [data-testid="stSidebar"] { background: #212529; }
    [data-testid="stSidebar"] * { color: #f8f9fa !important; }
    .stApp { background-color: #f4f6f9; }
    .field-error { color: #dc3545; font-size: 0.82em; margin-top: -8px; }
    [data-testid="metric-container"] {
        background: white;
        border-radius: 8px;
        padding: 12px;
        box-shadow: 0 1px 3px rgba(0,0,0,0.06);
    }
    </style>
    """,
    unsafe_allow_html=True,
)

_YEAR_OPTIONS = [""] + [y.value for y in Year]
_TYPE_OPTIONS = [""] + [t.value for t in ResourceType]
_SUBJECT_TYPE_OPTIONS = [t.value for t in SubjectType]

# Content-management widget keys → draft field names
_FORM_FIELDS = {
    "cm_year": "year",
    "cm_degree": "degree",
    "cm_specialisation": "specialisation",
    "cm_resource_type": "resource_type",
    "cm_subject": "subject",
    "cm_subject_type": "subject_type",
    "cm_file_urls": "file_urls",
    "cm_title": "title",
    "cm_description": "description",
}


# ── Backend singleton + per-browser-session state ─────────────────────────

@st.cache_resource(show_spinner="Connecting to the catalogue…")
def _load_console() -> ConsoleServices:
    """Loads and caches the shared services for the lifetime of the app."""
    return get_console()


def _state() -> tuple[SessionContext, SubmissionController, TableBrowser]:
    console = _load_console()
    if "session" not in st.session_state:
        st.session_state.session = console.session()
        st.session_state.controller = console.submission_controller()
        st.session_state.browser = console.table_browser()
        st.session_state.cm_errors = {}
    return st.session_state.session, st.session_state.controller, st.session_state.browser


# ── Login ──────────────────────────────────────────────────────────────────

def _render_login(session: SessionContext) -> None:
    _, middle, _ = st.columns([1, 1, 1])
    with middle:
        st.markdown("### Please sign in")
        with st.form("login"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)

        if submitted:
            try:
                with st.spinner("Checking credentials …"):
                    session.sign_in(username, password)
            except AuthenticationError as exc:
                st.error(str(exc))
                return
            except StorageError as exc:
                logger.exception("Credential check failed")
                st.error(f"Error checking credentials: {exc}")
                return
            st.rerun()
        st.caption("© Acehive")


# ── Sidebar ────────────────────────────────────────────────────────────────

def _render_sidebar(session: SessionContext) -> str:
    with st.sidebar:
        st.markdown("## Acehive")
        if session.username:
            st.caption(f"Signed in as **{session.username}**")
        st.markdown("---")
        page = st.radio("Navigate", ["Database", "Content Management"], key="page")
        st.markdown("---")
        if st.button("Logout", use_container_width=True):
            session.sign_out()
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()
    return page


# ── Database page ──────────────────────────────────────────────────────────

def _on_search_change(browser: TableBrowser) -> None:
    browser.filters.on_search_change(st.session_state.db_search)


def _on_apply(browser: TableBrowser) -> None:
    browser.filters.set_year(st.session_state.db_year)
    browser.filters.set_resource_type(st.session_state.db_type)
    browser.filters.apply_filters()


def _on_reset(browser: TableBrowser) -> None:
    browser.filters.reset()
    st.session_state.db_year = ""
    st.session_state.db_type = ""
    st.session_state.db_search = ""


def _render_metrics(console: ConsoleServices) -> None:
    try:
        by_type = console.stats().by_resource_type()
    except FetchError as exc:
        st.caption(f"Counts unavailable: {exc.message}")
        return
    cols = st.columns(len(by_type) + 1)
    cols[0].metric("Resources", sum(by_type.values()))
    for col, (label, n) in zip(cols[1:], by_type.items()):
        col.metric(label, n)


def _render_filters(browser: TableBrowser) -> None:
    c1, c2, c3, c4, c5 = st.columns([2, 2, 3, 1, 1])
    c1.selectbox("Year", _YEAR_OPTIONS, key="db_year",
                 format_func=lambda v: v or "Select Year")
    c2.selectbox("Resource Type", _TYPE_OPTIONS, key="db_type",
                 format_func=lambda v: v or "Select Resource Type")
    c3.text_input("Search", key="db_search", placeholder="Search by title…",
                  on_change=_on_search_change, args=(browser,))
    c4.button("Apply Filters", type="primary", on_click=_on_apply, args=(browser,))
    c5.button("Reset Filters", on_click=_on_reset, args=(browser,))


def _render_database(console: ConsoleServices, browser: TableBrowser) -> None:
    st.markdown("### 🗄️ Database Table Viewer")
    _render_metrics(console)

    tables = list(console.settings.browse_tables)
    table = st.selectbox("Select Table to View", tables, key="db_table",
                         format_func=str.title)
    if table != browser.selected_table:
        with st.spinner(f"Loading {table} …"):
            browser.select_table(table)

    if table == "resources":
        _render_filters(browser)

    if browser.filters.filters_applied:
        banner, remove = st.columns([5, 1])
        banner.info("Filters Applied")
        remove.button("Remove Filters", on_click=_on_reset, args=(browser,))

    status = browser.status
    if status == BrowseStatus.ERROR:
        st.error(str(browser.error))
        retry, dismiss = st.columns([1, 6])
        if retry.button("Retry"):
            browser.refresh()
            st.rerun()
        if dismiss.button("Dismiss"):
            browser.dismiss_error()
            st.rerun()
        return
    if status == BrowseStatus.EMPTY:
        st.info("No data available for the selected table.")
        return
    if status != BrowseStatus.READY:
        if st.button("Load table"):
            browser.refresh()
            st.rerun()
        return

    df = pd.DataFrame(browser.visible_rows(), columns=browser.visible_columns())
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.caption(f"{len(df)} of {len(browser.filters.source)} rows")


# ── Content management page ────────────────────────────────────────────────

def _on_field_change(controller: SubmissionController, key: str) -> None:
    """Push one widget into the draft, then mirror the taxonomy fields back."""
    field = _FORM_FIELDS[key]
    errors = dict(st.session_state.cm_errors)
    errors.pop(field, None)
    try:
        controller.update(**{field: st.session_state[key]})
    except DraftValidationError as exc:
        errors.update(exc.errors)
    st.session_state.cm_errors = errors

    draft = controller.draft
    st.session_state.cm_year = draft.year.value if draft.year else ""
    st.session_state.cm_degree = draft.degree
    st.session_state.cm_specialisation = draft.specialisation


def _on_close_confirmation(controller: SubmissionController) -> None:
    controller.acknowledge()
    for key in _FORM_FIELDS:
        st.session_state.pop(key, None)
    st.session_state.cm_errors = {}


def _field_error(container, name: str) -> None:
    message = st.session_state.cm_errors.get(name)
    if message:
        container.markdown(f"<div class='field-error'>{message}</div>", unsafe_allow_html=True)


def _render_content_management(controller: SubmissionController) -> None:
    st.markdown("### ➕ Add New Resource")
    selection = controller.selection
    awaiting_ack = controller.state == SubmissionState.SUCCEEDED

    def widget(container, kind, label, key, disabled=False, **kwargs):
        getattr(container, kind)(
            label, key=key, on_change=_on_field_change, args=(controller, key),
            disabled=awaiting_ack or disabled, **kwargs,
        )
        _field_error(container, _FORM_FIELDS[key])

    c1, c2, c3, c4 = st.columns(4)
    widget(c1, "selectbox", "Year", "cm_year", options=_YEAR_OPTIONS,
           format_func=lambda v: v or "Select Year")
    widget(c2, "selectbox", "Degree", "cm_degree", options=[""] + list(DEGREES),
           format_func=lambda v: v or "Select Degree",
           disabled=not selection.degree_enabled)
    widget(c3, "selectbox", "Specialisation", "cm_specialisation",
           options=[""] + list(selection.specialisation_options),
           format_func=lambda v: v or "Select Specialisation",
           disabled=not selection.degree_enabled)
    widget(c4, "selectbox", "Resource Type", "cm_resource_type", options=_TYPE_OPTIONS,
           format_func=lambda v: v or "Select Resource Type")

    c5, c6 = st.columns(2)
    widget(c5, "text_input", "Subject", "cm_subject", placeholder="Enter Subject")
    widget(c6, "selectbox", "Subject Type", "cm_subject_type", options=_SUBJECT_TYPE_OPTIONS)

    widget(st, "text_input", "File URLs (comma-separated)", "cm_file_urls")
    widget(st, "text_input", "Title", "cm_title")
    widget(st, "text_area", "Description", "cm_description")

    if st.button("Submit", type="primary", disabled=awaiting_ack):
        try:
            with st.spinner("Uploading …"):
                result = controller.submit()
        except SubmitError as exc:
            st.error(str(exc))
            return
        st.session_state.cm_errors = result.field_errors
        if result.field_errors:
            st.rerun()
        if not result.ok:
            st.error(f"Error: {result.message}")
            controller.acknowledge()
            return
        st.rerun()

    if awaiting_ack:
        st.success(controller.last_result.message if controller.last_result else "Success!")
        st.button("Close", on_click=_on_close_confirmation, args=(controller,))


# ── Main ───────────────────────────────────────────────────────────────────

def main() -> None:
    session, controller, browser = _state()

    if not session.is_authenticated:
        _render_login(session)
        return

    page = _render_sidebar(session)
    st.title("📚 Acehive Admin Console")

    if page == "Database":
        _render_database(_load_console(), browser)
    else:
        _render_content_management(controller)


if __name__ == "__main__":
    main()
