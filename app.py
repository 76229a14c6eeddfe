"""
CutPlan - Panel Cutting Plan Tool
Streamlit web application for 2D guillotine cutting layouts on stock panels.
"""

import streamlit as st
import os
import logging

from data_models import (CuttingConfig, CutPlanError, InputValidationError, MAX_KERF,
                         MAX_SAFETY_MARGIN, PackingSession)
from parsers_csv import load_pieces_csv, group_pieces
from optimization_strategies import STRATEGY_LABELS
from history_store import HistoryStore, JsonFileStore
from simple_reports import generate_cutting_list, generate_cut_list_csv, generate_cutting_layout_text
from report_generators import create_excel_report
from pdf_layout_generator import generate_cutting_plan_pdf, render_panel_png
from utils import (setup_logging, format_area, format_history_entry, display_plan_metrics,
                   display_layout_comparison, display_cutting_list)
import session as plan

# Page configuration
st.set_page_config(
    page_title="CutPlan - Panel Cutting Plans",
    page_icon="✂️",
    layout="wide",
    initial_sidebar_state="expanded"
)

setup_logging(os.environ.get("CUTPLAN_LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

HISTORY_PATH = os.environ.get("CUTPLAN_HISTORY_PATH", os.path.join(".cutplan", "history.json"))

SAMPLE_CUT_LIST = """Name,Width,Height,Quantity
Side,720,560,2
Shelf,764,540,3
Door,796,396,2
Back,764,700,1"""


def get_session() -> PackingSession:
    if 'plan_session' not in st.session_state:
        st.session_state.plan_session = plan.new_session()
    return st.session_state.plan_session


def set_session(session: PackingSession) -> None:
    st.session_state.plan_session = session


def get_history() -> HistoryStore:
    if 'history_store' not in st.session_state:
        st.session_state.history_store = HistoryStore(JsonFileStore(HISTORY_PATH))
    return st.session_state.history_store


def main():
    """Main application function."""
    st.title("✂️ CutPlan")
    st.markdown("**Cutting plans for stock panels**")

    st.sidebar.title("Navigation")
    page = st.sidebar.selectbox(
        "Choose a page:",
        ["✂️ Cutting Plan", "🕘 History", "❓ Help"]
    )

    show_config_sidebar()

    if page == "✂️ Cutting Plan":
        show_plan_page()
    elif page == "🕘 History":
        show_history_page()
    elif page == "❓ Help":
        show_help_page()


def show_config_sidebar():
    """Panel and display settings, bound to the session's CuttingConfig."""
    session = get_session()
    config = session.config

    st.sidebar.header("Panel Settings")
    title = st.sidebar.text_input("Project title", value=session.project_title)
    panel_width = st.sidebar.number_input("Panel width (mm)", min_value=1, value=int(config.panel_width), step=10)
    panel_height = st.sidebar.number_input("Panel height (mm)", min_value=1, value=int(config.panel_height), step=10)
    panel_thickness = st.sidebar.number_input("Panel thickness (mm)", min_value=0.0,
                                              value=float(config.panel_thickness), step=1.0)
    blade_thickness = st.sidebar.number_input("Blade thickness (mm)", min_value=0.0, max_value=MAX_KERF,
                                              value=float(config.blade_thickness), step=0.1)
    safety_margin = st.sidebar.number_input("Safety margin (mm)", min_value=0.0, max_value=MAX_SAFETY_MARGIN,
                                            value=float(config.safety_margin), step=1.0)
    panel_cost = st.sidebar.number_input("Panel cost (€)", min_value=0.0, value=float(config.panel_cost), step=1.0)

    st.sidebar.header("Display")
    show_cut_lines = st.sidebar.checkbox("Show cut lines", value=config.show_cut_lines)
    show_waste = st.sidebar.checkbox("Show waste", value=config.show_waste)

    new_config = CuttingConfig(
        panel_width=int(panel_width),
        panel_height=int(panel_height),
        panel_thickness=panel_thickness,
        blade_thickness=blade_thickness,
        panel_cost=panel_cost,
        safety_margin=safety_margin,
        show_cut_lines=show_cut_lines,
        show_waste=show_waste,
    )
    if new_config != config or title != session.project_title:
        session = plan.update_config(session, new_config)
        set_session(plan.set_project_title(session, title))


def show_piece_input():
    """Piece entry form, CSV import and grouped piece list."""
    st.subheader("📋 Pieces")
    tab1, tab2 = st.tabs(["➕ Add Piece", "📎 CSV Import"])

    with tab1:
        with st.form("add_piece", clear_on_submit=True):
            col1, col2, col3, col4 = st.columns([1, 1, 1, 2])
            with col1:
                width = st.number_input("Width (mm)", min_value=0, value=0, step=10)
            with col2:
                height = st.number_input("Height (mm)", min_value=0, value=0, step=10)
            with col3:
                quantity = st.number_input("Quantity", min_value=0, value=1, step=1)
            with col4:
                name = st.text_input("Name (optional)")
            submitted = st.form_submit_button("Add")

        if submitted:
            try:
                set_session(plan.add_pieces(get_session(), width, height, quantity, name))
                st.rerun()
            except InputValidationError as e:
                st.error(f"❌ {e}")

    with tab2:
        uploaded_file = st.file_uploader("Cut list (CSV)", type=['csv', 'txt'])
        st.download_button("Download sample cut list", SAMPLE_CUT_LIST, "sample_cut_list.csv", "text/csv")
        if uploaded_file is not None and st.button("Import pieces"):
            session = get_session()
            pieces, errors = load_pieces_csv(uploaded_file, session.next_piece_id)
            for error in errors:
                st.warning(error)
            if pieces:
                set_session(plan.add_piece_list(session, pieces))
                st.success(f"✅ Imported {len(pieces)} pieces")
                st.rerun()

    session = get_session()
    if not session.pieces:
        st.info("No pieces yet. Add pieces or import a cut list.")
        return

    total_area = sum(piece.area for piece in session.pieces)
    st.caption(f"{len(session.pieces)} pieces, {format_area(total_area)}")

    for group in group_pieces(list(session.pieces)):
        col1, col2 = st.columns([5, 1])
        with col1:
            label = f"{group['width']} × {group['height']} mm"
            if group['name']:
                label = f"{group['name']}: {label}"
            st.write(f"{label} (×{group['count']})")
        with col2:
            if st.button("Remove", key=f"remove_{group['indices'][-1]}_{group['width']}_{group['height']}"):
                set_session(plan.remove_piece(session, group['indices'][-1]))
                st.rerun()

    if st.button("🗑️ Clear all pieces"):
        set_session(plan.clear_pieces(session))
        st.rerun()


def show_plan_page():
    """Piece input, generation and result display."""
    show_piece_input()

    st.divider()
    session = get_session()
    if st.button("⚙️ Generate cutting plan", type="primary", disabled=not session.pieces):
        try:
            with st.spinner("Computing layouts..."):
                session = plan.generate(session)
            set_session(session)
            entry, warning = get_history().add_entry(session)
            if warning:
                st.warning(warning)
            st.success(f"✅ {len(session.layout_set.layouts)} layout(s) generated")
        except InputValidationError as e:
            st.error(f"❌ {e}")
        except CutPlanError as e:
            logger.error(f"Layout generation failed: {e}")
            st.error(f"❌ {e}")

    if plan.current_layout(get_session()) is not None:
        show_results()


def show_results():
    session = get_session()
    layouts = list(session.layout_set.layouts)
    layout = plan.current_layout(session)
    config = session.config

    st.header("📋 Results")
    display_plan_metrics(layout.panels, config.panel_cost)

    if len(layouts) > 1:
        options = list(range(len(layouts)))
        selected = st.selectbox(
            "Layout",
            options,
            index=session.layout_set.current_index,
            format_func=lambda i: (f"#{i + 1} {STRATEGY_LABELS.get(layouts[i].strategy, layouts[i].strategy)}"
                                   f" - {layouts[i].panel_count} panels, {layouts[i].waste_percentage:.1f}% waste"),
        )
        if selected != session.layout_set.current_index:
            set_session(plan.switch_layout(session, selected))
            st.rerun()
        with st.expander("Compare layouts"):
            display_layout_comparison(layouts)

    panel = plan.current_panel(session)
    if panel is not None:
        col1, col2, col3 = st.columns([1, 3, 1])
        with col1:
            if st.button("◀ Previous", disabled=session.current_panel_index == 0):
                set_session(plan.previous_panel(session))
                st.rerun()
        with col2:
            st.markdown(f"**Panel {panel.panel_number} / {layout.panel_count}**")
        with col3:
            if st.button("Next ▶", disabled=session.current_panel_index >= layout.panel_count - 1):
                set_session(plan.next_panel(session))
                st.rerun()

        st.image(render_panel_png(panel, config), use_container_width=True)
        display_cutting_list(generate_cutting_list(panel))

    show_downloads(layouts, layout, session)


def show_downloads(layouts, layout, session):
    st.subheader("📁 Downloads")
    config = session.config
    file_stem = (session.project_title or "cutting_plan").strip().replace(" ", "_")

    col1, col2, col3, col4 = st.columns(4)
    try:
        with col1:
            st.download_button(
                "📄 PDF",
                generate_cutting_plan_pdf(layout, config, session.project_title),
                f"{file_stem}.pdf",
                "application/pdf"
            )
        with col2:
            st.download_button(
                "📊 Excel",
                create_excel_report(layout, config, session.project_title, layouts),
                f"{file_stem}.xlsx",
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
            )
        with col3:
            st.download_button("📋 CSV", generate_cut_list_csv(layout), f"{file_stem}.csv", "text/csv")
        with col4:
            st.download_button("📝 Text",
                               generate_cutting_layout_text(layout, config, session.project_title),
                               f"{file_stem}.txt", "text/plain")
    except (OSError, ValueError) as e:
        logger.error(f"Report generation failed: {e}")
        st.error(f"❌ Could not create the reports: {e}")


def show_history_page():
    """Saved plans with load, edit and clear actions."""
    st.header("🕘 History")
    history = get_history()
    entries = history.load()

    if not entries:
        st.info("No saved plans yet. Generated plans are saved here automatically.")
        return

    for entry in entries:
        col1, col2, col3 = st.columns([4, 1, 1])
        with col1:
            st.write(format_history_entry(entry))
        with col2:
            if st.button("Load", key=f"load_{entry['id']}"):
                set_session(plan.load_history_entry(get_session(), entry))
                st.success("✅ Plan loaded, open the Cutting Plan page to view it")
        with col3:
            if st.button("Edit", key=f"edit_{entry['id']}"):
                set_session(plan.edit_history_entry(get_session(), entry))
                st.success("✅ Pieces restored, open the Cutting Plan page to regenerate")

    if st.button("🗑️ Clear history"):
        history.clear()
        st.rerun()


def show_help_page():
    """Display help and documentation."""
    st.header("❓ Help")
    st.markdown("""
    ### How it works

    Each piece is placed on the panel where it leaves the least waste, in the
    smallest free area it fits (rotated by 90° when needed). Pieces never
    overlap and the blade thickness is kept as a gap between them. The cut
    order is not checked, so plan the saw sequence on the drawing.

    Several sort orders are tried (area, width, height, perimeter, aspect
    ratio). The resulting layouts are ranked by number of panels, then by
    reusable offcuts, then by waste.

    ### Settings

    - **Blade thickness**: material lost per cut, at most 20 mm
    - **Safety margin**: trimmed on every edge of the panel, at most 15 mm
    - **Panel cost**: used for the total cost, leave at 0 to hide it

    ### CSV import

    Columns `Width`, `Height`, optional `Quantity` and `Name`. Comma,
    semicolon and tab separators are accepted.
    """)


if __name__ == "__main__":
    main()
