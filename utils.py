"""
Utility functions for the CutPlan panel cutting tool.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List
import pandas as pd
import streamlit as st
from simple_reports import calculate_plan_summary, layout_comparison_rows


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.StreamHandler(),
        ]
    )

    # Set specific logger levels
    logging.getLogger('matplotlib').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)


def format_currency(amount: float) -> str:
    """
    Format currency amount for display in euros.

    Args:
        amount: Amount to format

    Returns:
        Formatted currency string with euro sign
    """
    return f"{amount:,.2f} €"


def format_area(area_mm2: float) -> str:
    """
    Format area for display with appropriate units.

    Args:
        area_mm2: Area in square millimeters

    Returns:
        Formatted area string
    """
    if area_mm2 >= 1_000_000:
        return f"{area_mm2 / 1_000_000:.2f} m²"
    elif area_mm2 >= 1_000:
        return f"{area_mm2 / 1_000:.1f} cm²"
    else:
        return f"{area_mm2:.0f} mm²"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def format_history_entry(entry: Dict[str, Any]) -> str:
    """One-line description of a saved plan for the history list."""
    try:
        date = datetime.fromisoformat(entry.get('date', '')).strftime("%d/%m/%Y %H:%M")
    except (TypeError, ValueError):
        date = entry.get('date', '')
    return (f"{entry.get('projectTitle', '')} - {date} - "
            f"{entry.get('totalPanels', 0)} panel(s), {entry.get('totalPieces', 0)} piece(s)")


def display_plan_metrics(panels, panel_cost: float = 0.0) -> None:
    """
    Display plan metrics in Streamlit columns.

    Args:
        panels: Panels of the selected layout
        panel_cost: Price of one stock panel
    """
    summary = calculate_plan_summary(panels, panel_cost)
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Panels", summary['total_panels'])

    with col2:
        st.metric("Pieces", summary['total_pieces'])

    with col3:
        st.metric("Waste", format_percentage(summary['waste_percentage']))

    with col4:
        if summary['total_cost'] is not None:
            st.metric("Total Cost", format_currency(summary['total_cost']))
        else:
            st.metric("Cuts", summary['total_cuts'])


def display_layout_comparison(layouts: List) -> None:
    """
    Display the ranked layouts as a table.

    Args:
        layouts: Ranked layouts of the current plan
    """
    if not layouts:
        st.info("No layouts to display.")
        return

    df = pd.DataFrame(layout_comparison_rows(layouts))
    st.dataframe(df, use_container_width=True, hide_index=True)


def display_cutting_list(rows: List[Dict[str, Any]]) -> None:
    """Display a panel's grouped cutting list."""
    if not rows:
        st.info("This panel has no pieces.")
        return

    table = [{
        'Piece(s)': ", ".join(str(n) for n in row['piece_numbers']),
        'Width (mm)': row['width'],
        'Height (mm)': row['height'],
        'Quantity': row['quantity'],
        'Name': row['name'],
    } for row in rows]
    st.dataframe(pd.DataFrame(table), use_container_width=True, hide_index=True)
