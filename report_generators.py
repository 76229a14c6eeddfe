"""
Excel report generator for CutPlan layouts.
"""

import io
import logging
from typing import List, Optional
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from data_models import Layout, CuttingConfig
from simple_reports import (generate_cutting_list, calculate_plan_summary,
                            layout_comparison_rows, sort_panel_pieces)
from optimization_strategies import STRATEGY_LABELS

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")


def _write_headers(ws, headers: List[str], row: int = 1) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL


def _autosize_columns(ws) -> None:
    for col_cells in ws.columns:
        length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col_cells)
        ws.column_dimensions[get_column_letter(col_cells[0].column)].width = min(max(length + 2, 8), 50)


def create_summary_tab(ws, layout: Layout, config: CuttingConfig, project_title: str) -> None:
    """Create the summary tab with plan totals and panel settings."""
    ws['A1'] = f"Cutting Plan - {project_title}" if project_title else "Cutting Plan"
    ws['A1'].font = Font(size=16, bold=True)
    ws.merge_cells('A1:D1')

    summary = calculate_plan_summary(layout.panels, config.panel_cost)
    metrics = [
        ("Panel Width (mm)", config.panel_width),
        ("Panel Height (mm)", config.panel_height),
        ("Panel Thickness (mm)", config.panel_thickness),
        ("Blade Thickness (mm)", config.blade_thickness),
        ("Safety Margin (mm)", config.safety_margin),
        ("Strategy", STRATEGY_LABELS.get(layout.strategy, layout.strategy)),
        ("Total Panels", summary['total_panels']),
        ("Total Pieces", summary['total_pieces']),
        ("Total Cuts", summary['total_cuts']),
        ("Waste (%)", round(summary['waste_percentage'], 2)),
        ("Usable Offcuts", layout.usable_waste_count),
    ]
    if summary['total_cost'] is not None:
        metrics.append(("Total Cost (EUR)", round(summary['total_cost'], 2)))

    for row, (metric, value) in enumerate(metrics, 3):
        ws[f'A{row}'] = metric
        ws[f'A{row}'].font = Font(bold=True)
        ws[f'B{row}'] = value


def create_cutting_list_tab(ws, layout: Layout) -> None:
    """Create the grouped cutting list, one block of rows per panel."""
    _write_headers(ws, ['Panel', 'Piece(s)', 'Width (mm)', 'Height (mm)', 'Quantity', 'Name'])
    row = 2
    for panel in layout.panels:
        for item in generate_cutting_list(panel):
            ws.cell(row=row, column=1, value=panel.panel_number)
            ws.cell(row=row, column=2, value=", ".join(str(n) for n in item['piece_numbers']))
            ws.cell(row=row, column=3, value=item['width'])
            ws.cell(row=row, column=4, value=item['height'])
            ws.cell(row=row, column=5, value=item['quantity'])
            ws.cell(row=row, column=6, value=item['name'])
            row += 1


def create_placements_tab(ws, layout: Layout) -> None:
    """Create the placement tab with absolute positions on the full panel."""
    _write_headers(ws, ['Panel', 'Piece No.', 'Piece ID', 'Name', 'Width (mm)', 'Height (mm)',
                        'Position (x)', 'Position (y)', 'Placed Width', 'Placed Height', 'Rotated'])
    row = 2
    for panel in layout.panels:
        for number, piece in enumerate(sort_panel_pieces(panel), 1):
            values = [
                panel.panel_number, number, piece.piece_id, piece.name,
                piece.original_width, piece.original_height,
                piece.x + panel.safety_margin, piece.y + panel.safety_margin,
                piece.width, piece.height, 'Yes' if piece.rotated else 'No',
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value)
            row += 1


def create_panels_tab(ws, layout: Layout) -> None:
    _write_headers(ws, ['Panel', 'Pieces', 'Utilization (%)', 'Waste Area (m²)'])
    for row, panel in enumerate(layout.panels, 2):
        ws.cell(row=row, column=1, value=panel.panel_number)
        ws.cell(row=row, column=2, value=len(panel.pieces))
        ws.cell(row=row, column=3, value=round(panel.get_utilization_percentage(), 2))
        ws.cell(row=row, column=4, value=round(panel.get_remaining_area() / 1_000_000, 4))


def create_layouts_tab(ws, layouts: List[Layout]) -> None:
    rows = layout_comparison_rows(layouts)
    if not rows:
        return
    headers = list(rows[0].keys())
    _write_headers(ws, headers)
    for row_index, row in enumerate(rows, 2):
        for col, header in enumerate(headers, 1):
            ws.cell(row=row_index, column=col, value=row[header])


def create_excel_report(layout: Layout, config: CuttingConfig, project_title: str = "",
                        layouts: Optional[List[Layout]] = None) -> bytes:
    """
    Create the Excel workbook for a layout.

    Args:
        layout: Selected layout
        config: Panel settings
        project_title: Title shown on the summary tab
        layouts: Ranked alternatives listed on the Layouts tab

    Returns:
        Workbook content as bytes
    """
    try:
        wb = Workbook()
        wb.remove(wb.active)

        create_summary_tab(wb.create_sheet("Summary"), layout, config, project_title)
        create_cutting_list_tab(wb.create_sheet("Cutting List"), layout)
        create_placements_tab(wb.create_sheet("Placements"), layout)
        create_panels_tab(wb.create_sheet("Panels"), layout)
        if layouts:
            create_layouts_tab(wb.create_sheet("Layouts"), layouts)

        for ws in wb.worksheets:
            if ws.title != "Summary":
                _autosize_columns(ws)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer.getvalue()

    except Exception as e:
        logger.error(f"Excel generation failed: {e}")
        raise
