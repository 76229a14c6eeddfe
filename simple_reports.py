"""
Simple report generation for CutPlan.
Creates cutting lists, plan summaries, text and CSV reports for a layout.
"""

import csv
import io
from typing import List, Dict, Any, Optional
from data_models import Panel, PlacedPiece, Layout, CuttingConfig
from optimization_strategies import STRATEGY_LABELS
from layout_scoring import calculate_layout_waste


def sort_panel_pieces(panel: Panel) -> List[PlacedPiece]:
    """Pieces in cutting order: top to bottom, then left to right."""
    return sorted(panel.pieces, key=lambda p: (p.y, p.x))


def generate_cutting_list(panel: Panel) -> List[Dict[str, Any]]:
    """
    Build the cutting list of one panel.

    Pieces are numbered from 1 in cutting order and grouped by their
    original (unrotated) size and name.

    Returns:
        One row per group with piece numbers, width, height, name and quantity
    """
    grouped: Dict[tuple, Dict[str, Any]] = {}
    for number, piece in enumerate(sort_panel_pieces(panel), 1):
        key = (piece.original_width, piece.original_height, piece.name)
        if key not in grouped:
            grouped[key] = {
                'width': piece.original_width,
                'height': piece.original_height,
                'name': piece.name,
                'quantity': 0,
                'piece_numbers': [],
            }
        grouped[key]['quantity'] += 1
        grouped[key]['piece_numbers'].append(number)
    return list(grouped.values())


def calculate_plan_summary(panels: List[Panel], panel_cost: float = 0.0) -> Dict[str, Any]:
    """
    Summarize a plan.

    Args:
        panels: Panels of the selected layout
        panel_cost: Price of one stock panel

    Returns:
        Dictionary with panel, piece and cut counts, total cost (None when no
        price is set) and waste figures
    """
    total_pieces = sum(len(panel.pieces) for panel in panels)
    total_area, used_area, waste_percentage = calculate_layout_waste(panels)
    return {
        'total_panels': len(panels),
        'total_pieces': total_pieces,
        'total_cuts': total_pieces,
        'total_cost': len(panels) * panel_cost if panel_cost and panel_cost > 0 else None,
        'total_area': total_area,
        'used_area': used_area,
        'waste_percentage': waste_percentage,
    }


def layout_comparison_rows(layouts: List[Layout]) -> List[Dict[str, Any]]:
    """One row per ranked layout, for selection tables and exports."""
    rows = []
    for rank, layout in enumerate(layouts, 1):
        rows.append({
            'Rank': rank,
            'Strategy': STRATEGY_LABELS.get(layout.strategy, layout.strategy),
            'Panels': layout.panel_count,
            'Waste (%)': round(layout.waste_percentage, 1),
            'Usable offcuts': layout.usable_waste_count,
            'Waste area (m²)': round(layout.total_waste_area / 1_000_000, 3),
        })
    return rows


def generate_cutting_layout_text(layout: Layout, config: CuttingConfig,
                                 project_title: str = "") -> str:
    """
    Generate a text cutting plan for a layout.

    Args:
        layout: Selected layout
        config: Panel settings used for the layout
        project_title: Title printed in the header

    Returns:
        Formatted text report
    """
    report_lines = []

    if project_title:
        report_lines.append(f"CUTTING PLAN - {project_title}")
    else:
        report_lines.append("CUTTING PLAN")
    report_lines.append("=" * 60)
    report_lines.append("")

    summary = calculate_plan_summary(layout.panels, config.panel_cost)
    report_lines.append("SUMMARY:")
    report_lines.append(f"Panel: {config.panel_width} x {config.panel_height} x {config.panel_thickness:g} mm")
    report_lines.append(f"Blade thickness: {config.blade_thickness:g} mm")
    if config.safety_margin:
        report_lines.append(f"Safety margin: {config.safety_margin:g} mm")
    report_lines.append(f"Strategy: {STRATEGY_LABELS.get(layout.strategy, layout.strategy)}")
    report_lines.append(f"Total Panels: {summary['total_panels']}")
    report_lines.append(f"Total Pieces: {summary['total_pieces']}")
    report_lines.append(f"Total Cuts: {summary['total_cuts']}")
    report_lines.append(f"Waste: {summary['waste_percentage']:.1f}%")
    if summary['total_cost'] is not None:
        report_lines.append(f"Total Cost: {summary['total_cost']:.2f} EUR")
    report_lines.append("")

    for panel in layout.panels:
        report_lines.append(f"PANEL {panel.panel_number}")
        report_lines.append(f"Utilization: {panel.get_utilization_percentage():.1f}%")
        report_lines.append("Piece(s)".ljust(20) + "Width".ljust(10) + "Height".ljust(10) + "Qty".ljust(6) + "Name")
        report_lines.append("-" * 60)

        for row in generate_cutting_list(panel):
            numbers = ", ".join(str(n) for n in row['piece_numbers'])
            report_lines.append(
                numbers[:19].ljust(20) +
                str(row['width']).ljust(10) +
                str(row['height']).ljust(10) +
                str(row['quantity']).ljust(6) +
                row['name']
            )

        report_lines.append("")

    return "\n".join(report_lines)


def generate_cut_list_csv(layout: Layout) -> str:
    """
    Generate the placement list of a layout as CSV.

    Returns:
        CSV content as string
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        'Panel', 'Piece No.', 'Piece ID', 'Name', 'Width (mm)', 'Height (mm)',
        'X Position (mm)', 'Y Position (mm)', 'Rotated'
    ])

    for panel in layout.panels:
        for number, piece in enumerate(sort_panel_pieces(panel), 1):
            writer.writerow([
                panel.panel_number,
                number,
                piece.piece_id,
                piece.name,
                piece.original_width,
                piece.original_height,
                f"{piece.x + panel.safety_margin:g}",
                f"{piece.y + panel.safety_margin:g}",
                'Yes' if piece.rotated else 'No',
            ])

    return output.getvalue()


def create_report_package(layout: Layout, config: CuttingConfig, project_title: str = "",
                          layouts: Optional[List[Layout]] = None) -> Dict[str, str]:
    """
    Create text and CSV reports for a layout.

    Returns:
        Dictionary with report file names as keys and content as values
    """
    reports = {
        'cutting_plan.txt': generate_cutting_layout_text(layout, config, project_title),
        'cut_list.csv': generate_cut_list_csv(layout),
    }

    if layouts:
        output = io.StringIO()
        rows = layout_comparison_rows(layouts)
        writer = csv.DictWriter(output, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
        reports['layout_comparison.csv'] = output.getvalue()

    return reports
