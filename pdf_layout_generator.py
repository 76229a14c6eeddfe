"""
Panel drawings and PDF cutting plans for CutPlan.
Creates a cover page followed by one page per panel with its cutting list.
"""

import io
import logging
from datetime import datetime
from typing import Optional
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.patches as patches
from matplotlib.backends.backend_pdf import PdfPages
from data_models import Panel, Layout, CuttingConfig
from simple_reports import generate_cutting_list, calculate_plan_summary

logger = logging.getLogger(__name__)

A4_PORTRAIT = (8.27, 11.69)
ACCENT_COLOR = '#2563eb'
MUTED_COLOR = '#64748b'


class PDFLayoutGenerator:
    """Generate panel drawings and the printable cutting plan."""

    def __init__(self, show_cut_lines: bool = True, show_waste: bool = False):
        self.show_cut_lines = show_cut_lines
        self.show_waste = show_waste
        self.colors = ['#3b82f6', '#8b5cf6', '#ec4899', '#f59e0b', '#10b981', '#06b6d4']

    def draw_panel(self, ax, panel: Panel) -> None:
        """
        Draw a panel on a matplotlib axis, origin at the top-left corner.

        The full stock panel is drawn with its safety margin hatched; pieces
        and free spaces are offset by the margin.
        """
        margin = panel.safety_margin

        ax.add_patch(patches.Rectangle(
            (0, 0), panel.full_width, panel.full_height,
            linewidth=2, edgecolor='#334155', facecolor='#e2e8f0',
            hatch='//' if margin > 0 else None
        ))
        ax.add_patch(patches.Rectangle(
            (margin, margin), panel.width, panel.height,
            linewidth=0.5, edgecolor='#94a3b8', facecolor='#f1f5f9'
        ))

        if self.show_waste:
            for space in panel.free_spaces:
                ax.add_patch(patches.Rectangle(
                    (space.x + margin, space.y + margin), space.width, space.height,
                    linewidth=0.5, edgecolor='#dc2626', facecolor='#fecaca',
                    alpha=0.5, hatch='xx'
                ))

        for index, piece in enumerate(panel.pieces):
            color = self.colors[index % len(self.colors)]
            x = piece.x + margin
            y = piece.y + margin

            ax.add_patch(patches.Rectangle(
                (x, y), piece.width, piece.height,
                linewidth=1.5, edgecolor=color, facecolor=color, alpha=0.7
            ))

            if self.show_cut_lines:
                ax.add_patch(patches.Rectangle(
                    (x, y), piece.width, piece.height,
                    linewidth=0.8, edgecolor='darkred', facecolor='none', linestyle='--'
                ))

            label = f"{piece.original_width}×{piece.original_height}"
            if piece.rotated:
                label += " ↻"
            if piece.name:
                label = f"{piece.name}\n{label}"

            font_size = 7 if min(piece.width, piece.height) > 250 else 5
            ax.text(x + piece.width / 2, y + piece.height / 2, label,
                    ha='center', va='center', fontsize=font_size, color='#1e293b')

        ax.set_xlim(0, panel.full_width)
        ax.set_ylim(panel.full_height, 0)
        ax.set_aspect('equal')
        ax.set_xlabel('Width (mm)', fontsize=8)
        ax.set_ylabel('Height (mm)', fontsize=8)
        ax.tick_params(labelsize=7)

    def render_panel_png(self, panel: Panel, dpi: int = 150) -> bytes:
        """Render one panel as PNG bytes."""
        fig, ax = plt.subplots(1, 1, figsize=(10, 10 * panel.full_height / max(panel.full_width, 1)))
        try:
            self.draw_panel(ax, panel)
            ax.set_title(f"Panel {panel.panel_number}", fontsize=11, fontweight='bold')
            fig.tight_layout()
            buffer = io.BytesIO()
            fig.savefig(buffer, format='png', dpi=dpi)
            return buffer.getvalue()
        finally:
            plt.close(fig)

    def _create_cover_page(self, pdf: PdfPages, layout: Layout, config: CuttingConfig,
                           project_title: str, generated_at: datetime) -> None:
        """Create the cover page with the project title and plan summary."""
        fig = plt.figure(figsize=A4_PORTRAIT)
        fig.patch.set_facecolor('white')

        fig.text(0.5, 0.80, project_title or "Untitled project", ha='center', va='center',
                 fontsize=28, fontweight='bold', color=ACCENT_COLOR)
        fig.text(0.5, 0.74, "Cutting Plan - Joinery", ha='center', va='center',
                 fontsize=16, color=MUTED_COLOR)
        fig.text(0.5, 0.68, generated_at.strftime("%d %B %Y %H:%M"), ha='center', va='center',
                 fontsize=12, color=MUTED_COLOR)

        summary = calculate_plan_summary(layout.panels, config.panel_cost)
        stats = [
            ("Number of panels", str(summary['total_panels'])),
            ("Number of pieces", str(summary['total_pieces'])),
            ("Panel dimensions",
             f"{config.panel_width} × {config.panel_height} × {config.panel_thickness:g} mm"),
        ]
        if summary['total_cost'] is not None:
            stats.append(("Total cost", f"{summary['total_cost']:.2f} €"))

        box_top = 0.58
        row_height = 0.05
        box_height = 0.08 + row_height * len(stats)
        fig.add_artist(patches.FancyBboxPatch(
            (0.15, box_top - box_height), 0.70, box_height,
            boxstyle="round,pad=0.01", transform=fig.transFigure,
            facecolor='#f8fafc', edgecolor=ACCENT_COLOR, linewidth=2
        ))
        fig.text(0.5, box_top - 0.035, "Summary", ha='center', va='center',
                 fontsize=15, fontweight='bold', color=ACCENT_COLOR)

        for i, (label, value) in enumerate(stats):
            y = box_top - 0.09 - i * row_height
            fig.text(0.19, y, label, ha='left', va='center', fontsize=11, color='#1e293b')
            fig.text(0.81, y, value, ha='right', va='center', fontsize=12,
                     fontweight='bold', color=ACCENT_COLOR)

        pdf.savefig(fig, facecolor='white')
        plt.close(fig)

    def _add_cutting_list_table(self, fig, panel: Panel) -> None:
        """Add the grouped cutting list of a panel below its drawing."""
        rows = generate_cutting_list(panel)
        if not rows:
            return

        headers = ['Piece(s)', 'Width (mm)', 'Height (mm)', 'Quantity', 'Name']
        table_data = [
            [", ".join(str(n) for n in row['piece_numbers'])[:40], str(row['width']),
             str(row['height']), str(row['quantity']), row['name'][:20]]
            for row in rows
        ]

        table_ax = fig.add_axes([0.08, 0.04, 0.84, 0.30])
        table_ax.axis('off')
        table = table_ax.table(cellText=table_data, colLabels=headers, cellLoc='center',
                               loc='upper center', colWidths=[0.34, 0.15, 0.15, 0.12, 0.24])
        table.auto_set_font_size(False)
        table.set_fontsize(8)
        table.scale(1, 1.3)

        for i in range(len(headers)):
            table[(0, i)].set_facecolor('#CCCCCC')
            table[(0, i)].set_text_props(weight='bold')

    def _create_panel_page(self, pdf: PdfPages, panel: Panel) -> None:
        fig = plt.figure(figsize=A4_PORTRAIT)
        fig.patch.set_facecolor('white')
        fig.text(0.08, 0.96, f"Panel {panel.panel_number}", ha='left', va='top',
                 fontsize=18, fontweight='bold', color=ACCENT_COLOR)
        fig.text(0.92, 0.96, f"Utilization: {panel.get_utilization_percentage():.1f}%",
                 ha='right', va='top', fontsize=10, color=MUTED_COLOR)

        ax = fig.add_axes([0.10, 0.40, 0.80, 0.52])
        self.draw_panel(ax, panel)
        self._add_cutting_list_table(fig, panel)

        pdf.savefig(fig, facecolor='white')
        plt.close(fig)

    def generate_cutting_plan_pdf(self, layout: Layout, config: CuttingConfig,
                                  project_title: str = "", output_path: Optional[str] = None,
                                  generated_at: Optional[datetime] = None) -> bytes:
        """
        Generate the printable cutting plan.

        Args:
            layout: Selected layout
            config: Panel settings
            project_title: Title on the cover page
            output_path: Optional file to write the PDF to
            generated_at: Date printed on the cover page

        Returns:
            PDF content as bytes
        """
        pdf_buffer = io.BytesIO()
        generated_at = generated_at or datetime.now()

        try:
            with PdfPages(pdf_buffer) as pdf:
                self._create_cover_page(pdf, layout, config, project_title, generated_at)
                for panel in layout.panels:
                    self._create_panel_page(pdf, panel)

            pdf_bytes = pdf_buffer.getvalue()

            if output_path:
                try:
                    with open(output_path, 'wb') as f:
                        f.write(pdf_bytes)
                    logger.info(f"PDF cutting plan saved to {output_path}")
                except OSError as e:
                    logger.warning(f"Could not save PDF to file: {e}")

            return pdf_bytes

        except Exception as e:
            logger.error(f"Error generating PDF cutting plan: {e}")
            raise


def generate_cutting_plan_pdf(layout: Layout, config: CuttingConfig, project_title: str = "",
                              output_path: Optional[str] = None) -> bytes:
    """Generate the PDF cutting plan with the display options of the config."""
    generator = PDFLayoutGenerator(config.show_cut_lines, config.show_waste)
    return generator.generate_cutting_plan_pdf(layout, config, project_title, output_path)


def render_panel_png(panel: Panel, config: CuttingConfig) -> bytes:
    return PDFLayoutGenerator(config.show_cut_lines, config.show_waste).render_panel_png(panel)
