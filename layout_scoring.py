"""
Layout scoring: waste percentage and usable offcut detection.
"""

import logging
from typing import List, Tuple
from data_models import Layout, Panel

logger = logging.getLogger(__name__)

# Smallest offcut considered reusable stock (mm)
USABLE_WASTE_MIN_WIDTH = 200
USABLE_WASTE_MIN_HEIGHT = 200


def _occupied_bounds(panel: Panel) -> Tuple[float, float]:
    """Right and bottom edges of the bounding box of the placed pieces."""
    if not panel.pieces:
        return 0.0, 0.0
    return (max(piece.right for piece in panel.pieces),
            max(piece.bottom for piece in panel.pieces))


def _fits_min_size(width: float, height: float, min_width: float, min_height: float) -> bool:
    return ((width >= min_width and height >= min_height) or
            (width >= min_height and height >= min_width))


def has_usable_waste(panel: Panel, min_width: float = USABLE_WASTE_MIN_WIDTH,
                     min_height: float = USABLE_WASTE_MIN_HEIGHT) -> bool:
    """
    Check whether a panel keeps an offcut large enough to be reused.

    Only the strips right of and below the bounding box of the placed pieces
    are tested. Gaps between pieces inside the bounding box are not seen, so
    the check under-detects offcuts on busy panels.

    Args:
        panel: Panel to inspect
        min_width, min_height: Minimum offcut size in mm

    Returns:
        True if a minimum-size rectangle clear of every piece exists
    """
    if panel.get_remaining_area() <= 0:
        return False

    occupied_right, occupied_bottom = _occupied_bounds(panel)

    right_strip = (panel.width - occupied_right, panel.height)
    bottom_strip = (panel.width, panel.height - occupied_bottom)

    return any(_fits_min_size(w, h, min_width, min_height) for w, h in (right_strip, bottom_strip))


def count_usable_waste(panels: List[Panel], min_width: float = USABLE_WASTE_MIN_WIDTH,
                       min_height: float = USABLE_WASTE_MIN_HEIGHT) -> int:
    """Number of panels holding at least one reusable offcut."""
    return sum(1 for panel in panels if has_usable_waste(panel, min_width, min_height))


def calculate_layout_waste(panels: List[Panel]) -> Tuple[float, float, float]:
    """
    Calculate area totals for a set of panels.

    Returns:
        Tuple of (total effective area, used area, waste percentage)
    """
    total_area = sum(panel.area for panel in panels)
    used_area = sum(panel.get_used_area() for panel in panels)
    if total_area == 0:
        return 0.0, 0.0, 0.0
    return total_area, used_area, (total_area - used_area) / total_area * 100


def score_layout(layout: Layout, min_width: float = USABLE_WASTE_MIN_WIDTH,
                 min_height: float = USABLE_WASTE_MIN_HEIGHT) -> Layout:
    """
    Attach waste metrics to a layout.

    Args:
        layout: Layout whose panels are fully packed
        min_width, min_height: Minimum usable offcut size in mm

    Returns:
        The same layout with waste_percentage, usable_waste_count and
        total_waste_area set
    """
    total_area, used_area, waste_percentage = calculate_layout_waste(layout.panels)
    layout.waste_percentage = waste_percentage
    layout.total_waste_area = total_area - used_area
    layout.usable_waste_count = count_usable_waste(layout.panels, min_width, min_height)

    logger.debug(f"Scored layout '{layout.strategy}': {layout.panel_count} panels, "
                 f"waste {waste_percentage:.1f}%, usable offcuts {layout.usable_waste_count}")
    return layout
