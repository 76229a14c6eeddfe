"""
Guillotine optimization core: best-fit placement on a free space pool and
the single-layout multi-panel packer.
"""

import logging
from typing import List, Optional, Tuple, NamedTuple
from data_models import (Piece, FreeSpace, PlacedPiece, Panel, PlacementError,
                         MAX_KERF, MAX_SAFETY_MARGIN)
from space_utils import merge_adjacent_spaces, calculate_available_area

logger = logging.getLogger(__name__)


class PlacementResult(NamedTuple):
    """Outcome of one placement attempt on a free space pool."""
    success: bool
    free_spaces: Optional[List[FreeSpace]] = None
    placed: Optional[PlacedPiece] = None


FAILED_PLACEMENT = PlacementResult(success=False)


def find_best_fit_space(piece: Piece, free_spaces: List[FreeSpace]) -> Tuple[Optional[FreeSpace], bool]:
    """
    Find the free rectangle leaving the least leftover area for a piece.

    Each rectangle is tested unrotated first, then rotated 90 degrees. Only a
    strictly better fit replaces the current candidate, so ties keep the
    first one found in pool order.

    Args:
        piece: Piece to place
        free_spaces: Candidate rectangles

    Returns:
        Tuple of (best space or None, rotated flag)
    """
    best_space = None
    best_rotation = False
    best_fit = float('inf')

    for space in free_spaces:
        if piece.width <= space.width and piece.height <= space.height:
            fit = space.area - piece.area
            if fit < best_fit:
                best_fit = fit
                best_space = space
                best_rotation = False

        if piece.height <= space.width and piece.width <= space.height:
            fit = space.area - piece.area
            if fit < best_fit:
                best_fit = fit
                best_space = space
                best_rotation = True

    return best_space, best_rotation


def try_place_piece(free_spaces: List[FreeSpace], piece: Piece, kerf: float) -> PlacementResult:
    """
    Place a piece on a free space pool using best area fit and a guillotine split.

    The piece goes to the top-left corner of the chosen rectangle. The
    rectangle is replaced by a right remainder as tall as the placed piece
    and a bottom remainder spanning the full rectangle width, both offset by
    the kerf. The resulting pool is merged.

    Args:
        free_spaces: Current free space pool (left untouched)
        piece: Piece to place
        kerf: Saw blade width consumed by each cut

    Returns:
        PlacementResult with the new pool and the placed piece, or a failure
    """
    if piece.area > calculate_available_area(free_spaces):
        return FAILED_PLACEMENT

    best_space, rotated = find_best_fit_space(piece, free_spaces)
    if best_space is None:
        return FAILED_PLACEMENT

    w = piece.height if rotated else piece.width
    h = piece.width if rotated else piece.height

    placed = PlacedPiece(
        piece_id=piece.piece_id,
        x=best_space.x,
        y=best_space.y,
        width=w,
        height=h,
        original_width=piece.width,
        original_height=piece.height,
        rotated=rotated,
        name=piece.name,
    )

    new_spaces = [space for space in free_spaces if space is not best_space]

    right_space = FreeSpace(
        x=best_space.x + w + kerf,
        y=best_space.y,
        width=best_space.width - w - kerf,
        height=h,
    )
    bottom_space = FreeSpace(
        x=best_space.x,
        y=best_space.y + h + kerf,
        width=best_space.width,
        height=best_space.height - h - kerf,
    )

    for remainder in (right_space, bottom_space):
        if remainder.width > 0 and remainder.height > 0:
            new_spaces.append(remainder)

    return PlacementResult(success=True, free_spaces=merge_adjacent_spaces(new_spaces), placed=placed)


def calculate_waste(panel: Panel, extra_area: float = 0.0) -> float:
    """
    Calculate the waste fraction of a panel.

    Args:
        panel: Panel to evaluate
        extra_area: Area of a piece about to be added

    Returns:
        (panel area - used area) / panel area
    """
    if panel.area == 0:
        return 0.0
    return (panel.area - panel.get_used_area() - extra_area) / panel.area


def create_new_panel(panel_number: int, panel_width: float, panel_height: float,
                     safety_margin: float = 0.0, full_width: Optional[float] = None,
                     full_height: Optional[float] = None) -> Panel:
    """Create an empty panel whose pool is one rectangle covering the effective area."""
    return Panel(
        panel_number=panel_number,
        width=panel_width,
        height=panel_height,
        safety_margin=safety_margin,
        full_width=full_width,
        full_height=full_height,
    )


def pack_pieces(pieces: List[Piece], panel_width: float, panel_height: float, kerf: float,
                safety_margin: float = 0.0, full_width: Optional[float] = None,
                full_height: Optional[float] = None) -> List[Panel]:
    """
    Pack pieces in the given order onto as few panels as possible.

    Each piece is tried on every open panel and committed to the one with the
    lowest resulting waste fraction. When no panel accepts it a new panel is
    opened.

    Args:
        pieces: Pieces in packing order
        panel_width, panel_height: Effective panel dimensions
        kerf: Saw blade width
        safety_margin: Edge margin recorded on each panel
        full_width, full_height: Stock panel dimensions

    Returns:
        List of packed panels

    Raises:
        PlacementError: If a piece does not fit on an empty panel
    """
    panels: List[Panel] = []

    for piece in pieces:
        best_panel = None
        best_result = None
        best_waste = float('inf')

        for panel in panels:
            result = try_place_piece(panel.free_spaces, piece, kerf)
            if result.success:
                waste = calculate_waste(panel, result.placed.area)
                if waste < best_waste:
                    best_waste = waste
                    best_panel = panel
                    best_result = result

        if best_panel is not None:
            best_panel.add_placement(best_result.placed, best_result.free_spaces)
            continue

        new_panel = create_new_panel(len(panels) + 1, panel_width, panel_height,
                                     safety_margin, full_width, full_height)
        result = try_place_piece(new_panel.free_spaces, piece, kerf)
        if not result.success:
            raise PlacementError(piece)

        new_panel.add_placement(result.placed, result.free_spaces)
        panels.append(new_panel)

    logger.debug(f"Packed {len(pieces)} pieces onto {len(panels)} panels")
    return panels


def validate_inputs(pieces: List[Piece], panel_width: float, panel_height: float,
                    kerf: float, safety_margin: float) -> Tuple[bool, str]:
    """
    Validate packing inputs before any packing attempt.

    Args:
        pieces: Piece instances to pack
        panel_width, panel_height: Full stock panel dimensions
        kerf: Saw blade width
        safety_margin: Margin trimmed on each panel edge

    Returns:
        Tuple of (is_valid, reason)
    """
    if not pieces:
        return False, "Add at least one piece"

    if not panel_width or not panel_height or panel_width <= 0 or panel_height <= 0:
        return False, "Panel dimensions must be greater than zero"

    if kerf is None or kerf < 0 or kerf > MAX_KERF:
        return False, f"Blade thickness must be between 0 and {MAX_KERF:g} mm"

    if safety_margin is None or safety_margin < 0 or safety_margin > MAX_SAFETY_MARGIN:
        return False, f"Safety margin must be between 0 and {MAX_SAFETY_MARGIN:g} mm"

    effective_width = panel_width - 2 * safety_margin
    effective_height = panel_height - 2 * safety_margin
    if effective_width <= 0 or effective_height <= 0:
        return False, "Safety margin leaves no usable panel area"

    for piece in pieces:
        if piece.width <= 0 or piece.height <= 0:
            return False, f"Piece {piece.label} has invalid dimensions {piece.width}x{piece.height}"
        if not piece.fits_within(effective_width, effective_height):
            return False, (f"Piece {piece.label} ({piece.width}x{piece.height} mm) is larger than "
                           f"the usable panel area ({effective_width:g}x{effective_height:g} mm)")

    return True, ""
