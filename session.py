"""
Session operations for the cutting plan application.
Every operation takes a PackingSession and returns a new one.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Dict, Any
from data_models import (PackingSession, CuttingConfig, Piece, Panel, Layout, LayoutSet,
                         InputValidationError, expand_pieces)
from optimization_core import validate_inputs
from optimization_strategies import generate_layouts, build_layout_set
from layout_scoring import score_layout
from history_store import panels_from_history, pieces_from_history

logger = logging.getLogger(__name__)


def new_session(config: Optional[CuttingConfig] = None, project_title: str = "") -> PackingSession:
    return PackingSession(config=config or CuttingConfig(), project_title=project_title)


PACKING_FIELDS = ('panel_width', 'panel_height', 'blade_thickness', 'safety_margin')


def update_config(session: PackingSession, config: CuttingConfig) -> PackingSession:
    """
    Replace the settings. Layouts packed with other panel dimensions, blade
    thickness or margin are dropped; display options and prices keep them.
    """
    if session.layout_set is not None and any(
            getattr(session.config, name) != getattr(config, name) for name in PACKING_FIELDS):
        logger.info("Panel settings changed, discarding generated layouts")
        return replace(session, config=config, layout_set=None, current_panel_index=0)
    return replace(session, config=config)


def set_project_title(session: PackingSession, title: str) -> PackingSession:
    return replace(session, project_title=title)


def add_pieces(session: PackingSession, width: int, height: int, quantity: int,
               name: str = "") -> PackingSession:
    """
    Add a piece request, expanded into individual instances.

    Raises:
        InputValidationError: If a value is missing or not positive
    """
    if not width or not height or not quantity or width <= 0 or height <= 0 or quantity <= 0:
        raise InputValidationError("Width, height and quantity must all be positive")

    new_pieces = expand_pieces(int(width), int(height), int(quantity),
                               session.next_piece_id, name.strip())
    return replace(session,
                   pieces=session.pieces + tuple(new_pieces),
                   next_piece_id=session.next_piece_id + len(new_pieces))


def add_piece_list(session: PackingSession, pieces: List[Piece]) -> PackingSession:
    """Append already expanded pieces, e.g. from a CSV import."""
    if not pieces:
        return session
    next_id = max(session.next_piece_id, max(p.piece_id for p in pieces) + 1)
    return replace(session, pieces=session.pieces + tuple(pieces), next_piece_id=next_id)


def remove_piece(session: PackingSession, index: int) -> PackingSession:
    """Remove one piece instance by its position in the piece list."""
    if index < 0 or index >= len(session.pieces):
        raise IndexError(f"Piece index {index} out of range")
    pieces = session.pieces[:index] + session.pieces[index + 1:]
    return replace(session, pieces=pieces)


def clear_pieces(session: PackingSession) -> PackingSession:
    return replace(session, pieces=(), layout_set=None, current_panel_index=0)


def generate(session: PackingSession) -> PackingSession:
    """
    Validate the session inputs and compute ranked layouts.

    Raises:
        InputValidationError: If the inputs are rejected
        LayoutGenerationError: If no strategy produced a layout
    """
    config = session.config
    pieces = list(session.pieces)

    is_valid, reason = validate_inputs(pieces, config.panel_width, config.panel_height,
                                       config.blade_thickness, config.safety_margin)
    if not is_valid:
        logger.warning(f"Input validation failed: {reason}")
        raise InputValidationError(reason)

    layouts = generate_layouts(pieces, config.effective_width, config.effective_height,
                               config.blade_thickness, config.safety_margin,
                               config.panel_width, config.panel_height)

    return replace(session, layout_set=build_layout_set(layouts), current_panel_index=0)


def current_layout(session: PackingSession) -> Optional[Layout]:
    if session.layout_set is None:
        return None
    return session.layout_set.current


def current_panels(session: PackingSession) -> List[Panel]:
    layout = current_layout(session)
    return layout.panels if layout is not None else []


def current_panel(session: PackingSession) -> Optional[Panel]:
    panels = current_panels(session)
    if not panels:
        return None
    return panels[session.current_panel_index]


def switch_layout(session: PackingSession, index: int) -> PackingSession:
    """Select another ranked layout; the panel view returns to the first panel."""
    if session.layout_set is None:
        raise IndexError("No layouts have been generated")
    return replace(session, layout_set=session.layout_set.with_selection(index), current_panel_index=0)


def show_panel(session: PackingSession, index: int) -> PackingSession:
    """Move the panel view; out-of-range indices leave the session unchanged."""
    if index < 0 or index >= len(current_panels(session)):
        return session
    return replace(session, current_panel_index=index)


def next_panel(session: PackingSession) -> PackingSession:
    return show_panel(session, session.current_panel_index + 1)


def previous_panel(session: PackingSession) -> PackingSession:
    return show_panel(session, session.current_panel_index - 1)


def _restore_inputs(session: PackingSession, entry: Dict[str, Any]) -> PackingSession:
    config = CuttingConfig.from_dict(entry)
    config = replace(config, show_cut_lines=session.config.show_cut_lines,
                     show_waste=session.config.show_waste)
    pieces = pieces_from_history(entry)
    next_id = max([session.next_piece_id] + [p.piece_id + 1 for p in pieces])
    return replace(session, config=config, project_title=entry.get('projectTitle') or "",
                   pieces=tuple(pieces), next_piece_id=next_id, current_panel_index=0)


def load_history_entry(session: PackingSession, entry: Dict[str, Any]) -> PackingSession:
    """Restore a saved plan with its panels, ready to display."""
    restored = _restore_inputs(session, entry)
    layout = score_layout(Layout(strategy="history", panels=panels_from_history(entry)))
    return replace(restored, layout_set=LayoutSet(layouts=(layout,)))


def edit_history_entry(session: PackingSession, entry: Dict[str, Any]) -> PackingSession:
    """Restore a saved plan's inputs only, so its pieces can be edited and regenerated."""
    restored = _restore_inputs(session, entry)
    return replace(restored, layout_set=None)
