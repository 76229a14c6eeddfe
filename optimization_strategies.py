"""
Multi-strategy layout generation.
Runs the packer under several sort orders, scores, ranks and deduplicates the results.
"""

import logging
import time
from typing import List, Dict, Callable, Optional
from data_models import Piece, Panel, Layout, LayoutSet, CutPlanError, LayoutGenerationError
from optimization_core import pack_pieces
from layout_scoring import score_layout, USABLE_WASTE_MIN_WIDTH, USABLE_WASTE_MIN_HEIGHT

logger = logging.getLogger(__name__)


class SortStrategy:
    """Enum-like class for piece sort orders (all descending)."""
    AREA = "area"
    WIDTH = "width"
    HEIGHT = "height"
    PERIMETER = "perimeter"
    ASPECT_RATIO = "aspect_ratio"


SORT_KEYS: Dict[str, Callable[[Piece], float]] = {
    SortStrategy.AREA: lambda p: p.area,
    SortStrategy.WIDTH: lambda p: p.width,
    SortStrategy.HEIGHT: lambda p: p.height,
    SortStrategy.PERIMETER: lambda p: p.perimeter,
    SortStrategy.ASPECT_RATIO: lambda p: p.aspect_ratio,
}

STRATEGY_LABELS = {
    SortStrategy.AREA: "Largest area first",
    SortStrategy.WIDTH: "Widest first",
    SortStrategy.HEIGHT: "Tallest first",
    SortStrategy.PERIMETER: "Longest perimeter first",
    SortStrategy.ASPECT_RATIO: "Most elongated first",
}


def sort_pieces(pieces: List[Piece], strategy: str) -> List[Piece]:
    """Return a new list of pieces sorted in descending order of the strategy key."""
    if strategy not in SORT_KEYS:
        raise ValueError(f"Unknown sort strategy: {strategy}")
    # sorted() is stable with reverse=True, so equal keys keep input order
    return sorted(pieces, key=SORT_KEYS[strategy], reverse=True)


def rank_layouts(layouts: List[Layout]) -> List[Layout]:
    """
    Rank layouts: fewer panels, then more usable offcuts, then lower waste.
    Equal layouts keep their strategy order.
    """
    return sorted(layouts, key=lambda l: (l.panel_count, -l.usable_waste_count, l.waste_percentage))


def deduplicate_layouts(layouts: List[Layout]) -> List[Layout]:
    """Drop layouts structurally identical to an earlier one."""
    seen = set()
    unique = []
    for layout in layouts:
        signature = layout.signature()
        if signature in seen:
            logger.debug(f"Layout '{layout.strategy}' duplicates a better ranked layout")
            continue
        seen.add(signature)
        unique.append(layout)
    return unique


def generate_layouts(pieces: List[Piece], effective_width: float, effective_height: float,
                     kerf: float, safety_margin: float = 0.0, full_width: Optional[float] = None,
                     full_height: Optional[float] = None, strategies: Optional[List[str]] = None,
                     min_usable_width: float = USABLE_WASTE_MIN_WIDTH,
                     min_usable_height: float = USABLE_WASTE_MIN_HEIGHT) -> List[Layout]:
    """
    Generate ranked, deduplicated candidate layouts.

    Args:
        pieces: Piece instances to pack
        effective_width, effective_height: Panel area available for pieces
        kerf: Saw blade width
        safety_margin: Edge margin of each panel
        full_width, full_height: Stock panel dimensions
        strategies: Sort strategies to run, all of them by default
        min_usable_width, min_usable_height: Minimum reusable offcut size

    Returns:
        Layouts, best first

    Raises:
        LayoutGenerationError: If every strategy failed
    """
    start_time = time.time()
    strategies = strategies or list(SORT_KEYS)

    layouts = []
    failures = []

    for strategy in strategies:
        ordered = sort_pieces(pieces, strategy)
        try:
            panels = pack_pieces(ordered, effective_width, effective_height, kerf,
                                 safety_margin, full_width, full_height)
        except CutPlanError as e:
            logger.warning(f"Strategy '{strategy}' failed: {e}")
            failures.append(f"{strategy}: {e}")
            continue

        layout = Layout(strategy=strategy, panels=panels)
        layouts.append(score_layout(layout, min_usable_width, min_usable_height))

    if not layouts:
        raise LayoutGenerationError("No strategy produced a layout: " + "; ".join(failures))

    ranked = deduplicate_layouts(rank_layouts(layouts))

    elapsed = time.time() - start_time
    best = ranked[0]
    logger.info(f"Generated {len(ranked)} distinct layouts from {len(layouts)} strategies in {elapsed:.2f}s; "
                f"best '{best.strategy}': {best.panel_count} panels, waste {best.waste_percentage:.1f}%")
    return ranked


def build_layout_set(layouts: List[Layout]) -> LayoutSet:
    """Wrap ranked layouts with the best one selected."""
    return LayoutSet(layouts=tuple(layouts), current_index=0)


def select_layout(layout_set: LayoutSet, index: int) -> List[Panel]:
    """
    Return the panels of a ranked alternative.

    Raises:
        IndexError: If index is out of range
    """
    return layout_set.with_selection(index).current.panels
