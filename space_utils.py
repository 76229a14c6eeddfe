"""
Free space utilities for the guillotine packer.
"""

from typing import List, Optional
from data_models import FreeSpace


def calculate_available_area(spaces: List[FreeSpace]) -> float:
    """Sum the areas of a free space pool."""
    return sum(space.area for space in spaces)


def _merge_pair(rect1: FreeSpace, rect2: FreeSpace) -> Optional[FreeSpace]:
    """Return the union of two rectangles sharing a full edge, else None."""
    # Horizontal neighbours: same row band, touching x-ranges
    if rect1.y == rect2.y and rect1.height == rect2.height:
        if rect1.right == rect2.x or rect2.right == rect1.x:
            return FreeSpace(min(rect1.x, rect2.x), rect1.y,
                             rect1.width + rect2.width, rect1.height)

    # Vertical neighbours: same column band, touching y-ranges
    if rect1.x == rect2.x and rect1.width == rect2.width:
        if rect1.bottom == rect2.y or rect2.bottom == rect1.y:
            return FreeSpace(rect1.x, min(rect1.y, rect2.y),
                             rect1.width, rect1.height + rect2.height)

    return None


def merge_adjacent_spaces(spaces: List[FreeSpace]) -> List[FreeSpace]:
    """
    Merge free rectangles that share a full edge to reduce fragmentation.
    Repeats until no pair can be merged, so the result is a fixed point.

    Args:
        spaces: Non-overlapping free rectangles

    Returns:
        New list of rectangles covering the same area
    """
    merged = list(spaces)
    if len(merged) <= 1:
        return merged

    changed = True
    while changed:
        changed = False
        for i in range(len(merged)):
            for j in range(i + 1, len(merged)):
                combined = _merge_pair(merged[i], merged[j])
                if combined is not None:
                    merged[i] = combined
                    merged.pop(j)
                    changed = True
                    break
            if changed:
                break

    return merged
