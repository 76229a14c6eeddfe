"""
Core data models for the CutPlan panel cutting tool.
Defines Piece, FreeSpace, PlacedPiece, Panel, Layout and the session state.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, List, Dict, Tuple, Any

logger = logging.getLogger(__name__)

# Input limits (mm)
MAX_KERF = 20.0
MAX_SAFETY_MARGIN = 15.0

DEFAULT_PANEL_WIDTH = 2800
DEFAULT_PANEL_HEIGHT = 2070
DEFAULT_PANEL_THICKNESS = 18.0
DEFAULT_BLADE_THICKNESS = 3.2


class CutPlanError(Exception):
    """Base class for all cutting plan errors."""


class InputValidationError(CutPlanError, ValueError):
    """Raised when inputs are rejected before any packing attempt."""


class PlacementError(CutPlanError):
    """Raised when a piece cannot be placed even on an empty panel."""

    def __init__(self, piece: 'Piece', message: Optional[str] = None):
        self.piece = piece
        if message is None:
            message = (f"Piece {piece.label} ({piece.width}x{piece.height} mm) "
                       f"does not fit on an empty panel")
        super().__init__(message)


class LayoutGenerationError(CutPlanError):
    """Raised when no packing strategy produced a layout."""


class StorageQuotaExceeded(CutPlanError):
    """Raised by a key-value store when a value is too large to be written."""


@dataclass(frozen=True)
class Piece:
    """A single rectangular piece instance to be cut."""
    width: int
    height: int
    piece_id: int
    name: str = ""

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def perimeter(self) -> int:
        return 2 * (self.width + self.height)

    @property
    def aspect_ratio(self) -> float:
        return max(self.width, self.height) / min(self.width, self.height)

    @property
    def label(self) -> str:
        return self.name or f"#{self.piece_id}"

    def fits_within(self, width: float, height: float) -> bool:
        """
        Check whether the piece fits a rectangle in at least one orientation.

        Args:
            width, height: Rectangle dimensions

        Returns:
            True if the piece fits unrotated or rotated 90 degrees
        """
        return ((self.width <= width and self.height <= height) or
                (self.height <= width and self.width <= height))

    def to_dict(self) -> Dict[str, Any]:
        return {'width': self.width, 'height': self.height,
                'id': self.piece_id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Piece':
        return cls(width=int(data['width']), height=int(data['height']),
                   piece_id=int(data['id']), name=data.get('name') or "")


def expand_pieces(width: int, height: int, quantity: int, start_id: int,
                  name: str = "") -> List[Piece]:
    """
    Expand a piece request with a quantity into individual Piece instances.

    Args:
        width, height: Piece dimensions in mm
        quantity: Number of identical pieces requested
        start_id: Identifier given to the first instance, incremented per instance
        name: Optional name shared by all instances

    Returns:
        List of Piece objects, one per instance
    """
    return [Piece(width=width, height=height, piece_id=start_id + i, name=name)
            for i in range(quantity)]


@dataclass(frozen=True)
class FreeSpace:
    """An unused, guillotine-reachable rectangle inside a panel's effective area."""
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PlacedPiece:
    """A piece instance bound to a position on a panel."""
    piece_id: int
    x: float
    y: float
    width: int
    height: int
    original_width: int
    original_height: int
    rotated: bool = False
    name: str = ""

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def overlaps(self, other: 'PlacedPiece') -> bool:
        return (self.x < other.right and other.x < self.right and
                self.y < other.bottom and other.y < self.bottom)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'originalWidth': self.original_width,
            'originalHeight': self.original_height,
            'rotated': self.rotated,
            'id': self.piece_id,
            'name': self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlacedPiece':
        return cls(
            piece_id=int(data['id']),
            x=data['x'],
            y=data['y'],
            width=int(data['width']),
            height=int(data['height']),
            original_width=int(data.get('originalWidth', data['width'])),
            original_height=int(data.get('originalHeight', data['height'])),
            rotated=bool(data.get('rotated', False)),
            name=data.get('name') or "",
        )


class Panel:
    """
    Represents one stock panel with its placed pieces and free space pool.
    Positions are relative to the effective (margin-reduced) area.
    """

    def __init__(self, panel_number: int, width: float, height: float,
                 safety_margin: float = 0.0, full_width: Optional[float] = None,
                 full_height: Optional[float] = None):
        """
        Initialize a Panel with a single free space covering its effective area.

        Args:
            panel_number: 1-based panel number within a layout
            width, height: Effective dimensions available for pieces
            safety_margin: Margin trimmed on each edge of the full panel
            full_width, full_height: Stock panel dimensions before the margin
        """
        self.panel_number = panel_number
        self.width = width
        self.height = height
        self.safety_margin = safety_margin
        self.full_width = full_width if full_width is not None else width + 2 * safety_margin
        self.full_height = full_height if full_height is not None else height + 2 * safety_margin
        self.pieces: List[PlacedPiece] = []
        self.free_spaces: List[FreeSpace] = [FreeSpace(0, 0, width, height)]

    @property
    def area(self) -> float:
        return self.width * self.height

    def get_used_area(self) -> float:
        return sum(piece.area for piece in self.pieces)

    def get_waste_fraction(self) -> float:
        """Fraction of the effective area not covered by pieces (0-1)."""
        if self.area == 0:
            return 0.0
        return (self.area - self.get_used_area()) / self.area

    def get_utilization_percentage(self) -> float:
        return (1.0 - self.get_waste_fraction()) * 100

    def get_remaining_area(self) -> float:
        return self.area - self.get_used_area()

    def add_placement(self, placed: PlacedPiece, free_spaces: List[FreeSpace]) -> None:
        """Append a placed piece and replace the free space pool."""
        self.pieces.append(placed)
        self.free_spaces = list(free_spaces)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'panelNumber': self.panel_number,
            'width': self.width,
            'height': self.height,
            'fullWidth': self.full_width,
            'fullHeight': self.full_height,
            'safetyMargin': self.safety_margin,
            'pieces': [piece.to_dict() for piece in self.pieces],
        }

    def __str__(self) -> str:
        return f"Panel({self.panel_number}, {self.width}x{self.height}, {len(self.pieces)} pieces)"

    def __repr__(self) -> str:
        return self.__str__()


@dataclass
class Layout:
    """One complete packing result and its score."""
    strategy: str
    panels: List[Panel]
    waste_percentage: float = 0.0
    usable_waste_count: int = 0
    total_waste_area: float = 0.0

    @property
    def panel_count(self) -> int:
        return len(self.panels)

    @property
    def piece_count(self) -> int:
        return sum(len(panel.pieces) for panel in self.panels)

    def signature(self) -> Tuple:
        """Structural identity: placed rectangles panel by panel."""
        return tuple(
            tuple((p.x, p.y, p.width, p.height) for p in panel.pieces)
            for panel in self.panels
        )


@dataclass(frozen=True)
class LayoutSet:
    """Ranked, deduplicated layouts for one input plus the current selection."""
    layouts: Tuple[Layout, ...] = ()
    current_index: int = 0

    @property
    def current(self) -> Optional[Layout]:
        if not self.layouts:
            return None
        return self.layouts[self.current_index]

    def with_selection(self, index: int) -> 'LayoutSet':
        if index < 0 or index >= len(self.layouts):
            raise IndexError(f"Layout index {index} out of range (0-{len(self.layouts) - 1})")
        return replace(self, current_index=index)


@dataclass(frozen=True)
class CuttingConfig:
    """Typed panel and display settings passed from the UI to the core."""
    panel_width: int = DEFAULT_PANEL_WIDTH
    panel_height: int = DEFAULT_PANEL_HEIGHT
    panel_thickness: float = DEFAULT_PANEL_THICKNESS
    blade_thickness: float = DEFAULT_BLADE_THICKNESS
    panel_cost: float = 0.0
    safety_margin: float = 0.0
    show_cut_lines: bool = True
    show_waste: bool = False

    @property
    def effective_width(self) -> float:
        return self.panel_width - 2 * self.safety_margin

    @property
    def effective_height(self) -> float:
        return self.panel_height - 2 * self.safety_margin

    def to_dict(self) -> Dict[str, Any]:
        return {
            'panelWidth': self.panel_width,
            'panelHeight': self.panel_height,
            'panelThickness': self.panel_thickness,
            'bladeThickness': self.blade_thickness,
            'panelCost': self.panel_cost,
            'safetyMargin': self.safety_margin,
            'showCutLines': self.show_cut_lines,
            'showWaste': self.show_waste,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CuttingConfig':
        """
        Build a config from a history entry or form values.
        Missing or empty values fall back to the defaults.
        """
        def value(key, default, cast):
            raw = data.get(key)
            if raw is None or raw == "":
                return default
            return cast(raw)

        return cls(
            panel_width=value('panelWidth', DEFAULT_PANEL_WIDTH, int),
            panel_height=value('panelHeight', DEFAULT_PANEL_HEIGHT, int),
            panel_thickness=value('panelThickness', DEFAULT_PANEL_THICKNESS, float),
            blade_thickness=value('bladeThickness', DEFAULT_BLADE_THICKNESS, float),
            panel_cost=value('panelCost', 0.0, float),
            safety_margin=value('safetyMargin', 0.0, float),
            show_cut_lines=value('showCutLines', True, bool),
            show_waste=value('showWaste', False, bool),
        )


@dataclass(frozen=True)
class PackingSession:
    """Application state replaced, never mutated, by the session operations."""
    config: CuttingConfig = field(default_factory=CuttingConfig)
    project_title: str = ""
    pieces: Tuple[Piece, ...] = ()
    layout_set: Optional[LayoutSet] = None
    current_panel_index: int = 0
    next_piece_id: int = 1
