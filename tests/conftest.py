"""Shared fixtures for the CutPlan tests."""

import matplotlib

matplotlib.use("Agg")

import pytest

from data_models import CuttingConfig, Layout, expand_pieces
from layout_scoring import score_layout
from optimization_core import pack_pieces


@pytest.fixture
def small_config() -> CuttingConfig:
    """1000x600 panel without kerf or margin."""
    return CuttingConfig(panel_width=1000, panel_height=600, panel_thickness=18,
                         blade_thickness=0, panel_cost=0, safety_margin=0)


@pytest.fixture
def priced_config() -> CuttingConfig:
    """1000x1000 panel with kerf, margin and a panel price."""
    return CuttingConfig(panel_width=1000, panel_height=1000, panel_thickness=19,
                         blade_thickness=3, panel_cost=45.5, safety_margin=10)


@pytest.fixture
def mixed_pieces():
    """A cut list needing more than one 1000x1000 panel."""
    return (expand_pieces(600, 400, 3, 1, "Shelf")
            + expand_pieces(300, 300, 4, 4)
            + expand_pieces(900, 200, 2, 8, "Rail"))


@pytest.fixture
def packed_layout(priced_config, mixed_pieces) -> Layout:
    panels = pack_pieces(mixed_pieces, priced_config.effective_width, priced_config.effective_height,
                         priced_config.blade_thickness, priced_config.safety_margin,
                         priced_config.panel_width, priced_config.panel_height)
    return score_layout(Layout(strategy="area", panels=panels))
