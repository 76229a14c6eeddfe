"""Tests for best-fit placement, the single-layout packer and input validation."""

import random

import pytest

from data_models import FreeSpace, Piece, PlacementError, expand_pieces
from optimization_core import (calculate_waste, create_new_panel, find_best_fit_space,
                               pack_pieces, try_place_piece, validate_inputs)


def assert_valid_panels(panels, pieces):
    """Every piece placed once, inside the effective area, without overlaps."""
    placed_ids = sorted(p.piece_id for panel in panels for p in panel.pieces)
    assert placed_ids == sorted(p.piece_id for p in pieces)

    for panel in panels:
        for placed in panel.pieces:
            assert placed.x >= 0 and placed.y >= 0
            assert placed.right <= panel.width + 1e-6
            assert placed.bottom <= panel.height + 1e-6
        for i, first in enumerate(panel.pieces):
            for second in panel.pieces[i + 1:]:
                assert not first.overlaps(second)


class TestFindBestFitSpace:

    def test_smallest_leftover_wins(self):
        spaces = [FreeSpace(0, 0, 1000, 1000), FreeSpace(0, 0, 500, 400)]
        space, rotated = find_best_fit_space(Piece(400, 300, 1), spaces)
        assert space == spaces[1]
        assert rotated is False

    def test_tie_keeps_first_space(self):
        spaces = [FreeSpace(0, 0, 500, 500), FreeSpace(600, 0, 500, 500)]
        space, _ = find_best_fit_space(Piece(100, 100, 1), spaces)
        assert space is spaces[0]

    def test_unrotated_preferred_on_tie(self):
        space, rotated = find_best_fit_space(Piece(300, 300, 1), [FreeSpace(0, 0, 400, 400)])
        assert rotated is False

    def test_rotates_when_only_rotation_fits(self):
        space, rotated = find_best_fit_space(Piece(300, 500, 1), [FreeSpace(0, 0, 600, 400)])
        assert space is not None
        assert rotated is True

    def test_no_fit(self):
        assert find_best_fit_space(Piece(700, 700, 1), [FreeSpace(0, 0, 600, 800)]) == (None, False)


class TestTryPlacePiece:

    def test_places_at_top_left_and_splits(self):
        result = try_place_piece([FreeSpace(0, 0, 1000, 600)], Piece(500, 300, 1), kerf=0)
        assert result.success
        assert (result.placed.x, result.placed.y, result.placed.width, result.placed.height) == (0, 0, 500, 300)
        assert set(result.free_spaces) == {FreeSpace(500, 0, 500, 300), FreeSpace(0, 300, 1000, 300)}

    def test_kerf_offsets_remainders(self):
        result = try_place_piece([FreeSpace(0, 0, 1000, 600)], Piece(500, 300, 1), kerf=3)
        assert set(result.free_spaces) == {FreeSpace(503, 0, 497, 300), FreeSpace(0, 303, 1000, 297)}

    def test_degenerate_remainders_dropped(self):
        result = try_place_piece([FreeSpace(0, 0, 500, 300)], Piece(500, 300, 1), kerf=0)
        assert result.success
        assert result.free_spaces == []

    def test_rotated_placement_keeps_original_size(self):
        result = try_place_piece([FreeSpace(0, 0, 600, 400)], Piece(300, 500, 7, "Door"), kerf=0)
        placed = result.placed
        assert placed.rotated
        assert (placed.width, placed.height) == (500, 300)
        assert (placed.original_width, placed.original_height) == (300, 500)
        assert placed.piece_id == 7 and placed.name == "Door"

    def test_fast_reject_on_total_area(self):
        spaces = [FreeSpace(0, 0, 100, 100), FreeSpace(200, 0, 100, 100)]
        result = try_place_piece(spaces, Piece(150, 150, 1), kerf=0)
        assert not result.success
        assert result.free_spaces is None

    def test_fails_when_no_rectangle_fits(self):
        spaces = [FreeSpace(0, 0, 100, 400), FreeSpace(200, 0, 100, 400)]
        assert not try_place_piece(spaces, Piece(150, 150, 1), kerf=0).success

    def test_input_pool_untouched(self):
        spaces = [FreeSpace(0, 0, 1000, 600)]
        try_place_piece(spaces, Piece(500, 300, 1), kerf=0)
        assert spaces == [FreeSpace(0, 0, 1000, 600)]


class TestPackPieces:

    def test_single_piece(self):
        panels = pack_pieces([Piece(500, 300, 1)], 1000, 600, kerf=0)
        assert len(panels) == 1
        placed = panels[0].pieces[0]
        assert (placed.x, placed.y, placed.width, placed.height) == (0, 0, 500, 300)
        assert panels[0].get_waste_fraction() == pytest.approx(0.75)

    def test_four_pieces_fill_one_panel_without_kerf(self):
        pieces = expand_pieces(400, 300, 4, 1)
        panels = pack_pieces(pieces, 800, 600, kerf=0)
        assert len(panels) == 1
        assert_valid_panels(panels, pieces)
        positions = {(p.x, p.y) for p in panels[0].pieces}
        assert positions == {(0, 0), (400, 0), (0, 300), (400, 300)}

    def test_four_pieces_with_kerf_stay_separated(self):
        # 400 + 2 + 400 exceeds 800, so the kerf forbids two pieces per panel side by side
        pieces = expand_pieces(400, 300, 4, 1)
        panels = pack_pieces(pieces, 800, 600, kerf=2)
        assert len(panels) == 4
        assert_valid_panels(panels, pieces)

    def test_kerf_gap_between_neighbours(self):
        pieces = expand_pieces(399, 300, 2, 1)
        panels = pack_pieces(pieces, 800, 600, kerf=2)
        assert len(panels) == 1
        first, second = sorted(panels[0].pieces, key=lambda p: p.x)
        assert second.x - first.right == 2

    def test_overflow_opens_new_panels(self):
        pieces = expand_pieces(900, 900, 3, 1)
        panels = pack_pieces(pieces, 1000, 1000, kerf=0)
        assert len(panels) == 3
        assert [panel.panel_number for panel in panels] == [1, 2, 3]
        assert all(len(panel.pieces) == 1 for panel in panels)

    def test_piece_goes_to_lowest_waste_panel(self):
        pieces = [Piece(900, 900, 1), Piece(500, 500, 2), Piece(100, 100, 3)]
        panels = pack_pieces(pieces, 1000, 1000, kerf=0)
        assert len(panels) == 2
        assert [p.piece_id for p in panels[0].pieces] == [1, 3]

    def test_unplaceable_piece_raises(self):
        with pytest.raises(PlacementError) as exc_info:
            pack_pieces([Piece(100, 100, 1), Piece(1200, 700, 2, "Top")], 1000, 600, kerf=0)
        assert exc_info.value.piece.piece_id == 2
        assert "Top" in str(exc_info.value)

    def test_panels_record_margin(self):
        panels = pack_pieces([Piece(100, 100, 1)], 980, 580, kerf=0,
                             safety_margin=10, full_width=1000, full_height=600)
        assert panels[0].safety_margin == 10
        assert (panels[0].full_width, panels[0].full_height) == (1000, 600)

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_random_cut_lists_are_valid(self, seed):
        rng = random.Random(seed)
        pieces = [Piece(rng.randint(50, 900), rng.randint(50, 600), i) for i in range(1, 61)]
        panels = pack_pieces(pieces, 1200, 800, kerf=rng.choice([0, 3.2, 5]))
        assert_valid_panels(panels, pieces)
        for panel in panels:
            free_area = sum(space.area for space in panel.free_spaces)
            assert free_area + panel.get_used_area() <= panel.area + 1e-6


class TestCalculateWaste:

    def test_empty_panel(self):
        assert calculate_waste(create_new_panel(1, 1000, 500)) == 1.0

    def test_extra_area(self):
        assert calculate_waste(create_new_panel(1, 1000, 500), extra_area=250_000) == pytest.approx(0.5)


class TestValidateInputs:

    def test_valid(self):
        assert validate_inputs([Piece(500, 300, 1)], 1000, 600, 3.2, 5) == (True, "")

    def test_no_pieces(self):
        is_valid, reason = validate_inputs([], 1000, 600, 3, 0)
        assert not is_valid
        assert "piece" in reason

    def test_piece_too_large_both_orientations(self):
        is_valid, reason = validate_inputs([Piece(1200, 600, 1)], 1000, 600, 0, 0)
        assert not is_valid
        assert "larger" in reason

    def test_rotated_fit_accepted(self):
        assert validate_inputs([Piece(600, 1000, 1)], 1000, 600, 0, 0)[0]

    def test_margin_reduces_usable_area(self):
        assert not validate_inputs([Piece(1000, 600, 1)], 1000, 600, 0, 1)[0]

    @pytest.mark.parametrize("kerf", [-1, 20.5])
    def test_kerf_range(self, kerf):
        is_valid, reason = validate_inputs([Piece(100, 100, 1)], 1000, 600, kerf, 0)
        assert not is_valid
        assert "Blade" in reason

    @pytest.mark.parametrize("margin", [-1, 16])
    def test_margin_range(self, margin):
        is_valid, reason = validate_inputs([Piece(100, 100, 1)], 1000, 600, 0, margin)
        assert not is_valid
        assert "margin" in reason

    def test_kerf_and_margin_bounds_inclusive(self):
        assert validate_inputs([Piece(100, 100, 1)], 1000, 600, 20, 15)[0]

    def test_margin_leaving_no_area(self):
        is_valid, reason = validate_inputs([Piece(1, 1, 1)], 20, 20, 0, 10)
        assert not is_valid
        assert "usable" in reason

    @pytest.mark.parametrize("width,height", [(0, 600), (1000, -5)])
    def test_panel_dimensions(self, width, height):
        assert not validate_inputs([Piece(100, 100, 1)], width, height, 0, 0)[0]
