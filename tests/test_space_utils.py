"""Tests for free space merging."""

from data_models import FreeSpace
from space_utils import calculate_available_area, merge_adjacent_spaces


class TestMergeAdjacentSpaces:

    def test_horizontal_neighbours_merge(self):
        merged = merge_adjacent_spaces([FreeSpace(0, 0, 100, 50), FreeSpace(100, 0, 100, 50)])
        assert merged == [FreeSpace(0, 0, 200, 50)]

    def test_vertical_neighbours_merge(self):
        merged = merge_adjacent_spaces([FreeSpace(0, 50, 80, 30), FreeSpace(0, 0, 80, 50)])
        assert merged == [FreeSpace(0, 0, 80, 80)]

    def test_partial_edge_does_not_merge(self):
        spaces = [FreeSpace(0, 0, 100, 50), FreeSpace(100, 0, 100, 40)]
        assert merge_adjacent_spaces(spaces) == spaces

    def test_gap_does_not_merge(self):
        spaces = [FreeSpace(0, 0, 100, 50), FreeSpace(103, 0, 100, 50)]
        assert merge_adjacent_spaces(spaces) == spaces

    def test_repeats_until_fixed_point(self):
        # Row of three strips plus a strip below the full row
        spaces = [
            FreeSpace(0, 0, 100, 50),
            FreeSpace(200, 0, 100, 50),
            FreeSpace(0, 50, 300, 20),
            FreeSpace(100, 0, 100, 50),
        ]
        merged = merge_adjacent_spaces(spaces)
        assert merged == [FreeSpace(0, 0, 300, 70)]

    def test_idempotent(self):
        spaces = [
            FreeSpace(0, 0, 100, 50),
            FreeSpace(100, 0, 100, 50),
            FreeSpace(0, 60, 50, 50),
            FreeSpace(300, 300, 10, 10),
        ]
        once = merge_adjacent_spaces(spaces)
        assert merge_adjacent_spaces(once) == once

    def test_preserves_area(self):
        spaces = [FreeSpace(0, 0, 100, 50), FreeSpace(100, 0, 100, 50), FreeSpace(0, 50, 200, 25)]
        assert calculate_available_area(merge_adjacent_spaces(spaces)) == calculate_available_area(spaces)

    def test_input_list_untouched(self):
        spaces = [FreeSpace(0, 0, 100, 50), FreeSpace(100, 0, 100, 50)]
        merge_adjacent_spaces(spaces)
        assert len(spaces) == 2

    def test_empty_and_single(self):
        assert merge_adjacent_spaces([]) == []
        assert merge_adjacent_spaces([FreeSpace(0, 0, 1, 1)]) == [FreeSpace(0, 0, 1, 1)]
