"""Tests for the immutable session operations."""

from dataclasses import replace

import pytest

import session as plan
from data_models import CuttingConfig, InputValidationError, Piece
from history_store import build_history_entry


@pytest.fixture
def generated(small_config):
    session = plan.new_session(small_config, "Kitchen")
    session = plan.add_pieces(session, 600, 400, 2, "Door")
    session = plan.add_pieces(session, 300, 200, 3)
    return plan.generate(session)


class TestPieces:

    def test_add_pieces_expands_quantity(self):
        session = plan.add_pieces(plan.new_session(), 500, 300, 3, " Shelf ")
        assert [p.piece_id for p in session.pieces] == [1, 2, 3]
        assert all(p.name == "Shelf" for p in session.pieces)
        assert session.next_piece_id == 4

    def test_ids_continue_after_removal(self):
        session = plan.add_pieces(plan.new_session(), 500, 300, 2)
        session = plan.remove_piece(session, 0)
        session = plan.add_pieces(session, 100, 100, 1)
        assert [p.piece_id for p in session.pieces] == [2, 3]

    @pytest.mark.parametrize("width,height,quantity", [(0, 300, 1), (500, None, 1), (500, 300, 0), (-5, 300, 2)])
    def test_invalid_values_rejected(self, width, height, quantity):
        session = plan.new_session()
        with pytest.raises(InputValidationError):
            plan.add_pieces(session, width, height, quantity)
        assert session.pieces == ()

    def test_operations_return_new_sessions(self):
        original = plan.new_session()
        updated = plan.add_pieces(original, 500, 300, 1)
        assert original.pieces == ()
        assert updated is not original

    def test_add_piece_list(self):
        session = plan.add_piece_list(plan.new_session(), [Piece(100, 100, 5), Piece(200, 200, 9)])
        assert len(session.pieces) == 2
        assert session.next_piece_id == 10

    def test_remove_out_of_range(self):
        with pytest.raises(IndexError):
            plan.remove_piece(plan.new_session(), 0)

    def test_clear_drops_layouts(self, generated):
        cleared = plan.clear_pieces(generated)
        assert cleared.pieces == ()
        assert cleared.layout_set is None


class TestGenerate:

    def test_generate_sets_layouts(self, generated):
        assert generated.layout_set is not None
        assert generated.current_panel_index == 0
        assert sum(len(panel.pieces) for panel in plan.current_panels(generated)) == 5

    def test_invalid_inputs_leave_session_untouched(self, small_config):
        session = plan.add_pieces(plan.new_session(small_config), 1200, 700, 1)
        with pytest.raises(InputValidationError):
            plan.generate(session)
        assert session.layout_set is None

    def test_empty_piece_list_rejected(self):
        with pytest.raises(InputValidationError):
            plan.generate(plan.new_session())

    def test_margin_applied(self):
        config = CuttingConfig(panel_width=1000, panel_height=600, blade_thickness=0, safety_margin=10)
        session = plan.generate(plan.add_pieces(plan.new_session(config), 980, 580, 1))
        panel = plan.current_panel(session)
        assert (panel.width, panel.height) == (980, 580)
        assert (panel.full_width, panel.full_height) == (1000, 600)

    def test_config_update(self, small_config):
        session = plan.update_config(plan.new_session(), small_config)
        session = plan.set_project_title(session, "Wardrobe")
        assert session.config == small_config
        assert session.project_title == "Wardrobe"


class TestNavigation:

    @pytest.fixture
    def multi_panel(self):
        config = CuttingConfig(panel_width=1000, panel_height=1000, blade_thickness=0)
        return plan.generate(plan.add_pieces(plan.new_session(config), 900, 900, 3))

    def test_next_and_previous(self, multi_panel):
        session = plan.next_panel(multi_panel)
        assert session.current_panel_index == 1
        assert plan.current_panel(session).panel_number == 2
        assert plan.previous_panel(session).current_panel_index == 0

    def test_out_of_range_is_ignored(self, multi_panel):
        assert plan.previous_panel(multi_panel) is multi_panel
        last = plan.show_panel(multi_panel, 2)
        assert plan.next_panel(last) is last
        assert plan.show_panel(multi_panel, 7) is multi_panel

    def test_switch_layout_resets_panel(self, generated):
        count = len(generated.layout_set.layouts)
        session = plan.show_panel(generated, len(plan.current_panels(generated)) - 1)
        session = plan.switch_layout(session, count - 1)
        assert session.layout_set.current_index == count - 1
        assert session.current_panel_index == 0

    def test_switch_layout_out_of_range(self, generated):
        with pytest.raises(IndexError):
            plan.switch_layout(generated, 99)

    def test_switch_without_layouts(self):
        with pytest.raises(IndexError):
            plan.switch_layout(plan.new_session(), 0)

    def test_empty_session_has_no_panel(self):
        session = plan.new_session()
        assert plan.current_layout(session) is None
        assert plan.current_panels(session) == []
        assert plan.current_panel(session) is None


class TestHistoryRestore:

    def test_load_restores_panels(self, generated):
        entry = build_history_entry(generated, entry_id=1)
        restored = plan.load_history_entry(plan.new_session(), entry)
        assert restored.project_title == "Kitchen"
        assert restored.config.panel_width == 1000
        assert len(restored.pieces) == 5
        assert restored.layout_set.current.strategy == "history"
        original = [p.to_dict() for panel in plan.current_panels(generated) for p in panel.pieces]
        loaded = [p.to_dict() for panel in plan.current_panels(restored) for p in panel.pieces]
        assert loaded == original

    def test_edit_restores_inputs_only(self, generated):
        entry = build_history_entry(generated, entry_id=1)
        edited = plan.edit_history_entry(plan.new_session(), entry)
        assert len(edited.pieces) == 5
        assert edited.layout_set is None
        assert edited.next_piece_id == 6

    def test_display_options_kept(self, generated):
        entry = build_history_entry(generated, entry_id=1)
        current = plan.new_session(replace(CuttingConfig(), show_waste=True, show_cut_lines=False))
        restored = plan.load_history_entry(current, entry)
        assert restored.config.show_waste is True
        assert restored.config.show_cut_lines is False


class TestConfigChanges:

    @pytest.mark.parametrize("field,value", [
        ("panel_width", 1200), ("panel_height", 800), ("blade_thickness", 4.0), ("safety_margin", 5.0)])
    def test_packing_change_drops_layouts(self, generated, field, value):
        session = plan.show_panel(generated, len(plan.current_panels(generated)) - 1)
        updated = plan.update_config(session, replace(session.config, **{field: value}))
        assert getattr(updated.config, field) == value
        assert updated.layout_set is None
        assert updated.current_panel_index == 0
        assert len(updated.pieces) == 5

    @pytest.mark.parametrize("field,value", [
        ("show_waste", True), ("show_cut_lines", False), ("panel_cost", 55.0), ("panel_thickness", 19.0)])
    def test_display_change_keeps_layouts(self, generated, field, value):
        updated = plan.update_config(generated, replace(generated.config, **{field: value}))
        assert updated.layout_set is generated.layout_set
