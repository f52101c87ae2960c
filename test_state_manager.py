import unittest

from grid_config import build_options
from grid_types import CellCoords
from state_manager import StateManager

SCHEMA = {
    "name": {"type": "text", "label": "Name", "required": True},
    "qty": {"type": "number"},
    "locked": {"type": "boolean"},
}


def _locked_qty(row_index, column_key, row_data):
    return column_key == "qty" and bool(row_data.get("locked"))


def make_state(rows=None, **overrides):
    state = StateManager(SCHEMA, build_options(**overrides))
    state.set_data(
        rows
        if rows is not None
        else [
            {"name": "a", "qty": 1, "locked": False},
            {"name": "b", "qty": 2, "locked": True},
            {"name": "c", "qty": 3, "locked": False},
        ]
    )
    return state


class StateDataTests(unittest.TestCase):
    def test_set_data_copies_rows_and_keeps_values(self):
        rows = [{"name": "a", "qty": 1, "locked": False}]
        state = make_state(rows)
        rows[0]["name"] = "changed"

        self.assertEqual(state.get_data(), [{"name": "a", "qty": 1, "locked": False}])
        self.assertIsInstance(state.get_cell_data(0, 1), int)

    def test_missing_keys_read_as_none(self):
        state = make_state([{"name": "a"}])
        self.assertEqual(state.get_row_data(0), {"name": "a", "qty": None, "locked": None})

    def test_extra_keys_survive_round_trip(self):
        state = make_state([{"name": "a", "note": "x"}, {"name": "b"}])
        data = state.get_data()
        self.assertEqual(data[0]["note"], "x")
        self.assertNotIn("note", data[1])

    def test_update_cell_internal_returns_previous_value(self):
        state = make_state()
        previous = state.update_cell_internal(0, 1, 10)
        self.assertEqual(previous, 1)
        self.assertEqual(state.get_cell_data(0, 1), 10)

    def test_update_cell_internal_out_of_range_is_noop(self):
        state = make_state()
        self.assertIsNone(state.update_cell_internal(10, 0, "x"))
        self.assertEqual(state.data_length, 3)

    def test_add_row_appends_empty_row(self):
        state = make_state()
        index = state.add_row()
        self.assertEqual(index, 3)
        self.assertEqual(state.get_row_data(3), {"name": None, "qty": None, "locked": None})
        self.assertEqual(len(state.row_heights), 4)

    def test_delete_rows_removes_in_any_order(self):
        state = make_state()
        deleted = state.delete_rows([0, 2])
        self.assertEqual(deleted, 2)
        self.assertEqual(state.get_data(), [{"name": "b", "qty": 2, "locked": True}])

    def test_delete_rows_shifts_error_markers(self):
        state = make_state()
        state.set_cell_error(2, 0, "Column \"Name\" is required.")
        state.set_temporary_errors([(2, 1, "bad")])
        state.delete_rows([0])
        self.assertEqual(state.get_cell_error(1, 0), "Column \"Name\" is required.")
        self.assertEqual(state.get_temporary_error(1, 1), "bad")
        self.assertIsNone(state.get_cell_error(2, 0))

    def test_delete_rows_ignores_invalid_indices(self):
        state = make_state()
        self.assertEqual(state.delete_rows([5, -1]), 0)
        self.assertEqual(state.data_length, 3)

    def test_remove_cell_value_clears_without_validation(self):
        state = make_state(is_cell_disabled=_locked_qty)
        state.set_cell_error(1, 0, "bad")
        self.assertTrue(state.is_cell_disabled(1, 1))

        self.assertTrue(state.remove_cell_value(1, "locked"))
        self.assertIsNone(state.get_cell_data(1, 2))
        self.assertFalse(state.is_cell_disabled(1, 1))

        # required column: no validation on removal
        self.assertTrue(state.remove_cell_value(1, "name"))
        self.assertIsNone(state.get_cell_error(1, 0))
        self.assertFalse(state.remove_cell_value(1, "name"))
        self.assertFalse(state.remove_cell_value(1, "missing"))
        self.assertFalse(state.remove_cell_value(7, "qty"))


class DisabledCacheTests(unittest.TestCase):
    def test_cache_built_on_load(self):
        state = make_state(is_cell_disabled=_locked_qty)
        self.assertFalse(state.is_cell_disabled(0, 1))
        self.assertTrue(state.is_cell_disabled(1, 1))
        self.assertFalse(state.is_cell_disabled(1, 0))

    def test_refresh_tracks_predicate_after_mutation(self):
        state = make_state(is_cell_disabled=_locked_qty)
        state.update_cell_internal(0, 2, True)
        self.assertFalse(state.is_cell_disabled(0, 1))

        self.assertTrue(state.update_disabled_states_for_row(0))
        self.assertTrue(state.is_cell_disabled(0, 1))
        self.assertFalse(state.update_disabled_states_for_row(0))

    def test_cache_matches_predicate_for_every_cell(self):
        state = make_state(is_cell_disabled=_locked_qty)
        for r in range(state.data_length):
            state.update_cell_internal(r, 2, r % 2 == 0)
            state.update_disabled_states_for_row(r)
        for r in range(state.data_length):
            row = state.get_row_data(r)
            for c, key in enumerate(state.columns):
                self.assertEqual(state.is_cell_disabled(r, c), _locked_qty(r, key, row))

    def test_out_of_range_cells_read_disabled(self):
        state = make_state()
        self.assertTrue(state.is_cell_disabled(99, 0))

    def test_deleting_rows_rebuilds_cache_with_new_indices(self):
        state = make_state(is_cell_disabled=lambda r, key, row: r == 0)
        state.delete_rows([0])
        self.assertTrue(state.is_cell_disabled(0, 0))
        self.assertFalse(state.is_cell_disabled(1, 0))


class SelectionExclusivityTests(unittest.TestCase):
    def _families(self, state):
        return [
            state.active_cell is not None or state.selection_start is not None,
            bool(state.selected_rows),
            state.selected_column is not None,
        ]

    def test_setters_clear_other_families(self):
        state = make_state()
        calls = [
            lambda: state.set_active_cell(CellCoords(0, 0)),
            lambda: state.set_selected_rows({1, 2}, 2),
            lambda: state.set_selection_range(CellCoords(0, 0), CellCoords(1, 1)),
            lambda: state.set_selected_column(1),
            lambda: state.set_active_cell(CellCoords(2, 2)),
            lambda: state.set_selected_rows({0}, 0),
        ]
        for call in calls:
            self.assertTrue(call())
            self.assertLessEqual(sum(self._families(state)), 1)

    def test_setting_same_value_reports_no_change(self):
        state = make_state()
        state.set_selected_column(1)
        self.assertFalse(state.set_selected_column(1))
        state.set_selected_rows({1}, 1)
        self.assertFalse(state.set_selected_rows({1}, 1))

    def test_normalized_range_orders_corners(self):
        state = make_state()
        state.set_active_cell(CellCoords(2, 2))
        state.set_selection_range(CellCoords(2, 2), CellCoords(0, 1))
        rng = state.get_normalized_selection_range()
        self.assertEqual(rng.start, CellCoords(0, 1))
        self.assertEqual(rng.end, CellCoords(2, 2))

    def test_no_range_normalizes_to_none(self):
        self.assertIsNone(make_state().get_normalized_selection_range())


class CopyBufferTests(unittest.TestCase):
    def test_range_and_single_buffers_are_exclusive(self):
        state = make_state()
        state.set_copied_value(1, "number", CellCoords(0, 1))
        self.assertTrue(state.is_copy_active())

        state.set_copied_range([[1, 2]], None)
        self.assertIsNone(state.copied_cell)
        self.assertEqual(state.copied_range_data, [[1, 2]])

        state.set_copied_value("a", "text", CellCoords(0, 0))
        self.assertIsNone(state.copied_range_data)

    def test_clear_copy_state(self):
        state = make_state()
        state.set_copied_value(1, "number", CellCoords(0, 1))
        self.assertTrue(state.clear_copy_state())
        self.assertFalse(state.is_copy_active())


class SizeTests(unittest.TestCase):
    def test_only_resized_columns_are_reported(self):
        state = make_state()
        state.set_column_width(1, 80)
        self.assertEqual(state.get_resized_column_widths(), {"qty": 80})

    def test_row_heights_follow_data(self):
        state = make_state(default_row_height=25)
        self.assertEqual(list(state.row_heights), [25, 25, 25])
        state.set_row_height(1, 40)
        state.delete_rows([0])
        self.assertEqual(list(state.row_heights), [40, 25])
        self.assertEqual(state.get_resized_row_heights(), {0: 40})

    def test_auto_heights_skip_user_resized_rows(self):
        state = make_state()
        state.set_row_height(0, 50)
        self.assertFalse(state.set_auto_row_height(0, 90))
        self.assertTrue(state.set_auto_row_height(1, 90))
        self.assertFalse(state.set_auto_row_height(1, 90))
        self.assertEqual(list(state.row_heights), [50, 90, 30])
        self.assertEqual(state.get_resized_row_heights(), {0: 50})


if __name__ == "__main__":
    unittest.main()
