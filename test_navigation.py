import unittest

from grid_types import CellCoords
from spreadsheet import Spreadsheet
from surface import RecordingSurface

SCHEMA = {
    "a": {"type": "text"},
    "b": {"type": "text"},
    "c": {"type": "text"},
}


def make_sheet(rows=2, **opts):
    data = [{"a": f"a{r}", "b": f"b{r}", "c": f"c{r}"} for r in range(rows)]
    return Spreadsheet(SCHEMA, data, surface=RecordingSurface(), **opts)


def activate(sheet, row, col):
    coords = CellCoords(row, col)
    sheet.state.set_active_cell(coords)
    sheet.state.set_selection_range(coords, coords)


class TabNavigationTests(unittest.TestCase):
    def test_tab_wraps_to_next_row(self):
        sheet = make_sheet()
        activate(sheet, 0, 2)
        self.assertTrue(sheet.interaction.handle_key("Tab"))
        self.assertEqual(sheet.state.active_cell, CellCoords(1, 0))
        self.assertFalse(sheet.editing.is_editor_active())

    def test_shift_tab_wraps_to_previous_row(self):
        sheet = make_sheet()
        activate(sheet, 1, 0)
        sheet.interaction.handle_key("Tab", shift=True)
        self.assertEqual(sheet.state.active_cell, CellCoords(0, 2))

    def test_leaving_the_last_cell_clears_active_cell(self):
        sheet = make_sheet()
        activate(sheet, 1, 2)
        sheet.interaction.handle_key("Tab")
        self.assertIsNone(sheet.state.active_cell)
        self.assertEqual(sheet.row_count, 2)

    def test_leaving_the_first_cell_clears_active_cell(self):
        sheet = make_sheet()
        activate(sheet, 0, 0)
        sheet.interaction.handle_key("Tab", shift=True)
        self.assertIsNone(sheet.state.active_cell)

    def test_auto_add_appends_row(self):
        sheet = make_sheet(auto_add_new_row=True)
        activate(sheet, 1, 2)
        sheet.interaction.handle_key("Tab")
        self.assertEqual(sheet.row_count, 3)
        self.assertEqual(sheet.state.active_cell, CellCoords(2, 0))
        self.assertEqual(sheet.get_row(2), {"a": None, "b": None, "c": None})

    def test_disabled_cells_are_skipped(self):
        sheet = make_sheet(is_cell_disabled=lambda r, key, row: key == "b")
        activate(sheet, 0, 0)
        sheet.interaction.handle_key("Tab")
        self.assertEqual(sheet.state.active_cell, CellCoords(0, 2))

    def test_no_enabled_cell_left_ends_navigation(self):
        sheet = make_sheet(is_cell_disabled=lambda r, key, row: r == 1)
        activate(sheet, 0, 2)
        sheet.interaction.handle_key("Tab")
        self.assertIsNone(sheet.state.active_cell)

    def test_search_past_disabled_rows_stops_with_auto_add(self):
        def disabled(r, key, row):
            if r > 500:
                raise AssertionError(f"search ran away to row {r}")
            return r >= 1

        sheet = make_sheet(auto_add_new_row=True, is_cell_disabled=disabled)
        activate(sheet, 0, 1)
        sheet.interaction.move_active_cell(1, 0, activate_editor=False)
        self.assertIsNone(sheet.state.active_cell)
        self.assertEqual(sheet.row_count, 2)

        activate(sheet, 0, 2)
        sheet.interaction.handle_key("Tab")
        self.assertIsNone(sheet.state.active_cell)
        self.assertEqual(sheet.row_count, 2)

    def test_appended_disabled_row_ends_navigation(self):
        sheet = make_sheet(auto_add_new_row=True, is_cell_disabled=lambda r, key, row: r >= 2)
        activate(sheet, 1, 2)
        sheet.interaction.handle_key("Tab")
        self.assertIsNone(sheet.state.active_cell)
        self.assertEqual(sheet.row_count, 3)


class EditorNavigationTests(unittest.TestCase):
    def test_enter_saves_and_opens_editor_below(self):
        sheet = make_sheet(rows=3)
        activate(sheet, 0, 1)
        inter = sheet.interaction
        inter.handle_key("Enter")
        self.assertTrue(sheet.editing.is_editor_active())

        inter.handle_key("Backspace")
        inter.handle_key("Z")
        inter.handle_key("Enter")

        self.assertEqual(sheet.state.get_cell_data(0, 1), "bZ")
        editor = sheet.state.active_editor
        self.assertEqual((editor.row, editor.col), (1, 1))
        self.assertEqual(editor.buffer, "b1")

    def test_tab_from_editor_moves_right_with_editor(self):
        sheet = make_sheet()
        activate(sheet, 0, 0)
        sheet.editing.activate_editor(0, 0)
        sheet.interaction.handle_key("Tab")

        editor = sheet.state.active_editor
        self.assertEqual((editor.row, editor.col), (0, 1))

    def test_enter_on_last_row_closes_editor(self):
        sheet = make_sheet()
        activate(sheet, 1, 0)
        sheet.editing.activate_editor(1, 0)
        sheet.interaction.handle_key("Enter")

        self.assertFalse(sheet.editing.is_editor_active())
        self.assertIsNone(sheet.state.active_cell)


class ScrollIntoViewTests(unittest.TestCase):
    def test_navigation_scrolls_active_cell_into_view(self):
        sheet = make_sheet(rows=50)
        activate(sheet, 0, 0)
        for _ in range(30):
            sheet.interaction.handle_key("ArrowDown")

        # row 30 bottom edge sits at the bottom of the 565px data area
        self.assertEqual(sheet.state.scroll_top, 31 * 30 - 565)
        start, end = sheet.state.visible_row_start, sheet.state.visible_row_end
        self.assertTrue(start <= 30 <= end)

    def test_scrolling_away_closes_editor_without_saving(self):
        sheet = make_sheet(rows=50)
        activate(sheet, 0, 0)
        sheet.editing.activate_editor(0, 0)
        sheet.editing.insert_text("!")

        self.assertTrue(sheet.interaction.move_scroll(0, 200))
        self.assertFalse(sheet.editing.is_editor_active())
        self.assertEqual(sheet.state.get_cell_data(0, 0), "a0")


if __name__ == "__main__":
    unittest.main()
