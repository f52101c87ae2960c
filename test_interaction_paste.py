import unittest
from unittest.mock import patch

from grid_types import CellCoords
from spreadsheet import Spreadsheet
from surface import RecordingSurface

MIXED_SCHEMA = {
    "name": {"type": "text", "label": "Name", "required": True},
    "qty": {"type": "number", "label": "Qty"},
    "flag": {"type": "boolean", "label": "Flag"},
    "email": {"type": "email", "label": "Email"},
}

TEXT_SCHEMA = {k: {"type": "text"} for k in ("a", "b", "c", "d")}


def text_rows(n_rows=4, filled=2):
    keys = list(TEXT_SCHEMA)
    return [
        {k: (f"{r}{c}" if r < filled else None) for c, k in enumerate(keys)}
        for r in range(n_rows)
    ]


def select(sheet, start, end=None):
    state = sheet.state
    state.set_active_cell(CellCoords(*start))
    state.set_selection_range(CellCoords(*start), CellCoords(*(end or start)))


class PasteTestCase(unittest.TestCase):
    def make_sheet(self, schema, rows, **opts):
        opts.setdefault("paste_debounce", 0.0)
        self.events = []
        return Spreadsheet(
            schema,
            rows,
            surface=RecordingSurface(),
            on_cells_update=self.events.extend,
            **opts,
        )


class InternalPasteTests(PasteTestCase):
    def test_range_is_tiled_over_larger_selection(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows())
        select(sheet, (0, 0), (1, 1))
        self.assertTrue(sheet.interaction.copy())

        select(sheet, (0, 0), (3, 3))
        self.assertTrue(sheet.interaction.paste())

        data = sheet.get_data()
        for r in range(4):
            self.assertEqual(
                [data[r][k] for k in "abcd"],
                [f"{r % 2}{c % 2}" for c in range(4)],
            )

    def test_range_pasted_at_active_cell_is_clipped(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows(n_rows=3))
        select(sheet, (0, 0), (1, 1))
        sheet.interaction.copy()

        select(sheet, (2, 3))
        self.assertTrue(sheet.interaction.paste())
        self.assertEqual(sheet.state.get_cell_data(2, 3), "00")
        self.assertEqual(sheet.row_count, 3)

    def test_single_value_fills_selected_range(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows())
        select(sheet, (0, 0))
        sheet.interaction.copy()

        select(sheet, (2, 1), (3, 2))
        sheet.interaction.paste()
        for r in (2, 3):
            for c in (1, 2):
                self.assertEqual(sheet.state.get_cell_data(r, c), "00")
        self.assertIsNone(sheet.state.get_cell_data(2, 0))

    def test_boolean_pasted_into_text_becomes_label(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "a", "flag": True}, {"name": "b"}])
        select(sheet, (0, 2))
        sheet.interaction.copy()

        select(sheet, (1, 0))
        sheet.interaction.paste()
        self.assertEqual(sheet.state.get_cell_data(1, 0), "True")

    def test_text_pasted_into_boolean_is_parsed(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "yes"}, {"name": "b"}])
        select(sheet, (0, 0))
        sheet.interaction.copy()

        select(sheet, (1, 2))
        sheet.interaction.paste()
        self.assertIs(sheet.state.get_cell_data(1, 2), True)

    def test_unconvertible_value_is_skipped(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "abc", "qty": 4}])
        select(sheet, (0, 0))
        sheet.interaction.copy()

        select(sheet, (0, 1))
        self.assertFalse(sheet.interaction.paste())
        self.assertEqual(sheet.state.get_cell_data(0, 1), 4)
        self.assertEqual(self.events, [])

    def test_invalid_email_marks_cell_temporarily(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "not-an-email"}])
        select(sheet, (0, 0))
        sheet.interaction.copy()

        select(sheet, (0, 3))
        self.assertTrue(sheet.interaction.paste())
        self.assertIsNone(sheet.state.get_cell_data(0, 3))
        self.assertEqual(
            sheet.state.get_temporary_error(0, 3),
            'Invalid email format for column "Email".',
        )
        self.assertIsNone(sheet.state.get_cell_error(0, 3))

    def test_empty_into_required_marks_empty_cell_persistently(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": None, "qty": 1}, {"name": None}, {"name": "c"}])
        select(sheet, (0, 0))
        sheet.interaction.copy()

        select(sheet, (1, 0), (2, 0))
        sheet.interaction.paste()
        message = 'Column "Name" is required.'
        self.assertEqual(sheet.state.get_cell_error(1, 0), message)
        self.assertEqual(sheet.state.get_temporary_error(2, 0), message)
        # a filled cell keeps its value and gets no persistent marker
        self.assertIsNone(sheet.state.get_cell_error(2, 0))
        self.assertEqual(sheet.state.get_cell_data(2, 0), "c")

    def test_disabled_cells_are_skipped(self):
        sheet = self.make_sheet(
            TEXT_SCHEMA,
            text_rows(),
            is_cell_disabled=lambda r, key, row: r == 1 and key == "a",
        )
        select(sheet, (3, 3))
        sheet.state.update_cell_internal(3, 3, "z")
        sheet.interaction.copy()

        select(sheet, (0, 0), (2, 0))
        sheet.interaction.paste()
        self.assertEqual(sheet.state.get_cell_data(0, 0), "z")
        self.assertEqual(sheet.state.get_cell_data(1, 0), "10")
        self.assertEqual(sheet.state.get_cell_data(2, 0), "z")

    def test_one_event_per_row_and_undo_restores(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows())
        select(sheet, (0, 0), (0, 1))
        sheet.interaction.copy()

        select(sheet, (3, 0))
        sheet.interaction.paste()
        self.assertEqual(len(self.events), 1)
        event = self.events[0]
        self.assertEqual(event.row_index, 3)
        self.assertEqual(event.column_keys, ["a", "b"])
        self.assertEqual(event.old_data, {"a": None, "b": None})
        self.assertEqual(event.data["a"], "00")

        self.assertTrue(sheet.undo())
        self.assertIsNone(sheet.state.get_cell_data(3, 0))

    def test_paste_without_copy_does_nothing(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows())
        select(sheet, (0, 0))
        self.assertFalse(sheet.interaction.paste())

    def test_repeat_paste_inside_debounce_window_is_ignored(self):
        clock = [100.0]
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows(), paste_debounce=1.0)
        select(sheet, (0, 0))
        sheet.interaction.copy()

        with patch("interaction_manager.time.monotonic", lambda: clock[0]):
            select(sheet, (2, 0))
            self.assertTrue(sheet.interaction.paste())
            clock[0] = 100.5
            select(sheet, (3, 0))
            self.assertFalse(sheet.interaction.paste())
            self.assertIsNone(sheet.state.get_cell_data(3, 0))
            clock[0] = 101.6
            self.assertTrue(sheet.interaction.paste())
        self.assertEqual(sheet.state.get_cell_data(3, 0), "00")

    def test_paste_with_no_target_does_not_start_debounce_window(self):
        clock = [100.0]
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows(), paste_debounce=1.0)
        select(sheet, (0, 0))
        sheet.interaction.copy()
        sheet.state.set_active_cell(None)

        with patch("interaction_manager.time.monotonic", lambda: clock[0]):
            self.assertFalse(sheet.interaction.paste())
            self.assertFalse(sheet.interaction.paste_external("zz"))
            clock[0] = 100.2
            select(sheet, (3, 0))
            self.assertTrue(sheet.interaction.paste())
        self.assertEqual(sheet.state.get_cell_data(3, 0), "00")


class ExternalPasteTests(PasteTestCase):
    def test_tab_separated_text_from_active_cell(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows(filled=0))
        select(sheet, (1, 1))
        self.assertTrue(sheet.interaction.paste_external("x\ty\n1\t2\n"))

        self.assertEqual(sheet.state.get_cell_data(1, 1), "x")
        self.assertEqual(sheet.state.get_cell_data(1, 2), "y")
        self.assertEqual(sheet.state.get_cell_data(2, 1), "1")
        self.assertEqual(sheet.state.get_cell_data(2, 2), "2")

    def test_text_is_coerced_to_column_types(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "a"}])
        select(sheet, (0, 1))
        sheet.interaction.paste_external("12\tno")

        self.assertEqual(sheet.state.get_cell_data(0, 1), 12)
        self.assertIs(sheet.state.get_cell_data(0, 2), False)

    def test_ragged_rows_are_padded(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows(filled=0))
        select(sheet, (0, 0))
        sheet.interaction.paste_external("x\ty\nz")

        self.assertEqual(sheet.state.get_cell_data(1, 0), "z")
        self.assertIsNone(sheet.state.get_cell_data(1, 1))

    def test_selected_column_receives_first_value(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "a"}, {"name": "b"}, {"name": "c"}])
        sheet.interaction.handle_header_click(1)
        self.assertTrue(sheet.interaction.paste_external("7\t8\n9"))

        self.assertEqual([row["qty"] for row in sheet.get_data()], [7, 7, 7])

    def test_paste_to_column(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "a"}, {"name": "b"}])
        self.assertTrue(sheet.interaction.paste_to_column_external(2, "y"))
        self.assertEqual([row["flag"] for row in sheet.get_data()], [True, True])

    def test_nothing_selected(self):
        sheet = self.make_sheet(TEXT_SCHEMA, text_rows())
        self.assertFalse(sheet.interaction.paste_external("x"))
        self.assertFalse(sheet.interaction.paste_external(""))


class ClearCellTests(PasteTestCase):
    def test_delete_key_clears_active_cell(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "a", "qty": 5}])
        select(sheet, (0, 1))
        self.assertTrue(sheet.interaction.handle_key("Delete"))
        self.assertIsNone(sheet.state.get_cell_data(0, 1))

    def test_clearing_required_cell_is_rejected(self):
        sheet = self.make_sheet(MIXED_SCHEMA, [{"name": "a"}])
        select(sheet, (0, 0))
        sheet.interaction.clear_active_cell_value()
        self.assertEqual(sheet.state.get_cell_data(0, 0), "a")
        self.assertEqual(sheet.state.get_temporary_error(0, 0), 'Column "Name" is required.')


if __name__ == "__main__":
    unittest.main()
