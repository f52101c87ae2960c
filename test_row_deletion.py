from grid_types import CellCoords
from spreadsheet import Spreadsheet
from surface import RecordingSurface

SCHEMA = {
    "name": {"type": "text", "required": True},
    "qty": {"type": "number"},
}


def make_sheet(**opts):
    rows = [{"name": "a", "qty": 1}, {"name": "b", "qty": 2}, {"name": "c", "qty": 3}]
    return Spreadsheet(SCHEMA, rows, surface=RecordingSurface(), **opts)


def test_delete_rows_keeps_remaining_order():
    sheet = make_sheet()
    assert sheet.delete_rows({0, 2}) is True
    assert sheet.get_data() == [{"name": "b", "qty": 2}]
    assert sheet.row_count == 1


def test_deleted_rows_are_reported_before_removal():
    seen = []
    sheet = make_sheet(on_row_deleted=seen.append)
    sheet.delete_rows([2, 0])
    assert seen == [[{"name": "a", "qty": 1}, {"name": "c", "qty": 3}]]


def test_error_markers_follow_their_rows():
    sheet = make_sheet()
    sheet.state.set_cell_error(2, 0, "bad")
    sheet.delete_rows([1])
    assert sheet.state.get_cell_error(1, 0) == "bad"
    assert sheet.state.get_cell_error(2, 0) is None


def test_delete_clears_selection_copy_and_history():
    sheet = make_sheet(paste_debounce=0.0)
    state = sheet.state
    state.set_active_cell(CellCoords(0, 1))
    sheet.interaction.copy()
    sheet.interaction.paste_external("9")
    assert sheet.history.can_undo()

    sheet.delete_rows([1])
    assert state.active_cell is None
    assert not state.is_copy_active()
    assert not sheet.history.can_undo()


def test_invalid_indices_delete_nothing():
    seen = []
    sheet = make_sheet(on_row_deleted=seen.append)
    assert sheet.delete_rows([7]) is False
    assert seen == []
    assert sheet.row_count == 3


def test_delete_key_removes_selected_rows():
    sheet = make_sheet()
    inter = sheet.interaction
    inter.handle_row_number_click(0)
    inter.handle_row_number_click(1, ctrl=True)
    assert inter.handle_key("Delete") is True
    assert sheet.get_data() == [{"name": "c", "qty": 3}]
    assert sheet.state.selected_rows == set()


def test_content_height_shrinks():
    sheet = make_sheet()
    sheet.delete_rows([0])
    assert sheet.state.total_content_height == 35 + 2 * 30
