from cell_coercion import format_value_for_input, parse_value_from_input
from grid_types import ActiveEditorState, CellCoords, SelectOption
from logging_utils import get_logger
from state_manager import values_equal
from validation import check_input

log = get_logger("editing")

DROPDOWN_TYPES = ("select", "boolean")


class EditingManager:
    """The single in-place editor: a text buffer, or a dropdown for select/boolean columns."""

    def __init__(self, options, state, renderer, dims):
        self.options = options
        self.state = state
        self.renderer = renderer
        self.dims = dims
        self.interaction = None

    def set_interaction_manager(self, interaction) -> None:
        self.interaction = interaction

    def is_editor_active(self) -> bool:
        return self.state.active_editor is not None

    def is_dropdown_visible(self) -> bool:
        editor = self.state.active_editor
        return editor is not None and editor.dropdown_index is not None

    def _column(self):
        return self.state.get_schema_for_column(self.state.active_editor.col)

    # ---------- lifecycle ----------
    def activate_editor(self, row, col) -> bool:
        column = self.state.get_schema_for_column(col)
        if column is None or not 0 <= row < self.state.data_length:
            log.warning("activate_editor: invalid cell (%s, %s)", row, col)
            return False
        if self.state.is_cell_disabled(row, col):
            log.debug("Cell (%s, %s) is disabled; not opening editor", row, col)
            return False
        editor = self.state.active_editor
        if editor is not None:
            if (editor.row, editor.col) == (row, col):
                return False
            self.deactivate_editor(save_changes=True)

        value = self.state.get_cell_data(row, col)
        dropdown_index = None
        choices = self.dropdown_options(column) if column.type in DROPDOWN_TYPES else []
        if choices:
            dropdown_index = 0
            for i, opt in enumerate(choices):
                if values_equal(opt.id, value):
                    dropdown_index = i
        self.state.set_active_editor(
            ActiveEditorState(
                row,
                col,
                column.type,
                original_value=value,
                buffer=format_value_for_input(value, column),
                dropdown_index=dropdown_index,
            )
        )
        coords = CellCoords(row, col)
        if self.state.active_cell != coords:
            self.state.set_active_cell(coords)
            self.state.set_selection_range(coords, coords)
        self.state.clear_temporary_errors([(row, col)])
        log.debug("Editor opened at (%s, %s)", row, col)

        callback = self.options.on_editor_open
        if callback is not None:
            try:
                callback(row, self.state.columns[col], self.state.get_row_data(row), self.dims.get_cell_bounds(row, col))
            except Exception:
                log.exception("on_editor_open callback failed")
        return True

    def deactivate_editor(self, save_changes=True) -> bool:
        editor = self.state.active_editor
        if editor is None:
            return False
        self.state.set_active_editor(None)
        if not save_changes:
            log.debug("Editor at (%s, %s) closed without saving", editor.row, editor.col)
            return True
        if not 0 <= editor.row < self.state.data_length:
            return True

        column = self.state.get_schema_for_column(editor.col)
        key = self.state.columns[editor.col]
        if editor.dropdown_index is not None:
            options = self.dropdown_options(column)
            value = options[editor.dropdown_index].id if options else None
        else:
            value = parse_value_from_input(editor.buffer, column)

        error = check_input(value, column, key)
        if error is not None:
            if error.error_type == "required":
                self.state.set_cell_error(editor.row, editor.col, error.message)
            else:
                self.state.set_temporary_errors([(editor.row, editor.col, error.message)])
            log.debug("Editor value rejected at (%s, %s): %s", editor.row, editor.col, error.message)
            return True

        self.state.clear_cell_error(editor.row, editor.col)
        current = self.state.get_cell_data(editor.row, editor.col)
        if values_equal(current, value):
            return True
        old = self.state.update_cell_internal(editor.row, editor.col, value)
        if self.interaction is not None:
            self.interaction._batch_update_cells_and_notify({editor.row: {key: old}})
        else:
            self.state.update_disabled_states_for_row(editor.row)
        return True

    def hide_dropdown(self) -> bool:
        editor = self.state.active_editor
        if editor is None or editor.dropdown_index is None:
            return False
        editor.buffer = self.dropdown_options(self._column())[editor.dropdown_index].name
        editor.dropdown_index = None
        return True

    # ---------- buffer ----------
    def set_buffer(self, text) -> bool:
        editor = self.state.active_editor
        if editor is None:
            return False
        editor.buffer = str(text)
        editor.dropdown_index = None
        return True

    def insert_text(self, text) -> bool:
        editor = self.state.active_editor
        if editor is None or editor.dropdown_index is not None:
            return False
        editor.buffer += str(text)
        return True

    def backspace(self) -> bool:
        editor = self.state.active_editor
        if editor is None or editor.dropdown_index is not None or not editor.buffer:
            return False
        editor.buffer = editor.buffer[:-1]
        return True

    # ---------- dropdown ----------
    def dropdown_options(self, column=None):
        column = column or self._column()
        if column.type == "boolean":
            return [SelectOption(True, "True"), SelectOption(False, "False")]
        return list(column.values)

    def move_dropdown(self, delta) -> bool:
        editor = self.state.active_editor
        if editor is None or editor.dropdown_index is None:
            return False
        count = len(self.dropdown_options())
        if count == 0:
            return False
        index = min(max(editor.dropdown_index + delta, 0), count - 1)
        if index == editor.dropdown_index:
            return False
        editor.dropdown_index = index
        return True

    def choose_dropdown(self) -> bool:
        if not self.is_dropdown_visible():
            return False
        return self.deactivate_editor(save_changes=True)

    # ---------- keys ----------
    def handle_key(self, key, shift=False) -> bool:
        editor = self.state.active_editor
        if editor is None:
            return False
        if key == "Escape":
            return self.deactivate_editor(save_changes=False)
        if key == "Enter":
            if self.interaction is not None:
                self.deactivate_editor(save_changes=True)
                self.interaction.move_active_cell(-1 if shift else 1, 0)
                return True
            return self.deactivate_editor(save_changes=True)
        if key == "Tab":
            if self.interaction is not None:
                self.deactivate_editor(save_changes=True)
                self.interaction.move_active_cell(0, -1 if shift else 1)
                return True
            return self.deactivate_editor(save_changes=True)
        if self.is_dropdown_visible():
            if key == "ArrowUp":
                return self.move_dropdown(-1)
            if key == "ArrowDown":
                return self.move_dropdown(1)
            return False
        if key == "Backspace":
            return self.backspace()
        if len(key) == 1 and key.isprintable():
            return self.insert_text(key)
        return False
