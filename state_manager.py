import copy
import time

import numpy as np
import pandas as pd

from cell_coercion import is_empty
from grid_types import (
    CellCoords,
    ColumnResizeState,
    FillDragState,
    RowResizeState,
    SelectionRange,
    parse_schema,
)
from logging_utils import get_logger
from validation import validate_input

log = get_logger("state")


def values_equal(a, b) -> bool:
    if is_empty(a) and is_empty(b):
        return True
    if type(a) is not type(b):
        return False
    return bool(a == b)


def _shift_index(index: int, deleted: list) -> int:
    return index - sum(1 for d in deleted if d < index)


class StateManager:
    """Owns every piece of mutable grid state.

    Rows live in a DataFrame of object columns (schema keys first, then any
    extra keys the caller supplied); the disabled cache is a dense bool matrix
    kept in step with it. Mutators return whether anything visible changed.
    """

    def __init__(self, schema, options):
        self.schema = parse_schema(schema)
        self.columns = list(self.schema.keys())
        self.options = options

        self._df = self._frame_from_rows([])
        self._disabled = np.zeros((0, len(self.columns)), dtype=bool)
        self._errors: dict[tuple[int, str], str] = {}
        self._temp_errors: dict[tuple[int, int], tuple[str, float]] = {}

        # sizes
        self.column_widths = np.full(
            len(self.columns), options.default_column_width, dtype=np.int64
        )
        self.row_heights = np.zeros(0, dtype=np.int64)
        self._resized_columns: set[int] = set()
        self._resized_rows: set[int] = set()

        # viewport
        self.scroll_top = 0
        self.scroll_left = 0
        self.viewport_width = 0
        self.viewport_height = 0
        self.total_content_width = 0
        self.total_content_height = 0
        self.visible_row_start = 0
        self.visible_row_end = -1
        self.visible_col_start = 0
        self.visible_col_end = -1

        self.reset_interaction_state()

    # ---------- data ----------
    def _frame_from_rows(self, rows) -> pd.DataFrame:
        keys = list(self.columns)
        for row in rows:
            for key in row:
                if key not in keys:
                    keys.append(key)
        return pd.DataFrame(
            {key: pd.Series([row.get(key) for row in rows], dtype=object) for key in keys},
            columns=keys,
        )

    def set_data(self, rows) -> None:
        rows = [dict(r) for r in copy.deepcopy(list(rows or []))]
        self._df = self._frame_from_rows(rows)
        self._errors = {}
        self._temp_errors = {}
        self.row_heights = np.full(
            len(self._df), self.options.default_row_height, dtype=np.int64
        )
        self._resized_rows = set()
        self._disabled = np.zeros((len(self._df), len(self.columns)), dtype=bool)
        self._update_all_disabled_states()
        self.reset_interaction_state()

    @property
    def data_length(self) -> int:
        return len(self._df)

    def _public_row(self, record: dict) -> dict:
        row = {}
        for key, value in record.items():
            if key not in self.schema and value is None:
                continue
            row[key] = value
        return row

    def get_data(self) -> list[dict]:
        return [
            self._public_row(rec) for rec in copy.deepcopy(self._df.to_dict("records"))
        ]

    def get_row_data(self, row_index: int):
        if not 0 <= row_index < len(self._df):
            return None
        return self._public_row(self._df.iloc[row_index].to_dict())

    def get_cell_data(self, row_index: int, col_index: int):
        if not (0 <= row_index < len(self._df) and 0 <= col_index < len(self.columns)):
            return None
        return self._df.iat[row_index, col_index]

    def update_cell_internal(self, row_index: int, col_index: int, value):
        """Write a value without validation; returns the previous value."""
        if not (0 <= row_index < len(self._df) and 0 <= col_index < len(self.columns)):
            log.warning("update_cell_internal: invalid coordinates (%s, %s)", row_index, col_index)
            return None
        previous = self._df.iat[row_index, col_index]
        self._df.iat[row_index, col_index] = value
        self._temp_errors.pop((row_index, col_index), None)
        self._errors.pop((row_index, self.columns[col_index]), None)
        return previous

    def update_cell(self, row_index: int, column_key: str, value) -> bool:
        """Validated write. Raises ValidationError; returns False when nothing changed."""
        col_index = self.column_index(column_key)
        if col_index is None or not 0 <= row_index < len(self._df):
            log.warning("update_cell: invalid row (%s) or column (%s)", row_index, column_key)
            return False
        validate_input(value, self.schema[column_key], column_key)
        self.clear_cell_error(row_index, col_index)
        if values_equal(self.get_cell_data(row_index, col_index), value):
            return False
        self.update_cell_internal(row_index, col_index, value)
        self.update_disabled_states_for_row(row_index)
        return True

    def remove_cell_value(self, row_index: int, column_key: str) -> bool:
        """Clear a cell without validation; False when it was already empty."""
        col_index = self.column_index(column_key)
        if col_index is None or not 0 <= row_index < len(self._df):
            log.warning("remove_cell_value: invalid row (%s) or column (%s)", row_index, column_key)
            return False
        if is_empty(self.get_cell_data(row_index, col_index)):
            return False
        self.update_cell_internal(row_index, col_index, None)
        self.update_disabled_states_for_row(row_index)
        return True

    def add_row(self, row=None) -> int:
        record = {key: None for key in self._df.columns}
        record.update(copy.deepcopy(row or {}))
        index = len(self._df)
        records = self._df.to_dict("records")
        records.append(record)
        self._df = self._frame_from_rows(records)
        self.row_heights = np.append(self.row_heights, self.options.default_row_height)
        self._disabled = np.vstack(
            [self._disabled, np.zeros((1, len(self.columns)), dtype=bool)]
        )
        self.update_disabled_states_for_row(index)
        return index

    def delete_rows(self, rows_to_delete) -> int:
        total = len(self._df)
        doomed = sorted({r for r in rows_to_delete if 0 <= r < total}, reverse=True)
        if not doomed:
            return 0
        self._df = self._df.drop(self._df.index[doomed]).reset_index(drop=True)
        self.row_heights = np.delete(self.row_heights, doomed)
        self._disabled = np.delete(self._disabled, doomed, axis=0)

        gone = set(doomed)
        self._errors = {
            (_shift_index(r, doomed), key): msg
            for (r, key), msg in self._errors.items()
            if r not in gone
        }
        self._temp_errors = {
            (_shift_index(r, doomed), c): entry
            for (r, c), entry in self._temp_errors.items()
            if r not in gone
        }
        self._resized_rows = {
            _shift_index(r, doomed) for r in self._resized_rows if r not in gone
        }
        # the predicate sees row indices, which have shifted
        self._update_all_disabled_states()
        return len(doomed)

    # ---------- schema ----------
    def get_columns(self) -> list[str]:
        return self.columns

    def get_column_key(self, col_index: int):
        if 0 <= col_index < len(self.columns):
            return self.columns[col_index]
        return None

    def column_index(self, column_key: str):
        try:
            return self.columns.index(column_key)
        except ValueError:
            return None

    def get_schema_for_column(self, col_index: int):
        key = self.get_column_key(col_index)
        return self.schema[key] if key is not None else None

    # ---------- sizes ----------
    def set_column_width(self, col_index: int, width: int) -> bool:
        if not 0 <= col_index < len(self.columns):
            return False
        self._resized_columns.add(col_index)
        if self.column_widths[col_index] == width:
            return False
        self.column_widths[col_index] = width
        return True

    def set_row_height(self, row_index: int, height: int) -> bool:
        if not 0 <= row_index < len(self._df):
            return False
        self._resized_rows.add(row_index)
        if self.row_heights[row_index] == height:
            return False
        self.row_heights[row_index] = height
        return True

    def set_auto_row_height(self, row_index: int, height: int) -> bool:
        """Height chosen by content measurement; rows the user resized keep their height."""
        if not 0 <= row_index < len(self._df) or row_index in self._resized_rows:
            return False
        if self.row_heights[row_index] == height:
            return False
        self.row_heights[row_index] = height
        return True

    def is_row_user_resized(self, row_index: int) -> bool:
        return row_index in self._resized_rows

    def get_resized_column_widths(self) -> dict:
        return {self.columns[c]: int(self.column_widths[c]) for c in sorted(self._resized_columns)}

    def get_resized_row_heights(self) -> dict:
        return {r: int(self.row_heights[r]) for r in sorted(self._resized_rows)}

    def update_total_content_size(self, width, height) -> None:
        self.total_content_width = width
        self.total_content_height = height

    def update_viewport_size(self, width, height) -> None:
        self.viewport_width = width
        self.viewport_height = height

    def update_scroll(self, top, left) -> None:
        self.scroll_top = top
        self.scroll_left = left

    def update_visible_range(self, row_start, row_end, col_start, col_end) -> None:
        self.visible_row_start = row_start
        self.visible_row_end = row_end
        self.visible_col_start = col_start
        self.visible_col_end = col_end

    # ---------- disabled cache ----------
    def is_cell_disabled(self, row_index: int, col_index: int) -> bool:
        if not (0 <= row_index < len(self._df) and 0 <= col_index < len(self.columns)):
            return True
        return bool(self._disabled[row_index, col_index])

    def update_disabled_states_for_row(self, row_index: int) -> bool:
        if not 0 <= row_index < len(self._df):
            return False
        row_data = self.get_row_data(row_index)
        predicate = self.options.is_cell_disabled
        flags = self._disabled[row_index].copy()
        for col_index, key in enumerate(self.columns):
            try:
                flags[col_index] = bool(predicate(row_index, key, row_data))
            except Exception:
                log.exception("is_cell_disabled failed for (%s, %s)", row_index, key)
        changed = not np.array_equal(flags, self._disabled[row_index])
        self._disabled[row_index] = flags
        return changed

    def _update_all_disabled_states(self) -> None:
        log.debug("Updating all disabled states...")
        for row_index in range(len(self._df)):
            self.update_disabled_states_for_row(row_index)

    # ---------- error markers ----------
    def get_cell_error(self, row_index: int, col_index: int):
        key = self.get_column_key(col_index)
        return self._errors.get((row_index, key))

    def set_cell_error(self, row_index: int, col_index: int, message: str) -> bool:
        key = self.get_column_key(col_index)
        if key is None or not 0 <= row_index < len(self._df):
            return False
        if self._errors.get((row_index, key)) == message:
            return False
        self._errors[(row_index, key)] = message
        return True

    def clear_cell_error(self, row_index: int, col_index: int) -> bool:
        key = self.get_column_key(col_index)
        return self._errors.pop((row_index, key), None) is not None

    def set_temporary_errors(self, errors) -> bool:
        now = time.monotonic()
        for row_index, col_index, message in errors:
            self._temp_errors[(row_index, col_index)] = (message, now)
        return bool(errors)

    def clear_temporary_errors(self, cells) -> bool:
        changed = False
        for cell in cells:
            changed = self._temp_errors.pop(tuple(cell), None) is not None or changed
        return changed

    def get_temporary_error(self, row_index: int, col_index: int):
        entry = self._temp_errors.get((row_index, col_index))
        if entry is None:
            return None
        message, set_at = entry
        timeout = self.options.temporary_error_timeout
        if timeout and time.monotonic() - set_at > timeout:
            return None
        return message

    # ---------- selection ----------
    def set_active_cell(self, coords) -> bool:
        if coords is not None and not coords.is_valid():
            coords = None
        if coords == self.active_cell:
            return False
        self.active_cell = coords
        self.selection_start = None
        self.selection_end = None
        if coords is not None:
            self.selected_rows = set()
            self.last_clicked_row = None
            self.selected_column = None
        return True

    def set_selection_range(self, start, end) -> bool:
        changed = (start, end) != (self.selection_start, self.selection_end)
        self.selection_start = start
        self.selection_end = end
        if start is not None and end is not None:
            if self.selected_rows or self.selected_column is not None:
                changed = True
            self.selected_rows = set()
            self.last_clicked_row = None
            self.selected_column = None
        return changed

    def clear_selection_range(self) -> bool:
        return self.set_selection_range(None, None)

    def get_normalized_selection_range(self):
        start, end = self.selection_start, self.selection_end
        if start is None or end is None or not start.is_valid() or not end.is_valid():
            return None
        return SelectionRange(start, end).normalized()

    def is_multi_cell_selection_active(self) -> bool:
        rng = self.get_normalized_selection_range()
        return rng is not None and not rng.is_single_cell()

    def set_selected_rows(self, rows, last_clicked) -> bool:
        rows = set(rows)
        changed = rows != self.selected_rows or last_clicked != self.last_clicked_row
        self.selected_rows = rows
        self.last_clicked_row = last_clicked
        if rows:
            if self.active_cell is not None or self.selection_start is not None:
                changed = True
            if self.selected_column is not None:
                changed = True
            self.active_cell = None
            self.selection_start = None
            self.selection_end = None
            self.selected_column = None
        return changed

    def set_selected_column(self, col_index) -> bool:
        changed = col_index != self.selected_column
        self.selected_column = col_index
        if col_index is not None:
            if self.active_cell is not None or self.selection_start is not None:
                changed = True
            if self.selected_rows:
                changed = True
            self.active_cell = None
            self.selection_start = None
            self.selection_end = None
            self.selected_rows = set()
            self.last_clicked_row = None
        return changed

    def get_fill_column_span(self, start_cell) -> tuple[int, int]:
        """Columns a fill from start_cell writes: the selected range's span, or the cell's column."""
        rng = self.get_normalized_selection_range()
        if (
            rng is not None
            and rng.start.row <= start_cell.row <= rng.end.row
            and rng.start.col <= start_cell.col <= rng.end.col
        ):
            return rng.start.col, rng.end.col
        return start_cell.col, start_cell.col

    # ---------- copy buffer ----------
    def set_copied_value(self, value, value_type, cell) -> bool:
        changed = cell != self.copied_cell or self.copied_range_data is not None
        self.copied_value = value
        self.copied_value_type = value_type
        self.copied_cell = cell
        self.copied_range_data = None
        self.copied_source_range = None
        return changed

    def set_copied_range(self, range_data, source_range) -> bool:
        changed = (
            range_data != self.copied_range_data
            or source_range != self.copied_source_range
            or self.copied_cell is not None
        )
        self.copied_range_data = range_data
        self.copied_source_range = source_range
        self.copied_value = None
        self.copied_value_type = None
        self.copied_cell = None
        return changed

    def is_copy_active(self) -> bool:
        return self.copied_cell is not None or self.copied_range_data is not None

    def clear_copy_state(self) -> bool:
        return self.set_copied_value(None, None, None)

    # ---------- drags ----------
    def is_dragging_fill_handle(self) -> bool:
        return self.drag_state.is_dragging

    def is_resizing(self) -> bool:
        return self.resize_column_state.is_resizing or self.resize_row_state.is_resizing

    def is_any_drag_active(self) -> bool:
        return self.is_resizing() or self.is_dragging_fill_handle() or self.is_dragging_selection

    def set_dragging_selection(self, dragging: bool) -> None:
        self.is_dragging_selection = dragging

    def set_drag_state(self, state: FillDragState) -> None:
        self.drag_state = state

    def set_resize_column_state(self, state: ColumnResizeState) -> None:
        self.resize_column_state = state

    def set_resize_row_state(self, state: RowResizeState) -> None:
        self.resize_row_state = state

    def set_active_editor(self, editor_state) -> None:
        self.active_editor = editor_state

    def reset_interaction_state(self) -> None:
        self.active_cell: CellCoords | None = None
        self.selection_start: CellCoords | None = None
        self.selection_end: CellCoords | None = None
        self.is_dragging_selection = False
        self.active_editor = None
        self.selected_rows: set[int] = set()
        self.last_clicked_row = None
        self.selected_column = None
        self.copied_value = None
        self.copied_value_type = None
        self.copied_cell = None
        self.copied_range_data = None
        self.copied_source_range = None
        self.drag_state = FillDragState()
        self.resize_column_state = ColumnResizeState()
        self.resize_row_state = RowResizeState()
