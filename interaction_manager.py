# ~/Apps/vgrid/interaction_manager.py
import copy
import time

from cell_coercion import convert_for_type, is_empty
from grid_types import (
    CellCoords,
    CellUpdateEvent,
    ColumnResizeState,
    FillDragState,
    RowResizeState,
)
from logging_utils import get_logger
from state_manager import values_equal
from validation import check_input

log = get_logger("interaction")


def parse_clipboard_text(text):
    """Split clipboard text into a matrix of strings (rows by newline, cells by tab)."""
    if text is None:
        return []
    lines = str(text).replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.split("\t") for line in lines]


class InteractionManager:
    """Turns pointer and keyboard input into StateManager mutations.

    Pointer coordinates arrive in viewport space; everything past
    `pointer_*` works in content space (see DimensionCalculator).
    Handlers return whether state changed and redraw when it did.
    """

    def __init__(self, options, state, renderer, dims, viewport, history=None):
        self.options = options
        self.state = state
        self.renderer = renderer
        self.dims = dims
        self.viewport = viewport
        self.history = history
        self.editing = None
        self.cursor = "default"
        self._last_paste_at = None
        self._settle_until = 0.0

    def set_editing_manager(self, editing) -> None:
        self.editing = editing

    def _editor_active(self) -> bool:
        return self.editing is not None and self.editing.is_editor_active()

    def _close_editor(self, save_changes=True) -> bool:
        if self._editor_active():
            return self.editing.deactivate_editor(save_changes)
        return False

    # ---------- geometry / drawing ----------
    def refresh_geometry(self) -> None:
        width, height = self.dims.calculate_total_size()
        self.state.update_total_content_size(width, height)
        self.viewport.set_content_size(width, height)
        _x, _y, vw, vh = self.viewport.bounding_rect()
        self.state.update_viewport_size(vw, vh)
        self.state.update_scroll(self.viewport.get_v_scroll(), self.viewport.get_h_scroll())
        self.state.update_visible_range(*self.dims.calculate_visible_range())

    def render(self) -> None:
        self.refresh_geometry()
        self.renderer.draw()

    def _set_cursor(self, name) -> None:
        if name != self.cursor:
            self.cursor = name
            self.viewport.set_cursor(name)

    # ---------- scrolling ----------
    def move_scroll(self, delta_x, delta_y) -> bool:
        self.viewport.set_h_scroll(self.viewport.get_h_scroll() + delta_x)
        self.viewport.set_v_scroll(self.viewport.get_v_scroll() + delta_y)
        return self.handle_scroll()

    def handle_scroll(self) -> bool:
        top, left = self.viewport.get_v_scroll(), self.viewport.get_h_scroll()
        if (top, left) == (self.state.scroll_top, self.state.scroll_left):
            return False
        self.state.update_scroll(top, left)
        if time.monotonic() >= self._settle_until and self._editor_active():
            log.debug("Scroll moved away from the editor; closing it")
            self.editing.deactivate_editor(save_changes=False)
            self.editing.hide_dropdown()
        self.render()
        return True

    def bring_cell_into_view(self, row, col) -> bool:
        bounds = self.dims.get_cell_bounds(row, col)
        if bounds is None:
            return False
        self.refresh_geometry()
        opts = self.options
        data_w = max(self.state.viewport_width - opts.row_number_width, 0)
        data_h = max(self.state.viewport_height - opts.header_height, 0)
        top, left = self.state.scroll_top, self.state.scroll_left

        cell_top = bounds.y - opts.header_height
        if cell_top < top:
            top = cell_top
        elif cell_top + bounds.height > top + data_h:
            top = cell_top + bounds.height - data_h
        cell_left = bounds.x - opts.row_number_width
        if cell_left < left:
            left = cell_left
        elif cell_left + bounds.width > left + data_w:
            left = cell_left + bounds.width - data_w

        if (top, left) == (self.state.scroll_top, self.state.scroll_left):
            return False
        self._settle_until = time.monotonic() + opts.scroll_settle
        self.viewport.set_v_scroll(top)
        self.viewport.set_h_scroll(left)
        self.state.update_scroll(self.viewport.get_v_scroll(), self.viewport.get_h_scroll())
        self.state.update_visible_range(*self.dims.calculate_visible_range())
        return True

    # ---------- row / column selection ----------
    def handle_row_number_click(self, clicked_row, shift=False, ctrl=False) -> bool:
        log.debug("Row %s clicked. Shift: %s, Ctrl: %s", clicked_row, shift, ctrl)
        selected = set(self.state.selected_rows)
        last = self.state.last_clicked_row

        if shift and last is not None:
            lo, hi = sorted((last, clicked_row))
            changed = self.state.set_selected_rows(set(range(lo, hi + 1)), last)
        elif ctrl:
            selected ^= {clicked_row}
            changed = self.state.set_selected_rows(selected, clicked_row)
        else:
            changed = self.state.set_selected_rows({clicked_row}, clicked_row)
        return changed

    def handle_header_click(self, clicked_col) -> bool:
        log.debug("Column %s clicked", clicked_col)
        return self.state.set_selected_column(clicked_col)

    def clear_selections(self) -> bool:
        changed = False
        if self.state.selected_rows:
            changed = self.state.set_selected_rows(set(), None) or changed
        if self.state.selected_column is not None:
            changed = self.state.set_selected_column(None) or changed
        return changed

    def clear_all_selections(self) -> bool:
        changed = self.clear_selections()
        changed = self.state.set_active_cell(None) or changed
        changed = self.state.clear_selection_range() or changed
        changed = self.clear_copied_cell() or changed
        return changed

    # ---------- resize ----------
    def check_resize_handles(self, x, y):
        """Start a resize if (x, y) is on a border; returns 'column', 'row' or None."""
        opts = self.options
        tolerance = opts.resize_handle_size
        if y < opts.header_height and x > opts.row_number_width:
            col = self.dims.column_border_near(x, tolerance)
            if col is not None:
                log.debug("Starting column resize for index %s", col)
                self.state.set_resize_column_state(ColumnResizeState(True, col, x))
                self._set_cursor("col-resize")
                return "column"
        if x < opts.row_number_width and y > opts.header_height:
            row = self.dims.row_border_near(y, tolerance)
            if row is not None:
                log.debug("Starting row resize for index %s", row)
                self.state.set_resize_row_state(RowResizeState(True, row, y))
                self._set_cursor("row-resize")
                return "row"
        return None

    def handle_resize_move(self, x, y) -> bool:
        opts = self.options
        col_state = self.state.resize_column_state
        row_state = self.state.resize_row_state
        if col_state.is_resizing:
            col = col_state.column_index
            current = int(self.state.column_widths[col])
            width = min(max(current + int(x - col_state.start_x), opts.min_column_width), opts.max_column_width)
            changed = self.state.set_column_width(col, width)
            self.state.set_resize_column_state(ColumnResizeState(True, col, x))
            if changed:
                self.dims.invalidate_columns(col)
            return changed
        if row_state.is_resizing:
            row = row_state.row_index
            current = int(self.state.row_heights[row])
            height = min(max(current + int(y - row_state.start_y), opts.min_row_height), opts.max_row_height)
            changed = self.state.set_row_height(row, height)
            self.state.set_resize_row_state(RowResizeState(True, row, y))
            if changed:
                self.dims.invalidate_rows(row)
            return changed
        return False

    def end_resize(self) -> bool:
        if not self.state.is_resizing():
            return False
        col_state = self.state.resize_column_state
        row_state = self.state.resize_row_state
        if col_state.is_resizing:
            log.debug("Finished column resize for index %s", col_state.column_index)
        if row_state.is_resizing:
            log.debug("Finished row resize for index %s", row_state.row_index)
        self.state.set_resize_column_state(ColumnResizeState())
        self.state.set_resize_row_state(RowResizeState())
        self._set_cursor("default")
        return True

    def update_cursor_style(self, x, y) -> str:
        if self.state.is_any_drag_active():
            return self.cursor
        opts = self.options
        tolerance = opts.resize_handle_size
        cursor = "default"
        if y < opts.header_height and x > opts.row_number_width:
            if self.dims.column_border_near(x, tolerance) is not None:
                cursor = "col-resize"
        elif x < opts.row_number_width and y > opts.header_height:
            if self.dims.row_border_near(y, tolerance) is not None:
                cursor = "row-resize"
        elif self._fill_handle_hit(x, y):
            cursor = "crosshair"
        self._set_cursor(cursor)
        return cursor

    # ---------- fill handle ----------
    def _fill_handle_hit(self, x, y) -> bool:
        cell = self.state.active_cell
        if cell is None or self._editor_active():
            return False
        handle = self.renderer.get_fill_handle_bounds(cell.row, cell.col)
        return handle is not None and handle.contains(x, y)

    def check_fill_handle(self, x, y) -> bool:
        if self.state.is_any_drag_active() or not self._fill_handle_hit(x, y):
            return False
        cell = self.state.active_cell
        if self.state.is_cell_disabled(cell.row, cell.col):
            return False
        log.debug("Starting fill handle drag from %s", cell)
        self.state.set_drag_state(FillDragState(True, cell, cell.row))
        self._set_cursor("crosshair")
        return True

    def handle_fill_handle_move(self, y) -> bool:
        drag = self.state.drag_state
        if not drag.is_dragging or drag.start_cell is None:
            return False
        row = self.dims.row_at(y)
        if row is None:
            if self.state.data_length == 0:
                return False
            row = 0 if y < self.options.header_height + self.state.scroll_top else self.state.data_length - 1
        if row == drag.end_row:
            return False
        self.state.set_drag_state(FillDragState(True, drag.start_cell, row))
        return True

    def end_fill_handle_drag(self) -> bool:
        drag = self.state.drag_state
        if not drag.is_dragging:
            return False
        if drag.end_row is not None and drag.end_row != drag.start_cell.row:
            self._perform_fill()
        self.state.set_drag_state(FillDragState())
        self._set_cursor("default")
        return True

    def _perform_fill(self) -> bool:
        drag = self.state.drag_state
        start = drag.start_cell
        source_type = self.state.get_schema_for_column(start.col).type
        value = self.state.get_cell_data(start.row, start.col)
        if drag.end_row > start.row:
            rows = range(start.row + 1, drag.end_row + 1)
        else:
            rows = range(drag.end_row, start.row)
        c0, c1 = self.state.get_fill_column_span(start)

        changes = {}
        for row in rows:
            for col in range(c0, c1 + 1):
                if self.state.is_cell_disabled(row, col):
                    continue
                if self.state.get_schema_for_column(col).type != source_type:
                    continue
                if values_equal(self.state.get_cell_data(row, col), value):
                    continue
                old = self.state.update_cell_internal(row, col, copy.deepcopy(value))
                changes.setdefault(row, {})[self.state.columns[col]] = old
        log.debug("Fill from %s wrote %d row(s)", start, len(changes))
        return self._batch_update_cells_and_notify(changes)

    # ---------- change notification ----------
    def _batch_update_cells_and_notify(self, changes, record_history=True) -> bool:
        """changes: {row: {column_key: previous_value}}, already written."""
        if not changes:
            return False
        for row in changes:
            self.state.update_disabled_states_for_row(row)
        events = [
            CellUpdateEvent(row, list(old), self.state.get_row_data(row), dict(old))
            for row, old in sorted(changes.items())
        ]
        if record_history and self.history is not None:
            self.history.record_changes(events)
        self.notify_cells_update(events)
        return True

    def notify_cells_update(self, events) -> None:
        callback = self.options.on_cells_update
        if callback is None or not events:
            return
        try:
            callback(events)
        except Exception:
            log.exception("on_cells_update callback failed")

    # ---------- copy / paste ----------
    def copy(self) -> bool:
        rng = self.state.get_normalized_selection_range()
        if rng is not None and not rng.is_single_cell():
            matrix = [
                [copy.deepcopy(self.state.get_cell_data(r, c)) for c in range(rng.start.col, rng.end.col + 1)]
                for r in range(rng.start.row, rng.end.row + 1)
            ]
            types = {self.state.get_schema_for_column(c).type for c in range(rng.start.col, rng.end.col + 1)}
            if len(types) > 1:
                log.warning("Copying a range with mixed column types: %s", sorted(types))
            self.state.set_copied_range(matrix, rng)
            log.debug("Copied %dx%d range", rng.row_count, rng.col_count)
            return True
        cell = self.state.active_cell
        if cell is None:
            return False
        value = copy.deepcopy(self.state.get_cell_data(cell.row, cell.col))
        value_type = self.state.get_schema_for_column(cell.col).type
        self.state.set_copied_value(value, value_type, cell)
        log.debug("Copied value %r from %s", value, cell)
        return True

    def clear_copied_cell(self) -> bool:
        return self.state.clear_copy_state()

    def _debounced(self) -> bool:
        now = time.monotonic()
        if self._last_paste_at is not None and now - self._last_paste_at < self.options.paste_debounce:
            log.debug("Paste ignored inside debounce window")
            return True
        return False

    def _mark_pasted(self) -> None:
        self._last_paste_at = time.monotonic()

    def _tiled(self, matrix, types, r0, c0, r1, c1):
        height, width = len(matrix), len(matrix[0])
        for r in range(r0, r1 + 1):
            for c in range(c0, c1 + 1):
                i, j = (r - r0) % height, (c - c0) % width
                yield r, c, matrix[i][j], types[j]

    def _from_top_left(self, matrix, types, start):
        for i, line in enumerate(matrix):
            for j, value in enumerate(line):
                yield start.row + i, start.col + j, value, types[j]

    def _paste_targets(self, matrix, types):
        """Resolve the paste target for a value matrix; None when there is nowhere to paste."""
        rng = self.state.get_normalized_selection_range()
        if rng is not None and not rng.is_single_cell():
            return self._tiled(matrix, types, rng.start.row, rng.start.col, rng.end.row, rng.end.col)
        if self.state.selected_column is not None and len(matrix) == 1 and len(matrix[0]) == 1:
            col = self.state.selected_column
            return ((r, col, matrix[0][0], types[0]) for r in range(self.state.data_length))
        if self.state.active_cell is not None:
            return self._from_top_left(matrix, types, self.state.active_cell)
        return None

    def paste(self) -> bool:
        if self._editor_active() or not self.state.is_copy_active():
            return False
        if self._debounced():
            return False
        if self.state.copied_range_data is not None:
            matrix = self.state.copied_range_data
            src = self.state.copied_source_range.normalized()
            types = [self.state.get_schema_for_column(c).type for c in range(src.start.col, src.end.col + 1)]
        else:
            matrix = [[self.state.copied_value]]
            types = [self.state.copied_value_type]
        targets = self._paste_targets(matrix, types)
        if targets is None:
            log.debug("Paste ignored: no target cell or range selected")
            return False
        self._mark_pasted()
        return self._paste_cells(targets)

    def paste_external(self, text) -> bool:
        """Paste clipboard text; every cell is coerced from text."""
        if self._editor_active():
            return False
        matrix = parse_clipboard_text(text)
        if not matrix or not matrix[0]:
            return False
        if self._debounced():
            return False
        if self.state.selected_column is not None:
            matrix = [[matrix[0][0]]]
        width = max(len(line) for line in matrix)
        matrix = [line + [""] * (width - len(line)) for line in matrix]
        types = [None] * width
        targets = self._paste_targets(matrix, types)
        if targets is None:
            log.debug("Clipboard paste ignored: no target cell or range selected")
            return False
        self._mark_pasted()
        return self._paste_cells(targets)

    def paste_to_column_external(self, col_index, value) -> bool:
        if value is None or self.state.get_schema_for_column(col_index) is None:
            return False
        return self._paste_cells((r, col_index, value, None) for r in range(self.state.data_length))

    def _reject(self, row, col, error, previous) -> None:
        log.debug("Rejected value for (%s, %s): %s", row, col, error.message)
        self.state.set_temporary_errors([(row, col, error.message)])
        if error.error_type == "required" and is_empty(previous):
            self.state.set_cell_error(row, col, error.message)

    def _paste_cells(self, cells) -> bool:
        """Write (row, col, value, value_type) tuples the way a paste does.

        A value_type of None means raw clipboard text. Disabled cells and
        values that cannot be converted are skipped; invalid values mark the
        cell instead of being written.
        """
        changes = {}
        rejected = False
        n_rows, n_cols = self.state.data_length, len(self.state.columns)
        for row, col, value, value_type in cells:
            if not (0 <= row < n_rows and 0 <= col < n_cols):
                continue
            if self.state.is_cell_disabled(row, col):
                continue
            column = self.state.get_schema_for_column(col)
            key = self.state.columns[col]
            if value is not None and value_type != column.type:
                try:
                    value = convert_for_type(value, column)
                except ValueError as exc:
                    log.debug("Skipping (%s, %s): %s", row, col, exc)
                    continue
            current = self.state.get_cell_data(row, col)
            error = check_input(value, column, key)
            if error is not None:
                self._reject(row, col, error, current)
                rejected = True
                continue
            if values_equal(current, value):
                continue
            old = self.state.update_cell_internal(row, col, copy.deepcopy(value))
            changes.setdefault(row, {})[key] = old
        written = self._batch_update_cells_and_notify(changes)
        return written or rejected

    def clear_active_cell_value(self) -> bool:
        cell = self.state.active_cell
        if cell is None:
            return False
        value_type = self.state.get_schema_for_column(cell.col).type
        return self._paste_cells([(cell.row, cell.col, None, value_type)])

    # ---------- deletion ----------
    def delete_selected_rows(self) -> bool:
        if not self.state.selected_rows:
            return False
        return self.delete_rows(self.state.selected_rows)

    def delete_rows(self, indices) -> bool:
        total = self.state.data_length
        doomed = sorted({i for i in indices if 0 <= i < total})
        if not doomed:
            log.warning("delete_rows: no valid row indices in %s", sorted(indices))
            return False
        log.debug("Deleting rows: %s", doomed)
        self._close_editor(save_changes=False)
        deleted_rows = [self.state.get_row_data(i) for i in doomed]
        callback = self.options.on_row_deleted
        if callback is not None:
            try:
                callback(deleted_rows)
            except Exception:
                log.exception("on_row_deleted callback failed")

        self.state.delete_rows(doomed)
        self.clear_selections()
        self.state.set_active_cell(None)
        self.clear_copied_cell()
        if self.history is not None:
            self.history.clear()
        self.dims.invalidate_rows(doomed[0])
        self.refresh_geometry()
        return True

    # ---------- selection drag ----------
    def start_selection_drag(self, coords) -> bool:
        if coords is None or not coords.is_valid():
            return False
        self.state.set_dragging_selection(True)
        changed = self.state.set_active_cell(coords)
        changed = self.state.set_selection_range(coords, coords) or changed
        if changed:
            changed = self.clear_selections() or changed
            log.debug("Started selection drag at %s", coords)
        return changed

    def update_selection_drag(self, coords) -> bool:
        if not self.state.is_dragging_selection or self.state.selection_start is None:
            return False
        if coords is None or not coords.is_valid() or coords == self.state.selection_end:
            return False
        return self.state.set_selection_range(self.state.selection_start, coords)

    def end_selection_drag(self) -> bool:
        if not self.state.is_dragging_selection:
            return False
        log.debug("Ended selection drag: %s", self.state.get_normalized_selection_range())
        self.state.set_dragging_selection(False)
        return False

    def extend_selection(self, row_delta, col_delta) -> bool:
        anchor = self.state.active_cell
        if anchor is None:
            return False
        end = self.state.selection_end or anchor
        row = min(max(end.row + row_delta, 0), self.state.data_length - 1)
        col = min(max(end.col + col_delta, 0), len(self.state.columns) - 1)
        changed = self.state.set_selection_range(anchor, CellCoords(row, col))
        self.bring_cell_into_view(row, col)
        return changed

    # ---------- navigation ----------
    def _notify_cell_selected(self, cell) -> None:
        callback = self.options.on_cell_selected
        if callback is None or cell is None:
            return
        try:
            callback(cell.row, self.state.columns[cell.col], self.state.get_row_data(cell.row))
        except Exception:
            log.exception("on_cell_selected callback failed")

    def navigate(self, row_delta, col_delta) -> bool:
        """Arrow-key move: clamped to the grid, no wrap, no editor."""
        if self.state.data_length == 0:
            return False
        cell = self.state.active_cell
        if cell is None:
            target = CellCoords(0, 0)
        else:
            target = CellCoords(
                min(max(cell.row + row_delta, 0), self.state.data_length - 1),
                min(max(cell.col + col_delta, 0), len(self.state.columns) - 1),
            )
        changed = self.state.set_active_cell(target)
        changed = self.state.set_selection_range(target, target) or changed
        self.bring_cell_into_view(target.row, target.col)
        if changed:
            self._notify_cell_selected(target)
        return changed

    def _leave_grid(self, reason) -> bool:
        log.debug(reason)
        self._close_editor(save_changes=True)
        return self.state.set_active_cell(None)

    def _wrap(self, row, col, n_cols):
        if col >= n_cols:
            return row + 1, 0
        if col < 0:
            return row - 1, n_cols - 1
        return row, col

    def _past_end(self, row) -> bool:
        """True when row is past the last row and could not be appended."""
        if row < self.state.data_length:
            return False
        if not self.options.auto_add_new_row:
            return True
        while self.state.data_length <= row:
            self.state.add_row()
        log.debug("Appended row %s while navigating", row)
        self.refresh_geometry()
        return False

    def move_active_cell(self, row_delta, col_delta, activate_editor=True) -> bool:
        cell = self.state.active_cell
        if cell is None:
            return False
        if activate_editor and self.editing is None:
            log.warning("No editing manager set; cannot move active cell")
            return False
        n_cols = len(self.state.columns)
        row, col = self._wrap(cell.row + row_delta, cell.col + col_delta, n_cols)
        if row < 0 or self._past_end(row):
            return self._leave_grid("Reached grid boundary, deactivating editor")

        limit = self.state.data_length * n_cols
        searched = 0
        while self.state.is_cell_disabled(row, col):
            searched += 1
            if searched >= limit or (row_delta == 0 and col_delta == 0):
                return self._leave_grid("Max search limit reached while finding next editable cell")
            row, col = self._wrap(row + row_delta, col + col_delta, n_cols)
            if row < 0 or row >= self.state.data_length:
                return self._leave_grid("Could not find next editable cell in direction")

        self._close_editor(save_changes=True)
        target = CellCoords(row, col)
        self.state.set_active_cell(target)
        self.state.set_selection_range(target, target)
        self.bring_cell_into_view(row, col)
        if activate_editor:
            self.editing.activate_editor(row, col)
        return True

    # ---------- pointer events ----------
    def pointer_down(self, view_x, view_y, shift=False, ctrl=False) -> bool:
        x, y = self.dims.to_content(view_x, view_y)
        if self.state.is_any_drag_active():
            return False
        if self.check_resize_handles(x, y):
            return True
        if self.check_fill_handle(x, y):
            self.render()
            return True

        region, row, col = self.dims.hit_test(x, y)
        changed = False
        if region == "gutter":
            changed = self._close_editor() or changed
            changed = self.handle_row_number_click(row, shift, ctrl) or changed
        elif region == "header":
            changed = self._close_editor() or changed
            changed = self.handle_header_click(col) or changed
        elif region == "cell":
            coords = CellCoords(row, col)
            editor = self.state.active_editor
            if editor is not None and (editor.row, editor.col) == (row, col):
                return False
            changed = self._close_editor() or changed
            if shift and self.state.active_cell is not None:
                changed = self.state.set_selection_range(self.state.active_cell, coords) or changed
                self.state.set_dragging_selection(True)
            else:
                previous = self.state.active_cell
                changed = self.start_selection_drag(coords) or changed
                if self.state.active_cell != previous:
                    self._notify_cell_selected(self.state.active_cell)
        else:
            changed = self._close_editor() or changed
            changed = self.clear_all_selections() or changed
        if changed:
            self.render()
        return changed

    def pointer_move(self, view_x, view_y) -> bool:
        x, y = self.dims.to_content(view_x, view_y)
        if self.state.is_resizing():
            changed = self.handle_resize_move(x, y)
        elif self.state.is_dragging_fill_handle():
            changed = self.handle_fill_handle_move(y)
        elif self.state.is_dragging_selection:
            region, row, col = self.dims.hit_test(x, y)
            changed = region == "cell" and self.update_selection_drag(CellCoords(row, col))
        else:
            self.update_cursor_style(x, y)
            return False
        if changed:
            self.render()
        return changed

    def pointer_up(self, view_x=None, view_y=None) -> bool:
        """Ends every drag, wherever the pointer was released."""
        changed = self.end_resize()
        changed = self.end_fill_handle_drag() or changed
        self.end_selection_drag()
        if changed:
            self.render()
        return changed

    def double_click(self, view_x, view_y) -> bool:
        x, y = self.dims.to_content(view_x, view_y)
        region, row, col = self.dims.hit_test(x, y)
        if region != "cell" or self.editing is None or self.state.is_cell_disabled(row, col):
            return False
        self.clear_selections()
        self.clear_copied_cell()
        coords = CellCoords(row, col)
        self.state.set_active_cell(coords)
        self.state.set_selection_range(coords, coords)
        self.editing.activate_editor(row, col)
        self.render()
        return True

    # ---------- keyboard ----------
    _ARROWS = {
        "ArrowUp": (-1, 0),
        "ArrowDown": (1, 0),
        "ArrowLeft": (0, -1),
        "ArrowRight": (0, 1),
    }

    def handle_key(self, key, shift=False, ctrl=False) -> bool:
        if self._editor_active():
            changed = self.editing.handle_key(key, shift=shift)
            if changed:
                self.render()
            return changed

        changed = False
        if key in self._ARROWS:
            dr, dc = self._ARROWS[key]
            changed = self.extend_selection(dr, dc) if shift else self.navigate(dr, dc)
        elif key == "Enter":
            cell = self.state.active_cell
            if cell is not None and self.editing is not None:
                changed = self.editing.activate_editor(cell.row, cell.col)
        elif key == "Tab":
            changed = self.move_active_cell(0, -1 if shift else 1, activate_editor=False)
        elif key == "Escape":
            changed = self.clear_copied_cell()
            changed = self.clear_selections() or changed
            cell = self.state.active_cell
            if cell is not None:
                changed = self.state.set_selection_range(cell, cell) or changed
        elif key in ("Delete", "Backspace"):
            if self.state.selected_rows:
                changed = self.delete_selected_rows()
            else:
                changed = self.clear_active_cell_value()
        elif ctrl and key.lower() == "c":
            changed = self.copy()
        elif ctrl and key.lower() == "v":
            changed = self.paste()
        if changed:
            self.render()
        return changed
