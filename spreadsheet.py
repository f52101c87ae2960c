from dimension_calculator import DimensionCalculator
from editing_manager import EditingManager
from grid_config import build_options
from history_manager import HistoryManager
from interaction_manager import InteractionManager
from logging_utils import get_logger, set_verbose
from renderer import Renderer
from state_manager import StateManager
from validation import ValidationError
from viewport import MemoryViewport

log = get_logger("spreadsheet")


class Spreadsheet:
    """Builds the grid components, wires them together and exposes the public API."""

    def __init__(self, schema, data=None, options=None, surface=None, viewport=None, **overrides):
        self.options = build_options(options, **overrides)
        set_verbose(self.options.verbose)

        if viewport is None:
            width, height = surface.size() if surface is not None else (800, 600)
            viewport = MemoryViewport(width, height)
        self.surface = surface
        self.viewport = viewport

        self.state = StateManager(schema, self.options)
        self.dims = DimensionCalculator(self.options, self.state)
        self.renderer = Renderer(surface, self.options, self.state, self.dims)
        self.history = HistoryManager(self.state, self.options.history_max_depth)
        self.interaction = InteractionManager(
            self.options, self.state, self.renderer, self.dims, self.viewport, self.history
        )
        self.editing = EditingManager(self.options, self.state, self.renderer, self.dims)
        self.interaction.set_editing_manager(self.editing)
        self.editing.set_interaction_manager(self.interaction)

        self.set_data(data or [])

    # ---------- data ----------
    def set_data(self, rows) -> None:
        self.editing.deactivate_editor(save_changes=False)
        self.state.set_data(rows)
        self.dims.reset()
        self.history.clear()
        self.viewport.set_v_scroll(0)
        self.viewport.set_h_scroll(0)
        log.debug("Loaded %d row(s)", self.state.data_length)
        self.draw()

    def get_data(self, valid_only=False) -> list[dict]:
        """Current rows. With valid_only, rows holding an error or an empty required value are left out."""
        rows = self.state.get_data()
        if not valid_only:
            return rows
        kept = []
        for index, row in enumerate(rows):
            if any(self.state.get_cell_error(index, col) for col in range(len(self.state.columns))):
                continue
            if any(
                column.required and row.get(key) in (None, "")
                for key, column in self.state.schema.items()
            ):
                continue
            kept.append(row)
        return kept

    @property
    def row_count(self) -> int:
        return self.state.data_length

    @property
    def schema(self):
        return self.state.schema

    def get_row(self, row_index):
        return self.state.get_row_data(row_index)

    def get_columns(self) -> list[str]:
        return list(self.state.columns)

    def get_selected_cell(self):
        cell = self.state.active_cell
        if cell is None:
            return None
        return cell.row, self.state.columns[cell.col]

    # ---------- programmatic updates ----------
    def _write_cell(self, row_index, column_key, value, flash_error, changes, remove=False) -> bool:
        col = self.state.column_index(column_key)
        if col is None or not 0 <= row_index < self.state.data_length:
            log.warning("update_cell: no cell at row %s, column %r", row_index, column_key)
            return False
        old = self.state.get_cell_data(row_index, col)
        if remove:
            updated = self.state.remove_cell_value(row_index, column_key)
        else:
            try:
                updated = self.state.update_cell(row_index, column_key, value)
            except ValidationError as exc:
                self.state.set_cell_error(row_index, col, exc.message)
                updated = False
        if flash_error:
            self.state.set_temporary_errors([(row_index, col, flash_error)])
        if updated:
            changes.setdefault(row_index, {})[column_key] = old
        return updated

    def update_cell(self, row_index, column_key, value=None, flash_error=None, remove=False) -> bool:
        """Validated write from the host application; not recorded for undo.

        With remove, the cell is cleared without validation.
        """
        changes = {}
        with self.history.parent_app_update():
            updated = self._write_cell(row_index, column_key, value, flash_error, changes, remove)
            self.interaction._batch_update_cells_and_notify(changes)
        self.draw()
        return updated

    def update_cells(self, inputs) -> list[int]:
        """inputs: dicts with row_index, column_key, value and optional flash_error and remove."""
        changes = {}
        with self.history.parent_app_update():
            for item in inputs:
                self._write_cell(
                    item["row_index"],
                    item["column_key"],
                    item.get("value"),
                    item.get("flash_error"),
                    changes,
                    item.get("remove", False),
                )
            self.interaction._batch_update_cells_and_notify(changes)
        self.draw()
        return sorted(changes)

    def add_row(self, row=None) -> int:
        index = self.state.add_row(row)
        self.draw()
        return index

    def delete_rows(self, indices) -> bool:
        deleted = self.interaction.delete_rows(indices)
        if deleted:
            self.draw()
        return deleted

    # ---------- sizes ----------
    def get_column_widths(self) -> dict:
        return self.state.get_resized_column_widths()

    def set_column_widths(self, widths) -> None:
        opts = self.options
        for key, width in widths.items():
            col = self.state.column_index(key)
            if col is None:
                log.warning("set_column_widths: unknown column %r", key)
                continue
            self.state.set_column_width(col, min(max(int(width), opts.min_column_width), opts.max_column_width))
            self.dims.invalidate_columns(col)
        self.draw()

    def get_row_heights(self) -> dict:
        return self.state.get_resized_row_heights()

    def set_row_heights(self, heights) -> None:
        opts = self.options
        for row, height in heights.items():
            row = int(row)
            if not 0 <= row < self.state.data_length:
                log.warning("set_row_heights: no row %s", row)
                continue
            self.state.set_row_height(row, min(max(int(height), opts.min_row_height), opts.max_row_height))
            self.dims.invalidate_rows(row)
        self.draw()

    # ---------- history ----------
    def undo(self) -> bool:
        self.editing.deactivate_editor(save_changes=False)
        events = self.history.undo()
        if events:
            self.interaction.notify_cells_update(events)
            self.draw()
        return bool(events)

    def redo(self) -> bool:
        self.editing.deactivate_editor(save_changes=False)
        events = self.history.redo()
        if events:
            self.interaction.notify_cells_update(events)
            self.draw()
        return bool(events)

    # ---------- view ----------
    def resize_viewport(self, width, height) -> None:
        if hasattr(self.viewport, "resize"):
            self.viewport.resize(width, height)
        self.draw()

    def draw(self) -> None:
        self.dims.auto_resize_row_heights()
        self.interaction.render()
