# ~/Apps/vgrid/renderer.py
from cell_coercion import format_value
from grid_types import CellBounds
from logging_utils import get_logger

log = get_logger("renderer")


class Renderer:
    """Paints the visible window of the grid; never mutates state.

    Draw order: headers, row numbers, cells, grid lines, copy highlight,
    active cell highlight, fill-drag range.
    """

    def __init__(self, surface, options, state, dims):
        self.surface = surface
        self.options = options
        self.state = state
        self.dims = dims

    def _view_rect(self, bounds: CellBounds):
        return (
            self.dims.to_view_x(bounds.x),
            self.dims.to_view_y(bounds.y),
            bounds.width,
            bounds.height,
        )

    def _visible_rows(self):
        s = self.state
        return range(max(s.visible_row_start, 0), min(s.visible_row_end, s.data_length - 1) + 1)

    def _visible_cols(self):
        s = self.state
        return range(max(s.visible_col_start, 0), min(s.visible_col_end, len(s.columns) - 1) + 1)

    def draw(self) -> None:
        if self.surface is None:
            return
        opts = self.options
        s = self.state
        width, height = s.viewport_width, s.viewport_height
        self.surface.clear(opts.background_color)

        self._draw_headers(width)
        self._draw_row_numbers(height)

        body_w = max(width - opts.row_number_width, 0)
        body_h = max(height - opts.header_height, 0)
        self.surface.push_clip(opts.row_number_width, opts.header_height, body_w, body_h)
        self._draw_cells()
        self._draw_grid_lines()
        self._draw_copy_highlight()
        self._draw_active_cell_highlight()
        self._draw_drag_range()
        self.surface.pop_clip()

        # corner above the gutter
        self.surface.fill_rect(0, 0, opts.row_number_width, opts.header_height, opts.header_bg_color)
        self.surface.present()

    def _draw_headers(self, width):
        opts = self.options
        s = self.state
        self.surface.push_clip(opts.row_number_width, 0, max(width - opts.row_number_width, 0), opts.header_height)
        for col in self._visible_cols():
            x = self.dims.to_view_x(self.dims.get_column_left(col))
            w = int(s.column_widths[col])
            bg = opts.selected_header_bg_color if s.selected_column == col else opts.header_bg_color
            self.surface.fill_rect(x, 0, w, opts.header_height, bg)
            self.surface.line(x + w, 0, x + w, opts.header_height, opts.grid_line_color)
            label = s.get_schema_for_column(col).label
            self.surface.text(
                x + opts.padding,
                0,
                max(w - 2 * opts.padding, 0),
                opts.header_height,
                label,
                opts.header_text_color,
                opts.header_font,
                align="center",
            )
        self.surface.pop_clip()

    def _draw_row_numbers(self, height):
        opts = self.options
        s = self.state
        self.surface.push_clip(0, opts.header_height, opts.row_number_width, max(height - opts.header_height, 0))
        for row in self._visible_rows():
            y = self.dims.to_view_y(self.dims.get_row_top(row))
            h = int(s.row_heights[row])
            bg = opts.selected_row_number_bg_color if row in s.selected_rows else opts.row_number_bg_color
            self.surface.fill_rect(0, y, opts.row_number_width, h, bg)
            self.surface.line(0, y + h, opts.row_number_width, y + h, opts.grid_line_color)
            self.surface.text(
                0, y, opts.row_number_width, h, str(row + 1), opts.text_color, opts.font, align="center"
            )
        self.surface.pop_clip()

    def _cell_background(self, row, col, rng):
        opts = self.options
        s = self.state
        if s.is_cell_disabled(row, col):
            return opts.disabled_cell_bg_color
        if s.get_cell_error(row, col) or s.get_temporary_error(row, col):
            return opts.error_cell_bg_color
        if row in s.selected_rows:
            return opts.selected_row_bg_color
        if s.selected_column == col:
            return opts.selected_range_bg_color
        if (
            rng is not None
            and not rng.is_single_cell()
            and rng.start.row <= row <= rng.end.row
            and rng.start.col <= col <= rng.end.col
        ):
            return opts.selected_range_bg_color
        return opts.background_color

    def _draw_cells(self):
        opts = self.options
        s = self.state
        rng = s.get_normalized_selection_range()
        editor = s.active_editor
        for row in self._visible_rows():
            for col in self._visible_cols():
                bounds = self.dims.get_cell_bounds(row, col)
                x, y, w, h = self._view_rect(bounds)
                self.surface.fill_rect(x, y, w, h, self._cell_background(row, col, rng))

                if editor is not None and editor.row == row and editor.col == col:
                    continue

                column = s.get_schema_for_column(col)
                text = format_value(s.get_cell_data(row, col), column)
                color = opts.disabled_text_color if s.is_cell_disabled(row, col) else opts.text_color
                temp_error = s.get_temporary_error(row, col)
                if temp_error:
                    self.surface.stroke_rect(x, y, w, h, opts.error_text_color)
                    color = opts.error_text_color
                elif s.get_cell_error(row, col):
                    color = opts.error_text_color
                    if text == "":
                        text = s.get_cell_error(row, col)
                if text:
                    self.surface.text(
                        x + opts.padding,
                        y,
                        max(w - 2 * opts.padding, 0),
                        h,
                        text,
                        color,
                        opts.font,
                        align="right" if column.type == "number" else "left",
                    )

    def _draw_grid_lines(self):
        opts = self.options
        s = self.state
        rows = self._visible_rows()
        cols = self._visible_cols()
        if not rows or not cols:
            return
        top = self.dims.to_view_y(self.dims.get_row_top(rows[0]))
        bottom = self.dims.to_view_y(self.dims.get_row_top(rows[-1]) + int(s.row_heights[rows[-1]]))
        left = self.dims.to_view_x(self.dims.get_column_left(cols[0]))
        right = self.dims.to_view_x(self.dims.get_column_left(cols[-1]) + int(s.column_widths[cols[-1]]))
        for col in cols:
            x = self.dims.to_view_x(self.dims.get_column_left(col) + int(s.column_widths[col]))
            self.surface.line(x, top, x, bottom, opts.grid_line_color)
        for row in rows:
            y = self.dims.to_view_y(self.dims.get_row_top(row) + int(s.row_heights[row]))
            self.surface.line(left, y, right, y, opts.grid_line_color)

    def _draw_copy_highlight(self):
        s = self.state
        bounds = None
        if s.copied_cell is not None:
            bounds = self.dims.get_cell_bounds(s.copied_cell.row, s.copied_cell.col)
        elif s.copied_source_range is not None:
            src = s.copied_source_range.normalized()
            bounds = self.dims.get_range_bounds(src.start.row, src.start.col, src.end.row, src.end.col)
        if bounds is not None:
            self.surface.stroke_rect(*self._view_rect(bounds), self.options.copy_highlight_border_color, dashed=True)

    def _draw_active_cell_highlight(self):
        opts = self.options
        s = self.state
        rng = s.get_normalized_selection_range()
        if rng is not None and not rng.is_single_cell():
            bounds = self.dims.get_range_bounds(rng.start.row, rng.start.col, rng.end.row, rng.end.col)
            if bounds is not None:
                self.surface.stroke_rect(*self._view_rect(bounds), opts.highlight_border_color)

        cell = s.active_cell
        if cell is None:
            return
        bounds = self.dims.get_cell_bounds(cell.row, cell.col)
        if bounds is None:
            return
        self.surface.stroke_rect(*self._view_rect(bounds), opts.highlight_border_color)
        if s.active_editor is None and not s.is_dragging_fill_handle():
            handle = self.get_fill_handle_bounds(cell.row, cell.col)
            if handle is not None:
                self.surface.fill_rect(*self._view_rect(handle), opts.fill_handle_color)

    def _draw_drag_range(self):
        s = self.state
        drag = s.drag_state
        if not drag.is_dragging or drag.start_cell is None or drag.end_row is None:
            return
        c0, c1 = s.get_fill_column_span(drag.start_cell)
        r0, r1 = sorted((drag.start_cell.row, drag.end_row))
        bounds = self.dims.get_range_bounds(r0, c0, r1, c1)
        if bounds is not None:
            self.surface.stroke_rect(*self._view_rect(bounds), self.options.drag_range_border_color, dashed=True)

    def get_fill_handle_bounds(self, row, col):
        """Content-coordinate square centred on the cell's bottom-right corner."""
        bounds = self.dims.get_cell_bounds(row, col)
        if bounds is None:
            return None
        size = self.options.fill_handle_size
        half = size // 2
        return CellBounds(bounds.x + bounds.width - half, bounds.y + bounds.height - half, size, size)
