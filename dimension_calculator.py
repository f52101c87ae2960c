import textwrap

import numpy as np

from cell_coercion import format_value, is_empty
from grid_types import CellBounds
from logging_utils import get_logger

log = get_logger("dimensions")


class _PrefixSums:
    """Cumulative sizes along one axis; entries past `valid_upto` are recomputed lazily."""

    def __init__(self):
        self.sums = np.zeros(1, dtype=np.int64)
        self.valid_upto = 0

    def invalidate(self, from_index: int = 0) -> None:
        self.valid_upto = min(self.valid_upto, max(from_index, 0))

    def get(self, sizes) -> np.ndarray:
        n = len(sizes)
        if len(self.sums) != n + 1:
            self.sums = np.zeros(n + 1, dtype=np.int64)
            self.valid_upto = 0
        if self.valid_upto < n:
            start = self.valid_upto
            self.sums[start + 1:] = self.sums[start] + np.cumsum(sizes[start:], dtype=np.int64)
            self.valid_upto = n
        return self.sums


class DimensionCalculator:
    """Geometry for the grid.

    Coordinates are content coordinates: x=0 at the left edge of the row
    number gutter, y=0 at the top of the header strip, neither scrolled.
    The header strip and gutter stay pinned on screen, so `to_content`
    only adds the scroll offset to the axis that is not in a pinned strip.
    """

    def __init__(self, options, state):
        self.options = options
        self.state = state
        self._rows = _PrefixSums()
        self._cols = _PrefixSums()

    def reset(self) -> None:
        self._rows = _PrefixSums()
        self._cols = _PrefixSums()

    def invalidate_rows(self, from_index: int = 0) -> None:
        self._rows.invalidate(from_index)

    def invalidate_columns(self, from_index: int = 0) -> None:
        self._cols.invalidate(from_index)

    def row_offsets(self) -> np.ndarray:
        return self._rows.get(self.state.row_heights)

    def column_offsets(self) -> np.ndarray:
        return self._cols.get(self.state.column_widths)

    def calculate_total_size(self) -> tuple[int, int]:
        width = self.options.row_number_width + int(self.column_offsets()[-1])
        height = self.options.header_height + int(self.row_offsets()[-1])
        return width, height

    @staticmethod
    def _window(offsets: np.ndarray, scroll: float, extent: float) -> tuple[int, int]:
        count = len(offsets) - 1
        if count <= 0:
            return 0, -1
        first = int(np.searchsorted(offsets, scroll, side="right")) - 1
        last = int(np.searchsorted(offsets, scroll + max(extent, 0), side="left")) - 1
        first = min(max(first, 0), count - 1)
        last = min(max(last, first) + 1, count - 1)
        return first, last

    def calculate_visible_range(self, scroll_top=None, scroll_left=None, viewport_width=None, viewport_height=None):
        """(row_start, row_end, col_start, col_end), inclusive, with one trailing overscan."""
        state = self.state
        scroll_top = state.scroll_top if scroll_top is None else scroll_top
        scroll_left = state.scroll_left if scroll_left is None else scroll_left
        viewport_width = state.viewport_width if viewport_width is None else viewport_width
        viewport_height = state.viewport_height if viewport_height is None else viewport_height

        row_start, row_end = self._window(
            self.row_offsets(), scroll_top, viewport_height - self.options.header_height
        )
        col_start, col_end = self._window(
            self.column_offsets(), scroll_left, viewport_width - self.options.row_number_width
        )
        return row_start, row_end, col_start, col_end

    # ---------- positions ----------
    def get_column_left(self, col_index: int) -> int:
        return self.options.row_number_width + int(self.column_offsets()[col_index])

    def get_row_top(self, row_index: int) -> int:
        return self.options.header_height + int(self.row_offsets()[row_index])

    def get_cell_bounds(self, row_index: int, col_index: int):
        if not (0 <= row_index < self.state.data_length and 0 <= col_index < len(self.state.columns)):
            return None
        return CellBounds(
            self.get_column_left(col_index),
            self.get_row_top(row_index),
            int(self.state.column_widths[col_index]),
            int(self.state.row_heights[row_index]),
        )

    def get_range_bounds(self, row_start, col_start, row_end, col_end):
        top_left = self.get_cell_bounds(row_start, col_start)
        bottom_right = self.get_cell_bounds(row_end, col_end)
        if top_left is None or bottom_right is None:
            return None
        return CellBounds(
            top_left.x,
            top_left.y,
            bottom_right.x + bottom_right.width - top_left.x,
            bottom_right.y + bottom_right.height - top_left.y,
        )

    def row_at(self, y):
        """Row under content y, or None outside the data rows."""
        offsets = self.row_offsets()
        rel = y - self.options.header_height
        if rel < 0 or rel >= offsets[-1]:
            return None
        return int(np.searchsorted(offsets, rel, side="right")) - 1

    def column_at(self, x):
        offsets = self.column_offsets()
        rel = x - self.options.row_number_width
        if rel < 0 or rel >= offsets[-1]:
            return None
        return int(np.searchsorted(offsets, rel, side="right")) - 1

    def to_content(self, view_x, view_y) -> tuple[float, float]:
        x = view_x if view_x < self.options.row_number_width else view_x + self.state.scroll_left
        y = view_y if view_y < self.options.header_height else view_y + self.state.scroll_top
        return x, y

    def to_view_x(self, x) -> float:
        return x - self.state.scroll_left

    def to_view_y(self, y) -> float:
        return y - self.state.scroll_top

    def hit_test(self, x, y):
        """Classify a content point: ('corner'|'header'|'gutter'|'cell'|'outside', row, col)."""
        in_header = y < self.options.header_height
        in_gutter = x < self.options.row_number_width
        if in_header and in_gutter:
            return "corner", None, None
        if in_header:
            col = self.column_at(x)
            return ("header", None, col) if col is not None else ("outside", None, None)
        row = self.row_at(y)
        if in_gutter:
            return ("gutter", row, None) if row is not None else ("outside", None, None)
        col = self.column_at(x)
        if row is None or col is None:
            return "outside", None, None
        return "cell", row, col

    def column_border_near(self, x, tolerance):
        """Index of the column whose right border lies within tolerance of x."""
        offsets = self.column_offsets()
        if len(offsets) < 2:
            return None
        borders = self.options.row_number_width + offsets[1:]
        idx = int(np.argmin(np.abs(borders - x)))
        return idx if abs(int(borders[idx]) - x) <= tolerance else None

    def row_border_near(self, y, tolerance):
        offsets = self.row_offsets()
        if len(offsets) < 2:
            return None
        borders = self.options.header_height + offsets[1:]
        idx = int(np.argmin(np.abs(borders - y)))
        return idx if abs(int(borders[idx]) - y) <= tolerance else None

    # ---------- content-driven row heights ----------
    def measure_text_height(self, text: str, max_width: int) -> int:
        """Height of text word-wrapped into max_width; explicit newlines start new lines."""
        chars = max(int(max_width) // max(self.options.char_width, 1), 1)
        lines = 0
        for line in str(text).split("\n"):
            wrapped = textwrap.wrap(line, chars, break_long_words=False, break_on_hyphens=False)
            lines += max(len(wrapped), 1)
        return lines * self.options.line_height

    def auto_resize_row_heights(self) -> bool:
        """Grow rows to fit wrapped cell text; rows the user resized are left alone."""
        opts = self.options
        if not opts.auto_resize_row_height:
            return False
        wrapping = [
            col
            for col, key in enumerate(self.state.columns)
            if opts.wrap_text or self.state.schema[key].word_wrap
        ]
        first_changed = None
        for row in range(self.state.data_length):
            if self.state.is_row_user_resized(row):
                continue
            height = opts.default_row_height
            for col in wrapping:
                value = self.state.get_cell_data(row, col)
                if is_empty(value):
                    continue
                text = format_value(value, self.state.get_schema_for_column(col))
                content_width = int(self.state.column_widths[col]) - 2 * opts.padding
                height = max(height, self.measure_text_height(text, content_width) + 2 * opts.padding)
            height = min(height, opts.max_row_height)
            if self.state.set_auto_row_height(row, height) and first_changed is None:
                first_changed = row
        if first_changed is None:
            return False
        log.debug("Auto-sized row heights from row %s", first_changed)
        self.invalidate_rows(first_changed)
        return True
