class ViewportAdapter:
    """Scroll container around the grid surface."""

    def get_v_scroll(self) -> int:
        raise NotImplementedError

    def set_v_scroll(self, value) -> None:
        raise NotImplementedError

    def get_h_scroll(self) -> int:
        raise NotImplementedError

    def set_h_scroll(self, value) -> None:
        raise NotImplementedError

    def bounding_rect(self) -> tuple[int, int, int, int]:
        """(x, y, width, height) of the visible area."""
        raise NotImplementedError

    def set_cursor(self, name: str) -> None:
        raise NotImplementedError

    def set_content_size(self, width, height) -> None:
        raise NotImplementedError

    def can_scroll_down(self) -> bool:
        raise NotImplementedError

    def can_scroll_right(self) -> bool:
        raise NotImplementedError


class MemoryViewport(ViewportAdapter):
    def __init__(self, width=800, height=600):
        self.width = width
        self.height = height
        self.scroll_top = 0
        self.scroll_left = 0
        self.content_width = 0
        self.content_height = 0
        self.cursor = "default"

    def _max_top(self):
        return max(self.content_height - self.height, 0)

    def _max_left(self):
        return max(self.content_width - self.width, 0)

    def get_v_scroll(self):
        return self.scroll_top

    def set_v_scroll(self, value):
        self.scroll_top = int(min(max(value, 0), self._max_top()))

    def get_h_scroll(self):
        return self.scroll_left

    def set_h_scroll(self, value):
        self.scroll_left = int(min(max(value, 0), self._max_left()))

    def bounding_rect(self):
        return 0, 0, self.width, self.height

    def set_cursor(self, name):
        self.cursor = name

    def resize(self, width, height):
        self.width = width
        self.height = height
        self.set_v_scroll(self.scroll_top)
        self.set_h_scroll(self.scroll_left)

    def set_content_size(self, width, height):
        self.content_width = width
        self.content_height = height
        self.set_v_scroll(self.scroll_top)
        self.set_h_scroll(self.scroll_left)

    def can_scroll_down(self):
        return self.scroll_top < self._max_top()

    def can_scroll_right(self):
        return self.scroll_left < self._max_left()


class TerminalViewport(MemoryViewport):
    """Scroll container for a curses window; the last `reserved_rows` lines hold the status bar."""

    def __init__(self, window, reserved_rows=1):
        self.window = window
        self.reserved_rows = reserved_rows
        h, w = window.getmaxyx()
        super().__init__(w, max(h - reserved_rows, 0))

    def bounding_rect(self):
        h, w = self.window.getmaxyx()
        h = max(h - self.reserved_rows, 0)
        if (w, h) != (self.width, self.height):
            self.resize(w, h)
        return 0, 0, self.width, self.height

    def set_cursor(self, name):
        # terminals have no pointer shapes; remembered for the status bar
        self.cursor = name
