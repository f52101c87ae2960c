import curses

import numpy as np

from surface import Surface

# basic terminal colours indexed the way curses numbers them
_PALETTE = [
    (0, 0, 0),
    (205, 0, 0),
    (0, 205, 0),
    (205, 205, 0),
    (0, 0, 238),
    (205, 0, 205),
    (0, 205, 205),
    (229, 229, 229),
]


def nearest_color(hex_color: str) -> int:
    text = hex_color.lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    try:
        rgb = tuple(int(text[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return -1
    return min(
        range(len(_PALETTE)),
        key=lambda idx: sum((a - b) ** 2 for a, b in zip(rgb, _PALETTE[idx])),
    )


class CursesSurface(Surface):
    """Character-cell surface over a curses window.

    Fills are remembered per cell so text and lines keep the background they
    are drawn over. Outlines are attributes: solid strokes reverse the cells
    on the rectangle's edge, dashed strokes underline them.
    """

    def __init__(self, window):
        self.win = window
        self._pairs = {}
        self._clips = []
        self._bg = None
        self._colors_ok = True
        try:
            curses.start_color()
            curses.use_default_colors()
        except curses.error:
            self._colors_ok = False

    def size(self):
        h, w = self.win.getmaxyx()
        return w, h

    def _pair(self, fg: int, bg: int) -> int:
        if not self._colors_ok:
            return 0
        key = (fg, bg)
        if key not in self._pairs:
            number = len(self._pairs) + 1
            try:
                curses.init_pair(number, fg, bg)
            except curses.error:
                return 0
            self._pairs[key] = number
        return curses.color_pair(self._pairs[key])

    def _clip_rect(self):
        w, h = self.size()
        x0, y0, x1, y1 = 0, 0, w, h
        for cx, cy, cw, ch in self._clips:
            x0, y0 = max(x0, cx), max(y0, cy)
            x1, y1 = min(x1, cx + cw), min(y1, cy + ch)
        return x0, y0, x1, y1

    def _spans(self, x, y, width, height):
        """Yield (row, col_start, length) for the clipped part of a rectangle."""
        x0, y0, x1, y1 = self._clip_rect()
        left, right = max(int(x), x0), min(int(x + width), x1)
        top, bottom = max(int(y), y0), min(int(y + height), y1)
        if right <= left:
            return
        for row in range(top, bottom):
            yield row, left, right - left

    def _put(self, row, col, text, attr):
        try:
            self.win.addnstr(row, col, text, len(text), attr)
        except curses.error:
            pass

    def clear(self, color):
        w, h = self.size()
        self._clips = []
        self._bg = np.full((h, w), nearest_color(color), dtype=np.int16)
        try:
            self.win.erase()
            self.win.bkgd(" ", self._pair(-1, int(self._bg[0, 0]) if h and w else -1))
        except curses.error:
            pass

    def fill_rect(self, x, y, width, height, color):
        bg = nearest_color(color)
        for row, col, n in self._spans(x, y, width, height):
            self._bg[row, col:col + n] = bg
            self._put(row, col, " " * n, self._pair(-1, bg))

    def stroke_rect(self, x, y, width, height, color, dashed=False):
        fg = nearest_color(color)
        attr_flag = curses.A_UNDERLINE if dashed else curses.A_REVERSE
        bottom = int(y + max(height, 1)) - 1
        for row, col, n in self._spans(x, y, max(width, 1), max(height, 1)):
            edges = range(col, col + n) if row in (int(y), bottom) else (int(x), int(x + width) - 1)
            for c in edges:
                if col <= c < col + n:
                    try:
                        self.win.chgat(row, c, 1, attr_flag | self._pair(fg, int(self._bg[row, c])))
                    except curses.error:
                        pass

    def line(self, x0, y0, x1, y1, color):
        # rows are one character tall, a horizontal rule would cover data
        if int(x0) != int(x1):
            return
        fg = nearest_color(color)
        for row, col, _n in self._spans(x0, min(y0, y1), 1, abs(y1 - y0)):
            self._put(row, col, "│", self._pair(fg, int(self._bg[row, col])))

    def text(self, x, y, width, height, text, color, font, align="left"):
        width = int(width)
        if width <= 0 or not text:
            return
        text = str(text).replace("\n", " ")[:width]
        if align == "right":
            text = text.rjust(width)
        elif align == "center":
            text = text.center(width)
        attr = curses.A_BOLD if "bold" in font else 0
        fg = nearest_color(color)
        x0, _y0, x1, _y1 = self._clip_rect()
        for row, col, n in self._spans(x, y, width, min(height, 1)):
            start = col - int(x)
            chunk = text[start:start + n]
            for offset, ch in enumerate(chunk):
                c = col + offset
                if x0 <= c < x1:
                    self._put(row, c, ch, attr | self._pair(fg, int(self._bg[row, c])))

    def push_clip(self, x, y, width, height):
        self._clips.append((int(x), int(y), int(width), int(height)))

    def pop_clip(self):
        if self._clips:
            self._clips.pop()

    def present(self):
        self.win.refresh()
