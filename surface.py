class Surface:
    """Drawing target for the renderer.

    Coordinates are viewport coordinates in the surface's own units
    (pixels for a canvas, character cells for a terminal).
    """

    def size(self) -> tuple[int, int]:
        raise NotImplementedError

    def clear(self, color: str) -> None:
        raise NotImplementedError

    def fill_rect(self, x, y, width, height, color: str) -> None:
        raise NotImplementedError

    def stroke_rect(self, x, y, width, height, color: str, dashed: bool = False) -> None:
        raise NotImplementedError

    def line(self, x0, y0, x1, y1, color: str) -> None:
        raise NotImplementedError

    def text(self, x, y, width, height, text: str, color: str, font: str, align: str = "left") -> None:
        raise NotImplementedError

    def push_clip(self, x, y, width, height) -> None:
        raise NotImplementedError

    def pop_clip(self) -> None:
        raise NotImplementedError

    def present(self) -> None:
        pass


class RecordingSurface(Surface):
    """Keeps every draw call as a tuple; used headless and in tests."""

    def __init__(self, width=800, height=600):
        self.width = width
        self.height = height
        self.calls = []
        self._clips = []

    def size(self):
        return self.width, self.height

    def resize(self, width, height):
        self.width = width
        self.height = height

    def clear(self, color):
        self.calls = [("clear", color)]
        self._clips = []

    def fill_rect(self, x, y, width, height, color):
        self.calls.append(("fill_rect", x, y, width, height, color))

    def stroke_rect(self, x, y, width, height, color, dashed=False):
        self.calls.append(("stroke_rect", x, y, width, height, color, dashed))

    def line(self, x0, y0, x1, y1, color):
        self.calls.append(("line", x0, y0, x1, y1, color))

    def text(self, x, y, width, height, text, color, font, align="left"):
        self.calls.append(("text", x, y, width, height, text, color, font, align))

    def push_clip(self, x, y, width, height):
        self._clips.append((x, y, width, height))
        self.calls.append(("push_clip", x, y, width, height))

    def pop_clip(self):
        if self._clips:
            self._clips.pop()
        self.calls.append(("pop_clip",))

    def texts(self):
        return [c[5] for c in self.calls if c[0] == "text"]

    def of_kind(self, kind):
        return [c for c in self.calls if c[0] == kind]
