# ~/Apps/vgrid/grid_app.py
import curses
import time

from curses_surface import CursesSurface
from grid_config import TERMINAL_OPTIONS, build_options, load_config
from logging_utils import get_logger
from spreadsheet import Spreadsheet
from viewport import TerminalViewport

log = get_logger("app")

KEY_NAMES = {
    curses.KEY_UP: ("ArrowUp", False),
    curses.KEY_DOWN: ("ArrowDown", False),
    curses.KEY_LEFT: ("ArrowLeft", False),
    curses.KEY_RIGHT: ("ArrowRight", False),
    curses.KEY_SR: ("ArrowUp", True),
    curses.KEY_SF: ("ArrowDown", True),
    curses.KEY_SLEFT: ("ArrowLeft", True),
    curses.KEY_SRIGHT: ("ArrowRight", True),
    curses.KEY_ENTER: ("Enter", False),
    10: ("Enter", False),
    13: ("Enter", False),
    9: ("Tab", False),
    curses.KEY_BTAB: ("Tab", True),
    27: ("Escape", False),
    curses.KEY_BACKSPACE: ("Backspace", False),
    127: ("Backspace", False),
    8: ("Backspace", False),
    curses.KEY_DC: ("Delete", False),
}

CTRL_R = 18
WHEEL_STEP = 3


class GridApp:
    def __init__(self, stdscr, schema, rows, handler=None, path=None):
        self.stdscr = stdscr
        self.handler = handler
        self.path = path
        self.status_msg = ""
        self.status_msg_until = 0.0
        self.exit_requested = False

        options = build_options(**{**TERMINAL_OPTIONS, **load_config()})
        self.surface = CursesSurface(stdscr)
        self.viewport = TerminalViewport(stdscr, reserved_rows=1)
        self.sheet = Spreadsheet(schema, rows, options, surface=self.surface, viewport=self.viewport)

    def _set_status(self, msg, seconds=3):
        self.status_msg = msg
        self.status_msg_until = time.time() + seconds

    # ---------------- UI ----------------

    def _draw_editor(self):
        state = self.sheet.state
        editor = state.active_editor
        if editor is None:
            return
        bounds = self.sheet.dims.get_cell_bounds(editor.row, editor.col)
        if bounds is None:
            return
        dims = self.sheet.dims
        x, y = int(dims.to_view_x(bounds.x)), int(dims.to_view_y(bounds.y))
        w = int(bounds.width)
        try:
            self.stdscr.addnstr(y, x, editor.buffer[-w:].ljust(w), w, curses.A_REVERSE)
            if self.sheet.editing.is_dropdown_visible():
                for i, opt in enumerate(self.sheet.editing.dropdown_options()):
                    attr = curses.A_REVERSE if i == editor.dropdown_index else curses.A_NORMAL
                    self.stdscr.addnstr(y + 1 + i, x, str(opt.name).ljust(w), w, attr)
        except curses.error:
            pass

    def _draw_status(self):
        h, w = self.stdscr.getmaxyx()
        if self.status_msg and time.time() < self.status_msg_until:
            text = self.status_msg
        else:
            sheet = self.sheet
            selected = sheet.get_selected_cell()
            where = f"{selected[0] + 1}:{selected[1]}" if selected else "-"
            text = f" {self.path or '[scratch]'}  {where}  rows {sheet.row_count}"
        try:
            self.stdscr.addnstr(h - 1, 0, text.ljust(w), max(w - 1, 0), curses.A_REVERSE)
        except curses.error:
            pass

    def redraw(self):
        self.sheet.draw()
        self._draw_editor()
        self._draw_status()
        self.stdscr.refresh()

    # ---------------- actions ----------------

    def _save(self):
        if self.handler is None:
            self._set_status("No file to save to", 3)
            return False
        try:
            self.handler.save(self.sheet.get_data(), self.sheet.get_columns())
        except (OSError, ValueError) as e:
            log.exception("Save failed")
            self._set_status(f"Save failed: {e}", 4)
            return False
        self._set_status(f"Saved {self.path}", 3)
        return True

    def _handle_mouse(self):
        try:
            _id, x, y, _z, bstate = curses.getmouse()
        except curses.error:
            return
        inter = self.sheet.interaction
        shift = bool(bstate & curses.BUTTON_SHIFT)
        ctrl = bool(bstate & curses.BUTTON_CTRL)
        wheel_down = getattr(curses, "BUTTON5_PRESSED", 0)
        if bstate & curses.BUTTON1_DOUBLE_CLICKED:
            inter.double_click(x, y)
        elif bstate & curses.BUTTON1_PRESSED:
            inter.pointer_down(x, y, shift=shift, ctrl=ctrl)
        elif bstate & curses.BUTTON1_RELEASED:
            inter.pointer_move(x, y)
            inter.pointer_up(x, y)
        elif bstate & curses.BUTTON1_CLICKED:
            inter.pointer_down(x, y, shift=shift, ctrl=ctrl)
            inter.pointer_up(x, y)
        elif bstate & curses.BUTTON4_PRESSED:
            inter.move_scroll(0, -WHEEL_STEP)
        elif wheel_down and bstate & wheel_down:
            inter.move_scroll(0, WHEEL_STEP)
        elif bstate & curses.REPORT_MOUSE_POSITION:
            inter.pointer_move(x, y)

    def handle_key(self, ch):
        sheet = self.sheet
        inter = sheet.interaction

        if ch == curses.KEY_MOUSE:
            self._handle_mouse()
            return
        if ch == curses.KEY_RESIZE:
            sheet.draw()
            return

        if ch in KEY_NAMES:
            name, shift = KEY_NAMES[ch]
            inter.handle_key(name, shift=shift)
            return

        if sheet.editing.is_editor_active():
            if 32 <= ch < 0x110000:
                inter.handle_key(chr(ch))
            return

        if ch == ord("q"):
            self.exit_requested = True
        elif ch == ord("y"):
            if inter.copy():
                self._set_status("Copied", 2)
        elif ch == ord("p"):
            inter.paste()
        elif ch == ord("d"):
            inter.handle_key("Delete")
        elif ch == ord("u"):
            if not sheet.undo():
                self._set_status("Nothing to undo", 2)
        elif ch == CTRL_R:
            if not sheet.redo():
                self._set_status("Nothing to redo", 2)
        elif ch == ord("a"):
            index = sheet.add_row()
            self._set_status(f"Added row {index + 1}", 2)
        elif ch == ord("w"):
            self._save()

    # ---------------- main loop ----------------

    def run(self):
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        curses.mousemask(curses.ALL_MOUSE_EVENTS | curses.REPORT_MOUSE_POSITION)
        curses.mouseinterval(200)
        self.stdscr.keypad(True)
        self.stdscr.clear()
        self.redraw()

        while not self.exit_requested:
            ch = self.stdscr.getch()
            if ch == -1:
                continue
            self.handle_key(ch)
            self.redraw()
