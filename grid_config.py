import json
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Optional

from logging_utils import get_logger

log = get_logger("config")

HOME = os.path.expanduser("~")
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
CONFIG_HOME = XDG_CONFIG_HOME if XDG_CONFIG_HOME else os.path.join(HOME, ".config")
CONFIG_DIR = os.path.join(CONFIG_HOME, "vgrid")
CONFIG_JSON = os.path.join(CONFIG_DIR, "config.json")


def _never_disabled(_row_index, _column_key, _row_data):
    return False


@dataclass
class GridOptions:
    # sizes
    default_column_width: int = 150
    default_row_height: int = 30
    min_column_width: int = 50
    max_column_width: int = 500
    min_row_height: int = 20
    max_row_height: int = 150
    header_height: int = 35
    row_number_width: int = 50
    padding: int = 6
    fill_handle_size: int = 10
    resize_handle_size: int = 5
    line_height: int = 18
    char_width: int = 8

    # fonts and colours
    font: str = "14px Inter, sans-serif"
    header_font: str = "bold 14px Inter, sans-serif"
    background_color: str = "#ffffff"
    text_color: str = "#111827"
    header_text_color: str = "#ffffff"
    header_bg_color: str = "#4b5563"
    selected_header_bg_color: str = "#1d4ed8"
    grid_line_color: str = "#d1d5db"
    row_number_bg_color: str = "#f3f4f6"
    selected_row_number_bg_color: str = "#dbeafe"
    selected_row_bg_color: str = "#eff6ff"
    selected_range_bg_color: str = "#e0e7ff"
    disabled_cell_bg_color: str = "#e5e7eb"
    disabled_text_color: str = "#9ca3af"
    error_cell_bg_color: str = "#fee2e2"
    error_text_color: str = "#b91c1c"
    highlight_border_color: str = "#3b82f6"
    fill_handle_color: str = "#3b82f6"
    drag_range_border_color: str = "#6b7280"
    copy_highlight_border_color: str = "#059669"

    # behaviour
    temporary_error_timeout: float = 0.0
    paste_debounce: float = 1.0
    scroll_settle: float = 0.1
    auto_add_new_row: bool = False
    auto_resize_row_height: bool = False
    wrap_text: bool = False
    history_max_depth: int = 50
    verbose: bool = False
    is_cell_disabled: Callable[[int, str, dict], bool] = _never_disabled

    # notifications
    on_cells_update: Optional[Callable[[list], None]] = None
    on_row_deleted: Optional[Callable[[list], None]] = None
    on_cell_selected: Optional[Callable[[int, str, dict], None]] = None
    on_editor_open: Optional[Callable[..., None]] = None


OPTION_NAMES = {f.name for f in fields(GridOptions)}
_SCALAR_DEFAULTS = {
    f.name: f.default
    for f in fields(GridOptions)
    if isinstance(f.default, (bool, int, float, str))
}

# Character-cell sizing for the curses front end.
TERMINAL_OPTIONS = {
    "default_column_width": 14,
    "default_row_height": 1,
    "min_column_width": 4,
    "max_column_width": 60,
    "min_row_height": 1,
    "max_row_height": 6,
    "header_height": 1,
    "row_number_width": 6,
    "padding": 1,
    "fill_handle_size": 1,
    "resize_handle_size": 0,
    "line_height": 1,
    "char_width": 1,
    "background_color": "#000000",
    "text_color": "#ffffff",
    "header_text_color": "#000000",
    "header_bg_color": "#00ffff",
    "selected_header_bg_color": "#ffff00",
    "grid_line_color": "#0000ff",
    "row_number_bg_color": "#000000",
    "selected_row_number_bg_color": "#0000ff",
    "selected_row_bg_color": "#0000ff",
    "selected_range_bg_color": "#0000ff",
    "disabled_cell_bg_color": "#000000",
    "disabled_text_color": "#ff00ff",
    "error_cell_bg_color": "#ff0000",
    "error_text_color": "#ffff00",
    "highlight_border_color": "#00ffff",
    "fill_handle_color": "#ffff00",
    "drag_range_border_color": "#ffff00",
    "copy_highlight_border_color": "#00ff00",
}


def build_options(base: Optional[GridOptions] = None, **overrides: Any) -> GridOptions:
    known = {}
    for name, value in overrides.items():
        if name not in OPTION_NAMES:
            log.warning("Ignoring unknown grid option %r", name)
            continue
        known[name] = value
    opts = replace(base or GridOptions(), **known)
    if not callable(opts.is_cell_disabled):
        raise TypeError("is_cell_disabled must be callable")
    return opts


def _coerce_option(name: str, value: Any):
    default = _SCALAR_DEFAULTS[name]
    if isinstance(default, bool):
        return value if isinstance(value, bool) else None
    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return type(default)(value)
    return value if isinstance(value, str) else None


def ensure_config_dirs():
    os.makedirs(CONFIG_DIR, exist_ok=True)


def load_config():
    """Read scalar grid option overrides from config.json (`{"grid": {...}}`)."""
    cfg = {}
    if not os.path.exists(CONFIG_JSON):
        return cfg
    try:
        with open(CONFIG_JSON, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("Could not read %s: %s", CONFIG_JSON, exc)
        return cfg

    grid = data.get("grid") if isinstance(data, dict) else None
    if not isinstance(grid, dict):
        return cfg
    for name, value in grid.items():
        if name not in _SCALAR_DEFAULTS:
            continue
        coerced = _coerce_option(name, value)
        if coerced is None:
            log.warning("Ignoring config option %r with invalid value %r", name, value)
            continue
        cfg[name] = coerced
    return cfg
