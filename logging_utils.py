from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "vgrid"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(ROOT_LOGGER_NAME).getChild(name)


def set_verbose(verbose: bool) -> None:
    """Toggle interaction tracing for every grid logger."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def configure_logging(*, debug: bool = False, log_path: str | None = None) -> None:
    """Configure app-wide logging.

    - Logs to a rotating file (curses owns the terminal, so no console handler)
    - DEBUG level when debug is enabled
    """

    level = logging.DEBUG if debug else logging.INFO

    if log_path is None:
        from grid_config import CONFIG_DIR

        log_dir = Path(CONFIG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = str(log_dir / "vgrid.log")

    root = logging.getLogger()
    root.setLevel(level)
    set_verbose(debug)

    # Avoid duplicating handlers if main() is called more than once.
    if getattr(root, "_vgrid_configured", False):
        return

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    root._vgrid_configured = True  # type: ignore[attr-defined]
