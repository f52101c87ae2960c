from contextlib import contextmanager
from typing import List

from grid_types import CellUpdateEvent
from logging_utils import get_logger

log = get_logger("history")


class HistoryManager:
    """Undo/redo stacks of cell-update batches.

    Each entry is the list of CellUpdateEvent a user action produced; undo
    writes `old_data` back, redo writes `data`. Writes made by the host
    application (inside `parent_app_update()`) are not recorded.
    """

    def __init__(self, state, max_depth: int = 50):
        self.state = state
        self.max_depth = max_depth
        self.undo_stack: List[List[CellUpdateEvent]] = []
        self.redo_stack: List[List[CellUpdateEvent]] = []
        self._parent_depth = 0
        self._applying = False

    # ---------- parent-app writes ----------
    @contextmanager
    def parent_app_update(self):
        self._parent_depth += 1
        try:
            yield
        finally:
            self._parent_depth -= 1

    def is_parent_app_update(self) -> bool:
        return self._parent_depth > 0

    # ---------- recording ----------
    def record_changes(self, events) -> bool:
        if self._applying or self.is_parent_app_update() or not events:
            return False
        batch = [
            CellUpdateEvent(e.row_index, list(e.column_keys), dict(e.data), dict(e.old_data))
            for e in events
        ]
        self.undo_stack.append(batch)
        if len(self.undo_stack) > self.max_depth:
            self.undo_stack.pop(0)
        self.redo_stack.clear()
        return True

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()

    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    # ---------- undo/redo ----------
    def _apply(self, batch, use_old: bool) -> List[CellUpdateEvent]:
        applied = []
        self._applying = True
        try:
            for event in batch:
                if not 0 <= event.row_index < self.state.data_length:
                    log.warning("Skipping history entry for missing row %s", event.row_index)
                    continue
                target = event.old_data if use_old else event.data
                previous = {}
                for key in event.column_keys:
                    col = self.state.column_index(key)
                    if col is None:
                        continue
                    previous[key] = self.state.update_cell_internal(event.row_index, col, target.get(key))
                self.state.update_disabled_states_for_row(event.row_index)
                applied.append(
                    CellUpdateEvent(
                        event.row_index,
                        list(previous),
                        self.state.get_row_data(event.row_index),
                        previous,
                    )
                )
        finally:
            self._applying = False
        return applied

    def undo(self) -> List[CellUpdateEvent]:
        if not self.undo_stack:
            log.info("Nothing to undo")
            return []
        batch = self.undo_stack.pop()
        self.redo_stack.append(batch)
        applied = self._apply(batch, use_old=True)
        log.info("Undone (%d more)", len(self.undo_stack))
        return applied

    def redo(self) -> List[CellUpdateEvent]:
        if not self.redo_stack:
            log.info("Nothing to redo")
            return []
        batch = self.redo_stack.pop()
        self.undo_stack.append(batch)
        if len(self.undo_stack) > self.max_depth:
            self.undo_stack.pop(0)
        applied = self._apply(batch, use_old=False)
        log.info("Redone (%d more)", len(self.redo_stack))
        return applied
