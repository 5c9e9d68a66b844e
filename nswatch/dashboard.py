"""
Collapsible namespace/pod listing.

All writes to the tree, collapse flags, row index, viewport and cursor go
through ``Dashboard.mutex``. Drawing happens after the lock is released,
from a snapshot taken while holding it.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .canvas import DEFAULT, CellCanvas
from .model import Namespace, Pod, pod_emphasis
from .positions import CollapseState, Entity, Positions, build_positions
from .viewport import (
    POD_NAME_INDENT,
    STATUS_AREA_HEIGHT,
    TOP_BORDER,
    Cursor,
    Viewport,
    column_offsets,
    resolve,
)

logger = logging.getLogger(__name__)

ERROR_COLOR = "yellow"
HELP_LINE = "Collapse/expand namespace info: Left and Right for individual, 'c' and 'e' for all"

UP = "up"
DOWN = "down"
FOLD = "fold"
UNFOLD = "unfold"
FOLD_ALL = "fold-all"
UNFOLD_ALL = "unfold-all"
RESIZE = "resize"
REFRESH = "refresh"
QUIT = "quit"


class Dashboard:
    def __init__(self, canvas: CellCanvas, group: str = "", context: str = ""):
        self.canvas = canvas
        self.group = group
        self.context = context
        self.namespaces: List[Namespace] = []
        self.time_to_execute: float = 0.0
        self.collapsed = CollapseState()
        self.positions = Positions()
        self.viewport = Viewport()
        self.cursor = Cursor()
        self.mutex = threading.Lock()

    # -- state changes -------------------------------------------------

    def set_namespaces(
        self, namespaces: Iterable[Namespace], time_to_execute: Optional[float] = None
    ) -> None:
        """Swap in a new snapshot and rebuild the row index. Does not draw."""
        snapshot = list(namespaces)
        with self.mutex:
            self.namespaces = snapshot
            if time_to_execute is not None:
                self.time_to_execute = time_to_execute
            self._update_positions()

    def _update_positions(self) -> None:
        # caller holds self.mutex
        self.positions = build_positions(self.namespaces, self.collapsed)

    def update_window_size(self) -> None:
        width, height = self.canvas.size()
        with self.mutex:
            self.viewport.width = width
            self.viewport.height = height

    def resize(self) -> None:
        self.update_window_size()
        with self.mutex:
            self._update_positions()
        self.redraw_all()

    def entity_at_cursor(self) -> Optional[Entity]:
        with self.mutex:
            return resolve(self.cursor, self.viewport, self.positions)

    def _set_folded(self, folded: bool) -> bool:
        with self.mutex:
            entity = resolve(self.cursor, self.viewport, self.positions)
            if not isinstance(entity, Namespace):
                return False
            if self.collapsed.is_folded(entity.name) == folded:
                return False
            if folded:
                self.collapsed.fold(entity.name)
            else:
                self.collapsed.unfold(entity.name)
            self._update_positions()
        logger.debug("namespace %s folded=%s", entity.name, folded)
        return True

    def collapse_namespace(self) -> None:
        if self._set_folded(True):
            self.redraw_all()

    def expand_namespace(self) -> None:
        if self._set_folded(False):
            self.redraw_all()

    def _set_all_folded(self, folded: bool) -> None:
        with self.mutex:
            names = [ns.name for ns in self.positions.namespaces.values()]
            if folded:
                self.collapsed.fold_all(names)
            else:
                self.collapsed.unfold_all(names)
            self._update_positions()
        logger.debug("all %d namespaces folded=%s", len(names), folded)
        self.cursor_to_start_pos()
        self.redraw_all()

    def collapse_all(self) -> None:
        self._set_all_folded(True)

    def expand_all(self) -> None:
        self._set_all_folded(False)

    def cursor_to_start_pos(self) -> None:
        with self.mutex:
            self.viewport.scroll_offset = 0
            self.cursor = Cursor(0, TOP_BORDER)

    def move_cursor_down(self) -> None:
        with self.mutex:
            if self.cursor.y < self.viewport.bottom_border:
                self.cursor = replace(self.cursor, y=self.cursor.y + 1)
                scrolled = False
            else:
                self.viewport.scroll_offset += 1
                scrolled = True
        if scrolled:
            self.redraw_all()
        else:
            self.redraw_cursor()

    def move_cursor_up(self) -> None:
        with self.mutex:
            if self.cursor.y > TOP_BORDER:
                self.cursor = replace(self.cursor, y=self.cursor.y - 1)
                action = "cursor"
            elif self.viewport.scroll_offset > 0:
                self.viewport.scroll_offset -= 1
                action = "scroll"
            else:
                action = None
        if action == "scroll":
            self.redraw_all()
        elif action == "cursor":
            self.redraw_cursor()

    def handle(self, command: str) -> bool:
        """Run one command to completion. Returns False when the user asked to quit."""
        if command == QUIT:
            return False
        handler = {
            UP: self.move_cursor_up,
            DOWN: self.move_cursor_down,
            FOLD: self.collapse_namespace,
            UNFOLD: self.expand_namespace,
            FOLD_ALL: self.collapse_all,
            UNFOLD_ALL: self.expand_all,
            RESIZE: self.resize,
            REFRESH: self.redraw_all,
        }.get(command)
        if handler is None:
            logger.debug("ignoring unknown command %r", command)
        else:
            handler()
        return True

    # -- drawing ---------------------------------------------------------

    def _snapshot(self) -> Tuple[Positions, Viewport, Cursor]:
        with self.mutex:
            return self.positions, replace(self.viewport), replace(self.cursor)

    def redraw_all(self) -> None:
        positions, viewport, _ = self._snapshot()
        self.canvas.clear()
        self.print_headers(positions)
        self.print_main_info(positions, viewport)
        self.adjust_cursor_position()
        self.print_status_area(positions)
        self.canvas.flush()

    def redraw_cursor(self) -> None:
        with self.mutex:
            x, y = self.cursor.x, self.cursor.y
        self.canvas.set_cursor(x, y)
        self.print_status_area()
        self.canvas.flush()

    def adjust_cursor_position(self) -> None:
        with self.mutex:
            y = self.viewport.clamp(self.cursor.y)
            self.cursor = replace(self.cursor, y=y)
            x = self.cursor.x
        self.canvas.set_cursor(x, y)

    def print_headers(self, positions: Positions) -> None:
        stamp = datetime.now().astimezone().strftime("%a, %d %b %Y %H:%M:%S %z")
        ready_x, status_x, restarts_x, age_x = column_offsets(positions)
        self.canvas.print_line(
            f"{stamp}    Time to execute: {self.time_to_execute:.3f}s", 0, 0
        )
        group_line = f"Group: {self.group}"
        if self.context:
            group_line += f"    Context: {self.context}"
        self.canvas.print_line(group_line, 0, 1)
        self.canvas.print_line("NAMESPACE", 0, 3)
        self.canvas.print_line("NAME", POD_NAME_INDENT, 4)
        self.canvas.print_line("READY", ready_x, 4)
        self.canvas.print_line("STATUS", status_x, 4)
        self.canvas.print_line("RESTARTS", restarts_x, 4)
        self.canvas.print_line("AGE", age_x, 4)

    def print_main_info(self, positions: Positions, viewport: Viewport) -> None:
        rows = viewport.visible_rows(positions)
        for y, _, entity in rows:
            if isinstance(entity, Namespace):
                self.canvas.print_line(entity.name, 0, y)
            elif isinstance(entity, Pod):
                self.print_pod_info(entity, y, positions)
            else:
                self.canvas.print_line(entity, POD_NAME_INDENT, y, ERROR_COLOR, DEFAULT)
        with self.mutex:
            self.viewport.bottom_border = TOP_BORDER + len(rows) - 1

    def print_pod_info(self, pod: Pod, y: int, positions: Positions) -> None:
        fg = pod_emphasis(pod).color
        ready_x, status_x, restarts_x, age_x = column_offsets(positions)
        self.canvas.print_line(pod.name, POD_NAME_INDENT, y, fg, DEFAULT)
        self.canvas.print_line(pod.ready_string(), ready_x, y, fg, DEFAULT)
        self.canvas.print_line(pod.status, status_x, y, fg, DEFAULT)
        self.canvas.print_line(pod.restarts, restarts_x, y, fg, DEFAULT)
        self.canvas.print_line(pod.age, age_x, y, fg, DEFAULT)

    def clear_status_area(self, width: int, height: int) -> None:
        for y in range(height - STATUS_AREA_HEIGHT, height - 1):
            self.canvas.clear_line(0, y, width)

    def describe(self, entity: Optional[Entity], positions: Positions) -> List[str]:
        """Up to three status-area lines about the entity under the cursor."""
        if isinstance(entity, Namespace):
            state = "folded" if self.collapsed.is_folded(entity.name) else "expanded"
            lines = [
                f"Namespace: {entity.name}",
                f"Pods: {len(entity.pods)} ({state})",
            ]
            if entity.has_error:
                lines.append(f"Error: {entity.error}")
            return lines
        if isinstance(entity, Pod):
            owner = positions.namespace_of(entity)
            where = entity.namespace
            if owner is not None and entity in owner.pods:
                where = f"{owner.name} ({owner.pods.index(entity) + 1} of {len(owner.pods)})"
            return [
                f"Pod: {entity.name}",
                f"Namespace: {where}",
                f"Ready: {entity.ready_string()}  Status: {entity.status}  "
                f"Restarts: {entity.restarts}  Age: {entity.age}",
            ]
        if isinstance(entity, str):
            return [f"Error: {entity}"]
        return []

    def print_status_area(self, positions: Optional[Positions] = None) -> None:
        """Describe the cursor entity using the same row index the body was drawn from."""
        with self.mutex:
            if positions is None:
                positions = self.positions
            entity = resolve(self.cursor, self.viewport, positions)
            width, height = self.viewport.width, self.viewport.height
            lines = self.describe(entity, positions)
        self.clear_status_area(width, height)
        for offset, line in enumerate(lines):
            self.canvas.print_line(line, 0, height - 4 + offset)
        self.canvas.print_line(HELP_LINE, 0, height - 1)
