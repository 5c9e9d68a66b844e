"""Screen geometry: scrolling window over the row index and the cursor inside it."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .positions import Entity, Positions

# rows 0-4 hold the header, the last STATUS_AREA_HEIGHT rows the status area
TOP_BORDER = 5
STATUS_AREA_HEIGHT = 5

READY_COL_WIDTH = 7
RESTARTS_COL_WIDTH = 10
POD_NAME_INDENT = 3


@dataclass
class Cursor:
    x: int = 0
    y: int = TOP_BORDER


@dataclass
class Viewport:
    width: int = 0
    height: int = 0
    scroll_offset: int = 0
    bottom_border: int = TOP_BORDER

    @property
    def body_end(self) -> int:
        """First screen row that belongs to the status area."""
        return self.height - STATUS_AREA_HEIGHT

    @property
    def drawable_height(self) -> int:
        return max(0, self.body_end - TOP_BORDER)

    def index_at(self, y: int) -> int:
        return y - TOP_BORDER + self.scroll_offset

    def screen_row(self, index: int) -> int:
        return index - self.scroll_offset + TOP_BORDER

    def visible_rows(self, positions: Positions) -> List[Tuple[int, int, Entity]]:
        """
        Rows to draw as (screen y, row index, entity).
        Stops at the first index without an entity or when the body is full.
        """
        rows: List[Tuple[int, int, Entity]] = []
        index = self.scroll_offset
        y = TOP_BORDER
        while y < self.body_end:
            entity = positions.entity_at(index)
            if entity is None:
                break
            rows.append((y, index, entity))
            index += 1
            y += 1
        return rows

    def clamp(self, y: int) -> int:
        if y > self.bottom_border:
            y = self.bottom_border
        return max(y, TOP_BORDER)


def column_offsets(positions: Positions) -> Tuple[int, int, int, int]:
    """x positions of the ready, status, restarts and age columns."""
    ready_x = positions.name_width
    status_x = ready_x + READY_COL_WIDTH
    restarts_x = status_x + positions.status_width
    age_x = restarts_x + RESTARTS_COL_WIDTH
    return ready_x, status_x, restarts_x, age_x


def resolve(cursor: Cursor, viewport: Viewport, positions: Positions) -> Optional[Entity]:
    """Entity under the cursor, or None past the end of the list."""
    return positions.entity_at(viewport.index_at(cursor.y))
