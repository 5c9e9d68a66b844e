"""
Character-cell drawing surface.

The dashboard draws into a fixed grid of (char, fg, bg) cells and flushes
it once per frame. CellCanvas keeps the grid in memory; LiveCanvas also
pushes every flushed frame to the terminal through rich.
"""

import logging
from typing import List, Optional, Tuple

from rich.console import Console
from rich.live import Live
from rich.text import Text

logger = logging.getLogger(__name__)

DEFAULT = "default"
CURSOR_STYLE = "reverse bold"

Cell = Tuple[str, str, str]


class RendererError(RuntimeError):
    """The drawing surface is unavailable or a write to it failed."""


def _style(fg: str, bg: str) -> str:
    if bg == DEFAULT:
        return fg
    return f"{fg} on {bg}"


class CellCanvas:
    def __init__(self, width: int = 80, height: int = 24):
        self.width = width
        self.height = height
        self.cursor: Optional[Tuple[int, int]] = None
        self.flush_count = 0
        self._cells: List[List[Cell]] = []
        self._blank()

    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def _blank(self) -> None:
        self._cells = [
            [(" ", DEFAULT, DEFAULT) for _ in range(self.width)]
            for _ in range(self.height)
        ]

    def clear(self) -> None:
        self.width, self.height = self.size()
        self._blank()

    def set_cell(self, x: int, y: int, ch: str, fg: str = DEFAULT, bg: str = DEFAULT) -> None:
        if 0 <= y < len(self._cells) and 0 <= x < len(self._cells[y]):
            self._cells[y][x] = (ch, fg, bg)

    def print_line(self, line: str, x: int, y: int, fg: str = DEFAULT, bg: str = DEFAULT) -> None:
        for k, ch in enumerate(line):
            self.set_cell(x + k, y, ch, fg, bg)

    def clear_line(self, x: int, y: int, end_x: int) -> None:
        for i in range(x, end_x + 1):
            self.set_cell(i, y, " ")

    def set_cursor(self, x: int, y: int) -> None:
        self.cursor = (x, y)

    def row_text(self, y: int) -> str:
        if not 0 <= y < len(self._cells):
            return ""
        return "".join(cell[0] for cell in self._cells[y]).rstrip()

    def style_at(self, x: int, y: int) -> Tuple[str, str]:
        _, fg, bg = self._cells[y][x]
        return fg, bg

    def render(self) -> Text:
        """Build one rich Text frame from the grid, highlighting the cursor row."""
        frame = Text(no_wrap=True, overflow="crop")
        for y, row in enumerate(self._cells):
            line = Text(no_wrap=True)
            run = ""
            run_style = None
            for ch, fg, bg in row:
                style = _style(fg, bg)
                if style != run_style and run:
                    line.append(run, style=run_style)
                    run = ""
                run_style = style
                run += ch
            if run:
                line.append(run, style=run_style)
            if self.cursor is not None and self.cursor[1] == y:
                line.stylize(CURSOR_STYLE)
            if y:
                frame.append("\n")
            frame.append_text(line)
        return frame

    def flush(self) -> None:
        self.flush_count += 1


class LiveCanvas(CellCanvas):
    """CellCanvas bound to the terminal: sized from the console, flushed through rich Live."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._live: Optional[Live] = None
        width, height = self.size()
        super().__init__(width, height)

    def size(self) -> Tuple[int, int]:
        try:
            width, height = self.console.size
        except Exception as e:
            raise RendererError(f"terminal size unavailable: {e}") from e
        return width, height

    def start(self) -> None:
        try:
            self._live = Live(
                Text(""),
                console=self.console,
                screen=True,
                auto_refresh=False,
                transient=True,
            )
            self._live.start()
        except Exception as e:
            raise RendererError(f"cannot open terminal screen: {e}") from e

    def stop(self) -> None:
        if self._live is None:
            return
        try:
            self._live.stop()
        except Exception:
            logger.exception("failed to restore terminal screen")
        self._live = None

    def flush(self) -> None:
        if self._live is None:
            raise RendererError("flush called before the screen was started")
        try:
            self._live.update(self.render(), refresh=True)
        except Exception as e:
            raise RendererError(f"terminal write failed: {e}") from e
        super().flush()

    def __enter__(self) -> "LiveCanvas":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
