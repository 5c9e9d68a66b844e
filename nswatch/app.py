"""
Main loop: periodic refresh and key input both post commands to one queue,
the main thread runs them one at a time.
"""

import logging
import queue
import signal
import threading
from typing import Optional

from rich.console import Console

from .canvas import LiveCanvas, RendererError
from .dashboard import REFRESH, RESIZE, Dashboard
from .kubectl import PodFetcher
from .terminal import Terminal, command_for_key

logger = logging.getLogger(__name__)


class Watcher:
    def __init__(
        self,
        dashboard: Dashboard,
        fetcher: PodFetcher,
        terminal: Optional[Terminal] = None,
        refresh_interval: float = 5.0,
    ):
        self.dashboard = dashboard
        self.fetcher = fetcher
        self.terminal = terminal
        self.refresh_interval = refresh_interval
        # put() runs inside the SIGWINCH handler; SimpleQueue.put is reentrant
        self.events: "queue.SimpleQueue[str]" = queue.SimpleQueue()
        self._stop = threading.Event()

    def refresh_once(self) -> None:
        snapshot, elapsed = self.fetcher.fetch()
        self.dashboard.set_namespaces(snapshot, elapsed)
        logger.debug("refreshed %d namespaces in %.3fs", len(snapshot), elapsed)
        self.events.put(REFRESH)

    def _refresh_loop(self) -> None:
        while True:
            try:
                self.refresh_once()
            except Exception:
                if self._stop.is_set():
                    return
                logger.exception("refresh failed, keeping previous snapshot")
            if self._stop.wait(self.refresh_interval):
                return

    def _input_loop(self) -> None:
        while not self._stop.is_set():
            key = self.terminal.read_key(timeout=0.1)
            command = command_for_key(key) if key else None
            if command:
                self.events.put(command)

    def _on_resize(self, signum, frame) -> None:
        self.events.put(RESIZE)

    def process_events(self) -> None:
        """Handle queued commands until quit."""
        while True:
            command = self.events.get()
            if not self.dashboard.handle(command):
                return

    def stop(self) -> None:
        self._stop.set()
        self.fetcher.close()

    def run(self) -> None:
        threads = [threading.Thread(target=self._refresh_loop, name="refresh", daemon=True)]
        if self.terminal is not None:
            threads.append(threading.Thread(target=self._input_loop, name="input", daemon=True))
        if hasattr(signal, "SIGWINCH"):
            signal.signal(signal.SIGWINCH, self._on_resize)

        self.dashboard.resize()
        for thread in threads:
            thread.start()
        try:
            self.process_events()
        finally:
            self.stop()


def run(
    fetcher: PodFetcher,
    group: str = "",
    context: str = "",
    refresh_interval: float = 5.0,
) -> int:
    """Run the dashboard on the real terminal; returns the process exit status."""
    console = Console()
    try:
        canvas = LiveCanvas(console)
        with Terminal() as terminal, canvas:
            board = Dashboard(canvas, group=group, context=context)
            Watcher(board, fetcher, terminal, refresh_interval).run()
    except KeyboardInterrupt:
        pass
    except RendererError as e:
        logger.error("terminal unusable: %s", e)
        console.print(f"[red]{e}[/red]")
        return 1
    console.print("[yellow]Exiting...[/yellow]")
    return 0
