import io
import os
import signal
import threading
import time

import pytest
from rich.console import Console

from nswatch import app
from nswatch import dashboard as dash
from nswatch.app import Watcher
from nswatch.canvas import CellCanvas, LiveCanvas, RendererError
from nswatch.dashboard import Dashboard
from nswatch.model import Namespace, Pod


class FakeFetcher:
    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.calls = 0
        self.closed = False
        self.fetched = threading.Event()

    def fetch(self):
        self.calls += 1
        self.fetched.set()
        return list(self.snapshot), 0.25

    def close(self):
        self.closed = True


@pytest.fixture
def board() -> Dashboard:
    return Dashboard(CellCanvas(100, 24), group="test")


@pytest.fixture
def snapshot():
    return [Namespace("default", pods=(Pod("web", "default", 1, 1, "Running"),))]


def test_refresh_once_swaps_snapshot_and_queues_redraw(board: Dashboard, snapshot) -> None:
    watcher = Watcher(board, FakeFetcher(snapshot))

    watcher.refresh_once()

    assert board.namespaces == snapshot
    assert board.time_to_execute == 0.25
    assert board.positions.last_index == 1
    assert watcher.events.get_nowait() == dash.REFRESH


def test_process_events_runs_until_quit(board: Dashboard, snapshot) -> None:
    watcher = Watcher(board, FakeFetcher(snapshot))
    board.resize()
    watcher.refresh_once()
    watcher.events.put(dash.DOWN)
    watcher.events.put(dash.QUIT)
    watcher.events.put(dash.DOWN)

    watcher.process_events()

    assert board.entity_at_cursor().name == "web"
    assert board.canvas.row_text(6)[3:6] == "web"
    # the command after quit is left unprocessed
    assert watcher.events.get_nowait() == dash.DOWN


def test_run_starts_refresh_and_stops_on_quit(monkeypatch, board: Dashboard, snapshot) -> None:
    handlers = {}
    monkeypatch.setattr(app.signal, "signal", lambda signum, handler: handlers.setdefault(signum, handler))
    fetcher = FakeFetcher(snapshot)
    watcher = Watcher(board, fetcher, refresh_interval=60)
    watcher.events.put(dash.QUIT)

    watcher.run()

    assert fetcher.fetched.wait(timeout=5)
    assert watcher._stop.is_set()
    assert fetcher.closed
    assert board.viewport.height == 24
    if hasattr(app.signal, "SIGWINCH"):
        handlers[app.signal.SIGWINCH](app.signal.SIGWINCH, None)
        assert watcher.events.get_nowait() == dash.RESIZE


@pytest.mark.skipif(
    not hasattr(signal, "SIGWINCH") or not hasattr(signal, "pthread_kill"),
    reason="needs SIGWINCH",
)
def test_resize_signal_lands_while_main_thread_waits(board: Dashboard, snapshot) -> None:
    watcher = Watcher(board, FakeFetcher(snapshot))
    board.resize()
    board.canvas.height = 30
    main_ident = threading.main_thread().ident

    def resize_then_quit():
        time.sleep(0.1)
        signal.pthread_kill(main_ident, signal.SIGWINCH)
        time.sleep(0.3)
        watcher.events.put(dash.QUIT)

    previous = signal.signal(signal.SIGWINCH, watcher._on_resize)
    sender = threading.Thread(target=resize_then_quit)
    sender.start()
    try:
        watcher.process_events()
    finally:
        sender.join(timeout=5)
        signal.signal(signal.SIGWINCH, previous)

    assert board.viewport.height == 30
    assert board.canvas.row_text(29) == dash.HELP_LINE


def test_resize_handler_does_not_block_on_busy_queue(board: Dashboard, snapshot) -> None:
    watcher = Watcher(board, FakeFetcher(snapshot))
    finished = threading.Event()

    def flood():
        for _ in range(2000):
            watcher.events.put(dash.REFRESH)
        finished.set()

    filler = threading.Thread(target=flood)
    filler.start()
    for _ in range(200):
        watcher._on_resize(getattr(signal, "SIGWINCH", 28), None)
    filler.join(timeout=5)

    assert finished.is_set()
    seen = []
    while not watcher.events.empty():
        seen.append(watcher.events.get_nowait())
    assert seen.count(dash.RESIZE) == 200
    assert seen.count(dash.REFRESH) == 2000


class FakeTerminal:
    def __init__(self, calls):
        self.calls = calls

    def __enter__(self):
        self.calls.append("raw on")
        return self

    def __exit__(self, *exc):
        self.calls.append("raw off")

    def read_key(self, timeout=0.1):
        time.sleep(timeout)
        return ""


def test_run_exits_1_and_restores_terminal_on_renderer_error(monkeypatch, snapshot) -> None:
    calls = []

    class BrokenCanvas(LiveCanvas):
        def __init__(self, console):
            super().__init__(Console(file=io.StringIO(), width=60, height=20))

        def start(self):
            calls.append("start")
            super().start()

        def stop(self):
            calls.append("stop")
            super().stop()

        def flush(self):
            raise RendererError("terminal write failed: gone")

    monkeypatch.setattr(app, "LiveCanvas", BrokenCanvas)
    monkeypatch.setattr(app, "Terminal", lambda: FakeTerminal(calls))
    monkeypatch.setattr(app.signal, "signal", lambda signum, handler: None)
    fetcher = FakeFetcher(snapshot)

    status = app.run(fetcher, group="g")

    assert status == 1
    assert calls == ["raw on", "start", "stop", "raw off"]
    assert fetcher.closed
