"""Keyboard input from a cbreak-mode terminal."""

import os
import select
import sys
import termios
import tty
from typing import Dict, Optional

from . import dashboard

KEY_COMMANDS: Dict[str, str] = {
    "UP": dashboard.UP,
    "DOWN": dashboard.DOWN,
    "LEFT": dashboard.FOLD,
    "RIGHT": dashboard.UNFOLD,
    "c": dashboard.FOLD_ALL,
    "e": dashboard.UNFOLD_ALL,
    "q": dashboard.QUIT,
}

ESCAPE_SEQUENCES: Dict[str, str] = {
    "\x1b[A": "UP",
    "\x1bOA": "UP",
    "\x1b[B": "DOWN",
    "\x1bOB": "DOWN",
    "\x1b[D": "LEFT",
    "\x1bOD": "LEFT",
    "\x1b[C": "RIGHT",
    "\x1bOC": "RIGHT",
    "\x1b": "ESC",
}

VI_KEYS: Dict[str, str] = {
    "k": "UP",
    "K": "UP",
    "j": "DOWN",
    "J": "DOWN",
    "h": "LEFT",
    "H": "LEFT",
    "l": "RIGHT",
    "L": "RIGHT",
}


def command_for_key(key: str) -> Optional[str]:
    return KEY_COMMANDS.get(key)


class Terminal:
    def __init__(self, fd: Optional[int] = None):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self._orig_term_attrs = None

    def enable_raw_mode(self) -> None:
        try:
            self._orig_term_attrs = termios.tcgetattr(self.fd)
            # cbreak keeps Ctrl-C working while delivering keys immediately
            tty.setcbreak(self.fd)
        except termios.error:
            self._orig_term_attrs = None

    def disable_raw_mode(self) -> None:
        if self._orig_term_attrs is None:
            return
        try:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._orig_term_attrs)
        except termios.error:
            pass
        self._orig_term_attrs = None

    def _read_char(self, timeout: float) -> str:
        rlist, _, _ = select.select([self.fd], [], [], timeout)
        if not rlist:
            return ""
        return os.read(self.fd, 1).decode("utf-8", errors="ignore")

    def read_key(self, timeout: float = 0.1) -> str:
        """Wait up to `timeout` seconds for one key. Returns "" when none arrived."""
        ch1 = self._read_char(timeout)
        if ch1 in VI_KEYS:
            return VI_KEYS[ch1]
        if ch1 != "\x1b":
            return ch1

        seq = ch1
        for _ in range(2):
            ch = self._read_char(0.01)
            if not ch:
                break
            seq += ch
        return ESCAPE_SEQUENCES.get(seq, "")

    def __enter__(self) -> "Terminal":
        self.enable_raw_mode()
        return self

    def __exit__(self, *exc) -> None:
        self.disable_raw_mode()
