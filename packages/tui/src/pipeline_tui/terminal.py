"""
Terminal abstraction for the pipeline prompt.

Provides:
- TerminalGeometry: rows/columns snapshot
- Terminal: abstract base class (interface)
- ProcessTerminal: real terminal using sys.stdin/sys.stdout in cbreak mode
"""
from __future__ import annotations

import codecs
import locale
import os
import sys
import termios
import tty
from abc import ABC, abstractmethod
from dataclasses import dataclass


class GeometryQueryError(OSError):
    """Raised when the terminal size cannot be queried (e.g. not a tty)."""


@dataclass(frozen=True)
class TerminalGeometry:
    rows: int
    cols: int


# ─────────────────────────────────────────────────────────────────────────────
# Terminal ABC
# ─────────────────────────────────────────────────────────────────────────────

class Terminal(ABC):
    """
    Minimal terminal interface used by the editor and the preview engine.

    Cursor moves are relative; a move by ``n <= 0`` emits nothing.
    """

    @abstractmethod
    def start(self) -> None:
        """Switch the input side to unbuffered, no-echo mode."""

    @abstractmethod
    def stop(self) -> None:
        """Restore the terminal mode saved by start()."""

    @abstractmethod
    def read_input(self) -> str:
        """Block until input is available and return it ("" on EOF)."""

    @abstractmethod
    def write(self, data: str) -> None:
        """Write output to the terminal."""

    @abstractmethod
    def query_geometry(self) -> TerminalGeometry:
        """Return the current size; raises GeometryQueryError when unavailable."""

    @property
    @abstractmethod
    def columns(self) -> int:
        """Terminal width in columns, with a fallback when not a tty."""

    @abstractmethod
    def move_up(self, lines: int) -> None:
        """Move cursor up N rows."""

    @abstractmethod
    def move_left(self, cols: int) -> None:
        """Move cursor left N columns."""

    @abstractmethod
    def move_to_column(self, col: int) -> None:
        """Move cursor to 0-based column on the current row."""

    @abstractmethod
    def clear_line(self) -> None:
        """Clear from cursor to end of the current row."""

    @abstractmethod
    def clear_from_cursor(self) -> None:
        """Clear from cursor to end of screen."""

    @abstractmethod
    def clear_screen(self) -> None:
        """Clear entire screen and move cursor to (0,0)."""

    @abstractmethod
    def enter_reverse_video(self) -> None:
        """Start reverse-video text."""

    @abstractmethod
    def exit_attributes(self) -> None:
        """Reset all text attributes."""


# ─────────────────────────────────────────────────────────────────────────────
# ProcessTerminal
# ─────────────────────────────────────────────────────────────────────────────

class ProcessTerminal(Terminal):
    """
    Real terminal using sys.stdin/sys.stdout.

    Input runs in cbreak mode rather than raw mode: output post-processing
    stays on (so "\\n" still returns the carriage) and Ctrl-C still raises
    KeyboardInterrupt.
    """

    def __init__(self) -> None:
        self._old_termios: list | None = None
        self._write_log_path = os.environ.get("PIPELINE_WRITE_LOG", "")
        self._decoder = codecs.getincrementaldecoder(
            locale.getpreferredencoding(False) or "utf-8"
        )(errors="replace")

    def start(self) -> None:
        fd = sys.stdin.fileno()
        self._old_termios = termios.tcgetattr(fd)
        tty.setcbreak(fd)

    def stop(self) -> None:
        sys.stdout.flush()
        if self._old_termios is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._old_termios)
            self._old_termios = None

    def read_input(self) -> str:
        while True:
            data = os.read(sys.stdin.fileno(), 1024)
            if not data:
                return ""
            text = self._decoder.decode(data)
            # An incomplete multibyte character decodes to ""; keep reading.
            if text:
                return text

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        sys.stdout.flush()
        if self._write_log_path:
            with open(self._write_log_path, "a", encoding="utf-8") as f:
                f.write(data)

    def query_geometry(self) -> TerminalGeometry:
        try:
            size = os.get_terminal_size(sys.stdout.fileno())
        except (OSError, ValueError) as exc:
            raise GeometryQueryError(f"cannot query terminal size: {exc}") from exc
        if size.columns <= 0 or size.lines <= 0:
            raise GeometryQueryError(f"terminal reports size {size.columns}x{size.lines}")
        return TerminalGeometry(rows=size.lines, cols=size.columns)

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size().columns or 80
        except OSError:
            return int(os.environ.get("COLUMNS", "80"))

    def move_up(self, lines: int) -> None:
        if lines > 0:
            self.write(f"\x1b[{lines}A")

    def move_left(self, cols: int) -> None:
        if cols > 0:
            self.write(f"\x1b[{cols}D")

    def move_to_column(self, col: int) -> None:
        self.write(f"\x1b[{max(col, 0) + 1}G")

    def clear_line(self) -> None:
        self.write("\x1b[K")

    def clear_from_cursor(self) -> None:
        self.write("\x1b[J")

    def clear_screen(self) -> None:
        self.write("\x1b[2J\x1b[H")

    def enter_reverse_video(self) -> None:
        self.write("\x1b[7m")

    def exit_attributes(self) -> None:
        self.write("\x1b[0m")
