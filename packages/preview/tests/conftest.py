"""Shared fixtures for pipeline_preview tests."""
from __future__ import annotations

import pytest

from pipeline_tui.terminal import GeometryQueryError, Terminal, TerminalGeometry
from pipeline_tui.utils import char_width


class ScreenTerminal(Terminal):
    """
    Terminal double that records writes and tracks the cursor like a VT100
    with autowrap: writing into the last column leaves the cursor pending
    (col == cols) until the next printable character wraps it. Rows are
    unbounded so scrolling never loses track of relative positions.
    """

    def __init__(self, rows: int = 24, cols: int = 80) -> None:
        self.geometry: TerminalGeometry | None = TerminalGeometry(rows=rows, cols=cols)
        self.row = 0
        self.col = 0
        self.writes: list[str] = []
        self.calls: list[tuple] = []
        self.inputs: list[str] = []
        self.started = False
        self.stopped = False

    # ─── geometry ───────────────────────────────────────────────────────────

    def query_geometry(self) -> TerminalGeometry:
        self.calls.append(("query_geometry",))
        if self.geometry is None:
            raise GeometryQueryError("not a tty")
        return self.geometry

    @property
    def columns(self) -> int:
        return self.geometry.cols if self.geometry else 80

    # ─── io ─────────────────────────────────────────────────────────────────

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def read_input(self) -> str:
        return self.inputs.pop(0) if self.inputs else ""

    def write(self, data: str) -> None:
        self.writes.append(data)
        cols = self.columns
        for ch in data:
            if ch == "\n":
                self.row += 1
                self.col = 0
            elif ch == "\r":
                self.col = 0
            else:
                w = char_width(ch)
                if w == 0:
                    continue
                if self.col + w > cols:
                    self.row += 1
                    self.col = 0
                self.col += w

    @property
    def output(self) -> str:
        return "".join(self.writes)

    # ─── cursor ─────────────────────────────────────────────────────────────

    def move_up(self, lines: int) -> None:
        self.calls.append(("move_up", lines))
        if lines > 0:
            self.row -= lines

    def move_left(self, cols: int) -> None:
        self.calls.append(("move_left", cols))
        if cols > 0:
            self.col = max(0, min(self.col, self.columns - 1) - cols)

    def move_to_column(self, col: int) -> None:
        self.calls.append(("move_to_column", col))
        self.col = col

    def clear_line(self) -> None:
        self.calls.append(("clear_line",))

    def clear_from_cursor(self) -> None:
        self.calls.append(("clear_from_cursor",))

    def clear_screen(self) -> None:
        self.calls.append(("clear_screen",))
        self.row = self.col = 0

    def enter_reverse_video(self) -> None:
        self.calls.append(("enter_reverse_video",))

    def exit_attributes(self) -> None:
        self.calls.append(("exit_attributes",))


@pytest.fixture
def screen() -> ScreenTerminal:
    return ScreenTerminal()


@pytest.fixture
def make_screen():
    return ScreenTerminal
