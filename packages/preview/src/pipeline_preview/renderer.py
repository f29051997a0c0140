"""
Display-width text renderer.

Turns decoded command output into screen-ready lines bounded by a row
budget. Every logical line is consumed (so totals stay exact) but only the
lines that fit in the budget are produced, clipped or wrapped to the
terminal width. Rows reported in RenderResult.screen_rows_used are exactly
the rows the produced lines occupy on screen.
"""
from __future__ import annotations

from typing import Iterable, Iterator

from pipeline_tui.utils import TAB_WIDTH, char_width, is_control_char

from .types import RenderBudget, RenderResult

DEFAULT_MAX_LINES = 100_000


class LineRenderer:
    """
    Incremental renderer for one output stream.

    feed() accepts arbitrary chunks (lines may span chunks) and returns the
    lines completed by that chunk, each ending in a single "\\n". finish()
    flushes a trailing unterminated line. Once ``max_lines`` logical lines
    have been read the renderer is capped and ignores further input.
    """

    def __init__(
        self,
        columns: int,
        budget: RenderBudget,
        max_lines: int | None = DEFAULT_MAX_LINES,
    ) -> None:
        if columns <= 0:
            raise ValueError(f"columns must be positive, got {columns}")
        self.columns = columns
        self.budget = budget
        self.max_lines = max_lines
        self.result = RenderResult()
        self._rows_left = budget.max_rows
        self._finished = False
        self._start_line()

    @property
    def capped(self) -> bool:
        return self.result.truncated_at_cap

    def _start_line(self) -> None:
        self._chars: list[str] = []
        self._consumed = 0
        self._row = 0
        self._col = 0
        self._clipped = False
        if self._rows_left <= 0:
            self._line_rows = 0
        elif self.budget.truncate:
            self._line_rows = 1
        else:
            self._line_rows = self._rows_left

    def feed(self, text: str) -> list[str]:
        if self._finished:
            raise RuntimeError("feed() after finish()")
        lines: list[str] = []
        for ch in text:
            if self.capped:
                break
            if ch == "\n":
                line = self._end_line()
                if line is not None:
                    lines.append(line)
                continue
            self._consumed += 1
            if self._line_rows and not self._clipped:
                self._place(ch)
        return lines

    def finish(self) -> list[str]:
        if self._finished:
            return []
        self._finished = True
        if self._consumed and not self.capped:
            line = self._end_line()
            if line is not None:
                return [line]
        return []

    def _place(self, ch: str) -> None:
        if ch == "\t":
            for _ in range(TAB_WIDTH - self._col % TAB_WIDTH):
                if not self._put(" ", 1):
                    return
            return
        if is_control_char(ch):
            return
        self._put(ch, char_width(ch))

    def _put(self, ch: str, width: int) -> bool:
        if width == 0:
            # Combining marks ride on the previous character.
            if self._chars:
                self._chars.append(ch)
            return True
        if self._col + width > self.columns:
            if self._row + 1 >= self._line_rows:
                self._clipped = True
                return False
            # The terminal wraps here; a wide char leaves the last column blank.
            self._row += 1
            self._col = 0
        self._chars.append(ch)
        self._col += width
        return True

    def _end_line(self) -> str | None:
        result = self.result
        result.lines_total += 1
        line = None
        if self._line_rows:
            rows = self._row + 1
            result.lines_shown += 1
            result.screen_rows_used += rows
            self._rows_left -= rows
            line = "".join(self._chars) + "\n"
        if self.max_lines is not None and result.lines_total >= self.max_lines:
            result.truncated_at_cap = True
        self._start_line()
        return line


def render_lines(chunks: Iterable[str], renderer: LineRenderer) -> Iterator[str]:
    """Lazily render text chunks; renderer.result is complete once exhausted."""
    for chunk in chunks:
        yield from renderer.feed(chunk)
        if renderer.capped:
            break
    yield from renderer.finish()
