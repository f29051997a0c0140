"""
Cursor repositioning around a preview.

All functions are pure: they return CursorOp lists that apply_ops() plays
on a Terminal. Positions are display columns; rows are counted relative to
the cursor, so the math stays valid when output scrolls the screen.
"""
from __future__ import annotations

import math
from typing import Literal, NamedTuple

from pipeline_tui.editor import CursorFrame
from pipeline_tui.terminal import Terminal, TerminalGeometry

CursorOpKind = Literal["up", "left", "column", "newline", "clear_line", "clear_below"]


class CursorOp(NamedTuple):
    kind: CursorOpKind
    count: int = 0


def rows_for_edit_line(frame: CursorFrame, geometry: TerminalGeometry) -> int:
    """Screen rows taken by prompt + buffer, plus one column for a trailing cursor."""
    return math.ceil((frame.prompt_width + frame.buffer_length + 1) / geometry.cols)


def preview_row_budget(frame: CursorFrame, geometry: TerminalGeometry) -> int:
    """Rows left for output after the edit line and one status row."""
    return max(0, geometry.rows - (rows_for_edit_line(frame, geometry) + 1))


def enter_preview_ops(frame: CursorFrame, geometry: TerminalGeometry) -> list[CursorOp]:
    """From the live cursor position to the first row below the edit line."""
    pos = frame.prompt_width + frame.cursor_offset
    ops: list[CursorOp] = []
    up, left = divmod(pos, geometry.cols)
    if up:
        ops.append(CursorOp("up", up))
    if left:
        ops.append(CursorOp("left", left))
    # Newlines rather than cursor-down: at the bottom of the screen they scroll.
    ops.append(CursorOp("newline", rows_for_edit_line(frame, geometry)))
    return ops


def leave_preview_ops(
    screen_rows_used: int,
    frame: CursorFrame,
    geometry: TerminalGeometry,
) -> list[CursorOp]:
    """From the status row back to column 0 of the edit line's first row."""
    return [
        CursorOp("column", 0),
        CursorOp("up", screen_rows_used + rows_for_edit_line(frame, geometry)),
    ]


def apply_ops(terminal: Terminal, ops: list[CursorOp]) -> None:
    for op in ops:
        if op.kind == "up":
            terminal.move_up(op.count)
        elif op.kind == "left":
            terminal.move_left(op.count)
        elif op.kind == "column":
            terminal.move_to_column(op.count)
        elif op.kind == "newline":
            if op.count > 0:
                terminal.write("\n" * op.count)
        elif op.kind == "clear_line":
            terminal.clear_line()
        elif op.kind == "clear_below":
            terminal.clear_from_cursor()
        else:
            raise ValueError(f"unknown cursor op: {op.kind}")
