"""
Line editor for the pipeline prompt.

Provides:
- CursorFrame: geometry snapshot of the edit line
- TriggerHandler: protocol for objects bound to a trigger key
- LineEditor: protocol the preview engine depends on
- PromptEditor: single-line editor that renders in place above preview output
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .keys import KeyId, is_printable, matches_key, split_sequences
from .terminal import GeometryQueryError, Terminal
from .utils import visible_width

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CursorFrame:
    """Edit line geometry at one instant, in display columns."""
    prompt_width: int
    buffer_length: int
    cursor_offset: int


@runtime_checkable
class TriggerHandler(Protocol):
    """Anything that can be bound to a trigger key of a LineEditor."""

    def on_trigger(self, text: str, frame: CursorFrame) -> object:
        """Called synchronously with the current buffer and cursor frame."""
        ...


@runtime_checkable
class LineEditor(Protocol):
    """Interface the preview engine needs from a line editor."""

    def get_buffer_text(self) -> str:
        ...

    def get_cursor_frame(self) -> CursorFrame:
        ...

    def register_trigger_handler(self, key: KeyId, handler: TriggerHandler) -> None:
        ...

    def force_redraw(self) -> None:
        """Repaint prompt and buffer assuming the cursor sits at the edit line origin."""
        ...


class PromptEditor:
    """
    Single-line editor with in-place redraw.

    The edit line may wrap over several screen rows. The editor remembers on
    which of those rows the hardware cursor sits so every redraw can start
    from the line's origin (row 0, column 0).
    """

    def __init__(self, terminal: Terminal, prompt: str = "pipeline> ") -> None:
        self.terminal = terminal
        self.prompt = prompt
        self._text = ""
        self._cursor = 0
        self._handlers: dict[KeyId, TriggerHandler] = {}
        self._pending = ""
        self._cursor_row = 0
        self._end_row = 0
        self._done = False

    # ─── LineEditor protocol ────────────────────────────────────────────────

    def get_buffer_text(self) -> str:
        return self._text

    def get_cursor_frame(self) -> CursorFrame:
        return CursorFrame(
            prompt_width=visible_width(self.prompt),
            buffer_length=visible_width(self._text),
            cursor_offset=visible_width(self._text[:self._cursor]),
        )

    def register_trigger_handler(self, key: KeyId, handler: TriggerHandler) -> None:
        self._handlers[key] = handler

    def force_redraw(self) -> None:
        self._cursor_row = 0
        self._end_row = 0
        self._render()

    # ─── Text access ────────────────────────────────────────────────────────

    def set_text(self, text: str, cursor: int | None = None) -> None:
        self._text = text
        self._cursor = len(text) if cursor is None else max(0, min(cursor, len(text)))

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def done(self) -> bool:
        return self._done

    # ─── Main loop ──────────────────────────────────────────────────────────

    def run(self) -> str:
        """
        Edit until Ctrl-D on an empty line (or EOF on input).
        The terminal mode is restored on every exit path, including
        KeyboardInterrupt and fatal errors raised by trigger handlers.
        """
        self.terminal.start()
        try:
            self.force_redraw()
            while not self._done:
                data = self.terminal.read_input()
                if not data:
                    break
                self.handle_input(data)
        finally:
            self._leave()
            self.terminal.stop()
        return self._text

    def _leave(self) -> None:
        """Park the cursor below the edit line and clear anything under it."""
        self.terminal.write("\n" * (self._end_row - self._cursor_row + 1))
        self.terminal.clear_from_cursor()

    def handle_input(self, data: str) -> None:
        sequences, self._pending = split_sequences(self._pending + data)
        for seq in sequences:
            if self._done:
                break
            self._handle_sequence(seq)

    def _handle_sequence(self, seq: str) -> None:
        for key, handler in self._handlers.items():
            if matches_key(seq, key):
                logger.debug("trigger %s with %r", key, self._text)
                handler.on_trigger(self._text, self.get_cursor_frame())
                return

        text, cur = self._text, self._cursor
        if matches_key(seq, "ctrl+d"):
            if not text:
                self._done = True
                return
            self._text = text[:cur] + text[cur + 1:]
        elif matches_key(seq, "backspace"):
            if cur > 0:
                self._text = text[:cur - 1] + text[cur:]
                self._cursor -= 1
        elif matches_key(seq, "delete"):
            self._text = text[:cur] + text[cur + 1:]
        elif matches_key(seq, "left") or matches_key(seq, "ctrl+b"):
            self._cursor = max(0, cur - 1)
        elif matches_key(seq, "right") or matches_key(seq, "ctrl+f"):
            self._cursor = min(len(text), cur + 1)
        elif matches_key(seq, "home") or matches_key(seq, "ctrl+a"):
            self._cursor = 0
        elif matches_key(seq, "end") or matches_key(seq, "ctrl+e"):
            self._cursor = len(text)
        elif matches_key(seq, "ctrl+u"):
            self._text = text[cur:]
            self._cursor = 0
        elif matches_key(seq, "ctrl+k"):
            self._text = text[:cur]
        elif matches_key(seq, "ctrl+w"):
            start = cur
            while start > 0 and text[start - 1] == " ":
                start -= 1
            while start > 0 and text[start - 1] != " ":
                start -= 1
            self._text = text[:start] + text[cur:]
            self._cursor = start
        elif matches_key(seq, "ctrl+l"):
            self.terminal.clear_screen()
            self._cursor_row = 0
            self._end_row = 0
        elif is_printable(seq):
            self._text = text[:cur] + seq + text[cur:]
            self._cursor += len(seq)
        else:
            return
        self._render()

    # ─── Rendering ──────────────────────────────────────────────────────────

    def _columns(self) -> int:
        try:
            return self.terminal.query_geometry().cols
        except GeometryQueryError:
            return self.terminal.columns

    def _render(self) -> None:
        t = self.terminal
        cols = self._columns()
        frame = self.get_cursor_frame()

        t.move_up(self._cursor_row)
        t.move_to_column(0)
        t.write(self.prompt + self._text)

        end = frame.prompt_width + frame.buffer_length
        end_row = end // cols
        if end > 0 and end % cols == 0:
            # Cursor is parked in the last column; step onto the next row.
            t.write(" \r")
        if end_row < self._end_row:
            t.clear_from_cursor()
        else:
            t.clear_line()

        pos = frame.prompt_width + frame.cursor_offset
        t.move_up(end_row - pos // cols)
        t.move_to_column(pos % cols)
        self._cursor_row = pos // cols
        self._end_row = end_row
