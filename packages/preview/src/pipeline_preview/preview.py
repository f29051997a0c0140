"""
Preview orchestrator: the handler bound to the prompt's trigger key.

One trigger: move below the edit line, run the command with a page budget
derived from the current terminal size, print a reverse-video status row,
and return the cursor to the edit line so the editor can repaint it.
"""
from __future__ import annotations

import asyncio
import logging

from pipeline_tui.editor import CursorFrame, LineEditor
from pipeline_tui.keys import KeyId
from pipeline_tui.terminal import GeometryQueryError, Terminal
from pipeline_tui.utils import truncate_to_width

from .capture import BoundedCapture
from .config import PreviewConfig
from .cursor import apply_ops, enter_preview_ops, leave_preview_ops, preview_row_budget
from .types import CommandOutcome, PreviewReport, RenderBudget, RenderResult

logger = logging.getLogger(__name__)


def format_status(
    result: RenderResult,
    outcome: CommandOutcome | None,
    timeout: float | None = None,
) -> str:
    """Status row text; outcome is None when the preview was cancelled."""
    if outcome is None:
        return "preview cancelled"
    if outcome.timed_out:
        return f"command timed out after {timeout:g}s"
    if outcome.succeeded:
        plus = "+" if result.truncated_at_cap else ""
        return f"{result.lines_total}{plus} total lines, showing {result.lines_shown}"
    return f"error in command: {outcome.exit_code}"


class PreviewOrchestrator:
    """
    Runs previews for a LineEditor.

    on_trigger() blocks the editor for the whole capture. Ctrl-C during a
    capture cancels only that preview; SpawnError and StreamIOError are
    fatal and propagate to the caller.
    """

    def __init__(self, terminal: Terminal, config: PreviewConfig) -> None:
        self.terminal = terminal
        self.config = config
        self.last_report: PreviewReport | None = None
        self._editor: LineEditor | None = None

    def attach(self, editor: LineEditor, key: KeyId = "enter") -> None:
        self._editor = editor
        editor.register_trigger_handler(key, self)

    def on_trigger(self, text: str, frame: CursorFrame) -> PreviewReport | None:
        try:
            geometry = self.terminal.query_geometry()
        except GeometryQueryError as exc:
            logger.warning("preview skipped: %s", exc)
            return None

        apply_ops(self.terminal, enter_preview_ops(frame, geometry))
        budget = RenderBudget(
            max_rows=preview_row_budget(frame, geometry),
            truncate=self.config.truncate_lines,
        )
        capture = BoundedCapture(
            self.terminal,
            shell=self.config.shell,
            columns=geometry.cols,
            budget=budget,
            max_lines=self.config.max_lines,
            timeout=self.config.timeout,
        )

        outcome: CommandOutcome | None
        try:
            result, outcome = asyncio.run(capture.run(text))
        except KeyboardInterrupt:
            logger.info("preview of %r cancelled", text)
            result = RenderResult(screen_rows_used=capture.rows_written)
            outcome = None

        status = format_status(result, outcome, self.config.timeout)
        logger.debug("preview of %r: %s (%s)", text, status, result)
        self._write_status(status, geometry.cols)
        apply_ops(self.terminal, leave_preview_ops(result.screen_rows_used, frame, geometry))

        report = PreviewReport(
            result=result,
            outcome=outcome,
            status_text=status,
            cancelled=outcome is None,
        )
        self.last_report = report
        if self._editor is not None:
            self._editor.force_redraw()
        return report

    def _write_status(self, status: str, cols: int) -> None:
        # Exactly `cols` wide: the cursor parks in the last column without scrolling.
        self.terminal.enter_reverse_video()
        self.terminal.write(truncate_to_width(f" {status} ", cols, pad=True))
        self.terminal.exit_attributes()
