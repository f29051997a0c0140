"""Tests for pipeline_preview.preview"""
import pytest

from pipeline_preview import preview as preview_mod
from pipeline_preview.config import PreviewConfig
from pipeline_preview.preview import PreviewOrchestrator, format_status
from pipeline_preview.types import CommandOutcome, RenderResult, StreamKind
from pipeline_tui.editor import CursorFrame, PromptEditor

FRAME = CursorFrame(prompt_width=10, buffer_length=7, cursor_offset=7)


def _at_cursor(screen, frame=FRAME, origin_row=10):
    pos = frame.prompt_width + frame.cursor_offset
    cols = screen.columns
    screen.row, screen.col = origin_row + pos // cols, pos % cols


# =============================================================================
# Status text
# =============================================================================


class TestFormatStatus:
    def test_success(self):
        result = RenderResult(lines_shown=20, screen_rows_used=20, lines_total=1000)
        outcome = CommandOutcome(exit_code=0, stream_used=StreamKind.STDOUT)
        assert format_status(result, outcome) == "1000 total lines, showing 20"

    def test_success_at_cap(self):
        result = RenderResult(lines_shown=5, screen_rows_used=5, lines_total=50, truncated_at_cap=True)
        outcome = CommandOutcome(
            exit_code=143, stream_used=StreamKind.STDOUT, signal=15, terminated_at_cap=True,
        )
        assert format_status(result, outcome) == "50+ total lines, showing 5"

    def test_failure(self):
        outcome = CommandOutcome(exit_code=2, stream_used=StreamKind.STDERR)
        assert format_status(RenderResult(), outcome) == "error in command: 2"

    def test_timeout(self):
        outcome = CommandOutcome(exit_code=143, stream_used=StreamKind.STDERR, signal=15, timed_out=True)
        assert format_status(RenderResult(), outcome, timeout=1.5) == "command timed out after 1.5s"

    def test_cancelled(self):
        assert format_status(RenderResult(), None) == "preview cancelled"


# =============================================================================
# Orchestrator with real commands
# =============================================================================


@pytest.mark.posix
class TestTrigger:
    def test_success_status_and_cursor_restored(self, screen):
        orchestrator = PreviewOrchestrator(screen, PreviewConfig(shell="/bin/sh"))
        _at_cursor(screen)
        report = orchestrator.on_trigger("echo hi", FRAME)

        assert report.status_text == "1 total lines, showing 1"
        assert not report.cancelled
        assert report.outcome.stream_used is StreamKind.STDOUT
        assert orchestrator.last_report is report
        assert "hi\n" in screen.output
        assert (" 1 total lines, showing 1 ".ljust(80)) in screen.writes
        assert (screen.row, screen.col) == (10, 0)

    def test_failure_status(self, screen):
        orchestrator = PreviewOrchestrator(screen, PreviewConfig(shell="/bin/sh"))
        _at_cursor(screen)
        report = orchestrator.on_trigger("false", FRAME)

        assert report.status_text == "error in command: 1"
        assert report.outcome.stream_used is StreamKind.STDERR
        assert (screen.row, screen.col) == (10, 0)

    def test_status_in_reverse_video(self, screen):
        PreviewOrchestrator(screen, PreviewConfig(shell="/bin/sh")).on_trigger("true", FRAME)
        names = [c[0] for c in screen.calls]
        assert names.index("enter_reverse_video") < names.index("exit_attributes")

    def test_repeated_triggers_land_on_same_origin(self, make_screen):
        screen = make_screen(rows=10, cols=40)
        frame = CursorFrame(prompt_width=10, buffer_length=45, cursor_offset=45)
        orchestrator = PreviewOrchestrator(screen, PreviewConfig(shell="/bin/sh"))
        command = 'i=0; while [ "$i" -lt 30 ]; do echo "row $i"; i=$((i+1)); done'

        _at_cursor(screen, frame)
        first = orchestrator.on_trigger(command, frame)
        assert (screen.row, screen.col) == (10, 0)
        _at_cursor(screen, frame)
        second = orchestrator.on_trigger(command, frame)
        assert (screen.row, screen.col) == (10, 0)

        # 10 rows - (2 edit rows + 1 status row)
        assert first.result.lines_shown == second.result.lines_shown == 7
        assert first.status_text == second.status_text == "30 total lines, showing 7"

    def test_truncate_mode(self, make_screen):
        screen = make_screen(rows=24, cols=20)
        orchestrator = PreviewOrchestrator(screen, PreviewConfig(shell="/bin/sh", truncate_lines=True))
        report = orchestrator.on_trigger("printf '%050d\\n' 0", CursorFrame(2, 0, 0))
        assert report.result.screen_rows_used == 1
        assert "0" * 20 + "\n" in screen.writes


# =============================================================================
# Edge paths
# =============================================================================


class TestEdges:
    def test_geometry_failure_skips_preview(self, screen):
        screen.geometry = None
        orchestrator = PreviewOrchestrator(screen, PreviewConfig())
        assert orchestrator.on_trigger("echo hi", FRAME) is None
        assert screen.writes == []
        assert orchestrator.last_report is None

    def test_cancelled_preview_restores_cursor(self, screen, monkeypatch):
        class InterruptedCapture:
            def __init__(self, terminal, **kwargs):
                self.terminal = terminal
                self.rows_written = 0

            def run(self, command):
                self.terminal.write("partial\n")
                self.rows_written = 1
                raise KeyboardInterrupt

        monkeypatch.setattr(preview_mod, "BoundedCapture", InterruptedCapture)
        orchestrator = PreviewOrchestrator(screen, PreviewConfig())
        _at_cursor(screen)
        report = orchestrator.on_trigger("yes", FRAME)

        assert report.cancelled
        assert report.outcome is None
        assert report.status_text == "preview cancelled"
        assert report.result.screen_rows_used == 1
        assert (screen.row, screen.col) == (10, 0)


@pytest.mark.posix
def test_attach_binds_enter_and_redraws_editor(screen):
    editor = PromptEditor(screen, prompt="> ")
    orchestrator = PreviewOrchestrator(screen, PreviewConfig(shell="/bin/sh"))
    orchestrator.attach(editor)

    editor.handle_input("echo hi")
    screen.writes.clear()
    editor.handle_input("\r")

    assert orchestrator.last_report.status_text == "1 total lines, showing 1"
    # The editor repaints the prompt after the status row.
    assert screen.writes[-1] == "> echo hi"
    assert editor.get_buffer_text() == "echo hi"
