"""
Value types for one preview invocation.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pipeline_tui.editor import CursorFrame
from pipeline_tui.terminal import TerminalGeometry


class StreamKind(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class RenderBudget:
    max_rows: int
    truncate: bool = False

    def __post_init__(self) -> None:
        if self.max_rows < 0:
            raise ValueError(f"max_rows must be >= 0, got {self.max_rows}")


@dataclass
class RenderResult:
    lines_shown: int = 0
    screen_rows_used: int = 0
    lines_total: int = 0
    truncated_at_cap: bool = False


@dataclass(frozen=True)
class CommandOutcome:
    exit_code: int
    stream_used: StreamKind
    signal: int | None = None        # terminating signal number, if any
    terminated_at_cap: bool = False  # we stopped it after the line cap
    timed_out: bool = False

    @property
    def signaled(self) -> bool:
        return self.signal is not None

    @property
    def succeeded(self) -> bool:
        return self.stream_used is StreamKind.STDOUT


@dataclass(frozen=True)
class PreviewReport:
    """What one trigger produced; kept by the orchestrator as last_report."""
    result: RenderResult
    outcome: CommandOutcome | None
    status_text: str
    cancelled: bool = False


__all__ = [
    "CommandOutcome",
    "CursorFrame",
    "PreviewReport",
    "RenderBudget",
    "RenderResult",
    "StreamKind",
    "TerminalGeometry",
]
