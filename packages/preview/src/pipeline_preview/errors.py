"""
Fatal preview errors.

A failing previewed command is not an error here: it is reported through
CommandOutcome and the status line.
"""
from __future__ import annotations

from pipeline_tui.terminal import GeometryQueryError


class SpawnError(OSError):
    """The child process could not be started (pipe/fork/exec failure)."""


class StreamIOError(OSError):
    """Reading a child pipe failed after the child was started."""


__all__ = ["GeometryQueryError", "SpawnError", "StreamIOError"]
