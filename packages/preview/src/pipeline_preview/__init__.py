"""
pipeline_preview: run the command being typed and preview its output
below the prompt.
"""
from .capture import BoundedCapture
from .config import PreviewConfig, Settings, detect_shell, load_settings, resolve_config, validate_shell
from .cursor import (
    CursorOp,
    apply_ops,
    enter_preview_ops,
    leave_preview_ops,
    preview_row_budget,
    rows_for_edit_line,
)
from .errors import GeometryQueryError, SpawnError, StreamIOError
from .preview import PreviewOrchestrator, format_status
from .renderer import DEFAULT_MAX_LINES, LineRenderer, render_lines
from .types import (
    CommandOutcome,
    CursorFrame,
    PreviewReport,
    RenderBudget,
    RenderResult,
    StreamKind,
    TerminalGeometry,
)

__all__ = [
    "BoundedCapture",
    "CommandOutcome",
    "CursorFrame",
    "CursorOp",
    "DEFAULT_MAX_LINES",
    "GeometryQueryError",
    "LineRenderer",
    "PreviewConfig",
    "PreviewOrchestrator",
    "PreviewReport",
    "RenderBudget",
    "RenderResult",
    "Settings",
    "SpawnError",
    "StreamIOError",
    "StreamKind",
    "TerminalGeometry",
    "apply_ops",
    "detect_shell",
    "enter_preview_ops",
    "format_status",
    "leave_preview_ops",
    "load_settings",
    "preview_row_budget",
    "render_lines",
    "resolve_config",
    "rows_for_edit_line",
    "validate_shell",
]
