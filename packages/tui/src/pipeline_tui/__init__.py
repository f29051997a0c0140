"""
pipeline_tui: terminal device, display width and line editing for the
pipeline prompt.
"""
from .editor import CursorFrame, LineEditor, PromptEditor, TriggerHandler
from .keys import KeyId, is_printable, matches_key, split_sequences
from .terminal import GeometryQueryError, ProcessTerminal, Terminal, TerminalGeometry
from .utils import TAB_WIDTH, char_width, is_control_char, truncate_to_width, visible_width

__all__ = [
    # editor
    "CursorFrame",
    "LineEditor",
    "PromptEditor",
    "TriggerHandler",
    # keys
    "KeyId",
    "is_printable",
    "matches_key",
    "split_sequences",
    # terminal
    "GeometryQueryError",
    "ProcessTerminal",
    "Terminal",
    "TerminalGeometry",
    # utils
    "TAB_WIDTH",
    "char_width",
    "is_control_char",
    "truncate_to_width",
    "visible_width",
]
