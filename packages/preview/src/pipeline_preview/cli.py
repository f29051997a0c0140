"""
CLI entry point: ``pipeline``.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import typer
from rich.console import Console

from pipeline_tui.editor import PromptEditor
from pipeline_tui.terminal import ProcessTerminal

from .config import APP_NAME, ENV_DEBUG_LOG, VERSION, Settings, load_settings, resolve_config
from .errors import SpawnError, StreamIOError
from .preview import PreviewOrchestrator

app = typer.Typer(
    name=APP_NAME,
    help="Interactive shell prompt that previews a command's output as you build it.",
    add_completion=False,
)

console = Console(stderr=True)

logger = logging.getLogger(__name__)


def configure_logging(log_file: str | None) -> None:
    """
    Log records go to a file or nowhere: stdout and stderr belong to the
    interactive prompt.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.setLevel(logging.DEBUG)
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{APP_NAME} {VERSION}")
        raise typer.Exit()


@app.command()
def run(
    truncate: bool = typer.Option(False, "--truncate", "-t", help="Truncate long lines rather than wrapping."),
    shell: Optional[str] = typer.Option(
        None, "--shell", "-s",
        help="Use the shell at the full path specified, rather than reading $PIPELINE_SHELL or $SHELL.",
    ),
    max_lines: Optional[int] = typer.Option(
        None, "--max-lines", min=1, help="Stop reading output after this many lines (default 100000).",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Terminate a previewed command after this many seconds.",
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Prompt text."),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", help=f"Write debug logs to this file (or set ${ENV_DEBUG_LOG}).",
    ),
    version: bool = typer.Option(
        False, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version and exit.",
    ),
) -> None:
    """Type a command; press Enter to preview its output; Ctrl-D to quit."""
    configure_logging(log_file or os.environ.get(ENV_DEBUG_LOG))

    overrides = Settings(
        shell=shell,
        truncate_lines=True if truncate else None,
        max_lines=max_lines,
        timeout=timeout,
        prompt=prompt,
    )
    config, warnings = resolve_config(overrides, load_settings())
    for warning in warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    logger.info("starting with %s", config)

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        console.print("[red]error:[/red] pipeline needs an interactive terminal")
        raise typer.Exit(1)

    terminal = ProcessTerminal()
    editor = PromptEditor(terminal, prompt=config.prompt)
    PreviewOrchestrator(terminal, config).attach(editor)

    try:
        editor.run()
    except KeyboardInterrupt:
        raise typer.Exit(130)
    except (SpawnError, StreamIOError) as exc:
        logger.exception("fatal preview error")
        console.print(f"[red]error:[/red] {exc}")
        raise typer.Exit(1)


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
