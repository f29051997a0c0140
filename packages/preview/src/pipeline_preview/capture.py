"""
Bounded dual-stream capture.

Runs ``<shell> -c <command>`` with stdout and stderr on separate pipes and
drains both concurrently, so a child that fills one pipe while the other is
being read can never deadlock. Stdout is rendered live; stderr is rendered
into a bounded in-memory spool and only shown if the command fails.
"""
from __future__ import annotations

import asyncio
import codecs
import locale
import logging
import os
import signal
from typing import Callable

from pipeline_tui.terminal import Terminal

from .errors import SpawnError, StreamIOError
from .renderer import DEFAULT_MAX_LINES, LineRenderer
from .types import CommandOutcome, RenderBudget, RenderResult, StreamKind

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
KILL_GRACE_SECONDS = 3.0    # SIGTERM → SIGKILL escalation
DRAIN_GRACE_SECONDS = 0.5   # after exit, for descendants still holding the pipes
EXIT_POLL_SECONDS = 0.05

# Deaths that follow from us cutting the output short.
_CAP_SIGNALS = frozenset({signal.SIGTERM, signal.SIGKILL, signal.SIGPIPE})


def _make_decoder() -> codecs.IncrementalDecoder:
    encoding = locale.getpreferredencoding(False) or "utf-8"
    return codecs.getincrementaldecoder(encoding)(errors="replace")


class BoundedCapture:
    """
    One capture of one command. Not reusable.

    ``rows_written`` always holds the number of screen rows currently
    occupied by preview output, so a caller interrupted mid-run can still
    restore the cursor exactly.
    """

    def __init__(
        self,
        terminal: Terminal,
        shell: str,
        columns: int,
        budget: RenderBudget,
        max_lines: int | None = DEFAULT_MAX_LINES,
        timeout: float | None = None,
    ) -> None:
        self.terminal = terminal
        self.shell = shell
        self.columns = columns
        self.budget = budget
        self.max_lines = max_lines
        self.timeout = timeout
        self.rows_written = 0
        self._process: asyncio.subprocess.Process | None = None
        self._stdout: LineRenderer | None = None
        self._kill_handle: asyncio.TimerHandle | None = None
        self._terminated = False
        self._timed_out = False

    async def run(self, command: str) -> tuple[RenderResult, CommandOutcome]:
        self.terminal.clear_from_cursor()
        process = await self._spawn(command)

        out = self._stdout = LineRenderer(self.columns, self.budget, self.max_lines)
        err = LineRenderer(self.columns, self.budget, self.max_lines)
        spool: list[str] = []

        drains = [
            asyncio.ensure_future(self._drain(process.stdout, out, self._show, stop_at_cap=True)),
            # A capped stderr spool only stops being filled; the child keeps running.
            asyncio.ensure_future(self._drain(process.stderr, err, spool.extend, stop_at_cap=False)),
        ]
        finished = False
        try:
            await self._wait_for_exit(process, self.timeout)
            _, pending = await asyncio.wait(drains, timeout=DRAIN_GRACE_SECONDS)
            if pending:
                logger.debug("pid %d exited but its pipes are still open; terminating group", process.pid)
                self._terminate()
            await asyncio.gather(*drains)
            finished = True
        finally:
            await self._release(drains, abnormal=not finished)

        outcome = self._outcome(process.returncode, out)
        if outcome.stream_used is StreamKind.STDOUT:
            return out.result, outcome

        # Replace the stdout page with the spooled stderr page.
        self.terminal.move_up(out.result.screen_rows_used)
        self.terminal.clear_from_cursor()
        self.rows_written = 0
        for line in spool:
            self.terminal.write(line)
        self.rows_written = err.result.screen_rows_used
        return err.result, outcome

    # ─── Process lifecycle ──────────────────────────────────────────────────

    async def _spawn(self, command: str) -> asyncio.subprocess.Process:
        try:
            process = await asyncio.create_subprocess_exec(
                self.shell,
                "-c",
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                # Own process group, so the whole pipeline can be signalled.
                # Same session, so /dev/tty stays reachable.
                process_group=0,
            )
        except OSError as exc:
            raise SpawnError(f"cannot start {self.shell!r}: {exc}") from exc
        logger.debug("spawned pid %d: %s -c %r", process.pid, self.shell, command)
        self._process = process
        return process

    async def _wait_for_exit(
        self,
        process: asyncio.subprocess.Process,
        timeout: float | None = None,
    ) -> None:
        """
        Wait until the child itself has exited.

        process.wait() also waits for every pipe to close, which a background
        descendant can delay indefinitely; returncode is set as soon as the
        child is reaped. The timeout only runs while the child is alive.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        waiter = asyncio.ensure_future(process.wait())
        try:
            while process.returncode is None:
                if deadline is not None and loop.time() >= deadline:
                    logger.info("pid %d timed out after %ss", process.pid, timeout)
                    self._timed_out = True
                    self._terminate()
                    deadline = None
                await asyncio.wait({waiter}, timeout=EXIT_POLL_SECONDS)
        finally:
            waiter.cancel()

    def _signal_group(self, sig: int) -> None:
        if self._process is None:
            return
        try:
            os.killpg(self._process.pid, sig)
        except ProcessLookupError:
            pass

    def _terminate(self) -> None:
        """SIGTERM the child's group now, SIGKILL it if still around later."""
        if self._terminated:
            return
        self._terminated = True
        self._signal_group(signal.SIGTERM)
        loop = asyncio.get_running_loop()
        self._kill_handle = loop.call_later(KILL_GRACE_SECONDS, self._signal_group, signal.SIGKILL)

    async def _release(self, drains: list[asyncio.Future], abnormal: bool) -> None:
        process = self._process
        if process is None:
            return
        if abnormal:
            self._terminate()
            for task in drains:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*drains, return_exceptions=True)
        if process.returncode is None:
            await self._wait_for_exit(process)
        if self._kill_handle is not None:
            self._kill_handle.cancel()
            self._kill_handle = None

    # ─── Streams ────────────────────────────────────────────────────────────

    async def _drain(
        self,
        reader: asyncio.StreamReader | None,
        renderer: LineRenderer,
        sink: Callable[[list[str]], None],
        stop_at_cap: bool,
    ) -> None:
        if reader is None:
            return
        decoder = _make_decoder()
        while True:
            try:
                chunk = await reader.read(CHUNK_SIZE)
            except OSError as exc:
                self._terminate()
                raise StreamIOError(f"reading child output failed: {exc}") from exc
            if not chunk:
                break
            if renderer.capped:
                # Keep the pipe empty until the child is gone.
                continue
            lines = renderer.feed(decoder.decode(chunk))
            if lines:
                sink(lines)
            if renderer.capped and stop_at_cap:
                logger.info("output cap of %s lines reached; stopping child", self.max_lines)
                self._terminate()
        if not renderer.capped:
            lines = renderer.feed(decoder.decode(b"", final=True))
            lines.extend(renderer.finish())
            if lines:
                sink(lines)

    def _show(self, lines: list[str]) -> None:
        for line in lines:
            self.terminal.write(line)
        self.rows_written = self._stdout.result.screen_rows_used

    # ─── Outcome ────────────────────────────────────────────────────────────

    def _outcome(self, returncode: int | None, out: LineRenderer) -> CommandOutcome:
        rc = returncode if returncode is not None else -signal.SIGKILL
        sig = -rc if rc < 0 else None
        exit_code = 128 + sig if sig is not None else rc

        cut_short = out.capped and self._terminated and (
            sig in _CAP_SIGNALS or (sig is None and rc - 128 in _CAP_SIGNALS)
        )
        succeeded = (rc == 0 or cut_short) and not self._timed_out
        return CommandOutcome(
            exit_code=exit_code,
            stream_used=StreamKind.STDOUT if succeeded else StreamKind.STDERR,
            signal=sig,
            terminated_at_cap=cut_short,
            timed_out=self._timed_out,
        )
