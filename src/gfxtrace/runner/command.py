"""Process runner that drives an external tracer command line.

Spawns the tracer (``gapit trace`` by default) as an asyncio subprocess,
turning each line it prints into a progress callback. Mid-execution
requests pass ``-start-defer`` and begin capturing on a newline written to
the tracer's stdin. Device communication and application launch are left
to the tracer itself.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from gfxtrace.domain.models import AndroidTraceRequest, DesktopTraceRequest
from gfxtrace.exceptions import RunnerError, TracerExitError
from gfxtrace.session.base import (
    FailureCallback,
    ProcessRunner,
    ProgressCallback,
    RunnerHandle,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ("gapit", "trace")
MAX_LINE_LENGTH = 8192
TRUNCATED_MARKER = " [truncated]"


def build_arguments(request: AndroidTraceRequest | DesktopTraceRequest) -> list[str]:
    """Translate a trace request into tracer command-line flags."""
    args = ["-api", request.api.value, "-out", str(request.output)]
    if request.frame_count:
        args += ["-capture-frames", str(request.frame_count)]
    if request.disable_buffering:
        args.append("-no-buffer")
    if request.mid_execution:
        # The tracer waits for a newline on stdin before capturing.
        args.append("-start-defer")

    if isinstance(request, AndroidTraceRequest):
        args += ["-device", request.device]
        if request.clear_cache:
            args.append("-clear-cache")
        if request.disable_pcs:
            args.append("-disable-pcs")
        if request.arguments:
            args += ["-additionalargs", request.arguments]
        args.append(request.target.launch_string)
    else:
        args += ["-local-app", str(request.executable)]
        if request.arguments:
            args += ["-local-args", request.arguments]
        if request.working_directory is not None:
            args += ["-local-workingdir", str(request.working_directory)]
    return args


class CommandHandle(RunnerHandle):
    """A running tracer subprocess and the tasks pumping its output."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        command: list[str],
        readers: list[asyncio.Task[None]],
        on_failure: FailureCallback,
    ) -> None:
        self.process = process
        self.command = command
        self.terminated = False
        self._readers = readers
        self._on_failure = on_failure
        self._reported = False

    @property
    def pid(self) -> int:
        return self.process.pid

    async def wait(self) -> None:
        returncode = await self.process.wait()
        results = await asyncio.gather(*self._readers, return_exceptions=True)
        logger.info("Tracer exited with status %d", returncode)
        if self._reported:
            return
        self._reported = True
        for result in results:
            if isinstance(result, Exception):
                self._on_failure(RunnerError(f"Lost tracer output: {result}"))
        # An exit caused by terminate() or kill() is not a capture failure.
        if returncode != 0 and not self.terminated:
            self._on_failure(TracerExitError(self.command, returncode))

    def mark_terminated(self) -> bool:
        """Flag the exit as ours if the tracer is still running.

        Returns:
            False if the tracer had already exited on its own.
        """
        if self.process.returncode is not None:
            return False
        self.terminated = True
        return True


class CommandRunner(ProcessRunner):
    """Runs captures through an external tracer executable.

    Example usage::

        runner = CommandRunner(["/opt/gapid/gapit", "trace"])
        session = TraceSession(request, runner)
    """

    def __init__(self, command: list[str] | tuple[str, ...] | None = None) -> None:
        self._command = list(command or DEFAULT_COMMAND)

    def build_command(self, request: AndroidTraceRequest | DesktopTraceRequest) -> list[str]:
        return self._command + build_arguments(request)

    async def launch(
        self,
        request: AndroidTraceRequest | DesktopTraceRequest,
        on_progress: ProgressCallback,
        on_failure: FailureCallback,
    ) -> CommandHandle:
        if isinstance(request, DesktopTraceRequest):
            _check_desktop_paths(request)

        command = self.build_command(request)
        # A deferred capture is started by writing to the tracer's stdin.
        stdin = asyncio.subprocess.PIPE if request.mid_execution else asyncio.subprocess.DEVNULL
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise RunnerError(f"Tracer not found: {command[0]}") from e
        except OSError as e:
            raise RunnerError(f"Failed to start tracer: {e}") from e

        readers = [
            asyncio.create_task(_pump_lines(process.stdout, on_progress)),
            asyncio.create_task(_pump_lines(process.stderr, on_progress)),
        ]
        logger.info("Started tracer (pid=%d): %s", process.pid, " ".join(command))
        return CommandHandle(process, command, readers, on_failure)

    async def begin_capture(self, handle: RunnerHandle) -> None:
        """Tell a tracer started with ``-start-defer`` to begin capturing."""
        handle = _as_command_handle(handle)
        stdin = handle.process.stdin
        if stdin is None:
            raise RunnerError("Tracer was not started with deferred capture")
        try:
            stdin.write(b"\n")
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise RunnerError("Tracer exited before capture began") from e
        logger.info("Capture started (pid=%d)", handle.pid)

    async def terminate(self, handle: RunnerHandle) -> None:
        """Interrupt the tracer so it can flush the capture file."""
        handle = _as_command_handle(handle)
        if handle.mark_terminated():
            try:
                handle.process.send_signal(signal.SIGINT)
            except ProcessLookupError:
                pass
        await handle.process.wait()

    async def kill(self, handle: RunnerHandle) -> None:
        handle = _as_command_handle(handle)
        handle.mark_terminated()
        try:
            handle.process.kill()
        except ProcessLookupError:
            pass
        await handle.process.wait()
        logger.warning("Tracer (pid=%d) killed", handle.pid)


def _as_command_handle(handle: RunnerHandle) -> CommandHandle:
    if not isinstance(handle, CommandHandle):
        raise RunnerError(f"Unexpected handle type: {type(handle).__name__}")
    return handle


def _check_desktop_paths(request: DesktopTraceRequest) -> None:
    if not Path(request.executable).is_file():
        raise RunnerError(f"Executable not found: {request.executable}")
    if request.working_directory is not None and not request.working_directory.is_dir():
        raise RunnerError(f"Working directory not found: {request.working_directory}")


async def _pump_lines(stream: asyncio.StreamReader | None, on_progress: ProgressCallback) -> None:
    """Forward each line from a subprocess stream as a progress message.

    Lines longer than MAX_LINE_LENGTH bytes are cut short, but the rest of
    the line is still read so the tracer never blocks on a full pipe.
    """
    if stream is None:
        return
    overflow = b""
    while True:
        try:
            chunk = await stream.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            # EOF, possibly after an unterminated last line.
            if overflow or e.partial:
                on_progress(_decode_line(overflow + e.partial))
            return
        except asyncio.LimitOverrunError as e:
            data = await stream.read(max(e.consumed, 1))
            overflow = (overflow + data)[: MAX_LINE_LENGTH + 1]
            continue
        on_progress(_decode_line(overflow + chunk))
        overflow = b""


def _decode_line(data: bytes) -> str:
    text = data[:MAX_LINE_LENGTH].decode("utf-8", errors="replace").rstrip("\r\n")
    if len(data.rstrip(b"\r\n")) > MAX_LINE_LENGTH:
        text += TRUNCATED_MARKER
    return text
