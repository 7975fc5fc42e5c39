"""Trace session: drives one capture from start to finish.

Ties together a finalized request and a process runner, collecting the
runner's progress lines and failures into an append-only log.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import traceback
from typing import Callable

from gfxtrace.domain.models import AndroidTraceRequest, DesktopTraceRequest, SessionState
from gfxtrace.exceptions import SessionStateError
from gfxtrace.session.base import ProcessRunner, RunnerHandle

logger = logging.getLogger(__name__)

DEFAULT_STOP_TIMEOUT = 5.0
FAILURE_HEADER = "Tracing failed:"


def format_failure(error: BaseException) -> str:
    """Render a capture failure as a single log entry."""
    details = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return f"{FAILURE_HEADER}\n{details.rstrip()}"


class TraceSession:
    """Supervises a single capture.

    States move CONFIGURED -> RUNNING -> (STOPPING ->) FINISHED. Once
    FINISHED the log and failure flag no longer change; the caller checks
    ``failure`` to decide whether the output file is worth loading.

    Example usage::

        session = TraceSession(request, runner)
        await session.start()
        ...
        await session.stop()
        if not session.failure:
            load(request.output)
    """

    def __init__(
        self,
        request: AndroidTraceRequest | DesktopTraceRequest,
        runner: ProcessRunner,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
    ) -> None:
        self._request = request
        self._runner = runner
        self._stop_timeout = stop_timeout
        self._state = SessionState.CONFIGURED
        self._log: list[str] = []
        self._failure = False
        self._capture_started = False
        self._lock = threading.Lock()
        self._finished = asyncio.Event()
        self._handle: RunnerHandle | None = None
        self._watch_task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: int | None = None

    @property
    def request(self) -> AndroidTraceRequest | DesktopTraceRequest:
        return self._request

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def log(self) -> tuple[str, ...]:
        """Snapshot of the log lines received so far."""
        with self._lock:
            return tuple(self._log)

    @property
    def failure(self) -> bool:
        with self._lock:
            return self._failure

    @property
    def is_finished(self) -> bool:
        return self._state == SessionState.FINISHED

    @property
    def capture_started(self) -> bool:
        """Whether frames are being captured.

        True as soon as the tracer runs, except for a mid-execution request,
        which only captures after begin_capture().
        """
        if self._state == SessionState.CONFIGURED:
            return False
        return self._capture_started or not self._request.mid_execution

    @property
    def pending_action(self) -> str | None:
        """The user action the session is waiting for, if any.

        A mid-execution capture runs the application first and waits for
        the user to begin capturing; a running capture can always be
        stopped.
        """
        if self._state == SessionState.CONFIGURED:
            return "start"
        if self._state == SessionState.RUNNING:
            return "stop" if self.capture_started else "capture"
        return None

    async def start(self) -> None:
        """Hand the request to the runner and return without waiting.

        Launch errors are recorded as a failure and finish the session.

        Raises:
            SessionStateError: If the session was already started.
        """
        if self._state != SessionState.CONFIGURED:
            raise SessionStateError("start", self._state.value)

        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._state = SessionState.RUNNING
        logger.info("Trace starting: %s", self._request.progress_title)

        try:
            handle = await self._runner.launch(
                self._request, self._on_progress, self._on_failure
            )
        except Exception as e:
            logger.error("Failed to launch tracer: %s", e)
            self._record_failure(e)
            self._finish()
            return

        self._handle = handle
        if self._state != SessionState.RUNNING:
            # stop() arrived while the runner was still launching.
            try:
                await self._terminate(handle)
            finally:
                self._finish()
            return
        self._watch_task = asyncio.create_task(self._watch(handle))

    async def begin_capture(self) -> None:
        """Begin capturing in a running mid-execution trace.

        A runner error is recorded as a failure and stops the trace.

        Raises:
            SessionStateError: If the request is not mid-execution, the
                tracer is not running yet, or capture already began.
        """
        if not self._request.mid_execution:
            raise SessionStateError("begin capture for", "not mid-execution")
        if self._state != SessionState.RUNNING or self._handle is None:
            raise SessionStateError("begin capture for", self._state.value)
        if self._capture_started:
            raise SessionStateError("begin capture for", "already capturing")

        self._capture_started = True
        logger.info("Beginning mid-execution capture")
        try:
            await self._runner.begin_capture(self._handle)
        except Exception as e:
            logger.error("Failed to begin capture: %s", e)
            self._record_failure(e)
            await self.stop()

    async def stop(self) -> None:
        """End the capture, terminating the tracer if it is still running.

        A no-op on a finished session.

        Raises:
            SessionStateError: If the session was never started.
        """
        if self._state == SessionState.FINISHED:
            logger.debug("Stop requested on a finished trace, ignoring")
            return
        if self._state == SessionState.CONFIGURED:
            raise SessionStateError("stop", self._state.value)
        if self._state == SessionState.STOPPING:
            await self._finished.wait()
            return

        self._state = SessionState.STOPPING
        logger.info("Trace stop requested")

        if self._handle is None:
            # start() is still launching; it terminates and finishes.
            await self._finished.wait()
            return

        try:
            await self._terminate(self._handle)
            if self._watch_task is not None:
                # Let the runner flush its last callbacks.
                _, pending = await asyncio.wait({self._watch_task}, timeout=self._stop_timeout)
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
        finally:
            if self._watch_task is not None and not self._watch_task.done():
                self._watch_task.cancel()
            self._finish()

    async def wait_finished(self) -> bool:
        """Wait until the session finishes and return the failure flag."""
        await self._finished.wait()
        return self.failure

    async def _terminate(self, handle: RunnerHandle) -> None:
        """Ask the runner to stop, killing the process after the timeout."""
        try:
            await asyncio.wait_for(self._runner.terminate(handle), timeout=self._stop_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Tracer did not exit within %.1fs, killing it", self._stop_timeout
            )
            await self._runner.kill(handle)

    async def _watch(self, handle: RunnerHandle) -> None:
        try:
            await handle.wait()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error while waiting for tracer: %s", e)
            self._record_failure(e)
        if self._state == SessionState.RUNNING:
            self._finish()

    # -- runner callbacks ---------------------------------------------------

    def _on_progress(self, line: str) -> None:
        self._dispatch(self._append_progress, line)

    def _on_failure(self, error: BaseException) -> None:
        self._dispatch(self._record_failure, error)

    def _dispatch(self, apply: Callable, arg: object) -> None:
        """Run a state update on the control loop's thread."""
        if self._loop is None or threading.get_ident() == self._loop_thread:
            apply(arg)
            return
        try:
            self._loop.call_soon_threadsafe(apply, arg)
        except RuntimeError:
            logger.debug("Control loop is closed, dropping runner callback")

    def _append_progress(self, line: str) -> None:
        if self._state == SessionState.FINISHED:
            logger.debug("Ignoring progress after finish: %s", line)
            return
        with self._lock:
            self._log.append(line)

    def _record_failure(self, error: BaseException) -> None:
        if self._state == SessionState.FINISHED:
            logger.debug("Ignoring failure after finish: %s", error)
            return
        with self._lock:
            self._log.append(format_failure(error))
            self._failure = True

    def _finish(self) -> None:
        if self._state == SessionState.FINISHED:
            return
        self._state = SessionState.FINISHED
        self._finished.set()
        logger.info(
            "Trace finished: failure=%s, %d log lines", self._failure, len(self._log)
        )
