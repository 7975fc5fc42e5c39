"""Abstract interface for the process that performs a capture.

A runner owns everything platform-specific about a trace: talking to the
device, spawning the tracer, choosing its working directory. The session
only hands it a finalized request and consumes the callback stream.

A mid-execution request is launched with capture deferred; the tracer and
application run, but capturing only begins with begin_capture().

Runners may invoke the callbacks from any thread. They must deliver all
progress and failure callbacks for a capture before the handle's
``wait()`` returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from gfxtrace.domain.models import AndroidTraceRequest, DesktopTraceRequest
from gfxtrace.exceptions import RunnerError

ProgressCallback = Callable[[str], None]
FailureCallback = Callable[[BaseException], None]


class RunnerHandle(ABC):
    """A launched capture process."""

    @abstractmethod
    async def wait(self) -> None:
        """Return once the capture process has exited."""
        ...


class ProcessRunner(ABC):
    """Abstract interface for launching and stopping a capture.

    Example usage::

        handle = await runner.launch(request, log.append, failures.append)
        await runner.terminate(handle)
    """

    @abstractmethod
    async def launch(
        self,
        request: AndroidTraceRequest | DesktopTraceRequest,
        on_progress: ProgressCallback,
        on_failure: FailureCallback,
    ) -> RunnerHandle:
        """Start capturing and return without waiting for the capture to end.

        Raises:
            RunnerError: If the capture process cannot be started.
        """
        ...

    @abstractmethod
    async def terminate(self, handle: RunnerHandle) -> None:
        """Ask the capture process to finish and wait until it exits.

        The caller bounds this wait and falls back to kill().
        """
        ...

    @abstractmethod
    async def kill(self, handle: RunnerHandle) -> None:
        """Force the capture process to exit."""
        ...

    async def begin_capture(self, handle: RunnerHandle) -> None:
        """Start capturing in a process launched with deferred capture.

        Only called for mid-execution requests, after launch() returned.

        Raises:
            RunnerError: If the runner cannot defer capture.
        """
        raise RunnerError(f"{type(self).__name__} does not support mid-execution capture")
