"""Typed exception hierarchy for gfxtrace.

Capture failures reported by a runner are recorded on the session rather
than raised; the exceptions here signal misuse of the API or a runner that
could not do its job.
"""

from __future__ import annotations


class GfxTraceError(Exception):
    """Base exception for all gfxtrace errors."""


class DraftNotReadyError(GfxTraceError):
    """Raised when finalizing a draft that is missing required fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Trace draft is not ready, missing: {', '.join(missing)}")


class SessionStateError(GfxTraceError):
    """Raised when a session operation is invalid in the current state."""

    def __init__(self, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} a trace session that is {state}")


class RunnerError(GfxTraceError):
    """Raised when a process runner cannot launch or control the tracer."""


class TracerExitError(RunnerError):
    """Raised when the tracer process exits with a non-zero status."""

    def __init__(self, command: list[str], returncode: int) -> None:
        self.command = command
        self.returncode = returncode
        cmd_str = " ".join(command)
        super().__init__(f"Tracer failed (exit {returncode}): {cmd_str}")
