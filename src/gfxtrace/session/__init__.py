"""Trace session module for gfxtrace.

Drives a capture through its lifecycle using a pluggable process runner.

Public API:
    ProcessRunner -- Abstract runner base class
    RunnerHandle -- Abstract handle to a launched capture
    TraceSession -- Session state machine
"""

from gfxtrace.session.base import ProcessRunner, RunnerHandle
from gfxtrace.session.session import TraceSession, format_failure

__all__ = ["ProcessRunner", "RunnerHandle", "TraceSession", "format_failure"]
