"""Process runner implementations for gfxtrace.

Public API:
    CommandRunner -- Runs captures through an external tracer executable
"""

from gfxtrace.runner.command import CommandHandle, CommandRunner, build_arguments

__all__ = ["CommandHandle", "CommandRunner", "build_arguments"]
