"""Domain models for gfxtrace.

This package contains the enumerations and value objects shared by the
draft, finalization and session layers. All models use Pydantic v2 for
validation and serialization.
"""

from gfxtrace.domain.models import (
    ActivityLaunch,
    AndroidLaunchTarget,
    AndroidTraceRequest,
    BareLaunch,
    DesktopTraceRequest,
    FieldOrigin,
    GraphicsApi,
    Platform,
    SessionState,
    TraceRequest,
)

__all__ = [
    "ActivityLaunch",
    "AndroidLaunchTarget",
    "AndroidTraceRequest",
    "BareLaunch",
    "DesktopTraceRequest",
    "FieldOrigin",
    "GraphicsApi",
    "Platform",
    "SessionState",
    "TraceRequest",
]
