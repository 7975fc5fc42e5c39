"""Core domain models for the gfxtrace system.

These models describe what flows through a capture: the graphics API and
platform being traced, the Android launch target, the finalized trace
request handed to a runner, and the lifecycle states of a session.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class GraphicsApi(str, enum.Enum):
    """Graphics API intercepted by the tracer."""

    GLES = "gles"
    VULKAN = "vulkan"

    @property
    def display_name(self) -> str:
        return _API_DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, name: str | None) -> GraphicsApi | None:
        """Look up an API by value or member name, case-insensitively.

        Returns None for empty or unknown names so callers can fall back
        to a platform default.
        """
        if not name:
            return None
        key = name.strip().lower()
        for api in cls:
            if key in (api.value, api.name.lower()):
                return api
        return None


_API_DISPLAY_NAMES = {
    GraphicsApi.GLES: "OpenGL ES",
    GraphicsApi.VULKAN: "Vulkan",
}


class Platform(str, enum.Enum):
    """Kind of target a trace runs against."""

    ANDROID = "android"
    DESKTOP = "desktop"


class FieldOrigin(str, enum.Enum):
    """Who last wrote a field that can be filled in automatically."""

    DERIVED = "derived"  # Computed from other fields
    USER_OVERRIDDEN = "user_overridden"  # Edited by the user, left alone


class SessionState(str, enum.Enum):
    """Lifecycle state of a trace session."""

    CONFIGURED = "configured"
    RUNNING = "running"
    STOPPING = "stopping"
    FINISHED = "finished"


# ---------------------------------------------------------------------------
# Android launch targets (discriminated union)
# ---------------------------------------------------------------------------


class ActivityLaunch(BaseModel):
    """Launch a specific activity of a package through an intent action."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["activity"] = "activity"
    action: str = Field(description="Intent action, e.g. android.intent.action.MAIN")
    package: str = Field(description="Package that owns the activity")
    activity: str = Field(description="Activity class name")

    @property
    def launch_string(self) -> str:
        return f"{self.action}:{self.package}/{self.activity}"


class BareLaunch(BaseModel):
    """Launch target passed to the tracer verbatim, typically a package name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bare"] = "bare"
    target: str = Field(description="Raw target string as entered")

    @property
    def launch_string(self) -> str:
        return self.target


AndroidLaunchTarget = Annotated[
    Union[ActivityLaunch, BareLaunch],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Trace requests (discriminated union)
# ---------------------------------------------------------------------------


class AndroidTraceRequest(BaseModel):
    """A finalized request to trace an application on an Android device."""

    model_config = ConfigDict(frozen=True)

    platform: Literal["android"] = "android"
    api: GraphicsApi
    output: Path = Field(description="Path the capture file is written to")
    frame_count: int = Field(ge=0, description="Frames to capture, 0 for unlimited")
    mid_execution: bool = Field(description="Begin capturing only when the user asks")
    disable_buffering: bool = False
    device: str = Field(description="Serial of the device to trace on")
    target: AndroidLaunchTarget
    arguments: str = Field(default="", description="Extra intent arguments")
    clear_cache: bool = False
    disable_pcs: bool = Field(default=False, description="Disable pre-compiled shaders")

    @property
    def progress_title(self) -> str:
        return f"Capturing {self.target.launch_string} on {self.device} to {self.output.name}"


class DesktopTraceRequest(BaseModel):
    """A finalized request to trace a desktop executable."""

    model_config = ConfigDict(frozen=True)

    platform: Literal["desktop"] = "desktop"
    api: GraphicsApi
    output: Path = Field(description="Path the capture file is written to")
    frame_count: int = Field(ge=0, description="Frames to capture, 0 for unlimited")
    mid_execution: bool = Field(description="Begin capturing only when the user asks")
    disable_buffering: bool = False
    executable: Path
    arguments: str = ""
    working_directory: Path | None = None

    @property
    def progress_title(self) -> str:
        return f"Capturing {self.executable.name} to {self.output.name}"


TraceRequest = Annotated[
    Union[AndroidTraceRequest, DesktopTraceRequest],
    Field(discriminator="platform"),
]
