"""Mutable trace configuration edited before a capture is confirmed.

A draft accumulates field values as the user edits them. Two fields can be
filled in automatically: the output file name (from the launch target or
executable) and the desktop working directory (from the executable's
folder). Each carries a FieldOrigin flag; once the user edits the field it
becomes USER_OVERRIDDEN and is no longer derived until explicitly reset.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from gfxtrace.config.settings import TraceDefaults
from gfxtrace.devices import pick_default_device
from gfxtrace.domain.models import FieldOrigin, GraphicsApi, Platform
from gfxtrace.naming import android_base_name, derive_output_name, desktop_base_name

logger = logging.getLogger(__name__)


class TraceConfigDraft(BaseModel):
    """A possibly incomplete trace configuration.

    Plain fields may be assigned directly; assignments are validated.
    Use the ``set_*`` methods for the target, executable, output name and
    working directory so derived fields stay in step.
    """

    model_config = ConfigDict(validate_assignment=True)

    platform: Platform
    api: GraphicsApi | None = None

    # Android
    device: str = Field(default="", description="Selected device serial")
    target: str = Field(default="", description="Raw launch target")
    clear_cache: bool = False
    disable_pcs: bool = False

    # Desktop
    executable: str = ""
    working_directory: str = ""

    arguments: str = ""
    output_dir: str = ""
    output_name: str = ""
    frame_count: int = Field(default=0, ge=0, description="0 for unlimited")
    mid_execution: bool = False
    disable_buffering: bool = False

    created_at: datetime = Field(
        default_factory=datetime.now, description="Timestamp used in derived output names"
    )
    output_name_origin: FieldOrigin = FieldOrigin.DERIVED
    working_directory_origin: FieldOrigin = FieldOrigin.DERIVED

    @field_validator("api")
    @classmethod
    def check_desktop_api(cls, api: GraphicsApi | None, info: ValidationInfo) -> GraphicsApi | None:
        if info.data.get("platform") == Platform.DESKTOP and api == GraphicsApi.GLES:
            raise ValueError("Desktop traces only support Vulkan")
        return api

    # -- derived field edits ------------------------------------------------

    def set_target(self, raw: str) -> None:
        """Set the Android launch target and re-derive the output name."""
        self.target = raw
        self._refresh_output_name()

    def set_executable(self, path: str) -> None:
        """Set the desktop executable and re-derive dependent fields."""
        self.executable = path
        self._refresh_output_name()
        self._refresh_working_directory()

    def set_output_name(self, name: str, *, user: bool = True) -> None:
        """Write the output file name.

        A write attributed to the user pins the name; pass ``user=False``
        for programmatic writes that should not.
        """
        self.output_name = name
        if user:
            self.output_name_origin = FieldOrigin.USER_OVERRIDDEN

    def reset_output_name(self) -> None:
        self.output_name_origin = FieldOrigin.DERIVED
        self._refresh_output_name()

    def set_working_directory(self, path: str, *, user: bool = True) -> None:
        self.working_directory = path
        if user:
            self.working_directory_origin = FieldOrigin.USER_OVERRIDDEN

    def reset_working_directory(self) -> None:
        self.working_directory = ""
        self.working_directory_origin = FieldOrigin.DERIVED
        self._refresh_working_directory()

    def _refresh_output_name(self) -> None:
        if self.output_name_origin != FieldOrigin.DERIVED:
            return
        if self.platform == Platform.ANDROID:
            base = android_base_name(self.target)
        else:
            base = desktop_base_name(self.executable)
        self.output_name = derive_output_name(base, self.created_at)

    def _refresh_working_directory(self) -> None:
        if self.platform != Platform.DESKTOP:
            return
        if self.working_directory_origin != FieldOrigin.DERIVED or not self.executable:
            return
        parent = Path(self.executable).parent
        if parent != Path(".") and parent.is_dir():
            self.working_directory = str(parent.absolute())
            logger.debug("Derived working directory %s", self.working_directory)


def new_draft(
    platform: Platform,
    defaults: TraceDefaults | None = None,
    *,
    devices: list[str] | None = None,
    now: datetime | None = None,
) -> TraceConfigDraft:
    """Create a draft pre-filled from remembered defaults.

    Args:
        platform: Which kind of trace the draft describes.
        defaults: Values remembered from the last confirmed trace.
        devices: Currently available device serials. When given, the
                 remembered device is only selected if it is still present.
        now: Timestamp for derived names, mostly for tests.

    Returns:
        A draft with derived fields already filled in.
    """
    defaults = defaults or TraceDefaults()
    if platform == Platform.ANDROID:
        api = GraphicsApi.parse(defaults.api) or GraphicsApi.GLES
    else:
        api = GraphicsApi.VULKAN

    draft = TraceConfigDraft(
        platform=platform,
        api=api,
        output_dir=defaults.out_dir,
        frame_count=defaults.frame_count,
        mid_execution=defaults.mid_execution,
        disable_buffering=defaults.without_buffering,
        created_at=now or datetime.now(),
    )

    if platform == Platform.ANDROID:
        if devices is None:
            draft.device = defaults.device
        else:
            draft.device = pick_default_device(devices, defaults.device) or ""
        draft.arguments = defaults.intent_args
        draft.clear_cache = defaults.clear_cache
        draft.disable_pcs = defaults.disable_pcs
        draft.set_target(defaults.package)
    else:
        draft.arguments = defaults.args
        # A remembered directory was confirmed by the user in an earlier trace.
        if defaults.cwd:
            draft.set_working_directory(defaults.cwd)
        draft.set_executable(defaults.executable)

    return draft


def remember(draft: TraceConfigDraft, defaults: TraceDefaults | None = None) -> TraceDefaults:
    """Fold a confirmed draft's values into a new TraceDefaults.

    Fields of the other platform are carried over unchanged.
    """
    defaults = defaults or TraceDefaults()
    update = {
        "api": draft.api.value if draft.api else "",
        "out_dir": draft.output_dir,
        "frame_count": draft.frame_count,
        "mid_execution": draft.mid_execution,
        "without_buffering": draft.disable_buffering,
    }
    if draft.platform == Platform.ANDROID:
        update.update(
            device=draft.device,
            package=draft.target,
            intent_args=draft.arguments,
            clear_cache=draft.clear_cache,
            disable_pcs=draft.disable_pcs,
        )
    else:
        # The desktop API is fixed, keep the remembered Android choice.
        update.pop("api")
        update.update(
            executable=draft.executable,
            args=draft.arguments,
            cwd=draft.working_directory,
        )
    return defaults.model_copy(update=update)
