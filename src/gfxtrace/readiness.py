"""Readiness checks for trace drafts.

Everything here is a pure function of the draft, meant to be re-run after
every edit to decide whether the trace can be confirmed and which warnings
to show next to the form.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from gfxtrace.domain.models import GraphicsApi, Platform
from gfxtrace.draft import TraceConfigDraft

_SHARED_FIELDS = ("api", "output_name", "output_dir")

REQUIRED_FIELDS: dict[Platform, tuple[str, ...]] = {
    Platform.ANDROID: _SHARED_FIELDS + ("device", "target"),
    Platform.DESKTOP: _SHARED_FIELDS + ("executable",),
}


class Readiness(BaseModel):
    """Snapshot of a draft's launchability and the warnings to surface."""

    model_config = ConfigDict(frozen=True)

    ready: bool
    missing: tuple[str, ...] = ()
    mid_execution_warning: bool = False
    pcs_warning: bool = False


def missing_fields(draft: TraceConfigDraft) -> list[str]:
    """Names of required fields that are still empty, in form order."""
    return [name for name in REQUIRED_FIELDS[draft.platform] if not getattr(draft, name)]


def is_ready(draft: TraceConfigDraft) -> bool:
    return not missing_fields(draft)


def mid_execution_warning(draft: TraceConfigDraft) -> bool:
    """Whether the draft asks for mid-execution capture of OpenGL ES on Android.

    That combination is experimental; it is flagged, not rejected.
    """
    return (
        draft.platform == Platform.ANDROID
        and draft.api == GraphicsApi.GLES
        and draft.mid_execution
    )


def pcs_warning(draft: TraceConfigDraft) -> bool:
    """Whether pre-compiled shaders stay enabled for an Android trace."""
    return draft.platform == Platform.ANDROID and not draft.disable_pcs


def evaluate(draft: TraceConfigDraft) -> Readiness:
    missing = missing_fields(draft)
    return Readiness(
        ready=not missing,
        missing=tuple(missing),
        mid_execution_warning=mid_execution_warning(draft),
        pcs_warning=pcs_warning(draft),
    )
