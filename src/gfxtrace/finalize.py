"""Turning a ready draft into an immutable trace request."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from gfxtrace.domain.models import AndroidTraceRequest, DesktopTraceRequest, Platform
from gfxtrace.draft import TraceConfigDraft
from gfxtrace.exceptions import DraftNotReadyError
from gfxtrace.readiness import missing_fields
from gfxtrace.target import resolve

logger = logging.getLogger(__name__)


def _common_fields(draft: TraceConfigDraft) -> dict:
    return {
        "api": draft.api,
        "output": Path(draft.output_dir) / draft.output_name,
        "frame_count": draft.frame_count,
        "mid_execution": draft.mid_execution,
        "disable_buffering": draft.disable_buffering,
    }


def _android_request(draft: TraceConfigDraft) -> AndroidTraceRequest:
    return AndroidTraceRequest(
        **_common_fields(draft),
        device=draft.device,
        target=resolve(draft.target),
        arguments=draft.arguments,
        clear_cache=draft.clear_cache,
        disable_pcs=draft.disable_pcs,
    )


def _desktop_request(draft: TraceConfigDraft) -> DesktopTraceRequest:
    return DesktopTraceRequest(
        **_common_fields(draft),
        executable=Path(draft.executable),
        arguments=draft.arguments,
        working_directory=Path(draft.working_directory) if draft.working_directory else None,
    )


_FINALIZERS: dict[Platform, Callable[[TraceConfigDraft], AndroidTraceRequest | DesktopTraceRequest]] = {
    Platform.ANDROID: _android_request,
    Platform.DESKTOP: _desktop_request,
}


def finalize(draft: TraceConfigDraft) -> AndroidTraceRequest | DesktopTraceRequest:
    """Build the trace request for a ready draft.

    Callers are expected to check readiness first; an unready draft is a
    programming error.

    Raises:
        DraftNotReadyError: If required fields are still empty.
    """
    missing = missing_fields(draft)
    if missing:
        raise DraftNotReadyError(missing)

    request = _FINALIZERS[draft.platform](draft)
    logger.debug("Finalized %s trace request: %s", draft.platform.value, request.output)
    return request
