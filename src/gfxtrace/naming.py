"""Default output file names for captures."""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePath

from gfxtrace.domain.models import ActivityLaunch
from gfxtrace.target import resolve

DEFAULT_TRACE_NAME = "trace"
TRACE_EXTENSION = ".gfxtrace"
TIMESTAMP_FORMAT = "_%Y%m%d_%H%M"


def derive_output_name(base_name: str, timestamp: datetime) -> str:
    """Build ``<base>_YYYYMMDD_HHMM.gfxtrace``, using "trace" for an empty base."""
    return (base_name or DEFAULT_TRACE_NAME) + timestamp.strftime(TIMESTAMP_FORMAT) + TRACE_EXTENSION


def android_base_name(raw_target: str) -> str:
    """Last dot-component of the package a launch target refers to.

    ``com.foo.bar`` gives ``bar``; for ``ACTION:com.foo/Main`` the package
    part ``com.foo`` is used, giving ``foo``.
    """
    target = resolve(raw_target)
    name = target.package if isinstance(target, ActivityLaunch) else target.target
    return name[name.rfind(".") + 1 :]


def desktop_base_name(executable: str) -> str:
    """Executable file name without its directory or extension.

    A leading dot is part of the name, not an extension separator.
    """
    name = PurePath(executable).name
    ext_sep = name.rfind(".")
    if ext_sep > 0:
        name = name[:ext_sep]
    return name
