"""Resolution of free-form Android launch targets.

A launch target is either ``ACTION:PACKAGE/ACTIVITY`` or anything else,
which is handed to the tracer untouched. The grammar is purely syntactic:
the first ``:`` ends the action and the first ``/`` after it ends the
package. Package and activity names are not validated.
"""

from __future__ import annotations

from gfxtrace.domain.models import ActivityLaunch, BareLaunch


def resolve(raw: str) -> ActivityLaunch | BareLaunch:
    """Turn a raw launch-target string into a structured launch descriptor.

    Never fails: strings that do not match the activity form degrade to a
    BareLaunch carrying the raw text.
    """
    action_sep = raw.find(":")
    if action_sep >= 0:
        package_sep = raw.find("/", action_sep + 1)
        if package_sep >= 0:
            return ActivityLaunch(
                action=raw[:action_sep],
                package=raw[action_sep + 1 : package_sep],
                activity=raw[package_sep + 1 :],
            )
    return BareLaunch(target=raw)
