from __future__ import annotations

import warnings

from .types import RECORDING_VERSION, Recording


class RecordingVersionWarning(UserWarning):
    """Warnings related to the recording's `version` field."""


def warn_on_version_mismatch(
    recording: Recording,
    *,
    action: str = "replay",
    current_version: str | None = None,
) -> bool:
    """Warn if `recording.version` doesn't match the recorder format in use.

    Returns True if a warning was emitted. Mismatches never reject a
    recording; forward compatibility is advisory only.
    """

    expected = str(current_version) if current_version is not None else RECORDING_VERSION
    got = str(recording.version)

    if not got:
        warnings.warn(
            f"Recording is missing version; {action} may diverge (current={expected!r}).",
            category=RecordingVersionWarning,
            stacklevel=2,
        )
        return True

    if got != expected:
        warnings.warn(
            f"Recording version {got!r} may not be compatible; {action} may diverge (current={expected!r}).",
            category=RecordingVersionWarning,
            stacklevel=2,
        )
        return True

    return False
