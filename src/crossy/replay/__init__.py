from __future__ import annotations

from .codec import (
    RecordingCodecError,
    deserialize,
    digest,
    dump_recording_file,
    load_recording_file,
    make_recording,
    serialize,
    stats,
    validate,
    validation_errors,
)
from .recorder import InputRecorder, RecorderStateError
from .runner import ReplayTimelineError, RunResult, replay_inputs, run_recording
from .types import RECORDING_VERSION, InputEvent, Recording, RecordingStats
from .verify import MismatchReason, VerificationResult, verify_blob, verify_recording
from .versioning import RecordingVersionWarning, warn_on_version_mismatch

__all__ = [
    "RECORDING_VERSION",
    "InputEvent",
    "InputRecorder",
    "MismatchReason",
    "RecorderStateError",
    "Recording",
    "RecordingCodecError",
    "RecordingStats",
    "RecordingVersionWarning",
    "ReplayTimelineError",
    "RunResult",
    "VerificationResult",
    "deserialize",
    "digest",
    "dump_recording_file",
    "load_recording_file",
    "make_recording",
    "replay_inputs",
    "run_recording",
    "serialize",
    "stats",
    "validate",
    "validation_errors",
    "verify_blob",
    "verify_recording",
    "warn_on_version_mismatch",
]
