from __future__ import annotations

import gzip
import zlib
from pathlib import Path

import msgspec

from ..sim.input import ACTION_NAMES, Action
from .types import InputEvent, Recording, RecordingStats
from .versioning import warn_on_version_mismatch

_GZIP_MAGIC = b"\x1f\x8b"
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

_ENCODER = msgspec.json.Encoder()
_DECODER = msgspec.json.Decoder(Recording)


class RecordingCodecError(ValueError):
    pass


def _is_gzip(data: bytes) -> bool:
    return data.startswith(_GZIP_MAGIC)


def serialize(recording: Recording) -> bytes:
    """Encode a recording as compact JSON with stable field order."""
    return _ENCODER.encode(recording)


def deserialize(data: bytes | str, *, warn_on_version: bool = True) -> Recording:
    if isinstance(data, str):
        data = data.encode("utf-8")
    data = bytes(data)
    if _is_gzip(data):
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise RecordingCodecError(f"corrupt gzip stream: {exc}") from exc
    try:
        recording = _DECODER.decode(data)
    except msgspec.ValidationError as exc:
        raise RecordingCodecError(f"invalid recording: {exc}") from exc
    except msgspec.DecodeError as exc:
        raise RecordingCodecError(f"malformed recording: {exc}") from exc
    if warn_on_version:
        warn_on_version_mismatch(recording, action="deserialize")
    return recording


def validation_errors(recording: Recording) -> list[str]:
    errors: list[str] = []
    if recording.start_time is None:
        errors.append("missing startTime")
    if recording.duration is None:
        errors.append("missing duration")
    elif int(recording.duration) < 0:
        errors.append(f"negative duration: {recording.duration}")
    if recording.final_score is None:
        errors.append("missing finalScore")
    elif int(recording.final_score) < 0:
        errors.append(f"negative finalScore: {recording.final_score}")

    previous: int | None = None
    for idx, event in enumerate(recording.inputs):
        timestamp = int(event.timestamp)
        if timestamp < 0:
            errors.append(f"input {idx} has negative timestamp {timestamp}")
        if previous is not None and timestamp < previous:
            errors.append(f"input {idx} timestamp {timestamp} precedes {previous}")
        previous = timestamp
        if event.action not in ACTION_NAMES:
            errors.append(f"input {idx} has unknown action {event.action!r}")
    return errors


def validate(recording: Recording) -> bool:
    return not validation_errors(recording)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def digest(recording: Recording) -> str:
    """Short fingerprint of seed, input count and final score.

    Only a corruption sniff: unrelated recordings collide easily and the
    inputs themselves are not covered.
    """

    data = f"{recording.seed}-{len(recording.inputs)}-{recording.final_score}"
    value = 0
    for char in data:
        value = ((value << 5) - value + ord(char)) & 0xFFFF_FFFF
    if value & 0x8000_0000:
        value -= 0x1_0000_0000
    return _to_base36(abs(value))


def stats(recording: Recording) -> RecordingStats:
    counts = {action: 0 for action in Action}
    for event in recording.inputs:
        if event.action in ACTION_NAMES:
            counts[Action(event.action)] += 1

    inputs = recording.inputs
    average = 0.0
    if len(inputs) > 1:
        total = int(inputs[-1].timestamp) - int(inputs[0].timestamp)
        average = float(total) / float(len(inputs) - 1)

    return RecordingStats(
        total_inputs=len(inputs),
        forward_moves=counts[Action.FORWARD],
        backward_moves=counts[Action.BACKWARD],
        left_moves=counts[Action.LEFT],
        right_moves=counts[Action.RIGHT],
        average_input_interval=average,
    )


def dump_recording_file(path: Path, recording: Recording) -> None:
    path = Path(path)
    data = serialize(recording)
    if path.suffix == ".gz":
        # mtime=0 keeps the gzip header stable for content hashing.
        data = gzip.compress(data, compresslevel=9, mtime=0)
    path.write_bytes(data)


def load_recording_file(path: Path, *, warn_on_version: bool = True) -> Recording:
    path = Path(path)
    return deserialize(path.read_bytes(), warn_on_version=warn_on_version)


def make_recording(
    *,
    seed: int,
    inputs: list[tuple[int, str]] | list[InputEvent],
    final_score: int,
    start_time: int = 0,
    duration: int | None = None,
) -> Recording:
    events = tuple(
        event if isinstance(event, InputEvent) else InputEvent(timestamp=int(event[0]), action=str(event[1]))
        for event in inputs
    )
    if duration is None:
        duration = int(events[-1].timestamp) if events else 0
    return Recording(
        seed=int(seed),
        inputs=events,
        start_time=int(start_time),
        final_score=int(final_score),
        duration=int(duration),
    )
