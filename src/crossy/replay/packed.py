from __future__ import annotations

import io
from pathlib import Path
from typing import Final

from construct import Array, Byte, Const, ConstError, ConstructError, Int16ul, Int32ul, Int64ul
from construct import PascalString, StreamError, StringError, Struct, Terminated, TerminatedError

from ..rng import normalize_seed
from ..sim.input import Action
from .codec import validation_errors
from .types import InputEvent, Recording

MAGIC: Final[bytes] = b"XREC\x00"
VERSION: Final[int] = 1

_ACTION_CODES: Final[dict[str, int]] = {
    Action.FORWARD.value: 0,
    Action.BACKWARD.value: 1,
    Action.LEFT.value: 2,
    Action.RIGHT.value: 3,
}
_ACTION_NAMES: Final[dict[int, str]] = {code: name for name, code in _ACTION_CODES.items()}


class PackedRecordingError(ValueError):
    pass


_MAGIC = Const(MAGIC)

_HEADER_V1 = Struct(
    "version" / Int16ul,
    "seed" / Int32ul,
    "start_time" / Int64ul,
    "final_score" / Int32ul,
    "duration" / Int32ul,
    "recorder_version" / PascalString(Byte, "utf8"),
    "input_count" / Int32ul,
)

_INPUT_V1 = Struct(
    "timestamp" / Int32ul,
    "action" / Byte,
)


def loads(data: bytes) -> Recording:
    stream = io.BytesIO(data)

    try:
        _MAGIC.parse_stream(stream)
    except StreamError as exc:
        raise PackedRecordingError("unexpected EOF") from exc
    except ConstError as exc:
        raise PackedRecordingError("invalid magic") from exc

    try:
        header = _HEADER_V1.parse_stream(stream)
    except StringError as exc:
        raise PackedRecordingError("recorder version is not valid UTF-8") from exc
    except ConstructError as exc:
        raise PackedRecordingError("unexpected EOF") from exc

    version = int(header["version"])
    if version != VERSION:
        raise PackedRecordingError(f"unsupported packed recording version: {version}")

    try:
        inputs_raw = Array(int(header["input_count"]), _INPUT_V1).parse_stream(stream)
        Terminated.parse_stream(stream)
    except StreamError as exc:
        raise PackedRecordingError("unexpected EOF") from exc
    except TerminatedError as exc:
        raise PackedRecordingError("trailing data") from exc
    except ConstructError as exc:
        raise PackedRecordingError(str(exc)) from exc

    inputs: list[InputEvent] = []
    for idx, entry in enumerate(inputs_raw):
        code = int(entry["action"])
        name = _ACTION_NAMES.get(code)
        if name is None:
            raise PackedRecordingError(f"input {idx} has unknown action code {code}")
        inputs.append(InputEvent(timestamp=int(entry["timestamp"]), action=name))

    return Recording(
        seed=int(header["seed"]),
        inputs=tuple(inputs),
        start_time=int(header["start_time"]),
        final_score=int(header["final_score"]),
        duration=int(header["duration"]),
        version=str(header["recorder_version"]),
    )


def load(path: Path) -> Recording:
    return loads(Path(path).read_bytes())


def dumps(recording: Recording) -> bytes:
    """Pack a valid recording; the seed is stored normalized to 32 bits."""
    errors = validation_errors(recording)
    if errors:
        raise PackedRecordingError(f"cannot pack invalid recording: {'; '.join(errors)}")

    header_raw = {
        "version": int(VERSION),
        "seed": normalize_seed(recording.seed),
        "start_time": int(recording.start_time or 0),
        "final_score": int(recording.final_score or 0),
        "duration": int(recording.duration or 0),
        "recorder_version": str(recording.version),
        "input_count": len(recording.inputs),
    }
    inputs_raw = [
        {
            "timestamp": int(event.timestamp),
            "action": _ACTION_CODES[event.action],
        }
        for event in recording.inputs
    ]

    out = bytearray()
    out += MAGIC
    try:
        out += _HEADER_V1.build(header_raw)
        out += Array(len(inputs_raw), _INPUT_V1).build(inputs_raw)
    except ConstructError as exc:
        raise PackedRecordingError(str(exc)) from exc

    return bytes(out)


def dump(recording: Recording, path: Path) -> None:
    Path(path).write_bytes(dumps(recording))
