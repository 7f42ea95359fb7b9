from __future__ import annotations

import gzip
import json
from pathlib import Path

import pytest

from crossy.replay import (
    InputEvent,
    Recording,
    RecordingCodecError,
    RecordingVersionWarning,
    deserialize,
    digest,
    dump_recording_file,
    load_recording_file,
    make_recording,
    serialize,
    stats,
    validate,
    validation_errors,
    warn_on_version_mismatch,
)


def _sample() -> Recording:
    return make_recording(
        seed=0xBEEF,
        inputs=[(0, "forward"), (100, "left"), (300, "forward")],
        final_score=2,
        start_time=1_700_000_000_000,
        duration=1_250,
    )


def test_codec_roundtrip() -> None:
    recording = _sample()
    decoded = deserialize(serialize(recording))
    assert decoded == recording
    assert decoded.inputs[1] == InputEvent(timestamp=100, action="left")


def test_wire_keys_are_camel_case() -> None:
    obj = json.loads(serialize(_sample()))
    assert set(obj) == {"seed", "inputs", "startTime", "finalScore", "duration", "version"}
    assert obj["inputs"][0] == {"timestamp": 0, "action": "forward"}
    assert obj["startTime"] == 1_700_000_000_000


def test_serialize_is_stable() -> None:
    assert serialize(_sample()) == serialize(_sample())


def test_deserialize_accepts_text_and_gzip() -> None:
    blob = serialize(_sample())
    assert deserialize(blob.decode("utf-8")) == _sample()
    assert deserialize(gzip.compress(blob)) == _sample()


@pytest.mark.parametrize(
    "blob",
    [
        b"{not json",
        b"[]",
        b'{"inputs": []}',
        b'{"seed": "one", "inputs": []}',
        b'{"seed": 1, "inputs": [{"timestamp": 0}]}',
        b"\x1f\x8b\x08garbage",
    ],
)
def test_malformed_input_raises_codec_error(blob: bytes) -> None:
    with pytest.raises(RecordingCodecError):
        deserialize(blob)


def test_codec_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        deserialize(b"")


def test_version_mismatch_warns_but_decodes() -> None:
    blob = b'{"seed": 1, "inputs": [], "startTime": 0, "finalScore": 0, "duration": 0, "version": "0.9.0"}'
    with pytest.warns(RecordingVersionWarning, match="0.9.0"):
        recording = deserialize(blob)
    assert recording.version == "0.9.0"
    assert validate(recording)


def test_version_warning_helper() -> None:
    recording = _sample()
    assert warn_on_version_mismatch(recording) is False
    with pytest.warns(RecordingVersionWarning, match="missing version"):
        assert warn_on_version_mismatch(Recording(seed=1, inputs=(), version="")) is True
    with pytest.warns(RecordingVersionWarning):
        assert warn_on_version_mismatch(recording, current_version="2.0.0") is True


def test_missing_fields_reported() -> None:
    recording = deserialize(b'{"seed": 5, "inputs": []}')
    errors = validation_errors(recording)
    assert errors == ["missing startTime", "missing duration", "missing finalScore"]
    assert not validate(recording)


def test_bad_inputs_reported() -> None:
    recording = Recording(
        seed=5,
        inputs=(
            InputEvent(timestamp=-1, action="forward"),
            InputEvent(timestamp=200, action="jump"),
            InputEvent(timestamp=150, action="left"),
        ),
        start_time=0,
        final_score=-3,
        duration=-10,
    )
    errors = validation_errors(recording)
    assert "negative duration: -10" in errors
    assert "negative finalScore: -3" in errors
    assert "input 0 has negative timestamp -1" in errors
    assert "input 1 has unknown action 'jump'" in errors
    assert "input 2 timestamp 150 precedes 200" in errors


def test_equal_timestamps_are_valid() -> None:
    recording = make_recording(seed=1, inputs=[(100, "forward"), (100, "forward")], final_score=0)
    assert validate(recording)


def test_digest_known_value() -> None:
    # Java-style string hash of "1-0-0" is 46640695.
    assert digest(Recording(seed=1, inputs=(), final_score=0)) == "rro6v"


def test_digest_tracks_score_and_length() -> None:
    base = _sample()
    assert digest(base) == digest(_sample())
    assert digest(base) != digest(make_recording(seed=0xBEEF, inputs=list(base.inputs), final_score=3))
    assert digest(base) != digest(make_recording(seed=0xBEEF, inputs=list(base.inputs[:2]), final_score=2))


def test_stats() -> None:
    summary = stats(_sample())
    assert summary.total_inputs == 3
    assert summary.forward_moves == 2
    assert summary.left_moves == 1
    assert summary.backward_moves == 0
    assert summary.right_moves == 0
    assert summary.average_input_interval == 150.0


def test_stats_of_short_recording() -> None:
    assert stats(make_recording(seed=1, inputs=[(40, "right")], final_score=0)).average_input_interval == 0.0


def test_make_recording_defaults_duration_to_last_offset() -> None:
    recording = make_recording(seed=1, inputs=[(0, "forward"), (730, "left")], final_score=1)
    assert recording.duration == 730
    assert recording.start_time == 0
    assert make_recording(seed=1, inputs=[], final_score=0).duration == 0


def test_file_roundtrip(tmp_path: Path) -> None:
    plain = tmp_path / "run.json"
    packed = tmp_path / "run.json.gz"
    dump_recording_file(plain, _sample())
    dump_recording_file(packed, _sample())

    assert plain.read_bytes() == serialize(_sample())
    assert packed.read_bytes()[:2] == b"\x1f\x8b"
    assert load_recording_file(plain) == _sample()
    assert load_recording_file(packed) == _sample()

    first = packed.read_bytes()
    dump_recording_file(packed, _sample())
    assert packed.read_bytes() == first
