from __future__ import annotations

from dataclasses import dataclass

import msgspec

RECORDING_VERSION = "1.0.0"


class InputEvent(msgspec.Struct, frozen=True):
    """One player action, `timestamp` ms after recording start."""

    timestamp: int
    action: str


class Recording(msgspec.Struct, frozen=True, rename="camel"):
    """Replay artifact of one game session.

    Wire keys are camelCase (`startTime`, `finalScore`). Optional fields decode
    as None when absent so validation can report them instead of the decoder.
    """

    seed: int
    inputs: tuple[InputEvent, ...]
    start_time: int | None = None
    final_score: int | None = None
    duration: int | None = None
    version: str = RECORDING_VERSION


@dataclass(frozen=True, slots=True)
class RecordingStats:
    total_inputs: int = 0
    forward_moves: int = 0
    backward_moves: int = 0
    left_moves: int = 0
    right_moves: int = 0
    average_input_interval: float = 0.0
