from __future__ import annotations

import logging
import math
import time
from typing import Callable

from ..rng import normalize_seed
from ..sim.input import Action, parse_action
from .types import RECORDING_VERSION, InputEvent, Recording

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def wall_ms() -> float:
    return time.time() * 1000.0


def _round_ms(value: float) -> int:
    # Half-up, not banker's rounding.
    return int(math.floor(float(value) + 0.5))


class RecorderStateError(RuntimeError):
    pass


class InputRecorder:
    """Timestamps player actions relative to the start of a session.

    Offsets come from `clock` (monotonic by default) so wall-clock adjustments
    never reorder inputs; `wall_clock` only feeds `startTime` and `duration`.
    """

    def __init__(
        self,
        *,
        clock: Clock = monotonic_ms,
        wall_clock: Clock = wall_ms,
        version: str = RECORDING_VERSION,
    ) -> None:
        self._clock = clock
        self._wall_clock = wall_clock
        self._version = str(version)
        self._recording = False
        self._seed = 0
        self._start_time = 0
        self._origin = 0.0
        self._inputs: list[InputEvent] = []

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def seed(self) -> int:
        return int(self._seed)

    @property
    def input_count(self) -> int:
        return len(self._inputs)

    def start(self, seed: int | None = None) -> int:
        now = float(self._wall_clock())
        self._seed = normalize_seed(seed if seed is not None else now)
        self._start_time = int(now)
        self._origin = float(self._clock())
        self._inputs = []
        self._recording = True
        logger.debug("recording started seed=%d", self._seed)
        return int(self._seed)

    def record(self, action: Action | str) -> InputEvent | None:
        action = parse_action(action)
        if not self._recording:
            return None
        timestamp = _round_ms(float(self._clock()) - self._origin)
        if self._inputs and timestamp < self._inputs[-1].timestamp:
            timestamp = self._inputs[-1].timestamp
        event = InputEvent(timestamp=max(0, timestamp), action=action.value)
        self._inputs.append(event)
        logger.debug("input recorded %s at %dms", event.action, event.timestamp)
        return event

    def stop(self, final_score: int, *, duration: int | None = None) -> Recording:
        """Freeze the buffer into a `Recording`.

        `duration` defaults to wall-clock time since `start`; drivers that
        own a simulation clock pass the simulated length instead.
        """
        if not self._recording:
            raise RecorderStateError("recorder is not active")
        self._recording = False
        if duration is None:
            duration = int(float(self._wall_clock()) - float(self._start_time))
        duration = max(0, int(duration))
        recording = Recording(
            seed=int(self._seed),
            inputs=tuple(self._inputs),
            start_time=int(self._start_time),
            final_score=int(final_score),
            duration=duration,
            version=self._version,
        )
        logger.debug(
            "recording stopped inputs=%d final_score=%d duration=%dms",
            len(recording.inputs),
            int(final_score),
            duration,
        )
        return recording
