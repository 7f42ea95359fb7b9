from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class FixedStepClock:
    """Turns variable frame deltas (ms) into whole simulation ticks."""

    tick_ms: int = 10
    accum_ms: float = 0.0

    def __post_init__(self) -> None:
        tick_ms = int(self.tick_ms)
        if tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {tick_ms}")
        self.tick_ms = tick_ms
        self.accum_ms = float(self.accum_ms)

    def reset(self) -> None:
        self.accum_ms = 0.0

    def advance(self, dt_ms: float, *, max_dt_ms: float = 100.0) -> int:
        dt_ms = float(dt_ms)
        if dt_ms <= 0.0:
            return 0
        if dt_ms > float(max_dt_ms):
            dt_ms = float(max_dt_ms)

        self.accum_ms += dt_ms
        ticks = int((self.accum_ms + 1e-9) / float(self.tick_ms))
        if ticks <= 0:
            return 0

        self.accum_ms -= float(self.tick_ms) * float(ticks)
        if self.accum_ms < 0.0:
            self.accum_ms = 0.0
        return int(ticks)
