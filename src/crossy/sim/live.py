from __future__ import annotations

from ..replay.recorder import Clock, InputRecorder, wall_ms
from ..replay.types import Recording
from ..rng import normalize_seed
from ..rules import DEFAULT_RULES, GameRules
from .clock import FixedStepClock
from .input import Action, parse_action
from .session import Collision, CrossingSession


class LiveSession:
    """Frame-driven play loop around a `CrossingSession`.

    The recorder reads simulation time, so every recorded offset is the tick
    at which the move was submitted and a replay resubmits it at that tick.
    The recording ends where play stopped, moves still in flight included.
    """

    def __init__(
        self,
        seed: int | None = None,
        *,
        rules: GameRules = DEFAULT_RULES,
        wall_clock: Clock = wall_ms,
    ) -> None:
        if seed is None:
            seed = normalize_seed(wall_clock())
        self.session = CrossingSession.build(seed, rules=rules)
        self.clock = FixedStepClock(tick_ms=int(rules.tick_ms))
        self.recorder = InputRecorder(clock=self._sim_time, wall_clock=wall_clock)
        self.recorder.start(self.session.seed)

    def _sim_time(self) -> float:
        return float(self.session.time_ms)

    @property
    def seed(self) -> int:
        return int(self.session.seed)

    def frame(self, dt_ms: float) -> Collision | None:
        """Advance by one rendered frame's elapsed time."""
        if self.session.is_over:
            return self.session.collision
        return self.session.advance(self.clock.advance(dt_ms))

    def press(self, action: Action | str) -> bool:
        action = parse_action(action)
        if self.session.is_over:
            return False
        self.recorder.record(action)
        return self.session.submit(action)

    def finish(self) -> Recording:
        """Stop recording; the duration is the simulated time played."""
        return self.recorder.stop(self.session.score, duration=int(self.session.time_ms))
