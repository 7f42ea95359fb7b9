from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .rng import SeededRandom
from .rules import DEFAULT_RULES, GameRules, HazardSpec

logger = logging.getLogger(__name__)


class LaneKind(str, Enum):
    FIELD = "field"
    FOREST = "forest"
    CAR = "car"
    TRUCK = "truck"

    @property
    def is_traffic(self) -> bool:
        return self in (LaneKind.CAR, LaneKind.TRUCK)


# Draw order is part of the replay format: index -> kind.
RANDOM_LANE_KINDS: tuple[LaneKind, ...] = (LaneKind.CAR, LaneKind.TRUCK, LaneKind.FOREST)

_KIND_CODES = {
    LaneKind.FIELD: 0,
    LaneKind.FOREST: 1,
    LaneKind.CAR: 2,
    LaneKind.TRUCK: 3,
}


@dataclass(frozen=True, slots=True)
class Hazard:
    slot: int
    origin_x: float


@dataclass(frozen=True, slots=True)
class Lane:
    index: int
    kind: LaneKind
    moving_left: bool = False
    speed: float = 0.0
    hazards: tuple[Hazard, ...] = ()
    blocked_columns: frozenset[int] = frozenset()

    @property
    def is_traffic(self) -> bool:
        return self.kind.is_traffic

    @property
    def kind_code(self) -> int:
        return _KIND_CODES[self.kind]

    def blocks(self, column: int) -> bool:
        return self.kind is LaneKind.FOREST and int(column) in self.blocked_columns

    def hazard_spec(self, rules: GameRules = DEFAULT_RULES) -> HazardSpec | None:
        return rules.hazards.get(self.kind.value)

    def hazard_positions(self, time_ms: float, rules: GameRules = DEFAULT_RULES) -> tuple[float, ...]:
        """Hazard centers `time_ms` after session start.

        Hazards drift at `speed * speed_scale` units/ms and re-enter past the
        opposite edge once they leave the wrap window.
        """

        if not self.hazards:
            return ()
        lower = float(rules.wrap_min)
        span = float(rules.wrap_max) - lower
        travel = float(self.speed) * float(rules.speed_scale) * float(time_ms)
        if self.moving_left:
            travel = -travel
        return tuple(lower + ((float(h.origin_x) - lower + travel) % span) for h in self.hazards)


def _claim_slots(rng: SeededRandom, count: int, draw) -> list[int]:
    # Rejection sampling: redraw until the slot is unclaimed.
    claimed: list[int] = []
    for _ in range(int(count)):
        slot = draw()
        while slot in claimed:
            slot = draw()
        claimed.append(slot)
    return claimed


def build_lane(index: int, rng: SeededRandom, rules: GameRules = DEFAULT_RULES) -> Lane:
    """Derive row `index` from the generator's current state.

    Row 0 is always a field and does not touch the generator.
    """

    index = int(index)
    if index <= 0:
        return Lane(index=index, kind=LaneKind.FIELD)

    kind = rng.choice(RANDOM_LANE_KINDS)
    columns = int(rules.columns)

    if kind is LaneKind.FOREST:
        blocked = _claim_slots(rng, int(rules.forest_blockers), lambda: rng.integer(0, columns))
        return Lane(index=index, kind=kind, blocked_columns=frozenset(blocked))

    spec = rules.hazards[kind.value]
    moving_left = rng.random() >= 0.5
    divider = float(spec.slot_divider)
    slots = _claim_slots(rng, int(spec.count), lambda: int(rng.random() * float(columns) / divider))
    speed = float(rng.choice(rules.lane_speeds))
    hazards = tuple(Hazard(slot=int(slot), origin_x=rules.slot_center(slot, spec)) for slot in slots)
    return Lane(index=index, kind=kind, moving_left=moving_left, speed=speed, hazards=hazards)


class Board:
    """Append-only arena of rows keyed by index.

    Rows are generated on demand in strictly increasing order from the
    board's own generator, so two boards with the same seed agree row by row
    no matter when each row is first requested.
    """

    __slots__ = ("_rng", "_rules", "_lanes")

    def __init__(
        self,
        rng: SeededRandom,
        rules: GameRules = DEFAULT_RULES,
        *,
        lanes: Iterable[Lane] | None = None,
    ) -> None:
        self._rng = rng
        self._rules = rules
        self._lanes: list[Lane] = []
        if lanes is not None:
            for idx, lane in enumerate(lanes):
                if int(lane.index) != idx:
                    raise ValueError(f"preset lane at position {idx} has index {lane.index}")
                self._lanes.append(lane)

    @classmethod
    def from_seed(cls, seed: int, rules: GameRules = DEFAULT_RULES) -> Board:
        return cls(SeededRandom(seed), rules)

    @property
    def rules(self) -> GameRules:
        return self._rules

    @property
    def rng(self) -> SeededRandom:
        return self._rng

    @property
    def lanes(self) -> tuple[Lane, ...]:
        return tuple(self._lanes)

    def __len__(self) -> int:
        return len(self._lanes)

    def row(self, index: int) -> Lane:
        index = int(index)
        if index < 0:
            raise IndexError(f"row index must be non-negative, got {index}")
        while len(self._lanes) <= index:
            lane = build_lane(len(self._lanes), self._rng, self._rules)
            self._lanes.append(lane)
            logger.debug("generated row %d kind=%s", lane.index, lane.kind.value)
        return self._lanes[index]

    def rows(self, count: int) -> tuple[Lane, ...]:
        if int(count) > 0:
            self.row(int(count) - 1)
        return tuple(self._lanes[: max(0, int(count))])
