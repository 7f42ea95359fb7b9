from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class HazardSpec:
    count: int
    slot_divider: int
    length: float


def _default_hazard_specs() -> dict[str, HazardSpec]:
    return {
        "car": HazardSpec(count=3, slot_divider=2, length=60.0),
        "truck": HazardSpec(count=2, slot_divider=3, length=105.0),
    }


@dataclass(frozen=True, slots=True)
class GameRules:
    """Board geometry and timing shared by generation, simulation and replay.

    Distances are board units (one column is `position_width` wide, x=0 is the
    board center); times are integer milliseconds.
    """

    columns: int = 17
    position_width: float = 42.0
    step_ms: int = 200
    tick_ms: int = 10
    player_size: float = 15.0
    forest_blockers: int = 4
    lane_speeds: tuple[float, ...] = (2.0, 2.5, 3.0)
    speed_scale: float = 1.0 / 32.0
    wrap_margin_tiles: float = 2.0
    hazards: dict[str, HazardSpec] = field(default_factory=_default_hazard_specs)

    def __post_init__(self) -> None:
        if int(self.columns) <= 0:
            raise ValueError(f"columns must be positive, got {self.columns}")
        if int(self.tick_ms) <= 0:
            raise ValueError(f"tick_ms must be positive, got {self.tick_ms}")
        if int(self.step_ms) < int(self.tick_ms):
            raise ValueError(f"step_ms must be at least tick_ms, got {self.step_ms} < {self.tick_ms}")
        if not self.lane_speeds:
            raise ValueError("lane_speeds must not be empty")
        if not (0 <= int(self.forest_blockers) < int(self.columns)):
            raise ValueError(f"forest_blockers must leave a free column, got {self.forest_blockers}")
        for kind, spec in self.hazards.items():
            slots = self.slot_count(spec)
            if int(spec.count) > slots:
                raise ValueError(f"{kind} lanes need {spec.count} hazard slots, board has {slots}")

    @property
    def board_width(self) -> float:
        return float(self.position_width) * float(self.columns)

    @property
    def start_column(self) -> int:
        return int(self.columns) // 2

    @property
    def wrap_min(self) -> float:
        return -self.board_width / 2.0 - float(self.position_width) * float(self.wrap_margin_tiles)

    @property
    def wrap_max(self) -> float:
        return self.board_width / 2.0 + float(self.position_width) * float(self.wrap_margin_tiles)

    def slot_count(self, spec: HazardSpec) -> int:
        return -(-int(self.columns) // int(spec.slot_divider))

    def column_center(self, column: float) -> float:
        width = float(self.position_width)
        return float(column) * width + width / 2.0 - self.board_width / 2.0

    def slot_center(self, slot: int, spec: HazardSpec) -> float:
        width = float(self.position_width)
        return float(slot) * width * float(spec.slot_divider) + width / 2.0 - self.board_width / 2.0


DEFAULT_RULES = GameRules()
