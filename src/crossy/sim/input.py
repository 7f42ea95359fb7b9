from __future__ import annotations

from enum import Enum


class Action(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        """`(lane, column)` offset applied when the move completes."""
        return _DELTAS[self]

    @property
    def is_vertical(self) -> bool:
        return self in (Action.FORWARD, Action.BACKWARD)


_DELTAS: dict[Action, tuple[int, int]] = {
    Action.FORWARD: (1, 0),
    Action.BACKWARD: (-1, 0),
    Action.LEFT: (0, -1),
    Action.RIGHT: (0, 1),
}

ACTION_NAMES: frozenset[str] = frozenset(action.value for action in Action)


def parse_action(value: str | Action) -> Action:
    if isinstance(value, Action):
        return value
    try:
        return Action(str(value))
    except ValueError:
        raise ValueError(f"unknown action: {value!r}") from None
