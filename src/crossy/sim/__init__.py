from __future__ import annotations

from .clock import FixedStepClock
from .input import ACTION_NAMES, Action, parse_action
from .session import Collision, CrossingSession, SessionPhase

__all__ = [
    "ACTION_NAMES",
    "Action",
    "Collision",
    "CrossingSession",
    "FixedStepClock",
    "SessionPhase",
    "parse_action",
]
