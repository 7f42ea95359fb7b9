from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction

from ..rng import SeededRandom, normalize_seed
from ..rules import DEFAULT_RULES, GameRules
from ..world import Board, Lane
from .input import Action, parse_action

logger = logging.getLogger(__name__)

# Longest idle traffic period scanned tick by tick before giving up on skipping.
MAX_IDLE_SCAN_TICKS = 100_000


class SessionPhase(str, Enum):
    AWAITING_MOVE = "awaiting_move"
    STEPPING = "stepping"
    TERMINAL = "terminal"


@dataclass(frozen=True, slots=True)
class Collision:
    time_ms: int
    lane_index: int
    hazard_index: int
    score: int


@dataclass(slots=True)
class CrossingSession:
    """Deterministic lane/column state machine.

    `step_tick` is the only transition that moves time forward; live play
    calls it from a frame clock, replay calls it through `advance_to` with
    recorded offsets. `submit` queues a move at the current time.
    """

    board: Board
    seed: int = 0
    lane: int = 0
    column: int = -1
    time_ms: int = 0
    ticks: int = 0
    max_lane: int = 0
    moves: deque[Action] = field(default_factory=deque)
    step_started_ms: int | None = None
    collision: Collision | None = None
    accepted_moves: int = 0
    rejected_moves: int = 0

    def __post_init__(self) -> None:
        if self.column < 0:
            self.column = self.rules.start_column
        self.board.row(0)

    @classmethod
    def build(cls, seed: int, *, rules: GameRules = DEFAULT_RULES) -> CrossingSession:
        seed = normalize_seed(seed)
        return cls(board=Board(SeededRandom(seed), rules), seed=seed)

    @property
    def rules(self) -> GameRules:
        return self.board.rules

    @property
    def phase(self) -> SessionPhase:
        if self.collision is not None:
            return SessionPhase.TERMINAL
        if self.moves:
            return SessionPhase.STEPPING
        return SessionPhase.AWAITING_MOVE

    @property
    def is_over(self) -> bool:
        return self.collision is not None

    @property
    def score(self) -> int:
        # Current lane, not a high-water mark: backing up lowers it.
        return int(self.lane)

    def queued_position(self) -> tuple[int, int]:
        lane = int(self.lane)
        column = int(self.column)
        for move in self.moves:
            d_lane, d_column = move.delta
            lane += d_lane
            column += d_column
        return lane, column

    def is_legal(self, action: Action | str) -> bool:
        action = parse_action(action)
        lane, column = self.queued_position()
        if action is Action.FORWARD:
            return not self.board.row(lane + 1).blocks(column)
        if action is Action.BACKWARD:
            if lane <= 0:
                return False
            return not self.board.row(lane - 1).blocks(column)
        if action is Action.LEFT:
            if column <= 0:
                return False
            return not self.board.row(lane).blocks(column - 1)
        if column >= int(self.rules.columns) - 1:
            return False
        return not self.board.row(lane).blocks(column + 1)

    def submit(self, action: Action | str) -> bool:
        """Queue `action` if legal; illegal moves are dropped without error."""
        action = parse_action(action)
        if self.is_over:
            return False
        if not self.is_legal(action):
            self.rejected_moves += 1
            return False
        if not self.moves:
            self.step_started_ms = int(self.time_ms)
        self.moves.append(action)
        self.accepted_moves += 1
        return True

    def move_progress(self) -> float:
        if not self.moves or self.step_started_ms is None:
            return 0.0
        elapsed = int(self.time_ms) - int(self.step_started_ms)
        return min(float(elapsed) / float(self.rules.step_ms), 1.0)

    def body_position(self) -> tuple[int, float]:
        """Lane under the player's body and its x center, mid-hop included."""
        rules = self.rules
        lane = int(self.lane)
        x = rules.column_center(self.column)
        if not self.moves:
            return lane, x
        move = self.moves[0]
        progress = self.move_progress()
        d_lane, d_column = move.delta
        if move.is_vertical:
            if progress >= 0.5:
                lane += d_lane
        else:
            x += float(d_column) * progress * float(rules.position_width)
        return lane, x

    def _complete_head_move(self) -> None:
        move = self.moves.popleft()
        d_lane, d_column = move.delta
        self.lane += d_lane
        self.column += d_column
        if self.lane > self.max_lane:
            self.max_lane = int(self.lane)
        self.step_started_ms = int(self.time_ms) if self.moves else None

    def _check_collision(self) -> Collision | None:
        body_lane, body_x = self.body_position()
        lane: Lane = self.board.row(body_lane)
        if not lane.is_traffic:
            return None
        spec = lane.hazard_spec(self.rules)
        if spec is None:
            return None
        half_body = float(self.rules.player_size) / 2.0
        half_hazard = float(spec.length) / 2.0
        for idx, hazard_x in enumerate(lane.hazard_positions(self.time_ms, self.rules)):
            if body_x + half_body > hazard_x - half_hazard and body_x - half_body < hazard_x + half_hazard:
                return Collision(
                    time_ms=int(self.time_ms),
                    lane_index=int(body_lane),
                    hazard_index=int(idx),
                    score=self.score,
                )
        return None

    def step_tick(self) -> Collision | None:
        if self.is_over:
            return self.collision

        self.time_ms += int(self.rules.tick_ms)
        self.ticks += 1

        if self.moves and self.step_started_ms is not None:
            if int(self.time_ms) - int(self.step_started_ms) >= int(self.rules.step_ms):
                self._complete_head_move()

        collision = self._check_collision()
        if collision is not None:
            self.collision = collision
            logger.debug(
                "collision seed=%d t=%dms lane=%d hazard=%d score=%d",
                self.seed,
                collision.time_ms,
                collision.lane_index,
                collision.hazard_index,
                collision.score,
            )
        return collision

    def advance(self, ticks: int) -> Collision | None:
        for _ in range(max(0, int(ticks))):
            if self.step_tick() is not None:
                break
        return self.collision

    def advance_to(self, time_ms: int) -> Collision | None:
        """Run ticks while `time_ms` is behind the target.

        Idle stretches are not stepped one tick at a time: on a safe lane
        nothing can happen, and on a traffic lane hazard positions sampled at
        tick boundaries repeat, so one period of ticks decides the rest.
        """
        target = int(time_ms)
        while int(self.time_ms) < target and not self.is_over:
            if self.moves:
                self.step_tick()
            else:
                self._advance_idle(target)
        return self.collision

    def idle_period_ticks(self, lane: Lane) -> int | None:
        """Ticks after which an idle player sees the same hazard layout again.

        0 means the lane can never hit a standing player; None means the
        period is too long to be worth scanning.
        """
        if not lane.is_traffic or not lane.hazards:
            return 0
        rules = self.rules
        per_tick = Fraction(float(lane.speed)) * Fraction(float(rules.speed_scale)) * int(rules.tick_ms)
        span = Fraction(float(rules.wrap_max) - float(rules.wrap_min))
        period = (per_tick / span).denominator
        return period if period <= MAX_IDLE_SCAN_TICKS else None

    def _advance_idle(self, target: int) -> None:
        period = self.idle_period_ticks(self.board.row(self.lane))
        if period is None:
            while int(self.time_ms) < target and self.step_tick() is None:
                pass
            return
        for _ in range(period):
            if int(self.time_ms) >= target or self.step_tick() is not None:
                return
        remaining = target - int(self.time_ms)
        if remaining > 0:
            tick_ms = int(self.rules.tick_ms)
            skipped = -(-remaining // tick_ms)
            self.time_ms += skipped * tick_ms
            self.ticks += skipped

    def drain(self) -> Collision | None:
        """Run until every queued move has landed (or the player is hit)."""
        while self.moves and not self.is_over:
            self.step_tick()
        return self.collision
