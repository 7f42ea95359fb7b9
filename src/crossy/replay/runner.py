from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..rules import DEFAULT_RULES, GameRules
from ..sim.fingerprint import fingerprint_session
from ..sim.input import parse_action
from ..sim.session import Collision, CrossingSession
from .types import InputEvent, Recording
from .versioning import warn_on_version_mismatch

logger = logging.getLogger(__name__)


class ReplayTimelineError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class RunResult:
    seed: int
    ticks: int
    elapsed_ms: int
    score: int
    max_lane: int
    lane: int
    column: int
    terminated: bool
    collision: Collision | None
    accepted_inputs: int
    rejected_inputs: int
    state_hash: str


def check_timeline(inputs: Sequence[InputEvent]) -> None:
    previous: int | None = None
    for idx, event in enumerate(inputs):
        timestamp = int(event.timestamp)
        if previous is not None and timestamp < previous:
            raise ReplayTimelineError(
                f"non-monotonic timeline: input {idx} at {timestamp}ms precedes {previous}ms"
            )
        previous = timestamp


def result_from_session(session: CrossingSession) -> RunResult:
    return RunResult(
        seed=int(session.seed),
        ticks=int(session.ticks),
        elapsed_ms=int(session.time_ms),
        score=session.score,
        max_lane=int(session.max_lane),
        lane=int(session.lane),
        column=int(session.column),
        terminated=session.is_over,
        collision=session.collision,
        accepted_inputs=int(session.accepted_moves),
        rejected_inputs=int(session.rejected_moves),
        state_hash=f"{fingerprint_session(session):016x}",
    )


def replay_inputs(
    session: CrossingSession,
    inputs: Sequence[InputEvent],
    *,
    until_ms: int | None = None,
) -> RunResult:
    """Feed `inputs` into `session` at their recorded offsets.

    With `until_ms` the run stops exactly there, the end of the recorded
    session, and moves still in flight stay unlanded. Without it the session
    runs until every accepted move has landed.
    """

    check_timeline(inputs)
    for event in inputs:
        session.advance_to(int(event.timestamp))
        if session.is_over:
            break
        session.submit(parse_action(event.action))

    if not session.is_over:
        if until_ms is not None:
            session.advance_to(int(until_ms))
        else:
            session.drain()

    result = result_from_session(session)
    logger.debug(
        "replay finished seed=%d ticks=%d score=%d max_lane=%d terminated=%s",
        result.seed,
        result.ticks,
        result.score,
        result.max_lane,
        result.terminated,
    )
    return result


def run_recording(
    recording: Recording,
    *,
    rules: GameRules = DEFAULT_RULES,
    warn_on_version: bool = True,
) -> RunResult:
    if warn_on_version:
        warn_on_version_mismatch(recording, action="replay")
    session = CrossingSession.build(int(recording.seed), rules=rules)
    last_offset = int(recording.inputs[-1].timestamp) if recording.inputs else 0
    until_ms = max(int(recording.duration or 0), last_offset)
    return replay_inputs(session, recording.inputs, until_ms=until_ms)
