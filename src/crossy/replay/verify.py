from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..rules import DEFAULT_RULES, GameRules
from .codec import RecordingCodecError, deserialize, validation_errors
from .runner import RunResult, run_recording
from .types import Recording

logger = logging.getLogger(__name__)


class MismatchReason(str, Enum):
    MALFORMED_RECORDING = "malformed_recording"
    INVALID_RECORDING = "invalid_recording"
    SCORE_MISMATCH = "score_mismatch"
    SCORE_EXCEEDS_PROGRESS = "score_exceeds_progress"


@dataclass(frozen=True, slots=True)
class VerificationResult:
    is_valid: bool
    recomputed_score: int | None
    mismatch_reason: MismatchReason | None = None
    detail: str = ""
    run: RunResult | None = None


def _rejected(reason: MismatchReason, detail: str, *, run: RunResult | None = None) -> VerificationResult:
    logger.info("replay rejected reason=%s %s", reason.value, detail)
    return VerificationResult(
        is_valid=False,
        recomputed_score=None if run is None else int(run.score),
        mismatch_reason=reason,
        detail=detail,
        run=run,
    )


def verify_recording(recording: Recording, *, rules: GameRules = DEFAULT_RULES) -> VerificationResult:
    """Replay `recording` and decide whether its claimed score can be trusted.

    A session that ended in a collision must claim exactly the simulated
    score. A session that was still alive when the inputs ran out may claim
    anything up to the highest lane it reached.
    """

    errors = validation_errors(recording)
    if errors:
        return _rejected(MismatchReason.INVALID_RECORDING, "; ".join(errors))

    claimed = int(recording.final_score or 0)
    run = run_recording(recording, rules=rules)

    if run.terminated:
        if claimed != int(run.score):
            return _rejected(
                MismatchReason.SCORE_MISMATCH,
                f"claimed {claimed}, replay collided with score {run.score}",
                run=run,
            )
    elif claimed > int(run.max_lane):
        return _rejected(
            MismatchReason.SCORE_EXCEEDS_PROGRESS,
            f"claimed {claimed}, replay never got past lane {run.max_lane}",
            run=run,
        )

    logger.info("replay verified seed=%d score=%d", int(run.seed), int(run.score))
    return VerificationResult(is_valid=True, recomputed_score=int(run.score), run=run)


def verify_blob(data: bytes | str, *, rules: GameRules = DEFAULT_RULES) -> VerificationResult:
    try:
        # run_recording reports version drift itself.
        recording = deserialize(data, warn_on_version=False)
    except RecordingCodecError as exc:
        return _rejected(MismatchReason.MALFORMED_RECORDING, str(exc))
    return verify_recording(recording, rules=rules)
