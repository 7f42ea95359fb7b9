from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from .replay.codec import RecordingCodecError, deserialize, serialize
from .replay.types import Recording
from .replay.verify import verify_blob

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_BYTES = 30


@dataclass(slots=True)
class PlayerRecord:
    player_id: str
    high_score: int = 0
    games_played: int = 0
    last_played_at: int | None = None
    replay_blob: bytes | None = None
    display_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.player_id


class ScoreLedger(Protocol):
    def submit_score(self, player_id: str, score: int, replay: bytes | Recording | None = None) -> bool: ...

    def fetch_replay(self, player_id: str) -> Recording | None: ...


class MemoryLedger:
    """In-process score store with the backend's overwrite rules.

    Scores of zero are refused. Every accepted submission counts as a game
    played; the stored high score, and the replay that backs it, only change
    when the new score is strictly greater.
    """

    def __init__(
        self,
        *,
        require_verified: bool = False,
        now: Callable[[], float] = time.time,
    ) -> None:
        self._players: dict[str, PlayerRecord] = {}
        self._require_verified = bool(require_verified)
        self._now = now

    def __len__(self) -> int:
        return len(self._players)

    def _player(self, player_id: str) -> PlayerRecord:
        record = self._players.get(player_id)
        if record is None:
            record = PlayerRecord(player_id=player_id)
            self._players[player_id] = record
        return record

    def register_player(self, player_id: str, display_name: str | None = None) -> PlayerRecord:
        """Create or update a player.

        A name that is blank or longer than `MAX_DISPLAY_NAME_BYTES` once
        trimmed leaves the current name in place; `None` clears it.
        """
        if not player_id:
            raise ValueError("player_id must not be empty")
        record = self._player(player_id)
        if display_name is None:
            record.display_name = None
            return record
        name = display_name.strip()
        if name and len(name.encode("utf-8")) <= MAX_DISPLAY_NAME_BYTES:
            record.display_name = name
        else:
            logger.info("display name rejected player=%s: %r", player_id, display_name)
        return record

    def get_player(self, player_id: str) -> PlayerRecord | None:
        return self._players.get(player_id)

    def submit_score(self, player_id: str, score: int, replay: bytes | Recording | None = None) -> bool:
        if not player_id:
            logger.info("score rejected: missing player identity")
            return False
        score = int(score)
        if score <= 0:
            logger.info("score rejected player=%s score=%d: must be greater than 0", player_id, score)
            return False

        blob: bytes | None = None
        if replay is not None:
            blob = serialize(replay) if isinstance(replay, Recording) else bytes(replay)
        if self._require_verified:
            if blob is None:
                logger.info("score rejected player=%s: replay required", player_id)
                return False
            result = verify_blob(blob)
            if result.is_valid and result.run is not None:
                claimed = deserialize(blob, warn_on_version=False).final_score
                if claimed != score:
                    logger.info("score rejected player=%s: replay claims %s, submitted %d", player_id, claimed, score)
                    return False
            if not result.is_valid:
                logger.info("score rejected player=%s: %s", player_id, result.detail)
                return False

        record = self._player(player_id)
        record.games_played += 1
        record.last_played_at = int(self._now())
        if score > record.high_score:
            record.high_score = score
            if blob is not None:
                record.replay_blob = blob
            logger.info("new high score player=%s score=%d", player_id, score)
        return True

    def fetch_replay(self, player_id: str) -> Recording | None:
        record = self._players.get(player_id)
        if record is None or record.replay_blob is None:
            return None
        try:
            return deserialize(record.replay_blob)
        except RecordingCodecError:
            logger.warning("stored replay for player=%s does not decode", player_id)
            return None

    def leaderboard(self, limit: int | None = None) -> list[PlayerRecord]:
        ranked = sorted(
            (record for record in self._players.values() if record.high_score > 0),
            key=lambda record: (-record.high_score, record.player_id),
        )
        if limit is not None:
            ranked = ranked[: max(0, int(limit))]
        return ranked
