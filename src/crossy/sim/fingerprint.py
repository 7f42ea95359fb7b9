from __future__ import annotations

import hashlib
import struct
from collections.abc import Iterable

from ..world import Board, Lane
from .session import CrossingSession

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_F32 = struct.Struct("<f")


def _h_u8(h: "hashlib._Hash", value: int) -> None:
    h.update(_U8.pack(int(value) & 0xFF))


def _h_u16(h: "hashlib._Hash", value: int) -> None:
    h.update(_U16.pack(int(value) & 0xFFFF))


def _h_u32(h: "hashlib._Hash", value: int) -> None:
    h.update(_U32.pack(int(value) & 0xFFFF_FFFF))


def _h_i32(h: "hashlib._Hash", value: int) -> None:
    raw = int(value) & 0xFFFF_FFFF
    if raw & 0x8000_0000:
        raw -= 0x1_0000_0000
    h.update(_I32.pack(int(raw)))


def _h_f32(h: "hashlib._Hash", value: float) -> None:
    h.update(_F32.pack(float(value)))


def _hash_lanes(h: "hashlib._Hash", lanes: Iterable[Lane]) -> None:
    for lane in lanes:
        _h_u32(h, lane.index)
        _h_u8(h, lane.kind_code)
        _h_u8(h, 1 if lane.moving_left else 0)
        _h_f32(h, lane.speed)
        _h_u8(h, len(lane.hazards))
        for hazard in lane.hazards:
            _h_u8(h, hazard.slot)
            _h_f32(h, hazard.origin_x)
        _h_u8(h, len(lane.blocked_columns))
        for column in sorted(lane.blocked_columns):
            _h_u8(h, column)


def fingerprint_board(board: Board, *, rows: int | None = None) -> int:
    """Return a stable 64-bit digest of the row layout.

    With `rows` set, the board is grown to that many rows first; otherwise
    only the rows generated so far are covered.
    """

    h = hashlib.blake2b(digest_size=8)
    lanes = board.rows(int(rows)) if rows is not None else board.lanes
    _h_u32(h, len(lanes))
    _hash_lanes(h, lanes)
    return int.from_bytes(h.digest(), "little")


def fingerprint_session(session: CrossingSession) -> int:
    h = hashlib.blake2b(digest_size=8)
    _h_u32(h, session.seed)
    _h_u32(h, session.board.rng.state)
    _h_u32(h, session.time_ms)
    _h_i32(h, session.lane)
    _h_i32(h, session.column)
    _h_i32(h, session.max_lane)
    _h_u16(h, len(session.moves))
    for move in session.moves:
        _h_u8(h, list(type(move)).index(move))
    _h_i32(h, -1 if session.step_started_ms is None else session.step_started_ms)

    collision = session.collision
    _h_u8(h, 1 if collision is not None else 0)
    if collision is not None:
        _h_u32(h, collision.time_ms)
        _h_i32(h, collision.lane_index)
        _h_u8(h, collision.hazard_index)

    lanes = session.board.lanes
    _h_u32(h, len(lanes))
    _hash_lanes(h, lanes)
    return int.from_bytes(h.digest(), "little")
