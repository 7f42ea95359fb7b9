from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_U32_MASK = 0xFFFF_FFFF
_U32_RANGE = 4294967296.0
_MULBERRY_INCREMENT = 0x6D2B79F5


def normalize_seed(seed: int | float) -> int:
    """Map any numeric seed onto the non-negative 32-bit range.

    Negative values lose their sign, fractions are truncated and
    out-of-range values wrap modulo 2**32. Non-finite input maps to 0.
    """

    if isinstance(seed, float):
        if not math.isfinite(seed):
            return 0
        seed = int(abs(seed))
    return abs(int(seed)) & _U32_MASK


def _imul(a: int, b: int) -> int:
    return (a * b) & _U32_MASK


class SeededRandom:
    """Mulberry32 generator shared by world generation and gameplay.

    Output depends only on integer arithmetic on a single 32-bit state word:
      state = state + 0x6D2B79F5
      t = imul(state ^ state >> 15, state | 1)
      t ^= t + imul(t ^ t >> 7, t | 61)
      return (t ^ t >> 14) / 2**32
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int | float) -> None:
        self._state = normalize_seed(seed)

    @property
    def state(self) -> int:
        return self._state

    def reset(self, seed: int | float) -> None:
        self._state = normalize_seed(seed)

    def next_u32(self) -> int:
        state = (self._state + _MULBERRY_INCREMENT) & _U32_MASK
        self._state = state
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _U32_MASK
        return (t ^ (t >> 14)) & _U32_MASK

    def random(self) -> float:
        return float(self.next_u32()) / _U32_RANGE

    def integer(self, lo: int, hi: int) -> int:
        """Uniform integer in `[lo, hi)`."""
        return int(math.floor(self.random() * float(int(hi) - int(lo)))) + int(lo)

    def boolean(self, probability: float = 0.5) -> bool:
        return self.random() < float(probability)

    def choice(self, items: Sequence[T]) -> T:
        return items[self.integer(0, len(items))]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        # Fisher-Yates from the tail; the input sequence is left untouched.
        out = list(items)
        for idx in range(len(out) - 1, 0, -1):
            swap = self.integer(0, idx + 1)
            out[idx], out[swap] = out[swap], out[idx]
        return out
