"""Counter-based Philox random number generation and float transforms.

Includes Philox4x32, the state object that pairs a counter with a key, and
the uniform and Box-Muller maps from raw words to floating point values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np

__all__ = [
    "Philox4x32",
    "RNGState",
    "incr_counter",
    "uneg11",
    "u01",
    "boxmuller",
    "boxmulall",
    "generate_boxmul",
    "generate_uneg11",
]

_MASK32 = 0xFFFFFFFF


def _check_width(width: int) -> None:
    if width not in (32, 64):
        raise ValueError(f"word width must be 32 or 64, got {width}")


@dataclass(frozen=True)
class Philox4x32:
    """Philox counter-based generator with four 32-bit counter words and a two-word key."""

    rounds: int = 10

    width = 32
    ctr_size = 4
    key_size = 2

    _M0 = 0xD2511F53
    _M1 = 0xCD9E8D57
    _W0 = 0x9E3779B9
    _W1 = 0xBB67AE85

    def __post_init__(self) -> None:
        if self.rounds < 0:
            raise ValueError("number of rounds must be nonnegative")

    def __call__(self, counter: Sequence[int], key: Sequence[int]) -> tuple[int, ...]:
        """Return the four output words for ``counter`` under ``key``."""
        if len(counter) != self.ctr_size:
            raise ValueError(f"counter must have {self.ctr_size} words, got {len(counter)}")
        if len(key) != self.key_size:
            raise ValueError(f"key must have {self.key_size} words, got {len(key)}")
        c0, c1, c2, c3 = (int(v) & _MASK32 for v in counter)
        k0, k1 = (int(v) & _MASK32 for v in key)
        for r in range(self.rounds):
            if r:
                k0 = (k0 + self._W0) & _MASK32
                k1 = (k1 + self._W1) & _MASK32
            p0 = self._M0 * c0
            p1 = self._M1 * c2
            hi0, lo0 = p0 >> 32, p0 & _MASK32
            hi1, lo1 = p1 >> 32, p1 & _MASK32
            c0, c1, c2, c3 = hi1 ^ c1 ^ k0, lo1, hi0 ^ c3 ^ k1, lo0
        return (c0, c1, c2, c3)


def incr_counter(counter: Sequence[int], step: int, width: int) -> tuple[int, ...]:
    """Add ``step`` to a little-endian multi-word counter, wrapping around its full range."""
    _check_width(width)
    if step < 0:
        raise ValueError("counter increment must be nonnegative")
    mask = (1 << width) - 1
    total = sum((int(w) & mask) << (width * i) for i, w in enumerate(counter))
    total = (total + step) % (1 << (width * len(counter)))
    return tuple((total >> (width * i)) & mask for i in range(len(counter)))


@dataclass(frozen=True)
class RNGState:
    """A generator together with its current counter and key.

    An integer key ``k`` becomes the key words ``(k, 0, ...)``; the counter
    starts at zero unless given.
    """

    key: Sequence[int] | int = 0
    counter: Sequence[int] | None = None
    generator: Philox4x32 = field(default_factory=Philox4x32)

    def __post_init__(self) -> None:
        gen = self.generator
        mask = (1 << gen.width) - 1
        if isinstance(self.key, int):
            if self.key < 0:
                raise ValueError("key must be nonnegative")
            key = (self.key & mask,) + (0,) * (gen.key_size - 1)
        else:
            key = tuple(int(k) & mask for k in self.key)
            if len(key) != gen.key_size:
                raise ValueError(f"key must have {gen.key_size} words")
        if self.counter is None:
            counter = (0,) * gen.ctr_size
        else:
            counter = tuple(int(c) & mask for c in self.counter)
            if len(counter) != gen.ctr_size:
                raise ValueError(f"counter must have {gen.ctr_size} words")
        object.__setattr__(self, "key", key)
        object.__setattr__(self, "counter", counter)

    @property
    def len_c(self) -> int:
        """Number of words in the counter."""
        return self.generator.ctr_size

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        yield self.counter
        yield self.key

    def advanced(self, step: int) -> RNGState:
        """Return a state whose counter is ``step`` past this one's."""
        return RNGState(
            key=self.key,
            counter=incr_counter(self.counter, step, self.generator.width),
            generator=self.generator,
        )


def u01(value: int, width: int) -> float:
    """Map an unsigned ``width``-bit word into the open interval (0, 1]."""
    _check_width(width)
    uin = int(value) & ((1 << width) - 1)
    if width == 32:
        factor = np.float32(2.0**-32)
        half = np.float32(2.0**-33)
        return float(np.float32(uin) * factor + half)
    return float(uin) * 2.0**-64 + 2.0**-65


def uneg11(value: int, width: int) -> float:
    """Map a ``width``-bit word, read as signed, into the interval [-1, 1]."""
    _check_width(width)
    uin = int(value) & ((1 << width) - 1)
    sin = uin - (1 << width) if uin >> (width - 1) else uin
    if width == 32:
        factor = np.float32(2.0**-31)
        half = np.float32(2.0**-32)
        return float(np.float32(sin) * factor + half)
    return float(sin) * 2.0**-63 + 2.0**-64


def boxmuller(x0: int, x1: int, width: int) -> tuple[float, float]:
    """Turn two random words into two independent standard normal values."""
    angle = math.pi * uneg11(x0, width)
    r = math.sqrt(-2.0 * math.log(u01(x1, width)))
    s, c = math.sin(angle) * r, math.cos(angle) * r
    if width == 32:
        return float(np.float32(s)), float(np.float32(c))
    return s, c


def boxmulall(values: Sequence[int], width: int) -> tuple[float, ...]:
    """Apply the Box-Muller transform pairwise to an even-length word sequence."""
    if len(values) % 2:
        raise ValueError("Box-Muller needs an even number of values")
    out: list[float] = []
    it = iter(values)
    for a, b in zip(it, it):
        out.extend(boxmuller(a, b, width))
    return tuple(out)


def generate_boxmul(rng: Philox4x32, counter: Sequence[int], key: Sequence[int]) -> tuple[float, ...]:
    """Generate one block of words and return them as normal variates."""
    return boxmulall(rng(counter, key), rng.width)


def generate_uneg11(rng: Philox4x32, counter: Sequence[int], key: Sequence[int]) -> tuple[float, ...]:
    """Generate one block of words and return them mapped into [-1, 1]."""
    return tuple(uneg11(v, rng.width) for v in rng(counter, key))