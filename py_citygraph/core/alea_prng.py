"""
Alea pseudo random number generator.

Johannes Baagøe's Alea algorithm: small, fast, seedable from any string or
number and identical across platforms, which keeps a city reproducible from
its seed without relying on Python's or NumPy's global random state.
"""

from typing import Iterable, Sequence, TypeVar, Union

T = TypeVar("T")

Seed = Union[int, str]

_TWO_POW_32 = 0x100000000
_TWO_POW_MINUS_32 = 2.3283064365386963e-10


def _uint32(n) -> int:
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class _Mash:
    """Alea's string hashing function; stateful across calls."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        n = self.n
        for char in str(data):
            n += ord(char)
            h = 0.02519603282416938 * n
            n = _uint32(h)
            h -= n
            h *= n
            n = _uint32(h)
            h -= n
            n += h * _TWO_POW_32
        self.n = n
        return _uint32(n) * _TWO_POW_MINUS_32


class AleaPRNG:
    """
    Seeded Alea generator.

    Args:
        seed: A seed value, or an iterable of values mixed in order
    """

    def __init__(self, seed: Union[Seed, Iterable[Seed]]):
        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            parts = list(seed)
        else:
            parts = [seed]

        mash = _Mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for part in parts:
            self.s0 -= mash(part)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(part)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(part)
            if self.s2 < 0:
                self.s2 += 1

        self.call_count = 0

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * _TWO_POW_MINUS_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def int_below(self, n: int) -> int:
        """Next integer in [0, n)."""
        if n <= 0:
            raise ValueError(f"int_below requires a positive bound, got {n}")
        return min(int(self.random() * n), n - 1)

    def randrange(self, low: int, high: int) -> int:
        """Next integer in [low, high)."""
        return low + self.int_below(high - low)

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.int_below(len(seq))]
