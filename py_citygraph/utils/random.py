"""
Random number generation utilities.

Every build owns its generators explicitly; nothing here keeps global state.
Sub-generators are derived from the city seed plus an offset (usually a
district id) so per-district choices do not depend on how many numbers
other districts consumed.
"""

import time

from ..core.alea_prng import AleaPRNG


def clock_seed() -> int:
    """
    Seed derived from the wall clock, used when the caller gives none.

    Returns:
        A positive integer seed
    """
    return time.time_ns() or 1


def derive_prng(seed: int, offset: int = 0) -> AleaPRNG:
    """
    Create the generator for `seed + offset`.

    Args:
        seed: City seed
        offset: District id (or other stable salt)

    Returns:
        A freshly seeded AleaPRNG
    """
    return AleaPRNG(seed + offset)
