"""
Random number generation utilities.

Every generation call owns its own generator. Nothing in the package draws
from a global random state, so two calls never share randomness and a seeded
call can be replayed exactly.
"""

import hashlib
from typing import Union

import numpy as np

Seed = Union[str, int, None]


def seed_to_int(seed: Union[str, int]) -> int:
    """Turn a string or integer seed into a non-negative integer."""
    if isinstance(seed, int):
        return abs(seed)
    digest = hashlib.sha256(str(seed).encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def make_rng(seed: Seed = None) -> np.random.Generator:
    """
    Create a fresh generator for one call.

    Args:
        seed: Seed string or integer. ``None`` draws fresh OS entropy, so
            repeated calls produce different terrain.

    Returns:
        numpy Generator owned by the caller
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(seed_to_int(seed))


def uniform_int(rng: np.random.Generator, low: int, high: int) -> int:
    """Integer in ``[low, high)``, as ``low + floor(random * (high - low))``."""
    return low + int(rng.random() * (high - low))
