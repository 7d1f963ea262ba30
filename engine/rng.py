from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")

class DRNG:
    """Deterministic Random Number Generator wrapper."""

    def __init__(self, seed: int):
        self.g = np.random.Generator(np.random.PCG64(seed))

    def integers(self, low: int, high: int) -> int:
        """Return a random int in [low, high)."""
        return int(self.g.integers(low, high))

def pick(rng, items: Sequence[T]) -> T:
    """Draw one element uniformly from items using any rng exposing integers(low, high)."""
    if not items:
        raise ValueError("cannot pick from an empty sequence")
    return items[rng.integers(0, len(items))]
