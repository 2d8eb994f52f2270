"""Injectable random number generator for reproducible draws."""
from __future__ import annotations

import random
from typing import Optional


class SeededRNG:
    """Wrapper around random.Random.

    With ``seed=None`` the generator is seeded from OS entropy, which is
    what a real run wants; tests pass an explicit seed.
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)
        self._seed = seed

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def choice(self, seq: list):
        return self._rng.choice(seq)
