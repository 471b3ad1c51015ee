"""Domain-separated random streams seeded through xxhash.

Each Domain (combat, AI decisions, spawning, ...) draws from its own
``random.Random`` so that, for example, adding an extra AI roll never
shifts the combat rolls.  Stream seeds are derived as

    Hash(BaseSeed, Domain, MatchEpoch)

and every new match re-derives all streams.  The arena is not a replay
system: with ``seed=None`` the base seed comes from OS entropy.
"""

from __future__ import annotations

import random
import struct
from typing import Sequence, TypeVar

import xxhash

from arena.core.enums import Domain

T = TypeVar("T")


class ArenaRNG:
    """Per-domain pseudo-random streams for one process."""

    __slots__ = ("_seed", "_epoch", "_streams")

    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = random.SystemRandom().getrandbits(63)
        self._seed = seed
        self._epoch = 0
        self._streams: dict[Domain, random.Random] = {}
        self.reseed(0)

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def epoch(self) -> int:
        return self._epoch

    def _derive(self, domain: Domain, epoch: int) -> int:
        payload = struct.pack("<qiq", self._seed, domain.value, epoch)
        return xxhash.xxh64(payload).intdigest()

    def reseed(self, epoch: int) -> None:
        """Re-derive every domain stream for a new match epoch."""
        self._epoch = epoch
        self._streams = {d: random.Random(self._derive(d, epoch)) for d in Domain}

    def random(self, domain: Domain) -> float:
        """Return a float in [0.0, 1.0)."""
        return self._streams[domain].random()

    def uniform(self, domain: Domain, low: float, high: float) -> float:
        return low + (high - low) * self.random(domain)

    def randint(self, domain: Domain, low: int, high: int) -> int:
        """Return an integer in [low, high] inclusive."""
        return low + int(self.random(domain) * (high - low + 1))

    def chance(self, domain: Domain, probability: float) -> bool:
        """Return True with the given probability."""
        return self.random(domain) < probability

    def choice(self, domain: Domain, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("cannot choose from an empty sequence")
        return items[min(int(self.random(domain) * len(items)), len(items) - 1)]
