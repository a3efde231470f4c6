"""Deterministic random helpers used across the game logic."""

from __future__ import annotations

from collections.abc import Iterable, Sequence  # noqa: TC003
from random import Random
from typing import TypeVar

_T = TypeVar("_T")


class DeterministicRandomService:
    """Thin wrapper around :class:`random.Random` providing deterministic utilities."""

    def __init__(self, seed: int | None = None) -> None:
        self._random = Random(seed)  # noqa: S311

    def choice(self, population: Sequence[_T]) -> _T:
        """Return a deterministic choice from *population*."""
        if not population:
            msg = "Cannot choose from an empty population."
            raise ValueError(msg)
        return population[self._random.randrange(len(population))]

    def weighted_choice(self, population: Sequence[_T], weights: Sequence[float]) -> _T:
        """Roulette selection over *population* using non-negative *weights*."""
        if not population:
            msg = "Cannot choose from an empty population."
            raise ValueError(msg)
        if len(population) != len(weights):
            msg = "Population and weights must have the same length."
            raise ValueError(msg)
        total = sum(weights)
        if total <= 0:
            return self.choice(population)
        threshold = self._random.uniform(0, total)
        cumulative = 0.0
        for item, weight in zip(population, weights, strict=True):
            cumulative += weight
            if threshold <= cumulative and weight > 0:
                return item
        return population[-1]

    def shuffle(self, items: Iterable[_T]) -> tuple[_T, ...]:
        """Return a shuffled tuple of *items* using the service RNG."""
        mutable = list(items)
        self._random.shuffle(mutable)
        return tuple(mutable)

    def token(self, alphabet: str, length: int) -> str:
        """Return a random string of *length* characters drawn from *alphabet*."""
        if not alphabet or length <= 0:
            msg = "Token alphabet must be non-empty and length positive."
            raise ValueError(msg)
        return "".join(self.choice(alphabet) for _ in range(length))


__all__ = ["DeterministicRandomService"]
