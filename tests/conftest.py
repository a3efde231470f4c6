"""Test configuration and fixtures for the backend test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from finanzweg_backend.game_logic import (
    Card,
    Choice,
    DeckContent,
    EffectSpec,
    SimulationConfiguration,
    get_default_simulation_configuration,
)
from finanzweg_backend.settings import get_settings
from finanzweg_backend.shared import CARD_TYPES


class FrozenClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure settings are loaded with predictable values during tests."""
    monkeypatch.setenv("FINANZWEG_LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("FINANZWEG_DECK_PATH", raising=False)
    monkeypatch.delenv("FINANZWEG_PROFILES_PATH", raising=False)
    get_settings.cache_clear()
    get_default_simulation_configuration.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_simulation_configuration.cache_clear()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 2, 8, 0, tzinfo=UTC))


@pytest.fixture
def configuration() -> SimulationConfiguration:
    return SimulationConfiguration(rng_seed=7)


@pytest.fixture
def answer_all_content() -> DeckContent:
    """One plain accept/refuse card per type, all of them requiring an answer."""
    return DeckContent(
        cards=tuple(
            Card(
                id=f"{card_type.value}-plain",
                type=card_type,
                title=card_type.value.title(),
                choices=(
                    Choice(id="accept", label="Ja"),
                    Choice(id="refuse", label="Nein"),
                ),
            )
            for card_type in CARD_TYPES
        )
    )


@pytest.fixture
def branching_content() -> DeckContent:
    """Several distinct cards per type so consecutive turns differ."""
    return DeckContent(
        cards=tuple(
            Card(
                id=f"{card_type.value}-{index}",
                type=card_type,
                title=f"{card_type.value.title()} {index}",
                choices=(
                    Choice(
                        id="accept",
                        label="Ja",
                        effects=EffectSpec(one_time_gain=100 * index),
                    ),
                    Choice(id="refuse", label="Nein"),
                ),
            )
            for card_type in CARD_TYPES
            for index in range(1, 6)
        )
    )
