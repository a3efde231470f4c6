"""Tests for the in-memory session store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from finanzweg_backend.game_logic import (
    GameSession,
    InMemorySessionStore,
    SimulationConfiguration,
)

if TYPE_CHECKING:
    from collections.abc import Callable


def test_store_lookups_ignore_case(
    configuration: SimulationConfiguration, clock: Callable
) -> None:
    store = InMemorySessionStore()
    session = GameSession("ABCD", configuration, clock=clock)
    store.add(session)

    assert store.get("abcd") is session
    assert "abcd" in store
    assert 42 not in store
    assert store.codes() == ("ABCD",)
    assert store.remove("aBcD") is session
    assert store.get("ABCD") is None
    assert store.remove("ABCD") is None


def test_store_refuses_duplicate_codes(
    configuration: SimulationConfiguration, clock: Callable
) -> None:
    store = InMemorySessionStore()
    store.add(GameSession("ABCD", configuration, clock=clock))

    with pytest.raises(KeyError, match="already in use"):
        store.add(GameSession("ABCD", configuration, clock=clock))


def test_clear_drops_every_session(
    configuration: SimulationConfiguration, clock: Callable
) -> None:
    store = InMemorySessionStore()
    for code in ("ABCD", "WXYZ"):
        store.add(GameSession(code, configuration, clock=clock))

    store.clear()

    assert store.codes() == ()
    assert "WXYZ" not in store
