"""Dependency providers for FastAPI routers."""

from __future__ import annotations

import logging
from functools import cache

from finanzweg_backend.api.services import ConnectionRegistry, GameSessionService
from finanzweg_backend.game_logic import load_deck_content, load_profiles
from finanzweg_backend.settings import get_settings

logger = logging.getLogger(__name__)


@cache
def get_game_session_service() -> GameSessionService:
    """Return the process-wide session service built from the settings."""
    settings = get_settings()
    deck_content = None
    if settings.deck_path is not None:
        deck_content = load_deck_content(settings.deck_path)
        logger.info(
            "Loaded %d cards from %s", len(deck_content.cards), settings.deck_path
        )
    profiles = ()
    if settings.profiles_path is not None:
        profiles = load_profiles(settings.profiles_path)
        logger.info("Loaded %d profiles from %s", len(profiles), settings.profiles_path)
    return GameSessionService.create_default(
        deck_content=deck_content, profiles=profiles
    )


@cache
def get_connection_registry() -> ConnectionRegistry:
    """Return the process-wide registry of live sockets."""
    return ConnectionRegistry()


__all__ = ["get_connection_registry", "get_game_session_service"]
