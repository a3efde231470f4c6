"""Service layer for API-specific business logic."""

from finanzweg_backend.api.services.connections import (
    Connection,
    ConnectionRegistry,
)
from finanzweg_backend.api.services.game_session import (
    CommandResult,
    Failure,
    GameSessionService,
)

__all__ = [
    "CommandResult",
    "Connection",
    "ConnectionRegistry",
    "Failure",
    "GameSessionService",
]
