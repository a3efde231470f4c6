"""Exceptions raised by the game logic when a command is rejected."""

from __future__ import annotations

from typing import Any

from finanzweg_backend.shared.enums import FailureReason


class GameRuleError(Exception):
    """Base class for rejected commands; carries a machine-readable reason."""

    reason: FailureReason = FailureReason.MALFORMED

    def __init__(
        self,
        message: str,
        *,
        reason: FailureReason | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason
        self.detail = detail or {}


class SessionNotFoundError(GameRuleError):
    """Raised when no session exists for the supplied code."""

    reason = FailureReason.SESSION_NOT_FOUND


class PlayerNotFoundError(GameRuleError):
    """Raised when the player id is unknown within the session."""

    reason = FailureReason.PLAYER_NOT_FOUND


class DecisionRejectedError(GameRuleError):
    """Raised when a submitted decision does not fit the active cards."""

    reason = FailureReason.CARD_NOT_ACTIVE


class TurnFlowError(GameRuleError):
    """Raised when a lifecycle command is not valid in the current state."""

    reason = FailureReason.NOT_STARTED


class JoinRejectedError(GameRuleError):
    """Raised when a student cannot join the session."""

    reason = FailureReason.SESSION_FULL


__all__ = [
    "DecisionRejectedError",
    "GameRuleError",
    "JoinRejectedError",
    "PlayerNotFoundError",
    "SessionNotFoundError",
    "TurnFlowError",
]
