"""Shared enums, audit records and cross-cutting helpers for the backend."""

from finanzweg_backend.shared.enums import (
    CARD_TYPES,
    CardType,
    ConnectionRole,
    DeckStrategy,
    FailureReason,
    GameMode,
    PlayerStatus,
    SessionStatus,
)
from finanzweg_backend.shared.events import AuditKind, DecisionAuditEntry
from finanzweg_backend.shared.rng import DeterministicRandomService

__all__ = [
    "CARD_TYPES",
    "AuditKind",
    "CardType",
    "ConnectionRole",
    "DecisionAuditEntry",
    "DeckStrategy",
    "DeterministicRandomService",
    "FailureReason",
    "GameMode",
    "PlayerStatus",
    "SessionStatus",
]
