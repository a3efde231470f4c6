"""Audit logging primitives shared across the backend."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from finanzweg_backend.shared.enums import CardType  # noqa: TC001


class AuditKind(StrEnum):
    """Distinguishes original submissions from host corrections."""

    SUBMISSION = "submission"
    EDIT = "edit"


class DecisionAuditEntry(BaseModel):
    """Immutable record of a single decision write."""

    model_config = ConfigDict(frozen=True)

    kind: AuditKind
    player_id: str = Field(..., min_length=1)
    turn: int = Field(..., ge=1)
    card_type: CardType
    choice_id: str | None = None
    extra: dict[str, Any] | None = None
    previous_choice_id: str | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


__all__ = ["AuditKind", "DecisionAuditEntry"]
