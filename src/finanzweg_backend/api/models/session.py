"""Pydantic models for the classroom WebSocket contract."""

# ruff: noqa: TC001

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, StringConstraints

from finanzweg_backend.api.services.game_session import Failure
from finanzweg_backend.game_logic.views import SessionView
from finanzweg_backend.shared.enums import FailureReason, GameMode

SessionCode = Annotated[
    str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1)
]


class HostCreateRequest(BaseModel):
    """Open a new lobby; the sending socket becomes its host."""

    type: Literal["host_create"]
    mode: GameMode | None = None


class HostResumeRequest(BaseModel):
    """Reattach a host socket to an existing session."""

    type: Literal["host_resume"]
    code: SessionCode


class HostStartRequest(BaseModel):
    """Leave the lobby, optionally overriding the game length."""

    type: Literal["host_start"]
    code: SessionCode
    mode: GameMode | None = None


class HostAdvanceRequest(BaseModel):
    type: Literal["host_advance"]
    code: SessionCode


class HostContinueRequest(BaseModel):
    type: Literal["host_continue"]
    code: SessionCode


class HostDrawRequest(BaseModel):
    type: Literal["host_draw"]
    code: SessionCode


class HostEditDecisionRequest(BaseModel):
    """Correct a decision of any player on a turn they already reached."""

    type: Literal["host_edit_decision"]
    code: SessionCode
    player_id: str
    turn: int
    card_type: str
    choice_id: str | None = None
    extra: dict[str, Any] | None = None


class HostCloseRequest(BaseModel):
    type: Literal["host_close"]
    code: SessionCode


class StudentJoinRequest(BaseModel):
    """Register a student in the lobby or a running session."""

    type: Literal["student_join"]
    code: SessionCode
    name: str
    profile_key: str | None = None


class StudentResumeRequest(BaseModel):
    """Rebind a reconnecting socket to an existing player."""

    type: Literal["student_resume"]
    code: SessionCode
    player_id: str


class StudentDecisionRequest(BaseModel):
    """Answer one card of the player's active turn."""

    type: Literal["student_decision"]
    code: SessionCode
    player_id: str
    card_type: str
    choice_id: str | None = None
    extra: dict[str, Any] | None = None


class HeartbeatRequest(BaseModel):
    """Activity ping used for the status indicator."""

    type: Literal["heartbeat"]
    code: SessionCode
    player_id: str


HostMessage = (
    HostResumeRequest
    | HostStartRequest
    | HostAdvanceRequest
    | HostContinueRequest
    | HostDrawRequest
    | HostEditDecisionRequest
    | HostCloseRequest
)

StudentMessage = (
    StudentJoinRequest
    | StudentResumeRequest
    | StudentDecisionRequest
    | HeartbeatRequest
)

InboundWsMessage = Annotated[
    HostCreateRequest
    | HostResumeRequest
    | HostStartRequest
    | HostAdvanceRequest
    | HostContinueRequest
    | HostDrawRequest
    | HostEditDecisionRequest
    | HostCloseRequest
    | StudentJoinRequest
    | StudentResumeRequest
    | StudentDecisionRequest
    | HeartbeatRequest,
    Field(discriminator="type"),
]


class CreatedResponse(BaseModel):
    """Sent to the host after a lobby has been opened."""

    type: Literal["created"] = "created"
    code: str


class JoinedResponse(BaseModel):
    """Sent to a student after joining; the id is needed to resume."""

    type: Literal["joined"] = "joined"
    code: str
    player_id: str


class ClosedResponse(BaseModel):
    """Sent to every socket of a session the host closed."""

    type: Literal["closed"] = "closed"
    code: str


class StateResponse(BaseModel):
    """Recipient-specific snapshot pushed after every change."""

    type: Literal["state"] = "state"
    view: SessionView


class ErrorResponse(BaseModel):
    """Rejection sent only to the socket that issued the command."""

    type: Literal["error"] = "error"
    reason: FailureReason
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_failure(cls, failure: Failure) -> ErrorResponse:
        """Build the wire error for a rejected command."""
        return cls(
            reason=failure.reason, message=failure.message, detail=failure.detail
        )


OutboundWsMessage = Annotated[
    CreatedResponse | JoinedResponse | ClosedResponse | StateResponse | ErrorResponse,
    Field(discriminator="type"),
]


__all__ = [
    "ClosedResponse",
    "CreatedResponse",
    "ErrorResponse",
    "HeartbeatRequest",
    "HostAdvanceRequest",
    "HostCloseRequest",
    "HostContinueRequest",
    "HostCreateRequest",
    "HostDrawRequest",
    "HostEditDecisionRequest",
    "HostMessage",
    "HostResumeRequest",
    "HostStartRequest",
    "InboundWsMessage",
    "JoinedResponse",
    "OutboundWsMessage",
    "SessionCode",
    "StateResponse",
    "StudentDecisionRequest",
    "StudentJoinRequest",
    "StudentMessage",
    "StudentResumeRequest",
]
