"""Models used for WebSocket request and response payloads."""

from finanzweg_backend.api.models.session import (
    ClosedResponse,
    CreatedResponse,
    ErrorResponse,
    InboundWsMessage,
    JoinedResponse,
    OutboundWsMessage,
    StateResponse,
)

__all__ = [
    "ClosedResponse",
    "CreatedResponse",
    "ErrorResponse",
    "InboundWsMessage",
    "JoinedResponse",
    "OutboundWsMessage",
    "StateResponse",
]
