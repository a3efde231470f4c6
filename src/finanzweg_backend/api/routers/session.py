"""WebSocket endpoint shared by hosts and students."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, TypeAdapter, ValidationError

from finanzweg_backend.api.dependencies import (
    get_connection_registry,
    get_game_session_service,
)
from finanzweg_backend.api.models.session import (
    ClosedResponse,
    CreatedResponse,
    ErrorResponse,
    HostAdvanceRequest,
    HostCloseRequest,
    HostContinueRequest,
    HostCreateRequest,
    HostDrawRequest,
    HostEditDecisionRequest,
    HostMessage,
    HostResumeRequest,
    HostStartRequest,
    InboundWsMessage,
    JoinedResponse,
    StateResponse,
    StudentDecisionRequest,
    StudentJoinRequest,
    StudentMessage,
    StudentResumeRequest,
)
from finanzweg_backend.api.services import (  # noqa: TC001
    CommandResult,
    ConnectionRegistry,
    Failure,
    GameSessionService,
)
from finanzweg_backend.game_logic import Viewer
from finanzweg_backend.shared import FailureReason

if TYPE_CHECKING:
    from finanzweg_backend.api.services.connections import Sender

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

INBOUND_WS_MESSAGE_ADAPTER = TypeAdapter(InboundWsMessage)


@dataclass(slots=True)
class _Connection:
    """Everything a handler needs to answer one socket."""

    handle: int
    send: Sender
    service: GameSessionService
    registry: ConnectionRegistry

    async def reject(self, failure: Failure) -> None:
        await self.send(ErrorResponse.from_failure(failure))

    async def publish(self, code: str) -> None:
        """Push each socket of *code* its own snapshot."""
        service = self.service

        def render(viewer: Viewer) -> BaseModel | None:
            result = service.view(code, viewer)
            if not result.ok or result.value is None:
                return None
            return StateResponse(view=result.value)

        await self.registry.broadcast(code, render)

    async def send_view(self, code: str, viewer: Viewer) -> None:
        result = self.service.view(code, viewer)
        if result.ok and result.value is not None:
            await self.send(StateResponse(view=result.value))


def _forbidden(code: str, action: str) -> Failure:
    return Failure(
        reason=FailureReason.FORBIDDEN,
        message=f"This connection may not send '{action}' for session {code}.",
        detail={"code": code, "type": action},
    )


def _run_host_command(
    service: GameSessionService, message: HostMessage
) -> CommandResult[Any]:
    if isinstance(message, HostStartRequest):
        return service.start(message.code, message.mode)
    if isinstance(message, HostAdvanceRequest):
        return service.advance(message.code)
    if isinstance(message, HostContinueRequest):
        return service.continue_session(message.code)
    if isinstance(message, HostDrawRequest):
        return service.draw(message.code)
    if isinstance(message, HostEditDecisionRequest):
        return service.edit_decision(
            message.code,
            message.player_id,
            message.turn,
            message.card_type,
            choice_id=message.choice_id,
            extra=message.extra,
        )
    msg = f"Unsupported host message '{message.type}'."
    raise TypeError(msg)


async def _handle_create(message: HostCreateRequest, conn: _Connection) -> None:
    session = conn.service.create_session(message.mode)
    conn.registry.grant_host(conn.handle, session.code)
    await conn.send(CreatedResponse(code=session.code))
    await conn.publish(session.code)


async def _handle_host(message: HostMessage, conn: _Connection) -> None:
    code = message.code
    if isinstance(message, HostResumeRequest):
        result = conn.service.resume_host(code)
        if not result.ok:
            await conn.reject(result.failure)
            return
        conn.registry.grant_host(conn.handle, code)
        logger.info("Host reattached to session %s", code)
        await conn.send_view(code, Viewer.host())
        return

    if not conn.registry.has_host(conn.handle, code):
        await conn.reject(_forbidden(code, message.type))
        return

    async with conn.registry.lock(code):
        if isinstance(message, HostCloseRequest):
            result = conn.service.close(code)
            if not result.ok:
                await conn.reject(result.failure)
                return
            closed = ClosedResponse(code=code)
            await conn.registry.broadcast(code, lambda _viewer: closed)
            conn.registry.detach_session(code)
            return

        result = _run_host_command(conn.service, message)
        if not result.ok:
            await conn.reject(result.failure)
            return
        await conn.publish(code)


async def _handle_student(message: StudentMessage, conn: _Connection) -> None:
    code = message.code
    async with conn.registry.lock(code):
        if isinstance(message, StudentJoinRequest):
            joined = conn.service.join(
                code, message.name, profile_key=message.profile_key
            )
            if not joined.ok or joined.value is None:
                await conn.reject(joined.failure)
                return
            player_id = joined.value.id
            conn.registry.bind_player(conn.handle, code, player_id)
            await conn.send(JoinedResponse(code=code, player_id=player_id))
            await conn.publish(code)
            return

        if isinstance(message, StudentResumeRequest):
            resumed = conn.service.resume_player(code, message.player_id)
            if not resumed.ok:
                await conn.reject(resumed.failure)
                return
            conn.registry.bind_player(conn.handle, code, message.player_id)
            await conn.publish(code)
            return

        if not conn.registry.is_bound(conn.handle, code, message.player_id):
            await conn.reject(_forbidden(code, message.type))
            return

        if isinstance(message, StudentDecisionRequest):
            result: CommandResult[Any] = conn.service.submit_decision(
                code,
                message.player_id,
                message.card_type,
                choice_id=message.choice_id,
                extra=message.extra,
            )
        else:
            result = conn.service.heartbeat(code, message.player_id)
        if not result.ok:
            await conn.reject(result.failure)
            return
        await conn.publish(code)


async def _dispatch(message: BaseModel, conn: _Connection) -> None:
    if isinstance(message, HostCreateRequest):
        await _handle_create(message, conn)
        return

    code = getattr(message, "code", "")
    if conn.service.get_session(code) is None:
        await conn.reject(Failure.unknown_session(code))
        return

    if isinstance(message, StudentMessage):
        await _handle_student(message, conn)
    else:
        await _handle_host(message, conn)


@router.websocket("/ws")
async def session_socket(
    websocket: WebSocket,
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
    registry: ConnectionRegistry = Depends(get_connection_registry),  # noqa: B008
) -> None:
    """Serve one host or student socket until it disconnects."""
    await websocket.accept()

    send_lock = asyncio.Lock()

    async def send(model: BaseModel) -> None:
        async with send_lock:
            await websocket.send_json(model.model_dump(mode="json"))

    handle = registry.register(send)
    conn = _Connection(handle=handle, send=send, service=service, registry=registry)
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                message = INBOUND_WS_MESSAGE_ADAPTER.validate_json(raw)
            except ValidationError as exc:
                await send(
                    ErrorResponse(
                        reason=FailureReason.MALFORMED,
                        message="Invalid payload",
                        detail={
                            "errors": exc.errors(
                                include_url=False,
                                include_context=False,
                                include_input=False,
                            )
                        },
                    )
                )
                continue

            await _dispatch(message, conn)
    finally:
        registry.unregister(handle)
