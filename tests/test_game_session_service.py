"""Tests for the session service façade and its result type."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from finanzweg_backend.api.models import ErrorResponse
from finanzweg_backend.api.services import (
    CommandResult,
    ConnectionRegistry,
    Failure,
    GameSessionService,
)
from finanzweg_backend.game_logic import (
    DeckContent,
    InMemorySessionStore,
    SimulationConfiguration,
    Viewer,
)
from finanzweg_backend.shared import FailureReason, GameMode, SessionStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel


@pytest.fixture
def service(
    configuration: SimulationConfiguration,
    clock: Callable,
    answer_all_content: DeckContent,
) -> GameSessionService:
    return GameSessionService(
        store=InMemorySessionStore(),
        configuration=configuration,
        deck_content=answer_all_content,
        clock=clock,
    )


def test_created_codes_are_short_unique_and_unambiguous(
    service: GameSessionService, configuration: SimulationConfiguration
) -> None:
    codes = {service.create_session().code for _ in range(30)}

    assert len(codes) == 30
    for code in codes:
        assert len(code) == configuration.code_length
        assert set(code) <= set(configuration.code_alphabet)
        assert not set(code) & set("01IO")


def test_unknown_codes_yield_a_named_failure(service: GameSessionService) -> None:
    result = service.advance("NOPE")

    assert result.ok is False
    assert result.value is None
    assert result.failure == Failure(
        reason=FailureReason.SESSION_NOT_FOUND,
        message="Unknown session 'NOPE'.",
        detail={"code": "NOPE"},
    )


def test_rule_violations_become_failures(service: GameSessionService) -> None:
    code = service.create_session().code

    result = service.continue_session(code)

    assert not result.ok
    assert result.failure is not None
    assert result.failure.reason is FailureReason.NOT_STARTED
    assert code in result.failure.message


def test_codes_are_case_insensitive(service: GameSessionService) -> None:
    code = service.create_session(GameMode.BLITZ).code

    result = service.start(code.lower())

    assert result.ok
    assert result.value is not None
    assert result.value.status is SessionStatus.RUNNING
    assert result.value.mode is GameMode.BLITZ


def test_student_flow_through_the_service(service: GameSessionService) -> None:
    code = service.create_session().code
    joined = service.join(code, "Alice")
    assert joined.ok
    assert joined.value is not None
    player_id = joined.value.id

    duplicate = service.join(code, "ALICE")
    assert duplicate.failure is not None
    assert duplicate.failure.reason is FailureReason.NAME_TAKEN
    assert duplicate.failure.detail == {"name": "ALICE"}

    assert service.start(code).ok
    decision = service.submit_decision(code, player_id, "event", choice_id="accept")
    assert decision.ok

    resumed = service.resume_player(code, player_id)
    assert resumed.ok
    assert resumed.value is not None
    assert resumed.value.name == "Alice"

    missing = service.resume_player(code, "ghost")
    assert missing.failure is not None
    assert missing.failure.reason is FailureReason.PLAYER_NOT_FOUND

    view = service.view(code, Viewer.student(player_id))
    assert view.value is not None
    assert view.value.own_decisions["event"].choice_id == "accept"


def test_host_edit_through_the_service(service: GameSessionService) -> None:
    code = service.create_session().code
    player_id = service.join(code, "Alice").value.id
    service.start(code)
    service.submit_decision(code, player_id, "event", choice_id="accept")

    edited = service.edit_decision(code, player_id, 1, "event", choice_id="refuse")
    rejected = service.edit_decision(code, player_id, 9, "event", choice_id="refuse")

    assert edited.ok
    assert edited.value is not None
    assert edited.value.edited is True
    assert rejected.failure is not None
    assert rejected.failure.reason is FailureReason.INVALID_TURN


def test_close_removes_the_session(service: GameSessionService) -> None:
    code = service.create_session().code

    assert service.close(code).ok
    assert service.get_session(code) is None
    assert service.close(code).failure == Failure.unknown_session(code)


def test_command_result_helpers() -> None:
    success: CommandResult[int] = CommandResult.success(3)
    failure: CommandResult[int] = CommandResult.rejected(
        Failure(reason=FailureReason.FORBIDDEN, message="no")
    )

    assert success.ok
    assert success.value == 3
    assert not failure.ok
    assert failure.value is None


def test_default_service_uses_environment_configuration(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FINANZWEG_SIMULATION_MAX_PLAYERS", "1")
    service = GameSessionService.create_default()
    code = service.create_session().code

    assert service.configuration.max_players == 1
    assert service.join(code, "Alice").ok
    full = service.join(code, "Bob")
    assert full.failure is not None
    assert full.failure.reason is FailureReason.SESSION_FULL


class _Recorder:
    def __init__(self, *, fail: bool = False) -> None:
        self.messages: list[BaseModel] = []
        self.fail = fail

    async def __call__(self, message: BaseModel) -> None:
        if self.fail:
            msg = "socket closed"
            raise RuntimeError(msg)
        self.messages.append(message)


def test_registry_broadcast_drops_failing_sockets() -> None:
    registry = ConnectionRegistry()
    healthy = _Recorder()
    broken = _Recorder(fail=True)
    host = registry.register(healthy)
    student = registry.register(broken)
    registry.grant_host(host, "ABCD")
    registry.bind_player(student, "ABCD", "alice")

    rendered: list[Viewer] = []

    def render(viewer: Viewer) -> ErrorResponse:
        rendered.append(viewer)
        return ErrorResponse(reason=FailureReason.FORBIDDEN, message=viewer.role.value)

    asyncio.run(registry.broadcast("ABCD", render))

    assert rendered == [Viewer.host(), Viewer.student("alice")]
    assert len(healthy.messages) == 1
    assert len(registry) == 1
    assert registry.has_host(host, "ABCD")
    assert not registry.is_bound(student, "ABCD", "alice")


def test_registry_capabilities_are_per_session() -> None:
    registry = ConnectionRegistry()
    handle = registry.register(_Recorder())
    registry.grant_host(handle, "ABCD")
    registry.bind_player(handle, "WXYZ", "bob")

    assert registry.has_host(handle, "ABCD")
    assert not registry.has_host(handle, "WXYZ")
    assert registry.is_bound(handle, "WXYZ", "bob")
    assert not registry.is_bound(handle, "WXYZ", "alice")

    registry.detach_session("ABCD")
    assert not registry.has_host(handle, "ABCD")
    assert registry.viewers("WXYZ") == [(handle, Viewer.student("bob"))]
