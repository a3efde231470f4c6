"""Integration tests for the classroom WebSocket API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from fastapi.testclient import TestClient
from pydantic import TypeAdapter

from finanzweg_backend.api import create_api
from finanzweg_backend.api import dependencies as dependency_module
from finanzweg_backend.api.dependencies import (
    get_connection_registry,
    get_game_session_service,
)
from finanzweg_backend.api.models import OutboundWsMessage
from finanzweg_backend.api.services import ConnectionRegistry, GameSessionService
from finanzweg_backend.game_logic import (
    DeckContent,
    InMemorySessionStore,
    SimulationConfiguration,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from starlette.testclient import WebSocketTestSession


OUTBOUND = TypeAdapter(OutboundWsMessage)


@pytest.fixture
def client(
    configuration: SimulationConfiguration,
    clock: Callable,
    answer_all_content: DeckContent,
) -> Iterator[TestClient]:
    """Return a FastAPI test client with isolated session state."""
    dependency_module.get_game_session_service.cache_clear()
    dependency_module.get_connection_registry.cache_clear()
    app = create_api()
    session_service = GameSessionService(
        store=InMemorySessionStore(),
        configuration=configuration,
        deck_content=answer_all_content,
        clock=clock,
    )
    registry = ConnectionRegistry()
    app.dependency_overrides[get_game_session_service] = lambda: session_service
    app.dependency_overrides[get_connection_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    dependency_module.get_game_session_service.cache_clear()
    dependency_module.get_connection_registry.cache_clear()


def receive(websocket: WebSocketTestSession, expected: str) -> dict[str, Any]:
    message = websocket.receive_json()
    assert message["type"] == expected, message
    OUTBOUND.validate_python(message)
    return message


def create_session(host: WebSocketTestSession) -> str:
    host.send_json({"type": "host_create"})
    code = receive(host, "created")["code"]
    state = receive(host, "state")
    assert state["view"]["status"] == "lobby"
    return code


def test_host_and_student_flow(client: TestClient) -> None:
    with (
        client.websocket_connect("/ws") as host,
        client.websocket_connect("/ws") as student,
    ):
        code = create_session(host)

        student.send_json({"type": "student_join", "code": code, "name": "Alice"})
        joined = receive(student, "joined")
        player_id = joined["player_id"]
        assert joined["code"] == code
        student_state = receive(student, "state")
        host_state = receive(host, "state")
        assert student_state["view"]["viewer"] == "student"
        assert student_state["view"]["player_id"] == player_id
        assert host_state["view"]["viewer"] == "host"
        assert [p["name"] for p in host_state["view"]["players"]] == ["Alice"]

        host.send_json({"type": "host_start", "code": code.lower()})
        host_state = receive(host, "state")
        student_state = receive(student, "state")
        assert host_state["view"]["turn"] == 1
        assert host_state["view"]["phase"]["label"] == "A"
        assert student_state["view"]["active"]["turn"] == 1

        for card_type in ("event", "proposition", "constraint", "bonus"):
            student.send_json(
                {
                    "type": "student_decision",
                    "code": code,
                    "player_id": player_id,
                    "card_type": card_type,
                    "choice_id": "accept",
                }
            )
            student_state = receive(student, "state")
            receive(host, "state")
        assert set(student_state["view"]["own_decisions"]) == {
            "event",
            "proposition",
            "constraint",
            "bonus",
        }
        assert student_state["view"]["players"][0]["answered"] is True
        assert student_state["view"]["players"][0]["status"] == "complete"

        host.send_json({"type": "host_advance", "code": code})
        host_state = receive(host, "state")
        receive(student, "state")
        summary = host_state["view"]["players"][0]
        assert host_state["view"]["turn"] == 2
        assert summary["wealth"] == 11_000
        assert summary["answered"] is False


def test_rejections_reach_only_the_requester(client: TestClient) -> None:
    with (
        client.websocket_connect("/ws") as host,
        client.websocket_connect("/ws") as student,
    ):
        code = create_session(host)
        student.send_json({"type": "student_join", "code": code, "name": "Alice"})
        player_id = receive(student, "joined")["player_id"]
        receive(student, "state")
        receive(host, "state")

        student.send_json(
            {
                "type": "student_decision",
                "code": code,
                "player_id": player_id,
                "card_type": "event",
                "choice_id": "accept",
            }
        )
        error = receive(student, "error")
        assert error["reason"] == "not_started"

        student.send_json({"type": "host_start", "code": code})
        assert receive(student, "error")["reason"] == "forbidden"

        host.send_json(
            {
                "type": "student_decision",
                "code": code,
                "player_id": player_id,
                "card_type": "event",
                "choice_id": "accept",
            }
        )
        assert receive(host, "error")["reason"] == "forbidden"

        student.send_json({"type": "student_join", "code": code, "name": "alice"})
        error = receive(student, "error")
        assert error["reason"] == "name_taken"
        assert error["detail"] == {"name": "alice"}

        host.send_json({"type": "host_continue", "code": code})
        assert receive(host, "error")["reason"] == "not_started"

        # the host socket never saw the student's errors
        host.send_json({"type": "host_start", "code": code})
        receive(host, "state")
        receive(student, "state")


def test_malformed_messages_keep_the_connection_open(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("not json")
        assert receive(websocket, "error")["reason"] == "malformed"

        websocket.send_json({"type": "launch_rocket"})
        assert receive(websocket, "error")["reason"] == "malformed"

        websocket.send_json({"type": "student_join", "code": "ABCD"})
        assert receive(websocket, "error")["reason"] == "malformed"

        websocket.send_json({"type": "host_resume", "code": "ZZZZ"})
        error = receive(websocket, "error")
        assert error["reason"] == "session_not_found"
        assert error["detail"] == {"code": "ZZZZ"}

        create_session(websocket)


def test_reconnecting_sockets_resume_their_roles(client: TestClient) -> None:
    with client.websocket_connect("/ws") as host:
        code = create_session(host)
        with client.websocket_connect("/ws") as student:
            student.send_json({"type": "student_join", "code": code, "name": "Bob"})
            player_id = receive(student, "joined")["player_id"]
            receive(student, "state")
            receive(host, "state")

    with (
        client.websocket_connect("/ws") as host,
        client.websocket_connect("/ws") as student,
    ):
        host.send_json({"type": "host_resume", "code": code})
        assert receive(host, "state")["view"]["viewer"] == "host"

        student.send_json(
            {"type": "student_resume", "code": code, "player_id": player_id}
        )
        host_state = receive(host, "state")
        student_state = receive(student, "state")
        assert student_state["view"]["player_id"] == player_id
        assert [p["name"] for p in host_state["view"]["players"]] == ["Bob"]

        student.send_json({"type": "heartbeat", "code": code, "player_id": player_id})
        receive(host, "state")
        receive(student, "state")

        host.send_json({"type": "host_close", "code": code})
        assert receive(host, "closed")["code"] == code
        assert receive(student, "closed")["code"] == code

        host.send_json({"type": "host_advance", "code": code})
        assert receive(host, "error")["reason"] == "session_not_found"
