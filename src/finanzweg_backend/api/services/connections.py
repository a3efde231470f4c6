"""Registry of live WebSocket connections grouped by session code."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING

from finanzweg_backend.game_logic import Viewer

if TYPE_CHECKING:
    from pydantic import BaseModel

logger = logging.getLogger(__name__)

Sender = Callable[["BaseModel"], Awaitable[None]]
Renderer = Callable[[Viewer], "BaseModel | None"]


@dataclass(slots=True)
class Connection:
    """One socket and the capabilities it was granted."""

    handle: int
    send: Sender
    host_codes: set[str] = field(default_factory=set)
    players: dict[str, str] = field(default_factory=dict)

    def viewer_for(self, code: str) -> Viewer | None:
        """Return how this connection sees session *code*."""
        if code in self.host_codes:
            return Viewer.host()
        player_id = self.players.get(code)
        if player_id is not None:
            return Viewer.student(player_id)
        return None


class ConnectionRegistry:
    """Track which socket may act on which session and fan out snapshots.

    Connections are opaque handles. A handle can hold the host capability for
    a session (granted by create or resume) or be bound to one player of a
    session (granted by join or resume). Removing a handle never touches game
    state.
    """

    def __init__(self) -> None:
        self._connections: dict[int, Connection] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._handles = count(1)

    def register(self, send: Sender) -> int:
        """Add a socket and return its handle."""
        handle = next(self._handles)
        self._connections[handle] = Connection(handle=handle, send=send)
        return handle

    def unregister(self, handle: int) -> None:
        """Forget *handle*; unknown handles are ignored."""
        self._connections.pop(handle, None)

    def grant_host(self, handle: int, code: str) -> None:
        """Give *handle* the host capability for *code*."""
        self._connections[handle].host_codes.add(code)

    def bind_player(self, handle: int, code: str, player_id: str) -> None:
        """Bind *handle* to *player_id* within *code*."""
        self._connections[handle].players[code] = player_id

    def has_host(self, handle: int, code: str) -> bool:
        """Return True if *handle* may issue host commands for *code*."""
        connection = self._connections.get(handle)
        return connection is not None and code in connection.host_codes

    def is_bound(self, handle: int, code: str, player_id: str) -> bool:
        """Return True if *handle* speaks for *player_id* within *code*."""
        connection = self._connections.get(handle)
        return connection is not None and connection.players.get(code) == player_id

    def viewers(self, code: str) -> list[tuple[int, Viewer]]:
        """Return every handle attached to *code* with its viewer."""
        attached: list[tuple[int, Viewer]] = []
        for handle, connection in self._connections.items():
            viewer = connection.viewer_for(code)
            if viewer is not None:
                attached.append((handle, viewer))
        return attached

    def detach_session(self, code: str) -> None:
        """Drop every capability that refers to *code*."""
        for connection in self._connections.values():
            connection.host_codes.discard(code)
            connection.players.pop(code, None)
        self._locks.pop(code, None)

    def lock(self, code: str) -> asyncio.Lock:
        """Return the lock serialising mutations and broadcasts for *code*."""
        lock = self._locks.get(code)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[code] = lock
        return lock

    async def broadcast(self, code: str, render: Renderer) -> None:
        """Send every socket of *code* the message rendered for its viewer."""
        for handle, viewer in self.viewers(code):
            message = render(viewer)
            if message is None:
                continue
            connection = self._connections.get(handle)
            if connection is None:
                continue
            try:
                await connection.send(message)
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Dropping connection %d of session %s after a failed send",
                    handle,
                    code,
                    exc_info=True,
                )
                self.unregister(handle)

    def __len__(self) -> int:
        return len(self._connections)


__all__ = ["Connection", "ConnectionRegistry", "Renderer", "Sender"]
