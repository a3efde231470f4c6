"""Session store abstractions.

The store is owned by whoever builds the service (the app factory or a test)
and lives as long as that owner. Sessions are kept in memory only, so a
process restart loses every running game; alternative adapters (shared
caches, databases) can implement :class:`SessionStore` without touching the
game logic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from finanzweg_backend.game_logic.session import GameSession


class SessionStore(Protocol):
    """Protocol describing how running sessions are kept."""

    def add(self, session: GameSession) -> None:
        """Register *session* under its code, replacing nothing."""

    def get(self, code: str) -> GameSession | None:
        """Return the session registered under *code* or ``None``."""

    def remove(self, code: str) -> GameSession | None:
        """Drop the session registered under *code* and return it."""

    def __contains__(self, code: object) -> bool:
        """Return True if *code* is taken."""

    def codes(self) -> tuple[str, ...]:
        """Return every registered code."""

    def clear(self) -> None:
        """Drop every session (administrative action)."""


class InMemorySessionStore:
    """Trivial in-memory implementation of :class:`SessionStore`."""

    def __init__(self) -> None:
        self._sessions: dict[str, GameSession] = {}

    def add(self, session: GameSession) -> None:
        """Store *session* keyed by its code."""
        if session.code in self._sessions:
            msg = f"Session code '{session.code}' is already in use."
            raise KeyError(msg)
        self._sessions[session.code] = session

    def get(self, code: str) -> GameSession | None:
        """Return the stored session for *code* if available."""
        return self._sessions.get(code.upper())

    def remove(self, code: str) -> GameSession | None:
        """Remove and return the session stored under *code*."""
        return self._sessions.pop(code.upper(), None)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._sessions

    def codes(self) -> tuple[str, ...]:
        """Return all stored session codes."""
        return tuple(self._sessions)

    def clear(self) -> None:
        """Drop all sessions."""
        self._sessions.clear()


__all__ = ["InMemorySessionStore", "SessionStore"]
