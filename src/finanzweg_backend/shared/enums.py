"""Shared enumerations used across the backend."""

from enum import StrEnum


class GameMode(StrEnum):
    """Length presets for a simulation run."""

    LONG = "long"
    BLITZ = "blitz"


class SessionStatus(StrEnum):
    """Lifecycle stages of a session."""

    LOBBY = "lobby"
    RUNNING = "running"
    FINISHED = "finished"


class CardType(StrEnum):
    """The four card slots presented every turn."""

    EVENT = "event"
    PROPOSITION = "proposition"
    CONSTRAINT = "constraint"
    BONUS = "bonus"


CARD_TYPES: tuple[CardType, ...] = (
    CardType.EVENT,
    CardType.PROPOSITION,
    CardType.CONSTRAINT,
    CardType.BONUS,
)


class PlayerStatus(StrEnum):
    """Traffic-light indicator shown to the host for each student."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class ConnectionRole(StrEnum):
    """Capability attached to a live connection."""

    HOST = "host"
    STUDENT = "student"


class DeckStrategy(StrEnum):
    """How cards are assigned to turns."""

    SCHEDULE = "schedule"
    DRAW = "draw"


class FailureReason(StrEnum):
    """Machine-readable reasons for a rejected command."""

    MALFORMED = "malformed"
    SESSION_NOT_FOUND = "session_not_found"
    PLAYER_NOT_FOUND = "player_not_found"
    PROFILE_NOT_FOUND = "profile_not_found"
    FORBIDDEN = "forbidden"
    NAME_TAKEN = "name_taken"
    INVALID_NAME = "invalid_name"
    SESSION_FULL = "session_full"
    INVALID_CARD_TYPE = "invalid_card_type"
    CARD_NOT_ACTIVE = "card_not_active"
    INVALID_CHOICE = "invalid_choice"
    INVALID_PAYLOAD = "invalid_payload"
    INVALID_TURN = "invalid_turn"
    NOT_STARTED = "not_started"
    ALREADY_STARTED = "already_started"
    SESSION_PAUSED = "session_paused"
    NOT_PAUSED = "not_paused"
    SESSION_FINISHED = "session_finished"
    PLAYERS_NOT_READY = "players_not_ready"
    DRAW_NOT_SUPPORTED = "draw_not_supported"
    DECISIONS_RECORDED = "decisions_recorded"
    TURN_SETTLED = "turn_settled"


__all__ = [
    "CARD_TYPES",
    "CardType",
    "ConnectionRole",
    "DeckStrategy",
    "FailureReason",
    "GameMode",
    "PlayerStatus",
    "SessionStatus",
]
