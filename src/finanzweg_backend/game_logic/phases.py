"""Turn partitioning into phases for Finanz-Weg sessions.

A long game spans 42 simulated years split into five contiguous phases that
alternate between host-controlled (the class moves in lock-step, the host
advances every turn) and autonomous ranges (every student advances on their
own as soon as they answered all cards of their current turn). Blitz games
are a single flat host-controlled range without phase letters.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from finanzweg_backend.shared.enums import GameMode


class PhaseRange(BaseModel):
    """Contiguous range of turns sharing one control mode."""

    model_config = ConfigDict(frozen=True)

    label: str | None
    start: int = Field(..., ge=1)
    end: int = Field(..., ge=1)
    host_controlled: bool

    @model_validator(mode="after")
    def _validate_bounds(self) -> PhaseRange:
        """Ensure the range is not inverted."""
        if self.end < self.start:
            msg = f"Phase range {self.label} ends before it starts."
            raise ValueError(msg)
        return self

    def contains(self, turn: int) -> bool:
        """Return True if *turn* lies within the range."""
        return self.start <= turn <= self.end

    def clamp(self, turn: int) -> int:
        """Return *turn* bounded to the range."""
        return max(self.start, min(self.end, turn))


LONG_PHASES: tuple[PhaseRange, ...] = (
    PhaseRange(label="A", start=1, end=7, host_controlled=True),
    PhaseRange(label="B", start=8, end=21, host_controlled=False),
    PhaseRange(label="C", start=22, end=26, host_controlled=True),
    PhaseRange(label="D", start=27, end=37, host_controlled=False),
    PhaseRange(label="E", start=38, end=42, host_controlled=True),
)

LONG_MAX_TURNS = LONG_PHASES[-1].end

# The class regroups between the first autonomous stretch and phase C.
CHECKPOINT_TURN = LONG_PHASES[1].end

DEFAULT_BLITZ_TURNS = 10


def phase_ranges(
    mode: GameMode, *, blitz_turns: int = DEFAULT_BLITZ_TURNS
) -> tuple[PhaseRange, ...]:
    """Return the ordered partition of turns used in *mode*."""
    if mode is GameMode.LONG:
        return LONG_PHASES
    return (PhaseRange(label=None, start=1, end=blitz_turns, host_controlled=True),)


def phase_for(
    turn: int, mode: GameMode, *, blitz_turns: int = DEFAULT_BLITZ_TURNS
) -> PhaseRange:
    """Return the phase range containing *turn*."""
    for phase in phase_ranges(mode, blitz_turns=blitz_turns):
        if phase.contains(turn):
            return phase
    msg = f"Turn {turn} is outside the {mode.value} game."
    raise ValueError(msg)


def next_range(
    current: PhaseRange, mode: GameMode, *, blitz_turns: int = DEFAULT_BLITZ_TURNS
) -> PhaseRange | None:
    """Return the range following *current*, or ``None`` after the last one."""
    ranges = phase_ranges(mode, blitz_turns=blitz_turns)
    index = ranges.index(current)
    if index + 1 >= len(ranges):
        return None
    return ranges[index + 1]


def is_checkpoint(turn: int, mode: GameMode) -> bool:
    """Return True if *turn* is the mandatory pause point."""
    return mode is GameMode.LONG and turn == CHECKPOINT_TURN


__all__ = [
    "CHECKPOINT_TURN",
    "DEFAULT_BLITZ_TURNS",
    "LONG_MAX_TURNS",
    "LONG_PHASES",
    "PhaseRange",
    "is_checkpoint",
    "next_range",
    "phase_for",
    "phase_ranges",
]
