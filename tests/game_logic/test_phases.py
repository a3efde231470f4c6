"""Tests for the turn partition into phases."""

import pytest

from finanzweg_backend.game_logic import SimulationConfiguration, SimulationDefaults
from finanzweg_backend.game_logic.phases import (
    CHECKPOINT_TURN,
    LONG_MAX_TURNS,
    LONG_PHASES,
    is_checkpoint,
    next_range,
    phase_for,
    phase_ranges,
)
from finanzweg_backend.shared import GameMode


def test_long_game_covers_every_turn_exactly_once() -> None:
    covered = [
        turn
        for phase in phase_ranges(GameMode.LONG)
        for turn in range(phase.start, phase.end + 1)
    ]
    assert covered == list(range(1, LONG_MAX_TURNS + 1))


def test_long_game_labels_follow_the_turn_order() -> None:
    labels = [phase_for(turn, GameMode.LONG).label for turn in range(1, 43)]
    seen: list[str | None] = []
    for label in labels:
        if not seen or seen[-1] != label:
            seen.append(label)
    assert seen == ["A", "B", "C", "D", "E"]


@pytest.mark.parametrize(
    ("turn", "label", "host_controlled"),
    [
        (1, "A", True),
        (7, "A", True),
        (8, "B", False),
        (21, "B", False),
        (22, "C", True),
        (26, "C", True),
        (27, "D", False),
        (37, "D", False),
        (38, "E", True),
        (42, "E", True),
    ],
)
def test_phase_boundaries(turn: int, label: str, host_controlled: bool) -> None:
    phase = phase_for(turn, GameMode.LONG)
    assert phase.label == label
    assert phase.host_controlled is host_controlled


def test_ranges_alternate_control_mode() -> None:
    modes = [phase.host_controlled for phase in LONG_PHASES]
    assert modes == [True, False, True, False, True]


@pytest.mark.parametrize("turn", [0, -1, 43, 100])
def test_turns_outside_the_game_are_rejected(turn: int) -> None:
    with pytest.raises(ValueError, match="outside"):
        phase_for(turn, GameMode.LONG)


def test_blitz_is_a_single_unlabelled_range() -> None:
    ranges = phase_ranges(GameMode.BLITZ, blitz_turns=10)
    assert len(ranges) == 1
    assert ranges[0].label is None
    assert (ranges[0].start, ranges[0].end) == (1, 10)
    assert ranges[0].host_controlled is True
    with pytest.raises(ValueError, match="outside"):
        phase_for(11, GameMode.BLITZ, blitz_turns=10)


def test_checkpoint_sits_at_the_end_of_phase_b() -> None:
    assert CHECKPOINT_TURN == 21
    assert is_checkpoint(21, GameMode.LONG)
    assert not is_checkpoint(37, GameMode.LONG)
    assert not is_checkpoint(21, GameMode.BLITZ)


def test_long_game_length_comes_from_the_phase_table(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FINANZWEG_SIMULATION_LONG_MAX_TURNS", "30")
    monkeypatch.setenv("FINANZWEG_SIMULATION_CHECKPOINT_TURN", "10")
    monkeypatch.setenv("FINANZWEG_SIMULATION_BLITZ_MAX_TURNS", "6")

    configuration = SimulationDefaults().to_config()

    assert configuration.max_turns(GameMode.LONG) == LONG_MAX_TURNS == 42
    assert configuration.max_turns(GameMode.BLITZ) == 6
    assert CHECKPOINT_TURN == LONG_PHASES[1].end
    assert not hasattr(SimulationConfiguration(), "checkpoint_turn")


def test_next_range_walks_the_partition() -> None:
    phase_b = phase_for(8, GameMode.LONG)
    following = next_range(phase_b, GameMode.LONG)
    assert following is not None
    assert following.label == "C"
    assert following.start == 22
    assert next_range(phase_for(42, GameMode.LONG), GameMode.LONG) is None
