"""Tests for the driver and team state mutation primitives."""

import copy

import numpy as np

from season_engine.core.mutation import (
    DriverStateChange,
    TeamStateChange,
    apply_driver_state_changes,
    apply_team_state_changes,
    clamp_percentage,
)
from season_engine.core.state import Department

# ---------------------------------------------------------------------------
# clamp_percentage
# ---------------------------------------------------------------------------


def test_clamp_percentage_bounds() -> None:
    """Values outside [0, 100] snap to the nearest bound."""
    assert clamp_percentage(-5.0) == 0.0
    assert clamp_percentage(150.0) == 100.0
    assert clamp_percentage(42.5) == 42.5


# ---------------------------------------------------------------------------
# Driver changes
# ---------------------------------------------------------------------------


def test_driver_percentages_are_clamped(world) -> None:
    """Fatigue, fitness, and morale never leave [0, 100]."""
    apply_driver_state_changes(
        world,
        [
            DriverStateChange(
                driver_id="a1",
                fatigue_change=-50,
                fitness_change=30,
                morale_change=45,
            )
        ],
    )
    runtime = world.driver_states["a1"]
    assert runtime.fatigue == 0.0
    assert runtime.fitness == 100.0
    assert runtime.morale == 100.0


def test_driver_counts_are_unclamped_and_overwrites_apply(world) -> None:
    """Counters add freely; injury and ban fields are overwritten."""
    world.driver_states["a1"].injury_weeks_remaining = 4
    apply_driver_state_changes(
        world,
        [
            DriverStateChange(
                driver_id="a1",
                set_injury_weeks=1,
                set_ban_races=2,
                engine_units_used_change=3,
                gearbox_race_count_change=7,
            )
        ],
    )
    runtime = world.driver_states["a1"]
    assert runtime.injury_weeks_remaining == 1
    assert runtime.ban_races_remaining == 2
    assert runtime.engine_units_used == 3
    assert runtime.gearbox_race_count == 7


def test_reputation_applies_to_driver_entity(world) -> None:
    """Reputation is clamped on the Driver record, not the runtime state."""
    apply_driver_state_changes(
        world, [DriverStateChange(driver_id="b1", reputation_change=80)]
    )
    assert world.find_driver("b1").reputation == 100.0


def test_missing_driver_runtime_is_skipped(world) -> None:
    """Unknown ids are ignored without touching anything else."""
    before = copy.deepcopy(world)
    apply_driver_state_changes(
        world, [DriverStateChange(driver_id="ghost", morale_change=10)]
    )
    assert world == before


def test_random_delta_sequences_stay_in_range(world) -> None:
    """Any sequence of deltas keeps every percentage field within bounds."""
    rng = np.random.default_rng(7)
    for _ in range(200):
        apply_driver_state_changes(
            world,
            [
                DriverStateChange(
                    driver_id="g1",
                    fatigue_change=float(rng.uniform(-60, 60)),
                    fitness_change=float(rng.uniform(-60, 60)),
                    morale_change=float(rng.uniform(-60, 60)),
                    reputation_change=float(rng.uniform(-60, 60)),
                )
            ],
        )
        apply_team_state_changes(
            world,
            [
                TeamStateChange(
                    team_id="gamma",
                    morale_changes={d: float(rng.uniform(-60, 60)) for d in Department},
                    sponsor_satisfaction_changes={"acme": float(rng.uniform(-60, 60))},
                )
            ],
        )
        runtime = world.driver_states["g1"]
        for value in (runtime.fatigue, runtime.fitness, runtime.morale):
            assert 0.0 <= value <= 100.0
        assert 0.0 <= world.find_driver("g1").reputation <= 100.0
        team_runtime = world.team_states["gamma"]
        assert all(0.0 <= v <= 100.0 for v in team_runtime.morale.values())
        assert 0.0 <= team_runtime.sponsor_satisfaction["acme"] <= 100.0


# ---------------------------------------------------------------------------
# Team changes
# ---------------------------------------------------------------------------


def test_budget_change_is_unclamped(world) -> None:
    """Budgets may go negative."""
    apply_team_state_changes(
        world, [TeamStateChange(team_id="gamma", budget_change=-25_000_000)]
    )
    assert world.find_team("gamma").budget == -15_000_000


def test_unknown_department_and_sponsor_keys_ignored(world) -> None:
    """Keys the team does not track are not created."""
    apply_team_state_changes(
        world,
        [
            TeamStateChange(
                team_id="beta",
                morale_changes={"catering": 10, Department.DESIGN: 5},
                sponsor_satisfaction_changes={"nobody": 10, "acme": -70},
            )
        ],
    )
    runtime = world.team_states["beta"]
    assert "catering" not in runtime.morale
    assert runtime.morale[Department.DESIGN] == 75.0
    assert "nobody" not in runtime.sponsor_satisfaction
    assert runtime.sponsor_satisfaction["acme"] == 0.0


def test_team_without_runtime_state_is_skipped(world) -> None:
    """A team missing runtime state keeps its budget."""
    del world.team_states["beta"]
    apply_team_state_changes(
        world, [TeamStateChange(team_id="beta", budget_change=1_000)]
    )
    assert world.find_team("beta").budget == 15_000_000


def test_empty_change_lists_are_idempotent(world) -> None:
    """Applying no changes leaves the state identical."""
    before = copy.deepcopy(world)
    apply_driver_state_changes(world, [])
    apply_team_state_changes(world, [])
    assert world == before
