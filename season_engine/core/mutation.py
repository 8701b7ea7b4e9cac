"""State mutation primitives for the season turn engine.

Applies lists of named deltas to driver and team runtime state.  All
percentage fields are clamped to ``[0, 100]`` after the addition; budgets,
counters, and remaining-weeks fields are applied unclamped.  A change that
references an id without runtime state is skipped, which lets partially
initialised worlds advance.
"""

from __future__ import annotations

from dataclasses import dataclass

from season_engine.core.state import Department, WorldState

MAX_PERCENTAGE: float = 100.0

# ---------------------------------------------------------------------------
# Delta records
# ---------------------------------------------------------------------------


@dataclass
class DriverStateChange:
    """Deltas for one driver.  ``None`` fields are left untouched.

    Attributes:
        set_injury_weeks: Absolute overwrite of the injury counter.
        set_ban_races: Absolute overwrite of the race-ban counter.
        reputation_change: Applied to the :class:`Driver` entity rather
            than the runtime state.
    """

    driver_id: str
    fatigue_change: float | None = None
    fitness_change: float | None = None
    morale_change: float | None = None
    reputation_change: float | None = None
    set_injury_weeks: int | None = None
    set_ban_races: int | None = None
    engine_units_used_change: int | None = None
    gearbox_race_count_change: int | None = None


@dataclass
class TeamStateChange:
    """Deltas for one team.  ``None`` fields are left untouched."""

    team_id: str
    budget_change: float | None = None
    morale_changes: dict[Department, float] | None = None
    sponsor_satisfaction_changes: dict[str, float] | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def clamp_percentage(value: float) -> float:
    """Clamp *value* into the inclusive range ``[0, 100]``."""
    return max(0.0, min(MAX_PERCENTAGE, value))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def apply_driver_state_changes(
    state: WorldState, changes: list[DriverStateChange]
) -> None:
    """Apply driver deltas to *state* in place."""
    for change in changes:
        runtime = state.driver_states.get(change.driver_id)
        if runtime is None:
            continue

        if change.fatigue_change is not None:
            runtime.fatigue = clamp_percentage(runtime.fatigue + change.fatigue_change)
        if change.fitness_change is not None:
            runtime.fitness = clamp_percentage(runtime.fitness + change.fitness_change)
        if change.morale_change is not None:
            runtime.morale = clamp_percentage(runtime.morale + change.morale_change)
        if change.set_injury_weeks is not None:
            runtime.injury_weeks_remaining = change.set_injury_weeks
        if change.set_ban_races is not None:
            runtime.ban_races_remaining = change.set_ban_races
        if change.engine_units_used_change is not None:
            runtime.engine_units_used += change.engine_units_used_change
        if change.gearbox_race_count_change is not None:
            runtime.gearbox_race_count += change.gearbox_race_count_change

        if change.reputation_change is not None:
            driver = state.find_driver(change.driver_id)
            if driver is not None:
                driver.reputation = clamp_percentage(
                    driver.reputation + change.reputation_change
                )


def apply_team_state_changes(
    state: WorldState, changes: list[TeamStateChange]
) -> None:
    """Apply team deltas to *state* in place.

    Department and sponsor keys that the team does not track are ignored
    rather than created.
    """
    for change in changes:
        runtime = state.team_states.get(change.team_id)
        team = state.find_team(change.team_id)
        if runtime is None or team is None:
            continue

        if change.budget_change is not None:
            team.budget += change.budget_change

        if change.morale_changes:
            for dept, delta in change.morale_changes.items():
                if dept in runtime.morale and delta is not None:
                    runtime.morale[dept] = clamp_percentage(runtime.morale[dept] + delta)

        if change.sponsor_satisfaction_changes:
            for sponsor_id, delta in change.sponsor_satisfaction_changes.items():
                if sponsor_id in runtime.sponsor_satisfaction:
                    runtime.sponsor_satisfaction[sponsor_id] = clamp_percentage(
                        runtime.sponsor_satisfaction[sponsor_id] + delta
                    )
