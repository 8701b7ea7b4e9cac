"""Default race scorer for the season turn engine.

Turns a :class:`RaceWeekendResult` into the deltas and standings that the
race-weekend orchestrator applies.  The scorer reads the world state but
never mutates it, so the orchestrator can compute its output before the
first write of the turn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from numpy.random import Generator

from season_engine.config import SeasonRules, resolve_rules
from season_engine.core.mutation import DriverStateChange, TeamStateChange
from season_engine.core.rng import resolve_rng
from season_engine.core.standings import (
    ChampionshipStandings,
    compute_updated_standings,
)
from season_engine.core.state import (
    Department,
    RacePositionResult,
    RaceWeekendResult,
    WorldState,
)

_PODIUM_THRESHOLD: int = 3


@dataclass
class RaceProcessingResult:
    driver_state_changes: list[DriverStateChange] = field(default_factory=list)
    team_state_changes: list[TeamStateChange] = field(default_factory=list)
    updated_standings: ChampionshipStandings = field(default_factory=ChampionshipStandings)


class RaceScorer(Protocol):
    def process_race(
        self, state: WorldState, race_result: RaceWeekendResult
    ) -> RaceProcessingResult: ...


class StandardRaceScorer:
    """Morale, reputation, prize money, and standings from one race.

    Attributes:
        rules: Scoring constants.
        rng: Source for the weekly sponsor-satisfaction fluctuation.
    """

    def __init__(
        self, rules: SeasonRules | None = None, rng: Generator | None = None
    ) -> None:
        self.rules: SeasonRules = resolve_rules(rules)
        self.rng: Generator = resolve_rng(rng)

    def process_race(
        self, state: WorldState, race_result: RaceWeekendResult
    ) -> RaceProcessingResult:
        current = ChampionshipStandings(
            drivers=state.current_season.driver_standings,
            constructors=state.current_season.constructor_standings,
        )
        return RaceProcessingResult(
            driver_state_changes=[self._driver_change(r) for r in race_result.race],
            team_state_changes=self._team_changes(state, race_result.race),
            updated_standings=compute_updated_standings(current, race_result.race),
        )

    # -- helpers --------------------------------------------------------------

    def _finish_morale(self, finish_position: int | None, scored: bool) -> float:
        if finish_position == 1:
            return self.rules.win_morale_bonus
        if finish_position is not None and finish_position <= _PODIUM_THRESHOLD:
            return self.rules.podium_morale_bonus
        if scored:
            return self.rules.points_morale_bonus
        return 0.0

    def _driver_change(self, result: RacePositionResult) -> DriverStateChange:
        if result.status.is_dnf:
            morale = self.rules.dnf_morale_penalty
            reputation = self.rules.dnf_reputation_penalty
        else:
            morale = self._finish_morale(result.finish_position, result.points > 0)
            if result.finish_position == 1:
                reputation = self.rules.win_reputation_bonus
            elif result.finish_position is not None and result.finish_position <= _PODIUM_THRESHOLD:
                reputation = self.rules.podium_reputation_bonus
            else:
                reputation = 0.0
        return DriverStateChange(
            driver_id=result.driver_id,
            morale_change=morale,
            reputation_change=reputation,
        )

    def _team_changes(
        self, state: WorldState, results: list[RacePositionResult]
    ) -> list[TeamStateChange]:
        team_points: dict[str, int] = {}
        best_finish: dict[str, int] = {}
        for result in results:
            team_points[result.team_id] = team_points.get(result.team_id, 0) + result.points
            if result.finish_position is not None:
                best_finish[result.team_id] = min(
                    best_finish.get(result.team_id, result.finish_position),
                    result.finish_position,
                )

        swing = self.rules.sponsor_satisfaction_swing
        changes: list[TeamStateChange] = []
        for team_id, points in team_points.items():
            runtime = state.team_states.get(team_id)
            if runtime is None:
                continue
            boost = self._finish_morale(best_finish.get(team_id), points > 0)
            changes.append(
                TeamStateChange(
                    team_id=team_id,
                    budget_change=points * self.rules.points_bonus_per_point,
                    morale_changes={
                        Department.ENGINEERING: boost,
                        Department.MECHANICS: boost,
                    },
                    sponsor_satisfaction_changes={
                        sponsor_id: float(self.rng.integers(-swing, swing + 1))
                        for sponsor_id in runtime.sponsor_satisfaction
                    },
                )
            )
        return changes
