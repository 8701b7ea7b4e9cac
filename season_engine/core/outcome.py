"""Race outcome engine boundary for the season turn engine.

The real race simulator lives outside this package.  The orchestrator
talks to it through the :class:`RaceOutcomeEngine` protocol and checks
every result with :func:`validate_race_result` before touching the world
state.  :class:`StubRaceOutcomeEngine` is a seeded placeholder used by the
demo CLI and tests.
"""

from __future__ import annotations

from typing import Protocol

from numpy.random import Generator

from season_engine.config import SeasonRules, resolve_rules
from season_engine.core.errors import RaceOutcomeError
from season_engine.core.rng import resolve_rng
from season_engine.core.state import (
    RaceFinishStatus,
    RacePositionResult,
    RaceWeekendResult,
    WorldState,
)

# Classified cars beyond this position finish a lap or more down.
_LEAD_LAP_CUTOFF: int = 10


class RaceOutcomeEngine(Protocol):
    def simulate(
        self, state: WorldState, circuit_id: str, race_number: int
    ) -> RaceWeekendResult: ...


def validate_race_result(
    result: RaceWeekendResult, circuit_id: str, race_number: int
) -> None:
    """Reject results that would corrupt the season record.

    Raises:
        RaceOutcomeError: If the result belongs to another race, lists a
            driver twice, or carries duplicate or non-positive finishing
            positions.
    """
    if not isinstance(result, RaceWeekendResult):
        raise RaceOutcomeError(
            f"Race outcome engine returned {type(result).__name__}, "
            "expected RaceWeekendResult"
        )
    if result.circuit_id != circuit_id:
        raise RaceOutcomeError(
            f"Result is for circuit '{result.circuit_id}', expected '{circuit_id}'"
        )
    if result.race_number != race_number:
        raise RaceOutcomeError(
            f"Result is for race {result.race_number}, expected {race_number}"
        )

    seen_drivers: set[str] = set()
    seen_positions: set[int] = set()
    for entry in result.race:
        if entry.driver_id in seen_drivers:
            raise RaceOutcomeError(f"Driver '{entry.driver_id}' classified twice")
        seen_drivers.add(entry.driver_id)

        pos = entry.finish_position
        if pos is None:
            continue
        if pos < 1:
            raise RaceOutcomeError(
                f"Driver '{entry.driver_id}' has invalid finish position {pos}"
            )
        if pos in seen_positions:
            raise RaceOutcomeError(f"Finish position {pos} assigned twice")
        seen_positions.add(pos)


class StubRaceOutcomeEngine:
    """Random finishing order for every driver holding a race seat.

    Attributes:
        rules: Supplies the points table and retirement probability.
        rng: Source of all randomness; pass a seeded generator for
            reproducible races.
    """

    def __init__(
        self, rules: SeasonRules | None = None, rng: Generator | None = None
    ) -> None:
        self.rules: SeasonRules = resolve_rules(rules)
        self.rng: Generator = resolve_rng(rng)

    def simulate(
        self, state: WorldState, circuit_id: str, race_number: int
    ) -> RaceWeekendResult:
        entrants = [d for d in state.drivers if d.has_race_seat]
        order = [entrants[i] for i in self.rng.permutation(len(entrants))]
        grid = [int(g) + 1 for g in self.rng.permutation(len(entrants))]

        finishers: list[RacePositionResult] = []
        retirements: list[RacePositionResult] = []
        gap_ms = 0.0
        for drv, grid_pos in zip(order, grid):
            team_id = drv.team_id or ""
            if self.rng.random() < self.rules.retirement_probability:
                retirements.append(
                    RacePositionResult(
                        driver_id=drv.id,
                        team_id=team_id,
                        finish_position=None,
                        grid_position=grid_pos,
                        status=RaceFinishStatus.RETIRED,
                    )
                )
                continue

            position = len(finishers) + 1
            if position == 1:
                entry = RacePositionResult(
                    driver_id=drv.id,
                    team_id=team_id,
                    finish_position=1,
                    grid_position=grid_pos,
                    status=RaceFinishStatus.FINISHED,
                    gap_to_winner_ms=0.0,
                )
            elif position <= _LEAD_LAP_CUTOFF:
                gap_ms += float(round(self.rng.uniform(300.0, 9000.0)))
                entry = RacePositionResult(
                    driver_id=drv.id,
                    team_id=team_id,
                    finish_position=position,
                    grid_position=grid_pos,
                    status=RaceFinishStatus.FINISHED,
                    gap_to_winner_ms=gap_ms,
                )
            else:
                entry = RacePositionResult(
                    driver_id=drv.id,
                    team_id=team_id,
                    finish_position=position,
                    grid_position=grid_pos,
                    status=RaceFinishStatus.LAPPED,
                    laps_behind=1 + (position - _LEAD_LAP_CUTOFF - 1) // 4,
                )
            entry.points = self.rules.points_for(position)
            finishers.append(entry)

        if finishers:
            fastest = finishers[int(self.rng.integers(0, len(finishers)))]
            fastest.fastest_lap = True

        return RaceWeekendResult(
            race_number=race_number,
            circuit_id=circuit_id,
            season_number=state.season_number,
            race=finishers + retirements,
        )
