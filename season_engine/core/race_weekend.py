"""Race-weekend orchestrator for the season turn engine.

One call to :meth:`RaceWeekendOrchestrator.process` runs a complete race
weekend against the world state:

1. snapshot the driver standings,
2. obtain the race result from the outcome engine,
3. apply the scorer's driver/team deltas and new standings,
4. mark the calendar entry completed,
5. emit the race-result news event,
6. emit a championship-lead event if the leader changed,
7. charge post-race repairs,
8. record engine telemetry.

The outcome engine call, result validation, and scoring all happen before
the first write.  If any of them fails a :class:`RaceOutcomeError` is
raised and the world state is left exactly as it was.  Missing reference
data after that point only drops the affected news or analytics step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from numpy.random import Generator

from season_engine.config import SeasonRules, resolve_rules
from season_engine.core.errors import PreconditionError, RaceOutcomeError
from season_engine.core.mutation import (
    apply_driver_state_changes,
    apply_team_state_changes,
)
from season_engine.core.news import push_news_event
from season_engine.core.outcome import RaceOutcomeEngine, validate_race_result
from season_engine.core.repairs import TeamRepairBill, process_post_race_repairs
from season_engine.core.rng import resolve_rng
from season_engine.core.scoring import (
    RaceProcessingResult,
    RaceScorer,
    StandardRaceScorer,
)
from season_engine.core.standings import (
    snapshot_driver_standings,
    update_championship_standings,
)
from season_engine.core.state import (
    CalendarEntry,
    DriverStanding,
    Importance,
    NewsEvent,
    NewsEventType,
    RacePositionResult,
    RaceWeekendResult,
    WorldState,
)
from season_engine.core.telemetry import generate_engine_analytics_data

logger = logging.getLogger(__name__)

NO_PREVIOUS_LEADER: str = "no previous leader"


class RaceWeekendStage(str, Enum):
    NOT_STARTED = "not_started"
    RESULTS_OBTAINED = "results_obtained"
    STATE_APPLIED = "state_applied"
    STANDINGS_UPDATED = "standings_updated"
    EVENTS_EMITTED = "events_emitted"
    REPAIRS_APPLIED = "repairs_applied"
    ANALYTICS_RECORDED = "analytics_recorded"
    COMPLETE = "complete"


_STAGE_ORDER: tuple[RaceWeekendStage, ...] = tuple(RaceWeekendStage)


@dataclass
class RaceWeekendReport:
    """What a processed race weekend produced.

    Attributes:
        stage: Last stage reached; ``COMPLETE`` after a normal run.
        stages: Every stage entered, in order.
        result: Race result returned by the outcome engine.
        news_events: Reactive events emitted for this race.
        repair_bills: Repair charges applied per team.
        analytics_recorded: Number of telemetry readings appended.
    """

    race_number: int
    circuit_id: str
    stage: RaceWeekendStage = RaceWeekendStage.NOT_STARTED
    stages: list[RaceWeekendStage] = field(
        default_factory=lambda: [RaceWeekendStage.NOT_STARTED]
    )
    result: RaceWeekendResult | None = None
    news_events: list[NewsEvent] = field(default_factory=list)
    repair_bills: list[TeamRepairBill] = field(default_factory=list)
    analytics_recorded: int = 0

    def advance(self, stage: RaceWeekendStage) -> None:
        """Move to *stage*, which must directly follow the current one.

        Raises:
            PreconditionError: If *stage* would skip or repeat a stage.
        """
        expected = _STAGE_ORDER.index(self.stage) + 1
        if expected >= len(_STAGE_ORDER) or _STAGE_ORDER[expected] is not stage:
            raise PreconditionError(
                f"Race weekend cannot move from {self.stage.value} to {stage.value}"
            )
        self.stage = stage
        self.stages.append(stage)


# ---------------------------------------------------------------------------
# News helpers
# ---------------------------------------------------------------------------


def format_winner_margin(
    winner: RacePositionResult, second: RacePositionResult
) -> str:
    """Describe the winning margin, e.g. ``+1.500s`` or ``+2 laps``."""
    if winner.gap_to_winner_ms == 0 and second.gap_to_winner_ms:
        return f"+{second.gap_to_winner_ms / 1000:.3f}s"
    if second.laps_behind:
        if second.laps_behind == 1:
            return "+1 lap"
        return f"+{second.laps_behind} laps"
    return "+0.000s"


def podium(race_result: RaceWeekendResult) -> list[RacePositionResult]:
    """Return up to three classified finishers ordered by position."""
    classified = [r for r in race_result.race if r.finish_position is not None]
    classified.sort(key=lambda r: r.finish_position)
    return classified[:3]


def emit_race_result_event(
    state: WorldState, race_result: RaceWeekendResult, circuit_id: str
) -> NewsEvent | None:
    circuit = state.find_circuit(circuit_id)
    if circuit is None:
        logger.debug("Race result news skipped: unknown circuit %s", circuit_id)
        return None

    top3 = podium(race_result)
    if len(top3) < 3:
        logger.debug("Race result news skipped: fewer than three classified finishers")
        return None
    winner, second, third = top3

    winner_driver = state.find_driver(winner.driver_id)
    winner_team = state.find_team(winner.team_id)
    second_driver = state.find_driver(second.driver_id)
    third_driver = state.find_driver(third.driver_id)
    if None in (winner_driver, winner_team, second_driver, third_driver):
        logger.debug("Race result news skipped: podium entities unresolved")
        return None

    return push_news_event(
        state,
        NewsEventType.RACE_RESULT,
        Importance.HIGH,
        {
            "raceNumber": race_result.race_number,
            "circuitName": circuit.name,
            "circuitCountry": circuit.country,
            "winnerId": winner_driver.id,
            "winnerName": winner_driver.full_name,
            "winnerTeamName": winner_team.name,
            "secondName": second_driver.full_name,
            "thirdName": third_driver.full_name,
            "winnerMargin": format_winner_margin(winner, second),
        },
    )


def emit_championship_lead_event(
    state: WorldState,
    previous_standings: list[DriverStanding],
    race_number: int,
) -> NewsEvent | None:
    """Emit a lead-change event when the standings leader is new."""
    current = state.current_season.driver_standings
    if not current:
        return None

    new_leader = current[0]
    previous_leader = previous_standings[0] if previous_standings else None
    if previous_leader is not None and previous_leader.driver_id == new_leader.driver_id:
        return None

    leader_driver = state.find_driver(new_leader.driver_id)
    leader_team = state.find_team(new_leader.team_id)
    if leader_driver is None or leader_team is None:
        logger.debug("Championship lead news skipped: leader entities unresolved")
        return None

    previous_driver = (
        state.find_driver(previous_leader.driver_id) if previous_leader else None
    )
    if len(current) > 1:
        points_gap = new_leader.points - current[1].points
    else:
        points_gap = new_leader.points

    return push_news_event(
        state,
        NewsEventType.CHAMPIONSHIP_LEAD,
        Importance.HIGH,
        {
            "newLeaderId": leader_driver.id,
            "newLeaderName": leader_driver.full_name,
            "newLeaderTeam": leader_team.name,
            "newLeaderPoints": new_leader.points,
            "previousLeaderName": (
                previous_driver.full_name if previous_driver else NO_PREVIOUS_LEADER
            ),
            "pointsGap": points_gap,
            "raceNumber": race_number,
        },
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class RaceWeekendOrchestrator:
    """Runs race weekends against a world state.

    Attributes:
        outcome_engine: Produces the race result.
        scorer: Turns the result into deltas and standings.
        rules: Rule constants for repairs and telemetry.
        rng: Random source for telemetry noise.
    """

    def __init__(
        self,
        outcome_engine: RaceOutcomeEngine,
        scorer: RaceScorer | None = None,
        rules: SeasonRules | None = None,
        rng: Generator | None = None,
    ) -> None:
        self.rules: SeasonRules = resolve_rules(rules)
        self.rng: Generator = resolve_rng(rng)
        self.outcome_engine = outcome_engine
        self.scorer: RaceScorer = scorer or StandardRaceScorer(self.rules, self.rng)

    def _obtain_result(
        self, state: WorldState, race: CalendarEntry
    ) -> tuple[RaceWeekendResult, RaceProcessingResult]:
        try:
            result = self.outcome_engine.simulate(
                state, race.circuit_id, race.race_number
            )
            validate_race_result(result, race.circuit_id, race.race_number)
            processed = self.scorer.process_race(state, result)
        except RaceOutcomeError:
            logger.error("Race %d produced an invalid result", race.race_number)
            raise
        except Exception as exc:
            logger.error("Race outcome engine failed for race %d", race.race_number)
            raise RaceOutcomeError(
                f"Race outcome engine failed for race {race.race_number}: {exc}"
            ) from exc
        return result, processed

    def process(self, state: WorldState, race: CalendarEntry) -> RaceWeekendReport:
        """Run every race-weekend stage for *race*.

        Raises:
            PreconditionError: If *race* is already completed or cancelled.
            RaceOutcomeError: If the outcome engine or scorer fails.  The
                world state is not modified in that case.
        """
        if race.completed or race.cancelled:
            status = "completed" if race.completed else "cancelled"
            logger.error("Race %d is already %s", race.race_number, status)
            raise PreconditionError(f"Race {race.race_number} is already {status}")

        report = RaceWeekendReport(race_number=race.race_number, circuit_id=race.circuit_id)
        previous_standings = snapshot_driver_standings(state)

        result, processed = self._obtain_result(state, race)
        report.result = result
        report.advance(RaceWeekendStage.RESULTS_OBTAINED)

        apply_driver_state_changes(state, processed.driver_state_changes)
        apply_team_state_changes(state, processed.team_state_changes)
        report.advance(RaceWeekendStage.STATE_APPLIED)

        update_championship_standings(state, processed.updated_standings)
        race.completed = True
        race.result = result
        report.advance(RaceWeekendStage.STANDINGS_UPDATED)

        for event in (
            emit_race_result_event(state, result, race.circuit_id),
            emit_championship_lead_event(state, previous_standings, race.race_number),
        ):
            if event is not None:
                report.news_events.append(event)
        report.advance(RaceWeekendStage.EVENTS_EMITTED)

        report.repair_bills = process_post_race_repairs(
            state, result, race.circuit_id, self.rules
        )
        report.advance(RaceWeekendStage.REPAIRS_APPLIED)

        report.analytics_recorded = generate_engine_analytics_data(
            state, race.race_number, self.rules, self.rng
        )
        report.advance(RaceWeekendStage.ANALYTICS_RECORDED)

        report.advance(RaceWeekendStage.COMPLETE)
        logger.info(
            "Race %d at %s processed: %d news events, %d repair bills",
            race.race_number,
            race.circuit_id,
            len(report.news_events),
            len(report.repair_bills),
        )
        return report


# ---------------------------------------------------------------------------
# Current race
# ---------------------------------------------------------------------------


def find_current_race(state: WorldState) -> CalendarEntry | None:
    week = state.current_date.week
    return next(
        (e for e in state.current_season.calendar if e.is_current(week)), None
    )


def process_current_race(
    state: WorldState, orchestrator: RaceWeekendOrchestrator
) -> RaceWeekendReport:
    """Process the race scheduled for the current week.

    Raises:
        PreconditionError: If no uncompleted race falls in the current week.
        RaceOutcomeError: Propagated from the orchestrator.
    """
    race = find_current_race(state)
    if race is None:
        logger.error(
            "No race scheduled for season %d week %d",
            state.current_date.season,
            state.current_date.week,
        )
        raise PreconditionError(
            f"No race scheduled for week {state.current_date.week}"
        )
    return orchestrator.process(state, race)
