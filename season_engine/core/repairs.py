"""Post-race repair accounting for the season turn engine.

After every race each team pays routine maintenance on both race cars,
plus a surcharge for any car that retired.  Costs are deducted from the
team budget immediately (teams may go into debt) and logged per car in the
parts log.  The player's team also receives a finance email summarising
the bill.

Teams without two race-seat drivers, or without results for both, are
skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from season_engine.config import SeasonRules, resolve_rules
from season_engine.core.news import append_calendar_event, create_email
from season_engine.core.rng import new_id
from season_engine.core.state import (
    Driver,
    DriverRole,
    PartsLogEntry,
    PartsLogEntryType,
    RaceFinishStatus,
    RacePositionResult,
    RaceWeekendResult,
    WorldState,
)

logger = logging.getLogger(__name__)

REPAIR_ITEM: str = "Post-Race Repair"
REPAIR_SENDER: str = "Finance Department"
UNKNOWN_CIRCUIT: str = "Unknown Circuit"


@dataclass(frozen=True)
class CarRepairCost:
    car_number: int
    driver_id: str
    driver_name: str
    base_cost: float
    incident_cost: float
    total_cost: float
    was_retired: bool

    def as_payload(self) -> dict[str, object]:
        return {
            "carNumber": self.car_number,
            "driverId": self.driver_id,
            "driverName": self.driver_name,
            "baseCost": self.base_cost,
            "incidentCost": self.incident_cost,
            "totalCost": self.total_cost,
            "wasRetired": self.was_retired,
        }


@dataclass(frozen=True)
class TeamRepairBill:
    team_id: str
    car1: CarRepairCost
    car2: CarRepairCost

    @property
    def total_cost(self) -> float:
        return self.car1.total_cost + self.car2.total_cost


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def race_seat_pair(
    state: WorldState, team_id: str
) -> tuple[Driver | None, Driver | None]:
    """Return the (car 1, car 2) drivers of a team.

    Car 1 belongs to the first driver and car 2 to the second driver.
    Drivers with equal status fill whichever seat is still empty, in
    roster order.
    """
    seated = [d for d in state.drivers if d.team_id == team_id and d.has_race_seat]
    car1 = next((d for d in seated if d.role is DriverRole.FIRST), None)
    car2 = next((d for d in seated if d.role is DriverRole.SECOND), None)
    for drv in (d for d in seated if d.role is DriverRole.EQUAL):
        if car1 is None:
            car1 = drv
        elif car2 is None:
            car2 = drv
    return car1, car2


def calculate_car_repair_cost(
    result: RacePositionResult,
    driver: Driver,
    car_number: int,
    rules: SeasonRules | None = None,
) -> CarRepairCost:
    rules = resolve_rules(rules)
    was_retired = result.status is RaceFinishStatus.RETIRED
    incident = rules.repair_cost_dnf if was_retired else 0
    return CarRepairCost(
        car_number=car_number,
        driver_id=driver.id,
        driver_name=driver.full_name,
        base_cost=rules.repair_cost_base,
        incident_cost=incident,
        total_cost=rules.repair_cost_base + incident,
        was_retired=was_retired,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def process_post_race_repairs(
    state: WorldState,
    race_result: RaceWeekendResult,
    circuit_id: str,
    rules: SeasonRules | None = None,
) -> list[TeamRepairBill]:
    """Charge every eligible team for repairs on both cars.

    Args:
        state: World state, mutated in place.
        race_result: Result of the race that has just been completed.
        circuit_id: Circuit the race was held at (used for the email).
        rules: Repair cost constants.

    Returns:
        One :class:`TeamRepairBill` per team that was charged.
    """
    rules = resolve_rules(rules)
    circuit = state.find_circuit(circuit_id)
    circuit_name = circuit.name if circuit is not None else UNKNOWN_CIRCUIT
    bills: list[TeamRepairBill] = []

    for team in state.teams:
        if team.id not in state.team_states:
            continue

        car1_driver, car2_driver = race_seat_pair(state, team.id)
        if car1_driver is None or car2_driver is None:
            logger.debug("Repairs skipped for %s: incomplete race line-up", team.id)
            continue

        car1_result = race_result.result_for(car1_driver.id)
        car2_result = race_result.result_for(car2_driver.id)
        if car1_result is None or car2_result is None:
            logger.debug("Repairs skipped for %s: missing race result", team.id)
            continue

        bill = TeamRepairBill(
            team_id=team.id,
            car1=calculate_car_repair_cost(car1_result, car1_driver, 1, rules),
            car2=calculate_car_repair_cost(car2_result, car2_driver, 2, rules),
        )
        team.budget -= bill.total_cost

        for repair in (bill.car1, bill.car2):
            state.parts_log.append(
                PartsLogEntry(
                    id=new_id(),
                    date=state.current_date,
                    season_number=state.season_number,
                    type=PartsLogEntryType.REPAIR,
                    item=REPAIR_ITEM,
                    cost=repair.total_cost,
                    driver_id=repair.driver_id,
                    car_number=repair.car_number,
                    repair_details=(
                        "Race retirement" if repair.was_retired else "Routine maintenance"
                    ),
                )
            )

        if team.id == state.player_team_id:
            append_calendar_event(
                state,
                create_email(
                    date=state.current_date,
                    subject=f"Post-Race Repair Report - {circuit_name}",
                    body=(
                        "Race repairs have been completed for both cars after the "
                        f"{circuit_name} Grand Prix.\n\n"
                        f"Total cost: ${bill.total_cost:,.0f}"
                    ),
                    critical=False,
                    sender=REPAIR_SENDER,
                    data={
                        "category": "post-race-repair",
                        "raceNumber": race_result.race_number,
                        "circuitName": circuit_name,
                        "car1": bill.car1.as_payload(),
                        "car2": bill.car2.as_payload(),
                        "totalCost": bill.total_cost,
                    },
                ),
            )
        bills.append(bill)

    return bills
