"""Engine performance telemetry for the season turn engine.

After each race, every team running an engine under an active contract
gets a public "estimated power" reading.  The reading is derived from the
car's true power (manufacturer base stats + spec upgrades + customisation)
with a bounded multiplicative measurement error, mimicking the imperfect
figures the media publishes.
"""

from __future__ import annotations

import logging

from numpy.random import Generator

from season_engine.config import SeasonRules, resolve_rules
from season_engine.core.rng import resolve_rng
from season_engine.core.state import (
    ActiveManufacturerContract,
    EngineAnalyticsPoint,
    EngineAnalyticsSeries,
    EngineStats,
    ManufacturerType,
    WorldState,
)

logger = logging.getLogger(__name__)

ENGINE_STAT_KEYS: tuple[str, ...] = (
    "power",
    "fuel_efficiency",
    "reliability",
    "heat",
    "predictability",
)

STAT_MIN: float = 0.0
STAT_MAX: float = 100.0

# Weights of the true-power blend; they sum to 1.
POWER_WEIGHT: float = 0.70
HEAT_WEIGHT: float = 0.15
FUEL_EFFICIENCY_WEIGHT: float = 0.15


def clamp_stat(value: float) -> float:
    return max(STAT_MIN, min(STAT_MAX, value))


def effective_engine_stats(
    base: EngineStats,
    spec_version: int,
    spec_bonuses: list[EngineStats],
    customisation: EngineStats,
) -> EngineStats:
    """Combine base stats, spec upgrades, and customisation.

    Spec 1 is the base engine; each later version adds the next entry of
    *spec_bonuses*.  Every stat is clamped to ``[0, 100]`` afterwards.
    """
    values = {key: getattr(base, key) for key in ENGINE_STAT_KEYS}
    for bonus in spec_bonuses[: max(spec_version - 1, 0)]:
        for key in ENGINE_STAT_KEYS:
            values[key] += getattr(bonus, key)
    for key in ENGINE_STAT_KEYS:
        values[key] = clamp_stat(values[key] + getattr(customisation, key))
    return EngineStats(**values)


def calculate_true_power(stats: EngineStats) -> float:
    raw = (
        POWER_WEIGHT * stats.power
        + HEAT_WEIGHT * stats.heat
        + FUEL_EFFICIENCY_WEIGHT * stats.fuel_efficiency
    )
    return round(raw, 2)


def generate_estimated_power(
    true_power: float,
    rng: Generator | None = None,
    error_fraction: float = 0.08,
) -> float:
    """Apply a uniform error of at most ``error_fraction`` to *true_power*.

    Args:
        true_power: Deterministic power figure of the engine.
        rng: Random source; the process-wide generator when ``None``.
        error_fraction: Maximum relative error, e.g. ``0.08`` for +/-8%.

    Returns:
        The estimated reading rounded to one decimal place.

    Raises:
        ValueError: If *error_fraction* is outside ``[0, 1)``.
    """
    if not 0.0 <= error_fraction < 1.0:
        raise ValueError(f"error_fraction must be in [0, 1), got {error_fraction}.")
    rng = resolve_rng(rng)
    error = float(rng.uniform(-error_fraction, error_fraction)) if error_fraction else 0.0
    return round(true_power * (1.0 + error), 1)


def _active_engine_contract(
    state: WorldState, team_id: str
) -> ActiveManufacturerContract | None:
    """The team's engine contract for this season.

    A team that has already replaced its current deal with one starting
    next season keeps being measured through the signed contract.  Expired
    contracts never count.
    """
    season = state.season_number
    engine_contracts = [
        c
        for c in state.manufacturer_contracts
        if c.team_id == team_id and c.type is ManufacturerType.ENGINE
    ]
    current = next((c for c in engine_contracts if c.is_active(season)), None)
    if current is not None:
        return current
    return next((c for c in engine_contracts if c.start_season > season), None)


def _series_for(state: WorldState, team_id: str) -> EngineAnalyticsSeries:
    for series in state.engine_analytics:
        if series.team_id == team_id:
            return series
    series = EngineAnalyticsSeries(team_id=team_id)
    state.engine_analytics.append(series)
    return series


def generate_engine_analytics_data(
    state: WorldState,
    race_number: int,
    rules: SeasonRules | None = None,
    rng: Generator | None = None,
) -> int:
    """Record one estimated-power reading per eligible team.

    Car 1's engine represents the team.  Teams without an active engine
    contract, a known manufacturer, a spec state, or runtime state are
    skipped, as are teams that already have a reading for *race_number*.

    Returns:
        Number of readings appended.
    """
    rules = resolve_rules(rules)
    rng = resolve_rng(rng)
    recorded = 0

    for team in state.teams:
        contract = _active_engine_contract(state, team.id)
        if contract is None:
            continue
        manufacturer = state.find_manufacturer(contract.manufacturer_id)
        spec_state = state.find_spec_state(contract.manufacturer_id)
        runtime = state.team_states.get(team.id)
        if manufacturer is None or spec_state is None or runtime is None:
            logger.debug("Telemetry skipped for %s: unresolved engine data", team.id)
            continue

        series = _series_for(state, team.id)
        if series.has_race(race_number):
            continue

        car = runtime.engine_state.car1_engine
        stats = effective_engine_stats(
            manufacturer.engine_stats,
            car.spec_version,
            spec_state.spec_bonuses,
            car.customisation,
        )
        estimated = generate_estimated_power(
            calculate_true_power(stats), rng, rules.telemetry_error_fraction
        )
        series.data_points.append(
            EngineAnalyticsPoint(race_number=race_number, estimated_power=estimated)
        )
        recorded += 1

    return recorded
