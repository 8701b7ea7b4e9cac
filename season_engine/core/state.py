"""World state model for the season turn engine.

The :class:`WorldState` aggregate owns every team, driver, contract,
standing, and timeline entry of a running game.  Turn pipelines receive it
by exclusive reference and mutate it in place; nothing is retained between
calls.

Percentage attributes (morale, fitness, fatigue, reputation, sponsor
satisfaction) use a 0-100 scale.  Money is a signed number of dollars and
team budgets may go negative.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Department(str, Enum):
    COMMERCIAL = "commercial"
    DESIGN = "design"
    ENGINEERING = "engineering"
    MECHANICS = "mechanics"


class DriverRole(str, Enum):
    FIRST = "first"
    SECOND = "second"
    EQUAL = "equal"
    TEST = "test"


class ChiefRole(str, Enum):
    DESIGNER = "designer"
    ENGINEER = "engineer"
    MECHANIC = "mechanic"
    COMMERCIAL = "commercial"

    @property
    def display_name(self) -> str:
        return _CHIEF_ROLE_TITLES[self]


_CHIEF_ROLE_TITLES: dict[ChiefRole, str] = {
    ChiefRole.DESIGNER: "Chief Designer",
    ChiefRole.ENGINEER: "Chief Engineer",
    ChiefRole.MECHANIC: "Chief Mechanic",
    ChiefRole.COMMERCIAL: "Commercial Director",
}


class SponsorTier(str, Enum):
    TITLE = "title"
    MAJOR = "major"
    MINOR = "minor"

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} Sponsor"


class ManufacturerType(str, Enum):
    ENGINE = "engine"
    TYRE = "tyre"
    FUEL = "fuel"


class ManufacturerDealType(str, Enum):
    CUSTOMER = "customer"
    PARTNER = "partner"
    WORKS = "works"


class RaceFinishStatus(str, Enum):
    FINISHED = "finished"
    LAPPED = "lapped"
    RETIRED = "retired"
    DISQUALIFIED = "disqualified"
    DID_NOT_START = "dns"
    DID_NOT_QUALIFY = "dnq"

    @property
    def is_dnf(self) -> bool:
        """True unless the car was classified at the flag."""
        return self not in (RaceFinishStatus.FINISHED, RaceFinishStatus.LAPPED)


class CalendarEventType(str, Enum):
    HEADLINE = "headline"
    EMAIL = "email"


class PartsLogEntryType(str, Enum):
    REPAIR = "repair"


class NewsEventType(str, Enum):
    RACE_RESULT = "race_result"
    CHAMPIONSHIP_LEAD = "championship_lead"
    DRIVER_SIGNED = "driver_signed"
    STAFF_HIRED = "staff_hired"


class Importance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Calendar and identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GameDate:
    """Week-by-week position in the game timeline."""

    season: int
    week: int


@dataclass
class PlayerInfo:
    name: str
    team_id: str


@dataclass
class Team:
    """A constructor entity.  ``budget`` may be negative (debt)."""

    id: str
    name: str
    budget: float
    short_name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Team id must not be empty.")


@dataclass
class Driver:
    """A contracted or free-agent driver.

    Attributes:
        team_id: Owning team, ``None`` for a free agent.
        contract_end: Last season covered by the current contract.
        reputation: Market value on a 0-100 scale.
    """

    id: str
    first_name: str
    last_name: str
    team_id: str | None
    role: DriverRole
    reputation: float
    salary: float
    contract_end: int

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def has_race_seat(self) -> bool:
        return self.team_id is not None and self.role is not DriverRole.TEST


@dataclass
class Chief:
    """A department head."""

    id: str
    first_name: str
    last_name: str
    role: ChiefRole
    ability: float
    team_id: str | None
    salary: float
    contract_end: int

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class Sponsor:
    id: str
    name: str
    tier: SponsorTier


@dataclass
class Circuit:
    id: str
    name: str
    country: str = ""


# ---------------------------------------------------------------------------
# Engines and manufacturers
# ---------------------------------------------------------------------------


@dataclass
class EngineStats:
    """Engine characteristics on a 0-100 scale.

    Also used for spec-upgrade bonuses and per-car customisation, where
    the values are signed adjustments rather than absolute ratings.
    """

    power: float = 0.0
    fuel_efficiency: float = 0.0
    reliability: float = 0.0
    heat: float = 0.0
    predictability: float = 0.0


@dataclass
class Manufacturer:
    id: str
    name: str
    type: ManufacturerType
    reputation: float
    annual_cost: float
    engine_stats: EngineStats = field(default_factory=EngineStats)


@dataclass
class ManufacturerSpecState:
    """Spec-upgrade history of one manufacturer.

    ``spec_bonuses[0]`` is the improvement delivered by spec 2, and so on.
    """

    manufacturer_id: str
    latest_spec_version: int = 1
    spec_bonuses: list[EngineStats] = field(default_factory=list)


@dataclass
class CarEngineState:
    spec_version: int = 1
    customisation: EngineStats = field(default_factory=EngineStats)


@dataclass
class TeamEngineState:
    car1_engine: CarEngineState = field(default_factory=CarEngineState)
    car2_engine: CarEngineState = field(default_factory=CarEngineState)
    customisation_points_owned: int = 0
    optimisation_purchased_for_next_season: bool = False
    pre_negotiated_upgrades: int = 0


# ---------------------------------------------------------------------------
# Runtime state
# ---------------------------------------------------------------------------


@dataclass
class DriverRuntimeState:
    """Mutable condition of a driver, keyed by driver id."""

    morale: float = 70.0
    fitness: float = 100.0
    fatigue: float = 0.0
    injury_weeks_remaining: int = 0
    ban_races_remaining: int = 0
    engine_units_used: int = 0
    gearbox_race_count: int = 0


def _default_department_morale() -> dict[Department, float]:
    return {dept: 70.0 for dept in Department}


@dataclass
class TeamRuntimeState:
    """Mutable condition of a team, keyed by team id."""

    morale: dict[Department, float] = field(default_factory=_default_department_morale)
    sponsor_satisfaction: dict[str, float] = field(default_factory=dict)
    engine_state: TeamEngineState = field(default_factory=TeamEngineState)


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@dataclass
class ActiveManufacturerContract:
    manufacturer_id: str
    team_id: str
    type: ManufacturerType
    deal_type: ManufacturerDealType
    annual_cost: float
    start_season: int
    end_season: int
    bonus_level: int = 0

    def __post_init__(self) -> None:
        if self.start_season > self.end_season:
            raise ValueError(
                f"Contract start season {self.start_season} is after "
                f"end season {self.end_season}."
            )

    def is_active(self, season: int) -> bool:
        return self.start_season <= season <= self.end_season


@dataclass
class ActiveSponsorDeal:
    sponsor_id: str
    team_id: str
    tier: SponsorTier
    signing_bonus: float
    monthly_payment: float
    guaranteed: bool
    start_season: int
    end_season: int

    def __post_init__(self) -> None:
        if self.start_season > self.end_season:
            raise ValueError(
                f"Sponsor deal start season {self.start_season} is after "
                f"end season {self.end_season}."
            )


# ---------------------------------------------------------------------------
# Race results and standings
# ---------------------------------------------------------------------------


@dataclass
class RacePositionResult:
    """One driver's race result as reported by the race outcome engine.

    Attributes:
        finish_position: 1-based classified position, ``None`` if not
            classified.
        gap_to_winner_ms: Gap to the winner in milliseconds, only for
            finishers on the lead lap.
        laps_behind: Laps behind the winner, only for lapped finishers.
    """

    driver_id: str
    team_id: str
    finish_position: int | None
    grid_position: int
    status: RaceFinishStatus
    points: int = 0
    gap_to_winner_ms: float | None = None
    laps_behind: int | None = None
    fastest_lap: bool = False


@dataclass
class RaceWeekendResult:
    race_number: int
    circuit_id: str
    season_number: int
    race: list[RacePositionResult] = field(default_factory=list)

    def result_for(self, driver_id: str) -> RacePositionResult | None:
        for result in self.race:
            if result.driver_id == driver_id:
                return result
        return None


@dataclass
class DriverStanding:
    driver_id: str
    team_id: str
    points: float = 0
    position: int = 0
    wins: int = 0
    podiums: int = 0
    pole_positions: int = 0
    fastest_laps: int = 0
    dnfs: int = 0


@dataclass
class ConstructorStanding:
    team_id: str
    points: float = 0
    position: int = 0
    wins: int = 0
    podiums: int = 0
    pole_positions: int = 0


@dataclass
class CalendarEntry:
    """One race slot on the season calendar."""

    race_number: int
    circuit_id: str
    week_number: int
    completed: bool = False
    cancelled: bool = False
    result: RaceWeekendResult | None = None

    def is_current(self, week: int) -> bool:
        return not self.completed and not self.cancelled and self.week_number == week


@dataclass
class SeasonData:
    season_number: int
    calendar: list[CalendarEntry] = field(default_factory=list)
    driver_standings: list[DriverStanding] = field(default_factory=list)
    constructor_standings: list[ConstructorStanding] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Timeline and ledgers
# ---------------------------------------------------------------------------


@dataclass
class CalendarEvent:
    """A concrete headline or email in the world timeline.

    ``critical`` events block turn advancement until acknowledged; news
    headlines are never critical.
    """

    id: str
    date: GameDate
    type: CalendarEventType
    subject: str
    body: str
    critical: bool = False
    importance: Importance = Importance.MEDIUM
    sender: str | None = None
    data: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.type is CalendarEventType.HEADLINE and self.critical:
            raise ValueError("News headlines can never be critical.")


@dataclass
class NewsEvent:
    """A content-free record that something newsworthy happened.

    Headline text is synthesised downstream from ``data``.
    """

    id: str
    type: NewsEventType
    date: GameDate
    importance: Importance
    data: dict[str, Any] = field(default_factory=dict)
    processed: bool = False


@dataclass
class PartsLogEntry:
    id: str
    date: GameDate
    season_number: int
    type: PartsLogEntryType
    item: str
    cost: float
    driver_id: str | None = None
    car_number: int | None = None
    repair_details: str | None = None


@dataclass
class EngineAnalyticsPoint:
    race_number: int
    estimated_power: float


@dataclass
class EngineAnalyticsSeries:
    team_id: str
    data_points: list[EngineAnalyticsPoint] = field(default_factory=list)

    def has_race(self, race_number: int) -> bool:
        return any(p.race_number == race_number for p in self.data_points)


# ---------------------------------------------------------------------------
# World state
# ---------------------------------------------------------------------------


@dataclass
class WorldState:
    """The single mutable aggregate handed to every turn operation."""

    player: PlayerInfo
    current_date: GameDate
    current_season: SeasonData
    teams: list[Team] = field(default_factory=list)
    drivers: list[Driver] = field(default_factory=list)
    chiefs: list[Chief] = field(default_factory=list)
    sponsors: list[Sponsor] = field(default_factory=list)
    manufacturers: list[Manufacturer] = field(default_factory=list)
    manufacturer_specs: list[ManufacturerSpecState] = field(default_factory=list)
    circuits: list[Circuit] = field(default_factory=list)
    driver_states: dict[str, DriverRuntimeState] = field(default_factory=dict)
    team_states: dict[str, TeamRuntimeState] = field(default_factory=dict)
    sponsor_deals: list[ActiveSponsorDeal] = field(default_factory=list)
    manufacturer_contracts: list[ActiveManufacturerContract] = field(default_factory=list)
    negotiations: list[Any] = field(default_factory=list)
    calendar_events: list[CalendarEvent] = field(default_factory=list)
    news_events: list[NewsEvent] = field(default_factory=list)
    parts_log: list[PartsLogEntry] = field(default_factory=list)
    engine_analytics: list[EngineAnalyticsSeries] = field(default_factory=list)

    @property
    def player_team_id(self) -> str:
        return self.player.team_id

    @property
    def season_number(self) -> int:
        return self.current_season.season_number

    def find_team(self, team_id: str | None) -> Team | None:
        return next((t for t in self.teams if t.id == team_id), None)

    def find_driver(self, driver_id: str | None) -> Driver | None:
        return next((d for d in self.drivers if d.id == driver_id), None)

    def find_chief(self, chief_id: str | None) -> Chief | None:
        return next((c for c in self.chiefs if c.id == chief_id), None)

    def find_sponsor(self, sponsor_id: str | None) -> Sponsor | None:
        return next((s for s in self.sponsors if s.id == sponsor_id), None)

    def find_circuit(self, circuit_id: str | None) -> Circuit | None:
        return next((c for c in self.circuits if c.id == circuit_id), None)

    def find_manufacturer(self, manufacturer_id: str | None) -> Manufacturer | None:
        return next((m for m in self.manufacturers if m.id == manufacturer_id), None)

    def find_spec_state(self, manufacturer_id: str) -> ManufacturerSpecState | None:
        return next(
            (s for s in self.manufacturer_specs if s.manufacturer_id == manufacturer_id),
            None,
        )

    def find_negotiation(self, negotiation_id: str) -> Any | None:
        return next((n for n in self.negotiations if n.id == negotiation_id), None)
