"""Negotiation model shared by every stakeholder kind.

A negotiation is a sequence of rounds, each proposing a set of terms, plus
a phase.  Phases only move forward::

    IN_PROGRESS -> RESPONSE_RECEIVED -> COMPLETED | FAILED
         |                 |
         +--> COMPLETED    +--> IN_PROGRESS (player counters)
         +--> FAILED

``COMPLETED`` and ``FAILED`` are terminal.  The ultimatum ("final offer")
marker lives on the round, independent of the phase.  Once a negotiation
is completed the *last* round's terms are binding.

The four variants (:class:`ManufacturerNegotiation`,
:class:`DriverNegotiation`, :class:`StaffNegotiation`,
:class:`SponsorNegotiation`) carry a class-level ``stakeholder_type`` tag
which the contract finalizer dispatches on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from season_engine.core.errors import PreconditionError
from season_engine.core.state import DriverRole, GameDate


class StakeholderType(str, Enum):
    MANUFACTURER = "manufacturer"
    DRIVER = "driver"
    STAFF = "staff"
    SPONSOR = "sponsor"


class NegotiationPhase(str, Enum):
    IN_PROGRESS = "in_progress"
    RESPONSE_RECEIVED = "response_received"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NegotiationPhase.COMPLETED, NegotiationPhase.FAILED)


PHASE_TRANSITIONS: dict[NegotiationPhase, frozenset[NegotiationPhase]] = {
    NegotiationPhase.IN_PROGRESS: frozenset(
        {
            NegotiationPhase.RESPONSE_RECEIVED,
            NegotiationPhase.COMPLETED,
            NegotiationPhase.FAILED,
        }
    ),
    NegotiationPhase.RESPONSE_RECEIVED: frozenset(
        {
            NegotiationPhase.IN_PROGRESS,
            NegotiationPhase.COMPLETED,
            NegotiationPhase.FAILED,
        }
    ),
    NegotiationPhase.COMPLETED: frozenset(),
    NegotiationPhase.FAILED: frozenset(),
}


# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------


def _check_duration(duration: int) -> None:
    if duration < 1:
        raise ValueError(f"Contract duration must be >= 1 season, got {duration}.")


@dataclass(frozen=True)
class ManufacturerContractTerms:
    """Engine supply terms.

    Attributes:
        annual_cost: Fee paid to the manufacturer each season.
        duration: Number of seasons covered.
        customisation_points_included: Tuning points granted on signing.
        upgrades_included: Spec upgrades pre-paid for the team.
        optimisation_included: Whether next season's optimisation package
            is bundled in.
    """

    annual_cost: float
    duration: int
    customisation_points_included: int = 0
    upgrades_included: int = 0
    optimisation_included: bool = False

    def __post_init__(self) -> None:
        _check_duration(self.duration)


@dataclass(frozen=True)
class DriverContractTerms:
    salary: float
    duration: int
    driver_status: DriverRole = DriverRole.SECOND
    signing_bonus: float = 0

    def __post_init__(self) -> None:
        _check_duration(self.duration)


@dataclass(frozen=True)
class StaffContractTerms:
    salary: float
    duration: int
    signing_bonus: float = 0
    buyout_required: float = 0
    bonus_percent: float = 0

    def __post_init__(self) -> None:
        _check_duration(self.duration)


@dataclass(frozen=True)
class SponsorContractTerms:
    """Sponsorship terms.

    ``exit_clause_position`` is the championship position below which the
    sponsor may walk away; ``None`` means the payments are guaranteed.
    """

    monthly_payment: float
    duration: int
    signing_bonus: float = 0
    points_bonus: float = 0
    win_bonus: float = 0
    exit_clause_position: int | None = None

    def __post_init__(self) -> None:
        _check_duration(self.duration)


ContractTerms = Union[
    ManufacturerContractTerms,
    DriverContractTerms,
    StaffContractTerms,
    SponsorContractTerms,
]


@dataclass(frozen=True)
class NegotiationRound:
    round_number: int
    offered_by: str
    terms: Any
    offered_date: GameDate | None = None
    is_ultimatum: bool = False


# ---------------------------------------------------------------------------
# Negotiations
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class Negotiation(ABC):
    """Fields common to every negotiation variant.

    Only the stakeholder variants below can be instantiated.
    """

    stakeholder_type: ClassVar[StakeholderType]

    id: str
    team_id: str
    for_season: int
    phase: NegotiationPhase = NegotiationPhase.IN_PROGRESS
    rounds: list[NegotiationRound] = field(default_factory=list)

    @property
    @abstractmethod
    def counterpart_id(self) -> str: ...

    @property
    def last_round(self) -> NegotiationRound | None:
        return self.rounds[-1] if self.rounds else None

    @property
    def is_ultimatum(self) -> bool:
        last = self.last_round
        return last is not None and last.is_ultimatum


@dataclass(kw_only=True)
class ManufacturerNegotiation(Negotiation):
    stakeholder_type: ClassVar[StakeholderType] = StakeholderType.MANUFACTURER

    manufacturer_id: str

    @property
    def counterpart_id(self) -> str:
        return self.manufacturer_id


@dataclass(kw_only=True)
class DriverNegotiation(Negotiation):
    stakeholder_type: ClassVar[StakeholderType] = StakeholderType.DRIVER

    driver_id: str

    @property
    def counterpart_id(self) -> str:
        return self.driver_id


@dataclass(kw_only=True)
class StaffNegotiation(Negotiation):
    stakeholder_type: ClassVar[StakeholderType] = StakeholderType.STAFF

    staff_id: str

    @property
    def counterpart_id(self) -> str:
        return self.staff_id


@dataclass(kw_only=True)
class SponsorNegotiation(Negotiation):
    stakeholder_type: ClassVar[StakeholderType] = StakeholderType.SPONSOR

    sponsor_id: str

    @property
    def counterpart_id(self) -> str:
        return self.sponsor_id


AnyNegotiation = Union[
    ManufacturerNegotiation,
    DriverNegotiation,
    StaffNegotiation,
    SponsorNegotiation,
]


def can_transition(current: NegotiationPhase, target: NegotiationPhase) -> bool:
    return target in PHASE_TRANSITIONS[current]


def advance_phase(negotiation: Negotiation, phase: NegotiationPhase) -> None:
    """Move *negotiation* to *phase*.

    Raises:
        PreconditionError: If the move is not an allowed transition.
    """
    target = NegotiationPhase(phase)
    if not can_transition(negotiation.phase, target):
        raise PreconditionError(
            f"Negotiation {negotiation.id} cannot move from "
            f"{negotiation.phase.value} to {target.value}"
        )
    negotiation.phase = target
