"""Contract finalizer for completed negotiations.

:func:`finalize_negotiation` is the single entry point.  It checks the
negotiation is finalizable, looks up the handler registered for its
stakeholder kind, and lets that handler

* read the binding terms from the last round,
* rewrite the counterpart's contract fields,
* adjust the team budget where the deal moves money,
* publish a headline plus the kind-specific event or email.

Every stakeholder kind must have a handler; a missing one fails at import
time rather than at the first signing of that kind.

:func:`apply_negotiation_updates` folds a batch of negotiation updates
into the world, finalizing the completed ones for every team and sending
the player blocking emails for their own negotiations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from numpy.random import Generator

from season_engine.config import SeasonRules, resolve_rules
from season_engine.core.errors import PreconditionError
from season_engine.core.negotiation import (
    DriverContractTerms,
    DriverNegotiation,
    ManufacturerContractTerms,
    ManufacturerNegotiation,
    Negotiation,
    NegotiationPhase,
    SponsorContractTerms,
    SponsorNegotiation,
    StaffContractTerms,
    StaffNegotiation,
    StakeholderType,
)
from season_engine.core.news import (
    append_calendar_event,
    create_email,
    create_news_headline,
    pick_random,
    push_news_event,
)
from season_engine.core.state import (
    ActiveManufacturerContract,
    ActiveSponsorDeal,
    CalendarEvent,
    ChiefRole,
    DriverRole,
    Importance,
    ManufacturerDealType,
    ManufacturerType,
    NewsEventType,
    SponsorTier,
    WorldState,
)

logger = logging.getLogger(__name__)

INITIAL_BONUS_LEVEL: int = 0
STAR_STAFF_ABILITY: float = 85

MARKET_COMMENTARY: tuple[str, ...] = (
    "This may affect the driver market for next season.",
    "Rival teams will be reassessing their line-ups for next season.",
    "The move reshapes the driver market ahead of next season.",
)

SPONSOR_EMAIL_SUFFIX: str = "This sponsorship will provide important funding for your team."

FAILED_SUFFIXES: dict[StakeholderType, str] = {
    StakeholderType.MANUFACTURER: " You may approach other manufacturers.",
    StakeholderType.SPONSOR: " You may approach other sponsors.",
}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ManufacturerContractResult:
    new_contract: ActiveManufacturerContract
    early_termination_penalty: float
    old_manufacturer_id: str | None


@dataclass(frozen=True)
class DriverContractResult:
    driver_id: str
    team_id: str
    old_team_id: str | None
    salary: float
    role: DriverRole
    contract_duration: int
    end_season: int


@dataclass(frozen=True)
class StaffContractResult:
    """Outcome of a staff signing.

    ``budget_change`` is what the hiring team actually paid; it stays zero
    for computer-controlled teams even when the terms carry a buyout or
    signing bonus.
    """

    chief_id: str
    team_id: str
    old_team_id: str | None
    salary: float
    role: ChiefRole
    contract_duration: int
    end_season: int
    buyout_paid: float
    signing_bonus: float
    budget_change: float


@dataclass(frozen=True)
class SponsorContractResult:
    deal: ActiveSponsorDeal
    contract_duration: int

    @property
    def sponsor_id(self) -> str:
        return self.deal.sponsor_id

    @property
    def team_id(self) -> str:
        return self.deal.team_id

    @property
    def tier(self) -> SponsorTier:
        return self.deal.tier


ContractResult = Union[
    ManufacturerContractResult,
    DriverContractResult,
    StaffContractResult,
    SponsorContractResult,
]

_Finalizer = Callable[
    [WorldState, Any, SeasonRules, Generator | None], ContractResult | None
]

_FINALIZERS: dict[StakeholderType, tuple[type, type, _Finalizer]] = {}


def _register(
    kind: StakeholderType, negotiation_cls: type, terms_cls: type
) -> Callable[[_Finalizer], _Finalizer]:
    def decorator(fn: _Finalizer) -> _Finalizer:
        _FINALIZERS[kind] = (negotiation_cls, terms_cls, fn)
        return fn

    return decorator


def _emit_headline(
    state: WorldState,
    subject: str,
    body: str,
    importance: Importance = Importance.MEDIUM,
) -> CalendarEvent:
    return append_calendar_event(
        state, create_news_headline(state.current_date, subject, body, importance)
    )


def _emit_email(state: WorldState, subject: str, body: str) -> CalendarEvent:
    return append_calendar_event(
        state, create_email(state.current_date, subject, body, critical=False)
    )


# ---------------------------------------------------------------------------
# Manufacturer
# ---------------------------------------------------------------------------


@_register(
    StakeholderType.MANUFACTURER, ManufacturerNegotiation, ManufacturerContractTerms
)
def _finalize_manufacturer(
    state: WorldState,
    negotiation: ManufacturerNegotiation,
    rules: SeasonRules,
    rng: Generator | None,
) -> ManufacturerContractResult | None:
    manufacturer = state.find_manufacturer(negotiation.manufacturer_id)
    if manufacturer is None:
        logger.warning(
            "Manufacturer %s not found; negotiation %s not finalized",
            negotiation.manufacturer_id,
            negotiation.id,
        )
        return None

    terms: ManufacturerContractTerms = negotiation.last_round.terms
    team_id = negotiation.team_id
    team = state.find_team(team_id)

    existing = [
        c
        for c in state.manufacturer_contracts
        if c.team_id == team_id and c.type is ManufacturerType.ENGINE
    ]
    penalty = 0
    old_manufacturer_id = existing[0].manufacturer_id if existing else None
    for contract in existing:
        remaining = contract.end_season - state.season_number
        if remaining > 0:
            penalty += round(
                remaining * contract.annual_cost * rules.early_termination_multiplier
            )
        state.manufacturer_contracts.remove(contract)

    if penalty > 0 and team is not None:
        team.budget -= penalty

    new_contract = ActiveManufacturerContract(
        manufacturer_id=manufacturer.id,
        team_id=team_id,
        type=ManufacturerType.ENGINE,
        deal_type=ManufacturerDealType.CUSTOMER,
        annual_cost=terms.annual_cost,
        start_season=negotiation.for_season,
        end_season=negotiation.for_season + terms.duration - 1,
        bonus_level=INITIAL_BONUS_LEVEL,
    )
    state.manufacturer_contracts.append(new_contract)

    runtime = state.team_states.get(team_id)
    if runtime is not None:
        engine = runtime.engine_state
        engine.customisation_points_owned += terms.customisation_points_included
        engine.pre_negotiated_upgrades = terms.upgrades_included
        if terms.optimisation_included:
            engine.optimisation_purchased_for_next_season = True

    if team is not None:
        old_manufacturer = state.find_manufacturer(old_manufacturer_id)
        if old_manufacturer is not None and old_manufacturer.id != manufacturer.id:
            _emit_headline(
                state,
                f"{team.name} switches to {manufacturer.name} engines",
                f"{team.name} has signed a {terms.duration}-year engine supply deal "
                f"with {manufacturer.name}, ending their relationship with "
                f"{old_manufacturer.name}.",
            )
        else:
            _emit_headline(
                state,
                f"{team.name} extends {manufacturer.name} engine deal",
                f"{team.name} has renewed their engine partnership with "
                f"{manufacturer.name} for {terms.duration} seasons.",
            )

    return ManufacturerContractResult(
        new_contract=new_contract,
        early_termination_penalty=penalty,
        old_manufacturer_id=old_manufacturer_id,
    )


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


@_register(StakeholderType.DRIVER, DriverNegotiation, DriverContractTerms)
def _finalize_driver(
    state: WorldState,
    negotiation: DriverNegotiation,
    rules: SeasonRules,
    rng: Generator | None,
) -> DriverContractResult | None:
    driver = state.find_driver(negotiation.driver_id)
    if driver is None:
        logger.warning(
            "Driver %s not found; negotiation %s not finalized",
            negotiation.driver_id,
            negotiation.id,
        )
        return None

    terms: DriverContractTerms = negotiation.last_round.terms
    old_team_id = driver.team_id
    end_season = negotiation.for_season + terms.duration - 1

    driver.team_id = negotiation.team_id
    driver.contract_end = end_season
    driver.salary = terms.salary
    driver.role = terms.driver_status

    result = DriverContractResult(
        driver_id=driver.id,
        team_id=negotiation.team_id,
        old_team_id=old_team_id,
        salary=terms.salary,
        role=terms.driver_status,
        contract_duration=terms.duration,
        end_season=end_season,
    )

    new_team = state.find_team(result.team_id)
    if new_team is None:
        logger.debug("Driver signing news skipped: team %s not found", result.team_id)
        return result
    old_team = state.find_team(old_team_id)
    name = driver.full_name
    switching = old_team is not None and old_team.id != new_team.id
    renewal = old_team is not None and old_team.id == new_team.id

    push_news_event(
        state,
        NewsEventType.DRIVER_SIGNED,
        Importance.HIGH if switching else Importance.MEDIUM,
        {
            "driverId": driver.id,
            "driverName": name,
            "teamId": new_team.id,
            "teamName": new_team.name,
            "previousTeamName": old_team.name if switching else None,
            "contractYears": result.contract_duration,
            "forSeason": negotiation.for_season,
        },
    )

    if switching:
        subject = f"{name} joins {new_team.name}"
        body = (
            f"{name} has signed a {result.contract_duration}-year deal with "
            f"{new_team.name}, leaving {old_team.name}."
        )
    elif renewal:
        subject = f"{new_team.name} extends {name} contract"
        body = (
            f"{new_team.name} has renewed {name}'s contract for "
            f"{result.contract_duration} seasons."
        )
    else:
        subject = f"{name} signs for {new_team.name}"
        body = (
            f"{name} has signed a {result.contract_duration}-year contract "
            f"with {new_team.name}."
        )

    _emit_headline(
        state, subject, body, Importance.HIGH if switching else Importance.MEDIUM
    )

    player_involved = state.player_team_id in (new_team.id, old_team_id)
    if not player_involved:
        body = f"{body} {pick_random(MARKET_COMMENTARY, rng)}"
    _emit_email(state, subject, body)
    return result


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------


@_register(StakeholderType.STAFF, StaffNegotiation, StaffContractTerms)
def _finalize_staff(
    state: WorldState,
    negotiation: StaffNegotiation,
    rules: SeasonRules,
    rng: Generator | None,
) -> StaffContractResult | None:
    chief = state.find_chief(negotiation.staff_id)
    if chief is None:
        logger.warning(
            "Chief %s not found; negotiation %s not finalized",
            negotiation.staff_id,
            negotiation.id,
        )
        return None

    terms: StaffContractTerms = negotiation.last_round.terms
    old_team_id = chief.team_id
    new_team_id = negotiation.team_id
    end_season = negotiation.for_season + terms.duration - 1

    chief.team_id = new_team_id
    chief.contract_end = end_season
    chief.salary = terms.salary

    # Only the player's team pays buyouts and signing bonuses.
    budget_change = 0.0
    team = state.find_team(new_team_id)
    if team is not None and new_team_id == state.player_team_id:
        if terms.buyout_required > 0:
            budget_change -= terms.buyout_required
        if terms.signing_bonus > 0:
            budget_change -= terms.signing_bonus
        team.budget += budget_change

    result = StaffContractResult(
        chief_id=chief.id,
        team_id=new_team_id,
        old_team_id=old_team_id,
        salary=terms.salary,
        role=chief.role,
        contract_duration=terms.duration,
        end_season=end_season,
        buyout_paid=terms.buyout_required,
        signing_bonus=terms.signing_bonus,
        budget_change=budget_change,
    )

    if team is None:
        logger.debug("Staff signing news skipped: team %s not found", new_team_id)
        return result

    old_team = state.find_team(old_team_id)
    name = chief.full_name
    role_name = chief.role.display_name
    duration = result.contract_duration
    if old_team is not None and old_team.id != team.id:
        subject = f"{team.name} signs {name} from {old_team.name}"
        body = (
            f"{team.name} has signed {name} as {role_name}, poaching them from "
            f"{old_team.name} with a {duration}-year deal."
        )
    elif old_team is not None:
        subject = f"{team.name} extends {name} contract"
        body = (
            f"{team.name} has renewed {name}'s contract as {role_name} "
            f"for {duration} seasons."
        )
    else:
        subject = f"{team.name} hires {name} as {role_name}"
        body = (
            f"{team.name} has hired {name} as their new {role_name} on a "
            f"{duration}-year contract."
        )
    _emit_headline(state, subject, body)

    push_news_event(
        state,
        NewsEventType.STAFF_HIRED,
        Importance.HIGH if chief.ability >= STAR_STAFF_ABILITY else Importance.MEDIUM,
        {
            "chiefId": chief.id,
            "chiefName": name,
            "role": chief.role.value,
            "teamId": team.id,
            "teamName": team.name,
            "previousTeamId": old_team.id if old_team else None,
            "salary": result.salary,
            "duration": duration,
            "buyoutPaid": result.buyout_paid,
        },
    )

    if team.id == state.player_team_id:
        _emit_email(
            state,
            f"{name} contract confirmed",
            f"Your agreement with {name} as {role_name} is now official. "
            f"Contract duration: {duration} season(s).",
        )
    return result


# ---------------------------------------------------------------------------
# Sponsor
# ---------------------------------------------------------------------------


@_register(StakeholderType.SPONSOR, SponsorNegotiation, SponsorContractTerms)
def _finalize_sponsor(
    state: WorldState,
    negotiation: SponsorNegotiation,
    rules: SeasonRules,
    rng: Generator | None,
) -> SponsorContractResult | None:
    sponsor = state.find_sponsor(negotiation.sponsor_id)
    if sponsor is None:
        logger.warning(
            "Sponsor %s not found; negotiation %s not finalized",
            negotiation.sponsor_id,
            negotiation.id,
        )
        return None

    terms: SponsorContractTerms = negotiation.last_round.terms
    deal = ActiveSponsorDeal(
        sponsor_id=sponsor.id,
        team_id=negotiation.team_id,
        tier=sponsor.tier,
        signing_bonus=terms.signing_bonus,
        monthly_payment=terms.monthly_payment,
        guaranteed=terms.exit_clause_position is None,
        start_season=negotiation.for_season,
        end_season=negotiation.for_season + terms.duration - 1,
    )
    state.sponsor_deals.append(deal)

    team = state.find_team(negotiation.team_id)
    if team is None:
        logger.debug("Sponsor signing news skipped: team %s not found", negotiation.team_id)
        return SponsorContractResult(deal=deal, contract_duration=terms.duration)
    if terms.signing_bonus > 0:
        team.budget += terms.signing_bonus

    tier_name = sponsor.tier.display_name
    subject = f"{team.name} announces {sponsor.name} as {tier_name}"
    annual_value = terms.monthly_payment * 12
    body = (
        f"{team.name} has signed {sponsor.name} as their {tier_name} in a "
        f"{terms.duration}-year deal worth ${annual_value / 1_000_000:.1f}M per season."
    )
    _emit_headline(state, subject, body)
    if team.id == state.player_team_id:
        _emit_email(state, subject, f"{body} {SPONSOR_EMAIL_SUFFIX}")

    return SponsorContractResult(deal=deal, contract_duration=terms.duration)


_missing = set(StakeholderType) - set(_FINALIZERS)
if _missing:
    raise RuntimeError(
        "No contract finalizer registered for: "
        + ", ".join(sorted(kind.value for kind in _missing))
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def finalize_negotiation(
    state: WorldState,
    negotiation: Negotiation,
    rules: SeasonRules | None = None,
    rng: Generator | None = None,
) -> ContractResult | None:
    """Turn a completed negotiation into a binding contract.

    Args:
        state: World state, mutated in place.
        negotiation: A negotiation in the ``COMPLETED`` phase.
        rules: Supplies the early-termination multiplier.
        rng: Random source for news wording.

    Returns:
        The kind-specific contract result, or ``None`` when the
        negotiation's counterpart no longer exists in the world.

    Raises:
        PreconditionError: If the negotiation is not completed, has no
            rounds, or its last round carries terms of the wrong kind.
    """
    rules = resolve_rules(rules)
    if negotiation.phase is not NegotiationPhase.COMPLETED:
        logger.error(
            "Negotiation %s finalized in phase %s", negotiation.id, negotiation.phase.value
        )
        raise PreconditionError(
            f"Negotiation {negotiation.id} is {negotiation.phase.value}, "
            "only completed negotiations can be finalized"
        )
    last = negotiation.last_round
    if last is None:
        logger.error("Negotiation %s finalized without rounds", negotiation.id)
        raise PreconditionError(f"Negotiation {negotiation.id} has no rounds")

    negotiation_cls, terms_cls, finalizer = _FINALIZERS[negotiation.stakeholder_type]
    if not isinstance(negotiation, negotiation_cls) or not isinstance(
        last.terms, terms_cls
    ):
        logger.error("Negotiation %s carries mismatched terms", negotiation.id)
        raise PreconditionError(
            f"Negotiation {negotiation.id} expects {terms_cls.__name__}, "
            f"got {type(last.terms).__name__}"
        )

    result = finalizer(state, negotiation, rules, rng)
    if result is not None:
        logger.info(
            "Finalized %s contract for team %s with %s",
            negotiation.stakeholder_type.value,
            negotiation.team_id,
            negotiation.counterpart_id,
        )
    return result


def negotiation_update_email(
    state: WorldState,
    stakeholder_name: str,
    phase: NegotiationPhase,
    is_ultimatum: bool,
    failed_suffix: str | None = None,
) -> CalendarEvent:
    """Send the player a blocking email about a negotiation update."""
    if phase is NegotiationPhase.COMPLETED:
        subject = f"{stakeholder_name} accepts your offer"
        body = (
            f"Great news! {stakeholder_name} has accepted your contract proposal. "
            "The deal is now complete."
        )
    elif phase is NegotiationPhase.FAILED:
        subject = f"{stakeholder_name} rejects negotiation"
        body = (
            f"{stakeholder_name} has declined to continue negotiations."
            f"{failed_suffix or ''}"
        )
    elif phase is NegotiationPhase.RESPONSE_RECEIVED:
        subject = f"{stakeholder_name} responds with counter-offer"
        if is_ultimatum:
            body = (
                f"{stakeholder_name} has made a final offer. This is their last "
                "position - accept or reject."
            )
        else:
            body = (
                f"{stakeholder_name} has responded with a counter-proposal. "
                "Review their terms and decide how to proceed."
            )
    else:
        subject = f"Update from {stakeholder_name}"
        body = f"{stakeholder_name} has updated the negotiation status."

    return append_calendar_event(
        state, create_email(state.current_date, subject, body, critical=True)
    )


@dataclass
class NegotiationUpdate:
    negotiation_id: str
    updated_negotiation: Negotiation | None
    should_stop_simulation: bool = False


def stakeholder_name(state: WorldState, negotiation: Negotiation) -> str | None:
    """Display name of the negotiation's counterpart, if it exists."""
    kind = negotiation.stakeholder_type
    if kind is StakeholderType.MANUFACTURER:
        entity = state.find_manufacturer(negotiation.counterpart_id)
        return entity.name if entity else None
    if kind is StakeholderType.DRIVER:
        entity = state.find_driver(negotiation.counterpart_id)
        return entity.full_name if entity else None
    if kind is StakeholderType.STAFF:
        entity = state.find_chief(negotiation.counterpart_id)
        return entity.full_name if entity else None
    entity = state.find_sponsor(negotiation.counterpart_id)
    return entity.name if entity else None


def apply_negotiation_updates(
    state: WorldState,
    updates: list[NegotiationUpdate],
    rules: SeasonRules | None = None,
    rng: Generator | None = None,
) -> bool:
    """Apply a batch of negotiation updates.

    Completed negotiations are finalized whichever team holds them.
    Updates flagged ``should_stop_simulation`` on the player's own
    negotiations also produce a critical email.

    Returns:
        True if the simulation should pause for the player.
    """
    should_stop = False
    for update in updates:
        negotiation = update.updated_negotiation
        if negotiation is None:
            continue
        index = next(
            (
                i
                for i, n in enumerate(state.negotiations)
                if n.id == update.negotiation_id
            ),
            None,
        )
        if index is None:
            logger.debug("Negotiation %s not found; update ignored", update.negotiation_id)
            continue
        state.negotiations[index] = negotiation

        if negotiation.phase is NegotiationPhase.COMPLETED:
            finalize_negotiation(state, negotiation, rules, rng)

        if update.should_stop_simulation and negotiation.team_id == state.player_team_id:
            should_stop = True
            name = stakeholder_name(state, negotiation)
            if name is not None:
                negotiation_update_email(
                    state,
                    name,
                    negotiation.phase,
                    negotiation.is_ultimatum,
                    FAILED_SUFFIXES.get(negotiation.stakeholder_type),
                )
    return should_stop
