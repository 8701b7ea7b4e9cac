"""Rules loader for the season turn engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DATA_DIR: Path = Path(__file__).resolve().parent / "data"
RULES_PATH: Path = DATA_DIR / "season_rules.yaml"

_REQUIRED_FIELDS: tuple[str, ...] = (
    "points_system",
    "repair_cost_base",
    "repair_cost_dnf",
    "telemetry_error_fraction",
    "early_termination_multiplier",
)

_NON_NEGATIVE_FIELDS: tuple[str, ...] = (
    "repair_cost_base",
    "repair_cost_dnf",
    "early_termination_multiplier",
    "points_bonus_per_point",
    "sponsor_satisfaction_swing",
)

_INTEGER_FIELDS: tuple[str, ...] = ("sponsor_satisfaction_swing",)

_NUMERIC_FIELDS: tuple[str, ...] = (
    "repair_cost_base",
    "repair_cost_dnf",
    "telemetry_error_fraction",
    "early_termination_multiplier",
    "points_bonus_per_point",
    "win_morale_bonus",
    "podium_morale_bonus",
    "points_morale_bonus",
    "dnf_morale_penalty",
    "win_reputation_bonus",
    "podium_reputation_bonus",
    "dnf_reputation_penalty",
    "sponsor_satisfaction_swing",
    "retirement_probability",
)


@dataclass(frozen=True)
class SeasonRules:
    """Numeric rules consumed by the turn pipelines.

    Attributes:
        points_system: Championship points by finishing position
            (index 0 = winner).
        repair_cost_base: Routine maintenance cost per car per race.
        repair_cost_dnf: Additional repair cost for a retired car.
        telemetry_error_fraction: Maximum relative error of the public
            engine power estimate.
        early_termination_multiplier: Share of the remaining contract
            value charged when an engine deal is broken early.
        points_bonus_per_point: Prize money per championship point.
        retirement_probability: Per-driver DNF chance used by the stub
            race outcome engine.
    """

    points_system: tuple[int, ...] = (10, 6, 4, 3, 2, 1)
    repair_cost_base: int = 50_000
    repair_cost_dnf: int = 400_000
    telemetry_error_fraction: float = 0.08
    early_termination_multiplier: float = 1.0
    points_bonus_per_point: int = 10_000
    win_morale_bonus: float = 10
    podium_morale_bonus: float = 5
    points_morale_bonus: float = 2
    dnf_morale_penalty: float = -5
    win_reputation_bonus: float = 3
    podium_reputation_bonus: float = 1
    dnf_reputation_penalty: float = -1
    sponsor_satisfaction_swing: int = 1
    retirement_probability: float = 0.08
    source: str = field(default="defaults", compare=False)

    def points_for(self, finish_position: int | None) -> int:
        """Return championship points for a 1-based finishing position."""
        if finish_position is None or finish_position < 1:
            return 0
        if finish_position > len(self.points_system):
            return 0
        return self.points_system[finish_position - 1]


DEFAULT_RULES = SeasonRules()


def resolve_rules(rules: SeasonRules | None) -> SeasonRules:
    """Return *rules*, falling back to the built-in defaults."""
    return rules if rules is not None else DEFAULT_RULES


def load_rules(path: Path | None = None) -> SeasonRules:
    """Load season rules from a YAML file.

    Fields absent from the file keep their :class:`SeasonRules` default,
    except for the core fields in ``_REQUIRED_FIELDS`` which must be
    present.

    Args:
        path: Optional override for the rules file path.

    Returns:
        A validated :class:`SeasonRules` instance.

    Raises:
        FileNotFoundError: If the rules file does not exist.
        ValueError: If a required field is missing or a value is out of
            range.
    """
    rules_path = path or RULES_PATH
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules file not found: {rules_path}")

    with open(rules_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Rules file {rules_path} must contain a mapping")

    # --- Validate required fields ---
    for name in _REQUIRED_FIELDS:
        if name not in data:
            raise ValueError(f"Rules file is missing required field '{name}'")

    # --- Validate numeric fields ---
    for name in _NUMERIC_FIELDS:
        if name not in data:
            continue
        val = data[name]
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ValueError(
                f"'{name}' must be numeric, got {type(val).__name__}"
            )
        if name in _NON_NEGATIVE_FIELDS and val < 0:
            raise ValueError(f"'{name}' must be >= 0, got {val}")

    for name in _INTEGER_FIELDS:
        if name in data and not isinstance(data[name], int):
            raise ValueError(
                f"'{name}' must be an integer, got {data[name]!r}"
            )

    error = float(data["telemetry_error_fraction"])
    if not 0.0 <= error < 1.0:
        raise ValueError(
            f"'telemetry_error_fraction' must be in [0, 1), got {error}"
        )

    retirement = float(data.get("retirement_probability", 0.0))
    if not 0.0 <= retirement <= 1.0:
        raise ValueError(
            f"'retirement_probability' must be in [0, 1], got {retirement}"
        )

    points = data["points_system"]
    if not isinstance(points, list) or not points:
        raise ValueError("'points_system' must be a non-empty list")
    for idx, pts in enumerate(points):
        if isinstance(pts, bool) or not isinstance(pts, int) or pts < 0:
            raise ValueError(
                f"'points_system' entry {idx} must be a non-negative integer"
            )
    if any(a < b for a, b in zip(points, points[1:])):
        raise ValueError("'points_system' must be non-increasing")

    known = {f for f in SeasonRules.__dataclass_fields__ if f != "source"}
    kwargs = {k: v for k, v in data.items() if k in known}
    kwargs["points_system"] = tuple(int(p) for p in points)
    return SeasonRules(source=str(rules_path), **kwargs)
