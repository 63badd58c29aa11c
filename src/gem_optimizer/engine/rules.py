"""Optimization rule set: strategy selection and adjustment tables.

Each strategy scales five key controller functions by a fixed factor and
clamps the result into a strategy-specific window.  Environmental overrides
(cold, heat, grade, load) are then layered on top in a fixed order; they
stack rather than replace one another.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from statistics import fmean

from gem_optimizer.config.functions import (
    ACCEL_RATE,
    FIELD_WEAKENING,
    MAX_ARMATURE_CURRENT,
    REGEN_CURRENT,
    SPEED_SCALING,
)
from gem_optimizer.config.inputs import EnvironmentalConditions, Priorities
from gem_optimizer.config.vehicle import VehicleProfile
from gem_optimizer.engine.settings import SettingsVector, round_half_up

# Value used when neither the base vector nor the profile has a setting.
UNSET_BASE_VALUE = 50

# Environmental thresholds
COLD_TEMPERATURE_F = 50.0
HOT_TEMPERATURE_F = 85.0
STEEP_GRADE_PCT = 5.0
HEAVY_LOAD_LBS = 500.0

# Hills strategy eligibility
HILLS_PRIORITY_THRESHOLD = 6.0
HILLS_GRADE_THRESHOLD = 8.0


class StrategyName(str, Enum):
    SPEED = "speed"
    RANGE = "range"
    BALANCED = "balanced"
    EFFICIENCY = "efficiency"
    HILLS = "hills"


@dataclass(frozen=True)
class Adjustment:
    """``clamp(round(base × factor), min, max)`` for one function."""

    factor: float
    min: float
    max: float

    def apply(self, base_value: float) -> int | float:
        return max(self.min, min(self.max, round_half_up(base_value * self.factor)))


@dataclass(frozen=True)
class OptimizationStrategy:
    name: StrategyName
    priority: str
    adjustments: dict[int, Adjustment]
    constraints: tuple[str, ...] = ()
    """Constraint categories the strategy is expected to stress."""
    tradeoffs: tuple[str, ...] = field(default=())
    """Descriptive only; not enforced."""


def _table(**by_function: tuple[float, float, float]) -> dict[int, Adjustment]:
    index = {
        "speed_scaling": SPEED_SCALING,
        "max_current": MAX_ARMATURE_CURRENT,
        "accel_rate": ACCEL_RATE,
        "regen_current": REGEN_CURRENT,
        "field_weakening": FIELD_WEAKENING,
    }
    return {index[name]: Adjustment(*spec) for name, spec in by_function.items()}


STRATEGIES: dict[StrategyName, OptimizationStrategy] = {
    StrategyName.SPEED: OptimizationStrategy(
        name=StrategyName.SPEED,
        priority="maximum_speed",
        adjustments=_table(
            speed_scaling=(1.2, 20, 30),
            max_current=(1.15, 200, 320),
            accel_rate=(1.1, 60, 90),
            field_weakening=(1.1, 35, 55),
            regen_current=(0.95, 180, 280),
        ),
        constraints=("thermal_limits", "motor_limits", "legal_speed"),
        tradeoffs=("range_reduction", "efficiency_loss"),
    ),
    StrategyName.RANGE: OptimizationStrategy(
        name=StrategyName.RANGE,
        priority="maximum_range",
        adjustments=_table(
            speed_scaling=(0.85, 18, 25),
            max_current=(0.9, 180, 250),
            accel_rate=(0.85, 40, 70),
            regen_current=(1.15, 220, 300),
            field_weakening=(0.95, 30, 50),
        ),
        constraints=("drivability",),
        tradeoffs=("speed_reduction", "acceleration_loss"),
    ),
    StrategyName.BALANCED: OptimizationStrategy(
        name=StrategyName.BALANCED,
        priority="optimal_balance",
        adjustments=_table(
            speed_scaling=(1.0, 20, 26),
            max_current=(1.05, 220, 280),
            accel_rate=(1.0, 55, 75),
            regen_current=(1.05, 210, 270),
            field_weakening=(1.0, 38, 48),
        ),
        constraints=("thermal_limits", "motor_limits", "legal_speed", "battery_protection", "drivability"),
        tradeoffs=("minor_compromises",),
    ),
    StrategyName.EFFICIENCY: OptimizationStrategy(
        name=StrategyName.EFFICIENCY,
        priority="maximum_efficiency",
        adjustments=_table(
            speed_scaling=(0.9, 18, 24),
            max_current=(0.85, 160, 230),
            accel_rate=(0.8, 35, 65),
            regen_current=(1.2, 240, 300),
            field_weakening=(0.9, 32, 45),
        ),
        constraints=("drivability",),
        tradeoffs=("performance_reduction",),
    ),
    StrategyName.HILLS: OptimizationStrategy(
        name=StrategyName.HILLS,
        priority="hill_performance",
        adjustments=_table(
            speed_scaling=(0.95, 20, 26),
            max_current=(1.2, 250, 320),
            accel_rate=(1.15, 70, 90),
            field_weakening=(1.15, 45, 60),
            regen_current=(1.1, 230, 280),
        ),
        constraints=("thermal_limits", "motor_limits"),
        tradeoffs=("range_on_flats",),
    ),
}


# ═══════════════════════════════════════════════════════════════════════════
# Strategy selection
# ═══════════════════════════════════════════════════════════════════════════

# Strategies whose joint tie at the top score selects balanced.
_EVEN_TIE = (StrategyName.SPEED, StrategyName.RANGE, StrategyName.EFFICIENCY, StrategyName.BALANCED)


def strategy_scores(priorities: Priorities, conditions: EnvironmentalConditions) -> dict[StrategyName, float]:
    """Score per eligible strategy, in tie-break order."""
    scores = {
        StrategyName.SPEED: priorities.speed,
        StrategyName.RANGE: priorities.range,
        StrategyName.EFFICIENCY: priorities.efficiency,
        StrategyName.BALANCED: fmean([priorities.speed, priorities.range, priorities.acceleration]),
    }
    if priorities.hills > HILLS_PRIORITY_THRESHOLD or conditions.grade > HILLS_GRADE_THRESHOLD:
        scores[StrategyName.HILLS] = priorities.hills + 0.5 * conditions.grade
    return scores


def select_strategy(priorities: Priorities, conditions: EnvironmentalConditions) -> StrategyName:
    """Highest-scoring strategy.

    When speed, range, efficiency and balanced all share the top score no
    single priority dominates and ``balanced`` is chosen; any other tie goes
    to the first strategy in ``strategy_scores`` order.
    """
    scores = strategy_scores(priorities, conditions)
    best = max(scores.values())
    if all(scores[name] == best for name in _EVEN_TIE):
        return StrategyName.BALANCED
    return next(name for name, score in scores.items() if score == best)


# ═══════════════════════════════════════════════════════════════════════════
# Strategy application
# ═══════════════════════════════════════════════════════════════════════════

def apply_strategy(
    strategy: StrategyName | str,
    base_settings: SettingsVector,
    profile: VehicleProfile,
    conditions: EnvironmentalConditions,
) -> SettingsVector:
    """Apply a strategy's adjustment table, then the environmental overrides.

    Returns a new vector; ``base_settings`` is left untouched.
    """
    rules = STRATEGIES[StrategyName(strategy)]
    adjusted = dict(base_settings)

    for function, adjustment in rules.adjustments.items():
        base_value = (
            base_settings.get(function)
            or profile.default_settings.get(function)
            or UNSET_BASE_VALUE
        )
        adjusted[function] = adjustment.apply(base_value)

    apply_environmental_overrides(adjusted, profile, conditions)
    return adjusted


def apply_environmental_overrides(
    settings: SettingsVector,
    profile: VehicleProfile,
    conditions: EnvironmentalConditions,
) -> SettingsVector:
    """Adjust current, acceleration and field weakening for the conditions.

    Mutates and returns ``settings``.  Order: cold, hot, steep grade, heavy
    load.
    """
    motor_max = profile.motor.max_current
    current = settings[MAX_ARMATURE_CURRENT]
    accel = settings[ACCEL_RATE]
    field_weakening = settings[FIELD_WEAKENING]

    if conditions.temperature < COLD_TEMPERATURE_F:
        # cold cells sag; give the motor more current but soften launches
        current = max(current * 1.1, current + 20)
        accel = max(30, accel * 0.9)

    if conditions.temperature > HOT_TEMPERATURE_F:
        current = min(current * 0.95, motor_max * 0.9)

    if conditions.grade > STEEP_GRADE_PCT:
        current = min(current * 1.15, motor_max)
        field_weakening = min(field_weakening * 1.1, 60)

    if conditions.load > HEAVY_LOAD_LBS:
        current = min(current * 1.1, motor_max)
        accel = max(accel * 0.95, 40)

    settings[MAX_ARMATURE_CURRENT] = round(current, 1)
    settings[ACCEL_RATE] = round(accel, 1)
    settings[FIELD_WEAKENING] = round(field_weakening, 1)
    return settings
