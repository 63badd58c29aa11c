"""Safety constraint set: checks + deterministic corrections.

Validation is self-healing, not rejecting.  Every category's checks run
against the working vector; a failing category applies its single
corrective clamp and validation continues with the next category.  Passes
repeat until the vector is clean.  Each change is logged and returned as a
``Correction`` so callers can see what was altered.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from gem_optimizer.config.functions import (
    ACCEL_RATE,
    FIELD_WEAKENING,
    MAX_ARMATURE_CURRENT,
    REGEN_CURRENT,
    SPEED_SCALING,
    function_label,
)
from gem_optimizer.config.vehicle import VehicleProfile
from gem_optimizer.engine.settings import FUNCTION_NUMBERS, SettingsVector
from gem_optimizer.models.results import Correction

logger = logging.getLogger(__name__)

# ── Limits ──────────────────────────────────────────────────────────────
CONTINUOUS_CURRENT_FRACTION = 0.8
BURST_CURRENT_MARGIN_A = 50
FIELD_WEAKENING_MIN = 25
FIELD_WEAKENING_MAX = 60
LEGAL_SPEED_LIMIT_MPH = 25
MPH_PER_SPEED_COUNT = 1.2
REGEN_CHARGE_RATE_MULTIPLE = 10
MIN_ACCEL_RATE = 30
MIN_SPEED_SCALING = 18
DRIVABLE_ACCEL_RATE = 40
DRIVABLE_SPEED_SCALING = 20

# Largest whole speed-scaling count whose estimated top speed is legal.
LEGAL_SPEED_SCALING_CAP = math.floor(LEGAL_SPEED_LIMIT_MPH / MPH_PER_SPEED_COUNT)

# Forced when corrections fail to converge; also the emergency vector's
# key values.
CONSERVATIVE_SETTINGS: dict[int, float] = {
    SPEED_SCALING: 20,
    MAX_ARMATURE_CURRENT: 200,
    ACCEL_RATE: 50,
    REGEN_CURRENT: 220,
    FIELD_WEAKENING: 40,
}

Check = Callable[[SettingsVector, VehicleProfile], bool]
Corrector = Callable[[SettingsVector, VehicleProfile], None]


class ConstraintCategory(str, Enum):
    THERMAL_LIMITS = "thermal_limits"
    MOTOR_LIMITS = "motor_limits"
    LEGAL_SPEED = "legal_speed"
    BATTERY_PROTECTION = "battery_protection"
    DRIVABILITY = "drivability"


@dataclass(frozen=True)
class SafetyConstraint:
    category: ConstraintCategory
    description: str
    checks: tuple[Check, ...]
    correct: Corrector

    def failing(self, settings: SettingsVector, profile: VehicleProfile) -> bool:
        return not all(check(settings, profile) for check in self.checks)


# ═══════════════════════════════════════════════════════════════════════════
# Checks
# ═══════════════════════════════════════════════════════════════════════════

def _current(s: SettingsVector) -> float:
    return s.get(MAX_ARMATURE_CURRENT, 0)


def _within_thermal_limit(s: SettingsVector, v: VehicleProfile) -> bool:
    continuous = v.motor.max_current * CONTINUOUS_CURRENT_FRACTION
    return _current(s) <= continuous + BURST_CURRENT_MARGIN_A


def _within_motor_current(s: SettingsVector, v: VehicleProfile) -> bool:
    return _current(s) <= v.motor.max_current


def _field_weakening_in_band(s: SettingsVector, v: VehicleProfile) -> bool:
    return FIELD_WEAKENING_MIN <= s.get(FIELD_WEAKENING, 0) <= FIELD_WEAKENING_MAX


def _legal_top_speed(s: SettingsVector, v: VehicleProfile) -> bool:
    return s.get(SPEED_SCALING, 0) * MPH_PER_SPEED_COUNT <= LEGAL_SPEED_LIMIT_MPH


def _regen_within_charge_rate(s: SettingsVector, v: VehicleProfile) -> bool:
    return s.get(REGEN_CURRENT, 0) <= v.battery.max_charge_rate * REGEN_CHARGE_RATE_MULTIPLE


def _responsive_acceleration(s: SettingsVector, v: VehicleProfile) -> bool:
    return s.get(ACCEL_RATE, 0) >= MIN_ACCEL_RATE


def _useful_top_speed(s: SettingsVector, v: VehicleProfile) -> bool:
    return s.get(SPEED_SCALING, 0) >= MIN_SPEED_SCALING


# ═══════════════════════════════════════════════════════════════════════════
# Corrections
# ═══════════════════════════════════════════════════════════════════════════

def _cap_current(s: SettingsVector, v: VehicleProfile) -> None:
    s[MAX_ARMATURE_CURRENT] = min(_current(s), v.motor.max_current * CONTINUOUS_CURRENT_FRACTION)


def _cap_current_and_band_field_weakening(s: SettingsVector, v: VehicleProfile) -> None:
    _cap_current(s, v)
    s[FIELD_WEAKENING] = max(FIELD_WEAKENING_MIN, min(FIELD_WEAKENING_MAX, s.get(FIELD_WEAKENING, 0)))


def _cap_speed_scaling(s: SettingsVector, v: VehicleProfile) -> None:
    s[SPEED_SCALING] = min(s.get(SPEED_SCALING, 0), LEGAL_SPEED_SCALING_CAP)


def _cap_regen(s: SettingsVector, v: VehicleProfile) -> None:
    s[REGEN_CURRENT] = min(s.get(REGEN_CURRENT, 0), v.battery.max_charge_rate * REGEN_CHARGE_RATE_MULTIPLE)


def _floor_drivability(s: SettingsVector, v: VehicleProfile) -> None:
    s[ACCEL_RATE] = max(s.get(ACCEL_RATE, 0), DRIVABLE_ACCEL_RATE)
    s[SPEED_SCALING] = max(s.get(SPEED_SCALING, 0), DRIVABLE_SPEED_SCALING)


SAFETY_CONSTRAINTS: tuple[SafetyConstraint, ...] = (
    SafetyConstraint(
        ConstraintCategory.THERMAL_LIMITS,
        "Prevent motor/controller overheating",
        (_within_thermal_limit,),
        _cap_current,
    ),
    SafetyConstraint(
        ConstraintCategory.MOTOR_LIMITS,
        "Stay within motor specifications",
        (_within_motor_current, _field_weakening_in_band),
        _cap_current_and_band_field_weakening,
    ),
    SafetyConstraint(
        ConstraintCategory.LEGAL_SPEED,
        "Comply with speed regulations",
        (_legal_top_speed,),
        _cap_speed_scaling,
    ),
    SafetyConstraint(
        ConstraintCategory.BATTERY_PROTECTION,
        "Protect battery from damage",
        (_regen_within_charge_rate,),
        _cap_regen,
    ),
    SafetyConstraint(
        ConstraintCategory.DRIVABILITY,
        "Maintain minimum drivability",
        (_responsive_acceleration, _useful_top_speed),
        _floor_drivability,
    ),
)


# ═══════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════

def failing_categories(
    settings: SettingsVector,
    profile: VehicleProfile,
    constraints: tuple[SafetyConstraint, ...] = SAFETY_CONSTRAINTS,
) -> list[ConstraintCategory]:
    """Categories whose checks fail for ``settings`` (no corrections applied)."""
    return [c.category for c in constraints if c.failing(settings, profile)]


def _record_changes(
    before: SettingsVector,
    after: SettingsVector,
    category: str,
    description: str,
) -> list[Correction]:
    changes = []
    for number in FUNCTION_NUMBERS:
        old, new = before.get(number, 0), after.get(number, 0)
        if old != new:
            message = f"{description}: {function_label(number)} {old:g} -> {new:g}"
            logger.warning("Constraint violation (%s): %s", category, message)
            changes.append(Correction(
                category=category, function=number, before=old, after=new, message=message,
            ))
    return changes


def validate_settings(
    settings: SettingsVector,
    profile: VehicleProfile,
    max_passes: int = 3,
    constraints: tuple[SafetyConstraint, ...] = SAFETY_CONSTRAINTS,
) -> tuple[SettingsVector, list[Correction]]:
    """Return a corrected copy of ``settings`` plus the corrections applied.

    Each pass visits every category in order.  If the vector is still
    failing after ``max_passes``, the conservative values are forced for
    the key functions.
    """
    validated = dict(settings)
    corrections: list[Correction] = []

    for _ in range(max_passes):
        dirty = False
        for constraint in constraints:
            if not constraint.failing(validated, profile):
                continue
            dirty = True
            before = dict(validated)
            constraint.correct(validated, profile)
            corrections.extend(_record_changes(
                before, validated, constraint.category.value, constraint.description,
            ))
        if not dirty:
            return validated, corrections

    if failing_categories(validated, profile, constraints):
        before = dict(validated)
        validated.update(conservative_settings(profile))
        corrections.extend(_record_changes(
            before, validated, "conservative_defaults",
            "Corrections did not converge; conservative values forced",
        ))
    return validated, corrections


def conservative_settings(profile: VehicleProfile) -> dict[int, float]:
    """``CONSERVATIVE_SETTINGS`` tightened to the profile's own limits."""
    values = dict(CONSERVATIVE_SETTINGS)
    values[MAX_ARMATURE_CURRENT] = min(
        values[MAX_ARMATURE_CURRENT], profile.motor.max_current * CONTINUOUS_CURRENT_FRACTION,
    )
    values[REGEN_CURRENT] = min(
        values[REGEN_CURRENT], profile.battery.max_charge_rate * REGEN_CHARGE_RATE_MULTIPLE,
    )
    return values
