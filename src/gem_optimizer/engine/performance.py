"""Performance prediction models.

Four independent closed-form estimates of what a settings vector will do
on the road: top speed, range, drive efficiency and 0-20 mph time.  Each is
``(settings, profile, conditions) -> float`` and reads missing (absent or
zero) settings from the profile defaults.

``predict_performance`` runs all four and substitutes a fixed default for
any model that raises or produces a non-finite number.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from gem_optimizer.config.functions import (
    ACCEL_RATE,
    FIELD_WEAKENING,
    MAX_ARMATURE_CURRENT,
    REGEN_CURRENT,
    SPEED_SCALING,
)
from gem_optimizer.config.inputs import EnvironmentalConditions, clamp
from gem_optimizer.config.vehicle import VehicleProfile
from gem_optimizer.engine.settings import SettingsVector, setting_or_default
from gem_optimizer.models.results import PerformancePrediction

logger = logging.getLogger(__name__)

PerformanceModel = Callable[[SettingsVector, VehicleProfile, EnvironmentalConditions], float]

# Substituted when a model fails.
DEFAULT_PERFORMANCE: dict[str, float] = {
    "speed": 22.0,
    "range": 25.0,
    "efficiency": 75.0,
    "acceleration": 8.0,
}

# Reference points the models are calibrated around
REFERENCE_SPEED_SCALING = 22
REFERENCE_FIELD_WEAKENING = 43
REFERENCE_CURRENT_A = 245
REFERENCE_ACCEL_RATE = 60
USABLE_DEPTH_OF_DISCHARGE = 0.8


def predict_speed(settings: SettingsVector, vehicle: VehicleProfile, conditions: EnvironmentalConditions) -> float:
    """Top speed (mph), clamped to [10, 25]."""
    mph_scaling = setting_or_default(settings, vehicle, SPEED_SCALING)
    field_weakening = setting_or_default(settings, vehicle, FIELD_WEAKENING)

    speed = mph_scaling * (1 + (field_weakening - REFERENCE_FIELD_WEAKENING) * 0.01)

    if conditions.temperature < 40:
        speed *= 0.95
    if conditions.wind_speed > 15:
        speed *= 0.92
    if conditions.grade > 5:
        speed *= 1 - conditions.grade * 0.02

    speed *= 1 - conditions.load * 0.0002
    return clamp(speed, 10.0, 25.0)


def predict_range(settings: SettingsVector, vehicle: VehicleProfile, conditions: EnvironmentalConditions) -> float:
    """Range on a full charge (miles), never below 8."""
    mph_scaling = setting_or_default(settings, vehicle, SPEED_SCALING)
    max_current = setting_or_default(settings, vehicle, MAX_ARMATURE_CURRENT)
    regen_current = setting_or_default(settings, vehicle, REGEN_CURRENT)

    # Wh per mile
    consumption = (
        150
        + (max_current - REFERENCE_CURRENT_A) * 0.8
        + (mph_scaling - REFERENCE_SPEED_SCALING) * 5
    )

    if conditions.temperature < 50:
        consumption *= 1.15
    if conditions.temperature > 85:
        consumption *= 1.1
    if conditions.wind_speed > 10:
        consumption *= 1 + conditions.wind_speed * 0.01
    if conditions.grade > 0:
        consumption *= 1 + conditions.grade * 0.02

    regen_recovery = min(0.3, (regen_current - 200) * 0.001)
    consumption *= 1 - regen_recovery

    usable_wh = vehicle.battery.capacity_ah * vehicle.battery.nominal_voltage * USABLE_DEPTH_OF_DISCHARGE
    return max(8.0, usable_wh / consumption)


def predict_efficiency(settings: SettingsVector, vehicle: VehicleProfile, conditions: EnvironmentalConditions) -> float:
    """Drive efficiency (%), clamped to [50, 95]."""
    mph_scaling = setting_or_default(settings, vehicle, SPEED_SCALING)
    max_current = setting_or_default(settings, vehicle, MAX_ARMATURE_CURRENT)
    accel_rate = setting_or_default(settings, vehicle, ACCEL_RATE)

    efficiency = vehicle.motor.efficiency

    # motors lose efficiency at both ends of their current range
    current_ratio = max_current / vehicle.motor.max_current
    if current_ratio > 0.9:
        efficiency *= 0.95
    if current_ratio < 0.6:
        efficiency *= 0.92

    # aero losses grow with speed²
    speed_ratio = mph_scaling / REFERENCE_SPEED_SCALING
    efficiency *= 1 - speed_ratio ** 2 * 0.1

    efficiency *= 1 - abs(accel_rate - REFERENCE_ACCEL_RATE) / 30 * 0.05

    if conditions.temperature < 60 or conditions.temperature > 80:
        efficiency *= 0.95

    return clamp(efficiency, 0.5, 0.95) * 100


def predict_acceleration(settings: SettingsVector, vehicle: VehicleProfile, conditions: EnvironmentalConditions) -> float:
    """0-20 mph time (s), clamped to [4, 15]."""
    max_current = setting_or_default(settings, vehicle, MAX_ARMATURE_CURRENT)
    accel_rate = setting_or_default(settings, vehicle, ACCEL_RATE)

    current_ratio = max_current / vehicle.motor.max_current
    time_0_to_20 = 8.0
    time_0_to_20 /= math.sqrt(current_ratio)
    time_0_to_20 /= accel_rate / 100

    curb = vehicle.weight.curb_lbs
    time_0_to_20 *= math.sqrt((curb + conditions.load) / curb)

    if conditions.grade > 0:
        time_0_to_20 *= 1 + conditions.grade * 0.1
    if conditions.temperature < 40:
        time_0_to_20 *= 1.1

    return clamp(time_0_to_20, 4.0, 15.0)


PERFORMANCE_MODELS: dict[str, PerformanceModel] = {
    "speed": predict_speed,
    "range": predict_range,
    "efficiency": predict_efficiency,
    "acceleration": predict_acceleration,
}


def predict_performance(
    settings: SettingsVector,
    vehicle: VehicleProfile,
    conditions: EnvironmentalConditions,
    models: dict[str, PerformanceModel] | None = None,
) -> PerformancePrediction:
    """Run every model; a failing model yields its ``DEFAULT_PERFORMANCE`` value."""
    models = PERFORMANCE_MODELS if models is None else models
    values: dict[str, float] = {}
    for metric, model in models.items():
        try:
            value = float(model(settings, vehicle, conditions))
            if not math.isfinite(value):
                raise ValueError(f"non-finite prediction {value!r}")
        except Exception:
            logger.exception("Performance prediction failed for %s", metric)
            value = DEFAULT_PERFORMANCE[metric]
        values[metric] = round(value, 2)
    return PerformancePrediction(**values)
