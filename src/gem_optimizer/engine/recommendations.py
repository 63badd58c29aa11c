"""Recommendation text and confidence scoring for an optimization result."""

from __future__ import annotations

import numpy as np

from gem_optimizer.config.functions import FIELD_WEAKENING, MAX_ARMATURE_CURRENT
from gem_optimizer.config.inputs import EnvironmentalConditions, Priorities
from gem_optimizer.config.vehicle import VehicleProfile
from gem_optimizer.engine.rules import StrategyName
from gem_optimizer.engine.settings import SettingsVector
from gem_optimizer.models.results import PerformancePrediction

BASE_CONFIDENCE = 0.8
KNOWN_PROFILE_BONUS = 0.1
PRIORITY_CLARITY_WEIGHT = 0.1
STANDARD_CONDITIONS_BONUS = 0.05
MAX_CONFIDENCE = 0.95

# Largest possible variance of values on [0, 10]
MAX_PRIORITY_VARIANCE = 25.0


def generate_recommendations(
    settings: SettingsVector,
    vehicle: VehicleProfile,
    strategy: StrategyName,
    performance: PerformancePrediction,
) -> list[str]:
    """Strategy message(s) first, then the universal checks."""
    recommendations: list[str] = []

    if strategy == StrategyName.SPEED:
        recommendations.append("Optimized for maximum speed - monitor motor temperature")
        if performance.range < 20:
            recommendations.append("Range reduced significantly - consider carrying spare battery")
    elif strategy == StrategyName.RANGE:
        recommendations.append("Optimized for maximum range - gentle acceleration recommended")
        if performance.speed < 20:
            recommendations.append("Top speed reduced - plan for longer travel times")
    elif strategy == StrategyName.HILLS:
        recommendations.append("Optimized for hill climbing - excellent for hilly terrain")
        recommendations.append("Monitor motor temperature on extended climbs")
    elif strategy == StrategyName.EFFICIENCY:
        recommendations.append("Optimized for maximum efficiency - ideal for daily commuting")
    else:
        recommendations.append("Balanced optimization - good all-around performance")

    if performance.acceleration > 10:
        recommendations.append("Slow acceleration - consider increasing acceleration setting")

    if settings.get(MAX_ARMATURE_CURRENT, 0) > vehicle.motor.max_current * 0.9:
        recommendations.append("High motor current - ensure adequate cooling")

    if settings.get(FIELD_WEAKENING, 0) > 50:
        recommendations.append("High field weakening - monitor for motor overheating")

    return recommendations


def priority_variance(priorities: Priorities) -> float:
    """Population variance of the five priorities, scaled to 0-1."""
    variance = float(np.var(np.array(priorities.values(), dtype=float)))
    return variance / MAX_PRIORITY_VARIANCE


def compute_confidence(
    profile_matched: bool,
    priorities: Priorities,
    conditions: EnvironmentalConditions,
) -> float:
    confidence = BASE_CONFIDENCE

    if profile_matched:
        confidence += KNOWN_PROFILE_BONUS

    confidence += (1 - priority_variance(priorities)) * PRIORITY_CLARITY_WEIGHT

    if 50 <= conditions.temperature <= 80:
        confidence += STANDARD_CONDITIONS_BONUS

    return round(min(MAX_CONFIDENCE, confidence), 4)
