"""Rule-based optimizer: the single entry point for an optimization request.

Pipeline (strictly sequential, one pass):
  1. resolve the vehicle profile (unknown models fall back, never fail)
  2. normalize priorities and conditions; overlay a named preset if given
  3. build the base settings vector
  4. select a strategy
  5. apply the strategy table + environmental overrides
  6. validate against the safety constraints, correcting in place
  7. predict performance
  8. generate recommendations
  9. score confidence

Any exception in 1-9 is caught here and turned into the emergency result,
so ``optimize`` always returns a usable, safe settings vector.
"""

from __future__ import annotations

import logging
from typing import Any

from gem_optimizer.config.functions import NUM_FUNCTIONS
from gem_optimizer.config.inputs import EnvironmentalConditions, Priorities, VehicleData
from gem_optimizer.config.presets import PRESETS, get_preset
from gem_optimizer.config.profiles import VehicleProfileRegistry, normalize_model_key
from gem_optimizer.config.settings import OptimizerConfig
from gem_optimizer.engine.cache import OptimizationCache, cache_key
from gem_optimizer.engine.constraints import CONSERVATIVE_SETTINGS, SAFETY_CONSTRAINTS, validate_settings
from gem_optimizer.engine.performance import PERFORMANCE_MODELS, predict_performance
from gem_optimizer.engine.recommendations import compute_confidence, generate_recommendations
from gem_optimizer.engine.rules import STRATEGIES, apply_strategy, select_strategy
from gem_optimizer.engine.settings import FUNCTION_NUMBERS, build_base_settings, coerce_current_settings
from gem_optimizer.models.results import (
    CacheStats,
    OptimizationResult,
    OptimizerStatus,
    PerformancePrediction,
)

logger = logging.getLogger(__name__)

# Value for every function the conservative set does not name.
EMERGENCY_FILL_VALUE = 50

EMERGENCY_SETTINGS: dict[int, float] = {
    n: CONSERVATIVE_SETTINGS.get(n, EMERGENCY_FILL_VALUE) for n in FUNCTION_NUMBERS
}

EMERGENCY_PERFORMANCE = PerformancePrediction(speed=18, range=20, efficiency=70, acceleration=10)

EMERGENCY_RECOMMENDATIONS = (
    "Emergency safe settings applied",
    "Performance may be limited",
    "Review vehicle configuration",
)


def emergency_fallback() -> OptimizationResult:
    """Hard-coded conservative result used when optimization itself fails."""
    return OptimizationResult(
        success=True,
        optimized_settings=dict(EMERGENCY_SETTINGS),
        strategy="emergency_safe",
        performance=EMERGENCY_PERFORMANCE,
        recommendations=list(EMERGENCY_RECOMMENDATIONS),
        confidence=0.6,
        method="emergency_fallback",
        source="safety_defaults",
    )


class RuleBasedOptimizer:
    """Deterministic expert-system optimizer for GEM T2 controller settings.

    Holds only read-only tables plus an optional result cache, so one
    instance can serve concurrent callers.
    """

    def __init__(
        self,
        config: OptimizerConfig | None = None,
        registry: VehicleProfileRegistry | None = None,
    ) -> None:
        self.config = config if config is not None else OptimizerConfig()
        if registry is None:
            registry = VehicleProfileRegistry.with_extra_profiles(
                self.config.extra_profiles, fallback_model=self.config.fallback_model,
            )
        self.registry = registry
        self.cache: OptimizationCache | None = (
            OptimizationCache(self.config.cache_max_entries) if self.config.cache_enabled else None
        )

    # ── Public API ──────────────────────────────────────────────────────

    def optimize(
        self,
        vehicle_data: Any = None,
        priorities: Any = None,
        current_settings: Any = None,
        conditions: Any = None,
        preset: str | None = None,
    ) -> OptimizationResult:
        """Propose controller settings for one vehicle, priorities and conditions.

        Parameters
        ----------
        vehicle_data : VehicleData | dict | str | None
            Vehicle identity; only ``model`` drives profile lookup.
        priorities : Priorities | dict | None
            0-10 weights for speed, range, acceleration, efficiency, hills.
        current_settings : sequence | dict | None
            Existing controller values, index-aligned to F.1..F.25 or keyed
            by function number.
        conditions : EnvironmentalConditions | dict | None
            Temperature, wind, grade, load, surface, humidity.
        preset : str | None
            Key of a named preset (see ``PRESETS``) whose priorities and seed
            settings override the caller's.  Unknown keys are ignored.

        Returns
        -------
        OptimizationResult
            Always ``success=True``.  ``method == "emergency_fallback"`` marks
            the hard-coded safe result returned after an internal failure.
        """
        try:
            return self._optimize(vehicle_data, priorities, current_settings, conditions, preset)
        except Exception:
            logger.exception("Rule-based optimization failed; using emergency fallback")
            return emergency_fallback()

    def status(self) -> OptimizerStatus:
        return OptimizerStatus(
            vehicle_profiles=len(self.registry),
            optimization_rules=len(STRATEGIES),
            performance_models=len(PERFORMANCE_MODELS),
            safety_constraints=len(SAFETY_CONSTRAINTS),
            presets=len(PRESETS),
            fallback_model=self.registry.fallback_model,
            cache=self.cache.stats() if self.cache is not None else CacheStats(enabled=False),
        )

    # ── Pipeline ────────────────────────────────────────────────────────

    def _optimize(
        self,
        vehicle_data: Any,
        priorities: Any,
        current_settings: Any,
        conditions: Any,
        preset: str | None,
    ) -> OptimizationResult:
        vehicle = VehicleData.from_raw(vehicle_data)
        norm_priorities = Priorities.from_raw(priorities)
        norm_conditions = EnvironmentalConditions.from_raw(conditions)
        supplied = coerce_current_settings(current_settings)

        preset_key = None
        if preset is not None:
            chosen = get_preset(preset)
            if chosen is None:
                logger.warning("Unknown preset %r ignored", preset)
            else:
                preset_key = str(preset).strip().lower()
                norm_priorities = chosen.merge_priorities(norm_priorities)
                supplied = chosen.merge_settings(supplied)

        def run() -> OptimizationResult:
            return self._run_pipeline(vehicle, norm_priorities, norm_conditions, supplied, preset_key)

        if self.cache is None:
            return run()

        key = cache_key(
            normalize_model_key(vehicle.model),
            norm_priorities.model_dump(),
            norm_conditions.model_dump(),
            supplied,
            preset_key,
        )
        return self.cache.get_or_compute(key, run)

    def _run_pipeline(
        self,
        vehicle: VehicleData,
        priorities: Priorities,
        conditions: EnvironmentalConditions,
        supplied: dict[int, float],
        preset_key: str | None,
    ) -> OptimizationResult:
        vehicle_key, profile, matched = self.registry.resolve(vehicle.model)
        base = build_base_settings(profile, supplied)

        strategy = select_strategy(priorities, conditions)
        logger.debug("Vehicle %s: strategy %s selected", vehicle_key, strategy.value)

        adjusted = apply_strategy(strategy, base, profile, conditions)
        validated, corrections = validate_settings(
            adjusted, profile, max_passes=self.config.max_validation_passes,
        )
        if len(validated) != NUM_FUNCTIONS:
            raise ValueError(f"settings vector has {len(validated)} entries, expected {NUM_FUNCTIONS}")

        performance = predict_performance(validated, profile, conditions)
        recommendations = generate_recommendations(validated, profile, strategy, performance)
        confidence = compute_confidence(matched, priorities, conditions)

        return OptimizationResult(
            success=True,
            optimized_settings=validated,
            strategy=strategy.value,
            performance=performance,
            recommendations=recommendations,
            confidence=confidence,
            method="rule_based_expert_system",
            source="local_rules",
            corrections=corrections,
            vehicle_key=vehicle_key,
            profile_matched=matched,
            preset=preset_key,
        )
