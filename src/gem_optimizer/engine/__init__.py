"""Engine: rule tables, safety constraints, performance models, optimizer."""

from gem_optimizer.engine.rules import (
    STRATEGIES,
    StrategyName,
    apply_environmental_overrides,
    apply_strategy,
    select_strategy,
)
from gem_optimizer.engine.constraints import SAFETY_CONSTRAINTS, ConstraintCategory, validate_settings
from gem_optimizer.engine.performance import PERFORMANCE_MODELS, predict_performance
from gem_optimizer.engine.recommendations import compute_confidence, generate_recommendations
from gem_optimizer.engine.cache import OptimizationCache
from gem_optimizer.engine.optimizer import EMERGENCY_SETTINGS, RuleBasedOptimizer, emergency_fallback

__all__ = [
    "STRATEGIES",
    "StrategyName",
    "apply_environmental_overrides",
    "apply_strategy",
    "select_strategy",
    "SAFETY_CONSTRAINTS",
    "ConstraintCategory",
    "validate_settings",
    "PERFORMANCE_MODELS",
    "predict_performance",
    "compute_confidence",
    "generate_recommendations",
    "OptimizationCache",
    "EMERGENCY_SETTINGS",
    "RuleBasedOptimizer",
    "emergency_fallback",
]
