"""Result models: optimizer output contracts."""

from gem_optimizer.models.results import (
    CacheStats,
    Correction,
    OptimizationResult,
    OptimizerStatus,
    PerformancePrediction,
)

__all__ = [
    "CacheStats",
    "Correction",
    "OptimizationResult",
    "OptimizerStatus",
    "PerformancePrediction",
]
