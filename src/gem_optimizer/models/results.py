"""Result types: the contract between the optimizer and its consumers.

The PDF report reads ``optimized_settings`` and ``performance``; the results
panel reads ``recommendations`` and ``confidence``; analytics reads
``strategy`` and ``success``.  Serialized with ``by_alias=True`` these
records use the camelCase field names (``optimizedSettings``, ...).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from gem_optimizer.config.functions import NUM_FUNCTIONS

OptimizationMethod = Literal["rule_based_expert_system", "emergency_fallback"]


class _ResultModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════════════════
# Building blocks
# ═══════════════════════════════════════════════════════════════════════════

class Correction(_ResultModel):
    """One value silently changed by the safety validator."""

    category: str
    """Constraint category that failed (e.g. ``thermal_limits``)."""
    function: int
    """Controller function number that was changed (F.N)."""
    before: float
    after: float
    message: str


class PerformancePrediction(_ResultModel):
    """Predicted performance of a settings vector."""

    speed: float
    """Top speed (mph), 10-25."""
    range: float
    """Range on one charge (miles), at least 8."""
    efficiency: float
    """Drive efficiency (%), 50-95."""
    acceleration: float
    """0-20 mph time (s), 4-15."""


class CacheStats(_ResultModel):
    enabled: bool
    entries: int = 0
    hits: int = 0
    misses: int = 0


# ═══════════════════════════════════════════════════════════════════════════
# Optimization result
# ═══════════════════════════════════════════════════════════════════════════

class OptimizationResult(_ResultModel):
    """Output of one ``optimize`` call.  Never mutated after construction."""

    success: bool = True
    optimized_settings: dict[int, float]
    """Controller values keyed by function number 1..25."""
    strategy: str
    performance: PerformancePrediction
    recommendations: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=1)
    method: OptimizationMethod = "rule_based_expert_system"
    source: str = "local_rules"
    corrections: list[Correction] = Field(default_factory=list)
    """Every value the safety validator changed, in the order applied."""
    vehicle_key: str | None = None
    """Profile actually used (the fallback key when the model was unknown)."""
    profile_matched: bool = False
    preset: str | None = None
    """Preset key applied to the request, if any."""

    @computed_field
    @property
    def settings_list(self) -> list[float]:
        """Settings as an F.1..F.25 ordered list (index 0 is F.1)."""
        return [self.optimized_settings.get(n, 0) for n in range(1, NUM_FUNCTIONS + 1)]

    def setting(self, function: int) -> float:
        return self.optimized_settings[function]


class OptimizerStatus(_ResultModel):
    """Inventory of an optimizer instance's knowledge base."""

    vehicle_profiles: int
    optimization_rules: int
    performance_models: int
    safety_constraints: int
    presets: int = 0
    fallback_model: str
    cache: CacheStats
    ready: bool = True
