"""GEM controller optimizer: rule-based tuning of T2 controller settings."""

from gem_optimizer.engine.optimizer import RuleBasedOptimizer
from gem_optimizer.models.results import OptimizationResult

__version__ = "1.0.0"

__all__ = ["RuleBasedOptimizer", "OptimizationResult", "__version__"]
