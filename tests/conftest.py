"""Shared test fixtures: built-in profiles, default inputs, optimizer."""

from __future__ import annotations

import pytest

from gem_optimizer.config import (
    BUILTIN_PROFILES,
    EnvironmentalConditions,
    OptimizerConfig,
    Priorities,
    VehicleProfile,
    VehicleProfileRegistry,
)
from gem_optimizer.engine.optimizer import RuleBasedOptimizer


@pytest.fixture
def e2() -> VehicleProfile:
    return BUILTIN_PROFILES["e2"]


@pytest.fixture
def e4() -> VehicleProfile:
    return BUILTIN_PROFILES["e4"]


@pytest.fixture
def el_xd() -> VehicleProfile:
    return BUILTIN_PROFILES["el-xd"]


@pytest.fixture
def neutral_priorities() -> Priorities:
    return Priorities()


@pytest.fixture
def mild() -> EnvironmentalConditions:
    """70 °F, still air, flat, unloaded."""
    return EnvironmentalConditions()


@pytest.fixture
def registry() -> VehicleProfileRegistry:
    return VehicleProfileRegistry()


@pytest.fixture
def optimizer() -> RuleBasedOptimizer:
    return RuleBasedOptimizer()


@pytest.fixture
def cached_optimizer() -> RuleBasedOptimizer:
    return RuleBasedOptimizer(OptimizerConfig(cache_enabled=True, cache_max_entries=4))
