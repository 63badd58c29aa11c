"""End-to-end tests for RuleBasedOptimizer.optimize.

Covers:
  - Reference scenarios per strategy
  - Safety limits hold for every profile × strategy × condition mix
  - Malformed input never raises
  - Emergency fallback
  - Result cache
  - Status inventory
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from gem_optimizer.config import BUILTIN_PROFILES, OptimizerConfig, VehicleProfile, VehicleProfileRegistry
from gem_optimizer.engine import optimizer as optimizer_module
from gem_optimizer.engine.optimizer import EMERGENCY_SETTINGS, RuleBasedOptimizer, emergency_fallback
from gem_optimizer.engine.rules import STRATEGIES, StrategyName


def _corrected(result):
    return [(c.category, c.function) for c in result.corrections]


# ═══════════════════════════════════════════════════════════════════════════
# Reference scenarios
# ═══════════════════════════════════════════════════════════════════════════

class TestScenarios:
    def test_e4_all_defaults(self, optimizer):
        result = optimizer.optimize({"model": "e4"})

        assert result.success is True
        assert result.method == "rule_based_expert_system"
        assert result.source == "local_rules"
        assert result.strategy == "balanced"
        assert result.vehicle_key == "e4"
        assert result.profile_matched is True

        s = result.optimized_settings
        assert (s[1], s[4], s[6], s[9], s[24]) == (20, 273, 65, 250, 43)
        assert _corrected(result) == [("legal_speed", 1), ("battery_protection", 9)]

        assert result.performance.speed == 20.0
        assert result.performance.range == pytest.approx(74.67)
        assert result.recommendations == [
            "Balanced optimization - good all-around performance",
            "Slow acceleration - consider increasing acceleration setting",
        ]
        assert result.confidence == 0.95

    def test_e2_range_in_the_cold(self, optimizer):
        result = optimizer.optimize({"model": "e2"}, {"range": 8}, None, {"temperature": 30})

        assert result.strategy == "range"
        s = result.optimized_settings
        assert s[1] == 19
        assert s[4] == pytest.approx(243.1)
        assert s[6] == pytest.approx(45.9)
        assert s[9] == 250
        assert s[24] == 41
        assert _corrected(result) == [("battery_protection", 9)]
        assert result.recommendations[:2] == [
            "Optimized for maximum range - gentle acceleration recommended",
            "Top speed reduced - plan for longer travel times",
        ]

    def test_cold_raises_current_over_warm(self, optimizer):
        warm = optimizer.optimize("e2", {"range": 8}, None, {"temperature": 70})
        cold = optimizer.optimize("e2", {"range": 8}, None, {"temperature": 30})
        assert warm.setting(4) == 221
        assert cold.setting(4) - warm.setting(4) == pytest.approx(22.1)

    def test_e4_speed(self, optimizer):
        result = optimizer.optimize("e4", {"speed": 9})

        assert result.strategy == "speed"
        s = result.optimized_settings
        assert (s[1], s[4], s[6], s[9], s[24]) == (20, 299, 72, 228, 47)
        assert _corrected(result) == [("legal_speed", 1)]
        assert result.recommendations[0] == "Optimized for maximum speed - monitor motor temperature"
        assert "High motor current - ensure adequate cooling" in result.recommendations

    def test_speed_selected_for_speed_heavy_priorities(self, optimizer):
        priorities = {"speed": 9, "range": 2, "acceleration": 5, "efficiency": 2, "hills": 0}
        assert optimizer.optimize("e4", priorities).strategy == "speed"

    def test_e4_hills(self, optimizer):
        result = optimizer.optimize("e4", {"hills": 9})

        assert result.strategy == "hills"
        s = result.optimized_settings
        assert (s[1], s[4], s[6], s[9], s[24]) == (20, 256, 75, 250, 49)
        assert [c.category for c in result.corrections] == ["thermal_limits", "legal_speed", "battery_protection"]

    def test_steep_grade_selects_hills(self, optimizer):
        result = optimizer.optimize("e4", {}, None, {"grade": 12})

        assert result.strategy == "hills"
        assert result.setting(4) == pytest.approx(256.0)
        assert result.setting(24) == pytest.approx(53.9)
        assert "High field weakening - monitor for motor overheating" in result.recommendations

    def test_caller_settings_seed_the_base(self, optimizer):
        as_list = optimizer.optimize("e4", current_settings=[0, 0, 0, 300])
        as_dict = optimizer.optimize("e4", current_settings={"F.4": 300})
        assert as_list.setting(4) == 280
        assert as_dict.optimized_settings == as_list.optimized_settings

    def test_unadjusted_caller_values_preserved(self, optimizer):
        result = optimizer.optimize("e4", current_settings={15: 72, 16: 63})
        assert result.setting(15) == 72
        assert result.setting(16) == 63
        assert result.setting(2) == 0

    def test_deterministic(self, optimizer):
        args = ({"model": "el-xd"}, {"speed": 7, "range": 3}, None, {"temperature": 90, "load": 700})
        assert optimizer.optimize(*args) == optimizer.optimize(*args)


class TestUnknownVehicle:
    def test_falls_back_to_e4(self, optimizer, caplog):
        with caplog.at_level(logging.WARNING, logger="gem_optimizer.config.profiles"):
            result = optimizer.optimize({"model": "Polaris Ranger"})
        assert result.vehicle_key == "e4"
        assert result.profile_matched is False
        assert result.method == "rule_based_expert_system"
        assert result.confidence == pytest.approx(0.934)
        assert "Unknown vehicle model" in caplog.text
        assert result.confidence <= optimizer.optimize({"model": "e4"}).confidence

    def test_model_key_is_normalized(self, optimizer):
        result = optimizer.optimize({"model": "  EL XD "})
        assert result.vehicle_key == "el-xd"
        assert result.profile_matched is True

    def test_extra_profile_from_config(self):
        e6 = VehicleProfile(name="GEM e6", default_settings={1: 22, 4: 300, 6: 65, 9: 240, 24: 43})
        optimizer = RuleBasedOptimizer(OptimizerConfig(extra_profiles={"e6": e6}))
        result = optimizer.optimize({"model": "E6"})
        assert result.vehicle_key == "e6"
        assert result.profile_matched is True


# ═══════════════════════════════════════════════════════════════════════════
# Safety limits across the input space
# ═══════════════════════════════════════════════════════════════════════════

PRIORITY_SETS = [
    {},
    {"speed": 10},
    {"range": 10},
    {"efficiency": 10},
    {"hills": 10},
    {"speed": 10, "acceleration": 10},
]

CONDITION_SETS = [
    {},
    {"temperature": -20},
    {"temperature": 110},
    {"grade": 25},
    {"load": 1800},
    {"temperature": 20, "grade": 15, "load": 1200, "windSpeed": 30},
]


class TestSafetyLimits:
    @pytest.mark.parametrize(
        "model, priorities, conditions",
        list(itertools.product(sorted(BUILTIN_PROFILES), PRIORITY_SETS, CONDITION_SETS)),
    )
    def test_limits_hold(self, optimizer, model, priorities, conditions):
        profile = BUILTIN_PROFILES[model]
        result = optimizer.optimize({"model": model}, priorities, None, conditions)
        s = result.optimized_settings

        assert result.method == "rule_based_expert_system"
        assert sorted(s) == list(range(1, 26))
        assert s[1] * 1.2 <= 25
        assert s[1] >= 18
        assert s[4] <= profile.motor.max_current
        assert s[4] <= profile.motor.max_current * 0.8 + 50
        assert 25 <= s[24] <= 60
        assert s[9] <= profile.battery.max_charge_rate * 10
        assert s[6] >= 30

        perf = result.performance
        assert 10 <= perf.speed <= 25
        assert perf.range >= 8
        assert 50 <= perf.efficiency <= 95
        assert 4 <= perf.acceleration <= 15
        assert 0 <= result.confidence <= 0.95

    @pytest.mark.parametrize(
        "model, priorities",
        list(itertools.product(sorted(BUILTIN_PROFILES), PRIORITY_SETS)),
    )
    def test_validated_values_stay_in_strategy_window(self, optimizer, model, priorities):
        result = optimizer.optimize({"model": model}, priorities)
        adjustments = STRATEGIES[StrategyName(result.strategy)].adjustments
        for function in (1, 6, 9, 24):
            window = adjustments[function]
            assert window.min <= result.setting(function) <= window.max, function

    def test_hostile_caller_settings_are_corrected(self, optimizer):
        result = optimizer.optimize("e2", current_settings={1: 99, 4: 999, 6: 1, 9: 999, 24: 999})
        s = result.optimized_settings
        assert s[1] == 20
        assert s[4] <= 280 * 0.8 + 50
        assert s[9] <= 250
        assert 25 <= s[24] <= 60


# ═══════════════════════════════════════════════════════════════════════════
# Malformed input + emergency fallback
# ═══════════════════════════════════════════════════════════════════════════

class TestMalformedInput:
    @pytest.mark.parametrize("vehicle, priorities, current, conditions", [
        (None, None, None, None),
        (42, "fast", "abc", [1, 2, 3]),
        ({"model": None}, {"speed": "very"}, [None, "x", {}], {"temperature": "hot"}),
        ({"model": "e4"}, {"speed": float("nan")}, {"F.x": 3, "99": 5}, {"grade": float("inf")}),
    ])
    def test_never_raises(self, optimizer, vehicle, priorities, current, conditions):
        result = optimizer.optimize(vehicle, priorities, current, conditions)
        assert result.success is True
        assert result.method == "rule_based_expert_system"
        assert len(result.settings_list) == 25


class TestEmergencyFallback:
    def test_internal_failure_returns_emergency_result(self, optimizer, monkeypatch, caplog):
        def broken(*args, **kwargs):
            raise RuntimeError("rule table corrupted")

        monkeypatch.setattr("gem_optimizer.engine.optimizer.apply_strategy", broken)
        with caplog.at_level(logging.ERROR, logger="gem_optimizer.engine.optimizer"):
            result = optimizer.optimize("e4")

        assert result.success is True
        assert result.method == "emergency_fallback"
        assert result.source == "safety_defaults"
        assert result.strategy == "emergency_safe"
        assert result.confidence == 0.6
        assert "emergency fallback" in caplog.text

    def test_broken_profile_triggers_fallback(self):
        broken = VehicleProfile.model_construct(name="broken", motor=None, default_settings={})
        registry = VehicleProfileRegistry({"broken": broken}, fallback_model="broken")
        result = RuleBasedOptimizer(registry=registry).optimize("broken")
        assert result.method == "emergency_fallback"

    def test_emergency_settings(self):
        result = emergency_fallback()
        s = result.optimized_settings
        assert (s[1], s[4], s[6], s[9], s[24]) == (20, 200, 50, 220, 40)
        assert s[2] == 50
        assert len(s) == 25
        assert result.performance.speed == 18
        assert result.recommendations == [
            "Emergency safe settings applied",
            "Performance may be limited",
            "Review vehicle configuration",
        ]

    def test_emergency_settings_not_shared(self):
        emergency_fallback().optimized_settings[1] = 99
        assert EMERGENCY_SETTINGS[1] == 20
        assert emergency_fallback().setting(1) == 20


# ═══════════════════════════════════════════════════════════════════════════
# Cache
# ═══════════════════════════════════════════════════════════════════════════

class TestCache:
    def test_disabled_by_default(self, optimizer):
        assert optimizer.cache is None
        assert optimizer.status().cache.enabled is False

    def test_repeat_returns_same_instance(self, cached_optimizer):
        first = cached_optimizer.optimize("e4", {"range": 7})
        second = cached_optimizer.optimize("E4", {"range": 7.0})
        assert second is first

        stats = cached_optimizer.status().cache
        assert (stats.hits, stats.misses, stats.entries) == (1, 1, 1)

    def test_different_inputs_miss(self, cached_optimizer):
        a = cached_optimizer.optimize("e4", {"range": 7})
        b = cached_optimizer.optimize("e4", {"range": 7}, None, {"temperature": 30})
        assert a is not b

    def test_eviction(self, cached_optimizer):
        for speed in range(6):
            cached_optimizer.optimize("e4", {"speed": speed})
        assert cached_optimizer.status().cache.entries == 4

    def test_concurrent_misses_run_pipeline_once(self, cached_optimizer, monkeypatch):
        calls = []
        real_predict = optimizer_module.predict_performance

        def slow_predict(*args, **kwargs):
            calls.append(threading.get_ident())
            time.sleep(0.2)
            return real_predict(*args, **kwargs)

        monkeypatch.setattr(optimizer_module, "predict_performance", slow_predict)
        barrier = threading.Barrier(8)

        def call(_):
            barrier.wait()
            return cached_optimizer.optimize("e4")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(call, range(8)))

        assert len(calls) == 1
        assert all(r is results[0] for r in results)
        stats = cached_optimizer.status().cache
        assert (stats.misses, stats.hits) == (1, 7)

    def test_failed_computation_not_cached(self, cached_optimizer, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("rule table corrupted")

        monkeypatch.setattr(optimizer_module, "apply_strategy", broken)
        assert cached_optimizer.optimize("e4").method == "emergency_fallback"
        assert cached_optimizer.status().cache.entries == 0

        monkeypatch.undo()
        assert cached_optimizer.optimize("e4").method == "rule_based_expert_system"

    def test_concurrent_callers_get_equal_results(self, cached_optimizer):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: cached_optimizer.optimize("el-xd", {"hills": 8}), range(16)))
        assert all(r == results[0] for r in results)
        assert cached_optimizer.status().cache.entries == 1


# ═══════════════════════════════════════════════════════════════════════════
# Status
# ═══════════════════════════════════════════════════════════════════════════

class TestStatus:
    def test_inventory(self, optimizer):
        status = optimizer.status()
        assert status.vehicle_profiles == 3
        assert status.optimization_rules == 5
        assert status.performance_models == 4
        assert status.safety_constraints == 5
        assert status.presets == 8
        assert status.fallback_model == "e4"
        assert status.ready is True

    def test_custom_registry(self, e2):
        optimizer = RuleBasedOptimizer(registry=VehicleProfileRegistry({"e2": e2}, fallback_model="e2"))
        assert optimizer.status().vehicle_profiles == 1
        assert optimizer.optimize("e4").vehicle_key == "e2"
