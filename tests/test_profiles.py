"""Tests for config/vehicle.py + config/profiles.py: profiles and registry lookup."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from gem_optimizer.config.profiles import (
    BUILTIN_PROFILES,
    VehicleProfileRegistry,
    normalize_model_key,
)
from gem_optimizer.config.vehicle import REQUIRED_DEFAULT_FUNCTIONS, MotorSpec, VehicleProfile


# ═══════════════════════════════════════════════════════════════════════════
# Built-in profiles
# ═══════════════════════════════════════════════════════════════════════════

class TestBuiltinProfiles:
    def test_three_archetypes(self):
        assert set(BUILTIN_PROFILES) == {"e2", "e4", "el-xd"}

    @pytest.mark.parametrize("key", ["e2", "e4", "el-xd"])
    def test_required_defaults_present(self, key):
        assert REQUIRED_DEFAULT_FUNCTIONS <= set(BUILTIN_PROFILES[key].default_settings)

    def test_e4_values(self, e4):
        assert e4.motor.max_current == 320
        assert e4.motor.efficiency == 0.88
        assert e4.battery.capacity_ah == 200
        assert e4.battery.max_charge_rate == 25
        assert e4.weight.curb_lbs == 1400
        assert e4.default_settings[4] == 260

    def test_el_xd_is_lithium(self, el_xd):
        assert el_xd.battery.chemistry == "Lithium"
        assert el_xd.battery.max_charge_rate == 40
        assert el_xd.drivetrain.gear_ratio == 10.35

    def test_profiles_are_frozen(self, e4):
        with pytest.raises(ValidationError):
            e4.name = "changed"

    def test_default_for(self, e2):
        assert e2.default_for(9) == 225
        assert e2.default_for(2) is None


class TestProfileValidation:
    def test_missing_required_default_rejected(self):
        with pytest.raises(ValidationError):
            VehicleProfile(default_settings={1: 22, 4: 260, 6: 65, 9: 240})

    def test_out_of_range_function_rejected(self):
        with pytest.raises(ValidationError):
            VehicleProfile(default_settings={1: 22, 4: 260, 6: 65, 9: 240, 24: 43, 30: 1})

    def test_zero_motor_current_rejected(self):
        with pytest.raises(ValidationError):
            MotorSpec(max_current=0)

    def test_efficiency_above_one_rejected(self):
        with pytest.raises(ValidationError):
            MotorSpec(efficiency=1.2)


# ═══════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════

class TestNormalizeModelKey:
    @pytest.mark.parametrize("raw, expected", [
        ("e4", "e4"),
        ("E4", "e4"),
        ("  eL XD ", "el-xd"),
        ("EL   XD", "el-xd"),
        ("el-xd", "el-xd"),
        (None, ""),
    ])
    def test_normalization(self, raw, expected):
        assert normalize_model_key(raw) == expected


class TestRegistry:
    def test_exact_lookup(self, registry, e2):
        key, profile, matched = registry.resolve("e2")
        assert key == "e2"
        assert profile is e2
        assert matched is True

    def test_case_and_whitespace_insensitive(self, registry, el_xd):
        assert registry.get_profile("EL XD") is el_xd

    def test_unknown_falls_back_to_e4(self, registry, e4, caplog):
        with caplog.at_level(logging.WARNING, logger="gem_optimizer.config.profiles"):
            key, profile, matched = registry.resolve("zzz-unknown")
        assert key == "e4"
        assert profile is e4
        assert matched is False
        assert "zzz-unknown" in caplog.text

    def test_empty_model_falls_back(self, registry, e4):
        assert registry.get_profile("") is e4
        assert registry.get_profile(None) is e4

    def test_contains(self, registry):
        assert "E2" in registry
        assert "e6" not in registry
        assert 4 not in registry

    def test_keys_sorted(self, registry):
        assert registry.keys == ["e2", "e4", "el-xd"]
        assert len(registry) == 3

    def test_custom_fallback(self, e2):
        reg = VehicleProfileRegistry(fallback_model="e2")
        assert reg.get_profile("nope") is e2

    def test_unknown_fallback_rejected(self):
        with pytest.raises(ValueError):
            VehicleProfileRegistry(fallback_model="e9")

    def test_extra_profiles_added(self):
        custom = VehicleProfile(name="Custom e6", motor=MotorSpec(max_current=400))
        reg = VehicleProfileRegistry.with_extra_profiles({"E6 Custom": custom})
        assert reg.get_profile("e6 custom") is custom
        assert "e4" in reg
        assert len(reg) == 4
