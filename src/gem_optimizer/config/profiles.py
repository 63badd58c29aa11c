"""Vehicle profile registry: built-in GEM archetypes + lookup with fallback."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from gem_optimizer.config.vehicle import (
    AerodynamicsSpec,
    BatterySpec,
    DrivetrainSpec,
    MotorSpec,
    VehicleProfile,
    WeightSpec,
)

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_MODEL = "e4"


# ═══════════════════════════════════════════════════════════════════════════
# Built-in profiles
# ═══════════════════════════════════════════════════════════════════════════

BUILTIN_PROFILES: dict[str, VehicleProfile] = {
    "e2": VehicleProfile(
        name="GEM e2",
        motor=MotorSpec(type="AC", max_current=280, nominal_voltage=72, max_rpm=2800, efficiency=0.85),
        battery=BatterySpec(nominal_voltage=72, capacity_ah=150, chemistry="AGM", max_charge_rate=25),
        drivetrain=DrivetrainSpec(gear_ratio=12.44, wheel_diameter=18, max_speed=25),
        weight=WeightSpec(curb_lbs=1250, max_gvw_lbs=2000),
        aerodynamics=AerodynamicsSpec(drag_coefficient=0.60, frontal_area=2.2),
        default_settings={1: 22, 4: 245, 6: 60, 9: 225, 24: 43},
    ),
    "e4": VehicleProfile(
        name="GEM e4",
        motor=MotorSpec(type="AC", max_current=320, nominal_voltage=72, max_rpm=2800, efficiency=0.88),
        battery=BatterySpec(nominal_voltage=72, capacity_ah=200, chemistry="AGM", max_charge_rate=25),
        drivetrain=DrivetrainSpec(gear_ratio=12.44, wheel_diameter=18, max_speed=25),
        weight=WeightSpec(curb_lbs=1400, max_gvw_lbs=2200),
        aerodynamics=AerodynamicsSpec(drag_coefficient=0.62, frontal_area=2.4),
        default_settings={1: 22, 4: 260, 6: 65, 9: 240, 24: 43},
    ),
    "el-xd": VehicleProfile(
        name="GEM eL XD",
        motor=MotorSpec(type="AC", max_current=350, nominal_voltage=72, max_rpm=2800, efficiency=0.90),
        battery=BatterySpec(nominal_voltage=72, capacity_ah=250, chemistry="Lithium", max_charge_rate=40),
        drivetrain=DrivetrainSpec(gear_ratio=10.35, wheel_diameter=18, max_speed=25),
        weight=WeightSpec(curb_lbs=1350, max_gvw_lbs=2150),
        aerodynamics=AerodynamicsSpec(drag_coefficient=0.58, frontal_area=2.3),
        default_settings={1: 22, 4: 280, 6: 70, 9: 260, 24: 45},
    ),
}


def normalize_model_key(identifier: str | None) -> str:
    """``"  EL XD "`` → ``"el-xd"``: lower-case, whitespace runs become hyphens."""
    if identifier is None:
        return ""
    return re.sub(r"\s+", "-", str(identifier).strip().lower())


# ═══════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════

class VehicleProfileRegistry:
    """Read-only lookup of vehicle profiles by model key.

    Lookups never raise: an unknown model resolves to the fallback profile
    and a warning is logged.
    """

    def __init__(
        self,
        profiles: Mapping[str, VehicleProfile] | None = None,
        fallback_model: str = DEFAULT_FALLBACK_MODEL,
    ) -> None:
        source = BUILTIN_PROFILES if profiles is None else profiles
        self._profiles: dict[str, VehicleProfile] = {
            normalize_model_key(k): v for k, v in source.items()
        }
        fallback_key = normalize_model_key(fallback_model)
        if fallback_key not in self._profiles:
            raise ValueError(
                f"Fallback model '{fallback_model}' is not a registered profile "
                f"(known: {sorted(self._profiles)})"
            )
        self.fallback_model = fallback_key

    @classmethod
    def with_extra_profiles(
        cls,
        extra: Mapping[str, VehicleProfile],
        fallback_model: str = DEFAULT_FALLBACK_MODEL,
    ) -> "VehicleProfileRegistry":
        """Built-in profiles plus ``extra`` (which win on key collisions)."""
        merged = dict(BUILTIN_PROFILES)
        merged.update({normalize_model_key(k): v for k, v in extra.items()})
        return cls(merged, fallback_model=fallback_model)

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and normalize_model_key(identifier) in self._profiles

    @property
    def keys(self) -> list[str]:
        return sorted(self._profiles)

    def items(self) -> list[tuple[str, VehicleProfile]]:
        return sorted(self._profiles.items())

    def resolve(self, identifier: str | None) -> tuple[str, VehicleProfile, bool]:
        """Return ``(key, profile, matched)``.

        ``matched`` is ``False`` when the fallback profile was substituted.
        """
        key = normalize_model_key(identifier)
        profile = self._profiles.get(key)
        if profile is not None:
            return key, profile, True

        logger.warning(
            "Unknown vehicle model %r, using %s profile", identifier, self.fallback_model,
        )
        return self.fallback_model, self._profiles[self.fallback_model], False

    def get_profile(self, identifier: str | None) -> VehicleProfile:
        return self.resolve(identifier)[1]
