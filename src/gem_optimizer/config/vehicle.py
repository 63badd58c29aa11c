"""Vehicle profile: motor, battery, drivetrain and controller defaults."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Controller functions every profile must carry a default for.  The rule
# tables and the performance models read these five directly.
REQUIRED_DEFAULT_FUNCTIONS: frozenset[int] = frozenset({1, 4, 6, 9, 24})


class MotorSpec(BaseModel):
    """Traction motor limits."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(default="AC", description="Motor technology (AC, DC series, ...)")
    max_current: float = Field(default=320.0, gt=0, description="Maximum armature current (A)")
    nominal_voltage: float = Field(default=72.0, gt=0, description="Nominal motor voltage (V)")
    max_rpm: float = Field(default=2800.0, gt=0, description="Maximum shaft speed (rpm)")
    efficiency: float = Field(default=0.88, gt=0, le=1.0, description="Motor + inverter efficiency (0-1)")


class BatterySpec(BaseModel):
    """Traction pack limits."""

    model_config = ConfigDict(frozen=True)

    nominal_voltage: float = Field(default=72.0, gt=0, description="Pack voltage (V)")
    capacity_ah: float = Field(default=200.0, gt=0, description="Rated capacity (Ah)")
    chemistry: str = Field(default="AGM", description="Cell chemistry (AGM, Lithium, ...)")
    max_charge_rate: float = Field(
        default=25.0, gt=0,
        description="Maximum charge rate (A).  Regen current is limited to 10x this value.",
    )


class DrivetrainSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    gear_ratio: float = Field(default=12.44, gt=0, description="Final drive ratio")
    wheel_diameter: float = Field(default=18.0, gt=0, description="Wheel diameter (in)")
    max_speed: float = Field(default=25.0, gt=0, description="Design top speed (mph)")


class WeightSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    curb_lbs: float = Field(default=1400.0, gt=0, description="Curb weight (lbs)")
    max_gvw_lbs: float = Field(default=2200.0, gt=0, description="Gross vehicle weight rating (lbs)")


class AerodynamicsSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    drag_coefficient: float = Field(default=0.62, gt=0, description="Cd")
    frontal_area: float = Field(default=2.4, gt=0, description="Frontal area (m²)")


class VehicleProfile(BaseModel):
    """One vehicle archetype, built once and never mutated.

    ``default_settings`` is keyed by the 1-based controller function number
    (F.1 → ``1``), the same convention used by every settings vector in the
    package.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="GEM e4", description="Human label")
    motor: MotorSpec = Field(default_factory=MotorSpec)
    battery: BatterySpec = Field(default_factory=BatterySpec)
    drivetrain: DrivetrainSpec = Field(default_factory=DrivetrainSpec)
    weight: WeightSpec = Field(default_factory=WeightSpec)
    aerodynamics: AerodynamicsSpec = Field(default_factory=AerodynamicsSpec)
    default_settings: dict[int, float] = Field(
        default_factory=lambda: {1: 22, 4: 260, 6: 65, 9: 240, 24: 43},
        description="Factory controller values keyed by function number (1-25)",
    )

    @model_validator(mode="after")
    def _check_default_settings(self) -> "VehicleProfile":
        missing = REQUIRED_DEFAULT_FUNCTIONS - set(self.default_settings)
        if missing:
            raise ValueError(
                f"default_settings must define functions {sorted(REQUIRED_DEFAULT_FUNCTIONS)}; "
                f"missing {sorted(missing)}"
            )
        out_of_range = [k for k in self.default_settings if not 1 <= k <= 25]
        if out_of_range:
            raise ValueError(f"default_settings keys must be in 1..25, got {sorted(out_of_range)}")
        return self

    def default_for(self, function: int) -> float | None:
        """Factory default for ``function``, or ``None`` when the profile has none."""
        return self.default_settings.get(function)
