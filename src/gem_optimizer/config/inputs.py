"""Per-request inputs: vehicle identity, driving priorities, conditions.

Every field is normalized rather than validated: absent, non-numeric or
non-finite values fall back to their defaults and out-of-range numbers are
clamped.  Building one of these models from caller data never raises for
bad values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

Surface = Literal["paved", "gravel", "grass", "dirt"]
SURFACES: tuple[str, ...] = ("paved", "gravel", "grass", "dirt")


def as_number(value: Any, default: float | None = None) -> float | None:
    """Coerce ``value`` to a finite float, or return ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class _NormalizedModel(BaseModel):
    """Shared plumbing: camelCase aliases, frozen, extra keys ignored."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # (lo, hi) per numeric field; subclasses fill this in.
    field_bounds: ClassVar[dict[str, tuple[float, float]]] = {}

    @classmethod
    def from_raw(cls, raw: Any):
        """Build from a model, a mapping or ``None`` (→ all defaults)."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, Mapping):
            return cls.model_validate(dict(raw))
        return cls()

    @classmethod
    def _normalize_number(cls, value: Any, info: ValidationInfo) -> float:
        field = cls.model_fields[info.field_name]
        number = as_number(value, field.default)
        lo, hi = cls.field_bounds.get(info.field_name, (-math.inf, math.inf))
        return clamp(number, lo, hi)


# ═══════════════════════════════════════════════════════════════════════════
# Vehicle identity
# ═══════════════════════════════════════════════════════════════════════════

class VehicleData(_NormalizedModel):
    """What the vehicle-configuration form knows about the car.

    Only ``model`` drives profile lookup; the rest travels with the request
    for the collaborators that display it.
    """

    model: str = Field(default="", description="Model identifier, e.g. 'e4' or 'eL XD'")
    year: int | None = Field(default=None, description="Model year")
    motor_type: str | None = Field(default=None, description="Motor type as entered by the user")
    battery_capacity: float | None = Field(default=None, description="Pack capacity as entered (Ah)")
    condition: str | None = Field(default=None, description="Free-text motor/vehicle condition")

    @field_validator("model", mode="before")
    @classmethod
    def _coerce_model(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> int | None:
        number = as_number(value)
        return None if number is None else int(number)

    @field_validator("battery_capacity", mode="before")
    @classmethod
    def _coerce_capacity(cls, value: Any) -> float | None:
        return as_number(value)

    @field_validator("motor_type", "condition", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @classmethod
    def from_raw(cls, raw: Any) -> "VehicleData":
        if isinstance(raw, str):
            return cls(model=raw)
        return super().from_raw(raw)


# ═══════════════════════════════════════════════════════════════════════════
# Priorities
# ═══════════════════════════════════════════════════════════════════════════

class Priorities(_NormalizedModel):
    """Driving priorities on a 0-10 scale.  5 is neutral; hills defaults to 0."""

    field_bounds: ClassVar[dict[str, tuple[float, float]]] = {
        name: (0.0, 10.0) for name in ("speed", "range", "acceleration", "efficiency", "hills")
    }

    speed: float = Field(default=5.0, ge=0, le=10)
    range: float = Field(default=5.0, ge=0, le=10)
    acceleration: float = Field(default=5.0, ge=0, le=10)
    efficiency: float = Field(default=5.0, ge=0, le=10)
    hills: float = Field(default=0.0, ge=0, le=10)

    @field_validator("speed", "range", "acceleration", "efficiency", "hills", mode="before")
    @classmethod
    def _normalize(cls, value: Any, info: ValidationInfo) -> float:
        return cls._normalize_number(value, info)

    def values(self) -> list[float]:
        return [self.speed, self.range, self.acceleration, self.efficiency, self.hills]


# ═══════════════════════════════════════════════════════════════════════════
# Environmental conditions
# ═══════════════════════════════════════════════════════════════════════════

class EnvironmentalConditions(_NormalizedModel):
    """Weather, terrain and payload for the trip being optimized."""

    field_bounds: ClassVar[dict[str, tuple[float, float]]] = {
        "temperature": (-40.0, 130.0),
        "wind_speed": (0.0, 100.0),
        "grade": (0.0, 30.0),
        "load": (0.0, 2000.0),
        "humidity": (0.0, 100.0),
    }

    temperature: float = Field(default=70.0, description="Ambient temperature (°F)")
    wind_speed: float = Field(default=0.0, description="Wind speed (mph)")
    grade: float = Field(default=0.0, description="Road grade (%)")
    load: float = Field(default=0.0, description="Payload above curb weight (lbs)")
    surface: Surface = Field(default="paved", description="Road surface")
    humidity: float = Field(default=50.0, description="Relative humidity (%)")

    @field_validator("temperature", "wind_speed", "grade", "load", "humidity", mode="before")
    @classmethod
    def _normalize(cls, value: Any, info: ValidationInfo) -> float:
        return cls._normalize_number(value, info)

    @field_validator("surface", mode="before")
    @classmethod
    def _normalize_surface(cls, value: Any) -> str:
        text = str(value).strip().lower() if value is not None else ""
        return text if text in SURFACES else "paved"
