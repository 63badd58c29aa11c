"""Controller function catalog: what each F.N setting means.

The T2 controller exposes its tunables as numbered functions.  Only F.1 to
F.25 take part in optimization; the catalog records the label, category,
unit, raw register range and factory value for each so that results can be
presented alongside their meaning.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Number of controller functions carried by a settings vector.
NUM_FUNCTIONS = 25

# Function numbers read by the rule tables, constraints and models.
SPEED_SCALING = 1
MAX_ARMATURE_CURRENT = 4
ACCEL_RATE = 6
REGEN_CURRENT = 9
FIELD_WEAKENING = 24

FunctionCategory = Literal["speed", "motor", "battery", "safety", "diagnostic"]


class ControllerFunction(BaseModel):
    """Metadata for one controller function."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1, le=NUM_FUNCTIONS, description="Function number (F.N)")
    name: str
    category: FunctionCategory
    description: str = ""
    units: str = "Counts"
    raw_min: float = 0
    raw_max: float = 255
    factory_default: float = 0

    @property
    def label(self) -> str:
        return f"F.{self.number}"


def _fn(number, name, category, description, factory_default, raw_max=255, raw_min=0, units="Counts"):
    return ControllerFunction(
        number=number, name=name, category=category, description=description,
        units=units, raw_min=raw_min, raw_max=raw_max, factory_default=factory_default,
    )


CONTROLLER_FUNCTIONS: dict[int, ControllerFunction] = {
    f.number: f
    for f in (
        _fn(1, "MPH Scaling", "speed", "Sets the top speed of the vehicle", 22),
        _fn(2, "Reserved", "diagnostic", "Reserved for future use", 0, units="N/A"),
        _fn(3, "Controlled Acceleration", "speed", "Controls acceleration rate and smoothness", 20, raw_max=50),
        _fn(4, "Max Armature Current", "motor", "Maximum current allowed to the motor armature", 255),
        _fn(5, "Plug Current", "motor", "Current limit during plug braking", 255),
        _fn(6, "Armature Accel Rate", "speed", "Rate of armature current increase during acceleration", 60),
        _fn(7, "Minimum Field Current", "motor", "Minimum field current to prevent motor damage", 59),
        _fn(8, "Maximum Field Current", "motor", "Maximum field current allowed", 241),
        _fn(9, "Regen Armature Current", "battery", "Current during regenerative braking", 221),
        _fn(10, "Regen Max Field Current", "battery", "Maximum field current during regeneration", 180),
        _fn(11, "Turf Speed Limit", "speed", "Speed limit in turf/turtle mode", 122),
        _fn(12, "Reverse Speed Limit", "speed", "Maximum speed in reverse", 149),
        _fn(13, "Reserved", "diagnostic", "Reserved for future use", 0, units="N/A"),
        _fn(14, "IR Compensation", "battery", "Compensates for battery internal resistance", 3, raw_max=20),
        _fn(15, "Battery Volts", "battery", "Nominal battery pack voltage", 72, raw_min=48, raw_max=96, units="Volts"),
        _fn(16, "Low Battery Volts", "battery", "Low voltage cutoff threshold", 63),
        _fn(17, "Pack Over Temp", "safety", "Battery temperature limit", 0),
        _fn(18, "Reserved", "diagnostic", "Reserved for future use", 0, units="N/A"),
        _fn(19, "Field Ramp Rate", "motor", "Rate of field current change", 12),
        _fn(20, "MPH Overspeed", "safety", "Overspeed protection threshold", 40),
        _fn(21, "Handbrake", "safety", "Handbrake/parking brake function", 0, raw_max=1, units="Boolean"),
        _fn(22, "Odometer Calibration", "diagnostic", "Calibrates odometer for tire size", 122),
        _fn(23, "Error Compensation", "diagnostic", "Error detection sensitivity", 10),
        _fn(24, "Field Weakening Start", "motor", "Speed at which field weakening begins", 43),
        _fn(25, "Pedal Enable", "safety", "Enables/disables accelerator pedal", 1, raw_max=1, units="Boolean"),
    )
}


def get_function(number: int) -> ControllerFunction:
    """Catalog entry for F.``number``.  Raises ``KeyError`` outside 1-25."""
    return CONTROLLER_FUNCTIONS[number]


def function_label(number: int) -> str:
    """``"F.4 Max Armature Current"`` style label."""
    fn = CONTROLLER_FUNCTIONS.get(number)
    if fn is None:
        return f"F.{number}"
    return f"{fn.label} {fn.name}"
