"""Named optimization presets: a priority profile plus seed controller values.

Applying a preset overlays its priorities on the caller's and its settings
on the caller's current settings (preset values win).  The result then goes
through the normal strategy and safety pipeline, so seed values outside a
vehicle's limits are corrected like any other input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gem_optimizer.config.functions import NUM_FUNCTIONS
from gem_optimizer.config.inputs import Priorities


class OptimizationPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Display name")
    description: str = ""
    features: tuple[str, ...] = Field(default=(), description="Short selling points shown with the preset")
    priorities: Priorities = Field(
        default_factory=Priorities,
        description="Priorities the preset sets explicitly; unset fields keep the caller's value",
    )
    settings: dict[int, float] = Field(
        default_factory=dict,
        description="Seed controller values keyed by function number",
    )

    @field_validator("settings")
    @classmethod
    def _check_functions(cls, value: dict[int, float]) -> dict[int, float]:
        bad = sorted(k for k in value if not 1 <= k <= NUM_FUNCTIONS)
        if bad:
            raise ValueError(f"preset settings keys must be in 1..{NUM_FUNCTIONS}, got {bad}")
        return value

    def merge_priorities(self, priorities: Priorities) -> Priorities:
        """``priorities`` with this preset's explicit values laid over them."""
        return priorities.model_copy(update=self.priorities.model_dump(exclude_unset=True))

    def merge_settings(self, current: dict[int, float]) -> dict[int, float]:
        return {**current, **self.settings}


def _preset(name, description, features, priorities, settings):
    return OptimizationPreset(
        name=name,
        description=description,
        features=features,
        priorities=Priorities(**priorities),
        settings=settings,
    )


PRESETS: dict[str, OptimizationPreset] = {
    "performance": _preset(
        "Performance",
        "Maximum speed and acceleration for sport driving",
        ("Top speed: +15-20%", "Acceleration: +25%", "Best for: Flat terrain"),
        {"speed": 9, "acceleration": 9, "hills": 3, "range": 3},
        {3: 16, 6: 45, 7: 54, 11: 135, 20: 45, 24: 38},
    ),
    "max-performance": _preset(
        "Max Performance",
        "Absolute maximum speed and acceleration - use with caution",
        ("Top speed: +25-30%", "Acceleration: +35%", "Best for: Experienced users only"),
        {"speed": 10, "acceleration": 10, "hills": 2, "range": 2},
        {3: 12, 6: 40, 7: 51, 11: 150, 20: 50, 24: 30},
    ),
    "daily-commute": _preset(
        "Daily Commute",
        "Balanced efficiency and reliability for daily use",
        ("Range: +10-15%", "Smooth operation", "Best for: Regular commuting"),
        {"range": 8, "speed": 5, "acceleration": 4, "hills": 5},
        {3: 20, 4: 240, 6: 60, 7: 68, 9: 230, 10: 205, 19: 10, 24: 55},
    ),
    "hill-climber": _preset(
        "Hill Climber",
        "Optimized for steep terrain and heavy loads",
        ("Hill grade: +30%", "Torque: Maximum", "Best for: Hilly areas"),
        {"hills": 10, "acceleration": 7, "speed": 4, "range": 4},
        {3: 16, 4: 255, 6: 50, 7: 70, 8: 255, 9: 245, 10: 240, 19: 8, 24: 70},
    ),
    "range-extender": _preset(
        "Range Extender",
        "Maximum efficiency and battery life",
        ("Range: +15-20%", "Gentle acceleration", "Best for: Long routes"),
        {"range": 10, "speed": 3, "acceleration": 2, "hills": 5},
        {3: 25, 4: 235, 6: 70, 7: 65, 9: 240, 10: 210, 19: 10, 24: 55},
    ),
    "lithium-optimized": _preset(
        "Lithium Optimized",
        "Tuned for lithium battery upgrades",
        ("Voltage: 82V capable", "Enhanced regen", "Best for: Li upgrades"),
        {"range": 7, "speed": 7, "acceleration": 6, "hills": 6},
        {7: 75, 9: 245, 10: 225, 14: 7, 15: 82, 19: 8, 24: 60},
    ),
    "motor-protection": _preset(
        "Motor Protection",
        "Conservative settings for aging motors",
        ("Reduced sparking", "Lower heat buildup", "Best for: Old motors"),
        {"range": 5, "speed": 3, "acceleration": 3, "hills": 5},
        {3: 24, 4: 240, 6: 65, 7: 85, 20: 35, 23: 5, 24: 75},
    ),
    "balanced": _preset(
        "Balanced",
        "Well-rounded for general use",
        ("Moderate improvements", "Safe & reliable", "Best for: Most users"),
        {"range": 5, "speed": 5, "acceleration": 5, "hills": 5},
        {3: 18, 4: 245, 6: 55, 7: 65, 9: 235, 10: 200, 19: 10, 24: 55},
    ),
}


def get_preset(name: str | None) -> OptimizationPreset | None:
    """Preset by key (case-insensitive), or ``None`` when unknown."""
    if name is None:
        return None
    return PRESETS.get(str(name).strip().lower())
