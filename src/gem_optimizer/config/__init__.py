"""Configuration models: vehicle profiles, request inputs, service settings."""

from gem_optimizer.config.vehicle import (
    AerodynamicsSpec,
    BatterySpec,
    DrivetrainSpec,
    MotorSpec,
    VehicleProfile,
    WeightSpec,
)
from gem_optimizer.config.profiles import BUILTIN_PROFILES, VehicleProfileRegistry
from gem_optimizer.config.inputs import EnvironmentalConditions, Priorities, VehicleData
from gem_optimizer.config.functions import CONTROLLER_FUNCTIONS, ControllerFunction
from gem_optimizer.config.presets import PRESETS, OptimizationPreset, get_preset
from gem_optimizer.config.settings import OptimizerConfig, ServerSettings, load_config

__all__ = [
    "AerodynamicsSpec",
    "BatterySpec",
    "DrivetrainSpec",
    "MotorSpec",
    "VehicleProfile",
    "WeightSpec",
    "BUILTIN_PROFILES",
    "VehicleProfileRegistry",
    "EnvironmentalConditions",
    "Priorities",
    "VehicleData",
    "CONTROLLER_FUNCTIONS",
    "ControllerFunction",
    "PRESETS",
    "OptimizationPreset",
    "get_preset",
    "OptimizerConfig",
    "ServerSettings",
    "load_config",
]
