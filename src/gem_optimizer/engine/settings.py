"""Settings vectors: 25 controller values keyed by function number.

A settings vector is a plain ``dict[int, float]`` over keys 1..25.  The
1-based F.N number is the only index used anywhere in the engine; the
positional list form exists only at the output boundary
(``OptimizationResult.settings_list``).
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from gem_optimizer.config.functions import NUM_FUNCTIONS
from gem_optimizer.config.inputs import as_number
from gem_optimizer.config.vehicle import VehicleProfile

SettingsVector = dict[int, float]

FUNCTION_NUMBERS: tuple[int, ...] = tuple(range(1, NUM_FUNCTIONS + 1))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Controller counts round 220.5 → 221 (``round()`` would give 220).
    """
    return math.floor(value + 0.5)


def _parse_function_number(key: Any) -> int | None:
    """Accept ``4``, ``"4"`` or ``"F.4"`` as function 4."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    text = str(key).strip().upper()
    if text.startswith("F."):
        text = text[2:]
    try:
        return int(text)
    except ValueError:
        return None


def coerce_current_settings(current: Any) -> SettingsVector:
    """Turn caller-supplied settings into a sparse settings vector.

    ``current`` may be a sequence index-aligned to F.1..F.25 (extra entries
    are ignored) or a mapping keyed by function number.  Non-numeric entries
    are dropped.
    """
    result: SettingsVector = {}
    if current is None:
        return result

    if isinstance(current, Mapping):
        pairs = ((_parse_function_number(k), v) for k, v in current.items())
    elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        pairs = zip(FUNCTION_NUMBERS, current)
    else:
        return result

    for number, value in pairs:
        if number is None or not 1 <= number <= NUM_FUNCTIONS:
            continue
        numeric = as_number(value)
        if numeric is not None:
            result[number] = numeric
    return result


def build_base_settings(profile: VehicleProfile, current: Any = None) -> SettingsVector:
    """Starting point for optimization.

    Per function: the caller's value where present and non-zero, else the
    profile's default, else 0.
    """
    supplied = coerce_current_settings(current)
    base: SettingsVector = {}
    for number in FUNCTION_NUMBERS:
        value = supplied.get(number, 0)
        if value == 0:
            value = profile.default_settings.get(number, 0)
        base[number] = value
    return base


def setting_or_default(settings: Mapping[int, float], profile: VehicleProfile, function: int) -> float:
    """Value of ``function``; absent or zero falls back to the profile default."""
    value = settings.get(function)
    if not value:
        value = profile.default_settings[function]
    return value
