#
# ABOUT
# Non-raising validation of firing schedules and their form fields, for
# callers that want a report instead of an exception.

# LICENSE
# This program or module is free software: you can redistribute it and/or
# modify it under the terms of the GNU General Public License as published
# by the Free Software Foundation, either version 2 of the License, or
# version 3 of the License, or (at your option) any later version. It is
# provided for educational purposes and is distributed in the hope that
# it will be useful, but WITHOUT ANY WARRANTY; without even the implied
# warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See
# the GNU General Public License for more details.

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from kilnlib.firing_curve import build_curve, schedule_time_limit
from kilnlib.firing_errors import FiringScheduleError
from kilnlib.firing_limits import (
    COOLING_SNAP_TOLERANCE,
    HOLD_TIME_MAX,
    HOLD_TIME_MIN,
    MAX_FIRING_HOURS,
    PROFILE_DESCRIPTION_MAX_LENGTH,
    PROFILE_NAME_MAX_LENGTH,
    RATE_MAX,
    RATE_MIN,
    START_TEMP_MAX,
    START_TEMP_MIN,
    STOP_TEMP_DEFAULT,
    TARGET_TEMP_MAX,
    TARGET_TEMP_MIN,
)
from kilnlib.firing_segments import CooldownSegment, FiringSegment, HoldSegment, RampSegment
from kilnlib.kiln_presets import CustomPresets

_NEAR_LIMIT_FRACTION = 0.9


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldValidation:
    is_valid: bool
    error: str | None = None


def validate_temperature(
    temp: float,
    minimum: float = TARGET_TEMP_MIN,
    maximum: float = TARGET_TEMP_MAX,
) -> FieldValidation:
    if math.isnan(temp):
        return FieldValidation(False, 'Temperature must be a valid number')
    if temp < minimum:
        return FieldValidation(False, f'Temperature must be at least {minimum:g}C')
    if temp > maximum:
        return FieldValidation(False, f'Temperature must be no more than {maximum:g}C')
    return FieldValidation(True)


def validate_start_temp(temp: float) -> FieldValidation:
    return validate_temperature(temp, START_TEMP_MIN, START_TEMP_MAX)


def validate_rate(rate: float, minimum: float = RATE_MIN, maximum: float = RATE_MAX) -> FieldValidation:
    if math.isnan(rate):
        return FieldValidation(False, 'Rate must be a valid number')
    if rate <= 0:
        return FieldValidation(False, 'Rate must be positive')
    if rate < minimum:
        return FieldValidation(False, f'Rate must be at least {minimum:g}C/h')
    if rate > maximum:
        return FieldValidation(False, f'Rate must be no more than {maximum:g}C/h')
    return FieldValidation(True)


def validate_hold_time(
    minutes: float,
    minimum: float = HOLD_TIME_MIN,
    maximum: float = HOLD_TIME_MAX,
) -> FieldValidation:
    if math.isnan(minutes):
        return FieldValidation(False, 'Hold time must be a valid number')
    if minutes < minimum:
        return FieldValidation(False, f'Hold time must be at least {minimum:g} minutes')
    if minutes > maximum:
        return FieldValidation(False, f'Hold time must be no more than {maximum:g} minutes')
    return FieldValidation(True)


def validate_profile_name(name: str) -> FieldValidation:
    trimmed = name.strip()
    if not trimmed:
        return FieldValidation(False, 'Profile name is required')
    if len(trimmed) > PROFILE_NAME_MAX_LENGTH:
        return FieldValidation(
            False, f'Profile name must be {PROFILE_NAME_MAX_LENGTH} characters or less'
        )
    return FieldValidation(True)


def validate_profile_description(description: str) -> FieldValidation:
    if len(description) > PROFILE_DESCRIPTION_MAX_LENGTH:
        return FieldValidation(
            False, f'Description must be {PROFILE_DESCRIPTION_MAX_LENGTH} characters or less'
        )
    return FieldValidation(True)


# ---------------------------------------------------------------------------
# Whole-schedule validation
# ---------------------------------------------------------------------------

@dataclass
class ScheduleValidationResult:
    """Outcome of a dry-run curve build."""

    is_valid: bool
    total_hours: float
    peak_temp_c: float
    time_limit_hours: float
    point_count: int
    failures: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def summary_lines(self) -> list[str]:
        lines = [
            f'Schedule check: {"PASS" if self.is_valid else "FAIL"} '
            f'(duration={self.total_hours:.2f}h of {self.time_limit_hours:g}h, '
            f'peak={self.peak_temp_c:.0f}C, points={self.point_count})'
        ]
        lines.extend(self.failures)
        lines.extend(self.warnings)
        return lines


def _segment_warnings(segments: Sequence[FiringSegment]) -> list[str]:
    warnings: list[str] = []
    for index, segment in enumerate(segments, start=1):
        if isinstance(segment, RampSegment):
            if segment.rate is None or segment.target_temp is None:
                warnings.append(f'Segment {index}: ramp is missing rate or target and is ignored')
            elif isinstance(segment.rate, (int, float)) and 0 < segment.rate < RATE_MIN:
                warnings.append(f'Segment {index}: ramp rate below {RATE_MIN:g}C/h')
        elif isinstance(segment, HoldSegment) and segment.hold_time is None:
            warnings.append(f'Segment {index}: hold is missing its duration and is ignored')
    return warnings


def validate_firing_schedule(
    segments: Sequence[FiringSegment],
    start_temp: float,
    *,
    custom_presets: CustomPresets = None,
) -> ScheduleValidationResult:
    """Build the curve and report problems instead of raising them."""
    limit = (
        schedule_time_limit(segments) if isinstance(segments, (list, tuple)) else MAX_FIRING_HOURS
    )
    failures: list[str] = []
    warnings: list[str] = []

    try:
        points = build_curve(segments, start_temp, custom_presets=custom_presets)
    except FiringScheduleError as exc:
        failures.append(str(exc))
        return ScheduleValidationResult(
            is_valid=False,
            total_hours=0.0,
            peak_temp_c=0.0,
            time_limit_hours=limit,
            point_count=0,
            failures=failures,
        )

    warnings.extend(_segment_warnings(segments))

    total = points[-1].time
    if total > _NEAR_LIMIT_FRACTION * limit:
        warnings.append(f'Duration margin: {limit - total:.2f}h before the {limit:g}h limit')

    # A cooldown that stalls at the cooling cap ends visibly above its stop temp.
    for index, segment in enumerate(segments, start=1):
        if not isinstance(segment, CooldownSegment):
            continue
        stop = STOP_TEMP_DEFAULT if segment.stop_temp is None else segment.stop_temp
        prefix = build_curve(segments[:index], start_temp, custom_presets=custom_presets)
        if prefix[-1].temp - stop > COOLING_SNAP_TOLERANCE:
            warnings.append(
                f'Segment {index}: cooling stopped at {prefix[-1].temp:.0f}C '
                f'without reaching {stop:g}C'
            )

    return ScheduleValidationResult(
        is_valid=True,
        total_hours=total,
        peak_temp_c=max(p.temp for p in points),
        time_limit_hours=limit,
        point_count=len(points),
        warnings=warnings,
    )
