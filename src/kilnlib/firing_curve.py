#
# ABOUT
# Turns a kiln firing schedule into a time-temperature curve: linear ramps,
# holds, and passive cooling following Newton's law of cooling.

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

import logging
import math
import numbers
from collections.abc import Sequence
from typing import Final, TYPE_CHECKING

import numpy as np

from kilnlib.firing_errors import (
    CalculationError,
    InvalidInputError,
    InvalidSegmentError,
    ScheduleTooLongError,
)
from kilnlib.firing_limits import (
    AMBIENT_TEMP_DEFAULT,
    COOLING_K_MAX,
    COOLING_MAX_HOURS,
    COOLING_SNAP_TOLERANCE,
    COOLING_STEP_HOURS,
    HOLD_TIME_MAX,
    HOLD_TIME_MIN,
    MAX_FIRING_HOURS,
    MAX_FIRING_HOURS_WITH_COOLDOWN,
    MINUTES_PER_HOUR,
    RATE_MAX,
    START_TEMP_MAX,
    START_TEMP_MIN,
    STOP_TEMP_DEFAULT,
    TARGET_TEMP_MAX,
    TARGET_TEMP_MIN,
)
from kilnlib.firing_segments import (
    CooldownSegment,
    CurvePoint,
    FiringSegment,
    HoldSegment,
    RampSegment,
)
from kilnlib.kiln_presets import CustomPresets, cooling_coefficient

if TYPE_CHECKING:
    from numpy.typing import NDArray  # pylint: disable=unused-import


_log: Final[logging.Logger] = logging.getLogger(__name__)

_SegmentResult = tuple[list[CurvePoint], float, float]


def _is_finite_real(value: object) -> bool:
    """True for real, finite numbers; bools are rejected."""
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def schedule_time_limit(segments: Sequence[object]) -> float:
    """Total-time ceiling in hours: longer once the schedule cools naturally."""
    if any(isinstance(s, CooldownSegment) for s in segments):
        return MAX_FIRING_HOURS_WITH_COOLDOWN
    return MAX_FIRING_HOURS


# ---------------------------------------------------------------------------
# Natural cooling
# ---------------------------------------------------------------------------

def cooling_curve(
    start_time: float,
    start_temp: float,
    ambient_temp: float,
    stop_temp: float,
    k: float,
) -> list[CurvePoint]:
    """Sample Newton cooling from ``(start_time, start_temp)``.

    ``T(t) = ambient + (T0 - ambient) * exp(-k * t)`` is evaluated every
    :data:`COOLING_STEP_HOURS` until the temperature drops to ``stop_temp``
    or :data:`COOLING_MAX_HOURS` of cooling have elapsed. The returned list
    includes the start point. A last point within
    :data:`COOLING_SNAP_TOLERANCE` of ``stop_temp`` is snapped onto it.
    """
    points = [CurvePoint(time=start_time, temp=start_temp)]
    if start_temp <= stop_temp:
        return points

    n_max = int(round(COOLING_MAX_HOURS / COOLING_STEP_HOURS))
    elapsed = np.arange(1, n_max + 1, dtype=np.float64) * COOLING_STEP_HOURS
    temps = ambient_temp + (start_temp - ambient_temp) * np.exp(-k * elapsed)

    reached = temps <= stop_temp
    if np.any(reached):
        n = int(np.argmax(reached)) + 1
    else:
        n = n_max
        _log.info(
            'Cooling cap of %.0f h hit at %.1f C before reaching %.1f C (k=%.3f)',
            COOLING_MAX_HOURS, float(temps[-1]), stop_temp, k,
        )

    times = start_time + elapsed[:n]
    temps = temps[:n].copy()
    if abs(temps[-1] - stop_temp) <= COOLING_SNAP_TOLERANCE:
        temps[-1] = stop_temp

    points.extend(
        CurvePoint(time=float(t), temp=float(temp))
        for t, temp in zip(times, temps, strict=True)
    )
    return points


# ---------------------------------------------------------------------------
# Per-segment application
# ---------------------------------------------------------------------------

def _apply_ramp(segment: RampSegment, index: int, time: float, temp: float) -> _SegmentResult:
    rate, target = segment.rate, segment.target_temp
    if rate is None or target is None:
        return [], time, temp

    if not _is_finite_real(rate) or not 0.0 < rate <= RATE_MAX:
        raise InvalidSegmentError(f'Invalid ramp rate at segment {index}: {rate!r}', index)
    if not _is_finite_real(target) or not TARGET_TEMP_MIN <= target <= TARGET_TEMP_MAX:
        raise InvalidSegmentError(f'Invalid target temperature at segment {index}: {target!r}', index)

    duration = abs(target - temp) / rate
    if not math.isfinite(duration):
        raise CalculationError(f'Invalid time calculation at segment {index}', index)

    new_time = time + duration
    new_temp = float(target)
    return [CurvePoint(time=new_time, temp=new_temp)], new_time, new_temp


def _apply_hold(segment: HoldSegment, index: int, time: float, temp: float) -> _SegmentResult:
    hold = segment.hold_time
    if hold is None:
        return [], time, temp

    if not _is_finite_real(hold) or not HOLD_TIME_MIN <= hold <= HOLD_TIME_MAX:
        raise InvalidSegmentError(f'Invalid hold time at segment {index}: {hold!r}', index)

    new_time = time + hold / MINUTES_PER_HOUR
    if not math.isfinite(new_time):
        raise CalculationError(f'Invalid time calculation at segment {index}', index)
    return [CurvePoint(time=new_time, temp=temp)], new_time, temp


def _apply_cooldown(
    segment: CooldownSegment,
    index: int,
    time: float,
    temp: float,
    custom_presets: CustomPresets,
) -> _SegmentResult:
    custom = segment.cooling_coefficient
    if custom is not None and (
        not isinstance(custom, numbers.Real) or isinstance(custom, bool) or custom > COOLING_K_MAX
    ):
        raise InvalidSegmentError(f'Invalid cooling coefficient at segment {index}: {custom!r}', index)

    k = cooling_coefficient(
        segment.kiln_preset_id,
        segment.cooling_speed,
        custom,
        custom_presets=custom_presets,
    )
    if not _is_finite_real(k) or not 0.0 < k <= COOLING_K_MAX:
        raise InvalidSegmentError(f'Invalid cooling coefficient at segment {index}: {k!r}', index)

    ambient = AMBIENT_TEMP_DEFAULT if segment.ambient_temp is None else segment.ambient_temp
    if not _is_finite_real(ambient) or ambient > temp:
        raise InvalidSegmentError(
            f'Invalid ambient temperature at segment {index}: {ambient!r} '
            f'(must not exceed the current {temp:g} C)',
            index,
        )

    stop = STOP_TEMP_DEFAULT if segment.stop_temp is None else segment.stop_temp
    if not _is_finite_real(stop) or not 0.0 <= stop <= temp:
        raise InvalidSegmentError(
            f'Invalid stop temperature at segment {index}: {stop!r} '
            f'(must be between 0 C and the current {temp:g} C)',
            index,
        )

    sub_curve = cooling_curve(time, temp, float(ambient), float(stop), float(k))
    new_points = sub_curve[1:]
    if not all(math.isfinite(p.time) and math.isfinite(p.temp) for p in new_points):
        raise CalculationError(f'Invalid cooling calculation at segment {index}', index)
    return new_points, sub_curve[-1].time, float(stop)


# ---------------------------------------------------------------------------
# Curve builder
# ---------------------------------------------------------------------------

def build_curve(
    segments: Sequence[FiringSegment],
    start_temp: float,
    *,
    custom_presets: CustomPresets = None,
) -> list[CurvePoint]:
    """Build the time-temperature curve of a firing schedule.

    Args:
        segments: Ordered ramp / hold / cooldown segments.
        start_temp: Kiln temperature at time 0 (C), within [0, 50].
        custom_presets: User-defined kilns consulted by cooldown segments in
            addition to the built-in presets.

    Returns:
        Points starting at ``(0, start_temp)`` with non-decreasing times.

    Raises:
        InvalidInputError: ``segments`` is not a list or ``start_temp`` is
            out of range.
        InvalidSegmentError: A segment has out-of-range values.
        CalculationError: A segment yields a non-finite time.
        ScheduleTooLongError: Total time exceeds the schedule ceiling.

    Ramps and holds whose required fields are missing are skipped without
    producing a point.
    """
    if not isinstance(segments, (list, tuple)):
        raise InvalidInputError('Segments must be a list')
    if not _is_finite_real(start_temp):
        raise InvalidInputError('Start temperature must be a valid number')
    if not START_TEMP_MIN <= start_temp <= START_TEMP_MAX:
        raise InvalidInputError(
            f'Start temperature must be between {START_TEMP_MIN:g} C and {START_TEMP_MAX:g} C'
        )

    limit = schedule_time_limit(segments)
    _log.debug(
        'Building firing curve: %d segment(s), start=%.1f C, limit=%.0f h',
        len(segments), start_temp, limit,
    )

    time = 0.0
    temp = float(start_temp)
    points = [CurvePoint(time=time, temp=temp)]

    for index, segment in enumerate(segments, start=1):
        if isinstance(segment, RampSegment):
            new_points, time, temp = _apply_ramp(segment, index, time, temp)
        elif isinstance(segment, HoldSegment):
            new_points, time, temp = _apply_hold(segment, index, time, temp)
        elif isinstance(segment, CooldownSegment):
            new_points, time, temp = _apply_cooldown(segment, index, time, temp, custom_presets)
        else:
            raise InvalidSegmentError(f'Invalid segment at index {index}', index)

        points.extend(new_points)

        if time > limit:
            raise ScheduleTooLongError(limit)

    return points


def curve_arrays(points: Sequence[CurvePoint]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Split a curve into ``(times, temps)`` arrays for plotting or export."""
    times = np.fromiter((p.time for p in points), dtype=np.float64, count=len(points))
    temps = np.fromiter((p.temp for p in points), dtype=np.float64, count=len(points))
    return times, temps
