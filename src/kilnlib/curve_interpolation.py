#
# ABOUT
# Temperature lookup at an arbitrary time on a firing curve, used for
# hover read-outs. Never raises: bad input degrades to a zero reading.

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
from collections.abc import Iterable
from typing import Final

import numpy as np

from kilnlib.firing_segments import CurvePoint


_log: Final[logging.Logger] = logging.getLogger(__name__)


def _fallback(query_time: object) -> CurvePoint:
    try:
        t = float(query_time or 0)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        t = 0.0
    if not math.isfinite(t):
        t = 0.0
    return CurvePoint(time=max(0.0, t), temp=0.0)


def _bracket(times: np.ndarray, query: float) -> tuple[int, int]:
    """Indices of the first pair with ``times[i] <= query <= times[i + 1]``.

    Outside the curve the first or last pair is used so the caller
    extrapolates along the nearest segment.
    """
    n = len(times)
    if n == 1:
        return 0, 0
    inside = (times[:-1] <= query) & (times[1:] >= query)
    if np.any(inside):
        i = int(np.argmax(inside))
        return i, i + 1
    if query < times[0]:
        return 0, 1
    return n - 2, n - 1


def _interpolate(curve: Iterable[CurvePoint], query_time: float) -> CurvePoint:
    if (
        not isinstance(query_time, numbers.Real)
        or isinstance(query_time, bool)
        or not math.isfinite(query_time)
        or query_time < 0
    ):
        raise ValueError(f'Query time must be a finite number >= 0, got {query_time!r}')
    query = float(query_time)

    points = list(curve)
    if not points:
        return CurvePoint(time=query, temp=0.0)

    times = np.asarray([p.time for p in points], dtype=np.float64)
    temps = np.asarray([p.temp for p in points], dtype=np.float64)
    if not (np.all(np.isfinite(times)) and np.all(np.isfinite(temps))):
        raise ValueError('Non-finite values in curve data')

    left, right = _bracket(times, query)
    t0, t1 = float(times[left]), float(times[right])
    if t0 == t1:
        temp = float(temps[left])
    else:
        ratio = (query - t0) / (t1 - t0)
        temp = float(temps[left]) + (float(temps[right]) - float(temps[left])) * ratio

    if not math.isfinite(temp):
        raise ValueError('Interpolation resulted in non-finite temperature')
    return CurvePoint(time=query, temp=temp)


def interpolate_point(curve: Iterable[CurvePoint], query_time: float) -> CurvePoint:
    """Linearly interpolate the curve temperature at ``query_time`` hours.

    Query times before the first or after the last point are extrapolated
    with the slope of the first or last segment. Any invalid input or
    numeric failure is logged and answered with ``temp=0``.
    """
    try:
        return _interpolate(curve, query_time)
    except Exception:  # noqa: BLE001
        _log.warning('Curve interpolation failed at t=%r', query_time, exc_info=True)
        return _fallback(query_time)
