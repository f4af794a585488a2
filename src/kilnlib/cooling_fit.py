#
# ABOUT
# Estimates a kiln's natural-cooling coefficient from a logged cool-down,
# either from two readings or by least-squares fitting a whole log with
# scipy, and matches the result to the nearest kiln preset.

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
from dataclasses import dataclass
from typing import Final, TYPE_CHECKING

import numpy as np
from scipy.optimize import curve_fit

from kilnlib.firing_limits import AMBIENT_TEMP_DEFAULT, COOLING_K_MAX
from kilnlib.kiln_presets import CustomPresets, KilnPreset, all_kiln_presets

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray  # pylint: disable=unused-import


_log: Final[logging.Logger] = logging.getLogger(__name__)

_K_LOWER: Final[float] = 1e-4
_AMBIENT_BOUNDS: Final[tuple[float, float]] = (-40.0, 60.0)


@dataclass
class CoolingFitResult:
    """Newton-cooling fit of a logged cool-down."""

    k: float
    ambient_temp: float
    rmse: float
    max_error: float
    r_squared: float
    converged: bool
    message: str

    def summary_lines(self) -> list[str]:
        return [
            f'k = {self.k:.4f} 1/h (ambient {self.ambient_temp:.1f}C)',
            f'Error metrics: RMSE={self.rmse:.2f}C, max={self.max_error:.2f}C, R^2={self.r_squared:.4f}',
            f'Fit: {self.message}',
        ]


def coefficient_from_observation(
    start_temp: float,
    end_temp: float,
    hours: float,
    ambient_temp: float = AMBIENT_TEMP_DEFAULT,
) -> float:
    """k from two readings: ``k = ln((T0 - a) / (T1 - a)) / t``."""
    if hours <= 0:
        raise ValueError('hours must be > 0')
    if not start_temp > end_temp > ambient_temp:
        raise ValueError('Expected start_temp > end_temp > ambient_temp')
    return math.log((start_temp - ambient_temp) / (end_temp - ambient_temp)) / hours


def _newton(t: NDArray, t0_temp: float, ambient: float, k: float) -> NDArray:
    return ambient + (t0_temp - ambient) * np.exp(-k * t)


def fit_cooling_coefficient(
    time_h: ArrayLike,
    temp_c: ArrayLike,
    *,
    ambient_temp: float = AMBIENT_TEMP_DEFAULT,
    fit_ambient: bool = False,
) -> CoolingFitResult:
    """Fit k (and optionally ambient) to a logged cool-down.

    Times are rebased so the first sample is ``t = 0``; its temperature is
    taken as the starting temperature.

    Raises:
        ValueError: fewer than three samples, mismatched lengths, or
            non-finite values.
    """
    t = np.asarray(time_h, dtype=np.float64)
    y = np.asarray(temp_c, dtype=np.float64)
    if t.shape != y.shape or t.ndim != 1:
        raise ValueError('time_h and temp_c must be 1-D arrays of equal length')
    if len(t) < 3:
        raise ValueError('At least three samples are required to fit a cooling curve')
    if not (np.all(np.isfinite(t)) and np.all(np.isfinite(y))):
        raise ValueError('Cooling log contains non-finite values')

    order = np.argsort(t, kind='stable')
    t = t[order] - t[order][0]
    y = y[order]
    t0_temp = float(y[0])

    # Initial guess from the first and last readings when they allow it
    k0 = 0.15
    if y[-1] > ambient_temp and t[-1] > 0 and t0_temp > y[-1]:
        k0 = coefficient_from_observation(t0_temp, float(y[-1]), float(t[-1]), ambient_temp)
    k0 = float(np.clip(k0, _K_LOWER * 10, COOLING_K_MAX))

    _log.debug('Fitting cooling curve: %d samples over %.1f h, k0=%.3f', len(t), t[-1], k0)

    try:
        if fit_ambient:
            popt, _ = curve_fit(
                lambda tt, amb, k: _newton(tt, t0_temp, amb, k),
                t, y,
                p0=[float(np.clip(ambient_temp, *_AMBIENT_BOUNDS)), k0],
                bounds=([_AMBIENT_BOUNDS[0], _K_LOWER], [_AMBIENT_BOUNDS[1], COOLING_K_MAX]),
            )
            ambient, k = float(popt[0]), float(popt[1])
        else:
            popt, _ = curve_fit(
                lambda tt, k: _newton(tt, t0_temp, ambient_temp, k),
                t, y,
                p0=[k0],
                bounds=([_K_LOWER], [COOLING_K_MAX]),
            )
            ambient, k = float(ambient_temp), float(popt[0])
        converged = True
        message = 'curve_fit converged'
    except RuntimeError as exc:
        _log.warning('Cooling fit did not converge: %s', exc)
        ambient, k = float(ambient_temp), k0
        converged = False
        message = f'curve_fit failed, using two-point estimate: {exc}'

    resid = _newton(t, t0_temp, ambient, k) - y
    ss_res = float(np.sum(resid ** 2))
    ss_tot = float(np.sum((y - np.mean(y)) ** 2))
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0.0 else 0.0

    result = CoolingFitResult(
        k=k,
        ambient_temp=ambient,
        rmse=float(np.sqrt(np.mean(resid ** 2))),
        max_error=float(np.max(np.abs(resid))),
        r_squared=r_squared,
        converged=converged,
        message=message,
    )
    _log.info('Cooling fit: k=%.4f, ambient=%.1f C, RMSE=%.2f C', k, ambient, result.rmse)
    return result


def suggest_kiln_preset(k: float, custom_presets: CustomPresets = None) -> KilnPreset:
    """Preset best matching ``k``.

    Presets whose range contains ``k`` are preferred; among them (or among
    all presets when none contains it) the one with the nearest default wins.
    """
    presets = all_kiln_presets(custom_presets)
    containing = [p for p in presets if p.k_range[0] <= k <= p.k_range[1]]
    candidates = containing or presets
    return min(candidates, key=lambda p: abs(p.default_k - k))
