import math

import numpy as np
import pytest

from kilnlib.cooling_fit import (
    coefficient_from_observation,
    fit_cooling_coefficient,
    suggest_kiln_preset,
)
from kilnlib.kiln_presets import KilnPreset


def test_coefficient_from_two_readings() -> None:
    hours = math.log(6.0) / 0.2

    assert coefficient_from_observation(200.0, 50.0, hours, 20.0) == pytest.approx(0.2)


@pytest.mark.parametrize(
    ('start', 'end', 'hours', 'ambient'),
    [
        (200.0, 50.0, 0.0, 20.0),
        (50.0, 200.0, 5.0, 20.0),
        (200.0, 15.0, 5.0, 20.0),
    ],
)
def test_coefficient_from_observation_rejects_impossible_readings(
    start: float, end: float, hours: float, ambient: float
) -> None:
    with pytest.raises(ValueError):
        coefficient_from_observation(start, end, hours, ambient)


def test_fit_recovers_known_coefficient() -> None:
    t = np.linspace(0.0, 12.0, 25)
    temps = 20.0 + 1180.0 * np.exp(-0.26 * t)

    result = fit_cooling_coefficient(t, temps, ambient_temp=20.0)

    assert result.converged is True
    assert result.k == pytest.approx(0.26, abs=1e-4)
    assert result.ambient_temp == 20.0
    assert result.rmse < 0.1
    assert result.r_squared > 0.999
    assert len(result.summary_lines()) == 3


def test_fit_rebases_time_to_first_sample() -> None:
    t = np.linspace(5.0, 15.0, 21)
    temps = 20.0 + 900.0 * np.exp(-0.1 * (t - 5.0))

    result = fit_cooling_coefficient(t, temps)

    assert result.k == pytest.approx(0.1, abs=1e-4)


def test_fit_can_estimate_ambient() -> None:
    t = np.linspace(0.0, 30.0, 61)
    temps = 28.0 + 1100.0 * np.exp(-0.15 * t)

    result = fit_cooling_coefficient(t, temps, ambient_temp=20.0, fit_ambient=True)

    assert result.k == pytest.approx(0.15, abs=1e-3)
    assert result.ambient_temp == pytest.approx(28.0, abs=0.5)


@pytest.mark.parametrize(
    ('t', 'temps'),
    [
        ([0.0, 1.0], [200.0, 150.0]),
        ([0.0, 1.0, 2.0], [200.0, 150.0]),
        ([0.0, 1.0, float('nan')], [200.0, 150.0, 120.0]),
    ],
)
def test_fit_rejects_unusable_logs(t: list[float], temps: list[float]) -> None:
    with pytest.raises(ValueError):
        fit_cooling_coefficient(t, temps)


def test_suggest_kiln_preset() -> None:
    assert suggest_kiln_preset(0.35).id == 'raku-kiln'
    assert suggest_kiln_preset(0.10).id == 'studio-kiln'
    assert suggest_kiln_preset(0.9).id == 'raku-kiln'

    mine = KilnPreset('garage-kiln', 'Garage', '', 0.5, (0.46, 0.6))
    assert suggest_kiln_preset(0.5, [mine]).id == 'garage-kiln'
