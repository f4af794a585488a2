import pytest

from kilnlib.firing_schedule_validator import (
    validate_firing_schedule,
    validate_hold_time,
    validate_profile_description,
    validate_profile_name,
    validate_rate,
    validate_start_temp,
    validate_temperature,
)
from kilnlib.firing_segments import CooldownSegment, HoldSegment, RampSegment


def test_field_validators_accept_in_range_values() -> None:
    assert validate_temperature(1200).is_valid
    assert validate_start_temp(20).is_valid
    assert validate_rate(100).is_valid
    assert validate_hold_time(0).is_valid
    assert validate_profile_name(' Bisque ').is_valid
    assert validate_profile_description('').is_valid


@pytest.mark.parametrize(
    ('result', 'message'),
    [
        (validate_temperature(float('nan')), 'Temperature must be a valid number'),
        (validate_temperature(1500), 'Temperature must be no more than 1400C'),
        (validate_start_temp(-1), 'Temperature must be at least 0C'),
        (validate_start_temp(51), 'Temperature must be no more than 50C'),
        (validate_rate(0), 'Rate must be positive'),
        (validate_rate(0.5), 'Rate must be at least 1C/h'),
        (validate_rate(1200), 'Rate must be no more than 1000C/h'),
        (validate_hold_time(-5), 'Hold time must be at least 0 minutes'),
        (validate_hold_time(601), 'Hold time must be no more than 600 minutes'),
        (validate_profile_name('   '), 'Profile name is required'),
        (validate_profile_name('x' * 101), 'Profile name must be 100 characters or less'),
        (validate_profile_description('x' * 501), 'Description must be 500 characters or less'),
    ],
)
def test_field_validators_report_errors(result, message: str) -> None:
    assert result.is_valid is False
    assert result.error == message


def test_valid_schedule_passes_with_summary() -> None:
    segments = [RampSegment(id=1, rate=100, target_temp=1000), HoldSegment(id=2, hold_time=30)]

    result = validate_firing_schedule(segments, 20)

    assert result.is_valid is True
    assert result.failures == []
    assert result.warnings == []
    assert result.total_hours == pytest.approx(10.3)
    assert result.peak_temp_c == 1000.0
    assert result.time_limit_hours == 48.0
    assert result.point_count == 3
    assert result.summary_lines()[0].startswith('Schedule check: PASS')


def test_invalid_schedule_becomes_a_failure() -> None:
    result = validate_firing_schedule([RampSegment(id=1, rate=-10, target_temp=200)], 20)

    assert result.is_valid is False
    assert result.failures == ['Invalid ramp rate at segment 1: -10']
    assert result.summary_lines()[0].startswith('Schedule check: FAIL')


def test_too_long_schedule_becomes_a_failure() -> None:
    result = validate_firing_schedule([RampSegment(id=1, rate=10, target_temp=1300)], 20)

    assert result.is_valid is False
    assert 'exceeds 48 hours' in result.failures[0]


def test_warnings_for_skipped_and_slow_segments() -> None:
    segments = [
        RampSegment(id=1, rate=100),
        HoldSegment(id=2),
        RampSegment(id=3, rate=0.5, target_temp=30),
    ]

    result = validate_firing_schedule(segments, 20)

    assert result.is_valid is True
    assert len(result.warnings) == 3
    assert 'Segment 1' in result.warnings[0]
    assert 'Segment 3: ramp rate below 1C/h' in result.warnings[2]


def test_warning_when_close_to_time_limit() -> None:
    result = validate_firing_schedule([RampSegment(id=1, rate=10, target_temp=460)], 20)

    assert result.is_valid is True
    assert any(w.startswith('Duration margin') for w in result.warnings)


def test_warning_when_cooldown_hits_the_cooling_cap() -> None:
    segments = [
        RampSegment(id=1, rate=200, target_temp=1000),
        CooldownSegment(id=2, cooling_coefficient=0.01),
    ]

    result = validate_firing_schedule(segments, 20)

    assert result.is_valid is True
    assert result.time_limit_hours == 72.0
    assert any('without reaching 50C' in w for w in result.warnings)
