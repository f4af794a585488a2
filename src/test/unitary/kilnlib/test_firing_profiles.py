import json
import logging
from pathlib import Path

import pytest

from kilnlib.firing_curve import build_curve
from kilnlib.firing_profiles import (
    DEFAULT_PROFILES,
    FiringProfile,
    SavedSchedule,
    add_custom_kiln,
    get_default_profile,
    load_current_schedule,
    load_kiln_presets,
    load_profiles,
    profile_from_dict,
    profile_to_dict,
    sanitize_profile,
    save_current_schedule,
    save_kiln_presets,
    save_profiles,
)
from kilnlib.firing_segments import CooldownSegment, HoldSegment, RampSegment
from kilnlib.kiln_presets import KilnPreset, cooling_coefficient


def test_default_profiles_build_valid_curves() -> None:
    assert [p.id for p in DEFAULT_PROFILES] == ['bisque', 'glaze-cone6', 'glaze-cone6-slow', 'glaze-cone10']
    for profile in DEFAULT_PROFILES:
        points = build_curve(profile.segments, profile.start_temp)
        assert len(points) == len(profile.segments) + 1
        assert profile.is_default


def test_get_default_profile() -> None:
    profile = get_default_profile('glaze-cone10')

    assert profile is not None
    assert profile.segments[0] == RampSegment(id=1, rate=80, target_temp=1300)
    assert get_default_profile('raku') is None


def test_profiles_json_round_trip(tmp_path: Path) -> None:
    profile = FiringProfile(
        id='custom-1',
        name='Slow cool glaze',
        description='cone 6 with natural cooling',
        start_temp=18.0,
        segments=[
            RampSegment(id=1, rate=100, target_temp=1220),
            HoldSegment(id=2, hold_time=10),
            CooldownSegment(id=3, kiln_preset_id='medium-hobby', cooling_speed='slow', stop_temp=80),
        ],
    )
    path = tmp_path / 'profiles.json'

    save_profiles(str(path), [profile])
    loaded = load_profiles(str(path))

    assert loaded == [profile]
    stored = json.loads(path.read_text(encoding='utf-8'))
    assert stored[0]['startTemp'] == 18.0
    assert stored[0]['segments'][2] == {
        'id': 3, 'type': 'cooldown', 'stopTemp': 80, 'kilnPreset': 'medium-hobby', 'coolingSpeed': 'slow',
    }


def test_load_profiles_skips_invalid_entries(tmp_path: Path) -> None:
    path = tmp_path / 'profiles.json'
    path.write_text(
        json.dumps(
            [
                {'id': '', 'name': 'no id', 'description': '', 'startTemp': 20, 'segments': []},
                {'id': 'ok', 'name': 'Fine', 'description': '', 'startTemp': 20,
                 'segments': [{'id': 1, 'type': 'hold', 'holdTime': 30}]},
                {'id': 'bad-seg', 'name': 'Bad', 'description': '', 'startTemp': 20,
                 'segments': [{'id': 1, 'type': 'soak'}]},
            ]
        ),
        encoding='utf-8',
    )

    loaded = load_profiles(str(path))

    assert [p.id for p in loaded] == ['ok']


def test_load_profiles_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / 'profiles.json'
    path.write_text(json.dumps([{'name': 'corrupt'}]), encoding='utf-8')

    loaded = load_profiles(str(path))

    assert [p.id for p in loaded] == [p.id for p in DEFAULT_PROFILES]
    loaded[0].segments.clear()
    assert DEFAULT_PROFILES[0].segments


def test_load_profiles_rejects_non_list_and_missing_files(tmp_path: Path) -> None:
    path = tmp_path / 'profiles.json'
    path.write_text('{"id": "x"}', encoding='utf-8')

    with pytest.raises(ValueError):
        load_profiles(str(path))
    with pytest.raises(FileNotFoundError):
        load_profiles(str(tmp_path / 'missing.json'))


@pytest.mark.parametrize(
    'data',
    [
        {'name': 'x', 'description': '', 'startTemp': 20, 'segments': []},
        {'id': 'x', 'name': '', 'description': '', 'startTemp': 20, 'segments': []},
        {'id': 'x', 'name': 'x', 'description': 5, 'startTemp': 20, 'segments': []},
        {'id': 'x', 'name': 'x', 'description': '', 'startTemp': 'warm', 'segments': []},
        {'id': 'x', 'name': 'x', 'description': '', 'startTemp': 20, 'segments': None},
    ],
)
def test_profile_from_dict_rejects_malformed_profiles(data: dict) -> None:
    with pytest.raises(ValueError):
        profile_from_dict(data)


def test_sanitize_profile_trims_and_clamps() -> None:
    profile = FiringProfile(
        id='p',
        name='  Hot one  ',
        description=' too much ',
        start_temp=80.0,
        segments=[
            RampSegment(id=1, rate=5000, target_temp=2000),
            RampSegment(id=2, rate=0.2, target_temp=-5),
            HoldSegment(id=3, hold_time=900),
            CooldownSegment(id=4, cooling_coefficient=3.0, stop_temp=-10),
        ],
    )

    clean = sanitize_profile(profile)

    assert clean.name == 'Hot one'
    assert clean.description == 'too much'
    assert clean.start_temp == 50.0
    assert clean.segments[0] == RampSegment(id=1, rate=1000.0, target_temp=1400.0)
    assert clean.segments[1] == RampSegment(id=2, rate=1.0, target_temp=0.0)
    assert clean.segments[2] == HoldSegment(id=3, hold_time=600.0)
    assert clean.segments[3] == CooldownSegment(id=4, cooling_coefficient=1.0, stop_temp=0.0)
    assert profile.name == '  Hot one  '


def test_profile_to_dict_uses_stored_key_names() -> None:
    data = profile_to_dict(DEFAULT_PROFILES[0])

    assert data['startTemp'] == 20.0
    assert data['isDefault'] is True
    assert data['segments'] == [
        {'id': 1, 'type': 'ramp', 'rate': 120, 'targetTemp': 950},
        {'id': 2, 'type': 'hold', 'holdTime': 10},
    ]


def test_kiln_presets_file_round_trip(tmp_path: Path) -> None:
    mine = KilnPreset('garage-kiln', 'Garage', 'old top loader', 0.18, (0.15, 0.21))
    path = tmp_path / 'kilns.json'

    save_kiln_presets(str(path), [mine])
    custom = load_kiln_presets(str(path))

    assert custom == {'garage-kiln': mine}
    assert cooling_coefficient('garage-kiln', 'slow', custom_presets=custom) == 0.15


def test_get_default_profile_returns_an_independent_copy() -> None:
    profile = get_default_profile('bisque')
    assert profile is not None
    profile.segments.append(HoldSegment(id=3, hold_time=60))

    again = get_default_profile('bisque')

    assert again is not None
    assert len(again.segments) == 2
    assert len(DEFAULT_PROFILES[0].segments) == 2


def test_load_kiln_presets_skips_bad_entries(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / 'kilns.json'
    path.write_text(
        json.dumps(
            [
                {'id': 'good', 'name': 'Good', 'description': '', 'defaultK': 0.2, 'kRange': [0.1, 0.3]},
                {'id': 'no-k', 'name': 'Broken'},
                'not a kiln',
            ]
        ),
        encoding='utf-8',
    )

    with caplog.at_level(logging.WARNING, logger='kilnlib.firing_profiles'):
        custom = load_kiln_presets(str(path))

    assert list(custom) == ['good']
    assert sum('Skipping invalid kiln preset' in r.message for r in caplog.records) == 2


def test_add_custom_kiln_appends_to_presets_file(tmp_path: Path) -> None:
    path = tmp_path / 'kilns.json'

    first = add_custom_kiln(str(path), ' Garage ', 'top loader', 0.2)
    second = add_custom_kiln(str(path), 'Shed', '', 0.12)
    custom = load_kiln_presets(str(path))

    assert list(custom) == [first.id, second.id]
    assert custom[first.id].name == 'Garage'
    assert custom[first.id].k_range == pytest.approx((0.16, 0.24))
    assert cooling_coefficient(second.id, custom_presets=custom) == pytest.approx(0.12)


def test_current_schedule_round_trip(tmp_path: Path) -> None:
    path = tmp_path / 'current.json'
    segments = [
        RampSegment(id=1, rate=150, target_temp=1000),
        CooldownSegment(id=2, kiln_preset_id='raku-kiln', stop_temp=100),
    ]

    save_current_schedule(str(path), 25, segments, 'bisque')

    assert load_current_schedule(str(path)) == SavedSchedule(25.0, segments, 'bisque')
    stored = json.loads(path.read_text(encoding='utf-8'))
    assert stored['currentProfileId'] == 'bisque'
    assert stored['segments'][0] == {'id': 1, 'type': 'ramp', 'rate': 150, 'targetTemp': 1000}


def test_current_schedule_without_profile_id(tmp_path: Path) -> None:
    path = tmp_path / 'current.json'

    save_current_schedule(str(path), 20, [HoldSegment(id=1, hold_time=10)])

    assert 'currentProfileId' not in json.loads(path.read_text(encoding='utf-8'))
    loaded = load_current_schedule(str(path))
    assert loaded is not None
    assert loaded.current_profile_id is None


def test_save_current_schedule_rejects_bad_start_temperature(tmp_path: Path) -> None:
    path = tmp_path / 'current.json'

    with pytest.raises(ValueError, match='Start temperature'):
        save_current_schedule(str(path), 80, [])

    assert not path.exists()


@pytest.mark.parametrize(
    'content',
    [
        '{not json',
        '[]',
        '{"startTemp": 99, "segments": []}',
        '{"startTemp": 20}',
        '{"startTemp": 20, "segments": [], "currentProfileId": 7}',
        '{"startTemp": 20, "segments": [{"id": 1, "type": "fire"}]}',
    ],
)
def test_invalid_current_schedule_loads_as_none(tmp_path: Path, content: str) -> None:
    path = tmp_path / 'current.json'
    path.write_text(content, encoding='utf-8')

    assert load_current_schedule(str(path)) is None


def test_missing_current_schedule_loads_as_none(tmp_path: Path) -> None:
    assert load_current_schedule(str(tmp_path / 'nothing.json')) is None
