#
# ABOUT
# Named firing profiles: built-in defaults, sanitising of stored entries,
# and JSON import/export of profiles, the schedule being edited and
# user-defined kiln presets.

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

import json
import logging
import os
from copy import deepcopy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Final

from kilnlib.firing_errors import InvalidSegmentError
from kilnlib.firing_limits import (
    COOLING_K_MAX,
    HOLD_TIME_MAX,
    HOLD_TIME_MIN,
    RATE_MAX,
    RATE_MIN,
    START_TEMP_DEFAULT,
    START_TEMP_MAX,
    START_TEMP_MIN,
    TARGET_TEMP_MAX,
    TARGET_TEMP_MIN,
)
from kilnlib.firing_segments import (
    CooldownSegment,
    FiringSegment,
    HoldSegment,
    RampSegment,
    segment_from_dict,
    segment_to_dict,
)
from kilnlib.kiln_presets import KilnPreset, kiln_preset_from_dict, kiln_preset_to_dict, make_custom_kiln


_log: Final[logging.Logger] = logging.getLogger(__name__)


@dataclass
class FiringProfile:
    """A named, reusable firing schedule."""

    id: str
    name: str
    description: str
    start_temp: float
    segments: list[FiringSegment] = field(default_factory=list)
    is_default: bool = False


DEFAULT_PROFILES: Final[tuple[FiringProfile, ...]] = (
    FiringProfile(
        id='bisque',
        name='Standard Bisque',
        description='Simple bisque firing - 950C',
        start_temp=START_TEMP_DEFAULT,
        segments=[
            RampSegment(id=1, rate=120, target_temp=950),
            HoldSegment(id=2, hold_time=10),
        ],
        is_default=True,
    ),
    FiringProfile(
        id='glaze-cone6',
        name='Cone 6 Glaze',
        description='Standard cone 6 glaze firing - 1200C',
        start_temp=START_TEMP_DEFAULT,
        segments=[
            RampSegment(id=1, rate=100, target_temp=1200),
            HoldSegment(id=2, hold_time=5),
        ],
        is_default=True,
    ),
    FiringProfile(
        id='glaze-cone6-slow',
        name='Cone 6 Drop & Hold',
        description='Drop-and-hold schedule for defect reduction',
        start_temp=START_TEMP_DEFAULT,
        segments=[
            RampSegment(id=1, rate=100, target_temp=1200),
            HoldSegment(id=2, hold_time=5),
            RampSegment(id=3, rate=50, target_temp=1150),
            HoldSegment(id=4, hold_time=30),
        ],
        is_default=True,
    ),
    FiringProfile(
        id='glaze-cone10',
        name='Cone 10 Glaze',
        description='High-fire glaze firing - 1300C',
        start_temp=START_TEMP_DEFAULT,
        segments=[
            RampSegment(id=1, rate=80, target_temp=1300),
            HoldSegment(id=2, hold_time=15),
        ],
        is_default=True,
    ),
)


def get_default_profile(profile_id: str) -> FiringProfile | None:
    """Independent copy of a built-in profile, or ``None`` for an unknown id."""
    for profile in DEFAULT_PROFILES:
        if profile.id == profile_id:
            return deepcopy(profile)
    return None


# ---------------------------------------------------------------------------
# Dict conversion
# ---------------------------------------------------------------------------

def profile_from_dict(data: Mapping[str, object]) -> FiringProfile:
    """Parse a stored profile (camelCase keys as written by :func:`profile_to_dict`)."""
    if not isinstance(data, Mapping):
        raise ValueError('Profile entry must be a JSON object')

    profile_id = data.get('id')
    name = data.get('name')
    description = data.get('description', '')
    start_temp = data.get('startTemp', data.get('start_temp', START_TEMP_DEFAULT))
    raw_segments = data.get('segments')

    if not isinstance(profile_id, str) or not profile_id:
        raise ValueError('Profile id must be a non-empty string')
    if not isinstance(name, str) or not name:
        raise ValueError(f'Profile {profile_id}: name must be a non-empty string')
    if not isinstance(description, str):
        raise ValueError(f'Profile {profile_id}: description must be a string')
    if isinstance(start_temp, bool) or not isinstance(start_temp, (int, float)):
        raise ValueError(f'Profile {profile_id}: startTemp must be a number')
    if not isinstance(raw_segments, list):
        raise ValueError(f'Profile {profile_id}: segments must be a list')

    try:
        segments = [segment_from_dict(s) for s in raw_segments]
    except InvalidSegmentError as exc:
        raise ValueError(f'Profile {profile_id}: {exc}') from exc

    return FiringProfile(
        id=profile_id,
        name=name,
        description=description,
        start_temp=float(start_temp),
        segments=segments,
        is_default=bool(data.get('isDefault', data.get('is_default', False))),
    )


def profile_to_dict(profile: FiringProfile) -> dict[str, object]:
    return {
        'id': profile.id,
        'name': profile.name,
        'description': profile.description,
        'startTemp': profile.start_temp,
        'segments': [segment_to_dict(s) for s in profile.segments],
        'isDefault': profile.is_default,
    }


# ---------------------------------------------------------------------------
# Sanitising
# ---------------------------------------------------------------------------

def _clamp(value: float | None, lo: float, hi: float) -> float | None:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return max(lo, min(hi, float(value)))


def _sanitize_segment(segment: FiringSegment) -> FiringSegment:
    if isinstance(segment, RampSegment):
        return replace(
            segment,
            rate=_clamp(segment.rate, RATE_MIN, RATE_MAX),
            target_temp=_clamp(segment.target_temp, TARGET_TEMP_MIN, TARGET_TEMP_MAX),
        )
    if isinstance(segment, HoldSegment):
        return replace(segment, hold_time=_clamp(segment.hold_time, HOLD_TIME_MIN, HOLD_TIME_MAX))
    if isinstance(segment, CooldownSegment):
        k = segment.cooling_coefficient
        return replace(
            segment,
            stop_temp=_clamp(segment.stop_temp, TARGET_TEMP_MIN, TARGET_TEMP_MAX),
            cooling_coefficient=(
                _clamp(k, 0.0, COOLING_K_MAX)
                if isinstance(k, (int, float)) and not isinstance(k, bool) and k > 0
                else None
            ),
        )
    return segment


def sanitize_profile(profile: FiringProfile) -> FiringProfile:
    """Return a copy with trimmed text and every value clamped to its limits."""
    return FiringProfile(
        id=profile.id,
        name=profile.name.strip(),
        description=profile.description.strip(),
        start_temp=max(START_TEMP_MIN, min(START_TEMP_MAX, profile.start_temp)),
        segments=[_sanitize_segment(s) for s in profile.segments],
        is_default=bool(profile.is_default),
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def load_profiles(filepath: str) -> list[FiringProfile]:
    """Load profiles from a JSON array file.

    Entries that fail to parse are skipped. When nothing usable remains the
    built-in :data:`DEFAULT_PROFILES` are returned instead.
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f'Profiles file not found: {filepath}')
    with open(filepath, encoding='utf-8') as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError('Unsupported profiles JSON format: expected a list')

    profiles: list[FiringProfile] = []
    for entry in payload:
        try:
            profiles.append(sanitize_profile(profile_from_dict(entry)))
        except ValueError as exc:
            _log.warning('Skipping invalid profile in %s: %s', filepath, exc)

    if not profiles:
        _log.warning('No valid profiles in %s, falling back to defaults', filepath)
        return deepcopy(list(DEFAULT_PROFILES))
    _log.info('Loaded %d firing profile(s) from %s', len(profiles), filepath)
    return profiles


def save_profiles(filepath: str, profiles: Iterable[FiringProfile]) -> None:
    data = [profile_to_dict(p) for p in profiles]
    with open(filepath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)
        fh.write('\n')
    _log.info('Saved %d firing profile(s) to %s', len(data), filepath)


def load_kiln_presets(filepath: str) -> dict[str, KilnPreset]:
    """Load user-defined kilns keyed by id, for ``custom_presets`` arguments.

    Malformed entries are skipped with a warning.
    """
    with open(filepath, encoding='utf-8') as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError('Unsupported kiln presets JSON format: expected a list')

    presets: dict[str, KilnPreset] = {}
    for entry in payload:
        try:
            preset = kiln_preset_from_dict(entry)
        except ValueError as exc:
            _log.warning('Skipping invalid kiln preset in %s: %s', filepath, exc)
            continue
        presets[preset.id] = preset
    return presets


def save_kiln_presets(filepath: str, presets: Iterable[KilnPreset]) -> None:
    with open(filepath, 'w', encoding='utf-8') as fh:
        json.dump([kiln_preset_to_dict(p) for p in presets], fh, indent=2)
        fh.write('\n')


def add_custom_kiln(filepath: str, name: str, description: str, k: float) -> KilnPreset:
    """Append a kiln built from a measured coefficient to a presets file.

    The file is created when it does not exist yet. Returns the new preset.
    """
    existing = load_kiln_presets(filepath) if os.path.exists(filepath) else {}
    preset = make_custom_kiln(name, description, k)
    save_kiln_presets(filepath, [*existing.values(), preset])
    _log.info('Added custom kiln %s (k=%.3f) to %s', preset.id, preset.default_k, filepath)
    return preset


# ---------------------------------------------------------------------------
# Schedule being edited
# ---------------------------------------------------------------------------

@dataclass
class SavedSchedule:
    """Unsaved working schedule, optionally linked to the profile it came from."""

    start_temp: float
    segments: list[FiringSegment] = field(default_factory=list)
    current_profile_id: str | None = None


def _valid_start_temp(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and START_TEMP_MIN <= value <= START_TEMP_MAX
    )


def save_current_schedule(
    filepath: str,
    start_temp: float,
    segments: Iterable[FiringSegment],
    current_profile_id: str | None = None,
) -> None:
    if not _valid_start_temp(start_temp):
        raise ValueError(
            f'Start temperature must be between {START_TEMP_MIN:g} and {START_TEMP_MAX:g}C, got {start_temp!r}'
        )
    data: dict[str, object] = {
        'startTemp': start_temp,
        'segments': [segment_to_dict(s) for s in segments],
    }
    if current_profile_id is not None:
        data['currentProfileId'] = current_profile_id
    with open(filepath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)
        fh.write('\n')


def load_current_schedule(filepath: str) -> SavedSchedule | None:
    """Read the schedule saved by :func:`save_current_schedule`.

    A missing, unreadable or malformed file yields ``None``; the last two are
    logged at WARNING.
    """
    if not os.path.exists(filepath):
        return None
    try:
        with open(filepath, encoding='utf-8') as fh:
            payload = json.load(fh)
    except (OSError, ValueError) as exc:
        _log.warning('Failed to read saved schedule %s: %s', filepath, exc)
        return None

    if not isinstance(payload, Mapping):
        _log.warning('Ignoring saved schedule %s: expected a JSON object', filepath)
        return None
    start_temp = payload.get('startTemp')
    raw_segments = payload.get('segments')
    profile_id = payload.get('currentProfileId')
    if not _valid_start_temp(start_temp) or not isinstance(raw_segments, list):
        _log.warning('Ignoring saved schedule %s: invalid start temperature or segments', filepath)
        return None
    if profile_id is not None and not isinstance(profile_id, str):
        _log.warning('Ignoring saved schedule %s: invalid profile id %r', filepath, profile_id)
        return None
    try:
        segments = [segment_from_dict(s) for s in raw_segments]
    except InvalidSegmentError as exc:
        _log.warning('Ignoring saved schedule %s: %s', filepath, exc)
        return None

    return SavedSchedule(
        start_temp=float(start_temp),  # type: ignore[arg-type]
        segments=segments,
        current_profile_id=profile_id,
    )
