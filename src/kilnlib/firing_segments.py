#
# ABOUT
# Firing schedule data model: ramp / hold / cooldown segments and the
# time-temperature points a schedule is turned into.

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

from collections.abc import Mapping
from dataclasses import dataclass
from typing import ClassVar, Literal, Union

from kilnlib.firing_errors import InvalidSegmentError

SegmentKind = Literal['ramp', 'hold', 'cooldown']
CoolingSpeed = Literal['slow', 'normal', 'fast']


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RampSegment:
    """Linear change to ``target_temp`` (C) at ``rate`` (C/h)."""

    kind: ClassVar[SegmentKind] = 'ramp'

    id: int
    rate: float | None = None
    target_temp: float | None = None


@dataclass(frozen=True, slots=True)
class HoldSegment:
    """Constant temperature for ``hold_time`` minutes."""

    kind: ClassVar[SegmentKind] = 'hold'

    id: int
    hold_time: float | None = None


@dataclass(frozen=True, slots=True)
class CooldownSegment:
    """Passive exponential cooling toward ``ambient_temp``.

    The cooling coefficient is resolved from ``cooling_coefficient`` when it
    is positive, otherwise from the kiln preset and speed selector.
    """

    kind: ClassVar[SegmentKind] = 'cooldown'

    id: int
    ambient_temp: float | None = None
    stop_temp: float | None = None
    kiln_preset_id: str | None = None
    cooling_speed: CoolingSpeed | None = None
    cooling_coefficient: float | None = None


FiringSegment = Union[RampSegment, HoldSegment, CooldownSegment]
SEGMENT_TYPES: tuple[type, ...] = (RampSegment, HoldSegment, CooldownSegment)


@dataclass(frozen=True, slots=True)
class CurvePoint:
    """One point of a firing curve: ``time`` in hours, ``temp`` in C."""

    time: float
    temp: float


# ---------------------------------------------------------------------------
# JSON-style mappings
# ---------------------------------------------------------------------------

# Accepted spellings per field; the first entry is what we write back out.
_RAMP_KEYS: dict[str, tuple[str, ...]] = {
    'rate': ('rate',),
    'target_temp': ('targetTemp', 'target_temp'),
}
_HOLD_KEYS: dict[str, tuple[str, ...]] = {
    'hold_time': ('holdTime', 'hold_time'),
}
_COOLDOWN_KEYS: dict[str, tuple[str, ...]] = {
    'ambient_temp': ('ambientTemp', 'ambient_temp'),
    'stop_temp': ('stopTemp', 'stop_temp'),
    'kiln_preset_id': ('kilnPreset', 'kilnPresetId', 'kiln_preset_id'),
    'cooling_speed': ('coolingSpeed', 'cooling_speed'),
    'cooling_coefficient': ('coolingCoefficient', 'cooling_coefficient'),
}
_KEYS_BY_KIND: dict[str, tuple[type, dict[str, tuple[str, ...]]]] = {
    'ramp': (RampSegment, _RAMP_KEYS),
    'hold': (HoldSegment, _HOLD_KEYS),
    'cooldown': (CooldownSegment, _COOLDOWN_KEYS),
}


def _field_value(data: Mapping[str, object], keys: tuple[str, ...]) -> object:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def segment_from_dict(data: Mapping[str, object]) -> FiringSegment:
    """Build a segment from a stored schedule entry.

    Values are passed through untouched so that malformed numbers are
    reported by the curve builder rather than coerced here.
    """
    if not isinstance(data, Mapping):
        raise InvalidSegmentError(f'Segment must be a mapping, got {type(data).__name__}')
    kind = data.get('type')
    if not isinstance(kind, str) or kind not in _KEYS_BY_KIND:
        raise InvalidSegmentError(f'Unknown segment type: {kind!r}')
    raw_id = data.get('id', 0)
    if isinstance(raw_id, bool) or not isinstance(raw_id, int):
        raise InvalidSegmentError(f'Segment id must be an integer, got {raw_id!r}')

    cls, keys = _KEYS_BY_KIND[kind]
    kwargs = {name: _field_value(data, spellings) for name, spellings in keys.items()}
    return cls(id=raw_id, **kwargs)


def segment_to_dict(segment: FiringSegment) -> dict[str, object]:
    """Inverse of :func:`segment_from_dict`; ``None`` fields are omitted."""
    _, keys = _KEYS_BY_KIND[segment.kind]
    out: dict[str, object] = {'id': segment.id, 'type': segment.kind}
    for name, spellings in keys.items():
        value = getattr(segment, name)
        if value is not None:
            out[spellings[0]] = value
    return out
