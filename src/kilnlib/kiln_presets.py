#
# ABOUT
# Kiln insulation presets and the natural-cooling coefficient lookup used
# by cooldown segments.

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
import numbers
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Final, Union

from kilnlib.firing_limits import COOLING_K_FALLBACK, COOLING_K_MAX


@dataclass(frozen=True, slots=True)
class KilnPreset:
    """Cooling behaviour of one class of kiln.

    ``default_k`` is the typical coefficient (1/h) and need not sit in the
    middle of ``k_range``.
    """

    id: str
    name: str
    description: str
    default_k: float
    k_range: tuple[float, float]


# Ranges were nudged upward after a logged cool-down of a 25 L kiln with
# 75 mm soft brick: 1200 C to 40 C in 13.5 h.
KILN_PRESETS: Final[tuple[KilnPreset, ...]] = (
    KilnPreset('tiny-test', 'Tiny/Test Kiln (< 25L)',
               'Mini test kiln, 65-75mm soft brick', 0.20, (0.17, 0.25)),
    KilnPreset('small-hobby-brick-thin', 'Small Hobby - Thin Brick (25-50L)',
               '65-75mm soft insulating brick', 0.22, (0.17, 0.26)),
    KilnPreset('small-hobby-brick-thick', 'Small Hobby - Thick Brick (25-50L)',
               '100mm soft insulating brick', 0.16, (0.12, 0.20)),
    KilnPreset('small-hobby-fiber', 'Small Hobby - Fiber (25-50L)',
               '50mm ceramic fiber insulation', 0.24, (0.20, 0.30)),
    KilnPreset('medium-hobby', 'Medium Hobby (50-100L)',
               '75-100mm soft brick, typical home studio', 0.14, (0.10, 0.18)),
    KilnPreset('studio-kiln', 'Studio Kiln (100-200L)',
               '100-115mm brick, shared studio size', 0.10, (0.07, 0.14)),
    KilnPreset('large-studio', 'Large Studio (200-400L)',
               '115mm+ brick, production/institutional', 0.08, (0.05, 0.11)),
    KilnPreset('gas-reduction', 'Gas Reduction Kiln',
               'Hard brick construction, slower cooling', 0.06, (0.04, 0.09)),
    KilnPreset('raku-kiln', 'Raku Kiln',
               'Fiber blanket, very fast cooling', 0.35, (0.30, 0.45)),
)

CustomPresets = Union[Mapping[str, KilnPreset], Iterable[KilnPreset], None]


def _iter_custom(custom_presets: CustomPresets) -> Iterable[KilnPreset]:
    if custom_presets is None:
        return ()
    if isinstance(custom_presets, Mapping):
        custom_presets = custom_presets.values()
    return (p for p in custom_presets if isinstance(p, KilnPreset))


def all_kiln_presets(custom_presets: CustomPresets = None) -> list[KilnPreset]:
    """Built-in presets followed by caller-supplied ones.

    A custom preset reusing a built-in id is ignored; the first entry for an
    id always wins.
    """
    merged: dict[str, KilnPreset] = {p.id: p for p in KILN_PRESETS}
    for preset in _iter_custom(custom_presets):
        merged.setdefault(preset.id, preset)
    return list(merged.values())


def get_kiln_preset(preset_id: str | None, custom_presets: CustomPresets = None) -> KilnPreset | None:
    for preset in all_kiln_presets(custom_presets):
        if preset.id == preset_id:
            return preset
    return None


def _usable_coefficient(value: object) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def cooling_coefficient(
    preset_id: str | None,
    speed: str | None = None,
    custom: float | None = None,
    *,
    custom_presets: CustomPresets = None,
) -> float:
    """Resolve the Newton cooling coefficient k (1/h) for a cooldown.

    An explicit positive ``custom`` value always wins. Unknown presets fall
    back to :data:`COOLING_K_FALLBACK`. ``'slow'`` and ``'fast'`` pick the
    ends of the preset range, anything else its default. Malformed inputs
    are ignored rather than raised.
    """
    if _usable_coefficient(custom):
        return float(custom)  # type: ignore[arg-type]

    preset = get_kiln_preset(preset_id, custom_presets)
    if preset is None:
        return COOLING_K_FALLBACK

    k_min, k_max = preset.k_range
    if speed == 'slow':
        return k_min
    if speed == 'fast':
        return k_max
    return preset.default_k


# ---------------------------------------------------------------------------
# JSON helpers for user-defined kilns
# ---------------------------------------------------------------------------

def kiln_preset_from_dict(data: Mapping[str, object]) -> KilnPreset:
    """Parse a stored custom kiln (``defaultK`` / ``kRange`` keys)."""
    try:
        preset_id = str(data['id'])
        default_k = float(data.get('defaultK', data.get('default_k')))  # type: ignore[arg-type]
        k_range = data.get('kRange', data.get('k_range'))
        k_min, k_max = (float(v) for v in k_range)  # type: ignore[union-attr]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f'Invalid kiln preset entry: {exc}') from exc
    if not preset_id:
        raise ValueError('Kiln preset id must not be empty')
    if not 0.0 < k_min <= k_max:
        raise ValueError(f'Invalid kiln preset range for {preset_id}: [{k_min}, {k_max}]')
    return KilnPreset(
        id=preset_id,
        name=str(data.get('name', preset_id)),
        description=str(data.get('description', '')),
        default_k=default_k,
        k_range=(k_min, k_max),
    )


def kiln_preset_to_dict(preset: KilnPreset) -> dict[str, object]:
    return {
        'id': preset.id,
        'name': preset.name,
        'description': preset.description,
        'defaultK': preset.default_k,
        'kRange': list(preset.k_range),
    }


def make_custom_kiln(name: str, description: str, k: float) -> KilnPreset:
    """New user-defined kiln centred on a measured coefficient.

    The id is ``custom-<uuid4>`` and the range spans 80% to 120% of ``k``,
    capped at :data:`COOLING_K_MAX`.
    """
    if not _usable_coefficient(k) or k > COOLING_K_MAX:
        raise ValueError(f'Cooling coefficient must be in (0, {COOLING_K_MAX:g}], got {k!r}')
    name = name.strip()
    if not name:
        raise ValueError('Kiln name must not be empty')
    k = float(k)
    return KilnPreset(
        id=f'custom-{uuid.uuid4()}',
        name=name,
        description=description.strip(),
        default_k=k,
        k_range=(k * 0.8, min(k * 1.2, COOLING_K_MAX)),
    )
