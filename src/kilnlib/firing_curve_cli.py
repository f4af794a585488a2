#
# ABOUT
# Command-line tool for kiln firing schedules: print or export the firing
# curve of a profile, look up temperatures, list kiln presets and fit a
# cooling coefficient from a logged cool-down.

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

import argparse
import csv
import json
import logging
import sys
from dataclasses import replace
from typing import Final

from kilnlib.cooling_fit import fit_cooling_coefficient, suggest_kiln_preset
from kilnlib.curve_interpolation import interpolate_point
from kilnlib.firing_curve import build_curve, curve_arrays
from kilnlib.firing_errors import FiringScheduleError
from kilnlib.firing_profiles import (
    DEFAULT_PROFILES,
    FiringProfile,
    add_custom_kiln,
    get_default_profile,
    load_kiln_presets,
    load_profiles,
)
from kilnlib.firing_schedule_validator import validate_firing_schedule
from kilnlib.firing_segments import CurvePoint
from kilnlib.kiln_presets import KilnPreset, all_kiln_presets, cooling_coefficient


_log: Final[logging.Logger] = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _format_hours(hours: float) -> str:
    """Format hours as h:mm."""
    total_min = int(round(hours * 60.0))
    return f'{total_min // 60}:{total_min % 60:02d}'


def _print_curve_table(points: list[CurvePoint]) -> None:
    header = f'{"#":>4} {"Time (h)":>10} {"h:mm":>7} {"Temp (C)":>10}'
    print(header)
    print('-' * len(header))
    for i, p in enumerate(points):
        print(f'{i:>4} {p.time:>10.3f} {_format_hours(p.time):>7} {p.temp:>10.1f}')


# ---------------------------------------------------------------------------
# Shared source options
# ---------------------------------------------------------------------------

def _load_custom_presets(args: argparse.Namespace) -> dict[str, KilnPreset] | None:
    if getattr(args, 'kilns', None):
        return load_kiln_presets(args.kilns)
    return None


def _resolve_profile(args: argparse.Namespace) -> FiringProfile:
    if args.file:
        profiles = load_profiles(args.file)
        if args.name:
            for profile in profiles:
                if profile.id == args.name:
                    break
            else:
                raise ValueError(f'No profile {args.name!r} in {args.file}')
        else:
            profile = profiles[0]
    else:
        found = get_default_profile(args.profile)
        if found is None:
            known = ', '.join(p.id for p in DEFAULT_PROFILES)
            raise ValueError(f'Unknown profile {args.profile!r} (known: {known})')
        profile = found

    if args.start_temp is not None:
        profile = replace(profile, start_temp=args.start_temp)
    return profile


def _add_source_arguments(p: argparse.ArgumentParser) -> None:
    src = p.add_mutually_exclusive_group()
    src.add_argument(
        '--profile', default='bisque',
        help='Built-in profile id (default: bisque).',
    )
    src.add_argument(
        '--file', default=None,
        help='Profiles JSON file to read instead of the built-ins.',
    )
    p.add_argument(
        '--name', default=None,
        help='Profile id inside --file (default: first profile).',
    )
    p.add_argument(
        '--start-temp', type=float, default=None,
        help='Override the profile start temperature in C.',
    )
    p.add_argument(
        '--kilns', default=None,
        help='JSON file with custom kiln presets for cooldown segments.',
    )


# ---------------------------------------------------------------------------
# Subcommand: curve
# ---------------------------------------------------------------------------

def _cmd_curve(args: argparse.Namespace) -> int:
    """Build and print the firing curve of a profile."""
    profile = _resolve_profile(args)
    custom = _load_custom_presets(args)

    print(f'Profile: {profile.name} ({profile.id})')
    print(f'Start temperature: {profile.start_temp:g} C, {len(profile.segments)} segment(s)')

    validation = validate_firing_schedule(profile.segments, profile.start_temp, custom_presets=custom)
    for line in validation.summary_lines():
        print(line)
    if not validation.is_valid:
        return 1

    points = build_curve(profile.segments, profile.start_temp, custom_presets=custom)
    print('')
    _print_curve_table(points)

    if args.csv:
        _export_csv(args.csv, points)
        print(f'\nCurve saved to: {args.csv}')

    if args.plot:
        _plot_curve(profile, points)
    return 0


def _export_csv(path: str, points: list[CurvePoint]) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        writer = csv.writer(fh)
        writer.writerow(['time_h', 'temp_c'])
        for p in points:
            writer.writerow([f'{p.time:.4f}', f'{p.temp:.2f}'])


def _plot_curve(profile: FiringProfile, points: list[CurvePoint]) -> None:
    """Show matplotlib figure of the firing curve."""
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print('Warning: matplotlib not available, skipping plot.',
              file=sys.stderr)
        return

    try:
        times, temps = curve_arrays(points)
        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(times, temps, 'r-', linewidth=2, label='Kiln temperature')
        ax.plot(times, temps, 'ro', markersize=4)
        ax.set_xlabel('Time (h)')
        ax.set_ylabel('Temperature (C)')
        ax.set_title(f'{profile.name}')
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right')
        fig.tight_layout()
        plt.show()
    except Exception as exc:
        print(f'Warning: Could not display plot: {exc}', file=sys.stderr)


# ---------------------------------------------------------------------------
# Subcommand: at
# ---------------------------------------------------------------------------

def _cmd_at(args: argparse.Namespace) -> int:
    """Print the interpolated temperature at a given time."""
    profile = _resolve_profile(args)
    points = build_curve(profile.segments, profile.start_temp, custom_presets=_load_custom_presets(args))
    point = interpolate_point(points, args.time)
    print(f'{profile.name} at {point.time:g} h ({_format_hours(point.time)}): {point.temp:.1f} C')
    return 0


# ---------------------------------------------------------------------------
# Subcommand: presets
# ---------------------------------------------------------------------------

def _cmd_presets(args: argparse.Namespace) -> int:
    """List the kiln presets with their cooling coefficients."""
    custom = _load_custom_presets(args)
    header = f'{"Preset":<26} {"slow":>6} {"normal":>7} {"fast":>6}  Name'
    print(header)
    print('-' * len(header))
    for preset in all_kiln_presets(custom):
        slow, normal, fast = (
            cooling_coefficient(preset.id, speed, custom_presets=custom)
            for speed in ('slow', 'normal', 'fast')
        )
        print(f'{preset.id:<26} {slow:>6.2f} {normal:>7.2f} {fast:>6.2f}  {preset.name}')
    return 0


# ---------------------------------------------------------------------------
# Subcommand: fit-cooling
# ---------------------------------------------------------------------------

def _read_cooling_log(path: str) -> tuple[list[float], list[float]]:
    times: list[float] = []
    temps: list[float] = []
    with open(path, encoding='utf-8', newline='') as fh:
        reader = csv.DictReader(fh)
        for row in reader:
            times.append(float(row['time_h']))
            temps.append(float(row['temp_c']))
    return times, temps


def _cmd_fit_cooling(args: argparse.Namespace) -> int:
    """Fit a cooling coefficient from a time_h,temp_c CSV log."""
    try:
        times, temps = _read_cooling_log(args.log)
    except KeyError as exc:
        print(f'Error: cooling log is missing column {exc}', file=sys.stderr)
        return 1
    print(f'Read {len(times)} sample(s) from {args.log}')

    result = fit_cooling_coefficient(
        times, temps,
        ambient_temp=args.ambient,
        fit_ambient=args.fit_ambient,
    )
    for line in result.summary_lines():
        print(line)

    preset = suggest_kiln_preset(result.k, _load_custom_presets(args))
    print(f'Closest preset: {preset.id} ({preset.name}), '
          f'default k={preset.default_k:.2f}, range [{preset.k_range[0]:.2f}, {preset.k_range[1]:.2f}]')
    if not result.converged:
        return 1

    if args.save_kiln:
        kiln = add_custom_kiln(
            args.save_kiln,
            args.kiln_name,
            f'Fitted from {args.log} (RMSE {result.rmse:.1f} C)',
            result.k,
        )
        print(f'Saved kiln {kiln.id} ({kiln.name}) to: {args.save_kiln}')
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='kiln-curve',
        description='Kiln firing curve CLI - build curves, query temperatures, list presets, fit cooling.',
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable verbose (DEBUG) logging.',
    )

    sub = parser.add_subparsers(dest='command', required=True,
                                help='Available subcommands')

    # ── curve ─────────────────────────────────────────────────────────
    p_curve = sub.add_parser(
        'curve',
        help='Build and print the firing curve of a profile.',
    )
    _add_source_arguments(p_curve)
    p_curve.add_argument(
        '--csv', default=None,
        help='Optional path to export the curve as time_h,temp_c CSV.',
    )
    p_curve.add_argument(
        '--plot', action='store_true',
        help='Show matplotlib plot of the curve.',
    )

    # ── at ────────────────────────────────────────────────────────────
    p_at = sub.add_parser(
        'at',
        help='Interpolated temperature at a time on the curve.',
    )
    p_at.add_argument(
        'time', type=float,
        help='Time in hours from the start of the firing.',
    )
    _add_source_arguments(p_at)

    # ── presets ───────────────────────────────────────────────────────
    p_presets = sub.add_parser(
        'presets',
        help='List kiln presets and their cooling coefficients.',
    )
    p_presets.add_argument(
        '--kilns', default=None,
        help='JSON file with custom kiln presets.',
    )

    # ── fit-cooling ───────────────────────────────────────────────────
    p_fit = sub.add_parser(
        'fit-cooling',
        help='Fit a cooling coefficient from a logged cool-down.',
    )
    p_fit.add_argument(
        'log',
        help='CSV file with time_h and temp_c columns.',
    )
    p_fit.add_argument(
        '--ambient', type=float, default=20.0,
        help='Ambient temperature in C (default: 20).',
    )
    p_fit.add_argument(
        '--fit-ambient', action='store_true',
        help='Fit the ambient temperature as well.',
    )
    p_fit.add_argument(
        '--kilns', default=None,
        help='JSON file with custom kiln presets to match against.',
    )
    p_fit.add_argument(
        '--save-kiln', default=None, metavar='PATH',
        help='Append the fitted coefficient as a custom kiln to this presets JSON file.',
    )
    p_fit.add_argument(
        '--kiln-name', default='My Kiln',
        help='Name of the saved custom kiln (default: My Kiln).',
    )

    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

_COMMANDS = {
    'curve':       _cmd_curve,
    'at':          _cmd_at,
    'presets':     _cmd_presets,
    'fit-cooling': _cmd_fit_cooling,
}


def main(argv: list[str] | None = None) -> int:
    """Run ``kiln-curve`` and return its exit status."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s: %(name)s: %(message)s',
    )

    try:
        return _COMMANDS[args.command](args)
    except FiringScheduleError as exc:
        print(f'Invalid firing schedule: {exc}', file=sys.stderr)
    except json.JSONDecodeError as exc:
        print(f'Error: malformed JSON ({exc})', file=sys.stderr)
    except OSError as exc:
        print(f'Error: {exc}', file=sys.stderr)
    except ValueError as exc:
        print(f'Error: {exc}', file=sys.stderr)
    except KeyboardInterrupt:
        print('\nInterrupted.', file=sys.stderr)
        return 130
    except Exception as exc:  # noqa: BLE001
        print(f'Unexpected error: {exc}', file=sys.stderr)
        _log.debug('Traceback:', exc_info=True)
    return 1


if __name__ == '__main__':
    sys.exit(main())
