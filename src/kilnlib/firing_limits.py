#
# ABOUT
# Numeric limits and defaults shared by the firing curve modules.

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

from typing import Final

# ---------------------------------------------------------------------------
# Temperatures (C)
# ---------------------------------------------------------------------------

START_TEMP_MIN: Final[float] = 0.0
START_TEMP_MAX: Final[float] = 50.0
START_TEMP_DEFAULT: Final[float] = 20.0
TARGET_TEMP_MIN: Final[float] = 0.0
TARGET_TEMP_MAX: Final[float] = 1400.0

# ---------------------------------------------------------------------------
# Ramp rates (C/h)
# ---------------------------------------------------------------------------

RATE_MIN: Final[float] = 1.0
"""Smallest rate accepted by the form validators (the builder only needs > 0)."""
RATE_MAX: Final[float] = 1000.0
RATE_DEFAULT: Final[float] = 100.0

# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

HOLD_TIME_MIN: Final[float] = 0.0      # minutes
HOLD_TIME_MAX: Final[float] = 600.0    # minutes
HOLD_TIME_DEFAULT: Final[float] = 30.0
MINUTES_PER_HOUR: Final[float] = 60.0

MAX_FIRING_HOURS: Final[float] = 48.0
"""Ceiling for schedules made of ramps and holds only."""
MAX_FIRING_HOURS_WITH_COOLDOWN: Final[float] = 72.0
"""Ceiling once any cooldown segment is part of the schedule."""

# ---------------------------------------------------------------------------
# Natural cooling
# ---------------------------------------------------------------------------

COOLING_STEP_HOURS: Final[float] = 0.5
COOLING_MAX_HOURS: Final[float] = 48.0
COOLING_SNAP_TOLERANCE: Final[float] = 1.0
AMBIENT_TEMP_DEFAULT: Final[float] = 20.0
STOP_TEMP_DEFAULT: Final[float] = 50.0
COOLING_K_FALLBACK: Final[float] = 0.15
COOLING_K_MAX: Final[float] = 1.0

# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

PROFILE_NAME_MAX_LENGTH: Final[int] = 100
PROFILE_DESCRIPTION_MAX_LENGTH: Final[int] = 500
