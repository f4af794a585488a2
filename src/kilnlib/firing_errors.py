#
# ABOUT
# Exceptions raised while turning a firing schedule into a curve.

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


class FiringScheduleError(ValueError):
    """Base class for schedules that cannot be turned into a curve."""


class InvalidInputError(FiringScheduleError):
    """The schedule as a whole (segment list, start temperature) is unusable."""


class InvalidSegmentError(FiringScheduleError):
    """A single segment failed validation.

    ``segment_index`` is 1-based, or ``None`` when the segment has no
    position (e.g. while parsing a lone dict).
    """

    def __init__(self, message: str, segment_index: int | None = None) -> None:
        super().__init__(message)
        self.segment_index = segment_index


class CalculationError(FiringScheduleError):
    """A segment produced a non-finite time or temperature."""

    def __init__(self, message: str, segment_index: int | None = None) -> None:
        super().__init__(message)
        self.segment_index = segment_index


class ScheduleTooLongError(FiringScheduleError):
    """Cumulative firing time went past the schedule ceiling."""

    def __init__(self, limit_hours: float) -> None:
        super().__init__(
            f'Firing schedule exceeds {limit_hours:g} hours - please review your segments'
        )
        self.limit_hours = limit_hours
