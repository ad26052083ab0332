import dataclasses
import datetime
from typing import List, Optional, Sequence

import intervaltree

from ..config.config import (
    MAX_VIEW_MINUTES,
    MIN_VIEW_MINUTES,
    MIN_ZOOM_STEP_MINUTES,
    PAN_FRACTION,
    WHEEL_ZOOM_FACTOR,
    ZOOM_LEVELS,
)
from .input_entities import Activity


@dataclasses.dataclass(frozen=True)
class Window:
    """
    Time window to clip activities by. Window end is exclusive.
    """

    start: datetime.datetime
    end: datetime.datetime

    @staticmethod
    def from_offsets(day_start: datetime.datetime, start_minutes: float, end_minutes: float) -> "Window":
        """Builds window from minute offsets relative to the reference day start."""
        return Window(
            day_start + datetime.timedelta(minutes=start_minutes),
            day_start + datetime.timedelta(minutes=end_minutes),
        )

    @staticmethod
    def hour(day_start: datetime.datetime, hour: int) -> "Window":
        """Builds window of one clock hour of the day."""
        return Window.from_offsets(day_start, hour * 60, (hour + 1) * 60)

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start


@dataclasses.dataclass(frozen=True)
class Segment:
    """
    Visible part of one activity inside a window.
    """

    activity: Activity
    """Clipped activity."""
    offset_into_window: datetime.timedelta
    """Time from the window start to the visible part start."""
    clipped_duration: datetime.timedelta
    """Duration of the visible part."""
    window_duration: datetime.timedelta
    """Duration of the whole window, to calculate placement fractions."""

    @property
    def offset_minutes(self) -> float:
        return self.offset_into_window.total_seconds() / 60

    @property
    def duration_minutes(self) -> float:
        return self.clipped_duration.total_seconds() / 60

    @property
    def left_fraction(self) -> float:
        """Segment start position as a fraction of the window width, in [0..1)."""
        return self.offset_into_window / self.window_duration

    @property
    def width_fraction(self) -> float:
        """Segment width as a fraction of the window width, in (0..1]."""
        return self.clipped_duration / self.window_duration


def clip_activity(activity: Activity, window: Window) -> Optional[Segment]:
    """
    Clips one activity by the window.
    :return: `Segment` or `None` if activity is outside of the window or becomes zero-width after clipping.
    """
    if activity.end_time <= window.start or activity.start_time >= window.end:
        return None
    clipped_start = max(activity.start_time, window.start)
    clipped_end = min(activity.end_time, window.end)
    if clipped_end <= clipped_start:
        return None
    return Segment(activity, clipped_start - window.start, clipped_end - clipped_start, window.duration)


class ActivityIndex:
    """
    Interval tree over activities of one batch to answer window queries without scanning the whole batch.
    Built once per (immutable) batch. Zero-length activities never produce segments so aren't indexed.
    """

    def __init__(self, activities: Sequence[Activity]) -> None:
        self.activities = list(activities)
        self.tree = intervaltree.IntervalTree(
            intervaltree.Interval(x.start_time, x.end_time, i)
            for i, x in enumerate(self.activities)
            if x.end_time > x.start_time
        )

    def clip(self, window: Window) -> List[Segment]:
        """
        Clips activities by the window. Each activity produces at most one segment, overlapping activities produce
        overlapping segments.
        :return: Segments in the order of activities in the batch (i.e. drawing order).
        """
        if window.end <= window.start:
            return []
        candidates = sorted(x.data for x in self.tree.overlap(window.start, window.end))
        result = []
        for i in candidates:
            segment = clip_activity(self.activities[i], window)
            if segment is not None:
                result.append(segment)
        return result

    def hourly_breakdown(self, day_start: datetime.datetime) -> List["HourBucket"]:
        """Clips activities by each of 24 clock hours of the day."""
        result = []
        for hour in range(24):
            window = Window.hour(day_start, hour)
            result.append(HourBucket(hour, window, self.clip(window)))
        return result


def clip_to_window(activities: Sequence[Activity], window: Window) -> List[Segment]:
    """Clips activities by the window. For many windows over the same activities prefer `ActivityIndex`."""
    return ActivityIndex(activities).clip(window)


@dataclasses.dataclass(frozen=True)
class HourBucket:
    """Segments of one clock hour."""

    hour: int
    window: Window
    segments: List[Segment]

    @property
    def label(self) -> str:
        """Hour label like "12am", "9am", "3pm"."""
        return f"{(self.hour % 12) or 12}{'am' if self.hour < 12 else 'pm'}"


def hourly_breakdown(activities: Sequence[Activity], day_start: datetime.datetime) -> List[HourBucket]:
    return ActivityIndex(activities).hourly_breakdown(day_start)


def clamp_view_width(width_minutes: float) -> float:
    return max(MIN_VIEW_MINUTES, min(MAX_VIEW_MINUTES, width_minutes))


def clamp_view_start(start_minutes: float, width_minutes: float) -> float:
    """Keeps window inside the day: not before minute 0 and not after minute `1440 - width`."""
    max_start = max(0, MAX_VIEW_MINUTES - width_minutes)
    return max(0, min(start_minutes, max_start))


@dataclasses.dataclass(frozen=True)
class Viewport:
    """
    Visible part of the day on the timeline, in minutes from the day start.
    Always valid: use `Viewport.create` or transformation methods which clamp values.
    """

    start_minutes: float
    width_minutes: float

    @staticmethod
    def create(start_minutes: float = 0, width_minutes: float = MAX_VIEW_MINUTES) -> "Viewport":
        width = clamp_view_width(width_minutes)
        return Viewport(clamp_view_start(start_minutes, width), width)

    @staticmethod
    def for_zoom_level(level: str, start_minutes: float = 0) -> "Viewport":
        """
        Builds viewport with width of the named zoom level like "1h" or "24h".
        :raises KeyError: On unknown zoom level.
        """
        return Viewport.create(start_minutes, ZOOM_LEVELS[level])

    @property
    def end_minutes(self) -> float:
        return self.start_minutes + self.width_minutes

    def with_zoom_level(self, level: str) -> "Viewport":
        """Changes width to the named zoom level keeping start (if possible)."""
        return Viewport.for_zoom_level(level, self.start_minutes)

    def zoom(self, zoom_in: bool, anchor_minutes: Optional[float] = None) -> "Viewport":
        """
        Zooms on one wheel step keeping the anchor minute (under the pointer) on the same place of the screen.
        :param zoom_in: Flag to make visible width smaller, otherwise bigger.
        :param anchor_minutes: Minute of the day to keep in place. By-default the middle of the viewport.
        :return: New viewport or the same one if width changes too little (i.e. at zoom limits).
        """
        if anchor_minutes is None:
            anchor_minutes = self.start_minutes + self.width_minutes / 2
        next_width = self.width_minutes / WHEEL_ZOOM_FACTOR if zoom_in else self.width_minutes * WHEEL_ZOOM_FACTOR
        next_width = clamp_view_width(next_width)
        if abs(next_width - self.width_minutes) <= MIN_ZOOM_STEP_MINUTES:
            return self
        anchor_fraction = (anchor_minutes - self.start_minutes) / self.width_minutes
        next_start = anchor_minutes - anchor_fraction * next_width
        return Viewport(clamp_view_start(next_start, next_width), next_width)

    def pan(self, steps: int) -> "Viewport":
        """Shifts viewport on `PAN_FRACTION` of its width per step. Negative steps shift to earlier time."""
        shifted = self.start_minutes + steps * self.width_minutes * PAN_FRACTION
        return Viewport(clamp_view_start(shifted, self.width_minutes), self.width_minutes)

    def to_window(self, day_start: datetime.datetime) -> Window:
        return Window.from_offsets(day_start, self.start_minutes, self.end_minutes)

    def minute_at(self, fraction: float) -> float:
        """Converts position on the viewport (0 - left edge, 1 - right edge) into minute of the day."""
        return self.start_minutes + fraction * self.width_minutes


def activity_at(segments: Sequence[Segment], window_fraction: float) -> Optional[Activity]:
    """
    Finds activity drawn at the given position of the window. Later segments are drawn on top of earlier ones.
    :param segments: Segments of the window in drawing order.
    :param window_fraction: Position in the window, 0 - left edge, 1 - right edge.
    :return: Top-most activity or `None`.
    """
    for segment in reversed(segments):
        if segment.left_fraction <= window_fraction < segment.left_fraction + segment.width_fraction:
            return segment.activity
    return None
