import collections
import dataclasses
import datetime
import enum
from typing import List, Optional, Union

from ..config.config import ACTIVITY_TYPE_KEYWORDS
from .metrics import Metrics

TimeInterval = collections.namedtuple("TimeInterval", ["start", "end"])
"""
Span of time with `end >= start`. Immutable, so merging never changes intervals provided by the caller.
"""


class ActivityType(enum.Enum):
    """Closed set of activity types used for "activity type" aggregation."""

    WEB_PAGE = "WebPage"
    APPLICATION = "Application"
    IDLE = "Idle"
    OTHER = "Other"

    @classmethod
    def from_raw(cls, raw_type: Union[str, "ActivityType", None]) -> "ActivityType":
        """
        Maps raw activity type string from any source to the enum. Best-effort: checks keywords from
        `ACTIVITY_TYPE_KEYWORDS` case-insensitively and falls back to `OTHER` for ambiguous or empty values.
        """
        if isinstance(raw_type, ActivityType):
            return raw_type
        if not raw_type:
            return cls.OTHER
        lower_type = str(raw_type).lower()
        for type_value, keywords in ACTIVITY_TYPE_KEYWORDS:
            if any(x in lower_type for x in keywords):
                return cls(type_value)
        return cls.OTHER


ACTIVITY_TYPE_COLORS = {
    ActivityType.APPLICATION: "#3B82F6",
    ActivityType.WEB_PAGE: "#10B981",
    ActivityType.IDLE: "#F59E0B",
    ActivityType.OTHER: "#6B7280",
}
"""The only color table for activity types. All renderers should take colors from here."""

ACTIVITY_TYPE_LABELS = {
    ActivityType.APPLICATION: "Applications",
    ActivityType.WEB_PAGE: "Web Pages",
    ActivityType.IDLE: "Idle",
    ActivityType.OTHER: "Other",
}
"""The only label table for activity types."""


def color_of(activity_type: Optional[ActivityType]) -> str:
    return ACTIVITY_TYPE_COLORS.get(activity_type, ACTIVITY_TYPE_COLORS[ActivityType.OTHER])


@dataclasses.dataclass(frozen=True)
class Activity:
    """
    One canonical normalized record of user/computer behavior over a time span.
    """

    id: str
    """Identifier unique within the loaded batch. Assigned by normalizer, not taken from the source."""
    type: ActivityType
    """Activity type."""
    title: str
    """Display label."""
    start_time: datetime.datetime
    """Timezone-aware start time."""
    end_time: datetime.datetime
    """Timezone-aware end time, never earlier than `start_time`."""
    duration_minutes: int
    """Raw as-reported duration in minutes. Only a proportional weight, never a source of totals."""
    username: Optional[str] = None
    """Responsible user. `None` for single-user sources."""
    application_name: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = None
    details: Optional[str] = None

    def to_interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    @property
    def duration(self) -> datetime.timedelta:
        """Actual span of the activity."""
        return self.end_time - self.start_time


@dataclasses.dataclass(frozen=True)
class DateRange:
    """Range of days covered by a batch. Both ends are day starts."""

    start: datetime.datetime
    end: datetime.datetime


@dataclasses.dataclass(frozen=True)
class ParsedBatch:
    """
    Result of one ingestion pass. Immutable snapshot, a new load replaces it as a whole.
    """

    activities: List[Activity]
    """Activities sorted by start time."""
    covered_range: DateRange
    """Days from the earliest start to the latest end of kept activities."""
    total_rows_seen: int
    """Number of raw rows in the input, including skipped ones."""
    metrics: Metrics
    """Counters of kept and skipped (per reason) rows."""

    @property
    def rows_kept(self) -> int:
        return len(self.activities)

    @property
    def rows_skipped(self) -> int:
        return self.total_rows_seen - self.rows_kept
