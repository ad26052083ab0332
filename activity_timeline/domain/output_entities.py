import dataclasses
import datetime
from typing import List, Optional

from ..helpers.helpers import format_duration_minutes
from .input_entities import ActivityType, color_of
from .interval import GroupTotal


@dataclasses.dataclass(frozen=True)
class TypeShare:
    """
    One entry of the activity type breakdown.
    """

    label: str
    """Display label, either activity type label or "Unattributed"."""
    minutes: float
    """Allocated (for active types) or merged (for idle) minutes, not rounded."""
    activity_type: Optional[ActivityType] = None
    """Activity type, `None` for unattributed time."""

    @property
    def color(self) -> str:
        return color_of(self.activity_type)

    def __repr__(self) -> str:
        return f"{format_duration_minutes(self.minutes):>8} {self.label}"


def _group_totals_to_str(title: str, groups: List[GroupTotal]) -> str:
    lines = [f"{format_duration_minutes(x.total_minutes):>8} {x.key} ({x.activities_count} activities)" for x in groups]
    return "%s (total %d):\n  %s\n" % (title, len(groups), "\n  ".join(lines))


@dataclasses.dataclass
class AnalyzerResult:
    """
    All aggregates of one day displayed by the summary/chart panels. See description per field.
    """

    day: Optional[datetime.datetime]
    """Start of the analyzed day if activities were selected for one day."""
    activities_count: int
    """Number of analyzed activities."""
    active_total: GroupTotal
    """Merged intervals of all not idle activities."""
    idle_total: GroupTotal
    """Merged intervals of idle activities."""
    users: List[GroupTotal]
    """Active time per user, biggest first."""
    domains: List[GroupTotal]
    """Web page time per domain, biggest first."""
    applications: List[GroupTotal]
    """Application time per application name, biggest first."""
    type_breakdown: List[TypeShare]
    """Active time spread over activity types plus idle time."""

    def to_str(self) -> str:
        """
        Converts data into human-friendly representation.
        """
        desc = "Analyzed %d activities%s: active %s, idle %s.\n" % (
            self.activities_count,
            f" on {self.day:%Y-%m-%d}" if self.day else "",
            format_duration_minutes(self.active_total.total_minutes),
            format_duration_minutes(self.idle_total.total_minutes),
        )
        desc += _group_totals_to_str("Users", self.users)
        desc += "Activity types (total %d):\n  %s\n" % (
            len(self.type_breakdown),
            "\n  ".join(repr(x) for x in self.type_breakdown),
        )
        desc += _group_totals_to_str("Applications", self.applications)
        desc += _group_totals_to_str("Websites", self.domains)
        return desc.rstrip("\n")

    def __repr__(self):
        return self.to_str()
