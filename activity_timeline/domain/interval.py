import dataclasses
import datetime
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from .input_entities import Activity, TimeInterval

ZERO_DURATION = datetime.timedelta()


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Merges overlapping or touching time intervals into the minimal list of disjoint intervals covering the same time.
    Intervals are compared with `<=`, so [10:00..10:05] and [10:05..10:10] become one [10:00..10:10].
    Precondition (not validated): `end >= start` for each interval.
    :param intervals: Intervals in any order. Is not modified.
    :return: New list of merged intervals sorted by start.
    """
    ordered = sorted(intervals, key=lambda x: x.start)  # Stable; equal starts merge anyway.
    if not ordered:
        return []
    result: List[TimeInterval] = []
    current_start, current_end = ordered[0]
    for interval in ordered[1:]:
        if interval.start <= current_end:
            if interval.end > current_end:
                current_end = interval.end
        else:
            result.append(TimeInterval(current_start, current_end))
            current_start, current_end = interval
    result.append(TimeInterval(current_start, current_end))
    return result


def total_duration_minutes(intervals: Iterable[TimeInterval]) -> float:
    """
    Calculates total duration of intervals with microseconds precision.
    Expects already merged intervals, otherwise overlaps are counted few times.
    :return: Duration in minutes, may be fractional.
    """
    total = sum((max(ZERO_DURATION, x.end - x.start) for x in intervals), ZERO_DURATION)
    return total.total_seconds() / 60


def covered_minutes(intervals: Iterable[TimeInterval]) -> float:
    """Merges intervals and returns time they cover in minutes."""
    return total_duration_minutes(merge_intervals(intervals))


@dataclasses.dataclass(frozen=True)
class GroupTotal:
    """
    Merged intervals of one grouping key (user, application, domain, etc.) and true time covered by them.
    """

    key: Hashable
    """Grouping key."""
    intervals: List[TimeInterval]
    """Disjoint intervals sorted by start."""
    total_minutes: float
    """Time covered by intervals, in fractional minutes."""
    activities_count: int
    """Number of activities in the group."""


def merge_activities(activities: Iterable[Activity], key: Hashable = None) -> GroupTotal:
    """Merges intervals of all provided activities as one group."""
    activities = list(activities)
    merged = merge_intervals(x.to_interval() for x in activities)
    return GroupTotal(key, merged, total_duration_minutes(merged), len(activities))


def merge_by_key(
    activities: Iterable[Activity], key_function: Callable[[Activity], Optional[Hashable]]
) -> Dict[Hashable, GroupTotal]:
    """
    Groups activities by key and merges intervals inside each group separately.
    :param activities: Activities to group.
    :param key_function: Function returning grouping key for activity. Activities with `None` key are skipped.
    :return: Dictionary of key to its `GroupTotal`, in order of keys appearance.
    """
    groups: Dict[Hashable, List[Activity]] = {}
    for activity in activities:
        key = key_function(activity)
        if key is not None:
            groups.setdefault(key, []).append(activity)
    return {key: merge_activities(group, key) for key, group in groups.items()}
