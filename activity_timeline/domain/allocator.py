import dataclasses
from typing import Callable, Dict, Hashable, Iterable, List

from ..helpers.helpers import round_half_up
from .errors import AllocationDegenerateCase
from .input_entities import Activity
from .interval import merge_intervals, total_duration_minutes


@dataclasses.dataclass(frozen=True)
class Allocation:
    """
    Merged (true) time of a group of activities spread over labels proportionally to raw durations of the labels.
    """

    true_total_minutes: float
    """Time covered by all activities of the group after merging overlaps, in minutes."""
    raw_minutes: Dict[Hashable, int]
    """Sum of raw `duration_minutes` per label, overlaps counted few times."""
    allocated_minutes: Dict[Hashable, float]
    """Share of `true_total_minutes` per label, not rounded."""

    @property
    def grand_raw_minutes(self) -> int:
        return sum(self.raw_minutes.values())

    def rounded(self) -> Dict[Hashable, int]:
        """Allocated minutes rounded to the nearest minute, for display."""
        return {k: round_half_up(v) for k, v in self.allocated_minutes.items()}


def allocate_proportionally(
    activities: Iterable[Activity], label_function: Callable[[Activity], Hashable]
) -> Allocation:
    """
    Calculates true merged time of all activities together and splits it over labels in proportion to label's raw
    duration share: `allocated = true_total * label_raw / grand_raw`.
    :param activities: Activities sharing one pool of time, i.e. without idle ones.
    :param label_function: Function returning label of activity (activity type, application, etc.).
    :return: `Allocation` where allocated values sum to the true total.
    :raises AllocationDegenerateCase: If all raw durations are zero while merged time is positive.
    """
    activities = list(activities)
    raw_minutes: Dict[Hashable, int] = {}
    for activity in activities:
        label = label_function(activity)
        raw_minutes[label] = raw_minutes.get(label, 0) + activity.duration_minutes
    grand_raw = sum(raw_minutes.values())
    true_total = total_duration_minutes(merge_intervals(x.to_interval() for x in activities))
    if grand_raw == 0:
        if true_total > 0:
            raise AllocationDegenerateCase(true_total)
        return Allocation(true_total, raw_minutes, {k: 0.0 for k in raw_minutes})
    allocated = {k: true_total * v / grand_raw for k, v in raw_minutes.items()}
    return Allocation(true_total, raw_minutes, allocated)


def labels_by_allocation(allocation: Allocation) -> List[Hashable]:
    """Labels sorted by allocated minutes, biggest first."""
    return sorted(allocation.allocated_minutes, key=lambda x: allocation.allocated_minutes[x], reverse=True)
