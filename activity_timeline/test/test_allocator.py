import unittest

from ..domain.allocator import allocate_proportionally, labels_by_allocation
from ..domain.errors import AllocationDegenerateCase
from ..domain.input_entities import ActivityType
from . import build_activity, build_datetime

WEB_0900_1000 = build_activity(build_datetime(9), build_datetime(10), ActivityType.WEB_PAGE)
APP_0930_0945 = build_activity(build_datetime(9, 30), build_datetime(9, 45), ActivityType.APPLICATION)


def by_type(activity):
    return activity.type


class TestAllocator(unittest.TestCase):

    def test_overlapping_types(self):
        allocation = allocate_proportionally([WEB_0900_1000, APP_0930_0945], by_type)
        self.assertEqual(allocation.true_total_minutes, 60)
        self.assertEqual(allocation.grand_raw_minutes, 75)
        self.assertAlmostEqual(allocation.allocated_minutes[ActivityType.WEB_PAGE], 48)
        self.assertAlmostEqual(allocation.allocated_minutes[ActivityType.APPLICATION], 12)
        self.assertEqual(labels_by_allocation(allocation), [ActivityType.WEB_PAGE, ActivityType.APPLICATION])

    def test_allocated_sum_to_true_total(self):
        activities = [
            build_activity(build_datetime(9), build_datetime(9, 10), ActivityType.WEB_PAGE, 1),
            build_activity(build_datetime(9), build_datetime(9, 10), ActivityType.APPLICATION, 1),
            build_activity(build_datetime(9), build_datetime(9, 10), ActivityType.OTHER, 1),
        ]
        allocation = allocate_proportionally(activities, by_type)
        self.assertAlmostEqual(sum(allocation.allocated_minutes.values()), 10)
        rounded = allocation.rounded()
        self.assertEqual(rounded, {ActivityType.WEB_PAGE: 3, ActivityType.APPLICATION: 3, ActivityType.OTHER: 3})
        self.assertLessEqual(abs(sum(rounded.values()) - 10), len(rounded))

    def test_raw_durations_are_weights_only(self):
        # Raw durations much bigger than spans don't change the total.
        activities = [
            build_activity(build_datetime(9), build_datetime(10), ActivityType.WEB_PAGE, 300),
            build_activity(build_datetime(11), build_datetime(11, 30), ActivityType.APPLICATION, 100),
        ]
        allocation = allocate_proportionally(activities, by_type)
        self.assertEqual(allocation.true_total_minutes, 90)
        self.assertAlmostEqual(allocation.allocated_minutes[ActivityType.WEB_PAGE], 67.5)
        self.assertAlmostEqual(allocation.allocated_minutes[ActivityType.APPLICATION], 22.5)

    def test_degenerate_case(self):
        activity = build_activity(build_datetime(9), build_datetime(9, 10), duration_minutes=0)
        with self.assertRaises(AllocationDegenerateCase) as context:
            allocate_proportionally([activity], by_type)
        self.assertEqual(context.exception.unattributed_minutes, 10)

    def test_zero_length_activities(self):
        activity = build_activity(build_datetime(9), build_datetime(9), duration_minutes=0)
        allocation = allocate_proportionally([activity], by_type)
        self.assertEqual(allocation.true_total_minutes, 0)
        self.assertEqual(allocation.allocated_minutes, {ActivityType.APPLICATION: 0.0})

    def test_empty(self):
        allocation = allocate_proportionally([], by_type)
        self.assertEqual(allocation.true_total_minutes, 0)
        self.assertEqual(allocation.allocated_minutes, {})
