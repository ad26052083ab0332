import datetime
import unittest

from parameterized import parameterized

from ..domain.input_entities import ActivityType, TimeInterval
from ..domain.interval import covered_minutes, merge_activities, merge_by_key, merge_intervals, total_duration_minutes
from . import build_activity, build_datetime, build_interval

I_0900_1000 = build_interval(9, 0, 10, 0)
I_0930_0945 = build_interval(9, 30, 9, 45)
I_1000_1010 = build_interval(10, 0, 10, 10)
I_1005_1020 = build_interval(10, 5, 10, 20)
I_1100_1130 = build_interval(11, 0, 11, 30)
I_1200_1200 = build_interval(12, 0, 12, 0)


class TestMergeIntervals(unittest.TestCase):

    @parameterized.expand([
        ("Empty", [], []),
        ("Single", [I_0900_1000], [I_0900_1000]),
        ("Nested", [I_0900_1000, I_0930_0945], [I_0900_1000]),
        ("Nested reversed", [I_0930_0945, I_0900_1000], [I_0900_1000]),
        ("Touching", [I_0900_1000, I_1000_1010], [build_interval(9, 0, 10, 10)]),
        ("Overlapping chain", [I_1005_1020, I_0900_1000, I_1000_1010], [build_interval(9, 0, 10, 20)]),
        ("Disjoint", [I_1100_1130, I_0900_1000], [I_0900_1000, I_1100_1130]),
        ("Zero-length alone", [I_1200_1200], [I_1200_1200]),
        ("Zero-length inside", [I_0900_1000, build_interval(9, 10, 9, 10)], [I_0900_1000]),
    ])
    def test_merge_intervals(self, name, intervals, expected):
        self.assertEqual(merge_intervals(intervals), expected, name)

    def test_idempotent(self):
        merged = merge_intervals([I_1005_1020, I_0930_0945, I_1100_1130, I_0900_1000])
        self.assertEqual(merge_intervals(merged), merged)

    def test_order_independent(self):
        intervals = [I_1005_1020, I_0930_0945, I_1100_1130, I_0900_1000, I_1000_1010]
        self.assertEqual(merge_intervals(intervals), merge_intervals(list(reversed(intervals))))
        self.assertEqual(merge_intervals(intervals), merge_intervals(sorted(intervals)))

    def test_does_not_mutate_input(self):
        intervals = [I_1005_1020, I_0900_1000]
        merge_intervals(intervals)
        self.assertEqual(intervals, [I_1005_1020, I_0900_1000])

    def test_accepts_generator(self):
        self.assertEqual(merge_intervals(x for x in [I_0900_1000, I_0930_0945]), [I_0900_1000])


class TestDurations(unittest.TestCase):

    @parameterized.expand([
        ("Empty", [], 0),
        ("One hour", [I_0900_1000], 60),
        ("Two disjoint", [I_0900_1000, I_1100_1130], 90),
        ("Seconds precision", [TimeInterval(build_datetime(9), build_datetime(9, 0, second=30))], 0.5),
    ])
    def test_total_duration_minutes(self, name, intervals, expected):
        self.assertEqual(total_duration_minutes(intervals), expected, name)

    def test_sub_second_intervals_are_not_lost(self):
        half_second = datetime.timedelta(milliseconds=500)
        intervals = [TimeInterval(build_datetime(9, x), build_datetime(9, x) + half_second) for x in range(3)]
        self.assertAlmostEqual(total_duration_minutes(intervals), 1.5 / 60)
        self.assertAlmostEqual(covered_minutes(intervals), 1.5 / 60)

    def test_covered_not_greater_than_raw_sum(self):
        intervals = [I_0900_1000, I_0930_0945, I_1000_1010, I_1005_1020, I_1100_1130]
        self.assertLessEqual(covered_minutes(intervals), total_duration_minutes(intervals))

    def test_covered_equals_raw_sum_without_overlaps(self):
        intervals = [I_0900_1000, I_1100_1130]
        self.assertEqual(covered_minutes(intervals), total_duration_minutes(intervals))

    def test_touching_intervals_become_one(self):
        intervals = [I_0900_1000, I_1000_1010]
        self.assertEqual(covered_minutes(intervals), 70)
        self.assertEqual(total_duration_minutes(intervals), 70)
        self.assertEqual(len(merge_intervals(intervals)), 1)


class TestMergeActivities(unittest.TestCase):

    def test_overlapping_types_count_once(self):
        web = build_activity(build_datetime(9), build_datetime(10), ActivityType.WEB_PAGE)
        app = build_activity(build_datetime(9, 30), build_datetime(9, 45), ActivityType.APPLICATION)
        group = merge_activities([web, app], "all")
        self.assertEqual(group.total_minutes, 60)
        self.assertEqual(group.activities_count, 2)
        self.assertEqual(group.intervals, [I_0900_1000])
        self.assertEqual(group.key, "all")

    def test_merge_by_key(self):
        a1 = build_activity(build_datetime(9), build_datetime(10), username="a")
        a2 = build_activity(build_datetime(9, 30), build_datetime(10, 30), username="a")
        b1 = build_activity(build_datetime(9), build_datetime(9, 15), username="b")
        no_user = build_activity(build_datetime(11), build_datetime(12))
        groups = merge_by_key([b1, a1, no_user, a2], lambda x: x.username)
        self.assertEqual(list(groups.keys()), ["b", "a"])
        self.assertEqual(groups["a"].total_minutes, 90)
        self.assertEqual(groups["a"].activities_count, 2)
        self.assertEqual(groups["b"].total_minutes, 15)
