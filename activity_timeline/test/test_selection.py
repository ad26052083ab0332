import datetime
import unittest

from ..domain.input_entities import ActivityType
from ..domain.selection import FilterState, activities_for_day, dates_with_events, filter_by_type
from . import UTC, build_activity, build_datetime

DAY1_2330 = build_activity(build_datetime(23, 30, day=1), build_datetime(0, 30, day=2), activity_id="1")
DAY2_0900 = build_activity(build_datetime(9, day=2), build_datetime(10, day=2), ActivityType.IDLE, activity_id="2")
DAY2_1100 = build_activity(build_datetime(11, day=2), build_datetime(12, day=2), ActivityType.WEB_PAGE, activity_id="3")
DAY4_0800 = build_activity(build_datetime(8, day=4), build_datetime(9, day=4), ActivityType.OTHER, activity_id="4")
ACTIVITIES = [DAY1_2330, DAY2_0900, DAY2_1100, DAY4_0800]


class TestSelection(unittest.TestCase):

    def test_activities_for_day(self):
        self.assertEqual(activities_for_day(ACTIVITIES, build_datetime(15, day=2), UTC), [DAY2_0900, DAY2_1100])
        self.assertEqual(activities_for_day(ACTIVITIES, build_datetime(0, day=1), UTC), [DAY1_2330])
        self.assertEqual(activities_for_day(ACTIVITIES, build_datetime(0, day=3), UTC), [])

    def test_activities_for_day_in_other_timezone(self):
        plus_2 = datetime.timezone(datetime.timedelta(hours=2))
        day2 = datetime.datetime(2023, 1, 2, tzinfo=plus_2)
        # 23:30 UTC of day 1 is 01:30 of day 2 in UTC+2.
        self.assertEqual(activities_for_day(ACTIVITIES, day2, plus_2), [DAY1_2330, DAY2_0900, DAY2_1100])

    def test_dates_with_events(self):
        self.assertEqual(
            dates_with_events(reversed(ACTIVITIES), UTC),
            [build_datetime(0, day=1), build_datetime(0, day=2), build_datetime(0, day=4)],
        )

    def test_default_filter_shows_everything(self):
        self.assertEqual(filter_by_type(ACTIVITIES, FilterState()), ACTIVITIES)

    def test_filter_by_type(self):
        state = FilterState(idle=False, other=False)
        self.assertEqual(filter_by_type(ACTIVITIES, state), [DAY1_2330, DAY2_1100])
        self.assertEqual(state.visible_types(), {ActivityType.WEB_PAGE, ActivityType.APPLICATION})

    def test_only(self):
        state = FilterState.only([ActivityType.IDLE])
        self.assertEqual(state, FilterState(web_pages=False, applications=False, idle=True, other=False))
        self.assertEqual(filter_by_type(ACTIVITIES, state), [DAY2_0900])
