import datetime
import unittest
from unittest.mock import MagicMock

from aw_core.models import Event
from parameterized import parameterized

from ..domain.errors import EmptyResultError
from ..domain.input_entities import ActivityType
from ..sources.activitywatch_source import event_to_record, get_bucket_type, load_day
from . import UTC, build_datetime

WINDOW_BUCKET = "aw-watcher-window_host"
WEB_BUCKET = "aw-watcher-web-chrome"
AFK_BUCKET = "aw-watcher-afk_host"
INPUT_BUCKET = "aw-watcher-input_host"

WINDOW_EVENT = Event(
    timestamp=build_datetime(9), duration=datetime.timedelta(minutes=30), data={"app": "Code", "title": "main.py"}
)
WEB_EVENT = Event(
    timestamp=build_datetime(9, 10),
    duration=datetime.timedelta(minutes=5),
    data={"url": "https://docs.python.org", "title": "Python docs"},
)
AFK_EVENT = Event(timestamp=build_datetime(12), duration=datetime.timedelta(hours=1), data={"status": "afk"})
NOT_AFK_EVENT = Event(timestamp=build_datetime(9), duration=datetime.timedelta(hours=3), data={"status": "not-afk"})


def build_client(events_per_bucket) -> MagicMock:
    client = MagicMock()
    client.get_buckets.return_value = {x: {"id": x} for x in events_per_bucket}
    client.get_events.side_effect = lambda bucket_id, start, end: events_per_bucket[bucket_id]
    return client


class TestActivityWatchSource(unittest.TestCase):

    @parameterized.expand([
        ("Window", WINDOW_BUCKET, "Application"),
        ("Web", WEB_BUCKET, "WebPage"),
        ("AFK", AFK_BUCKET, "Idle"),
        ("Input", INPUT_BUCKET, None),
    ])
    def test_get_bucket_type(self, name, bucket_id, expected):
        self.assertEqual(get_bucket_type(bucket_id), expected, name)

    def test_event_to_record(self):
        record = event_to_record(WINDOW_EVENT, "Application")
        self.assertEqual(record.start_time, build_datetime(9))
        self.assertEqual(record.end_time, build_datetime(9, 30))
        self.assertEqual(record.reported_minutes, 30)
        self.assertEqual(record.application, "Code")
        self.assertEqual(record.title, "main.py")
        self.assertIsNone(event_to_record(NOT_AFK_EVENT, "Idle"))

    def test_load_day(self):
        client = build_client({
            WINDOW_BUCKET: [WINDOW_EVENT],
            WEB_BUCKET: [WEB_EVENT],
            AFK_BUCKET: [NOT_AFK_EVENT, AFK_EVENT],
            INPUT_BUCKET: [],
        })
        batch = load_day(build_datetime(0), client, UTC)
        self.assertEqual(
            [(x.type, x.title) for x in batch.activities],
            [
                (ActivityType.APPLICATION, "main.py"),
                (ActivityType.WEB_PAGE, "Python docs"),
                (ActivityType.IDLE, "Idle"),
            ],
        )
        self.assertTrue(all(x.username is None for x in batch.activities))
        self.assertTrue(all(x.id.startswith("aw-") for x in batch.activities))
        self.assertEqual(batch.activities[1].url, "https://docs.python.org")
        self.assertEqual(batch.metrics.count("dropped not-afk events"), 1)
        self.assertEqual(client.get_events.call_count, 3)
        client.get_events.assert_any_call(WINDOW_BUCKET, start=build_datetime(0), end=build_datetime(0, day=2))

    def test_load_day_without_events(self):
        client = build_client({WINDOW_BUCKET: [], AFK_BUCKET: [NOT_AFK_EVENT]})
        with self.assertRaises(EmptyResultError):
            load_day(build_datetime(0), client, UTC)
