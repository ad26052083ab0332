import datetime
from typing import Iterable, List, Optional

import aw_client
import aw_core.models as awmodels

from ..config.config import ACTIVITYWATCH_BUCKET_TYPES, ACTIVITYWATCH_CLIENT_NAME, ACTIVITYWATCH_ID_PREFIX, LOG
from ..domain.input_entities import ParsedBatch
from ..domain.metrics import Metrics
from ..domain.normalizer import RawRecord, build_batch
from ..domain.timestamps import ISO_STRATEGIES

AFK_STATUS = "afk"


def get_bucket_type(bucket_id: str) -> Optional[str]:
    """Returns raw activity type for events of the bucket or `None` if bucket isn't supported."""
    for prefix, activity_type in ACTIVITYWATCH_BUCKET_TYPES.items():
        if bucket_id.startswith(prefix):
            return activity_type
    return None


def event_to_record(event: awmodels.Event, activity_type: str) -> Optional[RawRecord]:
    """
    Converts ActivityWatch event into raw record.
    :return: Record or `None` if event doesn't represent activity (i.e. "not-afk" status of AFK watcher).
    """
    data = event.data or {}
    if activity_type == "Idle" and data.get("status") != AFK_STATUS:
        return None
    return RawRecord(
        start_time=event.timestamp,
        end_time=event.timestamp + event.duration,
        activity_type=activity_type,
        reported_minutes=event.duration.total_seconds() / 60,
        title=data.get("title") or None,
        application=data.get("app") or None,
        url=data.get("url") or None,
    )


def events_to_records(events: Iterable[awmodels.Event], activity_type: str, metrics: Metrics) -> List[RawRecord]:
    result = []
    for event in events:
        record = event_to_record(event, activity_type)
        if record is None:
            metrics.incr("dropped not-afk events", event.duration.total_seconds())
            continue
        result.append(record)
    return result


def load_day(
    start_time: datetime.datetime,
    client: aw_client.ActivityWatchClient = None,
    timezone: datetime.tzinfo = None,
) -> ParsedBatch:
    """
    Reads window, web and AFK watcher events of the day from the local ActivityWatch server.
    All events belong to the local user, so activities have no username.
    :param start_time: Start of the day.
    :param client: ActivityWatch client to use. By-default new client will be created.
    :param timezone: Timezone for day boundaries of the batch.
    :raises EmptyResultError: If there are no events.
    """
    client = client or aw_client.ActivityWatchClient(ACTIVITYWATCH_CLIENT_NAME)
    end_time = start_time + datetime.timedelta(days=1)
    metrics = Metrics()
    records: List[RawRecord] = []
    for bucket_id in client.get_buckets():
        activity_type = get_bucket_type(bucket_id)
        if activity_type is None:
            metrics.incr("skipped buckets")
            LOG.debug("Skipping '%s' bucket.", bucket_id)
            continue
        events: List[awmodels.Event] = client.get_events(bucket_id, start=start_time, end=end_time)
        metrics.incr("handled buckets")
        LOG.info("Got %d events from '%s' bucket.", len(events), bucket_id)
        records.extend(events_to_records(events, activity_type, metrics))
    return build_batch(records, ACTIVITYWATCH_ID_PREFIX, timezone, ISO_STRATEGIES, metrics)
