"""Tests for the repository."""
import datetime
from typing import Optional

from ..domain.input_entities import Activity, ActivityType, TimeInterval

UTC = datetime.timezone.utc


def build_datetime(hour: int, minute: int = 0, day: int = 1, second: int = 0) -> datetime.datetime:
    """
    Builds UTC datetime for Jan 2023 with given day, hour and minute.
    :param hour: Hour to set.
    :param minute: Minute to set.
    :param day: Day of January to set.
    :param second: Second to set.
    :return: Aware datetime in UTC.
    """
    return datetime.datetime(2023, 1, day, hour, minute, second, tzinfo=UTC)


def build_interval(start_hour: int, start_minute: int, end_hour: int, end_minute: int) -> TimeInterval:
    return TimeInterval(build_datetime(start_hour, start_minute), build_datetime(end_hour, end_minute))


def build_activity(
    start: datetime.datetime,
    end: datetime.datetime,
    activity_type: ActivityType = ActivityType.APPLICATION,
    duration_minutes: Optional[int] = None,
    activity_id: str = "test",
    **kwargs,
) -> Activity:
    """
    Builds activity for tests. By-default raw duration equals to the span in whole minutes.
    """
    if duration_minutes is None:
        duration_minutes = int((end - start).total_seconds() // 60)
    return Activity(
        id=activity_id,
        type=activity_type,
        title=kwargs.pop("title", activity_type.value),
        start_time=start,
        end_time=end,
        duration_minutes=duration_minutes,
        **kwargs,
    )
