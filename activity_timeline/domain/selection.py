import dataclasses
import datetime
from typing import Iterable, List, Set

from ..helpers.helpers import start_of_day
from .input_entities import Activity, ActivityType


@dataclasses.dataclass(frozen=True)
class FilterState:
    """Which activity types are visible on the timeline. Everything is visible by-default."""

    web_pages: bool = True
    applications: bool = True
    idle: bool = True
    other: bool = True

    @staticmethod
    def only(types: Iterable[ActivityType]) -> "FilterState":
        types = set(types)
        return FilterState(
            web_pages=ActivityType.WEB_PAGE in types,
            applications=ActivityType.APPLICATION in types,
            idle=ActivityType.IDLE in types,
            other=ActivityType.OTHER in types,
        )

    def visible_types(self) -> Set[ActivityType]:
        result = set()
        if self.web_pages:
            result.add(ActivityType.WEB_PAGE)
        if self.applications:
            result.add(ActivityType.APPLICATION)
        if self.idle:
            result.add(ActivityType.IDLE)
        if self.other:
            result.add(ActivityType.OTHER)
        return result


def filter_by_type(activities: Iterable[Activity], filter_state: FilterState) -> List[Activity]:
    visible = filter_state.visible_types()
    return [x for x in activities if x.type in visible]


def activities_for_day(
    activities: Iterable[Activity], day: datetime.datetime, timezone: datetime.tzinfo = None
) -> List[Activity]:
    """
    Selects activities which start on the same calendar day as `day`. Order is kept.
    Activity started before midnight and ended after belongs to the day it started.
    """
    day_start = start_of_day(day, timezone)
    return [x for x in activities if start_of_day(x.start_time, timezone) == day_start]


def dates_with_events(activities: Iterable[Activity], timezone: datetime.tzinfo = None) -> List[datetime.datetime]:
    """Returns sorted unique day starts of activities."""
    return sorted({start_of_day(x.start_time, timezone) for x in activities})
