import datetime
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from ..config.config import (
    INVALID_URL_DOMAIN,
    LOCAL_DOMAIN,
    LOG,
    TOP_ENTRIES_LIMIT,
    UNATTRIBUTED_LABEL,
    UNKNOWN_USER,
)
from .allocator import allocate_proportionally, labels_by_allocation
from .errors import AllocationDegenerateCase
from .input_entities import ACTIVITY_TYPE_LABELS, Activity, ActivityType
from .interval import GroupTotal, merge_activities, merge_by_key
from .output_entities import AnalyzerResult, TypeShare


def get_domain(url: Optional[str]) -> Optional[str]:
    """
    Extracts domain from URL to group web pages by.
    :return: Host without "www." prefix, scheme name for URLs without host (or "local"), "invalid_url" if URL
    can't be parsed, `None` for empty URL.
    """
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError:
        LOG.warning("Could not parse URL: %s", url)
        return INVALID_URL_DOMAIN
    if not hostname:
        if parsed.scheme and parsed.scheme not in ("http", "https"):
            return parsed.scheme
        if not parsed.scheme:
            return INVALID_URL_DOMAIN
        return LOCAL_DOMAIN
    return hostname[4:] if hostname.startswith("www.") else hostname


def _sorted_groups(groups: Iterable[GroupTotal], limit: Optional[int] = None) -> List[GroupTotal]:
    result = sorted((x for x in groups if x.total_minutes > 0), key=lambda x: x.total_minutes, reverse=True)
    return result[:limit] if limit else result


def summarize_users(activities: Iterable[Activity]) -> List[GroupTotal]:
    """
    Calculates true active (not idle) time per user.
    :return: Merged groups per username, biggest first. Users with zero active time are kept.
    """
    groups = merge_by_key(
        (x for x in activities if x.type != ActivityType.IDLE),
        lambda x: x.username or UNKNOWN_USER,
    )
    return sorted(groups.values(), key=lambda x: x.total_minutes, reverse=True)


def summarize_domains(activities: Iterable[Activity], limit: Optional[int] = TOP_ENTRIES_LIMIT) -> List[GroupTotal]:
    """
    Calculates true time per web domain, overlapping visits of the same domain are counted once.
    :param limit: How many top domains to return, `None` for all.
    """
    groups = merge_by_key(
        (x for x in activities if x.type == ActivityType.WEB_PAGE and x.url),
        lambda x: get_domain(x.url),
    )
    return _sorted_groups(groups.values(), limit)


def summarize_applications(
    activities: Iterable[Activity], limit: Optional[int] = TOP_ENTRIES_LIMIT
) -> List[GroupTotal]:
    """
    Calculates true time per application name, overlapping records of the same application are counted once.
    :param limit: How many top applications to return, `None` for all.
    """
    groups = merge_by_key(
        (x for x in activities if x.type == ActivityType.APPLICATION and x.application_name),
        lambda x: x.application_name,
    )
    return _sorted_groups(groups.values(), limit)


def breakdown_by_type(activities: Iterable[Activity]) -> List[TypeShare]:
    """
    Splits active time by activity types. Types overlap each other, so merged active time is allocated to types
    proportionally to their raw durations. Idle time is merged separately and reported as is.
    If active time can't be allocated (all raw durations are 0) then it is reported as "Unattributed".
    :return: Non-empty entries: active types biggest first, next unattributed, next idle.
    """
    activities = list(activities)
    active = [x for x in activities if x.type != ActivityType.IDLE]
    result: List[TypeShare] = []
    try:
        allocation = allocate_proportionally(active, lambda x: x.type)
        for activity_type in labels_by_allocation(allocation):
            minutes = allocation.allocated_minutes[activity_type]
            if minutes > 0:
                result.append(TypeShare(ACTIVITY_TYPE_LABELS[activity_type], minutes, activity_type))
    except AllocationDegenerateCase as err:
        LOG.warning("%s Reporting it as '%s'.", err, UNATTRIBUTED_LABEL)
        result.append(TypeShare(UNATTRIBUTED_LABEL, err.unattributed_minutes))
    idle_total = merge_activities(x for x in activities if x.type == ActivityType.IDLE)
    if idle_total.total_minutes > 0:
        result.append(TypeShare(ACTIVITY_TYPE_LABELS[ActivityType.IDLE], idle_total.total_minutes, ActivityType.IDLE))
    return result


def analyze(activities: Iterable[Activity], day: Optional[datetime.datetime] = None) -> AnalyzerResult:
    """
    Builds all aggregates for the summary/chart panels from activities of one day.
    :param activities: Canonical activities, expected to be already filtered by day.
    :param day: Day start for the report header.
    """
    activities = list(activities)
    result = AnalyzerResult(
        day=day,
        activities_count=len(activities),
        active_total=merge_activities((x for x in activities if x.type != ActivityType.IDLE), "active"),
        idle_total=merge_activities((x for x in activities if x.type == ActivityType.IDLE), "idle"),
        users=summarize_users(activities),
        domains=summarize_domains(activities),
        applications=summarize_applications(activities),
        type_breakdown=breakdown_by_type(activities),
    )
    LOG.debug("Analyzed %d activities: %s", len(activities), result.active_total)
    return result
