import csv
import dataclasses
import datetime
import io
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..config.config import (
    ACTIVITY_TYPE_ALIASES,
    API_ID_PREFIX,
    APPLICATION_ALIASES,
    CATEGORY_ALIASES,
    CURRENT_TIMEZONE,
    DETAILS_ALIASES,
    DURATION_ALIASES,
    END_TIME_ALIASES,
    FILE_ID_PREFIX,
    LOG,
    START_TIME_ALIASES,
    TITLE_ALIASES,
    UNKNOWN_ACTIVITY_TITLE,
    UNKNOWN_USER,
    USERNAME_ALIASES,
    WEBSITE_ALIASES,
)
from ..helpers.helpers import round_half_up, start_of_day
from .errors import EmptyResultError, RowSkipped, SchemaError
from .input_entities import Activity, ActivityType, DateRange, ParsedBatch
from .metrics import Metrics
from .timestamps import DEFAULT_STRATEGIES, ISO_STRATEGIES, TimestampStrategy, make_parser

METRIC_ROWS_KEPT = "rows kept"
METRIC_ROWS_SKIPPED_PREFIX = "rows skipped: "
METRIC_UNPARSEABLE_DURATIONS = "unparseable durations"

_DURATION_RE = re.compile(r"^(?:(\d+)\s*h)?\s*(?:(\d+)\s*m)?\s*(?:(\d+)\s*s)?$", re.IGNORECASE)
_SECONDS_RE = re.compile(r"^\d+$")


@dataclasses.dataclass(frozen=True)
class ColumnMapping:
    """
    Names of the CSV columns resolved for each semantic field. Optional fields are `None` if column is absent.
    """

    start_time: str
    end_time: str
    activity_type: str
    duration: Optional[str] = None
    application: Optional[str] = None
    website: Optional[str] = None
    title: Optional[str] = None
    category: Optional[str] = None
    username: Optional[str] = None
    details: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class RawRecord:
    """
    One input row with values taken from the source as is, but under canonical names.
    """

    start_time: Any
    end_time: Any
    activity_type: Optional[str] = None
    reported_minutes: Optional[float] = None
    """Duration reported by the source in minutes, `None` or 0 if not reported."""
    title: Optional[str] = None
    application: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = None
    username: Optional[str] = None
    details: Optional[str] = None


def find_column(headers: Sequence[str], aliases: Sequence[str]) -> Optional[str]:
    """
    Finds the first alias (in priority order) which is presented in headers, comparing case-insensitively.
    :return: Header name as it is in the input, or `None`.
    """
    by_lower = {}
    for header in headers:
        by_lower.setdefault(header.strip().lower(), header)
    for alias in aliases:
        header = by_lower.get(alias.lower())
        if header is not None:
            return header
    return None


def resolve_columns(headers: Sequence[str]) -> ColumnMapping:
    """
    Resolves CSV headers into `ColumnMapping`.
    :raises SchemaError: If start time, end time or activity type column can't be found.
    """
    start_time = find_column(headers, START_TIME_ALIASES)
    end_time = find_column(headers, END_TIME_ALIASES)
    activity_type = find_column(headers, ACTIVITY_TYPE_ALIASES)
    if not start_time or not end_time or not activity_type:
        raise SchemaError(
            "Missing required columns. Need at least variants of: "
            f"{START_TIME_ALIASES[0]}, {END_TIME_ALIASES[0]}, {ACTIVITY_TYPE_ALIASES[0]}."
            f" Found: {', '.join(headers)}"
        )
    return ColumnMapping(
        start_time=start_time,
        end_time=end_time,
        activity_type=activity_type,
        duration=find_column(headers, DURATION_ALIASES),
        application=find_column(headers, APPLICATION_ALIASES),
        website=find_column(headers, WEBSITE_ALIASES),
        title=find_column(headers, TITLE_ALIASES),
        category=find_column(headers, CATEGORY_ALIASES),
        username=find_column(headers, USERNAME_ALIASES),
        details=find_column(headers, DETAILS_ALIASES),
    )


def parse_duration_to_minutes(duration_str: Optional[str], metrics: Metrics = None) -> int:
    """
    Parses duration string like "1h 2m 30s", "4m", "34s" or just number of seconds "34" into minutes.
    :param duration_str: String to parse.
    :param metrics: Metrics to count unparseable values in.
    :return: Minutes rounded half up, 0 for empty or unparseable values.
    """
    if duration_str is None:
        return 0
    text = str(duration_str).strip()
    if not text:
        return 0
    if _SECONDS_RE.match(text):
        return round_half_up(int(text) / 60)
    match = _DURATION_RE.match(text)
    if match and any(match.groups()):
        hours, minutes, seconds = (int(x or 0) for x in match.groups())
        return round_half_up((hours * 3600 + minutes * 60 + seconds) / 60)
    LOG.warning("Could not parse duration string: '%s'", duration_str)
    if metrics is not None:
        metrics.incr(METRIC_UNPARSEABLE_DURATIONS)
    return 0


def _cell(row: Dict[str, Optional[str]], column: Optional[str]) -> Optional[str]:
    if column is None:
        return None
    value = row.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _csv_row_to_record(row: Dict[str, Optional[str]], columns: ColumnMapping, metrics: Metrics) -> RawRecord:
    username = None
    if columns.username is not None:
        username = _cell(row, columns.username) or UNKNOWN_USER
    return RawRecord(
        start_time=_cell(row, columns.start_time),
        end_time=_cell(row, columns.end_time),
        activity_type=_cell(row, columns.activity_type),
        reported_minutes=parse_duration_to_minutes(_cell(row, columns.duration), metrics),
        title=_cell(row, columns.title),
        application=_cell(row, columns.application),
        url=_cell(row, columns.website),
        category=_cell(row, columns.category),
        username=username,
        details=_cell(row, columns.details),
    )


def _calculate_duration_minutes(record: RawRecord, elapsed: datetime.timedelta) -> int:
    reported = round_half_up(record.reported_minutes) if record.reported_minutes else 0
    if reported > 0:
        return reported
    elapsed_seconds = elapsed.total_seconds()
    minutes = round_half_up(elapsed_seconds / 60)
    if minutes == 0 and elapsed_seconds > 0:
        return 1  # Sub-minute events shouldn't vanish from duration-weighted displays.
    return minutes


def normalize_record(record: Optional[RawRecord], row_number: int, activity_id: str, parse_time) -> Activity:
    """
    Converts one raw record into `Activity`.
    :param record: Raw record or `None` if the input entry is not an activity at all.
    :param row_number: 1-based number of the record in the input, for diagnostics.
    :param activity_id: Identifier to assign.
    :param parse_time: Function to parse raw timestamps.
    :raises RowSkipped: If record is malformed, timestamps are missing, unparseable or end is before start.
    """
    if record is None:
        raise RowSkipped("malformed activity", row_number)
    start_time = parse_time(record.start_time)
    if start_time is None:
        raise RowSkipped("unparseable start time", row_number, repr(record.start_time))
    end_time = parse_time(record.end_time)
    if end_time is None:
        raise RowSkipped("unparseable end time", row_number, repr(record.end_time))
    if end_time < start_time:
        raise RowSkipped("end before start", row_number, f"{start_time}..{end_time}")
    return Activity(
        id=activity_id,
        type=ActivityType.from_raw(record.activity_type),
        title=record.title or record.application or record.url or record.activity_type or UNKNOWN_ACTIVITY_TITLE,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=_calculate_duration_minutes(record, end_time - start_time),
        username=record.username,
        application_name=record.application,
        url=record.url,
        category=record.category,
        details=record.details,
    )


def build_batch(
    records: Iterable[Optional[RawRecord]],
    id_prefix: str,
    timezone: datetime.tzinfo = None,
    strategies: List[TimestampStrategy] = None,
    metrics: Metrics = None,
) -> ParsedBatch:
    """
    Normalizes raw records into `ParsedBatch`. Skips defective rows, sorts kept ones by start time.
    :param records: Raw records in input order.
    :param id_prefix: Prefix for generated activity identifiers.
    :param timezone: Timezone for timestamps without it and for day boundaries. By-default the current one.
    :param strategies: Timestamp parsing strategies. By-default `DEFAULT_STRATEGIES`.
    :param metrics: Metrics to continue counting in.
    :raises EmptyResultError: If no row was kept.
    """
    timezone = timezone or CURRENT_TIMEZONE
    metrics = metrics if metrics is not None else Metrics()
    parse_time = make_parser(timezone, strategies if strategies is not None else DEFAULT_STRATEGIES)
    activities: List[Activity] = []
    rows_seen = 0
    for index, record in enumerate(records):
        rows_seen += 1
        try:
            activity = normalize_record(record, index + 1, f"{id_prefix}-{index}", parse_time)
        except RowSkipped as err:
            LOG.warning("%s", err)
            metrics.incr(METRIC_ROWS_SKIPPED_PREFIX + err.reason)
            continue
        metrics.incr(METRIC_ROWS_KEPT, activity.duration.total_seconds())
        activities.append(activity)
    if not activities:
        raise EmptyResultError(f"No valid activity rows found among {rows_seen} rows.")
    activities.sort(key=lambda x: x.start_time)
    covered_range = DateRange(
        start_of_day(min(x.start_time for x in activities), timezone),
        start_of_day(max(x.end_time for x in activities), timezone),
    )
    LOG.info(
        "Kept %d of %d rows, covering %s..%s.",
        len(activities),
        rows_seen,
        covered_range.start.date(),
        covered_range.end.date(),
    )
    return ParsedBatch(activities, covered_range, rows_seen, metrics)


def _read_table(csv_text: str) -> Tuple[List[str], List[Dict[str, Optional[str]]]]:
    try:
        rows = [x for x in csv.reader(io.StringIO(csv_text)) if any(cell.strip() for cell in x)]
    except csv.Error as err:
        raise SchemaError(f"CSV parsing failed: {err}") from err
    if not rows:
        raise SchemaError("CSV file contains no header row.")
    headers = [x.strip() for x in rows[0]]
    data = [dict(zip(headers, x)) for x in rows[1:]]
    return headers, data


def parse_activity_csv(
    csv_text: Union[str, bytes],
    timezone: datetime.tzinfo = None,
    strategies: List[TimestampStrategy] = None,
) -> ParsedBatch:
    """
    Parses CSV text with activities into `ParsedBatch`.
    Columns are recognized by aliases, see `resolve_columns`. Rows with missing or broken timestamps are skipped.
    :param csv_text: Content of CSV file. Bytes are decoded as UTF-8 (BOM is allowed).
    :param timezone: Timezone for date/time strings without offset. By-default the current one.
    :param strategies: Timestamp parsing strategies. By-default `DEFAULT_STRATEGIES`.
    :raises SchemaError: If text is not a table or mandatory columns are absent.
    :raises EmptyResultError: If no row was kept.
    """
    if isinstance(csv_text, bytes):
        try:
            csv_text = csv_text.decode("utf-8-sig")
        except UnicodeDecodeError as err:
            raise SchemaError(f"CSV file is not UTF-8 text: {err}") from err
    csv_text = csv_text.lstrip("\ufeff")
    headers, data = _read_table(csv_text)
    columns = resolve_columns(headers)
    LOG.debug("Resolved CSV columns: %s", columns)
    if not data:
        raise EmptyResultError("CSV file contains no data rows.")
    metrics = Metrics()
    records = (_csv_row_to_record(row, columns, metrics) for row in data)
    return build_batch(records, FILE_ID_PREFIX, timezone, strategies, metrics)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _api_activity_to_record(raw: Dict[str, Any], username: Optional[str]) -> Optional[RawRecord]:
    if not isinstance(raw, dict):
        return None
    reported = raw.get("durationMinutes")
    if isinstance(reported, bool) or not isinstance(reported, (int, float)) or not math.isfinite(reported):
        reported = None
    return RawRecord(
        start_time=raw.get("startTime"),
        end_time=raw.get("endTime"),
        activity_type=_optional_str(raw.get("type")),
        reported_minutes=reported,
        title=_optional_str(raw.get("title")),
        application=_optional_str(raw.get("applicationName")),
        url=_optional_str(raw.get("url")),
        category=_optional_str(raw.get("category")),
        username=username,
        details=_optional_str(raw.get("details")),
    )


def normalize_api_activities(
    raw_activities: Iterable[Dict[str, Any]],
    username: Optional[str] = None,
    timezone: datetime.tzinfo = None,
    id_prefix: str = API_ID_PREFIX,
) -> ParsedBatch:
    """
    Normalizes activities with already named fields (`startTime`, `endTime`, `type`, `durationMinutes`, etc.).
    :param raw_activities: Raw activity dictionaries.
    :param username: User to assign to all activities.
    :param timezone: Timezone for timestamps without offset. By-default the current one.
    :param id_prefix: Prefix for generated identifiers.
    :raises EmptyResultError: If no activity was kept.
    """
    records = (_api_activity_to_record(x, username) for x in raw_activities)
    return build_batch(records, id_prefix, timezone, ISO_STRATEGIES)


def normalize_api_payload(payload: Dict[str, Any], timezone: datetime.tzinfo = None) -> ParsedBatch:
    """
    Normalizes "timeline data" payload of the activity API: `{activities, date, userId, username}`.
    :raises SchemaError: If payload has no activities list.
    :raises EmptyResultError: If no activity was kept.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("activities"), list):
        raise SchemaError("Activity payload has no 'activities' list.")
    return normalize_api_activities(payload["activities"], _optional_str(payload.get("username")), timezone)
