import argparse
import datetime
import logging
import math
import os

from ..config.config import CURRENT_TIMEZONE


def setup_logging() -> logging.Logger:
    """
    Configures 'logging' package and retuns new logger.
    Sets logging level to environment "LOGLEVEL" value or with "INFO".
    """
    logging.addLevelName(logging.WARNING, "WARN")
    logging.addLevelName(logging.DEBUG, "DEBU")  # To be 4 chars length as another ones.
    logging.basicConfig(
        level=os.getenv("LOGLEVEL", "INFO").upper(),
        format="%(asctime)s.%(msecs)03d %(levelname)-4s: %(message)s",
        datefmt="%H:%M:%S",
    )
    return logging.getLogger()


def datetime_to_time_str(date: datetime.datetime, timezone: datetime.tzinfo = None) -> str:
    timezone = timezone or CURRENT_TIMEZONE
    date = date if date.tzinfo == timezone else date.astimezone(timezone)
    return f"{date:%H:%M:%S}"


def from_start_to_end_to_str(start: datetime.datetime, end: datetime.datetime, timezone: datetime.tzinfo = None) -> str:
    return f"{datetime_to_time_str(start, timezone)}..{datetime_to_time_str(end, timezone)}"


def round_half_up(value: float) -> int:
    """
    Rounds to the nearest integer with halves going up, i.e. 62.5 -> 63.
    Built-in `round` would give 62 because of "banker's" rounding.
    """
    return int(math.floor(value + 0.5))


def format_duration_minutes(total_minutes: float) -> str:
    """
    Converts minutes into short human-friendly string like "2h 5m", "45m", "3h" or "< 1 min".
    """
    if total_minutes < 1:
        return "< 1 min"
    hours, minutes = divmod(round_half_up(total_minutes), 60)
    result = ""
    if hours > 0:
        result += f"{hours}h "
    if minutes > 0 or hours == 0:
        result += f"{minutes}m"
    return result.strip()


def valid_date(date_str) -> datetime.datetime:  # https://stackoverflow.com/a/25470943
    try:
        return datetime.datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=CURRENT_TIMEZONE)
    except ValueError as err:
        msg = "not a valid date: {0!r}".format(date_str)
        raise argparse.ArgumentTypeError(msg) from err


def start_of_day(obj, timezone: datetime.tzinfo = None) -> datetime.datetime:
    """
    Takes a date or a datetime as input, outputs a datetime of midnight of the same day.
    :param obj: Datetime or date. Aware datetimes are converted into `timezone` first.
    :param timezone: Timezone to split days in. By-default is the current one.
    :return: Always datetime in given time zone.
    """
    timezone = timezone or CURRENT_TIMEZONE
    if isinstance(obj, datetime.datetime) and obj.tzinfo is not None:
        obj = obj.astimezone(timezone)
    return datetime.datetime(obj.year, obj.month, obj.day, tzinfo=timezone)
