"""
Timestamp parsing as an ordered list of strategies. The first strategy which understands a value wins.
"""
import datetime
import re
from typing import Callable, List, Optional, Union

from ..config.config import DATETIME_FORMATS, EPOCH_MILLIS_THRESHOLD, LOG

RawTimestamp = Union[str, int, float, datetime.datetime, None]

_EPOCH_RE = re.compile(r"^\s*\d+(\.\d+)?\s*$")


def _to_epoch_number(value: RawTimestamp) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        return value if abs(value) < 2 ** 63 else None
    if isinstance(value, str) and _EPOCH_RE.match(value):
        return float(value)
    return None


def _from_epoch(seconds: float) -> Optional[datetime.datetime]:
    try:
        return datetime.datetime.fromtimestamp(seconds, datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        # Out of the platform datetime range, also NaN and infinity.
        return None


class TimestampStrategy:
    """
    Base class of one way to interpret a raw timestamp value. By-default understands nothing.
    """

    name = "none"

    def parse(self, value: RawTimestamp, timezone: datetime.tzinfo) -> Optional[datetime.datetime]:
        """
        Tries to convert value into aware datetime.
        :param value: Raw value from CSV cell or API field.
        :param timezone: Timezone for values without timezone information.
        :return: Aware datetime or `None` if value doesn't match this strategy.
        """
        raise NotImplementedError("parse is not implemented")

    def __repr__(self) -> str:
        return self.name


class EpochSeconds(TimestampStrategy):
    """Epoch number in seconds. Declines values big enough to be milliseconds."""

    name = "epoch-seconds"

    def parse(self, value, timezone):
        number = _to_epoch_number(value)
        if number is None or number > EPOCH_MILLIS_THRESHOLD:
            return None
        return _from_epoch(number)


class EpochMillis(TimestampStrategy):
    """Epoch number in milliseconds. Declines values small enough to be seconds."""

    name = "epoch-millis"

    def parse(self, value, timezone):
        number = _to_epoch_number(value)
        if number is None or number <= EPOCH_MILLIS_THRESHOLD:
            return None
        return _from_epoch(number / 1000.0)


class NamedFormat(TimestampStrategy):
    """Date/time string in one `strptime` format."""

    def __init__(self, fmt: str) -> None:
        self.fmt = fmt
        self.name = f"format '{fmt}'"

    def parse(self, value, timezone):
        if not isinstance(value, str):
            return None
        try:
            result = datetime.datetime.strptime(value.strip(), self.fmt)
        except ValueError:
            return None
        return result if result.tzinfo else result.replace(tzinfo=timezone)


class Iso8601(TimestampStrategy):
    """ISO-8601 string, with or without offset. Trailing "Z" means UTC."""

    name = "iso-8601"

    def parse(self, value, timezone):
        if isinstance(value, datetime.datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone)
        if not isinstance(value, str) or not value.strip():
            return None
        text = value.strip()
        if text[-1] in "zZ":
            text = text[:-1] + "+00:00"
        try:
            result = datetime.datetime.fromisoformat(text)
        except ValueError:
            return None
        return result if result.tzinfo else result.replace(tzinfo=timezone)


DEFAULT_STRATEGIES: List[TimestampStrategy] = (
    [EpochSeconds(), EpochMillis()] + [NamedFormat(x) for x in DATETIME_FORMATS] + [Iso8601()]
)
"""Strategies for CSV cells: epoch numbers first, next human-readable formats, ISO-8601 last."""

ISO_STRATEGIES: List[TimestampStrategy] = [Iso8601(), EpochSeconds(), EpochMillis()]
"""Strategies for API payloads which are expected to carry ISO-8601 strings."""


def parse_timestamp(
    value: RawTimestamp,
    timezone: datetime.tzinfo,
    strategies: List[TimestampStrategy] = None,
) -> Optional[datetime.datetime]:
    """
    Parses raw timestamp with the first strategy which accepts it.
    :param value: Raw value.
    :param timezone: Timezone to assign to values without it.
    :param strategies: Ordered strategies to try. By-default `DEFAULT_STRATEGIES`.
    :return: Aware datetime or `None` if no strategy matched or value is empty.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    for strategy in strategies if strategies is not None else DEFAULT_STRATEGIES:
        result = strategy.parse(value, timezone)
        if result is not None:
            LOG.debug("Parsed '%s' with %s into %s", value, strategy, result)
            return result
    return None


def make_parser(
    timezone: datetime.tzinfo, strategies: List[TimestampStrategy] = None
) -> Callable[[RawTimestamp], Optional[datetime.datetime]]:
    """Binds timezone and strategies into one-argument parse function."""
    return lambda value: parse_timestamp(value, timezone, strategies)
