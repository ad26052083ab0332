import datetime

import requests

from ..config.config import API_TIMEOUT_SEC, LOG
from ..domain.errors import FetchError
from ..domain.input_entities import ParsedBatch
from ..domain.normalizer import parse_activity_csv


def read_csv_file(path: str, timezone: datetime.tzinfo = None) -> ParsedBatch:
    """
    Reads CSV file with activities.
    :raises OSError: If file can't be read.
    :raises SchemaError: If file is not a CSV table with required columns.
    :raises EmptyResultError: If file has no valid rows.
    """
    with open(path, "rb") as file:
        content = file.read()
    LOG.info("Read %d bytes from '%s'.", len(content), path)
    return parse_activity_csv(content, timezone)


def fetch_csv_url(url: str, timezone: datetime.tzinfo = None, timeout_sec: float = API_TIMEOUT_SEC) -> ParsedBatch:
    """
    Downloads CSV file with activities.
    :raises FetchError: If file can't be downloaded.
    :raises SchemaError: If content is not a CSV table with required columns.
    :raises EmptyResultError: If content has no valid rows.
    """
    try:
        response = requests.get(url, timeout=timeout_sec)
    except requests.exceptions.RequestException as err:
        raise FetchError(None, f"Can't download '{url}': {err}") from err
    if not response.ok:
        raise FetchError(response.status_code, f"Can't download '{url}': {response.reason}")
    LOG.info("Downloaded %d bytes from '%s'.", len(response.content), url)
    return parse_activity_csv(response.content, timezone)


def is_url(path_or_url: str) -> bool:
    return path_or_url.lower().startswith(("http://", "https://"))


def load_csv(path_or_url: str, timezone: datetime.tzinfo = None) -> ParsedBatch:
    """Reads CSV either from URL or from local file."""
    if is_url(path_or_url):
        return fetch_csv_url(path_or_url, timezone)
    return read_csv_file(path_or_url, timezone)
