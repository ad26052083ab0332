import datetime
from typing import Any, Dict

import requests

from ..config.config import API_KEY, API_TIMEOUT_SEC, API_URL, API_VERSION_HEADER, LOG
from ..domain.errors import FetchError
from ..domain.input_entities import ParsedBatch
from ..domain.normalizer import normalize_api_payload

ENVELOPE_DATA_FIELDS = ("activities", "date", "userId", "username")


def _error_message(response: requests.Response) -> str:
    """Takes error message from JSON body `message` or `error` fields, otherwise builds it from the status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"HTTP error! status: {response.status_code}"


class ActivityApiClient:
    """
    Client of the activity REST API providing activities of one user per day.
    Doesn't retry: each failure is reported as `FetchError` and it is up to the caller to repeat.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        api_key: str = API_KEY,
        timeout_sec: float = API_TIMEOUT_SEC,
        session: requests.Session = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Impersonation {api_key}",
                "Content-Type": "application/json",
                API_VERSION_HEADER[0]: API_VERSION_HEADER[1],
            }
        )

    def get_activities(self, user_id: str, date: datetime.date) -> Dict[str, Any]:
        """
        Requests activities of the user on the date.
        :param user_id: User identifier, mandatory.
        :param date: Day to get activities for.
        :return: "data" part of the response: `{activities, date, userId, username}`.
        :raises ValueError: If user identifier is empty.
        :raises FetchError: On transport failures, non-2xx responses and malformed responses.
        """
        if not user_id:
            raise ValueError("User ID is required")
        url = f"{self.base_url}/api/users/{user_id}/activities"
        params = {"date": f"{date:%Y-%m-%d}"}
        LOG.debug("Requesting %s with %s", url, params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout_sec)
        except requests.exceptions.RequestException as err:
            raise FetchError(None, f"Can't reach activity API: {err}") from err
        if not response.ok:
            raise FetchError(response.status_code, _error_message(response))
        try:
            envelope = response.json()
        except ValueError as err:
            raise FetchError(response.status_code, "Activity API returned not a JSON") from err
        if not isinstance(envelope, dict) or not envelope.get("success"):
            message = envelope.get("message") if isinstance(envelope, dict) else None
            raise FetchError(response.status_code, message or "Activity API reported failure")
        data = envelope.get("data")
        if not isinstance(data, dict):
            raise FetchError(response.status_code, "Activity API response has no data")
        missing = [x for x in ENVELOPE_DATA_FIELDS if x not in data]
        if missing:
            raise FetchError(response.status_code, f"Activity API response misses fields: {', '.join(missing)}")
        if not isinstance(data["activities"], list):
            raise FetchError(response.status_code, "Activity API response 'activities' is not a list")
        LOG.info("Got %d activities of user %s on %s.", len(data["activities"]), data["username"], data["date"])
        return data

    def load_batch(self, user_id: str, date: datetime.date, timezone: datetime.tzinfo = None) -> ParsedBatch:
        """Requests activities of the user on the date and normalizes them into `ParsedBatch`."""
        return normalize_api_payload(self.get_activities(user_id, date), timezone)
