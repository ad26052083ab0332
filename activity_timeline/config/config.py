import datetime
import logging
import os
from typing import Dict, List, Tuple


# ---------- INPUT SETTINGS ---------- How raw tabular/API data is recognized.
# Column name aliases per semantic field, in priority order. Matched case-insensitively against CSV headers.
START_TIME_ALIASES = [
    "Start Date/Time",
    "StartTime",
    "Start Date",
    "Start UTC Timestamp",
    "Start Time",
    "Start Timestamp",
    "Start",
]
END_TIME_ALIASES = [
    "End Date/Time",
    "EndTime",
    "End Date",
    "End UTC Timestamp",
    "End Time",
    "End Timestamp",
    "End",
]
ACTIVITY_TYPE_ALIASES = ["Activity Type", "Type"]
DURATION_ALIASES = ["Duration"]
APPLICATION_ALIASES = ["Application", "App", "Application Name"]
WEBSITE_ALIASES = ["Website", "URL", "Webpage"]
TITLE_ALIASES = ["Title"]
CATEGORY_ALIASES = ["Categories", "Category"]
USERNAME_ALIASES = ["Username", "User Name", "User"]
DETAILS_ALIASES = ["Details", "Description"]
# Human-readable date/time formats to try in order. ISO-8601 is tried after all of them.
# Day-first goes before month-first: "14/11/2023" is unambiguous, "11/14/2023" fails day-first.
DATETIME_FORMATS = [
    "%d/%m/%Y %H:%M",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
]
# Epoch numbers above this value are milliseconds, otherwise seconds.
# Seconds stay below ~2*10^10 for the next few centuries while milliseconds passed 10^11 in 1973.
EPOCH_MILLIS_THRESHOLD = 10**11
# Case-insensitive substrings to map raw activity type strings. Checked in the order of this list.
ACTIVITY_TYPE_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("WebPage", ["web", "http", "browser"]),
    ("Application", ["app", "program", "exe"]),
    ("Idle", ["idle", "lock", "away"]),
]
# Placeholders for missing values.
UNKNOWN_ACTIVITY_TITLE = "Unknown Activity"
UNKNOWN_USER = "Unknown User"
# Prefixes for generated activity identifiers, per source.
FILE_ID_PREFIX = "file"
API_ID_PREFIX = "api"
ACTIVITYWATCH_ID_PREFIX = "aw"


# ---------- VIEW SETTINGS ---------- Timeline viewport and summaries.
# Finest zoom, i.e. minimal visible width of the timeline in minutes.
MIN_VIEW_MINUTES = 15
# Widest zoom, the whole day.
MAX_VIEW_MINUTES = 24 * 60
# Zoom level name to visible width in minutes.
ZOOM_LEVELS: Dict[str, int] = {
    "1h": 60,
    "3h": 180,
    "6h": 360,
    "12h": 720,
    "24h": 1440,
}
DEFAULT_ZOOM_LEVEL = "24h"
# Visible width multiplier for one wheel step.
WHEEL_ZOOM_FACTOR = 1.15
# Wheel zoom steps changing visible width less than this number of minutes are ignored.
MIN_ZOOM_STEP_MINUTES = 1
# Part of the visible width to shift on one pan step.
PAN_FRACTION = 0.1
# How many entries to show in "top" breakdowns (domains, applications).
TOP_ENTRIES_LIMIT = 10
# Label for merged time which can't be attributed to any activity type.
UNATTRIBUTED_LABEL = "Unattributed"
# Label for web activities with URL which can't be parsed.
INVALID_URL_DOMAIN = "invalid_url"
# Label for HTTP(S) URLs without host, like "https:///index.html".
LOCAL_DOMAIN = "local"


# ---------- SOURCES SETTINGS ---------- Remote activity sources.
# Base URL of the activity REST API. Like "https://api.company.com".
API_URL: str = os.getenv("ACTIVITY_API_URL", "")
# Key to authorize in the activity REST API.
API_KEY: str = os.getenv("ACTIVITY_API_KEY", "")
# Seconds to wait for the activity REST API or CSV URL response.
API_TIMEOUT_SEC = float(os.getenv("ACTIVITY_API_TIMEOUT_SEC", "30"))
# Version header expected by the activity REST API.
API_VERSION_HEADER = ("Api-Version", "1.0")
# ActivityWatch client name.
ACTIVITYWATCH_CLIENT_NAME = "activity_timeline"
# ActivityWatch bucket prefixes to read and activity type string to assign to their events.
ACTIVITYWATCH_BUCKET_TYPES: Dict[str, str] = {
    "aw-watcher-window": "Application",
    "aw-watcher-web": "WebPage",
    "aw-watcher-afk": "Idle",
}


# ---------- COMMON SETTINGS ----------
# Timezone to interpret naive date/time strings and to split days. Use system timezone.
CURRENT_TIMEZONE = datetime.datetime.now(datetime.timezone.utc).astimezone().tzinfo
# Default logger. Used for cases when package is called as a library.
LOG: logging.Logger = logging.getLogger(__name__)
