"""HTTP and JSON helpers shared by the remote data providers."""

import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, tzinfo
from typing import Any, Mapping, Optional

from daylight_wallpaper import __version__
from daylight_wallpaper.exceptions import InvalidResponseError, ProviderError


logger = logging.getLogger(__name__)

USER_AGENT = f"daylight-wallpaper/{__version__}"
DEFAULT_TIMEOUT = 10


def fetch_json(url: str, params: Optional[Mapping[str, Any]] = None, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """
    GET a URL and decode its JSON body.

    Args:
        url: Endpoint URL (may already carry a query string)
        params: Extra query parameters
        timeout: Socket timeout in seconds

    Returns:
        Decoded JSON document

    Raises:
        ProviderError: On network failure, HTTP error or undecodable body
    """
    if params:
        separator = '&' if urllib.parse.urlparse(url).query else '?'
        url = f"{url}{separator}{urllib.parse.urlencode(params)}"

    logger.debug(f"Fetching {url}")
    request = urllib.request.Request(url, headers={'User-Agent': USER_AGENT})

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            body = response.read().decode()
    except urllib.error.HTTPError as e:
        raise ProviderError(f"HTTP {e.code} from {url}") from e
    except urllib.error.URLError as e:
        raise ProviderError(f"Could not reach {url}: {e.reason}") from e
    except (socket.timeout, TimeoutError) as e:
        raise ProviderError(f"Timed out after {timeout}s fetching {url}") from e

    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ProviderError(f"Response from {url} is not valid JSON: {e}") from e


def parse_field(payload: Any, *path: str) -> str:
    """
    Extract a scalar field, or a field nested one level deep, as a string.

    Args:
        payload: Decoded JSON response
        path: One key, or a pair of keys (e.g. "results", "sunrise")

    Returns:
        Field value with surrounding quotes stripped

    Raises:
        InvalidResponseError: If the field is missing
    """
    if len(path) not in (1, 2):
        raise ValueError(f"Expected one or two keys, got {len(path)}")

    value = payload
    for key in path:
        if not isinstance(value, Mapping) or key not in value:
            raise InvalidResponseError(f"Missing field: {'.'.join(path)}")
        value = value[key]

    if value is None or isinstance(value, (Mapping, list)):
        raise InvalidResponseError(f"Field {'.'.join(path)} is not a scalar: {value!r}")

    return str(value).strip('"')


def parse_timestamp(value: str, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert an ISO-8601 datetime string to an aware datetime in local time.

    Args:
        value: ISO-8601 string with UTC offset (e.g. "2024-06-21T03:31:12+00:00")
        tz: Target timezone, or None for the system local zone

    Raises:
        InvalidResponseError: If the string is not an ISO-8601 datetime
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidResponseError(f"Not an ISO-8601 datetime: {value!r}") from e

    if parsed.tzinfo is None:
        raise InvalidResponseError(f"Datetime has no UTC offset: {value!r}")

    return parsed.astimezone(tz)
