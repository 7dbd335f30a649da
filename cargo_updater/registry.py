"""
crates.io registry client.

Fetches the newest published version of a crate together with its
repository URL and last publish date from ``/api/v1/crates/<name>``.
"""

from __future__ import annotations

import datetime
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

from .common import user_agent
from .config import DEFAULT_REGISTRY_URL
from .errors import RegistryNetworkError, RegistryResponseError
from .inventory import UNKNOWN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryInfo:
    """
    What the registry knows about a crate.

    Attributes:
        newest_version: Newest published version
        repository: Repository URL, "-" when the crate declares none
        last_published: Last update formatted as "<day> <Month> <year>", "-" when unknown
    """
    newest_version: str
    repository: str = UNKNOWN
    last_published: str = UNKNOWN


def format_publish_date(value: Any) -> str:
    """
    Reformat an ISO-8601 timestamp for display.

    Args:
        value: Raw ``updated_at`` field, e.g. "2024-03-05T17:02:11.123456+00:00"

    Returns:
        "5 March 2024", or "-" if the value is missing or not a timestamp
    """
    if not isinstance(value, str) or not value:
        return UNKNOWN
    try:
        when = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return UNKNOWN
    return f"{when.day} {when.strftime('%B')} {when.year}"


def http_get(url: str, timeout: float | None = None, headers: dict[str, str] | None = None) -> bytes:
    """
    Perform an HTTP GET request.

    Args:
        url: URL to fetch
        timeout: Timeout in seconds, None for the client default
        headers: Extra HTTP headers

    Returns:
        Response body

    Raises:
        RegistryNetworkError: If the request fails or returns a non-2xx status
    """
    request_headers = {"User-Agent": user_agent(), "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    req = urllib.request.Request(url, headers=request_headers)
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = timeout

    try:
        with urllib.request.urlopen(req, **kwargs) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise RegistryNetworkError(f"GET {url} returned HTTP {status}")
            return response.read()
    except urllib.error.HTTPError as e:
        raise RegistryNetworkError(f"GET {url} returned HTTP {e.code}") from e
    except (urllib.error.URLError, OSError) as e:
        raise RegistryNetworkError(f"Failed to fetch {url}: {e}") from e


class RegistryClient:
    """
    Client for the crate registry's JSON API.

    Thread safe: every fetch opens its own connection and keeps no state.
    """

    def __init__(self, base_url: str = DEFAULT_REGISTRY_URL, timeout: float | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def crate_url(self, name: str) -> str:
        return f"{self.base_url}/api/v1/crates/{urllib.parse.quote(name, safe='')}"

    def fetch(self, name: str) -> RegistryInfo:
        """
        Look up a crate.

        Args:
            name: Crate name

        Returns:
            RegistryInfo for the crate

        Raises:
            RegistryNetworkError: If the request fails
            RegistryResponseError: If the body is not JSON or lacks crate.newest_version
        """
        url = self.crate_url(name)
        logger.debug(f"Querying registry: {url}")
        body = http_get(url, timeout=self.timeout)

        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RegistryResponseError(f"{name}: response is not valid JSON: {e}") from e

        krate = data.get("crate") if isinstance(data, dict) else None
        if not isinstance(krate, dict):
            raise RegistryResponseError(f"{name}: field `<response>.crate` not found")

        newest = krate.get("newest_version")
        if not isinstance(newest, str) or not newest:
            raise RegistryResponseError(f"{name}: field `<response>.crate.newest_version` not found")

        # Some crates publish a null repository
        repository = krate.get("repository")
        if not isinstance(repository, str) or not repository:
            repository = UNKNOWN

        info = RegistryInfo(
            newest_version=newest,
            repository=repository,
            last_published=format_publish_date(krate.get("updated_at")),
        )
        logger.debug(f"crates.io {name}: {info.newest_version}")
        return info
