"""REST API source provider."""
import logging
from typing import Any, Dict, List, Optional

import requests

from grist_sync.envvars import expand_env_vars
from grist_sync.errors import ConfigError, PathNotFoundError, SourceError, UnextractableResponseError
from grist_sync.source.base import SourceProvider

logger = logging.getLogger(__name__)

# Wrapper keys most REST APIs put their record array under
WRAPPER_KEYS = ("data", "items", "results", "records")


def extract_records(payload: Any, data_path: Optional[str] = None) -> List[Any]:
    """
    Coerce a decoded JSON body into a record list

    Order:
    1. data_path, when configured, must lead to an array
    2. a top-level array is used as is
    3. first array found under one of WRAPPER_KEYS

    Raises:
        PathNotFoundError: data_path missing or not an array
        UnextractableResponseError: no array found anywhere
    """
    if data_path:
        current = payload
        for part in data_path.split("."):
            if not isinstance(current, dict) or part not in current or current[part] is None:
                raise PathNotFoundError(f"Path '{data_path}' not found in response")
            current = current[part]
        if not isinstance(current, list):
            raise PathNotFoundError(f"Data at path '{data_path}' is not an array")
        return current

    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        for key in WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                logger.debug(f"Using records found under '{key}'")
                return payload[key]

    raise UnextractableResponseError("Unable to extract array data from response")


class RestProvider(SourceProvider):
    """
    Fetches records with one HTTP request per call

    Usage:
    ```python
    provider = RestProvider(
        url="https://api.example.com/users",
        headers={"Authorization": "Bearer ${API_TOKEN}"},
        data_path="payload.users",
    )
    records = provider.fetch_data()
    ```
    """

    name = "REST source"

    def __init__(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        data_path: Optional[str] = None,
        body: Optional[Any] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize provider

        Args:
            url: Endpoint returning the records
            method: HTTP method
            headers: Extra headers, values may hold ${NAME} placeholders
            data_path: Dotted path to the record array inside the response
            body: Optional JSON body (for POST-style search endpoints)
            timeout: HTTP request timeout in seconds
            session: Session to reuse (a new one is created otherwise)
        """
        if not url:
            raise ConfigError("REST provider requires a URL")
        self.url = url
        self.method = (method or "GET").upper()
        self.headers = dict(headers or {})
        self.data_path = data_path
        self.body = body
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_data(self) -> List[Any]:
        """Fetch and extract the record array."""
        headers = {"Content-Type": "application/json"}
        headers.update(expand_env_vars(self.headers))

        try:
            response = self.session.request(
                self.method,
                self.url,
                headers=headers,
                json=self.body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SourceError(f"Failed to fetch data from REST API: {e}") from e

        if not response.ok:
            raise SourceError(f"Failed to fetch data from REST API: HTTP error! status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceError(f"Failed to fetch data from REST API: invalid JSON ({e})") from e

        records = extract_records(payload, self.data_path)
        logger.info(f"Fetched {len(records)} records from {self.url}")
        return records
