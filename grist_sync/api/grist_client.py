"""Grist REST API client."""
import logging
from typing import Any, Dict, List, Optional, Type

import requests

from config import GristApiConfig
from grist_sync.api.destination import DestinationClient
from grist_sync.errors import DestinationError, DestinationWriteError
from grist_sync.models import ColumnType, DestinationColumn, DestinationRow

logger = logging.getLogger(__name__)


class GristClient(DestinationClient):
    """Client for one table of a Grist document."""

    name = "Grist"

    def __init__(self, config: GristApiConfig, doc_id: str, table_id: str):
        """Initialize client."""
        self.config = config
        self.doc_id = doc_id
        self.table_id = table_id
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

        if config.api_key:
            self.session.headers.update({"Authorization": f"Bearer {config.api_key}"})

    def get_columns(self) -> List[DestinationColumn]:
        """Get the table columns."""
        data = self._request("GET", "/columns")
        columns = []
        for column in data.get("columns", []):
            fields = column.get("fields") or {}
            columns.append(
                DestinationColumn(
                    id=column["id"],
                    label=fields.get("label") or column["id"],
                    type=ColumnType.parse(fields.get("type")),
                )
            )
        return columns

    def add_columns(self, columns: List[DestinationColumn]) -> List[str]:
        """Create columns, returning the ids Grist assigned."""
        if not columns:
            return []
        data = self._request("POST", "/columns", json={"columns": [c.to_dict() for c in columns]})
        return [c["id"] for c in data.get("columns", [])]

    def get_records(self, limit: Optional[int] = None) -> List[DestinationRow]:
        """Get existing records."""
        params = {"limit": limit} if limit else None
        data = self._request("GET", "/records", params=params)
        return [
            DestinationRow(id=record["id"], fields=record.get("fields") or {})
            for record in data.get("records", [])
        ]

    def add_records(self, records: List[Dict[str, Any]]) -> List[int]:
        """Insert records."""
        if not records:
            return []
        body = {"records": [{"fields": fields} for fields in records]}
        data = self._request("POST", "/records", json=body, error_cls=DestinationWriteError)
        return [r["id"] for r in data.get("records", [])]

    def update_records(self, updates: List[Dict[str, Any]]) -> None:
        """Update records by id."""
        if not updates:
            return
        body = {"records": [{"id": u["id"], "fields": u["fields"]} for u in updates]}
        self._request("PATCH", "/records", json=body, error_cls=DestinationWriteError)

    def validate_api_token(self) -> Dict[str, Any]:
        """
        Check the token with a one-row read

        Returns:
            {valid: bool, message: str, needs_auth: bool}
        """
        try:
            response = self.session.get(
                self._url("/records"), params={"limit": 1}, timeout=self.config.timeout
            )
        except requests.exceptions.RequestException as e:
            return {"valid": False, "message": str(e), "needs_auth": False}

        if response.status_code == 401:
            return {"valid": False, "message": "Private document - API token required", "needs_auth": True}
        if response.status_code == 403:
            return {"valid": False, "message": "Invalid API token or insufficient permissions", "needs_auth": True}
        if response.ok:
            if self.config.api_key:
                return {"valid": True, "message": "API token valid", "needs_auth": False}
            return {"valid": True, "message": "Public document - no authentication required", "needs_auth": False}
        return {"valid": False, "message": f"HTTP error {response.status_code}", "needs_auth": False}

    def _url(self, endpoint: str) -> str:
        base = (self.config.base_url or "https://docs.getgrist.com").rstrip("/")
        return f"{base}/api/docs/{self.doc_id}/tables/{self.table_id}{endpoint}"

    def _request(
        self,
        method: str,
        endpoint: str,
        error_cls: Type[DestinationError] = DestinationError,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        url = self._url(endpoint)
        try:
            response = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise error_cls(f"Grist request {method} {endpoint} failed: {e}") from e

        if not response.ok:
            text = response.text or ""
            logger.debug(f"Grist {method} {endpoint} -> {response.status_code}: {text}")
            raise error_cls(
                f"Grist error ({response.status_code}): {text}",
                status_code=response.status_code,
                body=text,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise DestinationError(f"Invalid JSON from Grist {method} {endpoint}: {e}") from e
