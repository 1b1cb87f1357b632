"""In-memory and fixture-file source provider."""
import csv
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from grist_sync.errors import ConfigError, SourceError
from grist_sync.source.base import SourceProvider
from grist_sync.source.rest_provider import extract_records

logger = logging.getLogger(__name__)


class StaticProvider(SourceProvider):
    """Returns a fixed record list. Used for fixtures and tests."""

    name = "static source"

    def __init__(
        self,
        records: Optional[List[Dict[str, Any]]] = None,
        latency_ms: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            records: Records returned by every fetch
            latency_ms: Simulated network delay before each fetch returns
            sleep: Sleep function (injectable for scheduling tests)
        """
        self.records = list(records or [])
        self.latency_ms = latency_ms
        self._sleep = sleep

    def fetch_data(self) -> List[Dict[str, Any]]:
        if self.latency_ms > 0:
            self._sleep(self.latency_ms / 1000)
        return list(self.records)

    def test_connection(self) -> bool:
        return True

    @classmethod
    def from_file(cls, path: Union[str, Path], data_path: Optional[str] = None, **kwargs: Any) -> "StaticProvider":
        """
        Load records from a JSON or CSV fixture file

        JSON bodies go through the same extraction rules as REST responses.
        CSV rows become dicts keyed by header (all values are strings).
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Fixture file not found: {path}")

        ext = path.suffix.lower()
        if ext == ".json":
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise SourceError(f"Invalid JSON in {path}: {e}") from e
            records = extract_records(payload, data_path)
        elif ext in (".csv", ".tsv"):
            delimiter = "," if ext == ".csv" else "\t"
            with open(path, "r", encoding="utf-8", newline="") as f:
                records = [dict(row) for row in csv.DictReader(f, delimiter=delimiter)]
        else:
            raise ConfigError(f"Unsupported fixture format: {ext}")

        logger.debug(f"Loaded {len(records)} fixture records from {path}")
        return cls(records, **kwargs)
