"""Abstract destination client consumed by the sync engine."""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from grist_sync.models import DestinationColumn, DestinationRow

logger = logging.getLogger(__name__)


class DestinationClient(ABC):
    """Tabular store with named columns and id-keyed rows."""

    name = "destination"

    @abstractmethod
    def get_columns(self) -> List[DestinationColumn]:
        """Return the current column list."""

    @abstractmethod
    def add_columns(self, columns: List[DestinationColumn]) -> List[str]:
        """Create columns and return their ids."""

    @abstractmethod
    def get_records(self, limit: Optional[int] = None) -> List[DestinationRow]:
        """Return existing rows."""

    @abstractmethod
    def add_records(self, records: List[Dict[str, Any]]) -> List[int]:
        """
        Insert rows and return their new ids.

        Raises:
            DestinationError: If the destination rejects the request
        """

    @abstractmethod
    def update_records(self, updates: List[Dict[str, Any]]) -> None:
        """
        Update rows given as ``{"id": ..., "fields": {...}}``.

        Raises:
            DestinationError: If the destination rejects the request
        """

    def test_connection(self) -> bool:
        """Return True when the column list can be read. Never raises."""
        try:
            self.get_columns()
            return True
        except Exception as e:
            logger.warning(f"{self.name} connection test failed: {e}")
            return False
