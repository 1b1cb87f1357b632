"""Abstract base class for source providers."""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class SourceProvider(ABC):
    """Abstract base class for record sources."""

    name = "source"

    @abstractmethod
    def fetch_data(self) -> List[Dict[str, Any]]:
        """
        Fetch the full record collection.

        Returns:
            List of loosely-typed records

        Raises:
            SourceError: On transport, HTTP or parse failure
        """

    def test_connection(self) -> bool:
        """Return True when a fetch succeeds. Never raises."""
        try:
            self.fetch_data()
            return True
        except Exception as e:
            logger.warning(f"{self.name} connection test failed: {e}")
            return False
