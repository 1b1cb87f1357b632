"""Transformer registry."""
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

Transformer = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


class TransformerRegistry:
    """Registry of named value transformers usable from job files."""

    def __init__(self):
        """Initialize registry."""
        self.transformers: Dict[str, Transformer] = {
            "NONE": _identity,
            "UPPERCASE": lambda x: str(x).upper() if x else x,
            "LOWERCASE": lambda x: str(x).lower() if x else x,
            "TRIM": lambda x: str(x).strip() if x else x,
            "TO_INT": self._to_int,
            "TO_FLOAT": self._to_float,
            "TO_BOOL": self._to_bool,
            "DATE_ONLY": self._date_only,
            "SPLIT": lambda x: [part.strip() for part in x.split(",")] if isinstance(x, str) else x,
        }

    def register(self, name: str, transformer: Transformer) -> None:
        """Register (or replace) a transformer under an upper-cased name."""
        self.transformers[name.upper()] = transformer

    def get(self, name: str) -> Transformer:
        """Get transformer by name, identity if unknown."""
        transformer = self.transformers.get((name or "NONE").upper())
        if transformer is None:
            logger.warning(f"Unknown transformer: {name}")
            return _identity
        return transformer

    def transform(self, value: Any, transformer_name: str) -> Any:
        """Apply transformation."""
        return self.get(transformer_name)(value)

    @staticmethod
    def _to_int(value: Any) -> Any:
        if value is None or value == "" or isinstance(value, bool):
            return value
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return value

    @staticmethod
    def _to_float(value: Any) -> Any:
        if value is None or value == "" or isinstance(value, bool):
            return value
        try:
            return float(value)
        except (TypeError, ValueError):
            return value

    @staticmethod
    def _to_bool(value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "yes", "1", "y"):
                return True
            if lowered in ("false", "no", "0", "n", ""):
                return False
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        return value

    @staticmethod
    def _date_only(value: Any) -> Any:
        """Cut an ISO timestamp (or datetime) down to its date."""
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str) and len(value) >= 10 and value[4] == "-" and value[7] == "-":
            return value[:10]
        return value


default_registry = TransformerRegistry()
