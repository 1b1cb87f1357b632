"""
Grist Sync - synchronizes records from external sources into a Grist table

Pipeline for one pass:
- Source provider fetches loosely-shaped records (REST or static)
- Mapping resolver flattens them via dotted-path field mappings
- Schema reconciler appends the columns the mapping needs
- Row reconciler plans insert / update / skip by unique key
- Sync service executes (or simulates) the plan and reports a SyncResult
"""

from .errors import (
    ConfigError,
    DestinationError,
    DestinationWriteError,
    PathNotFoundError,
    SchemaError,
    SourceError,
    SyncError,
    UnextractableResponseError,
)
from .mapper import FieldMapping
from .models import MISSING, SyncConfig, SyncMode, SyncResult
from .sync import SyncService

__all__ = [
    "ConfigError",
    "DestinationError",
    "DestinationWriteError",
    "FieldMapping",
    "MISSING",
    "PathNotFoundError",
    "SchemaError",
    "SourceError",
    "SyncConfig",
    "SyncError",
    "SyncMode",
    "SyncResult",
    "SyncService",
    "UnextractableResponseError",
]

__version__ = "0.1.0"
