"""
Schema Reconciler - makes sure every mapped field has a destination column

Columns are only ever appended: existing columns are never deleted or retyped.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from grist_sync.api.destination import DestinationClient
from grist_sync.errors import DestinationError, SchemaError, is_duplicate_column_error
from grist_sync.models import MISSING, ColumnType, DestinationColumn, MappedRow

logger = logging.getLogger(__name__)


def required_field_names(rows: Iterable[MappedRow]) -> List[str]:
    """Field names across a batch, in order of first appearance."""
    seen: Dict[str, None] = {}
    for row in rows:
        for name in row:
            seen.setdefault(name, None)
    return list(seen)


def infer_column_type(values: Iterable[Any]) -> ColumnType:
    """Pick a column type from sample values. Text when unsure."""
    samples = [v for v in values if v is not None and v is not MISSING and v != ""]
    if not samples:
        return ColumnType.TEXT
    if all(isinstance(v, bool) for v in samples):
        return ColumnType.BOOL
    if any(isinstance(v, bool) for v in samples):
        return ColumnType.TEXT
    if all(isinstance(v, int) for v in samples):
        return ColumnType.INT
    if all(isinstance(v, (int, float)) for v in samples):
        return ColumnType.NUMERIC
    return ColumnType.TEXT


class SchemaReconciler:
    """Computes and creates missing destination columns"""

    def __init__(
        self,
        destination: DestinationClient,
        auto_create: bool = True,
        infer_types: bool = False,
    ):
        """
        Args:
            destination: Client used to create columns
            auto_create: Create missing columns (otherwise only report them)
            infer_types: Infer Bool/Int/Numeric from sample values instead of Text
        """
        self.destination = destination
        self.auto_create = auto_create
        self.infer_types = infer_types

    @staticmethod
    def missing_columns(existing_columns: List[DestinationColumn], required: Iterable[str]) -> List[str]:
        existing_ids = {column.id for column in existing_columns}
        return [name for name in required if name not in existing_ids]

    def ensure_columns(
        self,
        existing_columns: List[DestinationColumn],
        required: Iterable[str],
        rows: Optional[List[MappedRow]] = None,
    ) -> List[str]:
        """
        Create the columns required but absent

        Args:
            existing_columns: Current destination columns
            required: Required field names, in creation order
            rows: Mapped rows, used as samples when inferring types

        Returns:
            Ids of the columns created (empty when auto_create is off)

        Raises:
            SchemaError: If the destination rejects a creation for a reason
                other than the column already existing, or creates them
                under other ids than the ones requested
        """
        missing = self.missing_columns(existing_columns, required)
        if not missing:
            return []

        if not self.auto_create:
            logger.warning(f"Columns missing and auto-creation disabled: {', '.join(missing)}")
            return []

        specs = [
            DestinationColumn(id=name, label=name, type=self._column_type(name, rows))
            for name in missing
        ]

        try:
            created = self.destination.add_columns(specs) or [spec.id for spec in specs]
        except DestinationError as e:
            if not is_duplicate_column_error(e):
                raise SchemaError(f"Could not create columns {', '.join(missing)}: {e}") from e
            logger.warning(f"Column batch rejected as duplicate, creating one by one: {e}")
            created = self._create_individually(specs)
        else:
            self._check_created(missing, created)

        logger.info(f"Created {len(created)} column(s): {', '.join(created)}")
        return list(created)

    def _create_individually(self, specs: List[DestinationColumn]) -> List[str]:
        created = []
        for spec in specs:
            try:
                returned = self.destination.add_columns([spec]) or [spec.id]
            except DestinationError as e:
                if is_duplicate_column_error(e):
                    logger.info(f"Column {spec.id} already exists, skipping")
                    continue
                raise SchemaError(f"Could not create column {spec.id}: {e}") from e
            self._check_created([spec.id], returned)
            created.extend(returned)
        return created

    @staticmethod
    def _check_created(requested: List[str], returned: List[str]) -> None:
        """The destination may rename ids it cannot use (e.g. "first name" -> first_name)."""
        if set(returned) != set(requested):
            raise SchemaError(
                f"Destination created columns {', '.join(returned)} "
                f"instead of {', '.join(requested)}"
            )

    def _column_type(self, name: str, rows: Optional[List[MappedRow]]) -> ColumnType:
        if not self.infer_types or not rows:
            return ColumnType.TEXT
        return infer_column_type(row.get(name) for row in rows)
