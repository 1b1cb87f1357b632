"""
Row Reconciler - decides insert / update / skip for each mapped row

Assumptions kept on purpose:
- Existing rows sharing a unique-key value: the last one wins the index.
- Mapped rows sharing a unique-key value within one batch are not
  deduplicated; each gets its own plan entry.
"""

import logging
from collections import Counter
from typing import Any, Dict, List

from grist_sync.errors import ConfigError
from grist_sync.models import (
    MISSING,
    DestinationRow,
    MappedRow,
    PlanAction,
    PlannedAction,
    SkipReason,
    SyncConfig,
    SyncMode,
    SyncPlan,
)

logger = logging.getLogger(__name__)


def normalize_value(value: Any) -> str:
    """String form used to compare a mapped value with a stored one."""
    if value is None or value is MISSING:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_key_index(rows: List[DestinationRow], key_field: str) -> Dict[str, DestinationRow]:
    """Index existing rows by normalized unique-key value (last row wins)."""
    index: Dict[str, DestinationRow] = {}
    for row in rows:
        value = row.fields.get(key_field)
        if value is None or value == "":
            continue
        key = normalize_value(value)
        if key in index:
            logger.warning(
                f"Duplicate {key_field}={key!r} in destination (rows {index[key].id} and {row.id}); "
                f"using row {row.id}"
            )
        index[key] = row
    return index


def has_changes(mapped: MappedRow, existing: DestinationRow) -> bool:
    """True when any resolved mapped field differs from the stored value."""
    for name, value in mapped.items():
        if value is MISSING:
            continue
        if normalize_value(value) != normalize_value(existing.fields.get(name)):
            return True
    return False


def duplicate_keys(rows: List[MappedRow], key_field: str) -> List[str]:
    """Unique-key values appearing more than once in a mapped batch."""
    counts = Counter(
        normalize_value(row.get(key_field))
        for row in rows
        if row.get(key_field) not in (None, MISSING, "")
    )
    return [key for key, count in counts.items() if count > 1]


class RowReconciler:
    """Builds the sync plan for a batch of mapped rows"""

    def plan(
        self,
        mapped_rows: List[MappedRow],
        existing_rows: List[DestinationRow],
        config: SyncConfig,
    ) -> SyncPlan:
        """
        Compute the plan

        Args:
            mapped_rows: Rows produced by the mapping resolver, in source order
            existing_rows: Destination rows (ignored in insert mode)
            config: Pass configuration (mode and unique key)

        Returns:
            SyncPlan preserving the order of mapped_rows

        Raises:
            ConfigError: If update/upsert is requested without a unique key
        """
        if config.mode is SyncMode.INSERT:
            return SyncPlan([
                PlannedAction(PlanAction.INSERT, row, index)
                for index, row in enumerate(mapped_rows)
            ])

        key_field = (config.unique_key_field or "").strip()
        if not key_field:
            raise ConfigError(f"uniqueKeyField is required in {config.mode.value} mode")

        index = build_key_index(existing_rows, key_field)
        plan = SyncPlan()

        for row_index, row in enumerate(mapped_rows):
            key_value = row.get(key_field, MISSING)
            match = None
            if key_value not in (None, MISSING, ""):
                match = index.get(normalize_value(key_value))

            if match is None:
                if config.mode is SyncMode.UPSERT:
                    plan.actions.append(PlannedAction(PlanAction.INSERT, row, row_index, key_value=key_value))
                else:
                    plan.actions.append(PlannedAction(
                        PlanAction.SKIP, row, row_index,
                        key_value=key_value, skip_reason=SkipReason.NO_MATCH,
                    ))
            elif has_changes(row, match):
                plan.actions.append(PlannedAction(
                    PlanAction.UPDATE, row, row_index,
                    destination_row_id=match.id, key_value=key_value,
                ))
            else:
                plan.actions.append(PlannedAction(
                    PlanAction.SKIP, row, row_index,
                    destination_row_id=match.id, key_value=key_value,
                    skip_reason=SkipReason.UNCHANGED,
                ))

        logger.debug(plan.summary())
        return plan
