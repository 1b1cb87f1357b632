"""Execute a sync plan against the destination in batches."""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from grist_sync.api.destination import DestinationClient
from grist_sync.errors import DestinationError
from grist_sync.models import MISSING, MappedRow, PlannedAction, SyncPlan

logger = logging.getLogger(__name__)


def writable_fields(row: MappedRow) -> Dict[str, Any]:
    """Drop fields whose source path did not resolve."""
    return {name: value for name, value in row.items() if value is not MISSING}


@dataclass
class ExecutionOutcome:
    """Counts accumulated while writing a plan."""

    added: int = 0
    updated: int = 0
    errors: int = 0
    details: List[str] = field(default_factory=list)


class PlanExecutor:
    """Writes inserts and updates, isolating failures to single rows."""

    def __init__(self, destination: DestinationClient, batch_size: int = 100):
        """
        Initialize executor.

        Args:
            destination: Destination client
            batch_size: Number of rows per write request
        """
        self.destination = destination
        self.batch_size = max(1, batch_size)

    def execute(
        self,
        plan: SyncPlan,
        key_field: Optional[str] = None,
        outcome: Optional[ExecutionOutcome] = None,
    ) -> ExecutionOutcome:
        """
        Write every insert and update of the plan

        Inserts are written first, then updates; each group keeps the
        source order of the plan, and so do its detail lines.

        A rejected row is counted as an error and the next rows still get
        written. Failed writes are not retried: a multi-row batch the
        destination rejected is split into single rows (nothing of it was
        written), while a batch that got no response counts every row as
        an error and is not sent again.

        Args:
            plan: Plan built by the row reconciler
            key_field: Unique-key field, quoted in error details
            outcome: Accumulator to fill (a new one is created otherwise)

        Returns:
            ExecutionOutcome with added/updated/errors and detail lines
        """
        outcome = outcome if outcome is not None else ExecutionOutcome()

        inserts = plan.inserts
        if inserts:
            self._write_batches(inserts, "insert", self._insert, key_field, outcome)
            outcome.details.append(f"Inserted {outcome.added} of {len(inserts)} records")

        updates = plan.updates
        if updates:
            self._write_batches(updates, "update", self._update, key_field, outcome)
            outcome.details.append(f"Updated {outcome.updated} of {len(updates)} records")

        return outcome

    def _insert(self, batch: List[PlannedAction], outcome: ExecutionOutcome) -> None:
        self.destination.add_records([writable_fields(a.row) for a in batch])
        outcome.added += len(batch)

    def _update(self, batch: List[PlannedAction], outcome: ExecutionOutcome) -> None:
        self.destination.update_records([
            {"id": a.destination_row_id, "fields": writable_fields(a.row)} for a in batch
        ])
        outcome.updated += len(batch)

    def _write_batches(
        self,
        actions: List[PlannedAction],
        verb: str,
        write: Callable[[List[PlannedAction], ExecutionOutcome], None],
        key_field: Optional[str],
        outcome: ExecutionOutcome,
    ) -> None:
        total_batches = (len(actions) + self.batch_size - 1) // self.batch_size

        for batch_idx, batch_start in enumerate(range(0, len(actions), self.batch_size)):
            batch = actions[batch_start:batch_start + self.batch_size]
            batch_num = batch_idx + 1

            try:
                write(batch, outcome)
                logger.debug(f"{verb} batch {batch_num}/{total_batches}: {len(batch)} rows")
                continue
            except DestinationError as e:
                if len(batch) == 1:
                    self._record_failure(batch[0], verb, key_field, e, outcome)
                    continue
                if e.status_code is None:
                    # No answer from the destination: the batch may have been committed
                    logger.error(
                        f"{verb} batch {batch_num}/{total_batches} got no response ({e}); not re-sending"
                    )
                    outcome.details.append(
                        f"Batch {batch_num}/{total_batches} ({verb}) got no response, "
                        f"{len(batch)} rows not confirmed"
                    )
                    for action in batch:
                        self._record_failure(action, verb, key_field, e, outcome)
                    continue
                logger.warning(
                    f"{verb} batch {batch_num}/{total_batches} rejected ({e}); writing rows one by one"
                )
                outcome.details.append(
                    f"Batch {batch_num}/{total_batches} ({verb}) rejected, writing {len(batch)} rows individually"
                )

            # A rejected batch writes nothing: send each of its rows on its own
            for action in batch:
                try:
                    write([action], outcome)
                except DestinationError as e:
                    self._record_failure(action, verb, key_field, e, outcome)

    @staticmethod
    def _record_failure(
        action: PlannedAction,
        verb: str,
        key_field: Optional[str],
        error: DestinationError,
        outcome: ExecutionOutcome,
    ) -> None:
        key = ""
        if key_field and action.row.get(key_field, MISSING) is not MISSING:
            key = f" ({key_field}={action.row[key_field]!r})"
        message = f"Row {action.row_index + 1}{key}: {verb} failed: {error}"
        logger.error(message)
        outcome.errors += 1
        outcome.details.append(message)
