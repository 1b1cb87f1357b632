"""
Sync Service - runs one synchronization pass end to end

fetch (with retry) -> map -> ensure columns -> read rows -> plan -> write or simulate

Every pass returns a SyncResult; nothing raised inside a pass escapes sync().
"""

import logging
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from grist_sync.api.destination import DestinationClient
from grist_sync.errors import ConfigError, SourceError, SyncError
from grist_sync.mapper.mapping import FieldMapping, get_valid_mappings
from grist_sync.mapper.resolver import transform_records
from grist_sync.models import MappedRow, SyncConfig, SyncPlan, SyncResult, SyncStatus
from grist_sync.reconcile.row_reconciler import RowReconciler, duplicate_keys
from grist_sync.reconcile.schema_reconciler import SchemaReconciler, required_field_names
from grist_sync.source.base import SourceProvider
from grist_sync.sync.plan_executor import ExecutionOutcome, PlanExecutor
from grist_sync.transformer.registry import TransformerRegistry

logger = logging.getLogger(__name__)


class SyncService:
    """
    Synchronizes one source into one destination table

    Usage:
    ```python
    service = SyncService(
        source=RestProvider(url="https://api.example.com/users"),
        destination=GristClient(app_config.grist_api, "docId", "Users"),
        mappings=[FieldMapping("email", "email"), FieldMapping("name", "profile.name")],
        config=SyncConfig(mode=SyncMode.UPSERT, unique_key_field="email"),
    )
    result = service.sync()
    ```

    Passes for the same source/destination pair must not overlap; the
    service holds no lock.
    """

    def __init__(
        self,
        source: SourceProvider,
        destination: DestinationClient,
        mappings: List[FieldMapping],
        config: Optional[SyncConfig] = None,
        registry: Optional[TransformerRegistry] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            source: Provider records are fetched from
            destination: Client of the destination table
            mappings: Field mappings (invalid or disabled ones are ignored)
            config: Pass options, defaults when omitted
            registry: Registry for named transforms
            sleep: Sleep function used between fetch attempts
        """
        self.source = source
        self.destination = destination
        self.mappings = list(mappings)
        self.config = config or SyncConfig()
        self.registry = registry
        self._sleep = sleep
        self.status = SyncStatus()

    def get_status(self) -> SyncStatus:
        """Return a copy of the observability counters."""
        return replace(self.status)

    def test_connections(self) -> Dict[str, bool]:
        """Check both ends. Never raises."""
        return {
            "source": self._safe_probe(self.source.test_connection, "source"),
            "destination": self._safe_probe(self.destination.test_connection, "destination"),
        }

    def sync(self) -> SyncResult:
        """Run one pass and report it."""
        started = time.monotonic()
        self.status.running = True
        self.status.last_run = datetime.now()

        details: List[str] = []
        outcome = ExecutionOutcome(details=details)
        counts = {"unchanged": 0, "skipped": 0}
        fatal = False

        try:
            self._validate()

            details.append("Fetching data from source...")
            records = self._fetch_with_retry(details)
            details.append(f"Fetched {len(records)} records from source")

            rows = transform_records(records, self.mappings, self.registry)
            details.append(f"Mapped {len(rows)} records")

            self._reconcile_columns(rows, details)

            existing = []
            if self.config.mode.needs_lookup:
                existing = self.destination.get_records()
                details.append(f"Read {len(existing)} existing records from destination")

            plan = RowReconciler().plan(rows, existing, self.config)
            details.append(plan.summary())
            self._report_plan_warnings(plan, rows, details)

            counts["unchanged"] = len(plan.unchanged)
            counts["skipped"] = len(plan.unmatched)

            if self.config.dry_run:
                outcome.added = len(plan.inserts)
                outcome.updated = len(plan.updates)
                details.append("Dry run: no changes written")
            else:
                PlanExecutor(self.destination, self.config.batch_size).execute(
                    plan, self.config.unique_key_field, outcome
                )

        except SyncError as e:
            fatal = True
            logger.error(f"Synchronization failed: {e}")
            details.append(f"✗ Synchronization failed: {e}")
            self.status.last_error = str(e)
        except Exception as e:
            fatal = True
            logger.exception("Unexpected error during synchronization")
            details.append(f"✗ Synchronization failed: {type(e).__name__}: {e}")
            self.status.last_error = str(e)
        finally:
            self.status.running = False

        errors = outcome.errors + (1 if fatal else 0)
        success = errors == 0
        if success:
            details.append("✓ Synchronization completed successfully")
            self.status.last_success = datetime.now()
        elif not fatal:
            details.append(f"✗ Synchronization completed with {errors} error(s)")
            self.status.last_error = f"{errors} row(s) failed"

        if not self.config.dry_run:
            self.status.total_synced += outcome.added + outcome.updated
        self.status.total_errors += errors

        return SyncResult(
            success=success,
            added=outcome.added,
            updated=outcome.updated,
            unchanged=counts["unchanged"],
            errors=errors,
            details=tuple(details),
            duration_ms=int((time.monotonic() - started) * 1000),
            skipped=counts["skipped"],
            dry_run=self.config.dry_run,
        )

    def _validate(self) -> None:
        """Fail before any network call on unusable configuration."""
        self.config.validate()
        valid = get_valid_mappings(self.mappings)
        if not valid:
            raise ConfigError("No valid field mappings configured")
        key_field = self.config.unique_key_field
        if self.config.mode.needs_lookup and key_field not in {m.target_field for m in valid}:
            raise ConfigError(f"uniqueKeyField '{key_field}' is not a mapped target field")

    def _reconcile_columns(self, rows: List[MappedRow], details: List[str]) -> None:
        auto_create = self.config.auto_create_columns
        details.append(
            "Ensuring columns exist in destination..." if auto_create else "Checking columns in destination..."
        )
        reconciler = SchemaReconciler(
            self.destination,
            auto_create=auto_create,
            infer_types=self.config.infer_column_types,
        )
        existing_columns = self.destination.get_columns()
        required = required_field_names(rows)
        missing = reconciler.missing_columns(existing_columns, required)

        if not missing:
            details.append("No columns to create")
        elif not auto_create:
            reconciler.ensure_columns(existing_columns, required, rows)
            details.append(f"Columns missing, auto-creation disabled: {', '.join(missing)}")
        elif self.config.dry_run:
            details.append(f"Dry run: would create {len(missing)} column(s): {', '.join(missing)}")
        else:
            created = reconciler.ensure_columns(existing_columns, required, rows)
            if created:
                details.append(f"Created {len(created)} column(s): {', '.join(created)}")
            else:
                details.append("No columns to create")

    def _fetch_with_retry(self, details: List[str]) -> List[Any]:
        """Fetch with linear backoff: delay * attempt between attempts."""
        attempts = self.config.retry_attempts
        delay_ms = self.config.retry_delay_ms

        for attempt in range(1, attempts + 1):
            try:
                return self.source.fetch_data()
            except SourceError as e:
                if attempt == attempts:
                    details.append(f"Fetch attempt {attempt}/{attempts} failed: {e}")
                    raise
                wait_ms = delay_ms * attempt
                logger.warning(f"Fetch attempt {attempt}/{attempts} failed, retrying in {wait_ms}ms: {e}")
                details.append(f"Fetch attempt {attempt}/{attempts} failed: {e}; retrying in {wait_ms}ms")
                self._sleep(wait_ms / 1000)

        raise SourceError("Failed to fetch data after all retry attempts")

    def _report_plan_warnings(self, plan: SyncPlan, rows: List[MappedRow], details: List[str]) -> None:
        key_field = self.config.unique_key_field
        if not self.config.mode.needs_lookup or not key_field:
            return

        duplicates = duplicate_keys(rows, key_field)
        if duplicates:
            logger.warning(f"Source batch repeats {key_field} values: {', '.join(duplicates)}")
            details.append(
                f"Warning: {len(duplicates)} {key_field} value(s) repeated in source batch "
                f"(each row is written, last write wins): {', '.join(duplicates)}"
            )

        for action in plan.unmatched:
            details.append(
                f"Row {action.row_index + 1}: no matching record for {key_field}={action.key_value!r}, skipped"
            )

    @staticmethod
    def _safe_probe(probe: Callable[[], bool], label: str) -> bool:
        try:
            return bool(probe())
        except Exception as e:
            logger.error(f"{label} connection test failed: {e}")
            return False
