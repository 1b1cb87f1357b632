"""Data model for synchronization passes."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from grist_sync.errors import ConfigError


class _Missing:
    """Marker for a value whose source path did not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"


MISSING = _Missing()

# targetField -> scalar (str, int, float, bool, None) or MISSING
MappedRow = Dict[str, Any]


class ColumnType(str, Enum):
    """Column types of the destination table"""
    TEXT = "Text"
    INT = "Int"
    NUMERIC = "Numeric"
    BOOL = "Bool"
    DATE = "Date"
    DATETIME = "DateTime"
    ANY = "Any"  # Choice, Ref, ... (not modelled)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ColumnType":
        """Parse a destination type string (e.g. "DateTime:Europe/Paris")."""
        if not raw:
            return cls.ANY
        base = raw.split(":", 1)[0]
        for member in cls:
            if member.value == base:
                return member
        return cls.ANY


class SyncMode(str, Enum):
    """How mapped rows are reconciled with existing rows"""
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"

    @classmethod
    def parse(cls, raw: Any) -> "SyncMode":
        if isinstance(raw, SyncMode):
            return raw
        value = str(raw or "").strip().lower()
        if value == "add":
            return cls.INSERT
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"Unsupported sync mode: {raw!r}") from None

    @property
    def needs_lookup(self) -> bool:
        return self is not SyncMode.INSERT


class PlanAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"


class SkipReason(str, Enum):
    UNCHANGED = "unchanged"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class DestinationColumn:
    """A column of the destination table."""

    id: str
    label: str = ""
    type: ColumnType = ColumnType.TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "fields": {"label": self.label or self.id, "type": self.type.value}}


@dataclass
class DestinationRow:
    """A row of the destination table, keyed by destination-assigned id."""

    id: int
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncConfig:
    """Options of one synchronization pass. Immutable for the pass."""

    mode: SyncMode = SyncMode.UPSERT
    unique_key_field: Optional[str] = None
    auto_create_columns: bool = True
    dry_run: bool = False
    batch_size: int = 100
    retry_attempts: int = 3
    retry_delay_ms: int = 1000
    infer_column_types: bool = False

    def validate(self) -> None:
        """
        Check option consistency.

        Raises:
            ConfigError: If an option is out of range or the unique key is
                missing in a mode that needs it
        """
        if self.mode.needs_lookup and not (self.unique_key_field or "").strip():
            raise ConfigError(f"uniqueKeyField is required in {self.mode.value} mode")
        if self.batch_size < 1:
            raise ConfigError("batchSize must be at least 1")
        if self.retry_attempts < 1:
            raise ConfigError("retryAttempts must be at least 1")
        if self.retry_delay_ms < 0:
            raise ConfigError("retryDelayMs must not be negative")

    def with_overrides(self, **changes: Any) -> "SyncConfig":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, options: Optional[Dict[str, Any]]) -> "SyncConfig":
        """
        Build a config from a job-file ``sync`` section.

        Accepts camelCase keys (``uniqueKeyField``, ``retryDelayMs``) and the
        older spellings ``uniqueKey`` / ``retryDelay``.
        """
        options = options or {}
        try:
            config = cls(
                mode=SyncMode.parse(options.get("mode", SyncMode.UPSERT.value)),
                unique_key_field=options.get("uniqueKeyField", options.get("uniqueKey")) or None,
                auto_create_columns=bool(options.get("autoCreateColumns", True)),
                dry_run=bool(options.get("dryRun", False)),
                batch_size=int(options.get("batchSize", 100)),
                retry_attempts=int(options.get("retryAttempts", 3)),
                retry_delay_ms=int(options.get("retryDelayMs", options.get("retryDelay", 1000))),
                infer_column_types=bool(options.get("inferColumnTypes", False)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid sync options: {e}") from e
        config.validate()
        return config


@dataclass(frozen=True)
class PlannedAction:
    """One entry of a sync plan."""

    action: PlanAction
    row: MappedRow
    row_index: int
    destination_row_id: Optional[int] = None
    key_value: Any = None
    skip_reason: Optional[SkipReason] = None


@dataclass
class SyncPlan:
    """Ordered actions computed for one pass."""

    actions: List[PlannedAction] = field(default_factory=list)

    def of(self, action: PlanAction) -> List[PlannedAction]:
        return [a for a in self.actions if a.action is action]

    @property
    def inserts(self) -> List[PlannedAction]:
        return self.of(PlanAction.INSERT)

    @property
    def updates(self) -> List[PlannedAction]:
        return self.of(PlanAction.UPDATE)

    @property
    def unchanged(self) -> List[PlannedAction]:
        return [a for a in self.of(PlanAction.SKIP) if a.skip_reason is SkipReason.UNCHANGED]

    @property
    def unmatched(self) -> List[PlannedAction]:
        return [a for a in self.of(PlanAction.SKIP) if a.skip_reason is SkipReason.NO_MATCH]

    def summary(self) -> str:
        return (
            f"Plan: {len(self.inserts)} to insert, {len(self.updates)} to update, "
            f"{len(self.unchanged)} unchanged, {len(self.unmatched)} without match"
        )


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one synchronization pass."""

    success: bool
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: int = 0
    details: Tuple[str, ...] = ()
    duration_ms: int = 0
    skipped: int = 0
    dry_run: bool = False

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "added": self.added,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
            "errors": self.errors,
            "dryRun": self.dry_run,
            "details": list(self.details),
            "durationMs": self.duration_ms,
        }


@dataclass
class SyncStatus:
    """Counters kept across passes for observability only."""

    running: bool = False
    last_run: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_error: Optional[str] = None
    total_synced: int = 0
    total_errors: int = 0
