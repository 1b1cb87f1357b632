"""
Mapping Resolver - turns loosely-shaped source records into flat rows

Supports:
- Dotted path extraction ("user.address.city", "items.0.sku")
- Optional transform per mapping (callable or registered name)
- Deterministic scalarization of lists, objects and dates
"""

import json
import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from typing import Any, List, Optional

from grist_sync.mapper.mapping import FieldMapping, get_valid_mappings
from grist_sync.models import MISSING, MappedRow
from grist_sync.transformer.registry import TransformerRegistry, default_registry

logger = logging.getLogger(__name__)

ARRAY_SEPARATOR = ";"


def get_nested_value(obj: Any, path: str) -> Any:
    """
    Resolve a dotted path inside a record

    Example:
        get_nested_value({"user": {"name": "Alice"}}, "user.name")  # "Alice"

    Returns:
        The value found, or MISSING when a segment is absent or the walk
        reaches None on the way
    """
    if not path or obj is None or obj is MISSING:
        return MISSING

    current = obj
    for key in path.split("."):
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, Mapping):
            current = current.get(key, MISSING)
        elif _is_sequence(current) and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else MISSING
        else:
            return MISSING
    return current


def serialize_value(value: Any) -> Any:
    """
    Scalarize a resolved value for storage in a typed column

    - None and MISSING pass through
    - date/datetime -> ISO-8601 string
    - list/tuple -> elements serialized then joined with ";" ([] -> "")
    - mapping -> compact JSON
    - bool/int/float/str unchanged
    """
    if value is None or value is MISSING:
        return value
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if _is_sequence(value):
        return ARRAY_SEPARATOR.join(_join_part(serialize_value(item)) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(dict(value), separators=(",", ":"), ensure_ascii=False, default=_json_default)
    return str(value)


def transform_record(
    record: Any,
    mappings: List[FieldMapping],
    registry: Optional[TransformerRegistry] = None,
) -> MappedRow:
    """
    Map one source record onto a flat row

    Args:
        record: Source record (any nested mapping)
        mappings: Field mappings; invalid or disabled ones are ignored
        registry: Registry used to resolve named transforms

    Returns:
        {target_field: scalar or MISSING}
    """
    registry = registry or default_registry
    row: MappedRow = {}

    for mapping in get_valid_mappings(mappings):
        value = get_nested_value(record, mapping.source_path)
        if mapping.transform is not None:
            value = _apply_transform(value, mapping, registry)
        row[mapping.target_field] = serialize_value(value)

    return row


def transform_records(
    records: Any,
    mappings: List[FieldMapping],
    registry: Optional[TransformerRegistry] = None,
) -> List[MappedRow]:
    """Map a sequence of records. Anything that is not a list yields []."""
    if not isinstance(records, (list, tuple)):
        return []
    return [transform_record(record, mappings, registry) for record in records]


def _apply_transform(value: Any, mapping: FieldMapping, registry: TransformerRegistry) -> Any:
    transform = mapping.transform
    if isinstance(transform, str):
        transform = registry.get(transform)
    try:
        return transform(value)
    except Exception as e:
        logger.error(f"Error applying transform on {mapping.target_field}: {e}")
        return value


def _join_part(value: Any) -> str:
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if value is MISSING:
        return None
    return str(value)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))
