"""
Mapper Module

Resolves dotted source paths and scalarizes values into flat rows.
"""

from .mapping import FieldMapping, get_valid_mappings, is_valid_mapping, mappings_from_config
from .resolver import get_nested_value, serialize_value, transform_record, transform_records

__all__ = [
    "FieldMapping",
    "get_valid_mappings",
    "is_valid_mapping",
    "mappings_from_config",
    "get_nested_value",
    "serialize_value",
    "transform_record",
    "transform_records",
]
