"""
Reconcile Module

- SchemaReconciler: append the columns implied by the mapping
- RowReconciler: insert / update / skip plan keyed by a unique field
"""

from .row_reconciler import RowReconciler, build_key_index, duplicate_keys, has_changes, normalize_value
from .schema_reconciler import SchemaReconciler, infer_column_type, required_field_names

__all__ = [
    "RowReconciler",
    "SchemaReconciler",
    "build_key_index",
    "duplicate_keys",
    "has_changes",
    "infer_column_type",
    "normalize_value",
    "required_field_names",
]
