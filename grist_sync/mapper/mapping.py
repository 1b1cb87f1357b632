"""Field mapping model."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from grist_sync.errors import ConfigError

# A callable, or the name of a registered transformer (see transformer.registry)
TransformSpec = Union[Callable[[Any], Any], str, None]


@dataclass
class FieldMapping:
    """Maps a dotted source path to a target column."""

    target_field: str
    source_path: str
    enabled: bool = True
    transform: TransformSpec = None

    @property
    def is_valid(self) -> bool:
        return bool(self.target_field and self.source_path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        transform = self.transform
        if callable(transform):
            transform = getattr(transform, "__name__", "<callable>")
        return {
            "targetField": self.target_field,
            "sourcePath": self.source_path,
            "enabled": self.enabled,
            "transform": transform,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """Build from a job-file entry (``gristColumn``/``apiField`` also accepted)."""
        if not isinstance(data, dict):
            raise ConfigError(f"Mapping entry must be an object, got {type(data).__name__}")
        return cls(
            target_field=str(data.get("targetField", data.get("gristColumn")) or "").strip(),
            source_path=str(data.get("sourcePath", data.get("apiField")) or "").strip(),
            enabled=bool(data.get("enabled", True)),
            transform=data.get("transform") or None,
        )


def is_valid_mapping(mapping: FieldMapping) -> bool:
    return mapping.is_valid


def get_valid_mappings(mappings: List[FieldMapping]) -> List[FieldMapping]:
    """Keep enabled mappings with both a target field and a source path."""
    return [m for m in mappings if m.enabled and m.is_valid]


def mappings_from_config(raw: Optional[Union[List[Dict[str, Any]], Dict[str, str]]]) -> List[FieldMapping]:
    """
    Parse the ``mapping`` section of a job file.

    Args:
        raw: Either a list of mapping objects or a ``{targetField: sourcePath}`` dict

    Returns:
        List of FieldMapping, in declaration order
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [FieldMapping(str(target), str(path or "")) for target, path in raw.items()]
    if isinstance(raw, list):
        return [FieldMapping.from_dict(entry) for entry in raw]
    raise ConfigError("mapping must be a list of mappings or a {targetField: sourcePath} object")
