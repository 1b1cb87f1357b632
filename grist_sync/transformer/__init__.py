"""Named value transformers usable from job files."""

from .registry import TransformerRegistry, default_registry

__all__ = ["TransformerRegistry", "default_registry"]
