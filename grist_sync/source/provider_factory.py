"""Factory for creating a source provider from a job descriptor."""
from typing import Any, Dict

from grist_sync.errors import ConfigError
from grist_sync.source.base import SourceProvider
from grist_sync.source.rest_provider import RestProvider
from grist_sync.source.static_provider import StaticProvider


class SourceProviderFactory:
    """Factory for source providers."""

    # Map descriptor types to provider kinds
    PROVIDERS = {
        'rest': 'rest',
        'static': 'static',
        'mock': 'static',
    }

    @staticmethod
    def create_provider(descriptor: Dict[str, Any]) -> SourceProvider:
        """
        Create provider based on the descriptor ``type``.

        Args:
            descriptor: ``source`` section of a job file

        Returns:
            SourceProvider: Appropriate provider instance

        Raises:
            ConfigError: If the type is not supported or required keys are missing
        """
        source_type = str(descriptor.get('type') or '').lower()
        kind = SourceProviderFactory.PROVIDERS.get(source_type)

        if kind == 'rest':
            return RestProvider(
                url=descriptor.get('url') or '',
                method=descriptor.get('method') or 'GET',
                headers=descriptor.get('headers') or {},
                data_path=descriptor.get('dataPath'),
                body=descriptor.get('body'),
                timeout=int(descriptor.get('timeout', 30)),
            )
        elif kind == 'static':
            if descriptor.get('file'):
                return StaticProvider.from_file(
                    descriptor['file'],
                    data_path=descriptor.get('dataPath'),
                    latency_ms=int(descriptor.get('latencyMs', 0)),
                )
            return StaticProvider(
                descriptor.get('records') or [],
                latency_ms=int(descriptor.get('latencyMs', 0)),
            )

        raise ConfigError(f"Unsupported source type: {descriptor.get('type')!r}")


def create_source_provider(descriptor: Dict[str, Any]) -> SourceProvider:
    """Convenience wrapper around SourceProviderFactory.create_provider."""
    return SourceProviderFactory.create_provider(descriptor)
