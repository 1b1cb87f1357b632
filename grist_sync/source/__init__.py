"""
Source Module

Providers that pull loosely-shaped records from an external system:
- RestProvider: one HTTP request per fetch, env-expanded headers
- StaticProvider: fixed records (in memory or from a JSON/CSV fixture)
"""

from .base import SourceProvider
from .provider_factory import SourceProviderFactory, create_source_provider
from .rest_provider import RestProvider, extract_records
from .static_provider import StaticProvider

__all__ = [
    "SourceProvider",
    "SourceProviderFactory",
    "create_source_provider",
    "RestProvider",
    "StaticProvider",
    "extract_records",
]
