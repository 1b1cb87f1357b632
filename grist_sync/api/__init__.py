"""
Destination API Module

- DestinationClient: interface the sync engine writes through
- GristClient: requests-based client for one Grist table
"""

from .destination import DestinationClient
from .grist_client import GristClient
from .grist_url import ParsedGristUrl, is_valid_grist_url, parse_grist_url

__all__ = [
    "DestinationClient",
    "GristClient",
    "ParsedGristUrl",
    "is_valid_grist_url",
    "parse_grist_url",
]
