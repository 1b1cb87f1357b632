"""Grist document URL parsing."""
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

_DOC_PATTERN = re.compile(r"/doc/([^/?#]+)")


@dataclass(frozen=True)
class ParsedGristUrl:
    doc_id: Optional[str]
    api_url: Optional[str]


def parse_grist_url(url: str) -> ParsedGristUrl:
    """
    Extract the document id and API base URL from a Grist document URL

    Example:
        parse_grist_url("https://grist.example.com/o/team/doc/abc123/p/5")
        # ParsedGristUrl(doc_id="abc123", api_url="https://grist.example.com")
    """
    try:
        parsed = urlparse((url or "").strip())
    except ValueError:
        return ParsedGristUrl(None, None)

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ParsedGristUrl(None, None)

    match = _DOC_PATTERN.search(parsed.path)
    if not match:
        return ParsedGristUrl(None, None)
    return ParsedGristUrl(match.group(1), f"{parsed.scheme}://{parsed.netloc}")


def is_valid_grist_url(url: str) -> bool:
    parsed = parse_grist_url(url)
    return parsed.doc_id is not None and parsed.api_url is not None
