"""Load a JSON job file and wire a SyncService from it."""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from config import GristApiConfig
from grist_sync.api.grist_client import GristClient
from grist_sync.api.grist_url import parse_grist_url
from grist_sync.envvars import expand_env_value, expand_env_vars
from grist_sync.errors import ConfigError
from grist_sync.mapper.mapping import FieldMapping, mappings_from_config
from grist_sync.models import SyncConfig
from grist_sync.source.provider_factory import create_source_provider
from grist_sync.sync.service import SyncService

logger = logging.getLogger(__name__)


@dataclass
class GristTarget:
    """Destination table of a job."""

    doc_id: str
    table_id: str
    api_url: Optional[str] = None
    api_token: str = ""


@dataclass
class SyncJob:
    """Fully resolved job: destination, source descriptor, mappings and options."""

    grist: GristTarget
    source: Dict[str, Any]
    mappings: List[FieldMapping] = field(default_factory=list)
    config: SyncConfig = field(default_factory=SyncConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncJob":
        """
        Build a job from a decoded job file

        ``${NAME}`` placeholders in the Grist token and the source headers are
        expanded. A ``docUrl`` may stand in for ``docId`` and ``gristApiUrl``.

        Raises:
            ConfigError: If a required section or field is missing
        """
        if not isinstance(data, dict):
            raise ConfigError("Job file must contain a JSON object")

        grist = data.get("grist") or {}
        doc_id = grist.get("docId")
        api_url = grist.get("gristApiUrl")
        if grist.get("docUrl"):
            parsed = parse_grist_url(grist["docUrl"])
            if parsed.doc_id is None:
                raise ConfigError(f"Not a Grist document URL: {grist['docUrl']}")
            doc_id = doc_id or parsed.doc_id
            api_url = api_url or parsed.api_url

        if not doc_id or not grist.get("tableId"):
            raise ConfigError("Configuration is missing required fields (docId, tableId)")

        source = dict(data.get("source") or {})
        if not source.get("type"):
            raise ConfigError("Configuration is missing the source type")
        if source.get("headers"):
            source["headers"] = expand_env_vars(source["headers"])

        return cls(
            grist=GristTarget(
                doc_id=doc_id,
                table_id=grist["tableId"],
                api_url=api_url,
                api_token=expand_env_value(grist.get("apiToken")) or "",
            ),
            source=source,
            mappings=mappings_from_config(data.get("mapping")),
            config=SyncConfig.from_dict(data.get("sync")),
        )


def load_job(path: Union[str, Path]) -> SyncJob:
    """Read and parse a job file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to load configuration: {e}") from e
    logger.debug(f"Loaded job file {path}")
    return SyncJob.from_dict(data)


def build_service(job: SyncJob, api_config: Optional[GristApiConfig] = None) -> SyncService:
    """
    Wire provider, Grist client and service for a job

    Args:
        job: Parsed job
        api_config: Environment defaults for URL/token/timeout; job values win
    """
    defaults = api_config or GristApiConfig.from_env()
    grist_config = GristApiConfig(
        base_url=job.grist.api_url or defaults.base_url,
        api_key=job.grist.api_token or defaults.api_key,
        timeout=defaults.timeout,
    )
    return SyncService(
        source=create_source_provider(job.source),
        destination=GristClient(grist_config, job.grist.doc_id, job.grist.table_id),
        mappings=job.mappings,
        config=job.config,
    )
