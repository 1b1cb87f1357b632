"""Application configuration."""
import os
from dataclasses import dataclass


@dataclass
class GristApiConfig:
    """Grist API connection settings."""

    base_url: str = "https://docs.getgrist.com"
    api_key: str = ""  # Read from env or the job file
    timeout: int = 60

    @classmethod
    def from_env(cls) -> "GristApiConfig":
        """Load config from environment variables."""
        return cls(
            base_url=os.getenv("GRIST_API_URL", "https://docs.getgrist.com"),
            api_key=os.getenv("GRIST_API_KEY", ""),
            timeout=int(os.getenv("GRIST_TIMEOUT", "60")),
        )


@dataclass
class AppConfig:
    """Application settings."""

    job_file: str = "./config/grist-sync.json"
    log_level: str = "WARNING"
    grist_api: GristApiConfig = None

    def __post_init__(self):
        """Initialize defaults."""
        if self.grist_api is None:
            self.grist_api = GristApiConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            job_file=os.getenv("GRIST_SYNC_CONFIG", "./config/grist-sync.json"),
            log_level=os.getenv("GRIST_SYNC_LOG_LEVEL", "WARNING").upper(),
            grist_api=GristApiConfig.from_env(),
        )


# Global instance
app_config = AppConfig.from_env()
