"""
Tests for configuration loading

Tests:
- SyncConfig: defaults, validation, job-file keys
- GristApiConfig / AppConfig: environment variables
- SyncJob / load_job / build_service: job files end to end
"""

import json

import pytest

from config import AppConfig, GristApiConfig
from grist_sync.api.grist_client import GristClient
from grist_sync.errors import ConfigError
from grist_sync.models import SyncConfig, SyncMode
from grist_sync.source.rest_provider import RestProvider
from grist_sync.source.static_provider import StaticProvider
from grist_sync.sync.job import SyncJob, build_service, load_job


@pytest.fixture
def job_data():
    """Minimal valid job"""
    return {
        "grist": {"docId": "doc1", "tableId": "Users"},
        "source": {"type": "static", "records": [{"email": "a@x.com"}]},
        "mapping": {"email": "email"},
        "sync": {"mode": "upsert", "uniqueKeyField": "email"},
    }


# ============================================================================
# TEST: SyncConfig
# ============================================================================


class TestSyncConfig:
    """Pass options"""

    def test_defaults(self):
        config = SyncConfig()
        assert config.mode is SyncMode.UPSERT
        assert config.auto_create_columns is True
        assert config.dry_run is False
        assert (config.batch_size, config.retry_attempts, config.retry_delay_ms) == (100, 3, 1000)

    def test_from_dict(self):
        config = SyncConfig.from_dict({
            "mode": "update",
            "uniqueKeyField": "id",
            "autoCreateColumns": False,
            "dryRun": True,
            "batchSize": 10,
            "retryAttempts": 5,
            "retryDelayMs": 200,
            "inferColumnTypes": True,
        })

        assert config.mode is SyncMode.UPDATE
        assert config.unique_key_field == "id"
        assert config.auto_create_columns is False
        assert config.dry_run is True
        assert (config.batch_size, config.retry_attempts, config.retry_delay_ms) == (10, 5, 200)
        assert config.infer_column_types is True

    def test_legacy_keys(self):
        config = SyncConfig.from_dict({"mode": "add", "uniqueKey": "id", "retryDelay": 50})

        assert config.mode is SyncMode.INSERT
        assert config.unique_key_field == "id"
        assert config.retry_delay_ms == 50

    @pytest.mark.parametrize("options", [
        {"mode": "upsert"},
        {"mode": "update", "uniqueKeyField": "  "},
        {"mode": "merge", "uniqueKeyField": "id"},
        {"mode": "insert", "batchSize": 0},
        {"mode": "insert", "retryAttempts": 0},
        {"mode": "insert", "retryDelayMs": -1},
        {"mode": "insert", "batchSize": "many"},
    ])
    def test_invalid_options(self, options):
        with pytest.raises(ConfigError):
            SyncConfig.from_dict(options)

    def test_with_overrides_keeps_original(self):
        config = SyncConfig(unique_key_field="id")
        dry = config.with_overrides(dry_run=True)

        assert dry.dry_run is True
        assert config.dry_run is False
        assert dry.unique_key_field == "id"


# ============================================================================
# TEST: Environment configuration
# ============================================================================


class TestEnvironmentConfig:
    """Environment variables"""

    def test_grist_api_from_env(self, monkeypatch):
        monkeypatch.setenv("GRIST_API_URL", "http://localhost:8484")
        monkeypatch.setenv("GRIST_API_KEY", "k")
        monkeypatch.setenv("GRIST_TIMEOUT", "15")

        config = GristApiConfig.from_env()

        assert (config.base_url, config.api_key, config.timeout) == ("http://localhost:8484", "k", 15)

    def test_app_config_from_env(self, monkeypatch):
        monkeypatch.setenv("GRIST_SYNC_CONFIG", "/tmp/job.json")
        monkeypatch.setenv("GRIST_SYNC_LOG_LEVEL", "debug")

        config = AppConfig.from_env()

        assert config.job_file == "/tmp/job.json"
        assert config.log_level == "DEBUG"
        assert isinstance(config.grist_api, GristApiConfig)

    def test_app_config_defaults(self, monkeypatch):
        monkeypatch.delenv("GRIST_SYNC_CONFIG", raising=False)
        monkeypatch.delenv("GRIST_SYNC_LOG_LEVEL", raising=False)

        config = AppConfig.from_env()

        assert config.job_file == "./config/grist-sync.json"
        assert config.log_level == "WARNING"


# ============================================================================
# TEST: Job files
# ============================================================================


class TestSyncJob:
    """Job parsing"""

    def test_minimal_job(self, job_data):
        job = SyncJob.from_dict(job_data)

        assert job.grist.doc_id == "doc1"
        assert job.grist.table_id == "Users"
        assert job.grist.api_url is None
        assert [m.target_field for m in job.mappings] == ["email"]
        assert job.config.unique_key_field == "email"

    def test_doc_url(self, job_data):
        job_data["grist"] = {"docUrl": "https://grist.example.com/o/team/doc/abc123", "tableId": "Users"}

        job = SyncJob.from_dict(job_data)

        assert job.grist.doc_id == "abc123"
        assert job.grist.api_url == "https://grist.example.com"

    def test_invalid_doc_url(self, job_data):
        job_data["grist"] = {"docUrl": "https://grist.example.com/nothing", "tableId": "Users"}

        with pytest.raises(ConfigError, match="Not a Grist document URL"):
            SyncJob.from_dict(job_data)

    @pytest.mark.parametrize("grist", [{}, {"docId": "doc1"}, {"tableId": "Users"}])
    def test_missing_grist_fields(self, job_data, grist):
        job_data["grist"] = grist

        with pytest.raises(ConfigError, match=r"missing required fields \(docId, tableId\)"):
            SyncJob.from_dict(job_data)

    def test_missing_source_type(self, job_data):
        job_data["source"] = {"url": "https://api.example.com"}

        with pytest.raises(ConfigError, match="source type"):
            SyncJob.from_dict(job_data)

    def test_env_placeholders(self, job_data, monkeypatch):
        monkeypatch.setenv("GRIST_TOKEN", "gt")
        monkeypatch.setenv("API_TOKEN", "at")
        job_data["grist"]["apiToken"] = "${GRIST_TOKEN}"
        job_data["source"] = {
            "type": "rest",
            "url": "https://api.example.com/users",
            "headers": {"Authorization": "Bearer ${API_TOKEN}"},
        }

        job = SyncJob.from_dict(job_data)

        assert job.grist.api_token == "gt"
        assert job.source["headers"] == {"Authorization": "Bearer at"}

    def test_not_an_object(self):
        with pytest.raises(ConfigError):
            SyncJob.from_dict(["grist"])


class TestLoadJob:
    """Job files on disk"""

    def test_load(self, tmp_path, job_data):
        path = tmp_path / "job.json"
        path.write_text(json.dumps(job_data), encoding="utf-8")

        assert load_job(path).grist.table_id == "Users"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Configuration file not found"):
            load_job(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "job.json"
        path.write_text("{oops", encoding="utf-8")

        with pytest.raises(ConfigError, match="Failed to load configuration"):
            load_job(path)


class TestBuildService:
    """Service wiring"""

    def test_job_values_override_defaults(self, job_data):
        job_data["grist"].update({"gristApiUrl": "http://localhost:8484", "apiToken": "job-token"})
        defaults = GristApiConfig(base_url="https://docs.getgrist.com", api_key="env-token", timeout=12)

        service = build_service(SyncJob.from_dict(job_data), defaults)

        assert isinstance(service.source, StaticProvider)
        assert isinstance(service.destination, GristClient)
        assert service.destination.config.base_url == "http://localhost:8484"
        assert service.destination.config.api_key == "job-token"
        assert service.destination.config.timeout == 12
        assert service.config.unique_key_field == "email"

    def test_defaults_fill_gaps(self, job_data):
        job_data["source"] = {"type": "rest", "url": "https://api.example.com/users"}
        defaults = GristApiConfig(base_url="https://grist.example.com", api_key="env-token")

        service = build_service(SyncJob.from_dict(job_data), defaults)

        assert isinstance(service.source, RestProvider)
        assert service.destination.config.base_url == "https://grist.example.com"
        assert service.destination.config.api_key == "env-token"
