"""
Tests for source providers

Tests:
- extract_records: data path, top-level arrays, wrapper keys
- RestProvider: headers, env expansion, HTTP and JSON errors
- StaticProvider: in-memory records and fixture files
- SourceProviderFactory: descriptor types
"""

import json
import logging
from unittest.mock import Mock, patch

import pytest
import requests

from grist_sync.envvars import expand_env_value, expand_env_vars
from grist_sync.errors import ConfigError, PathNotFoundError, SourceError, UnextractableResponseError
from grist_sync.source.provider_factory import SourceProviderFactory, create_source_provider
from grist_sync.source.rest_provider import RestProvider, extract_records
from grist_sync.source.static_provider import StaticProvider


def json_response(payload, status_code=200):
    """Mock requests response"""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


# ============================================================================
# TEST: extract_records
# ============================================================================


class TestExtractRecords:
    """Record array extraction"""

    def test_top_level_array(self):
        assert extract_records([{"a": 1}]) == [{"a": 1}]

    @pytest.mark.parametrize("key", ["data", "items", "results", "records"])
    def test_wrapper_keys(self, key):
        assert extract_records({key: [{"a": 1}], "meta": {}}) == [{"a": 1}]

    def test_wrapper_key_order(self):
        payload = {"results": [{"from": "results"}], "data": [{"from": "data"}]}
        assert extract_records(payload) == [{"from": "data"}]

    def test_wrapper_must_be_array(self):
        payload = {"data": {"total": 1}, "items": [{"a": 1}]}
        assert extract_records(payload) == [{"a": 1}]

    def test_data_path(self):
        payload = {"payload": {"users": [{"id": 1}]}, "data": [{"id": 2}]}
        assert extract_records(payload, "payload.users") == [{"id": 1}]

    def test_data_path_not_found(self):
        with pytest.raises(PathNotFoundError, match="Path 'payload.users' not found in response"):
            extract_records({"payload": {}}, "payload.users")

    def test_data_path_not_array(self):
        with pytest.raises(PathNotFoundError, match="is not an array"):
            extract_records({"payload": {"users": {"id": 1}}}, "payload.users")

    @pytest.mark.parametrize("payload", [{"total": 3}, "text", 12, None])
    def test_unextractable(self, payload):
        with pytest.raises(UnextractableResponseError):
            extract_records(payload)

    def test_errors_are_source_errors(self):
        assert issubclass(PathNotFoundError, SourceError)
        assert issubclass(UnextractableResponseError, SourceError)


# ============================================================================
# TEST: environment placeholders
# ============================================================================


class TestEnvExpansion:
    """${NAME} placeholders"""

    def test_expands_known_variable(self):
        assert expand_env_value("Bearer ${TOKEN}", {"TOKEN": "abc"}) == "Bearer abc"

    def test_missing_variable_becomes_empty_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert expand_env_value("Bearer ${TOKEN}", {}) == "Bearer "
        assert "Environment variable TOKEN is not set" in caplog.text

    def test_plain_values_untouched(self):
        assert expand_env_value("plain", {}) == "plain"
        assert expand_env_value(None, {}) is None

    def test_expand_mapping(self):
        headers = {"Authorization": "Bearer ${T}", "X-Id": "${A}-${B}"}
        env = {"T": "tok", "A": "1", "B": "2"}
        assert expand_env_vars(headers, env) == {"Authorization": "Bearer tok", "X-Id": "1-2"}


# ============================================================================
# TEST: RestProvider
# ============================================================================


class TestRestProvider:
    """HTTP source"""

    def test_requires_url(self):
        with pytest.raises(ConfigError):
            RestProvider(url="")

    @patch("requests.Session.request")
    def test_fetch_sends_expanded_headers(self, mock_request, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "secret")
        mock_request.return_value = json_response({"data": [{"id": 1}]})
        provider = RestProvider(
            url="https://api.example.com/users",
            headers={"Authorization": "Bearer ${API_TOKEN}"},
        )

        records = provider.fetch_data()

        assert records == [{"id": 1}]
        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.example.com/users")
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["timeout"] == 30

    @patch("requests.Session.request")
    def test_post_body_and_data_path(self, mock_request):
        mock_request.return_value = json_response({"hits": {"rows": [{"id": 5}]}})
        provider = RestProvider(
            url="https://api.example.com/search",
            method="post",
            body={"q": "active"},
            data_path="hits.rows",
        )

        assert provider.fetch_data() == [{"id": 5}]
        args, kwargs = mock_request.call_args
        assert args[0] == "POST"
        assert kwargs["json"] == {"q": "active"}

    @patch("requests.Session.request")
    def test_http_error(self, mock_request):
        mock_request.return_value = json_response({"error": "nope"}, status_code=503)
        provider = RestProvider(url="https://api.example.com/users")

        with pytest.raises(SourceError, match="HTTP error! status: 503"):
            provider.fetch_data()

    @patch("requests.Session.request")
    def test_transport_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("refused")
        provider = RestProvider(url="https://api.example.com/users")

        with pytest.raises(SourceError, match="refused"):
            provider.fetch_data()

    @patch("requests.Session.request")
    def test_invalid_json(self, mock_request):
        response = json_response(None)
        response.json.side_effect = ValueError("Expecting value")
        mock_request.return_value = response
        provider = RestProvider(url="https://api.example.com/users")

        with pytest.raises(SourceError, match="invalid JSON"):
            provider.fetch_data()

    @patch("requests.Session.request")
    def test_connection_probe(self, mock_request):
        mock_request.return_value = json_response({"total": 0})
        provider = RestProvider(url="https://api.example.com/users")

        assert provider.test_connection() is False

        mock_request.return_value = json_response([])
        assert provider.test_connection() is True


# ============================================================================
# TEST: StaticProvider
# ============================================================================


class TestStaticProvider:
    """In-memory and file fixtures"""

    def test_returns_copy(self):
        records = [{"id": 1}]
        provider = StaticProvider(records)

        fetched = provider.fetch_data()
        fetched.append({"id": 2})

        assert provider.fetch_data() == [{"id": 1}]
        assert provider.test_connection() is True

    def test_latency_uses_sleep(self):
        sleeps = []
        provider = StaticProvider([], latency_ms=250, sleep=sleeps.append)

        provider.fetch_data()

        assert sleeps == [0.25]

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"items": [{"id": 1}, {"id": 2}]}), encoding="utf-8")

        provider = StaticProvider.from_file(path)

        assert provider.fetch_data() == [{"id": 1}, {"id": 2}]

    def test_from_json_file_with_data_path(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"body": {"users": [{"id": 9}]}}), encoding="utf-8")

        assert StaticProvider.from_file(path, data_path="body.users").fetch_data() == [{"id": 9}]

    def test_from_csv_file(self, tmp_path):
        path = tmp_path / "users.csv"
        path.write_text("email,name\na@x.com,A\nb@x.com,B\n", encoding="utf-8")

        records = StaticProvider.from_file(path).fetch_data()

        assert records == [{"email": "a@x.com", "name": "A"}, {"email": "b@x.com", "name": "B"}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            StaticProvider.from_file(tmp_path / "absent.json")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "users.xml"
        path.write_text("<users/>", encoding="utf-8")

        with pytest.raises(ConfigError, match="Unsupported fixture format"):
            StaticProvider.from_file(path)

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SourceError):
            StaticProvider.from_file(path)


# ============================================================================
# TEST: SourceProviderFactory
# ============================================================================


class TestSourceProviderFactory:
    """Descriptor to provider"""

    def test_rest_descriptor(self):
        provider = SourceProviderFactory.create_provider({
            "type": "REST",
            "url": "https://api.example.com/users",
            "method": "post",
            "headers": {"X-Key": "k"},
            "dataPath": "data.users",
            "timeout": 5,
        })

        assert isinstance(provider, RestProvider)
        assert provider.method == "POST"
        assert provider.headers == {"X-Key": "k"}
        assert provider.data_path == "data.users"
        assert provider.timeout == 5

    @pytest.mark.parametrize("source_type", ["static", "mock"])
    def test_static_descriptor(self, source_type):
        provider = create_source_provider({"type": source_type, "records": [{"id": 1}]})

        assert isinstance(provider, StaticProvider)
        assert provider.fetch_data() == [{"id": 1}]

    def test_static_file_descriptor(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text("[{\"id\": 3}]", encoding="utf-8")

        provider = create_source_provider({"type": "static", "file": str(path)})

        assert provider.fetch_data() == [{"id": 3}]

    def test_rest_without_url(self):
        with pytest.raises(ConfigError):
            create_source_provider({"type": "rest"})

    def test_unknown_type(self):
        with pytest.raises(ConfigError, match="Unsupported source type"):
            create_source_provider({"type": "graphql"})
