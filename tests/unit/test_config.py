"""
Unit tests for configuration loading.
"""

import os

import pytest

from school.datastore.config import AppConfig, HttpConfig, RemoteConfig, StorageConfig

ENV_VARS = (
    "SCHOOL_DATA_DIR",
    "SCHOOL_DB_FILE",
    "SCHOOL_SNAPSHOT_KEY",
    "SCHOOL_CREDENTIALS_KEY",
    "SCHOOL_STORAGE_QUOTA_BYTES",
    "SCHOOL_REMOTE_TABLE",
    "SCHOOL_REMOTE_DOCUMENT_ID",
    "SCHOOL_PUSH_DEBOUNCE_SECONDS",
    "SCHOOL_REMOTE_URL",
    "SCHOOL_REMOTE_KEY",
    "HTTP_HOST",
    "HTTP_PORT",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SCHOOL_DATA_DIR", str(tmp_path))


class TestAppConfig:
    """Tests for AppConfig.from_env()."""

    def test_defaults(self, tmp_path):
        config = AppConfig.from_env()

        assert config.storage.db_path == os.path.join(str(tmp_path), "school.db")
        assert config.storage.snapshot_key == "school-data"
        assert config.remote.table == "school_data"
        assert config.remote.document_id == 1
        assert config.remote.push_debounce_seconds == 2.0
        assert not config.remote.seed_credentials.is_complete
        assert config.http.port == 8080
        assert config.observability.log_format == "text"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("SCHOOL_REMOTE_URL", " https://x.supabase.co ")
        monkeypatch.setenv("SCHOOL_REMOTE_KEY", "anon")
        monkeypatch.setenv("SCHOOL_PUSH_DEBOUNCE_SECONDS", "0.5")
        monkeypatch.setenv("HTTP_PORT", "9000")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("LOG_FORMAT", "json")

        config = AppConfig.from_env()

        assert config.remote.seed_credentials.endpoint == "https://x.supabase.co"
        assert config.remote.seed_credentials.is_complete
        assert config.remote.push_debounce_seconds == 0.5
        assert config.http.port == 9000
        assert config.http.cors_origins == ("http://a.test", "http://b.test")
        assert config.observability.log_format == "json"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("SCHOOL_CREDENTIALS_KEY", "school-data"),
            ("SCHOOL_STORAGE_QUOTA_BYTES", "0"),
            ("SCHOOL_PUSH_DEBOUNCE_SECONDS", "-1"),
            ("LOG_FORMAT", "xml"),
        ],
    )
    def test_invalid(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            AppConfig.from_env()

    def test_non_numeric_port(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "eighty")

        with pytest.raises(ValueError):
            AppConfig.from_env()


class TestSections:
    def test_sections_construct_without_env(self):
        assert StorageConfig().quota_bytes > 0
        assert RemoteConfig().seed_credentials.to_dict() == {"url": "", "key": ""}
        assert HttpConfig().cors_origins == ("*",)

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            AppConfig(remote=RemoteConfig(table="")).validate()
