# ==============================================
# Tests for Configuration / store factory
# ==============================================

import pytest

from dynaform.config import AppConfig, RestConfig, get_config
from dynaform.storage import MemoryStore, MongoStore, MySQLStore, RestStore, create_store


class TestGetConfig:
    """Environment variables → AppConfig."""

    def test_defaults(self, monkeypatch):
        for name in ("STORE_BACKEND", "SNAPSHOT_PATH", "REST_URL", "MYSQL_PORT"):
            monkeypatch.delenv(name, raising=False)
        config = get_config()
        assert config.store_backend == "memory"
        assert config.mysql.port == 3306
        assert config.rest.timeout_seconds == 10.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", " REST ")
        monkeypatch.setenv("REST_URL", "https://forms.example.test")
        monkeypatch.setenv("REST_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("MONGO_PORT", "27018")
        config = get_config()
        assert config.store_backend == "rest"
        assert config.rest.url == "https://forms.example.test"
        assert config.rest.timeout_seconds == 2.5
        assert config.mongo.port == 27018

    def test_singleton(self):
        assert get_config() is get_config()

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            AppConfig(store_backend="sqlite")


class TestCreateStore:
    """create_store picks the backend without connecting."""

    @pytest.mark.parametrize("backend,expected", [
        ("memory", MemoryStore),
        ("mysql", MySQLStore),
        ("mongo", MongoStore),
        ("rest", RestStore),
    ])
    def test_backend_selection(self, backend, expected):
        assert isinstance(create_store(AppConfig(store_backend=backend)), expected)

    def test_rest_settings_passed_through(self):
        store = create_store(AppConfig(store_backend="rest", rest=RestConfig("https://x.test", "key", 4.0)))
        assert store.base_url == "https://x.test/rest/v1"
        assert store.api_key == "key"
        assert store.timeout_seconds == 4.0

    def test_snapshot_path_for_memory(self, tmp_path):
        path = str(tmp_path / "s.json")
        store = create_store(AppConfig(snapshot_path=path))
        assert str(store.snapshot_path) == path
