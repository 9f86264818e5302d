# backend-services/stock-service/tests/test_config.py
import pytest

from config import load_settings

_ENV_VARS = [
    "PORT", "MONGO_URI", "MONGO_DB_NAME", "MONGO_SERVER_SELECTION_TIMEOUT_MS",
    "MONGO_CONNECT_RETRIES", "MONGO_RETRY_DELAY_SEC", "RATE_UPDATE_FREQ_IN_SECONDS",
    "REFRESH_MAX_WORKERS", "CORS_ORIGINS", "LOG_LEVEL", "LOG_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.port == 3001
    assert settings.mongo_uri == "mongodb://127.0.0.1:27017/"
    assert settings.db_name == "stock_tracker"
    assert settings.refresh_interval_sec == 5
    assert settings.refresh_max_workers == 10
    assert settings.cors_origins == ["*"]
    assert settings.log_level == "INFO"
    assert settings.log_dir == ""


def test_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MONGO_URI", "mongodb://mongodb:27017/")
    monkeypatch.setenv("RATE_UPDATE_FREQ_IN_SECONDS", "0.5")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.example, http://b.example")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MONGO_RETRY_DELAY_SEC", "0")

    settings = load_settings()

    assert settings.port == 8080
    assert settings.mongo_uri == "mongodb://mongodb:27017/"
    assert settings.refresh_interval_sec == 0.5
    assert settings.cors_origins == ["http://a.example", "http://b.example"]
    assert settings.log_level == "DEBUG"
    assert settings.retry_delay_sec == 0


@pytest.mark.parametrize("name, raw, attr, default", [
    ("PORT", "abc", "port", 3001),
    ("PORT", "0", "port", 3001),
    ("RATE_UPDATE_FREQ_IN_SECONDS", "0", "refresh_interval_sec", 5),
    ("RATE_UPDATE_FREQ_IN_SECONDS", "-3", "refresh_interval_sec", 5),
    ("RATE_UPDATE_FREQ_IN_SECONDS", "soon", "refresh_interval_sec", 5),
    ("RATE_UPDATE_FREQ_IN_SECONDS", "nan", "refresh_interval_sec", 5),
    ("RATE_UPDATE_FREQ_IN_SECONDS", "inf", "refresh_interval_sec", 5),
    ("REFRESH_MAX_WORKERS", "0", "refresh_max_workers", 10),
])
def test_invalid_values_fall_back_to_defaults(monkeypatch, name, raw, attr, default):
    monkeypatch.setenv(name, raw)
    assert getattr(load_settings(), attr) == default


def test_blank_cors_list_falls_back_to_wildcard(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", " , ")
    assert load_settings().cors_origins == ["*"]
