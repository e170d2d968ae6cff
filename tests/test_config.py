import pytest

from cms.config import DEFAULT_MAX_UPLOAD_BYTES, load_settings
from cms.errors import ConfigError


ENV_KEYS = (
    "DATABASE_URL",
    "MONGODB_URI",
    "DATABASE_NAME",
    "MONGODB_DB",
    "IMAGE_HOST",
    "IMAGE_HOST_API_KEY",
    "IMGHIPPO_API_KEY",
    "IMGBB_API_KEY",
    "MAX_UPLOAD_BYTES",
    "ADMIN_PASSWORD",
    "ADMIN_PASSWORD_HASH",
    "CORS_ORIGINS",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "memory://")
    settings = load_settings()
    assert settings.database_name == "nuvacm"
    assert settings.image_host == "imghippo"
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert settings.admin_password == "admin123"
    assert settings.cors_origins == ("*",)
    assert settings.port == 4000


def test_aliases(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "file:///tmp/cms")
    monkeypatch.setenv("MONGODB_DB", "club")
    monkeypatch.setenv("IMGBB_API_KEY", "bb-key")
    monkeypatch.setenv("IMAGE_HOST", "ImgBB")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    settings = load_settings()
    assert settings.database_url == "file:///tmp/cms"
    assert settings.database_name == "club"
    assert settings.image_host_api_key == "bb-key"
    assert settings.image_host == "imgbb"
    assert settings.cors_origins == ("https://a.example", "https://b.example")


def test_missing_database_url():
    with pytest.raises(ConfigError):
        load_settings()


@pytest.mark.parametrize("key,value", [("MAX_UPLOAD_BYTES", "lots"), ("MAX_UPLOAD_BYTES", "0"), ("PORT", "http")])
def test_bad_numbers(monkeypatch, key, value):
    monkeypatch.setenv("DATABASE_URL", "memory://")
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError):
        load_settings()
