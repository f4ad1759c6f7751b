import pytest

from shopkeeper.config import DEFAULT_OWNER_ID, load_settings


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    monkeypatch.setenv("SHOP_DATA_DIR", "/tmp/shop")
    monkeypatch.setenv("JSONBIN_API_KEY", "key")
    monkeypatch.setenv("JSONBIN_BIN_ID", "bin")
    monkeypatch.delenv("BOT_OWNER_ID", raising=False)
    monkeypatch.delenv("CONFIG_BIN_ID", raising=False)

    settings = load_settings()

    assert settings.discord_token == "abc"
    assert settings.data_dir == "/tmp/shop"
    assert settings.owner_id == DEFAULT_OWNER_ID
    assert settings.remote_store_enabled


def test_load_settings_falls_back_to_legacy_token(monkeypatch):
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    monkeypatch.setenv("YOUR_BOT_TOKEN", "legacy")
    monkeypatch.delenv("JSONBIN_API_KEY", raising=False)

    settings = load_settings()

    assert settings.discord_token == "legacy"
    assert not settings.remote_store_enabled


def test_load_settings_requires_token(monkeypatch):
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    monkeypatch.delenv("YOUR_BOT_TOKEN", raising=False)

    with pytest.raises(RuntimeError):
        load_settings()
