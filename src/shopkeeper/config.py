"""Configuration helpers for the bot."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_OWNER_ID = "730629579533844512"


@dataclass
class Settings:
    """Runtime settings loaded from the environment."""

    discord_token: str
    data_dir: str = "data"
    owner_id: str = DEFAULT_OWNER_ID
    jsonbin_api_key: str = ""
    catalog_bin_id: str = ""
    config_bin_id: str = ""
    jsonbin_base_url: str = "https://api.jsonbin.io/v3"

    @property
    def remote_store_enabled(self) -> bool:
        return bool(self.jsonbin_api_key and (self.catalog_bin_id or self.config_bin_id))


def load_settings() -> Settings:
    """Load settings from environment variables.

    The function will read a local `.env` file when present.
    """

    load_dotenv()
    token = os.getenv("DISCORD_TOKEN") or os.getenv("YOUR_BOT_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN is required to run the bot")

    return Settings(
        discord_token=token,
        data_dir=os.getenv("SHOP_DATA_DIR", "data"),
        owner_id=os.getenv("BOT_OWNER_ID", DEFAULT_OWNER_ID),
        jsonbin_api_key=os.getenv("JSONBIN_API_KEY", ""),
        catalog_bin_id=os.getenv("JSONBIN_BIN_ID", ""),
        config_bin_id=os.getenv("CONFIG_BIN_ID", ""),
        jsonbin_base_url=os.getenv("JSONBIN_BASE_URL", "https://api.jsonbin.io/v3"),
    )
