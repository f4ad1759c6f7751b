import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from shopkeeper.config import Settings
from shopkeeper.store import (
    CATALOG_KEY,
    CONFIG_KEY,
    JsonBinStore,
    JsonFileStore,
    MirroredStore,
    build_store,
)

pytestmark = pytest.mark.asyncio


class FakeRemote:
    """In-memory stand-in for a remote bin that can be switched off."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.documents = dict(documents or {})
        self.available = True
        self.closed = False

    async def setup(self, defaults) -> None:
        return None

    async def load(self, key: str) -> Optional[Dict[str, Any]]:
        if not self.available:
            return None
        return self.documents.get(key)

    async def save(self, key: str, document: Dict[str, Any]) -> bool:
        if not self.available:
            return False
        self.documents[key] = document
        return True

    async def close(self) -> None:
        self.closed = True


async def test_json_file_store_round_trip(tmp_path: Path):
    store = JsonFileStore(str(tmp_path / "nested"))
    await store.setup({CONFIG_KEY: {"admins": []}})

    assert await store.load(CONFIG_KEY) == {"admins": []}
    assert await store.load(CATALOG_KEY) is None
    assert await store.save(CATALOG_KEY, {"sell": []})
    assert (tmp_path / "nested" / "listings.json").exists()


async def test_mirrored_store_prefers_remote(tmp_path: Path):
    remote = FakeRemote({CATALOG_KEY: {"sell": ["remote"]}})
    local = JsonFileStore(str(tmp_path))
    await local.save(CATALOG_KEY, {"sell": ["local"]})
    store = MirroredStore(remote, local)

    assert await store.load(CATALOG_KEY) == {"sell": ["remote"]}

    remote.available = False
    assert await store.load(CATALOG_KEY) == {"sell": ["local"]}


async def test_mirrored_store_writes_locally_when_remote_fails(tmp_path: Path, caplog):
    remote = FakeRemote()
    remote.available = False
    local = JsonFileStore(str(tmp_path))
    store = MirroredStore(remote, local)

    with caplog.at_level(logging.WARNING):
        assert await store.save(CONFIG_KEY, {"admins": ["1"]})

    assert await local.load(CONFIG_KEY) == {"admins": ["1"]}
    assert "Remote save of configuration failed" in caplog.text

    await store.close()
    assert remote.closed


async def test_jsonbin_store_without_bin_skips_network():
    store = JsonBinStore("key", {CATALOG_KEY: "abc", CONFIG_KEY: ""})

    assert await store.load(CONFIG_KEY) is None
    assert await store.save(CONFIG_KEY, {}) is False
    assert store._session is None
    await store.close()


async def test_build_store_picks_backend(tmp_path: Path):
    local_only = build_store(Settings(discord_token="t", data_dir=str(tmp_path)))
    assert isinstance(local_only, JsonFileStore)

    mirrored = build_store(
        Settings(
            discord_token="t",
            data_dir=str(tmp_path),
            jsonbin_api_key="key",
            catalog_bin_id="bin-1",
        )
    )
    assert isinstance(mirrored, MirroredStore)
    assert isinstance(mirrored.remote, JsonBinStore)
    assert mirrored.remote.bins == {CATALOG_KEY: "bin-1"}
