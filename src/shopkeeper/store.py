"""Document store backends for the catalog and bot configuration."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Mapping, Optional, Protocol

import aiohttp

from .config import Settings

_log = logging.getLogger(__name__)

CATALOG_KEY = "catalog"
CONFIG_KEY = "configuration"

DEFAULT_FILENAMES = {
    CATALOG_KEY: "listings.json",
    CONFIG_KEY: "config.json",
}


class StoreError(RuntimeError):
    """Raised when a document cannot be read from or written to local storage."""


class DocumentStore(Protocol):
    async def setup(self, defaults: Mapping[str, dict[str, Any]]) -> None: ...

    async def load(self, key: str) -> Optional[dict[str, Any]]: ...

    async def save(self, key: str, document: dict[str, Any]) -> bool: ...

    async def close(self) -> None: ...


class JsonFileStore:
    """Stores each document as an indented JSON file inside ``directory``."""

    def __init__(self, directory: str, filenames: Mapping[str, str] | None = None) -> None:
        self.directory = directory
        self.filenames = dict(filenames or DEFAULT_FILENAMES)

    def path_for(self, key: str) -> str:
        return os.path.join(self.directory, self.filenames.get(key, f"{key}.json"))

    async def setup(self, defaults: Mapping[str, dict[str, Any]]) -> None:
        os.makedirs(self.directory, exist_ok=True)
        for key, document in defaults.items():
            if not os.path.exists(self.path_for(key)):
                await self.save(key, document)

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            return await asyncio.to_thread(self._read, path)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not read {path}: {exc}") from exc

    async def save(self, key: str, document: dict[str, Any]) -> bool:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._write, path, document)
        except (OSError, TypeError) as exc:
            raise StoreError(f"Could not write {path}: {exc}") from exc
        return True

    async def close(self) -> None:
        return None

    @staticmethod
    def _read(path: str) -> dict[str, Any]:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)

    @staticmethod
    def _write(path: str, document: dict[str, Any]) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=4)


class JsonBinStore:
    """Client for JSONBin bins, one bin per document key."""

    def __init__(
        self,
        api_key: str,
        bins: Mapping[str, str],
        base_url: str = "https://api.jsonbin.io/v3",
        *,
        request_timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_key = api_key
        self.bins = {key: bin_id for key, bin_id in bins.items() if bin_id}
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None

    async def setup(self, defaults: Mapping[str, dict[str, Any]]) -> None:
        return None

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    def _headers(self) -> dict[str, str]:
        return {"X-Master-Key": self.api_key}

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        """Return the latest record of the bin mapped to ``key``.

        Any HTTP failure or unexpected payload yields ``None`` so callers can
        fall back to the local copy.
        """

        bin_id = self.bins.get(key)
        if not self.api_key or not bin_id:
            return None

        try:
            async with self._get_session().get(
                f"{self.base_url}/b/{bin_id}/latest",
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            ) as resp:
                if resp.status != 200:
                    _log.warning("JSONBin load of %s returned HTTP %s", key, resp.status)
                    return None
                payload = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            _log.warning("Error loading %s from JSONBin: %s", key, exc)
            return None

        record = payload.get("record") if isinstance(payload, dict) else None
        return record if isinstance(record, dict) else None

    async def save(self, key: str, document: dict[str, Any]) -> bool:
        bin_id = self.bins.get(key)
        if not self.api_key or not bin_id:
            return False

        try:
            async with self._get_session().put(
                f"{self.base_url}/b/{bin_id}",
                json=document,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            ) as resp:
                if resp.status >= 300:
                    _log.warning("JSONBin save of %s returned HTTP %s", key, resp.status)
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            _log.warning("Error saving %s to JSONBin: %s", key, exc)
            return False
        return True


class MirroredStore:
    """Remote store with a local JSON copy.

    Loads prefer the remote record and fall back to the local file. Saves try
    the remote first and always write the local file, so a remote outage
    never loses the write locally.
    """

    def __init__(self, remote: DocumentStore, local: DocumentStore) -> None:
        self.remote = remote
        self.local = local

    async def setup(self, defaults: Mapping[str, dict[str, Any]]) -> None:
        await self.remote.setup(defaults)
        await self.local.setup(defaults)

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        document = await self.remote.load(key)
        if document is not None:
            return document
        return await self.local.load(key)

    async def save(self, key: str, document: dict[str, Any]) -> bool:
        if not await self.remote.save(key, document):
            _log.warning("Remote save of %s failed, keeping the local copy only", key)
        return await self.local.save(key, document)

    async def close(self) -> None:
        await self.remote.close()
        await self.local.close()


def build_store(settings: Settings) -> DocumentStore:
    """Pick the backend from the configured credentials."""

    local = JsonFileStore(settings.data_dir)
    if not settings.remote_store_enabled:
        _log.info("JSONBin not configured, using local files in %s", settings.data_dir)
        return local

    remote = JsonBinStore(
        settings.jsonbin_api_key,
        {CATALOG_KEY: settings.catalog_bin_id, CONFIG_KEY: settings.config_bin_id},
        settings.jsonbin_base_url,
    )
    _log.info("JSONBin configured, mirroring documents to %s", settings.data_dir)
    return MirroredStore(remote, local)
