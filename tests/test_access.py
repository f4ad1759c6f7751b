from pathlib import Path
from types import SimpleNamespace

import pytest

from shopkeeper.access import AccessGate, has_admin_permission, parse_user_reference
from shopkeeper.database import Database
from shopkeeper.store import JsonFileStore, StoreError

pytestmark = pytest.mark.asyncio


class BrokenStore:
    async def setup(self, defaults) -> None:
        return None

    async def load(self, key):
        raise StoreError("disk on fire")

    async def save(self, key, document) -> bool:
        raise StoreError("disk on fire")

    async def close(self) -> None:
        return None


def _member(user_id: int, *, administrator: bool = False) -> SimpleNamespace:
    return SimpleNamespace(
        id=user_id, guild_permissions=SimpleNamespace(administrator=administrator)
    )


async def test_parse_user_reference_accepts_mentions_and_ids():
    assert parse_user_reference("<@123>") == "123"
    assert parse_user_reference("<@!456>") == "456"
    assert parse_user_reference(" 789 ") == "789"
    assert parse_user_reference("someone") is None
    assert parse_user_reference("") is None


async def test_has_admin_permission_outside_guild():
    assert has_admin_permission(_member(1, administrator=True))
    assert not has_admin_permission(SimpleNamespace(id=1))


async def test_privileged_sources(tmp_path: Path):
    db = Database(JsonFileStore(str(tmp_path)))
    await db.setup()
    await db.add_admin(30)
    gate = AccessGate(db, 99)

    assert await gate.is_privileged(_member(10, administrator=True))
    assert await gate.is_privileged(_member(99))
    assert gate.is_owner(_member(99))
    assert await gate.is_privileged(_member(30))
    assert not gate.is_owner(_member(30))
    assert not await gate.is_privileged(_member(40))


async def test_unreadable_config_denies_listed_admins():
    gate = AccessGate(Database(BrokenStore()), 99)

    assert not await gate.is_privileged(_member(30))
    assert await gate.is_privileged(_member(99))
