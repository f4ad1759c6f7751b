"""Privilege checks for admin-only shop commands."""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from .database import Database
from .store import StoreError

_log = logging.getLogger(__name__)

_MENTION_CHARS = re.compile(r"[<@!>]")


def parse_user_reference(value: str) -> Optional[str]:
    """Turn ``<@123>``, ``<@!123>`` or ``123`` into ``"123"``."""

    cleaned = _MENTION_CHARS.sub("", value.strip())
    return cleaned if cleaned.isdigit() else None


def has_admin_permission(actor: Any) -> bool:
    # Users outside a guild have no guild_permissions.
    permissions = getattr(actor, "guild_permissions", None)
    return bool(getattr(permissions, "administrator", False))


class AccessGate:
    def __init__(self, db: Database, owner_id: int | str) -> None:
        self.db = db
        self.owner_id = str(owner_id)

    def is_owner(self, actor: Any) -> bool:
        return str(actor.id) == self.owner_id

    async def is_privileged(self, actor: Any) -> bool:
        """Return whether ``actor`` may use admin shop features.

        Server administrators, the bot owner and members of the configured
        admin list qualify. When the configuration cannot be loaded only the
        first two are honoured.
        """

        if has_admin_permission(actor) or self.is_owner(actor):
            return True
        try:
            config = await self.db.load_config()
        except StoreError as exc:
            _log.warning("Could not load config while checking admin %s: %s", actor.id, exc)
            return False
        return str(actor.id) in config.admins
