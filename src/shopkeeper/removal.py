"""Numbered removal menus and resolution of a chosen number back to a listing."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .listings import Catalog, SaleListing, TradeListing

#: Discord allows at most 25 buttons (five rows of five) per message.
MAX_REMOVAL_OPTIONS = 25


class RemovalScope(str, Enum):
    OWN = "own"
    ADMIN = "admin"


class RemovalStatus(str, Enum):
    REMOVED = "removed"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class RemovableEntry:
    """A listing as shown in a removal menu, tagged with its true catalog index."""

    index: int
    kind: str
    listing: Union[SaleListing, TradeListing]

    @property
    def title(self) -> str:
        if isinstance(self.listing, SaleListing):
            return self.listing.name
        return self.listing.item_name


@dataclass(frozen=True)
class RemovalResult:
    status: RemovalStatus
    entry: Optional[RemovableEntry] = None

    @property
    def removed(self) -> bool:
        return self.status is RemovalStatus.REMOVED


def build_removable_view(
    catalog: Catalog,
    scope: RemovalScope,
    requester_id: int | str | None = None,
) -> List[RemovableEntry]:
    """Return the numbered entries a removal menu offers.

    Sale listings come first, then trade offerings. With ``RemovalScope.OWN``
    only listings owned by ``requester_id`` are included. Entries past
    ``MAX_REMOVAL_OPTIONS`` are left out.
    """

    owner = str(requester_id) if requester_id is not None else None
    if scope is RemovalScope.OWN and owner is None:
        return []

    entries: List[RemovableEntry] = []
    for index, listing in enumerate(catalog.sell):
        if scope is RemovalScope.ADMIN or listing.seller_id == owner:
            entries.append(RemovableEntry(index, "sell", listing))
    for index, trade in enumerate(catalog.trade_offering):
        if scope is RemovalScope.ADMIN or trade.user_id == owner:
            entries.append(RemovableEntry(index, "trade", trade))
    return entries[:MAX_REMOVAL_OPTIONS]


def resolve_removal(
    catalog: Catalog,
    scope: RemovalScope,
    position: int,
    *,
    actor_id: int | str,
    token_owner_id: int | str | None = None,
) -> RemovalResult:
    """Remove the listing at ``position`` of a freshly rebuilt menu.

    ``catalog`` must be the just-loaded catalog; it is mutated in place. The
    menu is rebuilt here rather than trusted from the rendered message because
    other removals may have shifted positions since it was shown.
    """

    actor = str(actor_id)
    if scope is RemovalScope.OWN and str(token_owner_id) != actor:
        return RemovalResult(RemovalStatus.FORBIDDEN)

    view = build_removable_view(catalog, scope, actor if scope is RemovalScope.OWN else None)
    if not 0 <= position < len(view):
        return RemovalResult(RemovalStatus.NOT_FOUND)

    entry = view[position]
    backing = catalog.sell if entry.kind == "sell" else catalog.trade_offering
    del backing[entry.index]
    return RemovalResult(RemovalStatus.REMOVED, entry)
