from shopkeeper.listings import Catalog, SaleListing, TradeListing
from shopkeeper.removal import (
    MAX_REMOVAL_OPTIONS,
    RemovalScope,
    RemovalStatus,
    build_removable_view,
    resolve_removal,
)


def _catalog() -> Catalog:
    return Catalog(
        sell=[
            SaleListing("Apple", "1", "1", "1", "alice"),
            SaleListing("Banana", "2", "1", "2", "bob"),
            SaleListing("Cherry", "3", "1", "1", "alice"),
        ],
        trade_offering=[TradeListing("Tent", "Rope", "1", "alice")],
    )


def test_own_view_lists_sales_before_trades():
    entries = build_removable_view(_catalog(), RemovalScope.OWN, 1)

    assert [(entry.kind, entry.index, entry.title) for entry in entries] == [
        ("sell", 0, "Apple"),
        ("sell", 2, "Cherry"),
        ("trade", 0, "Tent"),
    ]


def test_admin_view_lists_everything():
    entries = build_removable_view(_catalog(), RemovalScope.ADMIN)

    assert [entry.title for entry in entries] == ["Apple", "Banana", "Cherry", "Tent"]


def test_view_is_capped():
    catalog = Catalog(sell=[SaleListing(f"Item {n}", "1", "1", "1", "a") for n in range(30)])

    assert len(build_removable_view(catalog, RemovalScope.ADMIN)) == MAX_REMOVAL_OPTIONS


def test_resolve_removal_deletes_by_catalog_index():
    catalog = _catalog()

    result = resolve_removal(catalog, RemovalScope.OWN, 1, actor_id=1, token_owner_id="1")

    assert result.removed
    assert result.entry.title == "Cherry"
    assert [listing.name for listing in catalog.sell] == ["Apple", "Banana"]
    assert len(catalog.trade_offering) == 1


def test_resolve_removal_rejects_foreign_menu():
    catalog = _catalog()

    result = resolve_removal(catalog, RemovalScope.OWN, 0, actor_id=2, token_owner_id=1)

    assert result.status is RemovalStatus.FORBIDDEN
    assert len(catalog) == 4


def test_stale_position_after_shrinking_catalog():
    catalog = _catalog()
    assert resolve_removal(catalog, RemovalScope.OWN, 2, actor_id=1, token_owner_id=1).removed

    again = resolve_removal(catalog, RemovalScope.OWN, 2, actor_id=1, token_owner_id=1)

    assert again.status is RemovalStatus.NOT_FOUND
    assert again.entry is None
    assert len(catalog) == 3


def test_admin_removes_trade_entries():
    catalog = _catalog()

    result = resolve_removal(catalog, RemovalScope.ADMIN, 3, actor_id=99)

    assert result.entry.kind == "trade"
    assert catalog.trade_offering == []


def test_positions_close_up_after_a_removal():
    catalog = _catalog()

    first = resolve_removal(catalog, RemovalScope.OWN, 0, actor_id=1, token_owner_id=1)
    second = resolve_removal(catalog, RemovalScope.OWN, 0, actor_id=1, token_owner_id=1)

    assert first.entry.title == "Apple"
    assert second.entry.title == "Cherry"
    assert [listing.name for listing in catalog.sell] == ["Banana"]
    assert [entry.title for entry in build_removable_view(catalog, RemovalScope.OWN, 1)] == ["Tent"]
