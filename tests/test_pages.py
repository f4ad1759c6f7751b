from shopkeeper.listings import Catalog, SaleListing, TradeListing
from shopkeeper.pages import ListingKind, render_page


def _sales(count: int) -> Catalog:
    return Catalog(
        sell=[
            SaleListing(f"Item {n}", f"{n}0 gold", "1", str(100 + n), f"seller{n}")
            for n in range(count)
        ]
    )


def test_render_page_returns_none_for_missing_page():
    assert render_page(Catalog(), ListingKind.SALE, 0) is None
    assert render_page(_sales(2), ListingKind.SALE, 2) is None
    assert render_page(_sales(2), ListingKind.TRADE_OFFERING, 0) is None


def test_single_listing_has_no_navigation():
    view = render_page(_sales(1), ListingKind.SALE, 0)

    assert view.label == "Page 1 of 1"
    assert view.navigation == ()
    assert view.action.custom_id == "contact_seller_0"
    assert view.footer == "Item #1"


def test_middle_page_offers_previous_and_next():
    view = render_page(_sales(3), ListingKind.SALE, 1)

    assert view.label == "Page 2 of 3"
    assert [button.custom_id for button in view.navigation] == ["buy_page_0", "buy_page_2"]
    assert [button.label for button in view.navigation] == ["Previous", "Next"]
    assert ("👤 Seller", "<@101>", True) in view.fields


def test_last_page_only_goes_back():
    view = render_page(_sales(3), ListingKind.SALE, 2)

    assert [button.target for button in view.navigation] == [1]


def test_trade_page_uses_offer_action():
    catalog = Catalog(
        trade_offering=[
            TradeListing("Shield", "Sword", "5", "t1", "https://example.com/shield.png"),
            TradeListing("Bow", "Arrows", "6", "t2"),
        ]
    )

    view = render_page(catalog, ListingKind.TRADE_OFFERING, 0)

    assert view.title == "🔄 Trade Offer - Shield"
    assert view.action.custom_id == "make_offer_0"
    assert view.action.style == "primary"
    assert [button.custom_id for button in view.navigation] == ["trade_page_1"]
    assert view.image == "https://example.com/shield.png"
