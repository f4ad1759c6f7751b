"""One-listing-per-page browsing views for sale and trade listings."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .listings import Catalog

SALE_COLOR = 0x00FF00
TRADE_COLOR = 0xFFD700


class ListingKind(str, Enum):
    SALE = "sale"
    TRADE_OFFERING = "trade_offering"


@dataclass(frozen=True)
class PageButton:
    custom_id: str
    label: str
    style: str
    emoji: str
    target: int


@dataclass(frozen=True)
class PageView:
    kind: ListingKind
    page: int
    total: int
    title: str
    fields: Tuple[Tuple[str, str, bool], ...]
    footer: str
    color: int
    action: PageButton
    navigation: Tuple[PageButton, ...] = ()
    image: Optional[str] = None

    @property
    def label(self) -> str:
        return f"Page {self.page + 1} of {self.total}"


def _navigation(prefix: str, page: int, total: int) -> Tuple[PageButton, ...]:
    if total <= 1:
        return ()
    buttons = []
    if page > 0:
        buttons.append(
            PageButton(f"{prefix}_page_{page - 1}", "Previous", "secondary", "⬅️", page - 1)
        )
    if page < total - 1:
        buttons.append(
            PageButton(f"{prefix}_page_{page + 1}", "Next", "secondary", "➡️", page + 1)
        )
    return tuple(buttons)


def render_page(catalog: Catalog, kind: ListingKind, page: int) -> Optional[PageView]:
    """Describe page ``page`` of the sale or trade listings.

    Returns ``None`` when the page does not exist in ``catalog``, which happens
    when listings were removed after the previous page was shown.
    """

    if kind is ListingKind.SALE:
        item = catalog.sale_at(page)
        if item is None:
            return None
        total = len(catalog.sell)
        return PageView(
            kind=kind,
            page=page,
            total=total,
            title=f"🛒 Item for Sale - {item.name}",
            fields=(
                ("💰 Price", item.price, True),
                ("📦 Stock", item.stock, True),
                ("👤 Seller", f"<@{item.seller_id}>", True),
            ),
            footer=f"Item #{page + 1}",
            color=SALE_COLOR,
            action=PageButton(f"contact_seller_{page}", "Contact Seller", "success", "📞", page),
            navigation=_navigation("buy", page, total),
            image=item.display_image,
        )

    trade = catalog.trade_at(page)
    if trade is None:
        return None
    total = len(catalog.trade_offering)
    return PageView(
        kind=kind,
        page=page,
        total=total,
        title=f"🔄 Trade Offer - {trade.item_name}",
        fields=(
            ("📦 Offering", trade.item_name, False),
            ("💭 Owner Wants", trade.want, False),
            ("👤 Owner", f"<@{trade.user_id}>", True),
        ),
        footer=f"Trade #{page + 1}",
        color=TRADE_COLOR,
        action=PageButton(f"make_offer_{page}", "Make an Offer", "primary", "🤝", page),
        navigation=_navigation("trade", page, total),
        image=trade.display_image,
    )
