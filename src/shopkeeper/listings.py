"""Listing and configuration documents shared by every shop flow."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urlsplit


class ListingValidationError(ValueError):
    """Raised when a submitted listing cannot be stored."""


def is_valid_url(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def _clean_image(image: Optional[str]) -> Optional[str]:
    """Return a stripped image URL, ``None`` when blank, or raise if malformed."""

    if image is None or not image.strip():
        return None
    if not is_valid_url(image):
        raise ListingValidationError(f"Invalid image URL: {image!r}")
    return image.strip()


@dataclass
class SaleListing:
    name: str
    price: str
    stock: str
    seller_id: str
    seller_name: str
    image: Optional[str] = None

    @classmethod
    def create(
        cls,
        name: str,
        price: str,
        stock: str,
        *,
        seller_id: int | str,
        seller_name: str,
        image: Optional[str] = None,
    ) -> "SaleListing":
        return cls(
            name=name.strip(),
            price=price.strip(),
            stock=stock.strip(),
            seller_id=str(seller_id),
            seller_name=seller_name,
            image=_clean_image(image),
        )

    @property
    def owner_id(self) -> str:
        return self.seller_id

    @property
    def display_image(self) -> Optional[str]:
        return self.image if is_valid_url(self.image) else None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "SaleListing":
        return cls(
            name=str(doc.get("name", "")),
            price=str(doc.get("price", "")),
            stock=str(doc.get("stock", "")),
            seller_id=str(doc.get("seller_id", "")),
            seller_name=str(doc.get("seller_name", "")),
            image=doc.get("image") or None,
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "seller_id": self.seller_id,
            "seller_name": self.seller_name,
            "image": self.image,
        }


@dataclass
class TradeListing:
    """An item a member offers in exchange for something they want."""

    item_name: str
    want: str
    user_id: str
    user_name: str
    image: Optional[str] = None

    @classmethod
    def create(
        cls,
        item_name: str,
        want: str,
        *,
        user_id: int | str,
        user_name: str,
        image: Optional[str] = None,
    ) -> "TradeListing":
        return cls(
            item_name=item_name.strip(),
            want=want.strip(),
            user_id=str(user_id),
            user_name=user_name,
            image=_clean_image(image),
        )

    @property
    def owner_id(self) -> str:
        return self.user_id

    @property
    def display_image(self) -> Optional[str]:
        return self.image if is_valid_url(self.image) else None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "TradeListing":
        return cls(
            item_name=str(doc.get("item_name", "")),
            want=str(doc.get("want", "")),
            user_id=str(doc.get("user_id", "")),
            user_name=str(doc.get("user_name", "")),
            image=doc.get("image") or None,
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "item_name": self.item_name,
            "want": self.want,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "image": self.image,
        }


@dataclass
class Catalog:
    """All active listings in insertion order.

    List positions double as the index embedded in buttons and the index used
    for removal, so entries are only ever appended or spliced out.
    """

    sell: List[SaleListing] = field(default_factory=list)
    trade_looking: List[dict[str, Any]] = field(default_factory=list)
    trade_offering: List[TradeListing] = field(default_factory=list)

    def sale_at(self, index: int) -> Optional[SaleListing]:
        if 0 <= index < len(self.sell):
            return self.sell[index]
        return None

    def trade_at(self, index: int) -> Optional[TradeListing]:
        if 0 <= index < len(self.trade_offering):
            return self.trade_offering[index]
        return None

    def __len__(self) -> int:
        return len(self.sell) + len(self.trade_offering)

    @classmethod
    def from_document(cls, doc: Optional[dict[str, Any]]) -> "Catalog":
        doc = doc or {}
        return cls(
            sell=[SaleListing.from_document(entry) for entry in doc.get("sell") or []],
            trade_looking=list(doc.get("trade_looking") or []),
            trade_offering=[
                TradeListing.from_document(entry) for entry in doc.get("trade_offering") or []
            ],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "sell": [listing.to_document() for listing in self.sell],
            "trade_looking": list(self.trade_looking),
            "trade_offering": [listing.to_document() for listing in self.trade_offering],
        }


@dataclass
class BotConfig:
    announcement_channel: Optional[str] = None
    shop_category: Optional[str] = None
    admins: List[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Optional[dict[str, Any]]) -> "BotConfig":
        doc = doc or {}
        channel = doc.get("announcement_channel")
        category = doc.get("shop_category")
        return cls(
            announcement_channel=str(channel) if channel else None,
            shop_category=str(category) if category else None,
            admins=[str(admin) for admin in doc.get("admins") or []],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "announcement_channel": self.announcement_channel,
            "shop_category": self.shop_category,
            "admins": list(self.admins),
        }

