"""Load-mutate-save access to the shop documents."""
from __future__ import annotations

from typing import List, Optional, Tuple

from .listings import BotConfig, Catalog, SaleListing, TradeListing
from .removal import RemovalResult, RemovalScope, resolve_removal
from .store import CATALOG_KEY, CONFIG_KEY, DocumentStore


class Database:
    """Data access helper built on top of a document store.

    Every operation reloads the document it touches and saves it straight
    back. Nothing is locked: two handlers interleaving around an ``await`` can
    each load the same catalog and the later save wins.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def setup(self) -> None:
        await self.store.setup(
            {
                CATALOG_KEY: Catalog().to_document(),
                CONFIG_KEY: BotConfig().to_document(),
            }
        )

    async def close(self) -> None:
        await self.store.close()

    async def load_catalog(self) -> Catalog:
        return Catalog.from_document(await self.store.load(CATALOG_KEY))

    async def save_catalog(self, catalog: Catalog) -> bool:
        return await self.store.save(CATALOG_KEY, catalog.to_document())

    async def load_config(self) -> BotConfig:
        return BotConfig.from_document(await self.store.load(CONFIG_KEY))

    async def save_config(self, config: BotConfig) -> bool:
        return await self.store.save(CONFIG_KEY, config.to_document())

    async def add_sale_listing(
        self,
        name: str,
        price: str,
        stock: str,
        *,
        seller_id: int | str,
        seller_name: str,
        image: Optional[str] = None,
    ) -> Tuple[SaleListing, int]:
        """Append a sale listing and return it with its catalog index.

        The listing is validated before the catalog is loaded, so a bad image
        URL never touches stored state.
        """

        listing = SaleListing.create(
            name, price, stock, seller_id=seller_id, seller_name=seller_name, image=image
        )
        catalog = await self.load_catalog()
        catalog.sell.append(listing)
        await self.save_catalog(catalog)
        return listing, len(catalog.sell) - 1

    async def add_trade_listing(
        self,
        item_name: str,
        want: str,
        *,
        user_id: int | str,
        user_name: str,
        image: Optional[str] = None,
    ) -> Tuple[TradeListing, int]:
        listing = TradeListing.create(
            item_name, want, user_id=user_id, user_name=user_name, image=image
        )
        catalog = await self.load_catalog()
        catalog.trade_offering.append(listing)
        await self.save_catalog(catalog)
        return listing, len(catalog.trade_offering) - 1

    async def clear_catalog(self) -> None:
        await self.save_catalog(Catalog())

    async def remove_listing(
        self,
        scope: RemovalScope,
        position: int,
        *,
        actor_id: int | str,
        token_owner_id: int | str | None = None,
    ) -> RemovalResult:
        catalog = await self.load_catalog()
        result = resolve_removal(
            catalog, scope, position, actor_id=actor_id, token_owner_id=token_owner_id
        )
        if result.removed:
            await self.save_catalog(catalog)
        return result

    async def set_announcement_channel(self, channel_id: int | str) -> None:
        config = await self.load_config()
        config.announcement_channel = str(channel_id)
        await self.save_config(config)

    async def set_shop_category(self, category_id: int | str) -> None:
        config = await self.load_config()
        config.shop_category = str(category_id)
        await self.save_config(config)

    async def add_admin(self, user_id: int | str) -> bool:
        config = await self.load_config()
        user_id = str(user_id)
        if user_id in config.admins:
            return False
        config.admins.append(user_id)
        await self.save_config(config)
        return True

    async def remove_admin(self, user_id: int | str) -> bool:
        config = await self.load_config()
        user_id = str(user_id)
        if user_id not in config.admins:
            return False
        config.admins = [admin for admin in config.admins if admin != user_id]
        await self.save_config(config)
        return True

    async def list_admins(self) -> List[str]:
        return list((await self.load_config()).admins)
