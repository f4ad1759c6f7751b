"""Discord bot entrypoint, prefix commands, views and modals."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple, cast

import discord
from discord.ext import commands

from .access import AccessGate, parse_user_reference
from .config import Settings, load_settings
from .database import Database
from .embeds import (
    admins_embed,
    page_embed,
    removal_done_message,
    removal_menu_embed,
    sale_announcement_embed,
    sale_listed_embed,
    shop_menu_embed,
    ticket_embed,
    trade_accepted_embed,
    trade_announcement_embed,
    trade_listed_embed,
    trade_offer_embed,
    trade_offers_embed,
)
from .listings import ListingValidationError
from .negotiations import (
    TICKET_PREFIX,
    TRADE_PREFIX,
    ChannelIOError,
    ChannelRequest,
    ChannelState,
    NegotiationBoard,
    NegotiationKind,
    negotiation_channel_name,
)
from .pages import ListingKind, PageView, render_page
from .removal import RemovalScope, RemovalStatus, build_removable_view
from .store import StoreError, build_store

_log = logging.getLogger(__name__)

BUTTONS_PER_ROW = 5
GENERIC_FAILURE = "❌ Something went wrong on my side. Please try again in a moment."
INVALID_IMAGE_MESSAGE = (
    "❌ Invalid image URL! Please provide a valid URL or leave it empty.\n\n"
    'Tip: Upload image to Discord, right-click, and select "Copy Link"'
)
ADMIN_ONLY_COMMAND = "❌ You need administrator permissions to use this command!"
OWNER_ONLY_COMMAND = "❌ Only the bot owner can use this command!"
REMINDER_TEMPLATE = "📢 Reminder: <@{}> <@{}> - Don't forget to complete your transaction!"


def _market_bot(interaction: discord.Interaction) -> "MarketBot":
    return cast("MarketBot", interaction.client)


def _as_snowflake(value: str) -> Optional[int]:
    return int(value) if value.isdigit() else None


async def _send_ephemeral(
    interaction: discord.Interaction,
    content: str | None = None,
    *,
    embed: discord.Embed | None = None,
    view: discord.ui.View | None = None,
) -> None:
    kwargs: Dict[str, Any] = {"ephemeral": True}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if view is not None:
        kwargs["view"] = view
    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)


async def _report_failure(interaction: discord.Interaction, error: Exception) -> None:
    custom_id = (interaction.data or {}).get("custom_id")
    _log.error("Interaction %s failed", custom_id, exc_info=error)
    try:
        await _send_ephemeral(interaction, GENERIC_FAILURE)
    except discord.HTTPException:
        _log.warning("Could not report failure of interaction %s", custom_id)


def _find_admin_role(guild: discord.Guild) -> Optional[discord.Role]:
    for role in guild.roles:
        if role.permissions.administrator and not role.is_default() and not role.managed:
            return role
    return None


class DiscordChannelGateway:
    """Channel operations used by the negotiation board, backed by discord.py."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def _channel(self, channel_id: int) -> Any:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.HTTPException as exc:
                raise ChannelIOError(f"channel {channel_id} is unavailable: {exc}") from exc
        return channel

    async def create_channel(self, request: ChannelRequest) -> int:
        guild = self.client.get_guild(request.guild_id)
        if guild is None:
            raise ChannelIOError(f"guild {request.guild_id} is unavailable")

        allow = discord.PermissionOverwrite(view_channel=True, send_messages=True)
        overwrites: Dict[Any, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            guild.me: allow,
        }
        for member_id in request.member_ids:
            overwrites[guild.get_member(member_id) or discord.Object(id=member_id)] = allow
        admin_role = _find_admin_role(guild) if request.include_admin_role else None
        if admin_role is not None:
            overwrites[admin_role] = allow

        category = None
        if request.category_id and request.category_id.isdigit():
            candidate = guild.get_channel(int(request.category_id))
            if isinstance(candidate, discord.CategoryChannel):
                category = candidate

        try:
            channel = await guild.create_text_channel(
                request.name,
                topic=request.topic[:1024],
                overwrites=overwrites,
                category=category,
                reason="Shop negotiation opened",
            )
        except discord.HTTPException as exc:
            raise ChannelIOError(f"could not create {request.name}: {exc}") from exc

        greeting = dict(request.greeting)
        if admin_role is not None:
            greeting["content"] = f"{greeting.get('content', '')} {admin_role.mention}".strip()
        try:
            await channel.send(**greeting)
        except discord.HTTPException as exc:
            try:
                await channel.delete(reason="Negotiation greeting failed")
            except discord.HTTPException:
                _log.warning("Failed to remove half-created channel %s", channel.id)
            raise ChannelIOError(f"could not greet in {channel.id}: {exc}") from exc
        return channel.id

    async def grant_access(self, channel_id: int, user_id: int) -> None:
        channel = await self._channel(channel_id)
        guild = channel.guild
        try:
            member = guild.get_member(user_id) or await guild.fetch_member(user_id)
            await channel.set_permissions(
                member, view_channel=True, send_messages=True, reason="Trade accepted"
            )
        except discord.HTTPException as exc:
            raise ChannelIOError(f"could not add {user_id} to {channel_id}: {exc}") from exc

    async def post_reminder(self, channel_id: int, user_ids: Tuple[int, int]) -> None:
        channel = await self._channel(channel_id)
        try:
            await channel.send(REMINDER_TEMPLATE.format(*user_ids))
        except discord.HTTPException as exc:
            raise ChannelIOError(f"could not remind in {channel_id}: {exc}") from exc

    async def delete_channel(self, channel_id: int) -> None:
        channel = await self._channel(channel_id)
        try:
            await channel.delete(reason="Negotiation closed")
        except discord.HTTPException as exc:
            raise ChannelIOError(f"could not delete {channel_id}: {exc}") from exc


class MarketBot(commands.Bot):
    """Discord bot that runs the shop and trade marketplace."""

    def __init__(self, settings: Settings, db: Database) -> None:
        intents = discord.Intents.default()
        intents.members = True
        # Prefix commands and ticket activity tracking both read message content.
        intents.message_content = True
        super().__init__(command_prefix="!", intents=intents, help_command=None)
        self.settings = settings
        self.db = db
        self.access = AccessGate(db, settings.owner_id)
        self.negotiations = NegotiationBoard(DiscordChannelGateway(self))

    async def setup_hook(self) -> None:
        await self.db.setup()
        self.add_shop_commands()
        self.register_persistent_views()
        _log.info("Persistent views registered")

    def register_persistent_views(self) -> None:
        for view in (ShopMenuView(), TradeMenuView(), TicketView(), TradeChannelView()):
            self.add_view(view)
        self.add_dynamic_items(
            BuyPageButton,
            TradePageButton,
            ContactSellerButton,
            MakeOfferButton,
            AcceptTradeButton,
            DeclineTradeButton,
            RemoveOwnListingButton,
            AdminRemoveListingButton,
        )

    async def on_ready(self) -> None:
        _log.info("%s is now online", self.user)
        _log.info(
            "JSONBin status: %s",
            "configured" if self.settings.remote_store_enabled else "not configured (local storage)",
        )

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        self.negotiations.touch(message.channel.id, getattr(message.channel, "name", None))
        await self.process_commands(message)

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.CommandNotFound):
            return
        original = getattr(error, "original", error)
        _log.error("Command %s failed", ctx.command, exc_info=original)
        try:
            await ctx.reply(GENERIC_FAILURE)
        except discord.HTTPException:
            _log.warning("Could not report failure of command %s", ctx.command)

    async def close(self) -> None:
        await self.negotiations.shutdown()
        await self.db.close()
        await super().close()

    async def _require_privileged(self, ctx: commands.Context) -> bool:
        if await self.access.is_privileged(ctx.author):
            return True
        await ctx.reply(ADMIN_ONLY_COMMAND)
        return False

    async def _require_owner(self, ctx: commands.Context) -> bool:
        if self.access.is_owner(ctx.author):
            return True
        await ctx.reply(OWNER_ONLY_COMMAND)
        return False

    def add_shop_commands(self) -> None:
        db = self.db

        @self.command(name="shop")
        async def shop(ctx: commands.Context) -> None:
            if not await self._require_privileged(ctx):
                return
            await ctx.send(embed=shop_menu_embed(), view=ShopMenuView())

        @self.command(name="clearshop")
        async def clearshop(ctx: commands.Context) -> None:
            if not await self._require_privileged(ctx):
                return
            await db.clear_catalog()
            await ctx.reply("✅ All shop listings have been cleared!")

        @self.command(name="viewtrades")
        async def viewtrades(ctx: commands.Context) -> None:
            catalog = await db.load_catalog()
            await ctx.send(embed=trade_offers_embed(catalog.trade_offering))

        @self.command(name="setchannel")
        async def setchannel(ctx: commands.Context) -> None:
            if not await self._require_privileged(ctx):
                return
            await db.set_announcement_channel(ctx.channel.id)
            await ctx.reply("✅ This channel will now receive shop and trade announcements!")

        @self.command(name="setshop")
        async def setshop(ctx: commands.Context, category_id: Optional[str] = None) -> None:
            if not await self._require_privileged(ctx):
                return
            if not category_id:
                await ctx.reply(
                    "❌ Usage: `!setshop <category_id>`\n\nTo get category ID:\n"
                    "1. Enable Developer Mode (User Settings > Advanced)\n"
                    "2. Right-click a category > Copy ID"
                )
                return
            if ctx.guild is None:
                await ctx.reply("❌ This command only works inside a server.")
                return

            try:
                category = ctx.guild.get_channel(int(category_id)) or await ctx.guild.fetch_channel(
                    int(category_id)
                )
            except (ValueError, discord.HTTPException):
                await ctx.reply("❌ Invalid category ID! Make sure you copied it correctly.")
                return
            if not isinstance(category, discord.CategoryChannel):
                await ctx.reply("❌ That ID is not a category!")
                return

            await db.set_shop_category(category.id)
            await ctx.reply(f"✅ Tickets will now be created in the **{category.name}** category!")

        @self.command(name="addadm")
        async def addadm(ctx: commands.Context, target: Optional[str] = None) -> None:
            if not await self._require_owner(ctx):
                return
            user_id = parse_user_reference(target or "")
            if user_id is None:
                await ctx.reply("❌ Usage: `!addadm <user_id>` or `!addadm @user`")
                return
            if not await db.add_admin(user_id):
                await ctx.reply("❌ That user is already a bot admin!")
                return
            await ctx.reply(f"✅ <@{user_id}> is now a bot admin! They can now use admin commands.")

        @self.command(name="remadm")
        async def remadm(ctx: commands.Context, target: Optional[str] = None) -> None:
            if not await self._require_owner(ctx):
                return
            user_id = parse_user_reference(target or "")
            if user_id is None:
                await ctx.reply("❌ Usage: `!remadm <user_id>` or `!remadm @user`")
                return
            if not await db.remove_admin(user_id):
                await ctx.reply("❌ That user is not a bot admin!")
                return
            await ctx.reply(f"✅ <@{user_id}> is no longer a bot admin.")

        @self.command(name="listadm")
        async def listadm(ctx: commands.Context) -> None:
            if not await self._require_owner(ctx):
                return
            admins = await db.list_admins()
            if not admins:
                await ctx.reply("📋 There are no bot admins set yet.")
                return
            await ctx.reply(embed=admins_embed(admins))

        @self.command(name="removelisting")
        async def removelisting(ctx: commands.Context) -> None:
            await ctx.reply("💡 Please use the **Remove Listing** button in `!shop` instead!")

    async def show_page(
        self,
        interaction: discord.Interaction,
        kind: ListingKind,
        page: int,
        *,
        first: bool = False,
    ) -> None:
        catalog = await self.db.load_catalog()
        listings = catalog.sell if kind is ListingKind.SALE else catalog.trade_offering
        if first and not listings:
            empty = (
                "No items available for sale yet!"
                if kind is ListingKind.SALE
                else "No trade offers available yet!"
            )
            await _send_ephemeral(interaction, empty)
            return

        view = render_page(catalog, kind, page)
        if view is None:
            missing = "❌ Item not found!" if kind is ListingKind.SALE else "❌ Trade offer not found!"
            await _send_ephemeral(interaction, missing)
            return

        if first:
            await interaction.response.send_message(
                embed=page_embed(view), view=_page_components(view), ephemeral=True
            )
        else:
            await interaction.response.edit_message(embed=page_embed(view), view=_page_components(view))

    async def open_purchase_ticket(self, interaction: discord.Interaction, index: int) -> None:
        if interaction.guild is None:
            await _send_ephemeral(interaction, "❌ Tickets can only be opened inside a server.")
            return

        catalog = await self.db.load_catalog()
        listing = catalog.sale_at(index)
        seller_id = _as_snowflake(listing.seller_id) if listing else None
        if listing is None or seller_id is None:
            await _send_ephemeral(interaction, "❌ Item not found!")
            return
        buyer = interaction.user
        if seller_id == buyer.id:
            await _send_ephemeral(interaction, "⚠️ You cannot open a ticket for your own listing.")
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        config = await self.db.load_config()
        request = ChannelRequest(
            guild_id=interaction.guild.id,
            name=negotiation_channel_name(TICKET_PREFIX, buyer.name),
            topic=f"Ticket for {listing.name} - Buyer: {buyer} | Seller: {listing.seller_name}",
            member_ids=(buyer.id, seller_id),
            category_id=config.shop_category,
            greeting={
                "content": f"<@{buyer.id}> <@{seller_id}>",
                "embed": ticket_embed(listing, buyer.id),
                "view": TicketView(),
            },
        )
        try:
            record = await self.negotiations.open_purchase(
                request, buyer_id=buyer.id, seller_id=seller_id
            )
        except ChannelIOError as exc:
            _log.warning("Error creating ticket: %s", exc)
            await _send_ephemeral(
                interaction,
                "❌ Failed to create ticket. Make sure the bot has permission to create channels!",
            )
            return

        await _send_ephemeral(
            interaction,
            f"✅ Ticket created! Go to <#{record.channel_id}> to talk with the seller.",
        )

    async def prompt_offer(self, interaction: discord.Interaction, index: int) -> None:
        catalog = await self.db.load_catalog()
        trade = catalog.trade_at(index)
        if trade is None:
            await _send_ephemeral(interaction, "❌ Trade offer not found!")
            return
        if trade.user_id == str(interaction.user.id):
            await _send_ephemeral(interaction, "⚠️ You cannot make an offer on your own listing.")
            return
        await interaction.response.send_modal(OfferModal(index, trade.item_name, trade.want))

    async def submit_offer(self, interaction: discord.Interaction, index: int, offer: str) -> None:
        if interaction.guild is None:
            await _send_ephemeral(interaction, "❌ Offers can only be made inside a server.")
            return

        catalog = await self.db.load_catalog()
        trade = catalog.trade_at(index)
        owner_id = _as_snowflake(trade.user_id) if trade else None
        if trade is None or owner_id is None:
            await _send_ephemeral(interaction, "❌ Trade offer not found!")
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        config = await self.db.load_config()
        offerer = interaction.user
        request = ChannelRequest(
            guild_id=interaction.guild.id,
            name=negotiation_channel_name(TRADE_PREFIX, offerer.name),
            topic=f"Trade Confirmation - {trade.item_name}",
            member_ids=(owner_id,),
            category_id=config.shop_category,
            include_admin_role=True,
            greeting={
                "content": f"<@{owner_id}>",
                "embed": trade_offer_embed(trade, offerer.name, offer),
                "view": _offer_decision_view(offerer.id),
            },
        )
        try:
            record = await self.negotiations.open_trade(
                request, offerer_id=offerer.id, owner_id=owner_id
            )
        except ChannelIOError as exc:
            _log.warning("Error creating trade channel: %s", exc)
            await _send_ephemeral(
                interaction,
                "❌ Failed to create trade channel. Make sure the bot has permission to create channels!",
            )
            return

        await _send_ephemeral(
            interaction,
            f"✅ Your offer has been sent! Wait for the owner to respond in <#{record.channel_id}>",
        )

    async def accept_trade(self, interaction: discord.Interaction, offerer_id: int) -> None:
        channel = interaction.channel
        if channel is None:
            return
        if interaction.user.id == offerer_id:
            await _send_ephemeral(interaction, "🚫 Only the listing owner can answer this offer.")
            return

        await interaction.response.defer()
        try:
            record = await self.negotiations.accept_trade(
                channel.id, offerer_id=offerer_id, accepted_by=interaction.user.id
            )
        except ChannelIOError as exc:
            _log.warning("Error adding user to channel: %s", exc)
            await _send_ephemeral(interaction, "❌ I couldn't add the trader to this channel.")
            return
        if record is None:
            await _send_ephemeral(interaction, "ℹ️ This offer has already been answered.")
            return

        await interaction.edit_original_response(
            content=(
                f"✅ Trade accepted! <@{offerer_id}> you can now join this channel "
                "to finalize the trade."
            ),
            view=None,
        )
        try:
            await channel.send(embed=trade_accepted_embed(offerer_id), view=TradeChannelView())
        except discord.HTTPException:
            _log.warning("Failed to post trade confirmation in %s", channel.id)

    async def decline_trade(self, interaction: discord.Interaction, offerer_id: int) -> None:
        channel = interaction.channel
        if channel is None:
            return
        if interaction.user.id == offerer_id:
            await _send_ephemeral(interaction, "🚫 Only the listing owner can answer this offer.")
            return
        if not self.negotiations.decline_trade(channel.id):
            await _send_ephemeral(interaction, "ℹ️ This offer has already been answered.")
            return
        await interaction.response.edit_message(
            content=(
                "❌ Trade declined. This channel will close in "
                f"{self.negotiations.decline_grace:g} seconds."
            ),
            view=None,
        )

    async def close_negotiation(
        self, interaction: discord.Interaction, noun: str, kind: NegotiationKind
    ) -> None:
        channel = interaction.channel
        if channel is None:
            return
        if not self.negotiations.close(channel.id, kind):
            if self.negotiations.state(channel.id) is ChannelState.PENDING:
                message = f"ℹ️ This {noun} cannot be closed until the offer is answered."
            else:
                message = f"ℹ️ This {noun} is already closing."
            await _send_ephemeral(interaction, message)
            return
        await interaction.response.send_message(
            f"🔒 Closing {noun} in {self.negotiations.close_grace:g} seconds..."
        )

    async def show_removal_menu(self, interaction: discord.Interaction, scope: RemovalScope) -> None:
        admin = scope is RemovalScope.ADMIN
        if admin and not await self.access.is_privileged(interaction.user):
            await _send_ephemeral(interaction, "❌ Only admins can use this feature!")
            return

        catalog = await self.db.load_catalog()
        entries = build_removable_view(catalog, scope, interaction.user.id)
        if not entries:
            empty = "❌ There are no active listings!" if admin else "❌ You don't have any active listings!"
            await _send_ephemeral(interaction, empty)
            return

        view = discord.ui.View(timeout=None)
        for position in range(len(entries)):
            row = position // BUTTONS_PER_ROW
            if admin:
                view.add_item(AdminRemoveListingButton(position, row=row))
            else:
                view.add_item(RemoveOwnListingButton(interaction.user.id, position, row=row))
        await _send_ephemeral(interaction, embed=removal_menu_embed(entries, admin=admin), view=view)

    async def remove_listing(
        self,
        interaction: discord.Interaction,
        scope: RemovalScope,
        position: int,
        *,
        token_owner_id: Optional[int] = None,
    ) -> None:
        admin = scope is RemovalScope.ADMIN
        if admin and not await self.access.is_privileged(interaction.user):
            await _send_ephemeral(interaction, "❌ Only admins can use this feature!")
            return

        try:
            result = await self.db.remove_listing(
                scope, position, actor_id=interaction.user.id, token_owner_id=token_owner_id
            )
        except StoreError as exc:
            _log.warning("Error removing listing: %s", exc)
            await _send_ephemeral(interaction, GENERIC_FAILURE)
            return

        if result.status is RemovalStatus.FORBIDDEN:
            await _send_ephemeral(interaction, "❌ You can only remove your own listings!")
            return
        if result.status is RemovalStatus.NOT_FOUND or result.entry is None:
            await _send_ephemeral(interaction, "❌ Listing not found!")
            return

        try:
            await interaction.response.edit_message(
                content=removal_done_message(result.entry, admin=admin), embed=None, view=None
            )
        except discord.HTTPException as exc:
            _log.warning("Error updating removal menu: %s", exc)

    async def submit_sale(
        self,
        interaction: discord.Interaction,
        name: str,
        price: str,
        stock: str,
        image_url: str,
    ) -> None:
        user = interaction.user
        try:
            listing, index = await self.db.add_sale_listing(
                name, price, stock, seller_id=user.id, seller_name=user.name, image=image_url
            )
        except ListingValidationError:
            await _send_ephemeral(interaction, INVALID_IMAGE_MESSAGE)
            return
        except StoreError as exc:
            _log.warning("Error saving sale listing: %s", exc)
            await _send_ephemeral(interaction, GENERIC_FAILURE)
            return

        await _send_ephemeral(interaction, embed=sale_listed_embed(listing))
        await self._announce(
            sale_announcement_embed(listing, avatar_url=user.display_avatar.url),
            ContactSellerButton(index),
        )

    async def submit_trade_listing(
        self,
        interaction: discord.Interaction,
        item_name: str,
        want: str,
        image_url: str,
    ) -> None:
        user = interaction.user
        try:
            listing, index = await self.db.add_trade_listing(
                item_name, want, user_id=user.id, user_name=user.name, image=image_url
            )
        except ListingValidationError:
            await _send_ephemeral(interaction, INVALID_IMAGE_MESSAGE)
            return
        except StoreError as exc:
            _log.warning("Error saving trade listing: %s", exc)
            await _send_ephemeral(interaction, GENERIC_FAILURE)
            return

        await _send_ephemeral(interaction, embed=trade_listed_embed(listing))
        await self._announce(
            trade_announcement_embed(listing, avatar_url=user.display_avatar.url),
            MakeOfferButton(index),
        )

    async def _announce(self, embed: discord.Embed, button: discord.ui.Item) -> None:
        try:
            config = await self.db.load_config()
        except StoreError as exc:
            _log.warning("Skipping announcement, config unavailable: %s", exc)
            return
        channel_id = _as_snowflake(config.announcement_channel or "")
        if channel_id is None:
            return

        view = discord.ui.View(timeout=None)
        view.add_item(button)
        try:
            channel = self.get_channel(channel_id) or await self.fetch_channel(channel_id)
            await channel.send(embed=embed, view=view)
        except discord.HTTPException as exc:
            _log.warning("Error posting announcement to %s: %s", channel_id, exc)


def _page_components(page: PageView) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    sale = page.kind is ListingKind.SALE
    action_cls = ContactSellerButton if sale else MakeOfferButton
    view.add_item(action_cls(page.action.target))
    nav_cls = BuyPageButton if sale else TradePageButton
    for button in page.navigation:
        view.add_item(nav_cls(button.target, label=button.label, emoji=button.emoji, row=1))
    return view


def _offer_decision_view(offerer_id: int) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(AcceptTradeButton(offerer_id))
    view.add_item(DeclineTradeButton(offerer_id))
    return view


class BasePersistentView(discord.ui.View):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault("timeout", None)
        super().__init__(*args, **kwargs)

    async def on_error(
        self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item
    ) -> None:
        await _report_failure(interaction, error)


class ShopMenuView(BasePersistentView):
    @discord.ui.button(label="Buy", style=discord.ButtonStyle.success, custom_id="buy")
    async def buy(self, interaction: discord.Interaction, _: discord.ui.Button):
        await _market_bot(interaction).show_page(interaction, ListingKind.SALE, 0, first=True)

    @discord.ui.button(label="Trade", style=discord.ButtonStyle.primary, custom_id="trade")
    async def trade(self, interaction: discord.Interaction, _: discord.ui.Button):
        await interaction.response.send_message(
            "Choose a trade option:", view=TradeMenuView(), ephemeral=True
        )

    @discord.ui.button(label="Sell", style=discord.ButtonStyle.danger, custom_id="sell")
    async def sell(self, interaction: discord.Interaction, _: discord.ui.Button):
        await interaction.response.send_modal(SaleModal())

    @discord.ui.button(
        label="Remove Listing",
        style=discord.ButtonStyle.secondary,
        emoji="🗑️",
        custom_id="remove_listing_menu",
        row=1,
    )
    async def remove_listing(self, interaction: discord.Interaction, _: discord.ui.Button):
        await _market_bot(interaction).show_removal_menu(interaction, RemovalScope.OWN)

    @discord.ui.button(
        label="Remove (Admin)",
        style=discord.ButtonStyle.danger,
        emoji="🛡️",
        custom_id="admin_remove_menu",
        row=1,
    )
    async def admin_remove(self, interaction: discord.Interaction, _: discord.ui.Button):
        await _market_bot(interaction).show_removal_menu(interaction, RemovalScope.ADMIN)


class TradeMenuView(BasePersistentView):
    @discord.ui.button(label="Look For", style=discord.ButtonStyle.success, custom_id="look_for")
    async def look_for(self, interaction: discord.Interaction, _: discord.ui.Button):
        await _market_bot(interaction).show_page(
            interaction, ListingKind.TRADE_OFFERING, 0, first=True
        )

    @discord.ui.button(label="Trading For", style=discord.ButtonStyle.primary, custom_id="trading_for")
    async def trading_for(self, interaction: discord.Interaction, _: discord.ui.Button):
        await interaction.response.send_modal(TradeListingModal())


class TicketView(BasePersistentView):
    @discord.ui.button(
        label="Close Ticket", style=discord.ButtonStyle.danger, emoji="🔒", custom_id="close_ticket"
    )
    async def close_ticket(self, interaction: discord.Interaction, _: discord.ui.Button):
        await _market_bot(interaction).close_negotiation(
            interaction, "ticket", NegotiationKind.PURCHASE
        )


class TradeChannelView(BasePersistentView):
    @discord.ui.button(
        label="Close Trade Channel",
        style=discord.ButtonStyle.danger,
        emoji="🔒",
        custom_id="close_trade_channel",
    )
    async def close_trade_channel(self, interaction: discord.Interaction, _: discord.ui.Button):
        await _market_bot(interaction).close_negotiation(
            interaction, "trade channel", NegotiationKind.TRADE
        )


class ReportingButton:
    """Runs a dynamic button's ``handle`` and replies with a generic failure if it raises."""

    async def handle(self, interaction: discord.Interaction) -> None:
        raise NotImplementedError

    async def callback(self, interaction: discord.Interaction) -> None:
        try:
            await self.handle(interaction)
        except Exception as exc:
            await _report_failure(interaction, exc)


class BuyPageButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"buy_page_(?P<page>\d+)"
):
    def __init__(self, page: int, *, label: str = "Page", emoji: str | None = None, row: int | None = None):
        super().__init__(
            discord.ui.Button(
                label=label,
                emoji=emoji,
                style=discord.ButtonStyle.secondary,
                custom_id=f"buy_page_{page}",
            ),
            row=row,
        )
        self.page = page

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["page"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).show_page(interaction, ListingKind.SALE, self.page)


class TradePageButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"trade_page_(?P<page>\d+)"
):
    def __init__(self, page: int, *, label: str = "Page", emoji: str | None = None, row: int | None = None):
        super().__init__(
            discord.ui.Button(
                label=label,
                emoji=emoji,
                style=discord.ButtonStyle.secondary,
                custom_id=f"trade_page_{page}",
            ),
            row=row,
        )
        self.page = page

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["page"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).show_page(interaction, ListingKind.TRADE_OFFERING, self.page)


class ContactSellerButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"contact_seller_(?P<index>\d+)"
):
    def __init__(self, index: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Contact Seller",
                emoji="📞",
                style=discord.ButtonStyle.success,
                custom_id=f"contact_seller_{index}",
            )
        )
        self.index = index

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["index"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).open_purchase_ticket(interaction, self.index)


class MakeOfferButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"make_offer_(?P<index>\d+)"
):
    def __init__(self, index: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Make an Offer",
                emoji="🤝",
                style=discord.ButtonStyle.primary,
                custom_id=f"make_offer_{index}",
            )
        )
        self.index = index

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["index"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).prompt_offer(interaction, self.index)


class AcceptTradeButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"accept_trade_(?P<offerer_id>\d+)"
):
    def __init__(self, offerer_id: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Accept Offer",
                emoji="✅",
                style=discord.ButtonStyle.success,
                custom_id=f"accept_trade_{offerer_id}",
            )
        )
        self.offerer_id = offerer_id

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["offerer_id"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).accept_trade(interaction, self.offerer_id)


class DeclineTradeButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"decline_trade_(?P<offerer_id>\d+)"
):
    def __init__(self, offerer_id: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Decline Offer",
                emoji="❌",
                style=discord.ButtonStyle.danger,
                custom_id=f"decline_trade_{offerer_id}",
            )
        )
        self.offerer_id = offerer_id

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["offerer_id"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).decline_trade(interaction, self.offerer_id)


class RemoveOwnListingButton(
    ReportingButton,
    discord.ui.DynamicItem[discord.ui.Button],
    template=r"remove_listing_(?P<user_id>\d+)_(?P<position>\d+)",
):
    """Numbered button of a member's own removal menu.

    The requesting member's id is part of the custom id so a shared or
    forwarded menu cannot remove someone else's listing.
    """

    def __init__(self, user_id: int, position: int, *, row: int | None = None) -> None:
        super().__init__(
            discord.ui.Button(
                label=str(position + 1),
                style=discord.ButtonStyle.danger,
                custom_id=f"remove_listing_{user_id}_{position}",
            ),
            row=row,
        )
        self.user_id = user_id
        self.position = position

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["user_id"]), int(match["position"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).remove_listing(
            interaction, RemovalScope.OWN, self.position, token_owner_id=self.user_id
        )


class AdminRemoveListingButton(
    ReportingButton, discord.ui.DynamicItem[discord.ui.Button], template=r"admin_remove_item_(?P<position>\d+)"
):
    def __init__(self, position: int, *, row: int | None = None) -> None:
        super().__init__(
            discord.ui.Button(
                label=str(position + 1),
                style=discord.ButtonStyle.danger,
                custom_id=f"admin_remove_item_{position}",
            ),
            row=row,
        )
        self.position = position

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str], /
    ):
        return cls(int(match["position"]))

    async def handle(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).remove_listing(interaction, RemovalScope.ADMIN, self.position)


class BaseModal(discord.ui.Modal):
    async def on_error(self, interaction: discord.Interaction, error: Exception) -> None:
        await _report_failure(interaction, error)


class SaleModal(BaseModal):
    def __init__(self) -> None:
        super().__init__(title="List Item for Sale", custom_id="sell_modal")
        self.item_input = discord.ui.TextInput(
            label="Name of Item",
            placeholder="Enter item name...",
            custom_id="item_name",
            max_length=100,
        )
        self.price_input = discord.ui.TextInput(
            label="Price",
            placeholder="Enter price (e.g., 1000 coins)...",
            custom_id="price",
            max_length=100,
        )
        self.stock_input = discord.ui.TextInput(
            label="Stock",
            placeholder="Enter quantity available...",
            custom_id="stock",
            max_length=100,
        )
        self.image_input = discord.ui.TextInput(
            label="Image URL (Optional)",
            placeholder="Upload image to Discord, right-click, Copy Link...",
            custom_id="image_url",
            required=False,
        )
        for text_input in (self.item_input, self.price_input, self.stock_input, self.image_input):
            self.add_item(text_input)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).submit_sale(
            interaction,
            self.item_input.value,
            self.price_input.value,
            self.stock_input.value,
            self.image_input.value,
        )


class TradeListingModal(BaseModal):
    def __init__(self) -> None:
        super().__init__(title="List Item for Trade", custom_id="trading_for_modal")
        self.item_input = discord.ui.TextInput(
            label="Name of the Item (What you have)",
            placeholder="Enter the item you want to trade...",
            custom_id="item_name",
            max_length=100,
        )
        self.want_input = discord.ui.TextInput(
            label="What do you want for it?",
            placeholder="Enter what you want in exchange...",
            custom_id="want",
            style=discord.TextStyle.long,
            max_length=1000,
        )
        self.image_input = discord.ui.TextInput(
            label="Image URL (Optional)",
            placeholder="Upload image to Discord, right-click, Copy Link...",
            custom_id="image_url",
            required=False,
        )
        for text_input in (self.item_input, self.want_input, self.image_input):
            self.add_item(text_input)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).submit_trade_listing(
            interaction, self.item_input.value, self.want_input.value, self.image_input.value
        )


class OfferModal(BaseModal):
    def __init__(self, index: int, item_name: str, want: str) -> None:
        super().__init__(title=f"Offer for {item_name}"[:45], custom_id=f"offer_modal_{index}")
        self.index = index
        self.offer_input = discord.ui.TextInput(
            label="What do you want to offer?",
            placeholder=f"Owner wants: {want}"[:100],
            custom_id="your_offer",
            style=discord.TextStyle.long,
            max_length=1000,
        )
        self.add_item(self.offer_input)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await _market_bot(interaction).submit_offer(interaction, self.index, self.offer_input.value)


def run_bot() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = load_settings()
    bot = MarketBot(settings, Database(build_store(settings)))
    bot.run(settings.discord_token)


if __name__ == "__main__":
    run_bot()
