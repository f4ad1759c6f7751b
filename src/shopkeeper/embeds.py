"""Embed builder utilities for consistent formatting."""
from __future__ import annotations

from typing import Iterable, Sequence

import discord

from .listings import SaleListing, TradeListing
from .pages import PageView
from .removal import RemovableEntry

DEFAULT_COLOR = 0x0099FF
SUCCESS_COLOR = 0x00FF00
TRADE_COLOR = 0xFFD700
DANGER_COLOR = 0xFF0000
FOOTER_TEXT = "Shop & Trade System"
REMINDER_FOOTER = "You will receive a reminder every 24 hours if no one chats"


def info_embed(title: str, description: str | None = None, *, color: int = DEFAULT_COLOR) -> discord.Embed:
    embed = discord.Embed(title=title, description=description or "", color=color)
    embed.set_footer(text=FOOTER_TEXT)
    return embed


def page_embed(view: PageView) -> discord.Embed:
    embed = discord.Embed(
        title=view.title,
        description=f"**{view.label}**",
        color=view.color,
        timestamp=discord.utils.utcnow(),
    )
    for name, value, inline in view.fields:
        embed.add_field(name=name, value=value, inline=inline)
    embed.set_footer(text=view.footer)
    if view.image:
        embed.set_image(url=view.image)
    return embed


def shop_menu_embed() -> discord.Embed:
    embed = discord.Embed(
        title="🏪 Shop & Trade System",
        description="Choose an option below:",
        color=DEFAULT_COLOR,
    )
    embed.add_field(name="🟢 Buy", value="Browse items for sale", inline=False)
    embed.add_field(name="🔵 Trade", value="Trade items with other players", inline=False)
    embed.add_field(name="🔴 Sell", value="List your items for sale", inline=False)
    embed.add_field(name="🗑️ Remove Listing", value="Remove your items from shop", inline=False)
    embed.add_field(
        name="🛡️ Remove (Admin)", value="Remove any item from shop (Admin only)", inline=False
    )
    return embed


def format_trade_offers(trades: Iterable[TradeListing]) -> str:
    return "\n".join(
        f"{idx}. **{trade.item_name}** → wants: {trade.want} (<@{trade.user_id}>)"
        for idx, trade in enumerate(trades, start=1)
    )


def trade_offers_embed(trades: Sequence[TradeListing]) -> discord.Embed:
    embed = discord.Embed(title="📋 Active Trade Offers", color=TRADE_COLOR)
    if trades:
        # Field values are capped at 1024 characters.
        embed.add_field(name="🔄 Trading For", value=format_trade_offers(trades)[:1024], inline=False)
    else:
        embed.description = "No active trades yet!"
    return embed


def removal_menu_embed(entries: Sequence[RemovableEntry], *, admin: bool) -> discord.Embed:
    if admin:
        embed = discord.Embed(
            title="🛡️ All Active Listings (Admin)",
            description="Click the number button to remove any listing",
            color=DANGER_COLOR,
        )
    else:
        embed = discord.Embed(
            title="Your Active Listings",
            description="Click the number button to remove that listing",
            color=DANGER_COLOR,
        )

    for position, entry in enumerate(entries, start=1):
        listing = entry.listing
        if isinstance(listing, SaleListing):
            lines = ["**Type:** For Sale", f"**Price:** {listing.price}", f"**Stock:** {listing.stock}"]
            if admin:
                lines.append(f"**Seller:** <@{listing.seller_id}>")
            embed.add_field(name=f"{position}. 🛒 {listing.name}", value="\n".join(lines), inline=False)
        else:
            lines = ["**Type:** Trade Offer", f"**Want:** {listing.want}"]
            if admin:
                lines.append(f"**Owner:** <@{listing.user_id}>")
            embed.add_field(
                name=f"{position}. 🔄 {listing.item_name}", value="\n".join(lines), inline=False
            )
    return embed


def removal_done_message(entry: RemovableEntry, *, admin: bool) -> str:
    listing = entry.listing
    section = "sale" if entry.kind == "sell" else "trade"
    owner = f" by <@{listing.owner_id}>" if admin else ""
    return f"✅ Removed **{entry.title}**{owner} from {section} listings!"


def sale_listed_embed(listing: SaleListing) -> discord.Embed:
    embed = discord.Embed(title="✅ Item Listed for Sale!", color=SUCCESS_COLOR)
    embed.add_field(name="Item", value=listing.name, inline=False)
    embed.add_field(name="Price", value=listing.price, inline=True)
    embed.add_field(name="Stock", value=listing.stock, inline=True)
    if listing.display_image:
        embed.set_image(url=listing.display_image)
    return embed


def trade_listed_embed(listing: TradeListing) -> discord.Embed:
    embed = discord.Embed(title="✅ Trade Listing Created!", color=DEFAULT_COLOR)
    embed.add_field(name="Trading", value=listing.item_name, inline=False)
    embed.add_field(name="Looking For", value=listing.want, inline=False)
    if listing.display_image:
        embed.set_image(url=listing.display_image)
    return embed


def sale_announcement_embed(listing: SaleListing, *, avatar_url: str | None) -> discord.Embed:
    embed = discord.Embed(
        title="🆕 New Item for Sale!",
        description=f"**{listing.name}** is now available!",
        color=SUCCESS_COLOR,
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="💰 Price", value=listing.price, inline=True)
    embed.add_field(name="📦 Stock", value=listing.stock, inline=True)
    embed.add_field(name="👤 Seller", value=f"<@{listing.seller_id}>", inline=True)
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    if listing.display_image:
        embed.set_image(url=listing.display_image)
    return embed


def trade_announcement_embed(listing: TradeListing, *, avatar_url: str | None) -> discord.Embed:
    embed = discord.Embed(
        title="🔄 New Trade Offer!",
        description=f"**{listing.item_name}** is available for trade!",
        color=DEFAULT_COLOR,
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="📦 Offering", value=listing.item_name, inline=False)
    embed.add_field(name="💭 Looking For", value=listing.want, inline=False)
    embed.add_field(name="👤 Trader", value=f"<@{listing.user_id}>", inline=False)
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    if listing.display_image:
        embed.set_image(url=listing.display_image)
    return embed


def ticket_embed(listing: SaleListing, buyer_id: int) -> discord.Embed:
    embed = discord.Embed(
        title="🎫 Purchase Ticket Created",
        description=(
            f"**Item:** {listing.name}\n**Price:** {listing.price}\n**Stock:** {listing.stock}"
        ),
        color=SUCCESS_COLOR,
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="👤 Buyer", value=f"<@{buyer_id}>", inline=True)
    embed.add_field(name="🏪 Seller", value=f"<@{listing.seller_id}>", inline=True)
    embed.set_footer(text=REMINDER_FOOTER)
    if listing.display_image:
        embed.set_thumbnail(url=listing.display_image)
    return embed


def trade_offer_embed(listing: TradeListing, offerer_name: str, offer: str) -> discord.Embed:
    embed = discord.Embed(
        title="🤝 Trade Offer Pending",
        description=f"<@{listing.user_id}>, someone wants to trade with you!",
        color=TRADE_COLOR,
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="📦 Your Item", value=listing.item_name, inline=True)
    embed.add_field(name="💭 You Want", value=listing.want, inline=True)
    embed.add_field(name=f"🎁 Offer from {offerer_name}", value=offer, inline=False)
    embed.set_footer(text="Item owner: Accept or decline this offer")
    return embed


def trade_accepted_embed(offerer_id: int) -> discord.Embed:
    embed = discord.Embed(
        title="✅ Trade Accepted!",
        description=(
            f"<@{offerer_id}> has been added to the channel. "
            "Please discuss and complete your trade here."
        ),
        color=SUCCESS_COLOR,
    )
    embed.set_footer(text=REMINDER_FOOTER)
    return embed


def admins_embed(admin_ids: Sequence[str]) -> discord.Embed:
    embed = discord.Embed(
        title="🛡️ Bot Admins",
        description="\n".join(f"• <@{admin_id}>" for admin_id in admin_ids),
        color=DEFAULT_COLOR,
    )
    embed.set_footer(text=f"Total: {len(admin_ids)}")
    return embed
