"""Private negotiation channels and their idle reminders.

Purchase tickets connect a buyer with a seller and are live as soon as the
channel exists. Trade channels start pending: only the listing owner sees the
offer until they accept (the offerer is let in) or decline (the channel is
torn down). Live channels get a reminder every ``REMINDER_INTERVAL_SECONDS``
of silence, and closing a channel deletes it after a short grace delay.
"""
from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Set, Tuple

_log = logging.getLogger(__name__)

REMINDER_INTERVAL_SECONDS = 24 * 60 * 60
CLOSE_GRACE_SECONDS = 5
DECLINE_GRACE_SECONDS = 10

TICKET_PREFIX = "ticket-"
TRADE_PREFIX = "trade-"
CHANNEL_NAME_LIMIT = 100


class ChannelIOError(RuntimeError):
    """Raised by a gateway when the chat platform rejects a channel operation."""


class ChannelState(str, Enum):
    NONE = "none"
    CREATED = "created"
    PENDING = "pending"
    ACTIVE = "active"
    CLOSING = "closing"
    DELETED = "deleted"


class NegotiationKind(str, Enum):
    PURCHASE = "purchase"
    TRADE = "trade"


@dataclass
class ChannelRequest:
    """Everything a gateway needs to open a private channel.

    ``greeting`` holds the keyword arguments of the first message and is
    passed through untouched.
    """

    guild_id: int
    name: str
    topic: str
    member_ids: Tuple[int, ...]
    category_id: Optional[str] = None
    include_admin_role: bool = False
    greeting: Dict[str, Any] = field(default_factory=dict)


class ChannelGateway(Protocol):
    async def create_channel(self, request: ChannelRequest) -> int: ...

    async def grant_access(self, channel_id: int, user_id: int) -> None: ...

    async def post_reminder(self, channel_id: int, user_ids: Tuple[int, int]) -> None: ...

    async def delete_channel(self, channel_id: int) -> None: ...


@dataclass
class NegotiationChannel:
    channel_id: int
    kind: NegotiationKind
    initiator_id: int
    owner_id: int
    state: ChannelState = ChannelState.CREATED


def negotiation_channel_name(prefix: str, username: str, *, now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    raw = f"{prefix}{username}-{millis}".lower()
    return re.sub(r"[^a-z0-9-]", "", raw)[:CHANNEL_NAME_LIMIT]


def is_negotiation_channel(name: Optional[str]) -> bool:
    return bool(name) and name.startswith((TICKET_PREFIX, TRADE_PREFIX))


@dataclass
class ReminderTimer:
    channel_id: int
    initiator_id: int
    owner_id: int
    task: Optional[asyncio.Task] = None


class TimerRegistry:
    """One recurring idle reminder per channel.

    A timer sleeps for ``interval`` seconds, calls ``notify`` and sleeps again
    until cancelled. Resetting replaces the running task so the next reminder
    is a full interval after the latest activity. When ``notify`` raises
    ``ChannelIOError`` the timer drops itself and ``on_expired`` is told.
    """

    def __init__(
        self,
        notify: Callable[[ReminderTimer], Awaitable[None]],
        *,
        interval: float = REMINDER_INTERVAL_SECONDS,
        on_expired: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._notify = notify
        self.interval = interval
        self._on_expired = on_expired
        self._timers: Dict[int, ReminderTimer] = {}

    def __contains__(self, channel_id: int) -> bool:
        return channel_id in self._timers

    def __len__(self) -> int:
        return len(self._timers)

    def get(self, channel_id: int) -> Optional[ReminderTimer]:
        return self._timers.get(channel_id)

    def start(self, channel_id: int, initiator_id: int, owner_id: int) -> ReminderTimer:
        self.cancel(channel_id)
        timer = ReminderTimer(channel_id, initiator_id, owner_id)
        timer.task = asyncio.create_task(self._run(timer))
        self._timers[channel_id] = timer
        return timer

    def reset(self, channel_id: int) -> bool:
        timer = self._timers.get(channel_id)
        if timer is None:
            return False
        self.start(channel_id, timer.initiator_id, timer.owner_id)
        return True

    def cancel(self, channel_id: int) -> bool:
        timer = self._timers.pop(channel_id, None)
        if timer is None:
            return False
        if timer.task is not None:
            timer.task.cancel()
        return True

    def cancel_all(self) -> None:
        for channel_id in list(self._timers):
            self.cancel(channel_id)

    async def _run(self, timer: ReminderTimer) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._notify(timer)
            except ChannelIOError as exc:
                _log.warning("Reminder for channel %s failed: %s", timer.channel_id, exc)
                if self._timers.get(timer.channel_id) is timer:
                    del self._timers[timer.channel_id]
                    if self._on_expired is not None:
                        self._on_expired(timer.channel_id)
                return


class NegotiationBoard:
    """Tracks negotiation channels through their lifecycle."""

    def __init__(
        self,
        gateway: ChannelGateway,
        *,
        reminder_interval: float = REMINDER_INTERVAL_SECONDS,
        close_grace: float = CLOSE_GRACE_SECONDS,
        decline_grace: float = DECLINE_GRACE_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.close_grace = close_grace
        self.decline_grace = decline_grace
        self.timers = TimerRegistry(
            self._send_reminder, interval=reminder_interval, on_expired=self._forget
        )
        self._channels: Dict[int, NegotiationChannel] = {}
        self._deletions: Set[asyncio.Task] = set()

    def get(self, channel_id: int) -> Optional[NegotiationChannel]:
        return self._channels.get(channel_id)

    def state(self, channel_id: int) -> ChannelState:
        record = self._channels.get(channel_id)
        return record.state if record else ChannelState.NONE

    async def open_purchase(
        self, request: ChannelRequest, *, buyer_id: int, seller_id: int
    ) -> NegotiationChannel:
        """Create a purchase ticket; it is live straight away.

        ``ChannelIOError`` from the gateway propagates and nothing is tracked.
        """

        channel_id = await self.gateway.create_channel(request)
        record = NegotiationChannel(channel_id, NegotiationKind.PURCHASE, buyer_id, seller_id)
        self._channels[channel_id] = record
        self._activate(record)
        return record

    async def open_trade(
        self, request: ChannelRequest, *, offerer_id: int, owner_id: int
    ) -> NegotiationChannel:
        channel_id = await self.gateway.create_channel(request)
        record = NegotiationChannel(
            channel_id,
            NegotiationKind.TRADE,
            offerer_id,
            owner_id,
            state=ChannelState.PENDING,
        )
        self._channels[channel_id] = record
        return record

    async def accept_trade(
        self, channel_id: int, *, offerer_id: int, accepted_by: int
    ) -> Optional[NegotiationChannel]:
        """Let the offerer into a pending trade channel and start reminders.

        Returns ``None`` when the channel is not pending (already accepted or
        closing), also when it stops being pending while access is being
        granted. Channels unknown to this process, e.g. opened before a
        restart, are treated as pending.
        """

        tracked = self._channels.get(channel_id)
        record = tracked
        if record is None:
            record = NegotiationChannel(
                channel_id, NegotiationKind.TRADE, offerer_id, accepted_by, ChannelState.PENDING
            )
        elif record.state is not ChannelState.PENDING:
            return None

        await self.gateway.grant_access(channel_id, offerer_id)
        # The offer may have been declined or accepted while the grant was in flight.
        if self._channels.get(channel_id) is not tracked or record.state is not ChannelState.PENDING:
            return None
        self._channels[channel_id] = record
        self._activate(record)
        return record

    def decline_trade(self, channel_id: int) -> bool:
        record = self._channels.get(channel_id)
        if record is not None and record.state is not ChannelState.PENDING:
            return False
        self._begin_closing(channel_id, record, self.decline_grace, NegotiationKind.TRADE)
        return True

    def close(
        self, channel_id: int, kind: NegotiationKind = NegotiationKind.PURCHASE
    ) -> bool:
        """Stop reminders and schedule deletion of a live channel.

        Returns ``False`` if the channel is already closing or still pending.
        ``kind`` is only used for channels this process does not track yet.
        """

        record = self._channels.get(channel_id)
        if record is not None and record.state is not ChannelState.ACTIVE:
            return False
        self._begin_closing(channel_id, record, self.close_grace, kind)
        return True

    def touch(self, channel_id: int, channel_name: Optional[str]) -> bool:
        """Restart the idle reminder after activity in a negotiation channel."""

        if not is_negotiation_channel(channel_name):
            return False
        return self.timers.reset(channel_id)

    async def shutdown(self) -> None:
        self.timers.cancel_all()
        for task in list(self._deletions):
            task.cancel()

    def _activate(self, record: NegotiationChannel) -> None:
        record.state = ChannelState.ACTIVE
        self.timers.start(record.channel_id, record.initiator_id, record.owner_id)

    def _begin_closing(
        self,
        channel_id: int,
        record: Optional[NegotiationChannel],
        delay: float,
        kind: NegotiationKind,
    ) -> None:
        self.timers.cancel(channel_id)
        if record is None:
            record = NegotiationChannel(channel_id, kind, 0, 0)
            self._channels[channel_id] = record
        record.state = ChannelState.CLOSING
        task = asyncio.create_task(self._delete_later(channel_id, delay))
        self._deletions.add(task)
        task.add_done_callback(self._deletions.discard)

    async def _delete_later(self, channel_id: int, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.gateway.delete_channel(channel_id)
        except ChannelIOError as exc:
            _log.warning("Error deleting channel %s: %s", channel_id, exc)
        finally:
            self._forget(channel_id)

    async def _send_reminder(self, timer: ReminderTimer) -> None:
        await self.gateway.post_reminder(timer.channel_id, (timer.initiator_id, timer.owner_id))

    def _forget(self, channel_id: int) -> None:
        self.timers.cancel(channel_id)
        record = self._channels.pop(channel_id, None)
        if record is not None:
            record.state = ChannelState.DELETED
