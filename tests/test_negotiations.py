import asyncio
from typing import List, Tuple

import pytest

from shopkeeper.negotiations import (
    CLOSE_GRACE_SECONDS,
    DECLINE_GRACE_SECONDS,
    REMINDER_INTERVAL_SECONDS,
    ChannelIOError,
    ChannelRequest,
    ChannelState,
    NegotiationBoard,
    TimerRegistry,
    is_negotiation_channel,
    negotiation_channel_name,
)

pytestmark = pytest.mark.asyncio


class FakeGateway:
    """Records channel operations instead of talking to Discord."""

    def __init__(self) -> None:
        self.next_id = 1000
        self.created: List[ChannelRequest] = []
        self.granted: List[Tuple[int, int]] = []
        self.reminders: List[Tuple[int, Tuple[int, int]]] = []
        self.deleted: List[int] = []
        self.fail_create = False
        self.fail_grant = False
        self.fail_reminder = False
        self.fail_delete = False

    async def create_channel(self, request: ChannelRequest) -> int:
        if self.fail_create:
            raise ChannelIOError("missing permissions")
        self.created.append(request)
        self.next_id += 1
        return self.next_id

    async def grant_access(self, channel_id: int, user_id: int) -> None:
        if self.fail_grant:
            raise ChannelIOError("member left")
        self.granted.append((channel_id, user_id))

    async def post_reminder(self, channel_id: int, user_ids: Tuple[int, int]) -> None:
        if self.fail_reminder:
            raise ChannelIOError("channel gone")
        self.reminders.append((channel_id, user_ids))

    async def delete_channel(self, channel_id: int) -> None:
        if self.fail_delete:
            raise ChannelIOError("already deleted")
        self.deleted.append(channel_id)


def _request(name: str = "ticket-buyer-1") -> ChannelRequest:
    return ChannelRequest(guild_id=1, name=name, topic="topic", member_ids=(10, 20))


def _board(gateway: FakeGateway, interval: float = 60) -> NegotiationBoard:
    return NegotiationBoard(gateway, reminder_interval=interval, close_grace=0.01, decline_grace=0.01)


async def test_channel_name_is_lowercased_and_sanitised():
    assert negotiation_channel_name("ticket-", "Big Dave!", now=1.5) == "ticket-bigdave-1500"
    assert negotiation_channel_name("trade-", "x" * 200, now=0).startswith("trade-xxx")
    assert len(negotiation_channel_name("trade-", "x" * 200, now=0)) == 100


async def test_is_negotiation_channel():
    assert is_negotiation_channel("ticket-bob-1")
    assert is_negotiation_channel("trade-bob-1")
    assert not is_negotiation_channel("general")
    assert not is_negotiation_channel(None)


async def test_purchase_ticket_is_active_with_reminder():
    gateway = FakeGateway()
    board = _board(gateway)

    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    assert board.state(record.channel_id) is ChannelState.ACTIVE
    assert record.channel_id in board.timers
    await board.shutdown()


async def test_failed_creation_tracks_nothing():
    gateway = FakeGateway()
    gateway.fail_create = True
    board = _board(gateway)

    with pytest.raises(ChannelIOError):
        await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    assert len(board.timers) == 0


async def test_idle_channel_gets_repeated_reminders():
    gateway = FakeGateway()
    board = _board(gateway, interval=0.01)
    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    await asyncio.sleep(0.05)
    await board.shutdown()

    assert len(gateway.reminders) >= 2
    assert gateway.reminders[0] == (record.channel_id, (10, 20))


async def test_activity_twice_in_a_row_fires_once():
    gateway = FakeGateway()
    board = _board(gateway, interval=0.05)
    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    assert board.touch(record.channel_id, "ticket-buyer-1")
    assert board.touch(record.channel_id, "ticket-buyer-1")
    await asyncio.sleep(0.075)
    await board.shutdown()

    assert len(gateway.reminders) == 1


async def test_touch_ignores_other_channels():
    gateway = FakeGateway()
    board = _board(gateway)
    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    assert not board.touch(record.channel_id, "general")
    assert not board.touch(999, "ticket-someone-1")
    await board.shutdown()


async def test_failed_reminder_drops_the_channel():
    gateway = FakeGateway()
    gateway.fail_reminder = True
    board = _board(gateway, interval=0.01)
    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    await asyncio.sleep(0.03)

    assert record.channel_id not in board.timers
    assert board.state(record.channel_id) is ChannelState.NONE


async def test_trade_channel_waits_for_owner():
    gateway = FakeGateway()
    board = _board(gateway)
    record = await board.open_trade(_request("trade-offerer-1"), offerer_id=30, owner_id=20)

    assert record.state is ChannelState.PENDING
    assert record.channel_id not in board.timers
    assert not board.close(record.channel_id)

    accepted = await board.accept_trade(record.channel_id, offerer_id=30, accepted_by=20)

    assert accepted is record
    assert gateway.granted == [(record.channel_id, 30)]
    assert board.state(record.channel_id) is ChannelState.ACTIVE
    assert await board.accept_trade(record.channel_id, offerer_id=30, accepted_by=20) is None
    await board.shutdown()


async def test_failed_grant_keeps_trade_pending():
    gateway = FakeGateway()
    gateway.fail_grant = True
    board = _board(gateway)
    record = await board.open_trade(_request("trade-offerer-1"), offerer_id=30, owner_id=20)

    with pytest.raises(ChannelIOError):
        await board.accept_trade(record.channel_id, offerer_id=30, accepted_by=20)

    assert board.state(record.channel_id) is ChannelState.PENDING


async def test_decline_deletes_after_grace():
    gateway = FakeGateway()
    board = _board(gateway)
    record = await board.open_trade(_request("trade-offerer-1"), offerer_id=30, owner_id=20)

    assert board.decline_trade(record.channel_id)
    assert board.state(record.channel_id) is ChannelState.CLOSING
    assert not board.decline_trade(record.channel_id)
    assert await board.accept_trade(record.channel_id, offerer_id=30, accepted_by=20) is None

    await asyncio.sleep(0.03)

    assert gateway.deleted == [record.channel_id]
    assert record.state is ChannelState.DELETED


async def test_close_stops_reminders_and_rejects_second_close():
    gateway = FakeGateway()
    board = _board(gateway)
    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)

    assert board.close(record.channel_id)
    assert record.channel_id not in board.timers
    assert not board.close(record.channel_id)

    await asyncio.sleep(0.03)

    assert gateway.deleted == [record.channel_id]


async def test_untracked_channel_can_still_be_closed():
    gateway = FakeGateway()
    gateway.fail_delete = True
    board = _board(gateway)

    assert board.close(4242)
    assert not board.close(4242)
    await asyncio.sleep(0.03)

    assert board.state(4242) is ChannelState.NONE


async def test_timer_registry_restart_replaces_task():
    fired = []

    async def notify(timer):
        fired.append(timer.channel_id)

    registry = TimerRegistry(notify, interval=60)
    first = registry.start(1, 10, 20)
    second = registry.start(1, 10, 20)
    await asyncio.sleep(0.01)

    assert first.task.cancelled()
    assert registry.get(1) is second
    assert len(registry) == 1
    registry.cancel_all()
    assert len(registry) == 0
    assert fired == []


class SlowGrantGateway(FakeGateway):
    """Holds ``grant_access`` open until the test releases it."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def grant_access(self, channel_id: int, user_id: int) -> None:
        self.entered.set()
        await self.release.wait()
        await super().grant_access(channel_id, user_id)


async def test_decline_during_grant_keeps_the_offer_declined():
    gateway = SlowGrantGateway()
    board = _board(gateway)
    record = await board.open_trade(_request("trade-offerer-1"), offerer_id=30, owner_id=20)

    accepting = asyncio.create_task(
        board.accept_trade(record.channel_id, offerer_id=30, accepted_by=20)
    )
    await gateway.entered.wait()
    assert board.decline_trade(record.channel_id)
    gateway.release.set()

    assert await accepting is None
    assert record.channel_id not in board.timers
    assert board.state(record.channel_id) is ChannelState.CLOSING

    await asyncio.sleep(0.03)

    assert gateway.deleted == [record.channel_id]
    assert record.channel_id not in board.timers
    assert board.state(record.channel_id) is ChannelState.NONE


async def test_deleting_an_active_channel_releases_its_timer():
    gateway = FakeGateway()
    board = _board(gateway)
    record = await board.open_purchase(_request(), buyer_id=10, seller_id=20)
    other = await board.open_purchase(_request(), buyer_id=11, seller_id=21)

    board._forget(record.channel_id)

    assert record.channel_id not in board.timers
    assert other.channel_id in board.timers
    await board.shutdown()


async def test_default_grace_delays():
    board = NegotiationBoard(FakeGateway())

    assert (CLOSE_GRACE_SECONDS, DECLINE_GRACE_SECONDS) == (5, 10)
    assert board.close_grace == CLOSE_GRACE_SECONDS
    assert board.decline_grace == DECLINE_GRACE_SECONDS
    assert board.timers.interval == REMINDER_INTERVAL_SECONDS == 24 * 60 * 60
