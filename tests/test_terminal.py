import asyncio

import httpx
import pytest

from src.fleetfare.errors import InvalidTransition, StoreUnavailable, TerminalBusy
from src.fleetfare.services.broadcast import BroadcastChannel, BroadcastHub
from src.fleetfare.services.location import DeviceFix, LocationResolver
from src.fleetfare.services.terminal import DriverTerminal, TerminalState

from conftest import ASUNCION


@pytest.fixture
def hub() -> BroadcastHub:
    return BroadcastHub()


@pytest.fixture
def events(hub):
    received = []
    display = hub.open("fare-updates")
    display.subscribe(received.append)
    return received


def _terminal(stores, hub, *, default=ASUNCION, reset_delay=60.0, channel=None) -> DriverTerminal:
    return DriverTerminal(
        "BUS_001",
        quotes=stores.quotes,
        tickets=stores.tickets,
        destinations=stores.destinations,
        locator=LocationResolver(stores.locations, default=default),
        channel=channel or hub.open("fare-updates"),
        driver_id="DRV_1",
        reset_delay=reset_delay,
    )


def test_select_destination_publishes_quote(stores, hub, events):
    terminal = _terminal(stores, hub)

    state = asyncio.run(terminal.select_destination("dest-centro"))

    assert state is TerminalState.QUOTE_READY
    assert terminal.quote.fare == 9500
    assert terminal.location_source == "default"
    assert [e.type for e in events] == ["quote_shown"]
    assert events[0].destination_name == "Centro"
    assert events[0].fare == 9500


def test_full_flow_confirms_and_auto_resets(stores, hub, events, fake_db):
    terminal = _terminal(stores, hub, reset_delay=0.01)

    async def scenario():
        await terminal.select_destination("dest-centro")
        await terminal.confirm()
        assert terminal.state is TerminalState.CONFIRMED
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert terminal.state is TerminalState.IDLE
    assert terminal.quote is None
    assert [e.type for e in events] == ["quote_shown", "confirmed", "reset"]
    ticket_row = fake_db.rows("tickets")[0]
    assert events[1].ticket_id == ticket_row["id"]
    assert ticket_row["fare"] == 9500
    assert ticket_row["bus_id"] == "BUS_001"
    assert ticket_row["driver_id"] == "DRV_1"


def test_missing_location_keeps_terminal_idle(stores, hub, events, fake_db):
    terminal = _terminal(stores, hub, default=None)

    state = asyncio.run(terminal.select_destination("dest-centro"))

    assert state is TerminalState.IDLE
    assert terminal.message.code == "location_unavailable"
    assert terminal.message.persistent
    assert events == []
    assert fake_db.rows("fare_quotes") == []

    terminal.dismiss_message()
    assert terminal.message is not None


def test_device_fix_clears_location_notice(stores, hub):
    terminal = _terminal(stores, hub, default=None)
    asyncio.run(terminal.select_destination("dest-centro"))

    asyncio.run(terminal.select_destination("dest-centro", DeviceFix(ASUNCION)))

    assert terminal.state is TerminalState.QUOTE_READY
    assert terminal.message is None
    assert terminal.location_source == "device"


def test_unknown_destination_is_reported(stores, hub, events):
    terminal = _terminal(stores, hub)

    asyncio.run(terminal.select_destination("nowhere"))

    assert terminal.state is TerminalState.IDLE
    assert terminal.message.code == "not_found"
    assert events == []


def test_quote_failure_keeps_destination_for_retry(stores, hub, events, monkeypatch):
    terminal = _terminal(stores, hub)
    original = stores.quotes.create_quote

    def unavailable(*args, **kwargs):
        raise StoreUnavailable("fare_quotes unreachable")

    monkeypatch.setattr(stores.quotes, "create_quote", unavailable)
    asyncio.run(terminal.select_destination("dest-mburicao"))

    assert terminal.state is TerminalState.DESTINATION_SELECTED
    assert terminal.destination.id == "dest-mburicao"
    assert terminal.message.code == "store_unavailable"
    assert events == []

    monkeypatch.setattr(stores.quotes, "create_quote", original)
    asyncio.run(terminal.retry_quote())

    assert terminal.state is TerminalState.QUOTE_READY
    assert terminal.message is None
    assert [e.type for e in events] == ["quote_shown"]


def test_confirm_failure_reverts_to_quote_ready(stores, hub, events, fake_db):
    terminal = _terminal(stores, hub)
    asyncio.run(terminal.select_destination("dest-centro"))
    quote = terminal.quote

    fake_db.failure = httpx.ConnectError("down")
    asyncio.run(terminal.confirm())

    assert terminal.state is TerminalState.QUOTE_READY
    assert terminal.quote == quote
    assert terminal.message.code == "store_unavailable"

    fake_db.failure = None

    async def confirm_and_close():
        await terminal.confirm()
        terminal.close()

    asyncio.run(confirm_and_close())

    assert terminal.state is TerminalState.CONFIRMED
    assert terminal.ticket.quote_id == quote.id
    assert [e.type for e in events] == ["quote_shown", "confirmed"]


def test_cancel_returns_to_idle_and_leaves_quote_row(stores, hub, events, fake_db):
    terminal = _terminal(stores, hub)
    asyncio.run(terminal.select_destination("dest-centro"))

    state = terminal.cancel()

    assert state is TerminalState.IDLE
    assert terminal.quote is None
    assert [e.type for e in events] == ["quote_shown", "reset"]
    assert len(fake_db.rows("fare_quotes")) == 1
    assert fake_db.rows("tickets") == []


def test_reselecting_replaces_the_quote(stores, hub, events):
    terminal = _terminal(stores, hub)

    async def scenario():
        await terminal.select_destination("dest-centro")
        first = terminal.quote
        await terminal.select_destination("dest-mburicao")
        return first

    first = asyncio.run(scenario())

    assert terminal.state is TerminalState.QUOTE_READY
    assert terminal.quote.id != first.id
    assert [e.type for e in events] == ["quote_shown", "quote_shown"]
    assert events[1].destination_name == "Mburicao"


def test_selecting_after_confirmation_cancels_auto_reset(stores, hub, events):
    terminal = _terminal(stores, hub, reset_delay=0.05)

    async def scenario():
        await terminal.select_destination("dest-centro")
        await terminal.confirm()
        await terminal.select_destination("dest-mburicao")
        await asyncio.sleep(0.15)

    asyncio.run(scenario())

    assert terminal.state is TerminalState.QUOTE_READY
    assert [e.type for e in events] == ["quote_shown", "confirmed", "quote_shown"]


def test_manual_reset_after_confirmation(stores, hub, events):
    terminal = _terminal(stores, hub)

    async def scenario():
        await terminal.select_destination("dest-centro")
        await terminal.confirm()
        terminal.reset()

    asyncio.run(scenario())

    assert terminal.state is TerminalState.IDLE
    assert [e.type for e in events] == ["quote_shown", "confirmed", "reset"]


def test_actions_are_guarded_by_state(stores, hub):
    terminal = _terminal(stores, hub)

    with pytest.raises(InvalidTransition):
        asyncio.run(terminal.confirm())
    with pytest.raises(InvalidTransition):
        terminal.cancel()
    with pytest.raises(InvalidTransition):
        terminal.reset()
    with pytest.raises(InvalidTransition):
        asyncio.run(terminal.retry_quote())

    assert terminal.state is TerminalState.IDLE


def test_second_action_while_busy_is_refused(stores, hub, monkeypatch):
    terminal = _terminal(stores, hub)
    asyncio.run(terminal.select_destination("dest-centro"))

    async def scenario():
        release = asyncio.Event()
        original = terminal.tickets.confirm_quote

        def slow_confirm(*args, **kwargs):
            # runs in a worker thread
            asyncio.run_coroutine_threadsafe(release.wait(), loop).result()
            return original(*args, **kwargs)

        loop = asyncio.get_running_loop()
        monkeypatch.setattr(terminal.tickets, "confirm_quote", slow_confirm)
        pending = asyncio.create_task(terminal.confirm())
        await asyncio.sleep(0.01)
        assert terminal.state is TerminalState.CONFIRMING
        with pytest.raises(TerminalBusy):
            await terminal.select_destination("dest-mburicao")
        with pytest.raises(TerminalBusy):
            terminal.cancel()
        release.set()
        await pending
        terminal.close()

    asyncio.run(scenario())

    assert terminal.state is TerminalState.CONFIRMED


def test_terminal_works_without_broadcast(stores, hub):
    terminal = _terminal(stores, hub, channel=BroadcastChannel("fare-updates", hub=None))

    asyncio.run(terminal.select_destination("dest-centro"))

    assert terminal.state is TerminalState.QUOTE_READY


def test_malformed_location_row_falls_back_to_default(stores, hub, fake_db):
    fake_db.tables["bus_locations"] = [
        {"bus_id": "BUS_001", "latitude": None, "longitude": None, "timestamp": "2026-10-19T10:00:00+00:00"}
    ]
    terminal = _terminal(stores, hub)

    asyncio.run(terminal.select_destination("dest-centro"))

    assert terminal.state is TerminalState.QUOTE_READY
    assert terminal.location_source == "default"


def test_failed_reselection_clears_the_passenger_display(stores, hub, events, monkeypatch):
    terminal = _terminal(stores, hub)
    asyncio.run(terminal.select_destination("dest-centro"))

    def unavailable(*args, **kwargs):
        raise StoreUnavailable("fare_quotes unreachable")

    monkeypatch.setattr(stores.quotes, "create_quote", unavailable)
    asyncio.run(terminal.select_destination("dest-mburicao"))

    assert terminal.state is TerminalState.DESTINATION_SELECTED
    assert terminal.quote is None
    assert [e.type for e in events] == ["quote_shown", "reset"]


def test_confirm_without_a_quote_is_refused(stores, hub):
    terminal = _terminal(stores, hub)
    terminal.state = TerminalState.QUOTE_READY

    with pytest.raises(InvalidTransition):
        asyncio.run(terminal.confirm())

    assert terminal.state is TerminalState.QUOTE_READY
    assert not terminal.busy
