from src.fleetfare.schemas.events import FareConfirmed, FareReset, QuoteShown
from src.fleetfare.services.broadcast import BroadcastHub
from src.fleetfare.services.display import (
    DisplayIdle,
    PassengerDisplay,
    ShowingConfirmed,
    ShowingQuote,
    reduce,
)

QUOTE = QuoteShown(fare=9500, currency="PYG", destination_name="Centro")
CONFIRMED = FareConfirmed(fare=9500, currency="PYG", ticket_id="tkt_1", destination_name="Centro")


def test_quote_then_confirmation_then_reset():
    display = PassengerDisplay()

    assert display.apply(QUOTE) == ShowingQuote(fare=9500, currency="PYG", destination_name="Centro")
    assert display.apply(CONFIRMED) == ShowingConfirmed(
        fare=9500, currency="PYG", destination_name="Centro", ticket_id="tkt_1"
    )
    assert display.apply(FareReset()) == DisplayIdle()


def test_reset_is_unconditional():
    for state in (DisplayIdle(), ShowingQuote(1, "PYG", "A"), ShowingConfirmed(1, "PYG", "A", "tkt")):
        assert reduce(state, FareReset()) == DisplayIdle()


def test_confirmation_without_prior_quote():
    assert isinstance(reduce(DisplayIdle(), CONFIRMED), ShowingConfirmed)


def test_view_formats_the_fare():
    display = PassengerDisplay()
    display.apply(QUOTE)

    view = display.view()

    assert view["status"] == "quote"
    assert view["fare_display"] == "₲ 9.500"
    assert view["destination_name"] == "Centro"
    assert PassengerDisplay().view() == {"status": "idle"}


def test_attached_display_follows_the_channel():
    hub = BroadcastHub()
    driver = hub.open("fare-updates")
    changes = []
    display = PassengerDisplay(on_change=changes.append)
    display.attach(hub.open("fare-updates"))

    driver.publish(QUOTE)
    driver.publish(CONFIRMED)
    driver.publish(FareReset())

    assert [state.status for state in changes] == ["quote", "confirmed", "idle"]

    display.detach()
    driver.publish(QUOTE)
    assert display.state == DisplayIdle()
