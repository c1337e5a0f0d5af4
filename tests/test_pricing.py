import math

import pytest

from src.fleetfare.services.pricing import FarePolicy

from conftest import ASUNCION, point_north_of


def test_zero_distance_costs_the_base_fare():
    priced = FarePolicy().price_route(ASUNCION, ASUNCION)

    assert priced.distance_km == 0.0
    assert priced.fare == 5000
    assert priced.eta_minutes == 0
    assert priced.breakdown.base == 5000
    assert priced.breakdown.per_km == 1500
    assert priced.breakdown.distance_km == 0.0


def test_ten_kilometres():
    priced = FarePolicy().price_distance(10.0)

    assert priced.breakdown.distance_km == 10.00
    assert priced.fare == 20000
    assert priced.eta_minutes == 20


@pytest.mark.parametrize("distance", [0.0, 0.01, 0.4, 1.0, 2.5, 3.0, 7.77, 12.3456, 42.0, 150.0])
def test_fare_and_eta_follow_the_rate_table(distance):
    priced = FarePolicy().price_distance(distance)

    assert priced.fare == round(5000 + 1500 * distance)
    assert priced.eta_minutes == math.ceil(distance / 30 * 60)


@pytest.mark.parametrize("distance", [0.0, 1.25, 3.0, 4.2, 10.0, 33.33])
def test_breakdown_reconstructs_fare(distance):
    priced = FarePolicy().price_distance(distance)
    breakdown = priced.breakdown

    assert round(breakdown.base + breakdown.per_km * breakdown.distance_km) == priced.fare


def test_breakdown_distance_is_rounded_to_two_decimals():
    priced = FarePolicy().price_distance(3.14159)

    assert priced.breakdown.distance_km == 3.14
    assert priced.distance_km == 3.14159


def test_half_units_round_up():
    policy = FarePolicy(base_fare=0, per_km_rate=1)

    assert policy.price_distance(0.5).fare == 1
    assert policy.price_distance(2.5).fare == 3


def test_route_pricing_uses_great_circle_distance():
    priced = FarePolicy().price_route(ASUNCION, point_north_of(ASUNCION, 3.0))

    assert priced.distance_km == pytest.approx(3.0)
    assert priced.fare == 9500


def test_policy_from_settings(monkeypatch):
    from src.fleetfare.services import pricing

    monkeypatch.setattr(pricing.settings, "base_fare", 4000)
    monkeypatch.setattr(pricing.settings, "per_km_rate", 1000)

    policy = FarePolicy.from_settings()

    assert policy.price_distance(2.0).fare == 6000
    assert policy.currency == "PYG"
