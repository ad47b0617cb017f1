from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from stayquote.errors import InvalidDateRange, InvalidRequest, NotFound
from stayquote.hotels import MealPlan, NightlyPrice, QuoteResult
from stayquote.pricing import QuoteService, compute_total, quote_stay
from stayquote.storage import InMemoryStore

from factories import make_hotel, make_rule

CHECK_IN = date(2025, 2, 10)


def test_reference_scenario_breakdown(hotel):
    quote = compute_total(hotel, None, nights=3, rooms=2, total_guests=5)

    assert quote.average_nightly_price == Decimal("300")
    assert quote.subtotal_base == Decimal("1800")
    assert quote.extra_guests_count == 1
    assert quote.extra_guest_charge == Decimal("150")
    assert quote.extra_meal_charge == Decimal("0")
    assert quote.subtotal == Decimal("1950")
    assert quote.tax == Decimal("292.5")
    assert quote.total == Decimal("2242.5")


def test_quote_stay_matches_reference_scenario(hotel):
    quote = quote_stay(hotel, [], CHECK_IN, CHECK_IN + timedelta(days=3), rooms=2, adults=4, children=1)

    assert quote.nights == 3
    assert quote.total == Decimal("2242.5")
    assert len(quote.nightly_prices) == 3


def test_zero_nights_returns_zeroed_result(hotel):
    assert compute_total(hotel, None, nights=0, rooms=2, total_guests=5) == QuoteResult()


def test_no_extra_guests_within_room_capacity(hotel):
    for guests in range(1, 5):
        quote = compute_total(hotel, None, nights=2, rooms=2, total_guests=guests)
        assert quote.extra_guests_count == 0
        assert quote.extra_guest_charge == Decimal("0")


def test_tax_is_zero_without_tax_percentage():
    hotel = make_hotel(tax_percentage=Decimal("0"))

    quote = compute_total(hotel, None, nights=2, rooms=1, total_guests=3)

    assert quote.tax == Decimal("0")
    assert quote.total == quote.subtotal


def test_tax_is_exact_percentage_of_subtotal():
    hotel = make_hotel(base_price_per_night=Decimal("333.33"), tax_percentage=Decimal("12.5"))

    quote = compute_total(hotel, None, nights=3, rooms=1, total_guests=1)

    assert quote.tax == quote.subtotal * Decimal("12.5") / Decimal("100")
    assert quote.total == quote.subtotal + quote.tax


def test_extra_meal_charge_uses_charged_count(hotel, breakfast_plan):
    quote = compute_total(hotel, breakfast_plan, nights=2, rooms=1, total_guests=3, extra_meals_requested=0)

    assert quote.extra_meals_per_night == 1
    assert quote.required_extra_meals_total == 2
    assert quote.charged_extra_meals == 1
    assert quote.extra_meal_charge == Decimal("50")


def test_requested_extra_meals_above_required_are_charged(hotel, breakfast_plan):
    quote = compute_total(hotel, breakfast_plan, nights=2, rooms=1, total_guests=2, extra_meals_requested=3)

    assert quote.charged_extra_meals == 3
    assert quote.extra_meal_charge == Decimal("150")


def test_free_extra_meals_are_not_charged(hotel):
    plan = MealPlan(name_en="Breakfast", max_persons_included=1, extra_meal_price=Decimal("0"))

    quote = compute_total(hotel, plan, nights=2, rooms=1, total_guests=2, extra_meals_requested=4)

    assert quote.extra_meal_charge == Decimal("0")
    assert quote.charged_extra_meals == 0


def test_plan_without_included_persons_charges_every_guest(hotel):
    plan = MealPlan(name_en="Dinner", max_persons_included=0, extra_meal_price=Decimal("40"))

    quote = compute_total(hotel, plan, nights=1, rooms=1, total_guests=2)

    assert quote.charged_extra_meals == 2
    assert quote.extra_meal_charge == Decimal("80")


def test_subtotal_uses_average_of_nightly_prices(hotel):
    nightly = [
        NightlyPrice(night=CHECK_IN, price=Decimal("100"), rule_id="low"),
        NightlyPrice(night=CHECK_IN + timedelta(days=1), price=Decimal("200"), rule_id="high"),
    ]

    quote = compute_total(hotel, None, nights=2, rooms=1, total_guests=1, nightly_prices=nightly)

    assert quote.average_nightly_price == Decimal("150")
    assert quote.subtotal_base == Decimal("300")


def test_quote_stay_applies_rules_that_compute_total_alone_does_not(hotel):
    rules = [make_rule("winter", CHECK_IN, CHECK_IN + timedelta(days=5), "120")]
    check_out = CHECK_IN + timedelta(days=2)

    base_only = compute_total(hotel, None, nights=2, rooms=1, total_guests=1)
    seasonal = quote_stay(hotel, rules, CHECK_IN, check_out, rooms=1, adults=1)

    assert base_only.average_nightly_price == Decimal("300")
    assert base_only.nightly_prices == ()
    assert seasonal.average_nightly_price == Decimal("120")
    assert [entry.rule_id for entry in seasonal.nightly_prices] == ["winter", "winter"]


def test_total_is_monotonic_in_nights_rooms_and_guests(hotel, breakfast_plan):
    def total(nights: int, rooms: int, guests: int) -> Decimal:
        return compute_total(hotel, breakfast_plan, nights=nights, rooms=rooms, total_guests=guests).total

    for nights in range(1, 5):
        for rooms in range(1, 4):
            for guests in range(1, 9):
                current = total(nights, rooms, guests)
                assert total(nights + 1, rooms, guests) >= current
                assert total(nights, rooms + 1, guests) >= current
                assert total(nights, rooms, guests + 1) >= current


def test_quote_is_idempotent(hotel):
    rules = [make_rule("summer", date(2025, 6, 1), date(2025, 6, 30), "200")]
    args = dict(rooms=2, adults=3, children=1, extra_meals_requested=1)

    first = quote_stay(hotel, rules, date(2025, 5, 29), date(2025, 6, 3), **args)
    second = quote_stay(hotel, rules, date(2025, 5, 29), date(2025, 6, 3), **args)

    assert first == second


def test_all_amounts_are_non_negative(hotel, breakfast_plan):
    quote = compute_total(hotel, breakfast_plan, nights=4, rooms=3, total_guests=9, extra_meals_requested=2)

    for amount in (
        quote.subtotal_base,
        quote.extra_guest_charge,
        quote.extra_meal_charge,
        quote.subtotal,
        quote.tax,
        quote.total,
    ):
        assert amount >= 0


@pytest.mark.asyncio
async def test_quote_service_uses_store_reference_data(hotel, breakfast_plan):
    store = InMemoryStore(
        hotels=[replace(hotel, meal_plan=breakfast_plan)],
        rules=[make_rule("spring", date(2025, 3, 1), date(2025, 3, 31), "200")],
    )
    service = QuoteService(store)

    quote = await service.quote("hotel-1", date(2025, 3, 10), date(2025, 3, 12), rooms=1, adults=3)

    assert quote.average_nightly_price == Decimal("200")
    assert quote.extra_guest_charge == Decimal("100")
    assert quote.extra_meal_charge == Decimal("50")


@pytest.mark.asyncio
async def test_quote_service_rejects_bad_input_before_store_calls():
    service = QuoteService(InMemoryStore())

    with pytest.raises(InvalidDateRange):
        await service.quote("missing", CHECK_IN, CHECK_IN, rooms=1, adults=1)
    with pytest.raises(InvalidRequest):
        await service.quote("missing", CHECK_IN, CHECK_IN + timedelta(days=1), rooms=0, adults=1)


@pytest.mark.asyncio
async def test_quote_service_treats_inactive_hotel_as_missing(hotel):
    store = InMemoryStore(hotels=[replace(hotel, active=False)])

    with pytest.raises(NotFound):
        await QuoteService(store).quote("hotel-1", CHECK_IN, CHECK_IN + timedelta(days=1), rooms=1, adults=1)
