from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from stayquote.errors import DataIntegrityViolation, InvalidDateRange
from stayquote.pricing import (
    average_nightly_price,
    find_overlapping_rules,
    iter_nights,
    resolve_nightly_prices,
    validate_range,
)

from factories import make_rule


def test_iter_nights_excludes_check_out():
    nights = list(iter_nights(date(2025, 3, 30), date(2025, 4, 2)))

    assert nights == [date(2025, 3, 30), date(2025, 3, 31), date(2025, 4, 1)]


def test_average_is_base_price_without_rules(hotel):
    average = average_nightly_price(hotel, [], date(2025, 1, 10), date(2025, 1, 14))

    assert average == hotel.base_price_per_night


def test_rules_for_other_hotels_are_ignored(hotel):
    foreign = make_rule("other", date(2025, 1, 1), date(2025, 1, 31), "999", hotel_id="hotel-2")

    average = average_nightly_price(hotel, [foreign], date(2025, 1, 10), date(2025, 1, 12))

    assert average == hotel.base_price_per_night


def test_stay_inside_one_rule_uses_rule_price(hotel):
    summer = make_rule("summer", date(2025, 6, 1), date(2025, 8, 31), "200")

    prices = resolve_nightly_prices(hotel, [summer], date(2025, 7, 1), date(2025, 7, 4))

    assert [entry.price for entry in prices] == [Decimal("200")] * 3
    assert {entry.rule_id for entry in prices} == {"summer"}
    assert average_nightly_price(hotel, [summer], date(2025, 7, 1), date(2025, 7, 4)) == Decimal("200")


def test_stay_straddling_two_seasons_averages_nightly_prices(hotel):
    low = make_rule("low", date(2025, 3, 1), date(2025, 3, 2), "100")
    high = make_rule("high", date(2025, 3, 3), date(2025, 3, 10), "200")

    average = average_nightly_price(hotel, [low, high], date(2025, 3, 1), date(2025, 3, 5))

    assert average == Decimal("150")


def test_rule_end_date_is_inclusive(hotel):
    rule = make_rule("edge", date(2025, 5, 1), date(2025, 5, 2), "120")

    prices = resolve_nightly_prices(hotel, [rule], date(2025, 5, 2), date(2025, 5, 4))

    assert [entry.price for entry in prices] == [Decimal("120"), hotel.base_price_per_night]


def test_unavailable_rules_fall_back_to_base_price(hotel):
    closed = make_rule("closed", date(2025, 1, 1), date(2025, 1, 31), "50", is_available=False)

    prices = resolve_nightly_prices(hotel, [closed], date(2025, 1, 5), date(2025, 1, 7))

    assert all(entry.price == hotel.base_price_per_night for entry in prices)
    assert all(entry.rule_id is None for entry in prices)


def test_overlapping_active_rules_raise(hotel):
    first = make_rule("a", date(2025, 6, 1), date(2025, 6, 15), "200")
    second = make_rule("b", date(2025, 6, 10), date(2025, 6, 30), "250")

    with pytest.raises(DataIntegrityViolation) as excinfo:
        resolve_nightly_prices(hotel, [first, second], date(2025, 6, 9), date(2025, 6, 12))

    assert excinfo.value.rule_ids == ("a", "b")


def test_overlap_outside_stay_does_not_block_quote(hotel):
    first = make_rule("a", date(2025, 6, 1), date(2025, 6, 15), "200")
    second = make_rule("b", date(2025, 6, 10), date(2025, 6, 30), "250")

    prices = resolve_nightly_prices(hotel, [first, second], date(2025, 6, 1), date(2025, 6, 3))

    assert [entry.price for entry in prices] == [Decimal("200"), Decimal("200")]


def test_find_overlapping_rules_ignores_inactive_and_touching_ranges():
    rules = [
        make_rule("a", date(2025, 1, 1), date(2025, 1, 10), "100"),
        make_rule("b", date(2025, 1, 11), date(2025, 1, 20), "100"),
        make_rule("c", date(2025, 1, 5), date(2025, 1, 15), "100", is_available=False),
        make_rule("d", date(2025, 1, 20), date(2025, 1, 25), "100"),
    ]

    pairs = find_overlapping_rules(rules)

    assert [(left.id, right.id) for left, right in pairs] == [("b", "d")]


def test_empty_range_is_rejected(hotel):
    with pytest.raises(InvalidDateRange):
        resolve_nightly_prices(hotel, [], date(2025, 1, 5), date(2025, 1, 5))


@pytest.mark.parametrize(
    "check_in,check_out",
    [
        (date(2025, 1, 1), datetime(2025, 1, 3, 12)),
        (datetime(2025, 1, 1, 9), date(2025, 1, 3)),
        (datetime(2025, 5, 10, 9), datetime(2025, 5, 10, 18)),
        (datetime(2025, 5, 10), datetime(2025, 5, 12)),
        ("2025-05-10", date(2025, 5, 12)),
    ],
)
def test_only_calendar_dates_are_accepted(check_in, check_out):
    with pytest.raises(InvalidDateRange):
        validate_range(check_in, check_out)


def test_validate_range_counts_nights():
    assert validate_range(date(2025, 12, 30), date(2026, 1, 2)) == 3
