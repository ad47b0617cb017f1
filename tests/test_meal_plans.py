from __future__ import annotations

import logging
from decimal import Decimal

from stayquote.hotels import MealPlan, compute_extra_meals, normalize


def test_normalize_accepts_canonical_mapping():
    plan = normalize(
        {
            "name_ar": "نصف إقامة",
            "name_en": "Half board",
            "max_persons_included": 2,
            "base_price": "40",
            "extra_meal_price": "35.5",
        }
    )

    assert plan == MealPlan(
        name_ar="نصف إقامة",
        name_en="Half board",
        max_persons_included=2,
        base_price=Decimal("40"),
        extra_meal_price=Decimal("35.5"),
    )


def test_normalize_reads_legacy_keys_inside_single_element_array():
    plan = normalize([{"regular_ar": "إفطار", "max_persons": "3", "price": 10, "extra_price": "20"}])

    assert plan is not None
    assert plan.name_ar == "إفطار"
    assert plan.name_en == ""
    assert plan.max_persons_included == 3
    assert plan.base_price == Decimal("10")
    assert plan.extra_meal_price == Decimal("20")


def test_normalize_prefers_canonical_key_over_legacy():
    plan = normalize({"extra_meal_price": "30", "extra_price": "99"})

    assert plan is not None
    assert plan.extra_meal_price == Decimal("30")


def test_normalize_defaults_unparsable_and_negative_numbers_to_zero():
    plan = normalize({"max_persons_included": "two", "base_price": "-5", "extra_meal_price": "n/a"})

    assert plan is not None
    assert plan.max_persons_included == 0
    assert plan.base_price == Decimal("0")
    assert plan.extra_meal_price == Decimal("0")


def test_normalize_returns_none_for_missing_payloads():
    assert normalize(None) is None
    assert normalize([]) is None
    assert normalize("breakfast") is None


def test_normalize_uses_first_entry_of_longer_array(caplog):
    with caplog.at_level(logging.WARNING):
        plan = normalize([{"name_en": "First"}, {"name_en": "Second"}])

    assert plan is not None
    assert plan.name_en == "First"
    assert "using the first" in caplog.text


def test_normalize_passes_through_meal_plan_instances(breakfast_plan):
    assert normalize(breakfast_plan) is breakfast_plan


def test_compute_extra_meals_counts_guests_beyond_plan(breakfast_plan):
    extra = compute_extra_meals(breakfast_plan, rooms=2, total_guests=6, nights=3, requested_extra=0)

    assert extra.required_per_night == 2
    assert extra.required_total == 6
    assert extra.charged_count == 2


def test_requested_extra_meals_cannot_undercut_required(breakfast_plan):
    extra = compute_extra_meals(breakfast_plan, rooms=1, total_guests=4, nights=2, requested_extra=1)
    assert extra.charged_count == 2

    generous = compute_extra_meals(breakfast_plan, rooms=1, total_guests=4, nights=2, requested_extra=5)
    assert generous.charged_count == 5


def test_compute_extra_meals_under_capacity_requires_none(breakfast_plan):
    extra = compute_extra_meals(breakfast_plan, rooms=2, total_guests=3, nights=4, requested_extra=0)

    assert extra.required_per_night == 0
    assert extra.required_total == 0
    assert extra.charged_count == 0
