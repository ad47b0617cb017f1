from __future__ import annotations

from decimal import Decimal

import pytest

from stayquote.hotels import Hotel, MealPlan

from factories import make_hotel


@pytest.fixture
def hotel() -> Hotel:
    return make_hotel()


@pytest.fixture
def breakfast_plan() -> MealPlan:
    return MealPlan(
        name_ar="إفطار",
        name_en="Breakfast",
        max_persons_included=2,
        base_price=Decimal("0"),
        extra_meal_price=Decimal("25"),
    )
