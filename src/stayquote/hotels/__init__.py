"""Hotel domain models and meal-plan normalisation helpers."""

from .meal_plans import ExtraMeals, compute_extra_meals, normalize
from .models import (
    Booking,
    BookingRequest,
    BookingStatus,
    CommittedStay,
    Hotel,
    MealPlan,
    NightlyPrice,
    PaymentStatus,
    QuoteResult,
    SeasonalPriceRule,
)

__all__ = [
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "CommittedStay",
    "ExtraMeals",
    "Hotel",
    "MealPlan",
    "NightlyPrice",
    "PaymentStatus",
    "QuoteResult",
    "SeasonalPriceRule",
    "compute_extra_meals",
    "normalize",
]
