"""Pricing service for booking price calculation.

The list price is whole started hours times the workspace's hourly rate.
The loyalty discount applies to the total, which is then rounded half-up
to a whole rouble (not per hour).
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from coworking.services.loyalty import tier_for

HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class PriceQuote:
    hours: int
    list_price: Decimal
    discount_percent: int
    final_price: Decimal


def booking_hours(start_time: datetime, end_time: datetime) -> int:
    """Whole hours billed for an interval, rounding any part-hour up.

    09:00-11:00 -> 2, 09:00-10:15 -> 2, 09:00-09:30 -> 1
    """
    return math.ceil((end_time - start_time) / HOUR)


def apply_discount(list_price: Decimal, discount_percent: int) -> Decimal:
    """round(list_price * (1 - discount)), half-up to a whole unit."""
    discounted = Decimal(list_price) * (Decimal(100 - discount_percent) / Decimal(100))
    return discounted.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calculate_booking_price(
    price_per_hour: Decimal,
    start_time: datetime,
    end_time: datetime,
    points: int,
) -> PriceQuote:
    """Quote a booking for a user holding ``points`` loyalty points."""
    hours = booking_hours(start_time, end_time)
    list_price = Decimal(price_per_hour) * hours
    discount_percent = tier_for(points).discount_percent
    return PriceQuote(
        hours=hours,
        list_price=list_price,
        discount_percent=discount_percent,
        final_price=apply_discount(list_price, discount_percent),
    )
