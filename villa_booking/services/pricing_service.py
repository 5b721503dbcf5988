from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from villa_booking.models.property import Property
from villa_booking.services.availability_service import ensure_available
from villa_booking.services.rate_service import evaluate_rate

WHOLE_UNIT = Decimal("1")


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceQuote:
    property_id: str
    property_name: str
    check_in: date
    check_out: date
    nights: int
    guests: int
    base_price_per_night: Decimal
    subtotal: Decimal
    adjustment: Decimal
    total: Decimal
    applied_rule_id: str | None = None


def price_stay(db: Session, prop: Property, *, check_in: date, check_out: date, guests: int) -> PriceQuote:
    """Build the breakdown for a villa already known to be available."""
    rate = evaluate_rate(db, prop, check_in, check_out)
    total = round_money(rate.total)
    return PriceQuote(
        property_id=prop.id,
        property_name=prop.name,
        check_in=check_in,
        check_out=check_out,
        nights=rate.nights,
        guests=guests,
        base_price_per_night=rate.base_price_per_night,
        subtotal=rate.base_subtotal,
        adjustment=total - rate.base_subtotal,
        total=total,
        applied_rule_id=rate.rule.id if rate.rule is not None else None,
    )


def quote(db: Session, *, property_id: str, check_in: date, check_out: date, guests: int) -> PriceQuote:
    """Quote a stay. Read-only: safe to call on every date change in the UI."""
    prop = ensure_available(db, property_id=property_id, check_in=check_in, check_out=check_out, guests=guests)
    return price_stay(db, prop, check_in=check_in, check_out=check_out, guests=guests)
