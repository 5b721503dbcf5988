from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from villa_booking.core.errors import InvalidDateRangeError
from villa_booking.models.pricing_rule import RULE_FLAT, RULE_PERCENTAGE, PricingRule
from villa_booking.models.property import Property

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class RateEvaluation:
    nights: int
    base_price_per_night: Decimal
    base_subtotal: Decimal
    adjustment: Decimal
    total: Decimal
    rule: PricingRule | None = None


def count_nights(check_in: date, check_out: date) -> int:
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidDateRangeError()
    return nights


def _rule_allows_stay(rule: PricingRule, nights: int) -> bool:
    if rule.min_nights is not None and nights < rule.min_nights:
        return False
    if rule.max_nights is not None and nights > rule.max_nights:
        return False
    return True


def select_rule(rules: Iterable[PricingRule], nights: int) -> PricingRule | None:
    """Pick the one rule that prices a stay.

    The narrowest validity window wins; ties go to the newest rule, then to
    the lowest id, so the outcome does not depend on lookup order.
    """
    candidates = [r for r in rules if _rule_allows_stay(r, nights)]
    if not candidates:
        return None

    candidates.sort(key=lambda r: r.id)
    # SQLite hands back naive UTC timestamps
    candidates.sort(key=lambda r: r.created_at.replace(tzinfo=None), reverse=True)
    candidates.sort(key=lambda r: (r.ends_on - r.starts_on).days)
    return candidates[0]


def apply_rule(subtotal: Decimal, nights: int, rule: PricingRule | None) -> Decimal:
    if rule is None:
        return subtotal
    value = to_decimal(rule.value)
    if rule.kind == RULE_PERCENTAGE:
        return subtotal * (1 + value / HUNDRED)
    if rule.kind == RULE_FLAT:
        # a discount never takes the stay below zero
        return max(subtotal + value * nights, ZERO)
    raise ValueError(f"Unknown pricing rule kind: {rule.kind}")


def find_matching_rules(db: Session, property_id: str, check_in: date, check_out: date) -> list[PricingRule]:
    q = (
        select(PricingRule)
        .where(PricingRule.property_id == property_id)
        .where(PricingRule.starts_on <= check_out)
        .where(PricingRule.ends_on >= check_in)
    )
    return list(db.execute(q).scalars().all())


def evaluate_rate(db: Session, prop: Property, check_in: date, check_out: date) -> RateEvaluation:
    """Price a stay from the villa's base rate and its applicable pricing rule.

    No rounding happens here; callers round once when they present or
    persist the total.
    """
    nights = count_nights(check_in, check_out)
    base = to_decimal(prop.base_price)
    subtotal = base * nights

    rule = select_rule(find_matching_rules(db, prop.id, check_in, check_out), nights)
    total = apply_rule(subtotal, nights, rule)

    return RateEvaluation(
        nights=nights,
        base_price_per_night=base,
        base_subtotal=subtotal,
        adjustment=total - subtotal,
        total=total,
        rule=rule,
    )
