from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_db, require_admin
from villa_booking.core.errors import NotFoundError, ValidationError
from villa_booking.models.pricing_rule import RULE_PERCENTAGE, PricingRule
from villa_booking.schemas.pricing_rule import MIN_PERCENTAGE, PricingRuleCreate, PricingRuleOut, PricingRuleUpdate
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.property_service import get_property

router = APIRouter()


def _get_rule(db: Session, villa_id: str, rule_id: str) -> PricingRule:
    r = db.get(PricingRule, rule_id)
    if not r or r.property_id != villa_id:
        raise NotFoundError("Pricing rule not found")
    return r


@router.get("/{villa_id}/pricing-rules", response_model=list[PricingRuleOut])
def list_rules(villa_id: str, db: Session = Depends(get_db), user=Depends(require_admin)):
    get_property(db, villa_id)
    rules = db.execute(
        select(PricingRule).where(PricingRule.property_id == villa_id).order_by(PricingRule.starts_on, PricingRule.created_at.desc())
    ).scalars().all()
    return rules


@router.post("/{villa_id}/pricing-rules", response_model=PricingRuleOut, status_code=201)
def create_rule(villa_id: str, payload: PricingRuleCreate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    get_property(db, villa_id)
    r = PricingRule(property_id=villa_id, **payload.model_dump())
    db.add(r)
    db.commit()
    db.refresh(r)

    write_audit_log(db, actor_user_id=user.id, action_type="PRICING_RULE_CREATE", target_type="pricing_rule", target_id=r.id, summary="Created pricing rule", diff_json={"villa_id": villa_id, "kind": r.kind, "value": str(r.value)}, request=request)
    return r


@router.patch("/{villa_id}/pricing-rules/{rule_id}", response_model=PricingRuleOut)
def update_rule(villa_id: str, rule_id: str, payload: PricingRuleUpdate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    r = _get_rule(db, villa_id, rule_id)
    data = payload.model_dump(exclude_unset=True)

    starts_on = data.get("starts_on", r.starts_on)
    ends_on = data.get("ends_on", r.ends_on)
    if starts_on > ends_on:
        raise ValidationError("starts_on must be on or before ends_on")
    min_nights = data.get("min_nights", r.min_nights)
    max_nights = data.get("max_nights", r.max_nights)
    if min_nights is not None and max_nights is not None and min_nights > max_nights:
        raise ValidationError("min_nights must not exceed max_nights")
    kind = data.get("kind", r.kind)
    value = data.get("value", r.value)
    if kind == RULE_PERCENTAGE and value < MIN_PERCENTAGE:
        raise ValidationError("percentage value must not be below -100")

    for k, v in data.items():
        setattr(r, k, v)
    db.commit()
    db.refresh(r)

    write_audit_log(db, actor_user_id=user.id, action_type="PRICING_RULE_UPDATE", target_type="pricing_rule", target_id=r.id, summary="Updated pricing rule", diff_json={"keys": sorted(data.keys())}, request=request)
    return r


@router.delete("/{villa_id}/pricing-rules/{rule_id}")
def delete_rule(villa_id: str, rule_id: str, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    r = _get_rule(db, villa_id, rule_id)
    db.delete(r)
    db.commit()

    write_audit_log(db, actor_user_id=user.id, action_type="PRICING_RULE_DELETE", target_type="pricing_rule", target_id=rule_id, summary="Deleted pricing rule", request=request)
    return {"ok": True}
