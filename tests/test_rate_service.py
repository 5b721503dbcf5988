from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from villa_booking.core.errors import InvalidDateRangeError
from villa_booking.services.rate_service import apply_rule, count_nights, evaluate_rate, select_rule

CHECK_IN = date(2025, 6, 1)
CHECK_OUT = date(2025, 6, 4)


def _rule(rule_id, starts_on, ends_on, *, created_at=None, min_nights=None, max_nights=None, kind="percentage", value=10):
    return SimpleNamespace(
        id=rule_id,
        starts_on=starts_on,
        ends_on=ends_on,
        created_at=created_at or datetime(2025, 1, 1, tzinfo=timezone.utc),
        min_nights=min_nights,
        max_nights=max_nights,
        kind=kind,
        value=Decimal(str(value)),
    )


def test_count_nights():
    assert count_nights(CHECK_IN, CHECK_OUT) == 3


@pytest.mark.parametrize("check_out", [CHECK_IN, CHECK_IN - timedelta(days=1)])
def test_count_nights_rejects_empty_stays(check_out):
    with pytest.raises(InvalidDateRangeError):
        count_nights(CHECK_IN, check_out)


def test_apply_rule_percentage_and_flat():
    subtotal = Decimal("3000000")
    assert apply_rule(subtotal, 3, None) == subtotal
    assert apply_rule(subtotal, 3, _rule("a", CHECK_IN, CHECK_OUT, kind="percentage", value=20)) == Decimal("3600000")
    assert apply_rule(subtotal, 3, _rule("b", CHECK_IN, CHECK_OUT, kind="flat", value=-100000)) == Decimal("2700000")


def test_flat_discount_never_goes_below_zero():
    subtotal = Decimal("3000000")
    assert apply_rule(subtotal, 3, _rule("a", CHECK_IN, CHECK_OUT, kind="flat", value=-1500000)) == Decimal("0")
    assert apply_rule(subtotal, 3, _rule("b", CHECK_IN, CHECK_OUT, kind="percentage", value=-100)) == Decimal("0")


def test_select_rule_prefers_narrowest_window():
    wide = _rule("wide", date(2025, 6, 1), date(2025, 6, 30))
    narrow = _rule("narrow", date(2025, 6, 1), date(2025, 6, 7))
    assert select_rule([wide, narrow], 3) is narrow
    assert select_rule([narrow, wide], 3) is narrow


def test_select_rule_breaks_ties_by_newest_then_lowest_id():
    older = _rule("a", CHECK_IN, CHECK_OUT, created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
    newer = _rule("b", CHECK_IN, CHECK_OUT, created_at=datetime(2025, 2, 1, tzinfo=timezone.utc))
    assert select_rule([older, newer], 3) is newer

    same_time = datetime(2025, 3, 1, tzinfo=timezone.utc)
    first = _rule("1", CHECK_IN, CHECK_OUT, created_at=same_time)
    second = _rule("2", CHECK_IN, CHECK_OUT, created_at=same_time)
    assert select_rule([second, first], 3) is first


def test_select_rule_skips_rules_whose_night_bounds_exclude_the_stay():
    long_stay_only = _rule("long", CHECK_IN, CHECK_OUT, min_nights=5)
    short_stay_only = _rule("short", CHECK_IN, CHECK_OUT, max_nights=2)
    fallback = _rule("fallback", date(2025, 5, 1), date(2025, 7, 31))
    assert select_rule([long_stay_only, short_stay_only, fallback], 3) is fallback
    assert select_rule([long_stay_only, short_stay_only], 3) is None


def test_evaluate_rate_without_rules(db, villa):
    rate = evaluate_rate(db, villa, CHECK_IN, CHECK_OUT)
    assert rate.nights == 3
    assert rate.base_subtotal == Decimal("3000000")
    assert rate.total == Decimal("3000000")
    assert rate.adjustment == 0
    assert rate.rule is None


def test_evaluate_rate_with_percentage_surcharge(db, villa, add_rule):
    rule = add_rule(villa, starts_on=date(2025, 5, 25), ends_on=date(2025, 6, 10), kind="percentage", value=20)
    rate = evaluate_rate(db, villa, CHECK_IN, CHECK_OUT)
    assert rate.total == Decimal("3600000")
    assert rate.adjustment == Decimal("600000")
    assert rate.rule.id == rule.id


def test_evaluate_rate_with_flat_discount(db, villa, add_rule):
    add_rule(villa, starts_on=date(2025, 6, 1), ends_on=date(2025, 6, 30), kind="flat", value=-100000)
    rate = evaluate_rate(db, villa, CHECK_IN, CHECK_OUT)
    assert rate.total == Decimal("2700000")


def test_evaluate_rate_ignores_rules_of_other_villas_and_other_dates(db, villa, make_villa, add_rule):
    other = make_villa()
    add_rule(other, starts_on=date(2025, 6, 1), ends_on=date(2025, 6, 30), kind="percentage", value=50)
    add_rule(villa, starts_on=date(2025, 7, 1), ends_on=date(2025, 7, 31), kind="percentage", value=50)
    assert evaluate_rate(db, villa, CHECK_IN, CHECK_OUT).total == Decimal("3000000")


def test_rule_starting_on_check_out_day_still_matches(db, villa, add_rule):
    add_rule(villa, starts_on=CHECK_OUT, ends_on=date(2025, 6, 10), kind="percentage", value=10)
    assert evaluate_rate(db, villa, CHECK_IN, CHECK_OUT).total == Decimal("3300000")
