from datetime import datetime, timedelta, timezone

import pytest

from conftest import add_product, order_payload
from coupons import (
    apply_coupon,
    compute_discount,
    create_coupon,
    evaluate,
    has_active_coupons,
    normalize_code,
    toggle_coupon,
    update_coupon,
    validate_coupon,
)
from errors import BelowMinimum, Conflict, Expired, LimitReached, NotFound, ValidationFailed
from orders import create_order
from schemas import Coupon, CouponUpdate, OrderCreate

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def coupon(**fields):
    doc = {
        "code": "SAVE20",
        "discount_type": "percentage",
        "discount_value": 20,
        "min_purchase": 0,
        "max_discount": 0,
        "usage_limit": 0,
        "used_count": 0,
        "expiry_date": None,
        "is_active": True,
    }
    doc.update(fields)
    return doc


# ---------- pure evaluation ----------

def test_percentage_discount_capped_at_max():
    result = evaluate(coupon(discount_value=20, max_discount=500), 10000, NOW)
    assert result["discount"] == 500


def test_percentage_discount_without_cap():
    assert compute_discount(coupon(discount_value=20), 10000) == 2000


@pytest.mark.parametrize("total", [1000, 2500, 99999])
def test_fixed_discount_is_verbatim(total):
    result = evaluate(coupon(discount_type="fixed", discount_value=300, min_purchase=1000), total, NOW)
    assert result["discount"] == 300


def test_fixed_discount_not_compared_with_total():
    assert compute_discount(coupon(discount_type="fixed", discount_value=300), 100) == 300


def test_usage_limit_reached():
    with pytest.raises(LimitReached):
        evaluate(coupon(usage_limit=5, used_count=5, discount_type="fixed", discount_value=10), 50000, NOW)


def test_expired_wins_over_passing_checks():
    with pytest.raises(Expired):
        evaluate(coupon(expiry_date=NOW - timedelta(days=1)), 10000, NOW)


def test_expired_checked_before_limit():
    with pytest.raises(Expired):
        evaluate(coupon(expiry_date=NOW - timedelta(seconds=1), usage_limit=1, used_count=1), 10000, NOW)


def test_naive_stored_expiry_treated_as_utc():
    future = (NOW + timedelta(hours=1)).replace(tzinfo=None)
    assert evaluate(coupon(expiry_date=future), 100, NOW)["discount"] == 20


def test_below_minimum_surfaces_amount():
    with pytest.raises(BelowMinimum) as excinfo:
        evaluate(coupon(min_purchase=3000), 2999, NOW)
    assert excinfo.value.min_purchase == 3000
    assert excinfo.value.data == {"min_purchase": 3000}
    assert excinfo.value.message == "Minimum purchase of Rs 3,000 required"


@pytest.mark.parametrize("minimum,shown", [
    (12345.67, "Rs 12,345.67"),
    (1500000, "Rs 1,500,000"),
])
def test_below_minimum_message_shows_exact_amount(minimum, shown):
    with pytest.raises(BelowMinimum) as excinfo:
        evaluate(coupon(min_purchase=minimum), 1, NOW)
    assert excinfo.value.message == f"Minimum purchase of {shown} required"


def test_result_carries_coupon_terms():
    assert evaluate(coupon(), 1000, NOW) == {
        "code": "SAVE20",
        "discount": 200,
        "discount_type": "percentage",
        "discount_value": 20,
    }


@pytest.mark.parametrize("raw,expected", [
    ("save20", "SAVE20"),
    (" summer%2010 ", "SUMMER 10"),
    ("50%25OFF", "50%OFF"),
    ("bad%FFcode", "BAD%FFCODE"),
])
def test_normalize_code(raw, expected):
    assert normalize_code(raw) == expected


# ---------- stored coupons ----------

@pytest.fixture
def stored(db):
    return create_coupon(db, Coupon(code="welcome10", discount_type="percentage", discount_value=10,
                                    usage_limit=2))


def test_create_uppercases_and_rejects_duplicates(db, stored):
    assert stored["code"] == "WELCOME10"
    with pytest.raises(Conflict):
        create_coupon(db, Coupon(code="Welcome10", discount_type="fixed", discount_value=5))


def test_validate_is_case_insensitive_and_read_only(db, stored):
    result = validate_coupon(db, "welcome10", 5000)
    assert result["discount"] == 500
    assert db["coupon"].find_one({"code": "WELCOME10"})["used_count"] == 0


def test_validate_unknown_or_inactive_code(db, stored):
    with pytest.raises(NotFound, match="Invalid coupon code"):
        validate_coupon(db, "NOPE", 100)
    toggle_coupon(db, stored["_id"])
    with pytest.raises(NotFound):
        validate_coupon(db, "WELCOME10", 100)


def test_validate_requires_code(db):
    with pytest.raises(ValidationFailed):
        validate_coupon(db, "  ", 100)


def test_apply_increments_until_limit(db, stored):
    assert apply_coupon(db, "welcome10")["used_count"] == 1
    assert apply_coupon(db, "WELCOME10")["used_count"] == 2
    with pytest.raises(LimitReached):
        apply_coupon(db, "welcome10")
    assert db["coupon"].find_one({"code": "WELCOME10"})["used_count"] == 2


def test_apply_unknown_coupon(db):
    with pytest.raises(NotFound):
        apply_coupon(db, "MISSING")


def test_apply_once_per_order(db, stored, mailer, settings):
    add_product(db, "classic-cap", stock=5)
    order = create_order(db, OrderCreate(**order_payload([("classic-cap", 1, 900.0)])), mailer, settings)

    apply_coupon(db, "WELCOME10", order["order_number"])
    again = apply_coupon(db, "WELCOME10", order["order_number"])

    assert again["used_count"] == 1
    assert db["coupon_redemption"].count_documents({"coupon_id": stored["_id"]}) == 1


def test_renamed_coupon_still_applies_once_per_order(db, stored, mailer, settings):
    add_product(db, "classic-cap", stock=5)
    order = create_order(db, OrderCreate(**order_payload([("classic-cap", 1, 900.0)])), mailer, settings)

    apply_coupon(db, "WELCOME10", order["order_number"])
    update_coupon(db, stored["_id"], CouponUpdate(code="WELCOME15"))
    again = apply_coupon(db, "WELCOME15", order["order_number"])

    assert again["used_count"] == 1
    assert db["coupon"].find_one({"_id": stored["_id"]})["used_count"] == 1


def test_apply_with_unknown_order(db, stored):
    with pytest.raises(NotFound, match="Order"):
        apply_coupon(db, "WELCOME10", "CC99999999999")
    assert db["coupon"].find_one({"code": "WELCOME10"})["used_count"] == 0


def test_apply_over_limit_releases_order_claim(db, mailer, settings):
    create_coupon(db, Coupon(code="ONCE", discount_type="fixed", discount_value=100, usage_limit=1, used_count=1))
    add_product(db, "classic-cap", stock=5)
    order = create_order(db, OrderCreate(**order_payload([("classic-cap", 1, 900.0)])), mailer, settings)

    with pytest.raises(LimitReached):
        apply_coupon(db, "ONCE", order["order_number"])
    assert db["coupon_redemption"].count_documents({}) == 0


def test_update_coupon_fields(db, stored):
    updated = update_coupon(db, stored["_id"], CouponUpdate(discount_value=15, code="welcome15"))
    assert updated["code"] == "WELCOME15"
    assert updated["discount_value"] == 15
    assert updated["usage_limit"] == 2


def test_has_active_coupons(db):
    assert not has_active_coupons(db, NOW)
    create_coupon(db, Coupon(code="OLD", discount_type="fixed", discount_value=5,
                             expiry_date=NOW - timedelta(days=3)))
    assert not has_active_coupons(db, NOW)
    create_coupon(db, Coupon(code="NEW", discount_type="fixed", discount_value=5,
                             expiry_date=NOW + timedelta(days=3)))
    assert has_active_coupons(db, NOW)
