"""
Coupon evaluation and redemption.

`evaluate` and `compute_discount` are pure; the db-backed functions wrap
them with lookups and the conditional usage increment.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import as_utc, create_document, update_document, utcnow
from errors import BelowMinimum, Conflict, Expired, LimitReached, NotFound, ValidationFailed
from schemas import Coupon, CouponUpdate

logger = logging.getLogger(__name__)


def normalize_code(raw: str) -> str:
    try:
        decoded = unquote(raw, errors="strict")
    except UnicodeDecodeError:
        decoded = raw
    return decoded.strip().upper()


def compute_discount(coupon: Dict[str, Any], order_total: float) -> float:
    value = float(coupon["discount_value"])
    if coupon["discount_type"] == "percentage":
        discount = order_total * value / 100
        max_discount = float(coupon.get("max_discount") or 0)
        if max_discount > 0 and discount > max_discount:
            discount = max_discount
        return discount
    return value


def evaluate(coupon: Dict[str, Any], order_total: float, now: Optional[datetime] = None,
             currency_symbol: str = "Rs") -> Dict[str, Any]:
    """Check a coupon against an order total and return the discount it grants."""
    now = as_utc(now or utcnow())

    expiry = as_utc(coupon.get("expiry_date"))
    if expiry is not None and expiry < now:
        raise Expired("Coupon has expired")

    usage_limit = int(coupon.get("usage_limit") or 0)
    if usage_limit > 0 and int(coupon.get("used_count") or 0) >= usage_limit:
        raise LimitReached("Coupon usage limit reached")

    min_purchase = float(coupon.get("min_purchase") or 0)
    if min_purchase > 0 and order_total < min_purchase:
        raise BelowMinimum(min_purchase, currency_symbol)

    return {
        "code": coupon["code"],
        "discount": compute_discount(coupon, order_total),
        "discount_type": coupon["discount_type"],
        "discount_value": coupon["discount_value"],
    }


def validate_coupon(db: Database, raw_code: str, order_total: float, now: Optional[datetime] = None,
                    currency_symbol: str = "Rs") -> Dict[str, Any]:
    if not raw_code or not raw_code.strip():
        raise ValidationFailed("Coupon code is required")
    coupon = db["coupon"].find_one({"code": normalize_code(raw_code), "is_active": True})
    if coupon is None:
        raise NotFound("Invalid coupon code")
    return evaluate(coupon, order_total, now, currency_symbol)


def apply_coupon(db: Database, raw_code: str, order_number: Optional[str] = None) -> Dict[str, Any]:
    """Record one redemption of a coupon.

    With an order number the redemption is tied to that order and repeated
    calls for the same order leave the usage count alone.
    """
    code = normalize_code(raw_code)
    coupon = db["coupon"].find_one({"code": code})
    if coupon is None:
        raise NotFound("Coupon not found")

    if order_number is not None:
        if db["order"].find_one({"order_number": order_number}) is None:
            raise NotFound("Order not found")
        claim = {"coupon_id": coupon["_id"], "order_number": order_number}
        if db["coupon_redemption"].find_one(claim) is not None:
            logger.info("Coupon %s already applied to order %s", code, order_number)
            return coupon
        try:
            db["coupon_redemption"].insert_one({**claim, "code": code, "created_at": utcnow()})
        except DuplicateKeyError:
            logger.info("Coupon %s already applied to order %s", code, order_number)
            return coupon

    query: Dict[str, Any] = {"_id": coupon["_id"]}
    usage_limit = int(coupon.get("usage_limit") or 0)
    if usage_limit > 0:
        query["used_count"] = {"$lt": usage_limit}
    updated = db["coupon"].find_one_and_update(
        query,
        {"$inc": {"used_count": 1}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        if order_number is not None:
            db["coupon_redemption"].delete_one({"coupon_id": coupon["_id"], "order_number": order_number})
        raise LimitReached("Coupon usage limit reached")

    logger.info("Coupon %s redeemed (%d used)", code, updated["used_count"])
    return updated


def has_active_coupons(db: Database, now: Optional[datetime] = None) -> bool:
    now = as_utc(now or utcnow())
    for coupon in db["coupon"].find({"is_active": True}, {"expiry_date": 1}):
        expiry = as_utc(coupon.get("expiry_date"))
        if expiry is None or expiry >= now:
            return True
    return False


# -----------------
# Administration
# -----------------

def _coupon_doc(changes: Dict[str, Any]) -> Dict[str, Any]:
    if changes.get("expiry_date") is not None:
        changes["expiry_date"] = as_utc(changes["expiry_date"])
    return changes


def create_coupon(db: Database, payload: Coupon) -> Dict[str, Any]:
    if db["coupon"].find_one({"code": payload.code}) is not None:
        raise Conflict(f"Coupon {payload.code} already exists")
    new_id = create_document(db, "coupon", _coupon_doc(payload.model_dump()))
    return db["coupon"].find_one({"_id": ObjectId(new_id)})


def list_coupons(db: Database) -> List[Dict[str, Any]]:
    return list(db["coupon"].find().sort([("created_at", -1), ("_id", -1)]))


def get_coupon(db: Database, coupon_id: ObjectId) -> Dict[str, Any]:
    coupon = db["coupon"].find_one({"_id": coupon_id})
    if coupon is None:
        raise NotFound("Coupon not found")
    return coupon


def update_coupon(db: Database, coupon_id: ObjectId, payload: CouponUpdate) -> Dict[str, Any]:
    changes = _coupon_doc(payload.model_dump(exclude_unset=True))
    if "code" in changes and db["coupon"].find_one({"code": changes["code"], "_id": {"$ne": coupon_id}}):
        raise Conflict(f"Coupon {changes['code']} already exists")
    updated = update_document(db, "coupon", {"_id": coupon_id}, changes)
    if updated is None:
        raise NotFound("Coupon not found")
    return updated


def delete_coupon(db: Database, coupon_id: ObjectId) -> None:
    if db["coupon"].delete_one({"_id": coupon_id}).deleted_count == 0:
        raise NotFound("Coupon not found")


def toggle_coupon(db: Database, coupon_id: ObjectId) -> Dict[str, Any]:
    coupon = get_coupon(db, coupon_id)
    return update_document(db, "coupon", {"_id": coupon_id}, {"is_active": not coupon.get("is_active", True)})
