"""
Order lifecycle: checkout, status transitions and order queries.

Checkout reserves stock with conditional decrements and inserts the order as
one unit; if any step fails the decrements already applied are restored.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from config import Settings
from database import as_utc, create_document, next_sequence, paginate, update_document, utcnow
from email_templates import order_confirmation, order_status_update, owner_order_alert
from errors import Conflict, InsufficientStock, InvalidTransition, NotFound, ValidationFailed
from mailer import Mailer, send_best_effort
from schemas import Order, OrderCreate, OrderItem, OrderStatusUpdate

logger = logging.getLogger(__name__)

STATUS_SEQUENCE = ("pending", "processing", "shipped", "delivered")
TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})
NEWEST_FIRST = [("created_at", -1), ("_id", -1)]
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# -----------------
# Status machine
# -----------------

def check_transition(current: str, requested: str) -> None:
    """Raise InvalidTransition unless `current` may move to `requested`."""
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Cannot change status of {current} orders")
    if requested == "cancelled":
        return
    if STATUS_SEQUENCE.index(requested) < STATUS_SEQUENCE.index(current):
        raise InvalidTransition("Cannot reverse order status. Status can only move forward.")


def can_transition(current: str, requested: str) -> bool:
    try:
        check_transition(current, requested)
    except InvalidTransition:
        return False
    return True


# -----------------
# Order numbers
# -----------------

def format_order_number(prefix: str, timestamp_ms: int, sequence: int) -> str:
    return f"{prefix}{str(timestamp_ms)[-8:].zfill(8)}{sequence:03d}"


def generate_order_number(db: Database, prefix: str, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    sequence = next_sequence(db, "order_number", seed_collection="order")
    timestamp_ms = (as_utc(now) - EPOCH) // timedelta(milliseconds=1)
    return format_order_number(prefix, timestamp_ms, sequence)


# -----------------
# Checkout
# -----------------

def _check_availability(db: Database, items: List[OrderItem]) -> None:
    for item in items:
        product = db["product"].find_one({"product_id": item.product_id})
        if product is None:
            raise NotFound(f"Product {item.product_id} not found")
        stock = int(product.get("stock", 0))
        if item.quantity > stock:
            raise InsufficientStock(item.product_id, product.get("name", item.product_id), stock)


def _reserve(db: Database, item: OrderItem) -> None:
    updated = db["product"].find_one_and_update(
        {"product_id": item.product_id, "stock": {"$gte": item.quantity}},
        {"$inc": {"stock": -item.quantity}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        product = db["product"].find_one({"product_id": item.product_id})
        if product is None:
            raise NotFound(f"Product {item.product_id} not found")
        raise InsufficientStock(item.product_id, product.get("name", item.product_id), int(product.get("stock", 0)))


def _release(db: Database, reserved: List[OrderItem]) -> None:
    for item in reserved:
        db["product"].update_one({"product_id": item.product_id}, {"$inc": {"stock": item.quantity}})
    if reserved:
        logger.warning("Released stock for %d line item(s) after a failed checkout", len(reserved))


def create_order(
    db: Database,
    payload: OrderCreate,
    mailer: Mailer,
    settings: Settings,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    if not payload.items:
        raise ValidationFailed("No order items provided")

    _check_availability(db, payload.items)

    reserved: List[OrderItem] = []
    try:
        for item in payload.items:
            _reserve(db, item)
            reserved.append(item)
        order = Order(
            **payload.model_dump(),
            order_number=generate_order_number(db, settings.order_prefix, now),
        )
        create_document(db, "order", order)
    except Exception:
        _release(db, reserved)
        raise

    saved = db["order"].find_one({"order_number": order.order_number})
    logger.info("Order %s created with %d item(s)", order.order_number, len(order.items))

    send_best_effort(mailer, saved["customer"]["email"], order_confirmation(saved, settings), settings)
    send_best_effort(mailer, settings.owner_email, owner_order_alert(saved, settings), settings)
    return saved


# -----------------
# Status updates
# -----------------

def update_order_status(
    db: Database,
    order_number: str,
    update: OrderStatusUpdate,
    mailer: Mailer,
    settings: Settings,
) -> Dict[str, Any]:
    if update.status is None and update.payment_status is None:
        raise ValidationFailed("Provide status or payment_status")

    order = get_order(db, order_number)
    previous = order["status"]

    changes: Dict[str, Any] = {}
    if update.status is not None:
        check_transition(previous, update.status)
        changes["status"] = update.status
    if update.payment_status is not None:
        changes["payment_status"] = update.payment_status

    # only write if nobody moved the status since we read it
    updated = update_document(db, "order", {"_id": order["_id"], "status": previous}, changes)
    if updated is None:
        raise Conflict(f"Order {order_number} was updated concurrently, please retry")

    if update.status is not None and update.status != previous:
        logger.info("Order %s status %s -> %s", order_number, previous, update.status)
        template = order_status_update(updated, update.status, settings)
        if template is not None:
            send_best_effort(mailer, updated["customer"]["email"], template, settings)
    return updated


# -----------------
# Queries
# -----------------

def get_order(db: Database, order_number: str) -> Dict[str, Any]:
    order = db["order"].find_one({"order_number": order_number})
    if order is None:
        raise NotFound("Order not found")
    return order


def list_orders(db: Database, status: Optional[str] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if status:
        query["status"] = status
    return paginate(db, "order", query, NEWEST_FIRST, page, limit)


def list_customer_orders(db: Database, email: str) -> List[Dict[str, Any]]:
    return list(db["order"].find({"customer.email": email.strip().lower()}).sort(NEWEST_FIRST))
