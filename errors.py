"""
Business errors raised by the storefront core.

Each error knows the HTTP status it maps to; main.py renders them as the
standard `{success: false, message, data?}` envelope.
"""
from typing import Any, Dict, Optional

from email_templates import money


class StoreError(Exception):
    status_code = 400

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class NotFound(StoreError):
    status_code = 404


class ValidationFailed(StoreError):
    pass


class InsufficientStock(StoreError):
    def __init__(self, product_id: str, name: str, available: int):
        super().__init__(
            f"Insufficient stock for {name}: only {available} available",
            data={"product_id": product_id, "available": available},
        )
        self.product_id = product_id
        self.available = available


class InvalidTransition(StoreError):
    pass


class Expired(StoreError):
    pass


class LimitReached(StoreError):
    pass


class BelowMinimum(StoreError):
    def __init__(self, min_purchase: float, currency_symbol: str = "Rs"):
        super().__init__(
            f"Minimum purchase of {money(min_purchase, currency_symbol)} required",
            data={"min_purchase": min_purchase},
        )
        self.min_purchase = min_purchase


class Conflict(StoreError):
    status_code = 409


class TransportFailure(StoreError):
    status_code = 502
