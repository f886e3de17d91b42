from __future__ import annotations
from typing import Optional


class CartError(Exception):
    """Base class for cart failures. `status_code` is the HTTP status the API layer reports."""

    status_code: int = 400
    default_message: str = "Cart error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class InvalidQuantity(CartError, ValueError):
    status_code = 400
    default_message = "Quantity must be a positive integer"


class MissingOwner(CartError, ValueError):
    status_code = 400
    default_message = "userId or guestId required"


class ProductNotFound(CartError, LookupError):
    status_code = 404
    default_message = "Product not found"


class CartNotFound(CartError, LookupError):
    status_code = 404
    default_message = "Cart not found"


class ItemNotFound(CartError, LookupError):
    status_code = 404
    default_message = "Product not found in cart"


class EmptyGuestCart(CartError):
    status_code = 400
    default_message = "Guest cart is empty"


class NothingToMerge(CartError, LookupError):
    status_code = 404
    default_message = "Guest cart not found"


class StoreUnavailable(CartError):
    status_code = 503
    default_message = "Cart store unavailable"
