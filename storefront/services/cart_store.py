# storefront/services/cart_store.py
"""
Durable cart documents, one row per cart in the ``carts`` table.
Rows are found by owner (``user_id`` or ``guest_id`` column) and written by ``id``.
"""
from typing import Any, Callable, Optional, TypeVar
import logging
import uuid

import pandas as pd
from filelock import Timeout

from storefront.core.errors import StoreUnavailable
from storefront.database import FileBackedDB, db as default_db
from storefront.models.cart import Cart, OwnerKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IO_ERRORS = (OSError, Timeout, pd.errors.ParserError)


class CartStore:
    TABLE = "carts"

    def __init__(self, db: Optional[FileBackedDB] = None):
        self.db = db or default_db

    def _call(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except _IO_ERRORS as exc:
            logger.error("cart store I/O failure in %s: %s", getattr(fn, "__name__", fn), exc)
            raise StoreUnavailable() from exc

    def get(self, owner: OwnerKey) -> Optional[Cart]:
        row = self._call(self.db.get_record, self.TABLE, owner.column, owner.id)
        if not row:
            return None
        try:
            return Cart.from_dict(row)
        except (ValueError, TypeError) as exc:
            logger.error("unreadable cart row %s for %s: %s", row.get("id"), owner, exc)
            raise StoreUnavailable("Stored cart is unreadable") from exc

    def save(self, cart: Cart) -> Cart:
        """Upsert the whole cart document (creates the row on first save)."""
        if not cart.id:
            cart.id = uuid.uuid4().hex
        cart.touch()
        self._call(self.db.upsert_record, self.TABLE, "id", cart.id, cart.to_dict())
        return cart

    def commit_merge(self, user_cart: Cart, guest_cart: Cart) -> Cart:
        """
        Persist the merged user cart and drop the guest cart in a single table write,
        so a failure leaves both documents exactly as they were.
        """
        if not user_cart.id:
            user_cart.id = uuid.uuid4().hex
        user_cart.touch()
        self._call(self.db.apply_batch, self.TABLE, "id", [user_cart.to_dict()], [guest_cart.id] if guest_cart.id else [])
        return user_cart

