# storefront/services/cart_engine.py
"""
Cart mutation engine: add / update / remove / clear / merge.

Every mutation is resolve -> change in memory -> persist, run while holding the
owner's cart lock so two requests for the same cart can never both read the
same state and overwrite each other. Merge holds both the guest and the user
lock for its whole duration.

Usage:
    engine = CartEngine()
    cart, created = engine.add_item(OwnerKey.guest(gid), "p1", "M", 2)
    cart = engine.merge(guest_id=gid, user_id=user["id"])
"""
from __future__ import annotations
from typing import Optional, Tuple
import logging
import secrets
import time

from storefront.config import settings
from storefront.core.errors import (
    CartNotFound,
    EmptyGuestCart,
    InvalidQuantity,
    NothingToMerge,
    ProductNotFound,
)
from storefront.core.locks import KeyedLocks, cart_locks
from storefront.models.cart import Cart, OwnerKey
from storefront.services.cart_store import CartStore
from storefront.services.products import ProductLookup

logger = logging.getLogger(__name__)


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity()
    return quantity


class CartEngine:
    def __init__(
        self,
        store: Optional[CartStore] = None,
        products: Optional[ProductLookup] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.store = store or CartStore()
        self.products = products or ProductLookup()
        self.locks = locks or cart_locks

    @staticmethod
    def new_guest_id() -> str:
        """Fresh single-use guest identifier, e.g. guest_1700000000000_9f3a2c1b."""
        return f"{settings.GUEST_ID_PREFIX}{int(time.time() * 1000)}_{secrets.token_hex(4)}"

    # --- reads ---

    def resolve(self, owner: OwnerKey) -> Optional[Cart]:
        """Current cart for `owner`, or None when it has none yet."""
        return self.store.get(owner)

    def resolve_ids(self, user_id: Optional[str] = None, guest_id: Optional[str] = None) -> Optional[Cart]:
        return self.resolve(OwnerKey.resolve(user_id, guest_id))

    def _require(self, owner: OwnerKey) -> Cart:
        cart = self.store.get(owner)
        if cart is None:
            raise CartNotFound()
        return cart

    # --- mutations ---

    def add_item(self, owner: OwnerKey, product_id: str, size: str, quantity: int) -> Tuple[Cart, bool]:
        """
        Add `quantity` of (product_id, size). Creates the cart on first add.
        Returns (cart, created).
        """
        if _check_quantity(quantity) <= 0:
            raise InvalidQuantity()
        snapshot = self.products.get_snapshot(product_id)
        if snapshot is None:
            raise ProductNotFound()

        with self.locks.hold(owner.lock_key):
            cart = self.store.get(owner)
            created = cart is None
            if created:
                cart = Cart(owner=owner)
            line = cart.add_line(snapshot, size or "", quantity)
            self.store.save(cart)

        if created:
            logger.info("created cart %s for %s", cart.id, owner)
        logger.debug("cart %s: %s/%s now x%d", cart.id, line.product_id, line.size, line.quantity)
        return cart, created

    def update_item(self, owner: OwnerKey, product_id: str, size: str, quantity: int) -> Cart:
        """Set the line's quantity exactly; zero or less removes the line."""
        quantity = _check_quantity(quantity)
        with self.locks.hold(owner.lock_key):
            cart = self._require(owner)
            cart.set_quantity(product_id, size or "", quantity)
            self.store.save(cart)
        logger.debug("cart %s: set %s/%s to x%d", cart.id, product_id, size, quantity)
        return cart

    def remove_item(self, owner: OwnerKey, product_id: str, size: str) -> Cart:
        with self.locks.hold(owner.lock_key):
            cart = self._require(owner)
            cart.remove_line(product_id, size or "")
            self.store.save(cart)
        logger.debug("cart %s: removed %s/%s", cart.id, product_id, size)
        return cart

    def clear(self, owner: OwnerKey) -> Cart:
        """Drop every line but keep the (now empty) cart."""
        with self.locks.hold(owner.lock_key):
            cart = self._require(owner)
            cart.clear()
            self.store.save(cart)
        logger.debug("cart %s cleared", cart.id)
        return cart

    def merge(self, guest_id: str, user_id: str) -> Cart:
        """
        Fold the guest cart into the user's cart on login.

        - no guest cart: return the user cart (a retry after success), else NothingToMerge
        - empty guest cart: EmptyGuestCart, nothing touched
        - no user cart: the guest cart itself is handed to the user
        - both: quantities summed per (product_id, size); the user cart is saved and
          the guest cart dropped in one write

        Both owner locks are held throughout, and every outcome is a single write
        to the carts table: the merge either lands completely or not at all, so
        retrying after any failure never counts guest lines twice.
        """
        guest = OwnerKey.guest(guest_id)
        user = OwnerKey.user(user_id)

        with self.locks.hold(guest.lock_key, user.lock_key):
            guest_cart = self.store.get(guest)
            user_cart = self.store.get(user)

            if guest_cart is None:
                if user_cart is not None:
                    logger.info("no guest cart for %s; returning cart %s of %s", guest, user_cart.id, user)
                    return user_cart
                raise NothingToMerge()

            if guest_cart.is_empty():
                raise EmptyGuestCart()

            if user_cart is None:
                guest_cart.transfer_to(user.id)
                self.store.save(guest_cart)
                logger.info("cart %s transferred from %s to %s", guest_cart.id, guest, user)
                return guest_cart

            user_cart.absorb(guest_cart)
            self.store.commit_merge(user_cart, guest_cart)
            logger.info("merged cart %s of %s into cart %s of %s", guest_cart.id, guest, user_cart.id, user)
            return user_cart
