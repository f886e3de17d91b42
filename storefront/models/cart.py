# storefront/models/cart.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import ClassVar, Dict, Any, List, Optional, Tuple
import json

from storefront.core.errors import ItemNotFound, MissingOwner
from storefront.models.product import ProductSnapshot

LineKey = Tuple[str, str]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(sep=" ")


@dataclass(frozen=True)
class OwnerKey:
    """
    Who a cart belongs to: a signed-in user or an anonymous guest session.
    Built once at the API boundary and passed through every cart operation.
    """
    USER: ClassVar[str] = "user"
    GUEST: ClassVar[str] = "guest"

    kind: str
    id: str

    def __post_init__(self):
        if self.kind not in (self.USER, self.GUEST):
            raise MissingOwner(f"Unknown owner kind: {self.kind!r}")
        if not self.id:
            raise MissingOwner()

    @classmethod
    def user(cls, user_id: str) -> "OwnerKey":
        return cls(cls.USER, str(user_id or "").strip())

    @classmethod
    def guest(cls, guest_id: str) -> "OwnerKey":
        return cls(cls.GUEST, str(guest_id or "").strip())

    @classmethod
    def resolve(cls, user_id: Optional[str] = None, guest_id: Optional[str] = None) -> "OwnerKey":
        """User id wins when both are supplied; blank strings count as absent."""
        user_id = str(user_id or "").strip()
        guest_id = str(guest_id or "").strip()
        if user_id:
            return cls.user(user_id)
        if guest_id:
            return cls.guest(guest_id)
        raise MissingOwner()

    @property
    def is_user(self) -> bool:
        return self.kind == self.USER

    @property
    def is_guest(self) -> bool:
        return self.kind == self.GUEST

    @property
    def column(self) -> str:
        """Name of the carts table column holding this kind of id."""
        return "user_id" if self.is_user else "guest_id"

    @property
    def lock_key(self) -> str:
        return f"{self.kind}:{self.id}"

    def __str__(self) -> str:
        return self.lock_key



def _stored_quantity(raw: Any) -> int:
    """Quantities persist as positive whole numbers; anything else means a corrupt row."""
    qty = float(raw)
    if not qty.is_integer() or qty <= 0:
        raise ValueError(f"Invalid stored quantity: {raw!r}")
    return int(qty)


@dataclass
class CartLineItem:
    product_id: str
    size: str = ""
    name: str = ""
    image_url: str = ""
    unit_price: float = 0.0
    quantity: int = 1

    @classmethod
    def from_snapshot(cls, snapshot: ProductSnapshot, size: str, quantity: int) -> "CartLineItem":
        return cls(
            product_id=snapshot.product_id,
            size=size,
            name=snapshot.name,
            image_url=snapshot.image_url,
            unit_price=float(snapshot.unit_price),
            quantity=int(quantity),
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CartLineItem":
        if d is None:
            raise ValueError("Cannot construct CartLineItem from None")
        return cls(
            product_id=str(d.get("product_id") or d.get("productId") or ""),
            size=str(d.get("size") or ""),
            name=str(d.get("name") or d.get("title") or ""),
            image_url=str(d.get("image_url") or d.get("image") or ""),
            unit_price=float(d.get("unit_price") or d.get("price") or 0.0),
            quantity=_stored_quantity(d.get("quantity")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["unit_price"] = float(self.unit_price)
        out["quantity"] = int(self.quantity)
        return out

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.size)

    def line_total(self) -> float:
        return float(self.unit_price) * int(self.quantity)


@dataclass
class Cart:
    """
    A running cart for exactly one owner. Lines are kept in an insertion-ordered
    dict keyed by (product_id, size); ``total_price`` is always derived from them.

    Persisted as a single row of the carts table with 'items' serialized as JSON.
    """
    owner: OwnerKey
    id: Optional[str] = None
    items: Dict[LineKey, CartLineItem] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Cart":
        if d is None:
            raise ValueError("Cannot construct Cart from None")
        raw_items = d.get("items") or []
        if isinstance(raw_items, str):
            raw_items = json.loads(raw_items) if raw_items.strip() else []
        items: Dict[LineKey, CartLineItem] = {}
        for raw in raw_items:
            line = raw if isinstance(raw, CartLineItem) else CartLineItem.from_dict(raw)
            items[line.key] = line
        return cls(
            owner=OwnerKey.resolve(d.get("user_id"), d.get("guest_id")),
            id=d.get("id") or None,
            items=items,
            created_at=d.get("created_at") or None,
            updated_at=d.get("updated_at") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id or "",
            "user_id": self.owner.id if self.owner.is_user else "",
            "guest_id": self.owner.id if self.owner.is_guest else "",
            "items": json.dumps([it.to_dict() for it in self.lines], ensure_ascii=False),
            "total_price": self.total_price,
            "created_at": self.created_at or "",
            "updated_at": self.updated_at or "",
        }

    @property
    def lines(self) -> List[CartLineItem]:
        return list(self.items.values())

    @property
    def total_price(self) -> float:
        return float(sum((it.line_total() for it in self.items.values()), 0.0))

    @property
    def item_count(self) -> int:
        return int(sum(it.quantity for it in self.items.values()))

    def is_empty(self) -> bool:
        return not self.items

    def get_line(self, product_id: str, size: str) -> Optional[CartLineItem]:
        return self.items.get((str(product_id), str(size or "")))

    # business helpers

    def add_line(self, snapshot: ProductSnapshot, size: str, quantity: int) -> CartLineItem:
        """Accumulate onto an existing (product, size) line or append a new one."""
        existing = self.get_line(snapshot.product_id, size)
        if existing is not None:
            existing.quantity = int(existing.quantity) + int(quantity)
            return existing
        line = CartLineItem.from_snapshot(snapshot, str(size or ""), quantity)
        self.items[line.key] = line
        return line

    def set_quantity(self, product_id: str, size: str, quantity: int) -> Optional[CartLineItem]:
        """
        Set a line's quantity to exactly `quantity`; zero or less drops the line.
        Returns the line, or None when it was dropped. Raises ItemNotFound.
        """
        line = self.get_line(product_id, size)
        if line is None:
            raise ItemNotFound()
        if quantity <= 0:
            del self.items[line.key]
            return None
        line.quantity = int(quantity)
        return line

    def remove_line(self, product_id: str, size: str) -> CartLineItem:
        line = self.get_line(product_id, size)
        if line is None:
            raise ItemNotFound()
        return self.items.pop(line.key)

    def absorb(self, other: "Cart") -> None:
        """Fold every line of `other` into this cart, keeping the other cart's snapshots for new lines."""
        for line in other.lines:
            mine = self.items.get(line.key)
            if mine is not None:
                mine.quantity = int(mine.quantity) + int(line.quantity)
            else:
                self.items[line.key] = CartLineItem(**line.to_dict())

    def transfer_to(self, user_id: str) -> None:
        if not self.owner.is_guest:
            raise ValueError("Only guest carts change owner")
        self.owner = OwnerKey.user(user_id)

    def clear(self) -> None:
        self.items = {}

    def touch(self) -> None:
        now = utcnow_iso()
        if not self.created_at:
            self.created_at = now
        self.updated_at = now
