# storefront/models/product.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any, List
import json


def _json_list(raw: Any) -> List[Any]:
    """CSV rows carry lists as JSON strings; tolerate plain strings and blanks."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return [raw]
    return parsed if isinstance(parsed, list) else [parsed]


@dataclass(frozen=True)
class ProductSnapshot:
    """The catalog fields a cart line copies when the product is first added."""
    product_id: str
    name: str
    unit_price: float
    image_url: str = ""


@dataclass
class Product:
    """
    Catalog product. CSV-backed store will usually store everything as strings,
    so these helpers convert to proper types.
    """
    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = ""
    category: Optional[str] = ""
    price: float = 0.0
    sizes: List[str] = field(default_factory=list)
    images: List[Any] = field(default_factory=list)
    sku: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        if d is None:
            raise ValueError("Cannot construct Product from None")
        id_val = d.get("id") or d.get("product_id") or None
        name = d.get("name") or d.get("title") or ""
        price_raw = d.get("price", 0)
        try:
            price = float(price_raw) if price_raw not in (None, "") else 0.0
        except (TypeError, ValueError):
            price = 0.0
        sizes = [str(s) for s in _json_list(d.get("sizes"))]
        images = _json_list(d.get("images") or d.get("image_filename"))
        return cls(
            id=str(id_val) if id_val is not None else None,
            name=str(name),
            description=str(d.get("description") or ""),
            category=str(d.get("category") or ""),
            price=price,
            sizes=sizes,
            images=images,
            sku=d.get("sku") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["price"] = float(self.price)
        out["sizes"] = json.dumps(self.sizes, ensure_ascii=False)
        out["images"] = json.dumps(self.images, ensure_ascii=False)
        return out

    @property
    def primary_image_url(self) -> str:
        if not self.images:
            return ""
        first = self.images[0]
        if isinstance(first, dict):
            return str(first.get("url") or "")
        return str(first)

    def snapshot(self) -> ProductSnapshot:
        return ProductSnapshot(
            product_id=str(self.id or ""),
            name=self.name,
            unit_price=float(self.price),
            image_url=self.primary_image_url,
        )
