# storefront/services/products.py
"""Read-only product lookup used by the cart engine to snapshot catalog data."""
from typing import Optional
import logging

import pandas as pd

from storefront.core.errors import StoreUnavailable
from storefront.database import FileBackedDB, db as default_db
from storefront.models.product import Product, ProductSnapshot

logger = logging.getLogger(__name__)


class ProductLookup:
    def __init__(self, db: Optional[FileBackedDB] = None):
        self.db = db or default_db

    def get_product(self, product_id: str) -> Optional[Product]:
        if not product_id:
            return None
        try:
            row = self.db.get_record("products", "id", product_id) or self.db.get_record("products", "product_id", product_id)
        except (OSError, pd.errors.ParserError) as exc:
            logger.error("product lookup failed for %s: %s", product_id, exc)
            raise StoreUnavailable("Product catalog unavailable") from exc
        if not row:
            logger.debug("product %s not in catalog", product_id)
            return None
        return Product.from_dict(row)

    def get_snapshot(self, product_id: str) -> Optional[ProductSnapshot]:
        product = self.get_product(product_id)
        if product is None:
            return None
        return product.snapshot()
