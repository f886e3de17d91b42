# storefront/api/routes/products.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_product_lookup
from storefront.api.schemas.product import ProductOut
from storefront.core.errors import StoreUnavailable
from storefront.services.products import ProductLookup

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, products: ProductLookup = Depends(get_product_lookup)):
    """Catalog entry as the cart sees it (read-only)."""
    try:
        product = products.get_product(product_id)
    except StoreUnavailable as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut(
        id=product.id or product_id,
        name=product.name,
        description=product.description,
        category=product.category,
        price=product.price,
        sizes=product.sizes,
        image_url=product.primary_image_url,
    )
