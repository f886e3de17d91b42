# storefront/api/schemas/product.py
from pydantic import BaseModel
from typing import List, Optional


class ProductOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = ""
    category: Optional[str] = ""
    price: float
    sizes: List[str] = []
    image_url: str = ""
