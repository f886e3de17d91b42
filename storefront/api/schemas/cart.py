from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.models.cart import Cart


class _CamelModel(BaseModel):
    # the storefront client sends and expects camelCase; snake_case is accepted too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartOwnerSchema(_CamelModel):
    guest_id: Optional[str] = None
    user_id: Optional[str] = None


class CartItemSchema(CartOwnerSchema):
    product_id: str = Field(..., min_length=1)
    quantity: int = 1
    size: Optional[str] = ""


class CartItemRemoveSchema(CartOwnerSchema):
    product_id: str = Field(..., min_length=1)
    size: Optional[str] = ""


class CartMergeSchema(_CamelModel):
    guest_id: str = Field(..., min_length=1)


class CartLineOut(_CamelModel):
    product_id: str
    name: str
    image: str
    price: float
    size: str
    quantity: int


class CartOut(_CamelModel):
    id: str
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    products: List[CartLineOut] = []
    total_price: float
    item_count: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartOut":
        return cls(
            id=cart.id or "",
            user_id=cart.owner.id if cart.owner.is_user else None,
            guest_id=cart.owner.id if cart.owner.is_guest else None,
            products=[
                CartLineOut(
                    product_id=it.product_id,
                    name=it.name,
                    image=it.image_url,
                    price=it.unit_price,
                    size=it.size,
                    quantity=it.quantity,
                )
                for it in cart.lines
            ],
            total_price=cart.total_price,
            item_count=cart.item_count,
            created_at=cart.created_at,
            updated_at=cart.updated_at,
        )
