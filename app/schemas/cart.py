from typing import Optional, List
from pydantic import BaseModel, Field


class CartItem(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int
    price: float
    name: str
    image: Optional[str] = None
    sku: Optional[str] = None
    slug: Optional[str] = None


class Cart(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    total: float = 0
    item_count: int = 0


class CartAddRequest(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(1, ge=1)


class CartUpdateRequest(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int  # zero or less removes the line


class CartRemoveRequest(BaseModel):
    product_id: int
    variant_id: Optional[int] = None


class CartCountResponse(BaseModel):
    count: int
