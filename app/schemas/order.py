from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, EmailStr, Field
from app.models.order import OrderStatus, PaymentStatus
from app.schemas.common import Pagination


class Address(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address_line_1: str = Field(..., min_length=1)
    address_line_2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class CheckoutItem(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(..., ge=1)


class CheckoutRequest(BaseModel):
    items: List[CheckoutItem] = Field(..., min_length=1)
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: Literal["pesapal", "paypal", "cash_on_delivery"]
    coupon_code: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class OrderItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    name: str
    sku: Optional[str] = None
    quantity: int
    price: float
    total: float

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    id: int
    order_number: str
    name: Optional[str] = None
    email: Optional[str] = None
    total_amount: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    item_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class OrderResponse(OrderSummary):
    tenant_id: int
    user_id: Optional[int] = None
    phone: Optional[str] = None
    payment_gateway: Optional[str] = None
    transaction_id: Optional[str] = None
    shipping_address: Optional[dict] = None
    billing_address: Optional[dict] = None
    coupon_code: Optional[str] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []


class OrderListResponse(BaseModel):
    orders: List[OrderSummary]
    pagination: Pagination


class OrderUpdateRequest(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=255)
    shipping_carrier: Optional[str] = Field(None, max_length=100)
    transaction_id: Optional[str] = Field(None, max_length=255)
    payment_gateway: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)


class OrderCancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    refund: bool = False
    notes: Optional[str] = Field(None, max_length=1000)


class OrderTrackResponse(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: float
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentUpdateRequest(BaseModel):
    payment_status: PaymentStatus
    transaction_id: Optional[str] = Field(None, max_length=255)
    payment_gateway: Optional[str] = Field(None, max_length=50)
