from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum
from models.payment_model import PaymentMethod, PaymentStatus


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderItemRequest(BaseModel):
    variant_id: int
    quantity: int = Field(..., ge=1)


class OrderRequest(BaseModel):
    address_id: int
    payment_method: PaymentMethod
    items: List[OrderItemRequest] = Field(..., min_length=1)


class Address(BaseModel):
    id: Optional[int] = None
    full_name: str
    phone: Optional[str] = None
    address_line: str
    city: str
    state: Optional[str] = None
    country: str = "Việt Nam"


class AddressRequest(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone: str = Field(..., pattern=r"^0\d{9}$")
    address_line: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    country: str = "Việt Nam"


class ItemVariant(BaseModel):
    id: Optional[int] = None
    size: Optional[str] = None
    color: Optional[str] = None


class OrderItem(BaseModel):
    id: Optional[int] = None
    product_id: Optional[int] = None
    name: str
    image: Optional[str] = None
    price: int
    quantity: int
    variant: ItemVariant


class OrderDetail(BaseModel):
    id: int
    user_id: int
    total: int
    shipping_fee: int = 0
    payment_method: PaymentMethod
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_details: Optional[dict] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    address: Address
    items: List[OrderItem]


class OrderSummary(BaseModel):
    id: int
    total: int
    shipping_fee: int
    payment_method: PaymentMethod
    status: OrderStatus
    payment_status: PaymentStatus
    item_count: int
    created_at: datetime


class OrderResponse(BaseModel):
    message: str
    order: OrderDetail
