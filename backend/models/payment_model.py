from pydantic import BaseModel
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Union


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class PaymentMethod(str, Enum):
    COD = "cod"
    VNPAY = "vnpay"


class PaymentSuccess(BaseModel):
    kind: Literal["success"] = "success"
    transaction_ref: Optional[str] = None
    transaction_no: Optional[str] = None


class PaymentFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    response_code: Optional[str] = None
    message: str


class PaymentPending(BaseModel):
    kind: Literal["pending"] = "pending"


PaymentOutcome = Union[PaymentSuccess, PaymentFailure, PaymentPending]


class OrderPaymentRequest(BaseModel):
    order_id: int


class VnpayPaymentResponse(BaseModel):
    success: bool = True
    url: str
    order_id: int
    txn_ref: str
    expires_at: datetime


class CodPaymentResponse(BaseModel):
    success: bool = True
    message: str
    order_id: int
    payment_status: PaymentStatus


class PaymentStatusResponse(BaseModel):
    order_id: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: str
    total: int
    shipping_fee: int
    transaction_details: Optional[dict] = None
    created_at: datetime
    updated_at: datetime
