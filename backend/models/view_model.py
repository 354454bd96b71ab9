from pydantic import BaseModel
from typing import List, Optional
from enum import Enum


class ViewState(str, Enum):
    LOADING = "loading"
    PROCESSING = "processing"
    ERROR = "error"
    READY = "ready"
    SUCCESS = "success"
    FAILURE = "failure"


class Tone(str, Enum):
    SUCCESS = "green"
    PENDING = "yellow"
    FAILURE = "red"


class ActionKind(str, Enum):
    NAVIGATE = "navigate"
    BACK = "back"


class ViewAction(BaseModel):
    label: str
    kind: ActionKind = ActionKind.NAVIGATE
    target: Optional[str] = None
    steps: Optional[int] = None
    primary: bool = False


class Headline(BaseModel):
    tone: Tone
    icon: str
    title: str
    message: str


class ConfirmationItem(BaseModel):
    id: Optional[int] = None
    name: str
    image_url: str
    variant: str
    unit_price: str
    quantity: int


class ConfirmationAddress(BaseModel):
    full_name: str
    phone: Optional[str] = None
    address_line: str
    city_state: str
    country: str


class ConfirmationPage(BaseModel):
    state: ViewState
    error: Optional[str] = None
    headline: Optional[Headline] = None
    pending_hint: Optional[str] = None
    order_id: Optional[str] = None
    created_date: Optional[str] = None
    total: Optional[str] = None
    shipping_fee: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    payment_status_tone: Optional[Tone] = None
    address: Optional[ConfirmationAddress] = None
    items: List[ConfirmationItem] = []
    actions: List[ViewAction] = []


class PaymentResultPage(BaseModel):
    state: ViewState
    title: str
    message: str
    detail: Optional[str] = None
    transaction_ref: Optional[str] = None
    transaction_no: Optional[str] = None
    actions: List[ViewAction] = []
