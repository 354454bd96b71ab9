import hashlib
import hmac
import os
from datetime import datetime, timedelta
from typing import Mapping, Optional
from urllib.parse import quote_plus
from zoneinfo import ZoneInfo
from dotenv import load_dotenv

VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")
load_dotenv()

VNP_TMN_CODE = os.getenv("VNP_TMN_CODE", "")
VNP_HASH_SECRET = os.getenv("VNP_HASH_SECRET", "")
VNP_URL = os.getenv("VNP_URL", "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html")
VNP_RETURN_URL = os.getenv(
    "VNP_RETURN_URL", "http://localhost:8000/api/payments/vnpay/return"
)
VNP_VERSION = "2.1.0"
PAYMENT_TIMEOUT_MINUTES = 15
DATE_FORMAT = "%Y%m%d%H%M%S"

SIGNATURE_FIELDS = ("vnp_SecureHash", "vnp_SecureHashType")


def _hash_data(params: Mapping[str, str]) -> str:
    return "&".join(
        f"{key}={quote_plus(str(params[key]))}"
        for key in sorted(params)
        if key.startswith("vnp_") and key not in SIGNATURE_FIELDS
        and params[key] is not None
    )


def sign_params(params: Mapping[str, str], secret: Optional[str] = None) -> str:
    secret = secret if secret is not None else VNP_HASH_SECRET
    return hmac.new(
        secret.encode("utf-8"), _hash_data(params).encode("utf-8"), hashlib.sha512
    ).hexdigest()


def verify_signature(params: Mapping[str, str], secret: Optional[str] = None) -> bool:
    received = (params.get("vnp_SecureHash") or "").strip().lower()
    if not received:
        return False
    expected = sign_params(params, secret)
    return hmac.compare_digest(expected, received)


def build_txn_ref(order_id: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(VN_TZ)
    return f"{order_id}_{now.strftime(DATE_FORMAT)}"


def parse_order_id(txn_ref: Optional[str]) -> Optional[int]:
    """'42_20250101120000' -> 42. Also accepts '42-...' and a bare '42'."""
    if not txn_ref:
        return None
    head = str(txn_ref).strip().split("_")[0].split("-")[0]
    try:
        order_id = int(head)
    except ValueError:
        return None
    return order_id if order_id > 0 else None


def build_payment_url(
    order_id: int,
    amount: int,
    ip_addr: str,
    order_info: Optional[str] = None,
    now: Optional[datetime] = None,
    secret: Optional[str] = None,
    bank_code: Optional[str] = None,
):
    now = now or datetime.now(VN_TZ)
    expires_at = now + timedelta(minutes=PAYMENT_TIMEOUT_MINUTES)
    txn_ref = build_txn_ref(order_id, now)
    params = {
        "vnp_Version": VNP_VERSION,
        "vnp_Command": "pay",
        "vnp_TmnCode": VNP_TMN_CODE,
        # VNPay expects the amount multiplied by 100
        "vnp_Amount": str(int(amount) * 100),
        "vnp_CurrCode": "VND",
        "vnp_TxnRef": txn_ref,
        "vnp_OrderInfo": order_info or f"Thanh toan don hang {order_id}",
        "vnp_OrderType": "other",
        "vnp_Locale": "vn",
        "vnp_ReturnUrl": VNP_RETURN_URL,
        "vnp_IpAddr": ip_addr or "127.0.0.1",
        "vnp_CreateDate": now.strftime(DATE_FORMAT),
        "vnp_ExpireDate": expires_at.strftime(DATE_FORMAT),
    }
    if bank_code:
        params["vnp_BankCode"] = bank_code
    secure_hash = sign_params(params, secret)
    url = f"{VNP_URL}?{_hash_data(params)}&vnp_SecureHash={secure_hash}"
    return url, txn_ref, expires_at


def gateway_amount(params: Mapping[str, str]) -> Optional[int]:
    try:
        return int(params.get("vnp_Amount")) // 100
    except (TypeError, ValueError):
        return None


def is_successful_payment(params: Mapping[str, str]) -> bool:
    transaction_status = params.get("vnp_TransactionStatus")
    return params.get("vnp_ResponseCode") == "00" and transaction_status in (None, "00")
