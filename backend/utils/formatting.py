from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")

PAYMENT_METHOD_LABELS = {
    "cod": "Thanh toán khi nhận hàng",
    "vnpay": "Thanh toán qua VNPay",
}

PAYMENT_STATUS_LABELS = {
    "PAID": "Đã thanh toán",
    "PENDING": "Đang chờ thanh toán",
}


def format_vnd(amount) -> str:
    """1250000 -> '1.250.000 ₫' (vi-VN grouping, no decimals)."""
    grouped = f"{round(amount or 0):,}".replace(",", ".")
    return f"{grouped} ₫"


def format_vi_date(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(VN_TZ)
    return f"{value.day}/{value.month}/{value.year}"


def payment_method_label(method: Optional[str]) -> str:
    method = getattr(method, "value", method)
    return PAYMENT_METHOD_LABELS.get(method, method or "")


def payment_status_label(status: Optional[str]) -> str:
    status = getattr(status, "value", status)
    return PAYMENT_STATUS_LABELS.get(status, "Chưa thanh toán")


def build_image_url(base_url: Optional[str], image: Optional[str]) -> str:
    if not image:
        return "/placeholder-product.jpg"
    if image.startswith(("http://", "https://")):
        return image
    return f"{base_url or ''}{image}"
