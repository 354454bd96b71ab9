"""Map payment gateway redirect parameters to a normalized outcome.

Everything in here is pure: no I/O, no exceptions for malformed input.
"""
from typing import Mapping, Optional
from models.payment_model import (
    PaymentOutcome,
    PaymentSuccess,
    PaymentFailure,
    PaymentPending,
    PaymentStatus,
)

SUCCESS_RESPONSE_CODE = "00"
PENDING_MARKER_KEY = "payment"
PENDING_MARKER_VALUE = "pending"

VNPAY_RESPONSE_MESSAGES = {
    "00": "Giao dịch thành công",
    "01": "Giao dịch đã tồn tại",
    "02": "Merchant không hợp lệ",
    "03": "Dữ liệu gửi sang không đúng định dạng",
    "04": "Khởi tạo GD không thành công do Website đang bị tạm khóa",
    "05": "Giao dịch không thành công do: Quý khách nhập sai mật khẩu quá số lần quy định",
    "06": "Giao dịch không thành công do Quý khách nhập sai mật khẩu",
    "07": "Trừ tiền thành công. Giao dịch bị nghi ngờ",
    "09": "Giao dịch không thành công do: Thẻ/Tài khoản của khách hàng chưa đăng ký dịch vụ",
    "10": "Giao dịch không thành công do: Khách hàng xác thực thông tin thẻ/tài khoản không đúng quá 3 lần",
    "11": "Giao dịch không thành công do: Đã hết hạn chờ thanh toán",
    "12": "Giao dịch không thành công do: Thẻ/Tài khoản của khách hàng bị khóa",
    "13": "Giao dịch không thành công do Quý khách nhập sai mật khẩu",
    "24": "Giao dịch không thành công do: Khách hàng hủy giao dịch",
    "51": "Giao dịch không thành công do: Tài khoản của quý khách không đủ số dư để thực hiện giao dịch",
    "65": "Giao dịch không thành công do: Tài khoản của Quý khách đã vượt quá hạn mức giao dịch trong ngày",
    "75": "Ngân hàng thanh toán đang bảo trì",
    "79": "Giao dịch không thành công do: KH nhập sai mật khẩu thanh toán quá số lần quy định",
    "99": "Lỗi không xác định",
}

# Flags appended by the storefront's own return handler, checked in this order.
STOREFRONT_ERROR_FLAGS = {
    "missing_txn_ref": "Không tìm thấy mã tham chiếu giao dịch",
    "server_error": "Có lỗi máy chủ trong quá trình xử lý thanh toán",
    "invalid_signature": "Xác thực thanh toán thất bại: chữ ký không hợp lệ",
    "order_not_found": "Không tìm thấy đơn hàng tương ứng với giao dịch này",
    "payment_failed": "Giao dịch không thành công, đơn hàng chưa được thanh toán",
}

DEFAULT_FAILURE_MESSAGE = "Thanh toán thất bại"


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def has_pending_marker(params: Mapping[str, str]) -> bool:
    return _clean(params.get(PENDING_MARKER_KEY)) == PENDING_MARKER_VALUE


def resolve_payment_outcome(params: Optional[Mapping[str, str]]) -> PaymentOutcome:
    """Resolve a flat mapping of redirect parameters.

    * no parameters, or the ``payment=pending`` marker -> PaymentPending
    * ``vnp_ResponseCode == "00"`` -> PaymentSuccess
    * anything else, including a missing code -> PaymentFailure
    """
    if not params:
        return PaymentPending()
    if has_pending_marker(params):
        return PaymentPending()

    response_code = _clean(params.get("vnp_ResponseCode"))
    for flag, message in STOREFRONT_ERROR_FLAGS.items():
        if _clean(params.get(flag)) == "true":
            return PaymentFailure(
                response_code=response_code,
                message=_clean(params.get("error_message")) or message,
            )

    if response_code == SUCCESS_RESPONSE_CODE:
        return PaymentSuccess(
            transaction_ref=_clean(params.get("vnp_TxnRef")),
            transaction_no=_clean(params.get("vnp_TransactionNo")),
        )
    return PaymentFailure(
        response_code=response_code,
        message=VNPAY_RESPONSE_MESSAGES.get(response_code or "")
        or _clean(params.get("error_message"))
        or DEFAULT_FAILURE_MESSAGE,
    )


def effective_payment_status(
    marker_pending: bool, persisted: Optional[PaymentStatus]
) -> Optional[PaymentStatus]:
    # a persisted final state always wins over the redirect marker
    if persisted in (PaymentStatus.PAID, PaymentStatus.FAILED):
        return persisted
    if persisted == PaymentStatus.PENDING or marker_pending:
        return PaymentStatus.PENDING
    return None
