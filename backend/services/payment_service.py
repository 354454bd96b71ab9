from fastapi import HTTPException
import json
import os
from datetime import datetime
from typing import Mapping
from urllib.parse import urlencode
from zoneinfo import ZoneInfo
from dotenv import load_dotenv
from models.order_model import OrderStatus
from models.payment_model import (
    CodPaymentResponse,
    PaymentMethod,
    PaymentStatus,
    PaymentStatusResponse,
    VnpayPaymentResponse,
)
from services import vnpay_service
from services.mail_service import send_order_confirmation_email
from services.order_service import get_order_detail_service, load_json

VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")
load_dotenv()

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

VALID_STATUS_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: set(),
    PaymentStatus.FAILED: set(),
}

# VNPay IPN acknowledgement codes
IPN_SUCCESS = {"RspCode": "00", "Message": "Confirm Success"}
IPN_ORDER_NOT_FOUND = {"RspCode": "01", "Message": "Order not found"}
IPN_ALREADY_CONFIRMED = {"RspCode": "02", "Message": "Order already confirmed"}
IPN_INVALID_AMOUNT = {"RspCode": "04", "Message": "Invalid amount"}
IPN_INVALID_CHECKSUM = {"RspCode": "97", "Message": "Invalid Checksum"}
IPN_UNKNOWN_ERROR = {"RspCode": "99", "Message": "Unknown error"}


def is_valid_status_transition(current: PaymentStatus, new: PaymentStatus) -> bool:
    return new in VALID_STATUS_TRANSITIONS.get(PaymentStatus(current), set())


def order_status_for_payment(payment_status: PaymentStatus, current_status: str) -> str:
    if payment_status == PaymentStatus.PAID:
        return OrderStatus.PROCESSING.value
    return current_status


async def update_payment_status(order_id: int, new_status: PaymentStatus, transaction_info: dict, db):
    async with db.transaction():
        order = await db.fetchrow(
            """
            SELECT o.id, o.status, o.payment_status, o.transaction_details,
                   u.email AS user_email, u.name AS user_name
            FROM orders o
            JOIN users u ON u.id = o.user_id
            WHERE o.id = $1
            FOR UPDATE OF o
            """,
            order_id,
        )
        if not order:
            raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
        current = PaymentStatus(order["payment_status"])
        if current == new_status:
            print(f"Đơn hàng #{order_id} đã ở trạng thái {current.value}, bỏ qua")
            return {"changed": False, "order_id": order_id, "payment_status": current}
        if not is_valid_status_transition(current, new_status):
            raise HTTPException(
                status_code=409,
                detail=f"Không thể chuyển trạng thái thanh toán từ {current.value} sang {new_status.value}",
            )
        details = load_json(order["transaction_details"]) or {}
        details.update(transaction_info)
        details["statusChange"] = {
            "from": current.value,
            "to": new_status.value,
            "timestamp": datetime.now(VN_TZ).isoformat(),
        }
        await db.execute(
            """
            UPDATE orders
            SET payment_status = $2, status = $3, transaction_details = $4::jsonb, updated_at = NOW()
            WHERE id = $1
            """,
            order_id,
            new_status.value,
            order_status_for_payment(new_status, order["status"]),
            json.dumps(details, default=str),
        )
    print(f"Đơn hàng #{order_id}: {current.value} -> {new_status.value}")

    if new_status == PaymentStatus.PAID and order["user_email"]:
        detail = await get_order_detail_service(order_id, db)
        send_order_confirmation_email(
            {
                "order_id": order_id,
                "user_email": order["user_email"],
                "user_name": order["user_name"],
                "total": detail.total,
                "shipping_fee": detail.shipping_fee,
                "payment_method": detail.payment_method.value,
                "items": [item.model_dump() for item in detail.items],
            }
        )
    return {"changed": True, "order_id": order_id, "payment_status": new_status}


async def get_payment_status_service(order_id: int, db) -> PaymentStatusResponse:
    select_query = """
        SELECT id, payment_method, payment_status, status, total, shipping_fee,
               transaction_details, created_at, updated_at
        FROM orders WHERE id = $1
    """
    order = await db.fetchrow(select_query, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
    return PaymentStatusResponse(
        order_id=order["id"],
        payment_method=PaymentMethod(order["payment_method"]),
        payment_status=PaymentStatus(order["payment_status"]),
        order_status=order["status"],
        total=order["total"],
        shipping_fee=order["shipping_fee"],
        transaction_details=load_json(order["transaction_details"]),
        created_at=order["created_at"],
        updated_at=order["updated_at"],
    )


async def confirm_cod_payment(order_id: int, db) -> CodPaymentResponse:
    async with db.transaction():
        order = await db.fetchrow(
            "SELECT id, status, payment_method, payment_status FROM orders WHERE id = $1 FOR UPDATE",
            order_id,
        )
        if not order:
            raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
        if order["payment_method"] != PaymentMethod.COD.value:
            raise HTTPException(status_code=400, detail="Đơn hàng không sử dụng phương thức thanh toán khi nhận hàng")
        if order["status"] == OrderStatus.CANCELLED.value:
            raise HTTPException(status_code=400, detail="Đơn hàng đã bị hủy")
        if order["status"] == OrderStatus.PENDING.value:
            await db.execute(
                "UPDATE orders SET status = $2, updated_at = NOW() WHERE id = $1",
                order_id,
                OrderStatus.PROCESSING.value,
            )
    print(f"Đơn hàng COD #{order_id} đã được xác nhận")
    return CodPaymentResponse(
        message="Đặt hàng thành công, bạn sẽ thanh toán khi nhận hàng",
        order_id=order_id,
        payment_status=PaymentStatus(order["payment_status"]),
    )


async def create_vnpay_payment(order_id: int, ip_addr: str, db) -> VnpayPaymentResponse:
    order = await db.fetchrow(
        "SELECT id, status, total, shipping_fee, payment_method, payment_status FROM orders WHERE id = $1",
        order_id,
    )
    if not order:
        raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
    if order["payment_method"] != PaymentMethod.VNPAY.value:
        raise HTTPException(status_code=400, detail="Đơn hàng không sử dụng phương thức thanh toán VNPay")
    if order["status"] == OrderStatus.CANCELLED.value:
        raise HTTPException(status_code=400, detail="Đơn hàng đã bị hủy")
    if order["payment_status"] == PaymentStatus.PAID.value:
        raise HTTPException(status_code=400, detail="Đơn hàng đã được thanh toán")
    if order["payment_status"] == PaymentStatus.FAILED.value:
        raise HTTPException(status_code=400, detail="Thanh toán đơn hàng đã thất bại, vui lòng đặt lại đơn hàng")

    url, txn_ref, expires_at = vnpay_service.build_payment_url(
        order_id, order["total"] + order["shipping_fee"], ip_addr
    )
    print(f"Đã tạo liên kết thanh toán VNPay cho đơn hàng #{order_id}: {txn_ref}")
    return VnpayPaymentResponse(url=url, order_id=order_id, txn_ref=txn_ref, expires_at=expires_at)


def transaction_info_from(params: Mapping[str, str]) -> dict:
    return {
        "gateway": PaymentMethod.VNPAY.value,
        "gatewayTransactionId": params.get("vnp_TransactionNo"),
        "txnRef": params.get("vnp_TxnRef"),
        "responseCode": params.get("vnp_ResponseCode"),
        "transactionStatus": params.get("vnp_TransactionStatus"),
        "bankCode": params.get("vnp_BankCode"),
        "payDate": params.get("vnp_PayDate"),
        "amount": vnpay_service.gateway_amount(params),
    }


async def apply_gateway_result(params: Mapping[str, str], db) -> dict:
    """Apply a signature-verified VNPay result and return the IPN acknowledgement."""
    order_id = vnpay_service.parse_order_id(params.get("vnp_TxnRef"))
    if order_id is None:
        return IPN_ORDER_NOT_FOUND
    try:
        order = await db.fetchrow(
            "SELECT id, total, shipping_fee, payment_status FROM orders WHERE id = $1",
            order_id,
        )
        if not order:
            return IPN_ORDER_NOT_FOUND
        if vnpay_service.gateway_amount(params) != order["total"] + order["shipping_fee"]:
            print(f"Số tiền VNPay không khớp với đơn hàng #{order_id}")
            return IPN_INVALID_AMOUNT
        if order["payment_status"] != PaymentStatus.PENDING.value:
            return IPN_ALREADY_CONFIRMED
        new_status = (
            PaymentStatus.PAID
            if vnpay_service.is_successful_payment(params)
            else PaymentStatus.FAILED
        )
        result = await update_payment_status(order_id, new_status, transaction_info_from(params), db)
        return IPN_SUCCESS if result["changed"] else IPN_ALREADY_CONFIRMED
    except HTTPException as http_exc:
        if http_exc.status_code == 409:
            return IPN_ALREADY_CONFIRMED
        if http_exc.status_code == 404:
            return IPN_ORDER_NOT_FOUND
        print(f"Xử lý kết quả VNPay thất bại: {http_exc.detail}")
        return IPN_UNKNOWN_ERROR
    except Exception as e:
        print(f"Xử lý kết quả VNPay thất bại: {e}")
        return IPN_UNKNOWN_ERROR


async def is_order_paid(order_id: int, db) -> bool:
    order = await db.fetchrow("SELECT id, payment_status FROM orders WHERE id = $1", order_id)
    return bool(order) and order["payment_status"] == PaymentStatus.PAID.value


async def handle_vnpay_ipn(params: Mapping[str, str], db) -> dict:
    if not vnpay_service.verify_signature(params):
        print(f"Chữ ký VNPay IPN không hợp lệ: {params.get('vnp_TxnRef')}")
        return IPN_INVALID_CHECKSUM
    return await apply_gateway_result(params, db)


async def handle_vnpay_return(params: Mapping[str, str], db) -> str:
    query = dict(params)
    if not params.get("vnp_TxnRef"):
        query["missing_txn_ref"] = "true"
    elif not vnpay_service.verify_signature(params):
        print(f"Chữ ký VNPay return không hợp lệ: {params.get('vnp_TxnRef')}")
        query["invalid_signature"] = "true"
    else:
        ack = await apply_gateway_result(params, db)
        if ack is IPN_ORDER_NOT_FOUND:
            query["order_not_found"] = "true"
        elif ack is IPN_INVALID_AMOUNT:
            query["server_error"] = "true"
            query["error_message"] = "Số tiền thanh toán không khớp với đơn hàng"
        elif ack is IPN_UNKNOWN_ERROR:
            query["server_error"] = "true"
        elif not await is_order_paid(vnpay_service.parse_order_id(params.get("vnp_TxnRef")), db):
            # the gateway can answer 00 with an unsuccessful transaction status
            query["payment_failed"] = "true"
    return f"{FRONTEND_URL}/payment/result?{urlencode(query)}"
