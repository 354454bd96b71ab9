from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import RedirectResponse
import asyncpg
from utils.dependencies import get_connection
from utils.auth import require_auth, verify_order_ownership
from models.payment_model import (
    CodPaymentResponse,
    OrderPaymentRequest,
    PaymentStatusResponse,
    VnpayPaymentResponse,
)
from services.payment_service import (
    confirm_cod_payment,
    create_vnpay_payment,
    get_payment_status_service,
    handle_vnpay_ipn,
    handle_vnpay_return,
    IPN_UNKNOWN_ERROR,
)

router = APIRouter(prefix="/api/payments", tags=["payment"])


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"


@router.post("/cod", response_model=CodPaymentResponse)
async def cod_payment_endpoint(
    payment: OrderPaymentRequest,
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        await verify_order_ownership(payment.order_id, current_user, db)
        return await confirm_cod_payment(payment.order_id, db)
    except HTTPException as http_exc:
        print(f"{http_exc.status_code} - {http_exc.detail}")
        raise http_exc
    except Exception as e:
        print(f"Xử lý thanh toán COD thất bại: {e}")
        raise HTTPException(status_code=500, detail="Có lỗi xảy ra khi xử lý thanh toán COD")


@router.post("/vnpay", response_model=VnpayPaymentResponse)
async def vnpay_payment_endpoint(
    payment: OrderPaymentRequest,
    request: Request,
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        await verify_order_ownership(payment.order_id, current_user, db)
        return await create_vnpay_payment(payment.order_id, client_ip(request), db)
    except HTTPException as http_exc:
        print(f"{http_exc.status_code} - {http_exc.detail}")
        raise http_exc
    except Exception as e:
        print(f"Tạo thanh toán VNPay thất bại: {e}")
        raise HTTPException(status_code=500, detail="Không thể tạo thanh toán VNPay")


@router.get("/vnpay/ipn")
async def vnpay_ipn_endpoint(request: Request, db: asyncpg.Connection = Depends(get_connection)):
    try:
        return await handle_vnpay_ipn(dict(request.query_params), db)
    except Exception as e:
        print(f"Xử lý VNPay IPN thất bại: {e}")
        return IPN_UNKNOWN_ERROR


@router.get("/vnpay/return")
async def vnpay_return_endpoint(request: Request, db: asyncpg.Connection = Depends(get_connection)):
    try:
        redirect_url = await handle_vnpay_return(dict(request.query_params), db)
        return RedirectResponse(url=redirect_url, status_code=302)
    except Exception as e:
        print(f"Xử lý VNPay return thất bại: {e}")
        raise HTTPException(status_code=500, detail="Xử lý kết quả thanh toán thất bại")


@router.get("/{order_id}", response_model=PaymentStatusResponse)
async def payment_status_endpoint(
    order_id: int,
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        await verify_order_ownership(order_id, current_user, db)
        return await get_payment_status_service(order_id, db)
    except HTTPException as http_exc:
        print(f"{http_exc.status_code} - {http_exc.detail}")
        raise http_exc
    except Exception as e:
        print(f"Lấy trạng thái thanh toán thất bại: {e}")
        raise HTTPException(status_code=500, detail="Lấy trạng thái thanh toán thất bại")
