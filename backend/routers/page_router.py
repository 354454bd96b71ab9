from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional
import asyncpg
from utils.dependencies import get_connection
from utils.auth import require_auth, security, verify_order_ownership
from models.view_model import ConfirmationPage, PaymentResultPage
from services.order_service import get_order_detail_service
from services.vnpay_service import parse_order_id
from views.order_confirmation_view import OrderConfirmationView
from views.payment_result_view import PaymentResultView

router = APIRouter(prefix="/api/pages", tags=["page"])


@router.get("/order-confirmation/{order_ref}", response_model=ConfirmationPage)
async def order_confirmation_page(
    order_ref: str,
    payment: Optional[str] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    async def fetch_order(order_ref: str, token: str):
        order_id = parse_order_id(order_ref)
        if order_id is None:
            raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
        await verify_order_ownership(order_id, current_user, db)
        return await get_order_detail_service(order_id, db)

    view = OrderConfirmationView(fetch_order)
    token = credentials.credentials if credentials else None
    await view.load(order_ref, token, payment)
    view.close()
    return view.render()


@router.get("/payment-result", response_model=PaymentResultPage)
async def payment_result_page(request: Request):
    view = PaymentResultView()
    view.mount(dict(request.query_params))
    return view.render()
