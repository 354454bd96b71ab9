from fastapi import APIRouter, HTTPException, Depends
from utils.dependencies import get_connection
from utils.auth import require_auth, verify_order_ownership
from models.order_model import OrderRequest, OrderResponse, OrderDetail, OrderSummary
from services.order_service import (
    create_order_service,
    get_order_detail_service,
    get_user_orders_service,
)
import asyncpg
from typing import List

router = APIRouter(prefix="/api", tags=["order"])


@router.post("/orders", response_model=OrderResponse, status_code=201)
async def create_order(
    order_data: OrderRequest,
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        return await create_order_service(order_data, current_user, db)
    except HTTPException as http_exc:
        print(f"{http_exc.status_code} - {http_exc.detail}")
        raise http_exc
    except Exception as e:
        print(f"Tạo đơn hàng thất bại: {e}")
        raise HTTPException(status_code=500, detail="Tạo đơn hàng thất bại, vui lòng thử lại")


@router.get("/orders", response_model=List[OrderSummary])
async def get_user_orders(
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        return await get_user_orders_service(current_user["id"], db)
    except Exception as e:
        print(f"Lấy danh sách đơn hàng thất bại: {e}")
        raise HTTPException(status_code=500, detail="Lấy danh sách đơn hàng thất bại")


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order_detail(
    order_id: int,
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        await verify_order_ownership(order_id, current_user, db)
        return await get_order_detail_service(order_id, db)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        print(f"Lấy chi tiết đơn hàng thất bại: {e}")
        raise HTTPException(status_code=500, detail="Lấy chi tiết đơn hàng thất bại")
