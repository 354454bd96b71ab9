from fastapi import APIRouter, HTTPException, Depends
import asyncpg
from typing import List
from utils.dependencies import get_connection
from utils.auth import require_auth
from models.order_model import Address, AddressRequest
from services.address_service import create_address_service, get_addresses_service

router = APIRouter(prefix="/api", tags=["address"])


@router.get("/addresses", response_model=List[Address])
async def get_addresses(
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        return await get_addresses_service(current_user["id"], db)
    except Exception as e:
        print(f"Lấy danh sách địa chỉ thất bại: {e}")
        raise HTTPException(status_code=500, detail="Lấy danh sách địa chỉ thất bại")


@router.post("/addresses", response_model=Address, status_code=201)
async def create_address(
    data: AddressRequest,
    current_user: dict = Depends(require_auth),
    db: asyncpg.Connection = Depends(get_connection),
):
    try:
        return await create_address_service(data, current_user["id"], db)
    except HTTPException as http_exc:
        print(f"{http_exc.status_code} - {http_exc.detail}")
        raise http_exc
    except Exception as e:
        print(f"Thêm địa chỉ thất bại: {e}")
        raise HTTPException(status_code=500, detail="Thêm địa chỉ thất bại")
