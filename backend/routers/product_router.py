from fastapi import APIRouter, HTTPException, Depends
import asyncpg
from typing import List
from utils.dependencies import get_connection
from services.product_service import get_products
from models.product_model import Product


router = APIRouter(prefix="/api", tags=["product"])

@router.get("/products", response_model=List[Product])
async def get_products_endpoint(db: asyncpg.Connection = Depends(get_connection)):
    try:
       return await get_products(db)
    except HTTPException as http_exc:
        print(f"{http_exc.status_code} - {http_exc.detail}")
        raise http_exc
    except Exception as e:
        print(f"Lấy danh sách sản phẩm thất bại: {e}")
        raise HTTPException(status_code=500, detail="Lấy danh sách sản phẩm thất bại")
