from fastapi import HTTPException, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import jwt
import os
from zoneinfo import ZoneInfo
from datetime import datetime, timedelta
from dotenv import load_dotenv
from utils.dependencies import get_connection
import asyncpg

VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")
load_dotenv()

JWT_KEY = os.getenv("JWT_KEY")

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: asyncpg.Connection = Depends(get_connection),
):
    if not credentials:
        return None
    try:
        payload = jwt.decode(credentials.credentials, JWT_KEY, algorithms=["HS256"])
        user_id = payload.get("user_id")
        if not user_id:
            return None
        select_query = "SELECT id, email, name, role, created_at, updated_at FROM users WHERE id = $1"
        user_data = await db.fetchrow(select_query, user_id)
        return dict(user_data) if user_data else None
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError):
        return None
    except Exception as e:
        print(f"Không thể lấy thông tin người dùng hiện tại: {e}")
        return None


async def require_auth(current_user: Optional[dict] = Depends(get_current_user)):
    if not current_user:
        raise HTTPException(status_code=401, detail="Vui lòng đăng nhập để tiếp tục")
    return current_user


def create_jwt_token(user_id, key: Optional[str] = None):
    expired_at = datetime.now(tz=VN_TZ) + timedelta(days=7)
    payload = {"user_id": user_id, "iat": datetime.now(tz=VN_TZ), "exp": expired_at}
    return jwt.encode(payload, key or JWT_KEY, algorithm="HS256")


async def verify_order_ownership(order_id: int, user: dict, db):
    try:
        select_query = "SELECT id, user_id FROM orders WHERE id = $1"
        order = await db.fetchrow(select_query, order_id)
    except Exception as e:
        print(f"Kiểm tra quyền truy cập đơn hàng thất bại: {e}")
        raise HTTPException(status_code=500, detail="Kiểm tra quyền truy cập đơn hàng thất bại")
    if not order:
        raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
    if order["user_id"] != user["id"] and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Bạn không có quyền truy cập đơn hàng này")
    return True
