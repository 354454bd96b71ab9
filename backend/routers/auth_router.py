from fastapi import APIRouter, HTTPException, Depends
from utils.dependencies import get_connection
from utils.auth import require_auth
from services.auth_service import login_service, register_service
from models.auth_model import LoginRequest, LoginResponse, RegisterRequest, User
import asyncpg


router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", response_model=LoginResponse, status_code=201)
async def register(data: RegisterRequest, db: asyncpg.Connection = Depends(get_connection)):
    try:
        return await register_service(data, db)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        print(f"Đăng ký tài khoản thất bại: {e}")
        raise HTTPException(status_code=500, detail="Đăng ký thất bại, vui lòng thử lại sau")


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, db: asyncpg.Connection = Depends(get_connection)):
    try:
        return await login_service(data, db)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        print(f"Đăng nhập thất bại: {e}")
        raise HTTPException(status_code=500, detail="Đăng nhập thất bại, vui lòng thử lại sau")


@router.get("/user", response_model=User)
async def get_user(current_user = Depends(require_auth)):
    return User(**current_user)

@router.post("/logout")
async def logout(current_user = Depends(require_auth)):
    return {"message": "Đăng xuất thành công"}
