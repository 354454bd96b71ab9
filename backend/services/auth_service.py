from fastapi import HTTPException
from pydantic import EmailStr
import bcrypt
from utils.auth import create_jwt_token
from models.auth_model import LoginRequest, LoginResponse, RegisterRequest, User

INVALID_CREDENTIALS = "Email hoặc mật khẩu không đúng"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def public_user(user_data: dict) -> User:
    return User(**{key: value for key, value in user_data.items() if key != "password_hash"})


async def get_user_by_email(email: EmailStr, db):
    try:
        select_query = "SELECT * FROM users WHERE email = $1"
        user_data = await db.fetchrow(select_query, email)
        return dict(user_data) if user_data else None
    except Exception as e:
        print(f"Truy vấn thông tin người dùng thất bại: {e}")
        raise HTTPException(status_code=500, detail="Truy vấn thông tin người dùng thất bại")


async def register_service(data: RegisterRequest, db) -> LoginResponse:
    if await get_user_by_email(data.email, db):
        raise HTTPException(status_code=409, detail="Email đã được sử dụng")
    insert_query = """
        INSERT INTO users (email, name, role, password_hash)
        VALUES ($1, $2, 'customer', $3)
        RETURNING *
    """
    user_data = dict(await db.fetchrow(insert_query, data.email, data.name, hash_password(data.password)))
    print(f"Đã tạo tài khoản #{user_data['id']}: {data.email}")
    return LoginResponse(user=public_user(user_data), token=create_jwt_token(user_data["id"]))


async def login_service(data: LoginRequest, db) -> LoginResponse:
    user_data = await get_user_by_email(data.email, db)
    if not user_data or not check_password(data.password, user_data.get("password_hash")):
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
    return LoginResponse(user=public_user(user_data), token=create_jwt_token(user_data["id"]))
