import asyncpg
from fastapi import Request, HTTPException


async def get_connection(request: Request):
    if not hasattr(request.app.state, "db_pool") or not request.app.state.db_pool:
        print("Không lấy được pool kết nối cơ sở dữ liệu")
        raise HTTPException(status_code=503, detail="Dịch vụ cơ sở dữ liệu không khả dụng")
    pool: asyncpg.Pool = request.app.state.db_pool
    async with pool.acquire() as connection:
        yield connection
