import asyncpg
from dotenv import load_dotenv
import os

load_dotenv()

DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", 5432)
DB_DATABASE = os.getenv("DB_DATABASE")
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 2))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 15))


def build_db_url():
    """DATABASE_URL wins over the individual DB_* settings."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url
    return f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_DATABASE}"


DB_URL = build_db_url()


async def create_pool(dsn: str = DB_URL):
    try:
        pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=DB_POOL_MIN_SIZE,
            max_size=DB_POOL_MAX_SIZE,
            command_timeout=30,
        )
        print(f"Đã tạo pool kết nối cơ sở dữ liệu ({DB_HOST}:{DB_PORT}/{DB_DATABASE})")
        return pool
    except Exception as e:
        print(f"Không thể tạo pool kết nối tới {DB_HOST}: {e}")
        raise


async def close_pool(pool: asyncpg.Pool):
    if pool:
        await pool.close()
        print("Đã đóng pool kết nối cơ sở dữ liệu")
