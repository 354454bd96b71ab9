from fastapi import FastAPI, HTTPException
from contextlib import asynccontextmanager
from db.database import close_pool, create_pool
from fastapi.middleware.cors import CORSMiddleware
from routers import (
    address_router,
    auth_router,
    order_router,
    page_router,
    payment_router,
    product_router,
)
from dotenv import load_dotenv
import os

load_dotenv()

IMG_URL = os.getenv("IMG_URL", "")
RECAPTCHA_SITE_KEY = os.getenv("RECAPTCHA_SITE_KEY", "")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        app.state.db_pool = await create_pool()
    except Exception as e:
        print(f"Khởi động dịch vụ thất bại: {e}")
        app.state.db_pool = None
    try:
        yield
    finally:
        if app.state.db_pool:
            await close_pool(app.state.db_pool)
            app.state.db_pool = None


app = FastAPI(lifespan=lifespan)

origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(address_router.router)
app.include_router(product_router.router)
app.include_router(order_router.router)
app.include_router(payment_router.router)
app.include_router(page_router.router)


@app.get("/status")
async def check_status():
    if not getattr(app.state, "db_pool", None):
        raise HTTPException(status_code=500, detail="Dịch vụ backend không khả dụng")
    return {"status": "success", "message": "Dịch vụ backend đang hoạt động bình thường"}


@app.get("/api/config")
async def public_config():
    return {"imageBaseUrl": IMG_URL, "recaptchaSiteKey": RECAPTCHA_SITE_KEY}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
