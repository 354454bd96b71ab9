import httpx
from typing import Optional
import os
from dotenv import load_dotenv
from models.order_model import OrderDetail

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000/api")


class OrderFetchError(Exception):
    """Order could not be fetched: transport failure, 4xx/5xx or bad payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OrderApiClient:
    def __init__(self, client: httpx.AsyncClient, base_url: str = API_BASE_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def get_order_by_id(self, order_id, token: str) -> OrderDetail:
        url = f"{self.base_url}/orders/{order_id}"
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await self.client.get(url, headers=headers)
            response.raise_for_status()
            return OrderDetail(**response.json())
        except httpx.HTTPStatusError as e:
            print(f"Lấy đơn hàng {order_id} thất bại: {e.response.status_code}")
            raise OrderFetchError(
                "Không tìm thấy đơn hàng", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            print(f"Không thể kết nối tới máy chủ đơn hàng: {e}")
            raise OrderFetchError("Không thể kết nối tới máy chủ") from e
        except (ValueError, TypeError) as e:
            print(f"Dữ liệu đơn hàng {order_id} không hợp lệ: {e}")
            raise OrderFetchError("Dữ liệu đơn hàng không hợp lệ") from e
