from datetime import datetime, timezone
import pytest
from services import vnpay_service

TEST_SECRET = "TESTHASHSECRET"


class FakeTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeConnection:
    """In-memory stand-in for the asyncpg queries the services issue."""

    def __init__(self):
        self.users = {}
        self.addresses = {}
        self.variants = {}
        self.orders = {}
        self.order_items = []
        self.executed = []

    def transaction(self):
        return FakeTransaction()

    def add_user(self, user_id, email="khach@example.com", name="Nguyễn Văn A", role="customer",
                 password_hash=None):
        now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "name": name,
            "role": role,
            "password_hash": password_hash,
            "created_at": now,
            "updated_at": now,
        }
        return self.users[user_id]

    def add_address(self, address_id, user_id=1):
        self.addresses[address_id] = {
            "id": address_id,
            "user_id": user_id,
            "full_name": "Nguyễn Văn A",
            "phone": "0901234567",
            "address_line": "12 Lê Lợi",
            "city": "Hồ Chí Minh",
            "state": "Quận 1",
            "country": "Việt Nam",
        }
        return self.addresses[address_id]

    def add_order(self, order_id, user_id=1, total=500000, shipping_fee=30000,
                  payment_method="vnpay", payment_status="PENDING", status="pending",
                  transaction_details=None):
        if user_id not in self.users:
            self.add_user(user_id)
        if 10 not in self.addresses:
            self.add_address(10, user_id)
        created = datetime(2025, 3, 5, 2, 30, tzinfo=timezone.utc)
        self.orders[order_id] = {
            "id": order_id,
            "user_id": user_id,
            "address_id": 10,
            "total": total,
            "shipping_fee": shipping_fee,
            "payment_method": payment_method,
            "status": status,
            "payment_status": payment_status,
            "transaction_details": transaction_details,
            "created_at": created,
            "updated_at": created,
        }
        return self.orders[order_id]

    def add_item(self, order_id, name="Áo thun basic", price=250000, quantity=2,
                 size="M", color="Trắng", image="/uploads/ao-thun.jpg"):
        self.order_items.append(
            {
                "id": len(self.order_items) + 1,
                "order_id": order_id,
                "product_id": 1,
                "variant_id": 100 + len(self.order_items),
                "product_name": name,
                "image": image,
                "unit_price": price,
                "quantity": quantity,
                "size": size,
                "color": color,
            }
        )

    def add_variant(self, variant_id, name="Áo thun basic", price=250000, stock=5,
                    size="M", color="Trắng", is_active=True):
        self.variants[variant_id] = {
            "id": variant_id,
            "product_id": variant_id // 10 or 1,
            "size": size,
            "color": color,
            "stock": stock,
            "name": name,
            "price": price,
            "is_active": is_active,
            "image": f"/uploads/{variant_id}.jpg",
        }

    def _order_row(self, order_id):
        order = self.orders.get(order_id)
        if not order:
            return None
        row = dict(order)
        address = self.addresses.get(order["address_id"], {})
        for key in ("full_name", "phone", "address_line", "city", "state", "country"):
            row[key] = address.get(key)
        user = self.users.get(order["user_id"], {})
        row["user_email"] = user.get("email")
        row["user_name"] = user.get("name")
        return row

    async def fetchrow(self, query, *args):
        if "INSERT INTO users" in query:
            email, name, password_hash = args
            user_id = max(self.users, default=0) + 1
            return dict(self.add_user(user_id, email=email, name=name, password_hash=password_hash))
        if "INSERT INTO addresses" in query:
            user_id, full_name, phone, address_line, city, state, country = args
            address = self.add_address(max(self.addresses, default=0) + 1, user_id)
            address.update(
                full_name=full_name, phone=phone, address_line=address_line,
                city=city, state=state, country=country,
            )
            return {key: value for key, value in address.items() if key != "user_id"}
        if "FROM users WHERE email" in query:
            for user in self.users.values():
                if user["email"] == args[0]:
                    return dict(user)
            return None
        if "FROM product_variants v" in query:
            variant = self.variants.get(args[0])
            return dict(variant) if variant else None
        if "FROM addresses" in query:
            address = self.addresses.get(args[0])
            return dict(address) if address else None
        if "FROM users" in query:
            user = self.users.get(args[0])
            return dict(user) if user else None
        if "FROM orders" in query:
            return self._order_row(args[0])
        raise AssertionError(f"unexpected fetchrow: {query}")

    async def fetch(self, query, *args):
        if "FROM order_items" in query:
            return [dict(item) for item in self.order_items if item["order_id"] == args[0]]
        if "FROM addresses" in query:
            return [
                {key: value for key, value in address.items() if key != "user_id"}
                for address_id, address in sorted(self.addresses.items())
                if address["user_id"] == args[0]
            ]
        if "FROM products p" in query:
            products = {}
            for variant in self.variants.values():
                if variant["is_active"]:
                    products.setdefault(
                        variant["product_id"],
                        {
                            "id": variant["product_id"],
                            "name": variant["name"],
                            "price": variant["price"],
                            "description": None,
                            "category": "ao",
                            "is_active": True,
                            "image": variant["image"],
                        },
                    )
            return [products[key] for key in sorted(products)]
        if "FROM product_variants" in query:
            return [dict(variant) for variant in sorted(self.variants.values(), key=lambda v: v["id"])]
        if "FROM orders o" in query:
            return [
                {
                    "id": order["id"],
                    "total": order["total"],
                    "shipping_fee": order["shipping_fee"],
                    "payment_method": order["payment_method"],
                    "status": order["status"],
                    "payment_status": order["payment_status"],
                    "created_at": order["created_at"],
                    "item_count": sum(1 for item in self.order_items if item["order_id"] == order["id"]),
                }
                for order in self.orders.values()
                if order["user_id"] == args[0]
            ]
        raise AssertionError(f"unexpected fetch: {query}")

    async def fetchval(self, query, *args):
        if "INSERT INTO orders" in query:
            order_id = max(self.orders, default=0) + 1
            user_id, address_id, total, shipping_fee, method, status, payment_status = args
            order = self.add_order(
                order_id, user_id=user_id, total=total, shipping_fee=shipping_fee,
                payment_method=method, payment_status=payment_status, status=status,
            )
            order["address_id"] = address_id
            return order_id
        raise AssertionError(f"unexpected fetchval: {query}")

    async def execute(self, query, *args):
        self.executed.append((query, args))
        if "INSERT INTO order_items" in query:
            order_id, product_id, variant_id, name, image, price, quantity, size, color = args
            self.order_items.append(
                {
                    "id": len(self.order_items) + 1,
                    "order_id": order_id,
                    "product_id": product_id,
                    "variant_id": variant_id,
                    "product_name": name,
                    "image": image,
                    "unit_price": price,
                    "quantity": quantity,
                    "size": size,
                    "color": color,
                }
            )
        elif "UPDATE product_variants" in query:
            quantity, variant_id = args
            self.variants[variant_id]["stock"] -= quantity
        elif "UPDATE orders" in query and "payment_status = $2" in query:
            order_id, payment_status, status, details = args
            self.orders[order_id].update(
                payment_status=payment_status, status=status, transaction_details=details
            )
        elif "UPDATE orders SET status" in query:
            order_id, status = args
            self.orders[order_id]["status"] = status
        return "UPDATE 1"


@pytest.fixture
def db():
    return FakeConnection()


@pytest.fixture
def vnpay_secret(monkeypatch):
    monkeypatch.setattr(vnpay_service, "VNP_HASH_SECRET", TEST_SECRET)
    monkeypatch.setattr(vnpay_service, "VNP_TMN_CODE", "FASHION1")
    return TEST_SECRET


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def fake_send(order_data):
        sent.append(order_data)
        return {"success": True, "email_id": "test"}

    monkeypatch.setattr("services.payment_service.send_order_confirmation_email", fake_send)
    monkeypatch.setattr("services.order_service.send_order_confirmation_email", fake_send)
    return sent


def signed_params(order_id=5, amount=530000, response_code="00", transaction_status="00", **extra):
    params = {
        "vnp_Amount": str(amount * 100),
        "vnp_BankCode": "NCB",
        "vnp_OrderInfo": f"Thanh toan don hang {order_id}",
        "vnp_PayDate": "20250305093000",
        "vnp_ResponseCode": response_code,
        "vnp_TmnCode": "FASHION1",
        "vnp_TransactionNo": "14256789",
        "vnp_TransactionStatus": transaction_status,
        "vnp_TxnRef": f"{order_id}_20250305092900",
    }
    params.update(extra)
    params["vnp_SecureHash"] = vnpay_service.sign_params(params, TEST_SECRET)
    return params


@pytest.fixture
def make_vnpay_params(vnpay_secret):
    return signed_params
