from fastapi import HTTPException
from typing import List
import json
from models.order_model import (
    Address,
    ItemVariant,
    OrderDetail,
    OrderItem,
    OrderRequest,
    OrderResponse,
    OrderStatus,
    OrderSummary,
)
from models.payment_model import PaymentMethod, PaymentStatus
from services.mail_service import send_order_confirmation_email

SHIPPING_FEE = 30000
FREE_SHIPPING_THRESHOLD = 1000000

ORDER_DETAIL_QUERY = """
    SELECT o.*, a.full_name, a.phone, a.address_line, a.city, a.state, a.country
    FROM orders o
    JOIN addresses a ON a.id = o.address_id
    WHERE o.id = $1
"""
ORDER_ITEMS_QUERY = """
    SELECT id, product_id, variant_id, product_name, image, unit_price, quantity, size, color
    FROM order_items
    WHERE order_id = $1
    ORDER BY id
"""


def calculate_shipping_fee(total: int) -> int:
    return SHIPPING_FEE if total < FREE_SHIPPING_THRESHOLD else 0


def load_json(value):
    if value is None:
        return None
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


def build_order_detail(order, items) -> OrderDetail:
    return OrderDetail(
        id=order["id"],
        user_id=order["user_id"],
        total=order["total"],
        shipping_fee=order["shipping_fee"],
        payment_method=PaymentMethod(order["payment_method"]),
        status=OrderStatus(order["status"]),
        payment_status=PaymentStatus(order["payment_status"]),
        transaction_details=load_json(order["transaction_details"]),
        created_at=order["created_at"],
        updated_at=order["updated_at"],
        address=Address(
            id=order["address_id"],
            full_name=order["full_name"],
            phone=order["phone"],
            address_line=order["address_line"],
            city=order["city"],
            state=order["state"],
            country=order["country"],
        ),
        items=[
            OrderItem(
                id=item["id"],
                product_id=item["product_id"],
                name=item["product_name"],
                image=item["image"],
                price=item["unit_price"],
                quantity=item["quantity"],
                variant=ItemVariant(
                    id=item["variant_id"], size=item["size"], color=item["color"]
                ),
            )
            for item in items
        ],
    )


async def get_order_detail_service(order_id: int, db) -> OrderDetail:
    order = await db.fetchrow(ORDER_DETAIL_QUERY, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Không tìm thấy đơn hàng")
    items = await db.fetch(ORDER_ITEMS_QUERY, order_id)
    return build_order_detail(order, items)


async def get_user_orders_service(user_id: int, db) -> List[OrderSummary]:
    select_query = """
        SELECT o.id, o.total, o.shipping_fee, o.payment_method, o.status,
               o.payment_status, o.created_at, COUNT(oi.id) AS item_count
        FROM orders o
        LEFT JOIN order_items oi ON oi.order_id = o.id
        WHERE o.user_id = $1
        GROUP BY o.id
        ORDER BY o.created_at DESC
    """
    orders = await db.fetch(select_query, user_id)
    return [OrderSummary(**dict(order)) for order in orders]


def merge_order_items(order_data: OrderRequest):
    quantities = {}
    for item in order_data.items:
        quantities[item.variant_id] = quantities.get(item.variant_id, 0) + item.quantity
    return quantities


async def create_order_service(order_data: OrderRequest, user: dict, db) -> OrderResponse:
    quantities = merge_order_items(order_data)
    async with db.transaction():
        address = await db.fetchrow(
            "SELECT id, user_id FROM addresses WHERE id = $1", order_data.address_id
        )
        if not address or address["user_id"] != user["id"]:
            raise HTTPException(status_code=400, detail="Địa chỉ giao hàng không hợp lệ")

        line_items = []
        total = 0
        for variant_id in sorted(quantities):
            quantity = quantities[variant_id]
            variant = await db.fetchrow(
                """
                SELECT v.id, v.product_id, v.size, v.color, v.stock,
                       p.name, p.price, p.is_active,
                       (SELECT pi.url FROM product_images pi
                        WHERE pi.product_id = p.id ORDER BY pi.id LIMIT 1) AS image
                FROM product_variants v
                JOIN products p ON p.id = v.product_id
                WHERE v.id = $1
                FOR UPDATE OF v
                """,
                variant_id,
            )
            if not variant or not variant["is_active"]:
                raise HTTPException(status_code=404, detail="Không tìm thấy sản phẩm")
            if quantity > variant["stock"]:
                raise HTTPException(
                    status_code=400,
                    detail=f"Số lượng {variant['name']} vượt quá tồn kho",
                )
            total += variant["price"] * quantity
            line_items.append((variant, quantity))

        shipping_fee = calculate_shipping_fee(total)
        order_id = await db.fetchval(
            """
            INSERT INTO orders (user_id, address_id, total, shipping_fee, payment_method, status, payment_status)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING id
            """,
            user["id"],
            order_data.address_id,
            total,
            shipping_fee,
            order_data.payment_method.value,
            OrderStatus.PENDING.value,
            PaymentStatus.PENDING.value,
        )
        for variant, quantity in line_items:
            await db.execute(
                """
                INSERT INTO order_items (order_id, product_id, variant_id, product_name, image, unit_price, quantity, size, color)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                """,
                order_id,
                variant["product_id"],
                variant["id"],
                variant["name"],
                variant["image"],
                variant["price"],
                quantity,
                variant["size"],
                variant["color"],
            )
            await db.execute(
                "UPDATE product_variants SET stock = stock - $1 WHERE id = $2",
                quantity,
                variant["id"],
            )
    print(f"Đã tạo đơn hàng #{order_id}: {total} + {shipping_fee} VND, {order_data.payment_method.value}")

    order = await get_order_detail_service(order_id, db)
    if order.payment_method == PaymentMethod.COD:
        send_order_confirmation_email(build_mail_data(order, user))
    return OrderResponse(message="Đơn hàng đã được tạo thành công.", order=order)


def build_mail_data(order: OrderDetail, user: dict) -> dict:
    return {
        "order_id": order.id,
        "user_email": user["email"],
        "user_name": user.get("name"),
        "total": order.total,
        "shipping_fee": order.shipping_fee,
        "payment_method": order.payment_method.value,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "price": item.price,
                "image": item.image,
            }
            for item in order.items
        ],
    }
