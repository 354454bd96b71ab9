from fastapi import HTTPException
from typing import List
from models.order_model import Address, AddressRequest

MAX_ADDRESSES = 10


async def get_addresses_service(user_id: int, db) -> List[Address]:
    select_query = """
        SELECT id, full_name, phone, address_line, city, state, country
        FROM addresses
        WHERE user_id = $1
        ORDER BY id
    """
    rows = await db.fetch(select_query, user_id)
    return [Address(**dict(row)) for row in rows]


async def create_address_service(data: AddressRequest, user_id: int, db) -> Address:
    existing = await get_addresses_service(user_id, db)
    if len(existing) >= MAX_ADDRESSES:
        raise HTTPException(status_code=400, detail=f"Chỉ được lưu tối đa {MAX_ADDRESSES} địa chỉ")
    insert_query = """
        INSERT INTO addresses (user_id, full_name, phone, address_line, city, state, country)
        VALUES ($1, $2, $3, $4, $5, $6, $7)
        RETURNING id, full_name, phone, address_line, city, state, country
    """
    row = await db.fetchrow(
        insert_query,
        user_id,
        data.full_name,
        data.phone,
        data.address_line,
        data.city,
        data.state,
        data.country,
    )
    print(f"Người dùng #{user_id} đã thêm địa chỉ #{row['id']}")
    return Address(**dict(row))
