from fastapi import HTTPException
from models.product_model import Product, ProductVariant


async def get_products(db):
    try:
        select_query = """
            SELECT p.id, p.name, p.price, p.description, p.category, p.is_active,
                   (SELECT pi.url FROM product_images pi
                    WHERE pi.product_id = p.id ORDER BY pi.id LIMIT 1) AS image
            FROM products p
            WHERE p.is_active = true
            ORDER BY p.id
        """
        products = await db.fetch(select_query)
        variants = await db.fetch(
            "SELECT id, product_id, size, color, stock FROM product_variants ORDER BY id"
        )
        variants_by_product = {}
        for variant in variants:
            variants_by_product.setdefault(variant["product_id"], []).append(
                ProductVariant(
                    id=variant["id"],
                    size=variant["size"],
                    color=variant["color"],
                    stock=variant["stock"],
                )
            )
        return [
            Product(**dict(product), variants=variants_by_product.get(product["id"], []))
            for product in products
        ]
    except Exception as e:
        print(f"Lấy danh sách sản phẩm thất bại: {e}")
        raise HTTPException(status_code=500, detail="Lấy danh sách sản phẩm thất bại")
