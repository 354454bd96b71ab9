from pydantic import BaseModel
from typing import List, Optional


class ProductVariant(BaseModel):
    id: int
    size: Optional[str] = None
    color: Optional[str] = None
    stock: int = 0


class Product(BaseModel):
    id: int
    name: str
    price: int
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    variants: List[ProductVariant] = []
