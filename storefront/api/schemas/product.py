# storefront/api/schemas/product.py
from typing import Optional

from pydantic import BaseModel, Field


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = ""
    price: float = Field(..., ge=0)
    image_url: Optional[str] = ""
    category: Optional[str] = ""
    stock: int = 0
    created_at: Optional[str] = None
