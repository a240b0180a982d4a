from typing import List

from pydantic import BaseModel, Field


class AddItemRequest(BaseModel):
    product_id: int = Field(..., description="Catalog id of the product to add")


class QuantityUpdate(BaseModel):
    # zero or negative removes the line
    quantity: int


class CartItemOut(BaseModel):
    id: int
    name: str
    price: float
    quantity: int
    image_url: str


class CartOut(BaseModel):
    items: List[CartItemOut] = []
    total_items: int = 0
    total_price: float = 0.0
