"""Pydantic request/response schemas for the Catalogue API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from catalogue.product.product import DEFAULT_CATEGORY, Product

# --- Product Request Schemas ---


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Mechanical Keyboard",
                    "description": "Tenkeyless, brown switches",
                    "price": "79.99",
                    "stock": 30,
                    "category": "Electronics",
                }
            ]
        }
    }

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: str = DEFAULT_CATEGORY
    active: bool = True


class UpdateProductRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0)
    category: str | None = None


class StockLevelRequest(BaseModel):
    quantity: int


# --- Response Schemas ---


class ProductResponse(BaseModel):
    product_id: int
    name: str
    description: str | None
    price: Decimal
    stock: int
    category: str
    active: bool
    created_at: datetime

    @classmethod
    def from_product(cls, product: Product) -> ProductResponse:
        return cls(
            product_id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
            category=product.category,
            active=product.active,
            created_at=product.created_at,
        )
