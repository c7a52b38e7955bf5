"""FastAPI endpoints for the Catalogue domain."""

from fastapi import APIRouter, Depends, Request, Response

from catalogue.api.schemas import (
    CreateProductRequest,
    ProductResponse,
    StockLevelRequest,
    UpdateProductRequest,
)
from catalogue.product.product import Product
from catalogue.product.store import CatalogStore
from shared.exceptions import ProductNotFound

product_router = APIRouter(prefix="/products", tags=["products"])


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


# --- Product endpoints ---


@product_router.get("", response_model=list[ProductResponse])
def list_products(
    category: str | None = None,
    q: str | None = None,
    catalog: CatalogStore = Depends(get_catalog),
) -> list[ProductResponse]:
    if category is not None:
        products = catalog.list_by_category(category)
    else:
        products = catalog.search(q)
    return [ProductResponse.from_product(p) for p in products]


@product_router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, catalog: CatalogStore = Depends(get_catalog)) -> ProductResponse:
    product = catalog.get(product_id)
    if product is None:
        raise ProductNotFound(product_id)
    return ProductResponse.from_product(product)


@product_router.post("", status_code=201, response_model=ProductResponse)
def create_product(body: CreateProductRequest, catalog: CatalogStore = Depends(get_catalog)) -> ProductResponse:
    product = catalog.save(Product(**body.model_dump()))
    return ProductResponse.from_product(product)


@product_router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int, body: UpdateProductRequest, catalog: CatalogStore = Depends(get_catalog)
) -> ProductResponse:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    product = catalog.update(product_id, **changes)
    return ProductResponse.from_product(product)


@product_router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, catalog: CatalogStore = Depends(get_catalog)) -> Response:
    catalog.delete(product_id)
    return Response(status_code=204)


@product_router.post("/{product_id}/stock", response_model=ProductResponse)
def set_stock(
    product_id: int, body: StockLevelRequest, catalog: CatalogStore = Depends(get_catalog)
) -> ProductResponse:
    return ProductResponse.from_product(catalog.set_stock(product_id, body.quantity))


@product_router.post("/{product_id}/restock", response_model=ProductResponse)
def restock(product_id: int, body: StockLevelRequest, catalog: CatalogStore = Depends(get_catalog)) -> ProductResponse:
    return ProductResponse.from_product(catalog.restock(product_id, body.quantity))
