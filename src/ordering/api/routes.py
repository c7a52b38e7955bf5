"""FastAPI routes for the Ordering domain: carts and orders.

Handlers only translate between HTTP and the workflow engine; every rule lives
in the engine and the aggregates.
"""

from fastapi import APIRouter, Depends, Request

from ordering.api.schemas import (
    AddToCartRequest,
    AmountResponse,
    CancelResponse,
    CartResponse,
    CheckoutRequest,
    CreateCartRequest,
    OrderResponse,
    PurgeResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
    UpdateStatusRequest,
)
from ordering.workflow.engine import OrderWorkflow


def get_workflow(request: Request) -> OrderWorkflow:
    return request.app.state.workflow


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartResponse)
def create_cart(body: CreateCartRequest, workflow: OrderWorkflow = Depends(get_workflow)) -> CartResponse:
    cart = workflow.create_cart(user_id=body.user_id)
    return CartResponse.from_cart(cart)


@cart_router.get("/{cart_id}", response_model=CartResponse)
def get_cart(cart_id: int, workflow: OrderWorkflow = Depends(get_workflow)) -> CartResponse:
    return CartResponse.from_cart(workflow.get_cart(cart_id))


@cart_router.post("/{cart_id}/items", response_model=CartResponse)
def add_cart_item(
    cart_id: int, body: AddToCartRequest, workflow: OrderWorkflow = Depends(get_workflow)
) -> CartResponse:
    cart = workflow.add_to_cart(cart_id, body.product_id, body.quantity)
    return CartResponse.from_cart(cart)


@cart_router.put("/{cart_id}/items/{product_id}", response_model=CartResponse)
def update_cart_item_quantity(
    cart_id: int,
    product_id: int,
    body: UpdateCartQuantityRequest,
    workflow: OrderWorkflow = Depends(get_workflow),
) -> CartResponse:
    cart = workflow.update_cart_item(cart_id, product_id, body.quantity)
    return CartResponse.from_cart(cart)


@cart_router.delete("/{cart_id}/items/{product_id}", response_model=CartResponse)
def remove_cart_item(cart_id: int, product_id: int, workflow: OrderWorkflow = Depends(get_workflow)) -> CartResponse:
    cart = workflow.remove_from_cart(cart_id, product_id)
    return CartResponse.from_cart(cart)


@cart_router.post("/{cart_id}/checkout", status_code=201, response_model=OrderResponse)
def checkout_cart(cart_id: int, body: CheckoutRequest, workflow: OrderWorkflow = Depends(get_workflow)) -> OrderResponse:
    order = workflow.checkout(cart_id, body.shipping_address, billing_address=body.billing_address)
    return OrderResponse.from_order(order)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/reports/revenue", response_model=AmountResponse)
def total_revenue(workflow: OrderWorkflow = Depends(get_workflow)) -> AmountResponse:
    return AmountResponse(amount=workflow.total_revenue())


@order_router.get("/reports/sales", response_model=AmountResponse)
def total_sales(workflow: OrderWorkflow = Depends(get_workflow)) -> AmountResponse:
    return AmountResponse(amount=workflow.total_sales())


@order_router.get("/users/{user_id}", response_model=list[OrderResponse])
def list_user_orders(user_id: str, workflow: OrderWorkflow = Depends(get_workflow)) -> list[OrderResponse]:
    return [OrderResponse.from_order(order) for order in workflow.list_orders_by_user(user_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, workflow: OrderWorkflow = Depends(get_workflow)) -> OrderResponse:
    return OrderResponse.from_order(workflow.get_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int, body: UpdateStatusRequest, workflow: OrderWorkflow = Depends(get_workflow)
) -> OrderResponse:
    return OrderResponse.from_order(workflow.update_status(order_id, body.status))


@order_router.post("/{order_id}/cancel", response_model=CancelResponse)
def cancel_order(order_id: int, workflow: OrderWorkflow = Depends(get_workflow)) -> CancelResponse:
    return CancelResponse(order_id=order_id, cancelled=workflow.cancel(order_id))


@order_router.post("/admin/purge-cancelled", response_model=PurgeResponse)
def purge_cancelled_orders(workflow: OrderWorkflow = Depends(get_workflow)) -> PurgeResponse:
    return PurgeResponse(purged=workflow.purge_cancelled())


@order_router.post("/admin/reset", response_model=StatusResponse)
def reset_orders(workflow: OrderWorkflow = Depends(get_workflow)) -> StatusResponse:
    workflow.reset_counters()
    return StatusResponse()
