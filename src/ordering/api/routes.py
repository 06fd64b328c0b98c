"""FastAPI routes for the Ordering domain: carts and orders."""

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from identity.access import require_permission
from identity.principal import Principal, current_principal
from ordering.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CartIssueSchema,
    CartResponse,
    CartSchema,
    CartValidationResponse,
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    OrderSchema,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ClearCart, validate_cart
from ordering.order import queries
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import CreateOrder
from ordering.order.order import Order, OrderStatus
from ordering.order.status import UpdateOrderStatus
from shared.dates import parse_date_range


def _issues(issues) -> list[CartIssueSchema]:
    return [CartIssueSchema(**issue.model_dump(mode="json")) for issue in issues]


def _cart_response(user_id: str, message: str | None = None) -> CartResponse:
    cart = current_domain.repository_for(Cart).get_or_create(user_id)
    return CartResponse(message=message, data=CartSchema.from_cart(cart))


def _order_response(order_id: str, message: str | None = None) -> OrderResponse:
    order = current_domain.repository_for(Order).get_order(order_id)
    return OrderResponse(message=message, data=OrderSchema.from_order(order))


def _order_list(page) -> OrderListResponse:
    return OrderListResponse(
        data=[OrderSchema.from_order(order) for order in page.orders],
        pagination=page.pagination.to_dict(),
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    """Return the caller's cart (created on first access) with any stale lines flagged."""
    cart, issues = validate_cart(principal.id)
    return CartResponse(data=CartSchema.from_cart(cart), issues=_issues(issues))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    current_domain.process(ClearCart(user_id=principal.id), asynchronous=False)
    return _cart_response(principal.id, "Cart cleared successfully")


@cart_router.get("/validate", response_model=CartValidationResponse)
async def validate_my_cart(principal: Principal = Depends(current_principal)) -> CartValidationResponse:
    cart, issues = validate_cart(principal.id)
    return CartValidationResponse(is_valid=not issues, issues=_issues(issues), data=CartSchema.from_cart(cart))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = AddToCart(
        user_id=principal.id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(principal.id, "Item added to cart successfully")


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item_quantity(
    product_id: str,
    body: UpdateCartQuantityRequest,
    principal: Principal = Depends(current_principal),
) -> CartResponse:
    command = UpdateCartQuantity(
        user_id=principal.id,
        product_id=product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(principal.id, "Cart updated successfully")


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    current_domain.process(RemoveFromCart(user_id=principal.id, product_id=product_id), asynchronous=False)
    return _cart_response(principal.id, "Item removed from cart successfully")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, principal: Principal = Depends(current_principal)) -> OrderResponse:
    """Check out the caller's cart.

    1. Create the order from the cart (validates, snapshots, takes stock)
    2. Clear the cart
    """
    command = CreateOrder(
        user_id=principal.id,
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method.value,
        notes=body.notes,
        placed_by=principal.id,
    )
    order_id = current_domain.process(command, asynchronous=False)

    current_domain.process(ClearCart(user_id=principal.id), asynchronous=False)

    return _order_response(order_id, "Order created successfully")


@order_router.get("", response_model=OrderListResponse)
async def list_my_orders(
    status: OrderStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    return _order_list(queries.list_my_orders(principal, page=page, limit=limit, status=status))


@order_router.get("/admin/all", response_model=OrderListResponse)
async def list_all_orders(
    status: OrderStatus | None = None,
    user_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    page_result = queries.list_all_orders(
        principal,
        page=page,
        limit=limit,
        status=status,
        user_id=user_id,
        date_range=parse_date_range(start_date, end_date),
    )
    return _order_list(page_result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    order = queries.get_order(principal, order_id)
    return OrderResponse(data=OrderSchema.from_order(order))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    queries.get_order(principal, order_id)
    command = CancelOrder(order_id=order_id, reason=body.reason, cancelled_by=principal.id)
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, "Order cancelled successfully")


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    require_permission(principal, "update:all_orders")
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status.value,
        note=body.note,
        tracking=body.tracking.model_dump() if body.tracking else None,
        updated_by=principal.id,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, "Order status updated successfully")
