"""FastAPI routes for the Ordering domain — orders, checkout, coupons, products."""

import json

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.api.auth import Actor, admin_actor, current_actor
from ordering.api.schemas import (
    CheckoutSessionResponse,
    ConfirmCheckoutRequest,
    CouponResponse,
    OrderIdResponse,
    OrderResponse,
    PlaceOrderRequest,
    ProductIdResponse,
    ProductResponse,
    RegisterProductRequest,
    ReplenishStockRequest,
    StartCheckoutRequest,
    StatusResponse,
    StockResponse,
    UpdateStatusRequest,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from ordering.checkout.reconciliation import ConfirmCheckout
from ordering.checkout.session import StartCheckout
from ordering.config import get_settings
from ordering.coupon.redemption import current_coupon, validate_coupon
from ordering.errors import PaymentNotCompleted
from ordering.gateway import get_provider
from ordering.gateway.fake_adapter import FakePaymentProvider
from ordering.inventory.lookup import product_snapshot
from ordering.inventory.management import RegisterProduct, ReplenishStock
from ordering.order.lifecycle import TransitionOrder
from ordering.order.order import ActorRole, Order, OrderStatus
from ordering.order.placement import PlaceOrder

logger = structlog.get_logger(__name__)


def _text(value):
    return str(value) if value is not None else None


def order_response(data: dict) -> OrderResponse:
    """Shape an order's dict form into the public response."""
    items = sorted(data.get("line_items") or [], key=lambda item: item.get("position") or 0)
    return OrderResponse(
        id=str(data["id"]),
        customer_id=str(data["customer_id"]),
        line_items=[
            {
                "product_id": str(item["product_id"]),
                "quantity": item["quantity"],
                "unit_price": item["unit_price"],
            }
            for item in items
        ],
        total_amount=data["total_amount"],
        status=data["status"],
        external_session_id=data.get("external_session_id"),
        coupon_code=data.get("coupon_code"),
        stock_reserved=bool(data.get("stock_reserved")),
        cancelled_by=data.get("cancelled_by"),
        created_at=_text(data.get("created_at")),
        updated_at=_text(data.get("updated_at")),
    )


def _line_items_json(line_items) -> str:
    return json.dumps([item.model_dump() for item in line_items])


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, actor: Actor = Depends(current_actor)) -> OrderIdResponse:
    """Reserve stock for every line and create a PROCESSING order."""
    command = PlaceOrder(
        customer_id=actor.id,
        line_items=_line_items_json(body.line_items),
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/mine", response_model=list[OrderResponse])
async def my_orders(actor: Actor = Depends(current_actor)) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).find_by_customer(actor.id)
    return [order_response(order.to_dict()) for order in orders]


@order_router.get("", response_model=list[OrderResponse], dependencies=[Depends(admin_actor)])
async def all_orders(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).find_all(limit=limit, offset=offset)
    return [order_response(order.to_dict()) for order in orders]


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    """Owner cancellation; only PROCESSING orders can be cancelled."""
    command = TransitionOrder(
        order_id=order_id,
        status=OrderStatus.CANCELLED.value,
        actor_id=actor.id,
        actor_role=ActorRole.CUSTOMER.value,
    )
    result = current_domain.process(command, asynchronous=False)
    return order_response(result)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    actor: Actor = Depends(admin_actor),
) -> OrderResponse:
    command = TransitionOrder(
        order_id=order_id,
        status=body.status,
        actor_id=actor.id,
        actor_role=ActorRole.ADMIN.value,
    )
    result = current_domain.process(command, asynchronous=False)
    return order_response(result)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/session", response_model=CheckoutSessionResponse)
async def start_checkout(body: StartCheckoutRequest, actor: Actor = Depends(current_actor)) -> CheckoutSessionResponse:
    """Open a hosted checkout session priced from the catalog."""
    command = StartCheckout(
        customer_id=actor.id,
        line_items=_line_items_json(body.line_items),
        coupon_code=body.coupon_code,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutSessionResponse(**result)


@checkout_router.post("/confirm", response_model=OrderResponse)
async def confirm_checkout(body: ConfirmCheckoutRequest, actor: Actor = Depends(current_actor)) -> OrderResponse:
    """Return the order for a paid session, creating it on first call.

    Customers may only confirm sessions they opened; admins may confirm any.
    """
    command = ConfirmCheckout(
        session_id=body.session_id,
        customer_id=None if actor.is_admin else actor.id,
    )
    result = current_domain.process(command, asynchronous=False)
    return order_response(result)


@checkout_router.post("/webhook", response_model=StatusResponse)
async def checkout_webhook(request: Request, stripe_signature: str = Header(default="")) -> StatusResponse:
    """Receive provider notifications; a completed session is reconciled."""
    payload = await request.body()
    event = get_provider().construct_webhook_event(payload, stripe_signature)
    if event is None:
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if event.event_type != "checkout.session.completed" or not event.session_id:
        return StatusResponse(status="ignored")

    try:
        current_domain.process(ConfirmCheckout(session_id=event.session_id), asynchronous=False)
    except PaymentNotCompleted:
        # Delayed payment methods complete later with their own event
        return StatusResponse(status="pending")
    except ValidationError as exc:
        # Retrying cannot fix a session we cannot turn into an order
        logger.warning("checkout_webhook_rejected", session_id=event.session_id, errors=exc.messages)
        return StatusResponse(status="rejected")
    return StatusResponse(status="processed")


@checkout_router.post("/provider/pay/{session_id}", response_model=StatusResponse)
async def simulate_payment(session_id: str) -> StatusResponse:
    """Mark a fake-provider session as paid (non-production only).

    Stands in for the customer completing the hosted payment page during
    manual API testing.
    """
    if get_settings().is_production:
        raise HTTPException(status_code=403, detail="Payment simulation not available in production")

    provider = get_provider()
    if not isinstance(provider, FakePaymentProvider):
        raise HTTPException(status_code=400, detail="Payment simulation only available for FakePaymentProvider")

    provider.mark_paid(session_id)
    return StatusResponse(status="paid")


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.get("/mine", response_model=CouponResponse | None)
async def my_coupon(actor: Actor = Depends(current_actor)) -> CouponResponse | None:
    coupon = current_coupon(actor.id)
    if coupon is None:
        return None
    return CouponResponse(
        code=coupon.code,
        discount_percentage=coupon.discount_percentage,
        expires_at=str(coupon.expires_at),
        is_active=coupon.is_active,
    )


@coupon_router.post("/validate", response_model=ValidateCouponResponse)
async def validate(body: ValidateCouponRequest, actor: Actor = Depends(current_actor)) -> ValidateCouponResponse:
    return ValidateCouponResponse(**validate_coupon(body.code, actor.id))


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse, dependencies=[Depends(admin_actor)])
async def register_product(body: RegisterProductRequest) -> ProductIdResponse:
    command = RegisterProduct(
        title=body.title,
        unit_price=body.unit_price,
        stock=body.stock,
        product_id=body.product_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    """Product snapshot, served from the catalog cache when warm."""
    return ProductResponse(**product_snapshot(product_id))


@product_router.put("/{product_id}/stock", response_model=StockResponse, dependencies=[Depends(admin_actor)])
async def replenish_stock(product_id: str, body: ReplenishStockRequest) -> StockResponse:
    command = ReplenishStock(product_id=product_id, quantity=body.quantity)
    stock = current_domain.process(command, asynchronous=False)
    return StockResponse(product_id=product_id, stock=stock)
