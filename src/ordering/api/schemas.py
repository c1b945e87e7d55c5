"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Line-item rules (non-empty, quantity >= 1) are
left to the domain so that they surface as 400 like every other rule.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemRequest(BaseModel):
    product_id: str
    quantity: int


class LineItemResponse(BaseModel):
    product_id: str
    quantity: int
    unit_price: float


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    line_items: list[LineItemRequest]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "line_items": [
                        {"product_id": "prod-001", "quantity": 2},
                        {"product_id": "prod-002", "quantity": 1},
                    ]
                }
            ]
        }
    }


class UpdateStatusRequest(BaseModel):
    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "APPROVED"}]}}


class OrderIdResponse(BaseModel):
    order_id: str


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    line_items: list[LineItemResponse]
    total_amount: float
    status: str
    external_session_id: str | None = None
    coupon_code: str | None = None
    stock_reserved: bool = False
    cancelled_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


# ---------------------------------------------------------------------------
# Checkout Schemas
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    line_items: list[LineItemRequest]
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "line_items": [{"product_id": "prod-001", "quantity": 1}],
                    "coupon_code": "GIFT7KQ2ZD",
                }
            ]
        }
    }


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: str | None = None
    total_amount: float


class ConfirmCheckoutRequest(BaseModel):
    session_id: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Coupon Schemas
# ---------------------------------------------------------------------------
class CouponResponse(BaseModel):
    code: str
    discount_percentage: int
    expires_at: str
    is_active: bool


class ValidateCouponRequest(BaseModel):
    code: str = Field(min_length=1)


class ValidateCouponResponse(BaseModel):
    code: str
    discount_percentage: int


# ---------------------------------------------------------------------------
# Product Schemas
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    unit_price: float = Field(ge=0)
    stock: int = Field(ge=0, default=0)
    product_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Linen Shirt",
                    "unit_price": 49.99,
                    "stock": 25,
                }
            ]
        }
    }


class ReplenishStockRequest(BaseModel):
    quantity: int


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    product_id: str
    title: str
    unit_price: float
    stock: int


class StockResponse(BaseModel):
    product_id: str
    stock: int


# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"
