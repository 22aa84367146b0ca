"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Money is always integer minor units (pesewas).
"""

from datetime import datetime

from pydantic import BaseModel, Field

from storefront.order.order import DisputeReason


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class PriceBreakdownResponse(BaseModel):
    subtotal: int
    service_fee: int
    delivery_fee: int
    discount: int = 0
    total: int
    currency: str
    formatted_total: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    user_id: str | None = None
    session_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": None,
                    "session_id": "sess-7f3a",
                }
            ]
        }
    }


class CartIdResponse(BaseModel):
    cart_id: str


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    """Zero or a negative quantity removes the line."""

    quantity: int


class CartItemResponse(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    unit_price: int
    quantity: int
    available_quantity: int | None = None
    line_total: int


class CartResponse(BaseModel):
    cart_id: str
    user_id: str | None = None
    store_id: str | None = None
    store_name: str | None = None
    store_slug: str | None = None
    items: list[CartItemResponse]
    item_count: int
    subtotal: int


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    cart_id: str


class CheckoutIdResponse(BaseModel):
    checkout_id: str


class ChooseDeliveryRequest(BaseModel):
    delivery_method: str = "pickup"
    delivery_address: str | None = None
    delivery_notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "delivery_method": "delivery",
                    "delivery_address": "Room 12, Akuafo Hall",
                    "delivery_notes": "Call on arrival",
                }
            ]
        }
    }


class ChoosePaymentRequest(BaseModel):
    payment_method: str = "mobile_money"
    provider: str | None = None
    phone_number: str | None = None


class BuyerNoteRequest(BaseModel):
    note: str | None = None


class StepResponse(BaseModel):
    step: str


class CheckoutResponse(BaseModel):
    checkout_id: str
    cart_id: str
    store_id: str
    step: str
    delivery_method: str
    delivery_address: str | None = None
    delivery_notes: str | None = None
    payment_method: str
    provider: str | None = None
    phone_number: str | None = None
    buyer_note: str | None = None
    error: str | None = None
    order_id: str | None = None
    pricing: PriceBreakdownResponse | None = None


class PlaceOrderResponse(BaseModel):
    order_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    unit_price: int
    quantity: int
    line_total: int


class EscrowResponse(BaseModel):
    amount: int
    buyer_fee: int
    platform_fee: int
    seller_commission: int
    seller_amount: int
    status: str
    hold_until: datetime
    released_at: datetime | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    store_id: str
    status: str
    items: list[OrderItemResponse]
    delivery_method: str
    delivery_address: str | None = None
    delivery_notes: str | None = None
    buyer_note: str | None = None
    seller_note: str | None = None
    subtotal: int
    delivery_fee: int
    service_fee: int
    discount: int
    total_amount: int
    currency: str
    escrow: EscrowResponse | None = None
    refund_status: str | None = None
    dispute_reason: str | None = None
    dispute_description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderSummaryResponse(BaseModel):
    order_id: str
    order_number: str | None = None
    user_id: str
    store_id: str
    status: str
    escrow_status: str | None = None
    refund_status: str | None = None
    item_count: int
    total_amount: int
    currency: str
    created_at: datetime | None = None


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class RefundRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class OpenDisputeRequest(BaseModel):
    reason: DisputeReason
    description: str | None = Field(default=None, max_length=2000)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "reason": "not_as_described",
                    "description": "Wrong edition of the textbook",
                }
            ]
        }
    }


class RecordPaymentRequest(BaseModel):
    payment_reference: str
    payment_method: str = "mobile_money"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "payment_reference": "MOMO-20261019-0042",
                    "payment_method": "mobile_money",
                }
            ]
        }
    }


class ShipOrderRequest(BaseModel):
    seller_note: str | None = None


class ApproveRefundRequest(BaseModel):
    refund_amount: int | None = Field(default=None, ge=0)


class RejectRefundRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------
class ReleaseEscrowsRequest(BaseModel):
    as_of: datetime | None = None


class ReleasedCountResponse(BaseModel):
    released_count: int
