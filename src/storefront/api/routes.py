"""FastAPI routes for the Storefront — carts, checkout, buyer and seller order actions."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.api.dependencies import require_user
from storefront.api.schemas import (
    AddToCartRequest,
    ApproveRefundRequest,
    BuyerNoteRequest,
    CancelOrderRequest,
    CartIdResponse,
    CartItemResponse,
    CartResponse,
    CheckoutIdResponse,
    CheckoutResponse,
    ChooseDeliveryRequest,
    ChoosePaymentRequest,
    CreateCartRequest,
    EscrowResponse,
    OpenDisputeRequest,
    OrderItemResponse,
    OrderResponse,
    OrderSummaryResponse,
    PlaceOrderResponse,
    PriceBreakdownResponse,
    RecordPaymentRequest,
    RefundRequest,
    RejectRefundRequest,
    ReleasedCountResponse,
    ReleaseEscrowsRequest,
    ShipOrderRequest,
    StartCheckoutRequest,
    StatusResponse,
    StepResponse,
    UpdateCartQuantityRequest,
)
from storefront.cart.cart import Cart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from storefront.cart.management import ClearCart, CreateCart
from storefront.cart.pricing import DeliveryMethod, format_amount, price_cart
from storefront.checkout.placement import PlaceOrder
from storefront.checkout.session import CheckoutSession
from storefront.checkout.steps import (
    AdvanceCheckout,
    ChooseDelivery,
    ChoosePayment,
    GoBackInCheckout,
    LeaveBuyerNote,
    StartCheckout,
)
from storefront.config import get_settings
from storefront.identity.port import AuthenticatedUser
from storefront.order.cancellation import CancelOrder
from storefront.order.confirmation import ConfirmDelivery
from storefront.order.disputes import OpenDispute
from storefront.order.escrow_release import release_expired_escrows
from storefront.order.fulfillment import MarkProcessing, RecordDelivery, ShipOrder
from storefront.order.order import CancellationActor, Order
from storefront.order.payment import RecordPayment
from storefront.order.refunds import ApproveRefund, RejectRefund, RequestRefund
from storefront.projections.order_summary import OrderSummary


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------
def _pricing_response(breakdown) -> PriceBreakdownResponse:
    return PriceBreakdownResponse(
        subtotal=breakdown.subtotal,
        service_fee=breakdown.service_fee,
        delivery_fee=breakdown.delivery_fee,
        discount=breakdown.discount,
        total=breakdown.total,
        currency=get_settings().currency,
        formatted_total=format_amount(breakdown.total),
    )


def _cart_response(cart) -> CartResponse:
    return CartResponse(
        cart_id=str(cart.id),
        user_id=str(cart.user_id) if cart.user_id else None,
        store_id=str(cart.store_id) if cart.store_id else None,
        store_name=cart.store_name,
        store_slug=cart.store_slug,
        items=[
            CartItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                image=item.image,
                unit_price=item.unit_price,
                quantity=item.quantity,
                available_quantity=item.available_quantity,
                line_total=item.line_total,
            )
            for item in cart.items
        ],
        item_count=cart.item_count,
        subtotal=cart.subtotal,
    )


def _order_response(order) -> OrderResponse:
    escrow = None
    if order.escrow:
        escrow = EscrowResponse(
            amount=order.escrow.amount,
            buyer_fee=order.escrow.buyer_fee,
            platform_fee=order.escrow.platform_fee,
            seller_commission=order.escrow.seller_commission,
            seller_amount=order.escrow.seller_amount,
            status=order.escrow.status,
            hold_until=order.escrow.hold_until,
            released_at=order.escrow.released_at,
        )
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        store_id=str(order.store_id),
        status=order.status,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                image=item.image,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in order.items
        ],
        delivery_method=order.delivery_method,
        delivery_address=order.delivery_address,
        delivery_notes=order.delivery_notes,
        buyer_note=order.buyer_note,
        seller_note=order.seller_note,
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        service_fee=order.service_fee,
        discount=order.discount or 0,
        total_amount=order.total_amount,
        currency=order.currency,
        escrow=escrow,
        refund_status=order.refund_status,
        dispute_reason=order.dispute_reason,
        dispute_description=order.dispute_description,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _summary_response(summary) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        order_id=str(summary.order_id),
        order_number=summary.order_number,
        user_id=str(summary.user_id),
        store_id=str(summary.store_id),
        status=summary.status,
        escrow_status=summary.escrow_status,
        refund_status=summary.refund_status,
        item_count=summary.item_count or 0,
        total_amount=summary.total_amount or 0,
        currency=summary.currency or "GHS",
        created_at=summary.created_at,
    )


def _newest_first(summaries):
    return sorted(summaries, key=lambda s: str(s.created_at or ""), reverse=True)


# ---------------------------------------------------------------------------
# Ownership checks
# ---------------------------------------------------------------------------
def _buyer_checkout(checkout_id: str, user: AuthenticatedUser):
    session = current_domain.repository_for(CheckoutSession).get(checkout_id)
    if str(session.user_id) != str(user.id):
        raise HTTPException(status_code=404, detail="Checkout not found")
    return session


def _buyer_order(order_id: str, user: AuthenticatedUser):
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.user_id) != str(user.id):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _store_order(store_id: str, order_id: str):
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.store_id) != str(store_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        user_id=body.user_id,
        session_id=body.session_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    cart = current_domain.repository_for(Cart).get(cart_id)
    return _cart_response(cart)


@cart_router.get("/{cart_id}/pricing", response_model=PriceBreakdownResponse)
async def get_cart_pricing(cart_id: str, delivery_method: DeliveryMethod = DeliveryMethod.PICKUP) -> PriceBreakdownResponse:
    cart = current_domain.repository_for(Cart).get(cart_id)
    return _pricing_response(price_cart(cart, delivery_method))


@cart_router.post("/{cart_id}/items", response_model=CartResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> CartResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(current_domain.repository_for(Cart).get(cart_id))


@cart_router.put("/{cart_id}/items/{product_id}", response_model=CartResponse)
async def update_cart_item_quantity(cart_id: str, product_id: str, body: UpdateCartQuantityRequest) -> CartResponse:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        product_id=product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(current_domain.repository_for(Cart).get(cart_id))


@cart_router.delete("/{cart_id}/items/{product_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, product_id: str) -> StatusResponse:
    command = RemoveFromCart(
        cart_id=cart_id,
        product_id=product_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items", response_model=StatusResponse)
async def clear_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Router (signed-in buyers only)
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkouts", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutIdResponse)
async def start_checkout(
    body: StartCheckoutRequest, user: AuthenticatedUser = Depends(require_user)
) -> CheckoutIdResponse:
    command = StartCheckout(
        cart_id=body.cart_id,
        user_id=user.id,
        phone_number=user.phone_number,
        institution_id=user.institution_id,
        hall_id=user.hall_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutIdResponse(checkout_id=result)


@checkout_router.get("/{checkout_id}", response_model=CheckoutResponse)
async def get_checkout(checkout_id: str, user: AuthenticatedUser = Depends(require_user)) -> CheckoutResponse:
    session = _buyer_checkout(checkout_id, user)
    cart = current_domain.repository_for(Cart).get(session.cart_id)
    pricing = None
    if not cart.is_empty:
        pricing = _pricing_response(price_cart(cart, session.delivery.method))

    return CheckoutResponse(
        checkout_id=str(session.id),
        cart_id=str(session.cart_id),
        store_id=str(session.store_id),
        step=session.step,
        delivery_method=session.delivery.method,
        delivery_address=session.delivery.address,
        delivery_notes=session.delivery.notes,
        payment_method=session.payment.method,
        provider=session.payment.provider,
        phone_number=session.payment.phone_number,
        buyer_note=session.buyer_note,
        error=session.error,
        order_id=str(session.order_id) if session.order_id else None,
        pricing=pricing,
    )


@checkout_router.put("/{checkout_id}/delivery", response_model=StatusResponse)
async def choose_delivery(
    checkout_id: str, body: ChooseDeliveryRequest, user: AuthenticatedUser = Depends(require_user)
) -> StatusResponse:
    _buyer_checkout(checkout_id, user)
    command = ChooseDelivery(
        checkout_id=checkout_id,
        delivery_method=body.delivery_method,
        delivery_address=body.delivery_address,
        delivery_notes=body.delivery_notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@checkout_router.put("/{checkout_id}/payment", response_model=StatusResponse)
async def choose_payment(
    checkout_id: str, body: ChoosePaymentRequest, user: AuthenticatedUser = Depends(require_user)
) -> StatusResponse:
    _buyer_checkout(checkout_id, user)
    command = ChoosePayment(
        checkout_id=checkout_id,
        payment_method=body.payment_method,
        provider=body.provider,
        phone_number=body.phone_number,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@checkout_router.put("/{checkout_id}/note", response_model=StatusResponse)
async def leave_buyer_note(
    checkout_id: str, body: BuyerNoteRequest, user: AuthenticatedUser = Depends(require_user)
) -> StatusResponse:
    _buyer_checkout(checkout_id, user)
    current_domain.process(LeaveBuyerNote(checkout_id=checkout_id, note=body.note), asynchronous=False)
    return StatusResponse()


@checkout_router.post("/{checkout_id}/next", response_model=StepResponse)
async def advance_checkout(checkout_id: str, user: AuthenticatedUser = Depends(require_user)) -> StepResponse:
    _buyer_checkout(checkout_id, user)
    step = current_domain.process(AdvanceCheckout(checkout_id=checkout_id), asynchronous=False)
    return StepResponse(step=step)


@checkout_router.post("/{checkout_id}/back", response_model=StepResponse)
async def go_back_in_checkout(checkout_id: str, user: AuthenticatedUser = Depends(require_user)) -> StepResponse:
    _buyer_checkout(checkout_id, user)
    step = current_domain.process(GoBackInCheckout(checkout_id=checkout_id), asynchronous=False)
    return StepResponse(step=step)


@checkout_router.post("/{checkout_id}/place", status_code=201, response_model=PlaceOrderResponse)
async def place_order(checkout_id: str, user: AuthenticatedUser = Depends(require_user)):
    """Submit the review step. A rejected submission keeps the checkout at review (HTTP 502)."""
    _buyer_checkout(checkout_id, user)
    order_id = current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)
    if order_id is None:
        session = current_domain.repository_for(CheckoutSession).get(checkout_id)
        return JSONResponse(
            status_code=502,
            content={"error": session.error, "step": session.step},
        )
    return PlaceOrderResponse(order_id=order_id)


# ---------------------------------------------------------------------------
# Buyer Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderSummaryResponse])
async def list_my_orders(user: AuthenticatedUser = Depends(require_user)) -> list[OrderSummaryResponse]:
    summaries = current_domain.repository_for(OrderSummary)._dao.query.filter(user_id=str(user.id)).all().items
    return [_summary_response(s) for s in _newest_first(summaries)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user: AuthenticatedUser = Depends(require_user)) -> OrderResponse:
    return _order_response(_buyer_order(order_id, user))


@order_router.post("/{order_id}/confirm-delivery", response_model=StatusResponse)
async def confirm_delivery(order_id: str, user: AuthenticatedUser = Depends(require_user)) -> StatusResponse:
    _buyer_order(order_id, user)
    current_domain.process(ConfirmDelivery(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, user: AuthenticatedUser = Depends(require_user)
) -> StatusResponse:
    _buyer_order(order_id, user)
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=CancellationActor.BUYER.value,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/refund", response_model=StatusResponse)
async def request_refund(
    order_id: str, body: RefundRequest, user: AuthenticatedUser = Depends(require_user)
) -> StatusResponse:
    _buyer_order(order_id, user)
    current_domain.process(RequestRefund(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/disputes", response_model=StatusResponse)
async def open_dispute(
    order_id: str, body: OpenDisputeRequest, user: AuthenticatedUser = Depends(require_user)
) -> StatusResponse:
    _buyer_order(order_id, user)
    command = OpenDispute(
        order_id=order_id,
        reason=body.reason.value,
        description=body.description,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Store Order Router (seller dashboard and payment/refund callbacks)
# ---------------------------------------------------------------------------
store_router = APIRouter(prefix="/stores/{store_id}/orders", tags=["store-orders"])


@store_router.get("", response_model=list[OrderSummaryResponse])
async def list_store_orders(store_id: str, status: str | None = None) -> list[OrderSummaryResponse]:
    query = current_domain.repository_for(OrderSummary)._dao.query.filter(store_id=store_id)
    if status:
        query = query.filter(status=status)
    return [_summary_response(s) for s in _newest_first(query.all().items)]


@store_router.get("/{order_id}", response_model=OrderResponse)
async def get_store_order(store_id: str, order_id: str) -> OrderResponse:
    return _order_response(_store_order(store_id, order_id))


@store_router.post("/{order_id}/payment", response_model=StatusResponse)
async def record_payment(store_id: str, order_id: str, body: RecordPaymentRequest) -> StatusResponse:
    _store_order(store_id, order_id)
    command = RecordPayment(
        order_id=order_id,
        payment_reference=body.payment_reference,
        payment_method=body.payment_method,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@store_router.post("/{order_id}/processing", response_model=StatusResponse)
async def mark_processing(store_id: str, order_id: str) -> StatusResponse:
    _store_order(store_id, order_id)
    current_domain.process(MarkProcessing(order_id=order_id), asynchronous=False)
    return StatusResponse()


@store_router.post("/{order_id}/ship", response_model=StatusResponse)
async def ship_order(store_id: str, order_id: str, body: ShipOrderRequest) -> StatusResponse:
    _store_order(store_id, order_id)
    current_domain.process(ShipOrder(order_id=order_id, seller_note=body.seller_note), asynchronous=False)
    return StatusResponse()


@store_router.post("/{order_id}/deliver", response_model=StatusResponse)
async def record_delivery(store_id: str, order_id: str) -> StatusResponse:
    _store_order(store_id, order_id)
    current_domain.process(RecordDelivery(order_id=order_id), asynchronous=False)
    return StatusResponse()


@store_router.post("/{order_id}/refund/approve", response_model=StatusResponse)
async def approve_refund(store_id: str, order_id: str, body: ApproveRefundRequest) -> StatusResponse:
    _store_order(store_id, order_id)
    current_domain.process(
        ApproveRefund(order_id=order_id, refund_amount=body.refund_amount),
        asynchronous=False,
    )
    return StatusResponse()


@store_router.post("/{order_id}/refund/reject", response_model=StatusResponse)
async def reject_refund(store_id: str, order_id: str, body: RejectRefundRequest) -> StatusResponse:
    _store_order(store_id, order_id)
    current_domain.process(RejectRefund(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/escrows/release", response_model=ReleasedCountResponse)
async def trigger_escrow_release(body: ReleaseEscrowsRequest) -> ReleasedCountResponse:
    """Trigger escrow auto-release. Intended to be called by an external scheduler."""
    released = release_expired_escrows(as_of=body.as_of)
    return ReleasedCountResponse(released_count=released)
