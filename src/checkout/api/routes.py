"""FastAPI routes for the Checkout domain — carts, checkout steps and the gateway return page.

Routes that reach the cart, the address store, the gateway or the order
service are plain ``def`` so FastAPI runs them in its threadpool: an address
save may pause between retries and tokenization is a blocking HTTP call.
"""

import os
from uuid import uuid4

from fastapi import APIRouter, Cookie, HTTPException, Request, Response
from protean.exceptions import ObjectNotFoundError

from checkout.api import sessions
from checkout.api.schemas import (
    AddCartLineRequest,
    CartIdResponse,
    CartLineResultResponse,
    CheckoutStateResponse,
    ConfigureGatewayRequest,
    CreateCartRequest,
    GatewayConfigResponse,
    PaymentMethodsResponse,
    ReconciliationResponse,
    ResumePaymentRequest,
    StartCheckoutRequest,
    StatusResponse,
    SubmitPaymentRequest,
    SubmitShippingRequest,
    UpdateCartLineRequest,
)
from checkout.cart.registry import get_cart_provider, open_cart
from checkout.flow.factory import build_checkout_flow, build_return_reconciler
from checkout.flow.reconciler import ReconciliationResult
from checkout.payment.gateway import get_gateway
from checkout.payment.gateway.fake_adapter import FakeGateway
from checkout.utils.logging import bind_checkout_context, clear_checkout_context

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
def create_cart(body: CreateCartRequest) -> CartIdResponse:
    provider = open_cart(owner_id=body.owner_id, session_id=body.session_id)
    return CartIdResponse(cart_id=provider.cart_id)


@cart_router.post("/{cart_id}/lines", response_model=CartLineResultResponse)
def add_cart_line(cart_id: str, body: AddCartLineRequest) -> CartLineResultResponse:
    result = get_cart_provider(cart_id).add_line(
        product_id=body.product_id,
        name=body.name,
        unit_price=body.unit_price,
        quantity=body.quantity,
        stock_limit=body.stock_limit,
        image_ref=body.image_ref,
    )
    return CartLineResultResponse(**result)


@cart_router.put("/{cart_id}/lines/{line_id}", response_model=CartLineResultResponse)
def update_cart_line(cart_id: str, line_id: str, body: UpdateCartLineRequest) -> CartLineResultResponse:
    result = get_cart_provider(cart_id).update_quantity(line_id, body.new_quantity)
    return CartLineResultResponse(**result)


@cart_router.delete("/{cart_id}/lines/{line_id}", response_model=StatusResponse)
def remove_cart_line(cart_id: str, line_id: str) -> StatusResponse:
    get_cart_provider(cart_id).remove_line(line_id)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/checkout", tags=["checkout"])


def _context_id(request: Request, response: Response) -> str:
    """Return the browser context id, issuing the cookie on first contact."""
    context_id = request.cookies.get(sessions.CONTEXT_COOKIE)
    if not context_id:
        context_id = uuid4().hex
        response.set_cookie(sessions.CONTEXT_COOKIE, context_id, httponly=True, samesite="lax")
    return context_id


def _flow(checkout_id: str):
    try:
        return sessions.get_flow(checkout_id)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _state(flow) -> CheckoutStateResponse:
    state = CheckoutStateResponse(**flow.to_dict())
    sessions.settle(flow)
    return state


@router.post("", status_code=201, response_model=CheckoutStateResponse)
def start_checkout(body: StartCheckoutRequest, request: Request, response: Response) -> CheckoutStateResponse:
    """Start a checkout for a cart.

    An empty cart yields status ``Empty_Cart``; the client should send the
    shopper back to the shop.
    """
    context_id = _context_id(request, response)
    flow = build_checkout_flow(
        cart_id=body.cart_id,
        customer=body.customer.to_contact(),
        storage=sessions.get_storages().for_context(context_id),
        owner_id=body.owner_id,
    )
    bind_checkout_context(checkout_id=flow.checkout_id, cart_id=body.cart_id)
    try:
        flow.start()
    finally:
        clear_checkout_context()
    sessions.remember_flow(flow)
    return _state(flow)


@router.get("/return", response_model=ReconciliationResponse)
def payment_return(request: Request, checkout_context: str | None = Cookie(default=None)) -> ReconciliationResponse:
    """Gateway return page. Reconciles at most once per pending order."""
    if not checkout_context:
        return ReconciliationResponse(**ReconciliationResult.nothing_pending().to_dict())

    reconciler = build_return_reconciler(sessions.get_storages().for_context(checkout_context))
    result = reconciler.reconcile(dict(request.query_params))
    if result.can_retry_payment:
        sessions.remember_decline(checkout_context, result.pending_order)
    return ReconciliationResponse(**result.to_dict())


@router.post("/resume", status_code=201, response_model=CheckoutStateResponse)
def resume_checkout(
    body: ResumePaymentRequest,
    request: Request,
    response: Response,
) -> CheckoutStateResponse:
    """Go back to the payment step after a declined redirect payment."""
    context_id = _context_id(request, response)
    pending = sessions.take_decline(context_id)
    if pending is None:
        raise HTTPException(status_code=409, detail="No declined payment to retry")

    flow = build_checkout_flow(
        cart_id=pending.cart_snapshot.cart_id,
        customer=body.customer.to_contact() if body.customer else pending.customer,
        storage=sessions.get_storages().for_context(context_id),
        owner_id=pending.owner_id,
    )
    flow.resume_after_decline(pending)
    sessions.remember_flow(flow)
    return _state(flow)


@router.delete("/resume", response_model=StatusResponse)
async def abandon_declined_payment(checkout_context: str | None = Cookie(default=None)) -> StatusResponse:
    """Give up on a declined redirect payment instead of retrying it."""
    if not checkout_context or not sessions.discard_decline(checkout_context):
        raise HTTPException(status_code=404, detail="No declined payment to abandon")
    return StatusResponse()


@router.get("/payment-methods", response_model=PaymentMethodsResponse)
async def list_payment_methods() -> PaymentMethodsResponse:
    return PaymentMethodsResponse(methods=[kind.value for kind in get_gateway().available_methods()])


@router.get("/{checkout_id}", response_model=CheckoutStateResponse)
async def get_checkout(checkout_id: str) -> CheckoutStateResponse:
    return _state(_flow(checkout_id))


@router.post("/{checkout_id}/shipping", response_model=CheckoutStateResponse)
def submit_shipping(checkout_id: str, body: SubmitShippingRequest) -> CheckoutStateResponse:
    flow = _flow(checkout_id)
    if body.address is not None:
        flow.submit_shipping(body.address.to_address())
    else:
        if body.address_index is not None:
            flow.select_address(body.address_index)
        flow.submit_shipping()
    return _state(flow)


@router.post("/{checkout_id}/back", response_model=CheckoutStateResponse)
async def back_to_shipping(checkout_id: str) -> CheckoutStateResponse:
    flow = _flow(checkout_id)
    flow.back()
    return _state(flow)


@router.post("/{checkout_id}/payment", response_model=CheckoutStateResponse)
def submit_payment(checkout_id: str, body: SubmitPaymentRequest) -> CheckoutStateResponse:
    """Submit the payment step.

    When ``redirect_url`` is set the client must navigate the whole page to
    it; the result comes back on ``/checkout/return``.
    """
    flow = _flow(checkout_id)
    bind_checkout_context(checkout_id=checkout_id, payment_method=body.method)
    try:
        flow.submit_payment(body.to_selection())
    finally:
        clear_checkout_context()
    return _state(flow)


@router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        tokenize_should_succeed=body.tokenize_should_succeed,
        redirect_should_succeed=body.redirect_should_succeed,
        tokenize_failure_reason=body.tokenize_failure_reason,
        redirect_failure_reason=body.redirect_failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        tokenize_should_succeed=gateway.tokenize_should_succeed,
        redirect_should_succeed=gateway.redirect_should_succeed,
    )
