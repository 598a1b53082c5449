"""Checkout state machine — drives one checkout attempt within a page load.

State Machine:
    SHIPPING → PAYMENT → SUBMITTING → COMPLETED
    PAYMENT → SHIPPING (back)
    PAYMENT → REDIRECT_PENDING → COMPLETED / FAILED (settled by the return reconciler)
    SUBMITTING → FAILED → PAYMENT (retry)
    EMPTY_CART is terminal: a checkout never starts with nothing to pay for.

Transitions run one at a time. A request that arrives while another is
being evaluated (an address save retrying, a card being tokenized) is
rejected instead of queued.

Input problems raise ``ValidationError`` and leave the status unchanged.
Failures of the outside world (address store, gateway, order service) are
recorded in ``error_message`` and ``error_kind`` and leave the flow in a
state the shopper can act on.
"""

import threading
from contextlib import contextmanager
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError

from checkout.address.address import ShippingAddress, select_default, validate_draft
from checkout.address.resolver import AddressResolver
from checkout.address.store.port import AddressStoreError
from checkout.cart.snapshot import CartSnapshot, CartSnapshotProvider
from checkout.domain import logger
from checkout.errors import AddressSaveError, CheckoutError, ValidationFailed
from checkout.ledger.pending_order import PendingOrder
from checkout.payment.selection import CreditCard, PaymentMethodSelection
from checkout.payment.strategy import Immediate, PaymentMethodStrategy, Redirecting, Rejected
from checkout.shared.contact import CustomerContact

PAYMENT_FAILURE_REASON = "Payment could not be completed. Please try again."


class CheckoutStatus(Enum):
    SHIPPING = "Shipping"
    PAYMENT = "Payment"
    SUBMITTING = "Submitting"
    REDIRECT_PENDING = "Redirect_Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    EMPTY_CART = "Empty_Cart"


# The flow stops following cart edits once it reaches one of these.
_DETACHED_STATUSES = {CheckoutStatus.COMPLETED, CheckoutStatus.EMPTY_CART, CheckoutStatus.REDIRECT_PENDING}

_VALID_TRANSITIONS = {
    None: {CheckoutStatus.SHIPPING, CheckoutStatus.EMPTY_CART, CheckoutStatus.FAILED},
    CheckoutStatus.SHIPPING: {CheckoutStatus.PAYMENT},
    CheckoutStatus.PAYMENT: {
        CheckoutStatus.SHIPPING,
        CheckoutStatus.SUBMITTING,
        CheckoutStatus.REDIRECT_PENDING,
    },
    CheckoutStatus.SUBMITTING: {CheckoutStatus.COMPLETED, CheckoutStatus.FAILED},
    CheckoutStatus.REDIRECT_PENDING: {CheckoutStatus.COMPLETED, CheckoutStatus.FAILED},
    CheckoutStatus.FAILED: {CheckoutStatus.PAYMENT},
    CheckoutStatus.COMPLETED: set(),  # Terminal
    CheckoutStatus.EMPTY_CART: set(),  # Terminal
}


class CheckoutFlow:
    def __init__(
        self,
        cart: CartSnapshotProvider,
        resolver: AddressResolver,
        strategy: PaymentMethodStrategy,
        customer: CustomerContact,
        owner_id: str | None = None,
        currency: str = "ILS",
        checkout_id: str | None = None,
    ) -> None:
        self.checkout_id = checkout_id or str(uuid4())
        self.cart = cart
        self.resolver = resolver
        self.strategy = strategy
        self.customer = customer
        self.owner_id = owner_id
        self.currency = currency

        self.status: CheckoutStatus | None = None
        self.history: list[CheckoutStatus] = []
        self.cart_snapshot: CartSnapshot | None = None
        self.addresses: list[ShippingAddress] = []
        self.addresses_unavailable: bool = False
        self.selected_index: int | None = None
        self.entering_new_address: bool = False
        self.shipping_address: ShippingAddress | None = None
        self.error_message: str | None = None
        self.error_kind: str | None = None
        self.order_id: str | None = None
        self.redirect_url: str | None = None

        self._lock = threading.Lock()
        self._unsubscribe = None

    @property
    def is_authenticated(self) -> bool:
        return self.owner_id is not None

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @contextmanager
    def _step(self):
        if not self._lock.acquire(blocking=False):
            raise ValidationError({"status": ["Another checkout step is already in progress"]})
        try:
            yield
        finally:
            self._lock.release()

    def _assert_status(self, *allowed):
        if self.status not in allowed:
            current = self.status.value if self.status else "Not started"
            raise ValidationError({"status": [f"Not allowed while checkout is {current}"]})

    def _transition_to(self, target: CheckoutStatus) -> None:
        if target not in _VALID_TRANSITIONS.get(self.status, set()):
            current = self.status.value if self.status else "Not started"
            raise ValidationError({"status": [f"Cannot transition from {current} to {target.value}"]})
        logger.info(
            "Checkout status changed",
            checkout_id=self.checkout_id,
            from_status=self.status.value if self.status else None,
            to_status=target.value,
        )
        self.status = target
        self.history.append(target)
        if target in _DETACHED_STATUSES:
            self.detach()

    def _clear_error(self) -> None:
        self.error_message = None
        self.error_kind = None

    def _record_error(self, error: CheckoutError) -> None:
        self.error_message = error.reason
        self.error_kind = error.kind

    def _reject_input(self, exc: ValidationError):
        self._record_error(ValidationFailed.from_validation_error(exc))
        raise exc

    def _load_addresses(self) -> None:
        self.addresses = []
        self.addresses_unavailable = False
        if self.is_authenticated:
            try:
                self.addresses = self.resolver.list_addresses(self.owner_id)
            except AddressStoreError as exc:
                self.addresses_unavailable = True
                logger.warning("Saved addresses unavailable", owner_id=self.owner_id, error=str(exc))
        self._preselect()

    def _follow_cart(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.cart.subscribe(self._on_cart_changed)

    def _on_cart_changed(self, snapshot: CartSnapshot) -> None:
        # A payment in flight keeps the snapshot it is paying for.
        if self.status in (CheckoutStatus.SHIPPING, CheckoutStatus.PAYMENT):
            self.cart_snapshot = snapshot

    def detach(self) -> None:
        """Stop receiving cart updates."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _preselect(self) -> None:
        self.selected_index = select_default(self.addresses)
        self.entering_new_address = self.selected_index is None

    # -------------------------------------------------------------------
    # Shipping step
    # -------------------------------------------------------------------
    def start(self) -> CheckoutStatus:
        """Enter the shipping step, or stop at EMPTY_CART when there is nothing to buy."""
        with self._step():
            self._assert_status(None)
            self.cart_snapshot = self.cart.snapshot()
            if self.cart_snapshot.is_empty:
                self._transition_to(CheckoutStatus.EMPTY_CART)
                return self.status

            self._transition_to(CheckoutStatus.SHIPPING)
            self._load_addresses()
            self._follow_cart()
            return self.status

    def select_address(self, index: int) -> None:
        with self._step():
            self._assert_status(CheckoutStatus.SHIPPING)
            if not 0 <= index < len(self.addresses):
                raise ValidationError({"address_index": ["No saved address at this position"]})
            self.selected_index = index
            self.entering_new_address = False

    def use_new_address(self) -> None:
        with self._step():
            self._assert_status(CheckoutStatus.SHIPPING)
            self.selected_index = None
            self.entering_new_address = True

    def submit_shipping(self, draft: ShippingAddress | None = None) -> CheckoutStatus:
        """Resolve the shipping address and move to the payment step.

        A draft is validated, then saved with retry when the shopper is signed
        in. If saving keeps failing the flow stays on SHIPPING with the error
        recorded.
        """
        with self._step():
            self._assert_status(CheckoutStatus.SHIPPING)

            if draft is None:
                if self.entering_new_address or self.selected_index is None:
                    self._reject_input(
                        ValidationError({"shipping_address": ["Select a saved address or enter a new one"]})
                    )
                address = self.addresses[self.selected_index]
            else:
                try:
                    validate_draft(draft)
                except ValidationError as exc:
                    self._reject_input(exc)

                if self.is_authenticated:
                    # An owner whose book could not be read may already have a default.
                    is_first = not self.addresses and not self.addresses_unavailable
                    try:
                        address_id = self.resolver.save_with_retry(self.owner_id, draft, is_first)
                    except AddressSaveError as exc:
                        self._record_error(exc)
                        return self.status

                    address = draft.with_id(address_id)
                    if is_first:
                        address = address.with_default(True)
                    if address.is_default:
                        self.addresses = [a.with_default(False) for a in self.addresses]
                    self.addresses.append(address)
                    self.selected_index = len(self.addresses) - 1
                    self.entering_new_address = False
                else:
                    address = draft

            self.shipping_address = address
            self._clear_error()
            self._transition_to(CheckoutStatus.PAYMENT)
            return self.status

    # -------------------------------------------------------------------
    # Payment step
    # -------------------------------------------------------------------
    def back(self) -> CheckoutStatus:
        """Return to the shipping step. Makes no external call."""
        with self._step():
            self._assert_status(CheckoutStatus.PAYMENT)
            self._clear_error()
            self._transition_to(CheckoutStatus.SHIPPING)
            self._preselect()
            return self.status

    def submit_payment(self, selection: PaymentMethodSelection | None) -> CheckoutStatus:
        with self._step():
            self._assert_status(CheckoutStatus.PAYMENT)
            if selection is None:
                self._reject_input(ValidationError({"payment_method": ["A payment method must be chosen"]}))
            missing = self.customer.missing_fields()
            if missing:
                self._reject_input(ValidationError({field: ["is required"] for field in missing}))

            snapshot = self.cart.snapshot()
            if snapshot.is_empty:
                self._reject_input(ValidationError({"cart": ["Cart is empty"]}))
            self.cart_snapshot = snapshot

            draft = PendingOrder.build(
                cart_snapshot=snapshot,
                shipping_address=self.shipping_address,
                payment_method=selection,
                customer=self.customer,
                currency=self.currency,
                owner_id=self.owner_id,
            )

            if isinstance(selection, CreditCard):
                return self._pay_by_card(selection, draft)
            return self._pay_by_redirect(selection, draft)

    def _pay_by_card(self, selection: CreditCard, draft: PendingOrder) -> CheckoutStatus:
        self._transition_to(CheckoutStatus.SUBMITTING)
        try:
            outcome = self.strategy.initiate(selection, draft)
        except Exception:
            logger.exception("Card payment raised", checkout_id=self.checkout_id, attempt_id=draft.attempt_id)
            outcome = Rejected(PAYMENT_FAILURE_REASON, CheckoutError.kind)

        if isinstance(outcome, Immediate):
            self.order_id = outcome.order_id
            self._clear_error()
            self._transition_to(CheckoutStatus.COMPLETED)
            self._clear_cart()
            return self.status

        self.error_message = outcome.reason
        self.error_kind = outcome.kind
        self._transition_to(CheckoutStatus.FAILED)
        self._transition_to(CheckoutStatus.PAYMENT)
        return self.status

    def _pay_by_redirect(self, selection, draft: PendingOrder) -> CheckoutStatus:
        try:
            outcome = self.strategy.initiate(selection, draft)
        except Exception:
            logger.exception("Redirect payment raised", checkout_id=self.checkout_id, attempt_id=draft.attempt_id)
            outcome = Rejected(PAYMENT_FAILURE_REASON, CheckoutError.kind)

        if isinstance(outcome, Redirecting):
            self.redirect_url = outcome.url
            self._clear_error()
            self._transition_to(CheckoutStatus.REDIRECT_PENDING)
        elif isinstance(outcome, Rejected):
            self.error_message = outcome.reason
            self.error_kind = outcome.kind
        return self.status

    def _clear_cart(self) -> None:
        try:
            self.cart.clear()
        except Exception:
            logger.exception("Cart could not be cleared after order", checkout_id=self.checkout_id, order_id=self.order_id)

    def resume_after_decline(self, pending_order: PendingOrder) -> CheckoutStatus:
        """Re-enter the payment step after the gateway declined a redirect payment.

        The declined attempt's address is reused; the cart is read again since
        a decline leaves it untouched.
        """
        with self._step():
            self._assert_status(None, CheckoutStatus.FAILED)
            self.cart_snapshot = self.cart.snapshot()
            if self.cart_snapshot.is_empty:
                if self.status is None:
                    self._transition_to(CheckoutStatus.EMPTY_CART)
                    return self.status
                raise ValidationError({"cart": ["Cart is empty"]})

            self._load_addresses()
            self.shipping_address = pending_order.shipping_address
            if self.status is None:
                self._transition_to(CheckoutStatus.FAILED)
            self._follow_cart()
            self._clear_error()
            self._transition_to(CheckoutStatus.PAYMENT)
            return self.status

    def to_dict(self) -> dict:
        snapshot = self.cart_snapshot
        return {
            "checkout_id": self.checkout_id,
            "status": self.status.value if self.status else None,
            "error_message": self.error_message,
            "error_kind": self.error_kind,
            "order_id": self.order_id,
            "redirect_url": self.redirect_url,
            "addresses": [address.to_dict() for address in self.addresses],
            "selected_address_index": self.selected_index,
            "entering_new_address": self.entering_new_address,
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "totals": {
                "subtotal": snapshot.subtotal,
                "tax": snapshot.tax,
                "shipping": snapshot.shipping,
                "total": snapshot.total,
                "item_count": snapshot.item_count,
            }
            if snapshot
            else None,
        }
